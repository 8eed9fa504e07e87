from .clients.source import FileSourceAccessor, InMemorySourceAccessor, SourceLineAccessor
from .config import ReportConfig, load_config
from .errors import (
    ConfigError,
    DiagnosticsError,
    InvalidDiagnosticRangeError,
    LengthMismatchError,
    MalformedEntryError,
    ProviderError,
    SourceUnavailableError,
)
from .models import Diagnostic, DiagnosticRange, DiagnosticSeverity, Report
from .services.diagnostic_report import DiagnosticReportService
from .services.report_assembler import EMPTY_REPORT

__all__ = [
    "ConfigError",
    "Diagnostic",
    "DiagnosticRange",
    "DiagnosticReportService",
    "DiagnosticSeverity",
    "DiagnosticsError",
    "EMPTY_REPORT",
    "FileSourceAccessor",
    "InMemorySourceAccessor",
    "InvalidDiagnosticRangeError",
    "LengthMismatchError",
    "MalformedEntryError",
    "ProviderError",
    "Report",
    "ReportConfig",
    "SourceLineAccessor",
    "SourceUnavailableError",
    "load_config",
]
