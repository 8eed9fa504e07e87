from .context import (
    ContextLine,
    ContextWindow,
    DiagnosticContext,
    FileDiagnosticEntry,
    FileDiagnostics,
    FileReport,
    MergedBlock,
    RenderLine,
    Report,
    SourceLine,
)
from .diagnostic import Diagnostic, DiagnosticRange, DiagnosticSeverity, severity_name
from .result import Err, Ok, Result

__all__ = [
    "ContextLine",
    "ContextWindow",
    "Diagnostic",
    "DiagnosticContext",
    "DiagnosticRange",
    "DiagnosticSeverity",
    "Err",
    "FileDiagnosticEntry",
    "FileDiagnostics",
    "FileReport",
    "MergedBlock",
    "Ok",
    "RenderLine",
    "Report",
    "Result",
    "SourceLine",
    "severity_name",
]
