from collections.abc import Callable

import pytest

from ai_diagnostics.clients.source import InMemorySourceAccessor, accessor_from_mapping
from ai_diagnostics.config import ReportConfig
from ai_diagnostics.services.diagnostic_report import DiagnosticReportService

from .consts import FIVE_LINES, TEN_LINES


@pytest.fixture
def source() -> InMemorySourceAccessor:
    return accessor_from_mapping({"a.lua": FIVE_LINES, "b.py": TEN_LINES, "empty.txt": []})


@pytest.fixture
def make_service(
    source: InMemorySourceAccessor,
) -> Callable[..., DiagnosticReportService]:
    def _make(**config_values: object) -> DiagnosticReportService:
        return DiagnosticReportService(source=source, config=ReportConfig(**config_values))

    return _make
