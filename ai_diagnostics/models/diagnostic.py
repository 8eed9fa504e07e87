import logging
import re
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

_NEWLINES = re.compile(r"[\r\n]+")


class DiagnosticSeverity(IntEnum):
    """Severity levels, lower value is more severe."""

    ERROR = 1
    WARNING = 2
    INFO = 3
    HINT = 4

    @property
    def label(self) -> str:
        return _SEVERITY_LABELS[self]


_SEVERITY_LABELS: dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.ERROR: "Error",
    DiagnosticSeverity.WARNING: "Warning",
    DiagnosticSeverity.INFO: "Info",
    DiagnosticSeverity.HINT: "Hint",
}

KNOWN_SEVERITIES: frozenset[int] = frozenset(int(level) for level in DiagnosticSeverity)


def severity_name(severity: int) -> str:
    """Return the display name for a severity value.

    Args:
        severity: Numeric severity reported by the tool.

    Returns:
        One of Error, Warning, Info, Hint or Unknown.
    """

    if severity not in KNOWN_SEVERITIES:
        return "Unknown"
    return DiagnosticSeverity(severity).label


class DiagnosticRange(BaseModel):
    """Zero-based inclusive line range of a diagnostic.

    A missing ``end_line`` defaults to ``start_line``. Tools occasionally
    report ranges that end before they start; those are clamped to a single
    line instead of failing validation.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., ge=0, description="First line, zero-based")
    end_line: int = Field(default=0, ge=0, description="Last line, zero-based")

    @model_validator(mode="before")
    @classmethod
    def _normalize_end_line(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        if data.get("end_line") is None:
            return {**data, "end_line": data.get("start_line")}
        return data

    @model_validator(mode="after")
    def _clamp_end_line(self) -> "DiagnosticRange":
        if self.end_line < self.start_line:
            logger.warning(
                "Clamping diagnostic range that ends before it starts: [%d, %d]",
                self.start_line,
                self.end_line,
            )
            object.__setattr__(self, "end_line", self.start_line)
        return self

    def contains(self, line_number: int) -> bool:
        return self.start_line <= line_number <= self.end_line


class Diagnostic(BaseModel):
    """Single tooling finding tied to a line range."""

    model_config = ConfigDict(frozen=True)

    severity: int = Field(..., description="1 Error, 2 Warning, 3 Info, 4 Hint")
    message: str = Field(default="", description="Message as reported by the tool")
    range: DiagnosticRange = Field(..., description="Lines owned by the diagnostic")
    source: str | None = Field(default=None, description="Producing tool, e.g. flake8")
    code: str | None = Field(default=None, description="Rule identifier")

    @classmethod
    def at(
        cls,
        severity: int,
        message: str,
        start_line: int,
        end_line: int | None = None,
        **extra: Any,
    ) -> "Diagnostic":
        """Shorthand constructor taking the range as plain line numbers."""

        return cls(
            severity=severity,
            message=message,
            range=DiagnosticRange(start_line=start_line, end_line=end_line),
            **extra,
        )

    @property
    def severity_name(self) -> str:
        return severity_name(self.severity)

    @property
    def is_known_severity(self) -> bool:
        return self.severity in KNOWN_SEVERITIES

    def clean_message(self) -> str:
        """Message stripped and flattened to a single line."""

        return _NEWLINES.sub(" ", self.message.strip())
