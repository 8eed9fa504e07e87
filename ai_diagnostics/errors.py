class DiagnosticsError(Exception):
    """Base class for errors raised while building a diagnostics report."""


class SourceUnavailableError(DiagnosticsError):
    """Source lines for a diagnostic could not be read."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Source unavailable for {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class InvalidDiagnosticRangeError(DiagnosticsError):
    """Diagnostic range ends before it starts or severity is out of bounds."""


class LengthMismatchError(DiagnosticsError):
    """Parallel diagnostic collections were passed with different lengths."""


class ConfigError(DiagnosticsError):
    """Configuration could not be loaded or failed validation."""


class ProviderError(DiagnosticsError):
    """Diagnostics could not be collected from a provider."""


class MalformedEntryError(ProviderError):
    """A single entry of a diagnostics report has the wrong shape."""
