from pydantic import BaseModel, ConfigDict, Field

from ai_diagnostics.models.diagnostic import Diagnostic


class SourceLine(BaseModel):
    """One line of file content with its absolute zero-based number."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=0, description="Line number, zero-based")
    content: str = Field(default="", description="Line text without the newline")


class ContextLine(SourceLine):
    """Source line tagged with whether the diagnostic owns it."""

    is_diagnostic: bool = Field(default=False, description="Inside the diagnostic range")


class ContextWindow(BaseModel):
    """Clipped line window around a diagnostic."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., ge=0, description="First context line, zero-based")
    end_line: int = Field(..., ge=-1, description="Last context line, -1 when empty")

    @property
    def is_empty(self) -> bool:
        return self.end_line < self.start_line


class DiagnosticContext(BaseModel):
    """Context window together with its resolved lines."""

    window: ContextWindow
    lines: list[ContextLine] = Field(default_factory=list)


class FileDiagnosticEntry(BaseModel):
    diagnostic: Diagnostic
    context: DiagnosticContext


class FileDiagnostics(BaseModel):
    """All diagnostics and their contexts belonging to one file."""

    filename: str = Field(..., description="File the entries belong to")
    entries: list[FileDiagnosticEntry] = Field(default_factory=list)

    def add(self, diagnostic: Diagnostic, context: DiagnosticContext) -> None:
        self.entries.append(FileDiagnosticEntry(diagnostic=diagnostic, context=context))

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [entry.diagnostic for entry in self.entries]

    @property
    def count(self) -> int:
        return len(self.entries)


class RenderLine(BaseModel):
    """Output line with every diagnostic that owns it."""

    number: int = Field(..., ge=0, description="Line number, zero-based")
    content: str = Field(default="", description="Source text of the line")
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class MergedBlock(BaseModel):
    """Maximal contiguous run of context lines in one file."""

    start_line: int = Field(..., ge=0)
    end_line: int = Field(..., ge=0)
    lines: list[RenderLine] = Field(default_factory=list)


class FileReport(BaseModel):
    filename: str
    blocks: list[MergedBlock] = Field(default_factory=list)


class Report(BaseModel):
    """Structured report, files ordered by name."""

    files: list[FileReport] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files
