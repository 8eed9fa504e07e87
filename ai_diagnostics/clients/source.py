from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from ai_diagnostics.errors import SourceUnavailableError
from ai_diagnostics.models.context import SourceLine


@runtime_checkable
class SourceLineAccessor(Protocol):
    """Read-only access to the lines of the files diagnostics point at."""

    def line_count(self, filename: str) -> int:
        """Return the number of lines in the file.

        Raises:
            SourceUnavailableError: When the file cannot be read.
        """
        ...

    def read_lines(self, filename: str, start_line: int, end_line: int) -> list[SourceLine]:
        """Return lines ``start_line..end_line`` inclusive, zero-based.

        Raises:
            SourceUnavailableError: When the file cannot be read.
        """
        ...


def _slice_lines(lines: Sequence[str], start_line: int, end_line: int) -> list[SourceLine]:
    start = max(start_line, 0)
    stop = min(end_line + 1, len(lines))
    return [SourceLine(number=number, content=lines[number]) for number in range(start, stop)]


class InMemorySourceAccessor(BaseModel):
    """Serve lines from a mapping of filename to line list."""

    files: dict[str, list[str]] = Field(default_factory=dict)

    def line_count(self, filename: str) -> int:
        return len(self._lines(filename))

    def read_lines(self, filename: str, start_line: int, end_line: int) -> list[SourceLine]:
        return _slice_lines(self._lines(filename), start_line, end_line)

    def _lines(self, filename: str) -> list[str]:
        try:
            return self.files[filename]
        except KeyError:
            raise SourceUnavailableError(filename, "no such file") from None


class FileSourceAccessor(BaseModel):
    """Read source lines from disk relative to a project root.

    Files are re-read on every call, so edits made between renders are
    always picked up.
    """

    project_root: Path = Field(default_factory=Path.cwd)
    encoding: str = "utf-8"

    def line_count(self, filename: str) -> int:
        return len(self._lines(filename))

    def read_lines(self, filename: str, start_line: int, end_line: int) -> list[SourceLine]:
        return _slice_lines(self._lines(filename), start_line, end_line)

    def resolve(self, filename: str) -> Path:
        path = Path(filename)
        return path if path.is_absolute() else (self.project_root / path)

    def _lines(self, filename: str) -> list[str]:
        absolute_path = self.resolve(filename)
        if not absolute_path.is_file():
            raise SourceUnavailableError(filename, f"{absolute_path} does not exist")
        try:
            text = absolute_path.read_text(encoding=self.encoding, errors="replace")
        except OSError as exc:
            raise SourceUnavailableError(filename, str(exc)) from exc
        return text.splitlines()


def accessor_from_mapping(files: Mapping[str, Sequence[str]]) -> InMemorySourceAccessor:
    return InMemorySourceAccessor(files={name: list(lines) for name, lines in files.items()})
