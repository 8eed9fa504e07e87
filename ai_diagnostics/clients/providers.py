from __future__ import annotations

import json
import logging
import os
import re
import subprocess
import sys
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ai_diagnostics.errors import InvalidDiagnosticRangeError, MalformedEntryError, ProviderError
from ai_diagnostics.models.diagnostic import Diagnostic, DiagnosticRange, DiagnosticSeverity

logger = logging.getLogger(__name__)

CollectedDiagnostic = tuple[Diagnostic, str]

_SEVERITY_NAMES: dict[str, DiagnosticSeverity] = {
    "error": DiagnosticSeverity.ERROR,
    "warning": DiagnosticSeverity.WARNING,
    "warn": DiagnosticSeverity.WARNING,
    "info": DiagnosticSeverity.INFO,
    "information": DiagnosticSeverity.INFO,
    "hint": DiagnosticSeverity.HINT,
}

_FLAKE8_SEVERITY_PREFIXES: dict[str, DiagnosticSeverity] = {
    "E": DiagnosticSeverity.ERROR,
    "F": DiagnosticSeverity.ERROR,
    "W": DiagnosticSeverity.WARNING,
    "C": DiagnosticSeverity.INFO,
    "N": DiagnosticSeverity.INFO,
    "D": DiagnosticSeverity.INFO,
}

FLAKE8_LINE_PATTERN = re.compile(r"^(.*?):(\d+):(\d+):\s+([A-Z]+\d+)\s+(.*)$")


def filter_by_severity(
    diagnostics: Iterable[CollectedDiagnostic], minimum: int | None
) -> list[CollectedDiagnostic]:
    """Keep diagnostics at least as severe as ``minimum``.

    Args:
        diagnostics: Diagnostic and filename pairs.
        minimum: Least severe level to keep (1 Error .. 4 Hint), ``None`` keeps all.

    Returns:
        Pairs passing the threshold, order preserved.
    """

    if minimum is None:
        return list(diagnostics)
    return [(diag, filename) for diag, filename in diagnostics if diag.severity <= minimum]


def group_by_filename(diagnostics: Iterable[CollectedDiagnostic]) -> dict[str, list[Diagnostic]]:
    grouped: dict[str, list[Diagnostic]] = defaultdict(list)
    for diagnostic, filename in diagnostics:
        grouped[filename].append(diagnostic)
    return dict(grouped)


def normalize_path(file_path: Path, project_root: Path) -> str:
    """Express a reported path relative to the project root.

    Args:
        file_path: Path reported by the tool.
        project_root: Root the report should be relative to.

    Returns:
        POSIX style relative path.
    """

    target_root: Path = project_root.resolve()
    absolute_path: Path = (
        file_path if file_path.is_absolute() else (target_root / file_path)
    ).resolve()
    try:
        return absolute_path.relative_to(target_root).as_posix()
    except ValueError:
        return Path(os.path.relpath(absolute_path, target_root)).as_posix()


def parse_severity(value: Any) -> int:
    """Convert an integer or a severity name into a numeric severity.

    Raises:
        InvalidDiagnosticRangeError: When the value is not a known severity.
    """

    if isinstance(value, bool):
        raise InvalidDiagnosticRangeError(f"Invalid severity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.strip().isdigit():
            return int(value)
        severity = _SEVERITY_NAMES.get(value.strip().lower())
        if severity is not None:
            return int(severity)
    raise InvalidDiagnosticRangeError(f"Invalid severity: {value!r}")


def _position_line(raw_range: dict[str, Any], key: str, fallback: Any) -> Any:
    position = raw_range.get(key)
    if position is None:
        return fallback
    if not isinstance(position, dict):
        raise MalformedEntryError(f"Range {key} must be an object: {position!r}")
    return position.get("line", fallback)


class DiagnosticProvider(ABC, BaseModel):
    """Source of (diagnostic, filename) pairs."""

    @abstractmethod
    def collect(self) -> list[CollectedDiagnostic]:
        pass


class JsonReportProvider(DiagnosticProvider):
    """Read LSP-shaped diagnostics from a JSON report.

    Two layouts are accepted, a list of entries carrying ``file`` or a
    mapping of filename to entry lists::

        [{"file": "a.py", "severity": 1, "message": "...",
          "range": {"start": {"line": 3}, "end": {"line": 4}}}]

    Lines are zero-based, as LSP reports them.
    """

    path: Path

    def collect(self) -> list[CollectedDiagnostic]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Failed to read diagnostics report {self.path}: {exc}") from exc

        entries: list[tuple[dict[str, Any], str | None]]
        if isinstance(payload, list):
            entries = [(entry, None) for entry in payload]
        elif isinstance(payload, dict):
            entries = [
                (entry, str(filename))
                for filename, file_entries in payload.items()
                for entry in (file_entries if isinstance(file_entries, list) else [])
            ]
        else:
            raise ProviderError(f"Diagnostics report {self.path} must be a list or a mapping")

        collected: list[CollectedDiagnostic] = []
        for index, (entry, filename) in enumerate(entries):
            try:
                collected.append(self._parse_entry(entry, filename))
            except (MalformedEntryError, InvalidDiagnosticRangeError, ValidationError) as exc:
                logger.warning("Skipping malformed diagnostic #%d in %s: %s", index, self.path, exc)

        logger.debug("Collected %d diagnostics from %s", len(collected), self.path)
        return collected

    @staticmethod
    def _parse_entry(entry: Any, filename: str | None) -> CollectedDiagnostic:
        if not isinstance(entry, dict):
            raise MalformedEntryError(f"Diagnostic entry must be an object: {entry!r}")

        filename = filename or entry.get("file") or entry.get("filename")
        if not filename:
            raise MalformedEntryError("Diagnostic entry has no file")

        raw_range = entry.get("range") or {}
        if not isinstance(raw_range, dict):
            raise MalformedEntryError(f"Diagnostic range must be an object: {raw_range!r}")
        start = _position_line(raw_range, "start", entry.get("lnum"))
        end = _position_line(raw_range, "end", entry.get("end_lnum"))
        if start is None:
            raise MalformedEntryError("Diagnostic entry has no start line")

        diagnostic = Diagnostic(
            severity=parse_severity(entry.get("severity", int(DiagnosticSeverity.ERROR))),
            message=str(entry.get("message", "")),
            range=DiagnosticRange(start_line=start, end_line=end),
            source=entry.get("source"),
            code=None if entry.get("code") is None else str(entry["code"]),
        )
        return diagnostic, str(filename)


class Flake8OutputProvider(DiagnosticProvider):
    """Run flake8 (or parse its saved output) and convert findings.

    Output is parsed in the default flake8 format
    `<path>:<line>:<col>: <code> <message>`. Reported lines are one-based and
    converted to zero-based here.
    """

    src: Path = Field(default_factory=Path.cwd)
    output: str | None = Field(default=None, description="Saved flake8 output to parse")
    select: Sequence[str] = Field(default_factory=tuple)

    def collect(self) -> list[CollectedDiagnostic]:
        text = self.output if self.output is not None else self._run_flake8()
        return self.parse(text)

    def parse(self, text: str) -> list[CollectedDiagnostic]:
        project_root = self.src if self.src.is_dir() else self.src.parent
        collected: list[CollectedDiagnostic] = []
        for line in text.splitlines():
            match = FLAKE8_LINE_PATTERN.match(line.strip())
            if not match:
                # Skip unparsable lines (e.g., empty or configuration notes)
                continue
            path_str, line_str, _col_str, code, message = match.groups()
            line_no = max(int(line_str) - 1, 0)
            severity = _FLAKE8_SEVERITY_PREFIXES.get(code[0], DiagnosticSeverity.WARNING)
            collected.append(
                (
                    Diagnostic.at(
                        int(severity),
                        f"{code} {message.strip()}",
                        line_no,
                        source="flake8",
                        code=code,
                    ),
                    normalize_path(Path(path_str), project_root),
                )
            )
        return collected

    def _run_flake8(self) -> str:
        command = [sys.executable, "-m", "flake8"]
        if self.select:
            command.append(f"--select={','.join(self.select)}")
        command.append(str(self.src))

        # Exit code 1 means findings were reported.
        try:
            result = subprocess.run(command, check=False, capture_output=True, text=True)
        except OSError as exc:
            raise ProviderError(f"Failed to run flake8: {exc}") from exc

        if result.returncode not in (0, 1):
            raise ProviderError(f"flake8 failed with exit code {result.returncode}: {result.stderr}")
        return result.stdout
