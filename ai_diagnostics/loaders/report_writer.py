from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import TypedDict

import yaml

from ai_diagnostics.models.context import Report
from ai_diagnostics.models.diagnostic import Diagnostic

logger = logging.getLogger(__name__)


class _LiteralString(str):
    """Marker type to force YAML literal block style (|) for multi-line strings."""


def _literal_str_representer(dumper: yaml.SafeDumper, data: _LiteralString):  # type: ignore[name-defined]
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="|")


yaml.SafeDumper.add_representer(_LiteralString, _literal_str_representer)  # type: ignore[arg-type]


class ExportFormat(Enum):
    YAML = "yaml"
    JSON = "json"


class AnnotationRow(TypedDict):
    severity: str
    message: str
    start_line: int
    end_line: int
    source: str | None
    code: str | None


class LineRow(TypedDict):
    line: int
    content: str
    diagnostics: list[AnnotationRow]


class BlockRow(TypedDict):
    start_line: int
    end_line: int
    lines: list[LineRow]


class FileRow(TypedDict):
    file: str
    blocks: list[BlockRow]


class ReportPayload(TypedDict):
    files: list[FileRow]


def _annotation_row(diagnostic: Diagnostic) -> AnnotationRow:
    message = diagnostic.message.strip()
    return {
        "severity": diagnostic.severity_name,
        "message": _LiteralString(message) if "\n" in message or "\r" in message else message,
        "start_line": diagnostic.range.start_line + 1,
        "end_line": diagnostic.range.end_line + 1,
        "source": diagnostic.source,
        "code": diagnostic.code,
    }


def report_to_payload(report: Report) -> ReportPayload:
    """Convert a report into plain Python structures.

    Line numbers are one-based, matching the text report.
    """

    files: list[FileRow] = []
    for file_report in report.files:
        blocks: list[BlockRow] = []
        for block in file_report.blocks:
            lines: list[LineRow] = [
                {
                    "line": line.number + 1,
                    "content": line.content,
                    "diagnostics": [_annotation_row(diag) for diag in line.diagnostics],
                }
                for line in block.lines
            ]
            blocks.append(
                {
                    "start_line": block.start_line + 1,
                    "end_line": block.end_line + 1,
                    "lines": lines,
                }
            )
        files.append({"file": file_report.filename, "blocks": blocks})
    return {"files": files}


def dumps_report(
    report: Report, export_format: ExportFormat = ExportFormat.YAML, indent: int = 2
) -> str:
    """Serialize a report to YAML or JSON text.

    Args:
        report: Structured report to serialize.
        export_format: Serialization format.
        indent: Indentation level for pretty-printing.

    Returns:
        Serialized report. Multi-line messages use YAML literal blocks.
    """

    payload = report_to_payload(report)
    if export_format is ExportFormat.JSON:
        return json.dumps(payload, ensure_ascii=False, indent=indent)
    return yaml.safe_dump(
        payload,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
        indent=indent,
        width=4096,  # avoid line folding for readability
    )


class ReportWriter:
    """Persist a structured diagnostics report as YAML or JSON.

    The output schema is a single object with a ``files`` list; each file
    holds its merged blocks, each block its lines and the diagnostics
    attached to them.
    """

    def __init__(
        self, output_path: str | Path, export_format: ExportFormat = ExportFormat.YAML, indent: int = 2
    ) -> None:
        """Create a report writer.

        Args:
            output_path: Target file path.
            export_format: Serialization format.
            indent: Indentation level for pretty-printing.
        """
        self.output_path: Path = Path(output_path)
        self.export_format: ExportFormat = export_format
        self.indent: int = indent

    def dumps(self, report: Report) -> str:
        return dumps_report(report, self.export_format, self.indent)

    def write(self, report: Report) -> None:
        """Write the report to the configured file.

        Args:
            report: Structured report to serialize.
        """
        if self.output_path.parent and not self.output_path.parent.exists():
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

        text = self.dumps(report)
        try:
            self.output_path.write_text(text, encoding="utf-8")
        except OSError:
            logger.exception("Failed to write diagnostics report to %s", self.output_path)
            raise
