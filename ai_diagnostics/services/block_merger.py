from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ai_diagnostics.models.context import FileDiagnostics, MergedBlock, RenderLine
from ai_diagnostics.models.diagnostic import Diagnostic

logger = logging.getLogger(__name__)


@dataclass
class _LineEntry:
    content: str
    diagnostics: list[Diagnostic] = field(default_factory=list)


def build_line_map(file_diagnostics: FileDiagnostics) -> dict[int, _LineEntry]:
    """Collect every context line of a file with the diagnostics owning it.

    Args:
        file_diagnostics: Diagnostics and resolved contexts of one file.

    Returns:
        Mapping of zero-based line number to its content and owners. The
        first content seen for a line wins; owners keep supply order.
    """

    line_map: dict[int, _LineEntry] = {}
    for entry in file_diagnostics.entries:
        for line in entry.context.lines:
            line_entry = line_map.get(line.number)
            if line_entry is None:
                line_entry = line_map[line.number] = _LineEntry(content=line.content)
            if line.is_diagnostic:
                line_entry.diagnostics.append(entry.diagnostic)
    return line_map


def merge_blocks(file_diagnostics: FileDiagnostics) -> list[MergedBlock]:
    """Merge the context windows of a file into contiguous blocks.

    Blocks are formed from the set of line numbers present, not from the
    windows themselves, so windows clipped unevenly at file bounds still
    merge correctly. Two blocks never overlap or touch.

    Args:
        file_diagnostics: Diagnostics and resolved contexts of one file.

    Returns:
        Blocks ordered by ``start_line``; empty when there are no lines.
    """

    line_map = build_line_map(file_diagnostics)

    blocks: list[MergedBlock] = []
    current: MergedBlock | None = None
    for number in sorted(line_map):
        if current is None or number > current.end_line + 1:
            current = MergedBlock(start_line=number, end_line=number)
            blocks.append(current)

        line_entry = line_map[number]
        current.end_line = number
        current.lines.append(
            RenderLine(
                number=number,
                content=line_entry.content,
                diagnostics=line_entry.diagnostics,
            )
        )

    logger.debug(
        "Merged %d diagnostics in %s into %d blocks",
        file_diagnostics.count,
        file_diagnostics.filename,
        len(blocks),
    )
    return blocks
