from __future__ import annotations

import logging

from ai_diagnostics.clients.source import SourceLineAccessor
from ai_diagnostics.errors import SourceUnavailableError
from ai_diagnostics.models.context import ContextLine, ContextWindow, DiagnosticContext
from ai_diagnostics.models.diagnostic import Diagnostic
from ai_diagnostics.models.result import Err, Ok, Result

logger = logging.getLogger(__name__)


def compute_window(
    diagnostic: Diagnostic, line_count: int, before_lines: int, after_lines: int
) -> ContextWindow:
    """Clip the context window of a diagnostic to the file bounds.

    Args:
        diagnostic: Diagnostic the window surrounds.
        line_count: Number of lines in the file.
        before_lines: Lines to include before the diagnostic range.
        after_lines: Lines to include after the diagnostic range.

    Returns:
        Window with ``end_line == start_line - 1`` when the file is empty.

    Raises:
        ValueError: When ``before_lines`` or ``after_lines`` is negative.
    """

    if before_lines < 0 or after_lines < 0:
        raise ValueError("before_lines and after_lines must be non-negative")

    start_line = max(0, diagnostic.range.start_line - before_lines)
    if line_count <= 0:
        return ContextWindow(start_line=0, end_line=-1)

    end_line = min(line_count - 1, diagnostic.range.end_line + after_lines)
    return ContextWindow(start_line=min(start_line, end_line + 1), end_line=end_line)


def extract_context(
    diagnostic: Diagnostic,
    filename: str,
    accessor: SourceLineAccessor,
    before_lines: int,
    after_lines: int,
    line_count: int | None = None,
) -> Result[DiagnosticContext]:
    """Resolve the context lines surrounding a diagnostic.

    Args:
        diagnostic: Diagnostic to extract context for.
        filename: File the diagnostic belongs to.
        accessor: Source of file lines.
        before_lines: Lines to include before the diagnostic range.
        after_lines: Lines to include after the diagnostic range.
        line_count: Known line count of the file; read from the accessor
            when omitted.

    Returns:
        ``Ok`` with the context, or ``Err(SourceUnavailableError)`` when
        the lines cannot be read.
    """

    try:
        if line_count is None:
            line_count = accessor.line_count(filename)
        window = compute_window(diagnostic, line_count, before_lines, after_lines)
        if window.is_empty:
            return Ok(DiagnosticContext(window=window))
        source_lines = accessor.read_lines(filename, window.start_line, window.end_line)
    except SourceUnavailableError as exc:
        return Err(exc)

    expected = range(window.start_line, window.end_line + 1)
    if [line.number for line in source_lines] != list(expected):
        return Err(
            SourceUnavailableError(
                filename,
                f"expected lines {window.start_line}-{window.end_line}, "
                f"got {len(source_lines)} lines",
            )
        )

    lines = [
        ContextLine(
            number=line.number,
            content=line.content,
            is_diagnostic=diagnostic.range.contains(line.number),
        )
        for line in source_lines
    ]
    logger.debug(
        "Context for %s lines %d-%d: %d lines",
        filename,
        window.start_line,
        window.end_line,
        len(lines),
    )
    return Ok(DiagnosticContext(window=window, lines=lines))
