from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from ai_diagnostics.config import ReportConfig
from ai_diagnostics.models.context import MergedBlock, RenderLine
from ai_diagnostics.models.diagnostic import Diagnostic, severity_name

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
ANNOTATION_SEPARATOR = "  "
LINE_NUMBER_FORMAT = "%4d: "


def truncate(text: str, max_length: int | None) -> str:
    """Shorten text to ``max_length`` characters, ending with an ellipsis.

    Args:
        text: Text to shorten.
        max_length: Maximum length of the result, ``None`` disables truncation.

    Returns:
        The original text when it fits, otherwise its first
        ``max_length - 3`` characters followed by ``...``.
    """

    if max_length is None or len(text) <= max_length:
        return text
    return text[: max(max_length - len(ELLIPSIS), 0)] + ELLIPSIS


def sanitize_filename(filename: str) -> str:
    return filename.replace("\r", "").replace("\n", "")


def format_annotation(diagnostic: Diagnostic) -> str:
    """Format a diagnostic as an inline `[Severity: message]` annotation.

    The message is stripped and every run of line breaks becomes one space.
    """

    return f"[{severity_name(diagnostic.severity)}: {diagnostic.clean_message()}]"


class RendererService(BaseModel):
    """Render merged blocks of one file into report text."""

    config: ReportConfig = Field(default_factory=ReportConfig)

    def render(self, filename: str, blocks: Sequence[MergedBlock]) -> str:
        """Render the header and every block of a file.

        Args:
            filename: File the blocks belong to.
            blocks: Merged blocks ordered by start line.

        Returns:
            File section starting with a blank line and the header; each
            block is preceded by one blank line.
        """

        output: list[str] = ["", self.render_header(filename)]
        for block in blocks:
            output.append("")
            output.extend(self.render_line(line) for line in block.lines)

        logger.debug("Rendered %d blocks for %s", len(blocks), filename)
        return "\n".join(output)

    def render_header(self, filename: str) -> str:
        display_name = sanitize_filename(filename) if self.config.sanitize_filenames else filename
        return self.config.file_header_format % display_name

    def render_line(self, line: RenderLine) -> str:
        """Format one line with its annotations and optional line number.

        Args:
            line: Line to format, numbered from zero.

        Returns:
            Formatted line. Line numbers are shown one-based.
        """

        content = truncate(line.content, self.config.max_line_length)
        if line.diagnostics:
            annotations = ANNOTATION_SEPARATOR.join(
                format_annotation(diagnostic) for diagnostic in line.diagnostics
            )
            content = f"{content}{ANNOTATION_SEPARATOR}{annotations}"

        if self.config.show_line_numbers:
            content = (LINE_NUMBER_FORMAT % (line.number + 1)) + content
        return content
