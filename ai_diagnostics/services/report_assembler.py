from __future__ import annotations

import logging
from collections.abc import Mapping

logger = logging.getLogger(__name__)

EMPTY_REPORT = "No diagnostics found"


def sorted_filenames(filenames: Mapping[str, object]) -> list[str]:
    """Order filenames the way every report lists them."""

    return sorted(filenames)


def assemble_report(per_file_renders: Mapping[str, str]) -> str:
    """Concatenate per-file renders in filename order.

    Args:
        per_file_renders: Rendered section for each file.

    Returns:
        The report text, or ``EMPTY_REPORT`` when there are no files.
    """

    if not per_file_renders:
        logger.debug("No files to report")
        return EMPTY_REPORT

    sections = [per_file_renders[filename] for filename in sorted_filenames(per_file_renders)]
    logger.debug("Assembled report for %d files", len(sections))
    return "\n".join(sections)
