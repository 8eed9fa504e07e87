from __future__ import annotations

from collections.abc import Sequence

from ai_diagnostics.errors import LengthMismatchError
from ai_diagnostics.models.context import DiagnosticContext, FileDiagnostics
from ai_diagnostics.models.diagnostic import Diagnostic


def group_by_file(
    diagnostics: Sequence[Diagnostic],
    contexts: Sequence[DiagnosticContext],
    filenames: Sequence[str],
) -> dict[str, FileDiagnostics]:
    """Partition parallel diagnostic collections by filename.

    Args:
        diagnostics: Diagnostics in supply order.
        contexts: Context for each diagnostic, same order.
        filenames: File for each diagnostic, same order.

    Returns:
        Mapping of filename to its diagnostics, supply order preserved
        within each file.

    Raises:
        LengthMismatchError: When the three sequences differ in length.
    """

    if not len(diagnostics) == len(contexts) == len(filenames):
        raise LengthMismatchError(
            "Mismatched lengths in diagnostic grouping: "
            f"{len(diagnostics)} diagnostics, {len(contexts)} contexts, "
            f"{len(filenames)} filenames"
        )

    groups: dict[str, FileDiagnostics] = {}
    for diagnostic, context, filename in zip(diagnostics, contexts, filenames):
        group = groups.get(filename)
        if group is None:
            group = groups[filename] = FileDiagnostics(filename=filename)
        group.add(diagnostic, context)

    return groups
