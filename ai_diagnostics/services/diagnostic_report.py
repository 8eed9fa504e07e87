from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ai_diagnostics.clients.source import InMemorySourceAccessor, SourceLineAccessor
from ai_diagnostics.config import ReportConfig
from ai_diagnostics.errors import SourceUnavailableError
from ai_diagnostics.models.context import (
    DiagnosticContext,
    FileReport,
    MergedBlock,
    Report,
)
from ai_diagnostics.models.diagnostic import Diagnostic
from ai_diagnostics.models.result import Err
from ai_diagnostics.services.block_merger import merge_blocks
from ai_diagnostics.services.context_extractor import extract_context
from ai_diagnostics.services.grouping import group_by_file
from ai_diagnostics.services.renderer import RendererService
from ai_diagnostics.services.report_assembler import assemble_report, sorted_filenames

logger = logging.getLogger(__name__)


class DiagnosticReportService(BaseModel):
    """Build AI-readable diagnostic reports with surrounding source context.

    Every call works on a fresh snapshot; the service keeps no state between
    calls besides its configuration and source accessor.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: SourceLineAccessor
    config: ReportConfig = Field(default_factory=ReportConfig)

    def render_one_file(self, filename: str, diagnostics: Sequence[Diagnostic]) -> str:
        """Render the report for a single file.

        Args:
            filename: File the diagnostics belong to.
            diagnostics: Diagnostics in the order they should be annotated.

        Returns:
            Report text, or the empty-report sentinel when nothing could be shown.
        """

        return self.render_all({filename: diagnostics})

    def render_all(self, files: Mapping[str, Sequence[Diagnostic]]) -> str:
        """Render the report for several files.

        Args:
            files: Diagnostics for each filename.

        Returns:
            Report text with files in lexicographic order, or the
            empty-report sentinel when nothing could be shown.
        """

        renderer = RendererService(config=self.config)
        per_file_renders: dict[str, str] = {
            file_report.filename: renderer.render(file_report.filename, file_report.blocks)
            for file_report in self.build_report(files).files
        }
        return assemble_report(per_file_renders)

    def build_report(self, files: Mapping[str, Sequence[Diagnostic]]) -> Report:
        """Extract, group and merge diagnostics into a structured report.

        Args:
            files: Diagnostics for each filename.

        Returns:
            Report listing only the files with at least one block.

        Raises:
            LengthMismatchError: When grouping receives misaligned inputs.
        """

        diagnostics: list[Diagnostic] = []
        contexts: list[DiagnosticContext] = []
        filenames: list[str] = []

        for filename, file_diagnostics in files.items():
            resolved = self._resolve_contexts(filename, file_diagnostics)
            for diagnostic, context in resolved:
                diagnostics.append(diagnostic)
                contexts.append(context)
                filenames.append(filename)

        groups = group_by_file(diagnostics, contexts, filenames)

        file_reports: list[FileReport] = []
        for filename in sorted_filenames(groups):
            blocks: list[MergedBlock] = merge_blocks(groups[filename])
            if blocks:
                file_reports.append(FileReport(filename=filename, blocks=blocks))

        logger.debug(
            "Built report: %d diagnostics across %d files", len(diagnostics), len(file_reports)
        )
        return Report(files=file_reports)

    def _resolve_contexts(
        self, filename: str, diagnostics: Sequence[Diagnostic]
    ) -> list[tuple[Diagnostic, DiagnosticContext]]:
        """Extract contexts for one file, dropping diagnostics whose source is unavailable.

        Args:
            filename: File the diagnostics belong to.
            diagnostics: Diagnostics of that file.

        Returns:
            Pairs of diagnostic and context, in supply order.
        """

        if not diagnostics:
            return []

        try:
            line_count = self.source.line_count(filename)
        except SourceUnavailableError as exc:
            logger.warning("Skipping %d diagnostics: %s", len(diagnostics), exc)
            return []

        source = self._snapshot(filename, line_count)
        resolved: list[tuple[Diagnostic, DiagnosticContext]] = []
        for diagnostic in diagnostics:
            result = extract_context(
                diagnostic,
                filename,
                source,
                self.config.before_lines,
                self.config.after_lines,
                line_count=line_count,
            )
            if isinstance(result, Err):
                logger.warning("Dropping diagnostic %r: %s", diagnostic.clean_message(), result.error)
                continue
            resolved.append((diagnostic, result.value))
        return resolved

    def _snapshot(self, filename: str, line_count: int) -> SourceLineAccessor:
        """Read a file once so all of its diagnostics share the same lines.

        The snapshot lives only for the current call. When the whole file
        cannot be read, lines are read per diagnostic instead so readable
        windows still render.

        Args:
            filename: File to read.
            line_count: Number of lines reported by the accessor.

        Returns:
            Accessor serving the lines of ``filename``.
        """

        if line_count <= 0:
            return self.source

        try:
            lines = self.source.read_lines(filename, 0, line_count - 1)
        except SourceUnavailableError as exc:
            logger.debug("Reading %s per diagnostic: %s", filename, exc)
            return self.source

        if [line.number for line in lines] != list(range(line_count)):
            return self.source
        return InMemorySourceAccessor(files={filename: [line.content for line in lines]})
