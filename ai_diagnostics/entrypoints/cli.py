from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ai_diagnostics.clients.providers import (
    CollectedDiagnostic,
    DiagnosticProvider,
    Flake8OutputProvider,
    JsonReportProvider,
    filter_by_severity,
    group_by_filename,
)
from ai_diagnostics.clients.source import FileSourceAccessor
from ai_diagnostics.config import ReportConfig, load_config
from ai_diagnostics.errors import ConfigError, ProviderError
from ai_diagnostics.loaders.report_writer import ExportFormat, ReportWriter, dumps_report
from ai_diagnostics.logging_setup import configure_logging
from ai_diagnostics.services.diagnostic_report import DiagnosticReportService

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ai-diagnostics",
    add_completion=False,
    no_args_is_help=True,
    help="Render code diagnostics with surrounding source context for AI assistants.",
)

ReportArgument = Annotated[
    Path,
    typer.Argument(
        help="JSON file with LSP-shaped diagnostics.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]
RootOption = Annotated[
    Optional[Path],
    typer.Option(
        "--root",
        help="Project root that diagnostic paths are relative to. Defaults to the current directory.",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file.",
        envvar="AI_DIAGNOSTICS_CONFIG",
        dir_okay=False,
    ),
]
BeforeOption = Annotated[
    Optional[int], typer.Option("--before", "-B", help="Context lines before each diagnostic.")
]
AfterOption = Annotated[
    Optional[int], typer.Option("--after", "-A", help="Context lines after each diagnostic.")
]
MaxLineLengthOption = Annotated[
    Optional[int],
    typer.Option("--max-line-length", help="Truncate source lines longer than this."),
]
LineNumbersOption = Annotated[
    Optional[bool],
    typer.Option("--line-numbers/--no-line-numbers", help="Prefix lines with their number."),
]
SeverityOption = Annotated[
    Optional[int],
    typer.Option(
        "--severity",
        "-s",
        min=1,
        max=4,
        help="Minimum severity to include (1 Error, 2 Warning, 3 Info, 4 Hint).",
    ),
]
OutputOption = Annotated[
    Optional[Path],
    typer.Option(
        "--output",
        "-o",
        help="Write the report to this file instead of stdout.",
        file_okay=True,
        dir_okay=False,
        writable=True,
        resolve_path=True,
    ),
]
LogLevelOption = Annotated[
    Optional[str],
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
]


def _load_settings(
    config_path: Path | None,
    log_level: str | None,
    **overrides: object,
) -> ReportConfig:
    """Load configuration and set up logging, exiting on invalid settings.

    Args:
        config_path: Optional YAML configuration file.
        log_level: Log level overriding the configured one.
        overrides: Command line values taking precedence over the file.

    Returns:
        Validated configuration.
    """
    try:
        config = load_config(config_path, **overrides)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    configure_logging(config.log, log_level)
    return config


def _collect(provider: DiagnosticProvider, config: ReportConfig) -> list[CollectedDiagnostic]:
    try:
        collected = provider.collect()
    except ProviderError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    return filter_by_severity(collected, config.severity)


def _emit(text: str, output: Path | None) -> None:
    """Print the report or write it to ``output``.

    Args:
        text: Rendered report.
        output: Destination file, stdout when ``None``.
    """
    if output is None:
        typer.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        output.write_text(text, encoding="utf-8")
    except OSError:
        logger.exception("Failed to write report to %s", output)
        raise
    typer.secho(f"Report written to {output}", fg=typer.colors.GREEN, err=True)


def _render(
    provider: DiagnosticProvider, config: ReportConfig, root: Path, output: Path | None
) -> None:
    diagnostics = _collect(provider, config)
    service = DiagnosticReportService(source=FileSourceAccessor(project_root=root), config=config)
    _emit(service.render_all(group_by_filename(diagnostics)), output)


@app.command("render")
def render(
    report_path: ReportArgument,
    root: RootOption = None,
    config_path: ConfigOption = None,
    before: BeforeOption = None,
    after: AfterOption = None,
    max_line_length: MaxLineLengthOption = None,
    line_numbers: LineNumbersOption = None,
    severity: SeverityOption = None,
    output: OutputOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Render diagnostics from a JSON report.

    Args:
        report_path: JSON file with diagnostics.
        root: Project root that diagnostic paths are relative to.
        config_path: Optional YAML configuration file.
        before: Context lines before each diagnostic.
        after: Context lines after each diagnostic.
        max_line_length: Truncation limit for source lines.
        line_numbers: Whether to prefix lines with their number.
        severity: Minimum severity to include.
        output: Destination file, stdout when omitted.
        log_level: Log level override.
    """
    config = _load_settings(
        config_path,
        log_level,
        before_lines=before,
        after_lines=after,
        max_line_length=max_line_length,
        show_line_numbers=line_numbers,
        severity=severity,
    )
    _render(JsonReportProvider(path=report_path), config, root or Path.cwd(), output)


@app.command("flake8")
def flake8(
    src: Annotated[
        Path,
        typer.Argument(
            help="File or directory to lint with flake8.",
            exists=True,
            file_okay=True,
            dir_okay=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    select: Annotated[
        Optional[list[str]],
        typer.Option("--select", help="flake8 rule codes or prefixes to enable."),
    ] = None,
    config_path: ConfigOption = None,
    before: BeforeOption = None,
    after: AfterOption = None,
    max_line_length: MaxLineLengthOption = None,
    line_numbers: LineNumbersOption = None,
    severity: SeverityOption = None,
    output: OutputOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Run flake8 and render its findings with context.

    Args:
        src: File or directory to lint.
        select: Rule codes passed to ``flake8 --select``.
        config_path: Optional YAML configuration file.
        before: Context lines before each diagnostic.
        after: Context lines after each diagnostic.
        max_line_length: Truncation limit for source lines.
        line_numbers: Whether to prefix lines with their number.
        severity: Minimum severity to include.
        output: Destination file, stdout when omitted.
        log_level: Log level override.
    """
    config = _load_settings(
        config_path,
        log_level,
        before_lines=before,
        after_lines=after,
        max_line_length=max_line_length,
        show_line_numbers=line_numbers,
        severity=severity,
    )
    root = src if src.is_dir() else src.parent
    provider = Flake8OutputProvider(src=src, select=tuple(select or ()))
    _render(provider, config, root, output)


@app.command("export")
def export(
    report_path: ReportArgument,
    export_format: Annotated[
        ExportFormat,
        typer.Option("--format", "-f", case_sensitive=False, help="Output format."),
    ] = ExportFormat.YAML,
    root: RootOption = None,
    config_path: ConfigOption = None,
    before: BeforeOption = None,
    after: AfterOption = None,
    severity: SeverityOption = None,
    output: OutputOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Export merged context blocks as structured YAML or JSON.

    Args:
        report_path: JSON file with diagnostics.
        export_format: Serialization format.
        root: Project root that diagnostic paths are relative to.
        config_path: Optional YAML configuration file.
        before: Context lines before each diagnostic.
        after: Context lines after each diagnostic.
        severity: Minimum severity to include.
        output: Destination file, stdout when omitted.
        log_level: Log level override.
    """
    config = _load_settings(
        config_path,
        log_level,
        before_lines=before,
        after_lines=after,
        severity=severity,
    )
    diagnostics = _collect(JsonReportProvider(path=report_path), config)
    service = DiagnosticReportService(
        source=FileSourceAccessor(project_root=root or Path.cwd()), config=config
    )
    report = service.build_report(group_by_filename(diagnostics))

    if output is None:
        typer.echo(dumps_report(report, export_format))
        return

    ReportWriter(output, export_format).write(report)
    typer.secho(f"Report written to {output}", fg=typer.colors.GREEN, err=True)


def main() -> None:
    """Entry point for executing the Typer application."""
    app()


if __name__ == "__main__":
    main()
