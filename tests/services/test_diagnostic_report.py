from collections.abc import Callable

import pytest
from pydantic import Field

from ai_diagnostics.clients.source import InMemorySourceAccessor
from ai_diagnostics.config import ReportConfig
from ai_diagnostics.errors import LengthMismatchError, SourceUnavailableError
from ai_diagnostics.models.context import SourceLine
from ai_diagnostics.models.diagnostic import Diagnostic, DiagnosticSeverity
from ai_diagnostics.services.diagnostic_report import DiagnosticReportService
from ai_diagnostics.services.report_assembler import EMPTY_REPORT

ServiceFactory = Callable[..., DiagnosticReportService]

X_UNDEFINED = Diagnostic.at(DiagnosticSeverity.ERROR, "x undefined", 2)
UNUSED_Y = Diagnostic.at(DiagnosticSeverity.WARNING, "unused y", 1)


def test_render_one_file__merges_windows_and_annotates_lines(make_service: ServiceFactory) -> None:
    service = make_service(before_lines=1, after_lines=1)

    report = service.build_report({"a.lua": [X_UNDEFINED, UNUSED_Y]})
    text = service.render_one_file("a.lua", [X_UNDEFINED, UNUSED_Y])

    assert len(report.files) == 1
    blocks = report.files[0].blocks
    assert [(block.start_line, block.end_line) for block in blocks] == [(0, 3)]
    assert blocks[0].lines[1].diagnostics == [UNUSED_Y]
    assert blocks[0].lines[2].diagnostics == [X_UNDEFINED]
    assert text == (
        "\nFile: a.lua\n\n"
        "l1\n"
        "l2  [Warning: unused y]\n"
        "l3  [Error: x undefined]\n"
        "l4"
    )


def test_render_one_file__with_line_numbers(make_service: ServiceFactory) -> None:
    service = make_service(before_lines=1, after_lines=1, show_line_numbers=True)

    text = service.render_one_file("a.lua", [X_UNDEFINED, UNUSED_Y])

    assert text.splitlines()[3:] == [
        "   1: l1",
        "   2: l2  [Warning: unused y]",
        "   3: l3  [Error: x undefined]",
        "   4: l4",
    ]


def test_render_all__orders_files_and_is_deterministic(make_service: ServiceFactory) -> None:
    service = make_service(before_lines=1, after_lines=1)
    boom = Diagnostic.at(DiagnosticSeverity.ERROR, "boom", 0)

    forward = service.render_all({"a.lua": [UNUSED_Y], "b.py": [boom]})
    backward = service.render_all({"b.py": [boom], "a.lua": [UNUSED_Y]})

    assert forward == backward == service.render_all({"a.lua": [UNUSED_Y], "b.py": [boom]})
    assert forward == (
        "\nFile: a.lua\n\nl1\nl2  [Warning: unused y]\nl3"
        "\n\nFile: b.py\n\nline 0  [Error: boom]\nline 1"
    )


def test_render_all__no_diagnostics__returns_sentinel(make_service: ServiceFactory) -> None:
    service = make_service()

    assert service.render_all({}) == EMPTY_REPORT
    assert service.render_all({"a.lua": [], "b.py": []}) == EMPTY_REPORT


def test_render_all__unreadable_file__is_skipped(make_service: ServiceFactory) -> None:
    service = make_service(before_lines=0, after_lines=0)

    text = service.render_all({"gone.py": [X_UNDEFINED], "a.lua": [X_UNDEFINED]})

    assert "gone.py" not in text
    assert text == "\nFile: a.lua\n\nl3  [Error: x undefined]"


def test_render_all__only_unreadable_files__returns_sentinel(make_service: ServiceFactory) -> None:
    assert make_service().render_all({"gone.py": [X_UNDEFINED]}) == EMPTY_REPORT


def test_render_all__unreadable_lines__drop_only_that_diagnostic(
    source: InMemorySourceAccessor,
) -> None:
    class FlakyAccessor(InMemorySourceAccessor):
        def read_lines(self, filename: str, start_line: int, end_line: int) -> list[SourceLine]:
            if start_line <= 1 <= end_line:
                raise SourceUnavailableError(filename, "buffer closed")
            return super().read_lines(filename, start_line, end_line)

    service = DiagnosticReportService(
        source=FlakyAccessor(files=source.files),
        config=ReportConfig(before_lines=0, after_lines=0),
    )

    text = service.render_one_file("a.lua", [X_UNDEFINED, UNUSED_Y])

    assert text == "\nFile: a.lua\n\nl3  [Error: x undefined]"


def test_render_one_file__reads_each_file_once(source: InMemorySourceAccessor) -> None:
    class CountingAccessor(InMemorySourceAccessor):
        reads: list[tuple[int, int]] = Field(default_factory=list)

        def read_lines(self, filename: str, start_line: int, end_line: int) -> list[SourceLine]:
            self.reads.append((start_line, end_line))
            return super().read_lines(filename, start_line, end_line)

    accessor = CountingAccessor(files=source.files)
    service = DiagnosticReportService(
        source=accessor, config=ReportConfig(before_lines=1, after_lines=1)
    )
    diagnostics = [
        Diagnostic.at(DiagnosticSeverity.ERROR, "first", 1),
        Diagnostic.at(DiagnosticSeverity.WARNING, "second", 5),
        Diagnostic.at(DiagnosticSeverity.INFO, "third", 8),
    ]

    text = service.render_one_file("b.py", diagnostics)

    assert accessor.reads == [(0, 9)]
    assert text.splitlines()[-2:] == ["line 8  [Info: third]", "line 9"]


def test_render_one_file__clamped_range_is_used_everywhere(make_service: ServiceFactory) -> None:
    inverted = Diagnostic.at(DiagnosticSeverity.INFO, "inverted", 3, 1)
    service = make_service(before_lines=0, after_lines=0)

    assert service.render_one_file("a.lua", [inverted]) == "\nFile: a.lua\n\nl4  [Info: inverted]"


def test_render_one_file__coerced_backwards_range__is_rendered(make_service: ServiceFactory) -> None:
    backwards = Diagnostic(
        severity=1, message="backwards", range={"start_line": 4.0, "end_line": 1.0}
    )
    service = make_service(before_lines=0, after_lines=0)

    assert service.render_one_file("b.py", [backwards]) == (
        "\nFile: b.py\n\nline 4  [Error: backwards]"
    )


def test_render_one_file__long_lines_truncated(make_service: ServiceFactory) -> None:
    service = make_service(before_lines=0, after_lines=0, max_line_length=10)
    service.source.files["long.py"] = ["z" * 50]

    text = service.render_one_file("long.py", [Diagnostic.at(2, "wide", 0)])

    assert text.splitlines()[-1] == "zzzzzzz...  [Warning: wide]"


def test_build_report__length_mismatch_propagates(
    make_service: ServiceFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    import ai_diagnostics.services.diagnostic_report as module

    def broken_group(diagnostics, contexts, filenames):
        raise LengthMismatchError("broken caller")

    monkeypatch.setattr(module, "group_by_file", broken_group)

    with pytest.raises(LengthMismatchError):
        make_service().render_all({"a.lua": [X_UNDEFINED]})
