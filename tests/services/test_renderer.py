import pytest

from ai_diagnostics.config import ReportConfig
from ai_diagnostics.models.context import MergedBlock, RenderLine
from ai_diagnostics.models.diagnostic import Diagnostic
from ai_diagnostics.services.renderer import (
    RendererService,
    format_annotation,
    sanitize_filename,
    truncate,
)


@pytest.mark.parametrize("max_length", [10, 11, 20, 120])
@pytest.mark.parametrize("text", ["", "short", "x" * 10, "y" * 11, "a fairly long line " * 10])
def test_truncate__bounded_and_idempotent(text: str, max_length: int) -> None:
    once = truncate(text, max_length)

    assert len(once) <= max_length
    assert truncate(once, max_length) == once


def test_truncate__keeps_prefix_and_appends_ellipsis() -> None:
    assert truncate("abcdefghijklmnop", 10) == "abcdefg..."
    assert truncate("abcdefghij", 10) == "abcdefghij"
    assert truncate("abcdefghijklmnop", None) == "abcdefghijklmnop"


def test_sanitize_filename__strips_line_breaks() -> None:
    assert sanitize_filename("evil\r\nname.py\n") == "evilname.py"


@pytest.mark.parametrize(
    ("diagnostic", "expected"),
    [
        (Diagnostic.at(2, "  first line\r\n\nsecond line  \n", 0), "[Warning: first line second line]"),
        (Diagnostic.at(3, "note", 0), "[Info: note]"),
        (Diagnostic.at(7, "odd", 0), "[Unknown: odd]"),
    ],
)
def test_format_annotation(diagnostic: Diagnostic, expected: str) -> None:
    assert format_annotation(diagnostic) == expected


def _block(*lines: RenderLine) -> MergedBlock:
    return MergedBlock(start_line=lines[0].number, end_line=lines[-1].number, lines=list(lines))


def test_render__layout_with_blank_line_between_blocks() -> None:
    renderer = RendererService(config=ReportConfig())
    blocks = [
        _block(RenderLine(number=0, content="a"), RenderLine(number=1, content="b")),
        _block(RenderLine(number=5, content="f")),
    ]

    assert renderer.render("x.py", blocks) == "\nFile: x.py\n\na\nb\n\nf"


def test_render__line_numbers_are_one_based() -> None:
    renderer = RendererService(config=ReportConfig(show_line_numbers=True))

    text = renderer.render("x.py", [_block(RenderLine(number=0, content="a"))])

    assert text.splitlines()[-1] == "   1: a"


def test_render_line__annotations_follow_truncated_content() -> None:
    renderer = RendererService(config=ReportConfig(max_line_length=10))
    line = RenderLine(
        number=3,
        content="0123456789abcdef",
        diagnostics=[Diagnostic.at(1, "bad\nthing", 3), Diagnostic.at(4, " tip ", 3)],
    )

    assert renderer.render_line(line) == "0123456...  [Error: bad thing]  [Hint: tip]"


def test_render_header__custom_format_and_sanitizing() -> None:
    sanitized = RendererService(config=ReportConfig(file_header_format="== %s =="))
    raw = RendererService(config=ReportConfig(sanitize_filenames=False))

    assert sanitized.render_header("a\nb.py") == "== ab.py =="
    assert raw.render_header("a\nb.py") == "File: a\nb.py"
