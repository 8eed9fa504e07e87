from pathlib import Path

import pytest

from ai_diagnostics.clients.source import (
    FileSourceAccessor,
    InMemorySourceAccessor,
    SourceLineAccessor,
    accessor_from_mapping,
)
from ai_diagnostics.errors import SourceUnavailableError
from ai_diagnostics.models.context import SourceLine
from tests.consts import SAMPLE_PROJECT_ROOT


def test_file_source_accessor__reads_inclusive_range() -> None:
    accessor = FileSourceAccessor(project_root=SAMPLE_PROJECT_ROOT)

    assert accessor.line_count("pkg/util.py") == 6
    assert accessor.read_lines("pkg/util.py", 4, 5) == [
        SourceLine(number=4, content="def sub(a, b):"),
        SourceLine(number=5, content="    return a - b"),
    ]


def test_file_source_accessor__clips_range_to_file() -> None:
    accessor = FileSourceAccessor(project_root=SAMPLE_PROJECT_ROOT)

    lines = accessor.read_lines("pkg/util.py", 4, 50)

    assert [line.number for line in lines] == [4, 5]


def test_file_source_accessor__sees_edits_between_calls(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text("a\n", encoding="utf-8")
    accessor = FileSourceAccessor(project_root=tmp_path)

    assert accessor.line_count("mod.py") == 1
    target.write_text("a\nb\nc\n", encoding="utf-8")
    assert accessor.line_count("mod.py") == 3


def test_file_source_accessor__missing_file__raises(tmp_path: Path) -> None:
    accessor = FileSourceAccessor(project_root=tmp_path)

    with pytest.raises(SourceUnavailableError) as exc_info:
        accessor.line_count("nope.py")

    assert exc_info.value.filename == "nope.py"


def test_accessors_satisfy_protocol() -> None:
    assert isinstance(FileSourceAccessor(), SourceLineAccessor)
    assert isinstance(InMemorySourceAccessor(), SourceLineAccessor)


def test_in_memory_accessor__unknown_file__raises() -> None:
    with pytest.raises(SourceUnavailableError):
        InMemorySourceAccessor(files={"a.py": ["x"]}).read_lines("b.py", 0, 0)


def test_accessor_from_mapping__copies_line_sequences() -> None:
    lines = ("first", "second")
    accessor = accessor_from_mapping({"a.py": lines})

    accessor.files["a.py"].append("third")

    assert accessor.line_count("a.py") == 3
    assert lines == ("first", "second")
    assert accessor.read_lines("a.py", 1, 1) == [SourceLine(number=1, content="second")]
