"""
tests/test_formatter.py
Unit tests for schemagen.formatter.

Tests cover:
- Canonical formatting of valid source
- Line extraction from formatter messages
- Excerpt windowing and markers
- Diagnostics for invalid source, with and without a position
- Source black accepts but Python rejects
"""

from __future__ import annotations

import black
import pytest

from schemagen.errors import FormatValidationError
from schemagen.formatter import (
    build_excerpt,
    extract_error_line,
    format_source,
)


def _numbered_source(total: int, broken_at: int, broken: str = "def broken(:") -> str:
    lines = [f"value_{n} = {n}" for n in range(1, total + 1)]
    lines[broken_at - 1] = broken
    return "\n".join(lines) + "\n"


# ===========================================================================
# Valid source
# ===========================================================================


class TestFormatSource:
    def test_formats_canonically(self) -> None:
        assert format_source("x=1\ny = {'a':1}\n") == 'x = 1\ny = {"a": 1}\n'

    def test_already_formatted_is_unchanged(self) -> None:
        src = 'import re\n\nPATTERN = re.compile(r"\\d+")\n'
        assert format_source(src) == src

    def test_idempotent(self) -> None:
        once = format_source("def f( a,b ):\n  return a+b\n")
        assert format_source(once) == once

    def test_line_length_is_honoured(self) -> None:
        src = "result = some_function(argument_one, argument_two, argument_three)\n"
        assert format_source(src, line_length=120) == src
        assert format_source(src, line_length=40) != src


# ===========================================================================
# Excerpts
# ===========================================================================


class TestBuildExcerpt:
    def test_window_around_line_42(self) -> None:
        src = _numbered_source(80, 42)
        excerpt = build_excerpt(src, 42)
        lines = excerpt.splitlines()

        assert len(lines) == 11
        assert lines[0] == "  37 value_37 = 37"
        assert lines[-1] == "  47 value_47 = 47"
        assert lines[5] == ">>>> def broken(:"
        assert "value_36" not in excerpt
        assert "value_48" not in excerpt

    def test_only_failing_line_is_marked(self) -> None:
        excerpt = build_excerpt(_numbered_source(20, 10), 10)
        assert sum(1 for l in excerpt.splitlines() if l.startswith(">>>> ")) == 1

    def test_window_clipped_at_start(self) -> None:
        excerpt = build_excerpt(_numbered_source(20, 2), 2)
        lines = excerpt.splitlines()
        assert lines[0] == "   1 value_1 = 1"
        assert lines[1] == ">>>> def broken(:"
        assert lines[-1] == "   7 value_7 = 7"

    def test_window_clipped_at_end(self) -> None:
        excerpt = build_excerpt(_numbered_source(10, 10), 10)
        lines = excerpt.splitlines()
        assert lines[0] == "   5 value_5 = 5"
        assert lines[-1] == ">>>> def broken(:"

    def test_wide_line_numbers(self) -> None:
        excerpt = build_excerpt(_numbered_source(12000, 10000), 10000)
        assert "10001 value_10001 = 10001" in excerpt


# ===========================================================================
# Diagnostics
# ===========================================================================


class TestDiagnostics:
    @pytest.mark.parametrize(
        "message, line",
        [
            ("Cannot parse: 42:11: def broken(:", 42),
            ("Cannot parse for target version Python 3.12: 7:0: )", 7),
            ("cannot parse: 5:11\n    def broken(:\n ^\nParseError: bad input", 5),
            ("Cannot parse: 12:3", 12),
            ("something else entirely", None),
        ],
    )
    def test_extract_error_line(self, message: str, line) -> None:
        assert extract_error_line(message) == line

    def test_extract_from_installed_black(self) -> None:
        with pytest.raises(black.InvalidInput) as exc_info:
            black.format_str(_numbered_source(60, 42), mode=black.Mode())
        assert extract_error_line(str(exc_info.value)) == 42

    def test_invalid_source_raises_with_excerpt(self) -> None:
        src = _numbered_source(60, 42)
        with pytest.raises(FormatValidationError) as exc_info:
            format_source(src)

        err = exc_info.value
        assert err.line_number == 42
        assert ">>>> def broken(:" in err.excerpt
        assert "  37 value_37 = 37" in err.excerpt
        assert "  47 value_47 = 47" in err.excerpt
        assert "value_36" not in err.excerpt
        assert str(err).startswith("failed to format template: ")
        assert err.native_message in str(err)
        assert err.excerpt in str(err)
        assert isinstance(err.__cause__, black.InvalidInput)

    def test_error_without_position_has_no_excerpt(self, monkeypatch) -> None:
        def _boom(src, mode):
            raise black.InvalidInput("tokenizer exploded")

        monkeypatch.setattr(black, "format_str", _boom)
        with pytest.raises(FormatValidationError) as exc_info:
            format_source("x = 1\n")

        err = exc_info.value
        assert err.line_number is None
        assert err.excerpt == ""
        assert str(err) == "failed to format template: tokenizer exploded"


# ===========================================================================
# Compiler check
# ===========================================================================


class TestCompilerCheck:
    @pytest.mark.parametrize(
        "src, marked",
        [
            ("1 = x\n", ">>>> 1 = x"),
            ("f(x for x in y, 1)\n", ">>>> f("),
        ],
    )
    def test_rejected_by_python(self, src: str, marked: str) -> None:
        with pytest.raises(FormatValidationError) as exc_info:
            format_source(src)

        err = exc_info.value
        assert err.line_number == 1
        assert err.excerpt.startswith(marked)
        assert str(err).startswith("failed to format template: ")

    def test_compile_error_line_in_context(self) -> None:
        src = "a = 1\nb = 2\nc = 3\n1 = x\nd = 4\n"
        with pytest.raises(FormatValidationError) as exc_info:
            format_source(src)

        err = exc_info.value
        assert err.line_number == 4
        assert ">>>> 1 = x" in err.excerpt
        assert "   3 c = 3" in err.excerpt


# ===========================================================================
# Line counting
# ===========================================================================


class TestLineBreaks:
    # U+2028 inside a string literal is not a line break for Python
    SOURCE = 'x = "a\u2028b"\ny = 1\nz = 2\nw = 3\ndef broken(:\n'

    def test_only_newline_ends_a_line(self) -> None:
        excerpt = build_excerpt(self.SOURCE, 5)
        lines = excerpt.splitlines()
        assert ">>>> def broken(:\n" in excerpt
        assert "   4 w = 3\n" in excerpt
        assert excerpt.startswith('   1 x = "a\u2028b"\n')
        assert lines[-1] == ">>>> def broken(:"

    def test_separator_inside_string_keeps_numbering(self) -> None:
        with pytest.raises(FormatValidationError) as exc_info:
            format_source(self.SOURCE)

        err = exc_info.value
        assert err.line_number == 5
        assert ">>>> def broken(:\n" in err.excerpt
