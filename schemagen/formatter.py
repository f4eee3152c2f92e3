# File: schemagen/formatter.py
"""
schemagen - Syntax Validation & Diagnostics
============================================
Runs an assembled buffer through ``black``, then compiles black's output
with ``ast.parse``.  black's parser is more permissive than CPython's
(``1 = x`` formats fine), so both have to accept the source before it is
written.  Valid source comes back in canonical form and that is what gets
written.  Invalid source raises a ``FormatValidationError`` whose message
points at the offending line with a numbered excerpt around it::

    failed to format template: cannot parse: 42:11
        def broken(:
    ...

      37 ...
      ...
    >>>> def broken(:
      ...
      47 ...
"""

from __future__ import annotations

import ast
import logging
import re
from typing import List, Optional

import black

from schemagen.errors import FormatValidationError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.formatter")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# black reports parse failures as "<line>:<column>", followed by ": <text>"
# in older releases and by a newline in newer ones
_SYNTAX_ERROR_RE: re.Pattern[str] = re.compile(r"(\d+):\d+(?::\s|\b)")

EXCERPT_RADIUS: int = 5
ERROR_LINE_MARKER: str = ">>>> "


def extract_error_line(message: str) -> Optional[int]:
    """Line number embedded in a formatter message, or None."""
    match = _SYNTAX_ERROR_RE.search(message)
    if match is None:
        return None
    return int(match.group(1))


def _source_lines(source: str) -> List[str]:
    # Only "\n" ends a line, as for black and the tokenizer
    lines: List[str] = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def build_excerpt(source: str, line_number: int, radius: int = EXCERPT_RADIUS) -> str:
    """
    Numbered excerpt of *source* around *line_number* (1-based).

    Lines more than *radius* away are left out.  The failing line is marked
    with ``>>>> ``, the others carry their number right-aligned in 4 columns.
    """
    parts: List[str] = []
    for lineno, text in enumerate(_source_lines(source), start=1):
        if abs(lineno - line_number) > radius:
            continue
        if lineno == line_number:
            parts.append(f"{ERROR_LINE_MARKER}{text}\n")
        else:
            parts.append(f"{lineno:4d} {text}\n")
    return "".join(parts)


def format_source(source: str, line_length: int = black.DEFAULT_LINE_LENGTH) -> str:
    """
    Validate and canonically format Python *source*.

    Raises:
        FormatValidationError: *source* does not parse, or black's output
            is rejected by the Python compiler.
    """
    mode: black.Mode = black.Mode(line_length=line_length)
    try:
        formatted: str = black.format_str(source, mode=mode)
    except ValueError as exc:
        # black.InvalidInput is a ValueError
        native: str = str(exc)
        raise _diagnose(source, native, extract_error_line(native)) from exc

    try:
        ast.parse(formatted, filename="<generated>")
    except SyntaxError as exc:
        raise _diagnose(formatted, str(exc), exc.lineno) from exc
    except ValueError as exc:
        raise _diagnose(formatted, str(exc), None) from exc
    return formatted


def _diagnose(
    source: str, native: str, line_number: Optional[int]
) -> FormatValidationError:
    if line_number is None:
        logger.debug("Formatter error without a position: %s", native)
        return FormatValidationError(
            f"failed to format template: {native}", native_message=native
        )

    excerpt: str = build_excerpt(source, line_number)
    logger.debug("Formatter rejected line %d.", line_number)
    return FormatValidationError(
        f"failed to format template: {native}\n\n{excerpt}",
        native_message=native,
        line_number=line_number,
        excerpt=excerpt,
    )


__all__: List[str] = [
    "ERROR_LINE_MARKER",
    "EXCERPT_RADIUS",
    "build_excerpt",
    "extract_error_line",
    "format_source",
]
