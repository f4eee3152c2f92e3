# File: schemagen/errors.py
"""
schemagen - Error Types
========================
Every failure of the output stage is raised as a ``GenerationError``
subclass.  None of them is retried: they point at a bad template, bad
input data or a bad output path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Sequence


class GenerationError(Exception):
    """Base class for output-stage failures."""


class TemplateExecutionError(GenerationError):
    """A template raised while rendering.  The original fault is ``__cause__``."""

    def __init__(self, template_name: str, message: str) -> None:
        super().__init__(message)
        self.template_name: str = template_name


class FormatValidationError(GenerationError):
    """
    The assembled buffer is not valid Python source.

    ``line_number`` and ``excerpt`` are empty when the formatter message
    carries no position.
    """

    def __init__(
        self,
        message: str,
        native_message: str,
        line_number: Optional[int] = None,
        excerpt: str = "",
    ) -> None:
        super().__init__(message)
        self.native_message: str = native_message
        self.line_number: Optional[int] = line_number
        self.excerpt: str = excerpt


class FileWriteError(GenerationError):
    """Writing a generated file failed.  The ``OSError`` is ``__cause__``."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(message)
        self.path: Path = path


class GenerationErrors(GenerationError):
    """
    Several failures collected by a run that keeps going after errors.

    ``records`` holds whatever the same call did write successfully.
    """

    def __init__(
        self,
        errors: Sequence[GenerationError],
        records: Sequence[Any] = (),
    ) -> None:
        self.errors: List[GenerationError] = list(errors)
        self.records: List[Any] = list(records)
        lines: List[str] = [f"{len(self.errors)} generation error(s):"]
        lines.extend(f"  - {err}" for err in self.errors)
        super().__init__("\n".join(lines))


__all__: List[str] = [
    "FileWriteError",
    "FormatValidationError",
    "GenerationError",
    "GenerationErrors",
    "TemplateExecutionError",
]
