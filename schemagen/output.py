# File: schemagen/output.py
"""
schemagen - File Assembly & Output
===================================
Builds each generated file and writes it to disk:

    disclaimer → package docstring → import block → template bodies
        → black → write

Two assemblers share that shape:

- ``execute_templates`` writes one file per table, running every template
  of the set into it, with imports widened by the table's column types.
- ``execute_singleton_templates`` writes one file per template, named after
  the template, with imports looked up by that name.

Every file is assembled in its own ``StringIO``, so assemblies never share
state.  A file is written only once its whole buffer has rendered and
passed the formatter; on any failure nothing is written and the error
propagates.
"""

from __future__ import annotations

import io
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from schemagen.errors import FileWriteError, GenerationError, GenerationErrors
from schemagen.formatter import format_source
from schemagen.importers import add_type_imports, format_imports
from schemagen.models import GenerationConfig, ImportRegistry, ImportSet, Table
from schemagen.templates import TemplateData, TemplateSet, execute_template
from schemagen.utils import count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.output")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NO_EDIT_DISCLAIMER: str = (
    "# Code generated by schemagen. DO NOT EDIT.\n"
    "# This file is meant to be re-generated in place and/or deleted at any time.\n"
    "\n"
)

_NUMBERED_PREFIX_RE: re.Pattern[str] = re.compile(r"^[0-9]+_")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written file."""

    path: Path
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=True)
class OutputSpec:
    """
    Everything one assembler call needs.

    ``import_set`` feeds the per-table assembler, ``import_named_set`` the
    singleton one.
    """

    config: GenerationConfig
    data: TemplateData
    templates: TemplateSet
    file_suffix: str
    import_set: ImportSet = field(default_factory=ImportSet)
    import_named_set: Dict[str, ImportSet] = field(default_factory=dict)
    based_on_type: Dict[str, ImportSet] = field(default_factory=dict)
    combine_imports_on_type: bool = False


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def generate_output(
    config: GenerationConfig,
    registry: ImportRegistry,
    templates: TemplateSet,
    data: TemplateData,
) -> Optional[FileRecord]:
    """Write ``<table><suffix>`` from the per-table templates."""
    return execute_templates(OutputSpec(
        config=config,
        data=data,
        templates=templates,
        file_suffix=config.suffix,
        import_set=registry.all,
        based_on_type=registry.based_on_type,
        combine_imports_on_type=True,
    ))


def generate_test_output(
    config: GenerationConfig,
    registry: ImportRegistry,
    templates: TemplateSet,
    data: TemplateData,
) -> Optional[FileRecord]:
    """Write ``<table><test_suffix>`` from the per-table test templates."""
    return execute_templates(OutputSpec(
        config=config,
        data=data,
        templates=templates,
        file_suffix=config.test_suffix,
        import_set=registry.test,
        combine_imports_on_type=False,
    ))


def generate_singleton_output(
    config: GenerationConfig,
    registry: ImportRegistry,
    templates: TemplateSet,
    data: TemplateData,
) -> List[FileRecord]:
    """Write one file per singleton template."""
    return execute_singleton_templates(OutputSpec(
        config=config,
        data=data,
        templates=templates,
        file_suffix=config.suffix,
        import_named_set=registry.singleton,
    ))


def generate_singleton_test_output(
    config: GenerationConfig,
    registry: ImportRegistry,
    templates: TemplateSet,
    data: TemplateData,
) -> List[FileRecord]:
    """Write one file per singleton test template."""
    return execute_singleton_templates(OutputSpec(
        config=config,
        data=data,
        templates=templates,
        file_suffix=config.suffix,
        import_named_set=registry.test_singleton,
    ))


# ---------------------------------------------------------------------------
# Assemblers
# ---------------------------------------------------------------------------


def _is_join_table(data: TemplateData) -> bool:
    return data.table is not None and data.table.is_join_table


def execute_templates(spec: OutputSpec) -> Optional[FileRecord]:
    """
    Assemble and write the file of ``spec.data.table``.

    Returns None without writing anything for join tables.
    """
    table: Optional[Table] = spec.data.table
    if table is None:
        raise ValueError("Per-table output needs a table in the template data.")
    if table.is_join_table:
        logger.debug("Skipping join table %s.", table.name)
        return None

    imps: ImportSet = spec.import_set
    if spec.combine_imports_on_type:
        imps = add_type_imports(imps, spec.based_on_type, table.column_types())

    out: io.StringIO = io.StringIO()
    write_file_disclaimer(out)
    write_package_name(out, spec.config.pkg_name)
    write_imports(out, imps)

    for tpl_name in spec.templates.templates():
        execute_template(out, spec.templates, tpl_name, spec.data)

    return write_file(
        spec.config.output,
        table.name + spec.file_suffix,
        out.getvalue(),
        line_length=spec.config.line_length,
    )


def execute_singleton_templates(spec: OutputSpec) -> List[FileRecord]:
    """
    Assemble and write one file per singleton template.

    With ``collect_errors`` off the first failure propagates immediately.
    With it on, every template is attempted and the failures are raised
    together as ``GenerationErrors`` once the loop is done.
    """
    if _is_join_table(spec.data):
        return []

    records: List[FileRecord] = []
    errors: List[GenerationError] = []

    for tpl_name in spec.templates.templates():
        try:
            records.append(_write_singleton(spec, tpl_name))
        except GenerationError as exc:
            if not spec.config.collect_errors:
                raise
            logger.error("%s", exc)
            errors.append(exc)

    if errors:
        raise GenerationErrors(errors, records)
    return records


def _write_singleton(spec: OutputSpec, tpl_name: str) -> FileRecord:
    name: str = derive_singleton_name(tpl_name)
    named: Optional[ImportSet] = spec.import_named_set.get(name)
    imps: ImportSet = named if named is not None else ImportSet()

    out: io.StringIO = io.StringIO()
    write_file_disclaimer(out)
    write_package_name(out, spec.config.pkg_name)
    write_imports(out, imps)

    execute_template(out, spec.templates, tpl_name, spec.data)

    return write_file(
        spec.config.output,
        name + spec.file_suffix,
        out.getvalue(),
        line_length=spec.config.line_length,
    )


def derive_singleton_name(template_name: str) -> str:
    """
    Output name of a singleton template.

    The extension is dropped, then a leading ``<digits>_`` ordering prefix:
    ``"01_helpers.tmpl"`` -> ``"helpers"``.
    """
    stem, _ext = os.path.splitext(template_name)
    return _NUMBERED_PREFIX_RE.sub("", stem, count=1)


# ---------------------------------------------------------------------------
# Header writers
# ---------------------------------------------------------------------------


def write_file_disclaimer(out: TextIO) -> None:
    """Write the banner, followed by a blank line."""
    out.write(NO_EDIT_DISCLAIMER)


def write_package_name(out: TextIO, pkg_name: str) -> None:
    """Declare the target package as the module docstring."""
    out.write(f'"""Package {pkg_name}."""\n\n')


def write_imports(out: TextIO, imps: ImportSet) -> None:
    """Write the import block, if there is one, followed by a blank line."""
    imp_str: str = format_imports(imps)
    if imp_str:
        out.write(f"{imp_str}\n\n")


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def write_file(
    out_folder: Path,
    file_name: str,
    source: str,
    *,
    line_length: int = 88,
) -> FileRecord:
    """
    Format *source* and write it to ``out_folder / file_name``.

    An existing file is replaced.  Nothing is written if formatting fails.

    Raises:
        FormatValidationError: *source* is not valid Python.
        FileWriteError: the write itself failed.
    """
    formatted: str = format_source(source, line_length=line_length)
    encoded: bytes = formatted.encode("utf-8")

    path: Path = out_folder / file_name
    try:
        path.write_bytes(encoded)
    except OSError as exc:
        raise FileWriteError(
            path, f"failed to write output file {path}: {exc}"
        ) from exc

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return FileRecord(
        path=path,
        size_bytes=len(encoded),
        line_count=count_lines(formatted),
        sha256=sha256_hex(formatted),
    )


__all__: List[str] = [
    "FileRecord",
    "NO_EDIT_DISCLAIMER",
    "OutputSpec",
    "derive_singleton_name",
    "execute_singleton_templates",
    "execute_templates",
    "generate_output",
    "generate_singleton_output",
    "generate_singleton_test_output",
    "generate_test_output",
    "write_file",
    "write_file_disclaimer",
    "write_imports",
    "write_package_name",
]
