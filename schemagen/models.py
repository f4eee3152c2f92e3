# File: schemagen/models.py
"""
schemagen - Core Data Models
=============================
Pydantic V2 models describing the inputs of the output stage: table
descriptors, import sets and the import registry, and the generation
configuration.  These models are the single source of truth shared by the
assemblers, the run driver and the CLI.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.models")

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)

_FROM_IMPORT_RE: re.Pattern[str] = re.compile(r"^from\s+(\S+)\s+import\s+")
_PLAIN_IMPORT_RE: re.Pattern[str] = re.compile(r"^import\s+(\S+)")


def import_sort_key(entry: str) -> tuple:
    """
    Canonical ordering key for an import entry.

    ``__future__`` imports always sort first, then entries are ordered by the
    module they import from, then by their full text.
    """
    module: str = import_module_of(entry)
    return (module != "__future__", module.lower(), entry)


def import_module_of(entry: str) -> str:
    """Return the module an import entry refers to."""
    stripped: str = entry.strip()
    match = _FROM_IMPORT_RE.match(stripped)
    if match:
        return match.group(1)
    match = _PLAIN_IMPORT_RE.match(stripped)
    if match:
        return match.group(1).rstrip(",")
    return stripped.split()[0].rstrip(",") if stripped else ""


def canonical_import(entry: str) -> str:
    """
    Single spelling of an import entry.

    Whitespace is collapsed and ``import x`` is reduced to the bare ``x``,
    so ``"re"`` and ``"import re"`` compare equal.
    """
    text: str = " ".join(entry.split())
    if text.startswith("import "):
        return text[len("import "):]
    return text


def _normalise_entries(entries: List[str]) -> List[str]:
    cleaned = {canonical_import(e) for e in entries if e and e.strip()}
    return sorted(cleaned, key=import_sort_key)


# ---------------------------------------------------------------------------
# Import sets
# ---------------------------------------------------------------------------


class ImportSet(BaseModel):
    """
    Two-tier set of imports required by a generated file.

    Each entry is either a bare module name (``"re"``) or a complete import
    statement (``"from datetime import datetime"``).  Both tiers are kept
    unique and in canonical order on construction, so two sets with the same
    content always render identically.
    """

    model_config = _SHARED_CONFIG

    standard: List[str] = Field(
        default_factory=list, description="Standard-library imports."
    )
    third_party: List[str] = Field(
        default_factory=list, description="Third-party package imports."
    )

    @field_validator("standard", "third_party")
    @classmethod
    def _dedupe_and_sort(cls, v: List[str]) -> List[str]:
        return _normalise_entries(v)

    @property
    def is_empty(self) -> bool:
        return not self.standard and not self.third_party

    def __len__(self) -> int:
        return len(self.standard) + len(self.third_party)


class ImportRegistry(BaseModel):
    """
    Every import set known to a generation run.

    ``all`` and ``test`` apply to every per-table file, ``based_on_type``
    widens the per-table set for each semantic column type present, and
    ``singleton`` / ``test_singleton`` are looked up by the derived name of
    a singleton template.
    """

    model_config = _SHARED_CONFIG

    all: ImportSet = Field(default_factory=ImportSet)
    test: ImportSet = Field(default_factory=ImportSet)
    singleton: Dict[str, ImportSet] = Field(default_factory=dict)
    test_singleton: Dict[str, ImportSet] = Field(default_factory=dict)
    based_on_type: Dict[str, ImportSet] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Table descriptors
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """A single column of a table, as supplied by schema introspection."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(
        ..., min_length=1, description="Semantic type, e.g. 'int' or 'datetime'."
    )
    db_type: Optional[str] = Field(
        default=None, description="Raw database type, e.g. 'varchar(255)'."
    )
    nullable: bool = Field(default=False)

    def __repr__(self) -> str:
        return f"<Column {self.name}: {self.type}>"


class Table(BaseModel):
    """
    One generatable unit.

    Join tables carry no business logic of their own and are never emitted
    by the assemblers.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Table name.")
    columns: List[Column] = Field(default_factory=list)
    is_join_table: bool = Field(default=False)

    @field_validator("columns")
    @classmethod
    def _unique_column_names(cls, v: List[Column]) -> List[Column]:
        names: List[str] = [c.name for c in v]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate column names detected: {dupes}")
        return v

    def column_types(self) -> List[str]:
        """Semantic types of the columns, in column order."""
        return [c.type for c in self.columns]

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} columns)>"


class Schema(BaseModel):
    """The set of tables handed to a generation run."""

    model_config = _SHARED_CONFIG

    tables: List[Table] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_table_names(self) -> "Schema":
        seen: Dict[str, int] = {}
        for tbl in self.tables:
            seen[tbl.name] = seen.get(tbl.name, 0) + 1
        dupes: List[str] = sorted(n for n, c in seen.items() if c > 1)
        if dupes:
            raise ValueError(f"Duplicate table names detected: {dupes}")
        return self


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """Settings for one generation run."""

    model_config = _SHARED_CONFIG

    pkg_name: str = Field(
        default="models", min_length=1, description="Target package name."
    )
    output: Path = Field(
        default=Path("models"), description="Folder the files are written to."
    )
    suffix: str = Field(default=".py", description="Suffix of generated files.")
    test_suffix: str = Field(
        default="_test.py", description="Suffix of generated per-table test files."
    )
    no_tests: bool = Field(default=False, description="Skip test templates.")
    wipe: bool = Field(
        default=False, description="Empty the output folder before generating."
    )
    collect_errors: bool = Field(
        default=False,
        description=(
            "Keep going after a failed file and report every failure, "
            "instead of stopping at the first one."
        ),
    )
    line_length: int = Field(
        default=88, ge=20, le=400, description="Line length for the formatter."
    )
    imports: Optional[ImportRegistry] = Field(
        default=None,
        description="Import overrides merged over the built-in defaults.",
    )
    extras: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form data exposed to templates."
    )

    @field_validator("pkg_name")
    @classmethod
    def _valid_package_name(cls, v: str) -> str:
        if not all(part.isidentifier() for part in v.split(".")):
            raise ValueError(f"Package name is not a valid dotted identifier: {v!r}")
        return v

    @field_validator("suffix", "test_suffix")
    @classmethod
    def _non_empty_suffix(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("File suffix cannot be empty.")
        return v


__all__: List[str] = [
    "Column",
    "GenerationConfig",
    "ImportRegistry",
    "ImportSet",
    "Schema",
    "Table",
    "canonical_import",
    "import_module_of",
    "import_sort_key",
]
