# File: schemagen/importers.py
"""
schemagen - Import Set Operations
==================================
Merging and rendering of ``ImportSet`` values.

Every function here is pure: inputs are never mutated, a new ``ImportSet``
is returned each time.  This keeps the registry sets safe to share across
all the files of a run.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from schemagen.models import ImportRegistry, ImportSet

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.importers")


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def merge_import_sets(*sets: ImportSet) -> ImportSet:
    """
    Union of several import sets, tier by tier.

    Duplicates collapse to a single entry through ``ImportSet`` validation.
    """
    standard: List[str] = []
    third_party: List[str] = []
    for imps in sets:
        standard.extend(imps.standard)
        third_party.extend(imps.third_party)
    return ImportSet(standard=standard, third_party=third_party)


def add_type_imports(
    base: ImportSet,
    based_on_type: Mapping[str, ImportSet],
    column_types: Iterable[str],
) -> ImportSet:
    """
    Widen *base* with the imports registered for each column type.

    Each distinct type is looked up once, however many columns share it.
    Types without a registered rule contribute nothing.
    """
    extras: List[ImportSet] = []
    seen: set = set()
    for col_type in column_types:
        if col_type in seen:
            continue
        seen.add(col_type)
        rule: Optional[ImportSet] = based_on_type.get(col_type)
        if rule is not None:
            extras.append(rule)

    merged: ImportSet = merge_import_sets(base, *extras)
    logger.debug(
        "Type-based imports: %d distinct type(s), %d rule(s) applied, %d import(s).",
        len(seen),
        len(extras),
        len(merged),
    )
    return merged


def _merge_named(
    base: Mapping[str, ImportSet],
    override: Mapping[str, ImportSet],
) -> Dict[str, ImportSet]:
    result: Dict[str, ImportSet] = dict(base)
    for name, imps in override.items():
        if name in result:
            result[name] = merge_import_sets(result[name], imps)
        else:
            result[name] = imps
    return result


def merge_registries(base: ImportRegistry, override: ImportRegistry) -> ImportRegistry:
    """
    Merge a user-supplied registry over *base*.

    Default sets are unioned and the keyed maps are merged key by key, so a
    config file only has to list what it adds.
    """
    return ImportRegistry(
        all=merge_import_sets(base.all, override.all),
        test=merge_import_sets(base.test, override.test),
        singleton=_merge_named(base.singleton, override.singleton),
        test_singleton=_merge_named(base.test_singleton, override.test_singleton),
        based_on_type=_merge_named(base.based_on_type, override.based_on_type),
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_import_line(entry: str) -> str:
    """Render one import entry as an import statement."""
    stripped: str = entry.strip()
    if stripped.startswith(("import ", "from ")):
        return stripped
    return f"import {stripped}"


def format_imports(imps: ImportSet) -> str:
    """
    Render an import set as source text.

    The standard tier comes first, then a blank line, then the third-party
    tier.  An empty set renders to an empty string.
    """
    blocks: List[str] = []
    if imps.standard:
        blocks.append("\n".join(format_import_line(e) for e in imps.standard))
    if imps.third_party:
        blocks.append("\n".join(format_import_line(e) for e in imps.third_party))
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Built-in defaults
# ---------------------------------------------------------------------------

# Semantic column type -> imports its Python annotation needs
_TYPE_IMPORTS: Dict[str, List[str]] = {
    "date": ["from datetime import date"],
    "datetime": ["from datetime import datetime"],
    "time": ["from datetime import time"],
    "timedelta": ["from datetime import timedelta"],
    "decimal": ["from decimal import Decimal"],
    "uuid": ["from uuid import UUID"],
    "json": ["from typing import Any, Dict"],
}


def default_registry() -> ImportRegistry:
    """Imports used by the stock SQLAlchemy model and pytest templates."""
    return ImportRegistry(
        all=ImportSet(
            standard=["from __future__ import annotations", "from typing import Optional"],
            third_party=[
                "from sqlalchemy.orm import Mapped, mapped_column",
            ],
        ),
        test=ImportSet(
            standard=["from __future__ import annotations"],
            third_party=["pytest"],
        ),
        singleton={
            "base": ImportSet(
                standard=["from __future__ import annotations"],
                third_party=["from sqlalchemy.orm import DeclarativeBase"],
            ),
        },
        test_singleton={
            "conftest": ImportSet(
                standard=["from __future__ import annotations"],
                third_party=["pytest"],
            ),
        },
        based_on_type={
            col_type: ImportSet(standard=entries)
            for col_type, entries in _TYPE_IMPORTS.items()
        },
    )


__all__: List[str] = [
    "add_type_imports",
    "default_registry",
    "format_import_line",
    "format_imports",
    "merge_import_sets",
    "merge_registries",
]
