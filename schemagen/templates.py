# File: schemagen/templates.py
"""
schemagen - Template Sets & Execution
======================================
Loads Jinja2 template sets and runs one named template at a time into an
output buffer.

**Fault isolation:** ``execute_template`` is the boundary between template
code and the generator.  Whatever a template raises while rendering
(undefined data, a bad filter, ``1 // 0`` in an expression) comes out of it
as a ``TemplateExecutionError`` naming the template, with the original
exception chained.  The caller decides what to do with the file; the run
itself is never brought down by a template.

Template sets are read-only once loaded and are shared by every file of a
run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, TextIO

from jinja2 import (
    BaseLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
)

from schemagen.errors import TemplateExecutionError
from schemagen.models import Table
from schemagen.utils import (
    to_camel_case,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TEMPLATE_EXTENSION: str = ".tmpl"

# Sub-directories of a template root, one per template set
_BUNDLE_LAYOUT: Dict[str, str] = {
    "templates": "templates",
    "singleton": "templates/singleton",
    "test_templates": "templates_test",
    "singleton_test": "templates_test/singleton",
}

_FILTERS: Dict[str, Any] = {
    "snake": to_snake_case,
    "pascal": to_pascal_case,
    "camel": to_camel_case,
    "plural": to_plural,
    "singular": to_singular,
}


def build_environment(loader: BaseLoader) -> Environment:
    """
    Create the Jinja2 environment shared by a template set.

    Autoescaping is off: the output is Python source, not HTML.
    """
    env: Environment = Environment(
        loader=loader,
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters.update(_FILTERS)
    return env


# ---------------------------------------------------------------------------
# Template data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateData:
    """Data context handed to every template."""

    pkg_name: str
    table: Optional[Table] = None
    tables: Sequence[Table] = ()
    extras: Mapping[str, Any] = field(default_factory=dict)

    def to_context(self) -> Dict[str, Any]:
        context: Dict[str, Any] = dict(self.extras)
        context.update(
            pkg_name=self.pkg_name,
            table=self.table,
            tables=list(self.tables),
        )
        return context


# ---------------------------------------------------------------------------
# Template sets
# ---------------------------------------------------------------------------


class TemplateSet:
    """
    An ordered, named collection of templates.

    Names are sorted, so a numeric ``NN_`` prefix on the file name decides
    execution order.
    """

    def __init__(self, env: Environment, names: Sequence[str]) -> None:
        self._env: Environment = env
        self._names: List[str] = sorted(names)

    @classmethod
    def from_directory(cls, directory: Path) -> "TemplateSet":
        """
        Load every ``*.tmpl`` file directly inside *directory*.

        A missing directory yields an empty set.
        """
        if not directory.is_dir():
            logger.debug("No template directory at %s.", directory)
            return cls.empty()

        names: List[str] = [
            p.name
            for p in directory.iterdir()
            if p.is_file() and p.suffix == TEMPLATE_EXTENSION
        ]
        env: Environment = build_environment(FileSystemLoader(str(directory)))
        logger.info("Loaded %d template(s) from %s.", len(names), directory)
        return cls(env, names)

    @classmethod
    def from_mapping(cls, sources: Mapping[str, str]) -> "TemplateSet":
        """Build a set from in-memory ``name -> source`` pairs."""
        env: Environment = build_environment(DictLoader(dict(sources)))
        return cls(env, list(sources))

    @classmethod
    def empty(cls) -> "TemplateSet":
        return cls.from_mapping({})

    def templates(self) -> List[str]:
        """Template names in execution order."""
        return list(self._names)

    def render_into(self, out: TextIO, name: str, context: Mapping[str, Any]) -> None:
        """Stream template *name* into *out*, chunk by chunk."""
        template = self._env.get_template(name)
        for chunk in template.generate(context):
            out.write(chunk)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"<TemplateSet {len(self._names)} template(s)>"


@dataclass(frozen=True)
class TemplateBundle:
    """The four template sets used by one generation run."""

    templates: TemplateSet
    singleton: TemplateSet
    test_templates: TemplateSet
    singleton_test: TemplateSet

    @classmethod
    def from_directory(cls, root: Path) -> "TemplateBundle":
        """
        Load a bundle laid out as::

            root/templates/*.tmpl
            root/templates/singleton/*.tmpl
            root/templates_test/*.tmpl
            root/templates_test/singleton/*.tmpl
        """
        if not root.is_dir():
            raise FileNotFoundError(f"Template directory not found: {root}")

        sets: Dict[str, TemplateSet] = {
            attr: TemplateSet.from_directory(root / rel)
            for attr, rel in _BUNDLE_LAYOUT.items()
        }
        return cls(**sets)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute_template(
    out: TextIO,
    templates: TemplateSet,
    name: str,
    data: TemplateData,
) -> None:
    """
    Render template *name* into *out*.

    Raises:
        TemplateExecutionError: the template failed, for whatever reason.
            ``out`` may hold partial output and must be discarded.
    """
    try:
        templates.render_into(out, name, data.to_context())
    except TemplateError as exc:
        raise TemplateExecutionError(
            name, f"failed to execute template: {name}: {exc}"
        ) from exc
    except Exception as exc:
        raise TemplateExecutionError(
            name,
            f"failed to execute template: {name}\n"
            f"fault: {type(exc).__name__}: {exc}",
        ) from exc


__all__: List[str] = [
    "TEMPLATE_EXTENSION",
    "TemplateBundle",
    "TemplateData",
    "TemplateSet",
    "build_environment",
    "execute_template",
]
