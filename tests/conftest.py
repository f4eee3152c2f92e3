"""
tests/conftest.py
Shared fixtures for the schemagen test suite.

Real file I/O is performed inside temporary directories managed by pytest's
tmp_path fixture.  Template sets are built in memory unless a test needs a
template root on disk.
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Any, Dict, List

import pytest
import yaml

from schemagen.models import Column, GenerationConfig, ImportRegistry, ImportSet, Table
from schemagen.templates import TemplateData, TemplateSet


# ---------------------------------------------------------------------------
# Table fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def users_table() -> Table:
    """The reference table: an int id and a string email."""
    return Table(
        name="users",
        columns=[
            Column(name="id", type="int"),
            Column(name="email", type="string"),
        ],
    )


@pytest.fixture()
def posts_table() -> Table:
    return Table(
        name="posts",
        columns=[
            Column(name="id", type="int"),
            Column(name="title", type="string"),
            Column(name="body", type="string"),
            Column(name="created_at", type="datetime"),
            Column(name="updated_at", type="datetime"),
        ],
    )


@pytest.fixture()
def join_table() -> Table:
    return Table(
        name="post_tags",
        columns=[
            Column(name="post_id", type="int"),
            Column(name="tag_id", type="int"),
        ],
        is_join_table=True,
    )


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def out_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "models"
    path.mkdir()
    return path


@pytest.fixture()
def config(out_dir: pathlib.Path) -> GenerationConfig:
    return GenerationConfig(pkg_name="models", output=out_dir)


@pytest.fixture()
def string_rule_registry() -> ImportRegistry:
    """Empty defaults, one type rule: string columns need ``re``."""
    return ImportRegistry(based_on_type={"string": ImportSet(standard=["re"])})


@pytest.fixture()
def model_templates() -> TemplateSet:
    return TemplateSet.from_mapping({
        "00_header.tmpl": "# {{ table.name }} model\n",
        "10_class.tmpl": textwrap.dedent("""\
            class {{ table.name | singular | pascal }}:
                __tablename__ = "{{ table.name }}"
            {% for col in table.columns %}
                {{ col.name }}: Mapped[{{ col.type }}]
            {% endfor %}
            """),
    })


@pytest.fixture()
def make_data(config: GenerationConfig):
    """Factory for template data bound to the fixture config."""

    def _make(table: Table = None, tables: List[Table] = (), **extras: Any) -> TemplateData:
        return TemplateData(
            pkg_name=config.pkg_name,
            table=table,
            tables=tuple(tables),
            extras=extras,
        )

    return _make


# ---------------------------------------------------------------------------
# On-disk inputs
# ---------------------------------------------------------------------------


@pytest.fixture()
def template_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """A template root with every sub-directory populated."""
    root = tmp_path / "tmpl"
    files: Dict[str, str] = {
        "templates/00_model.tmpl": textwrap.dedent("""\
            class {{ table.name | singular | pascal }}(Base):
                __tablename__ = "{{ table.name }}"
            {% for col in table.columns %}
                {{ col.name }}: Mapped[{{ col.type }}] = mapped_column()
            {% endfor %}
            """),
        "templates/10_repr.tmpl": textwrap.dedent("""\
            def describe_{{ table.name | singular }}() -> str:
                return "{{ table.name }}"
            """),
        "templates/singleton/01_base.tmpl": textwrap.dedent("""\
            class Base(DeclarativeBase):
                pass
            """),
        "templates_test/00_model_test.tmpl": textwrap.dedent("""\
            def test_{{ table.name }}_table_name():
                assert "{{ table.name }}"
            """),
        "templates_test/singleton/conftest.tmpl": textwrap.dedent("""\
            @pytest.fixture()
            def table_names():
                return [{% for t in tables %}"{{ t.name }}", {% endfor %}]
            """),
        "templates/README.md": "not a template\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture()
def tables_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "tables.yaml"
    data: Dict[str, Any] = {
        "tables": [
            {
                "name": "users",
                "columns": [
                    {"name": "id", "type": "int"},
                    {"name": "email", "type": "string"},
                    {"name": "created_at", "type": "datetime"},
                ],
            },
            {
                "name": "user_roles",
                "columns": [
                    {"name": "user_id", "type": "int"},
                    {"name": "role_id", "type": "int"},
                ],
                "is_join_table": True,
            },
        ]
    }
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False)
    return path
