# File: schemagen/__init__.py
"""
schemagen - Output Stage of a Schema-Driven Code Generator
============================================================

Turns table descriptors and Jinja2 template fragments into complete,
black-formatted Python modules on disk.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ModelGenerator │────▶│  output (files)  │
    │   (cli.py)   │     │ (generator.py) │     │   (output.py)    │
    └──────────────┘     └────────────────┘     └────────┬─────────┘
                                                         │
                          ┌──────────────┬───────────────┼──────────────┐
                          ▼              ▼               ▼              ▼
                    ┌───────────┐ ┌────────────┐ ┌─────────────┐ ┌───────────┐
                    │ importers │ │ templates  │ │  formatter  │ │  models   │
                    └───────────┘ └────────────┘ └─────────────┘ └───────────┘

Usage::

    from schemagen import GenerationConfig, ModelGenerator, TemplateBundle
    gen = ModelGenerator(config, TemplateBundle.from_directory(root))
    report = gen.run(tables)
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from schemagen.errors import (
    FileWriteError,
    FormatValidationError,
    GenerationError,
    GenerationErrors,
    TemplateExecutionError,
)
from schemagen.models import (
    Column,
    GenerationConfig,
    ImportRegistry,
    ImportSet,
    Schema,
    Table,
)
from schemagen.importers import (
    add_type_imports,
    default_registry,
    format_imports,
    merge_import_sets,
    merge_registries,
)
from schemagen.templates import (
    TemplateBundle,
    TemplateData,
    TemplateSet,
    execute_template,
)
from schemagen.formatter import build_excerpt, format_source
from schemagen.output import (
    FileRecord,
    derive_singleton_name,
    execute_singleton_templates,
    execute_templates,
)
from schemagen.generator import (
    GenerationReport,
    ModelGenerator,
    load_config_file,
    load_tables_file,
)

__all__: list[str] = [
    "__version__",
    "__license__",
    # Driver
    "ModelGenerator",
    "GenerationReport",
    "load_config_file",
    "load_tables_file",
    # Models
    "Column",
    "GenerationConfig",
    "ImportRegistry",
    "ImportSet",
    "Schema",
    "Table",
    # Imports
    "add_type_imports",
    "default_registry",
    "format_imports",
    "merge_import_sets",
    "merge_registries",
    # Templates
    "TemplateBundle",
    "TemplateData",
    "TemplateSet",
    "execute_template",
    # Output
    "FileRecord",
    "build_excerpt",
    "derive_singleton_name",
    "execute_singleton_templates",
    "execute_templates",
    "format_source",
    # Errors
    "FileWriteError",
    "FormatValidationError",
    "GenerationError",
    "GenerationErrors",
    "TemplateExecutionError",
]
