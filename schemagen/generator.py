# File: schemagen/generator.py
"""
schemagen - Generation Run Driver
==================================

Connects the pieces of one generation run::

    1. Load tables and configuration from JSON/YAML (or accept models).
    2. Merge the configured imports over the built-in defaults.
    3. Prepare the output folder (optionally wiping it).
    4. Write the singleton files, then the singleton test files.
    5. For every table: write its file, then its test file.
    6. Return a ``GenerationReport`` with file records and errors.

Error handling strategy:
    - Assemblers raise ``GenerationError``; the driver records every one of
      them in the report and logs it, nothing is swallowed.
    - By default the run stops at the first failure.  With
      ``collect_errors`` it carries on with the next file and the report
      lists every failure.
    - A cancellation event is checked before each singleton step and each
      table, and stops the run cleanly.
    - A failed file is never written, so files on disk are always complete.
    - An output folder that cannot be created or wiped ends the run with a
      ``FileWriteError`` under either policy.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import yaml

from schemagen.errors import FileWriteError, GenerationError, GenerationErrors
from schemagen.importers import default_registry, merge_registries
from schemagen.models import GenerationConfig, ImportRegistry, Schema, Table
from schemagen.output import (
    FileRecord,
    generate_output,
    generate_singleton_output,
    generate_singleton_test_output,
    generate_test_output,
)
from schemagen.templates import TemplateBundle, TemplateData
from schemagen.utils import Timer, clean_directory, ensure_directory

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Outcome of ``ModelGenerator.run()``."""

    success: bool = False
    cancelled: bool = False
    output_directory: str = ""

    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_elapsed_seconds: float = 0.0

    files: List[FileRecord] = field(default_factory=list)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    errors: List[GenerationError] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)

    def add_files(self, records: Sequence[FileRecord]) -> None:
        for record in records:
            self.files.append(record)
            self.total_files += 1
            self.total_bytes += record.size_bytes
            self.total_lines += record.line_count

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        if self.cancelled:
            status: str = "CANCELLED"
        else:
            status = "SUCCESS" if self.success else "FAILED"
        lines.append(f"{'='*60}")
        lines.append("  schemagen - Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append(f"{'─'*60}")
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Generation Errors ({len(self.errors)}):")
            for err in self.errors:
                lines.append(f"    ✗ {err}")

        if self.skipped_tables:
            lines.append(f"{'─'*60}")
            lines.append(f"  Skipped Join Tables ({len(self.skipped_tables)}):")
            for tbl in self.skipped_tables:
                lines.append(f"    ⊘ {tbl}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Input loaders
# ---------------------------------------------------------------------------


def _load_mapping(path: Path) -> Dict[str, Any]:
    """
    Load a JSON or YAML file that must hold a mapping.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or isn't a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Input path is not a file: {path}")

    text: str = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Invalid input file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    return data


def load_tables_file(path: Path) -> List[Table]:
    """Load the table descriptors of a run from a ``tables:`` document."""
    raw: Dict[str, Any] = _load_mapping(path)
    if "tables" not in raw:
        raise ValueError(f"No 'tables' key in {path}.")
    try:
        schema: Schema = Schema.model_validate({"tables": raw["tables"]})
    except Exception as exc:
        raise ValueError(f"Table validation failed for {path}: {exc}") from exc

    logger.info("Loaded %d table(s) from %s.", len(schema.tables), path)
    return schema.tables


def load_config_file(
    path: Path,
    overrides: Optional[Dict[str, Any]] = None,
) -> GenerationConfig:
    """Load a ``GenerationConfig``, applying *overrides* on top of the file."""
    raw: Dict[str, Any] = _load_mapping(path)
    if overrides:
        raw.update(overrides)
    try:
        config: GenerationConfig = GenerationConfig.model_validate(raw)
    except Exception as exc:
        raise ValueError(f"Config validation failed for {path}: {exc}") from exc
    return config


def resolve_registry(config: GenerationConfig) -> ImportRegistry:
    """Built-in import defaults, with the config's ``imports`` merged over them."""
    registry: ImportRegistry = default_registry()
    if config.imports is not None:
        registry = merge_registries(registry, config.imports)
    return registry


# ---------------------------------------------------------------------------
# ModelGenerator - run driver
# ---------------------------------------------------------------------------


class ModelGenerator:
    """
    Drives one or more generation runs.

    Usage::

        generator = ModelGenerator(config, TemplateBundle.from_directory(root))
        report = generator.run(tables)
        print(report.summary())

    Files are assembled one after the other, each in its own buffer.
    """

    def __init__(
        self,
        config: GenerationConfig,
        bundle: TemplateBundle,
        *,
        registry: Optional[ImportRegistry] = None,
    ) -> None:
        self._config: GenerationConfig = config
        self._bundle: TemplateBundle = bundle
        self._registry: ImportRegistry = (
            registry if registry is not None else resolve_registry(config)
        )

        logger.debug(
            "ModelGenerator initialised: pkg=%s, output=%s, collect_errors=%s.",
            config.pkg_name,
            config.output,
            config.collect_errors,
        )

    @property
    def registry(self) -> ImportRegistry:
        return self._registry

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def run(
        self,
        tables: Sequence[Table],
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationReport:
        """Generate every singleton and per-table file."""
        report: GenerationReport = GenerationReport()
        report.output_directory = str(self._config.output.resolve())
        run_start: float = time.perf_counter()

        try:
            self._step_prepare_output(report)
            self._step_singletons(tables, report, cancel_event)
            if self._should_continue(report, cancel_event):
                self._step_tables(tables, report, cancel_event)
        except _RunAborted:
            pass

        return self._finalise_report(report, time.perf_counter() - run_start)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_prepare_output(self, report: GenerationReport) -> None:
        out: Path = self._config.output
        ok: bool = True
        with Timer("prepare output") as t:
            try:
                if self._config.wipe:
                    logger.info("Wiping output directory: %s", out)
                    clean_directory(out)
                ensure_directory(out)
            except OSError as exc:
                err: FileWriteError = FileWriteError(
                    out, f"failed to prepare output folder {out}: {exc}"
                )
                err.__cause__ = exc
                logger.error("%s", err)
                report.errors.append(err)
                ok = False

        report.step_metrics.append(GenerationStepMetric(
            step_name="Prepare Output",
            success=ok,
            elapsed_seconds=t.elapsed,
            detail=str(out),
        ))
        # Nothing can be written without the folder, whatever the error policy
        if not ok:
            raise _RunAborted()

    def _step_singletons(
        self,
        tables: Sequence[Table],
        report: GenerationReport,
        cancel_event: Optional[threading.Event],
    ) -> None:
        data: TemplateData = self._template_data(None, tables)
        steps: List[tuple] = [
            ("Singleton Output", generate_singleton_output, self._bundle.singleton),
        ]
        if not self._config.no_tests:
            steps.append((
                "Singleton Test Output",
                generate_singleton_test_output,
                self._bundle.singleton_test,
            ))

        for step_name, func, templates in steps:
            if not self._should_continue(report, cancel_event):
                return
            with Timer(step_name) as t:
                ok: bool = self._attempt(
                    report,
                    lambda: func(self._config, self._registry, templates, data),
                )
            report.step_metrics.append(GenerationStepMetric(
                step_name=step_name,
                success=ok,
                elapsed_seconds=t.elapsed,
                detail=f"{len(templates)} template(s)",
            ))
            self._abort_if_needed(report, ok)

    def _step_tables(
        self,
        tables: Sequence[Table],
        report: GenerationReport,
        cancel_event: Optional[threading.Event],
    ) -> None:
        all_ok: bool = True
        with Timer("per-table output") as t:
            for table in tables:
                if not self._should_continue(report, cancel_event):
                    break
                if table.is_join_table:
                    report.skipped_tables.append(table.name)
                    continue

                data: TemplateData = self._template_data(table, tables)
                ok: bool = self._attempt(
                    report,
                    lambda: generate_output(
                        self._config, self._registry, self._bundle.templates, data
                    ),
                )
                if ok and self._writes_table_tests():
                    ok = self._attempt(
                        report,
                        lambda: generate_test_output(
                            self._config,
                            self._registry,
                            self._bundle.test_templates,
                            data,
                        ),
                    )
                report.total_tables_processed += 1
                all_ok = all_ok and ok
                if not ok and not self._config.collect_errors:
                    break

        report.step_metrics.append(GenerationStepMetric(
            step_name="Per-Table Output",
            success=all_ok,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_tables_processed} table(s)",
        ))
        logger.info(
            "Per-table output complete: %d table(s), %d skipped, in %.3fs.",
            report.total_tables_processed,
            len(report.skipped_tables),
            t.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _template_data(
        self, table: Optional[Table], tables: Sequence[Table]
    ) -> TemplateData:
        return TemplateData(
            pkg_name=self._config.pkg_name,
            table=table,
            tables=tuple(tables),
            extras=self._config.extras,
        )

    def _writes_table_tests(self) -> bool:
        # No test templates, no header-only test files
        return not self._config.no_tests and len(self._bundle.test_templates) > 0

    def _attempt(
        self,
        report: GenerationReport,
        action: Callable[[], Any],
    ) -> bool:
        """Run one output call, recording its files or its error."""
        try:
            result: Any = action()
        except GenerationErrors as exc:
            report.add_files(exc.records)
            report.errors.extend(exc.errors)
            return False
        except GenerationError as exc:
            logger.error("%s", exc)
            report.errors.append(exc)
            return False

        if result is None:
            return True
        if isinstance(result, FileRecord):
            report.add_files([result])
        else:
            report.add_files(result)
        return True

    def _abort_if_needed(self, report: GenerationReport, ok: bool) -> None:
        if not ok and not self._config.collect_errors:
            raise _RunAborted()

    @staticmethod
    def _should_continue(
        report: GenerationReport,
        cancel_event: Optional[threading.Event],
    ) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            if not report.cancelled:
                logger.warning("Generation cancelled.")
            report.cancelled = True
            return False
        return True

    def _finalise_report(
        self,
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        """Set final status and timing on the report."""
        report.total_elapsed_seconds = total_elapsed
        report.success = not report.errors and not report.cancelled

        if report.success:
            logger.info(
                "Generation complete: %d file(s), %d bytes, %.3fs.",
                report.total_files,
                report.total_bytes,
                total_elapsed,
            )
        else:
            logger.error(
                "Generation finished with %d error(s) in %.3fs.",
                len(report.errors),
                total_elapsed,
            )
        return report


class _RunAborted(Exception):
    """Internal signal: stop the run after a recorded failure."""


__all__: List[str] = [
    "GenerationReport",
    "GenerationStepMetric",
    "ModelGenerator",
    "load_config_file",
    "load_tables_file",
    "resolve_registry",
]
