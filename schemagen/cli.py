# File: schemagen/cli.py
"""
schemagen - Command-Line Interface
===================================

Usage examples::

    # Generate models/ from a table description and a template root
    python -m schemagen -s tables.yaml -t ./tmpl -o ./models

    # Config file with import overrides, keep going after failures
    python -m schemagen -s tables.yaml -t ./tmpl -c schemagen.yaml --collect-errors

Exit codes:
    0 - success
    2 - generation error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_GENERATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemagen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemagen",
        description=(
            "schemagen: assemble, validate and write generated Python "
            "modules from table descriptions and Jinja2 templates."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s tables.yaml -t ./tmpl -o ./models\n"
            "  %(prog)s -s tables.yaml -t ./tmpl -c schemagen.yaml --wipe\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"schemagen v{__version__}",
    )
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Table description file (JSON or YAML) with a 'tables' list.",
    )
    parser.add_argument(
        "-t", "--templates",
        type=str,
        required=True,
        metavar="DIR",
        help=(
            "Template root holding templates/, templates/singleton/, "
            "templates_test/ and templates_test/singleton/."
        ),
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Generation config file (JSON or YAML).",
    )

    overrides = parser.add_argument_group("configuration overrides")
    overrides.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output folder for the generated files.",
    )
    overrides.add_argument(
        "-p", "--pkg-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Name of the generated package.",
    )
    overrides.add_argument(
        "--no-tests",
        action="store_true",
        default=None,
        help="Do not generate test files.",
    )
    overrides.add_argument(
        "--wipe",
        action="store_true",
        default=None,
        help="Delete the output folder's contents before generating.",
    )
    overrides.add_argument(
        "--collect-errors",
        action="store_true",
        default=None,
        help="Keep going after a failed file and report every failure.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    return parser


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect the options the user actually passed."""
    candidates: Dict[str, Any] = {
        "output": args.output,
        "pkg_name": args.pkg_name,
        "no_tests": args.no_tests,
        "wipe": args.wipe,
        "collect_errors": args.collect_errors,
    }
    return {k: v for k, v in candidates.items() if v is not None}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Parse arguments, run the generator and exit with its status."""
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)
    _setup_logging(args.verbose)

    from schemagen.generator import (
        GenerationReport,
        ModelGenerator,
        load_config_file,
        load_tables_file,
    )
    from schemagen.models import GenerationConfig
    from schemagen.templates import TemplateBundle

    overrides: Dict[str, Any] = _build_config_overrides(args)
    try:
        tables = load_tables_file(Path(args.schema))
        if args.config:
            config: GenerationConfig = load_config_file(Path(args.config), overrides)
        else:
            config = GenerationConfig.model_validate(overrides)
        bundle: TemplateBundle = TemplateBundle.from_directory(Path(args.templates))
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    report: GenerationReport = ModelGenerator(config, bundle).run(tables)
    print(report.summary())

    sys.exit(EXIT_SUCCESS if report.success else EXIT_GENERATION_ERROR)


if __name__ == "__main__":
    cli_main()
