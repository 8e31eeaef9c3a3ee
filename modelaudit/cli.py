"""
modelaudit - Command-Line Interface
===================================

Validates every model found under the configured paths against the
database schema.

Usage examples::

    # Use ./modelaudit.yaml if present
    python -m modelaudit --connection sqlite:///app.db

    # Explicit config, extra search path, relations off
    python -m modelaudit -c ci/modelaudit.yaml \\
        --path src/shop/models --module shop.models --no-relations

    # Report issues without failing the build
    python -m modelaudit --no-fail -v

Exit codes:
    0 - no issues (or issues with fail-on-warnings disabled)
    1 - issues found
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelaudit")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int, quiet: bool = False) -> None:
    """
    Configure the root modelaudit logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
        quiet:     Only errors, regardless of verbosity.
    """
    if quiet:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("modelaudit")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from modelaudit import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="modelaudit",
        description="Validate ORM models against the database schema.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --connection sqlite:///app.db\n"
            "  %(prog)s -c modelaudit.yaml --path src/models --module app.models\n"
            "  %(prog)s --no-relations --no-fail\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"modelaudit v{__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON). Defaults to ./modelaudit.yaml if present.",
    )

    source_group = parser.add_argument_group("model discovery")
    source_group.add_argument(
        "--path",
        action="append",
        default=None,
        metavar="DIR",
        help="Directory to search for models (repeatable).",
    )
    source_group.add_argument(
        "--module",
        action="append",
        default=None,
        metavar="PREFIX",
        help="Module prefix for the matching --path (repeatable).",
    )
    source_group.add_argument(
        "--connection",
        type=str,
        default=None,
        metavar="URL",
        help="SQLAlchemy database URL (falls back to $DATABASE_URL).",
    )

    checks_group = parser.add_argument_group("checks")
    for name in ("columns", "casts", "fillable", "relations", "annotations"):
        checks_group.add_argument(
            f"--no-{name}",
            action="store_true",
            default=False,
            help=f"Disable the {name} check.",
        )
    checks_group.add_argument(
        "--no-fail",
        action="store_true",
        default=False,
        help="Exit 0 even when issues are found.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}

    if args.path:
        overrides["models_paths"] = args.path
    if args.module:
        overrides["models_modules"] = args.module
    if args.connection:
        overrides["connection"] = args.connection

    disabled: Dict[str, bool] = {
        name: False
        for name in ("columns", "casts", "fillable", "relations", "annotations")
        if getattr(args, f"no_{name}")
    }
    if disabled:
        overrides["checks"] = disabled

    if args.no_fail:
        overrides["fail_on_warnings"] = False

    return overrides


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


def run(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse arguments, validate every located model and return the exit code.
    """
    from modelaudit.config import build_config, find_default_config, load_config_file
    from modelaudit.introspection import SchemaIntrospector
    from modelaudit.locator import ModuleModelLocator
    from modelaudit.models import IssueKind, ValidationIssue, ValidationReport
    from modelaudit.runtime import ModelRuntime
    from modelaudit.utils import RunStats
    from modelaudit.validators import build_validator

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(args.verbose, quiet=args.quiet)

    # --- Configuration ---
    config_path: Optional[Path] = (
        Path(args.config).resolve() if args.config else find_default_config(Path.cwd())
    )
    try:
        raw: Dict[str, Any] = load_config_file(config_path) if config_path else {}
        config = build_config(raw, _build_config_overrides(args))
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    url: Optional[str] = config.connection or os.environ.get("DATABASE_URL")
    if not url:
        logger.error("No database connection. Use --connection, 'connection:' or $DATABASE_URL.")
        return EXIT_INPUT_ERROR

    try:
        engine = create_engine(url)
    except (ArgumentError, ImportError) as exc:
        logger.error("Cannot create engine for %s: %s", url, exc)
        return EXIT_INPUT_ERROR

    # Model modules are imported relative to the working directory.
    cwd: str = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    runtime: ModelRuntime = ModelRuntime()
    validator = build_validator(config, SchemaIntrospector(engine), runtime)
    locator: ModuleModelLocator = ModuleModelLocator()

    stats: RunStats = RunStats()
    try:
        for model_cls in locator.locate(config.models_paths, config.models_modules):
            try:
                model = model_cls()
            except Exception as exc:
                report = ValidationReport().with_issue(ValidationIssue(
                    f"{model_cls.__module__}.{model_cls.__qualname__}",
                    IssueKind.INTERNAL,
                    f"Could not instantiate model: {exc}",
                ))
                _print(args, f"Validating model: {model_cls.__qualname__}")
            else:
                _print(
                    args,
                    f"Validating model: {model_cls.__qualname__} "
                    f"(table: {runtime.table_name(model)})",
                )
                report = validator.validate(model)

            stats.record(len(report))
            for issue in report:
                _print(args, f"  {issue}")
    except (ImportError, SQLAlchemyError) as exc:
        logger.error("Validation aborted: %s", exc)
        return EXIT_INPUT_ERROR
    finally:
        engine.dispose()

    logger.info("%s", stats.stop().summary())

    if stats.issues > 0:
        print(f"Validation completed with {stats.issues} issue(s).", file=sys.stderr)
        return EXIT_VALIDATION_ERROR if config.fail_on_warnings else EXIT_SUCCESS

    _print(args, "All models validated successfully.")
    return EXIT_SUCCESS


def _print(args: argparse.Namespace, line: str) -> None:
    if not args.quiet:
        print(line)


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console-script entry point."""
    sys.exit(run(argv))


__all__: List[str] = [
    "run",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_INPUT_ERROR",
]
