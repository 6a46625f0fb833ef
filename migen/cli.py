# File: migen/cli.py
"""
Migen - Command-Line Interface
===============================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate create-table migrations for every table of a dump
    python -m migen --schema schema.yaml --output ./migrations

    # Only two tables, exact MySQL column definitions
    python -m migen -s schema.yaml -t post -t comment --specific --dialect mysql

    # Validate only (no file output)
    python -m migen -s schema.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root migen logger based on verbosity level.

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
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("migen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from migen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="migen",
        description=(
            "Migen - database migration generator.\n\n"
            "Turns schema introspection dumps (JSON/YAML) into Yii2 migration "
            "classes built from fluent column definitions."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.yaml -o ./migrations\n"
            "  %(prog)s -s schema.yaml -t post --specific --dialect mysql\n"
            "  %(prog)s -s schema.yaml --validate-only\n"
        ),
    )

    parser.add_argument("--version", action="version", version=f"Migen v{__version__}")

    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the schema dump (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory migrations are written to (default: config migration_path).",
    )
    parser.add_argument(
        "-t", "--table",
        dest="tables",
        action="append",
        default=None,
        metavar="NAME",
        help="Only generate this table (repeatable).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the dump without generating migrations.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render migrations but don't write files to disk.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--dialect",
        type=str,
        default=None,
        metavar="NAME",
        help="Database dialect (mysql, pgsql, sqlite, mssql, oci, cubrid...).",
    )
    schema_mode = config_group.add_mutually_exclusive_group()
    schema_mode.add_argument(
        "--general",
        dest="general_schema",
        action="store_const",
        const=True,
        default=None,
        help="Render portable column definitions.",
    )
    schema_mode.add_argument(
        "--specific",
        dest="general_schema",
        action="store_const",
        const=False,
        help="Render dialect-exact column definitions with lengths.",
    )
    config_group.add_argument(
        "--no-prefix",
        action="store_true",
        default=False,
        help="Render bare table names instead of '{{%%name}}'.",
    )
    config_group.add_argument(
        "--db-prefix",
        type=str,
        default=None,
        metavar="PREFIX",
        help="Connection table prefix stripped from table names.",
    )
    config_group.add_argument(
        "--namespace",
        type=str,
        default=None,
        metavar="NS",
        help="Namespace of the generated migration classes.",
    )
    config_group.add_argument(
        "--overwrite",
        action="store_true",
        default=False,
        help="Replace migration files that already exist.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation has errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
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

    if args.dialect is not None:
        overrides["dialect"] = args.dialect
    if args.general_schema is not None:
        overrides["general_schema"] = args.general_schema
    if args.no_prefix:
        overrides["use_table_prefix"] = False
    if args.db_prefix is not None:
        overrides["db_prefix"] = args.db_prefix
    if args.namespace is not None:
        overrides["namespace"] = args.namespace
    if args.overwrite:
        overrides["overwrite_existing"] = True

    return overrides


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, args: argparse.Namespace) -> int:
    """Run validation only and return the exit code."""
    from migen.generator import apply_config_overrides, load_schema_file, parse_raw_schema
    from migen.utils import Timer
    from migen.validators import validate_full

    logger.info("Running validation-only mode for: %s", schema_path)

    try:
        raw_data: Dict[str, Any] = load_schema_file(schema_path)
        apply_config_overrides(raw_data, _build_config_overrides(args))
        structures, config = parse_raw_schema(raw_data)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load schema: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_full(structures, config)

    print(f"\n{'=' * 50}")
    print("  Schema Validation Report")
    print(f"{'=' * 50}")
    print(f"  File:     {schema_path.name}")
    print(f"  Tables:   {len(structures)}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'=' * 50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(schema_path: Path, args: argparse.Namespace) -> int:
    """Run the full generation pipeline and return the exit code."""
    from migen.generator import GenerationReport, MigrationGenerator

    generator: MigrationGenerator = MigrationGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
    )

    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    overrides: Dict[str, Any] = _build_config_overrides(args)
    report: GenerationReport = generator.generate_from_file(
        schema_path,
        Path(args.output).resolve() if args.output else None,
        dry_run=args.dry_run,
        tables=args.tables,
        config_overrides=overrides or None,
    )

    print(report.summary())
    if args.dry_run:
        for filename, content in report.files.items():
            print(f"\n// {filename}\n{content}")

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
        if report.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR

    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)
    if args.quiet:
        logging.getLogger("migen").setLevel(logging.ERROR)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args))

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", args.output or "(config migration_path)")

    exit_code: int = _run_generation(schema_path, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
