# File: zodgen/cli.py
"""
zodgen - Command-Line Interface
================================

Built on the standard-library ``argparse`` module.

Usage examples::

    # Base schemas only
    python -m zodgen --schema datamodel.yaml --output ./src/generated

    # Every family, verbose
    python -m zodgen -s datamodel.yaml -o ./src/generated --brands --layers --crud -v

    # Validate only (no file output)
    python -m zodgen -s datamodel.yaml --validate-only

    # Render and report without writing
    python -m zodgen -s datamodel.yaml -o ./out --dry-run

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

from zodgen.generator import (
    EXIT_INPUT,
    EXIT_SUCCESS,
    EXIT_VALIDATION,
    GenerationReport,
    ZodGenerator,
    apply_overrides,
    load_datamodel_file,
    parse_raw_datamodel,
)
from zodgen.models import DatabaseProvider, PaginationStrategy
from zodgen.utils import Timer
from zodgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen")


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``zodgen`` logger.

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
    formatter: logging.Formatter = logging.Formatter(
        "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("zodgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from zodgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="zodgen",
        description=(
            "zodgen — Zod schema generator.\n\n"
            "Turns an annotated datamodel (JSON/YAML) into TypeScript Zod "
            "schemas: base schemas, a brand registry, Database/Runtime/External "
            "layers and CRUD operation schemas."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s datamodel.yaml -o ./src/generated\n"
            "  %(prog)s -s datamodel.yaml -o ./out --brands --layers --crud\n"
            "  %(prog)s -s datamodel.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # -- Input / Output --------------------------------------------------------
    io_group = parser.add_argument_group("Input / Output")
    io_group.add_argument(
        "-s", "--schema",
        required=True,
        metavar="FILE",
        help="Path to the datamodel file (JSON or YAML).",
    )
    io_group.add_argument(
        "-o", "--output",
        default=None,
        metavar="DIR",
        help="Output root; each family is written to its own directory under it.",
    )
    io_group.add_argument(
        "--provider",
        choices=[p.value for p in DatabaseProvider],
        default=None,
        help="Override the datamodel's database provider.",
    )

    # -- Families --------------------------------------------------------------
    fam_group = parser.add_argument_group("Artifact families")
    fam_group.add_argument(
        "--brands",
        action="store_true",
        default=False,
        help="Generate the brand registry.",
    )
    fam_group.add_argument(
        "--layers",
        action="store_true",
        default=False,
        help="Generate Database/Runtime/External layer schemas.",
    )
    fam_group.add_argument(
        "--crud",
        action="store_true",
        default=False,
        help="Generate Create/Update/List/Get/Delete schemas.",
    )

    # -- Emission --------------------------------------------------------------
    gen_group = parser.add_argument_group("Emission")
    gen_group.add_argument(
        "--camel-case",
        action="store_true",
        default=False,
        help="Emit field keys in camelCase.",
    )
    gen_group.add_argument(
        "--no-default-validators",
        action="store_true",
        default=False,
        help="Do not infer cuid/uuid/int validators from field defaults.",
    )
    gen_group.add_argument(
        "--pagination",
        choices=[p.value for p in PaginationStrategy],
        default=None,
        help="Default pagination fields on List schemas.",
    )
    gen_group.add_argument(
        "--max-page-size",
        type=int,
        default=None,
        metavar="N",
        help="Upper bound for limit/take on List schemas.",
    )
    gen_group.add_argument(
        "--manifest",
        action="store_true",
        default=False,
        help="Write zodgen-manifest.json at the output root.",
    )

    # -- Behaviour -------------------------------------------------------------
    beh_group = parser.add_argument_group("Behaviour")
    beh_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the datamodel; do not generate.",
    )
    beh_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything and print the report, but write nothing.",
    )
    beh_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Keep the first declaration on brand conflicts instead of failing.",
    )
    beh_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # -- Verbosity -------------------------------------------------------------
    verb_group = parser.add_mutually_exclusive_group()
    verb_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v INFO, -vv DEBUG).",
    )
    verb_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Only flags the user actually passed override the file's config."""
    overrides: Dict[str, Any] = {}
    crud: Dict[str, Any] = {}

    if args.brands:
        overrides["generate_brand_registry"] = True
    if args.layers:
        overrides["generate_three_layers"] = True
    if args.crud:
        overrides["generate_crud_schemas"] = True
    if args.camel_case:
        overrides["camel_case"] = True
    if args.no_default_validators:
        overrides["use_default_validators"] = False
    if args.manifest:
        overrides["write_manifest"] = True
    if args.no_strict:
        overrides["strict_brands"] = False

    if args.pagination is not None:
        crud["pagination_strategy"] = args.pagination
    if args.max_page_size is not None:
        crud["max_page_size"] = args.max_page_size
    if crud:
        overrides["crud"] = crud

    return overrides


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, args: argparse.Namespace) -> int:
    logger.info("Running validation-only mode for: %s", schema_path)

    try:
        raw_data: Dict[str, Any] = load_datamodel_file(schema_path)
        apply_overrides(raw_data, _build_config_overrides(args), args.provider)
        datamodel, config = parse_raw_datamodel(raw_data)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load datamodel: %s", exc)
        print(f"✗ {exc}", file=sys.stderr)
        return EXIT_INPUT

    with Timer("validation") as t:
        result: ValidationResult = validate_full(datamodel, config)

    print(f"\n{'='*50}")
    print("  Datamodel Validation Report")
    print(f"{'='*50}")
    print(f"  File:     {schema_path.name}")
    print(f"  Provider: {datamodel.provider}")
    print(f"  Models:   {len(datamodel.models)}")
    print(f"  Enums:    {len(datamodel.enums)}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")
    if len(result):
        print()
        print(result.format_report(include_info=args.verbose >= 1))
    if result.is_valid and not result.has_warnings:
        print("\n  ✅ All validations passed!")
    print(f"{'='*50}\n")

    if not result.is_valid:
        return EXIT_VALIDATION
    if args.fail_on_warnings and result.has_warnings:
        return EXIT_VALIDATION
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(
    schema_path: Path,
    output_dir: Path,
    args: argparse.Namespace,
) -> int:
    generator: ZodGenerator = ZodGenerator(fail_on_warnings=args.fail_on_warnings)
    config_overrides: Dict[str, Any] = _build_config_overrides(args)

    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    report: GenerationReport = generator.generate_from_file(
        schema_path=schema_path,
        output_dir=output_dir,
        config_overrides=config_overrides or None,
        provider=args.provider,
        dry_run=args.dry_run,
    )

    print(report.summary())
    if args.dry_run and args.verbose >= 1:
        for generated in report.files:
            print(f"  {generated.relative_path}  ({generated.line_count} lines)")
    return report.exit_code


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        logging.disable(logging.CRITICAL)
    else:
        logging.disable(logging.NOTSET)
    _setup_logging(args.verbose)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Datamodel file not found: %s", schema_path)
        print(f"✗ Datamodel file not found: {schema_path}", file=sys.stderr)
        sys.exit(EXIT_INPUT)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args))

    if args.output is None:
        logger.error(
            "Output directory is required for generation. "
            "Use -o/--output or --validate-only."
        )
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT)

    output_dir: Path = Path(args.output).resolve()
    logger.info("Datamodel: %s", schema_path)
    logger.info("Output:    %s", output_dir)
    logger.info("Strict:    %s", not args.no_strict)

    exit_code: int = _run_generation(schema_path, output_dir, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
]

logger.debug("zodgen.cli loaded — %d public symbols.", len(__all__))
