# File: ormgen/cli.py
"""
ormgen - Command-Line Interface
===============================

Thin ``argparse`` wrapper around ``Generator`` using the file driver and the
built-in manifest renderer.

Usage examples::

    # Resolve and write the manifest
    python -m ormgen -s schema.yaml -c ormgen.yaml -o ./out

    # Resolve only, print the report
    python -m ormgen -s schema.yaml -c ormgen.yaml --dry-run -v

    # Pass template sources through to the renderer
    python -m ormgen -s schema.yaml -o ./out --template header.tpl

Exit codes:
    0 — success
    1 — configuration validation error
    2 — resolution error
    3 — driver error
    4 — input/output error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from ormgen.errors import ConfigValidationError, DriverError, ResolutionError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_RESOLUTION_ERROR: int = 2
EXIT_DRIVER_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root ormgen logger.

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
    handler.setFormatter(logging.Formatter(
        "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    ))

    root_logger: logging.Logger = logging.getLogger("ormgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from ormgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="ormgen",
        description=(
            "ormgen — schema-driven data-access code generation.\n\n"
            "Reads a schema document, applies aliases, type replacements and "
            "relationship rules, and renders the resolved model."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.yaml -c ormgen.yaml -o ./out\n"
            "  %(prog)s -s schema.yaml --dry-run -v\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ormgen v{__version__}",
    )
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Schema document (YAML or JSON).",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Generation config (YAML or JSON). Defaults are used if omitted.",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory to write rendered files into.",
    )
    parser.add_argument(
        "-t", "--template",
        dest="templates",
        action="append",
        default=[],
        metavar="FILE",
        help="Template source passed to the renderer (repeatable, ordered).",
    )

    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the pipeline but don't write any files.",
    )
    behaviour_group.add_argument(
        "--no-back-referencing",
        action="store_true",
        default=False,
        help="Don't synthesize inverse relationships.",
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
# Pipeline
# ---------------------------------------------------------------------------


def _read_templates(paths: Sequence[str]) -> List[str]:
    return [Path(p).read_text(encoding="utf-8") for p in paths]


def _run(args: argparse.Namespace) -> int:
    """Run the pipeline; returns the exit code."""
    from ormgen.drivers import FileDriver
    from ormgen.generator import GenerationReport, Generator, load_config_file
    from ormgen.models import GenerationConfig
    from ormgen.utils import write_file

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        return EXIT_INPUT_ERROR

    try:
        config: GenerationConfig = (
            load_config_file(Path(args.config)) if args.config else GenerationConfig()
        )
        templates: List[str] = _read_templates(args.templates)
    except ConfigValidationError as exc:
        logger.error("%s", exc)
        return EXIT_VALIDATION_ERROR
    except OSError as exc:
        logger.error("Cannot read template: %s", exc)
        return EXIT_INPUT_ERROR

    if args.no_back_referencing:
        config.no_back_referencing = True

    generator = Generator(FileDriver(schema_path), config, templates=templates)
    try:
        report: GenerationReport = generator.run()
    except ConfigValidationError as exc:
        logger.error("%s", exc)
        return EXIT_VALIDATION_ERROR
    except ResolutionError as exc:
        logger.error("%s", exc)
        return EXIT_RESOLUTION_ERROR
    except DriverError as exc:
        logger.error("%s", exc)
        return EXIT_DRIVER_ERROR

    if not args.quiet:
        print(report.summary())

    if args.dry_run or args.output is None:
        logger.info("No output directory written (dry run or no --output).")
        return EXIT_SUCCESS

    output_dir: Path = Path(args.output).resolve()
    try:
        for rel_path, content in report.files.items():
            write_file(output_dir / rel_path, content)
    except OSError as exc:
        logger.error("Failed to write output: %s", exc)
        return EXIT_INPUT_ERROR

    logger.info("Wrote %d file(s) to %s.", len(report.files), output_dir)
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    logger.info("Schema:  %s", args.schema)
    logger.info("Config:  %s", args.config or "(defaults)")
    logger.info("Output:  %s", args.output or "(none)")

    exit_code: int = _run(args)
    if exit_code != EXIT_SUCCESS:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_RESOLUTION_ERROR",
    "EXIT_DRIVER_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("ormgen.cli loaded.")
