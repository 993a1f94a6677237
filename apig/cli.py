# File: apig/cli.py
"""
apig - Command-Line Interface
==============================

Built with the standard-library ``argparse`` module.

Usage examples::

    # Generate ./api-server from a model description
    apig gen -f models.yaml

    # Explicit output directory and identity overrides
    apig gen -f models.json -o ./out --vcs github.com --user wantedly --project api-server

    # Validate only (no file output)
    apig gen -f models.yaml --validate-only

    # Show version
    apig --version

Exit codes:
    0 - success
    1 - validation error (InputError)
    2 - template error (TemplateError)
    3 - output error (OutputError)
    4 - argument / input file error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from apig.errors import InputError, OutputError, TemplateError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_TEMPLATE_ERROR: int = 2
EXIT_OUTPUT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the apig package logger based on verbosity level.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity < 0:
        level = logging.CRITICAL + 1
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("apig")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from apig import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="apig",
        description=(
            "apig - Go REST API server generator.\n\n"
            "Turns a model description (JSON/YAML) into a gin + gorm CRUD "
            "server with routing, migrations and API Blueprint docs."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"apig v{__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    gen = subparsers.add_parser(
        "gen",
        help="Generate a project from a model description.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -f models.yaml\n"
            "  %(prog)s -f models.json -o ./out --project api-server\n"
            "  %(prog)s -f models.yaml --validate-only\n"
        ),
    )
    gen.add_argument(
        "-f", "--file",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the model description file (JSON or YAML).",
    )
    gen.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory (default: ./<project>).",
    )

    identity_group = gen.add_argument_group("identity overrides")
    identity_group.add_argument("--vcs", default=None, metavar="HOST",
                                help="Repository host, e.g. github.com.")
    identity_group.add_argument("--user", default=None, metavar="OWNER",
                                help="Repository owner.")
    identity_group.add_argument("--project", default=None, metavar="NAME",
                                help="Project name (default: file value, else output basename).")
    identity_group.add_argument("--import-dir", dest="import_dir", default=None, metavar="PATH",
                                help="Go import path (default: vcs/user/project).")

    mode_group = gen.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the model description without generating code.",
    )

    verbosity_group = gen.add_argument_group("verbosity")
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
        help="Suppress all output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Override builder
# ---------------------------------------------------------------------------


def _build_overrides(args: argparse.Namespace, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Identity overrides from CLI arguments; the output basename stands in for a missing project."""
    overrides: Dict[str, Any] = {
        "vcs": args.vcs,
        "user": args.user,
        "project": args.project,
        "import_dir": args.import_dir,
    }
    if overrides["project"] is None and not raw.get("project") and args.output:
        overrides["project"] = Path(args.output).resolve().name
    return overrides


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(detail: Any, model_path: Path) -> int:
    from apig.utils import Timer
    from apig.validators import validate_detail

    with Timer("validation") as t:
        result = validate_detail(detail)

    print(f"\n{'='*50}")
    print("  Model Validation Report")
    print(f"{'='*50}")
    print(f"  File:     {model_path.name}")
    print(f"  Project:  {detail.import_dir}")
    print(f"  Models:   {len(detail.models)}")
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

    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# gen command
# ---------------------------------------------------------------------------


def _run_gen(args: argparse.Namespace, quiet: bool) -> int:
    """Run the gen command and return the exit code."""
    from apig.generator import GenerationReport, ProjectGenerator, load_detail_file, parse_raw_detail

    model_path: Path = Path(args.file).resolve()

    try:
        raw: Dict[str, Any] = load_detail_file(model_path)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load model file: %s", exc)
        return EXIT_INPUT_ERROR

    try:
        detail = parse_raw_detail(raw, _build_overrides(args, raw))
    except InputError as exc:
        logger.error("%s", exc)
        return EXIT_VALIDATION_ERROR

    if args.validate_only:
        return _run_validate_only(detail, model_path)

    output_dir: Path = Path(args.output) if args.output else Path.cwd() / detail.project
    output_dir = output_dir.resolve()

    logger.info("Models:  %s", model_path)
    logger.info("Output:  %s", output_dir)

    try:
        report: GenerationReport = ProjectGenerator().generate(detail, output_dir)
    except InputError as exc:
        logger.error("%s", exc)
        return EXIT_VALIDATION_ERROR
    except TemplateError as exc:
        logger.error("%s", exc)
        return EXIT_TEMPLATE_ERROR
    except OutputError as exc:
        logger.error("%s", exc)
        return EXIT_OUTPUT_ERROR

    if not quiet:
        print(report.summary())
    return EXIT_SUCCESS


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
    try:
        args: argparse.Namespace = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse exits 2 on usage errors, which is our template-error code
        sys.exit(EXIT_SUCCESS if exc.code in (0, None) else EXIT_INPUT_ERROR)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    exit_code: int = _run_gen(args, quiet=args.quiet)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("apig failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_TEMPLATE_ERROR",
    "EXIT_OUTPUT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("apig.cli loaded.")
