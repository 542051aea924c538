#!/usr/bin/env python3
# =============================================================================
# gdaltindex_mp - Parallel tile index builder
# =============================================================================
# Processes a large list of geospatial files with gdaltindex in parallel
# batches, then merges the per-batch containers into a single FlatGeobuf
# file with ogrmerge.py.
# =============================================================================

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from libs.errors import TileIndexError, UsageError
from libs.models import TileIndexSettings
from libs.spatial_utils import run_pipeline, validate_run
from services.dagster.etl_pipelines.resources.gdal_resource import GDALResource

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("gdaltindex_mp")

EPILOG = """\
Example:
    gdaltindex-mp -i file_list.txt -o index.fgb -b 500 -j 8
"""


class _MaxLevelFilter(logging.Filter):
    """Pass records strictly below a level (routes progress to stdout)."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting."""

    def error(self, message: str):
        raise UsageError(message)


def configure_logging(verbose: bool = False) -> None:
    """
    Route progress logs to stdout and warnings/errors to stderr.

    Both streams carry a timestamp; stderr lines also carry the level name.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_gdaltindex_mp", False):
            root.removeHandler(handler)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt=DATE_FORMAT))
    stdout_handler._gdaltindex_mp = True

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s", datefmt=DATE_FORMAT))
    stderr_handler._gdaltindex_mp = True

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser(settings: TileIndexSettings) -> argparse.ArgumentParser:
    """Build the command-line parser; defaults come from TileIndexSettings."""
    default_jobs = settings.jobs if settings.jobs is not None else (os.cpu_count() or 1)

    parser = _ArgumentParser(
        prog="gdaltindex-mp",
        description=(
            "Process a list of geospatial files using gdaltindex in parallel batches, "
            "then merge into a single FlatGeoBuf file."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-i", "--input", required=True, metavar="FILE",
        help="Text file containing list of geospatial files (one per line)",
    )
    required.add_argument(
        "-o", "--output", required=True, metavar="FILE",
        help="Output FlatGeoBuf file name (e.g., output.fgb)",
    )

    parser.add_argument(
        "-b", "--batch-size", default=str(settings.batch_size), metavar="N",
        help=f"Number of files per batch (default: {settings.batch_size})",
    )
    parser.add_argument(
        "-j", "--jobs", default=str(default_jobs), metavar="N",
        help=f"Number of parallel jobs (default: all CPUs = {default_jobs})",
    )
    parser.add_argument(
        "-t", "--temp-dir", default=None, metavar="DIR",
        help="Directory for temporary files (default: auto-created)",
    )
    parser.add_argument(
        "-k", "--keep-temp", action="store_true",
        help="Keep temporary files after completion",
    )
    parser.add_argument(
        "-f", "--format", default=settings.output_format, metavar="NAME",
        help=f"Output OGR driver passed to ogrmerge.py (default: {settings.output_format})",
    )
    parser.add_argument(
        "--timeout", default=None if settings.command_timeout is None else str(settings.command_timeout),
        metavar="SECONDS",
        help="Kill any gdaltindex/ogrmerge.py call running longer than this (default: no timeout)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging, including stderr of failed batches",
    )
    return parser


def config_values(args: argparse.Namespace, settings: TileIndexSettings) -> dict:
    """Layer parsed flags over settings into raw TileIndexConfig values."""
    return {
        "input_file": args.input,
        "output_file": args.output,
        "batch_size": args.batch_size,
        "jobs": args.jobs,
        "temp_dir": args.temp_dir,
        "temp_root": settings.temp_root,
        "keep_temp": args.keep_temp,
        "container_format": settings.container_format,
        "output_format": args.format,
        "timeout_seconds": args.timeout,
        "indexer_bin": settings.indexer_bin,
        "merge_bin": settings.merge_bin,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        Exit code (0 for success, 1 for any failure, 130 if interrupted)
    """
    configure_logging()

    try:
        settings = TileIndexSettings()
    except PydanticValidationError as e:
        logger.error(f"Invalid TILEINDEX_* environment settings: {e}")
        return EXIT_FAILURE

    parser = build_parser(settings)
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        logger.error(str(e))
        parser.print_help(sys.stderr)
        return EXIT_FAILURE

    if args.verbose:
        configure_logging(verbose=True)

    gdal = GDALResource(
        indexer_bin=settings.indexer_bin,
        merge_bin=settings.merge_bin,
        gdal_data_path=settings.gdal_data_path,
        proj_lib_path=settings.proj_lib_path,
    )

    try:
        config = validate_run(config_values(args, settings), gdal)
        run_pipeline(config, gdal, log=logger)
    except TileIndexError as e:
        logger.error(str(e))
        if e.hint:
            logger.error(f"Hint: {e.hint}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return EXIT_INTERRUPTED

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
