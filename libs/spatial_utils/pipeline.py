# =============================================================================
# Tile Index Pipeline - Partition → Index (parallel) → Merge
# =============================================================================
# Runs the three phases in order inside a WorkingDirectory scope. The working
# directory is released on every exit path.
# =============================================================================

import logging

from libs.models import RunSummary, TileIndexConfig
from .batching import partition_file_list
from .merger import merge_containers
from .runner import run_batches, succeeded_containers
from .workdir import WorkingDirectory

__all__ = ["run_pipeline"]

logger = logging.getLogger(__name__)


def run_pipeline(config: TileIndexConfig, gdal, log=None) -> RunSummary:
    """
    Build a consolidated tile index for every file in config.input_file.

    Args:
        config: Validated run configuration
        gdal: GDALResource used for gdaltindex and ogrmerge.py
        log: Logger

    Returns:
        RunSummary describing batches, containers and the output file

    Raises:
        EmptyInputError: If the file list is empty
        NoOutputError: If every batch failed
        MergeError: If the merge step failed
    """
    log = log or logger

    with WorkingDirectory(
        path=config.temp_dir,
        keep=config.keep_temp,
        temp_root=config.temp_root,
        log=log,
    ) as work:
        log.info("Starting gdaltindex parallel processing")
        log.info(f"Input file: {config.input_file}")
        log.info(f"Output file: {config.output_file}")
        log.info(f"Batch size: {config.batch_size}")
        log.info(f"Parallel jobs: {config.jobs}")
        log.info(f"Temp directory: {work.path}")

        log.info("Splitting input file into batches...")
        batches = partition_file_list(config.input_file, config.batch_size, work.batch_dir)
        total_files = sum(b.line_count for b in batches)
        log.info(f"Total files to process: {total_files}")
        log.info(f"Number of batches: {len(batches)}")

        results = run_batches(
            gdal,
            batches,
            work.container_dir,
            jobs=config.jobs,
            container_format=config.container_format,
            timeout=config.timeout_seconds,
            log=log,
        )
        containers = succeeded_containers(results)
        failed_ids = [r.batch_id for r in results if not r.success]
        if failed_ids:
            log.warning(f"{len(failed_ids)} of {len(batches)} batches failed: {', '.join(failed_ids)}")

        size = merge_containers(
            gdal,
            containers,
            config.output_file,
            output_format=config.output_format,
            timeout=config.timeout_seconds,
            log=log,
        )

        log.info("Processing complete!")
        return RunSummary(
            total_files=total_files,
            total_batches=len(batches),
            succeeded_batches=len(containers),
            failed_batch_ids=failed_ids,
            containers=containers,
            output_file=config.output_file,
            output_size_bytes=size,
            work_dir=work.path,
            work_dir_kept=config.keep_temp,
        )
