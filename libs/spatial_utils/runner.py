# =============================================================================
# Batch Runner - Parallel gdaltindex over batch list files
# =============================================================================
# Runs one gdaltindex subprocess per batch on a bounded thread pool. Batch
# failures are logged and absorbed; only total failure is fatal.
# =============================================================================

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from libs.errors import BatchFailure, NoOutputError
from libs.models import Batch, BatchResult, container_extension

__all__ = [
    "container_path_for",
    "index_batch",
    "run_batches",
    "succeeded_containers",
]

logger = logging.getLogger(__name__)


def container_path_for(batch: Batch, container_dir: Union[str, Path], container_format: str = "GPKG") -> Path:
    """Deterministic container path for a batch, e.g. containers/batch_000002.gpkg."""
    return Path(container_dir) / f"{batch.batch_id}.{container_extension(container_format)}"


def _failure_reason(result) -> str:
    if result.timed_out:
        return "timed out"
    return f"exit {result.return_code}"


def index_batch(
    gdal,
    batch: Batch,
    container_dir: Union[str, Path],
    container_format: str = "GPKG",
    timeout: Optional[float] = None,
) -> BatchResult:
    """
    Run gdaltindex over a single batch.

    Any existing container for the batch is removed first, since gdaltindex
    appends to an existing index.

    Args:
        gdal: GDALResource (or compatible object with gdaltindex())
        batch: Batch to index
        container_dir: Directory for index containers
        container_format: gdaltindex output driver
        timeout: Per-subprocess timeout in seconds

    Returns:
        BatchResult

    Raises:
        BatchFailure: If gdaltindex fails or produces no container
    """
    container = container_path_for(batch, container_dir, container_format)
    container.unlink(missing_ok=True)

    started = time.monotonic()
    result = gdal.gdaltindex(
        output_path=str(container),
        optfile=str(batch.path),
        output_format=container_format,
        timeout=timeout,
    )
    duration = time.monotonic() - started

    if not result.success:
        # gdaltindex can leave a partial container behind on failure
        container.unlink(missing_ok=True)
        failed = BatchResult(
            batch_id=batch.batch_id,
            success=False,
            return_code=result.return_code,
            stderr=result.stderr or "",
            timed_out=result.timed_out,
            duration_seconds=duration,
            error=_failure_reason(result),
        )
        raise BatchFailure(f"Failed: {batch.batch_id} ({failed.error})", result=failed)

    if not container.is_file():
        failed = BatchResult(
            batch_id=batch.batch_id,
            success=False,
            return_code=result.return_code,
            stderr=result.stderr or "",
            duration_seconds=duration,
            error="no container produced",
        )
        raise BatchFailure(f"Failed: {batch.batch_id} ({failed.error})", result=failed)

    return BatchResult(
        batch_id=batch.batch_id,
        success=True,
        return_code=result.return_code,
        container_path=container,
        stderr=result.stderr or "",
        duration_seconds=duration,
    )


def _collect(future, batch: Batch, log) -> BatchResult:
    """Turn a finished index_batch future into a BatchResult, logging the outcome."""
    try:
        result = future.result()
    except BatchFailure as e:
        result = e.result
        log.error(str(e))
        if result.stderr:
            log.debug(f"{batch.batch_id} stderr: {result.stderr.strip()}")
        return result
    except Exception as e:
        log.error(f"Failed: {batch.batch_id} ({type(e).__name__}: {e})")
        return BatchResult(
            batch_id=batch.batch_id,
            success=False,
            return_code=-1,
            error=f"{type(e).__name__}: {e}",
        )
    log.info(f"Completed: {batch.batch_id}")
    return result


def run_batches(
    gdal,
    batches: Sequence[Batch],
    container_dir: Union[str, Path],
    jobs: int,
    container_format: str = "GPKG",
    timeout: Optional[float] = None,
    log=None,
) -> list[BatchResult]:
    """
    Index all batches with at most `jobs` concurrent gdaltindex processes.

    Workers share no mutable state: each writes only its own container.

    Args:
        gdal: GDALResource (or compatible object)
        batches: Batches to process
        container_dir: Directory for index containers (created if absent)
        jobs: Worker pool size (>= 1)
        container_format: gdaltindex output driver
        timeout: Per-subprocess timeout in seconds
        log: Logger (context.log inside Dagster; module logger otherwise)

    Returns:
        One BatchResult per batch, sorted by batch_id

    Raises:
        NoOutputError: If no batch produced a container
        ValueError: If jobs < 1
    """
    log = log or logger
    if jobs < 1:
        raise ValueError(f"jobs must be >= 1, got {jobs}")

    container_dir = Path(container_dir)
    container_dir.mkdir(parents=True, exist_ok=True)

    log.info(f"Processing {len(batches)} batches with {jobs} parallel jobs...")

    results: list[BatchResult] = []
    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="gdaltindex") as pool:
        futures = {
            pool.submit(index_batch, gdal, batch, container_dir, container_format, timeout): batch
            for batch in batches
        }
        try:
            for future in as_completed(futures):
                results.append(_collect(future, futures[future], log))
        except BaseException:
            # queued batches must not start once the run is abandoned
            pool.shutdown(wait=False, cancel_futures=True)
            raise

    results.sort(key=lambda r: r.batch_id)

    produced = succeeded_containers(results)
    if not produced:
        raise NoOutputError(
            "No index containers were created. Check if input files exist and are valid.",
            hint=f"All {len(batches)} batches failed",
        )

    log.info(f"Created {len(produced)} index containers")
    return results


def succeeded_containers(results: Iterable[BatchResult]) -> list[Path]:
    """Containers of successful batches, in batch_id order."""
    return [
        r.container_path
        for r in sorted(results, key=lambda r: r.batch_id)
        if r.success and r.container_path is not None
    ]
