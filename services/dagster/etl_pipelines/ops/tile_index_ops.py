# =============================================================================
# Tile Index Ops - Partition, Index, Merge, Cleanup
# =============================================================================
# Dagster rendition of the parallel tile index pipeline. Each op delegates to
# a core function (testable without Dagster context) which delegates to
# libs.spatial_utils. The run workspace is derived from run_id so the
# failure hook can remove it.
# =============================================================================

import os
from typing import Any, Dict

from dagster import Config, Failure, HookContext, OpExecutionContext, failure_hook, op
from pydantic import Field

from libs.errors import TileIndexError
from libs.models import Batch
from libs.spatial_utils import (
    build_config,
    check_input_file,
    check_tools,
    merge_containers,
    partition_file_list,
    run_batches,
    succeeded_containers,
)


class TileIndexRunConfig(Config):
    """Run config for tile_index_job."""

    input_file: str = Field(description="Text file listing geospatial files, one per line")
    output_file: str = Field(description="Merged output file (e.g., /data/index.fgb)")
    batch_size: int = Field(1000, description="Files per gdaltindex invocation")
    jobs: int = Field(0, description="Parallel gdaltindex invocations (0 = CPU count)")
    container_format: str = Field("GPKG", description="Per-batch container driver")
    output_format: str = Field("FlatGeobuf", description="Merged output driver")
    timeout_seconds: float = Field(0, description="Per-subprocess timeout (0 = none)")


def _to_failure(error: TileIndexError, **metadata) -> Failure:
    return Failure(
        description=str(error),
        metadata={"error_type": type(error).__name__, **metadata},
    )


def _prepare_batches(
    gdal,
    workspace,
    run_config: Dict[str, Any],
    run_id: str,
    log,
) -> Dict[str, Any]:
    """
    Core logic for validating a run and partitioning its file list.

    This function is extracted for easier unit testing without Dagster context.

    Args:
        gdal: GDALResource instance
        workspace: WorkspaceResource instance
        run_config: TileIndexRunConfig values as a dict
        run_id: Dagster run ID
        log: Logger instance (context.log)

    Returns:
        Plan dict with run_id, batch list, container dir and output settings

    Raises:
        ValidationError: If configuration, input file or tools are invalid
        EmptyInputError: If the file list is empty
    """
    timeout = run_config.get("timeout_seconds") or None
    config = build_config({
        "input_file": run_config["input_file"],
        "output_file": run_config["output_file"],
        "batch_size": run_config.get("batch_size", 1000),
        "jobs": run_config.get("jobs") or os.cpu_count() or 1,
        "temp_dir": str(workspace.workdir_for_run(run_id)),
        "keep_temp": workspace.keep_temp,
        "container_format": run_config.get("container_format", "GPKG"),
        "output_format": run_config.get("output_format", "FlatGeobuf"),
        "timeout_seconds": timeout,
        "indexer_bin": gdal.indexer_bin,
        "merge_bin": gdal.merge_bin,
    })
    check_input_file(config.input_file)
    check_tools(gdal, [config.indexer_bin, config.merge_bin])

    workdir = workspace.create(run_id)
    log.info(f"Temp directory: {workdir}")

    batches = partition_file_list(config.input_file, config.batch_size, workspace.batch_dir(run_id))
    total_files = sum(b.line_count for b in batches)
    log.info(f"Total files to process: {total_files}")
    log.info(f"Number of batches: {len(batches)}")

    return {
        "run_id": run_id,
        "batches": [b.model_dump(mode="json") for b in batches],
        "total_files": total_files,
        "container_dir": str(workspace.container_dir(run_id)),
        "jobs": config.jobs,
        "container_format": config.container_format,
        "output_file": str(config.output_file),
        "output_format": config.output_format,
        "timeout_seconds": config.timeout_seconds,
    }


def _index_batches(gdal, plan: Dict[str, Any], log) -> Dict[str, Any]:
    """
    Core logic for running gdaltindex over every planned batch.

    Returns:
        The plan extended with batch results and succeeded container paths

    Raises:
        NoOutputError: If every batch failed
    """
    batches = [Batch(**b) for b in plan["batches"]]
    results = run_batches(
        gdal,
        batches,
        plan["container_dir"],
        jobs=plan["jobs"],
        container_format=plan["container_format"],
        timeout=plan.get("timeout_seconds"),
        log=log,
    )
    failed = [r.batch_id for r in results if not r.success]
    if failed:
        log.warning(f"{len(failed)} of {len(batches)} batches failed: {', '.join(failed)}")

    return {
        **plan,
        "results": [r.model_dump(mode="json") for r in results],
        "containers": [str(p) for p in succeeded_containers(results)],
        "failed_batch_ids": failed,
    }


def _merge_index(gdal, index_result: Dict[str, Any], log) -> Dict[str, Any]:
    """
    Core logic for merging succeeded containers into the final output.

    Returns:
        Summary dict with output path, size and batch counts

    Raises:
        MergeError: If ogrmerge.py fails or leaves no output
    """
    size = merge_containers(
        gdal,
        index_result["containers"],
        index_result["output_file"],
        output_format=index_result["output_format"],
        timeout=index_result.get("timeout_seconds"),
        log=log,
    )
    return {
        "run_id": index_result["run_id"],
        "output_file": index_result["output_file"],
        "output_size_bytes": size,
        "total_files": index_result["total_files"],
        "total_batches": len(index_result["batches"]),
        "succeeded_batches": len(index_result["containers"]),
        "failed_batch_ids": index_result["failed_batch_ids"],
    }


@op(required_resource_keys={"gdal", "workspace"})
def prepare_tile_index_batches(context: OpExecutionContext, config: TileIndexRunConfig) -> dict:
    """
    Validate the run and split its file list into batch list files.

    Args:
        context: Dagster op execution context
        config: TileIndexRunConfig

    Returns:
        Plan dict consumed by index_batches
    """
    try:
        return _prepare_batches(
            gdal=context.resources.gdal,
            workspace=context.resources.workspace,
            run_config=config.model_dump(),
            run_id=context.run_id,
            log=context.log,
        )
    except TileIndexError as e:
        raise _to_failure(e) from e


@op(required_resource_keys={"gdal"})
def index_batches(context: OpExecutionContext, plan: dict) -> dict:
    """Run gdaltindex over all batches on a bounded worker pool."""
    try:
        return _index_batches(context.resources.gdal, plan, context.log)
    except TileIndexError as e:
        raise _to_failure(e, total_batches=len(plan["batches"])) from e


@op(required_resource_keys={"gdal"})
def merge_index_containers(context: OpExecutionContext, index_result: dict) -> dict:
    """Merge succeeded containers into the consolidated output with ogrmerge.py."""
    try:
        summary = _merge_index(context.resources.gdal, index_result, context.log)
    except TileIndexError as e:
        raise _to_failure(e, containers=len(index_result["containers"])) from e
    context.add_output_metadata({
        "output_file": summary["output_file"],
        "output_size_bytes": summary["output_size_bytes"],
        "succeeded_batches": summary["succeeded_batches"],
        "failed_batches": len(summary["failed_batch_ids"]),
    })
    return summary


@op(required_resource_keys={"workspace"})
def cleanup_workspace(context: OpExecutionContext, merge_result: dict) -> None:
    """Remove the run workspace after a successful merge (unless keep_temp)."""
    context.resources.workspace.release(context.run_id)
    context.log.info(f"Processing complete: {merge_result['output_file']}")


@failure_hook(required_resource_keys={"workspace"})
def cleanup_workspace_on_failure(context: HookContext):
    """
    Hook that runs when any tile index op fails.

    Derives the workspace from run_id and removes it so failed runs do not
    leak temp directories.
    """
    try:
        removed = context.resources.workspace.release(context.run_id)
        if removed:
            context.log.info(f"Removed workspace for failed run {context.run_id}")
    except OSError as e:
        context.log.warning(f"Failed to cleanup workspace on failure: {e}")
