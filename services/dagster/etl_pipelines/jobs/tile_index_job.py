"""Parallel tile index job (op-based).

Splits a file list into batches, runs gdaltindex over the batches on a
bounded worker pool, merges the per-batch containers with ogrmerge.py and
removes the run workspace.
"""

from dagster import job

from ..ops import (
    cleanup_workspace,
    cleanup_workspace_on_failure,
    index_batches,
    merge_index_containers,
    prepare_tile_index_batches,
)


@job(
    name="tile_index_job",
    description="Builds a consolidated FlatGeobuf footprint index from a list of rasters using parallel gdaltindex batches",
    hooks={cleanup_workspace_on_failure},
)
def tile_index_job():
    """
    Tile index job.

    Pipeline flow:
    1. prepare_tile_index_batches: Validates config and tools, writes batch list files
    2. index_batches: Runs gdaltindex per batch (partial failures tolerated)
    3. merge_index_containers: Merges succeeded containers with ogrmerge.py
    4. cleanup_workspace: Removes the run workspace

    Any op failure triggers cleanup_workspace_on_failure.
    """
    plan = prepare_tile_index_batches()
    index_result = index_batches(plan)
    merge_result = merge_index_containers(index_result)
    cleanup_workspace(merge_result)
