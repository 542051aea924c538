"""Dagster Ops - Reusable Computation Units."""

from .tile_index_ops import (
    TileIndexRunConfig,
    prepare_tile_index_batches,
    index_batches,
    merge_index_containers,
    cleanup_workspace,
    cleanup_workspace_on_failure,
)

__all__ = [
    "TileIndexRunConfig",
    "prepare_tile_index_batches",
    "index_batches",
    "merge_index_containers",
    "cleanup_workspace",
    "cleanup_workspace_on_failure",
]
