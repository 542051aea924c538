"""Dagster Jobs - Executable Workflows."""

from .tile_index_job import tile_index_job

__all__ = ["tile_index_job"]
