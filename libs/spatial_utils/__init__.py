# =============================================================================
# Spatial Utils Library
# =============================================================================
# Orchestration around the GDAL tile index command-line tools.
# =============================================================================

"""
Spatial utilities for the tile index pipeline.

This library provides:
- partition_file_list: split a file list into gdaltindex option files
- run_batches: bounded parallel gdaltindex over batches
- merge_containers: ogrmerge.py consolidation of index containers
- WorkingDirectory: scoped temp storage released on every exit path
- validate_run: configuration and environment checks
- run_pipeline: the whole partition → index → merge flow
"""

from .batching import batch_count, count_lines, partition_file_list
from .merger import format_size, merge_containers
from .runner import container_path_for, index_batch, run_batches, succeeded_containers
from .validation import build_config, check_input_file, check_tools, validate_run
from .workdir import WorkingDirectory
from .pipeline import run_pipeline

__version__ = "0.1.0"

__all__ = [
    "batch_count",
    "count_lines",
    "partition_file_list",
    "format_size",
    "merge_containers",
    "container_path_for",
    "index_batch",
    "run_batches",
    "succeeded_containers",
    "build_config",
    "check_input_file",
    "check_tools",
    "validate_run",
    "WorkingDirectory",
    "run_pipeline",
]
