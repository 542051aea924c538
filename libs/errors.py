# =============================================================================
# Tile Index Errors
# =============================================================================
# Exception hierarchy for the parallel tile index pipeline.
# Everything except BatchFailure is fatal and propagates to the entry point.
# =============================================================================

"""Exception hierarchy for the tile index pipeline."""

from typing import Optional

__all__ = [
    "TileIndexError",
    "UsageError",
    "ValidationError",
    "EmptyInputError",
    "BatchFailure",
    "NoOutputError",
    "MergeError",
]


class TileIndexError(Exception):
    """Base exception for all tile index errors."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class UsageError(TileIndexError):
    """Missing or unknown command-line arguments."""


class ValidationError(TileIndexError):
    """Invalid configuration, missing input file, or missing GDAL tools."""


class EmptyInputError(TileIndexError):
    """The file list contains zero lines."""


class BatchFailure(TileIndexError):
    """
    A single gdaltindex invocation failed.

    Raised and caught inside the batch runner; never fatal on its own.
    """

    def __init__(self, message: str, *, result=None) -> None:
        super().__init__(message)
        self.result = result


class NoOutputError(TileIndexError):
    """Every batch failed, so there is nothing to merge."""


class MergeError(TileIndexError):
    """ogrmerge.py failed or did not produce the output file."""
