# =============================================================================
# Tile Index Models
# =============================================================================
# Pydantic models for the parallel tile index pipeline:
# - TileIndexConfig: fully validated run configuration
# - Batch: one list file handed to gdaltindex via --optfile
# - BatchResult: outcome of one gdaltindex invocation
# - RunSummary: outcome of a whole run
# =============================================================================

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator

__all__ = [
    "BATCH_PREFIX",
    "BATCH_ID_WIDTH",
    "TileIndexConfig",
    "Batch",
    "BatchResult",
    "RunSummary",
    "batch_id_for",
    "container_extension",
]

BATCH_PREFIX = "batch_"
BATCH_ID_WIDTH = 6

# Driver name -> file extension for per-batch containers
_CONTAINER_EXTENSIONS = {
    "GPKG": "gpkg",
    "ESRI Shapefile": "shp",
    "FlatGeobuf": "fgb",
    "GeoJSON": "geojson",
    "SQLite": "sqlite",
    "Parquet": "parquet",
}


def batch_id_for(index: int) -> str:
    """
    Build the zero-padded batch identifier for a 0-based batch index.

    Example:
        >>> batch_id_for(12)
        'batch_000012'
    """
    if index < 0:
        raise ValueError(f"batch index must be >= 0, got {index}")
    return f"{BATCH_PREFIX}{index:0{BATCH_ID_WIDTH}d}"


def container_extension(driver: str) -> str:
    """Return the file extension gdaltindex output should carry for a driver."""
    return _CONTAINER_EXTENSIONS.get(driver, driver.lower().replace(" ", "_"))


class TileIndexConfig(BaseModel):
    """
    Validated configuration for one tile index run.

    Built from CLI flags layered over TileIndexSettings. Numeric fields must be
    positive; paths are kept as given.

    Attributes:
        input_file: Text file with one geospatial path per line
        output_file: Merged output path (e.g., index.fgb)
        batch_size: Files per gdaltindex invocation
        jobs: Worker pool size
        temp_dir: Working directory (None = auto-created under temp_root)
        temp_root: Parent for auto-created working directories
        keep_temp: Retain the working directory after the run
        container_format: gdaltindex output driver
        output_format: ogrmerge.py output driver
        timeout_seconds: Per-subprocess timeout (None = wait forever)
        indexer_bin: gdaltindex executable
        merge_bin: ogrmerge.py executable
    """

    input_file: Path = Field(..., description="File list, one path per line")
    output_file: Path = Field(..., description="Merged output file")
    batch_size: PositiveInt = Field(1000, description="Files per batch")
    jobs: PositiveInt = Field(..., description="Parallel gdaltindex invocations")
    temp_dir: Optional[Path] = Field(None, description="Working directory")
    temp_root: Optional[Path] = Field(None, description="Root for auto-created working directories")
    keep_temp: bool = Field(False, description="Keep working directory after completion")
    container_format: str = Field("GPKG", description="Per-batch container driver")
    output_format: str = Field("FlatGeobuf", description="Merged output driver")
    timeout_seconds: Optional[float] = Field(None, description="Per-subprocess timeout in seconds")
    indexer_bin: str = Field("gdaltindex", description="Indexer executable")
    merge_bin: str = Field("ogrmerge.py", description="Merge executable")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Reject zero or negative timeouts; None disables the timeout."""
        if v is not None and v <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        return v

    @field_validator("container_format", "output_format", "indexer_bin", "merge_bin")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Driver and executable names cannot be blank."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()


class Batch(BaseModel):
    """
    One contiguous slice of the file list, materialized as a list file.

    Attributes:
        batch_id: Sortable identifier (e.g., "batch_000003")
        index: 0-based position of the batch
        path: List file passed to gdaltindex --optfile
        line_count: Number of input paths in the batch
    """

    batch_id: str = Field(..., description="Zero-padded batch identifier")
    index: int = Field(..., ge=0, description="0-based batch position")
    path: Path = Field(..., description="Batch list file")
    line_count: int = Field(..., ge=1, description="Paths in this batch")


class BatchResult(BaseModel):
    """
    Outcome of running gdaltindex over one batch.

    container_path is only set when the batch succeeded and the container
    exists on disk.
    """

    batch_id: str
    success: bool
    return_code: int
    container_path: Optional[Path] = None
    stderr: str = ""
    timed_out: bool = False
    duration_seconds: float = 0.0
    error: Optional[str] = None


class RunSummary(BaseModel):
    """Outcome of a complete tile index run."""

    total_files: int
    total_batches: int
    succeeded_batches: int
    failed_batch_ids: list[str] = Field(default_factory=list)
    containers: list[Path] = Field(default_factory=list)
    output_file: Path
    output_size_bytes: int
    work_dir: Optional[Path] = None
    work_dir_kept: bool = False

    @property
    def failed_batches(self) -> int:
        return len(self.failed_batch_ids)
