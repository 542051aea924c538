# =============================================================================
# Configuration Models Module
# =============================================================================
# Provides Pydantic Settings models for the tile index pipeline:
# - TileIndexSettings: batch defaults, GDAL tool names and formats
# =============================================================================

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

__all__ = [
    "TileIndexSettings",
]


# =============================================================================
# Tile Index Settings (Batching + GDAL Tools)
# =============================================================================

class TileIndexSettings(BaseSettings):
    """
    Environment defaults for the parallel tile index pipeline.

    Command-line flags override these values. Maps environment variables with
    prefix "TILEINDEX_":
    - TILEINDEX_BATCH_SIZE → batch_size
    - TILEINDEX_JOBS → jobs
    - TILEINDEX_TEMP_ROOT → temp_root
    - TILEINDEX_INDEXER_BIN → indexer_bin
    - TILEINDEX_MERGE_BIN → merge_bin
    - TILEINDEX_CONTAINER_FORMAT → container_format
    - TILEINDEX_OUTPUT_FORMAT → output_format
    - TILEINDEX_COMMAND_TIMEOUT → command_timeout
    - GDAL_DATA → gdal_data_path
    - PROJ_LIB → proj_lib_path

    Attributes:
        batch_size: Files per gdaltindex invocation (default: 1000)
        jobs: Worker pool size (default: None, meaning host CPU count)
        temp_root: Parent for auto-created working directories (default: system temp)
        indexer_bin: Indexer executable name (default: "gdaltindex")
        merge_bin: Merge executable name (default: "ogrmerge.py")
        container_format: Driver for per-batch containers (default: "GPKG")
        output_format: Driver for the merged output (default: "FlatGeobuf")
        command_timeout: Per-subprocess timeout in seconds (default: None)
        gdal_data_path: GDAL data directory forwarded to subprocesses
        proj_lib_path: PROJ data directory forwarded to subprocesses
    """

    batch_size: int = Field(1000, validation_alias="TILEINDEX_BATCH_SIZE", description="Files per batch")
    jobs: Optional[int] = Field(None, validation_alias="TILEINDEX_JOBS", description="Parallel gdaltindex invocations")
    temp_root: Optional[str] = Field(None, validation_alias="TILEINDEX_TEMP_ROOT", description="Root for auto-created temp dirs")
    indexer_bin: str = Field("gdaltindex", validation_alias="TILEINDEX_INDEXER_BIN", description="Indexer executable")
    merge_bin: str = Field("ogrmerge.py", validation_alias="TILEINDEX_MERGE_BIN", description="Merge executable")
    container_format: str = Field("GPKG", validation_alias="TILEINDEX_CONTAINER_FORMAT", description="Per-batch container driver")
    output_format: str = Field("FlatGeobuf", validation_alias="TILEINDEX_OUTPUT_FORMAT", description="Merged output driver")
    command_timeout: Optional[float] = Field(None, validation_alias="TILEINDEX_COMMAND_TIMEOUT", description="Per-subprocess timeout (seconds)")
    gdal_data_path: str = Field("", validation_alias="GDAL_DATA", description="GDAL data directory")
    proj_lib_path: str = Field("", validation_alias="PROJ_LIB", description="PROJ data directory")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated env vars from shared .env files
    )
