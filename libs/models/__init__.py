# =============================================================================
# Data Models Library
# =============================================================================
# Pydantic models and settings for the parallel tile index pipeline.
# =============================================================================

"""
Data models for the tile index pipeline.

This library provides:
- TileIndexConfig: validated run configuration
- Batch / BatchResult / RunSummary: pipeline records
- Configuration models
"""

__version__ = "0.1.0"

# Tile index models
from .tile_index import (
    BATCH_PREFIX,
    BATCH_ID_WIDTH,
    TileIndexConfig,
    Batch,
    BatchResult,
    RunSummary,
    batch_id_for,
    container_extension,
)

# Configuration models
from .config import (
    TileIndexSettings,
)

__all__ = [
    # Tile index models
    "BATCH_PREFIX",
    "BATCH_ID_WIDTH",
    "TileIndexConfig",
    "Batch",
    "BatchResult",
    "RunSummary",
    "batch_id_for",
    "container_extension",
    # Configuration models
    "TileIndexSettings",
]
