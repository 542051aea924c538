# =============================================================================
# Tile Index Shared Libraries
# =============================================================================
# This package contains shared libraries for the parallel tile index pipeline.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Tile index shared libraries.

Sub-packages:
- models: Pydantic data models and settings
- spatial_utils: GDAL tile index orchestration
"""

__version__ = "0.1.0"
