"""Assets for the tile index pipeline."""

from .health_checks import gdal_health_check

__all__ = [
    "gdal_health_check",
]
