"""Dagster Resources - External Tool and Workspace Access."""

from .gdal_resource import GDALResource, GDALResult
from .workspace_resource import WorkspaceResource

__all__ = [
    "GDALResource",
    "GDALResult",
    "WorkspaceResource",
]
