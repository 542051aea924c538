"""Dagster Definitions - Repository Configuration.

Defines assets, jobs, and resources for the parallel tile index pipeline.
"""

import os

from dagster import Definitions, define_asset_job

from .assets import gdal_health_check
from .jobs import tile_index_job
from .resources import GDALResource, WorkspaceResource


# =============================================================================
# Asset Jobs
# =============================================================================

gdal_health_check_job = define_asset_job(
    "gdal_health_check_job",
    selection=[gdal_health_check],
    description="Health check for gdaltindex, ogrmerge.py and required drivers",
)


# =============================================================================
# Definitions
# =============================================================================

defs = Definitions(
    assets=[
        gdal_health_check,
    ],
    jobs=[
        gdal_health_check_job,
        tile_index_job,
    ],
    resources={
        "gdal": GDALResource(
            gdal_data_path=os.getenv("GDAL_DATA", ""),
            proj_lib_path=os.getenv("PROJ_LIB", ""),
        ),
        "workspace": WorkspaceResource(
            temp_root=os.getenv("TILEINDEX_TEMP_ROOT", ""),
            keep_temp=False,
        ),
    },
)
