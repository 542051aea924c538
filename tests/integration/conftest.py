"""Integration test fixtures - require GDAL command-line tools on PATH."""

import shutil
import subprocess
from pathlib import Path

import pytest

REQUIRED_TOOLS = ("gdaltindex", "ogrmerge.py", "gdal_create", "ogrinfo")


def pytest_collection_modifyitems(config, items):
    missing = [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]
    if not missing:
        return
    skip = pytest.mark.skip(reason=f"GDAL tools not installed: {', '.join(missing)}")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def raster_list(tmp_path):
    """Factory creating n tiny GeoTIFFs side by side and a file list naming them."""

    def _make(n: int) -> Path:
        raster_dir = tmp_path / "rasters"
        raster_dir.mkdir(exist_ok=True)
        paths = []
        for i in range(n):
            path = raster_dir / f"tile_{i:03d}.tif"
            subprocess.run(
                [
                    "gdal_create", "-of", "GTiff", "-outsize", "4", "4", "-bands", "1",
                    "-a_srs", "EPSG:4326", "-a_ullr", str(i), "1", str(i + 1), "0",
                    str(path),
                ],
                check=True,
                capture_output=True,
            )
            paths.append(str(path))
        file_list = tmp_path / "file_list.txt"
        file_list.write_text("\n".join(paths) + "\n")
        return file_list

    return _make
