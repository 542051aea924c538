"""
Shared pytest fixtures for tile index tests.

Provides file-list builders and a fake GDAL resource that writes containers
and merged outputs without GDAL installed.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Iterable, Mapping, Optional

import pytest

from services.dagster.etl_pipelines.resources.gdal_resource import GDALResult


# =============================================================================
# Fake GDAL Resource
# =============================================================================

class FakeGDAL:
    """
    Stand-in for GDALResource.

    gdaltindex copies the batch list into the container (so tests can see
    which paths went where); ogrmerge concatenates containers into the
    output. Batches named in fail_batches exit 1 and write nothing.
    Batches named in raise_batches raise the mapped exception instead.
    """

    def __init__(
        self,
        fail_batches: Iterable[str] = (),
        raise_batches: Optional[Mapping[str, BaseException]] = None,
        merge_fails: bool = False,
        merge_writes_output: bool = True,
        missing_tools: Iterable[str] = (),
        delay: float = 0.0,
        indexer_bin: str = "gdaltindex",
        merge_bin: str = "ogrmerge.py",
    ):
        self.fail_batches = set(fail_batches)
        self.raise_batches = dict(raise_batches or {})
        self.merge_fails = merge_fails
        self.merge_writes_output = merge_writes_output
        self.missing = set(missing_tools)
        self.delay = delay
        self.indexer_bin = indexer_bin
        self.merge_bin = merge_bin
        self.index_calls: list[dict] = []
        self.merge_calls: list[dict] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def which(self, tool: str) -> Optional[str]:
        return None if tool in self.missing else f"/usr/bin/{tool}"

    def missing_tools(self) -> list[str]:
        return [t for t in (self.indexer_bin, self.merge_bin) if t in self.missing]

    def gdaltindex(self, output_path, optfile, output_format="GPKG", timeout=None):
        cmd = [self.indexer_bin, "-f", output_format, output_path, "--optfile", optfile]
        with self._lock:
            self.index_calls.append({"output_path": output_path, "optfile": optfile, "timeout": timeout})
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if Path(optfile).name in self.raise_batches:
                raise self.raise_batches[Path(optfile).name]
            if Path(optfile).name in self.fail_batches:
                return GDALResult(
                    success=False,
                    command=cmd,
                    stdout="",
                    stderr="ERROR 4: missing.tif: No such file or directory",
                    return_code=1,
                )
            Path(output_path).write_bytes(Path(optfile).read_bytes())
            return GDALResult(
                success=True,
                command=cmd,
                stdout="",
                stderr="",
                return_code=0,
                output_path=output_path,
            )
        finally:
            with self._lock:
                self.active -= 1

    def ogrmerge(
        self,
        input_paths,
        output_path,
        output_format="FlatGeobuf",
        single_layer=True,
        progress=True,
        layer_name=None,
        timeout=None,
    ):
        cmd = [self.merge_bin, "-o", output_path, "-f", output_format, *input_paths]
        self.merge_calls.append({
            "input_paths": list(input_paths),
            "output_path": output_path,
            "output_format": output_format,
            "output_existed": Path(output_path).exists(),
        })
        if self.merge_fails:
            return GDALResult(
                success=False,
                command=cmd,
                stdout="",
                stderr="ERROR 1: Cannot open input",
                return_code=1,
            )
        if self.merge_writes_output:
            with open(output_path, "wb") as out:
                for path in input_paths:
                    out.write(Path(path).read_bytes())
        return GDALResult(
            success=True,
            command=cmd,
            stdout="0...10...20...30...40...50...60...70...80...90...100 - done.",
            stderr="",
            return_code=0,
            output_path=output_path,
        )


@pytest.fixture
def fake_gdal_factory():
    """Return the FakeGDAL class for tests needing custom behaviour."""
    return FakeGDAL


@pytest.fixture
def fake_gdal():
    """FakeGDAL where every call succeeds."""
    return FakeGDAL()


# =============================================================================
# File List Fixtures
# =============================================================================

@pytest.fixture
def write_file_list(tmp_path):
    """Factory writing a file list of n raster paths; returns its path."""

    def _write(n: int, name: str = "file_list.txt", trailing_newline: bool = True) -> Path:
        path = tmp_path / name
        lines = [f"/data/rasters/tile_{i:05d}.tif" for i in range(n)]
        content = "\n".join(lines)
        if lines and trailing_newline:
            content += "\n"
        path.write_text(content)
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers installed by the CLI so they do not outlive capsys."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_gdaltindex_mp", False):
            root.removeHandler(handler)
