# =============================================================================
# GDAL Resource - CLI wrapper for tile index operations
# =============================================================================
# Provides a thin, stateless wrapper around the GDAL CLI tools used to build
# tile indexes (gdaltindex, ogrmerge.py). Usable as a Dagster resource or as
# a plain object from the command-line tool.
# =============================================================================

from dataclasses import dataclass
import os
import shutil
import subprocess
from typing import Dict, Optional, Sequence
import logging

from dagster import ConfigurableResource
from pydantic import Field

__all__ = ["GDALResource", "GDALResult"]

logger = logging.getLogger(__name__)

# Return code reported when a command never produced an exit status
TIMEOUT_RETURN_CODE = -1
LAUNCH_FAILURE_RETURN_CODE = 127


@dataclass
class GDALResult:
    """
    Serializable result from GDAL operations.

    Callers branch on ``success``/``return_code`` only; stderr is kept for
    diagnostics.
    """
    success: bool
    command: list[str]
    stdout: str
    stderr: str
    return_code: int
    output_path: Optional[str] = None
    timed_out: bool = False


class GDALResource(ConfigurableResource):
    """
    Dagster resource for the GDAL tile index tools.

    Wraps ``gdaltindex`` (one footprint polygon per raster, written to a
    per-batch container) and ``ogrmerge.py`` (consolidates containers into a
    single layer in another format).

    Configuration:
        indexer_bin: gdaltindex executable (name on PATH or absolute path)
        merge_bin: ogrmerge.py executable
        timeout_seconds: Per-command timeout; 0 disables it
        gdal_data_path: Path to GDAL data files (optional)
        proj_lib_path: Path to PROJ data files (optional)

    Example:
        >>> gdal = GDALResource()
        >>> result = gdal.gdaltindex(
        ...     output_path="/tmp/work/containers/batch_000000.gpkg",
        ...     optfile="/tmp/work/batches/batch_000000",
        ... )
        >>> if not result.success:
        ...     logger.error(f"gdaltindex failed with exit {result.return_code}")
    """

    indexer_bin: str = Field(
        "gdaltindex",
        description="gdaltindex executable (name on PATH or absolute path)",
    )
    merge_bin: str = Field(
        "ogrmerge.py",
        description="ogrmerge.py executable (name on PATH or absolute path)",
    )
    timeout_seconds: float = Field(
        0,
        description="Per-command timeout in seconds (0 = no timeout)",
    )
    gdal_data_path: str = Field(
        "",
        description="Path to GDAL data files (optional)",
    )
    proj_lib_path: str = Field(
        "",
        description="Path to PROJ data files (optional)",
    )

    def _get_env(self) -> Dict[str, str]:
        """Build environment variables for GDAL subprocess calls.

        Returns:
            Copy of the current environment with optional GDAL/PROJ paths.
        """
        env = os.environ.copy()

        if self.gdal_data_path:
            env["GDAL_DATA"] = self.gdal_data_path
        if self.proj_lib_path:
            env["PROJ_LIB"] = self.proj_lib_path

        return env

    def which(self, tool: str) -> Optional[str]:
        """
        Resolve a tool on PATH.

        Args:
            tool: Executable name or path

        Returns:
            Absolute path to the executable, or None if it cannot be found
        """
        return shutil.which(tool)

    def missing_tools(self) -> list[str]:
        """Return the configured executables that cannot be resolved on PATH."""
        return [tool for tool in (self.indexer_bin, self.merge_bin) if self.which(tool) is None]

    def gdaltindex(
        self,
        output_path: str,
        optfile: str,
        output_format: str = "GPKG",
        timeout: Optional[float] = None,
    ) -> GDALResult:
        """
        Build a footprint index for every file listed in an option file.

        Args:
            output_path: Index container to create
            optfile: Text file listing input rasters, one per line
            output_format: OGR driver for the container (default: GPKG)
            timeout: Override for the resource timeout (seconds)

        Returns:
            GDALResult; output_path is set only on success

        Example:
            >>> result = gdal.gdaltindex(
            ...     output_path="/tmp/work/containers/batch_000001.gpkg",
            ...     optfile="/tmp/work/batches/batch_000001",
            ... )
        """
        cmd = [
            self.indexer_bin,
            "-f", output_format,
            output_path,
            "--optfile", optfile,
        ]
        return self._run_command(cmd, output_path, timeout=timeout)

    def ogrmerge(
        self,
        input_paths: Sequence[str],
        output_path: str,
        output_format: str = "FlatGeobuf",
        single_layer: bool = True,
        progress: bool = True,
        layer_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> GDALResult:
        """
        Merge several vector datasets into one output dataset.

        ogrmerge.py refuses to overwrite an existing output; callers remove it
        first.

        Args:
            input_paths: Containers to merge
            output_path: Destination file path
            output_format: OGR driver name (default: FlatGeobuf)
            single_layer: Merge all input layers into one layer (-single)
            progress: Emit a progress bar (-progress)
            layer_name: Output layer name (-nln)
            timeout: Override for the resource timeout (seconds)

        Returns:
            GDALResult with execution details

        Example:
            >>> result = gdal.ogrmerge(
            ...     input_paths=["/tmp/work/containers/batch_000000.gpkg"],
            ...     output_path="/data/index.fgb",
            ... )
        """
        cmd = [self.merge_bin]
        if progress:
            cmd.append("-progress")
        if single_layer:
            cmd.append("-single")
        if layer_name:
            cmd.extend(["-nln", layer_name])
        cmd.extend(["-o", output_path, "-f", output_format])
        cmd.extend(input_paths)

        return self._run_command(cmd, output_path, timeout=timeout)

    def _run_command(
        self,
        cmd: list[str],
        output_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> GDALResult:
        """
        Execute a GDAL command via subprocess.

        Timeouts and launch failures are reported as unsuccessful results
        rather than raised.

        Args:
            cmd: Command and arguments as list
            output_path: Optional path to track as output (for success verification)
            timeout: Seconds before the process is killed (falls back to resource setting)

        Returns:
            GDALResult with execution details, stdout, stderr, and return code
        """
        effective_timeout = timeout if timeout is not None else (self.timeout_seconds or None)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                env=self._get_env(),
                timeout=effective_timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.debug(f"Command timed out after {effective_timeout}s: {cmd[0]}")
            stderr = e.stderr if isinstance(e.stderr, str) else ""
            return GDALResult(
                success=False,
                command=cmd,
                stdout="",
                stderr=stderr or f"timed out after {effective_timeout}s",
                return_code=TIMEOUT_RETURN_CODE,
                output_path=None,
                timed_out=True,
            )
        except OSError as e:
            logger.debug(f"Command could not be started: {cmd[0]}: {e}")
            return GDALResult(
                success=False,
                command=cmd,
                stdout="",
                stderr=str(e),
                return_code=LAUNCH_FAILURE_RETURN_CODE,
                output_path=None,
            )

        return GDALResult(
            success=result.returncode == 0,
            command=cmd,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
            output_path=output_path if result.returncode == 0 else None,
        )

    def run_raw_command(self, cmd: list[str]) -> GDALResult:
        """
        Execute an arbitrary GDAL command via subprocess.

        Used for health checks, version queries, and format listings.

        Example:
            >>> result = gdal.run_raw_command(["gdaltindex", "--version"])
            >>> if result.success:
            ...     print(result.stdout)
        """
        return self._run_command(cmd)
