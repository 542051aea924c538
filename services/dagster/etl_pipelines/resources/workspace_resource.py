# =============================================================================
# Workspace Resource - Run-scoped working directories
# =============================================================================
# Maps a Dagster run_id to the working directory holding batch list files
# and per-batch index containers, and releases it when the run ends.
# =============================================================================

import logging
import shutil
import tempfile
from pathlib import Path

from dagster import ConfigurableResource
from pydantic import Field

from libs.spatial_utils.workdir import BATCH_SUBDIR, CONTAINER_SUBDIR, TEMP_PREFIX

__all__ = ["WorkspaceResource"]

logger = logging.getLogger(__name__)


class WorkspaceResource(ConfigurableResource):
    """
    Dagster resource owning tile index working directories.

    The directory for a run is derived from its run_id, so hooks can locate
    and remove it without op outputs.

    Configuration:
        temp_root: Parent directory for workspaces (default: system temp dir)
        keep_temp: Retain workspaces after the run (debugging)
    """

    temp_root: str = Field(
        "",
        description="Parent directory for run workspaces (empty = system temp dir)",
    )
    keep_temp: bool = Field(
        False,
        description="Keep run workspaces after completion",
    )

    def workdir_for_run(self, run_id: str) -> Path:
        """Return the workspace path for a run (not created)."""
        if not run_id:
            raise ValueError("run_id cannot be empty")
        root = Path(self.temp_root) if self.temp_root else Path(tempfile.gettempdir())
        return root / f"{TEMP_PREFIX}{run_id}"

    def batch_dir(self, run_id: str) -> Path:
        return self.workdir_for_run(run_id) / BATCH_SUBDIR

    def container_dir(self, run_id: str) -> Path:
        return self.workdir_for_run(run_id) / CONTAINER_SUBDIR

    def create(self, run_id: str) -> Path:
        """Create (or reuse) the workspace for a run."""
        path = self.workdir_for_run(run_id)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def release(self, run_id: str) -> bool:
        """
        Remove the workspace for a run unless retention is configured.

        Returns:
            True if the directory was removed
        """
        path = self.workdir_for_run(run_id)
        if self.keep_temp:
            logger.info(f"Keeping temporary directory: {path}")
            return False
        if not path.exists():
            return False
        logger.info(f"Cleaning up temporary directory: {path}")
        shutil.rmtree(path)
        return True
