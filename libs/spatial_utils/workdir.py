# =============================================================================
# Working Directory - Scoped temp storage for a tile index run
# =============================================================================
# Holds batch list files and per-batch index containers. Removal happens in
# __exit__, so every exit path (success, error, interrupt) cleans up unless
# the operator asked to keep the directory.
# =============================================================================

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

__all__ = [
    "WorkingDirectory",
    "TEMP_PREFIX",
    "BATCH_SUBDIR",
    "CONTAINER_SUBDIR",
]

TEMP_PREFIX = "gdaltindex_mp."
BATCH_SUBDIR = "batches"
CONTAINER_SUBDIR = "containers"

logger = logging.getLogger(__name__)


class WorkingDirectory:
    """
    Context manager owning the working directory of one run.

    Args:
        path: Directory to use (created if absent). None creates a fresh
            directory under temp_root.
        keep: Leave the directory in place on exit
        temp_root: Parent for auto-created directories (default: system temp)
        log: Logger (defaults to this module's logger)

    Example:
        >>> with WorkingDirectory(keep=False) as work:
        ...     batches = partition_file_list("files.txt", 1000, work.batch_dir)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        keep: bool = False,
        temp_root: Optional[Union[str, Path]] = None,
        log=None,
    ):
        self._requested = Path(path) if path else None
        self.keep = keep
        self.temp_root = Path(temp_root) if temp_root else None
        self.log = log or logger
        self.path: Optional[Path] = None

    @property
    def batch_dir(self) -> Path:
        return self._require_path() / BATCH_SUBDIR

    @property
    def container_dir(self) -> Path:
        return self._require_path() / CONTAINER_SUBDIR

    def _require_path(self) -> Path:
        if self.path is None:
            raise RuntimeError("WorkingDirectory has not been entered")
        return self.path

    def __enter__(self) -> "WorkingDirectory":
        if self._requested is not None:
            self._requested.mkdir(parents=True, exist_ok=True)
            self.path = self._requested
        else:
            if self.temp_root is not None:
                self.temp_root.mkdir(parents=True, exist_ok=True)
            self.path = Path(
                tempfile.mkdtemp(
                    prefix=TEMP_PREFIX,
                    dir=str(self.temp_root) if self.temp_root else None,
                )
            )
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.cleanup()
        return False

    def cleanup(self) -> None:
        """Remove the directory unless retention was requested."""
        if self.path is None:
            return
        if self.keep:
            self.log.info(f"Keeping temporary directory: {self.path}")
            return
        if self.path.is_dir():
            self.log.info(f"Cleaning up temporary directory: {self.path}")
            shutil.rmtree(self.path, ignore_errors=False)
