# =============================================================================
# Container Merger - Consolidate index containers with ogrmerge.py
# =============================================================================

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from libs.errors import MergeError, NoOutputError

__all__ = [
    "format_size",
    "merge_containers",
]

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 2000


def format_size(num_bytes: int) -> str:
    """
    Human-readable size in the style of `du -h`.

    Example:
        >>> format_size(1536)
        '1.5K'
        >>> format_size(512)
        '512B'
    """
    if num_bytes < 0:
        raise ValueError("size cannot be negative")
    if num_bytes < 1024:
        return f"{num_bytes}B"
    size = float(num_bytes)
    for unit in ("K", "M", "G", "T"):
        size /= 1024
        if size < 1024:
            break
    return f"{size:.1f}{unit}"


def merge_containers(
    gdal,
    containers: Sequence[Union[str, Path]],
    output_file: Union[str, Path],
    output_format: str = "FlatGeobuf",
    timeout: Optional[float] = None,
    log=None,
) -> int:
    """
    Merge index containers into a single-layer output file.

    Removes any existing output first (ogrmerge.py does not overwrite) and
    creates the output's parent directory.

    Args:
        gdal: GDALResource (or compatible object with ogrmerge())
        containers: Succeeded index containers
        output_file: Final output path
        output_format: OGR driver for the output
        timeout: Per-subprocess timeout in seconds
        log: Logger

    Returns:
        Output file size in bytes

    Raises:
        NoOutputError: If there are no containers to merge
        MergeError: If the output path cannot be replaced, or ogrmerge.py fails
            or leaves no output file
    """
    log = log or logger
    if not containers:
        raise NoOutputError("No index containers to merge")

    output_file = Path(output_file)
    try:
        if output_file.exists():
            output_file.unlink()
        output_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise MergeError(f"Cannot write output file {output_file}: {e}") from e

    log.info(f"Merging {len(containers)} index containers into final {output_format} file...")

    result = gdal.ogrmerge(
        input_paths=[str(c) for c in containers],
        output_path=str(output_file),
        output_format=output_format,
        single_layer=True,
        timeout=timeout,
    )

    if not result.success:
        reason = "timed out" if result.timed_out else f"exit {result.return_code}"
        stderr_tail = (result.stderr or "").strip()[-_STDERR_TAIL_CHARS:]
        raise MergeError(f"ogrmerge.py failed ({reason}): {stderr_tail}")

    if not output_file.is_file():
        raise MergeError(f"Failed to create output file: {output_file}")

    size = output_file.stat().st_size
    log.info(f"Successfully created: {output_file}")
    log.info(f"Output file size: {format_size(size)}")
    return size
