# =============================================================================
# Batch Partitioner - Split a file list into gdaltindex option files
# =============================================================================
# Equivalent to `split -l N -d -a 6 input batch_`: each batch file holds at
# most batch_size lines, bytes are copied verbatim and batch names sort in
# input order.
# =============================================================================

from itertools import islice
from pathlib import Path
from typing import Union

from libs.errors import EmptyInputError
from libs.models import Batch, batch_id_for

__all__ = [
    "count_lines",
    "batch_count",
    "partition_file_list",
]


def count_lines(path: Union[str, Path]) -> int:
    """
    Count lines in a file list.

    A trailing fragment without a newline counts as a line, so a file holding
    "a.tif" (no newline) has one line.

    Args:
        path: File list path

    Returns:
        Number of lines
    """
    count = 0
    with open(path, "rb") as f:
        for _ in f:
            count += 1
    return count


def batch_count(total_lines: int, batch_size: int) -> int:
    """Number of batches needed for total_lines: ceil(total_lines / batch_size)."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if total_lines < 0:
        raise ValueError(f"total_lines must be >= 0, got {total_lines}")
    return (total_lines + batch_size - 1) // batch_size


def partition_file_list(
    input_file: Union[str, Path],
    batch_size: int,
    batch_dir: Union[str, Path],
) -> list[Batch]:
    """
    Split a file list into batch files of at most batch_size lines.

    Batch i holds lines [i*batch_size, min((i+1)*batch_size, total)). The
    batch directory is only created once the input is known to be non-empty.

    Args:
        input_file: File list, one path per line
        batch_size: Maximum lines per batch (>= 1)
        batch_dir: Directory for batch files (created if absent)

    Returns:
        Batches in identifier order

    Raises:
        EmptyInputError: If the file list has zero lines
        ValueError: If batch_size < 1
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    total = count_lines(input_file)
    if total == 0:
        raise EmptyInputError(f"Input file is empty: {input_file}")

    batch_dir = Path(batch_dir)
    batch_dir.mkdir(parents=True, exist_ok=True)

    batches: list[Batch] = []
    with open(input_file, "rb") as src:
        for index in range(batch_count(total, batch_size)):
            batch_id = batch_id_for(index)
            path = batch_dir / batch_id
            written = 0
            with open(path, "wb") as out:
                for line in islice(src, batch_size):
                    out.write(line)
                    written += 1
            batches.append(Batch(batch_id=batch_id, index=index, path=path, line_count=written))

    return batches
