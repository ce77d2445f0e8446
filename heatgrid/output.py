"""XYZ grid output.

Cells are written as CSV rows ``x,y,z`` after a header row, either to a
file, a gzip-compressed file or stdout.
"""

import csv
import gzip
import io
import sys
from typing import IO, Iterable, Tuple

from heatgrid.errors import SinkError

HEADER = ("x", "y", "z")


def wants_gzip(path: str, compression: str) -> bool:
    if path == "-":
        return False
    if compression == "gzip":
        return True
    if compression == "auto":
        return path.endswith(".gz")
    if compression == "none":
        return False
    raise SinkError(f"unknown compression: {compression}")


def open_sink(path: str, compression: str = "auto") -> IO[str]:
    """Open the output destination as a text stream.

    Args:
        path: Output file, or ``"-"`` for stdout.
        compression: ``"gzip"`` always compresses, ``"none"`` never does and
            ``"auto"`` compresses when ``path`` ends in ``.gz``. Ignored for
            stdout.

    Raises:
        SinkError: If the destination cannot be opened.
    """
    if path == "-":
        return sys.stdout
    try:
        if wants_gzip(path, compression):
            return io.TextIOWrapper(gzip.open(path, "wb"), encoding="utf-8", newline="")
        return open(path, "w", encoding="utf-8", newline="")
    except OSError as e:
        raise SinkError(f"cannot open {path}: {e}") from e


def format_value(value: float) -> str:
    """Shortest text that reads back as the same float."""
    return repr(float(value))


def write_rows(sink: IO[str], cells: Iterable[Tuple[float, float, float]]) -> int:
    """Write the header and one row per cell.

    Rows are written as they arrive; on failure whatever was already written
    stays in the sink.

    Returns:
        Number of cell rows written.

    Raises:
        SinkError: If a write fails.
    """
    writer = csv.writer(sink, lineterminator="\n")
    n = 0
    try:
        writer.writerow(HEADER)
        for x, y, z in cells:
            writer.writerow((format_value(x), format_value(y), format_value(z)))
            n += 1
        sink.flush()
    except OSError as e:
        raise SinkError(f"write failed after {n} rows: {e}") from e
    return n


def close_sink(sink: IO[str]) -> None:
    """Close a sink opened by ``open_sink``; stdout is left open.

    Raises:
        SinkError: If closing fails, e.g. while gzip writes its trailer.
    """
    if sink is sys.stdout:
        return
    try:
        sink.close()
    except OSError as e:
        raise SinkError(f"close failed: {e}") from e
