"""Point records and CSV ingestion.

Points are read once, in chunks, from a CSV stream whose first line is a
header. Column 0 is x (or longitude), column 1 is y (or latitude) and an
optional data column carries the point's value. The min/max of the
coordinates is accumulated while reading so the extent can be derived
without a second pass over the points.
"""

from __future__ import annotations

import csv
import sys
import warnings
from typing import IO, Iterator, NamedTuple, Optional, Tuple, Union

import numpy as np
import pandas as pd

from heatgrid.errors import ConfigurationError, IngestionError

DEFAULT_CHUNKSIZE = 100_000


class Point(NamedTuple):
    x: float
    y: float
    value: float = 1.0


class PointSet:
    """Immutable column store of ingested points.

    Attributes:
        xs: x coordinates (or longitudes).
        ys: y coordinates (or latitudes).
        values: Per-point weights.
    """

    def __init__(self, xs, ys, values=None):
        xs = np.array(xs, dtype=float).ravel()
        ys = np.array(ys, dtype=float).ravel()
        if values is None:
            values = np.ones_like(xs)
        else:
            values = np.array(values, dtype=float).ravel()
        if not (len(xs) == len(ys) == len(values)):
            raise ValueError("xs, ys and values must have the same length")
        for arr in (xs, ys, values):
            arr.setflags(write=False)
        self.xs = xs
        self.ys = ys
        self.values = values

    @classmethod
    def from_points(cls, points) -> "PointSet":
        points = list(points)
        if not points:
            return cls([], [], [])
        xs, ys, values = zip(*(Point(*p) for p in points))
        return cls(xs, ys, values)

    def __len__(self) -> int:
        return len(self.xs)

    def __iter__(self) -> Iterator[Point]:
        for x, y, v in zip(self.xs, self.ys, self.values):
            yield Point(float(x), float(y), float(v))

    def __getitem__(self, idx: int) -> Point:
        return Point(float(self.xs[idx]), float(self.ys[idx]), float(self.values[idx]))

    def __repr__(self) -> str:
        return f"PointSet(n={len(self)})"


class BoundsAccumulator:
    """Streaming min/max of point coordinates.

    Bounds stay ``None`` until the first point is seen.
    """

    def __init__(self):
        self.xmin: Optional[float] = None
        self.xmax: Optional[float] = None
        self.ymin: Optional[float] = None
        self.ymax: Optional[float] = None
        self.count = 0

    def update(self, xs, ys) -> None:
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        if xs.size == 0:
            return
        self.xmin = _lower(self.xmin, float(xs.min()))
        self.xmax = _upper(self.xmax, float(xs.max()))
        self.ymin = _lower(self.ymin, float(ys.min()))
        self.ymax = _upper(self.ymax, float(ys.max()))
        self.count += int(xs.size)

    @property
    def empty(self) -> bool:
        return self.count == 0

    def as_tuple(self) -> Tuple[Optional[float], Optional[float], Optional[float], Optional[float]]:
        return self.xmin, self.xmax, self.ymin, self.ymax


def _lower(current, candidate):
    return candidate if current is None or candidate < current else current


def _upper(current, candidate):
    return candidate if current is None or candidate > current else current


def _numeric_column(chunk: pd.DataFrame, col: int, label: str, offset: int) -> np.ndarray:
    """Parse one positional column of a chunk, failing on the first bad record."""
    if col >= chunk.shape[1]:
        raise IngestionError(f"record {offset + 1}: missing {label} (column {col})")
    raw = chunk.iloc[:, col]
    parsed = pd.to_numeric(raw, errors="coerce")
    bad = parsed.isna().to_numpy()
    if bad.any():
        pos = int(np.argmax(bad))
        text = raw.iloc[pos]
        if pd.isna(text):
            raise IngestionError(f"record {offset + pos + 1}: missing {label} (column {col})")
        raise IngestionError(
            f"record {offset + pos + 1}: cannot parse {label} (column {col}) from {text!r}"
        )
    return parsed.to_numpy(dtype=float)


def read_points(
    source: Union[str, IO[str]],
    data_column: Optional[int] = None,
    chunksize: int = DEFAULT_CHUNKSIZE,
) -> Tuple[PointSet, BoundsAccumulator]:
    """Read points from a CSV stream.

    The first record is a header and is skipped. Records may have any number
    of fields; only x, y and the data column are read.

    Args:
        source: Path to a CSV file (``.gz`` is decompressed), ``"-"`` for
            stdin, or an open text stream.
        data_column: 0-based column holding each point's value. When None
            every point has value 1.0.
        chunksize: Number of records parsed per chunk.

    Returns:
        Tuple of the ingested ``PointSet`` and the coordinate bounds seen.

    Raises:
        ConfigurationError: If ``data_column`` is negative.
        IngestionError: If the input cannot be read or decoded, a record is
            malformed, or a record lacks x, y or the data column, or one of
            them is not a number. Nothing is returned in that case.
    """
    if data_column is not None and data_column < 0:
        raise ConfigurationError(f"data column must be >= 0, got {data_column}")
    if source == "-":
        source = sys.stdin

    width = 2 if data_column is None else max(2, data_column + 1)
    bounds = BoundsAccumulator()
    xs_parts, ys_parts, value_parts = [], [], []
    offset = 0
    reader = None

    # fields past ``width`` are dropped with a ParserWarning
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        try:
            reader = pd.read_csv(
                source,
                header=None,
                skiprows=1,
                names=list(range(width)),
                index_col=False,
                dtype=object,
                keep_default_na=False,
                engine="python",
                chunksize=chunksize,
            )
            for chunk in reader:
                if chunk.empty:
                    continue
                xs = _numeric_column(chunk, 0, "x", offset)
                ys = _numeric_column(chunk, 1, "y", offset)
                if data_column is None:
                    values = np.ones_like(xs)
                else:
                    values = _numeric_column(chunk, data_column, "data column", offset)
                bounds.update(xs, ys)
                xs_parts.append(xs)
                ys_parts.append(ys)
                value_parts.append(values)
                offset += len(chunk)
        except pd.errors.EmptyDataError:
            return PointSet([], [], []), bounds
        except UnicodeDecodeError as e:
            raise IngestionError(f"input is not valid UTF-8: {e}") from e
        except OSError as e:
            raise IngestionError(f"cannot read input: {e}") from e
        except (ValueError, csv.Error) as e:
            # ParserError, e.g. a quoted field left open at end of input
            raise IngestionError(f"malformed CSV: {e}") from e
        finally:
            if reader is not None:
                reader.close()

    if not xs_parts:
        return PointSet([], [], []), bounds
    points = PointSet(
        np.concatenate(xs_parts),
        np.concatenate(ys_parts),
        np.concatenate(value_parts),
    )
    return points, bounds
