"""Raster extent and grid geometry.

The extent is the rectangle to rasterize. Each of its four bounds is either
given explicitly or derived from the accumulated min/max of the ingested
points, pushed outward by the approximate search radius so that points just
outside the data range still reach the edge cells.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from heatgrid.errors import ConfigurationError
from heatgrid.points import BoundsAccumulator


@dataclass(frozen=True)
class Extent:
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin


@dataclass(frozen=True)
class GridGeometry:
    """Cell layout of the output raster.

    Cell ``(i, j)`` sits at ``(xmin + i * xres, ymin + j * yres)``.
    """

    extent: Extent
    xres: float
    yres: float
    width: int
    height: int

    @property
    def n_cells(self) -> int:
        return self.width * self.height

    def cell_center(self, i: int, j: int):
        return self.extent.xmin + i * self.xres, self.extent.ymin + j * self.yres

    def row_y(self, j: int) -> float:
        return self.extent.ymin + j * self.yres

    def column_xs(self) -> np.ndarray:
        return self.extent.xmin + np.arange(self.width, dtype=float) * self.xres


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's ``round`` sends halves to the even neighbour; cell counts use the
    conventional rule so that a span of 2.5 cells becomes 3.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _bound(override, observed, shift, name):
    if override is not None:
        return float(override)
    if observed is None:
        raise ConfigurationError(
            f"cannot derive {name}: no points were read and no --{name} was given"
        )
    return observed + shift


def resolve_extent(
    bounds: BoundsAccumulator,
    approx_radius: float,
    xmin: Optional[float] = None,
    xmax: Optional[float] = None,
    ymin: Optional[float] = None,
    ymax: Optional[float] = None,
) -> Extent:
    """Combine explicit bounds with the observed point bounds.

    Args:
        bounds: Min/max accumulated while reading points.
        approx_radius: Search radius in index units; derived bounds are
            expanded outward by it.
        xmin: Explicit lower x bound, used verbatim when given.
        xmax: Explicit upper x bound.
        ymin: Explicit lower y bound.
        ymax: Explicit upper y bound.

    Returns:
        The resolved ``Extent``.

    Raises:
        ConfigurationError: If a bound has neither an override nor observed
            data, or the resulting extent is inverted.
    """
    extent = Extent(
        xmin=_bound(xmin, bounds.xmin, -approx_radius, "xmin"),
        xmax=_bound(xmax, bounds.xmax, approx_radius, "xmax"),
        ymin=_bound(ymin, bounds.ymin, -approx_radius, "ymin"),
        ymax=_bound(ymax, bounds.ymax, approx_radius, "ymax"),
    )
    if extent.xmax < extent.xmin or extent.ymax < extent.ymin:
        raise ConfigurationError(f"extent is inverted: {extent}")
    return extent


def resolve_grid(extent: Extent, xres: float, yres: float) -> GridGeometry:
    """Cell counts for ``extent`` at the given resolution (in extent units)."""
    if not (xres > 0 and yres > 0):
        raise ConfigurationError(f"resolution must be positive, got {xres} {yres}")
    return GridGeometry(
        extent=extent,
        xres=xres,
        yres=yres,
        width=round_half_away(extent.width / xres),
        height=round_half_away(extent.height / yres),
    )
