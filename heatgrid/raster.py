"""Kernel-density rasterization of indexed points.

For every output cell, in row-major order (``j`` then ``i`` ascending), the
engine asks the spatial index for the points inside the box of half-width
``approx_radius`` around the cell center (widened in longitude for
great-circle runs so it never undercuts the radius), measures each candidate
with the run's distance metric and adds ``value * kernel(distance / radius)``
to the cell. Bounded kernels ignore candidates farther than ``radius``;
unbounded kernels take every candidate the box returns.

Cells are evaluated a whole row at a time. Rows are independent, so they can
be computed on a thread pool; they are always emitted in row order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import numpy as np

from heatgrid.config import HeatmapSettings
from heatgrid.distance import DistanceMetric, metric_for
from heatgrid.extent import GridGeometry, resolve_extent, resolve_grid
from heatgrid.index import SpatialIndex, build_index
from heatgrid.kernels import Kernel, get_kernel
from heatgrid.points import BoundsAccumulator, PointSet

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RasterRow:
    """One raster row: cell x positions, the shared y, and accumulated values."""

    j: int
    xs: np.ndarray
    y: float
    values: np.ndarray

    def cells(self) -> Iterator[Tuple[float, float, float]]:
        for x, v in zip(self.xs, self.values):
            yield float(x), self.y, float(v)


class Rasterizer:
    """Evaluates a grid of kernel-weighted sums over a spatial index.

    Args:
        index: Bulk-loaded index over the input points.
        grid: Output cell layout, in index units.
        kernel: Weighting kernel.
        metric: Distance metric (planar or great-circle).
        radius: Kernel radius in metric units (metres in geographic mode).
        approx_radius: Half-width of the index box query in index units;
            must not be smaller than ``radius`` expressed in index units.
        workers: Threads used to evaluate rows.
        progress: Called as ``progress(j, height)`` every ``progress_every``
            emitted rows.
        progress_every: Row interval between progress calls; 0 disables them.
    """

    def __init__(
        self,
        index: SpatialIndex,
        grid: GridGeometry,
        kernel: Kernel,
        metric: DistanceMetric,
        radius: float,
        approx_radius: float,
        workers: int = 1,
        progress: Optional[ProgressCallback] = None,
        progress_every: int = 100,
    ):
        self.index = index
        self.grid = grid
        self.kernel = kernel
        self.metric = metric
        self.radius = float(radius)
        self.approx_radius = float(approx_radius)
        self.workers = max(1, int(workers))
        self.progress = progress
        self.progress_every = progress_every
        self._xs = grid.column_xs()

    def evaluate_row(self, j: int) -> RasterRow:
        """Accumulated values of every cell in row ``j``."""
        xs = self._xs
        y = self.grid.row_y(j)
        width = self.grid.width
        points = self.index.points

        half_x, half_y = self.metric.search_half_widths(y, self.approx_radius)
        cell_idx, point_idx = self.index.query_boxes(xs, np.full(width, y), half_x, half_y)
        px = points.xs[point_idx]
        py = points.ys[point_idx]
        dist, inside = self.metric.within(xs[cell_idx], y, px, py, self.radius)
        values = points.values[point_idx]

        if self.kernel.bounded:
            cell_idx, dist, values = cell_idx[inside], dist[inside], values[inside]

        contrib = values * self.kernel(dist / self.radius)
        sums = np.bincount(cell_idx, weights=contrib, minlength=width).astype(float)
        return RasterRow(j=j, xs=xs, y=y, values=sums)

    def _rows(self) -> Iterator[RasterRow]:
        rows = range(self.grid.height)
        if self.workers == 1:
            return map(self.evaluate_row, rows)
        return self._parallel_rows(rows)

    def _parallel_rows(self, rows) -> Iterator[RasterRow]:
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            # map yields results in submission order
            yield from pool.map(self.evaluate_row, rows)

    def iter_rows(self) -> Iterator[RasterRow]:
        height = self.grid.height
        for row in self._rows():
            if self.progress and self.progress_every and row.j % self.progress_every == 0:
                self.progress(row.j, height)
            yield row

    def iter_cells(self) -> Iterator[Tuple[float, float, float]]:
        """``(posx, posy, value)`` for every cell, row-major."""
        for row in self.iter_rows():
            yield from row.cells()

    def to_array(self) -> np.ndarray:
        """The raster as a ``(height, width)`` array, row ``j`` at index ``j``."""
        out = np.zeros((self.grid.height, self.grid.width), dtype=float)
        for row in self.iter_rows():
            out[row.j] = row.values
        return out


def build_rasterizer(
    points: PointSet,
    bounds: BoundsAccumulator,
    settings: HeatmapSettings,
    progress: Optional[ProgressCallback] = None,
) -> Rasterizer:
    """Index the points and lay out the grid for ``settings``.

    Raises:
        ConfigurationError: If the settings are invalid or the extent cannot
            be derived.
    """
    settings.validate()
    kernel = get_kernel(settings.kernel)
    approx_radius = settings.approx_radius
    extent = resolve_extent(
        bounds,
        approx_radius,
        xmin=settings.xmin,
        xmax=settings.xmax,
        ymin=settings.ymin,
        ymax=settings.ymax,
    )
    xres, yres = settings.index_resolution()
    grid = resolve_grid(extent, xres, yres)
    index = build_index(points, settings.index)
    return Rasterizer(
        index=index,
        grid=grid,
        kernel=kernel,
        metric=metric_for(settings.geographic),
        radius=settings.radius,
        approx_radius=approx_radius,
        workers=settings.workers,
        progress=progress,
        progress_every=settings.progress_every,
    )


def rasterize_points(
    points: PointSet,
    settings: HeatmapSettings,
    bounds: Optional[BoundsAccumulator] = None,
) -> Tuple[GridGeometry, np.ndarray]:
    """Rasterize an in-memory point set.

    Returns:
        Tuple of the grid geometry and the ``(height, width)`` value array.
    """
    if bounds is None:
        bounds = BoundsAccumulator()
        bounds.update(points.xs, points.ys)
    rasterizer = build_rasterizer(points, bounds, settings)
    return rasterizer.grid, rasterizer.to_array()
