"""Read-only spatial indexes over ingested points.

An index is bulk-loaded once from a ``PointSet`` and answers axis-aligned
box queries. Boxes are closed: a point on the box edge is returned. Every
point inside a box is returned exactly once.

Two backends are available:

* ``strtree``: shapely's Sort-Tile-Recursive R-tree (default).
* ``kdtree``: scikit-learn's k-d tree under the Chebyshev metric, where a
  ball of radius ``r`` is exactly the square box of half-width ``r``.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np
import shapely
from shapely.strtree import STRtree
from sklearn.neighbors import KDTree

from heatgrid.errors import ConfigurationError
from heatgrid.points import PointSet

DEFAULT_BACKEND = "strtree"


class SpatialIndex(ABC):
    """Abstract base for box-query indexes.

    Attributes:
        points: The indexed points; query results are positions into it.
    """

    backend = "base"

    def __init__(self, points: PointSet):
        self.points = points

    def __len__(self) -> int:
        return len(self.points)

    @abstractmethod
    def query_box(self, xmin: float, ymin: float, xmax: float, ymax: float) -> np.ndarray:
        """Indices of the points inside ``[xmin, xmax] x [ymin, ymax]``, sorted."""

    @abstractmethod
    def query_boxes(self, cx, cy, half: float, half_y: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
        """Run one box query per center.

        Args:
            cx: Box center x coordinates.
            cy: Box center y coordinates, same length as ``cx``.
            half: Half-width of every box along x.
            half_y: Half-height along y; defaults to ``half`` (square boxes).

        Returns:
            Tuple ``(box_idx, point_idx)`` of equal-length integer arrays,
            one pair per (box, point inside box) hit, sorted by box then
            point.
        """

    def points_in_box(self, xmin, ymin, xmax, ymax) -> PointSet:
        idx = self.query_box(xmin, ymin, xmax, ymax)
        return PointSet(self.points.xs[idx], self.points.ys[idx], self.points.values[idx])


def _sorted_pairs(box_idx, point_idx):
    box_idx = np.asarray(box_idx, dtype=np.intp)
    point_idx = np.asarray(point_idx, dtype=np.intp)
    order = np.lexsort((point_idx, box_idx))
    return box_idx[order], point_idx[order]


class STRtreeIndex(SpatialIndex):
    """R-tree over point geometries, bulk-loaded by shapely."""

    backend = "strtree"

    def __init__(self, points: PointSet):
        super().__init__(points)
        self._tree = STRtree(shapely.points(points.xs, points.ys))

    def query_box(self, xmin, ymin, xmax, ymax):
        if len(self.points) == 0:
            return np.empty(0, dtype=np.intp)
        hits = self._tree.query(shapely.box(xmin, ymin, xmax, ymax))
        return np.sort(np.asarray(hits, dtype=np.intp))

    def query_boxes(self, cx, cy, half, half_y=None):
        half_y = half if half_y is None else half_y
        cx = np.asarray(cx, dtype=float)
        cy = np.asarray(cy, dtype=float)
        if len(self.points) == 0 or cx.size == 0:
            empty = np.empty(0, dtype=np.intp)
            return empty, empty
        boxes = shapely.box(cx - half, cy - half_y, cx + half, cy + half_y)
        box_idx, point_idx = self._tree.query(boxes)
        return _sorted_pairs(box_idx, point_idx)


class KDTreeIndex(SpatialIndex):
    """k-d tree using the Chebyshev (L-infinity) metric.

    Ball queries are run with a slightly padded radius and the hits are then
    trimmed to the exact closed box, so edge points are kept regardless of
    rounding in the ball test.
    """

    backend = "kdtree"

    def __init__(self, points: PointSet, leaf_size: int = 40):
        super().__init__(points)
        self._tree = None
        if len(points):
            self._tree = KDTree(
                np.column_stack([points.xs, points.ys]),
                leaf_size=leaf_size,
                metric="chebyshev",
            )

    def _inside(self, idx, xmin, ymin, xmax, ymax):
        xs, ys = self.points.xs[idx], self.points.ys[idx]
        return (xs >= xmin) & (xs <= xmax) & (ys >= ymin) & (ys <= ymax)

    def query_box(self, xmin, ymin, xmax, ymax):
        if self._tree is None or xmax < xmin or ymax < ymin:
            return np.empty(0, dtype=np.intp)
        # a rectangle is the square around its center, trimmed on the long axis
        cx, cy = (xmin + xmax) / 2.0, (ymin + ymax) / 2.0
        half = max(xmax - xmin, ymax - ymin) / 2.0
        idx = self._tree.query_radius(np.array([[cx, cy]]), r=_padded(half))[0]
        keep = self._inside(idx, xmin, ymin, xmax, ymax)
        return np.sort(idx[keep]).astype(np.intp)

    def query_boxes(self, cx, cy, half, half_y=None):
        half_y = half if half_y is None else half_y
        cx = np.asarray(cx, dtype=float)
        cy = np.asarray(cy, dtype=float)
        if self._tree is None or cx.size == 0:
            empty = np.empty(0, dtype=np.intp)
            return empty, empty
        hits = self._tree.query_radius(np.column_stack([cx, cy]), r=_padded(max(half, half_y)))
        counts = np.fromiter((len(h) for h in hits), dtype=np.intp, count=len(hits))
        box_idx = np.repeat(np.arange(len(hits), dtype=np.intp), counts)
        if not counts.sum():
            return box_idx, np.empty(0, dtype=np.intp)
        point_idx = np.concatenate(hits).astype(np.intp)
        bx, by = cx[box_idx], cy[box_idx]
        keep = self._inside(point_idx, bx - half, by - half_y, bx + half, by + half_y)
        return _sorted_pairs(box_idx[keep], point_idx[keep])


def _padded(half: float) -> float:
    return half * (1.0 + 1e-9) + 1e-12


BACKENDS = {
    STRtreeIndex.backend: STRtreeIndex,
    KDTreeIndex.backend: KDTreeIndex,
}


def build_index(points: PointSet, backend: str = DEFAULT_BACKEND) -> SpatialIndex:
    """Bulk-load an index over ``points``.

    Raises:
        ConfigurationError: If ``backend`` is unknown.
    """
    try:
        cls = BACKENDS[backend]
    except KeyError:
        raise ConfigurationError(
            f"Unknown index backend: {backend}. Must be one of: {', '.join(BACKENDS)}"
        ) from None
    return cls(points)
