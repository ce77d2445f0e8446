"""Unit tests for heatgrid.index module.

Both backends are run through the same checks and compared against a
brute-force scan of the points.
"""

import numpy as np
import pytest

from heatgrid.errors import ConfigurationError
from heatgrid.index import BACKENDS, KDTreeIndex, STRtreeIndex, build_index
from heatgrid.points import PointSet


@pytest.fixture
def grid_points():
    """Points on the integer lattice [0, 4] x [0, 4]."""
    xs, ys = np.meshgrid(np.arange(5.0), np.arange(5.0))
    return PointSet(xs.ravel(), ys.ravel(), np.arange(25.0))


@pytest.fixture
def random_points():
    """Reproducible random cloud."""
    rng = np.random.default_rng(42)
    return PointSet(rng.uniform(-10, 10, 500), rng.uniform(-5, 5, 500), rng.uniform(0, 2, 500))


def brute_force(points, xmin, ymin, xmax, ymax):
    keep = (points.xs >= xmin) & (points.xs <= xmax) & (points.ys >= ymin) & (points.ys <= ymax)
    return np.flatnonzero(keep)


@pytest.mark.parametrize("backend", sorted(BACKENDS))
class TestQueryBox:
    """Test suite for single box queries on every backend."""

    def test_closed_box(self, backend, grid_points):
        """Test points on the box edges are returned."""
        index = build_index(grid_points, backend)
        idx = index.query_box(1.0, 1.0, 2.0, 2.0)
        got = sorted(zip(grid_points.xs[idx], grid_points.ys[idx]))
        assert got == [(1.0, 1.0), (1.0, 2.0), (2.0, 1.0), (2.0, 2.0)]

    def test_rectangle(self, backend, grid_points):
        """Test a non-square box."""
        index = build_index(grid_points, backend)
        idx = index.query_box(0.5, -1.0, 3.5, 0.5)
        assert sorted(grid_points.xs[idx].tolist()) == [1.0, 2.0, 3.0]

    def test_matches_brute_force(self, backend, random_points):
        """Test no false negatives or positives against a full scan."""
        index = build_index(random_points, backend)
        for box in [(-1.0, -1.0, 1.0, 1.0), (-10.0, -5.0, 10.0, 5.0), (3.0, 0.0, 7.5, 0.2)]:
            np.testing.assert_array_equal(index.query_box(*box), brute_force(random_points, *box))

    def test_empty_result(self, backend, grid_points):
        """Test a box away from every point."""
        index = build_index(grid_points, backend)
        assert index.query_box(10.0, 10.0, 11.0, 11.0).size == 0

    def test_empty_index(self, backend):
        """Test queries on an index without points."""
        index = build_index(PointSet([], [], []), backend)
        assert len(index) == 0
        assert index.query_box(0.0, 0.0, 1.0, 1.0).size == 0
        box_idx, point_idx = index.query_boxes([0.0], [0.0], 1.0)
        assert box_idx.size == 0 and point_idx.size == 0

    def test_points_in_box(self, backend, grid_points):
        """Test the subset carries values along."""
        index = build_index(grid_points, backend)
        subset = index.points_in_box(3.5, 3.5, 4.5, 4.5)
        assert list(subset) == [(4.0, 4.0, 24.0)]


@pytest.mark.parametrize("backend", sorted(BACKENDS))
class TestQueryBoxes:
    """Test suite for batched square-box queries."""

    def test_pairs_match_single_queries(self, backend, random_points):
        """Test each batched hit list equals the single query for that box."""
        index = build_index(random_points, backend)
        cx = np.array([-5.0, 0.0, 2.5, 9.0])
        cy = np.array([0.0, 1.0, -2.0, 4.5])
        half = 1.5
        box_idx, point_idx = index.query_boxes(cx, cy, half)
        for k in range(len(cx)):
            expected = brute_force(random_points, cx[k] - half, cy[k] - half, cx[k] + half, cy[k] + half)
            np.testing.assert_array_equal(point_idx[box_idx == k], expected)

    def test_sorted_by_box(self, backend, grid_points):
        """Test hits are ordered by box index."""
        index = build_index(grid_points, backend)
        box_idx, _ = index.query_boxes([4.0, 0.0, 2.0], [4.0, 0.0, 2.0], 1.0)
        assert np.all(np.diff(box_idx) >= 0)
        assert np.bincount(box_idx).tolist() == [4, 4, 9]


class TestBuildIndex:
    """Test suite for the backend factory."""

    def test_default_backend(self, grid_points):
        """Test the default is the STR R-tree."""
        assert isinstance(build_index(grid_points), STRtreeIndex)

    def test_kdtree_backend(self, grid_points):
        """Test selecting the k-d tree."""
        assert isinstance(build_index(grid_points, "kdtree"), KDTreeIndex)

    def test_unknown_backend(self, grid_points):
        """Test unknown backends raise a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown index backend"):
            build_index(grid_points, "quadtree")
