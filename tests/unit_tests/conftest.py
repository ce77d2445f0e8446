"""Pytest fixtures for heatgrid unit tests.

This module provides shared point sets, settings and CSV files for testing
individual modules in isolation.
"""

import pytest

from heatgrid.config import HeatmapSettings
from heatgrid.points import BoundsAccumulator, PointSet


@pytest.fixture
def single_point():
    """One point at the origin with value 3."""
    return PointSet([0.0], [0.0], [3.0])


@pytest.fixture
def scattered_points():
    """Small deterministic cloud of planar points with varied values."""
    return PointSet(
        [0.0, 1.0, 2.5, -1.5, 3.0, 0.5, -0.25, 2.0],
        [0.0, 2.0, -1.0, 0.5, 3.0, 0.5, -2.0, 2.0],
        [1.0, 2.0, 0.5, 4.0, 1.5, 1.0, 3.0, 2.5],
    )


@pytest.fixture
def bounds_of():
    """Factory building a BoundsAccumulator for a PointSet."""
    def _bounds(points):
        acc = BoundsAccumulator()
        acc.update(points.xs, points.ys)
        return acc
    return _bounds


@pytest.fixture
def unit_settings():
    """Uniform kernel, radius 1, resolution 1, extent [-1, 2) on both axes."""
    return HeatmapSettings(
        radius=1.0, xres=1.0, yres=1.0,
        xmin=-1.0, xmax=2.0, ymin=-1.0, ymax=2.0,
        kernel="uniform",
    )


@pytest.fixture
def points_csv(tmp_path):
    """CSV file with a header, three points and a value column."""
    path = tmp_path / "points.csv"
    path.write_text("x,y,weight\n0,0,3\n1.5,-2,1\n-4,2.5,0.5\n", encoding="utf-8")
    return str(path)
