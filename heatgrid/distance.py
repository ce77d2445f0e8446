"""Distance metrics between cell centers and candidate points.

Two modes are supported and chosen once per run:

* planar: Euclidean distance in the input's own units.
* geographic: coordinates are (longitude, latitude) in degrees and distances
  are great-circle metres on a sphere of radius ``EARTH_RADIUS_M``.

In geographic mode the spatial index still works in raw degrees, so radius
and resolution values are converted with the fixed ``METRES_PER_DEGREE``
approximation to size index boxes and the grid. Weights always use the exact
great-circle distance.
"""

import numpy as np

EARTH_RADIUS_M = 6_371_000.0
METRES_PER_DEGREE = 110_000.0


def to_index_units(value: float, geographic: bool) -> float:
    """Convert a metre value to degrees in geographic mode, else unchanged.

    Example:
        >>> to_index_units(110_000.0, True)
        1.0
        >>> to_index_units(5.0, False)
        5.0
    """
    if geographic:
        return value / METRES_PER_DEGREE
    return value


def planar_distance_sq(x1, y1, x2, y2):
    """Squared Euclidean distance; vectorised over numpy arrays."""
    return np.square(np.subtract(x1, x2)) + np.square(np.subtract(y1, y2))


def planar_distance(x1, y1, x2, y2):
    return np.sqrt(planar_distance_sq(x1, y1, x2, y2))


def great_circle_distance(lon1, lat1, lon2, lat2):
    """Great-circle distance in metres between (lon, lat) degree pairs.

    Uses the chord length between the two points on the unit sphere,
    ``2 * asin(chord / 2)``, which stays accurate for small separations.

    Args:
        lon1: Longitude of the first point(s) in degrees.
        lat1: Latitude of the first point(s) in degrees.
        lon2: Longitude of the second point(s) in degrees.
        lat2: Latitude of the second point(s) in degrees.

    Returns:
        Distance in metres, a float or an array matching the broadcast inputs.

    Example:
        >>> round(float(great_circle_distance(0.0, 0.0, 0.0, 1.0)))
        111195
    """
    dlon = np.radians(np.subtract(lon1, lon2))
    th1 = np.radians(lat1)
    th2 = np.radians(lat2)

    dz = np.sin(th1) - np.sin(th2)
    dx = np.cos(dlon) * np.cos(th1) - np.cos(th2)
    dy = np.sin(dlon) * np.cos(th1)
    chord = np.sqrt(dx * dx + dy * dy + dz * dz)
    # rounding can push chord / 2 a hair past 1 for antipodal points
    return 2.0 * np.arcsin(np.minimum(chord / 2.0, 1.0)) * EARTH_RADIUS_M


class DistanceMetric:
    """Distance from one cell center to many candidate points."""

    name = "base"
    geographic = False

    def distance(self, px: float, py: float, xs, ys):
        raise NotImplementedError

    def within(self, px: float, py: float, xs, ys, radius: float):
        """Distances and a mask of candidates no farther than ``radius``."""
        d = self.distance(px, py, xs, ys)
        return d, d <= radius

    def search_half_widths(self, py: float, approx_radius: float):
        """Half-widths ``(x, y)`` of the index box around a center at ``py``."""
        return approx_radius, approx_radius


class PlanarMetric(DistanceMetric):
    name = "planar"
    geographic = False

    def distance(self, px, py, xs, ys):
        return planar_distance(xs, ys, px, py)

    def within(self, px, py, xs, ys, radius):
        # membership is decided on squared distances; roots are only
        # taken for the ratio handed to the kernel
        d_sq = planar_distance_sq(xs, ys, px, py)
        return np.sqrt(d_sq), d_sq <= radius * radius


class GreatCircleMetric(DistanceMetric):
    name = "great_circle"
    geographic = True

    def distance(self, px, py, xs, ys):
        return great_circle_distance(xs, ys, px, py)

    def search_half_widths(self, py, approx_radius):
        """Widen the longitude half-width so the box still covers the radius.

        A degree of longitude shrinks by ``cos(latitude)``; the box uses the
        latitude of its poleward edge. Boxes reaching a pole span all
        longitudes.
        """
        edge = min(90.0, abs(py) + approx_radius)
        c = np.cos(np.radians(edge))
        if c <= approx_radius / 180.0:
            return 180.0, approx_radius
        return float(min(180.0, approx_radius / c)), approx_radius


def metric_for(geographic: bool) -> DistanceMetric:
    return GreatCircleMetric() if geographic else PlanarMetric()
