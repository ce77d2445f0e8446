"""Kernel-density heatmaps from point data.

Builds a spatial index over input points, lays out a raster grid over their
extent and evaluates a kernel-weighted sum of nearby points for every cell,
with planar or great-circle distances.

Modules:
    kernels: Kernel weighting functions and their support
    distance: Planar and great-circle distance metrics
    points: Point records and CSV ingestion
    index: Bulk-loaded spatial indexes (shapely STRtree, sklearn KDTree)
    extent: Extent and grid geometry resolution
    raster: Rasterization engine
    output: XYZ grid writer
    config: Run defaults and settings
"""

__version__ = "0.4.0"

from heatgrid.errors import (
    HeatgridError,
    IngestionError,
    ConfigurationError,
    SinkError,
)
from heatgrid.kernels import Kernel, KERNELS, KERNEL_NAMES, get_kernel
from heatgrid.distance import (
    EARTH_RADIUS_M,
    METRES_PER_DEGREE,
    great_circle_distance,
    planar_distance,
    metric_for,
    to_index_units,
)
from heatgrid.points import Point, PointSet, BoundsAccumulator, read_points
from heatgrid.index import SpatialIndex, STRtreeIndex, KDTreeIndex, build_index
from heatgrid.extent import Extent, GridGeometry, resolve_extent, resolve_grid
from heatgrid.config import HeatmapSettings, load_config
from heatgrid.raster import Rasterizer, RasterRow, build_rasterizer, rasterize_points
from heatgrid.output import close_sink, open_sink, write_rows

__all__ = [
    "HeatgridError",
    "IngestionError",
    "ConfigurationError",
    "SinkError",
    "Kernel",
    "KERNELS",
    "KERNEL_NAMES",
    "get_kernel",
    "EARTH_RADIUS_M",
    "METRES_PER_DEGREE",
    "great_circle_distance",
    "planar_distance",
    "metric_for",
    "to_index_units",
    "Point",
    "PointSet",
    "BoundsAccumulator",
    "read_points",
    "SpatialIndex",
    "STRtreeIndex",
    "KDTreeIndex",
    "build_index",
    "Extent",
    "GridGeometry",
    "resolve_extent",
    "resolve_grid",
    "HeatmapSettings",
    "load_config",
    "Rasterizer",
    "RasterRow",
    "build_rasterizer",
    "rasterize_points",
    "open_sink",
    "close_sink",
    "write_rows",
]
