"""PNG preview of a computed heatmap."""

from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from heatgrid.extent import GridGeometry
from heatgrid.points import PointSet


def render_preview(
    values: np.ndarray,
    grid: GridGeometry,
    outpath: str,
    points: Optional[PointSet] = None,
    title: str = "Heatmap",
    cmap_name: str = "inferno",
    geographic: bool = False,
) -> None:
    """Save a heatmap image of a ``(height, width)`` value array.

    Row ``j`` of ``values`` is drawn at ``ymin + j * yres`` so the image has
    the same orientation as the map (``origin="lower"``).
    """
    ext = grid.extent
    # cells are sampled at their lower-left corner; draw each as a full pixel
    x1 = ext.xmin + grid.width * grid.xres
    y1 = ext.ymin + grid.height * grid.yres

    fig, ax = plt.subplots(1, 1, figsize=(10, 8))
    img = ax.imshow(
        values, origin="lower",
        extent=(ext.xmin, x1, ext.ymin, y1),
        cmap=plt.get_cmap(cmap_name),
        interpolation="nearest",
    )
    if points is not None and len(points):
        ax.scatter(points.xs, points.ys, s=4, c="white", alpha=0.6, edgecolors="none", zorder=3)
        ax.set_xlim(ext.xmin, x1)
        ax.set_ylim(ext.ymin, y1)

    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Longitude" if geographic else "x")
    ax.set_ylabel("Latitude" if geographic else "y")
    ax.grid(True, alpha=0.25, linestyle="--")

    cbar = plt.colorbar(img, ax=ax, shrink=0.8, aspect=20)
    cbar.set_label("Weighted density", fontsize=12)

    plt.tight_layout(); plt.savefig(outpath, dpi=150, bbox_inches="tight"); plt.close(fig)
