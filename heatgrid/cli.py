#!/usr/bin/env python3
"""Create heatmaps from CSV point files.

Reads x/y (or lon/lat) points, optionally with a value column, and writes an
XYZ grid of kernel-weighted sums.

Usage:
    heatgrid -i points.csv -o heat.xyz.gz -r 500 -R 100 100
    heatgrid -i - -o - -r 2000 -R 250 250 --assume-lat-lon --algorithm gaussian
    python -m heatgrid -i points.csv -o heat.xyz -r 1 -R 1 1 --xmin 0 --xmax 10
"""

import argparse
import sys
from typing import List, Optional

import numpy as np

from heatgrid import __version__
from heatgrid.config import COMPRESSIONS, HeatmapSettings, load_config
from heatgrid.errors import HeatgridError
from heatgrid.index import BACKENDS
from heatgrid.kernels import ALIASES, KERNEL_NAMES
from heatgrid.output import close_sink, open_sink, write_rows
from heatgrid.points import read_points
from heatgrid.raster import build_rasterizer


class _Reporter:
    """Tagged status messages on stderr; stdout may carry the grid."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def info(self, msg: str) -> None:
        if not self.quiet:
            print(f"[INFO] {msg}", file=sys.stderr)

    def warn(self, msg: str) -> None:
        print(f"[WARN] {msg}", file=sys.stderr)

    def error(self, msg: str) -> None:
        print(f"[ERROR] {msg}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heatgrid",
        description="Create heatmaps from input CSV files",
    )
    parser.add_argument("-i", "--input", required=True, metavar="INPUT.csv/-",
                        help="Input CSV file (- to read from stdin)")
    parser.add_argument("-o", "--output", required=True, metavar="OUTPUT.xyz[.gz]/-",
                        help="Output filename XYZ as grid file (- to write to stdout)")
    parser.add_argument("-r", "--radius", type=float, required=True, metavar="RADIUS",
                        help="Radius value for heatmap (map units)")
    parser.add_argument("-R", "--res", type=float, nargs=2, required=True, metavar=("XRES", "YRES"),
                        help="Resolution of image (map units per pixel)")
    parser.add_argument("-d", "--data-column", type=int, default=None, metavar="COLUMN_NUMBER",
                        help="Column (0-based) as the value at that point. Otherwise all points equal.")
    for bound in ("xmin", "xmax", "ymin", "ymax"):
        parser.add_argument(f"--{bound}", type=float, default=None,
                            help=f"Use this as the {bound} of the image rather than use {bound} of data")
    parser.add_argument("--assume-lat-lon", action="store_true",
                        help="Input coordinates are treated as lon lat, but all measurements are done "
                             "with great circle distance in metre. Radius & res is in metres")
    parser.add_argument("--algorithm", default=None,
                        choices=list(KERNEL_NAMES) + list(ALIASES),
                        help="Which kernel to use (default: quadric, or the config file's kernel)")
    parser.add_argument("-c", "--compression", default=None, choices=COMPRESSIONS,
                        help="Should the output file be compressed? (default: auto)")
    parser.add_argument("--config", default=None,
                        help="JSON file with run defaults")
    parser.add_argument("--index", default=None, choices=list(BACKENDS),
                        help="Spatial index backend (default: strtree)")
    parser.add_argument("--workers", type=int, default=None,
                        help="Threads used to compute raster rows (default: 1)")
    parser.add_argument("--preview", default=None, metavar="PNG",
                        help="Also save a PNG rendering of the heatmap")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only print warnings and errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(args: argparse.Namespace, report: _Reporter) -> int:
    """Execute one heatmap run; returns the number of cells written."""
    config = load_config(args.config)

    report.info(f"Reading points from {args.input}")
    points, bounds = read_points(args.input, data_column=args.data_column,
                                 chunksize=config["chunksize"])
    report.info(f"Read in {len(points)} points")

    settings = HeatmapSettings(
        radius=args.radius,
        xres=args.res[0],
        yres=args.res[1],
        xmin=args.xmin,
        xmax=args.xmax,
        ymin=args.ymin,
        ymax=args.ymax,
        geographic=args.assume_lat_lon,
        kernel=args.algorithm or config["kernel"],
        index=args.index or config["index"],
        workers=args.workers if args.workers is not None else config["workers"],
        progress_every=config["progress_every"],
    )
    rasterizer = build_rasterizer(
        points, bounds, settings,
        progress=lambda j, height: report.info(f"{j} of {height} done"),
    )
    grid = rasterizer.grid
    report.info(f"Grid {grid.width}x{grid.height} cells, kernel {rasterizer.kernel.name}")

    preview = None
    if args.preview:
        preview = np.zeros((grid.height, grid.width), dtype=float)

    def cells():
        for row in rasterizer.iter_rows():
            if preview is not None:
                preview[row.j] = row.values
            yield from row.cells()

    compression = args.compression or config["compression"]
    sink = open_sink(args.output, compression)
    report.info(f"Saving to {args.output}")
    try:
        n = write_rows(sink, cells())
    finally:
        close_sink(sink)

    if preview is not None:
        if grid.n_cells == 0:
            report.warn("Empty grid; skipping preview")
        else:
            from heatgrid.preview import render_preview
            render_preview(preview, grid, args.preview, points=points,
                           title=f"Heatmap ({rasterizer.kernel.name})",
                           geographic=settings.geographic)
            report.info(f"Saved preview {args.preview}")

    report.info("finished")
    return n


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``heatgrid`` command.

    Raises:
        SystemExit: With status 1 when the run fails at any stage.
    """
    args = build_parser().parse_args(argv)
    report = _Reporter(quiet=args.quiet)
    try:
        run(args, report)
    except HeatgridError as e:
        report.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
