"""Configuration management for heatmap runs.

Run-wide defaults live in ``_DEFAULT`` and can be overridden by a JSON file.
Command-line values override both. The resolved values for one run are
collected in a ``HeatmapSettings``.
"""
from __future__ import annotations

import copy
import json
import pathlib
from dataclasses import dataclass
from typing import Optional

from jsonschema import Draft202012Validator

from heatgrid.distance import to_index_units
from heatgrid.errors import ConfigurationError
from heatgrid.index import BACKENDS, DEFAULT_BACKEND
from heatgrid.kernels import ALIASES, DEFAULT_KERNEL, KERNEL_NAMES
from heatgrid.points import DEFAULT_CHUNKSIZE

COMPRESSIONS = ("none", "auto", "gzip")

_DEFAULT = {
    "kernel": DEFAULT_KERNEL,
    "compression": "auto",
    "index": DEFAULT_BACKEND,
    "chunksize": DEFAULT_CHUNKSIZE,
    "progress_every": 100,
    "workers": 1,
}

CONFIG_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "kernel": {"enum": list(KERNEL_NAMES) + list(ALIASES)},
        "compression": {"enum": list(COMPRESSIONS)},
        "index": {"enum": list(BACKENDS)},
        "chunksize": {"type": "integer", "minimum": 1},
        "progress_every": {"type": "integer", "minimum": 0},
        "workers": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}


def validate_config(config: dict) -> None:
    """Check a config dict against ``CONFIG_SCHEMA``.

    Raises:
        ConfigurationError: Describing the first schema violation.
    """
    errors = sorted(Draft202012Validator(CONFIG_SCHEMA).iter_errors(config), key=lambda e: list(e.path))
    if errors:
        err = errors[0]
        where = ".".join(str(p) for p in err.path) or "<root>"
        raise ConfigurationError(f"invalid config at {where}: {err.message}")


def load_config(path: str | None = None) -> dict:
    """Load run defaults, merged with a JSON file when one exists.

    Args:
        path: Path to a JSON config file. If None or the file doesn't exist,
            the built-in defaults are returned.

    Returns:
        dict: Merged configuration; user values override defaults.

    Raises:
        ConfigurationError: If the file is not valid JSON or fails the schema.
    """
    merged = copy.deepcopy(_DEFAULT)
    p = pathlib.Path(path) if path else None
    if p and p.exists():
        try:
            with p.open("r", encoding="utf-8") as f:
                user = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"config {p} is not valid JSON: {e}") from e
        if not isinstance(user, dict):
            raise ConfigurationError(f"config {p} must contain a JSON object")
        validate_config(user)
        merged.update(user)
    return merged


@dataclass(frozen=True)
class HeatmapSettings:
    """Values consumed by the rasterization core for one run.

    ``radius`` and the resolutions are in map units, or metres when
    ``geographic`` is set.
    """

    radius: float
    xres: float
    yres: float
    xmin: Optional[float] = None
    xmax: Optional[float] = None
    ymin: Optional[float] = None
    ymax: Optional[float] = None
    geographic: bool = False
    kernel: str = DEFAULT_KERNEL
    index: str = DEFAULT_BACKEND
    workers: int = 1
    progress_every: int = 100

    def validate(self) -> "HeatmapSettings":
        if not self.radius > 0:
            raise ConfigurationError(f"radius must be positive, got {self.radius}")
        if not (self.xres > 0 and self.yres > 0):
            raise ConfigurationError(f"resolution must be positive, got {self.xres} {self.yres}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        return self

    @property
    def approx_radius(self) -> float:
        """Search radius in index units, used for box queries and padding."""
        return to_index_units(self.radius, self.geographic)

    def index_resolution(self):
        return to_index_units(self.xres, self.geographic), to_index_units(self.yres, self.geographic)
