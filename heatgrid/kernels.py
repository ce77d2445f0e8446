"""Kernel weighting functions for heatmap accumulation.

Each kernel maps a dimensionless ratio ``u = distance / radius`` to a weight.
Kernels are registered once in ``KERNELS`` together with a flag telling
whether they are bounded (zero weight beyond the radius) or unbounded
(nonzero everywhere).

Reference: https://en.wikipedia.org/wiki/Kernel_(statistics)
"""

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from heatgrid.errors import ConfigurationError

DEFAULT_KERNEL = "quadric"

KERNELS: Dict[str, "Kernel"] = {}
ALIASES = {
    "epanechnikov": "parabolic",
    "biweight": "quadric",
}


@dataclass(frozen=True)
class Kernel:
    """A weighting function together with its support.

    Attributes:
        name: Canonical kernel name.
        func: Weight as a function of ``u``; accepts floats or numpy arrays.
        bounded: True if the weight is defined to be zero once ``|u| > 1``.
    """

    name: str
    func: Callable
    bounded: bool

    def __call__(self, ratio):
        return self.func(ratio)

    def weigh(self, distance, radius: float):
        """Weight of points at ``distance`` from a cell center.

        Bounded kernels give exactly 0 for ``distance > radius``; a point at
        ``distance == radius`` is included.
        """
        distance = np.asarray(distance, dtype=float)
        weights = np.asarray(self.func(distance / radius), dtype=float)
        if self.bounded:
            weights = np.where(distance <= radius, weights, 0.0)
        return weights

    @property
    def outside_radius_possible(self) -> bool:
        return not self.bounded


def register(name: str, bounded: bool):
    def deco(func):
        KERNELS[name] = Kernel(name=name, func=func, bounded=bounded)
        return func
    return deco


def get_kernel(name: str) -> Kernel:
    """Look up a kernel by name or alias.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    key = ALIASES.get(name.lower(), name.lower())
    try:
        return KERNELS[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown kernel: {name}. Must be one of: {', '.join(KERNEL_NAMES)}"
        ) from None


@register("uniform", bounded=True)
def uniform(ratio):
    return np.full_like(np.asarray(ratio, dtype=float), 0.5)


@register("triangular", bounded=True)
def triangular(ratio):
    return 1.0 - np.abs(ratio)


@register("parabolic", bounded=True)
def parabolic(ratio):
    return (3.0 / 4.0) * (1.0 - np.square(ratio))


@register("quadric", bounded=True)
def quadric(ratio):
    return (15.0 / 16.0) * (1.0 - np.square(ratio)) ** 2


@register("triweight", bounded=True)
def triweight(ratio):
    return (35.0 / 32.0) * (1.0 - np.square(ratio)) ** 3


@register("tricube", bounded=True)
def tricube(ratio):
    return (70.0 / 81.0) * (1.0 - np.abs(ratio) ** 3) ** 3


@register("gaussian", bounded=False)
def gaussian(ratio):
    return 1.0 / np.sqrt(2.0 * np.pi) * np.exp(-0.5 * np.square(ratio))


@register("cosine", bounded=True)
def cosine(ratio):
    return (np.pi / 4.0) * np.cos(np.pi * np.asarray(ratio, dtype=float) / 2.0)


@register("logistic", bounded=False)
def logistic(ratio):
    return 1.0 / (np.exp(ratio) + 2.0 + np.exp(-np.asarray(ratio, dtype=float)))


@register("sigmoid", bounded=False)
def sigmoid(ratio):
    return (2.0 / np.pi) * (1.0 / (np.exp(ratio) + np.exp(-np.asarray(ratio, dtype=float))))


KERNEL_NAMES = tuple(KERNELS)
