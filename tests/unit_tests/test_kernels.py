"""Unit tests for heatgrid.kernels module."""

import math

import numpy as np
import pytest

from heatgrid.errors import ConfigurationError
from heatgrid.kernels import KERNEL_NAMES, KERNELS, get_kernel

BOUNDED = ["uniform", "triangular", "parabolic", "quadric", "triweight", "tricube", "cosine"]
UNBOUNDED = ["gaussian", "logistic", "sigmoid"]


class TestKernelFormulas:
    """Test suite for the kernel weighting functions.

    Checks each kernel against its closed form at a few ratios.
    """

    @pytest.mark.parametrize("name,u,expected", [
        ("uniform", 0.7, 0.5),
        ("triangular", -0.25, 0.75),
        ("parabolic", 0.5, 0.75 * 0.75),
        ("quadric", 0.5, (15 / 16) * 0.75 ** 2),
        ("triweight", 0.5, (35 / 32) * 0.75 ** 3),
        ("tricube", 0.5, (70 / 81) * (1 - 0.125) ** 3),
        ("gaussian", 1.0, math.exp(-0.5) / math.sqrt(2 * math.pi)),
        ("cosine", 0.5, (math.pi / 4) * math.cos(math.pi / 4)),
        ("logistic", 1.0, 1 / (math.e + 2 + 1 / math.e)),
        ("sigmoid", 1.0, (2 / math.pi) / (math.e + 1 / math.e)),
    ])
    def test_value(self, name, u, expected):
        """Test kernel value against the closed-form formula."""
        assert float(get_kernel(name)(u)) == pytest.approx(expected)

    def test_vectorised(self):
        """Test kernels accept arrays and keep their shape."""
        u = np.linspace(-1.0, 1.0, 7)
        for kernel in KERNELS.values():
            out = kernel(u)
            assert np.shape(out) == u.shape

    def test_all_kernels_registered(self):
        """Test that all ten kernels are available."""
        assert set(KERNEL_NAMES) == set(BOUNDED + UNBOUNDED)


class TestKernelSupport:
    """Test suite for the bounded/unbounded classification."""

    @pytest.mark.parametrize("name", BOUNDED)
    def test_bounded_flag(self, name):
        """Test bounded kernels are flagged as such."""
        assert get_kernel(name).bounded
        assert not get_kernel(name).outside_radius_possible

    @pytest.mark.parametrize("name", UNBOUNDED)
    def test_unbounded_flag(self, name):
        """Test unbounded kernels allow contributions past the radius."""
        assert not get_kernel(name).bounded
        assert get_kernel(name).outside_radius_possible

    @pytest.mark.parametrize("name", BOUNDED)
    def test_bounded_weigh_at_and_beyond_radius(self, name):
        """Test a point at the radius weighs kernel(1) and beyond it weighs 0."""
        kernel = get_kernel(name)
        assert float(kernel.weigh(2.0, 2.0)) == pytest.approx(float(kernel(1.0)))
        assert float(kernel.weigh(2.0000001, 2.0)) == 0.0

    @pytest.mark.parametrize("name", UNBOUNDED)
    def test_unbounded_weigh_beyond_radius(self, name):
        """Test unbounded kernels stay positive past the radius."""
        assert float(get_kernel(name).weigh(3.0, 1.0)) > 0.0

    @pytest.mark.parametrize("name", KERNEL_NAMES)
    def test_maximum_at_zero(self, name):
        """Test kernel(0) is the maximum over [-1, 1]."""
        kernel = get_kernel(name)
        u = np.linspace(-1.0, 1.0, 201)
        assert float(kernel(0.0)) >= np.max(kernel(u)) - 1e-12

    @pytest.mark.parametrize("name", BOUNDED)
    def test_non_increasing_on_unit_interval(self, name):
        """Test bounded kernels never increase with |u| on [0, 1]."""
        w = get_kernel(name)(np.linspace(0.0, 1.0, 101))
        assert np.all(np.diff(w) <= 1e-12)

    def test_uniform_constant(self):
        """Test uniform weighs every in-radius distance at 0.5."""
        w = get_kernel("uniform").weigh(np.array([0.0, 0.3, 0.99, 1.0]), 1.0)
        assert np.all(w == 0.5)


class TestGetKernel:
    """Test suite for kernel lookup."""

    def test_aliases(self):
        """Test epanechnikov and biweight aliases."""
        assert get_kernel("epanechnikov").name == "parabolic"
        assert get_kernel("biweight").name == "quadric"

    def test_case_insensitive(self):
        """Test names are matched case-insensitively."""
        assert get_kernel("Gaussian").name == "gaussian"

    def test_unknown(self):
        """Test unknown names raise a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown kernel"):
            get_kernel("boxcar")
