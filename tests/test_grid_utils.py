"""
Tests for grid construction, integration and normalization helpers.
"""
import numpy as np
import pytest
from divergence_fitting import (
    InvalidConfigurationError,
    make_grid,
    grid_spacing,
    clamp,
    integrate,
    trapezoid,
    cumulative,
    normalize_density,
)
from divergence_fitting.grid_utils import (
    check_spacing,
    check_density,
    check_same_length,
    domain_bounds,
)


class TestGridConstruction:
    """Tests for make_grid and grid_spacing."""

    def test_make_grid_endpoints(self):
        """Grid includes both ends of the domain."""
        x = make_grid((-1.0, 1.0), 5)
        np.testing.assert_allclose(x, [-1.0, -0.5, 0.0, 0.5, 1.0])

    def test_grid_spacing_matches_grid(self):
        """dx equals the distance between neighbouring grid points."""
        x = make_grid((-6.0, 6.0), 1024)
        dx = grid_spacing((-6.0, 6.0), 1024)
        assert np.allclose(np.diff(x), dx)
        assert dx == pytest.approx(12.0 / 1023)

    def test_default_grid_size(self):
        x = make_grid((0.0, 1.0))
        assert len(x) == 1024

    def test_too_few_points(self):
        """A single point cannot define a spacing."""
        with pytest.raises(InvalidConfigurationError):
            make_grid((0.0, 1.0), 1)
        with pytest.raises(InvalidConfigurationError):
            grid_spacing((0.0, 1.0), 1)

    def test_domain_bounds(self):
        assert domain_bounds([-2, 3]) == (-2.0, 3.0)
        with pytest.raises(InvalidConfigurationError):
            domain_bounds([0.0, 1.0, 2.0])


class TestValidation:
    """Tests for input validation helpers."""

    def test_error_is_value_error(self):
        """Callers catching ValueError also catch configuration errors."""
        assert issubclass(InvalidConfigurationError, ValueError)

    @pytest.mark.parametrize("dx", [0.0, -0.1, np.nan, np.inf])
    def test_invalid_spacing(self, dx):
        with pytest.raises(InvalidConfigurationError):
            check_spacing(dx)

    def test_empty_density(self):
        with pytest.raises(InvalidConfigurationError):
            check_density(np.array([]))

    def test_two_dimensional_density(self):
        with pytest.raises(InvalidConfigurationError):
            check_density(np.ones((3, 3)))

    def test_density_converted_to_float(self):
        y = check_density([1, 2, 3])
        assert y.dtype == float

    def test_mismatched_lengths(self):
        with pytest.raises(InvalidConfigurationError):
            check_same_length(np.ones(3), np.ones(4))
        check_same_length(np.ones(3), np.ones(3))


class TestIntegration:
    """Tests for integrate, trapezoid and cumulative."""

    def test_integrate_left_riemann(self):
        """Integral is the plain sum times dx."""
        assert integrate(np.ones(4), 0.5) == pytest.approx(2.0)
        assert integrate(np.array([1.0, 2.0, 3.0]), 0.1) == pytest.approx(0.6)

    def test_trapezoid(self):
        assert trapezoid(np.ones(5), 0.25) == pytest.approx(1.0)
        assert trapezoid(np.array([2.0]), 0.25) == 0.0

    def test_cumulative_ends_at_one(self):
        """The last CDF entry is exactly 1 after drift correction."""
        x = make_grid((-5.0, 5.0), 333)
        dx = grid_spacing((-5.0, 5.0), 333)
        y = np.exp(-0.5 * x**2) * 0.37
        c = cumulative(y, dx)
        assert c[-1] == 1.0
        assert np.all(np.diff(c) >= 0)

    def test_cumulative_of_zero_density(self):
        """A zero density yields a zero CDF, not NaN."""
        c = cumulative(np.zeros(10), 0.1)
        assert np.all(c == 0)

    def test_clamp(self):
        np.testing.assert_array_equal(clamp(np.array([-5.0, 0.0, 5.0]), -1.0, 1.0), [-1.0, 0.0, 1.0])
        assert clamp(3.0, 0.0, 2.0) == 2.0


class TestNormalizeDensity:
    """Tests for normalize_density."""

    def test_unit_mass(self):
        x = make_grid((-4.0, 4.0), 200)
        dx = grid_spacing((-4.0, 4.0), 200)
        y = normalize_density(3.0 * np.exp(-x**2), dx)
        assert integrate(y, dx) == pytest.approx(1.0)

    def test_zero_density_stays_zero(self):
        y = normalize_density(np.zeros(50), 0.1)
        assert np.all(y == 0)
        assert not np.any(np.isnan(y))

    def test_input_not_modified(self):
        y = np.array([1.0, 2.0, 1.0])
        normalize_density(y, 0.5)
        np.testing.assert_array_equal(y, [1.0, 2.0, 1.0])
