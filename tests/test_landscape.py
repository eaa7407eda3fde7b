"""
Tests for the single-Gaussian objective landscape.
"""
import numpy as np
import pytest
from divergence_fitting import (
    GaussianComponent,
    InvalidConfigurationError,
    LANDSCAPE_SENTINEL,
    make_grid,
    grid_spacing,
    density_on_grid,
    objective_landscape,
)

DOMAIN = (-6.0, 6.0)


@pytest.fixture(scope="module")
def gaussian_target():
    grid = make_grid(DOMAIN, 512)
    dx = grid_spacing(DOMAIN, 512)
    return grid, dx, density_on_grid((GaussianComponent(0.5, 1.0),), grid, dx)


class TestObjectiveLandscape:
    """Tests for objective_landscape."""

    def test_shape_and_axes(self, gaussian_target):
        grid, dx, target = gaussian_target
        result = objective_landscape(grid, dx, target, "js", DOMAIN, nx=12, ny=9)
        assert result.values.shape == (9, 12)
        assert result.means[0] == -6.0 and result.means[-1] == 6.0
        assert result.sigmas[0] == pytest.approx(0.2)
        assert result.sigmas[-1] == pytest.approx(2.5)

    def test_minimum_axis_points(self, gaussian_target):
        grid, dx, target = gaussian_target
        result = objective_landscape(grid, dx, target, "tv", DOMAIN, nx=2, ny=3)
        assert result.values.shape == (8, 8)

    def test_argmin_at_target_parameters(self, gaussian_target):
        """The grid minimum sits on the parameters of a Gaussian target."""
        grid, dx, target = gaussian_target
        # means step 0.25 and sigmas step 0.1 both hit the target exactly
        result = objective_landscape(
            grid, dx, target, "kl_qp", DOMAIN, sigma_range=(0.2, 2.5), nx=49, ny=24,
        )
        assert result.best_mean == pytest.approx(0.5, abs=1e-9)
        assert result.best_sigma == pytest.approx(1.0, abs=1e-9)
        assert result.best_value == pytest.approx(0.0, abs=1e-9)
        assert result.best_value == np.min(result.values)

    def test_values_finite(self, gaussian_target):
        grid, dx, target = gaussian_target
        result = objective_landscape(grid, dx, target, {"kl_pq": 1.0, "w1": 1.0}, DOMAIN, nx=10, ny=10)
        assert np.all(np.isfinite(result.values))
        assert np.all(result.values < LANDSCAPE_SENTINEL)

    def test_invalid_sigma_range(self, gaussian_target):
        grid, dx, target = gaussian_target
        with pytest.raises(InvalidConfigurationError):
            objective_landscape(grid, dx, target, "js", DOMAIN, sigma_range=(0.0, 2.0))

    def test_unknown_objective(self, gaussian_target):
        grid, dx, target = gaussian_target
        with pytest.raises(InvalidConfigurationError):
            objective_landscape(grid, dx, target, "chi2", DOMAIN)
