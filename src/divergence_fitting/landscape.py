"""
Objective landscape of a single Gaussian over a (mean, sigma) grid.

Used to draw the parameter heatmap behind an optimization path and to find
a brute-force optimum to compare fitted parameters against.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence

from .grid_utils import (
    normalize_density,
    check_density,
    check_spacing,
    check_same_length,
    domain_bounds,
    InvalidConfigurationError,
)
from .mixture import GaussianComponent, density_on_grid
from .optimizer import ObjectiveSpec, resolve_objective

# Stand-in for non-finite objective values
LANDSCAPE_SENTINEL = 1e9
MIN_AXIS_POINTS = 8


@dataclass
class LandscapeResult:
    """
    Objective values on a parameter grid.

    Attributes:
    -----------
    means : np.ndarray
        Mean axis, shape (nx,)
    sigmas : np.ndarray
        Sigma axis, shape (ny,)
    values : np.ndarray
        Objective values, shape (ny, nx); values[j, i] is at (means[i], sigmas[j])
    best_mean, best_sigma, best_value : float
        Location and value of the smallest entry
    """
    means: np.ndarray
    sigmas: np.ndarray
    values: np.ndarray
    best_mean: float
    best_sigma: float
    best_value: float


def objective_landscape(
    grid: np.ndarray,
    dx: float,
    target: np.ndarray,
    objective: ObjectiveSpec,
    mean_range: Sequence[float],
    sigma_range: Sequence[float] = (0.2, 2.5),
    nx: int = 72,
    ny: int = 54,
) -> LandscapeResult:
    """
    Evaluate an objective for N(mean, sigma) on a regular parameter grid.

    Each axis gets at least 8 points. Non-finite objective values are
    replaced by LANDSCAPE_SENTINEL.

    Parameters:
    -----------
    grid : np.ndarray
        Density grid, shape (N,)
    dx : float
        Grid spacing
    target : np.ndarray
        Target density, shape (N,)
    objective : str, Objective or mapping
        Objective to evaluate
    mean_range : [min, max]
        Range of the mean axis (usually the domain)
    sigma_range : [min, max]
        Range of the sigma axis (default: [0.2, 2.5])
    nx, ny : int
        Number of points on the mean / sigma axes

    Returns:
    --------
    LandscapeResult
    """
    grid = check_density(grid, "grid")
    target = check_density(target, "target")
    check_same_length(grid, target)
    dx = check_spacing(dx)
    s_lo, s_hi = domain_bounds(sigma_range)
    if s_lo <= 0 or s_hi <= 0:
        raise InvalidConfigurationError(f"Sigma range must be positive, got {sigma_range}")

    fn = resolve_objective(objective)
    q = normalize_density(target, dx)
    m_lo, m_hi = domain_bounds(mean_range)
    nx = max(MIN_AXIS_POINTS, int(nx))
    ny = max(MIN_AXIS_POINTS, int(ny))
    means = np.linspace(m_lo, m_hi, nx)
    sigmas = np.linspace(s_lo, s_hi, ny)

    values = np.empty((ny, nx))
    for j, s in enumerate(sigmas):
        for i, mu in enumerate(means):
            p = density_on_grid((GaussianComponent(float(mu), float(s), 1.0),), grid, dx)
            v = fn(p, q, dx)
            values[j, i] = v if np.isfinite(v) else LANDSCAPE_SENTINEL

    j_best, i_best = np.unravel_index(np.argmin(values), values.shape)
    return LandscapeResult(
        means=means,
        sigmas=sigmas,
        values=values,
        best_mean=float(means[i_best]),
        best_sigma=float(sigmas[j_best]),
        best_value=float(values[j_best, i_best]),
    )
