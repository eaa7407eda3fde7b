"""
Common numerical utilities for densities sampled on a uniform grid.

This module provides the grid construction, integration and normalization
primitives shared by the mixture model, the divergence metrics and the
optimizer, together with the numerical constants and input validation
helpers used across the package.

Every divergence is an integral over the grid. All of them go through
`integrate` / `cumulative`, which use the same left Riemann sum with a
uniform spacing dx, so values of different metrics are directly comparable.
"""

import numpy as np
from typing import Sequence, Tuple


# ============================================================
# Numerical Constants
# ============================================================

# Floor applied to the denominator of every ratio / logarithm.
# Larger values visibly bias KL(Q||P) in low-probability tails and can
# flip the expected mode-seeking / mode-covering asymmetry.
LOG_EPSILON = 1e-300

SIGMA_FLOOR = 1e-3  # Minimum decoded component scale
LOGIT_OFFSET = 1e-12  # Added to weights before taking log when packing
MIN_PDF_VALUE = 1e-10  # For log scale plotting
DEFAULT_GRID_POINTS = 1024


class InvalidConfigurationError(ValueError):
    """Exception raised when a caller violates the grid / model contract."""
    pass


# ============================================================
# Validation helpers
# ============================================================

def check_spacing(dx: float) -> float:
    """Ensure the grid spacing is a finite positive number."""
    dx = float(dx)
    if not np.isfinite(dx) or dx <= 0:
        raise InvalidConfigurationError(f"Grid spacing dx must be positive, got {dx}")
    return dx


def check_density(y: np.ndarray, name: str = "density") -> np.ndarray:
    """Return `y` as a 1-D float array, rejecting empty input."""
    y = np.asarray(y, dtype=float)
    if y.ndim != 1:
        raise InvalidConfigurationError(f"{name} must be one-dimensional, got shape {y.shape}")
    if y.size == 0:
        raise InvalidConfigurationError(f"{name} must be non-empty")
    return y


def check_same_length(*arrays: np.ndarray) -> None:
    """Ensure all arrays share one length."""
    lengths = {len(a) for a in arrays}
    if len(lengths) > 1:
        raise InvalidConfigurationError(
            f"Arrays on a shared grid must have the same length, got {sorted(lengths)}"
        )


# ============================================================
# Grid construction
# ============================================================

def make_grid(domain: Sequence[float], n: int = DEFAULT_GRID_POINTS) -> np.ndarray:
    """
    Create a uniform grid over a closed domain.

    Parameters:
    -----------
    domain : sequence of two floats
        [min, max] of the grid (both ends included)
    n : int
        Number of grid points (default: 1024)

    Returns:
    --------
    np.ndarray
        Grid points x_i = min + i * dx, shape (n,)
    """
    if n < 2:
        raise InvalidConfigurationError(f"Grid needs at least 2 points, got {n}")
    lo, hi = float(domain[0]), float(domain[1])
    return np.linspace(lo, hi, int(n))


def grid_spacing(domain: Sequence[float], n: int) -> float:
    """Spacing of the grid returned by `make_grid(domain, n)`."""
    if n < 2:
        raise InvalidConfigurationError(f"Grid needs at least 2 points, got {n}")
    return (float(domain[1]) - float(domain[0])) / (int(n) - 1)


def clamp(x, lo: float, hi: float):
    """Clamp a scalar or array into [lo, hi]."""
    return np.minimum(hi, np.maximum(lo, x))


# ============================================================
# Integration and normalization
# ============================================================

def integrate(y: np.ndarray, dx: float) -> float:
    """
    Integrate a density on a uniform grid with a left Riemann sum.

    Returns:
    --------
    float
        Σ y_i * dx
    """
    y = check_density(y)
    dx = check_spacing(dx)
    return float(np.sum(y) * dx)


def trapezoid(y: np.ndarray, dx: float) -> float:
    """Trapezoidal integral on a uniform grid (diagnostics only)."""
    y = check_density(y)
    dx = check_spacing(dx)
    if y.size == 1:
        return 0.0
    return float(np.sum(0.5 * (y[:-1] + y[1:])) * dx)


def cumulative(y: np.ndarray, dx: float) -> np.ndarray:
    """
    Compute a CDF from a density on a uniform grid.

    The running sum c_i = Σ_{j<=i} y_j * dx is divided by its final value
    (when positive) so that the last entry is exactly 1, removing the
    discretization drift before the result is used as a CDF.

    Parameters:
    -----------
    y : np.ndarray
        Density values, shape (N,)
    dx : float
        Grid spacing

    Returns:
    --------
    np.ndarray
        CDF values, shape (N,)
    """
    y = check_density(y)
    dx = check_spacing(dx)
    c = np.cumsum(y * dx)
    total = c[-1]
    if total > 0:
        c = c / total
    return c


def normalize_density(y: np.ndarray, dx: float) -> np.ndarray:
    """
    Normalize a density so that Σ y_i * dx = 1.

    A density with non-positive mass is returned unchanged (a zero density
    stays zero instead of turning into NaN).

    Parameters:
    -----------
    y : np.ndarray
        Density values, shape (N,)
    dx : float
        Grid spacing

    Returns:
    --------
    np.ndarray
        Normalized copy of y
    """
    y = check_density(y)
    mass = integrate(y, dx)
    if mass > 0:
        return y / mass
    return y.copy()


def domain_bounds(domain: Sequence[float]) -> Tuple[float, float]:
    """Return (min, max) of a domain given as a two-element sequence."""
    if len(domain) != 2:
        raise InvalidConfigurationError(f"Domain must be [min, max], got {domain}")
    return float(domain[0]), float(domain[1])
