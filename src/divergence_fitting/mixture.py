"""
Gaussian mixture model on a uniform grid.

Main components:
1. Component value type and weight normalization
2. Closed-form mixture density and its grid evaluation
3. Preset mixtures
4. Sampling and histogram density (visualization feed only)
"""

import numpy as np
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Sequence, Tuple

from .grid_utils import (
    normalize_density,
    check_density,
    check_spacing,
    domain_bounds,
    InvalidConfigurationError,
)


@dataclass(frozen=True)
class GaussianComponent:
    """
    One component of a 1D Gaussian mixture.

    Attributes:
    -----------
    mean : float
        Location of the component
    sigma : float
        Standard deviation (must be positive)
    weight : float
        Mixing weight (non-negative, not necessarily normalized)
    """
    mean: float
    sigma: float
    weight: float = 1.0


Mixture = Tuple[GaussianComponent, ...]


# ============================================================
# Weights and densities
# ============================================================

def normalize_weights(components: Sequence[GaussianComponent]) -> Mixture:
    """
    Clamp weights to >= 0 and divide by their sum.

    If every weight is zero the result is an all-zero mixture; callers must
    tolerate that rather than divide by zero.
    """
    clipped = [max(0.0, float(c.weight)) for c in components]
    total = sum(clipped)
    if total == 0:
        return tuple(replace(c, weight=0.0) for c in components)
    return tuple(replace(c, weight=w / total) for c, w in zip(components, clipped))


def gaussian_pdf(x: np.ndarray, mean: float, sigma: float) -> np.ndarray:
    """
    Compute the probability density function of a univariate normal distribution.

    Parameters:
    -----------
    x : np.ndarray
        Points at which to evaluate the PDF
    mean : float
        Mean of the normal distribution
    sigma : float
        Standard deviation (must be positive)

    Returns:
    --------
    np.ndarray
        PDF values at x: (1/(σ√(2π))) * exp(-(x-μ)²/(2σ²))
    """
    x = np.asarray(x, dtype=float)
    u = (x - mean) / sigma
    return np.exp(-0.5 * u * u) / (np.sqrt(2.0 * np.pi) * sigma)


def mixture_pdf(x: np.ndarray, components: Sequence[GaussianComponent]) -> np.ndarray:
    """
    Evaluate Σ_k w_k N(x; μ_k, σ_k).

    Weights are used as given; normalize them first for a valid density.
    """
    x = np.asarray(x, dtype=float)
    out = np.zeros_like(x, dtype=float)
    for c in components:
        out += c.weight * gaussian_pdf(x, c.mean, c.sigma)
    return out


def density_on_grid(components: Sequence[GaussianComponent], grid: np.ndarray, dx: float) -> np.ndarray:
    """
    Evaluate a mixture on a grid as a normalized density array.

    Weights are normalized, the analytic density is evaluated at every grid
    point and the array is then renormalized on the grid. The second pass
    redistributes the mass a Gaussian loses outside the truncated domain, so
    the result is an approximation rather than an exact mass-preserving
    projection.

    Parameters:
    -----------
    components : sequence of GaussianComponent
        Mixture components (weights need not sum to 1)
    grid : np.ndarray
        Uniform grid points, shape (N,)
    dx : float
        Grid spacing

    Returns:
    --------
    np.ndarray
        Density values with Σ y_i * dx = 1 (or all zeros for a zero mixture)
    """
    grid = check_density(grid, "grid")
    dx = check_spacing(dx)
    y = mixture_pdf(grid, normalize_weights(components))
    return normalize_density(y, dx)


def amplitude_at_mean(component: GaussianComponent) -> float:
    """Height of a weighted component at its own mean."""
    return float(component.weight * gaussian_pdf(component.mean, component.mean, component.sigma))


# ============================================================
# Presets and conversions
# ============================================================

def default_mixture(kind: str = "bimodal") -> Mixture:
    """Preset mixtures: 'unimodal', 'bimodal' or 'trimodal'."""
    if kind == "unimodal":
        return (GaussianComponent(0.0, 0.8, 1.0),)
    if kind == "trimodal":
        return (
            GaussianComponent(-2.2, 0.6, 0.33),
            GaussianComponent(0.2, 0.8, 0.34),
            GaussianComponent(2.5, 0.7, 0.33),
        )
    if kind == "bimodal":
        return (
            GaussianComponent(-1.5, 0.7, 0.5),
            GaussianComponent(1.2, 0.9, 0.5),
        )
    raise InvalidConfigurationError(f"Unknown preset: {kind}. Must be 'unimodal', 'bimodal' or 'trimodal'")


def components_from_dicts(items: Iterable[Dict]) -> Mixture:
    """Build components from dicts with keys mean / sigma / weight."""
    comps = []
    for item in items:
        sigma = float(item["sigma"])
        if sigma <= 0:
            raise InvalidConfigurationError(f"Component sigma must be positive, got {sigma}")
        comps.append(GaussianComponent(
            mean=float(item["mean"]),
            sigma=sigma,
            weight=float(item.get("weight", 1.0)),
        ))
    return tuple(comps)


def components_to_dicts(components: Sequence[GaussianComponent]) -> List[Dict[str, float]]:
    return [
        {"mean": float(c.mean), "sigma": float(c.sigma), "weight": float(c.weight)}
        for c in components
    ]


# ============================================================
# Sampling (visualization feed)
# ============================================================

def sample_mixture(
    components: Sequence[GaussianComponent],
    n: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw samples from a mixture.

    The component of each draw is chosen by inverting the cumulative weights
    with a uniform variate; the random source is passed in so results are
    reproducible.

    Parameters:
    -----------
    components : sequence of GaussianComponent
        Mixture components (weights are normalized internally)
    n : int
        Number of samples
    rng : np.random.Generator
        Random source, e.g. np.random.default_rng(seed)

    Returns:
    --------
    np.ndarray
        Samples, shape (n,)
    """
    comps = normalize_weights(components)
    if len(comps) == 0:
        raise InvalidConfigurationError("Cannot sample from an empty mixture")
    if n < 0:
        raise InvalidConfigurationError(f"Sample count must be non-negative, got {n}")
    cdf = np.cumsum([c.weight for c in comps])
    r = rng.random(n)
    idx = np.minimum(np.searchsorted(cdf, r, side="left"), len(comps) - 1)
    means = np.array([c.mean for c in comps])[idx]
    sigmas = np.array([c.sigma for c in comps])[idx]
    return means + sigmas * rng.standard_normal(n)


def histogram_density(
    samples: np.ndarray,
    bins: int,
    domain: Sequence[float],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Empirical density estimate of samples on equal-width bins.

    Samples outside [min, max) are ignored; each bin height is
    count / (N * bin_width).

    Returns:
    --------
    xs : np.ndarray
        Bin centres, shape (bins,)
    ys : np.ndarray
        Density values, shape (bins,)
    """
    if bins < 1:
        raise InvalidConfigurationError(f"Number of bins must be >= 1, got {bins}")
    lo, hi = domain_bounds(domain)
    width = (hi - lo) / bins
    xs = lo + (np.arange(bins) + 0.5) * width
    samples = np.asarray(samples, dtype=float)
    if samples.size == 0:
        return xs, np.zeros(bins)
    k = np.floor((samples - lo) / width)
    k = k[(k >= 0) & (k < bins)].astype(int)
    counts = np.bincount(k, minlength=bins).astype(float)
    ys = counts / (samples.size * width)
    return xs, ys
