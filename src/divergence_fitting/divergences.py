"""
Divergences and distances between two densities on a shared uniform grid.

All functions take densities that are already normalized on the same grid
(`compute_all` normalizes for you) and the grid spacing dx. Every ratio or
logarithm has its denominator floored at LOG_EPSILON so that near-empty tail
regions produce large-but-finite values instead of -inf / NaN.
"""

import numpy as np
from dataclasses import dataclass, asdict, replace
from typing import Dict, Tuple
from scipy.special import rel_entr, xlogy

from .grid_utils import (
    LOG_EPSILON,
    cumulative,
    normalize_density,
    check_density,
    check_spacing,
    check_same_length,
    InvalidConfigurationError,
)

# Metrics measured in nats that scale by 1/ln 2 when reported in bits
INFORMATION_METRICS = ("kl_pq", "kl_qp", "js", "jeffreys", "cross_pq", "cross_qp")
UNITS = ("nats", "bits")


@dataclass(frozen=True)
class DivergenceResult:
    """
    Every metric between a model density P and a target density Q.

    Attributes:
    -----------
    kl_pq, kl_qp : float
        KL(P||Q) and KL(Q||P)
    js : float
        Jensen-Shannon divergence, in [0, ln 2]
    jeffreys : float
        KL(P||Q) + KL(Q||P)
    cross_pq, cross_qp : float
        Cross-entropies H(P,Q) and H(Q,P)
    tv : float
        Total variation distance, in [0, 1]
    hellinger : float
        Hellinger distance
    bhattacharyya : float
        Bhattacharyya distance
    w1 : float
        Wasserstein-1 distance
    """
    kl_pq: float
    kl_qp: float
    js: float
    jeffreys: float
    cross_pq: float
    cross_qp: float
    tv: float
    hellinger: float
    bhattacharyya: float
    w1: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def to_units(self, units: str) -> "DivergenceResult":
        """Express the information quantities in 'nats' or 'bits'."""
        if units not in UNITS:
            raise InvalidConfigurationError(f"Unknown units: {units}. Must be 'nats' or 'bits'")
        if units == "nats":
            return self
        factor = 1.0 / np.log(2.0)
        return replace(self, **{name: getattr(self, name) * factor for name in INFORMATION_METRICS})


def _pair(p: np.ndarray, q: np.ndarray, dx: float) -> Tuple[np.ndarray, np.ndarray, float]:
    p = check_density(p, "p")
    q = check_density(q, "q")
    check_same_length(p, q)
    return p, q, check_spacing(dx)


def kl(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """
    Kullback-Leibler divergence KL(P||Q).

    Terms with p = 0 contribute 0 (0 log 0 = 0); q is floored at LOG_EPSILON.
    """
    p, q, dx = _pair(p, q, dx)
    terms = rel_entr(np.maximum(p, 0.0), np.maximum(q, LOG_EPSILON))
    return float(np.sum(terms) * dx)


def cross_entropy(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """Cross-entropy H(P,Q) = -Σ p log q dx, with q floored at LOG_EPSILON."""
    p, q, dx = _pair(p, q, dx)
    terms = xlogy(np.maximum(p, 0.0), np.maximum(q, LOG_EPSILON))
    return float(-np.sum(terms) * dx)


def entropy(p: np.ndarray, dx: float) -> float:
    """Differential entropy H(P) = -Σ p log p dx of a grid density."""
    p = check_density(p, "p")
    dx = check_spacing(dx)
    p = np.maximum(p, 0.0)
    return float(-np.sum(xlogy(p, np.maximum(p, LOG_EPSILON))) * dx)


def jensen_shannon(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """Jensen-Shannon divergence ½KL(P||M) + ½KL(Q||M) with M = (P+Q)/2."""
    p, q, dx = _pair(p, q, dx)
    m = 0.5 * (p + q)
    return 0.5 * kl(p, m, dx) + 0.5 * kl(q, m, dx)


def total_variation(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """Total variation distance ½ Σ |p - q| dx."""
    p, q, dx = _pair(p, q, dx)
    return float(0.5 * np.sum(np.abs(p - q)) * dx)


def bhattacharyya_coefficient(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """BC = Σ sqrt(p q) dx, with p q clamped at zero."""
    p, q, dx = _pair(p, q, dx)
    return float(np.sum(np.sqrt(np.maximum(0.0, p * q))) * dx)


def hellinger_and_bhattacharyya(p: np.ndarray, q: np.ndarray, dx: float) -> Tuple[float, float]:
    """
    Hellinger and Bhattacharyya distances from one Bhattacharyya coefficient.

    Returns:
    --------
    hellinger : float
        sqrt(max(0, 1 - BC))
    bhattacharyya : float
        -log(max(BC, LOG_EPSILON))
    """
    bc = bhattacharyya_coefficient(p, q, dx)
    hellinger = float(np.sqrt(max(0.0, 1.0 - bc)))
    bhattacharyya = float(-np.log(max(bc, LOG_EPSILON)))
    return hellinger, bhattacharyya


def hellinger(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    return hellinger_and_bhattacharyya(p, q, dx)[0]


def bhattacharyya(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    return hellinger_and_bhattacharyya(p, q, dx)[1]


def wasserstein1(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """
    Wasserstein-1 distance in 1D: the L1 distance between the two CDFs.

    Both CDFs come from `cumulative`, which pins their last value to 1.
    """
    p, q, dx = _pair(p, q, dx)
    cp = cumulative(p, dx)
    cq = cumulative(q, dx)
    return float(np.sum(np.abs(cp - cq)) * dx)


def jeffreys(p: np.ndarray, q: np.ndarray, dx: float) -> float:
    """Symmetrized KL: KL(P||Q) + KL(Q||P)."""
    return kl(p, q, dx) + kl(q, p, dx)


def compute_all(p: np.ndarray, q: np.ndarray, dx: float) -> DivergenceResult:
    """
    Compute every metric between P and Q.

    Both inputs are normalized once and every metric is derived from the
    same normalized pair, so e.g. Jeffreys is exactly the sum of the two
    reported KL values.

    Parameters:
    -----------
    p : np.ndarray
        Model density P on the grid, shape (N,)
    q : np.ndarray
        Target density Q on the grid, shape (N,)
    dx : float
        Grid spacing

    Returns:
    --------
    DivergenceResult
    """
    p, q, dx = _pair(p, q, dx)
    pn = normalize_density(p, dx)
    qn = normalize_density(q, dx)

    kl_pq = kl(pn, qn, dx)
    kl_qp = kl(qn, pn, dx)
    h, b = hellinger_and_bhattacharyya(pn, qn, dx)
    return DivergenceResult(
        kl_pq=kl_pq,
        kl_qp=kl_qp,
        js=jensen_shannon(pn, qn, dx),
        jeffreys=kl_pq + kl_qp,
        cross_pq=cross_entropy(pn, qn, dx),
        cross_qp=cross_entropy(qn, pn, dx),
        tv=total_variation(pn, qn, dx),
        hellinger=h,
        bhattacharyya=b,
        w1=wasserstein1(pn, qn, dx),
    )
