"""
Mapping between mixture parameters and an unconstrained optimization vector.

Layouts:
    gaussian : theta = [mean, log(sigma)]
    gmm(k)   : theta = [means(k), log(sigmas)(k), logits(k)], weights = softmax(logits)

Scales are recovered with exp and floored at SIGMA_FLOOR; weights with a
softmax, so any real vector decodes to a valid mixture.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence
from scipy.special import softmax

from .grid_utils import (
    SIGMA_FLOOR,
    LOGIT_OFFSET,
    domain_bounds,
    clamp,
    InvalidConfigurationError,
)
from .mixture import GaussianComponent, Mixture, normalize_weights

MODEL_KINDS = ("gaussian", "gmm")

# Finite-difference step sizes per parameter class
MEAN_STEP_FRACTION = 1e-3  # times the domain width
LOG_SIGMA_STEP = 5e-3
LOGIT_STEP = 5e-3


@dataclass(frozen=True)
class ModelKind:
    """
    Model family being fitted.

    Attributes:
    -----------
    kind : str
        'gaussian' (one component, weight fixed at 1) or 'gmm'
    k : int
        Number of components (1 for 'gaussian'); fixed for a whole fit
    """
    kind: str = "gaussian"
    k: int = 1

    def __post_init__(self):
        if self.kind not in MODEL_KINDS:
            raise InvalidConfigurationError(f"Unknown model kind: {self.kind}. Must be 'gaussian' or 'gmm'")
        if self.k < 1:
            raise InvalidConfigurationError(f"Number of components k must be >= 1, got {self.k}")
        if self.kind == "gaussian" and self.k != 1:
            raise InvalidConfigurationError("A 'gaussian' model has exactly one component")

    @classmethod
    def gaussian(cls) -> "ModelKind":
        return cls("gaussian", 1)

    @classmethod
    def gmm(cls, k: int) -> "ModelKind":
        return cls("gmm", int(k))

    @property
    def n_params(self) -> int:
        return 2 if self.kind == "gaussian" else 3 * self.k


def pack_params(model: ModelKind, components: Sequence[GaussianComponent]) -> np.ndarray:
    """
    Encode a mixture as an optimization vector.

    For 'gaussian' the first component is used ({mean 0, sigma 1} when none
    is given). For 'gmm' weights are normalized, extra components beyond k
    are dropped and missing ones are filled with {mean 0, sigma 1, weight 1/k}.

    Parameters:
    -----------
    model : ModelKind
        Model family
    components : sequence of GaussianComponent
        Initial mixture

    Returns:
    --------
    np.ndarray
        theta, shape (model.n_params,)
    """
    if model.kind == "gaussian":
        c = components[0] if len(components) > 0 else GaussianComponent(0.0, 1.0, 1.0)
        return np.array([c.mean, np.log(c.sigma)], dtype=float)

    k = model.k
    comps = list(normalize_weights(components))[:k]
    while len(comps) < k:
        comps.append(GaussianComponent(0.0, 1.0, 1.0 / k))
    means = [c.mean for c in comps]
    log_sigmas = [np.log(c.sigma) for c in comps]
    logits = [np.log(c.weight + LOGIT_OFFSET) for c in comps]
    return np.array(means + log_sigmas + logits, dtype=float)


def stable_softmax(logits: np.ndarray) -> np.ndarray:
    """Softmax with the maximum logit subtracted before exponentiating."""
    return softmax(np.asarray(logits, dtype=float))


def unpack_params(model: ModelKind, theta: np.ndarray) -> Mixture:
    """
    Decode an optimization vector into exactly model.k components.

    Raises:
    ------
    InvalidConfigurationError
        If theta does not have the model's length
    """
    theta = np.asarray(theta, dtype=float)
    if theta.shape != (model.n_params,):
        raise InvalidConfigurationError(
            f"theta must have shape ({model.n_params},) for {model.kind}, got {theta.shape}"
        )
    if model.kind == "gaussian":
        sigma = max(SIGMA_FLOOR, float(np.exp(theta[1])))
        return (GaussianComponent(float(theta[0]), sigma, 1.0),)

    k = model.k
    means = theta[:k]
    sigmas = np.maximum(SIGMA_FLOOR, np.exp(theta[k:2 * k]))
    weights = stable_softmax(theta[2 * k:3 * k])
    return tuple(
        GaussianComponent(float(m), float(s), float(w))
        for m, s, w in zip(means, sigmas, weights)
    )


def mean_indices(model: ModelKind) -> np.ndarray:
    """Positions of the mean coordinates inside theta."""
    return np.arange(model.k)


def finite_difference_steps(model: ModelKind, domain: Sequence[float]) -> np.ndarray:
    """
    Per-coordinate step sizes for the central difference gradient.

    Means use a fraction of the domain width; log-scales and logits use a
    fixed step since they live on unrelated scales.
    """
    lo, hi = domain_bounds(domain)
    width = hi - lo
    if model.kind == "gaussian":
        return np.array([MEAN_STEP_FRACTION * width, LOG_SIGMA_STEP])
    k = model.k
    return np.concatenate([
        np.full(k, MEAN_STEP_FRACTION * width),
        np.full(k, LOG_SIGMA_STEP),
        np.full(k, LOGIT_STEP),
    ])


def clamp_means(model: ModelKind, theta: np.ndarray, domain: Sequence[float]) -> np.ndarray:
    """Return a copy of theta with its mean coordinates clamped into the domain."""
    lo, hi = domain_bounds(domain)
    out = np.array(theta, dtype=float)
    idx = mean_indices(model)
    out[idx] = clamp(out[idx], lo, hi)
    return out
