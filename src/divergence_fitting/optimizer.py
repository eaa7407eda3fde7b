"""
Finite-difference gradient descent of a divergence objective.

A mixture model (single Gaussian or k-component GMM) is fitted to a fixed
target density by repeatedly:
1. checking for cancellation
2. estimating the gradient of the objective w.r.t. the packed parameter
   vector with central differences
3. taking a plain gradient step and clamping the means into the domain
4. recording the new objective value and notifying an observer
5. suspending once so the host event loop can run

The objective is any metric from `divergences` or a weighted combination
of them. Gradients are numerical on purpose: every objective goes through
the same code path with no per-metric derivative.
"""

import asyncio
import logging
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .grid_utils import (
    normalize_density,
    check_density,
    check_spacing,
    check_same_length,
    domain_bounds,
    InvalidConfigurationError,
)
from .mixture import GaussianComponent, Mixture, density_on_grid
from .divergences import (
    kl,
    jensen_shannon,
    jeffreys,
    cross_entropy,
    total_variation,
    hellinger,
    bhattacharyya,
    wasserstein1,
)
from .reparam import (
    ModelKind,
    pack_params,
    unpack_params,
    finite_difference_steps,
    clamp_means,
)

logger = logging.getLogger(__name__)


class Objective(str, Enum):
    """Divergence minimized by the optimizer (P = model, Q = target)."""
    KL_PQ = "kl_pq"
    KL_QP = "kl_qp"
    JS = "js"
    JEFFREYS = "jeffreys"
    CROSS_PQ = "cross_pq"
    CROSS_QP = "cross_qp"
    TV = "tv"
    HELLINGER = "hellinger"
    BHATTACHARYYA = "bhattacharyya"
    W1 = "w1"


MetricFn = Callable[[np.ndarray, np.ndarray, float], float]
ObjectiveSpec = Union[str, Objective, Mapping[Union[str, Objective], float]]
UpdateCallback = Callable[[Mixture, int, float], None]
StopPredicate = Callable[[], bool]
SuspendFn = Callable[[], Awaitable[None]]

OBJECTIVE_FUNCTIONS: Dict[Objective, MetricFn] = {
    Objective.KL_PQ: kl,
    Objective.KL_QP: lambda p, q, dx: kl(q, p, dx),
    Objective.JS: jensen_shannon,
    Objective.JEFFREYS: jeffreys,
    Objective.CROSS_PQ: cross_entropy,
    Objective.CROSS_QP: lambda p, q, dx: cross_entropy(q, p, dx),
    Objective.TV: total_variation,
    Objective.HELLINGER: hellinger,
    Objective.BHATTACHARYYA: bhattacharyya,
    Objective.W1: wasserstein1,
}


class FitState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class FitResult:
    """
    Outcome of a fit.

    Attributes:
    -----------
    components : tuple of GaussianComponent
        Mixture decoded from the final parameter vector
    history : list of float
        Objective value after each completed step
    state : FitState
        COMPLETED or CANCELLED
    initial_value : float
        Objective value of the initial mixture
    theta : np.ndarray
        Final parameter vector
    """
    components: Mixture
    history: List[float]
    state: FitState
    initial_value: float
    theta: np.ndarray = field(repr=False)

    @property
    def n_steps(self) -> int:
        return len(self.history)

    @property
    def final_value(self) -> float:
        return self.history[-1] if self.history else self.initial_value


# ============================================================
# Objective resolution
# ============================================================

def _as_objective(name: Union[str, Objective]) -> Objective:
    try:
        return Objective(name)
    except ValueError:
        valid = ", ".join(o.value for o in Objective)
        raise InvalidConfigurationError(f"Unknown objective: {name}. Must be one of: {valid}") from None


def parse_objective(spec: ObjectiveSpec) -> Dict[Objective, float]:
    """
    Normalize an objective name or weighted mapping to {Objective: weight}.

    A single name maps to weight 1; a mapping is a weighted combination.
    """
    if isinstance(spec, Mapping):
        if len(spec) == 0:
            raise InvalidConfigurationError("Objective combination must not be empty")
        return {_as_objective(name): float(weight) for name, weight in spec.items()}
    return {_as_objective(spec): 1.0}


def resolve_objective(spec: ObjectiveSpec) -> MetricFn:
    """
    Resolve an objective name or weighted mapping to one callable f(p, q, dx).

    Resolution happens once per fit, not once per evaluation.
    """
    terms = parse_objective(spec)
    if len(terms) == 1:
        (objective, weight), = terms.items()
        fn = OBJECTIVE_FUNCTIONS[objective]
        if weight == 1.0:
            return fn
        return lambda p, q, dx: weight * fn(p, q, dx)
    pairs = [(OBJECTIVE_FUNCTIONS[o], w) for o, w in terms.items()]
    return lambda p, q, dx: sum(w * fn(p, q, dx) for fn, w in pairs)


def objective_label(spec: ObjectiveSpec) -> str:
    terms = parse_objective(spec)
    if len(terms) == 1 and list(terms.values())[0] == 1.0:
        return list(terms)[0].value
    return " + ".join(f"{w:g}*{o.value}" for o, w in terms.items())


def objective_value(p: np.ndarray, q: np.ndarray, dx: float, objective: ObjectiveSpec) -> float:
    """Evaluate an objective after normalizing both densities."""
    fn = resolve_objective(objective)
    return fn(normalize_density(p, dx), normalize_density(q, dx), dx)


# ============================================================
# Gradient
# ============================================================

def finite_difference_gradient(
    theta: np.ndarray,
    steps: np.ndarray,
    f: Callable[[np.ndarray], float],
) -> np.ndarray:
    """
    Central difference gradient g_i = (f(θ + e_i h_i) - f(θ - e_i h_i)) / (2 h_i).

    Uses numpy division so a zero step yields inf/NaN instead of raising.
    """
    theta = np.asarray(theta, dtype=float)
    g = np.zeros_like(theta)
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(theta.size):
            h = steps[i]
            tp = theta.copy()
            tm = theta.copy()
            tp[i] += h
            tm[i] -= h
            g[i] = np.divide(f(tp) - f(tm), 2.0 * h)
    return g


async def _default_suspend() -> None:
    await asyncio.sleep(0)


# ============================================================
# Fit session
# ============================================================

class FitSession:
    """
    One optimization run, moving IDLE -> RUNNING -> COMPLETED | CANCELLED.

    The session owns the parameter vector; the grid and the normalized
    target are private copies, read only while running. Cancellation is
    checked only at step boundaries, so a request made during a step takes
    effect once that step has finished.
    """

    def __init__(
        self,
        target: np.ndarray,
        grid: np.ndarray,
        dx: float,
        initial: Sequence[GaussianComponent],
        model: ModelKind,
        objective: ObjectiveSpec,
        steps: int,
        lr: float,
        domain: Sequence[float],
        on_update: Optional[UpdateCallback] = None,
        should_stop: Optional[StopPredicate] = None,
        suspend: Optional[SuspendFn] = None,
    ):
        target = check_density(target, "target")
        grid = check_density(grid, "grid")
        check_same_length(grid, target)
        self.dx = check_spacing(dx)
        if int(steps) != steps or steps < 0:
            raise InvalidConfigurationError(f"Step count must be a non-negative integer, got {steps}")
        if not np.isfinite(lr) or lr <= 0:
            raise InvalidConfigurationError(f"Learning rate must be positive, got {lr}")

        self.model = model
        self.domain = domain_bounds(domain)
        self.steps = int(steps)
        self.lr = float(lr)
        self.objective_label = objective_label(objective)
        self._metric = resolve_objective(objective)
        self._grid = grid.copy()
        self._target = normalize_density(target, self.dx)
        self._theta = pack_params(model, initial)
        self._fd_steps = finite_difference_steps(model, self.domain)
        self._on_update = on_update
        self._should_stop = should_stop
        self._suspend = suspend or _default_suspend
        self._cancel_requested = False
        self._history: List[float] = []
        self._initial_value = float("nan")
        self.state = FitState.IDLE

    @property
    def history(self) -> List[float]:
        return list(self._history)

    @property
    def components(self) -> Mixture:
        return unpack_params(self.model, self._theta)

    def evaluate(self, theta: np.ndarray) -> float:
        """Objective value of the mixture encoded by theta."""
        p = density_on_grid(unpack_params(self.model, theta), self._grid, self.dx)
        return self._metric(p, self._target, self.dx)

    def cancel(self) -> None:
        """Request cancellation; honoured at the next step boundary."""
        self._cancel_requested = True

    def _stop_requested(self) -> bool:
        if self._cancel_requested:
            return True
        return self._should_stop is not None and bool(self._should_stop())

    def result(self) -> FitResult:
        return FitResult(
            components=self.components,
            history=self.history,
            state=self.state,
            initial_value=self._initial_value,
            theta=self._theta.copy(),
        )

    async def run(self) -> FitResult:
        """
        Run the optimization loop.

        Calling run() on a session that already ran returns its stored
        result without taking further steps.

        Returns:
        --------
        FitResult
        """
        if self.state is not FitState.IDLE:
            return self.result()

        self.state = FitState.RUNNING
        self._initial_value = self.evaluate(self._theta)
        logger.info(
            f"Starting fit: model={self.model.kind}(k={self.model.k}), objective={self.objective_label}, "
            f"steps={self.steps}, lr={self.lr}, initial value={self._initial_value:.6g}"
        )

        for step in range(self.steps):
            if self._stop_requested():
                self.state = FitState.CANCELLED
                logger.info(f"Fit cancelled after {len(self._history)} steps")
                return self.result()

            grad = finite_difference_gradient(self._theta, self._fd_steps, self.evaluate)
            theta = self._theta - self.lr * grad
            self._theta = clamp_means(self.model, theta, self.domain)

            components = unpack_params(self.model, self._theta)
            value = self.evaluate(self._theta)
            self._history.append(value)
            logger.debug(f"Step {step}: {self.objective_label}={value:.8g}")
            if self._on_update is not None:
                self._on_update(components, step, value)

            await self._suspend()

        self.state = FitState.COMPLETED
        final = self._history[-1] if self._history else self._initial_value
        logger.info(f"Fit completed: {len(self._history)} steps, final value={final:.6g}")
        return self.result()


async def fit_model_to_target(
    target: np.ndarray,
    grid: np.ndarray,
    dx: float,
    initial: Sequence[GaussianComponent],
    model: Optional[ModelKind] = None,
    objective: ObjectiveSpec = Objective.KL_QP,
    steps: int = 120,
    lr: float = 0.2,
    domain: Optional[Sequence[float]] = None,
    on_update: Optional[UpdateCallback] = None,
    should_stop: Optional[StopPredicate] = None,
    suspend: Optional[SuspendFn] = None,
) -> FitResult:
    """
    Fit a mixture model to a target density by minimizing a divergence.

    Parameters:
    -----------
    target : np.ndarray
        Target density Q on the grid, shape (N,)
    grid : np.ndarray
        Uniform grid points, shape (N,)
    dx : float
        Grid spacing
    initial : sequence of GaussianComponent
        Starting mixture (packed according to `model`)
    model : ModelKind, optional
        Model family (default: single Gaussian)
    objective : str, Objective or mapping
        Objective name, or {name: weight} for a weighted combination
    steps : int
        Number of gradient steps
    lr : float
        Learning rate
    domain : [min, max], optional
        Bounds for the means (default: grid end points)
    on_update : callable, optional
        Called as on_update(components, step_index, value) after each step
    should_stop : callable, optional
        Polled before each step; returning True cancels the fit
    suspend : async callable, optional
        Awaited once per step (default: asyncio.sleep(0))

    Returns:
    --------
    FitResult
    """
    if model is None:
        model = ModelKind.gaussian()
    if domain is None:
        grid_arr = check_density(grid, "grid")
        domain = (float(grid_arr[0]), float(grid_arr[-1]))
    session = FitSession(
        target, grid, dx, initial, model, objective, steps, lr, domain,
        on_update=on_update, should_stop=should_stop, suspend=suspend,
    )
    return await session.run()


def fit_model_to_target_sync(*args, **kwargs) -> FitResult:
    """Blocking wrapper around `fit_model_to_target` for scripts and the CLI."""
    return asyncio.run(fit_model_to_target(*args, **kwargs))
