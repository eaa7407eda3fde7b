"""
Configuration loading for divergence fitting runs.

A run is described by a JSON file; any key left out falls back to the
DEFAULT_* constants below.
"""

import json
import logging
import numpy as np
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .grid_utils import make_grid, grid_spacing, InvalidConfigurationError
from .mixture import (
    Mixture,
    components_from_dicts,
    components_to_dicts,
    default_mixture,
    density_on_grid,
)
from .reparam import ModelKind
from .optimizer import ObjectiveSpec, parse_objective

logger = logging.getLogger(__name__)

# ============================================================
# Constants
# ============================================================

# Default values
DEFAULT_DOMAIN = [-6.0, 6.0]
DEFAULT_GRID_N = 1024
DEFAULT_MODEL = "gaussian"
DEFAULT_K = 1
DEFAULT_INITIAL = components_to_dicts(default_mixture("unimodal"))
DEFAULT_TARGET = [
    {"mean": -1.5, "sigma": 0.55, "weight": 0.873},
    {"mean": 1.2, "sigma": 0.75, "weight": 0.166},
]
DEFAULT_OBJECTIVE = "kl_qp"
DEFAULT_STEPS = 120
DEFAULT_LR = 0.2
DEFAULT_UNITS = "nats"
DEFAULT_SEED = 1
DEFAULT_SAMPLES_N = 1500
DEFAULT_BINS = 80
DEFAULT_SIGMA_RANGE = [0.2, 2.5]
DEFAULT_LANDSCAPE = False
DEFAULT_OUTPUT_PATH = "divergence_fit"


@dataclass
class FitProblem:
    """Everything needed to run one fit, built from a config dictionary."""
    domain: Tuple[float, float]
    grid: np.ndarray
    dx: float
    target_components: Mixture
    initial_components: Mixture
    target: np.ndarray
    model: ModelKind
    objective: ObjectiveSpec
    steps: int
    lr: float


def load_config(config_path: str) -> Dict:
    """
    Load configuration from JSON file.

    Parameters:
    -----------
    config_path : str
        Path to JSON configuration file

    Returns:
    --------
    dict
        Configuration dictionary with default values applied
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        print(f"Error: Configuration file '{config_path}' not found.")
        print("Using default parameters.")
        config = {}
    except json.JSONDecodeError as e:
        print(f"Error: Failed to parse JSON file: {e}")
        raise

    return apply_defaults(config)


def apply_defaults(config: Dict) -> Dict:
    """Fill every missing key of a raw config dictionary with its default."""
    return {
        "domain": config.get("domain", DEFAULT_DOMAIN),
        "grid_n": config.get("grid_n", DEFAULT_GRID_N),
        "model": config.get("model", DEFAULT_MODEL),
        "k": config.get("k", DEFAULT_K),
        "initial": config.get("initial", DEFAULT_INITIAL),
        "target": config.get("target", DEFAULT_TARGET),
        "objective": config.get("objective", DEFAULT_OBJECTIVE),
        "steps": config.get("steps", DEFAULT_STEPS),
        "lr": config.get("lr", DEFAULT_LR),
        "units": config.get("units", DEFAULT_UNITS),
        "seed": config.get("seed", DEFAULT_SEED),
        "samples_n": config.get("samples_n", DEFAULT_SAMPLES_N),
        "bins": config.get("bins", DEFAULT_BINS),
        "landscape": config.get("landscape", DEFAULT_LANDSCAPE),
        "sigma_range": config.get("sigma_range", DEFAULT_SIGMA_RANGE),
        "output_path": config.get("output_path", DEFAULT_OUTPUT_PATH),
    }


def model_kind_from_config(model: str, k: Optional[int] = None) -> ModelKind:
    if model == "gaussian":
        return ModelKind.gaussian()
    if model == "gmm":
        return ModelKind.gmm(DEFAULT_K if k is None else int(k))
    raise InvalidConfigurationError(f"Unknown model: {model}. Must be 'gaussian' or 'gmm'")


def build_fit_problem(config: Dict) -> FitProblem:
    """
    Turn a config dictionary into grid, densities and fit settings.

    Raises:
    ------
    InvalidConfigurationError
        If the domain, grid size, model or objective is invalid
    """
    config = apply_defaults(config)
    domain = config["domain"]
    if len(domain) != 2 or not domain[0] < domain[1]:
        raise InvalidConfigurationError(f"domain must be [min, max] with min < max, got {domain}")
    domain = (float(domain[0]), float(domain[1]))
    n = int(config["grid_n"])
    grid = make_grid(domain, n)
    dx = grid_spacing(domain, n)

    target_components = components_from_dicts(config["target"])
    if len(target_components) == 0:
        raise InvalidConfigurationError("target must contain at least one component")
    initial_components = components_from_dicts(config["initial"])
    model = model_kind_from_config(config["model"], config["k"])
    objective = config["objective"]
    parse_objective(objective)

    logger.debug(f"Built fit problem: domain={domain}, n={n}, model={model.kind}(k={model.k})")
    return FitProblem(
        domain=domain,
        grid=grid,
        dx=dx,
        target_components=target_components,
        initial_components=initial_components,
        target=density_on_grid(target_components, grid, dx),
        model=model,
        objective=objective,
        steps=int(config["steps"]),
        lr=float(config["lr"]),
    )
