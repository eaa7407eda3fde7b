"""Divergence fitting: divergence metrics between 1D grid densities and
finite-difference gradient fitting of Gaussian mixtures to a target density.
"""

from .grid_utils import (
    LOG_EPSILON,
    SIGMA_FLOOR,
    MIN_PDF_VALUE,
    DEFAULT_GRID_POINTS,
    InvalidConfigurationError,
    make_grid,
    grid_spacing,
    clamp,
    integrate,
    trapezoid,
    cumulative,
    normalize_density,
)
from .mixture import (
    GaussianComponent,
    Mixture,
    normalize_weights,
    gaussian_pdf,
    mixture_pdf,
    density_on_grid,
    amplitude_at_mean,
    default_mixture,
    components_from_dicts,
    components_to_dicts,
    sample_mixture,
    histogram_density,
)
from .divergences import (
    DivergenceResult,
    kl,
    cross_entropy,
    entropy,
    jensen_shannon,
    jeffreys,
    total_variation,
    bhattacharyya_coefficient,
    hellinger_and_bhattacharyya,
    hellinger,
    bhattacharyya,
    wasserstein1,
    compute_all,
)
from .reparam import (
    ModelKind,
    pack_params,
    unpack_params,
    stable_softmax,
    finite_difference_steps,
    clamp_means,
)
from .optimizer import (
    Objective,
    FitState,
    FitResult,
    FitSession,
    parse_objective,
    resolve_objective,
    objective_label,
    objective_value,
    finite_difference_gradient,
    fit_model_to_target,
    fit_model_to_target_sync,
)
from .landscape import LANDSCAPE_SENTINEL, LandscapeResult, objective_landscape
from .config import (
    DEFAULT_DOMAIN,
    DEFAULT_GRID_N,
    DEFAULT_OBJECTIVE,
    DEFAULT_STEPS,
    DEFAULT_LR,
    FitProblem,
    load_config,
    apply_defaults,
    model_kind_from_config,
    build_fit_problem,
)
from .reporting import (
    print_section_header,
    print_subsection_header,
    print_metrics_table,
    print_fit_summary,
    print_mixture_components,
    print_plot_output,
    plot_fit_comparison,
    plot_fit_base64,
)

__version__ = "1.0.0"
