"""
Console reports and static plots for divergence fits.
"""

import base64
import io
import numpy as np
import matplotlib
matplotlib.use('Agg')  # Set backend (no GUI required)
import matplotlib.pyplot as plt
from typing import Optional, Sequence

from .grid_utils import MIN_PDF_VALUE
from .mixture import GaussianComponent, gaussian_pdf, normalize_weights
from .divergences import DivergenceResult
from .optimizer import FitResult

# Output formatting
SECTION_WIDTH = 70
COL_LABEL_WIDTH = 26
COL_VALUE_WIDTH = 16

METRIC_LABELS = (
    ("kl_pq", "KL(P || Q)"),
    ("kl_qp", "KL(Q || P)"),
    ("jeffreys", "Jeffreys (KL sym)"),
    ("js", "Jensen-Shannon"),
    ("cross_pq", "Cross-Entropy H(P,Q)"),
    ("cross_qp", "Cross-Entropy H(Q,P)"),
    ("tv", "Total Variation"),
    ("hellinger", "Hellinger"),
    ("bhattacharyya", "Bhattacharyya"),
    ("w1", "Wasserstein-1"),
)


# ============================================================
# 1) Output formatting functions
# ============================================================

def print_section_header(title: str, width: int = SECTION_WIDTH) -> None:
    """Print a section header with separator lines."""
    print("\n" + "="*width)
    print(title)
    print("="*width)


def print_subsection_header(title: str, width: int = SECTION_WIDTH) -> None:
    """Print a subsection header with separator lines."""
    print("\n" + "-"*width)
    print(title)
    print("-"*width)


def format_metric(value: float) -> str:
    return f"{value:.4f}"


def print_metrics_table(metrics: DivergenceResult, units: str = "nats", title: str = "DIVERGENCE METRICS") -> None:
    """Print every metric, information quantities converted to `units`."""
    print_section_header(f"{title} ({units})")
    values = metrics.to_units(units).as_dict()
    print(f"{'Metric':<{COL_LABEL_WIDTH}} {'Value':>{COL_VALUE_WIDTH}}")
    print("-" * (COL_LABEL_WIDTH + COL_VALUE_WIDTH + 1))
    for key, label in METRIC_LABELS:
        print(f"{label:<{COL_LABEL_WIDTH}} {format_metric(values[key]):>{COL_VALUE_WIDTH}}")


def print_fit_summary(result: FitResult, objective: str, steps: int, elapsed: Optional[float] = None) -> None:
    """Print objective values and the final state of a fit."""
    print_section_header("FIT RESULTS")
    print(f"Objective: {objective}")
    print(f"Steps: {result.n_steps} / {steps} ({result.state.value})")
    print(f"Initial objective value: {result.initial_value:.10f}")
    print(f"Final objective value:   {result.final_value:.10f}")
    if elapsed is not None:
        print(f"Execution time: {elapsed:>10.6f} seconds")


def print_mixture_components(components: Sequence[GaussianComponent], title: str = "FITTED MIXTURE",
                             threshold: float = 1e-8) -> None:
    """
    Print mixture component parameters.

    Components whose normalized weight is below `threshold` are not shown.
    """
    print_section_header(title)
    comps = normalize_weights(components)
    shown = [c for c in comps if c.weight > threshold]
    if len(shown) < len(comps):
        print(f"Number of components: {len(comps)} (showing {len(shown)} non-zero components)")
    else:
        print(f"Number of components: {len(comps)}")
    print("\nComponent details:")
    for idx, c in enumerate(shown, start=1):
        print(f"  Component {idx}: w={c.weight:.8f}, μ={c.mean:.8f}, σ={c.sigma:.8f}")


def print_plot_output(output_path: str) -> None:
    """Print plot output information."""
    print_section_header("PLOT OUTPUT")
    print(f"Plot saved: {output_path}.png")
    print("="*SECTION_WIDTH)


# ============================================================
# 2) Plotting
# ============================================================

def _draw_fit_figure(
    grid: np.ndarray,
    target: np.ndarray,
    fitted: np.ndarray,
    history: Sequence[float],
    components: Optional[Sequence[GaussianComponent]] = None,
    title: str = "",
    component_threshold: float = 1e-8,
):
    """Build a figure: densities (top) and objective history (bottom)."""
    plt.rcParams['font.family'] = 'DejaVu Sans'
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 9))

    # -------- Top subplot: densities --------
    ax1.plot(grid, target, 'b-', linewidth=2, label='Q (target)', alpha=0.8)
    ax1.plot(grid, fitted, 'r--', linewidth=2, label='P (model)', alpha=0.8)
    if components is not None:
        comps = [c for c in normalize_weights(components) if c.weight >= component_threshold]
        colors = plt.cm.tab10(np.linspace(0, 1, max(len(comps), 1)))
        for idx, c in enumerate(comps):
            ax1.plot(grid, c.weight * gaussian_pdf(grid, c.mean, c.sigma), ':', linewidth=1.5,
                     color=colors[idx], alpha=0.6,
                     label=f'Component {idx+1} (w={c.weight:.3f})')
    ax1.set_xlabel('x', fontsize=12)
    ax1.set_ylabel('Probability Density', fontsize=12)
    ax1.set_title('Target vs Fitted Density', fontsize=12)
    ax1.legend(fontsize=10)
    ax1.grid(True, alpha=0.3)
    ax1.set_xlim(grid.min(), grid.max())

    # -------- Bottom subplot: objective history --------
    history = np.asarray(history, dtype=float)
    if history.size > 0:
        steps = np.arange(1, history.size + 1)
        if np.all(history[np.isfinite(history)] > 0):
            ax2.semilogy(steps, np.maximum(history, MIN_PDF_VALUE), 'k-', linewidth=1.5)
        else:
            ax2.plot(steps, history, 'k-', linewidth=1.5)
    ax2.set_xlabel('Step', fontsize=12)
    ax2.set_ylabel('Objective', fontsize=12)
    ax2.set_title('Objective History', fontsize=12)
    ax2.grid(True, alpha=0.3, which='both')

    if title:
        fig.suptitle(title, fontsize=13, y=0.995)
    return fig


def plot_fit_comparison(
    grid: np.ndarray,
    target: np.ndarray,
    fitted: np.ndarray,
    history: Sequence[float],
    output_path: str,
    components: Optional[Sequence[GaussianComponent]] = None,
    title: str = "",
) -> None:
    """
    Save a comparison plot of target and fitted densities.

    Parameters:
    -----------
    grid : np.ndarray
        Grid points
    target : np.ndarray
        Target density values
    fitted : np.ndarray
        Fitted model density values
    history : sequence of float
        Objective value per step
    output_path : str
        Output file path without extension (will add .png)
    components : sequence of GaussianComponent, optional
        Fitted components, drawn individually when given
    title : str
        Figure title
    """
    fig = _draw_fit_figure(grid, target, fitted, history, components, title)
    fig.savefig(f'{output_path}.png', dpi=150, bbox_inches='tight')
    plt.close(fig)


def plot_fit_base64(
    grid: np.ndarray,
    target: np.ndarray,
    fitted: np.ndarray,
    history: Sequence[float],
    components: Optional[Sequence[GaussianComponent]] = None,
    title: str = "",
) -> str:
    """Render the comparison plot and return it as a PNG data URL."""
    fig = _draw_fit_figure(grid, target, fitted, history, components, title)
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=120, bbox_inches='tight')
    plt.close(fig)
    buf.seek(0)
    plot_base64 = base64.b64encode(buf.read()).decode('utf-8')
    buf.close()
    return f"data:image/png;base64,{plot_base64}"
