#!/usr/bin/env python3
"""
Example: mode-seeking vs mode-covering fits of a bimodal target.

A single Gaussian is fitted to the same bimodal target twice, once by
minimizing KL(P||Q) and once by minimizing KL(Q||P), and the two fits are
compared with every divergence.

Usage:
    python examples/example_kl_asymmetry.py
    or
    cd examples && python example_kl_asymmetry.py
"""

import sys
from pathlib import Path

# Add src directory to path to import divergence_fitting package
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from divergence_fitting import (
    GaussianComponent,
    Objective,
    make_grid,
    grid_spacing,
    density_on_grid,
    compute_all,
    fit_model_to_target_sync,
    print_metrics_table,
    print_mixture_components,
)


def main():
    print("=" * 80)
    print("KL asymmetry: fitting one Gaussian to a bimodal target")
    print("=" * 80)

    # Grid setup
    domain = (-8.0, 8.0)
    grid = make_grid(domain, 2048)
    dx = grid_spacing(domain, 2048)

    # Target: two equal modes at ±3
    target_components = (
        GaussianComponent(-3.0, 0.5, 0.5),
        GaussianComponent(3.0, 0.5, 0.5),
    )
    target = density_on_grid(target_components, grid, dx)
    print_mixture_components(target_components, title="TARGET MIXTURE (Q)")

    initial = (GaussianComponent(0.5, 1.0),)

    for objective in (Objective.KL_PQ, Objective.KL_QP):
        print("\n" + "=" * 80)
        print(f"Objective: {objective.value}")
        print("=" * 80)

        result = fit_model_to_target_sync(
            target, grid, dx, initial,
            objective=objective,
            steps=150,
            lr=0.1,
            domain=domain,
        )
        c = result.components[0]
        print(f"  Fitted: μ={c.mean:.4f}, σ={c.sigma:.4f}")
        print(f"  Objective: {result.initial_value:.6f} -> {result.final_value:.6f}")

        p = density_on_grid(result.components, grid, dx)
        print_metrics_table(compute_all(p, target, dx), "nats", title=f"METRICS AFTER {objective.value.upper()} FIT")

    print("\nKL(P||Q) settles on one mode; KL(Q||P) spreads over both.")


if __name__ == "__main__":
    main()
