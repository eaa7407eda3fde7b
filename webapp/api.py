"""
FastAPI application for the divergence fitting web service.
"""

import sys
import os
import time
import json
import logging
import numpy as np
from typing import Dict, List, Optional
from fastapi import FastAPI, HTTPException, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware

# Add src directory to path to import divergence_fitting package
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from divergence_fitting import (
    __version__,
    GaussianComponent,
    InvalidConfigurationError,
    make_grid,
    grid_spacing,
    density_on_grid,
    compute_all,
    fit_model_to_target,
    objective_label,
    objective_landscape,
    sample_mixture,
    histogram_density,
    apply_defaults,
    model_kind_from_config,
    plot_fit_base64,
)
from webapp.models import (
    ComponentParams,
    GridParams,
    Histogram,
    MetricsRequest,
    MetricsResponse,
    FitRequest,
    FitResponse,
    LandscapeRequest,
    LandscapeResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Divergence Fitting API",
    description="API for comparing 1D densities and fitting Gaussian mixtures by minimizing a divergence",
    version=__version__
)

# CORS middleware for React frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _finite_or_none(value: float) -> Optional[float]:
    """JSON has no inf/NaN; report them as null."""
    value = float(value)
    return value if np.isfinite(value) else None


def _to_components(items: List[ComponentParams]) -> List[GaussianComponent]:
    return [GaussianComponent(c.mean, c.sigma, c.weight) for c in items]


def _from_components(components) -> List[ComponentParams]:
    return [ComponentParams(mean=c.mean, sigma=c.sigma, weight=c.weight) for c in components]


def _grid_from_params(grid_params: GridParams):
    domain = (float(grid_params.domain[0]), float(grid_params.domain[1]))
    grid = make_grid(domain, grid_params.n_points)
    dx = grid_spacing(domain, grid_params.n_points)
    return domain, grid, dx


def _metrics_dict(p: np.ndarray, q: np.ndarray, dx: float, units: str) -> Dict[str, Optional[float]]:
    metrics = compute_all(p, q, dx).to_units(units)
    return {key: _finite_or_none(value) for key, value in metrics.as_dict().items()}


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Divergence Fitting API", "version": __version__}


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/api/load-config")
async def load_config_file(file: UploadFile = File(...)):
    """
    Load configuration from JSON file and convert to FitRequest format.
    """
    try:
        content = await file.read()
        config = apply_defaults(json.loads(content.decode("utf-8")))

        return {
            "initial": config["initial"],
            "target": config["target"],
            "grid_params": {
                "domain": config["domain"],
                "n_points": config["grid_n"],
            },
            "model": config["model"],
            "k": config["k"],
            "objective": config["objective"],
            "steps": config["steps"],
            "lr": config["lr"],
            "units": config["units"],
        }

    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON file: {str(e)}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error loading config: {str(e)}")


@app.post("/api/metrics", response_model=MetricsResponse)
async def compute_metrics(request: MetricsRequest):
    """
    Compute every divergence between a model mixture P and a target mixture Q.
    """
    try:
        domain, grid, dx = _grid_from_params(request.grid_params)
        p_components = _to_components(request.p_components)
        q_components = _to_components(request.q_components)
        p = density_on_grid(p_components, grid, dx)
        q = density_on_grid(q_components, grid, dx)

        p_histogram = None
        q_histogram = None
        if request.samples is not None:
            rng = np.random.default_rng(request.samples.seed)
            for name, components in (("p", p_components), ("q", q_components)):
                samples = sample_mixture(components, request.samples.n_samples, rng)
                xs, ys = histogram_density(samples, request.samples.bins, domain)
                histogram = Histogram(x=xs.tolist(), y=ys.tolist())
                if name == "p":
                    p_histogram = histogram
                else:
                    q_histogram = histogram

        return MetricsResponse(
            x=grid.tolist(),
            p=p.tolist(),
            q=q.tolist(),
            units=request.units,
            metrics=_metrics_dict(p, q, dx, request.units),
            p_histogram=p_histogram,
            q_histogram=q_histogram,
        )

    except InvalidConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/fit", response_model=FitResponse)
async def fit(request: FitRequest):
    """
    Fit a model mixture to the target by gradient descent on the objective.

    The fit runs on the server's event loop and yields after every step.
    """
    try:
        domain, grid, dx = _grid_from_params(request.grid_params)
        model = model_kind_from_config(request.model, request.k)
        target = density_on_grid(_to_components(request.target), grid, dx)

        path = []
        start_time = time.time()
        result = await fit_model_to_target(
            target,
            grid,
            dx,
            _to_components(request.initial),
            model=model,
            objective=request.objective,
            steps=request.steps,
            lr=request.lr,
            domain=domain,
            on_update=lambda comps, step, value: path.append(_from_components(comps)),
        )
        execution_time = time.time() - start_time

        p_fit = density_on_grid(result.components, grid, dx)
        label = objective_label(request.objective)

        plot_data_url = None
        if request.include_plot:
            plot_data_url = plot_fit_base64(
                grid, target, p_fit, result.history,
                components=result.components,
                title=f"{model.kind} fit | objective: {label} | final: {result.final_value:.6f}",
            )

        return FitResponse(
            success=True,
            state=result.state.value,
            objective=label,
            components=_from_components(result.components),
            history=[_finite_or_none(v) for v in result.history],
            path=path,
            initial_value=_finite_or_none(result.initial_value),
            final_value=_finite_or_none(result.final_value),
            n_steps=result.n_steps,
            x=grid.tolist(),
            p=p_fit.tolist(),
            q=target.tolist(),
            metrics=_metrics_dict(p_fit, target, dx, request.units),
            execution_time=execution_time,
            plot_data_url=plot_data_url,
        )

    except InvalidConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Fit failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/landscape", response_model=LandscapeResponse)
async def landscape(request: LandscapeRequest):
    """
    Objective values of a single Gaussian over a (mean, sigma) grid.
    """
    try:
        domain, grid, dx = _grid_from_params(request.grid_params)
        target = density_on_grid(_to_components(request.target), grid, dx)
        result = objective_landscape(
            grid, dx, target, request.objective,
            mean_range=domain,
            sigma_range=request.sigma_range,
            nx=request.nx,
            ny=request.ny,
        )
        return LandscapeResponse(
            means=result.means.tolist(),
            sigmas=result.sigmas.tolist(),
            values=result.values.tolist(),
            best_mean=result.best_mean,
            best_sigma=result.best_sigma,
            best_value=result.best_value,
        )

    except InvalidConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
