"""
Pydantic models for API request/response.
"""

from typing import Optional, List, Literal, Dict, Union
from pydantic import BaseModel, Field, field_validator

ObjectiveName = Literal[
    "kl_pq", "kl_qp", "js", "jeffreys", "cross_pq", "cross_qp",
    "tv", "hellinger", "bhattacharyya", "w1",
]


class ComponentParams(BaseModel):
    """Gaussian mixture component."""
    mean: float = Field(default=0.0, description="Mean")
    sigma: float = Field(default=1.0, gt=0, description="Standard deviation")
    weight: float = Field(default=1.0, ge=0, description="Mixing weight (normalized internally)")


class GridParams(BaseModel):
    """Parameters for the density grid."""
    domain: List[float] = Field(default=[-6.0, 6.0], min_length=2, max_length=2, description="Domain [x_min, x_max]")
    n_points: int = Field(default=1024, ge=2, le=100000, description="Number of grid points")

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v):
        if len(v) != 2 or v[0] >= v[1]:
            raise ValueError("domain must be [x_min, x_max] with x_min < x_max")
        return v


class SampleParams(BaseModel):
    """Parameters for the sampled histogram overlay."""
    n_samples: int = Field(default=1500, gt=0, le=200000, description="Number of samples per density")
    bins: int = Field(default=80, gt=0, le=2000, description="Number of histogram bins")
    seed: int = Field(default=1, description="Random seed")


def _default_target() -> List[ComponentParams]:
    return [
        ComponentParams(mean=-1.5, sigma=0.55, weight=0.873),
        ComponentParams(mean=1.2, sigma=0.75, weight=0.166),
    ]


class MetricsRequest(BaseModel):
    """Request model for divergence metrics between two mixtures."""
    p_components: List[ComponentParams] = Field(default_factory=lambda: [ComponentParams(sigma=0.8)], min_length=1,
                                                 description="Model mixture P")
    q_components: List[ComponentParams] = Field(default_factory=_default_target, min_length=1,
                                                description="Target mixture Q")
    grid_params: GridParams = Field(default_factory=GridParams)
    units: Literal["nats", "bits"] = Field(default="nats", description="Units for information quantities")
    samples: Optional[SampleParams] = Field(default=None, description="Add sampled histograms when set")


class Histogram(BaseModel):
    """Empirical density of samples."""
    x: List[float]
    y: List[float]


class MetricsResponse(BaseModel):
    """Response model for divergence metrics."""
    x: List[float] = Field(description="Grid points")
    p: List[float] = Field(description="Model density values")
    q: List[float] = Field(description="Target density values")
    units: str
    metrics: Dict[str, Optional[float]] = Field(description="Every divergence between P and Q")
    p_histogram: Optional[Histogram] = None
    q_histogram: Optional[Histogram] = None


class FitRequest(BaseModel):
    """Request model for fitting a model to a target mixture."""
    initial: List[ComponentParams] = Field(default_factory=lambda: [ComponentParams(sigma=0.8)],
                                           description="Initial model mixture")
    target: List[ComponentParams] = Field(default_factory=_default_target, min_length=1,
                                          description="Target mixture Q")
    grid_params: GridParams = Field(default_factory=GridParams)
    model: Literal["gaussian", "gmm"] = Field(default="gaussian", description="Model family")
    k: int = Field(default=1, gt=0, le=20, description="Number of GMM components")
    objective: Union[ObjectiveName, Dict[ObjectiveName, float]] = Field(
        default="kl_qp", description="Objective name or {name: weight} combination")
    steps: int = Field(default=120, ge=0, le=5000, description="Number of gradient steps")
    lr: float = Field(default=0.2, gt=0, description="Learning rate")
    units: Literal["nats", "bits"] = Field(default="nats", description="Units for reported metrics")
    include_plot: bool = Field(default=False, description="Return a base64 encoded plot")


class FitResponse(BaseModel):
    """Response model for a fit."""
    success: bool
    state: str
    objective: str
    components: List[ComponentParams] = Field(description="Fitted mixture components")
    history: List[Optional[float]] = Field(description="Objective value per step")
    path: List[List[ComponentParams]] = Field(default_factory=list, description="Mixture components after each step")
    initial_value: Optional[float] = None
    final_value: Optional[float] = None
    n_steps: int
    x: List[float] = Field(description="Grid points")
    p: List[float] = Field(description="Fitted density values")
    q: List[float] = Field(description="Target density values")
    metrics: Dict[str, Optional[float]] = Field(description="Divergences between fitted model and target")
    execution_time: float
    plot_data_url: Optional[str] = Field(default=None, description="Base64 encoded plot image")


class LandscapeRequest(BaseModel):
    """Request model for the single-Gaussian objective landscape."""
    target: List[ComponentParams] = Field(default_factory=_default_target, min_length=1)
    grid_params: GridParams = Field(default_factory=GridParams)
    objective: Union[ObjectiveName, Dict[ObjectiveName, float]] = Field(default="kl_qp")
    sigma_range: List[float] = Field(default=[0.2, 2.5], min_length=2, max_length=2)
    nx: int = Field(default=72, gt=0, le=400)
    ny: int = Field(default=54, gt=0, le=400)

    @field_validator('sigma_range')
    @classmethod
    def validate_sigma_range(cls, v):
        if len(v) != 2 or v[0] <= 0 or v[0] >= v[1]:
            raise ValueError("sigma_range must be [s_min, s_max] with 0 < s_min < s_max")
        return v


class LandscapeResponse(BaseModel):
    """Response model for the objective landscape."""
    means: List[float]
    sigmas: List[float]
    values: List[List[float]] = Field(description="values[j][i] at (means[i], sigmas[j])")
    best_mean: float
    best_sigma: float
    best_value: float
