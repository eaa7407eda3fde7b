"""
Tests for configuration loading and fit problem construction.
"""
import json
import tempfile
import os
import numpy as np
import pytest
from divergence_fitting import (
    InvalidConfigurationError,
    DEFAULT_DOMAIN,
    DEFAULT_GRID_N,
    DEFAULT_OBJECTIVE,
    DEFAULT_STEPS,
    DEFAULT_LR,
    ModelKind,
    integrate,
    load_config,
    apply_defaults,
    model_kind_from_config,
    build_fit_problem,
)

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs")


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_defaults(self):
        """Test loading config with defaults."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({}, f)
            config_path = f.name

        try:
            config = load_config(config_path)

            assert config['domain'] == DEFAULT_DOMAIN
            assert config['grid_n'] == DEFAULT_GRID_N
            assert config['objective'] == DEFAULT_OBJECTIVE
            assert config['steps'] == DEFAULT_STEPS
            assert config['lr'] == DEFAULT_LR
            assert config['model'] == "gaussian"
            assert config['units'] == "nats"
        finally:
            os.unlink(config_path)

    def test_load_config_custom_values(self):
        """Test loading config with custom values."""
        custom_config = {
            "model": "gmm",
            "k": 3,
            "objective": {"js": 1.0, "w1": 0.5},
            "steps": 10,
        }
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(custom_config, f)
            config_path = f.name

        try:
            config = load_config(config_path)
            assert config['model'] == "gmm"
            assert config['k'] == 3
            assert config['objective'] == {"js": 1.0, "w1": 0.5}
            assert config['steps'] == 10
            assert config['lr'] == DEFAULT_LR
        finally:
            os.unlink(config_path)

    def test_missing_file_uses_defaults(self, capsys):
        config = load_config("/nonexistent/config.json")
        assert config == apply_defaults({})
        assert "Using default parameters" in capsys.readouterr().out

    def test_invalid_json(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write("{not json")
            config_path = f.name

        try:
            with pytest.raises(json.JSONDecodeError):
                load_config(config_path)
        finally:
            os.unlink(config_path)

    @pytest.mark.parametrize("name", ["config_default.json", "config_gmm_js.json"])
    def test_shipped_configs(self, name):
        problem = build_fit_problem(load_config(os.path.join(CONFIG_DIR, name)))
        assert problem.steps > 0


class TestBuildFitProblem:
    """Tests for build_fit_problem."""

    def test_defaults(self):
        problem = build_fit_problem({})
        assert len(problem.grid) == DEFAULT_GRID_N
        assert problem.dx == pytest.approx(12.0 / (DEFAULT_GRID_N - 1))
        assert problem.model == ModelKind.gaussian()
        assert integrate(problem.target, problem.dx) == pytest.approx(1.0)
        assert len(problem.target_components) == 2

    def test_gmm_model(self):
        problem = build_fit_problem({"model": "gmm", "k": 4})
        assert problem.model == ModelKind.gmm(4)

    def test_reversed_domain(self):
        with pytest.raises(InvalidConfigurationError):
            build_fit_problem({"domain": [3.0, -3.0]})

    def test_unknown_model(self):
        with pytest.raises(InvalidConfigurationError):
            build_fit_problem({"model": "student_t"})

    def test_unknown_objective(self):
        with pytest.raises(InvalidConfigurationError):
            build_fit_problem({"objective": "kl"})

    def test_empty_target(self):
        with pytest.raises(InvalidConfigurationError):
            build_fit_problem({"target": []})

    def test_invalid_component(self):
        with pytest.raises(InvalidConfigurationError):
            build_fit_problem({"initial": [{"mean": 0.0, "sigma": -1.0}]})

    def test_model_kind_from_config(self):
        assert model_kind_from_config("gaussian") == ModelKind.gaussian()
        assert model_kind_from_config("gmm") == ModelKind.gmm(1)
        with pytest.raises(InvalidConfigurationError):
            model_kind_from_config("gmm", 0)

    def test_grid_matches_domain(self):
        problem = build_fit_problem({"domain": [-2.0, 2.0], "grid_n": 101})
        assert problem.grid[0] == -2.0
        assert problem.grid[-1] == 2.0
        assert np.allclose(np.diff(problem.grid), problem.dx)
