"""
Tests for divergence metrics between grid densities.
"""
import numpy as np
import pytest
from divergence_fitting import (
    GaussianComponent,
    InvalidConfigurationError,
    make_grid,
    grid_spacing,
    density_on_grid,
    kl,
    cross_entropy,
    entropy,
    jensen_shannon,
    total_variation,
    hellinger,
    bhattacharyya,
    wasserstein1,
    compute_all,
)


def _density(components, domain, n):
    x = make_grid(domain, n)
    dx = grid_spacing(domain, n)
    return x, dx, density_on_grid(components, x, dx)


class TestIdenticalDensities:
    """Divergences of a density with itself."""

    def test_all_metrics_vanish(self):
        comps = (GaussianComponent(-1.0, 0.7, 0.4), GaussianComponent(1.5, 1.1, 0.6))
        _, dx, p = _density(comps, (-8.0, 8.0), 2048)
        m = compute_all(p, p.copy(), dx)
        for name in ("kl_pq", "kl_qp", "js", "jeffreys", "tv", "hellinger", "bhattacharyya", "w1"):
            assert abs(getattr(m, name)) < 1e-6, name

    def test_cross_entropy_equals_entropy(self):
        _, dx, p = _density((GaussianComponent(0.0, 1.0),), (-8.0, 8.0), 2048)
        m = compute_all(p, p, dx)
        assert m.cross_pq == pytest.approx(entropy(p, dx))
        # Differential entropy of N(0, 1)
        assert m.cross_pq == pytest.approx(0.5 * np.log(2 * np.pi * np.e), abs=1e-4)


class TestKnownValues:
    """Metrics with closed-form expectations."""

    def test_js_disjoint_modes(self):
        """JS approaches ln 2 for densities without overlap."""
        domain = (-20.0, 20.0)
        _, dx, p = _density((GaussianComponent(-10.0, 0.3),), domain, 4096)
        _, _, q = _density((GaussianComponent(10.0, 0.3),), domain, 4096)
        js = jensen_shannon(p, q, dx)
        assert js <= np.log(2) + 1e-12
        assert js == pytest.approx(np.log(2), abs=1e-6)

    def test_js_bounded(self):
        _, dx, p = _density((GaussianComponent(-1.0, 0.5),), (-6.0, 6.0), 1024)
        _, _, q = _density((GaussianComponent(1.0, 1.5),), (-6.0, 6.0), 1024)
        assert 0.0 <= jensen_shannon(p, q, dx) <= np.log(2)

    def test_wasserstein_shift(self):
        """W1 between two shifted copies is the shift."""
        domain = (-10.0, 10.0)
        _, dx, p = _density((GaussianComponent(-2.0, 0.8),), domain, 4096)
        _, _, q = _density((GaussianComponent(1.0, 0.8),), domain, 4096)
        assert wasserstein1(p, q, dx) == pytest.approx(3.0, abs=1e-2)

    def test_cross_entropy_identity(self):
        """H(P,Q) = H(P) + KL(P||Q)."""
        _, dx, p = _density((GaussianComponent(-0.5, 0.9),), (-8.0, 8.0), 2048)
        _, _, q = _density((GaussianComponent(0.7, 1.3),), (-8.0, 8.0), 2048)
        assert cross_entropy(p, q, dx) == pytest.approx(entropy(p, dx) + kl(p, q, dx), rel=1e-9)

    def test_gaussian_kl_closed_form(self):
        """KL between two Gaussians matches the analytic expression."""
        m1, s1, m2, s2 = 0.0, 1.0, 0.5, 1.4
        _, dx, p = _density((GaussianComponent(m1, s1),), (-12.0, 12.0), 4096)
        _, _, q = _density((GaussianComponent(m2, s2),), (-12.0, 12.0), 4096)
        expected = np.log(s2 / s1) + (s1**2 + (m1 - m2)**2) / (2 * s2**2) - 0.5
        assert kl(p, q, dx) == pytest.approx(expected, abs=1e-6)

    def test_bounded_distances(self):
        _, dx, p = _density((GaussianComponent(-2.0, 0.5),), (-6.0, 6.0), 1024)
        _, _, q = _density((GaussianComponent(2.0, 0.5),), (-6.0, 6.0), 1024)
        assert 0.0 <= total_variation(p, q, dx) <= 1.0
        assert 0.0 <= hellinger(p, q, dx) <= 1.0
        assert bhattacharyya(p, q, dx) >= 0.0


class TestAsymmetry:
    """Mode-seeking KL(P||Q) vs mode-covering KL(Q||P)."""

    def test_kl_directions_pick_different_means(self):
        domain = (-8.0, 8.0)
        x, dx, q = _density(
            (GaussianComponent(-3.0, 0.5, 0.5), GaussianComponent(3.0, 0.5, 0.5)), domain, 2048
        )
        means = np.linspace(-4.0, 4.0, 161)
        kl_pq = []
        kl_qp = []
        for mu in means:
            p = density_on_grid((GaussianComponent(float(mu), 0.55),), x, dx)
            kl_pq.append(kl(p, q, dx))
            kl_qp.append(kl(q, p, dx))
        best_pq = means[int(np.argmin(kl_pq))]
        best_qp = means[int(np.argmin(kl_qp))]
        # KL(P||Q) locks onto one mode, KL(Q||P) sits between them
        assert abs(best_pq) > 2.0
        assert abs(best_qp) < 0.5


class TestEdgeCases:
    """Floors, zero densities and invalid input."""

    def test_kl_with_empty_target_region_is_finite(self):
        """Zero q under positive p gives a large but finite value."""
        p = np.array([0.5, 0.5, 0.0, 0.0])
        q = np.array([0.0, 0.0, 0.5, 0.5])
        value = kl(p, q, 1.0)
        assert np.isfinite(value)
        assert value > 100

    def test_zero_p_contributes_nothing(self):
        p = np.zeros(4)
        q = np.array([0.25, 0.25, 0.25, 0.25])
        assert kl(p, q, 1.0) == 0.0

    def test_mismatched_lengths(self):
        with pytest.raises(InvalidConfigurationError):
            kl(np.ones(3), np.ones(4), 0.1)

    def test_invalid_spacing(self):
        with pytest.raises(InvalidConfigurationError):
            compute_all(np.ones(3), np.ones(3), 0.0)

    def test_empty_density(self):
        with pytest.raises(InvalidConfigurationError):
            total_variation(np.array([]), np.array([]), 0.1)


class TestDivergenceResult:
    """Tests for compute_all output and unit conversion."""

    @pytest.fixture
    def metrics(self):
        _, dx, p = _density((GaussianComponent(-1.0, 0.6),), (-6.0, 6.0), 1024)
        _, _, q = _density((GaussianComponent(0.5, 1.0),), (-6.0, 6.0), 1024)
        return compute_all(p, q, dx)

    def test_jeffreys_is_sum(self, metrics):
        assert metrics.jeffreys == metrics.kl_pq + metrics.kl_qp

    def test_as_dict_keys(self, metrics):
        assert set(metrics.as_dict()) == {
            "kl_pq", "kl_qp", "js", "jeffreys", "cross_pq", "cross_qp",
            "tv", "hellinger", "bhattacharyya", "w1",
        }

    def test_bits_conversion(self, metrics):
        bits = metrics.to_units("bits")
        assert bits.kl_pq == pytest.approx(metrics.kl_pq / np.log(2))
        assert bits.js == pytest.approx(metrics.js / np.log(2))
        assert bits.cross_qp == pytest.approx(metrics.cross_qp / np.log(2))
        # Distances are unit-free
        assert bits.tv == metrics.tv
        assert bits.w1 == metrics.w1
        assert bits.hellinger == metrics.hellinger

    def test_nats_is_identity(self, metrics):
        assert metrics.to_units("nats") == metrics

    def test_unknown_units(self, metrics):
        with pytest.raises(InvalidConfigurationError):
            metrics.to_units("hartleys")

    def test_unnormalized_inputs(self):
        """compute_all normalizes its inputs first."""
        _, dx, p = _density((GaussianComponent(0.0, 1.0),), (-6.0, 6.0), 512)
        m = compute_all(3.0 * p, 0.5 * p, dx)
        assert abs(m.kl_pq) < 1e-9
        assert abs(m.tv) < 1e-9
