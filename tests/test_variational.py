"""Tests for the scikit-learn reference backend.

Fits small, well-separated two-blob datasets split across groups and checks
the structural guarantees of the engine outputs.
"""

import io

import jax
import numpy as np
import pytest
from sklearn.mixture import BayesianGaussianMixture

from clustergroup import (
    Algorithm,
    EngineError,
    EngineLogicError,
    EngineRuntimeError,
    invoke,
)
from plugins.engines.variational import VariationalBackend, VariationalEngine

jax.config.update("jax_platform_name", "cpu")

# Tolerances
ATOL = 1e-6

MAX_CLUSTERS = 4


@pytest.fixture
def blobs() -> tuple[np.ndarray, np.ndarray]:
    """Two well-separated 2-D blobs."""
    rng = np.random.default_rng(1)
    left = rng.normal(-5.0, 0.5, size=(40, 2))
    right = rng.normal(5.0, 0.5, size=(30, 2))
    return left, right


@pytest.fixture
def groups(blobs: tuple[np.ndarray, np.ndarray]) -> list[np.ndarray]:
    """Group 0 mixes both blobs, group 1 is mostly the left blob."""
    left, right = blobs
    return [np.vstack([left[:10], right]), left[10:]]


@pytest.fixture
def backend() -> VariationalBackend:
    return VariationalBackend(max_clusters=MAX_CLUSTERS, random_state=0)


class TestBackend:
    def test_entry_points(self, backend: VariationalBackend) -> None:
        entry_points = backend.entry_points()
        assert set(entry_points) == {Algorithm.GMC, Algorithm.SGMC}
        gmc = entry_points[Algorithm.GMC]
        sgmc = entry_points[Algorithm.SGMC]
        assert isinstance(gmc, VariationalEngine)
        assert isinstance(sgmc, VariationalEngine)
        assert gmc.weight_prior == "dirichlet_process"
        assert sgmc.weight_prior == "dirichlet_distribution"


class TestVariationalEngine:
    @pytest.mark.parametrize("algorithm", [Algorithm.GMC, Algorithm.SGMC])
    @pytest.mark.parametrize("sparse", [False, True])
    def test_output_structure(
        self,
        backend: VariationalBackend,
        groups: list[np.ndarray],
        algorithm: Algorithm,
        sparse: bool,
    ) -> None:
        engine = backend.entry_points()[algorithm]
        result = engine.learn(groups, sparse, False, 0.01, io.StringIO())

        n_clusters = result.mixture.n_clusters
        assert 1 <= n_clusters <= MAX_CLUSTERS
        assert np.isfinite(result.free_energy)

        assert [qz.shape for qz in result.responsibilities] == [
            (40, n_clusters),
            (30, n_clusters),
        ]
        for qz in result.responsibilities:
            np.testing.assert_allclose(qz.sum(axis=1), 1.0, atol=ATOL)

        assert [w.shape for w in result.weights] == [(n_clusters,), (n_clusters,)]
        for w in result.weights:
            assert w.sum() == pytest.approx(1.0)

        assert result.mixture.means.shape == (n_clusters, 2)
        assert result.mixture.covariances.shape == (n_clusters, 2, 2)
        assert result.mixture.weights.sum() == pytest.approx(1.0)

    def test_separates_blobs(
        self, backend: VariationalBackend, groups: list[np.ndarray]
    ) -> None:
        engine = backend.entry_points()[Algorithm.GMC]
        result = engine.learn(groups, True, False, 0.01, io.StringIO())
        labels = np.argmax(result.responsibilities[0], axis=1)
        assert set(labels[:10]).isdisjoint(labels[10:])

    def test_empty_group_gets_global_weights(
        self, backend: VariationalBackend, groups: list[np.ndarray]
    ) -> None:
        engine = backend.entry_points()[Algorithm.SGMC]
        result = engine.learn(
            [groups[0], np.zeros((0, 2)), groups[1]], True, False, 0.01, io.StringIO()
        )
        assert result.responsibilities[1].shape == (0, result.mixture.n_clusters)
        np.testing.assert_allclose(result.weights[1], result.mixture.weights)

    def test_verbose_reports_progress(
        self, backend: VariationalBackend, groups: list[np.ndarray]
    ) -> None:
        sink = io.StringIO()
        backend.entry_points()[Algorithm.GMC].learn(groups, False, True, 0.01, sink)
        assert "70 observations in 2 groups" in sink.getvalue()
        assert "Finished" in sink.getvalue()

    def test_quiet(self, groups: list[np.ndarray]) -> None:
        sink = io.StringIO()
        engine = VariationalEngine("dirichlet_process", max_clusters=2, max_iter=500)
        engine.learn(groups, False, False, 0.01, sink)
        assert "Learning" not in sink.getvalue()

    def test_no_observations(self, backend: VariationalBackend) -> None:
        engine = backend.entry_points()[Algorithm.GMC]
        with pytest.raises(EngineLogicError, match="No observations"):
            engine.learn([np.zeros((0, 2))], False, False, 0.01, io.StringIO())

    @pytest.mark.parametrize(
        "message, error_type",
        [
            (
                "Fitting the model failed because some components have "
                "ill-defined empirical covariance (for instance caused by "
                "singleton or collapsed samples).",
                EngineRuntimeError,
            ),
            ("Expected n_samples >= n_components", EngineLogicError),
        ],
    )
    def test_fit_value_errors(
        self,
        backend: VariationalBackend,
        groups: list[np.ndarray],
        monkeypatch: pytest.MonkeyPatch,
        message: str,
        error_type: type[Exception],
    ) -> None:
        def fail(self, X, y=None):
            raise ValueError(message)

        monkeypatch.setattr(BayesianGaussianMixture, "fit", fail)
        engine = backend.entry_points()[Algorithm.GMC]
        with pytest.raises(error_type, match=message[:20]):
            engine.learn(groups, False, False, 0.01, io.StringIO())


class TestInvokeWithBackend:
    def test_end_to_end(
        self, backend: VariationalBackend, groups: list[np.ndarray]
    ) -> None:
        free_energy, qz, wj, gmm = invoke(
            groups, 1, True, False, 0.05, engines=backend.entry_points()
        )
        assert isinstance(free_energy, float)
        assert [q.shape for q in qz] == [(40, gmm.K), (30, gmm.K)]
        assert [w.shape for w in wj] == [(1, gmm.K), (1, gmm.K)]
        assert len(gmm.w) == len(gmm.mu) == len(gmm.sigma) == gmm.K
        assert gmm.mu[0].shape == (2,)
        assert gmm.sigma[0].shape == (2, 2)

    def test_engine_error_surfaces(self, backend: VariationalBackend) -> None:
        with pytest.raises(EngineError, match="No observations to cluster."):
            invoke([np.zeros((0, 2))], 2, engines=backend.entry_points())
