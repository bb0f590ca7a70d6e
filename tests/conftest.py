"""Shared fixtures: observation groups and recording mock engines."""

import numpy as np
import pytest

from clustergroup import Algorithm, EngineResult, GaussianMixture

# Responsibilities returned for group 0 by the mock engine
QZ_GROUP_0 = np.array([[0.9, 0.1], [0.2, 0.8]])
QZ_GROUP_1 = np.array([[0.6, 0.4], [0.5, 0.5], [0.1, 0.9]])
W_GROUP_0 = np.array([0.5, 0.5])
W_GROUP_1 = np.array([0.3, 0.7])
DATA_DIM = 3


class MockEngine:
    """Engine entry point that records its calls and returns a fixed result."""

    def __init__(
        self,
        result: EngineResult | None = None,
        error: Exception | None = None,
        message: str | None = None,
    ) -> None:
        self.result = result
        self.error = error
        self.message = message
        self.calls: list[tuple] = []

    @property
    def n_calls(self) -> int:
        return len(self.calls)

    def learn(self, groups, sparse, verbose, cluster_width, sink):
        self.calls.append((groups, sparse, verbose, cluster_width, sink))
        if self.message is not None:
            sink.write(self.message)
        if self.error is not None:
            raise self.error
        return self.result


def make_result() -> EngineResult:
    """A two-group, two-cluster engine result."""
    mixture = GaussianMixture(
        weights=np.array([0.4, 0.6]),
        means=np.arange(6, dtype=np.float64).reshape(2, DATA_DIM),
        covariances=np.stack([np.eye(DATA_DIM), 2.0 * np.eye(DATA_DIM)]),
    )
    return EngineResult(
        free_energy=-123.5,
        responsibilities=[QZ_GROUP_0.copy(), QZ_GROUP_1.copy()],
        weights=[W_GROUP_0.copy(), W_GROUP_1.copy()],
        mixture=mixture,
    )


@pytest.fixture
def groups() -> list[np.ndarray]:
    """Two observation groups with N = 2 and N = 3, D = 3."""
    rng = np.random.default_rng(0)
    return [rng.normal(size=(2, DATA_DIM)), rng.normal(size=(3, DATA_DIM))]


@pytest.fixture
def gmc() -> MockEngine:
    return MockEngine(make_result())


@pytest.fixture
def sgmc() -> MockEngine:
    return MockEngine(make_result())


@pytest.fixture
def engines(gmc: MockEngine, sgmc: MockEngine) -> dict[Algorithm, MockEngine]:
    return {Algorithm.GMC: gmc, Algorithm.SGMC: sgmc}
