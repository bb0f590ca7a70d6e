"""Protocols and types shared with the clustering engine.

The engine itself is an external collaborator: this module only fixes the
signature it is invoked with and the shape of what it returns. Arrays on this
side of the boundary are float64 numpy arrays.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple, Protocol, TextIO

import numpy as np

from .config import Algorithm


@dataclass(frozen=True)
class GaussianMixture:
    """Global mixture model produced by the engine."""

    weights: np.ndarray
    """Mixture weights with shape (n_clusters,)."""
    means: np.ndarray
    """Cluster means with shape (n_clusters, data_dim)."""
    covariances: np.ndarray
    """Cluster covariances with shape (n_clusters, data_dim, data_dim)."""

    @property
    def n_clusters(self) -> int:
        return int(self.weights.shape[0])


class EngineResult(NamedTuple):
    """Outputs of a single engine call."""

    free_energy: float
    responsibilities: list[np.ndarray]
    """One (N_j, n_clusters) matrix per group."""
    weights: list[np.ndarray]
    """One (n_clusters,) or (1, n_clusters) vector per group."""
    mixture: GaussianMixture


class ClusteringEngine(Protocol):
    """A single engine entry point, e.g. GMC or SGMC."""

    def learn(
        self,
        groups: list[np.ndarray],
        sparse: bool,
        verbose: bool,
        cluster_width: float,
        sink: TextIO,
    ) -> EngineResult:
        """Learn a group mixture model.

        Args:
            groups: Observation matrices, one (N_j, data_dim) array per group
            sparse: Use the sparse variant of the procedure
            verbose: Report progress on the sink
            cluster_width: Width of the cluster prior
            sink: Write-only stream for engine messages

        Returns:
            Free energy, per-group responsibilities, per-group weights and the
            global mixture model

        Raises:
            EngineLogicError: Malformed input detected by the engine
            EngineRuntimeError: Numerical or convergence failure
        """
        ...


class ClusteringBackend(ABC):
    """A provider of engine entry points, one per algorithm variant."""

    @abstractmethod
    def entry_points(self) -> dict[Algorithm, ClusteringEngine]:
        """Return the engine entry point for each supported variant."""
