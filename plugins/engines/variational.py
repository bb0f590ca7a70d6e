"""Reference engine backend built on scikit-learn's variational Gaussian mixture."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import TextIO, override

import numpy as np
from hydra.core.config_store import ConfigStore
from sklearn.exceptions import ConvergenceWarning
from sklearn.mixture import BayesianGaussianMixture

from clustergroup.errors import EngineLogicError, EngineRuntimeError
from clustergroup.interface import (
    Algorithm,
    BackendConfig,
    ClusteringBackend,
    ClusteringEngine,
    EngineResult,
    GaussianMixture,
)

log = logging.getLogger(__name__)

# Numerical breakdown reported by sklearn as a ValueError
ILL_DEFINED_COVARIANCE = "ill-defined empirical covariance"


### Config ###


@dataclass
class VariationalBackendConfig(BackendConfig):
    """Configuration for the variational Gaussian mixture backend."""

    _target_: str = "plugins.engines.variational.VariationalBackend"

    max_clusters: int = 20
    """Upper bound on the number of mixture components."""
    max_iter: int = 500
    n_init: int = 1
    tol: float = 1e-3
    prune_threshold: float = 1.0
    """Minimum expected occupancy (in observations) of a component kept by sparse runs."""
    random_state: int = 42


# Register config
cs = ConfigStore.instance()
cs.store(group="backend", name="variational", node=VariationalBackendConfig)


### Engine ###


class VariationalEngine:
    """One engine entry point, fixed to a weight prior.

    Observations of all groups are pooled into one variational Gaussian
    mixture. Group weights are the mean responsibilities within each group.
    """

    def __init__(
        self,
        weight_prior: str,
        max_clusters: int = 20,
        max_iter: int = 500,
        n_init: int = 1,
        tol: float = 1e-3,
        prune_threshold: float = 1.0,
        random_state: int = 42,
    ):
        self.weight_prior = weight_prior
        self.max_clusters = max_clusters
        self.max_iter = max_iter
        self.n_init = n_init
        self.tol = tol
        self.prune_threshold = prune_threshold
        self.random_state = random_state

    def learn(
        self,
        groups: list[np.ndarray],
        sparse: bool,
        verbose: bool,
        cluster_width: float,
        sink: TextIO,
    ) -> EngineResult:
        pooled = np.vstack(groups)
        n_obs, data_dim = pooled.shape
        if n_obs == 0:
            raise EngineLogicError("No observations to cluster.")

        if verbose:
            sink.write(
                f"Learning {self.weight_prior} mixture on {n_obs} observations "
                f"in {len(groups)} groups.\n"
            )

        mixture = BayesianGaussianMixture(
            n_components=min(self.max_clusters, n_obs),
            covariance_type="full",
            weight_concentration_prior_type=self.weight_prior,
            covariance_prior=cluster_width * np.eye(data_dim),
            max_iter=self.max_iter,
            n_init=self.n_init,
            tol=self.tol,
            random_state=self.random_state,
        )

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ConvergenceWarning)
            try:
                mixture.fit(pooled)
            except np.linalg.LinAlgError as e:
                raise EngineRuntimeError(str(e)) from e
            except ValueError as e:
                if ILL_DEFINED_COVARIANCE in str(e):
                    raise EngineRuntimeError(str(e)) from e
                raise EngineLogicError(str(e)) from e

        if not mixture.converged_:
            sink.write(f"Warning: did not converge in {mixture.n_iter_} iterations.\n")

        qz = mixture.predict_proba(pooled)
        weights = mixture.weights_
        means = mixture.means_
        covariances = mixture.covariances_

        if sparse:
            keep = qz.sum(axis=0) >= self.prune_threshold
            if not keep.any():
                keep[np.argmax(weights)] = True
            qz = _renormalize(qz[:, keep])
            weights = weights[keep] / weights[keep].sum()
            means = means[keep]
            covariances = covariances[keep]

        free_energy = -float(mixture.lower_bound_)
        if verbose:
            sink.write(
                f"Finished in {mixture.n_iter_} iterations, "
                f"{weights.shape[0]} clusters, free energy = {free_energy:.6f}.\n"
            )

        splits = np.cumsum([group.shape[0] for group in groups])[:-1]
        responsibilities = np.split(qz, splits)
        group_weights = [
            qz_j.mean(axis=0) if qz_j.shape[0] > 0 else weights.copy()
            for qz_j in responsibilities
        ]

        return EngineResult(
            free_energy=free_energy,
            responsibilities=responsibilities,
            weights=group_weights,
            mixture=GaussianMixture(
                weights=weights, means=means, covariances=covariances
            ),
        )


def _renormalize(qz: np.ndarray) -> np.ndarray:
    """Rescale rows onto the simplex, spreading rows with no remaining mass."""
    row_mass = qz.sum(axis=1, keepdims=True)
    uniform = np.full_like(qz, 1.0 / qz.shape[1])
    return np.divide(qz, row_mass, out=uniform, where=row_mass > 0)


### Backend ###


class VariationalBackend(ClusteringBackend):
    """GMC and SGMC entry points backed by `BayesianGaussianMixture`.

    GMC uses a Dirichlet process prior on the mixture weights, SGMC a
    symmetric Dirichlet distribution.
    """

    def __init__(
        self,
        max_clusters: int = 20,
        max_iter: int = 500,
        n_init: int = 1,
        tol: float = 1e-3,
        prune_threshold: float = 1.0,
        random_state: int = 42,
    ):
        self.params = dict(
            max_clusters=max_clusters,
            max_iter=max_iter,
            n_init=n_init,
            tol=tol,
            prune_threshold=prune_threshold,
            random_state=random_state,
        )

    @override
    def entry_points(self) -> dict[Algorithm, ClusteringEngine]:
        return {
            Algorithm.GMC: VariationalEngine("dirichlet_process", **self.params),
            Algorithm.SGMC: VariationalEngine("dirichlet_distribution", **self.params),
        }
