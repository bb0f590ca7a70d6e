"""Caller-visible outputs of an invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from jax import Array

N_OUTPUTS = 4


@dataclass(frozen=True)
class MixtureRecord:
    """Serialized global mixture model.

    The three sequences are parallel and have length `K`.
    """

    K: int
    w: list[float]
    """Scalar weight of each cluster."""
    mu: list[Array]
    """Mean of each cluster, shape (data_dim,)."""
    sigma: list[Array]
    """Covariance of each cluster, shape (data_dim, data_dim)."""


class ClusteringOutputs(NamedTuple):
    """The four outputs of an invocation, in declaration order."""

    free_energy: float
    qZ: list[Array]
    """Per-group responsibilities, each (N_j, K)."""
    wj: list[Array]
    """Per-group cluster weights, each (1, K)."""
    gmm: MixtureRecord
