"""Configuration classes for clustergroup invocations and runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from omegaconf import MISSING

from ..runtime import LogLevel

### Invocation Config ###

SPARSE_DEFAULT = False
VERBOSE_DEFAULT = False
CLUSTER_WIDTH_DEFAULT = 0.01


class Algorithm(IntEnum):
    """Clustering algorithm variants. The codes are shared with the engine."""

    SGMC = 1
    GMC = 2


@dataclass(frozen=True)
class ClusteringConfig:
    """Fully-defaulted options for a single invocation."""

    algorithm: Algorithm
    sparse: bool = SPARSE_DEFAULT
    """Use the sparse variant of the learning procedure."""
    verbose: bool = VERBOSE_DEFAULT
    """Ask the engine to report progress on its log sink."""
    cluster_width: float = CLUSTER_WIDTH_DEFAULT
    """Width of the cluster prior."""


### Run Configs ###


@dataclass
class BackendConfig:
    """Base configuration for engine backends."""

    _target_: str


@dataclass
class RunConfig:
    """Base configuration for a single command line run."""

    run_name: str = "default"
    runs_dir: str = "runs"
    device: str = "cpu"
    use_local: bool = True
    use_wandb: bool = False
    log_level: LogLevel = LogLevel.INFO
    project: str = "clustergroup"
    group: str | None = None
    job_type: str | None = None


defaults: list[Any] = [
    {"backend": "variational"},
    "_self_",
]


@dataclass
class ClusteringRunConfig(RunConfig):
    """Configuration for clustering a grouped dataset from the command line."""

    data_path: str = MISSING
    """Path to a .npz archive (one array per group) or a .joblib list of matrices."""
    algorithm: int = int(Algorithm.GMC)
    sparse: bool = SPARSE_DEFAULT
    verbose: bool = VERBOSE_DEFAULT
    cluster_width: float = CLUSTER_WIDTH_DEFAULT
    backend: BackendConfig = MISSING
    defaults: list[Any] = field(default_factory=lambda: defaults)
