from .config import (
    CLUSTER_WIDTH_DEFAULT,
    SPARSE_DEFAULT,
    VERBOSE_DEFAULT,
    Algorithm,
    BackendConfig,
    ClusteringConfig,
    ClusteringRunConfig,
    RunConfig,
)
from .engine import ClusteringBackend, ClusteringEngine, EngineResult, GaussianMixture
from .outputs import N_OUTPUTS, ClusteringOutputs, MixtureRecord

__all__ = [
    # Invocation config
    "CLUSTER_WIDTH_DEFAULT",
    "SPARSE_DEFAULT",
    "VERBOSE_DEFAULT",
    "Algorithm",
    "ClusteringConfig",
    # Run config
    "BackendConfig",
    "ClusteringRunConfig",
    "RunConfig",
    # Engine boundary
    "ClusteringBackend",
    "ClusteringEngine",
    "EngineResult",
    "GaussianMixture",
    # Outputs
    "N_OUTPUTS",
    "ClusteringOutputs",
    "MixtureRecord",
]
