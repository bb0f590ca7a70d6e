"""Request marshalling and dispatch for group-structured variational clustering."""

import jax

# Engine outputs are float64 and must reach the host unchanged
jax.config.update("jax_enable_x64", True)

from .dispatch import Dispatcher, Invocation, Stage, invoke, marshal_result
from .errors import (
    ArgumentError,
    ArityError,
    ClusterGroupError,
    ConfigurationError,
    EngineError,
    EngineLogicError,
    EngineRuntimeError,
)
from .interface import (
    Algorithm,
    ClusteringBackend,
    ClusteringConfig,
    ClusteringEngine,
    ClusteringOutputs,
    EngineResult,
    GaussianMixture,
    MixtureRecord,
)
from .validation import validate_request

__all__ = [
    # Entry points
    "invoke",
    "validate_request",
    "marshal_result",
    "Dispatcher",
    "Invocation",
    "Stage",
    # Types
    "Algorithm",
    "ClusteringBackend",
    "ClusteringConfig",
    "ClusteringEngine",
    "ClusteringOutputs",
    "EngineResult",
    "GaussianMixture",
    "MixtureRecord",
    # Errors
    "ArgumentError",
    "ArityError",
    "ClusterGroupError",
    "ConfigurationError",
    "EngineError",
    "EngineLogicError",
    "EngineRuntimeError",
]
