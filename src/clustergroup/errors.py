"""Error taxonomy for clustergroup invocations.

Every error is terminal for the invocation that raised it. Host-facing errors
derive from `ClusterGroupError`; engines signal failures with
`EngineLogicError` or `EngineRuntimeError`, which the dispatcher re-raises as
`EngineError`.
"""

from __future__ import annotations

### Host-facing Errors ###


class ClusterGroupError(Exception):
    """Base class for all errors surfaced to the caller."""


class ArityError(ClusterGroupError):
    """Wrong number of input or output arguments."""


class ArgumentError(ClusterGroupError, TypeError):
    """An argument is present but has the wrong shape or type."""

    position: int
    """One-based position of the offending argument."""

    def __init__(self, position: int, message: str) -> None:
        super().__init__(message)
        self.position = position


class ConfigurationError(ClusterGroupError):
    """The algorithm selector does not name a known variant."""


class EngineError(ClusterGroupError):
    """Fatal error raised by the clustering engine, message preserved."""


### Engine-side Errors ###


class EngineLogicError(ValueError):
    """Malformed input detected inside the engine."""


class EngineRuntimeError(RuntimeError):
    """Numerical or convergence failure inside the engine."""
