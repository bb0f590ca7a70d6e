"""Engine dispatch and result marshalling.

An invocation runs strictly in sequence: validate the raw arguments, call
exactly one engine entry point, then convert the engine's numpy outputs into
host arrays. Any failure aborts the invocation without partial outputs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, TextIO

import jax.numpy as jnp
import numpy as np
from jax import Array

from .errors import (
    ArityError,
    ConfigurationError,
    EngineError,
    EngineLogicError,
    EngineRuntimeError,
)
from .interface import (
    N_OUTPUTS,
    Algorithm,
    ClusteringConfig,
    ClusteringEngine,
    ClusteringOutputs,
    EngineResult,
    GaussianMixture,
    MixtureRecord,
)
from .runtime import EngineLog
from .validation import validate_request

log = logging.getLogger(__name__)

### Dispatcher ###


class Dispatcher:
    """Routes a validated request to the engine entry point of its variant."""

    def __init__(self, engines: Mapping[Algorithm, ClusteringEngine]) -> None:
        self._engines = dict(engines)

    @property
    def algorithms(self) -> list[Algorithm]:
        """Variants with a registered entry point."""
        return sorted(self._engines)

    def dispatch(
        self,
        groups: list[np.ndarray],
        config: ClusteringConfig,
        sink: TextIO,
    ) -> EngineResult:
        """Invoke the entry point selected by `config.algorithm` once.

        Raises:
            ConfigurationError: If no entry point is registered for the variant
            EngineError: If the engine raises a logic or runtime error
        """
        engine = self._engines.get(config.algorithm)
        if engine is None:
            raise ConfigurationError("Wrong algorithm type specified!")

        log.debug(f"Dispatching {len(groups)} groups to {config.algorithm.name}")
        try:
            result = engine.learn(
                groups,
                config.sparse,
                config.verbose,
                config.cluster_width,
                sink,
            )
        except (EngineLogicError, EngineRuntimeError) as e:
            raise EngineError(str(e)) from e
        finally:
            sink.flush()

        return EngineResult(*result)


### Marshalling ###


def _host_array(value: np.ndarray) -> Array:
    """Copy an engine array to the host as float64.

    Raises:
        RuntimeError: If jax would downcast it, i.e. `jax_enable_x64` is off
    """
    array = jnp.asarray(value, dtype=jnp.float64)
    if array.dtype != jnp.float64:
        raise RuntimeError(
            "Host arrays require float64; jax_enable_x64 has been disabled."
        )
    return array


def marshal_mixture(mixture: GaussianMixture) -> MixtureRecord:
    """Serialize the global mixture into parallel per-cluster sequences."""
    n_clusters = mixture.n_clusters
    return MixtureRecord(
        K=n_clusters,
        w=[float(mixture.weights[k]) for k in range(n_clusters)],
        mu=[_host_array(mixture.means[k]) for k in range(n_clusters)],
        sigma=[_host_array(mixture.covariances[k]) for k in range(n_clusters)],
    )


def marshal_result(result: EngineResult, nargout: int) -> ClusteringOutputs:
    """Convert engine outputs into host arrays.

    Responsibilities keep their (N_j, K) shape; weight vectors become (1, K)
    row vectors. Group order is preserved.

    Raises:
        ArityError: If `nargout` is not 4; nothing is converted in that case
    """
    if nargout != N_OUTPUTS:
        raise ArityError("Wrong number of outputs.")

    qz = [_host_array(qz_j) for qz_j in result.responsibilities]
    wj = [_host_array(np.atleast_2d(w_j)) for w_j in result.weights]
    return ClusteringOutputs(
        free_energy=float(result.free_energy),
        qZ=qz,
        wj=wj,
        gmm=marshal_mixture(result.mixture),
    )


### Invocations ###


class Stage(Enum):
    START = "start"
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    MARSHALLING = "marshalling"
    DONE = "done"
    FAILED = "failed"


class Invocation:
    """A single pass through validation, dispatch and marshalling.

    `stage` tracks progress; on failure it becomes `Stage.FAILED` and
    `failed_stage` records where the error was raised. Both are terminal.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        nargout: int = N_OUTPUTS,
        sink: TextIO | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.nargout = nargout
        self.sink = sink
        self.stage = Stage.START
        self.failed_stage: Stage | None = None

    def run(self, args: Sequence[Any]) -> ClusteringOutputs:
        if self.stage is not Stage.START:
            raise RuntimeError(f"Invocation already ran (stage {self.stage.value}).")

        try:
            self.stage = Stage.VALIDATING
            groups, config = validate_request(args)

            self.stage = Stage.DISPATCHING
            sink = self.sink if self.sink is not None else EngineLog(config.verbose)
            result = self.dispatcher.dispatch(groups, config, sink)

            self.stage = Stage.MARSHALLING
            outputs = marshal_result(result, self.nargout)
        except Exception:
            self.failed_stage = self.stage
            self.stage = Stage.FAILED
            log.debug(f"Invocation failed while {self.failed_stage.value}")
            raise

        self.stage = Stage.DONE
        return outputs


def invoke(
    *args: Any,
    engines: Mapping[Algorithm, ClusteringEngine],
    nargout: int = N_OUTPUTS,
    sink: TextIO | None = None,
) -> ClusteringOutputs:
    """Cluster grouped observations with one of the engine's variants.

    Args:
        *args: `groups, algorithm, [sparse], [verbose], [cluster_width]`
        engines: Engine entry point for each algorithm variant
        nargout: Number of outputs requested by the caller, must be 4
        sink: Write-only stream for engine messages (defaults to logging)

    Returns:
        Free energy, per-group responsibilities, per-group weights and the
        serialized mixture model

    Raises:
        ArityError: Wrong number of inputs or outputs
        ArgumentError: An optional argument has the wrong shape or type
        ConfigurationError: Unknown algorithm selector
        EngineError: The engine failed; its message is preserved
    """
    return Invocation(Dispatcher(engines), nargout=nargout, sink=sink).run(args)
