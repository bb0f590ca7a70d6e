"""Run logging and the engine log sink."""

from __future__ import annotations

import io
import logging
from typing import Callable, override

import matplotlib.pyplot as plt
import wandb
from matplotlib.figure import Figure

from .handler import RunHandler
from .util import Artifact, MetricDict

## Logging ###

log = logging.getLogger(__name__)

### Engine Sink ###


class EngineLog(io.TextIOBase):
    """Write-only text stream that forwards engine messages to logging.

    Writes are buffered until a newline arrives; each complete line becomes
    one log record. Verbose invocations log at INFO, quiet ones at DEBUG.
    """

    def __init__(self, verbose: bool = False, name: str = "clustergroup.engine"):
        super().__init__()
        self.level = logging.INFO if verbose else logging.DEBUG
        self._log = logging.getLogger(name)
        self._buffer = ""

    @override
    def writable(self) -> bool:
        return True

    @override
    def write(self, s: str) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed engine log.")
        self._buffer += s
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._log.log(self.level, line)
        return len(s)

    @override
    def flush(self) -> None:
        if self._buffer:
            self._log.log(self.level, self._buffer)
            self._buffer = ""


### Run Logger ###


class Logger:
    """Logger supporting both local and wandb logging of run results."""

    use_local: bool
    use_wandb: bool

    def __init__(
        self,
        handler: RunHandler,
        use_wandb: bool,
        use_local: bool,
        project: str,
        group: str | None,
        job_type: str | None,
    ) -> None:
        """Initialize logger with desired logging destinations."""
        self.use_wandb = use_wandb
        self.use_local = use_local
        self.metric_buffer: MetricDict = {}

        if use_wandb:
            wandb.init(
                project=project,
                name=handler.run_name,
                group=group,
                job_type=job_type,
                dir=handler.run_dir,
            )

    def log_metrics(self, metrics: MetricDict) -> None:
        """Log scalar run metrics."""
        if self.use_local:
            for key, (level, value) in metrics.items():
                self.metric_buffer[key] = (level, value)
                log.log(level, "%20s | %14.6f", key, value)

        if self.use_wandb:
            wandb.log({key: value for key, (_, value) in metrics.items()})

    def log_artifact[T: Artifact](
        self,
        handler: RunHandler,
        artifact: T,
        plot_artifact: Callable[[T], Figure],
    ) -> None:
        """Save an artifact and its figure."""
        fig = plot_artifact(artifact)
        name = artifact.__class__.__name__

        if self.use_local:
            handler.save_artifact(artifact)
            handler.save_artifact_figure(type(artifact), fig)
            log.info("%20s | figure", name)

        if self.use_wandb:
            wandb.log({name: wandb.Image(fig)})

        plt.close(fig)

    def finalize(self, handler: RunHandler) -> None:
        """Finalize logging and clean up."""
        if self.use_local:
            handler.save_metrics(self.metric_buffer)

        if self.use_wandb:
            wandb.finish()
