"""Manages file IO and organization for a single clustering run."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import joblib
from matplotlib.figure import Figure
from omegaconf import DictConfig, OmegaConf

from .util import Artifact, MetricDict, to_snake_case

### Logging ###

log = logging.getLogger(__name__)

### Run Handler ###


@dataclass(frozen=True)
class RunHandler:
    """Handles file management and organization for a single run."""

    # Attributes
    run_name: str
    """Name of the run, used for directory naming."""
    run_dir: Path
    """Directory for this specific run, containing all artifacts and logs."""

    @classmethod
    def create(cls, run_name: str, runs_dir: Path) -> "RunHandler":
        """Create the run directory if needed and return a handler for it."""
        run_dir = runs_dir / run_name
        run_dir.mkdir(parents=True, exist_ok=True)
        return cls(run_name=run_name, run_dir=run_dir)

    ### Public Properties ###

    @property
    def config_path(self) -> Path:
        return self.run_dir / "config.yaml"

    @property
    def outputs_path(self) -> Path:
        return self.run_dir / "outputs.joblib"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.joblib"

    ### Public Methods ###

    def save_config(self, cfg: DictConfig) -> None:
        """Save the composed run configuration."""
        OmegaConf.save(cfg, self.config_path)

    def save_outputs(self, outputs: Any) -> None:
        """Save invocation outputs."""
        joblib.dump(outputs, self.outputs_path, compress=3)
        log.info(f"Saved outputs to {self.outputs_path}")

    def load_outputs(self) -> Any:
        """Load invocation outputs saved by a previous run.

        Raises:
            FileNotFoundError: If the run has no saved outputs
        """
        if not self.outputs_path.exists():
            raise FileNotFoundError(f"No outputs saved for run {self.run_name}")
        return joblib.load(self.outputs_path)

    def save_metrics(self, metrics: MetricDict) -> None:
        """Save run metrics."""
        joblib.dump(metrics, self.metrics_path)

    ## Artifact Management
    def save_artifact(self, artifact: Artifact) -> None:
        """Save an artifact."""
        path = self._get_artifact_path(type(artifact))
        joblib.dump(artifact, path, compress=3)

    def save_artifact_figure(
        self, artifact_class: type[Artifact], fig: Figure
    ) -> None:
        """Save a figure next to its artifact."""
        path = self._get_plot_path(artifact_class)
        fig.savefig(path, bbox_inches="tight")

    def load_artifact[T: Artifact](self, artifact_class: type[T]) -> T:
        """Load an artifact."""
        path = self._get_artifact_path(artifact_class)
        return joblib.load(path)

    ### Private Methods ###

    def _get_artifact_path[T: Artifact](self, artifact_class: type[T]) -> Path:
        """Get the path for an artifact file."""
        artifacts_dir = self.run_dir / "artifacts"
        artifacts_dir.mkdir(exist_ok=True)
        return artifacts_dir / f"{to_snake_case(artifact_class.__name__)}.joblib"

    def _get_plot_path[T: Artifact](self, artifact_class: type[T]) -> Path:
        """Get the path for an artifact plot."""
        plots_dir = self.run_dir / "plots"
        plots_dir.mkdir(exist_ok=True)
        return plots_dir / f"{to_snake_case(artifact_class.__name__)}.png"
