"""Core visualization utilities."""

from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .util import Artifact


@dataclass(frozen=True)
class GroupWeights(Artifact):
    """Per-group cluster weights of a run."""

    group_names: list[str]
    weights: np.ndarray
    """Weight matrix with shape (n_groups, n_clusters)."""
    free_energy: float


def plot_group_weights(artifact: GroupWeights) -> Figure:
    """Heatmap of cluster weights, one row per group.

    Args:
        artifact: Group weights to plot

    Returns:
        Figure with a single heatmap axis and colorbar
    """
    n_groups, n_clusters = artifact.weights.shape
    fig, ax = plt.subplots(
        figsize=(max(4.0, 0.5 * n_clusters + 2), max(3.0, 0.4 * n_groups + 1.5))
    )

    image = ax.imshow(artifact.weights, aspect="auto", cmap="viridis", vmin=0.0)
    ax.set_xlabel("Cluster")
    ax.set_ylabel("Group")
    ax.set_xticks(range(n_clusters))
    ax.set_yticks(range(n_groups))
    ax.set_yticklabels(artifact.group_names)
    ax.set_title(f"Group weights (F = {artifact.free_energy:.4g})")
    fig.colorbar(image, ax=ax, label="Weight")

    fig.tight_layout()
    return fig
