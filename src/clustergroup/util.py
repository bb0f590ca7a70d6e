### Imports ###

import logging
from pathlib import Path
from typing import Any

import joblib
import numpy as np
from hydra.core.config_store import ConfigStore
from rich import print as rprint
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .interface import ClusteringOutputs

log = logging.getLogger(__name__)

### Data Loading ###


def load_groups(path: Path) -> tuple[list[str], list[np.ndarray]]:
    """Load named observation groups from disk.

    Args:
        path: A `.npz` archive with one array per group (in archive order), or
            a `.joblib` file holding a list of matrices or a dict of named ones

    Returns:
        Group names and group matrices, in the same order
    """
    if path.suffix == ".npz":
        with np.load(path) as archive:
            names = list(archive.files)
            return names, [archive[name] for name in names]

    if path.suffix == ".joblib":
        data = joblib.load(path)
        if isinstance(data, dict):
            return [str(name) for name in data], list(data.values())
        return [f"group_{j}" for j in range(len(data))], list(data)

    raise ValueError(f"Unsupported data file {path}; expected .npz or .joblib")


### Pretty Print ###


def print_config_tree(data: dict[str, Any] | list[Any] | Any) -> Tree:
    """Create a rich tree from a dictionary."""
    tree = Tree("[bold]config[/bold]")
    _build_tree(tree, data)

    # Print it inside a panel for extra clarity
    rprint(Panel(tree, title="Hydra Config Overview", border_style="green"))
    return tree


def _build_tree(tree: Tree, data: dict[str, Any] | list[Any] | Any) -> None:
    """Recursively build a compact tree from a dictionary or list."""
    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, (dict, list)):  # Only nest if necessary
                branch = tree.add(f"[bold]{key}[/bold]")
                _build_tree(branch, value)
            else:
                tree.add(f"[bold]{key}[/bold]: [cyan]{value}[/cyan]")
    elif isinstance(data, list):
        for item in data:
            tree.add(f"[list] [cyan]{item}[/cyan]")
    else:
        tree.add(f"[cyan]{data}[/cyan]")


def format_outputs_table(
    group_names: list[str], outputs: ClusteringOutputs
) -> Table:
    """Summarize invocation outputs per group."""
    table = Table(
        title=f"K = {outputs.gmm.K} clusters, free energy = {outputs.free_energy:.6f}"
    )
    table.add_column("Group", style="cyan")
    table.add_column("Observations", style="green", justify="right")
    table.add_column("Top cluster", style="yellow", justify="right")
    table.add_column("Top weight", style="yellow", justify="right")

    for name, qz_j, w_j in zip(group_names, outputs.qZ, outputs.wj):
        weights = np.asarray(w_j).reshape(-1)
        top = int(np.argmax(weights))
        table.add_row(name, str(qz_j.shape[0]), str(top), f"{weights[top]:.3f}")

    return table


### Plugin Inspection ###


def get_store_groups() -> dict[str, list[str]]:
    """Get the names of stored configs, keyed by ConfigStore group."""
    groups: dict[str, list[str]] = {}

    for node in ConfigStore.instance().repo.values():
        if not isinstance(node, dict):
            continue
        for config_name, config_node in node.items():
            group = getattr(config_node, "group", None)
            if group:
                groups.setdefault(group, []).append(config_name.removesuffix(".yaml"))

    return groups


def format_config_table(name: str, params: dict[str, Any]) -> tuple[str | None, Table]:
    """Format plugin parameters as a rich table.

    Args:
        name: Name of the plugin
        params: Stored config of the plugin, including its `_target_`

    Returns:
        tuple of (target implementation path, formatted table)
    """
    table = Table(title=f"{name.upper()} Parameters")
    table.add_column("Parameter", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Default", style="yellow")

    for param_name, value in params.items():
        if param_name == "_target_":
            continue
        if value is None:
            table.add_row(str(param_name), "Required", "Required")
        else:
            table.add_row(str(param_name), type(value).__name__, str(value))

    return params.get("_target_"), table
