### Imports ###

### Preamable ###
import logging
from pathlib import Path
from typing import Any

import numpy as np
import typer
from hydra.core.config_store import ConfigNode, ConfigStore
from omegaconf import OmegaConf
from plugins import register_plugins
from rich import print as rprint
from rich.table import Table

from .dispatch import invoke
from .errors import ClusterGroupError
from .interface import ClusteringRunConfig
from .runtime.initialize import compose_config, initialize_run
from .runtime.visualization import GroupWeights, plot_group_weights
from .util import (
    format_config_table,
    format_outputs_table,
    get_store_groups,
    load_groups,
    print_config_tree,
)

log = logging.getLogger(__name__)

register_plugins()

# CLI configuration
main = typer.Typer(
    help="""CLI for group-structured variational clustering (GMC and SGMC)."""
)
plugins_com = typer.Typer()
main.add_typer(plugins_com, name="plugins", help="Commands for plugin management.")


### Commands ###


overrides = typer.Argument(
    default=None,
    help="Configuration overrides (e.g., data_path=groups.npz algorithm=1 sparse=true)",
)

cluster_dry_run = typer.Option(False, "--dry-run", help="Print hydra config and exit")


@main.command()
def cluster(overrides: list[str] = overrides, dry_run: bool = cluster_dry_run):
    """Cluster grouped observations.

    Loads the groups from `data_path`, runs the selected algorithm variant and
    saves its outputs to the runs directory.

    Example:
        clustergroup cluster run_name=my_run data_path=groups.npz algorithm=2
    """
    overrides = overrides or []
    if dry_run:
        cfg = compose_config(ClusteringRunConfig, overrides)
        print_config_tree(OmegaConf.to_container(cfg, resolve=True))
        return

    cfg, handler, backend, logger = initialize_run(ClusteringRunConfig, overrides)

    group_names, groups = load_groups(Path(cfg.data_path))
    log.info(f"Loaded {len(groups)} groups from {cfg.data_path}")

    log.info("Beginning clustering...")
    try:
        outputs = invoke(
            groups,
            cfg.algorithm,
            cfg.sparse,
            cfg.verbose,
            float(cfg.cluster_width),
            engines=backend.entry_points(),
        )
    except ClusterGroupError as e:
        log.error(f"Clustering failed: {e}")
        logger.finalize(handler)
        raise typer.Exit(code=1) from e

    rprint(format_outputs_table(group_names, outputs))
    handler.save_outputs(outputs)

    logger.log_metrics(
        {
            "Free Energy": (logging.INFO, outputs.free_energy),
            "Clusters": (logging.INFO, float(outputs.gmm.K)),
        }
    )
    artifact = GroupWeights(
        group_names=group_names,
        weights=np.vstack([np.asarray(w_j) for w_j in outputs.wj]),
        free_energy=outputs.free_energy,
    )
    logger.log_artifact(handler, artifact, plot_group_weights)

    log.info("Clustering complete.")
    logger.finalize(handler)


# Plugins
plugin = typer.Argument(default=None, help="Name of plugin to inspect")


@plugins_com.command(name="list")
def list_plugins():
    """List all available plugins by group."""
    groups = get_store_groups()
    table = Table(title="Available Plugins")
    table.add_column("Type", style="cyan")
    table.add_column("Plugin", style="green")

    for group in ["backend"]:
        if group in groups:
            items = groups[group]
            table.add_row(group.title(), ", ".join(sorted(items)))

    rprint(table)


@plugins_com.command()
def inspect(plugin: str = plugin):
    """Inspect plugin configuration parameters."""

    cs = ConfigStore.instance()

    group = cs.repo.get("backend", {})
    if isinstance(group, dict):
        for name, config_node in group.items():  # pyright: ignore[reportUnknownVariableType]
            clean_name: str = name.replace(".yaml", "")  # pyright: ignore[reportUnknownVariableType]
            if clean_name == plugin and isinstance(config_node, ConfigNode):
                params: dict[str, Any] = OmegaConf.to_container(config_node.node)  # pyright: ignore[reportAssignmentType]
                if not params:
                    continue

                target, table = format_config_table(clean_name, params)
                if target:
                    rprint(f"\nImplementation: [blue]{target}[/blue]\n")
                rprint(table)
                return

    rprint(f"[red]Plugin '{plugin}' not found[/red]")


### Main ###

if __name__ == "__main__":
    main()
