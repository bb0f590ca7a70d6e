"""Run initialization: config composition, logging and backend setup."""

import logging
import sys
import traceback
from pathlib import Path
from types import TracebackType

import hydra
import jax
from hydra.core.config_store import ConfigStore
from omegaconf import DictConfig, OmegaConf
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from ..interface import ClusteringBackend, RunConfig
from ..util import print_config_tree
from .handler import RunHandler
from .logger import Logger
from .util import LogLevel

### Python Logging ###

logging.getLogger("jax._src.xla_bridge").addFilter(lambda _: False)

log = logging.getLogger(__name__)

# Custom theme for our logging
THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red",
        "critical": "red reverse",
        "metric": "green",
        "value": "yellow",
    }
)

### Initialization Helpers ###


def setup_logging(run_dir: Path, log_level: LogLevel) -> None:
    """Configure logging for the entire application with pretty formatting."""
    # Remove all handlers associated with the root logger object
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    console = Console(theme=THEME)

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_width=None,
        markup=True,
    )

    def exception_handler(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            # Let KeyboardInterrupt exit gracefully
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        log.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))
        error_file = run_dir / "errors.log"
        with open(error_file, "a") as f:
            traceback.print_exception(exc_type, exc_value, exc_traceback, file=f)

    sys.excepthook = exception_handler

    # Rich handler already handles the time, so we don't include it in the format
    console_format = "%(name)-20s | %(message)s"
    file_format = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"

    level = log_level.value

    console_handler.setFormatter(logging.Formatter(console_format))
    console_handler.setLevel(level)

    file_handler = logging.FileHandler(run_dir / "clustergroup.log")
    file_handler.setFormatter(logging.Formatter(file_format))
    file_handler.setLevel(level)

    logging.root.handlers = [console_handler, file_handler]
    logging.root.setLevel(level)


def setup_jax(device: str = "cpu") -> None:
    jax.config.update("jax_enable_x64", True)
    jax.config.update("jax_platform_name", device)


def compose_config(run_type: type[RunConfig], overrides: list[str]) -> DictConfig:
    """Compose a run config from the structured configs in the ConfigStore."""
    cs = ConfigStore.instance()
    cs.store(name="config", node=run_type)

    with hydra.initialize(version_base="1.3", config_path=None):
        return hydra.compose(config_name="config", overrides=overrides)


### Core Initialization Function ###


def initialize_run(
    run_type: type[RunConfig],
    overrides: list[str],
) -> tuple[DictConfig, RunHandler, ClusteringBackend, Logger]:
    """Initialize a new run from hydra overrides."""
    cfg = compose_config(run_type, overrides)

    print_config_tree(OmegaConf.to_container(cfg, resolve=True))

    setup_jax(device=cfg.device)

    handler = RunHandler.create(cfg.run_name, Path(cfg.runs_dir))
    handler.save_config(cfg)

    setup_logging(handler.run_dir, log_level=cfg.log_level)

    log.info(f"Run name: {handler.run_name}")
    log.info(f"Run directory: {handler.run_dir}")
    log.info(f"Available devices: {jax.devices()}")

    log.info("Loading backend...")
    backend: ClusteringBackend = hydra.utils.instantiate(cfg.backend)
    log.info(
        f"Backend {type(backend).__name__} provides "
        f"{', '.join(a.name for a in backend.entry_points())}"
    )

    logger = Logger(
        handler=handler,
        use_wandb=cfg.use_wandb,
        use_local=cfg.use_local,
        project=cfg.project,
        group=cfg.group,
        job_type=cfg.job_type,
    )

    return cfg, handler, backend, logger
