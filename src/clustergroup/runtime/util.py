"""Shared runtime utilities."""

from __future__ import annotations

import logging
import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum

## Logging ###

log = logging.getLogger(__name__)

# Define a custom level
STATS_NUM = 15  # Between INFO (20) and DEBUG (10)
logging.addLevelName(STATS_NUM, "STATS")


class LogLevel(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    STATS = STATS_NUM
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


### Metrics ###

type MetricDict = dict[str, tuple[int, float]]  # name -> (log level, value)


### Artifacts ###


@dataclass(frozen=True)
class Artifact(ABC):
    """Base class for data that can be saved and visualized."""


### Helpers ###


def to_snake_case(name: str) -> str:
    """Convert CamelCase to snake_case."""
    name = re.sub("([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub("([a-z])([A-Z])", r"\1_\2", name)
    return name.lower()
