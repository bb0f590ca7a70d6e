from .handler import RunHandler
from .logger import EngineLog, Logger
from .util import STATS_NUM, Artifact, LogLevel, MetricDict

__all__ = [
    "STATS_NUM",
    "Artifact",
    "EngineLog",
    "LogLevel",
    "Logger",
    "MetricDict",
    "RunHandler",
]
