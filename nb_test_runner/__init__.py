"""Run a pytest test module from a notebook cell and block until it finishes."""

from .config import RunnerConfig, load_config
from .engine import PytestRunner, RunnerStatus
from .runner import RunCoordinator, RunResult, run

__version__ = "0.1.0"

__all__ = [
    "RunnerConfig",
    "load_config",
    "PytestRunner",
    "RunnerStatus",
    "RunCoordinator",
    "RunResult",
    "run",
]
