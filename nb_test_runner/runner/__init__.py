"""Runner module - run coordination."""

from .coordinator import RunCoordinator, RunResult, run
from .result_collector import CollectedFailure, CollectedSkip, ResultCollector, RunSummary

__all__ = [
    "RunCoordinator",
    "RunResult",
    "run",
    "CollectedFailure",
    "CollectedSkip",
    "ResultCollector",
    "RunSummary",
]
