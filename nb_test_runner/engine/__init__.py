"""Engine module - pytest session handle and its callback payloads."""

from .events import (
    DiscoveryCompleteInfo,
    ErrorMessageInfo,
    ExecutionCompleteInfo,
    RunnerStatus,
    TestFailedInfo,
    TestPassedInfo,
    TestSkippedInfo,
)
from .pytest_runner import PytestRunner

__all__ = [
    "DiscoveryCompleteInfo",
    "ErrorMessageInfo",
    "ExecutionCompleteInfo",
    "RunnerStatus",
    "TestFailedInfo",
    "TestPassedInfo",
    "TestSkippedInfo",
    "PytestRunner",
]
