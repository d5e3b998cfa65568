"""Callback payloads delivered by the external runner.

Each payload is built on the runner's worker thread and handed to the
matching ``on_*`` callback of a :class:`PytestRunner`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunnerStatus(str, Enum):
    """Lifecycle of a single runner session."""
    IDLE = "idle"
    DISCOVERING = "discovering"
    EXECUTING = "executing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DiscoveryCompleteInfo:
    """Collection finished; tests are about to run."""
    test_cases_discovered: int
    test_cases_to_run: int


@dataclass(frozen=True)
class ExecutionCompleteInfo:
    """The session is over. Always the last callback of a run."""
    total_tests: int
    execution_time: float
    tests_failed: int
    tests_skipped: int


@dataclass(frozen=True)
class TestFailedInfo:
    """A test (or a collector) failed."""
    __test__ = False

    test_display_name: str
    exception_message: str
    exception_stack_trace: Optional[str] = None
    output: str = ""


@dataclass(frozen=True)
class TestSkippedInfo:
    """A test was skipped or xfailed."""
    __test__ = False

    test_display_name: str
    skip_reason: str


@dataclass(frozen=True)
class TestPassedInfo:
    """A test passed."""
    __test__ = False

    test_display_name: str
    execution_time: float = 0.0


@dataclass(frozen=True)
class ErrorMessageInfo:
    """The runner itself failed, outside of any single test."""
    message: str
    exception_type: Optional[str] = None
