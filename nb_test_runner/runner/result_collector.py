"""Result collector for a single test run.

Collects failures, skips and runner errors from the runner callbacks into
a summary the JSON reporter and CLI can use after the run.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional

from ..engine.events import (
    ErrorMessageInfo,
    ExecutionCompleteInfo,
    TestFailedInfo,
    TestPassedInfo,
    TestSkippedInfo,
)


@dataclass
class CollectedFailure:
    """A failed test with its message."""
    name: str
    message: str
    stack_trace: Optional[str] = None


@dataclass
class CollectedSkip:
    """A skipped test with its reason."""
    name: str
    reason: str


@dataclass
class RunSummary:
    """Aggregated outcome of one run."""
    target: str
    total: int = 0
    passed: int = 0
    duration_s: float = 0.0
    failures: list[CollectedFailure] = field(default_factory=list)
    skips: list[CollectedSkip] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    completed: bool = False

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def skipped_count(self) -> int:
        return len(self.skips)

    @property
    def all_passed(self) -> bool:
        return not self.failures and not self.errors


class ResultCollector:
    """Collects runner callbacks into a RunSummary.

    Each ``add_*`` method matches a runner callback signature, so the
    collector can be chained behind the coordinator's own handlers.
    """

    def __init__(self, target: str):
        self.summary = RunSummary(target=target)
        self._lock = threading.Lock()

    def add_failure(self, info: TestFailedInfo) -> None:
        with self._lock:
            self.summary.failures.append(CollectedFailure(
                name=info.test_display_name,
                message=info.exception_message,
                stack_trace=info.exception_stack_trace,
            ))

    def add_skip(self, info: TestSkippedInfo) -> None:
        with self._lock:
            self.summary.skips.append(CollectedSkip(
                name=info.test_display_name,
                reason=info.skip_reason,
            ))

    def add_pass(self, info: TestPassedInfo) -> None:
        with self._lock:
            self.summary.passed += 1

    def add_error(self, info: ErrorMessageInfo) -> None:
        with self._lock:
            self.summary.errors.append(info.message)

    def complete(self, info: ExecutionCompleteInfo) -> None:
        with self._lock:
            self.summary.total = info.total_tests
            self.summary.duration_s = round(info.execution_time, 3)
            self.summary.completed = True
