"""pytest session driven from a worker thread.

Wraps a single ``pytest.main`` call behind a small handle with callback
attributes, so a caller can register interest in discovery, test outcomes
and completion, start the session, and carry on on its own thread:

1. Set ``on_*`` callbacks (and optional filters)
2. ``start()`` - runs pytest on a daemon worker thread
3. Callbacks arrive on that worker thread
4. ``close()`` - joins the worker
"""

import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

from ..config import RunnerConfig
from .events import (
    DiscoveryCompleteInfo,
    ErrorMessageInfo,
    ExecutionCompleteInfo,
    RunnerStatus,
    TestFailedInfo,
    TestPassedInfo,
    TestSkippedInfo,
)

# Exit codes that mean pytest itself, not a test, went wrong
_RUNNER_ERROR_CODES = {pytest.ExitCode.INTERNAL_ERROR, pytest.ExitCode.USAGE_ERROR}

SKIP_PREFIX = "Skipped: "


def _exception_message(excinfo) -> str:
    """Message of a test exception, falling back to its type name."""
    message = str(excinfo.value).strip()
    return message or excinfo.typename


def _skip_reason(report) -> str:
    """Reason pytest recorded for a skipped (or xfailed) report."""
    if hasattr(report, "wasxfail"):
        return report.wasxfail or "expected failure"

    longrepr = report.longrepr
    if isinstance(longrepr, tuple) and len(longrepr) == 3:
        reason = str(longrepr[2])
        if reason.startswith(SKIP_PREFIX):
            reason = reason[len(SKIP_PREFIX):]
        return reason
    return str(longrepr or "")


def _collect_error_message(report) -> str:
    """Short message for a collector that failed to import or collect."""
    crash = getattr(report.longrepr, "reprcrash", None)
    if crash is not None:
        return crash.message

    lines = [line.strip() for line in report.longreprtext.splitlines() if line.strip()]
    if not lines:
        return "collection failed"
    last = lines[-1]
    if last.startswith("E "):
        last = last[2:].strip()
    return last


class _SessionBridge:
    """pytest plugin that turns hook calls into runner callbacks."""

    def __init__(self, runner: "PytestRunner"):
        self._runner = runner
        self._deselected = 0
        self._started_at: Optional[float] = None
        self._outcomes: dict[str, str] = {}
        self._durations: dict[str, float] = {}
        self._excinfos: dict[str, object] = {}
        self._collect_reports: list = []

    @property
    def total_tests(self) -> int:
        return len(self._outcomes)

    def count(self, outcome: str) -> int:
        return sum(1 for o in self._outcomes.values() if o == outcome)

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.perf_counter() - self._started_at

    def pytest_sessionstart(self, session):
        self._started_at = time.perf_counter()

    def pytest_deselected(self, items):
        self._deselected += len(items)

    def pytest_collection_finish(self, session):
        selected = len(session.items)
        pending = len(self._collect_reports)
        self._runner._discovery_complete(DiscoveryCompleteInfo(
            test_cases_discovered=selected + self._deselected + pending,
            test_cases_to_run=selected + pending,
        ))
        self._flush_collect_reports()

    def pytest_collectreport(self, report):
        if report.passed or report.nodeid in self._outcomes:
            return

        # Held back until discovery completes
        self._outcomes[report.nodeid] = "failed" if report.failed else "skipped"
        self._collect_reports.append(report)

    def _flush_collect_reports(self):
        reports, self._collect_reports = self._collect_reports, []
        for report in reports:
            name = report.nodeid or "<collection>"
            if report.failed:
                self._runner._test_failed(TestFailedInfo(
                    test_display_name=name,
                    exception_message=_collect_error_message(report),
                    exception_stack_trace=report.longreprtext or None,
                ))
            else:
                self._runner._test_skipped(TestSkippedInfo(
                    test_display_name=name,
                    skip_reason=_skip_reason(report),
                ))

    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_makereport(self, item, call):
        outcome = yield
        report = outcome.get_result()
        if report.failed and call.excinfo is not None:
            self._excinfos[item.nodeid] = call.excinfo

    def pytest_runtest_logreport(self, report):
        nodeid = report.nodeid
        self._durations[nodeid] = self._durations.get(nodeid, 0.0) + report.duration

        # One outcome per test: the first failing or skipping phase wins
        if nodeid in self._outcomes:
            return

        if report.failed:
            self._outcomes[nodeid] = "failed"
            excinfo = self._excinfos.pop(nodeid, None)
            if excinfo is not None:
                message = _exception_message(excinfo)
            else:
                message = _collect_error_message(report)
            self._runner._test_failed(TestFailedInfo(
                test_display_name=nodeid,
                exception_message=message,
                exception_stack_trace=report.longreprtext or None,
                output=report.capstdout,
            ))
        elif report.skipped:
            self._outcomes[nodeid] = "skipped"
            self._runner._test_skipped(TestSkippedInfo(
                test_display_name=nodeid,
                skip_reason=_skip_reason(report),
            ))
        elif report.when == "teardown":
            self._outcomes[nodeid] = "passed"
            self._runner._test_passed(TestPassedInfo(
                test_display_name=nodeid,
                execution_time=self._durations[nodeid],
            ))

    def pytest_sessionfinish(self, session, exitstatus):
        self._flush_collect_reports()

        if exitstatus in _RUNNER_ERROR_CODES:
            self._runner._error_message(ErrorMessageInfo(
                message=f"pytest finished with {pytest.ExitCode(exitstatus).name}",
            ))
        elif exitstatus == pytest.ExitCode.INTERRUPTED and not self.count("failed"):
            self._runner._error_message(ErrorMessageInfo(
                message="pytest session was interrupted",
            ))

        self._runner._execution_complete(self.completion_info())

    def completion_info(self) -> ExecutionCompleteInfo:
        return ExecutionCompleteInfo(
            total_tests=self.total_tests,
            execution_time=self.elapsed,
            tests_failed=self.count("failed"),
            tests_skipped=self.count("skipped"),
        )


class PytestRunner:
    """Handle on one pytest session against a single test file.

    Callbacks are invoked from the worker thread. ``on_execution_complete``
    fires exactly once per started session and nothing fires after it,
    even when pytest refuses its arguments or crashes.
    """

    def __init__(
        self,
        target: Union[str, Path],
        config: Optional[RunnerConfig] = None,
    ):
        """Initialize pytest runner.

        Args:
            target: Path of the test file to run.
            config: Runner configuration. Defaults to ``RunnerConfig()``.
        """
        self.target = Path(target)
        self.config = config or RunnerConfig()

        self.on_discovery_complete: Optional[Callable[[DiscoveryCompleteInfo], None]] = None
        self.on_execution_complete: Optional[Callable[[ExecutionCompleteInfo], None]] = None
        self.on_test_failed: Optional[Callable[[TestFailedInfo], None]] = None
        self.on_test_skipped: Optional[Callable[[TestSkippedInfo], None]] = None
        self.on_test_passed: Optional[Callable[[TestPassedInfo], None]] = None
        self.on_error_message: Optional[Callable[[ErrorMessageInfo], None]] = None

        # Filters a configure callback may set before start()
        self.keyword: Optional[str] = None
        self.markers: Optional[str] = None
        self.stop_on_first_failure = False
        self.extra_args: list[str] = []

        self._status = RunnerStatus.IDLE
        self._status_lock = threading.Lock()
        self._bridge: Optional[_SessionBridge] = None
        self._thread: Optional[threading.Thread] = None
        self.exit_code: Optional[int] = None

    @property
    def status(self) -> RunnerStatus:
        return self._status

    def build_args(self) -> list[str]:
        """Command line handed to ``pytest.main``."""
        args = [
            str(self.target),
            f"--import-mode={self.config.import_mode}",
            "-p", "no:cacheprovider",
        ]
        if self.config.quiet:
            args += ["-p", "no:terminal"]
        if self.keyword:
            args += ["-k", self.keyword]
        if self.markers:
            args += ["-m", self.markers]
        if self.stop_on_first_failure:
            args.append("-x")
        args.extend(self.config.extra_args)
        args.extend(self.extra_args)
        return args

    def start(self) -> None:
        """Start the session on a worker thread.

        Raises:
            RuntimeError: If the runner was already started.
        """
        with self._status_lock:
            if self._status != RunnerStatus.IDLE:
                raise RuntimeError(
                    f"Runner for {self.target} cannot start while {self._status.value}"
                )
            self._status = RunnerStatus.DISCOVERING

        self._bridge = _SessionBridge(self)
        self._thread = threading.Thread(
            target=self._work,
            name=f"pytest-runner:{self.target.name}",
            daemon=True,
        )
        self._thread.start()

    def _work(self) -> None:
        try:
            self.exit_code = int(pytest.main(self.build_args(), plugins=[self._bridge]))
        except Exception as e:
            self._error_message(ErrorMessageInfo(
                message=f"pytest raised {type(e).__name__}: {e}",
                exception_type=type(e).__name__,
            ))
        finally:
            if self._status != RunnerStatus.COMPLETED:
                if self.exit_code is not None:
                    self._error_message(ErrorMessageInfo(
                        message=f"pytest exited with code {self.exit_code} before running any tests",
                    ))
                self._execution_complete(self._bridge.completion_info())

    def close(self) -> None:
        """Wait for the worker thread, if any, to finish."""
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # Dispatch, called from the worker thread

    def _discovery_complete(self, info: DiscoveryCompleteInfo) -> None:
        self._status = RunnerStatus.EXECUTING
        if self.on_discovery_complete:
            self.on_discovery_complete(info)

    def _test_failed(self, info: TestFailedInfo) -> None:
        if self.on_test_failed:
            self.on_test_failed(info)

    def _test_skipped(self, info: TestSkippedInfo) -> None:
        if self.on_test_skipped:
            self.on_test_skipped(info)

    def _test_passed(self, info: TestPassedInfo) -> None:
        if self.on_test_passed:
            self.on_test_passed(info)

    def _error_message(self, info: ErrorMessageInfo) -> None:
        if self.on_error_message:
            self.on_error_message(info)

    def _execution_complete(self, info: ExecutionCompleteInfo) -> None:
        with self._status_lock:
            if self._status == RunnerStatus.COMPLETED:
                return
            self._status = RunnerStatus.COMPLETED
        if self.on_execution_complete:
            self.on_execution_complete(info)
