"""Run coordinator - blocks a notebook cell on a pytest session.

Coordinates one run:
1. Stage the test file into the single import folder
2. Open a runner on the staged file and register callbacks
3. Let the caller configure the runner
4. Start it and wait for the completion signal
5. Return 0 if nothing failed, 1 otherwise
"""

import sys
import threading
from enum import IntEnum
from pathlib import Path
from typing import Callable, Optional, TextIO

from ..config import RunnerConfig
from ..engine.events import (
    DiscoveryCompleteInfo,
    ErrorMessageInfo,
    ExecutionCompleteInfo,
    TestFailedInfo,
    TestPassedInfo,
    TestSkippedInfo,
)
from ..engine.pytest_runner import PytestRunner
from ..reporting.json_reporter import JsonReporter
from ..staging.target import ModuleRef, stage_module
from .result_collector import ResultCollector, RunSummary

RunnerFactory = Callable[[Path, RunnerConfig], PytestRunner]


def format_seconds(seconds: float) -> str:
    """Seconds rounded to 3 decimals, without trailing zeros (0.5, 2, 0.123)."""
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


class RunResult(IntEnum):
    """Exit-style outcome of a run."""
    SUCCESS = 0
    FAILURE = 1


class RunCoordinator:
    """Turns the runner's callbacks into a single blocking call.

    Callbacks may arrive on worker threads, concurrently with each other.
    Console lines and the result update are serialized on one lock, which
    belongs to this coordinator unless the caller passes a shared one.
    """

    def __init__(
        self,
        module: ModuleRef,
        config: Optional[RunnerConfig] = None,
        stream: Optional[TextIO] = None,
        lock: Optional[threading.Lock] = None,
        runner_factory: RunnerFactory = PytestRunner,
    ):
        """Initialize run coordinator.

        Args:
            module: Test module object, or path to the test file.
            config: Runner configuration.
            stream: Console stream. Defaults to ``sys.stdout`` at construction.
            lock: Lock guarding console output and the result.
            runner_factory: Builds the runner for the staged file.

        Raises:
            ValueError: If ``module`` is None.
        """
        if module is None:
            raise ValueError("module is required")

        self.module = module
        self.config = config or RunnerConfig()
        self.stream = stream or sys.stdout
        self.lock = lock or threading.Lock()
        self._runner_factory = runner_factory

        self._result = RunResult.SUCCESS
        self._done: Optional[threading.Event] = None
        self._collector: Optional[ResultCollector] = None

    @property
    def result(self) -> RunResult:
        return self._result

    @property
    def summary(self) -> Optional[RunSummary]:
        """Summary of the last run, if one has started."""
        return self._collector.summary if self._collector else None

    def run(self, configure: Optional[Callable[[PytestRunner], None]] = None) -> int:
        """Run the tests and block until the runner reports completion.

        Args:
            configure: Called with the runner before it starts, e.g. to set
                ``runner.keyword``.

        Returns:
            0 if no test failed, 1 otherwise.

        Raises:
            ValueError: If the module has no source file.
            RuntimeError: If the host is not set up for single-folder imports.
        """
        target = stage_module(self.module, self.config.staging_dir)

        self._result = RunResult.SUCCESS
        self._collector = ResultCollector(str(target))

        try:
            with self._runner_factory(target, self.config) as runner:
                done = threading.Event()
                self._done = done

                runner.on_discovery_complete = self.on_discovery_complete
                runner.on_execution_complete = self.on_execution_complete
                runner.on_test_failed = self.on_test_failed
                runner.on_test_skipped = self.on_test_skipped
                runner.on_test_passed = self.on_test_passed
                runner.on_error_message = self.on_error_message

                if configure:
                    configure(runner)

                runner.start()

                done.wait()
        finally:
            self._done = None

        if self.config.report_path:
            self._save_report(self.config.report_path)

        return self._result

    def _write(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def on_discovery_complete(self, info: DiscoveryCompleteInfo) -> None:
        with self.lock:
            self._write(f"Running {info.test_cases_to_run} of {info.test_cases_discovered} tests...")

    def on_execution_complete(self, info: ExecutionCompleteInfo) -> None:
        # The run may already have been abandoned, e.g. by a second Ctrl-C
        done = self._done
        try:
            self._collector.complete(info)
            with self.lock:
                self._write(
                    f"Finished: {info.total_tests} tests in {format_seconds(info.execution_time)}s "
                    f"({info.tests_failed} failed, {info.tests_skipped} skipped)"
                )
        finally:
            if done is not None:
                done.set()

    def on_test_failed(self, info: TestFailedInfo) -> None:
        self._collector.add_failure(info)
        with self.lock:
            self._write(f"[FAIL] {info.test_display_name}: {info.exception_message}")

            if info.exception_stack_trace is not None and self.config.show_stack_traces:
                self._write(info.exception_stack_trace)

            self._result = RunResult.FAILURE

    def on_test_skipped(self, info: TestSkippedInfo) -> None:
        self._collector.add_skip(info)
        with self.lock:
            self._write(f"[SKIP] {info.test_display_name}: {info.skip_reason}")

    def on_test_passed(self, info: TestPassedInfo) -> None:
        self._collector.add_pass(info)

    def on_error_message(self, info: ErrorMessageInfo) -> None:
        self._collector.add_error(info)
        with self.lock:
            self._write(f"[ERROR] {info.message}")
            self._result = RunResult.FAILURE

    def _save_report(self, path: Path) -> Optional[Path]:
        """Write the JSON summary. A failed write never changes the result."""
        reporter = JsonReporter()
        try:
            saved_path = reporter.save(reporter.generate(self.summary), path)
        except OSError as e:
            self._write(f"Warning: Failed to save report: {e}")
            return None

        self._write(f"Report saved: {saved_path}")
        return saved_path


def run(
    module: ModuleRef,
    configure: Optional[Callable[[PytestRunner], None]] = None,
    **kwargs,
) -> int:
    """Run a test module and print results; see ``RunCoordinator``."""
    return RunCoordinator(module, **kwargs).run(configure)
