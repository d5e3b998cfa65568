import threading
import textwrap
import types

import pytest

from nb_test_runner.config import RunnerConfig
from nb_test_runner.engine.events import (
    DiscoveryCompleteInfo,
    ExecutionCompleteInfo,
    RunnerStatus,
)


@pytest.fixture
def staging_dir(tmp_path, monkeypatch):
    """A staging folder that passes the single-folder check."""
    folder = tmp_path / "staging"
    folder.mkdir()
    (folder / "pytest.ini").write_text("[pytest]\n", encoding="utf-8")
    monkeypatch.syspath_prepend(str(folder))
    return folder


@pytest.fixture
def config(staging_dir):
    return RunnerConfig(staging_dir=staging_dir)


@pytest.fixture
def write_tests(tmp_path):
    """Write a test file outside the staging folder and wrap it in a module."""
    source_dir = tmp_path / "notebook"
    source_dir.mkdir()

    def _write(name, body):
        path = source_dir / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        module = types.ModuleType(path.stem)
        module.__file__ = str(path)
        return module

    return _write


class FakeRunner:
    """Stands in for PytestRunner and replays a scripted session.

    ``script`` receives the runner and fires callbacks; it runs on a
    worker thread after ``start()``, like the real runner.
    """

    instances = []

    def __init__(self, target, config, script=None):
        self.target = target
        self.config = config
        self.script = script
        self.on_discovery_complete = None
        self.on_execution_complete = None
        self.on_test_failed = None
        self.on_test_skipped = None
        self.on_test_passed = None
        self.on_error_message = None
        self.keyword = None
        self.status = RunnerStatus.IDLE
        self.closed = False
        self._thread = None
        FakeRunner.instances.append(self)

    def start(self):
        self.status = RunnerStatus.DISCOVERING
        self._thread = threading.Thread(target=self.script, args=(self,), daemon=True)
        self._thread.start()

    def discover(self, discovered, to_run):
        self.status = RunnerStatus.EXECUTING
        self.on_discovery_complete(DiscoveryCompleteInfo(discovered, to_run))

    def finish(self, total, failed, skipped, elapsed=0.0123456):
        self.status = RunnerStatus.COMPLETED
        self.on_execution_complete(ExecutionCompleteInfo(total, elapsed, failed, skipped))

    def close(self):
        if self._thread is not None:
            self._thread.join()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@pytest.fixture
def fake_runner():
    """Factory for coordinator ``runner_factory`` arguments."""
    FakeRunner.instances = []

    def _factory(script):
        return lambda target, config: FakeRunner(target, config, script)

    return _factory
