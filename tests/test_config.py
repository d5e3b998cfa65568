from pathlib import Path

import pytest

from nb_test_runner.config import (
    STAGING_DIR_ENV,
    RunnerConfig,
    load_config,
    parse_config_data,
)


def test_defaults_use_working_directory(monkeypatch, tmp_path):
    monkeypatch.delenv(STAGING_DIR_ENV, raising=False)
    monkeypatch.chdir(tmp_path)

    config = RunnerConfig()

    assert config.staging_dir == tmp_path
    assert config.quiet is True
    assert config.show_stack_traces is True
    assert config.import_mode == "importlib"
    assert config.extra_args == []
    assert config.report_path is None


def test_environment_sets_staging_dir(monkeypatch, tmp_path):
    monkeypatch.setenv(STAGING_DIR_ENV, str(tmp_path / "shared"))

    assert RunnerConfig().staging_dir == tmp_path / "shared"


def test_load_config_resolves_relative_paths(tmp_path):
    path = tmp_path / "nb-test.yaml"
    path.write_text(
        "staging_dir: staging\n"
        "show_stack_traces: false\n"
        "extra_args: ['-v']\n"
        "report_path: reports/run.json\n"
        "unknown_key: ignored\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.staging_dir == tmp_path / "staging"
    assert config.show_stack_traces is False
    assert config.extra_args == ["-v"]
    assert config.report_path == tmp_path / "reports" / "run.json"


def test_load_config_file_overrides_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(STAGING_DIR_ENV, "/from/env")
    path = tmp_path / "nb-test.yaml"
    path.write_text(f"staging_dir: {tmp_path}\n", encoding="utf-8")

    assert load_config(path).staging_dir == tmp_path


def test_empty_config_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path).quiet is True


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize("data, message", [
    (["not", "a", "mapping"], "mapping"),
    ({"quiet": "yes"}, "quiet"),
    ({"import_mode": "magic"}, "import_mode"),
    ({"extra_args": "-v"}, "extra_args"),
])
def test_invalid_values_rejected(data, message):
    with pytest.raises(ValueError, match=message):
        parse_config_data(data)


def test_parse_config_keeps_absolute_paths():
    config = parse_config_data({"staging_dir": "/abs/dir"}, base_dir=Path("/elsewhere"))

    assert config.staging_dir == Path("/abs/dir")
