import sys
import types

import pytest

from nb_test_runner.staging.target import (
    check_single_folder,
    forget_module,
    resolve_source,
    stage_module,
)


def test_resolve_source_requires_module():
    with pytest.raises(ValueError, match="module is required"):
        resolve_source(None)


def test_resolve_source_from_module_and_path(tmp_path):
    path = tmp_path / "test_mod.py"
    module = types.ModuleType("test_mod")
    module.__file__ = str(path)

    assert resolve_source(module) == path
    assert resolve_source(str(path)) == path
    assert resolve_source(path) == path


def test_resolve_source_rejects_non_python(tmp_path):
    with pytest.raises(ValueError, match=".py"):
        resolve_source(tmp_path / "tests.so")


def test_check_single_folder_accepts_configured_folder(staging_dir):
    assert check_single_folder(staging_dir) == staging_dir.resolve()


def test_check_single_folder_requires_sys_path(tmp_path):
    folder = tmp_path / "not_on_path"
    folder.mkdir()
    (folder / "conftest.py").write_text("", encoding="utf-8")

    with pytest.raises(RuntimeError, match="NB_TEST_STAGING_DIR"):
        check_single_folder(folder)


def test_check_single_folder_requires_companion_file(tmp_path, monkeypatch):
    folder = tmp_path / "no_config"
    folder.mkdir()
    monkeypatch.syspath_prepend(str(folder))

    with pytest.raises(RuntimeError, match="pytest config file"):
        check_single_folder(folder)


def test_check_single_folder_missing_folder(tmp_path):
    with pytest.raises(RuntimeError):
        check_single_folder(tmp_path / "missing")


def test_stage_module_copies_and_overwrites(tmp_path, staging_dir):
    source = tmp_path / "test_copy.py"
    source.write_text("def test_a(): pass\n", encoding="utf-8")
    (staging_dir / "test_copy.py").write_text("stale\n", encoding="utf-8")

    target = stage_module(str(source), staging_dir)

    assert target == staging_dir.resolve() / "test_copy.py"
    assert target.read_text(encoding="utf-8") == "def test_a(): pass\n"
    assert [p.name for p in staging_dir.iterdir() if p.suffix == ".tmp"] == []


def test_stage_module_in_place(staging_dir):
    source = staging_dir / "test_here.py"
    source.write_text("def test_a(): pass\n", encoding="utf-8")

    assert stage_module(source, staging_dir) == source.resolve()
    assert source.read_text(encoding="utf-8") == "def test_a(): pass\n"


def test_stage_module_missing_source(tmp_path, staging_dir):
    with pytest.raises(FileNotFoundError):
        stage_module(tmp_path / "test_gone.py", staging_dir)


def test_forget_module_drops_cached_import(tmp_path, monkeypatch):
    path = tmp_path / "test_cached.py"
    path.write_text("", encoding="utf-8")
    module = types.ModuleType("test_cached_for_forget")
    module.__file__ = str(path)
    monkeypatch.setitem(sys.modules, "test_cached_for_forget", module)

    forget_module(path)

    assert "test_cached_for_forget" not in sys.modules
