"""Staging of the test module into the host's single import folder.

A notebook host imports helper modules from one folder. pytest has to
collect the test file from that same folder so the test's own imports
resolve the way they do in the notebook, and so pytest picks up the
configuration that lives there.
"""

import os
import shutil
import sys
import tempfile
import threading
from pathlib import Path
from types import ModuleType
from typing import Union

# Files pytest reads its configuration from
COMPANION_FILES = ("conftest.py", "pytest.ini", "pyproject.toml", "tox.ini", "setup.cfg")

ModuleRef = Union[ModuleType, str, os.PathLike]

# Overwrites of the same staged file are serialized within the process
_staging_lock = threading.Lock()


def resolve_source(module: ModuleRef) -> Path:
    """Return the source file behind a module object or path.

    Raises:
        ValueError: If no module was given or it has no ``.py`` source file.
    """
    if module is None:
        raise ValueError("module is required")

    if isinstance(module, (str, os.PathLike)):
        source = Path(module)
    else:
        filename = getattr(module, "__file__", None)
        if not filename:
            name = getattr(module, "__name__", repr(module))
            raise ValueError(
                f"Module '{name}' has no source file. "
                "Write the tests to a .py file first (e.g. with %%writefile)."
            )
        source = Path(filename)

    if source.suffix != ".py":
        raise ValueError(f"Expected a .py test file, got: {source}")

    return source


def _on_sys_path(folder: Path) -> bool:
    for entry in sys.path:
        try:
            if Path(entry or os.getcwd()).resolve() == folder:
                return True
        except OSError:
            continue
    return False


def check_single_folder(staging_dir: Union[str, Path]) -> Path:
    """Verify the host resolves imports from ``staging_dir``.

    Returns:
        The resolved staging folder.

    Raises:
        RuntimeError: If the folder is missing, not on ``sys.path``, or
            holds no pytest configuration file.
    """
    folder = Path(staging_dir).expanduser().resolve()

    if (
        not folder.is_dir()
        or not _on_sys_path(folder)
        or not any((folder / name).is_file() for name in COMPANION_FILES)
    ):
        raise RuntimeError(
            f"Please keep test dependencies in a single folder: add {folder} to sys.path "
            f"and place a pytest config file ({', '.join(COMPANION_FILES)}) there, "
            f"or point NB_TEST_STAGING_DIR at a folder that has both."
        )

    return folder


def forget_module(path: Path) -> None:
    """Drop cached imports of ``path`` so pytest re-imports the fresh copy."""
    path = path.resolve()
    for name, module in list(sys.modules.items()):
        filename = getattr(module, "__file__", None)
        if not filename:
            continue
        try:
            if Path(filename).resolve() == path:
                del sys.modules[name]
        except OSError:
            continue


def stage_module(module: ModuleRef, staging_dir: Union[str, Path]) -> Path:
    """Copy the module's source into the staging folder.

    An existing copy is overwritten. A source that already lives in the
    staging folder is used in place.

    Returns:
        Path of the staged test file.

    Raises:
        ValueError: If the module has no source file.
        FileNotFoundError: If the source file doesn't exist.
        RuntimeError: If the staging folder fails ``check_single_folder``.
    """
    source = resolve_source(module)
    folder = check_single_folder(staging_dir)

    if not source.is_file():
        raise FileNotFoundError(f"Test file not found: {source}")

    target = folder / source.name

    with _staging_lock:
        if source.resolve() != target.resolve():
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{source.stem}-", suffix=".tmp", dir=folder
            )
            os.close(fd)
            try:
                shutil.copyfile(source, tmp_name)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        forget_module(target)

    return target
