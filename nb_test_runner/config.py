"""Runner configuration.

Settings come from three places, later ones winning:
1. ``RunnerConfig`` defaults
2. ``NB_TEST_STAGING_DIR`` environment variable
3. A YAML config file passed to ``load_config``
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

STAGING_DIR_ENV = "NB_TEST_STAGING_DIR"

VALID_IMPORT_MODES = {"importlib", "prepend", "append"}


def default_staging_dir() -> Path:
    """Staging folder from the environment, else the working directory."""
    env_dir = os.environ.get(STAGING_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.cwd()


@dataclass
class RunnerConfig:
    """Configuration for a test run."""
    staging_dir: Path = field(default_factory=default_staging_dir)
    quiet: bool = True
    show_stack_traces: bool = True
    import_mode: str = "importlib"
    extra_args: list[str] = field(default_factory=list)
    report_path: Optional[Path] = None

    def __post_init__(self):
        self.staging_dir = Path(self.staging_dir)
        if self.report_path is not None:
            self.report_path = Path(self.report_path)


def load_config(file_path: Union[str, Path]) -> RunnerConfig:
    """Load a RunnerConfig from a YAML file.

    Relative ``staging_dir`` and ``report_path`` values are resolved
    against the config file's folder.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the YAML is not a mapping or a value is invalid.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return RunnerConfig()

    return parse_config_data(data, base_dir=file_path.parent, source=str(file_path))


def parse_config_data(
    data: dict,
    base_dir: Optional[Path] = None,
    source: str = "<inline>",
) -> RunnerConfig:
    """Build a RunnerConfig from an already loaded mapping."""
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a YAML mapping, got {type(data).__name__}")

    values = {
        k: v for k, v in data.items()
        if k in RunnerConfig.__dataclass_fields__
    }

    for key in ("quiet", "show_stack_traces"):
        if key in values and not isinstance(values[key], bool):
            raise ValueError(f"'{key}' must be true or false in {source}")

    import_mode = values.get("import_mode", "importlib")
    if import_mode not in VALID_IMPORT_MODES:
        raise ValueError(
            f"Invalid import_mode '{import_mode}' in {source}. "
            f"Must be one of: {', '.join(sorted(VALID_IMPORT_MODES))}"
        )

    extra_args = values.get("extra_args", [])
    if not isinstance(extra_args, list) or not all(isinstance(a, str) for a in extra_args):
        raise ValueError(f"'extra_args' must be a list of strings in {source}")

    for key in ("staging_dir", "report_path"):
        if values.get(key) is not None:
            path = Path(values[key]).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            values[key] = path

    return RunnerConfig(**values)
