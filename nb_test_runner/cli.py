"""CLI entry point for the notebook test runner.

Runs one test file the same way a notebook cell would:
    nb-test run <test_file> [options]
"""

import sys
from pathlib import Path
from typing import Optional

import click

from .config import RunnerConfig, load_config
from .runner.coordinator import RunCoordinator

# Exit code for configuration and environment errors (tests never ran)
EXIT_USAGE = 2


def output_error(message: str) -> None:
    """Print a fatal error to stderr."""
    click.echo(f"ERROR: {message}", err=True)


@click.group()
@click.version_option(package_name="nb-test-runner")
def main():
    """Notebook test runner - run a pytest module and block until it finishes."""


@main.command("run")
@click.argument("test_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="YAML runner config file.")
@click.option("--staging-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Single folder the test file is staged into.")
@click.option("-k", "keyword", help="Only run tests matching the keyword expression.")
@click.option("-m", "markers", help="Only run tests matching the mark expression.")
@click.option("-x", "--exitfirst", is_flag=True, help="Stop after the first failure.")
@click.option("--no-stack-traces", is_flag=True, help="Print only the failure message.")
@click.option("--report", "report_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Write a JSON summary of the run.")
def run_command(
    test_file: Path,
    config_path: Optional[Path],
    staging_dir: Optional[Path],
    keyword: Optional[str],
    markers: Optional[str],
    exitfirst: bool,
    no_stack_traces: bool,
    report_path: Optional[Path],
):
    """Run TEST_FILE and exit with 0 if every test passed, 1 otherwise."""
    try:
        config = load_config(config_path) if config_path else RunnerConfig()
    except (FileNotFoundError, ValueError) as e:
        output_error(f"Failed to load config: {e}")
        sys.exit(EXIT_USAGE)

    if staging_dir:
        config.staging_dir = staging_dir
    if no_stack_traces:
        config.show_stack_traces = False
    if report_path:
        config.report_path = report_path

    def configure(runner):
        runner.keyword = keyword
        runner.markers = markers
        runner.stop_on_first_failure = exitfirst

    try:
        coordinator = RunCoordinator(test_file, config=config)
        result = coordinator.run(configure)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        output_error(str(e))
        sys.exit(EXIT_USAGE)
    except KeyboardInterrupt:
        output_error("Test run interrupted by user")
        sys.exit(130)

    sys.exit(int(result))


if __name__ == "__main__":
    main()
