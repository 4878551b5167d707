import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from mmc_driver.config.loader import default_config, load_config
from mmc_driver.constants import DEFAULT_CONFIG_FILENAME
from mmc_driver.core.archive import ArchiveStore
from mmc_driver.core.driver import MMCDriver
from mmc_driver.domain_models.config import MMCConfig
from mmc_driver.domain_models.state import RunState
from mmc_driver.exceptions import MMCError
from mmc_driver.infrastructure.io import dump_yaml
from mmc_driver.infrastructure.logging import setup_logging

app = typer.Typer(help="Metropolis Monte Carlo site-swap sampling with an external solver.")
logger = logging.getLogger(__name__)


def _load_or_exit(config_path: Path) -> MMCConfig:
    if not config_path.exists():
        typer.echo(f"Error: Config file not found: {config_path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_config(config_path)
    except (ValidationError, yaml.YAMLError, TypeError) as e:
        typer.echo(f"Invalid configuration in {config_path}:\n{e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to the configuration YAML file"),  # noqa: B008
    log_level: Optional[str] = typer.Option(None, help="Console log level, overrides the config"),
) -> None:
    """
    Run the Monte Carlo chain until max_steps is reached.
    """
    config = _load_or_exit(config_path)

    log_file = config.logging.file_path
    if not log_file.is_absolute():
        log_file = config.work_dir / log_file
    setup_logging(log_level or config.logging.level, log_file)

    try:
        driver = MMCDriver.from_config(config)
        summary = driver.run()
    except MMCError as e:
        logger.error(f"Fatal: {e}")
        typer.echo(f"Run aborted: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(
        f"Run finished: {summary.steps} steps, {summary.accepted} accepted "
        f"(ratio {summary.acceptance_ratio:.3f}), final energy {summary.final_energy} eV"
    )


@app.command()
def init(
    path: Path = typer.Argument(Path(DEFAULT_CONFIG_FILENAME), help="Where to write the config"),  # noqa: B008
) -> None:
    """
    Write a default configuration file to edit.
    """
    if path.exists():
        typer.secho(f"File {path} already exists.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    dump_yaml(default_config().model_dump(mode="json"), path)
    typer.secho(f"Wrote default configuration to {path}", fg=typer.colors.GREEN)


@app.command()
def status(
    config_path: Path = typer.Argument(..., help="Path to the configuration YAML file"),  # noqa: B008
) -> None:
    """
    Show the persisted run state and archive indices.
    """
    config = _load_or_exit(config_path)
    state_file = config.work_dir / config.files.state

    dataset = ArchiveStore(
        config.work_dir / config.files.dataset_dir, config.solver.energy_log, create=False
    )
    trajectory = ArchiveStore(
        config.work_dir / config.files.trajectory_dir, config.solver.energy_log, create=False
    )

    if state_file.exists():
        try:
            run_state = RunState.model_validate_json(state_file.read_text())
        except ValidationError as e:
            typer.echo(f"Run state file {state_file} is unreadable: {e}", err=True)
            raise typer.Exit(code=1) from e
        typer.echo(f"Accepted energy: {run_state.energy} eV")
        typer.echo(f"Steps: {run_state.steps} ({run_state.accepted} accepted)")
        typer.echo(f"Last update: {run_state.updated_at}")
    else:
        typer.echo("No run state found.")

    typer.echo(f"Dataset entries: {dataset.last_index}")
    typer.echo(f"Trajectory entries: {trajectory.last_index}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
