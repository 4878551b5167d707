from pathlib import Path

from mmc_driver.domain_models.config import MMCConfig, StructureConfig
from mmc_driver.domain_models.structure import SpeciesBlock
from mmc_driver.exceptions import ConfigError
from mmc_driver.infrastructure.io import load_yaml
from mmc_driver.settings import Settings


def load_config(path: Path) -> MMCConfig:
    """
    Loads configuration from a YAML file.

    Raises:
        FileNotFoundError: If file not found.
        yaml.YAMLError: If invalid YAML.
        ValidationError: If invalid schema.
    """
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    return MMCConfig.model_validate(load_yaml(path))


def resolve_solver_command(config: MMCConfig, settings: Settings | None = None) -> str:
    """Returns the configured solver command, falling back to MMC_SOLVER_COMMAND."""
    command = config.solver.command.strip()
    if not command:
        command = (settings or Settings()).solver_command.strip()
    if not command:
        msg = "No solver command configured (set solver.command or MMC_SOLVER_COMMAND)"
        raise ConfigError(msg)
    return command


def default_config() -> MMCConfig:
    """A GaN:Sc example layout with Ga and Sc sites exchanged."""
    return MMCConfig(
        structure=StructureConfig(
            header_line_count=8,
            species=[
                SpeciesBlock(name="Ga", count=22),
                SpeciesBlock(name="N", count=32),
                SpeciesBlock(name="Sc", count=10),
            ],
            swap=("Ga", "Sc"),
        ),
    )
