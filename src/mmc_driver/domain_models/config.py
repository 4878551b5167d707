from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mmc_driver.constants import (
    BOLTZMANN_EV_PER_K,
    DATASET_DIR_NAME,
    DEFAULT_BACKUP_FILE,
    DEFAULT_ENERGY_FIELD,
    DEFAULT_ENERGY_LOG,
    DEFAULT_ENERGY_MARKER,
    DEFAULT_INPUT_FILE,
    DEFAULT_LOG_FILENAME,
    DEFAULT_PRE_TRIAL_FILE,
    DEFAULT_RELAXED_STRUCTURE,
    DEFAULT_STATE_FILENAME,
    DEFAULT_STDOUT_FILE,
    DEFAULT_TEMPERATURE,
    TRAJECTORY_DIR_NAME,
)
from mmc_driver.domain_models.structure import SpeciesBlock, StructureSchema


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file_path: Path = Path(DEFAULT_LOG_FILENAME)


class StructureConfig(BaseModel):
    """
    Layout of the working structure file and the two species whose sites get exchanged.

    `species` may be left out, in which case the layout is read from the
    working POSCAR at startup.
    """

    model_config = ConfigDict(extra="forbid")

    header_line_count: int | None = Field(None, ge=0)
    species: list[SpeciesBlock] | None = None
    swap: tuple[str, str]

    @model_validator(mode="after")
    def check_swap_pair(self) -> "StructureConfig":
        if self.swap[0] == self.swap[1]:
            msg = f"swap must name two different species, got {list(self.swap)}"
            raise ValueError(msg)
        if self.species is not None and self.header_line_count is None:
            msg = "header_line_count is required when species are given explicitly"
            raise ValueError(msg)
        return self

    def to_schema(self) -> StructureSchema | None:
        if self.species is None or self.header_line_count is None:
            return None
        return StructureSchema(
            header_line_count=self.header_line_count, species=tuple(self.species)
        )


class SolverConfig(BaseModel):
    """How to invoke the external energy solver and where its files live."""

    model_config = ConfigDict(extra="forbid")

    command: str = Field("", description="Solver invocation, e.g. 'srun -n 8 vasp_std'")
    timeout: float | None = Field(None, gt=0, description="Timeout in seconds, None waits forever")
    input_file: str = DEFAULT_INPUT_FILE
    energy_log: str = DEFAULT_ENERGY_LOG
    relaxed_structure: str = DEFAULT_RELAXED_STRUCTURE
    stdout_file: str = DEFAULT_STDOUT_FILE
    energy_marker: str = DEFAULT_ENERGY_MARKER
    energy_field: int = Field(DEFAULT_ENERGY_FIELD, ge=0)
    archive_extra: list[str] = Field(default_factory=list)


class FilesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    backup: str = DEFAULT_BACKUP_FILE
    pre_trial: str = DEFAULT_PRE_TRIAL_FILE
    state: str = DEFAULT_STATE_FILENAME
    trajectory_dir: str = TRAJECTORY_DIR_NAME
    dataset_dir: str = DATASET_DIR_NAME


class MMCConfig(BaseModel):
    """Top-level configuration of a Metropolis Monte Carlo run."""

    model_config = ConfigDict(extra="forbid")

    work_dir: Path = Path(".")
    temperature: float = Field(DEFAULT_TEMPERATURE, gt=0, description="Temperature (K)")
    boltzmann_constant: float = Field(BOLTZMANN_EV_PER_K, gt=0, description="kB (eV/K)")
    max_steps: int = Field(0, ge=0, description="0 runs until interrupted")
    seed: int | None = None
    structure: StructureConfig
    solver: SolverConfig = Field(default_factory=SolverConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def path(self, name: str) -> Path:
        return self.work_dir / name
