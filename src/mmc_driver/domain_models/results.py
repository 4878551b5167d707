from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mmc_driver.domain_models.structure import AtomicStructure


class SolverResult(BaseModel):
    """Outcome of one solver evaluation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    energy: float
    relaxed_structure: AtomicStructure | None = None
    energy_log: Path
    structure_log: Path | None = None
    extra_artifacts: tuple[Path, ...] = ()

    @property
    def artifacts(self) -> list[Path]:
        """Raw solver files worth archiving, in a stable order."""
        paths = [self.energy_log]
        if self.structure_log is not None:
            paths.append(self.structure_log)
        paths.extend(self.extra_artifacts)
        return paths


class TrialRecord(BaseModel):
    """A perturbed candidate and what the solver made of it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    candidate: AtomicStructure
    addresses: tuple[int, int]
    result: SolverResult

    @property
    def energy(self) -> float:
        return self.result.energy

    @property
    def relaxed_structure(self) -> AtomicStructure | None:
        return self.result.relaxed_structure


class Decision(BaseModel):
    """Metropolis verdict for a single trial."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    accept: bool
    delta_e: float
    exponent: float
    probability: float = Field(ge=0.0)
    sample: float = Field(ge=0.0, lt=1.0)
