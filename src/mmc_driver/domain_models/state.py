from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from mmc_driver.domain_models.results import Decision
from mmc_driver.domain_models.structure import AtomicStructure


class DriverStatus(StrEnum):
    INIT = "INIT"
    RUNNING = "RUNNING"
    STEP_IN_PROGRESS = "STEP_IN_PROGRESS"
    STEP_SETTLED = "STEP_SETTLED"
    DONE = "DONE"
    FATAL = "FATAL"

    def __repr__(self) -> str:
        return f"<DriverStatus.{self.name}>"

    def __str__(self) -> str:
        return self.value


class AcceptedState(BaseModel):
    """
    The chain's current position. Structure and energy only ever change together.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    structure: AtomicStructure
    energy: float


class RunState(BaseModel):
    """
    Persisted copy of the accepted state plus run counters.

    Energy and structure records are written together in one atomic file
    replace, which makes this file the commit point of an accepted move.
    """

    model_config = ConfigDict(extra="ignore")

    energy: float
    records: tuple[str, ...]
    steps: int = 0
    accepted: int = 0
    last_dataset_id: int | None = None
    last_trajectory_id: int | None = None
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __repr__(self) -> str:
        return f"<RunState(energy={self.energy}, steps={self.steps}, accepted={self.accepted})>"

    def accepted_state(self) -> AcceptedState:
        return AcceptedState(structure=AtomicStructure(records=self.records), energy=self.energy)


class StepOutcome(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    step: int
    addresses: tuple[int, int]
    decision: Decision
    dataset_id: int
    trajectory_id: int | None = None
    energy: float


class RunSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: DriverStatus
    steps: int = 0
    accepted: int = 0
    final_energy: float | None = None

    @property
    def acceptance_ratio(self) -> float:
        if self.steps == 0:
            return 0.0
        return self.accepted / self.steps
