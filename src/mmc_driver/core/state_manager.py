import json
import logging
import warnings
from datetime import datetime, timezone

from pydantic import ValidationError

from mmc_driver.core.archive import ArchiveStore
from mmc_driver.core.solver import SolverAdapter
from mmc_driver.domain_models.config import MMCConfig
from mmc_driver.domain_models.results import TrialRecord
from mmc_driver.domain_models.state import AcceptedState, RunState
from mmc_driver.domain_models.structure import AtomicStructure
from mmc_driver.exceptions import (
    BackupUnavailableError,
    MissingRelaxedStructureWarning,
    StateError,
)
from mmc_driver.infrastructure.io import atomic_copy, atomic_write_text

logger = logging.getLogger(__name__)


class StateManager:
    """
    Owns the chain's accepted state and every file that mirrors it.

    On disk the accepted state lives in three places: the run state file
    (energy and structure, the commit point), the backup snapshot, and the
    working structure the solver reads. All three are written only here.
    """

    def __init__(self, config: MMCConfig, solver: SolverAdapter) -> None:
        self.config = config
        self.solver = solver
        work_dir = config.work_dir
        files = config.files

        self.working_path = solver.input_path
        self.backup_path = work_dir / files.backup
        self.pre_trial_path = work_dir / files.pre_trial
        self.state_file = work_dir / files.state

        self.dataset = ArchiveStore(work_dir / files.dataset_dir, config.solver.energy_log)
        self.trajectory = ArchiveStore(work_dir / files.trajectory_dir, config.solver.energy_log)

        self._state: AcceptedState | None = None
        self.run_state: RunState | None = None

    def __repr__(self) -> str:
        return (
            f"<StateManager(work_dir={self.config.work_dir}, "
            f"dataset={self.dataset.last_index}, trajectory={self.trajectory.last_index})>"
        )

    @property
    def state(self) -> AcceptedState:
        if self._state is None:
            raise StateError("StateManager has not been initialized")
        return self._state

    @property
    def dataset_index(self) -> int:
        return self.dataset.last_index

    @property
    def trajectory_index(self) -> int:
        return self.trajectory.last_index

    def load_run_state(self) -> RunState | None:
        if not self.state_file.exists():
            return None
        try:
            data = json.loads(self.state_file.read_text())
            return RunState.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            msg = f"Run state file {self.state_file} is unreadable: {e}"
            raise StateError(msg) from e

    def _save_run_state(self) -> None:
        if self.run_state is None:
            raise StateError("StateManager has not been initialized")
        self.run_state.updated_at = datetime.now(timezone.utc).isoformat()
        atomic_write_text(self.state_file, self.run_state.model_dump_json(indent=2))
        logger.debug(f"Run state saved to {self.state_file}")

    def initialize(self) -> AcceptedState:
        """
        Establishes the accepted state.

        Resume order: the run state file written by a previous launch, then the
        energy log left in the working directory, then a fresh baseline solver
        run. The baseline run is not archived.
        """
        self.dataset.cleanup_partials()
        self.trajectory.cleanup_partials()

        persisted = self.load_run_state()
        if persisted is not None:
            # The working structure may be an interrupted candidate, so it is not trusted.
            state = persisted.accepted_state()
            self.run_state = persisted
            state.structure.write(self.working_path)
            logger.info(
                f"Resuming from {self.state_file.name} after {persisted.steps} steps "
                f"({persisted.accepted} accepted)"
            )
        else:
            if not self.working_path.exists():
                msg = f"No working structure found at {self.working_path}"
                raise StateError(msg)
            structure = AtomicStructure.from_file(self.working_path)

            if self.solver.energy_log_path.exists():
                energy = self.solver.read_energy()
                logger.info(f"Found {self.solver.energy_log_path.name}, reusing its energy")
            else:
                logger.info(
                    f"No {self.solver.energy_log_path.name} found, running initial solver evaluation"
                )
                energy = self.solver.evaluate(structure).energy
            state = AcceptedState(structure=structure, energy=energy)
            self.run_state = RunState(energy=energy, records=structure.records)

        self._state = state
        self.snapshot_backup(state)
        self._save_run_state()
        logger.info(f"Initial energy E1 = {state.energy} eV")
        return state

    def snapshot_backup(self, state: AcceptedState) -> None:
        state.structure.write(self.backup_path)

    def save_pre_trial(self) -> AtomicStructure:
        """Persists the structure the coming trial starts from, as a last-resort rollback target."""
        structure = self.state.structure
        structure.write(self.pre_trial_path)
        return structure

    def archive_trial(self, trial: TrialRecord) -> int:
        dataset_id = self.dataset.store(trial.result.artifacts)
        logger.debug(f"Trial archived as {self.dataset.root.name}/{dataset_id}")
        return dataset_id

    def commit(self, trial: TrialRecord) -> tuple[AcceptedState, int]:
        """
        Promotes `trial` to the accepted state and archives it in the trajectory.

        If the solver left no relaxed structure, the previous structure is kept
        together with the new energy.

        The run state file is written before anything else. The trajectory
        entry comes last, so an interrupted commit can leave the trajectory one
        entry short of `RunState.accepted` but never holding a move the chain
        did not accept.
        """
        if self.run_state is None:
            raise StateError("StateManager has not been initialized")

        structure = trial.relaxed_structure
        if structure is None:
            msg = (
                f"{self.solver.relaxed_path.name} not found on accept; "
                "keeping the previous structure"
            )
            warnings.warn(msg, MissingRelaxedStructureWarning, stacklevel=2)
            logger.warning(msg)
            structure = self.state.structure

        new_state = AcceptedState(structure=structure, energy=trial.energy)
        self.run_state.energy = new_state.energy
        self.run_state.records = structure.records
        self._save_run_state()

        structure.write(self.working_path)
        self.snapshot_backup(new_state)
        self._state = new_state

        trajectory_id = self.trajectory.store(trial.result.artifacts)
        return new_state, trajectory_id

    def rollback(self) -> AtomicStructure:
        """Restores the working structure from the backup snapshot (or the pre-trial copy)."""
        if self.backup_path.exists():
            atomic_copy(self.backup_path, self.working_path)
        elif self.pre_trial_path.exists():
            logger.warning(
                f"{self.backup_path.name} missing, restoring {self.pre_trial_path.name} instead"
            )
            atomic_copy(self.pre_trial_path, self.working_path)
        else:
            msg = f"Neither {self.backup_path.name} nor {self.pre_trial_path.name} exists"
            raise BackupUnavailableError(msg)
        return AtomicStructure.from_file(self.working_path)

    def restore_pre_trial(self) -> AtomicStructure:
        """Puts the pre-trial structure back after a failed evaluation."""
        if self.pre_trial_path.exists():
            atomic_copy(self.pre_trial_path, self.working_path)
        elif self.backup_path.exists():
            logger.warning(
                f"{self.pre_trial_path.name} missing, restoring {self.backup_path.name} instead"
            )
            atomic_copy(self.backup_path, self.working_path)
        else:
            msg = f"Neither {self.pre_trial_path.name} nor {self.backup_path.name} exists"
            raise BackupUnavailableError(msg)
        return AtomicStructure.from_file(self.working_path)

    def record_step(self, dataset_id: int, trajectory_id: int | None) -> None:
        if self.run_state is None:
            raise StateError("StateManager has not been initialized")
        self.run_state.steps += 1
        self.run_state.last_dataset_id = dataset_id
        if trajectory_id is not None:
            self.run_state.accepted += 1
            self.run_state.last_trajectory_id = trajectory_id
        self._save_run_state()
