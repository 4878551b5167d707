import logging

import numpy as np

from mmc_driver.config.loader import resolve_solver_command
from mmc_driver.core.acceptance import AcceptanceEngine
from mmc_driver.core.solver import SolverAdapter
from mmc_driver.core.state_manager import StateManager
from mmc_driver.core.structure_editor import StructureEditor
from mmc_driver.domain_models.config import MMCConfig
from mmc_driver.domain_models.results import TrialRecord
from mmc_driver.domain_models.state import DriverStatus, RunSummary, StepOutcome
from mmc_driver.exceptions import ConfigError, MMCError, SolverOutputError
from mmc_driver.infrastructure.poscar import infer_schema

logger = logging.getLogger(__name__)


class MMCDriver:
    """
    The Metropolis Monte Carlo loop.

    Each step perturbs the accepted structure, evaluates it, archives the trial,
    and then either commits or rolls back before the next step begins. A
    solver failure stops the run with the pre-trial structure restored.
    """

    def __init__(
        self,
        config: MMCConfig,
        state_manager: StateManager,
        editor: StructureEditor,
        solver: SolverAdapter,
        acceptance: AcceptanceEngine,
    ) -> None:
        self.config = config
        self.state_manager = state_manager
        self.editor = editor
        self.solver = solver
        self.acceptance = acceptance

        self.status = DriverStatus.INIT
        self.step = 0
        self.accepted = 0

    def __repr__(self) -> str:
        return f"<MMCDriver(status={self.status}, step={self.step}, accepted={self.accepted})>"

    @classmethod
    def from_config(cls, config: MMCConfig) -> "MMCDriver":
        command = resolve_solver_command(config)
        solver = SolverAdapter(config.solver, config.work_dir, command)

        schema = config.structure.to_schema()
        if schema is None:
            if not solver.input_path.exists():
                msg = f"Cannot infer species layout: {solver.input_path} does not exist"
                raise ConfigError(msg)
            schema = infer_schema(solver.input_path)

        rng = np.random.default_rng(config.seed)
        editor = StructureEditor(schema, config.structure.swap, rng=rng)
        acceptance = AcceptanceEngine(rng=rng)
        state_manager = StateManager(config, solver)
        return cls(config, state_manager, editor, solver, acceptance)

    def _should_continue(self) -> bool:
        max_steps = self.config.max_steps
        return max_steps == 0 or self.step < max_steps

    def summary(self) -> RunSummary:
        energy = self.state_manager.state.energy if self.status != DriverStatus.INIT else None
        return RunSummary(
            status=self.status, steps=self.step, accepted=self.accepted, final_energy=energy
        )

    def run(self) -> RunSummary:
        try:
            self.status = DriverStatus.INIT
            state = self.state_manager.initialize()
            self.editor.validate(state.structure)

            self.status = DriverStatus.RUNNING
            while self._should_continue():
                self.run_step()
        except MMCError:
            self.status = DriverStatus.FATAL
            raise

        self.status = DriverStatus.DONE
        logger.info(f"Reached max_steps={self.config.max_steps}. Exiting.")
        return self.summary()

    def run_step(self) -> StepOutcome:
        step = self.step + 1
        self.status = DriverStatus.STEP_IN_PROGRESS
        logger.info(f"================== Step {step} ==================")

        e1 = self.state_manager.state.energy
        pre_trial = self.state_manager.save_pre_trial()
        candidate, addresses = self.editor.perturb(pre_trial)

        try:
            result = self.solver.evaluate(candidate)
        except SolverOutputError:
            logger.error("No total energy in solver output. Restoring pre-trial structure and aborting.")
            self.state_manager.restore_pre_trial()
            self.status = DriverStatus.FATAL
            raise

        trial = TrialRecord(candidate=candidate, addresses=addresses, result=result)
        logger.info(f"Trial energy E2 = {trial.energy} eV   (E1 = {e1} eV)")
        dataset_id = self.state_manager.archive_trial(trial)

        decision = self.acceptance.decide(
            e1, trial.energy, self.config.temperature, self.config.boltzmann_constant
        )
        logger.info(
            f"E_diff={decision.delta_e:.6g} , p={decision.probability:.6g} , x={decision.sample:.6g}"
        )

        trajectory_id = None
        if decision.accept:
            state, trajectory_id = self.state_manager.commit(trial)
            self.accepted += 1
            logger.info(f"Move ACCEPTED (trajectory {trajectory_id}), E1 = {state.energy} eV")
        else:
            self.state_manager.rollback()
            logger.info("Move REJECTED. Restored previous accepted structure.")

        self.state_manager.record_step(dataset_id, trajectory_id)
        self.step = step
        self.status = DriverStatus.STEP_SETTLED

        return StepOutcome(
            step=step,
            addresses=addresses,
            decision=decision,
            dataset_id=dataset_id,
            trajectory_id=trajectory_id,
            energy=self.state_manager.state.energy,
        )
