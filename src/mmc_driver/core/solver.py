import logging
import math
import re
import shlex
import subprocess
import time
from pathlib import Path

from mmc_driver.domain_models.config import SolverConfig
from mmc_driver.domain_models.results import SolverResult
from mmc_driver.domain_models.structure import AtomicStructure
from mmc_driver.exceptions import ConfigError, SolverOutputError
from mmc_driver.infrastructure.io import remove_if_present

logger = logging.getLogger(__name__)


def parse_total_energy(text: str, marker: str = "TOTEN", field: int = 4) -> float:
    """
    Extracts the total energy from a solver log.

    Every line containing `marker` (case-insensitive) is a candidate; the last one
    is the converged value. `field` is the 0-based whitespace-separated column
    holding the number, e.g. 4 for VASP's
    ``free  energy   TOTEN  =      -100.23 eV``.

    Raises:
        SolverOutputError: If no marker line exists or the field is not a finite number.
    """
    pattern = re.compile(re.escape(marker), re.IGNORECASE)
    matches = [line for line in text.splitlines() if pattern.search(line)]
    if not matches:
        msg = f"{marker} not found in solver output"
        raise SolverOutputError(msg)

    last = matches[-1]
    parts = last.split()
    try:
        energy = float(parts[field])
    except (IndexError, ValueError) as e:
        msg = f"Could not read field {field} of energy line {last.strip()!r}"
        raise SolverOutputError(msg) from e

    # A diverged SCF prints NaN or Infinity here.
    if not math.isfinite(energy):
        msg = f"Non-finite energy in line {last.strip()!r}"
        raise SolverOutputError(msg)
    return energy


class SolverAdapter:
    """
    Runs the external energy solver in the working directory and collects its results.

    The solver reads `input_file` and leaves `energy_log` (and optionally
    `relaxed_structure`) behind. Its exit status is logged but not trusted; a
    total-energy line in the log is the only success signal.
    """

    def __init__(self, config: SolverConfig, work_dir: Path, command: str) -> None:
        self.config = config
        self.work_dir = work_dir
        self.command = command

    def __repr__(self) -> str:
        return f"<SolverAdapter(command={self.command!r}, work_dir={self.work_dir})>"

    @property
    def input_path(self) -> Path:
        return self.work_dir / self.config.input_file

    @property
    def energy_log_path(self) -> Path:
        return self.work_dir / self.config.energy_log

    @property
    def relaxed_path(self) -> Path:
        return self.work_dir / self.config.relaxed_structure

    @property
    def stdout_path(self) -> Path:
        return self.work_dir / self.config.stdout_file

    def _command_parts(self) -> list[str]:
        try:
            parts = shlex.split(self.command)
        except ValueError as e:
            raise ConfigError(f"Solver command could not be parsed: {e}") from e
        if not parts:
            raise ConfigError("Solver command is empty.")
        return parts

    def evaluate(self, structure: AtomicStructure) -> SolverResult:
        """
        Writes `structure` as the solver input, runs the solver to completion and
        parses its output. Blocks for the full duration of the solver run.
        """
        structure.write(self.input_path)
        # Outputs of an earlier run must never be mistaken for this one's.
        remove_if_present(self.energy_log_path)
        remove_if_present(self.relaxed_path)

        self._invoke()
        return self.collect()

    def _invoke(self) -> None:
        cmd = self._command_parts()
        logger.info(f"Running solver: {self.command}")
        start_time = time.time()
        try:
            with self.stdout_path.open("w") as stdout_f:
                proc = subprocess.run(
                    cmd,
                    check=False,
                    shell=False,
                    cwd=str(self.work_dir),
                    stdout=stdout_f,
                    stderr=subprocess.STDOUT,
                    timeout=self.config.timeout,
                )
        except subprocess.TimeoutExpired:
            logger.error(f"Solver timed out after {self.config.timeout}s")
            return
        except OSError as e:
            logger.error(f"Solver could not be launched: {e}")
            return

        wall_time = time.time() - start_time
        if proc.returncode != 0:
            logger.warning(f"Solver exited with code {proc.returncode} after {wall_time:.1f}s")
        else:
            logger.debug(f"Solver finished in {wall_time:.1f}s")

    def read_energy(self) -> float:
        """Reads the authoritative energy from the current energy log."""
        path = self.energy_log_path
        if not path.exists():
            raise SolverOutputError(f"{path.name} not found", log_path=str(path))
        try:
            return parse_total_energy(
                path.read_text(errors="replace"),
                marker=self.config.energy_marker,
                field=self.config.energy_field,
            )
        except SolverOutputError as e:
            raise SolverOutputError(str(e), log_path=str(path)) from e

    def collect(self) -> SolverResult:
        energy = self.read_energy()

        relaxed = None
        structure_log = None
        if self.relaxed_path.exists():
            structure_log = self.relaxed_path
            relaxed = AtomicStructure.from_file(self.relaxed_path)

        extras = tuple(
            p for p in (self.work_dir / name for name in self.config.archive_extra) if p.exists()
        )

        return SolverResult(
            energy=energy,
            relaxed_structure=relaxed,
            energy_log=self.energy_log_path,
            structure_log=structure_log,
            extra_artifacts=extras,
        )
