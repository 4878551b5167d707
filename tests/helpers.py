"""Shared builders for POSCAR/OUTCAR text and a scripted solver."""

from pathlib import Path

from mmc_driver.core.solver import SolverAdapter
from mmc_driver.domain_models.config import SolverConfig

KB = 8.617333262e-5

HEADER = [
    "GaScN supercell",
    "1.0",
    "  6.3800000000  0.0000000000  0.0000000000",
    " -3.1900000000  5.5252963721  0.0000000000",
    "  0.0000000000  0.0000000000 10.3700000000",
    "Ga N Sc",
    "22 32 10",
    "Direct",
]
COUNTS = [("Ga", 22), ("N", 32), ("Sc", 10)]


def site_line(i: int) -> str:
    return f"  {(i * 0.0137) % 1:.8f}  {(i * 0.0291) % 1:.8f}  {(i * 0.0473) % 1:.8f}"


def make_poscar_text(selective: bool = False) -> str:
    header = list(HEADER)
    if selective:
        header.insert(7, "Selective dynamics")
    n_sites = sum(c for _, c in COUNTS)
    sites = [site_line(i) + ("  T  T  T" if selective else "") for i in range(1, n_sites + 1)]
    return "\n".join(header + sites) + "\n"


def outcar_text(*energies: float) -> str:
    lines = [" running on    8 total cores"]
    for e in energies:
        lines.append("  FREE ENERGIE OF THE ION-ELECTRON SYSTEM (eV)")
        lines.append("  ---------------------------------------------------")
        lines.append(f"  free  energy   TOTEN  =      {e:.8f} eV")
        lines.append("")
        lines.append(f"  energy  without entropy=      {e - 0.001:.8f}  energy(sigma->0) =      {e:.8f}")
    return "\n".join(lines) + "\n"


class ScriptedSolver(SolverAdapter):
    """
    SolverAdapter whose external program is replaced by a scripted list of
    energies. `None` in the script produces a log without any energy line.
    The relaxed structure is the unchanged input unless `write_relaxed` is False.
    """

    def __init__(self, config: SolverConfig, work_dir: Path, energies: list[float | None]):
        super().__init__(config, work_dir, command="fake-solver")
        self.energies = list(energies)
        self.write_relaxed = True
        self.calls = 0

    def _invoke(self) -> None:
        self.calls += 1
        energy = self.energies.pop(0)
        if energy is None:
            self.energy_log_path.write_text(" running on    8 total cores\n EDDDAV: crashed\n")
            return
        self.energy_log_path.write_text(outcar_text(energy + 0.5, energy))
        if self.write_relaxed:
            self.relaxed_path.write_text(self.input_path.read_text())
