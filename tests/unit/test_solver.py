import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mmc_driver.core.solver import SolverAdapter, parse_total_energy
from mmc_driver.domain_models.config import SolverConfig
from mmc_driver.domain_models.structure import AtomicStructure
from mmc_driver.exceptions import ConfigError, SolverOutputError
from tests.helpers import outcar_text


def test_last_energy_marker_wins() -> None:
    assert parse_total_energy(outcar_text(-99.0, -100.2)) == -100.2


def test_marker_match_is_case_insensitive() -> None:
    text = "  free  energy   toten  =      -12.5 eV\n"
    assert parse_total_energy(text) == -12.5


def test_missing_marker_raises() -> None:
    with pytest.raises(SolverOutputError, match="TOTEN not found"):
        parse_total_energy(" running on    8 total cores\n")


def test_malformed_energy_line_raises() -> None:
    with pytest.raises(SolverOutputError, match="field 4"):
        parse_total_energy("  free  energy   TOTEN  =\n")
    with pytest.raises(SolverOutputError):
        parse_total_energy("  free  energy   TOTEN  =  ******** eV\n")


@pytest.mark.parametrize("value", ["NaN", "nan", "Infinity", "-inf"])
def test_non_finite_energy_raises(value: str) -> None:
    with pytest.raises(SolverOutputError, match="Non-finite"):
        parse_total_energy(f"  free  energy   TOTEN  =      {value} eV\n")


def test_custom_marker_and_field() -> None:
    text = "!    total energy              =    -158.66 Ry\n!    total energy              =    -158.70 Ry\n"
    assert parse_total_energy(text, marker="!    total energy", field=4) == -158.70


@pytest.fixture
def adapter(work_dir: Path) -> SolverAdapter:
    return SolverAdapter(SolverConfig(command="srun -n 8 vasp_std"), work_dir, "srun -n 8 vasp_std")


def _fake_run(outcar: str | None, contcar: str | None = None, returncode: int = 0):
    def side_effect(cmd, **kwargs):
        cwd = Path(kwargs["cwd"])
        kwargs["stdout"].write("vasp stdout\n")
        if outcar is not None:
            (cwd / "OUTCAR").write_text(outcar)
        if contcar is not None:
            (cwd / "CONTCAR").write_text(contcar)
        return MagicMock(returncode=returncode)

    return side_effect


def test_evaluate_success(adapter: SolverAdapter, work_dir: Path, poscar_text: str) -> None:
    structure = AtomicStructure.from_text(poscar_text)
    relaxed_text = poscar_text.replace("GaScN supercell", "relaxed")

    with patch("mmc_driver.core.solver.subprocess.run") as mock_run:
        mock_run.side_effect = _fake_run(outcar_text(-99.0, -100.2), relaxed_text)
        result = adapter.evaluate(structure)

    assert result.energy == -100.2
    assert result.relaxed_structure is not None
    assert result.relaxed_structure.record(1) == "relaxed"
    assert result.artifacts == [work_dir / "OUTCAR", work_dir / "CONTCAR"]
    assert (work_dir / "vasp.out").read_text() == "vasp stdout\n"

    call_args = mock_run.call_args
    assert call_args.args[0] == ["srun", "-n", "8", "vasp_std"]
    assert call_args.kwargs["shell"] is False
    assert call_args.kwargs["cwd"] == str(work_dir)


def test_evaluate_writes_candidate_as_input(adapter: SolverAdapter, work_dir: Path, poscar_text: str) -> None:
    candidate = AtomicStructure.from_text(poscar_text.replace("GaScN supercell", "candidate"))
    seen = {}

    def side_effect(cmd, **kwargs):
        seen["input"] = (work_dir / "POSCAR").read_text()
        (work_dir / "OUTCAR").write_text(outcar_text(-1.0))
        return MagicMock(returncode=0)

    with patch("mmc_driver.core.solver.subprocess.run", side_effect=side_effect):
        adapter.evaluate(candidate)

    assert seen["input"].startswith("candidate\n")


def test_stale_outputs_are_not_reused(adapter: SolverAdapter, work_dir: Path, poscar_text: str) -> None:
    (work_dir / "OUTCAR").write_text(outcar_text(-50.0))
    (work_dir / "CONTCAR").write_text(poscar_text)

    with patch("mmc_driver.core.solver.subprocess.run", side_effect=_fake_run(None)):
        with pytest.raises(SolverOutputError, match="OUTCAR not found"):
            adapter.evaluate(AtomicStructure.from_text(poscar_text))

    assert not (work_dir / "CONTCAR").exists()


def test_missing_relaxed_structure_is_not_fatal(adapter: SolverAdapter, poscar_text: str) -> None:
    with patch("mmc_driver.core.solver.subprocess.run", side_effect=_fake_run(outcar_text(-3.0))):
        result = adapter.evaluate(AtomicStructure.from_text(poscar_text))

    assert result.energy == -3.0
    assert result.relaxed_structure is None
    assert result.structure_log is None


def test_exit_status_is_not_trusted(adapter: SolverAdapter, poscar_text: str) -> None:
    with patch(
        "mmc_driver.core.solver.subprocess.run",
        side_effect=_fake_run(outcar_text(-7.0), poscar_text, returncode=137),
    ):
        result = adapter.evaluate(AtomicStructure.from_text(poscar_text))
    assert result.energy == -7.0

    crashed = " running on    8 total cores\n ZBRENT: fatal error\n"
    with patch("mmc_driver.core.solver.subprocess.run", side_effect=_fake_run(crashed)):
        with pytest.raises(SolverOutputError) as excinfo:
            adapter.evaluate(AtomicStructure.from_text(poscar_text))
    assert "OUTCAR" in str(excinfo.value)


def test_launch_failure_surfaces_as_missing_energy(adapter: SolverAdapter, poscar_text: str) -> None:
    with patch("mmc_driver.core.solver.subprocess.run", side_effect=FileNotFoundError("srun")):
        with pytest.raises(SolverOutputError):
            adapter.evaluate(AtomicStructure.from_text(poscar_text))


def test_timeout_surfaces_as_missing_energy(work_dir: Path, poscar_text: str) -> None:
    adapter = SolverAdapter(SolverConfig(timeout=5.0), work_dir, "vasp_std")
    with patch(
        "mmc_driver.core.solver.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="vasp_std", timeout=5.0),
    ) as mock_run:
        with pytest.raises(SolverOutputError):
            adapter.evaluate(AtomicStructure.from_text(poscar_text))
    assert mock_run.call_args.kwargs["timeout"] == 5.0


def test_extra_artifacts_are_collected(work_dir: Path, poscar_text: str) -> None:
    config = SolverConfig(archive_extra=["OSZICAR", "vasprun.xml"])
    adapter = SolverAdapter(config, work_dir, "vasp_std")

    def side_effect(cmd, **kwargs):
        (work_dir / "OUTCAR").write_text(outcar_text(-2.0))
        (work_dir / "OSZICAR").write_text("  1 F= -.2E+01\n")
        return MagicMock(returncode=0)

    with patch("mmc_driver.core.solver.subprocess.run", side_effect=side_effect):
        result = adapter.evaluate(AtomicStructure.from_text(poscar_text))

    assert result.extra_artifacts == (work_dir / "OSZICAR",)


@pytest.mark.parametrize("command", ["", "   ", "vasp_std 'unterminated"])
def test_bad_command_raises_config_error(work_dir: Path, poscar_text: str, command: str) -> None:
    adapter = SolverAdapter(SolverConfig(), work_dir, command)
    with pytest.raises(ConfigError):
        adapter.evaluate(AtomicStructure.from_text(poscar_text))


def test_read_energy_from_existing_log(adapter: SolverAdapter, work_dir: Path) -> None:
    (work_dir / "OUTCAR").write_text(outcar_text(-10.0, -11.0))
    assert adapter.read_energy() == -11.0
