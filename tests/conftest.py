"""Fixtures for the test suite."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from mmc_driver.domain_models.config import MMCConfig, SolverConfig, StructureConfig
from mmc_driver.domain_models.structure import SpeciesBlock, StructureSchema
from tests.helpers import COUNTS, KB, make_poscar_text


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by setup_logging so log files are closed between tests."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, (RichHandler, logging.FileHandler)):
            handler.close()
            root.removeHandler(handler)


@pytest.fixture
def poscar_text() -> str:
    return make_poscar_text()


@pytest.fixture
def schema() -> StructureSchema:
    return StructureSchema(
        header_line_count=8,
        species=tuple(SpeciesBlock(name=n, count=c) for n, c in COUNTS),
    )


@pytest.fixture
def work_dir(tmp_path: Path, poscar_text: str) -> Path:
    run_dir = tmp_path / "run"
    run_dir.mkdir()
    (run_dir / "POSCAR").write_text(poscar_text)
    return run_dir


@pytest.fixture
def mmc_config(work_dir: Path) -> MMCConfig:
    return MMCConfig(
        work_dir=work_dir,
        temperature=300.0,
        boltzmann_constant=KB,
        max_steps=3,
        seed=7,
        structure=StructureConfig(
            header_line_count=8,
            species=[SpeciesBlock(name=n, count=c) for n, c in COUNTS],
            swap=("Ga", "Sc"),
        ),
        solver=SolverConfig(command="vasp_std"),
    )
