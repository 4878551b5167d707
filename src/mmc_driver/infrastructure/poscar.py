"""Species layout discovery for VASP POSCAR files."""

import itertools
import logging
from pathlib import Path

import ase.io

from mmc_driver.domain_models.structure import SpeciesBlock, StructureSchema
from mmc_driver.exceptions import AddressError

logger = logging.getLogger(__name__)

_COORD_COMMENT_LINES = 5  # comment, scale, three lattice vectors


def _is_int_row(line: str) -> bool:
    parts = line.split()
    return bool(parts) and all(p.isdigit() for p in parts)


def detect_header_lines(lines: list[str]) -> tuple[int, list[int]]:
    """
    Returns the number of header lines preceding the first site record and the
    per-species counts found in the header.
    """
    if len(lines) <= _COORD_COMMENT_LINES + 1:
        msg = "POSCAR is too short to contain a header"
        raise AddressError(msg)

    counts_idx = _COORD_COMMENT_LINES
    if not _is_int_row(lines[counts_idx]):
        # VASP 5 species names line
        counts_idx += 1
    if counts_idx >= len(lines) or not _is_int_row(lines[counts_idx]):
        msg = f"Could not find the species counts line in POSCAR header: {lines[:counts_idx + 1]}"
        raise AddressError(msg)

    counts = [int(c) for c in lines[counts_idx].split()]
    header = counts_idx + 1
    if header < len(lines) and lines[header].strip()[:1].lower() == "s":
        header += 1  # Selective dynamics
    header += 1  # Direct / Cartesian
    return header, counts


def infer_schema(path: Path) -> StructureSchema:
    """
    Builds a `StructureSchema` from a POSCAR: species order and counts come from
    ASE, the header length from the file text.
    """
    lines = path.read_text().splitlines()
    header, counts = detect_header_lines(lines)

    atoms = ase.io.read(path, format="vasp")
    symbols = atoms.get_chemical_symbols()
    blocks = [
        SpeciesBlock(name=name, count=len(list(group)))
        for name, group in itertools.groupby(symbols)
    ]

    if [b.count for b in blocks] != counts:
        msg = (
            f"Species blocks read by ASE {[(b.name, b.count) for b in blocks]} "
            f"do not match header counts {counts} in {path}"
        )
        raise AddressError(msg)

    schema = StructureSchema(header_line_count=header, species=tuple(blocks))
    logger.info(
        f"Inferred structure layout from {path.name}: header={header}, "
        + ", ".join(f"{b.name}={b.count}" for b in blocks)
    )
    return schema
