from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mmc_driver.exceptions import AddressError
from mmc_driver.infrastructure.io import atomic_write_text


class SpeciesBlock(BaseModel):
    """A contiguous run of site records belonging to one species."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    count: int


class StructureSchema(BaseModel):
    """
    Line layout of a structure file: a fixed header followed by one block of
    site records per species, in file order.

    Record addresses are 1-based line numbers, so with an 8 line header the
    first site record lives at address 9.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    header_line_count: int = Field(ge=0)
    species: tuple[SpeciesBlock, ...]

    @property
    def total_sites(self) -> int:
        return sum(block.count for block in self.species)

    @property
    def record_count(self) -> int:
        return self.header_line_count + self.total_sites

    def block_range(self, name: str) -> tuple[int, int]:
        """
        Returns the inclusive (start, end) address range of a species block.

        Raises:
            AddressError: If the species is unknown, its block is empty, or any
                block up to it has a negative count.
        """
        offset = self.header_line_count
        for block in self.species:
            if block.count < 0:
                msg = (
                    f"Block {block.name} has negative count {block.count}; "
                    f"every block after it would overlap the header"
                )
                raise AddressError(msg)
            start = offset + 1
            end = offset + block.count
            if block.name == name:
                if start > end:
                    msg = (
                        f"Degenerate block for {name}: start {start} > end {end}. "
                        "Check header_line_count and species counts."
                    )
                    raise AddressError(msg)
                return start, end
            offset = end
        msg = f"Species {name!r} is not part of the structure schema"
        raise AddressError(msg)


class AtomicStructure(BaseModel):
    """
    An ordered sequence of opaque text records (one per line of a POSCAR-like file).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    records: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.records)

    def record(self, address: int) -> str:
        if not 1 <= address <= len(self.records):
            msg = f"Address {address} outside structure of {len(self.records)} records"
            raise AddressError(msg)
        return self.records[address - 1]

    @classmethod
    def from_text(cls, text: str) -> "AtomicStructure":
        return cls(records=tuple(text.splitlines()))

    @classmethod
    def from_file(cls, path: Path) -> "AtomicStructure":
        return cls.from_text(path.read_text())

    def to_text(self) -> str:
        return "\n".join(self.records) + "\n"

    def write(self, path: Path) -> None:
        """Writes the structure atomically (temp file, then rename)."""
        atomic_write_text(path, self.to_text())
