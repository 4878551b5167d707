import logging

import numpy as np

from mmc_driver.domain_models.structure import AtomicStructure, StructureSchema
from mmc_driver.exceptions import AddressError

logger = logging.getLogger(__name__)


class StructureEditor:
    """
    Builds candidate structures by exchanging one site record of species A with
    one site record of species B. The input structure is never modified.
    """

    def __init__(
        self,
        schema: StructureSchema,
        swap_pair: tuple[str, str],
        rng: np.random.Generator | None = None,
    ) -> None:
        self.schema = schema
        self.species_a, self.species_b = swap_pair
        self.rng = rng if rng is not None else np.random.default_rng()
        # Resolving the blocks up front surfaces schema errors before any step runs.
        self.block_a = schema.block_range(self.species_a)
        self.block_b = schema.block_range(self.species_b)

    def __repr__(self) -> str:
        return (
            f"<StructureEditor({self.species_a}={self.block_a}, "
            f"{self.species_b}={self.block_b})>"
        )

    def validate(self, structure: AtomicStructure) -> None:
        if len(structure) < self.schema.record_count:
            msg = (
                f"Structure has {len(structure)} records but the schema needs "
                f"{self.schema.record_count} (header {self.schema.header_line_count} "
                f"+ {self.schema.total_sites} sites)"
            )
            raise AddressError(msg)

    def _in_swap_blocks(self, address: int) -> bool:
        return any(start <= address <= end for start, end in (self.block_a, self.block_b))

    def pick_random_address(self, block_start: int, block_end: int) -> int:
        """Uniformly samples an address in [block_start, block_end]."""
        if block_start > block_end:
            msg = f"Empty address range [{block_start}, {block_end}]"
            raise AddressError(msg)
        return int(self.rng.integers(block_start, block_end, endpoint=True))

    def swap(self, structure: AtomicStructure, address_a: int, address_b: int) -> AtomicStructure:
        """Returns a copy of `structure` with the two addressed records exchanged."""
        self.validate(structure)
        for address in (address_a, address_b):
            if not self._in_swap_blocks(address):
                msg = (
                    f"Address {address} is outside the {self.species_a} block {self.block_a} "
                    f"and the {self.species_b} block {self.block_b}"
                )
                raise AddressError(msg)

        records = list(structure.records)
        records[address_a - 1], records[address_b - 1] = (
            records[address_b - 1],
            records[address_a - 1],
        )
        return AtomicStructure(records=tuple(records))

    def perturb(self, structure: AtomicStructure) -> tuple[AtomicStructure, tuple[int, int]]:
        address_a = self.pick_random_address(*self.block_a)
        address_b = self.pick_random_address(*self.block_b)
        logger.info(
            f"Swap lines: {self.species_a} {address_a} <-> {self.species_b} {address_b}"
        )
        return self.swap(structure, address_a, address_b), (address_a, address_b)
