import logging
import shutil
from pathlib import Path

from mmc_driver.constants import PARTIAL_PREFIX
from mmc_driver.infrastructure.io import copy_into

logger = logging.getLogger(__name__)


class ArchiveStore:
    """
    A directory of integer-named subdirectories (1, 2, 3, ...), one per archived
    trial.

    Entries are assembled under a hidden partial name and renamed once every
    file is in place. The next index is derived from the highest existing one,
    so numbering survives restarts and is never reused, even around gaps.
    """

    def __init__(self, root: Path, required_file: str, create: bool = True) -> None:
        self.root = root
        self.required_file = required_file
        if create:
            self.root.mkdir(parents=True, exist_ok=True)
        self._last_index = self._scan() if self.root.exists() else 0

    def __repr__(self) -> str:
        return f"<ArchiveStore(root={self.root}, last_index={self._last_index})>"

    @property
    def last_index(self) -> int:
        return self._last_index

    def _scan(self) -> int:
        indices = []
        for entry in self.root.iterdir():
            if not (entry.is_dir() and entry.name.isdigit()):
                continue
            indices.append(int(entry.name))
            if not (entry / self.required_file).exists():
                logger.warning(f"Archive entry {entry} has no {self.required_file}; keeping its index")
        return max(indices, default=0)

    def cleanup_partials(self) -> None:
        for entry in self.root.glob(f"{PARTIAL_PREFIX}*"):
            logger.warning(f"Removing interrupted archive entry {entry}")
            shutil.rmtree(entry, ignore_errors=True)

    def store(self, artifacts: list[Path]) -> int:
        """Copies the existing files among `artifacts` into a new entry and returns its index."""
        index = self._last_index + 1
        partial = self.root / f"{PARTIAL_PREFIX}{index}"
        if partial.exists():
            shutil.rmtree(partial)
        partial.mkdir()

        for src in artifacts:
            if src.exists():
                copy_into(src, partial)
            else:
                logger.debug(f"Skipping missing artifact {src}")

        partial.rename(self.root / str(index))
        self._last_index = index
        return index
