from .acceptance import AcceptanceEngine
from .archive import ArchiveStore
from .driver import MMCDriver
from .solver import SolverAdapter, parse_total_energy
from .state_manager import StateManager
from .structure_editor import StructureEditor

__all__ = [
    "AcceptanceEngine",
    "ArchiveStore",
    "MMCDriver",
    "SolverAdapter",
    "StateManager",
    "StructureEditor",
    "parse_total_energy",
]
