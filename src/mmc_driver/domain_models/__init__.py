from .config import FilesConfig, LoggingConfig, MMCConfig, SolverConfig, StructureConfig
from .results import Decision, SolverResult, TrialRecord
from .state import AcceptedState, DriverStatus, RunState, RunSummary, StepOutcome
from .structure import AtomicStructure, SpeciesBlock, StructureSchema

__all__ = [
    "AcceptedState",
    "AtomicStructure",
    "Decision",
    "DriverStatus",
    "FilesConfig",
    "LoggingConfig",
    "MMCConfig",
    "RunState",
    "RunSummary",
    "SolverConfig",
    "SolverResult",
    "SpeciesBlock",
    "StepOutcome",
    "StructureConfig",
    "StructureSchema",
    "TrialRecord",
]
