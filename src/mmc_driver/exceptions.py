"""
Exceptions raised by the MMC driver.

Recoverable conditions (a rejected move, a missing relaxed structure) are
handled inside the loop. Everything derived from `MMCError` terminates the run.
"""


class MMCError(Exception):
    """Base exception for the MMC driver."""


class ConfigError(MMCError):
    """Invalid or incomplete configuration."""


class AddressError(MMCError):
    """Structure schema is misconfigured or a record address is out of range."""


class SolverOutputError(MMCError):
    """The solver left no extractable total energy behind."""

    def __init__(self, message: str, log_path: str | None = None) -> None:
        super().__init__(message)
        self.log_path = log_path

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.log_path:
            return f"{base_msg} (log: {self.log_path})"
        return base_msg


class BackupUnavailableError(MMCError):
    """Neither the backup snapshot nor the pre-trial structure can be found."""


class StateError(MMCError):
    """Persisted run state is unreadable or inconsistent."""


class MissingRelaxedStructureWarning(UserWarning):
    """The solver reported an energy but wrote no relaxed structure."""
