"""Console and run-log handlers for the Monte Carlo driver."""

import logging
from pathlib import Path

from rich.logging import RichHandler

from mmc_driver.constants import DATE_FORMAT, DEFAULT_LOG_FILENAME, LOG_FORMAT


def _console_handler(level: int) -> RichHandler:
    handler = RichHandler(rich_tracebacks=True, markup=False, show_path=False)
    handler.setLevel(level)
    return handler


def _run_log_handler(log_file: Path) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    # Every step decision goes to the run log, whatever the console shows.
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Routes all driver logging to the terminal at `log_level` and to `log_file`
    (``mmc.log`` in the current directory by default) at DEBUG.

    Calling it again replaces the handlers from the previous call.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {log_level!r}")

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)

    root.addHandler(_console_handler(level))
    root.addHandler(_run_log_handler(log_file or Path(DEFAULT_LOG_FILENAME)))
