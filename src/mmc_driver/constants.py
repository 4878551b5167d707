"""Global constants for the MMC driver."""

import os


def _get_env_float(key: str, default: float) -> float:
    val = os.getenv(key)
    if val:
        try:
            return float(val)
        except ValueError:
            pass
    return default


# Solver file names (VASP conventions)
DEFAULT_INPUT_FILE = os.getenv("MMC_INPUT_FILE", "POSCAR")
DEFAULT_ENERGY_LOG = os.getenv("MMC_ENERGY_LOG", "OUTCAR")
DEFAULT_RELAXED_STRUCTURE = os.getenv("MMC_RELAXED_STRUCTURE", "CONTCAR")
DEFAULT_STDOUT_FILE = os.getenv("MMC_STDOUT_FILE", "vasp.out")
DEFAULT_ENERGY_MARKER = "TOTEN"
DEFAULT_ENERGY_FIELD = 4

# Driver bookkeeping files
DEFAULT_BACKUP_FILE = "POSCAR_backup"
DEFAULT_PRE_TRIAL_FILE = "POSCAR_before_swap"
DEFAULT_STATE_FILENAME = os.getenv("MMC_STATE_FILENAME", "mmc_state.json")
DEFAULT_CONFIG_FILENAME = os.getenv("MMC_CONFIG_FILENAME", "mmc.yaml")
TRAJECTORY_DIR_NAME = "trajectory"
DATASET_DIR_NAME = "dataset"
PARTIAL_PREFIX = ".partial-"

# Physics
BOLTZMANN_EV_PER_K = _get_env_float("MMC_BOLTZMANN_CONSTANT", 8.617333262e-5)
DEFAULT_TEMPERATURE = _get_env_float("MMC_DEFAULT_TEMPERATURE", 300.0)

# Logging
DEFAULT_LOG_FILENAME = os.getenv("MMC_LOG_FILENAME", "mmc.log")
DEFAULT_LOG_LEVEL = os.getenv("MMC_DEFAULT_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("MMC_LOG_FORMAT", "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")
DATE_FORMAT = os.getenv("MMC_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")
