import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import yaml
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Reads a run configuration mapping. An empty file yields ``{}`` so every
    field falls back to its default.

    Raises:
        TypeError: If the top level of the document is not a mapping.
    """
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"{path} must hold a mapping of settings, not {type(data).__name__}")
    return data


def dump_yaml(data: dict[str, Any], path: Path) -> None:
    # Field order follows the model so a written config reads top-down.
    atomic_write_text(path, yaml.safe_dump(data, sort_keys=False))


def atomic_write_text(path: Path, text: str) -> None:
    """
    Writes `text` to `path` through a temp file in the same directory and a rename,
    so readers only ever see the old or the new content.
    """
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=path.parent, delete=False, prefix=f".{path.name}.", suffix=".tmp"
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
            tmp_file.write(text)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        tmp_path.replace(path)
    except BaseException:
        if tmp_path and tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        raise


def atomic_copy(src: Path, dst: Path) -> None:
    """Copies `src` over `dst` without ever exposing a half-written `dst`."""
    atomic_write_text(dst, src.read_text(errors="replace"))


# Archive targets are often on network filesystems, so transient errors get retried.
@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)
def copy_into(src: Path, dst_dir: Path) -> Path:
    dst = dst_dir / src.name
    shutil.copy2(src, dst)
    return dst


def remove_if_present(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug(f"Removed stale {path}")
    return True
