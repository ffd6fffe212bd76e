"""Disk usage helpers."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

_UNITS = ("KB", "MB", "GB")


def dir_size(path: Path) -> int:
    """Return the total size in bytes of all files below ``path``.

    Unreadable entries are skipped; a missing directory has size 0.
    """
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                st = os.lstat(os.path.join(root, name))
            except OSError as e:
                logger.debug("Skipping %s: %s", name, e)
                continue
            total += st.st_size
    return total


def dir_sizes(paths: Iterable[Path]) -> list[int]:
    """Size several directory trees concurrently, preserving input order."""
    paths = list(paths)
    if not paths:
        return []
    with ThreadPoolExecutor(max_workers=len(paths)) as pool:
        return list(pool.map(dir_size, paths))


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def format_size(size: int) -> str:
    """Format a byte count the way the UI shows it, e.g. ``1.50 MB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in _UNITS:
        value /= 1024
        if value < 1024 or unit == _UNITS[-1]:
            return f"{value:.2f} {unit}"
    return f"{size} B"
