"""
Filesystem helpers for tabrec.io (local files).

Responsibilities
- Atomic writes: tmp write → fsync → os.replace, with tmp cleanup on failure.
- Timestamped file names: a placeholder token in a path replaced by the current time.
- Latest-file lookup over a glob pattern, by name or by modification time.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem;
  the tmp file is created next to the destination.
- All helpers are synchronous and stdlib-only.
"""

from __future__ import annotations

import glob
import logging
import os
import tempfile
from datetime import datetime

from .errors import IoReadError, IoWriteError

__all__ = [
    "timestamp_file_name",
    "latest_file_by_name",
    "latest_file_by_mtime",
    "write_bytes_atomic",
    "read_bytes",
]

logger = logging.getLogger(__name__)


def timestamp_file_name(
    path: str,
    *,
    fmt: str = "%Y%m%d_%H%M%S",
    placeholder: str = "*",
    now: datetime | None = None,
) -> str:
    """
    Replace every placeholder in a path with a formatted timestamp.

    Args:
        path (str): Path that may contain the placeholder, e.g. "out/users_*.csv".
        fmt (str): strftime pattern.
        placeholder (str): Token to replace.
        now (datetime | None): Timestamp to use; the local current time when None.

    Returns:
        str: The path with placeholders substituted (unchanged when none occur).

    Examples:
        >>> timestamp_file_name("users_*.csv", now=datetime(2024, 5, 1, 9, 30, 0))
        'users_20240501_093000.csv'
    """
    if placeholder not in path:
        return path
    stamp = (now or datetime.now()).strftime(fmt)
    return path.replace(placeholder, stamp)


def _matches(pattern: str) -> list[str]:
    matches = [p for p in glob.glob(pattern) if os.path.isfile(p)]
    if not matches:
        raise IoReadError(f"no file matches {pattern!r}")
    return matches


def latest_file_by_name(pattern: str) -> str:
    """
    Return the lexicographically greatest file matching a glob pattern.

    Raises:
        IoReadError: If nothing matches.

    Notes:
        With sortable timestamps in file names (the default format) the greatest
        name is the newest file.
    """
    return max(_matches(pattern))


def latest_file_by_mtime(pattern: str) -> str:
    """
    Return the most recently modified file matching a glob pattern.

    Raises:
        IoReadError: If nothing matches.
    """
    return max(_matches(pattern), key=lambda p: (os.path.getmtime(p), p))


def write_bytes_atomic(path: str, data: bytes) -> None:
    """
    Write bytes to a path atomically, creating parent directories.

    Args:
        path (str): Final destination path.
        data (bytes): Full file contents.

    Raises:
        IoWriteError: If the tmp write, fsync, or rename fails (tmp file removed).
    """
    parent = os.path.dirname(os.path.abspath(path))
    tmp_path: str | None = None
    try:
        os.makedirs(parent, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=parent
        )
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise IoWriteError(f"atomic write to {path!r} failed: {exc}") from exc
    logger.debug("wrote %d bytes to %s", len(data), path)


def read_bytes(path: str) -> bytes:
    """
    Read a whole file.

    Raises:
        IoReadError: If the file does not exist or cannot be read.
    """
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise IoReadError(f"cannot read {path!r}: {exc}") from exc
