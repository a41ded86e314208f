"""
Record files: write records to disk and read them back, in any registered format.

Overview
- write_file(): pick a format (explicit name or path extension), substitute a
  timestamp for the placeholder in the path, dump, and write atomically.
- read_file(): treat the path as a glob pattern (the placeholder matches any
  timestamp), pick the newest match per IoSettings.latest_by, and load.
- Thin wrappers pin the format: read_/write_ csv_file, json_file, yaml_file.

Notes
- settings default to IoSettings.load() (env > TOML > defaults).
- Codec errors from tabrec.core pass through unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import IoSettings
from .formats import FileFormat, format_for_path, get_format
from .fs import (
    latest_file_by_mtime,
    latest_file_by_name,
    read_bytes,
    timestamp_file_name,
    write_bytes_atomic,
)

__all__ = [
    "write_file",
    "read_file",
    "resolve_read_path",
    "write_csv_file",
    "read_csv_file",
    "write_json_file",
    "read_json_file",
    "write_yaml_file",
    "read_yaml_file",
]

logger = logging.getLogger(__name__)


def _resolve_format(path: str, fmt: str | None) -> FileFormat:
    return get_format(fmt) if fmt is not None else format_for_path(path)


def write_file(
    data: Any,
    path: str,
    *,
    fmt: str | None = None,
    settings: IoSettings | None = None,
    record_type: type | None = None,
) -> str:
    """
    Write records to a file.

    Args:
        data (Any): A record, or an iterable of records of one type.
        path (str): Destination; every occurrence of the settings' placeholder
            (default "*") is replaced by a timestamp.
        fmt (str | None): Format name; inferred from the path's extension when None.
        settings (IoSettings | None): IO settings; IoSettings.load() when None.
        record_type (type | None): Record type; needed only for an empty iterable.

    Returns:
        str: The path actually written.

    Raises:
        IoFormatError: If no format matches fmt or the extension.
        IoWriteError: If the atomic write fails.
        CodecError: Any codec error raised while encoding the records.

    Examples:
        >>> write_file(users, "out/users_*.csv")  # doctest: +SKIP
        'out/users_20240501_093000.csv'
    """
    settings = settings or IoSettings.load()
    file_format = _resolve_format(path, fmt)
    final_path = timestamp_file_name(
        path, fmt=settings.timestamp_format, placeholder=settings.timestamp_placeholder
    )
    payload = file_format.dump(data, record_type=record_type, settings=settings)
    write_bytes_atomic(final_path, payload)
    logger.debug("write_file: %s (%s, %d bytes)", final_path, file_format.name, len(payload))
    return final_path


def resolve_read_path(path: str, settings: IoSettings) -> str:
    """
    Resolve a read path or pattern to a single existing file.

    Args:
        path (str): Literal path or glob pattern; the settings' placeholder is
            treated as "*".
        settings (IoSettings): Supplies the placeholder and latest_by policy.

    Returns:
        str: The newest matching file.

    Raises:
        IoReadError: If nothing matches.
    """
    pattern = path.replace(settings.timestamp_placeholder, "*")
    if settings.latest_by == "mtime":
        return latest_file_by_mtime(pattern)
    return latest_file_by_name(pattern)


def read_file(
    target: Any,
    path: str,
    *,
    fmt: str | None = None,
    settings: IoSettings | None = None,
) -> Any:
    """
    Read records from the newest file matching a path pattern.

    Args:
        target (Any): Record type (first record) or ``list[R]`` / ``Sequence[R]``.
        path (str): Literal path or glob pattern (see resolve_read_path()).
        fmt (str | None): Format name; inferred from the matched file's extension when None.
        settings (IoSettings | None): IO settings; IoSettings.load() when None.

    Returns:
        Any: A list of records, or a single record.

    Raises:
        IoReadError: If no file matches.
        IoFormatError: If no format matches fmt or the extension, or the payload
            has the wrong shape.
        CodecError: Any codec error raised while decoding.
    """
    settings = settings or IoSettings.load()
    resolved = resolve_read_path(path, settings)
    file_format = _resolve_format(resolved, fmt)
    logger.debug("read_file: %s (%s)", resolved, file_format.name)
    return file_format.load(read_bytes(resolved), target, settings=settings)


def write_csv_file(
    data: Any, path: str, *, settings: IoSettings | None = None, record_type: type | None = None
) -> str:
    """write_file() with the csv format."""
    return write_file(data, path, fmt="csv", settings=settings, record_type=record_type)


def read_csv_file(target: Any, path: str, *, settings: IoSettings | None = None) -> Any:
    """read_file() with the csv format."""
    return read_file(target, path, fmt="csv", settings=settings)


def write_json_file(
    data: Any, path: str, *, settings: IoSettings | None = None, record_type: type | None = None
) -> str:
    """write_file() with the json format."""
    return write_file(data, path, fmt="json", settings=settings, record_type=record_type)


def read_json_file(target: Any, path: str, *, settings: IoSettings | None = None) -> Any:
    """read_file() with the json format."""
    return read_file(target, path, fmt="json", settings=settings)


def write_yaml_file(
    data: Any, path: str, *, settings: IoSettings | None = None, record_type: type | None = None
) -> str:
    """write_file() with the yaml format."""
    return write_file(data, path, fmt="yaml", settings=settings, record_type=record_type)


def read_yaml_file(target: Any, path: str, *, settings: IoSettings | None = None) -> Any:
    """read_file() with the yaml format."""
    return read_file(target, path, fmt="yaml", settings=settings)
