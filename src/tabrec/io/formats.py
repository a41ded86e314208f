"""
File format registry for tabrec.io.

Each FileFormat turns records into file bytes and file bytes back into records.
Formats are looked up by name or by file extension.

Built-ins
- csv (.csv): tabrec.core.codec marshal/unmarshal.
- json (.json): array of row objects keyed by column name.
- yaml (.yaml, .yml): the same row objects via PyYAML safe_dump/safe_load.
- parquet (.parquet): polars DataFrame bridge written with pyarrow, tagged with
  key-value metadata naming the record type.

Notes
- Row-object formats apply the same column set as CSV (omitempty columns empty
  in every record are dropped) and write datetimes as ISO 8601 strings.
- CSV bytes are always UTF-8; IoSettings.encoding applies to JSON and YAML.
- Registering a format under an existing name replaces it.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any

import polars as pl
import pyarrow.parquet as pq
import yaml

from tabrec import __version__
from tabrec.core.codec import marshal, unmarshal
from tabrec.core.errors import EmptyDocumentError
from tabrec.core.records import from_mappings, normalize_records, parse_target, to_mappings
from tabrec.core.serde import json_dumps, json_loads, plain_value

from .config import IoSettings
from .errors import IoFormatError
from .frames import from_frame, to_frame

__all__ = [
    "FileFormat",
    "register_format",
    "get_format",
    "format_for_path",
    "list_formats",
    "CSV_FORMAT",
    "JSON_FORMAT",
    "YAML_FORMAT",
    "PARQUET_FORMAT",
]

logger = logging.getLogger(__name__)

Dump = Callable[..., bytes]
Load = Callable[..., Any]


@dataclass(slots=True, frozen=True)
class FileFormat:
    """
    A named file format.

    Attributes:
        name (str): Registry key, lower_snake (e.g. "csv").
        extensions (tuple[str, ...]): File suffixes including the dot (e.g. ".csv").
        dump (Callable): ``dump(value, *, record_type, settings) -> bytes``.
        load (Callable): ``load(data, target, *, settings) -> records``.
    """

    name: str
    extensions: tuple[str, ...]
    dump: Dump
    load: Load


# Registry
_FORMATS: dict[str, FileFormat] = {}


def register_format(fmt: FileFormat) -> FileFormat:
    """
    Register a file format (replacing any format of the same name).

    Returns:
        FileFormat: The registered format.
    """
    _FORMATS[fmt.name] = fmt
    logger.debug("registered file format %s %s", fmt.name, fmt.extensions)
    return fmt


def get_format(name: str) -> FileFormat:
    """
    Look up a file format by name.

    Raises:
        IoFormatError: If no format is registered under name.
    """
    try:
        return _FORMATS[name.lower()]
    except KeyError:
        raise IoFormatError(f"unknown file format {name!r}") from None


def format_for_path(path: str) -> FileFormat:
    """
    Look up a file format by a path's extension (case-insensitive).

    Raises:
        IoFormatError: If no registered format claims the extension.

    Notes:
        When several formats claim an extension the most recently registered wins.
    """
    suffix = PurePath(path).suffix.lower()
    for fmt in reversed(list(_FORMATS.values())):
        if suffix in (ext.lower() for ext in fmt.extensions):
            return fmt
    raise IoFormatError(f"no file format registered for extension {suffix or '(none)'!r} of {path!r}")


def list_formats() -> list[FileFormat]:
    """Return all registered formats in registry order."""
    return list(_FORMATS.values())


# -----------------------------------------------------------------------------
# Built-ins
# -----------------------------------------------------------------------------


def _dump_csv(value: Any, *, record_type: type | None, settings: IoSettings) -> bytes:
    return marshal(
        value,
        record_type=record_type,
        delimiter=settings.delimiter,
        strict=settings.strict_columns,
    )


def _load_csv(data: bytes, target: Any, *, settings: IoSettings) -> Any:
    return unmarshal(data, target, delimiter=settings.delimiter, strict=settings.strict_columns)


def _plain_rows(value: Any, record_type: type | None, settings: IoSettings) -> list[dict[str, Any]]:
    _, rows = to_mappings(value, record_type=record_type, strict=settings.strict_columns)
    return [{k: plain_value(v) for k, v in row.items()} for row in rows]


def _rows_payload(payload: Any, fmt: str) -> list[Any]:
    if payload is None:
        raise EmptyDocumentError("no records found")
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        for i, row in enumerate(payload):
            if not isinstance(row, dict):
                raise IoFormatError(f"{fmt} row {i + 1} is {type(row).__name__}, expected an object")
        return payload
    raise IoFormatError(
        f"{fmt} document must be an array of objects or an object, got {type(payload).__name__}"
    )


def _dump_json(value: Any, *, record_type: type | None, settings: IoSettings) -> bytes:
    rows = _plain_rows(value, record_type, settings)
    text = json_dumps(rows, indent=settings.json_indent or None)
    return (text + "\n").encode(settings.encoding)


def _load_json(data: bytes, target: Any, *, settings: IoSettings) -> Any:
    parse_target(target)
    text = data.decode(settings.encoding)
    if not text.strip():
        raise EmptyDocumentError("no records found")
    try:
        payload = json_loads(text)
    except ValueError as exc:
        raise IoFormatError(f"invalid JSON document: {exc}") from exc
    return from_mappings(_rows_payload(payload, "json"), target, strict=settings.strict_columns)


def _dump_yaml(value: Any, *, record_type: type | None, settings: IoSettings) -> bytes:
    rows = _plain_rows(value, record_type, settings)
    text = yaml.safe_dump(rows, sort_keys=False, allow_unicode=True)
    return text.encode(settings.encoding)


def _load_yaml(data: bytes, target: Any, *, settings: IoSettings) -> Any:
    parse_target(target)
    try:
        payload = yaml.safe_load(data.decode(settings.encoding))
    except yaml.YAMLError as exc:
        raise IoFormatError(f"invalid YAML document: {exc}") from exc
    return from_mappings(_rows_payload(payload, "yaml"), target, strict=settings.strict_columns)


def _dump_parquet(value: Any, *, record_type: type | None, settings: IoSettings) -> bytes:
    record_type, records = normalize_records(value, record_type)
    df = to_frame(records, record_type=record_type, strict=settings.strict_columns)
    arrow_table = df.to_arrow()
    # Prepare metadata (keys/values must be bytes).
    meta = dict(arrow_table.schema.metadata or {})
    meta.update(
        {
            b"tabrec_record_type": f"{record_type.__module__}.{record_type.__qualname__}".encode(),
            b"tabrec_version": __version__.encode(),
        }
    )
    arrow_table = arrow_table.replace_schema_metadata(meta)
    buf = io.BytesIO()
    pq.write_table(arrow_table, buf, compression=settings.compression)
    return buf.getvalue()


def _load_parquet(data: bytes, target: Any, *, settings: IoSettings) -> Any:
    parse_target(target)
    df = pl.read_parquet(io.BytesIO(data))
    return from_frame(df, target, strict=settings.strict_columns)


CSV_FORMAT = register_format(FileFormat("csv", (".csv",), _dump_csv, _load_csv))
JSON_FORMAT = register_format(FileFormat("json", (".json",), _dump_json, _load_json))
YAML_FORMAT = register_format(FileFormat("yaml", (".yaml", ".yml"), _dump_yaml, _load_yaml))
PARQUET_FORMAT = register_format(
    FileFormat("parquet", (".parquet",), _dump_parquet, _load_parquet)
)
