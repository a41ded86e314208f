"""
Lightweight JSON serialization/deserialization utilities.

Provides the single JSON policy used by the row-mapping formats: key order is
preserved (columns stay in column set order), non-ASCII text is kept as-is,
and datetimes are written as ISO 8601 strings. This module is zero-IO.

Notes:
    - Decoding is plain ``json.loads``; timestamps come back as strings and are
      parsed by the cell conversion rules when assigned to DATETIME fields.
    - stdlib-only.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

__all__ = [
    "json_dumps",
    "json_loads",
    "plain_value",
]


def plain_value(value: Any) -> Any:
    """Return a JSON/YAML-safe scalar (datetimes become ISO 8601 strings)."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def json_dumps(obj: Any, *, indent: int | None = None) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj (Any): JSON-serializable object; datetimes are accepted anywhere.
        indent (int | None): Pretty-print indentation, or None for compact output.

    Returns:
        str: JSON text with insertion-ordered keys and ensure_ascii=False.
    """
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(
        obj, ensure_ascii=False, indent=indent, separators=separators, default=_json_default
    )


def json_loads(s: str | bytes) -> Any:
    """
    Deserialize a JSON document using the stdlib json module.

    Args:
        s (str | bytes): JSON text.

    Returns:
        Any: Decoded Python object (dict, list, str, int, float, bool, or None).
    """
    return json.loads(s)
