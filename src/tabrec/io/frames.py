"""
DataFrame bridge: records <-> polars DataFrames.

Overview
- to_frame(): records -> one typed polars column per column set leaf.
- from_frame(): DataFrame rows -> records, with unmarshal()'s target rules.

Dtypes
- INT -> Int64, UINT -> UInt64, FLOAT -> Float64, BOOL -> Boolean, STR -> Utf8,
  DATETIME -> Datetime("us", "UTC").

Notes
- Naive datetimes are stored as UTC; aware ones are converted to UTC.
- Null cells decode like empty text cells: the field's zero value.
- Columns with no matching field are ignored.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import polars as pl

from tabrec.core.cells import CellKind, check_value
from tabrec.core.records import from_mappings, project_records, read_leaf

__all__ = ["to_frame", "from_frame", "POLARS_DTYPES"]

logger = logging.getLogger(__name__)

POLARS_DTYPES: dict[CellKind, Any] = {
    CellKind.INT: pl.Int64,
    CellKind.UINT: pl.UInt64,
    CellKind.FLOAT: pl.Float64,
    CellKind.BOOL: pl.Boolean,
    CellKind.STR: pl.Utf8,
    CellKind.DATETIME: pl.Datetime("us", "UTC"),
}


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_frame(
    value: Any,
    *,
    record_type: type | None = None,
    strict: bool = False,
) -> pl.DataFrame:
    """
    Project records onto a polars DataFrame.

    Args:
        value (Any): A record, or an iterable of records of one type.
        record_type (type | None): Record type; needed only for an empty iterable.
        strict (bool): Reject record types with duplicate column names.

    Returns:
        pl.DataFrame: Columns in column set order, typed per leaf kind. omitempty
        columns that are empty in every record are dropped, as in marshal().

    Raises:
        Same as tabrec.core.codec.encode_rows().

    Notes:
        With duplicate column names the later leaf supplies the column.
    """
    _, columns, records = project_records(value, record_type=record_type, strict=strict)
    data: dict[str, list[Any]] = {}
    schema: dict[str, Any] = {}
    for leaf in columns:
        kind = leaf.require_kind()
        values = [check_value(kind, read_leaf(r, leaf), column=leaf.column) for r in records]
        if kind is CellKind.DATETIME:
            values = [_utc(v) for v in values]
        data.pop(leaf.column, None)
        schema.pop(leaf.column, None)
        data[leaf.column] = values
        schema[leaf.column] = POLARS_DTYPES[kind]
    df = pl.DataFrame(data, schema=schema)
    logger.debug("to_frame: %d row(s) x %d column(s)", df.height, df.width)
    return df


def from_frame(df: pl.DataFrame, target: Any, *, strict: bool = False) -> Any:
    """
    Build records from a polars DataFrame.

    Args:
        df (pl.DataFrame): Source frame; column names are matched to leaves.
        target (Any): Record type (first row) or ``list[R]`` / ``Sequence[R]`` (all rows).
        strict (bool): Reject record types with duplicate column names.

    Returns:
        Any: A list of records, or a single record.

    Raises:
        ShapeError: If target is not a record type or a list of one.
        NoDataRowsError: If a single record is requested and the frame is empty.
        ConversionError: If a value cannot be interpreted for its field.
    """
    return from_mappings(df.to_dicts(), target, strict=strict)
