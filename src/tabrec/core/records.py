"""
Record-side half of the row transcoder.

Responsibilities
- Normalize encode inputs (one record, or an iterable of records of one type).
- Interpret decode targets (a record type, or ``list[R]`` / ``Sequence[R]``).
- Read leaf values through embedded paths and compute the column set.
- Build fresh records from assigned leaf values.
- Project records to/from typed row mappings for non-text formats.

Notes:
    - Reading through an absent optional sub-record yields the leaf kind's zero
      value; input records are never mutated.
    - Records are created through their constructor, so dataclass __post_init__
      hooks and pydantic validation run as usual.
    - Zero-IO.
"""

from __future__ import annotations

import collections.abc
import logging
from collections.abc import Iterable, Mapping
from typing import Any, get_args, get_origin

from .cells import check_value, coerce_value, is_empty, zero_value
from .errors import ConversionError, NilInputError, NoDataRowsError, ShapeError
from .fields import LeafField, column_lookup, describe_record, is_record_type, resolve_fields
from .typing import RowMapping

__all__ = [
    "normalize_records",
    "parse_target",
    "read_leaf",
    "select_columns",
    "project_records",
    "RecordBuilder",
    "finish_target",
    "to_mappings",
    "from_mappings",
]

logger = logging.getLogger(__name__)

_SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)


def normalize_records(value: Any, record_type: type | None = None) -> tuple[type, list[Any]]:
    """
    Normalize an encode input into (record type, records).

    Args:
        value (Any): A record, or a non-string, non-mapping iterable of records.
        record_type (type | None): Record type; required for an empty iterable.

    Returns:
        tuple[type, list[Any]]: The record type and the records in order.

    Raises:
        NilInputError: If value or any element is None.
        ShapeError: If value is not a record or an iterable of records of one type.
    """
    if value is None:
        raise NilInputError("value is None")
    if is_record_type(type(value)):
        records = [value]
    elif isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Iterable):
        raise ShapeError(
            f"value must be a record or a sequence of records, got {type(value).__name__}"
        )
    else:
        records = list(value)

    for i, record in enumerate(records):
        if record is None:
            raise NilInputError(f"element {i} is None")

    if record_type is None:
        if not records:
            raise ShapeError("cannot infer the record type of an empty sequence; pass record_type")
        record_type = type(records[0])
    if not is_record_type(record_type):
        raise ShapeError(f"element type {record_type.__name__} is not a dataclass or pydantic model")
    for i, record in enumerate(records):
        if not isinstance(record, record_type):
            raise ShapeError(
                f"element {i} is {type(record).__name__}, expected {record_type.__name__}"
            )
    return record_type, records


def parse_target(target: Any) -> tuple[type, bool]:
    """
    Interpret a decode target.

    Args:
        target (Any): A record type (single record) or ``list[R]`` / ``Sequence[R]``.

    Returns:
        tuple[type, bool]: (record type, True when a sequence is requested).

    Raises:
        ShapeError: For any other target.
    """
    if is_record_type(target):
        return target, False
    origin = get_origin(target)
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(target)
        if len(args) == 1 and is_record_type(args[0]):
            return args[0], True
    raise ShapeError(
        f"target must be a record type or a list of a record type, got {target!r}"
    )


def read_leaf(record: Any, leaf: LeafField) -> Any:
    """
    Read a leaf's value, following its embedded path.

    Returns:
        Any: The value, or the kind's zero value when an optional sub-record on
        the path is absent.

    Raises:
        UnsupportedKindError: If an absent sub-record forces a zero value for a
            leaf whose type has no kind.
    """
    obj = record
    for step in leaf.path:
        obj = getattr(obj, step.attr)
        if obj is None:
            return zero_value(leaf.require_kind())
    return getattr(obj, leaf.attr)


def select_columns(leaves: Iterable[LeafField], records: list[Any]) -> list[LeafField]:
    """
    Compute the column set for one batch of records.

    Args:
        leaves (Iterable[LeafField]): Leaves of the record type, in order.
        records (list[Any]): Records being encoded.

    Returns:
        list[LeafField]: Every non-omitempty leaf, plus each omitempty leaf for
        which at least one record holds a non-empty value.
    """
    columns: list[LeafField] = []
    for leaf in leaves:
        if not leaf.omitempty:
            columns.append(leaf)
            continue
        kind = leaf.require_kind()
        if any(not is_empty(kind, read_leaf(record, leaf)) for record in records):
            columns.append(leaf)
    return columns


def project_records(
    value: Any,
    *,
    record_type: type | None = None,
    strict: bool = False,
) -> tuple[type, list[LeafField], list[Any]]:
    """
    Normalize an encode input and compute its column set.

    Args:
        value (Any): Record or iterable of records.
        record_type (type | None): Record type for empty inputs.
        strict (bool): Reject duplicate column names.

    Returns:
        tuple[type, list[LeafField], list[Any]]: (record type, retained leaves, records).
    """
    record_type, records = normalize_records(value, record_type)
    leaves = resolve_fields(record_type, strict=strict)
    columns = select_columns(leaves, records)
    logger.debug(
        "projecting %d %s record(s) onto %d/%d column(s)",
        len(records),
        record_type.__name__,
        len(columns),
        len(leaves),
    )
    return record_type, columns, records


class RecordBuilder:
    """
    Collects leaf assignments for one record and constructs it.

    Notes:
        - An optional embedded sub-record is created only when one of its
          leaves was assigned; otherwise it takes its default (or None).
        - Unassigned fields take their declared default, else the kind's zero
          value (None for unsupported kinds).
    """

    def __init__(self, record_type: type) -> None:
        self.record_type = record_type
        self._values: dict[tuple[str, ...], dict[str, Any]] = {}

    def assign(self, leaf: LeafField, value: Any) -> None:
        key = tuple(step.attr for step in leaf.path)
        self._values.setdefault(key, {})[leaf.attr] = value

    def build(self) -> Any:
        return self._build(self.record_type, ())

    def _touched(self, key: tuple[str, ...]) -> bool:
        n = len(key)
        return any(k[:n] == key for k in self._values)

    def _build(self, record_type: type, key: tuple[str, ...]) -> Any:
        assigned = self._values.get(key, {})
        kwargs: dict[str, Any] = {}
        late: dict[str, Any] = {}
        for f in describe_record(record_type).fields:
            if f.embedded and f.sub_type is not None:
                sub_key = (*key, f.name)
                if self._touched(sub_key):
                    value = self._build(f.sub_type, sub_key)
                elif f.has_default or not f.init:
                    continue
                elif f.optional:
                    value = None
                else:
                    value = self._build(f.sub_type, sub_key)
            elif f.name in assigned:
                value = assigned[f.name]
            elif f.has_default or not f.init:
                continue
            else:
                value = zero_value(f.kind) if f.kind is not None else None
            if f.init:
                kwargs[f.name] = value
            else:
                late[f.name] = value
        record = record_type(**kwargs)
        for name, value in late.items():
            # init=False fields (frozen dataclasses included) are set after construction.
            object.__setattr__(record, name, value)
        return record


def finish_target(records: list[Any], many: bool) -> Any:
    """
    Shape decoded records for the target.

    Raises:
        NoDataRowsError: If a single record was requested and none were decoded.
    """
    if many:
        return records
    if not records:
        raise NoDataRowsError("no data rows found")
    return records[0]


def to_mappings(
    value: Any,
    *,
    record_type: type | None = None,
    strict: bool = False,
) -> tuple[list[str], list[RowMapping]]:
    """
    Project records to typed row mappings keyed by column name.

    Args:
        value (Any): Record or iterable of records.
        record_type (type | None): Record type for empty inputs.
        strict (bool): Reject duplicate column names.

    Returns:
        tuple[list[str], list[RowMapping]]: Column names (column set order) and
        one mapping per record holding kind-checked builtin values.

    Raises:
        ShapeError, NilInputError: For unsupported inputs.
        UnsupportedKindError: For a retained leaf with no kind.
        ConversionError: For values that do not match their kind.

    Notes:
        With duplicate column names the later leaf's value wins in each mapping.
    """
    _, columns, records = project_records(value, record_type=record_type, strict=strict)
    rows: list[RowMapping] = []
    for record in records:
        row: RowMapping = {}
        for leaf in columns:
            row[leaf.column] = check_value(
                leaf.require_kind(), read_leaf(record, leaf), column=leaf.column
            )
        rows.append(row)
    return [leaf.column for leaf in columns], rows


def from_mappings(
    rows: Iterable[Mapping[str, Any]],
    target: Any,
    *,
    strict: bool = False,
) -> Any:
    """
    Build records from typed row mappings.

    Args:
        rows (Iterable[Mapping[str, Any]]): One mapping per record; keys are
            column names. Unknown keys are ignored, missing keys leave fields unset.
        target (Any): Record type or ``list[R]`` / ``Sequence[R]``.
        strict (bool): Reject duplicate column names.

    Returns:
        Any: A list of records, or the first record for a single-record target.

    Raises:
        ShapeError: If the target or a row is not of an accepted shape.
        ConversionError: If a value cannot be interpreted for its field (with the
            1-based row index in ``line``).
        NoDataRowsError: If a single record was requested and rows is empty.
    """
    record_type, many = parse_target(target)
    lookup = column_lookup(resolve_fields(record_type, strict=strict))
    records: list[Any] = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            raise ShapeError(f"row {index} is {type(row).__name__}, expected a mapping")
        builder = RecordBuilder(record_type)
        for name, raw in row.items():
            leaf = lookup.get(name)
            if leaf is None:
                continue
            try:
                value = coerce_value(
                    leaf.require_kind(), raw, column=name, factory=leaf.factory
                )
            except ConversionError as exc:
                raise ConversionError(exc.reason, column=name, value=raw, line=index) from exc
            builder.assign(leaf, value)
        records.append(builder.build())
    logger.debug("built %d %s record(s) from mappings", len(records), record_type.__name__)
    return finish_target(records, many)
