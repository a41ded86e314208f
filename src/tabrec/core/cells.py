"""
Scalar cell conversion between typed field values and text cells.

Responsibilities
- Classify a declared field type into a CellKind (or None when unsupported).
- Convert values to text cells and text cells back to values, losslessly for
  the supported kinds.
- Define emptiness (for omitempty column suppression) and zero values (for
  fields not present in a row).

Supported kinds
- INT: int subclasses (bool excluded); canonical decimal.
- UINT: tabrec.core.typing.UInt (and NewTypes over it); decimal, no sign.
- FLOAT: float; shortest round-trip digits, positional notation.
- BOOL: bool; "true"/"false" out, strconv-style literals in.
- STR: str subclasses; identity.
- DATETIME: datetime.datetime; ISO 8601 via isoformat()/fromisoformat().

Notes:
    - Empty cells decode to the zero value for numeric and boolean kinds without
      parsing. An empty DATETIME cell is malformed.
    - Zero-IO; stdlib only.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, get_origin

from .errors import ConversionError
from .typing import UInt

__all__ = [
    "CellKind",
    "ZERO_TIME",
    "kind_of",
    "concrete_type",
    "type_name",
    "format_cell",
    "parse_cell",
    "check_value",
    "coerce_value",
    "is_empty",
    "zero_value",
]


class CellKind(Enum):
    """
    Scalar kinds with a defined text cell conversion.

    Notes:
        Serialized value is lower_snake and used in error messages.
    """

    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    BOOL = "bool"
    STR = "str"
    DATETIME = "datetime"


# The zero instant: 0001-01-01T00:00:00 UTC.
ZERO_TIME: datetime = datetime(1, 1, 1, tzinfo=UTC)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _unwrap_newtype(tp: Any) -> tuple[Any, bool]:
    """Strip NewType layers; report whether UInt was among them."""
    unsigned = False
    while hasattr(tp, "__supertype__"):
        if tp is UInt:
            unsigned = True
        tp = tp.__supertype__
    return tp, unsigned


def kind_of(tp: Any) -> CellKind | None:
    """
    Classify a declared (Annotated-stripped) field type.

    Args:
        tp (Any): Declared type of a leaf field.

    Returns:
        CellKind | None: The scalar kind, or None when the type has no cell
        conversion (collections, plain dates, optional scalars, records, ...).

    Examples:
        >>> from tabrec.core.typing import UInt
        >>> kind_of(bool), kind_of(UInt), kind_of(list[int])
        (<CellKind.BOOL: 'bool'>, <CellKind.UINT: 'uint'>, None)
    """
    base, unsigned = _unwrap_newtype(tp)
    if get_origin(base) is not None or not isinstance(base, type):
        return None
    if issubclass(base, bool):
        return CellKind.BOOL
    if issubclass(base, int):
        return CellKind.UINT if unsigned else CellKind.INT
    if issubclass(base, float):
        return CellKind.FLOAT
    if issubclass(base, str):
        return CellKind.STR
    if issubclass(base, datetime):
        return CellKind.DATETIME
    return None


def concrete_type(tp: Any) -> Any:
    """Return the runtime class behind a declared type (NewTypes unwrapped)."""
    return _unwrap_newtype(tp)[0]


def type_name(tp: Any) -> str:
    """Printable name of a declared type for error messages."""
    name = getattr(tp, "__name__", None)
    if isinstance(name, str) and isinstance(tp, type):
        return name
    return repr(tp).replace("typing.", "")


# -----------------------------------------------------------------------------
# Value -> text
# -----------------------------------------------------------------------------


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    # repr() gives the shortest round-trip digits; Decimal renders them positionally.
    return format(Decimal(repr(value)).normalize(), "f")


def check_value(kind: CellKind, value: Any, *, column: str | None = None) -> Any:
    """
    Check a field value against its kind and return it normalized.

    Args:
        kind (CellKind): Kind of the leaf field.
        value (Any): Value read from a record.
        column (str | None): Column name for error context.

    Returns:
        Any: The value as a plain builtin of the kind (enums and subclasses are
        reduced to int/str; ints held by float fields become floats).

    Raises:
        ConversionError: If the value's type does not match the kind, or a UINT
            value is negative.
    """
    if kind in (CellKind.INT, CellKind.UINT):
        if isinstance(value, int) and not isinstance(value, bool):
            number = int(value)
            if kind is CellKind.UINT and number < 0:
                raise ConversionError("negative value for unsigned field", column=column, value=value)
            return number
    elif kind is CellKind.FLOAT:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif kind is CellKind.BOOL:
        if isinstance(value, bool):
            return value
    elif kind is CellKind.STR:
        if isinstance(value, str):
            return str.__str__(value)
    elif kind is CellKind.DATETIME:
        if isinstance(value, datetime):
            return value
    raise ConversionError(
        f"expected {kind.value} value, got {type(value).__name__}", column=column
    )


def format_cell(kind: CellKind, value: Any, *, column: str | None = None) -> str:
    """
    Render a field value as a text cell.

    Args:
        kind (CellKind): Kind of the leaf field.
        value (Any): Value read from a record.
        column (str | None): Column name for error context.

    Returns:
        str: The cell text.

    Raises:
        ConversionError: If the value does not match the kind (see check_value).

    Examples:
        >>> format_cell(CellKind.FLOAT, 1.0), format_cell(CellKind.FLOAT, 1e21)
        ('1', '1000000000000000000000')
        >>> format_cell(CellKind.BOOL, True)
        'true'
    """
    value = check_value(kind, value, column=column)
    if kind is CellKind.FLOAT:
        return _format_float(value)
    if kind is CellKind.BOOL:
        return "true" if value else "false"
    if kind is CellKind.DATETIME:
        return value.isoformat()
    if kind is CellKind.STR:
        return value
    try:
        return str(value)
    except ValueError as exc:
        raise ConversionError(
            "integer too large to render: exceeds the digit conversion limit", column=column
        ) from exc


# -----------------------------------------------------------------------------
# Text -> value
# -----------------------------------------------------------------------------


def _to_int(text: str, reason: str, column: str | None) -> int:
    # int() refuses digit strings longer than sys.get_int_max_str_digits().
    try:
        return int(text)
    except ValueError as exc:
        raise ConversionError(
            f"{reason}: {len(text)} digits exceed the conversion limit", column=column
        ) from exc


def _parse_int(text: str, column: str | None) -> int:
    if not _INT_RE.fullmatch(text):
        raise ConversionError("invalid integer", column=column, value=text)
    return _to_int(text, "invalid integer", column)


def _parse_uint(text: str, column: str | None) -> int:
    if not _UINT_RE.fullmatch(text):
        raise ConversionError("invalid unsigned integer", column=column, value=text)
    return _to_int(text, "invalid unsigned integer", column)


def _parse_float(text: str, column: str | None) -> float:
    # float() also accepts padding and digit separators; cells must not carry them.
    if text != text.strip() or "_" in text:
        raise ConversionError("invalid float", column=column, value=text)
    try:
        return float(text)
    except ValueError as exc:
        raise ConversionError("invalid float", column=column, value=text) from exc


def _parse_bool(text: str, column: str | None) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ConversionError("invalid boolean", column=column, value=text)


def _parse_datetime(text: str, column: str | None) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ConversionError("invalid datetime", column=column, value=text) from exc


_PARSERS: dict[CellKind, Callable[[str, str | None], Any]] = {
    CellKind.INT: _parse_int,
    CellKind.UINT: _parse_uint,
    CellKind.FLOAT: _parse_float,
    CellKind.BOOL: _parse_bool,
    CellKind.DATETIME: _parse_datetime,
}


def parse_cell(
    kind: CellKind,
    text: str,
    *,
    column: str | None = None,
    factory: Any = None,
) -> Any:
    """
    Convert a text cell into a value of the leaf field's kind.

    Args:
        kind (CellKind): Kind of the leaf field.
        text (str): Raw cell text.
        column (str | None): Column name for error context.
        factory (Any): Optional declared class (e.g. an IntEnum or str subclass)
            used to construct the final value.

    Returns:
        Any: The decoded value.

    Raises:
        ConversionError: If a non-empty cell cannot be parsed (or any DATETIME
            cell is malformed), or the factory rejects the parsed value.

    Notes:
        - Empty INT/UINT/FLOAT/BOOL cells decode to the zero value without parsing.
        - STR cells are returned as-is; empty and absent decode identically.
    """
    if kind is CellKind.STR:
        value: Any = text
    elif text == "" and kind is not CellKind.DATETIME:
        value = zero_value(kind)
    else:
        value = _PARSERS[kind](text, column)
    return _construct(factory, value, column)


def _construct(factory: Any, value: Any, column: str | None) -> Any:
    """Build the declared subclass (enums, str/int subclasses) from a base value."""
    if factory is None or not isinstance(factory, type) or type(value) is factory:
        return value
    if issubclass(factory, datetime):
        return value
    try:
        return factory(value)
    except (TypeError, ValueError) as exc:
        raise ConversionError(
            f"value not accepted by {factory.__name__}", column=column, value=value
        ) from exc


def coerce_value(
    kind: CellKind,
    value: Any,
    *,
    column: str | None = None,
    factory: Any = None,
) -> Any:
    """
    Coerce a value from a typed source (JSON, YAML, DataFrame) into the kind.

    Args:
        kind (CellKind): Kind of the leaf field.
        value (Any): Source value; None means absent.
        column (str | None): Column name for error context.
        factory (Any): Optional declared class used to construct the final value.

    Returns:
        Any: The value to assign to the record.

    Raises:
        ConversionError: If the value cannot be interpreted for the kind.

    Notes:
        Strings are parsed as cells for non-STR kinds, so ISO timestamps and
        quoted numbers are accepted.
    """
    if value is None:
        return _construct(factory, zero_value(kind), column)
    if isinstance(value, str) and kind is not CellKind.STR:
        return parse_cell(kind, value, column=column, factory=factory)
    if isinstance(value, Enum):
        value = value.value
    return _construct(factory, check_value(kind, value, column=column), column)


# -----------------------------------------------------------------------------
# Emptiness and zero values
# -----------------------------------------------------------------------------


def is_empty(kind: CellKind, value: Any) -> bool:
    """
    Report whether a value counts as empty for omitempty column suppression.

    Args:
        kind (CellKind): Kind of the leaf field.
        value (Any): Value read from a record.

    Returns:
        bool: True for numeric zero, False, "", and the zero instant.
    """
    if kind is CellKind.DATETIME:
        if not isinstance(value, datetime):
            return False
        if value.tzinfo is None:
            return value == datetime.min
        return value == ZERO_TIME
    if kind is CellKind.BOOL:
        return value is False
    if kind is CellKind.STR:
        return value == ""
    if isinstance(value, bool):
        return False
    return value == 0


def zero_value(kind: CellKind) -> Any:
    """Return the zero value of a kind (0, 0, 0.0, False, "", ZERO_TIME)."""
    return _ZERO_VALUES[kind]


_ZERO_VALUES: dict[CellKind, Any] = {
    CellKind.INT: 0,
    CellKind.UINT: 0,
    CellKind.FLOAT: 0.0,
    CellKind.BOOL: False,
    CellKind.STR: "",
    CellKind.DATETIME: ZERO_TIME,
}
