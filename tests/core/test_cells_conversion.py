from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum, IntEnum

import pytest

from tabrec.core.cells import (
    ZERO_TIME,
    CellKind,
    coerce_value,
    format_cell,
    is_empty,
    kind_of,
    parse_cell,
    zero_value,
)
from tabrec.core.errors import ConversionError
from tabrec.core.typing import UInt


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


class Status(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def test_kind_of_scalars_and_unsupported() -> None:
    assert kind_of(bool) is CellKind.BOOL
    assert kind_of(int) is CellKind.INT
    assert kind_of(UInt) is CellKind.UINT
    assert kind_of(float) is CellKind.FLOAT
    assert kind_of(str) is CellKind.STR
    assert kind_of(datetime) is CellKind.DATETIME
    assert kind_of(Priority) is CellKind.INT
    assert kind_of(Status) is CellKind.STR
    assert kind_of(list[int]) is None
    assert kind_of(int | None) is None
    assert kind_of(bytes) is None


@pytest.mark.parametrize(
    "value, text",
    [
        (1.0, "1"),
        (100.0, "100"),
        (0.1, "0.1"),
        (-2.5, "-2.5"),
        (1e21, "1000000000000000000000"),
        (1e-7, "0.0000001"),
        (3.14159, "3.14159"),
    ],
)
def test_float_cells_are_shortest_positional(value: float, text: str) -> None:
    assert format_cell(CellKind.FLOAT, value) == text
    assert parse_cell(CellKind.FLOAT, text) == value


def test_float_special_values() -> None:
    assert format_cell(CellKind.FLOAT, math.nan) == "NaN"
    assert format_cell(CellKind.FLOAT, math.inf) == "+Inf"
    assert format_cell(CellKind.FLOAT, -math.inf) == "-Inf"
    assert math.isnan(parse_cell(CellKind.FLOAT, "NaN"))
    assert parse_cell(CellKind.FLOAT, "+Inf") == math.inf


def test_int_held_by_float_field_is_accepted() -> None:
    assert format_cell(CellKind.FLOAT, 2) == "2"


def test_bool_cells() -> None:
    assert format_cell(CellKind.BOOL, True) == "true"
    assert format_cell(CellKind.BOOL, False) == "false"
    for text in ("1", "t", "T", "TRUE", "true", "True"):
        assert parse_cell(CellKind.BOOL, text) is True
    for text in ("0", "f", "F", "FALSE", "false", "False"):
        assert parse_cell(CellKind.BOOL, text) is False
    with pytest.raises(ConversionError):
        parse_cell(CellKind.BOOL, "yes")


def test_int_and_uint_cells() -> None:
    assert parse_cell(CellKind.INT, "42") == 42
    assert parse_cell(CellKind.INT, "-7") == -7
    assert parse_cell(CellKind.INT, "+3") == 3
    assert parse_cell(CellKind.UINT, "18446744073709551615") == 2**64 - 1
    for bad in ("4.5", " 1", "1_000", "x1"):
        with pytest.raises(ConversionError):
            parse_cell(CellKind.INT, bad)
    with pytest.raises(ConversionError):
        parse_cell(CellKind.UINT, "-1")
    with pytest.raises(ConversionError):
        format_cell(CellKind.UINT, -1)


def test_empty_cells_default_to_zero_values() -> None:
    assert parse_cell(CellKind.INT, "") == 0
    assert parse_cell(CellKind.UINT, "") == 0
    assert parse_cell(CellKind.FLOAT, "") == 0.0
    assert parse_cell(CellKind.BOOL, "") is False
    assert parse_cell(CellKind.STR, "") == ""


def test_empty_datetime_cell_is_malformed() -> None:
    with pytest.raises(ConversionError, match="invalid datetime"):
        parse_cell(CellKind.DATETIME, "", column="at")


def test_datetime_cells_round_trip_with_offset() -> None:
    tz = timezone(timedelta(hours=2))
    value = datetime(2024, 5, 1, 9, 30, 15, tzinfo=tz)
    text = format_cell(CellKind.DATETIME, value)
    assert text == "2024-05-01T09:30:15+02:00"
    assert parse_cell(CellKind.DATETIME, text) == value


def test_type_mismatch_raises_conversion_error() -> None:
    with pytest.raises(ConversionError, match="expected int value, got str"):
        format_cell(CellKind.INT, "1", column="n")
    with pytest.raises(ConversionError):
        format_cell(CellKind.INT, True)
    with pytest.raises(ConversionError):
        format_cell(CellKind.BOOL, 1)


def test_conversion_error_carries_context() -> None:
    with pytest.raises(ConversionError) as ei:
        parse_cell(CellKind.INT, "abc", column="ticket")
    assert ei.value.column == "ticket"
    assert ei.value.value == "abc"
    assert str(ei.value) == "column 'ticket': invalid integer (got 'abc')"


def test_enum_factories() -> None:
    assert format_cell(CellKind.INT, Priority.HIGH) == "2"
    assert parse_cell(CellKind.INT, "2", factory=Priority) is Priority.HIGH
    assert format_cell(CellKind.STR, Status.OPEN) == "open"
    assert parse_cell(CellKind.STR, "closed", factory=Status) is Status.CLOSED
    with pytest.raises(ConversionError):
        parse_cell(CellKind.INT, "9", factory=Priority)


def test_coerce_value_from_typed_sources() -> None:
    assert coerce_value(CellKind.INT, None) == 0
    assert coerce_value(CellKind.FLOAT, 3) == 3.0
    assert coerce_value(CellKind.INT, "12") == 12
    assert coerce_value(CellKind.DATETIME, "2024-01-01T00:00:00+00:00") == datetime(
        2024, 1, 1, tzinfo=UTC
    )
    assert coerce_value(CellKind.INT, Priority.LOW, factory=Priority) is Priority.LOW
    with pytest.raises(ConversionError):
        coerce_value(CellKind.STR, 5)


def test_is_empty_and_zero_values() -> None:
    assert is_empty(CellKind.INT, 0)
    assert is_empty(CellKind.FLOAT, 0.0)
    assert is_empty(CellKind.BOOL, False)
    assert is_empty(CellKind.STR, "")
    assert is_empty(CellKind.DATETIME, ZERO_TIME)
    assert is_empty(CellKind.DATETIME, datetime.min)
    assert not is_empty(CellKind.INT, 1)
    assert not is_empty(CellKind.BOOL, True)
    assert not is_empty(CellKind.STR, " ")
    assert not is_empty(CellKind.DATETIME, datetime(2024, 1, 1))
    assert zero_value(CellKind.DATETIME) == ZERO_TIME
    assert zero_value(CellKind.UINT) == 0


def test_integers_beyond_the_digit_limit_raise_conversion_error() -> None:
    digits = "9" * 5000
    with pytest.raises(ConversionError, match="invalid integer") as ei:
        parse_cell(CellKind.INT, digits, column="n")
    assert ei.value.column == "n"
    with pytest.raises(ConversionError, match="invalid unsigned integer"):
        parse_cell(CellKind.UINT, digits)
    with pytest.raises(ConversionError, match="too large") as ei:
        format_cell(CellKind.INT, 10**5000, column="n")
    assert ei.value.column == "n"
