"""
Lightweight typing aliases used across the codec and the IO layer.

Provides the UInt NewType that selects the unsigned integer cell kind, plus
aliases for the tabular document shapes. This module contains no runtime logic
and is zero-IO.

Examples:
    Declare an unsigned column.

    >>> from dataclasses import dataclass
    >>> from tabrec.core.typing import UInt
    >>> @dataclass
    ... class Counter:
    ...     hits: UInt
    >>> Counter(hits=UInt(3)).hits
    3
"""

from __future__ import annotations

from typing import Any, NewType

__all__ = [
    "UInt",
    "Row",
    "Document",
    "RowMapping",
]

# Non-negative integer; decoded without a sign and rejected on encode when negative.
UInt = NewType("UInt", int)

# One tabular row of text cells, and a whole document (row 0 is the header).
Row = list[str]
Document = list[Row]

# Column name -> typed value, used by the JSON/YAML/DataFrame formats.
RowMapping = dict[str, Any]
