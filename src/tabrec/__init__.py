"""
tabrec — record <-> CSV codec with tag-driven column naming and omitempty columns.

Public API
- marshal / unmarshal — see tabrec.core.codec.
- csv_field, CsvTag, Embed — field annotations (tabrec.core.fields).
- UInt — unsigned integer field type.
- Errors — tabrec.core.errors.
- File persistence and DataFrames live in tabrec.io.
"""

from __future__ import annotations

from .core import (
    CodecError,
    ConversionError,
    CsvTag,
    DuplicateColumnError,
    Embed,
    EmptyDocumentError,
    NilInputError,
    NoDataRowsError,
    ParseError,
    ShapeError,
    UInt,
    UnsupportedKindError,
    csv_field,
    marshal,
    unmarshal,
)

__version__ = "0.1.0"

__all__ = [
    "marshal",
    "unmarshal",
    "csv_field",
    "CsvTag",
    "Embed",
    "UInt",
    "CodecError",
    "ShapeError",
    "NilInputError",
    "UnsupportedKindError",
    "ConversionError",
    "ParseError",
    "EmptyDocumentError",
    "NoDataRowsError",
    "DuplicateColumnError",
]
