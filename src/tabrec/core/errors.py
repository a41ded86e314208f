"""
Core exception types raised by field resolution and row transcoding.

Provides typed exceptions for codec failures:
- ShapeError / NilInputError for inputs and targets that are not records or
  sequences of records.
- UnsupportedKindError for leaf fields whose declared type has no cell conversion.
- ConversionError for values and cells that cannot be converted.
- ParseError, EmptyDocumentError, NoDataRowsError for tabular text that cannot be
  decoded.
- DuplicateColumnError for strict resolution of record types with repeated
  column names.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Every error derives from CodecError and from the closest builtin
      (TypeError for shape/kind problems, ValueError for content problems).
    - Every error aborts the whole marshal/unmarshal call; there are no partial
      results.

Examples:
    Catch a conversion failure.

    >>> from tabrec.core.errors import ConversionError
    >>> try:
    ...     raise ConversionError("invalid integer", column="ticket", value="x1", line=3)
    ... except ValueError as e:
    ...     msg = str(e)
    >>> msg
    "line 3: column 'ticket': invalid integer (got 'x1')"
"""

from __future__ import annotations

__all__ = [
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


class CodecError(Exception):
    """Base class for all tabrec codec failures."""


class ShapeError(CodecError, TypeError):
    """Input or target is not a record, a sequence of records, or a record type."""


class NilInputError(ShapeError):
    """A record was expected but None was found (top level or sequence element)."""


class UnsupportedKindError(CodecError, TypeError):
    """
    A leaf field's declared type has no scalar cell conversion.

    Attributes:
        type_name (str): Printable name of the offending declared type.
        column (str | None): Column the field maps to, when known.
    """

    def __init__(self, type_name: str, column: str | None = None) -> None:
        self.type_name = type_name
        self.column = column
        where = f" for column {column!r}" if column is not None else ""
        super().__init__(f"unsupported field type {type_name}{where}")


class ConversionError(CodecError, ValueError):
    """
    A value or text cell cannot be converted for its leaf field's kind.

    Attributes:
        reason (str): What went wrong.
        column (str | None): Column name, when known.
        value (object): Offending cell text or value, when known.
        line (int | None): 1-based line of the data row in the document, when decoding.
    """

    def __init__(
        self,
        reason: str,
        *,
        column: str | None = None,
        value: object = None,
        line: int | None = None,
    ) -> None:
        self.reason = reason
        self.column = column
        self.value = value
        self.line = line
        parts: list[str] = []
        if line is not None:
            parts.append(f"line {line}")
        if column is not None:
            parts.append(f"column {column!r}")
        message = reason if value is None else f"{reason} (got {value!r})"
        super().__init__(": ".join([*parts, message]))


class ParseError(CodecError, ValueError):
    """The tabular text could not be tokenized into rows."""


class EmptyDocumentError(CodecError, ValueError):
    """The tabular text holds no rows at all (not even a header)."""


class NoDataRowsError(CodecError, ValueError):
    """Only a header row is present but a single record was requested."""


class DuplicateColumnError(CodecError, ValueError):
    """Strict resolution found two leaf fields mapping to the same column name."""
