"""
CSV codec: marshal records to tabular text and unmarshal text back to records.

Overview
- marshal(): record or iterable of records -> header row + one row per record,
  rendered by the stdlib csv writer as UTF-8 bytes.
- unmarshal(): bytes/str -> rows via the stdlib csv reader -> a list of records
  (``list[R]`` target) or the first record (``R`` target).
- encode_rows()/decode_rows(): the same passes over an in-memory Tabular
  Document (list of rows of text cells), without rendering or parsing.

Decode tolerance
- Columns with no matching field are ignored.
- Rows shorter than the header leave the remaining fields unset; cells beyond
  the header's length are ignored.
- Blank lines are skipped.

Errors
- ShapeError / NilInputError for unsupported inputs and targets.
- UnsupportedKindError, ConversionError for field values and cells.
- ParseError, EmptyDocumentError, NoDataRowsError for documents.
- Rendering errors from the csv writer propagate unchanged.

Examples:
    >>> from dataclasses import dataclass
    >>> from tabrec.core.fields import csv_field
    >>> @dataclass
    ... class Simple:
    ...     name: str = csv_field("name")
    >>> marshal([Simple("Alice"), Simple("Bob")])
    b'name\\nAlice\\nBob\\n'
    >>> unmarshal(b"name\\nAlice\\nBob\\n", Simple)
    Simple(name='Alice')
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any

from .cells import format_cell, parse_cell
from .constants import DEFAULT_DELIMITER, LINE_TERMINATOR, TEXT_ENCODING
from .errors import ConversionError, EmptyDocumentError, ParseError
from .fields import column_lookup, resolve_fields
from .records import RecordBuilder, finish_target, parse_target, project_records, read_leaf
from .typing import Document

__all__ = [
    "marshal",
    "unmarshal",
    "encode_rows",
    "decode_rows",
    "render_rows",
    "parse_rows",
]

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Tabular text collaborator (stdlib csv)
# -----------------------------------------------------------------------------


def render_rows(document: Document, *, delimiter: str = DEFAULT_DELIMITER) -> bytes:
    """
    Render rows of text cells as CSV bytes, one line terminator after every row.

    Args:
        document (Document): Rows of cells; row 0 is the header.
        delimiter (str): Single-character field delimiter.

    Returns:
        bytes: UTF-8 encoded text.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator=LINE_TERMINATOR)
    writer.writerows(document)
    return buf.getvalue().encode(TEXT_ENCODING)


def _read_rows(data: bytes | str, delimiter: str) -> list[tuple[int, list[str]]]:
    """Tokenize CSV text into (first line number, row) pairs, skipping blank lines."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        try:
            text = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"tabular text is not valid {TEXT_ENCODING}: {exc}") from exc
    else:
        text = data
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    numbered: list[tuple[int, list[str]]] = []
    # line_num counts physical lines, so quoted cells spanning lines advance it by more than one.
    consumed = 0
    try:
        for row in reader:
            if row:
                numbered.append((consumed + 1, row))
            consumed = reader.line_num
    except csv.Error as exc:
        raise ParseError(f"malformed tabular text at line {reader.line_num}: {exc}") from exc
    return numbered


def parse_rows(data: bytes | str, *, delimiter: str = DEFAULT_DELIMITER) -> Document:
    """
    Tokenize CSV text into rows of text cells.

    Args:
        data (bytes | str): CSV text; bytes are decoded as UTF-8 (a leading BOM
            is dropped).
        delimiter (str): Single-character field delimiter.

    Returns:
        Document: Non-blank rows in order.

    Raises:
        ParseError: If the bytes are not UTF-8 or the quoting is malformed.
    """
    return [row for _, row in _read_rows(data, delimiter)]


# -----------------------------------------------------------------------------
# Encode
# -----------------------------------------------------------------------------


def encode_rows(
    value: Any,
    *,
    record_type: type | None = None,
    strict: bool = False,
) -> Document:
    """
    Encode records into a tabular document.

    Args:
        value (Any): A record, or a non-string iterable of records of one type.
        record_type (type | None): Record type; needed only for an empty iterable.
        strict (bool): Reject record types with duplicate column names.

    Returns:
        Document: Header row (column set names) followed by one row per record.

    Raises:
        NilInputError: If value or an element is None.
        ShapeError: If value is not a record or an iterable of records of one type.
        UnsupportedKindError: If a retained leaf's type has no cell conversion.
        ConversionError: If a value does not match its field's kind.
        DuplicateColumnError: If strict and a column name repeats.
    """
    _, columns, records = project_records(value, record_type=record_type, strict=strict)
    document: Document = [[leaf.column for leaf in columns]]
    for record in records:
        document.append(
            [
                format_cell(leaf.require_kind(), read_leaf(record, leaf), column=leaf.column)
                for leaf in columns
            ]
        )
    return document


def marshal(
    value: Any,
    *,
    record_type: type | None = None,
    delimiter: str = DEFAULT_DELIMITER,
    strict: bool = False,
) -> bytes:
    """
    Serialize a record or a sequence of records to CSV bytes.

    Args:
        value (Any): A record, or a non-string iterable of records of one type.
        record_type (type | None): Record type; needed only for an empty iterable.
        delimiter (str): Single-character field delimiter.
        strict (bool): Reject record types with duplicate column names.

    Returns:
        bytes: UTF-8 CSV text with a header line.

    Raises:
        See encode_rows(). Errors from the csv writer propagate unchanged.

    Notes:
        omitempty columns are dropped when every record holds an empty value.
    """
    document = encode_rows(value, record_type=record_type, strict=strict)
    logger.debug("marshal: %d data row(s), %d column(s)", len(document) - 1, len(document[0]))
    return render_rows(document, delimiter=delimiter)


# -----------------------------------------------------------------------------
# Decode
# -----------------------------------------------------------------------------


def _decode_numbered(
    numbered: list[tuple[int, list[str]]], target: Any, *, strict: bool
) -> Any:
    record_type, many = parse_target(target)
    if not numbered:
        raise EmptyDocumentError("no records found")
    (_, header), *rows = numbered
    lookup = column_lookup(resolve_fields(record_type, strict=strict))

    records: list[Any] = []
    for line, row in rows:
        builder = RecordBuilder(record_type)
        for name, cell in zip(header, row):
            leaf = lookup.get(name)
            if leaf is None:
                continue
            try:
                value = parse_cell(leaf.require_kind(), cell, column=name, factory=leaf.factory)
            except ConversionError as exc:
                raise ConversionError(exc.reason, column=name, value=cell, line=line) from exc
            builder.assign(leaf, value)
        records.append(builder.build())
    logger.debug("decoded %d %s record(s)", len(records), record_type.__name__)
    return finish_target(records, many)


def decode_rows(document: Document, target: Any, *, strict: bool = False) -> Any:
    """
    Decode a tabular document into records.

    Args:
        document (Document): Rows of text cells; row 0 is the header.
        target (Any): Record type (first record) or ``list[R]`` / ``Sequence[R]``
            (all records).
        strict (bool): Reject record types with duplicate column names.

    Returns:
        Any: A list of records, or a single record.

    Raises:
        ShapeError: If target is not a record type or a list of one.
        EmptyDocumentError: If document has no rows.
        NoDataRowsError: If a single record is requested and only a header is present.
        UnsupportedKindError: If a present column maps to an unsupported field type.
        ConversionError: If a cell cannot be parsed (``line`` is the 1-based
            index of the row in document).
    """
    return _decode_numbered(list(enumerate(document, start=1)), target, strict=strict)


def unmarshal(
    data: bytes | str,
    target: Any,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    strict: bool = False,
) -> Any:
    """
    Deserialize CSV text into records.

    Args:
        data (bytes | str): CSV text with a header line.
        target (Any): Record type (first record) or ``list[R]`` / ``Sequence[R]``
            (all records).
        delimiter (str): Single-character field delimiter.
        strict (bool): Reject record types with duplicate column names.

    Returns:
        Any: A list of records, or a single record.

    Raises:
        ShapeError: If target is not a record type or a list of one (checked
            before parsing).
        ParseError: If the text cannot be tokenized.
        ConversionError: If a cell cannot be parsed (``line`` is the 1-based
            text line where the row starts, counting blank lines).
        See decode_rows() for the remaining errors.
    """
    parse_target(target)
    return _decode_numbered(_read_rows(data, delimiter), target, strict=strict)
