"""
Core package aggregator for tabrec (field resolution, cell conversion, CSV codec).

## Contracts (single source of truth)
- Fields — record types to ordered leaf field descriptors; tag and embedding annotations.
- Cells — scalar kinds, text <-> value conversion, emptiness and zero values.
- Records — encode input normalization, decode targets, column set, record building.
- Codec — marshal/unmarshal over CSV text.
- Errors — one exception type per failure kind, rooted at CodecError.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Record types are dataclasses or pydantic v2 models.

## Downstream usage
- tabrec.io — file persistence, the format registry and the polars DataFrame bridge,
  built on `records.to_mappings` / `records.from_mappings` and the codec.

## Examples
```python
from dataclasses import dataclass
from tabrec.core import csv_field, marshal, unmarshal

@dataclass
class Ticket:
    name: str = csv_field("name")
    ticket: int = csv_field("ticket")
    note: str = csv_field("note", omitempty=True, default="")

marshal([Ticket("Alice", 1), Ticket("Bob", 2)])  # b'name,ticket\nAlice,1\nBob,2\n'
unmarshal(b"name,ticket\nAlice,1\n", list[Ticket])  # [Ticket(name='Alice', ticket=1, note='')]
```
"""

from __future__ import annotations

from .cells import CellKind
from .codec import decode_rows, encode_rows, marshal, unmarshal
from .errors import (
    CodecError,
    ConversionError,
    DuplicateColumnError,
    EmptyDocumentError,
    NilInputError,
    NoDataRowsError,
    ParseError,
    ShapeError,
    UnsupportedKindError,
)
from .fields import CsvTag, Embed, LeafField, csv_field, resolve_fields
from .typing import UInt

__all__ = [
    "marshal",
    "unmarshal",
    "encode_rows",
    "decode_rows",
    "csv_field",
    "CsvTag",
    "Embed",
    "LeafField",
    "resolve_fields",
    "CellKind",
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
