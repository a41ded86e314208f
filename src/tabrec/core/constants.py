"""
tabrec core defaults.

Defines the annotation keys, tag grammar tokens and tabular-text defaults
consumed by the resolver, the codec and the IO layer. This module is zero-IO
and uses only the Python standard library.

Notes:
    - A tag is "name[,option...]"; the first token is the column name and the
      remaining tokens are options. Only OMITEMPTY is recognized.
    - Rows are terminated by LINE_TERMINATOR, including the last one.
"""

from __future__ import annotations

__all__ = [
    "TAG_KEY",
    "EMBED_KEY",
    "TAG_SEPARATOR",
    "OMITEMPTY",
    "DEFAULT_DELIMITER",
    "LINE_TERMINATOR",
    "TEXT_ENCODING",
]

# dataclasses.field(metadata=...) keys read by the resolver.
TAG_KEY: str = "csv"
EMBED_KEY: str = "csv_embed"

TAG_SEPARATOR: str = ","
OMITEMPTY: str = "omitempty"

DEFAULT_DELIMITER: str = ","
LINE_TERMINATOR: str = "\n"

# Encoding of the bytes produced by marshal and expected by unmarshal.
TEXT_ENCODING: str = "utf-8"
