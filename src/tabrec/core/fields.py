"""
Field resolution: record types to ordered leaf field descriptors.

A record type is a dataclass or a pydantic (v2) BaseModel subclass. Each
declared field either embeds another record (its leaves are spliced in at that
position, depth-first) or is a leaf mapped to one tabular column.

Annotations
- Tag string "name[,option...]": first token is the column name (the field's own
  name when absent or empty); "omitempty" marks the column as suppressible when
  empty across a whole batch. Tokens are whitespace-trimmed.
- Dataclasses: ``csv_field("name", omitempty=True)`` or
  ``field(metadata={"csv": "name,omitempty"})``.
- Dataclasses and pydantic models: ``Annotated[str, CsvTag("name,omitempty")]``.
- Embedding: ``csv_field(embed=True)`` / ``Annotated[Sub, Embed]``. A field typed
  ``Sub | None`` embeds through an optional reference, created on demand when
  decoding.

Notes:
    - Resolution is pure and memoized per type; kind support is not checked here.
      Unsupported leaf types surface as UnsupportedKindError at conversion time.
    - Duplicate column names are kept; decode lookups let the last leaf win.
      ``strict=True`` rejects them with DuplicateColumnError instead.

Examples:
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Base:
    ...     id: int = csv_field("id")
    ...     name: str = csv_field("name")
    >>> @dataclass
    ... class Extended:
    ...     base: Base = csv_field(embed=True)
    ...     extra: str = csv_field("extra,omitempty")
    >>> [(leaf.column, leaf.omitempty) for leaf in resolve_fields(Extended)]
    [('id', False), ('name', False), ('extra', True)]
"""

from __future__ import annotations

import dataclasses
import sys
import types
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from functools import cache
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel

from .cells import CellKind, concrete_type, kind_of, type_name
from .constants import EMBED_KEY, OMITEMPTY, TAG_KEY, TAG_SEPARATOR
from .errors import DuplicateColumnError, ShapeError, UnsupportedKindError

__all__ = [
    "CsvTag",
    "Embed",
    "csv_field",
    "parse_tag",
    "DeclaredField",
    "RecordDescriptor",
    "PathStep",
    "LeafField",
    "is_record_type",
    "describe_record",
    "resolve_fields",
    "column_lookup",
]


# -----------------------------------------------------------------------------
# Annotation markers
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class CsvTag:
    """
    Annotated marker carrying a tag string, e.g. ``Annotated[str, CsvTag("name,omitempty")]``.

    Attributes:
        text (str): Comma-separated column name and options.
    """

    text: str


class Embed:
    """Annotated marker flagging an embedded sub-record; usable as ``Embed`` or ``Embed()``."""


def csv_field(
    name: str | None = None,
    *,
    omitempty: bool = False,
    embed: bool = False,
    **kwargs: Any,
) -> Any:
    """
    Build a dataclasses.field carrying tabrec annotations.

    Args:
        name (str | None): Column name, or a full tag string such as "extra,omitempty".
        omitempty (bool): Append the omitempty option.
        embed (bool): Mark the field as an embedded sub-record.
        **kwargs: Passed through to dataclasses.field (default, default_factory, ...).

    Returns:
        Any: A dataclasses.Field suitable as a dataclass attribute default.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None or omitempty:
        tokens = [name or ""]
        if omitempty:
            tokens.append(OMITEMPTY)
        metadata[TAG_KEY] = TAG_SEPARATOR.join(tokens)
    if embed:
        metadata[EMBED_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_tag(tag: str | None, default_name: str) -> tuple[str, bool]:
    """
    Split a tag into its column name and omitempty flag.

    Args:
        tag (str | None): Tag string, or None when the field has no annotation.
        default_name (str): Field name used when the tag supplies no name.

    Returns:
        tuple[str, bool]: (column name, omitempty).

    Examples:
        >>> parse_tag(" extra , omitempty ", "Extra")
        ('extra', True)
        >>> parse_tag(",omitempty", "note")
        ('note', True)
        >>> parse_tag(None, "name")
        ('name', False)
    """
    if not tag:
        return default_name, False
    name, *options = (token.strip() for token in tag.split(TAG_SEPARATOR))
    return name or default_name, OMITEMPTY in options


# -----------------------------------------------------------------------------
# Descriptors
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class DeclaredField:
    """
    One declared field of a record type.

    Attributes:
        name (str): Attribute name.
        hint (Any): Declared type with Annotated metadata stripped.
        tag (str | None): Tag string, if annotated.
        embedded (bool): True when the field embeds a record type.
        optional (bool): True when the embedding is through ``Sub | None``.
        sub_type (type | None): Embedded record type.
        kind (CellKind | None): Scalar kind for leaf fields; None if unsupported.
        has_default (bool): The record declares a default for the field.
        init (bool): The field is a constructor parameter.
    """

    name: str
    hint: Any
    tag: str | None
    embedded: bool
    optional: bool
    sub_type: type | None
    kind: CellKind | None
    has_default: bool
    init: bool = True


@dataclass(slots=True, frozen=True)
class RecordDescriptor:
    """Record type plus its declared fields in declaration order."""

    record_type: type
    fields: tuple[DeclaredField, ...]


@dataclass(slots=True, frozen=True)
class PathStep:
    """
    Descent into an embedded sub-record.

    Attributes:
        attr (str): Attribute holding the sub-record.
        record_type (type): Sub-record type.
        optional (bool): The attribute may hold None (allocated on demand on decode).
    """

    attr: str
    record_type: type
    optional: bool


@dataclass(slots=True, frozen=True)
class LeafField:
    """
    A terminal (non-embedded) field flattened out of a record type.

    Attributes:
        column (str): Column name.
        omitempty (bool): Column may be dropped when empty in every record.
        attr (str): Terminal attribute name.
        path (tuple[PathStep, ...]): Embedded descents from the record root.
        kind (CellKind | None): Scalar kind; None when the declared type is unsupported.
        hint (Any): Declared type (for construction and error messages).
    """

    column: str
    omitempty: bool
    attr: str
    path: tuple[PathStep, ...]
    kind: CellKind | None
    hint: Any

    @property
    def factory(self) -> Any:
        """Runtime class used to construct decoded values."""
        return concrete_type(self.hint)

    def require_kind(self) -> CellKind:
        """
        Return the leaf's kind.

        Raises:
            UnsupportedKindError: If the declared type has no cell conversion.
        """
        if self.kind is None:
            raise UnsupportedKindError(type_name(self.hint), self.column)
        return self.kind


# -----------------------------------------------------------------------------
# Introspection
# -----------------------------------------------------------------------------


def is_record_type(tp: Any) -> bool:
    """True for dataclass classes and pydantic BaseModel subclasses."""
    if get_origin(tp) is not None or not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def _split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        base, *extras = get_args(hint)
        return base, tuple(extras)
    return hint, ()


def _strip_optional(hint: Any) -> tuple[Any, bool]:
    """Strip one level of ``X | None``; report whether it was present."""
    if get_origin(hint) in (Union, types.UnionType):
        args = get_args(hint)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return rest[0], True
    return hint, False


def _markers(extras: Iterable[Any]) -> tuple[str | None, bool]:
    tag: str | None = None
    embed = False
    for extra in extras:
        if isinstance(extra, CsvTag):
            tag = extra.text
        elif extra is Embed or isinstance(extra, Embed):
            embed = True
    return tag, embed


def _declare(
    name: str,
    hint: Any,
    extras: tuple[Any, ...],
    *,
    tag: str | None,
    embed: bool,
    has_default: bool,
    init: bool,
) -> DeclaredField:
    marker_tag, marker_embed = _markers(extras)
    tag = marker_tag if marker_tag is not None else tag
    embed = embed or marker_embed
    if embed:
        inner, optional = _strip_optional(hint)
        if is_record_type(inner):
            return DeclaredField(
                name=name,
                hint=hint,
                tag=tag,
                embedded=True,
                optional=optional,
                sub_type=inner,
                kind=None,
                has_default=has_default,
                init=init,
            )
    return DeclaredField(
        name=name,
        hint=hint,
        tag=tag,
        embedded=False,
        optional=False,
        sub_type=None,
        kind=kind_of(hint),
        has_default=has_default,
        init=init,
    )


def _enclosing_names(record_type: type) -> dict[str, Any]:
    """Names visible from the calling frames, innermost first, plus the record type itself."""
    namespace: dict[str, Any] = {}
    frame = sys._getframe(1)
    while frame is not None:
        for key, value in frame.f_locals.items():
            namespace.setdefault(key, value)
        frame = frame.f_back
    namespace.setdefault(record_type.__name__, record_type)
    return namespace


def _type_hints(record_type: type) -> dict[str, Any]:
    """
    Resolve a dataclass's annotations, including string annotations naming local types.

    Raises:
        ShapeError: If a field annotation names a type that cannot be found.
    """
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except NameError:
        pass
    # Records declared inside a function refer to that function's locals.
    try:
        return typing.get_type_hints(
            record_type, localns=_enclosing_names(record_type), include_extras=True
        )
    except NameError as exc:
        missing = getattr(exc, "name", None)
        culprit = next(
            (
                f.name
                for f in dataclasses.fields(record_type)
                if isinstance(f.type, str) and missing and missing in f.type
            ),
            None,
        )
        where = f"{record_type.__name__}.{culprit}" if culprit else record_type.__name__
        raise ShapeError(f"cannot resolve the annotation of {where}: {exc}") from exc


def _dataclass_fields(record_type: type) -> tuple[DeclaredField, ...]:
    hints = _type_hints(record_type)
    out: list[DeclaredField] = []
    for f in dataclasses.fields(record_type):
        hint, extras = _split_annotated(hints.get(f.name, f.type))
        out.append(
            _declare(
                f.name,
                hint,
                extras,
                tag=f.metadata.get(TAG_KEY),
                embed=bool(f.metadata.get(EMBED_KEY, False)),
                has_default=(
                    f.default is not dataclasses.MISSING
                    or f.default_factory is not dataclasses.MISSING
                ),
                init=f.init,
            )
        )
    return tuple(out)


def _model_fields(record_type: type[BaseModel]) -> tuple[DeclaredField, ...]:
    out: list[DeclaredField] = []
    for name, info in record_type.model_fields.items():
        # pydantic keeps unrecognized Annotated metadata (our markers) on FieldInfo.metadata.
        hint, extras = _split_annotated(info.annotation)
        out.append(
            _declare(
                name,
                hint,
                (*extras, *info.metadata),
                tag=None,
                embed=False,
                has_default=not info.is_required(),
                init=True,
            )
        )
    return tuple(out)


@cache
def describe_record(record_type: type) -> RecordDescriptor:
    """
    Build the descriptor of a dataclass or pydantic model class.

    Args:
        record_type (type): Record class.

    Returns:
        RecordDescriptor: Declared fields in declaration order (inherited first).

    Raises:
        ShapeError: If record_type is not a record type.
    """
    if not is_record_type(record_type):
        raise ShapeError(f"{type_name(record_type)} is not a dataclass or pydantic model")
    if dataclasses.is_dataclass(record_type):
        declared = _dataclass_fields(record_type)
    else:
        declared = _model_fields(record_type)
    return RecordDescriptor(record_type=record_type, fields=declared)


def _flatten(
    desc: RecordDescriptor,
    prefix: tuple[PathStep, ...],
    ancestors: tuple[type, ...],
    out: list[LeafField],
) -> None:
    for f in desc.fields:
        sub_type = f.sub_type
        if f.embedded and sub_type is not None:
            if sub_type in ancestors:
                raise ShapeError(
                    f"embedding cycle: {desc.record_type.__name__}.{f.name} "
                    f"embeds {sub_type.__name__} again"
                )
            step = PathStep(attr=f.name, record_type=sub_type, optional=f.optional)
            _flatten(describe_record(sub_type), (*prefix, step), (*ancestors, sub_type), out)
            continue
        column, omitempty = parse_tag(f.tag, f.name)
        out.append(
            LeafField(
                column=column,
                omitempty=omitempty,
                attr=f.name,
                path=prefix,
                kind=f.kind,
                hint=f.hint,
            )
        )


@cache
def resolve_fields(record_type: type, *, strict: bool = False) -> tuple[LeafField, ...]:
    """
    Flatten a record type into its ordered leaf fields.

    Args:
        record_type (type): Dataclass or pydantic model class.
        strict (bool): Reject duplicate column names.

    Returns:
        tuple[LeafField, ...]: Leaves in declaration order with embedded
        sub-records spliced in depth-first at their embedding position.

    Raises:
        ShapeError: If record_type is not a record type or embeds itself.
        DuplicateColumnError: If strict and two leaves share a column name.
    """
    out: list[LeafField] = []
    _flatten(describe_record(record_type), (), (record_type,), out)
    if strict:
        seen: set[str] = set()
        for leaf in out:
            if leaf.column in seen:
                raise DuplicateColumnError(
                    f"column {leaf.column!r} is declared more than once in {record_type.__name__}"
                )
            seen.add(leaf.column)
    return tuple(out)


def column_lookup(leaves: Iterable[LeafField]) -> dict[str, LeafField]:
    """Map column names to leaves for decoding; a later leaf replaces an earlier one."""
    return {leaf.column: leaf for leaf in leaves}
