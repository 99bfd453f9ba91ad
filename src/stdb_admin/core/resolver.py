"""
Type descriptor resolver: algebraic types to canonical type tags.

Overview
- resolve_type(): walk one descriptor (following typespace references) and return
  a canonical tag such as "u32", "struct", "enum", or "Timestamp".
- column_name(): decode an option-encoded element name, synthesizing col_<index>.
- columns_from_product() / parse_schema_to_columns(): project a product type (a
  table row type or a query result schema) onto ColumnDescriptor lists.

Resolution rules
- Primitive -> lowercase kind name. The primitive set is closed; a kind outside it
  raises TypeResolutionError.
- Ref(i) -> resolve typespace[i]. Out-of-bounds raises TypeResolutionError.
- Product -> "Timestamp"/"Identity"/"Duration" for a single element named with a
  built-in sentinel, else "struct".
- Sum -> "enum" (variant detail is not surfaced).
- Anything else -> "complex" for Array/Map shapes, "unknown" otherwise.

Notes
- Zero-IO; pure and synchronous.
- The typespace must not contain reference cycles (caller-guaranteed).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .algebraic import (
    AlgebraicType,
    OpaqueType,
    PrimitiveKind,
    PrimitiveType,
    ProductType,
    RefType,
    SumType,
    algebraic_type_from_json,
    is_option_type,
    option_name,
)
from .constants import BUILTIN_COMPOSITES
from .errors import TypeResolutionError
from .tables import ColumnDescriptor

__all__ = [
    "resolve_type",
    "column_name",
    "columns_from_product",
    "parse_schema_to_columns",
    "sql_type_for",
]

# Opaque wire shapes that are recognized but not surfaced in detail.
_COMPLEX_SHAPES = frozenset({"Array", "Map"})

_SQL_TYPES: dict[str, str] = {
    "i8": "SMALLINT",
    "i16": "SMALLINT",
    "i32": "INTEGER",
    "i64": "BIGINT",
    "i128": "NUMERIC",
    "i256": "NUMERIC",
    "u8": "SMALLINT",
    "u16": "INTEGER",
    "u32": "BIGINT",
    "u64": "NUMERIC",
    "u128": "NUMERIC",
    "u256": "NUMERIC",
    "f32": "REAL",
    "f64": "DOUBLE PRECISION",
    "bool": "BOOLEAN",
    "string": "TEXT",
    "identity": "TEXT",
    "timestamp": "TIMESTAMP",
    "duration": "INTERVAL",
}


def _coerce(descriptor: Any) -> AlgebraicType:
    if isinstance(descriptor, (PrimitiveType, ProductType, SumType, RefType, OpaqueType)):
        return descriptor
    return algebraic_type_from_json(descriptor)


def resolve_type(descriptor: AlgebraicType | dict[str, Any] | None, typespace: Sequence[Any] = ()) -> str:
    """
    Resolve an algebraic type descriptor to its canonical type tag.

    Args:
        descriptor (AlgebraicType | dict | None): Parsed descriptor or raw SATS-JSON.
        typespace (Sequence): Types that Ref indices point into (parsed or raw).

    Returns:
        str: Canonical tag.

    Raises:
        TypeResolutionError: Ref index out of bounds, or unrecognized primitive kind.

    Examples:
        >>> resolve_type({"I64": []})
        'i64'
        >>> resolve_type({"Ref": 0}, [{"Sum": {"variants": []}}])
        'enum'
    """
    t = _coerce(descriptor)

    if isinstance(t, PrimitiveType):
        if not isinstance(t.kind, PrimitiveKind):
            raise TypeResolutionError(f"unrecognized primitive kind {t.kind!r}")
        return t.kind.tag

    if isinstance(t, RefType):
        if t.index < 0 or t.index >= len(typespace):
            raise TypeResolutionError(
                f"type ref {t.index} out of bounds for typespace of {len(typespace)} types"
            )
        return resolve_type(typespace[t.index], typespace)

    if isinstance(t, ProductType):
        if len(t.elements) == 1:
            builtin = BUILTIN_COMPOSITES.get(t.elements[0].name or "")
            if builtin is not None:
                return builtin
        return "struct"

    if isinstance(t, SumType):
        return "enum"

    if t.shape in _COMPLEX_SHAPES:
        return "complex"
    return "unknown"


def _is_nullable(descriptor: Any, typespace: Sequence[Any]) -> bool:
    # Follows refs one hop at a time; bad refs are reported by resolve_type first.
    t = _coerce(descriptor)
    while isinstance(t, RefType) and 0 <= t.index < len(typespace):
        t = _coerce(typespace[t.index])
    return is_option_type(t)


def column_name(name_obj: Any, index: int) -> str:
    """
    Return the engaged element name, or ``col_<index>`` when disengaged.

    Examples:
        >>> column_name({"some": "id"}, 0), column_name({"none": []}, 2)
        ('id', 'col_2')
    """
    return option_name(name_obj) or f"col_{index}"


def sql_type_for(canonical_type: str) -> str:
    """Map a canonical tag to a display SQL type; unmapped tags are upper-cased."""
    return _SQL_TYPES.get(canonical_type.lower(), canonical_type.upper())


def _column(name: str, descriptor: Any, typespace: Sequence[Any], is_primary: bool) -> ColumnDescriptor:
    tag = resolve_type(descriptor, typespace)
    return ColumnDescriptor(
        name=name,
        canonical_type=tag,
        sql_type=sql_type_for(tag),
        nullable=_is_nullable(descriptor, typespace),
        is_primary=is_primary,
    )


def columns_from_product(
    product: ProductType,
    typespace: Sequence[Any] = (),
    primary_key: Iterable[int] = (),
) -> list[ColumnDescriptor]:
    """
    Project a parsed product type onto column descriptors, preserving element order.

    Args:
        product (ProductType): Row type of a table.
        typespace (Sequence): Types that Ref indices point into.
        primary_key (Iterable[int]): Positional indices of primary key columns.

    Returns:
        list[ColumnDescriptor]: One descriptor per element.
    """
    pk = set(primary_key)
    return [
        _column(element.name or f"col_{i}", element.algebraic_type, typespace, i in pk)
        for i, element in enumerate(product.elements)
    ]


def _unique_names(names: Sequence[str]) -> list[str]:
    """Suffix repeated names (``a``, ``a_1``, ``a_2``) so row keys never collide."""
    taken = set(names)
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            out.append(name)
            continue
        n = 1
        while f"{name}_{n}" in taken:
            n += 1
        unique = f"{name}_{n}"
        taken.add(unique)
        out.append(unique)
    return out


def parse_schema_to_columns(schema: Any, typespace: Sequence[Any] = ()) -> list[ColumnDescriptor]:
    """
    Convert a raw product-type schema fragment (``{"elements": [...]}``) to columns.

    Used for query results, whose schema arrives as an unwrapped product payload.
    A missing or element-less schema yields an empty list. Repeated names (as in
    ``SELECT a, a FROM t``) are suffixed ``a_1``, ``a_2`` so every value keeps its own key.

    Examples:
        >>> cols = parse_schema_to_columns({"elements": [
        ...     {"name": {"some": "id"}, "algebraic_type": {"U32": []}},
        ...     {"name": {"none": []}, "algebraic_type": {"String": []}},
        ... ]})
        >>> [(c.name, c.canonical_type) for c in cols]
        [('id', 'u32'), ('col_1', 'string')]
    """
    if not isinstance(schema, dict):
        return []
    elements = schema.get("elements")
    if not isinstance(elements, list):
        return []
    members = [el if isinstance(el, dict) else {} for el in elements]
    names = _unique_names([column_name(el.get("name"), i) for i, el in enumerate(members)])
    return [
        _column(name, el.get("algebraic_type"), typespace, False)
        for name, el in zip(names, members, strict=True)
    ]
