"""
Algebraic type descriptors and their SATS-JSON parser.

The remote database describes every value shape with an algebraic type: a
primitive, a product (struct/tuple), a sum (tagged union), or a reference into a
shared typespace. On the wire these arrive as single-key JSON objects:

    {"U32": []}
    {"Product": {"elements": [{"name": {"some": "id"}, "algebraic_type": {...}}]}}
    {"Sum": {"variants": [{"name": {"some": "some"}, "algebraic_type": {...}}]}}
    {"Ref": 3}

Names use the option encoding: {"some": "<name>"} when engaged, {"none": []}
when disengaged.

Responsibilities
- Define the closed PrimitiveKind set and frozen descriptor dataclasses.
- Parse raw JSON descriptors into those dataclasses (algebraic_type_from_json).
- Decode engaged/disengaged option names (option_name).

Notes
- Zero-IO (stdlib only).
- Shapes outside the four variants (Array, Map, malformed payloads) parse to
  OpaqueType rather than raising; only an out-of-set primitive kind is fatal.

Examples
>>> from stdb_admin.core.algebraic import algebraic_type_from_json, PrimitiveType, PrimitiveKind
>>> algebraic_type_from_json({"U32": []}) == PrimitiveType(PrimitiveKind.U32)
True
>>> option_name({"some": "id"}), option_name({"none": []})
('id', None)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias, Union

from .errors import TypeResolutionError

__all__ = [
    "PrimitiveKind",
    "PrimitiveType",
    "ProductElement",
    "ProductType",
    "SumVariant",
    "SumType",
    "RefType",
    "OpaqueType",
    "AlgebraicType",
    "algebraic_type_from_json",
    "option_name",
    "is_option_type",
]


class PrimitiveKind(Enum):
    """
    Closed set of primitive kinds in the wire protocol.

    Member values are the wire keys; the canonical type tag is the lowercase value.
    """

    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    U64 = "U64"
    U128 = "U128"
    U256 = "U256"
    I8 = "I8"
    I16 = "I16"
    I32 = "I32"
    I64 = "I64"
    I128 = "I128"
    I256 = "I256"
    F32 = "F32"
    F64 = "F64"
    BOOL = "Bool"
    STRING = "String"

    @property
    def tag(self) -> str:
        return self.value.lower()


@dataclass(slots=True, frozen=True)
class PrimitiveType:
    kind: PrimitiveKind


@dataclass(slots=True, frozen=True)
class ProductElement:
    name: str | None
    algebraic_type: AlgebraicType


@dataclass(slots=True, frozen=True)
class ProductType:
    elements: tuple[ProductElement, ...]


@dataclass(slots=True, frozen=True)
class SumVariant:
    name: str | None
    algebraic_type: AlgebraicType


@dataclass(slots=True, frozen=True)
class SumType:
    variants: tuple[SumVariant, ...]


@dataclass(slots=True, frozen=True)
class RefType:
    index: int


@dataclass(slots=True, frozen=True)
class OpaqueType:
    """
    Any descriptor shape not modeled by the four algebraic variants.

    Attributes:
        shape (str | None): Wire key when one was present (e.g. "Array", "Map"),
            None for empty or non-object payloads.
        raw (Any): The original JSON payload, kept for display.
    """

    shape: str | None
    raw: Any = None


AlgebraicType: TypeAlias = Union[PrimitiveType, ProductType, SumType, RefType, OpaqueType]


_PRIMITIVES_BY_KEY: dict[str, PrimitiveKind] = {k.value: k for k in PrimitiveKind}
# Keys shaped like a numeric primitive; anything matching but absent from the set is
# a protocol violation.
_PRIMITIVE_LIKE_RE = re.compile(r"^[UIF]\d+$")


def option_name(obj: Any) -> str | None:
    """
    Decode an engaged/disengaged option name.

    Args:
        obj (Any): {"some": "<name>"}, {"none": ...}, a bare string, or None.

    Returns:
        str | None: The engaged name, or None when disengaged/absent/empty.
    """
    if isinstance(obj, str):
        return obj or None
    if isinstance(obj, dict):
        value = obj.get("some")
        if isinstance(value, str) and value:
            return value
    return None


def _parse_members(payload: Any, key: str) -> list[tuple[str | None, AlgebraicType]] | None:
    if not isinstance(payload, dict):
        return None
    members = payload.get(key)
    if not isinstance(members, list):
        return None
    out: list[tuple[str | None, AlgebraicType]] = []
    for member in members:
        if not isinstance(member, dict):
            return None
        out.append(
            (option_name(member.get("name")), algebraic_type_from_json(member.get("algebraic_type")))
        )
    return out


def algebraic_type_from_json(obj: Any) -> AlgebraicType:
    """
    Parse a SATS-JSON algebraic type descriptor.

    Args:
        obj (Any): Raw descriptor as decoded from JSON.

    Returns:
        AlgebraicType: Parsed descriptor; OpaqueType for shapes outside the model.

    Raises:
        TypeResolutionError: If the key names a primitive-like kind outside the closed set
            (e.g. "U512"), or a Ref index is not an integer.
    """
    if not isinstance(obj, dict) or len(obj) != 1:
        return OpaqueType(shape=None, raw=obj)

    ((key, payload),) = obj.items()

    if key in _PRIMITIVES_BY_KEY:
        return PrimitiveType(_PRIMITIVES_BY_KEY[key])
    if _PRIMITIVE_LIKE_RE.match(key):
        raise TypeResolutionError(f"unrecognized primitive kind {key!r}")

    if key == "Ref":
        if isinstance(payload, bool) or not isinstance(payload, int):
            raise TypeResolutionError(f"Ref index must be an integer; got {payload!r}")
        return RefType(payload)

    if key == "Product":
        elements = _parse_members(payload, "elements")
        if elements is None:
            return OpaqueType(shape=key, raw=payload)
        return ProductType(tuple(ProductElement(n, t) for n, t in elements))

    if key == "Sum":
        variants = _parse_members(payload, "variants")
        if variants is None:
            return OpaqueType(shape=key, raw=payload)
        return SumType(tuple(SumVariant(n, t) for n, t in variants))

    return OpaqueType(shape=key, raw=payload)


def is_option_type(t: AlgebraicType) -> bool:
    """Return True for the two-variant some/none sum used to encode optional values."""
    if not isinstance(t, SumType) or len(t.variants) != 2:
        return False
    return {v.name for v in t.variants} == {"some", "none"}
