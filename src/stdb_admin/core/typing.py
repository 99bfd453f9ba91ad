"""
Lightweight typing aliases used across core descriptors and decoders.

Notes:
    - WireValue describes the JSON shapes the remote database returns for row
      values: null, primitives, arrays, and objects (recursively).
    - Keep the surface small and stable to avoid churn in dependents.

Examples:
    >>> from stdb_admin.core.typing import WireValue, DecodedRow
    >>> def first(row: list[WireValue]) -> WireValue:
    ...     return row[0]
    >>> first([7, [1700000000000000]])
    7
"""

from __future__ import annotations

from typing import Any, TypeAlias, Union

__all__ = [
    "Primitive",
    "WireValue",
    "DecodedRow",
]

Primitive: TypeAlias = Union[str, int, float, bool]

WireValue: TypeAlias = Union[None, Primitive, list["WireValue"], dict[str, "WireValue"]]

# Column name -> decoded value (scalar, None, or nested list/dict).
DecodedRow: TypeAlias = dict[str, Any]
