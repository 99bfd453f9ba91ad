"""
Structural decoder for SATS-JSON row values.

Query results arrive as positional value arrays. Values are self-describing
enough to normalize without the schema, with one deliberate ambiguity: the wire
format wraps single-field composites (Identity, Timestamp, Duration, option
payloads) in one-element arrays, and those cannot be told apart from genuine
one-element arrays of primitives. The decoder always unwraps them.

Decoding rules (decode_value)
- None -> None
- str/int/float/bool -> verbatim
- [primitive] -> primitive
- any other list -> list of decoded elements
- dict -> dict of decoded values, keys preserved

Notes
- Zero-IO; pure and synchronous.
- decode_row() is positional and does not reinterpret values by canonical type
  (a Timestamp stays an integer of microseconds); that is a presentation concern.

Examples
>>> decode_value([42])
42
>>> decode_value([1, 2, 3])
[1, 2, 3]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .errors import RowShapeError
from .tables import ColumnDescriptor
from .typing import DecodedRow, WireValue

__all__ = [
    "decode_value",
    "decode_row",
    "decode_rows",
]

_PRIMITIVES = (str, int, float, bool)


def decode_value(value: WireValue) -> Any:
    """
    Normalize one wire value into a plain display-ready value.

    Args:
        value (WireValue): Raw value from a result row.

    Returns:
        Any: Scalar, None, or nested list/dict of decoded values.
    """
    if value is None:
        return None
    if isinstance(value, _PRIMITIVES):
        return value
    if isinstance(value, list):
        if len(value) == 1 and isinstance(value[0], _PRIMITIVES):
            return value[0]
        return [decode_value(v) for v in value]
    if isinstance(value, dict):
        return {k: decode_value(v) for k, v in value.items()}
    # Non-JSON Python objects are passed through untouched.
    return value


def decode_row(columns: Sequence[ColumnDescriptor], raw_row: Sequence[WireValue]) -> DecodedRow:
    """
    Decode a positional raw row into a mapping keyed by column name.

    Args:
        columns (Sequence[ColumnDescriptor]): Column list in wire order.
        raw_row (Sequence[WireValue]): Positional raw values.

    Returns:
        DecodedRow: Column name -> decoded value.

    Raises:
        RowShapeError: If len(raw_row) != len(columns).
    """
    if len(raw_row) != len(columns):
        raise RowShapeError(expected=len(columns), actual=len(raw_row))
    return {col.name: decode_value(v) for col, v in zip(columns, raw_row, strict=True)}


def decode_rows(
    columns: Sequence[ColumnDescriptor], raw_rows: Iterable[Sequence[WireValue]]
) -> list[DecodedRow]:
    """Decode many rows; the first mis-shaped row raises RowShapeError."""
    return [decode_row(columns, row) for row in raw_rows]
