"""
Core exception types raised by type resolution, row decoding, and schema projection.

Provides typed exceptions for core-domain failures:
- TypeResolutionError for descriptors that violate the wire protocol (unknown
  primitive kinds, dangling typespace references).
- RowShapeError when a raw row does not line up with its column list.
- SchemaError when a schema document cannot be projected onto a table or reducer.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Malformed product/sum descriptors are NOT errors; the resolver degrades them
      to the "unknown"/"complex" tags instead of raising.

Examples:
    Catch a row shape failure.

    >>> from stdb_admin.core.errors import RowShapeError
    >>> try:
    ...     raise RowShapeError(expected=2, actual=3)
    ... except RowShapeError as e:
    ...     msg = str(e)
    >>> "expected 2" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "TypeResolutionError",
    "RowShapeError",
    "SchemaError",
]


class TypeResolutionError(ValueError):
    """Descriptor cannot be resolved (ref index out of bounds or unrecognized primitive kind)."""


class RowShapeError(ValueError):
    """
    Raw row length does not match the column count.

    Attributes:
        expected (int): Number of columns.
        actual (int): Number of values in the raw row.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"row shape mismatch: expected {expected} values, got {actual}")


class SchemaError(ValueError):
    """Schema document cannot be projected (missing table, non-product row type)."""
