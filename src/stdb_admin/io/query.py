"""
Read-side SQL helpers: run a query, decode its rows, and build display frames.

Overview
- run_query(): executes SQL through the client and decodes the first statement's
  result with stdb_admin.core (columns via the resolver, rows via the decoder).
- QueryResult.to_frame(): materializes decoded rows as a Polars DataFrame for
  tabular display.

Truncation semantics
- max_rows None falls back to ClientSettings.max_live_rows.
- max_rows <= 0 means unlimited.
- total_rows always reports the full server-side count; truncated is True when
  rows were dropped.

Notes
- Nested values (structs, enums, arrays) become canonical JSON strings in frames.
- Integer columns holding values outside signed 64-bit range (u64/u128/u256 data)
  are rendered as strings so Polars never overflows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import polars as pl

from stdb_admin.core.serde import display_value
from stdb_admin.core.tables import ColumnDescriptor
from stdb_admin.core.typing import DecodedRow

from .client import SpacetimeHttpClient

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


@dataclass(slots=True)
class QueryResult:
    """
    Decoded result of a single SQL query.

    Attributes:
        columns (list[ColumnDescriptor]): Result columns in wire order.
        rows (list[DecodedRow]): Decoded rows (possibly truncated).
        total_rows (int): Rows returned by the server before truncation.
        truncated (bool): True when rows were dropped by the row cap.
        duration_micros (int | None): Server-side execution time, when reported.
    """

    columns: list[ColumnDescriptor] = field(default_factory=list)
    rows: list[DecodedRow] = field(default_factory=list)
    total_rows: int = 0
    truncated: bool = False
    duration_micros: int | None = None

    @property
    def fetched_rows(self) -> int:
        return len(self.rows)

    def column_types(self) -> dict[str, str]:
        return {c.name: c.canonical_type for c in self.columns}

    def to_frame(self) -> pl.DataFrame:
        """
        Build a Polars DataFrame with one column per result column.

        Returns:
            pl.DataFrame: Display frame (empty frame with column names when there are no rows).
        """
        data: dict[str, list[Any]] = {}
        for col in self.columns:
            values = [display_value(row.get(col.name)) for row in self.rows]
            if _needs_string_column(values):
                values = [None if v is None else str(v) for v in values]
            data[col.name] = values
        if not self.rows:
            return pl.DataFrame({name: pl.Series(name, [], dtype=pl.Utf8) for name in data})
        return pl.DataFrame(data, strict=False)


def _needs_string_column(values: list[Any]) -> bool:
    kinds = {type(v) for v in values if v is not None}
    if len(kinds) > 1 and not kinds <= {int, float}:
        return True
    return any(
        isinstance(v, int) and not isinstance(v, bool) and not _I64_MIN <= v <= _I64_MAX
        for v in values
    )


def run_query(client: SpacetimeHttpClient, sql: str, max_rows: int | None = None) -> QueryResult:
    """
    Execute a query and decode the first statement result.

    Args:
        client (SpacetimeHttpClient): Remote client.
        sql (str): SQL text.
        max_rows (int | None): Row cap (None -> settings.max_live_rows; <= 0 -> unlimited).

    Returns:
        QueryResult: Decoded columns and rows; empty when no statement produced results.

    Raises:
        stdb_admin.io.errors.HttpRequestError: If the remote rejects the query.
        stdb_admin.core.errors.RowShapeError: If a row does not match the result schema.
    """
    results = client.sql(sql)
    if not results:
        return QueryResult()

    first = results[0]
    columns = first.columns()
    rows = first.decoded_rows()

    cap = client.settings.max_live_rows if max_rows is None else max_rows
    total = len(rows)
    truncated = cap > 0 and total > cap
    if truncated:
        rows = rows[:cap]

    return QueryResult(
        columns=columns,
        rows=rows,
        total_rows=total,
        truncated=truncated,
        duration_micros=first.total_duration_micros,
    )
