"""
Frozen descriptors for discovered tables, columns, and reducers.

Notes:
    - Descriptors are produced by stdb_admin.core.schema projections and by the
      discovery cache; they are never mutated in place. A refresh replaces them.
    - canonical_type is the resolver's tag ("u32", "string", "struct", "enum",
      "Timestamp", "Identity", "Duration", "unknown", "complex").
    - sql_type is a display-only SQL name derived from canonical_type.
    - Core is zero-IO (stdlib only).
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ColumnDescriptor",
    "TableDescriptor",
    "ReducerParam",
    "ReducerDescriptor",
]


@dataclass(slots=True, frozen=True)
class ColumnDescriptor:
    """
    Frozen descriptor for one column of a table or query result.

    Attributes:
        name (str): Column name; synthesized as ``col_<index>`` when the schema omits it.
        canonical_type (str): Resolver tag for the column's algebraic type.
        sql_type (str): Display SQL type (e.g. "BIGINT", "TEXT").
        nullable (bool): True when the column type is an option (some/none sum).
        is_primary (bool): True when the column is part of the table's primary key.
    """

    name: str
    canonical_type: str
    sql_type: str
    nullable: bool = False
    is_primary: bool = False


@dataclass(slots=True, frozen=True)
class TableDescriptor:
    """
    Frozen descriptor for a discovered table.

    Attributes:
        name (str): Table name as reported by the remote schema.
        columns (tuple[ColumnDescriptor, ...]): Columns in positional (wire) order.
        estimated_row_count (int): Row count estimate (0 when not measured).

    Examples:
        >>> from stdb_admin.core.tables import ColumnDescriptor, TableDescriptor
        >>> t = TableDescriptor("players", (ColumnDescriptor("id", "u32", "BIGINT"),))
        >>> t.column_names()
        ['id']
    """

    name: str
    columns: tuple[ColumnDescriptor, ...]
    estimated_row_count: int = 0

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> ColumnDescriptor:
        for c in self.columns:
            if c.name == name:
                return c
        raise KeyError(f"table {self.name!r} has no column {name!r}")


@dataclass(slots=True, frozen=True)
class ReducerParam:
    name: str | None
    canonical_type: str


@dataclass(slots=True, frozen=True)
class ReducerDescriptor:
    """
    Frozen descriptor for a remote reducer (stored-procedure-like callable).

    Attributes:
        name (str): Reducer name.
        params (tuple[ReducerParam, ...]): Positional parameters.
        is_lifecycle (bool): True for lifecycle hooks (init, client connect/disconnect).
        lifecycle_type (str | None): Lifecycle key reported by the schema (e.g. "Init").
    """

    name: str
    params: tuple[ReducerParam, ...]
    is_lifecycle: bool = False
    lifecycle_type: str | None = None
