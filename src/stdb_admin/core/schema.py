"""
Pydantic v2 models for the remote schema document and SQL statement results.

The remote ``GET /v1/database/<module>/schema`` endpoint returns one document
holding every table, every reducer, and the shared typespace. Tables point at
their row type through ``product_type_ref`` (an index into the typespace). The
``POST /sql`` endpoint returns a list of statement results, each carrying an
unwrapped product-type schema and positional rows.

Responsibilities
- Validate the outer document shape while keeping algebraic type payloads raw.
- Project tables and reducers onto frozen descriptors (stdb_admin.core.tables).
- Decode statement results into columns and named rows.

Style
- Zero-IO (stdlib + pydantic only).
- Models accept unknown keys (extra="allow"); the remote protocol adds fields over
  time (indexes, constraints, sequences, scheduled reducers) that we do not surface.

References
- resolver: src/stdb_admin/core/resolver.py
- decoder: src/stdb_admin/core/decoder.py
- errors: src/stdb_admin/core/errors.py (SchemaError, TypeResolutionError)
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .algebraic import AlgebraicType, ProductType, RefType, algebraic_type_from_json, option_name
from .decoder import decode_rows
from .errors import SchemaError
from .resolver import columns_from_product, parse_schema_to_columns, resolve_type
from .tables import ColumnDescriptor, ReducerDescriptor, ReducerParam, TableDescriptor
from .typing import DecodedRow

__all__ = [
    "RawTable",
    "RawReducer",
    "Typespace",
    "SchemaDocument",
    "StatementResult",
]


class RawTable(BaseModel):
    """
    Table entry of the schema document.

    Attributes:
        name (str): Table name.
        product_type_ref (int): Typespace index of the row type.
        primary_key (list[int]): Positional indices of primary key columns.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    product_type_ref: int
    primary_key: list[int] = Field(default_factory=list)


class RawReducer(BaseModel):
    """
    Reducer entry of the schema document.

    Attributes:
        name (str): Reducer name.
        params (dict[str, Any]): Product payload ``{"elements": [...]}`` of parameters.
        lifecycle (dict[str, Any] | None): Option-encoded lifecycle marker,
            ``{"some": {"Init": []}}`` or ``{"none": []}``.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    params: dict[str, Any] = Field(default_factory=lambda: {"elements": []})
    lifecycle: dict[str, Any] | None = None

    def lifecycle_type(self) -> str | None:
        if not isinstance(self.lifecycle, dict) or "some" not in self.lifecycle:
            return None
        marker = self.lifecycle["some"]
        if isinstance(marker, dict) and marker:
            return next(iter(marker))
        if isinstance(marker, str):
            return marker
        return None


class Typespace(BaseModel):
    model_config = ConfigDict(extra="allow")

    types: list[Any] = Field(default_factory=list)


class SchemaDocument(BaseModel):
    """
    Full schema document for one remote module.

    Examples:
        >>> doc = SchemaDocument.model_validate({
        ...     "tables": [{"name": "players", "product_type_ref": 0}],
        ...     "typespace": {"types": [{"Product": {"elements": [
        ...         {"name": {"some": "id"}, "algebraic_type": {"U32": []}}]}}]},
        ... })
        >>> doc.describe_table("players").column_names()
        ['id']
    """

    model_config = ConfigDict(extra="allow")

    tables: list[RawTable] = Field(default_factory=list)
    reducers: list[RawReducer] = Field(default_factory=list)
    typespace: Typespace = Field(default_factory=Typespace)

    def typespace_type(self, index: int) -> AlgebraicType:
        """Parse one typespace entry; other entries are left untouched."""
        return algebraic_type_from_json(self.typespace.types[index])

    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def raw_table(self, name: str) -> RawTable:
        for t in self.tables:
            if t.name == name:
                return t
        raise SchemaError(f"table {name!r} not found in schema")

    def columns_for(self, name: str) -> list[ColumnDescriptor]:
        """
        Resolve the column list for a table.

        Only typespace entries reachable from this table's row type are parsed, so a
        malformed entry elsewhere in the typespace does not affect it.

        Raises:
            SchemaError: If the table is absent or its row type is not a product.
            TypeResolutionError: If a column type cannot be resolved.
        """
        table = self.raw_table(name)
        types = self.typespace.types
        row_type: AlgebraicType = RefType(table.product_type_ref)
        # Follow refs to the row product type.
        seen: set[int] = set()
        while isinstance(row_type, RefType):
            if row_type.index in seen or not 0 <= row_type.index < len(types):
                raise SchemaError(
                    f"table {name!r} row type ref {table.product_type_ref} does not resolve"
                )
            seen.add(row_type.index)
            row_type = self.typespace_type(row_type.index)
        if not isinstance(row_type, ProductType):
            raise SchemaError(f"table {name!r} row type is not a product type")
        return columns_from_product(row_type, types, table.primary_key)

    def describe_table(self, name: str, estimated_row_count: int = 0) -> TableDescriptor:
        return TableDescriptor(
            name=name,
            columns=tuple(self.columns_for(name)),
            estimated_row_count=estimated_row_count,
        )

    def describe_reducers(self) -> list[ReducerDescriptor]:
        typespace = self.typespace.types
        out: list[ReducerDescriptor] = []
        for reducer in self.reducers:
            elements = reducer.params.get("elements") or []
            params = tuple(
                ReducerParam(
                    name=option_name(el.get("name")),
                    canonical_type=resolve_type(el.get("algebraic_type"), typespace),
                )
                for el in elements
                if isinstance(el, dict)
            )
            lifecycle = reducer.lifecycle_type()
            out.append(
                ReducerDescriptor(
                    name=reducer.name,
                    params=params,
                    is_lifecycle=lifecycle is not None,
                    lifecycle_type=lifecycle,
                )
            )
        return out


class StatementResult(BaseModel):
    """
    One statement's result from the SQL endpoint.

    Attributes:
        row_schema (dict[str, Any]): Unwrapped product schema ``{"elements": [...]}``
            (wire key: "schema").
        rows (list[list[Any]]): Positional raw rows.
        total_duration_micros (int | None): Server-side execution time, when reported.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    row_schema: dict[str, Any] = Field(default_factory=dict, alias="schema")
    rows: list[list[Any]] = Field(default_factory=list)
    total_duration_micros: int | None = None

    def columns(self) -> list[ColumnDescriptor]:
        return parse_schema_to_columns(self.row_schema)

    def decoded_rows(self) -> list[DecodedRow]:
        return decode_rows(self.columns(), self.rows)
