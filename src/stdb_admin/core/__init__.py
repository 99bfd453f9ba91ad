"""
Core package aggregator for stdb_admin contracts (algebraic types, resolver, decoder, descriptors).

## Contracts (single source of truth)
- Algebraic - descriptor dataclasses and the SATS-JSON descriptor parser.
- Resolver - canonical type tags for descriptors; column projection.
- Decoder - structural normalization of wire values and positional rows.
- Tables - frozen column/table/reducer descriptors.
- Schema - pydantic models for the schema document and statement results.
- Logs/Serde - module log line parsing; canonical JSON for opaque values.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Everything here is pure and synchronous; stdb_admin.io supplies the remote data.

## Downstream usage
- stdb_admin.io.client - parses responses into SchemaDocument / StatementResult.
- stdb_admin.io.discovery - caches TableDescriptor lists produced from SchemaDocument.
- stdb_admin.io.query - decodes statement rows and builds display frames.

## Examples
```python
from stdb_admin.core import decode_row, parse_schema_to_columns

cols = parse_schema_to_columns({"elements": [
    {"name": {"some": "id"}, "algebraic_type": {"U32": []}},
    {"name": {"some": "joined"}, "algebraic_type": {"Product": {"elements": [
        {"name": {"some": "__timestamp_micros_since_unix_epoch__"}, "algebraic_type": {"I64": []}},
    ]}}},
]})
[c.canonical_type for c in cols]  # ['u32', 'Timestamp']
decode_row(cols, [7, [1700000000000000]])  # {'id': 7, 'joined': 1700000000000000}
```
"""

from .algebraic import AlgebraicType, PrimitiveKind, algebraic_type_from_json
from .decoder import decode_row, decode_rows, decode_value
from .errors import RowShapeError, SchemaError, TypeResolutionError
from .resolver import column_name, parse_schema_to_columns, resolve_type
from .schema import SchemaDocument, StatementResult
from .tables import ColumnDescriptor, ReducerDescriptor, TableDescriptor

__all__ = [
    "AlgebraicType",
    "PrimitiveKind",
    "algebraic_type_from_json",
    "decode_value",
    "decode_row",
    "decode_rows",
    "TypeResolutionError",
    "RowShapeError",
    "SchemaError",
    "resolve_type",
    "column_name",
    "parse_schema_to_columns",
    "SchemaDocument",
    "StatementResult",
    "ColumnDescriptor",
    "TableDescriptor",
    "ReducerDescriptor",
]
