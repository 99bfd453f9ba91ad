"""
stdb_admin.io - Remote IO layer for the database admin tooling.

## Responsibilities
- Talk to the remote database HTTP API (schema, SQL, reducers, logs) via httpx.
- Cache discovered table descriptors for a configurable TTL.
- Decode query results through stdb_admin.core and present them as Polars frames.
- Keep stdb_admin.core as the single source of truth for type resolution and decoding.

## Public API
- ClientSettings - configuration (env > TOML > defaults).
- SpacetimeHttpClient - remote HTTP collaborator.
- SchemaDiscovery - TTL schema cache.
- run_query / QueryResult - decoded reads.
- mutate / run_bulk - writes.
- load_backups / create_backup / restore_backup / delete_backup - backup workflow.

## Import DAG discipline
- Depends on stdlib, httpx, polars, pydantic, structlog, and stdb_admin.core.*.
- MUST NOT import stdb_admin.cli.

## Examples
```python
from stdb_admin.io import ClientSettings, SchemaDiscovery, SpacetimeHttpClient, run_query

settings = ClientSettings.load()  # doctest: +SKIP
with SpacetimeHttpClient(settings) as client:  # doctest: +SKIP
    discovery = SchemaDiscovery.from_client(client)
    tables = discovery.get_all_tables()
    result = run_query(client, "SELECT * FROM players")
    print(result.to_frame())
```
"""

from __future__ import annotations

from .backup import (
    BackupListing,
    BackupRecord,
    RestoreLogRecord,
    create_backup,
    delete_backup,
    load_backups,
    restore_backup,
)
from .client import SpacetimeHttpClient
from .config import ClientSettings
from .discovery import CacheStatus, SchemaDiscovery
from .query import QueryResult, run_query
from .sql import BulkOperation, BulkResult, MutationResult, mutate, run_bulk

__all__ = [
    "ClientSettings",
    "SpacetimeHttpClient",
    "SchemaDiscovery",
    "CacheStatus",
    "QueryResult",
    "run_query",
    "BulkOperation",
    "BulkResult",
    "MutationResult",
    "mutate",
    "run_bulk",
    "BackupListing",
    "BackupRecord",
    "RestoreLogRecord",
    "load_backups",
    "create_backup",
    "restore_backup",
    "delete_backup",
]
