"""
Wire-protocol constants shared by the resolver, client, and cache.

Defines the reserved sentinel field names that mark built-in composite types,
schema endpoint version candidates, and defaults consumed by the IO layer. This
module is zero-IO and uses only the Python standard library.

Notes:
    - Built-in composites are encoded as single-field products whose field name
      is one of the sentinels below; matching is exact string equality.
    - Changing defaults should be done here; stdb_admin.io.config consumes them.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "TIMESTAMP_SENTINEL",
    "IDENTITY_SENTINEL",
    "DURATION_SENTINEL",
    "BUILTIN_COMPOSITES",
    "SCHEMA_VERSION_CANDIDATES",
    "DEFAULT_HTTP_API",
    "DEFAULT_CACHE_TTL_MINUTES",
    "DEFAULT_MAX_LIVE_ROWS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_LOG_LINES",
    "MAX_BULK_OPERATIONS",
    "BACKUP_METADATA_TABLE",
    "BACKUP_SNAPSHOT_TABLE",
    "BACKUP_RESTORE_LOG_TABLE",
    "BACKUP_TABLES",
    "CREATE_BACKUP_REDUCER",
    "RESTORE_BACKUP_REDUCER",
    "DELETE_BACKUP_REDUCER",
    "RESTORE_CONFIRMATION",
    "DEFAULT_BACKUP_LIST_ROWS",
    "DEFAULT_RESTORE_LOG_LIMIT",
]

TIMESTAMP_SENTINEL: Final[str] = "__timestamp_micros_since_unix_epoch__"
IDENTITY_SENTINEL: Final[str] = "__identity__"
DURATION_SENTINEL: Final[str] = "__time_duration_micros__"

# Sentinel field name -> canonical type tag.
BUILTIN_COMPOSITES: Final[dict[str, str]] = {
    TIMESTAMP_SENTINEL: "Timestamp",
    IDENTITY_SENTINEL: "Identity",
    DURATION_SENTINEL: "Duration",
}

# Tried in order after the configured module version (if any).
SCHEMA_VERSION_CANDIDATES: Final[tuple[str, ...]] = ("published", "latest", "9", "current")

DEFAULT_HTTP_API: Final[str] = "http://localhost:3000/v1/database"
DEFAULT_CACHE_TTL_MINUTES: Final[int] = 10
DEFAULT_MAX_LIVE_ROWS: Final[int] = 10_000
DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_LOG_LINES: Final[int] = 200

# Upper bound on operations accepted by a single bulk request.
MAX_BULK_OPERATIONS: Final[int] = 1000

# Tables and reducers a module exposes to support backup and restore.
BACKUP_METADATA_TABLE: Final[str] = "backup_metadata"
BACKUP_SNAPSHOT_TABLE: Final[str] = "backup_table_snapshot"
BACKUP_RESTORE_LOG_TABLE: Final[str] = "backup_restore_log"
BACKUP_TABLES: Final[tuple[str, ...]] = (
    BACKUP_METADATA_TABLE,
    BACKUP_SNAPSHOT_TABLE,
    BACKUP_RESTORE_LOG_TABLE,
)
CREATE_BACKUP_REDUCER: Final[str] = "create_backup"
RESTORE_BACKUP_REDUCER: Final[str] = "restore_backup"
DELETE_BACKUP_REDUCER: Final[str] = "delete_backup"

# Text the caller must pass verbatim before a restore wipes current data.
RESTORE_CONFIRMATION: Final[str] = "DELETE_ALL_DATA"
DEFAULT_BACKUP_LIST_ROWS: Final[int] = 100
DEFAULT_RESTORE_LOG_LIMIT: Final[int] = 10
