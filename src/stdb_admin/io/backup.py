"""
Backup and restore workflow on top of module-provided tables and reducers.

A module opts in by defining three tables (backup_metadata, backup_table_snapshot,
backup_restore_log) and three reducers (create_backup, restore_backup,
delete_backup). This module reads the first and last tables through run_query and
drives the reducers through SpacetimeHttpClient.call_reducer; the snapshot table is
written and read only by the module itself.

Overview
- load_backups(): list backups (newest first) plus the most recent restore logs.
  A module without the backup tables yields tables_present=False, not an error.
- create_backup() / restore_backup() / delete_backup(): reducer calls with local
  argument checks.
- backups_frame() / restore_logs_frame(): Polars display frames.

Notes
- The remote SQL dialect has no ORDER BY, so sorting happens client-side.
- Restore replaces all current data; it requires RESTORE_CONFIRMATION verbatim.
- Optional fields may arrive option-encoded (``{"some": x}`` / ``{"none": []}``) or
  as sum arrays (``[0, x]`` / ``[1, []]``); both are unwrapped on validation.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import polars as pl
from pydantic import BaseModel, ConfigDict, field_validator

from stdb_admin.core.constants import (
    BACKUP_METADATA_TABLE,
    BACKUP_RESTORE_LOG_TABLE,
    CREATE_BACKUP_REDUCER,
    DEFAULT_BACKUP_LIST_ROWS,
    DEFAULT_RESTORE_LOG_LIMIT,
    DELETE_BACKUP_REDUCER,
    RESTORE_BACKUP_REDUCER,
    RESTORE_CONFIRMATION,
)
from stdb_admin.log import get_logger

from .client import SpacetimeHttpClient
from .errors import HttpRequestError
from .query import run_query

logger = get_logger(__name__)

__all__ = [
    "BackupRecord",
    "RestoreLogRecord",
    "BackupListing",
    "load_backups",
    "create_backup",
    "restore_backup",
    "delete_backup",
    "backups_frame",
    "restore_logs_frame",
    "tables_missing",
]

_MISSING_TABLE_MARKERS: tuple[str, ...] = (
    BACKUP_METADATA_TABLE,
    "no such table",
    "does not exist",
    "unknown table",
)


def _unwrap_option(v: Any) -> Any:
    if isinstance(v, dict) and len(v) == 1:
        if "some" in v:
            return v["some"]
        if "none" in v:
            return None
    if isinstance(v, list) and len(v) == 2 and v[0] in (0, 1) and not isinstance(v[0], bool):
        return v[1] if v[0] == 0 else None
    return v


class BackupRecord(BaseModel):
    """
    One row of the backup metadata table.

    Attributes:
        backup_id (int): Module-assigned identifier.
        backup_name (str): Name given at creation.
        description (str): Free-form description (may be empty).
        created_by_str (str): Identity of the creator, rendered as text.
        created_at_ms (int): Creation time in milliseconds since the epoch.
        total_tables (int): Tables captured.
        total_records (int): Rows captured across all tables.
        is_complete (bool): False while the module is still writing snapshots.
    """

    model_config = ConfigDict(extra="allow")

    backup_id: int
    backup_name: str
    description: str = ""
    created_by_str: str = ""
    created_at_ms: int = 0
    total_tables: int = 0
    total_records: int = 0
    is_complete: bool = False


class RestoreLogRecord(BaseModel):
    """One row of the restore log table; completion fields stay None until the restore ends."""

    model_config = ConfigDict(extra="allow")

    restore_id: int
    backup_id: int
    restored_by_str: str = ""
    started_at_ms: int = 0
    completed_at_ms: int | None = None
    tables_restored: int = 0
    records_restored: int = 0
    is_successful: bool = False
    error_message: str | None = None

    @field_validator("completed_at_ms", "error_message", mode="before")
    @classmethod
    def _unwrap_optional(cls, v: Any) -> Any:
        return _unwrap_option(v)


@dataclass(slots=True)
class BackupListing:
    """
    Result of load_backups().

    Attributes:
        tables_present (bool): False when the module does not define the backup tables.
        backups (list[BackupRecord]): Newest first.
        restore_logs (list[RestoreLogRecord]): Most recent restores, newest first.
    """

    tables_present: bool = True
    backups: list[BackupRecord] = field(default_factory=list)
    restore_logs: list[RestoreLogRecord] = field(default_factory=list)


def tables_missing(exc: HttpRequestError) -> bool:
    """
    Tell whether a failed metadata query means the module lacks the backup tables.

    Examples:
        >>> tables_missing(HttpRequestError("POST", "sql", 400, "no such table: backup_metadata"))
        True
        >>> tables_missing(HttpRequestError("POST", "sql", None, "connection refused"))
        False
    """
    if exc.status_code is None:
        return False
    body = exc.body.lower()
    return any(marker in body for marker in _MISSING_TABLE_MARKERS)


def load_backups(
    client: SpacetimeHttpClient,
    *,
    log_limit: int = DEFAULT_RESTORE_LOG_LIMIT,
) -> BackupListing:
    """
    List backups and recent restore logs.

    Args:
        client (SpacetimeHttpClient): Remote client.
        log_limit (int): Maximum number of restore logs to keep.

    Returns:
        BackupListing: Empty with tables_present=False when the module has no
        backup tables.

    Raises:
        HttpRequestError: If the metadata query fails for any other reason.

    Notes:
        A failing restore-log query leaves restore_logs empty; the backup list is
        still returned.
    """
    try:
        result = run_query(
            client, f"SELECT * FROM {BACKUP_METADATA_TABLE}", max_rows=DEFAULT_BACKUP_LIST_ROWS
        )
    except HttpRequestError as exc:
        if tables_missing(exc):
            logger.warning("backup_tables_missing", module=client.settings.module)
            return BackupListing(tables_present=False)
        raise

    backups = sorted(
        (BackupRecord.model_validate(row) for row in result.rows),
        key=lambda b: b.created_at_ms,
        reverse=True,
    )

    logs: list[RestoreLogRecord] = []
    try:
        log_result = run_query(
            client, f"SELECT * FROM {BACKUP_RESTORE_LOG_TABLE}", max_rows=DEFAULT_BACKUP_LIST_ROWS
        )
    except HttpRequestError as exc:
        logger.info("restore_log_unavailable", error=str(exc))
    else:
        logs = sorted(
            (RestoreLogRecord.model_validate(row) for row in log_result.rows),
            key=lambda r: r.started_at_ms,
            reverse=True,
        )[: max(log_limit, 0)]

    return BackupListing(tables_present=True, backups=backups, restore_logs=logs)


def create_backup(client: SpacetimeHttpClient, name: str, description: str = "") -> Any:
    """
    Ask the module to snapshot every table.

    Raises:
        ValueError: If name is empty after stripping.
        HttpRequestError: If the reducer fails (commonly missing admin rights).
    """
    name = name.strip()
    if not name:
        raise ValueError("backup name must not be empty")
    logger.info("backup_create", backup_name=name)
    return client.call_reducer(CREATE_BACKUP_REDUCER, [name, description.strip()])


def restore_backup(client: SpacetimeHttpClient, backup_id: int, confirm: str) -> Any:
    """
    Replace all current data with a backup's contents.

    Args:
        client (SpacetimeHttpClient): Remote client.
        backup_id (int): Backup to restore.
        confirm (str): Must equal RESTORE_CONFIRMATION; it is forwarded to the reducer,
            which checks it again.

    Raises:
        ValueError: If confirm does not match.
        HttpRequestError: If the reducer fails.
    """
    if confirm != RESTORE_CONFIRMATION:
        raise ValueError(f"type {RESTORE_CONFIRMATION} to confirm a restore")
    logger.warning("backup_restore", backup_id=backup_id)
    return client.call_reducer(RESTORE_BACKUP_REDUCER, [backup_id, confirm])


def delete_backup(client: SpacetimeHttpClient, backup_id: int) -> Any:
    logger.info("backup_delete", backup_id=backup_id)
    return client.call_reducer(DELETE_BACKUP_REDUCER, [backup_id])


def backups_frame(backups: Sequence[BackupRecord]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "id": [b.backup_id for b in backups],
            "name": [b.backup_name for b in backups],
            "description": [b.description for b in backups],
            "created_by": [b.created_by_str for b in backups],
            "created_at_ms": [b.created_at_ms for b in backups],
            "tables": [b.total_tables for b in backups],
            "records": [b.total_records for b in backups],
            "complete": [b.is_complete for b in backups],
        },
        schema={
            "id": pl.Int64,
            "name": pl.Utf8,
            "description": pl.Utf8,
            "created_by": pl.Utf8,
            "created_at_ms": pl.Int64,
            "tables": pl.Int64,
            "records": pl.Int64,
            "complete": pl.Boolean,
        },
    )


def restore_logs_frame(logs: Sequence[RestoreLogRecord]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "restore_id": [r.restore_id for r in logs],
            "backup_id": [r.backup_id for r in logs],
            "restored_by": [r.restored_by_str for r in logs],
            "started_at_ms": [r.started_at_ms for r in logs],
            "completed_at_ms": [r.completed_at_ms for r in logs],
            "tables": [r.tables_restored for r in logs],
            "records": [r.records_restored for r in logs],
            "successful": [r.is_successful for r in logs],
            "error": [r.error_message for r in logs],
        },
        schema={
            "restore_id": pl.Int64,
            "backup_id": pl.Int64,
            "restored_by": pl.Utf8,
            "started_at_ms": pl.Int64,
            "completed_at_ms": pl.Int64,
            "tables": pl.Int64,
            "records": pl.Int64,
            "successful": pl.Boolean,
            "error": pl.Utf8,
        },
    )
