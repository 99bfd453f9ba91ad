"""
Command-line front end for the admin tooling.

Usage:
    stdb-admin health
    stdb-admin tables [--refresh]
    stdb-admin table players
    stdb-admin query "SELECT * FROM players" [--max-rows 100]
    stdb-admin mutate "INSERT INTO players (id, name) VALUES (1, 'a')"
    stdb-admin reducers
    stdb-admin call add_player '[1, "a"]'
    stdb-admin logs [--num-lines 50]
    stdb-admin backup list
    stdb-admin backup create nightly [--description "before migration"]
    stdb-admin backup restore 3 --confirm DELETE_ALL_DATA
    stdb-admin backup delete 3
    stdb-admin backup log [--limit 10]

Every command accepts --config PATH (TOML) and --log-level LEVEL. Connection
settings otherwise come from STDB_ADMIN_* environment variables, ./stdb_admin.toml,
or [tool.stdb_admin.client] in ./pyproject.toml.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from datetime import UTC, datetime

import polars as pl

from stdb_admin.core.constants import (
    BACKUP_TABLES,
    DEFAULT_RESTORE_LOG_LIMIT,
    RESTORE_CONFIRMATION,
)
from stdb_admin.core.errors import RowShapeError, SchemaError, TypeResolutionError
from stdb_admin.io.backup import (
    backups_frame,
    create_backup,
    delete_backup,
    load_backups,
    restore_backup,
    restore_logs_frame,
)
from stdb_admin.io.client import SpacetimeHttpClient
from stdb_admin.io.config import ClientSettings
from stdb_admin.io.discovery import SchemaDiscovery
from stdb_admin.io.errors import ClientError
from stdb_admin.io.query import run_query
from stdb_admin.io.sql import mutate
from stdb_admin.log import configure_logging


def _make_client(settings: ClientSettings) -> SpacetimeHttpClient:
    return SpacetimeHttpClient(settings)


def _common_options() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("--config", type=str, default=None, help="Path to a TOML config file.")
    p.add_argument("--log-level", type=str, default="WARNING", help="DEBUG, INFO, WARNING, ERROR.")
    return p


def _parser(prog: str, description: str) -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog=f"stdb-admin {prog}", description=description, parents=[_common_options()]
    )


def _setup(args: argparse.Namespace) -> ClientSettings:
    configure_logging(args.log_level)
    return ClientSettings.load(args.config)


def _print_frame(df: pl.DataFrame) -> None:
    with pl.Config(tbl_rows=-1, fmt_str_lengths=80):
        print(df)


def _cmd_health(argv: list[str]) -> int:
    args = _parser("health", "Check connectivity to the configured module.").parse_args(argv)
    settings = _setup(args)
    payload: dict[str, object] = {
        "http_api": settings.http_api,
        "module": settings.module or "NOT SET",
        "timestamp": datetime.now(UTC).isoformat(),
    }
    try:
        with _make_client(settings) as client:
            payload["tables"] = len(client.get_tables())
        payload["status"] = "connected"
        code = 0
    except ClientError as exc:
        payload["status"] = "error"
        payload["error"] = str(exc)
        code = 1
    print(json.dumps(payload, indent=2))
    return code


def _cmd_tables(argv: list[str]) -> int:
    p = _parser("tables", "List tables with their column counts.")
    p.add_argument("--refresh", action="store_true", help="Bypass the schema cache.")
    args = p.parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        discovery = SchemaDiscovery.from_client(client, settings)
        tables = discovery.get_all_tables(force_refresh=args.refresh)
    _print_frame(
        pl.DataFrame(
            {
                "name": [t.name for t in tables],
                "columns": [len(t.columns) for t in tables],
                "estimated_rows": [t.estimated_row_count for t in tables],
            },
            schema={"name": pl.Utf8, "columns": pl.Int64, "estimated_rows": pl.Int64},
        )
    )
    return 0


def _cmd_table(argv: list[str]) -> int:
    p = _parser("table", "Describe one table's columns.")
    p.add_argument("name", type=str, help="Table name.")
    args = p.parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        table = client.get_table(args.name)
    cols = table.columns
    _print_frame(
        pl.DataFrame(
            {
                "column": [c.name for c in cols],
                "type": [c.canonical_type for c in cols],
                "sql_type": [c.sql_type for c in cols],
                "nullable": [c.nullable for c in cols],
                "primary": [c.is_primary for c in cols],
            },
            schema={
                "column": pl.Utf8,
                "type": pl.Utf8,
                "sql_type": pl.Utf8,
                "nullable": pl.Boolean,
                "primary": pl.Boolean,
            },
        )
    )
    return 0


def _cmd_query(argv: list[str]) -> int:
    p = _parser("query", "Run a SQL query and print decoded rows.")
    p.add_argument("sql", type=str, help="SQL text.")
    p.add_argument("--max-rows", type=int, default=None, help="Row cap (<= 0 for unlimited).")
    args = p.parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        result = run_query(client, args.sql, max_rows=args.max_rows)
    _print_frame(result.to_frame())
    suffix = " (truncated)" if result.truncated else ""
    print(f"[INFO] {result.fetched_rows} of {result.total_rows} rows{suffix}")
    return 0


def _cmd_mutate(argv: list[str]) -> int:
    p = _parser("mutate", "Run an INSERT/UPDATE/DELETE statement.")
    p.add_argument("sql", type=str, help="SQL text.")
    args = p.parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        result = mutate(client, args.sql)
    if not result.success:
        print(f"[ERROR] {result.error}", file=sys.stderr)
        return 1
    print("[INFO] Mutation applied")
    return 0


def _cmd_reducers(argv: list[str]) -> int:
    args = _parser("reducers", "List reducers and their parameters.").parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        reducers = client.get_reducers()
    _print_frame(
        pl.DataFrame(
            {
                "name": [r.name for r in reducers],
                "params": [
                    ", ".join(f"{prm.name or '_'}: {prm.canonical_type}" for prm in r.params)
                    for r in reducers
                ],
                "lifecycle": [r.lifecycle_type for r in reducers],
            },
            schema={"name": pl.Utf8, "params": pl.Utf8, "lifecycle": pl.Utf8},
        )
    )
    return 0


def _cmd_call(argv: list[str]) -> int:
    p = _parser("call", "Call a reducer with a JSON array of arguments.")
    p.add_argument("name", type=str, help="Reducer name.")
    p.add_argument("args", type=str, nargs="?", default="[]", help="JSON array of arguments.")
    args = p.parse_args(argv)
    try:
        params = json.loads(args.args)
    except ValueError as exc:
        print(f"[ERROR] Arguments are not valid JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(params, list):
        params = [params]
    settings = _setup(args)
    with _make_client(settings) as client:
        result = client.call_reducer(args.name, params)
    print(json.dumps({"success": True, "result": result}, indent=2))
    return 0


def _cmd_logs(argv: list[str]) -> int:
    p = _parser("logs", "Print recent module logs.")
    p.add_argument("--num-lines", type=int, default=200, help="Number of log lines to fetch.")
    args = p.parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        entries = client.get_logs(args.num_lines)
    for e in entries:
        source = f" [{e.source}]" if e.source else ""
        print(f"{e.timestamp} {e.level:<5}{source} {e.message}")
    return 0


def _backup_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stdb-admin backup", description="List, create, restore, or delete module backups."
    )
    sub = p.add_subparsers(dest="action", required=True)
    common = [_common_options()]
    sub.add_parser("list", parents=common, help="List backups, newest first.")
    create = sub.add_parser("create", parents=common, help="Snapshot every table.")
    create.add_argument("name", type=str, help="Backup name.")
    create.add_argument("--description", type=str, default="", help="Free-form description.")
    restore = sub.add_parser("restore", parents=common, help="Replace all data with a backup.")
    restore.add_argument("backup_id", type=int, help="Backup to restore.")
    restore.add_argument(
        "--confirm", type=str, default="", help=f"Must be {RESTORE_CONFIRMATION}."
    )
    delete = sub.add_parser("delete", parents=common, help="Delete a backup.")
    delete.add_argument("backup_id", type=int, help="Backup to delete.")
    log = sub.add_parser("log", parents=common, help="Show recent restores.")
    log.add_argument("--limit", type=int, default=DEFAULT_RESTORE_LOG_LIMIT, help="Entries to show.")
    return p


def _cmd_backup(argv: list[str]) -> int:
    args = _backup_parser().parse_args(argv)
    settings = _setup(args)
    with _make_client(settings) as client:
        try:
            if args.action == "create":
                create_backup(client, args.name, args.description)
                print(f"[INFO] Backup {args.name.strip()!r} created")
                return 0
            if args.action == "restore":
                restore_backup(client, args.backup_id, args.confirm)
                print(f"[INFO] Backup {args.backup_id} restored")
                return 0
        except ValueError as exc:
            print(f"[ERROR] {exc}", file=sys.stderr)
            return 2
        if args.action == "delete":
            delete_backup(client, args.backup_id)
            print(f"[INFO] Backup {args.backup_id} deleted")
            return 0
        limit = args.limit if args.action == "log" else DEFAULT_RESTORE_LOG_LIMIT
        listing = load_backups(client, log_limit=limit)

    if not listing.tables_present:
        print(f"[INFO] Backup tables not found. Define {', '.join(BACKUP_TABLES)} in the module.")
        return 0
    if args.action == "log":
        _print_frame(restore_logs_frame(listing.restore_logs))
    else:
        _print_frame(backups_frame(listing.backups))
    return 0


COMMANDS: dict[str, Callable[[list[str]], int]] = {
    "health": _cmd_health,
    "tables": _cmd_tables,
    "table": _cmd_table,
    "query": _cmd_query,
    "mutate": _cmd_mutate,
    "reducers": _cmd_reducers,
    "call": _cmd_call,
    "logs": _cmd_logs,
    "backup": _cmd_backup,
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="stdb-admin", description="Database admin utilities CLI.")
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in COMMANDS:
        sub.add_parser(name)
    return p


def run(argv: list[str]) -> int:
    """Dispatch one command and return its exit status."""
    if not argv:
        build_argparser().print_help()
        return 0
    cmd, rest = argv[0], argv[1:]
    handler = COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        return 2
    try:
        return handler(rest)
    except (ClientError, SchemaError, TypeResolutionError, RowShapeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> None:
    raise SystemExit(run(list(sys.argv[1:] if argv is None else argv)))


if __name__ == "__main__":
    main()
