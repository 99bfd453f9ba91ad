from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
import structlog

from stdb_admin import cli
from stdb_admin.io.client import SpacetimeHttpClient
from stdb_admin.io.config import ClientSettings

SCHEMA = {
    "typespace": {
        "types": [
            {
                "Product": {
                    "elements": [
                        {"name": {"some": "id"}, "algebraic_type": {"U32": []}},
                        {"name": {"some": "name"}, "algebraic_type": {"String": []}},
                    ]
                }
            }
        ]
    },
    "tables": [{"name": "players", "product_type_ref": 0, "primary_key": [0]}],
    "reducers": [{"name": "init", "lifecycle": {"some": {"Init": []}}}],
}

QUERY = [
    {
        "schema": {
            "elements": [
                {"name": {"some": "id"}, "algebraic_type": {"U32": []}},
                {"name": {"some": "name"}, "algebraic_type": {"String": []}},
            ]
        },
        "rows": [[1, "alice"], [2, "bob"]],
    }
]


BACKUPS = [
    {
        "schema": {
            "elements": [
                {"name": {"some": "backup_id"}, "algebraic_type": {"U64": []}},
                {"name": {"some": "backup_name"}, "algebraic_type": {"String": []}},
                {"name": {"some": "created_at_ms"}, "algebraic_type": {"U64": []}},
            ]
        },
        "rows": [[1, "weekly", 1_000], [2, "nightly", 2_000]],
    }
]


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/schema"):
        return httpx.Response(200, json=SCHEMA)
    if path.endswith("/sql"):
        if request.content.startswith(b"DELETE"):
            return httpx.Response(403, text="not authorized")
        if b"backup_metadata" in request.content:
            return httpx.Response(200, json=BACKUPS)
        if b"backup_restore_log" in request.content:
            return httpx.Response(400, text="no such table: backup_restore_log")
        return httpx.Response(200, json=QUERY)
    if "/call/" in path:
        return httpx.Response(200, json={"echo": json.loads(request.content)})
    if path.endswith("/logs"):
        return httpx.Response(200, text='{"level":"Warn","ts":0,"message":"careful"}\n')
    return httpx.Response(404)


@pytest.fixture(autouse=True)
def _mock_remote(tmp_path: Path, monkeypatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STDB_ADMIN_MODULE", "game")
    monkeypatch.delenv("STDB_ADMIN_AUTH_TOKEN", raising=False)

    def make_client(settings: ClientSettings) -> SpacetimeHttpClient:
        return SpacetimeHttpClient(settings, transport=httpx.MockTransport(_handler))

    monkeypatch.setattr(cli, "_make_client", make_client)
    yield
    structlog.reset_defaults()


def test_no_args_prints_help(capsys) -> None:
    assert cli.run([]) == 0
    assert "stdb-admin" in capsys.readouterr().out


def test_unknown_command() -> None:
    assert cli.run(["bogus"]) == 2


def test_main_exits_with_status() -> None:
    with pytest.raises(SystemExit) as ei:
        cli.main(["bogus"])
    assert ei.value.code == 2


def test_health(capsys) -> None:
    assert cli.run(["health"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "connected"
    assert payload["module"] == "game"
    assert payload["tables"] == 1


def test_health_reports_missing_module(monkeypatch, capsys) -> None:
    monkeypatch.delenv("STDB_ADMIN_MODULE")
    assert cli.run(["health"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "error"


def test_tables_and_table(capsys) -> None:
    assert cli.run(["tables", "--refresh"]) == 0
    assert "players" in capsys.readouterr().out
    assert cli.run(["table", "players"]) == 0
    out = capsys.readouterr().out
    assert "BIGINT" in out and "TEXT" in out


def test_missing_table_is_an_error(capsys) -> None:
    assert cli.run(["table", "nope"]) == 1
    assert "nope" in capsys.readouterr().err


def test_query(capsys) -> None:
    assert cli.run(["query", "SELECT * FROM players", "--max-rows", "1"]) == 0
    out = capsys.readouterr().out
    assert "alice" in out and "bob" not in out
    assert "1 of 2 rows (truncated)" in out


def test_mutate_failure_shows_auth_hint(capsys) -> None:
    assert cli.run(["mutate", "DELETE FROM players"]) == 1
    assert "STDB_ADMIN_AUTH_TOKEN" in capsys.readouterr().err


def test_reducers(capsys) -> None:
    assert cli.run(["reducers"]) == 0
    out = capsys.readouterr().out
    assert "init" in out and "Init" in out


def test_call(capsys) -> None:
    assert cli.run(["call", "add_player", '["alice", 1]']) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["result"] == {"echo": ["alice", 1]}


def test_call_rejects_invalid_json(capsys) -> None:
    assert cli.run(["call", "add_player", "{nope"]) == 2
    assert "not valid JSON" in capsys.readouterr().err


def test_logs(capsys) -> None:
    assert cli.run(["logs", "--num-lines", "10"]) == 0
    assert "WARN  careful" in capsys.readouterr().out


def test_backup_list_newest_first(capsys) -> None:
    assert cli.run(["backup", "list"]) == 0
    out = capsys.readouterr().out
    assert out.index("nightly") < out.index("weekly")


def test_backup_log_without_restores(capsys) -> None:
    assert cli.run(["backup", "log", "--log-level", "ERROR"]) == 0
    assert "restore_id" in capsys.readouterr().out


def test_backup_list_without_backup_tables(monkeypatch, capsys) -> None:
    def missing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="no such table: backup_metadata")

    monkeypatch.setattr(
        cli,
        "_make_client",
        lambda settings: SpacetimeHttpClient(settings, transport=httpx.MockTransport(missing)),
    )
    assert cli.run(["backup", "list"]) == 0
    assert "Backup tables not found" in capsys.readouterr().out


def test_backup_create(capsys) -> None:
    assert cli.run(["backup", "create", "nightly", "--description", "before migration"]) == 0
    assert "'nightly' created" in capsys.readouterr().out


def test_backup_restore_requires_confirmation(capsys) -> None:
    assert cli.run(["backup", "restore", "2"]) == 2
    assert "DELETE_ALL_DATA" in capsys.readouterr().err
    assert cli.run(["backup", "restore", "2", "--confirm", "DELETE_ALL_DATA"]) == 0
    assert "Backup 2 restored" in capsys.readouterr().out


def test_backup_delete(capsys) -> None:
    assert cli.run(["backup", "delete", "2"]) == 0
    assert "Backup 2 deleted" in capsys.readouterr().out


def test_backup_requires_action() -> None:
    with pytest.raises(SystemExit):
        cli.run(["backup"])
