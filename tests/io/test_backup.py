from __future__ import annotations

import json

import httpx
import pytest

from stdb_admin.core.constants import RESTORE_CONFIRMATION
from stdb_admin.io.backup import (
    BackupRecord,
    RestoreLogRecord,
    backups_frame,
    create_backup,
    delete_backup,
    load_backups,
    restore_backup,
    restore_logs_frame,
)
from stdb_admin.io.client import SpacetimeHttpClient
from stdb_admin.io.config import ClientSettings
from stdb_admin.io.errors import HttpRequestError


def _el(name: str, t: dict) -> dict:
    return {"name": {"some": name}, "algebraic_type": t}


def _opt(inner: dict) -> dict:
    return {
        "Sum": {
            "variants": [
                {"name": {"some": "some"}, "algebraic_type": inner},
                {"name": {"some": "none"}, "algebraic_type": {"Product": {"elements": []}}},
            ]
        }
    }


U64, STR, BOOL = {"U64": []}, {"String": []}, {"Bool": []}

METADATA = {
    "schema": {
        "elements": [
            _el("backup_id", U64),
            _el("backup_name", STR),
            _el("description", STR),
            _el("created_by_str", STR),
            _el("created_at_ms", U64),
            _el("total_tables", {"U32": []}),
            _el("total_records", U64),
            _el("is_complete", BOOL),
        ]
    },
    "rows": [
        [1, "first", "", "c200aa", 1_000, 4, 120, True],
        [3, "third", "pre-migration", "c200aa", 3_000, 4, 130, False],
        [2, "second", "", "c200bb", 2_000, 4, 125, True],
    ],
}

RESTORE_LOG = {
    "schema": {
        "elements": [
            _el("restore_id", U64),
            _el("backup_id", U64),
            _el("restored_by_str", STR),
            _el("started_at_ms", U64),
            _el("completed_at_ms", _opt(U64)),
            _el("tables_restored", {"U32": []}),
            _el("records_restored", U64),
            _el("is_successful", BOOL),
            _el("error_message", _opt(STR)),
        ]
    },
    "rows": [
        [10, 1, "c200aa", 5_000, [0, 5_400], 4, 120, True, [1, []]],
        [11, 2, "c200aa", 9_000, [1, []], 0, 0, False, [0, "table locked"]],
    ],
}


class FakeModule:
    """Serves backup tables over SQL and records reducer calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list]] = []
        self.metadata_status = 200
        self.metadata_error = ""
        self.log_status = 200
        self.metadata = METADATA
        self.restore_log = RESTORE_LOG

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/sql"):
            sql = request.content.decode()
            if "backup_metadata" in sql:
                if self.metadata_status != 200:
                    return httpx.Response(self.metadata_status, text=self.metadata_error)
                return httpx.Response(200, json=[self.metadata])
            if "backup_restore_log" in sql:
                if self.log_status != 200:
                    return httpx.Response(self.log_status, text="boom")
                return httpx.Response(200, json=[self.restore_log])
        if "/call/" in path:
            self.calls.append((path.rsplit("/", 1)[-1], json.loads(request.content)))
            return httpx.Response(200)
        return httpx.Response(404)


def _client(module: FakeModule) -> SpacetimeHttpClient:
    settings = ClientSettings(http_api="http://stdb.test/v1/database", module="game")
    return SpacetimeHttpClient(settings, transport=httpx.MockTransport(module))


def test_load_backups_sorts_newest_first() -> None:
    with _client(FakeModule()) as client:
        listing = load_backups(client)
    assert listing.tables_present is True
    assert [b.backup_id for b in listing.backups] == [3, 2, 1]
    assert listing.backups[0].description == "pre-migration"
    assert listing.backups[0].is_complete is False


def test_restore_logs_unwrap_optional_fields() -> None:
    with _client(FakeModule()) as client:
        logs = load_backups(client).restore_logs
    assert [r.restore_id for r in logs] == [11, 10]
    assert logs[0].completed_at_ms is None
    assert logs[0].error_message == "table locked"
    assert logs[1].completed_at_ms == 5_400
    assert logs[1].error_message is None


def test_restore_log_limit() -> None:
    with _client(FakeModule()) as client:
        logs = load_backups(client, log_limit=1).restore_logs
    assert [r.restore_id for r in logs] == [11]


@pytest.mark.parametrize(
    "error",
    [
        "no such table: backup_metadata",
        "Table `backup_metadata` does not exist",
        "unknown table",
    ],
)
def test_missing_tables_give_empty_listing(error: str) -> None:
    module = FakeModule()
    module.metadata_status, module.metadata_error = 400, error
    with _client(module) as client:
        listing = load_backups(client)
    assert listing.tables_present is False
    assert listing.backups == [] and listing.restore_logs == []


def test_other_metadata_failures_propagate() -> None:
    module = FakeModule()
    module.metadata_status, module.metadata_error = 500, "internal error"
    with _client(module) as client:
        with pytest.raises(HttpRequestError):
            load_backups(client)


def test_restore_log_failure_keeps_backup_list() -> None:
    module = FakeModule()
    module.log_status = 500
    with _client(module) as client:
        listing = load_backups(client)
    assert len(listing.backups) == 3
    assert listing.restore_logs == []


def test_create_backup_strips_arguments() -> None:
    module = FakeModule()
    with _client(module) as client:
        create_backup(client, "  nightly ", " before migration  ")
    assert module.calls == [("create_backup", ["nightly", "before migration"])]


def test_create_backup_requires_name() -> None:
    module = FakeModule()
    with _client(module) as client:
        with pytest.raises(ValueError):
            create_backup(client, "   ")
    assert module.calls == []


def test_restore_requires_confirmation_text() -> None:
    module = FakeModule()
    with _client(module) as client:
        with pytest.raises(ValueError):
            restore_backup(client, 3, "delete_all_data")
        restore_backup(client, 3, RESTORE_CONFIRMATION)
    assert module.calls == [("restore_backup", [3, "DELETE_ALL_DATA"])]


def test_delete_backup() -> None:
    module = FakeModule()
    with _client(module) as client:
        delete_backup(client, 2)
    assert module.calls == [("delete_backup", [2])]


def test_records_accept_option_dicts_and_extra_fields() -> None:
    log = RestoreLogRecord.model_validate(
        {"restore_id": 1, "backup_id": 2, "completed_at_ms": {"some": 7}, "error_message": {"none": []}}
    )
    assert log.completed_at_ms == 7 and log.error_message is None
    backup = BackupRecord.model_validate({"backup_id": 1, "backup_name": "x", "schema_version": 2})
    assert backup.total_records == 0


def test_frames_have_one_row_per_record() -> None:
    with _client(FakeModule()) as client:
        listing = load_backups(client)
    backups = backups_frame(listing.backups)
    assert backups.height == 3
    assert backups["id"].to_list() == [3, 2, 1]
    logs = restore_logs_frame(listing.restore_logs)
    assert logs["error"].to_list() == ["table locked", None]
    assert restore_logs_frame([]).height == 0
