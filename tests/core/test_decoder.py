from __future__ import annotations

import pytest

from stdb_admin.core.constants import IDENTITY_SENTINEL, TIMESTAMP_SENTINEL
from stdb_admin.core.decoder import decode_row, decode_rows, decode_value
from stdb_admin.core.errors import RowShapeError
from stdb_admin.core.resolver import parse_schema_to_columns
from stdb_admin.core.tables import ColumnDescriptor


def _cols(*names: str) -> list[ColumnDescriptor]:
    return [ColumnDescriptor(n, "unknown", "UNKNOWN") for n in names]


def test_scalars_pass_through() -> None:
    assert decode_value(None) is None
    assert decode_value(0) == 0
    assert decode_value(1.5) == 1.5
    assert decode_value(True) is True
    assert decode_value("x") == "x"


def test_single_primitive_array_is_unwrapped() -> None:
    assert decode_value([42]) == 42
    assert decode_value(["0xabc"]) == "0xabc"
    assert decode_value([False]) is False


def test_other_arrays_are_mapped() -> None:
    assert decode_value([1, 2, 3]) == [1, 2, 3]
    assert decode_value([]) == []
    assert decode_value([[5], [6]]) == [5, 6]
    assert decode_value([[1, 2]]) == [[1, 2]]
    assert decode_value([None]) == [None]


def test_objects_are_mapped_with_keys_preserved() -> None:
    assert decode_value({"a": [1], "b": {"c": [2, 3]}}) == {"a": 1, "b": {"c": [2, 3]}}


def test_decode_is_idempotent_on_scalars() -> None:
    for value in (42, "s", 2.5, False, None, [42]):
        once = decode_value(value)
        assert decode_value(once) == once


def test_row_keys_follow_column_order() -> None:
    row = decode_row(_cols("b", "a"), [1, 2])
    assert list(row) == ["b", "a"]
    assert row == {"b": 1, "a": 2}


@pytest.mark.parametrize("raw", [[1], [1, 2, 3]])
def test_row_shape_mismatch_raises(raw: list[int]) -> None:
    with pytest.raises(RowShapeError) as ei:
        decode_row(_cols("a", "b"), raw)
    assert ei.value.expected == 2
    assert ei.value.actual == len(raw)


def test_decode_rows_stops_at_first_bad_row() -> None:
    with pytest.raises(RowShapeError):
        decode_rows(_cols("a"), [[1], [2, 3]])


def test_players_result_end_to_end() -> None:
    schema = {
        "elements": [
            {"name": {"some": "id"}, "algebraic_type": {"U32": []}},
            {"name": {"some": "name"}, "algebraic_type": {"String": []}},
            {
                "name": {"some": "owner"},
                "algebraic_type": {
                    "Product": {
                        "elements": [
                            {"name": {"some": IDENTITY_SENTINEL}, "algebraic_type": {"U256": []}}
                        ]
                    }
                },
            },
            {
                "name": {"some": "joined"},
                "algebraic_type": {
                    "Product": {
                        "elements": [
                            {"name": {"some": TIMESTAMP_SENTINEL}, "algebraic_type": {"I64": []}}
                        ]
                    }
                },
            },
        ]
    }
    cols = parse_schema_to_columns(schema)
    assert [c.canonical_type for c in cols] == ["u32", "string", "Identity", "Timestamp"]

    rows = decode_rows(
        cols,
        [
            [1, "alice", ["0xc200aa"], [1700000000000000]],
            [2, "bob", ["0xc200bb"], [1700000001000000]],
        ],
    )
    assert rows == [
        {"id": 1, "name": "alice", "owner": "0xc200aa", "joined": 1700000000000000},
        {"id": 2, "name": "bob", "owner": "0xc200bb", "joined": 1700000001000000},
    ]
