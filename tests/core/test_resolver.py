from __future__ import annotations

import pytest

from stdb_admin.core.algebraic import (
    OpaqueType,
    PrimitiveKind,
    PrimitiveType,
    ProductType,
    RefType,
    SumType,
    algebraic_type_from_json,
)
from stdb_admin.core.constants import DURATION_SENTINEL, IDENTITY_SENTINEL, TIMESTAMP_SENTINEL
from stdb_admin.core.errors import TypeResolutionError
from stdb_admin.core.resolver import (
    column_name,
    columns_from_product,
    parse_schema_to_columns,
    resolve_type,
    sql_type_for,
)


def _product(*elements: tuple[str | None, dict]) -> dict:
    return {
        "Product": {
            "elements": [
                {"name": {"some": n} if n is not None else {"none": []}, "algebraic_type": t}
                for n, t in elements
            ]
        }
    }


def _option(inner: dict) -> dict:
    return {
        "Sum": {
            "variants": [
                {"name": {"some": "some"}, "algebraic_type": inner},
                {"name": {"some": "none"}, "algebraic_type": _product()},
            ]
        }
    }


@pytest.mark.parametrize("kind", list(PrimitiveKind))
def test_every_primitive_resolves_to_lowercase_tag(kind: PrimitiveKind) -> None:
    assert resolve_type({kind.value: []}) == kind.value.lower()
    assert resolve_type(PrimitiveType(kind)) == kind.value.lower()


def test_bool_and_string_tags() -> None:
    assert resolve_type({"Bool": []}) == "bool"
    assert resolve_type({"String": []}) == "string"


def test_ref_is_transparent() -> None:
    typespace = [{"U32": []}, {"Ref": 0}, _product(("a", {"I8": []}))]
    assert resolve_type({"Ref": 0}, typespace) == resolve_type(typespace[0], typespace) == "u32"
    # chained refs resolve through every hop
    assert resolve_type({"Ref": 1}, typespace) == "u32"
    assert resolve_type(RefType(2), typespace) == "struct"


@pytest.mark.parametrize("index", [5, -1])
def test_ref_out_of_bounds_raises(index: int) -> None:
    with pytest.raises(TypeResolutionError):
        resolve_type({"Ref": index}, [{"U8": []}])


def test_ref_with_empty_typespace_raises() -> None:
    with pytest.raises(TypeResolutionError):
        resolve_type({"Ref": 0})


@pytest.mark.parametrize(
    "sentinel,tag",
    [
        (TIMESTAMP_SENTINEL, "Timestamp"),
        (IDENTITY_SENTINEL, "Identity"),
        (DURATION_SENTINEL, "Duration"),
    ],
)
def test_builtin_composites(sentinel: str, tag: str) -> None:
    assert resolve_type(_product((sentinel, {"I64": []}))) == tag


def test_single_field_product_with_other_name_is_struct() -> None:
    assert resolve_type(_product(("foo", {"I64": []}))) == "struct"


def test_sentinel_next_to_other_fields_is_struct() -> None:
    assert resolve_type(_product((TIMESTAMP_SENTINEL, {"I64": []}), ("x", {"U8": []}))) == "struct"


def test_empty_product_is_struct() -> None:
    assert resolve_type(_product()) == "struct"


def test_sum_resolves_to_enum() -> None:
    assert resolve_type(_option({"String": []})) == "enum"
    assert resolve_type({"Sum": {"variants": []}}) == "enum"


def test_missing_and_malformed_descriptors_are_unknown() -> None:
    assert resolve_type(None) == "unknown"
    assert resolve_type({}) == "unknown"
    assert resolve_type({"Product": "garbage"}) == "unknown"
    assert resolve_type({"U8": [], "U16": []}) == "unknown"


def test_array_and_map_are_complex() -> None:
    assert resolve_type({"Array": {"U8": []}}) == "complex"
    assert resolve_type({"Map": {"key_ty": {"U8": []}, "ty": {"String": []}}}) == "complex"


def test_unrecognized_primitive_kind_raises() -> None:
    with pytest.raises(TypeResolutionError):
        resolve_type({"U512": []})
    with pytest.raises(TypeResolutionError):
        algebraic_type_from_json({"F16": []})


def test_ref_with_non_integer_index_raises() -> None:
    with pytest.raises(TypeResolutionError):
        algebraic_type_from_json({"Ref": "0"})
    with pytest.raises(TypeResolutionError):
        algebraic_type_from_json({"Ref": True})


def test_parser_shapes() -> None:
    assert isinstance(algebraic_type_from_json(_product(("a", {"U8": []}))), ProductType)
    assert isinstance(algebraic_type_from_json(_option({"U8": []})), SumType)
    assert algebraic_type_from_json({"Array": {"U8": []}}) == OpaqueType("Array", {"U8": []})
    assert algebraic_type_from_json([1]) == OpaqueType(None, [1])


def test_column_name_option_decoding() -> None:
    assert column_name({"some": "id"}, 0) == "id"
    assert column_name({"none": []}, 2) == "col_2"
    assert column_name(None, 4) == "col_4"


def test_sql_type_mapping() -> None:
    assert sql_type_for("i64") == "BIGINT"
    assert sql_type_for("string") == "TEXT"
    assert sql_type_for("Timestamp") == "TIMESTAMP"
    assert sql_type_for("Identity") == "TEXT"
    assert sql_type_for("struct") == "STRUCT"


def test_parse_schema_to_columns_order_names_and_types() -> None:
    schema = _product(
        ("id", {"U32": []}),
        ("name", {"String": []}),
        (None, {"Bool": []}),
        ("joined", _product((TIMESTAMP_SENTINEL, {"I64": []}))),
    )["Product"]
    cols = parse_schema_to_columns(schema)
    assert [c.name for c in cols] == ["id", "name", "col_2", "joined"]
    assert [c.canonical_type for c in cols] == ["u32", "string", "bool", "Timestamp"]
    assert all(not c.is_primary for c in cols)


def test_parse_schema_to_columns_without_elements() -> None:
    assert parse_schema_to_columns(None) == []
    assert parse_schema_to_columns({}) == []


def test_columns_from_product_marks_primary_and_nullable() -> None:
    typespace = [_option({"String": []})]
    product = algebraic_type_from_json(_product(("id", {"U64": []}), ("nick", {"Ref": 0})))
    assert isinstance(product, ProductType)
    cols = columns_from_product(product, typespace, primary_key=[0])
    assert cols[0].is_primary and not cols[0].nullable
    assert cols[0].sql_type == "NUMERIC"
    assert cols[1].nullable and not cols[1].is_primary
    assert cols[1].canonical_type == "enum"


def test_repeated_result_names_get_suffixes() -> None:
    schema = _product(("a", {"U8": []}), ("a", {"String": []}), ("a_1", {"Bool": []}), ("a", {"I8": []}))
    cols = parse_schema_to_columns(schema["Product"])
    assert [c.name for c in cols] == ["a", "a_2", "a_1", "a_3"]
    assert [c.canonical_type for c in cols] == ["u8", "string", "bool", "i8"]
