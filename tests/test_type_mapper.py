"""Tests for descriptor to annotation mapping."""

from __future__ import annotations

import pytest

from bridgegen import (
    AggregateType, OptionalType, PrimitiveType, ReferenceType, ResultType, SequenceType,
    TypeMapper, TypeParam, UnitType,
)


STR = PrimitiveType("String")


@pytest.mark.parametrize("name, expected", [
    ("bool", "bool"), ("char", "str"), ("str", "str"), ("u64", "int"), ("i128", "int"), ("f32", "float"),
])
def test_plain_primitives(name, expected):
    assert TypeMapper.to_client(PrimitiveType(name), constrained=False) == expected


@pytest.mark.parametrize("name, expected", [
    ("bool", "bool"),
    ("str", "str"),
    ("f64", "float"),
    ("u8", "Annotated[int, Field(ge=0, le=255)]"),
    ("i8", "Annotated[int, Field(ge=-128, le=127)]"),
    ("u64", "Annotated[int, Field(ge=0, le=18446744073709551615)]"),
    ("usize", "Annotated[int, Field(ge=0, le=18446744073709551615)]"),
    ("char", "Annotated[str, Field(min_length=1, max_length=1)]"),
])
def test_constrained_primitives(name, expected):
    assert TypeMapper.to_client(PrimitiveType(name)) == expected
    assert TypeMapper.to_host(PrimitiveType(name)) == expected


def test_every_integer_width_has_a_range():
    ints = {name for name, py in TypeMapper.PYTHON_TYPES.items() if py == "int"}
    assert set(TypeMapper.INTEGER_RANGES) == ints
    assert TypeMapper.INTEGER_RANGES["i32"] == (-2147483648, 2147483647)
    assert TypeMapper.INTEGER_RANGES["u128"] == (0, 340282366920938463463374607431768211455)


def test_constraints_reach_nested_positions():
    u8 = PrimitiveType("u8")
    assert TypeMapper.to_client(OptionalType(SequenceType(u8))) == \
        "Optional[List[Annotated[int, Field(ge=0, le=255)]]]"
    assert TypeMapper.to_host(ReferenceType(SequenceType(u8))) == \
        "Tuple[Annotated[int, Field(ge=0, le=255)], ...]"
    assert TypeMapper.to_client(OptionalType(SequenceType(u8)), constrained=False) == "Optional[List[int]]"


def test_generic_aggregates():
    page = AggregateType("Page", args=(AggregateType("Post"),))
    assert TypeMapper.to_client(page) == "Page[Post]"
    nested = AggregateType("ApiResponse", args=(SequenceType(AggregateType("User")),))
    assert TypeMapper.to_client(nested) == "ApiResponse[List[User]]"
    assert TypeMapper.to_client(AggregateType("Pair", args=(TypeParam("T"), PrimitiveType("String")))) == \
        "Pair[T, str]"
    assert TypeMapper.to_client(SequenceType(TypeParam("T"))) == "List[T]"


def test_client_annotations_erase_borrows():
    assert TypeMapper.to_client(ReferenceType(PrimitiveType("str"))) == "str"
    assert TypeMapper.to_client(ReferenceType(SequenceType(PrimitiveType("bool")))) == "List[bool]"
    assert TypeMapper.to_client(OptionalType(ReferenceType(AggregateType("User")))) == "Optional[User]"
    assert TypeMapper.to_client(UnitType()) == "None"


def test_client_result_maps_to_success_type():
    assert TypeMapper.to_client(ResultType(SequenceType(AggregateType("User")), STR)) == "List[User]"
    assert TypeMapper.to_client(ResultType(UnitType(), STR)) == "None"


def test_host_annotations_keep_borrowed_sequences_read_only():
    assert TypeMapper.to_host(ReferenceType(SequenceType(STR))) == "Tuple[str, ...]"
    assert TypeMapper.to_host(SequenceType(STR)) == "List[str]"
    assert TypeMapper.to_host(OptionalType(ReferenceType(SequenceType(STR)))) == "Optional[Tuple[str, ...]]"
    assert TypeMapper.to_host(ReferenceType(PrimitiveType("str"))) == "str"


def test_payload():
    result = ResultType(AggregateType("User"), STR)
    assert TypeMapper.payload(result) == AggregateType("User")
    assert TypeMapper.payload(STR) == STR
    assert TypeMapper.has_payload(result)
    assert not TypeMapper.has_payload(UnitType())
    assert not TypeMapper.has_payload(ResultType(UnitType(), STR))


def test_generated_names():
    assert TypeMapper.args_type_name("fetch_user") == "FetchUserArgs"
    assert TypeMapper.args_type_name("_private__name") == "PrivateNameArgs"
    assert TypeMapper.args_type_name("add") == "AddArgs"
    assert TypeMapper.constant_name("fetch_user", "ARGS") == "_FETCH_USER_ARGS"


def test_not_a_descriptor():
    with pytest.raises(TypeError):
        TypeMapper.to_client("i32")
