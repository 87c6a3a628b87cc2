"""Tests for signature building and diagnostics."""

from __future__ import annotations

import pytest

from bridgegen import (
    AggregateType, IDLParser, NameCollision, PrimitiveType, Reason, ReferenceType, ResultType,
    SequenceType, TypeClassifier, UnitType, UnsupportedParameterForm, UnsupportedType,
    build_signature, build_signatures,
)
from bridgegen.diagnostics import RETURN_ELEMENT


def signatures(source: str):
    return build_signatures(IDLParser(source).parse())


def single(source: str):
    idl = IDLParser(source).parse()
    return build_signature(idl.functions[0], TypeClassifier(idl))


def test_signature_fields():
    sig = single("async fn fetch_user(id: u32, tags: &[String]) -> Result<Vec<String>, String>;")
    assert sig.name == "fetch_user"
    assert sig.is_async
    assert [p.name for p in sig.parameters] == ["id", "tags"]
    assert sig.parameters[0].descriptor == PrimitiveType("u32")
    assert sig.parameters[1].descriptor == ReferenceType(SequenceType(PrimitiveType("String")))
    assert sig.return_type == ResultType(SequenceType(PrimitiveType("String")), PrimitiveType("String"))
    assert sig.is_result
    assert not sig.is_unit
    assert sig.needs_lifetime
    assert sig.line == 1


def test_signature_is_immutable():
    sig = single("fn noop();")
    assert sig.return_type == UnitType()
    assert sig.is_unit
    assert not sig.needs_lifetime
    assert sig.parameters == ()
    with pytest.raises(AttributeError):
        sig.name = "other"


def test_owned_parameters_do_not_need_lifetime():
    sig = single("fn f(a: String, b: Option<Vec<i32>>);")
    assert not sig.needs_lifetime


@pytest.mark.parametrize("source, element, fragment", [
    ("fn f(&self);", "self", "receiver parameter"),
    ("fn f(self: Box<Self>, a: i32);", "self", "receiver parameter"),
    ("fn f((a, b): (i32, i32));", "(a, b)", "destructuring pattern"),
    ("fn f(a: i32, a: i32);", "a", "duplicate parameter name"),
    ("fn f(lambda: i32);", "lambda", "reserved word"),
    ("fn f(s: &mut String);", "s", "mutable borrow"),
    ("fn f(_runtime: i32);", "_runtime", "shadows a name the client stub uses"),
    ("fn f(try_call_f: i32);", "try_call_f", "shadows a name the client stub uses"),
    ("fn f(_F_ARGS: i32);", "_F_ARGS", "shadows a name the client stub uses"),
])
def test_unsupported_parameter_forms(source, element, fragment):
    with pytest.raises(UnsupportedParameterForm) as exc_info:
        single(source)
    diag = exc_info.value
    assert diag.function == "f"
    assert diag.element == element
    assert fragment in diag.message


def test_reserved_word_command_name():
    with pytest.raises(UnsupportedParameterForm) as exc_info:
        single("fn import();")
    assert exc_info.value.element is None
    assert exc_info.value.label == "signature"


def test_generic_function_is_unsupported():
    with pytest.raises(UnsupportedType) as exc_info:
        single("fn first<T>(items: Vec<T>) -> T;")
    assert exc_info.value.element is None
    assert "generic function '<T>'" in exc_info.value.message
    with pytest.raises(UnsupportedType):
        single("fn first<'a, T>(items: &'a [T]) -> T;")


def test_lifetime_only_generics_are_accepted():
    sig = single("fn greet<'a>(name: &'a str) -> String;")
    assert sig.parameters[0].descriptor == ReferenceType(PrimitiveType("str"))
    assert sig.return_type == PrimitiveType("String")
    assert sig.needs_lifetime
    assert single("fn pick<'a, 'b: 'a>(a: &'a str, b: &'b str) -> String;").needs_lifetime


def test_return_diagnostics_name_the_return_type():
    with pytest.raises(UnsupportedType) as exc_info:
        single("fn f() -> HashMap<String, i32>;")
    diag = exc_info.value
    assert diag.element == RETURN_ELEMENT
    assert diag.label == "return type"
    assert str(diag) == "f: return type: UnsupportedType: unsupported type 'HashMap<String, i32>'"


def test_diagnostic_report_format():
    with pytest.raises(UnsupportedType) as exc_info:
        single("\n\nfn f(m: HashMap<String, i32>);")
    diag = exc_info.value
    assert diag.label == "parameter 'm'"
    assert diag.line == 3
    assert diag.to_dict() == {
        "error_type": "UnsupportedType",
        "message": "unsupported type 'HashMap<String, i32>'",
        "context": {"function": "f", "element": "m", "reason": "UnsupportedType", "line": 3},
    }


def test_functions_are_isolated():
    """One rejected function never affects its neighbours."""
    sigs, diags = signatures("""
        fn good(a: i32) -> i32;
        fn bad(m: HashMap<String, i32>);
        fn also_good() -> String;
    """)
    assert [s.name for s in sigs] == ["good", "also_good"]
    assert [(d.function, d.reason) for d in diags] == [("bad", Reason.UNSUPPORTED_TYPE)]


def test_shared_failing_aggregate_reported_per_function():
    sigs, diags = signatures("""
        record Bad { m: HashMap<String, i32> }
        fn one(b: Bad);
        fn two() -> Vec<Bad>;
    """)
    assert sigs == []
    assert [(d.function, d.element) for d in diags] == [("one", "b"), ("two", RETURN_ELEMENT)]
    assert diags[0].message == diags[1].message == "field 'Bad.m': unsupported type 'HashMap<String, i32>'"


def test_duplicate_command_names_reject_every_declaration():
    sigs, diags = signatures("""
        fn ping() -> String;
        fn ping(a: i32);
        fn pong();
    """)
    assert [s.name for s in sigs] == ["pong"]
    assert all(isinstance(d, NameCollision) for d in diags)
    assert [(d.function, d.line) for d in diags] == [("ping", 2), ("ping", 3)]
    assert diags[0].message == "command name 'ping' is also declared on line 3"
    assert diags[1].message == "command name 'ping' is also declared on line 2"


def test_commands_mapping_to_same_generated_names_collide():
    sigs, diags = signatures("fn fetch_user();\nfn fetchUser();")
    assert sigs == []
    assert [d.reason for d in diags] == [Reason.NAME_COLLISION] * 2
    assert "same generated names as 'fetchUser' on line 2" in diags[0].message


def test_command_shadowing_module_names_collides():
    sigs, diags = signatures("""
        record User { id: u32 }
        fn User() -> User;
        fn HANDLERS();
        fn get(id: u32) -> User;
    """)
    assert [s.name for s in sigs] == ["get"]
    assert [(d.function, d.reason) for d in diags] == [
        ("User", Reason.NAME_COLLISION), ("HANDLERS", Reason.NAME_COLLISION),
    ]
    assert diags[0].message == "command name 'User' collides with 'User' in the generated modules"


def test_data_enum_parameter():
    sigs, diags = signatures("enum Shape display { Circle { radius: f64 }, Empty }\nfn area(s: Shape) -> Result<f64, Shape>;")
    assert diags == []
    assert sigs[0].return_type == ResultType(PrimitiveType("f64"), AggregateType("Shape", True))
