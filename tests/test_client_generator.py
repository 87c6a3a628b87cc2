"""Tests for the generated client stubs."""

from __future__ import annotations

import asyncio
import inspect

import pytest

from conftest import RecordingTransport

from bridgegen import BridgeFault, ClientGenerator, IDLParser, TransportError, build_signatures
from bridgegen.runtime import Err, LoopbackTransport, Ok, set_transport


DECLS = """
record User { id: u32, name: String, email: Option<String> }
record NotFound display "user {id} not found" { id: u32 }

fn add(a: i32, b: i32) -> i32;
async fn fetch_user(id: u32) -> Result<User, NotFound>;
fn log_message(level: String, message: &str);
fn validate(input: &str) -> Result<String, String>;
fn ping() -> String;
"""

IMPL = """
from bridgegen.runtime import Ok, Err
from TYPES_MODULE import User, NotFound

LOG = []


def add(a, b):
    return a + b


async def fetch_user(id):
    if id == 0:
        return Err(NotFound(id=id))
    return Ok(User(id=id, name=f"User{id}"))


def log_message(level, message):
    LOG.append((level, message))


def validate(input):
    return Ok(f"Valid: {input}") if input else Err("Input cannot be empty")


def ping():
    return "pong"
"""


def client_source(source: str) -> str:
    sigs, _ = build_signatures(IDLParser(source).parse())
    return ClientGenerator(sigs, "demo", "demo_types").generate()


def run(coro):
    return asyncio.run(coro)


def test_source_layout():
    src = client_source(DECLS)
    assert "from demo_types import User" in src
    assert "async def try_call_add(a: int, b: int) -> \"_runtime.Result[int]\":" in src
    assert "async def call_add(a: int, b: int) -> int:" in src
    assert "async def call_fetch_user(id: int) -> User:" in src
    assert "async def call_log_message(level: str, message: str) -> None:" in src
    assert 'return await _runtime.try_invoke("ping", None, None, _PING_RESPONSE)' in src
    assert 'return await _runtime.try_invoke("log_message", _LOG_MESSAGE_ARGS, ' \
           '{"level": level, "message": message}, None)' in src
    compile(src, "demo_client.py", "exec")


def test_references_are_erased():
    """Borrowed and owned declarations of the same data produce identical stubs."""
    assert client_source("fn f(s: &str) -> usize;") == client_source("fn f(s: String) -> usize;")
    assert client_source("fn f(b: &[u8]);") == client_source("fn f(b: Vec<u8>);")
    assert client_source("fn f(b: &'a [u8]);") == client_source("fn f(b: Vec<u8>);")


def test_every_stub_is_async(make_bridge):
    bridge = make_bridge(DECLS, IMPL)
    for name in ("add", "fetch_user", "log_message", "validate", "ping"):
        assert inspect.iscoroutinefunction(getattr(bridge.client, f"call_{name}"))
        assert inspect.iscoroutinefunction(getattr(bridge.client, f"try_call_{name}"))


def test_arguments_are_sent_by_name_in_declared_order(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    transport = RecordingTransport(response=5)
    set_transport(transport)

    assert run(bridge.client.call_add(2, 3)) == 5
    assert transport.calls == [("add", {"a": 2, "b": 3})]
    assert list(transport.calls[0][1]) == ["a", "b"]


def test_command_without_parameters_sends_null(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    transport = RecordingTransport(response="pong")
    set_transport(transport)

    assert run(bridge.client.call_ping()) == "pong"
    assert transport.calls == [("ping", None)]


def test_transport_failure(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    set_transport(RecordingTransport(error=TransportError("connection lost")))

    result = run(bridge.client.try_call_fetch_user(42))
    assert result == Err("connection lost")
    with pytest.raises(BridgeFault, match="^connection lost$"):
        run(bridge.client.call_fetch_user(42))


def test_unit_commands_resolve_to_none(make_bridge):
    bridge = make_bridge(DECLS, IMPL)
    assert run(bridge.client.call_log_message("info", "hello")) is None
    assert run(bridge.client.try_call_log_message("warn", "again")) == Ok(None)
    assert bridge.impl.LOG == [("info", "hello"), ("warn", "again")]


def test_result_commands_through_loopback(make_bridge):
    bridge = make_bridge(DECLS, IMPL)
    assert run(bridge.client.call_validate("x")) == "Valid: x"
    assert run(bridge.client.try_call_validate("")) == Err("Input cannot be empty")

    user = run(bridge.client.call_fetch_user(7))
    assert isinstance(user, bridge.types.User)
    assert user.name == "User7"
    assert run(bridge.client.try_call_fetch_user(0)) == Err("user 0 not found")


def test_serialization_failure(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    transport = RecordingTransport(response=0)
    set_transport(transport)

    result = run(bridge.client.try_call_add("two", 3))
    assert result.is_err()
    assert result.error.startswith("Failed to serialize arguments: ")
    assert transport.calls == []


def test_response_decode_failure(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    set_transport(RecordingTransport(response={"unexpected": True}))

    result = run(bridge.client.try_call_fetch_user(1))
    assert result.is_err()
    assert result.error.startswith("Failed to deserialize response: ")
    with pytest.raises(BridgeFault, match="Failed to deserialize response"):
        run(bridge.client.call_fetch_user(1))


def test_no_transport_configured(make_bridge):
    bridge = make_bridge(DECLS, IMPL, loopback=False)
    set_transport(None)
    assert run(bridge.client.try_call_ping()) == Err("No transport configured")


def test_unknown_command_on_host(make_bridge):
    bridge = make_bridge(DECLS, IMPL)
    bridge.host.HANDLERS.pop("ping")
    set_transport(LoopbackTransport(bridge.host.HANDLERS))
    assert run(bridge.client.try_call_ping()) == Err("Command not found: ping")


def test_concurrent_calls(make_bridge):
    bridge = make_bridge(DECLS, IMPL)

    async def many():
        return await asyncio.gather(*(bridge.client.call_add(i, 1) for i in range(10)))

    assert run(many()) == list(range(1, 11))
