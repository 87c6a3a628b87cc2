"""
Runtime support imported by generated host and client modules.

Client side: result values, transport registration and try_invoke().
Host side: argument decoding, error coercion and dispatch().
LoopbackTransport connects the two in one process.
"""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, TypeVar, Union

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .diagnostics import BridgeFault, CommandError, TransportError

T = TypeVar("T")
E = TypeVar("E")

Transport = Callable[[str, Any], Awaitable[Any]]


# ══════════════════════════════════════════════════════════════
# Result values
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome"""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """
    Failed outcome.

    Client stubs always carry the textual failure message; host
    implementations may carry any error value that renders with str().
    """
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise BridgeFault(str(self.error))


Result = Union[Ok[T], Err[str]]


# ══════════════════════════════════════════════════════════════
# Client side
# ══════════════════════════════════════════════════════════════

_transport: Optional[Transport] = None


def set_transport(transport: Optional[Transport]):
    """Install the transport used by every generated client stub"""
    global _transport
    _transport = transport


def get_transport() -> Optional[Transport]:
    return _transport


async def invoke(command: str, args: Any) -> Any:
    """Send one command through the installed transport"""
    if _transport is None:
        raise TransportError("No transport configured", {"command": command})
    return await _transport(command, args)


async def try_invoke(
    command: str,
    args_adapter: Optional[TypeAdapter],
    values: Optional[Mapping[str, Any]],
    response_adapter: Optional[TypeAdapter],
) -> Result:
    """
    Marshal arguments, invoke a command and decode the response.

    Never raises: every failure becomes an Err carrying its message.

    Args:
        command: Command name, used verbatim on the wire
        args_adapter: Adapter for the argument mapping; None when there are no parameters
        values: Argument values keyed by parameter name, in declared order
        response_adapter: Adapter for the success payload; None for unit results
    """
    args = None
    if args_adapter is not None:
        try:
            args = args_adapter.dump_python(args_adapter.validate_python(values), mode="json")
        except (ValidationError, PydanticSerializationError) as e:
            return Err(f"Failed to serialize arguments: {e}")

    try:
        response = await invoke(command, args)
    except Exception as e:
        return Err(str(e) or e.__class__.__name__)

    if response_adapter is None:
        return Ok(None)
    try:
        return Ok(response_adapter.validate_python(response))
    except ValidationError as e:
        return Err(f"Failed to deserialize response: {e}")


# ══════════════════════════════════════════════════════════════
# Host side
# ══════════════════════════════════════════════════════════════

def decode_args(command: str, adapter: TypeAdapter, args: Any) -> dict:
    """Decode the wire arguments of a command into a mapping of typed values"""
    try:
        return adapter.validate_python(args)
    except ValidationError as e:
        raise CommandError(f"invalid args for command '{command}': {e}",
                           {"command": command}) from e


def coerce_result(command: str, result: Any) -> Any:
    """Unwrap an implementation's Ok, or turn its Err into a textual CommandError"""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise CommandError(str(result.error), {"command": command})
    raise TypeError(
        f"command '{command}' must return Ok or Err, got {type(result).__name__}")


async def dispatch(handlers: Mapping[str, Callable], command: str, args: Any) -> dict:
    """
    Run one host handler and wrap the outcome in a status envelope.

    Returns:
        {"status": "success", "result": ...} or {"status": "error", "message": ...}
    """
    handler = handlers.get(command)
    if handler is None:
        return {"status": "error", "message": f"Command not found: {command}"}

    try:
        result = handler(args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        return {"status": "error", "message": str(e)}

    return {"status": "success", "result": result}


class LoopbackTransport:
    """
    In-process transport routing invocations to host handlers.

    Request and response envelope both go through JSON, so values cross
    the same structured-value boundary a real transport would impose.
    """

    def __init__(self, handlers: Mapping[str, Callable]):
        self.handlers = dict(handlers)

    async def __call__(self, command: str, args: Any) -> Any:
        request = json.loads(json.dumps({"command": command, "args": args}))
        envelope = await dispatch(self.handlers, request["command"], request["args"])
        envelope = json.loads(json.dumps(envelope))
        if envelope["status"] == "error":
            raise TransportError(envelope["message"], {"command": command})
        return envelope.get("result")
