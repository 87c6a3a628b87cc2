"""
Bridge generator - exception hierarchy

Generation-time failures carry the function, the offending element
(parameter name or the return type) and a reason from a fixed taxonomy.
Runtime failures are the only errors generated code raises.
"""

from enum import Enum
from typing import Optional


RETURN_ELEMENT = "return"


class Reason(str, Enum):
    """Categorical reason attached to every diagnostic"""
    UNSUPPORTED_TYPE = "UnsupportedType"
    MISPLACED_RESULT_TYPE = "MisplacedResultType"
    UNRENDERABLE_ERROR = "UnrenderableError"
    NAME_COLLISION = "NameCollision"
    UNSUPPORTED_PARAMETER_FORM = "UnsupportedParameterForm"


# =============================================================================
# BASE EXCEPTIONS
# =============================================================================

class BridgeGenException(Exception):
    """Base exception for all bridgegen errors"""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        """Convert exception to structured report format"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context
        }


class DeclarationSyntaxError(BridgeGenException):
    """Raised when the declaration text is malformed"""

    def __init__(self, message: str, line: int = 0):
        super().__init__(f"line {line}: {message}" if line else message, {"line": line})
        self.line = line


# =============================================================================
# GENERATION DIAGNOSTICS
# =============================================================================

class Diagnostic(BridgeGenException):
    """
    A classification or generation failure for one function.

    The classifier raises these without knowing which function it is
    working on; the signature builder fills in function and element
    with attach() before the diagnostic is reported.
    """

    reason: Reason = None

    def __init__(self, message: str, function: Optional[str] = None,
                 element: Optional[str] = None, line: int = 0):
        super().__init__(message)
        self.function = function
        self.element = element
        self.line = line
        self._sync_context()

    def _sync_context(self):
        self.context = {
            "function": self.function,
            "element": self.element,
            "reason": self.reason.value if self.reason else None,
            "line": self.line,
        }

    def attach(self, function: str, element: Optional[str] = None, line: int = 0) -> "Diagnostic":
        """Fill in location details that are still missing"""
        if self.function is None:
            self.function = function
        if self.element is None:
            self.element = element
        if not self.line:
            self.line = line
        self._sync_context()
        return self

    @property
    def label(self) -> str:
        """Human-readable name of the offending element"""
        if self.element is None:
            return "signature"
        if self.element == RETURN_ELEMENT:
            return "return type"
        return f"parameter '{self.element}'"

    def __str__(self) -> str:
        return f"{self.function}: {self.label}: {self.reason.value}: {self.message}"


class UnsupportedType(Diagnostic):
    """A parameter or return type cannot be classified"""
    reason = Reason.UNSUPPORTED_TYPE


class MisplacedResultType(Diagnostic):
    """A success/error type appears outside return position"""
    reason = Reason.MISPLACED_RESULT_TYPE


class UnrenderableError(Diagnostic):
    """The declared error channel has no textual rendering"""
    reason = Reason.UNRENDERABLE_ERROR


class NameCollision(Diagnostic):
    """Two functions in one run share a command name"""
    reason = Reason.NAME_COLLISION


class UnsupportedParameterForm(Diagnostic):
    """A parameter cannot be reconstructed at the boundary"""
    reason = Reason.UNSUPPORTED_PARAMETER_FORM


# =============================================================================
# RUNTIME EXCEPTIONS (raised by generated code)
# =============================================================================

class CommandError(BridgeGenException):
    """Host handler failure, already coerced to text"""
    pass


class TransportError(BridgeGenException):
    """Raised by a transport when a command cannot be delivered or fails"""
    pass


class BridgeFault(BridgeGenException, RuntimeError):
    """Unrecoverable client-side failure raised by call_<name> stubs"""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message, {"command": command} if command else None)
        self.command = command
