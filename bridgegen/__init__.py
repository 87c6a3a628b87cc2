"""
Bridge Code Generator Package

Parses Rust-like function declarations and generates:
  1. Host command handlers, registered by command name
  2. Client stub pairs (call_<name> / try_call_<name>) that invoke them
  3. Shared pydantic types for declared records and enums
"""

from .types import (
    TypeExpr, Param, Member, Record, Variant, Enum, FunctionDecl, ParsedIDL,
    PrimitiveType, UnitType, OptionalType, SequenceType, ResultType,
    ReferenceType, AggregateType, TypeParam, ClassifiedParam, FunctionSignature,
)
from .parser import IDLParser, parse_type
from .classifier import TypeClassifier
from .signature import build_signature, build_signatures
from .type_mapper import TypeMapper
from .common_generator import CommonGenerator
from .host_generator import HostGenerator
from .client_generator import ClientGenerator
from .bridge import BridgeArtifacts, generate_bridge, generate_from_idl
from .diagnostics import (
    Reason, BridgeGenException, DeclarationSyntaxError, Diagnostic,
    UnsupportedType, MisplacedResultType, UnrenderableError, NameCollision,
    UnsupportedParameterForm, CommandError, TransportError, BridgeFault,
)

__all__ = [
    'TypeExpr', 'Param', 'Member', 'Record', 'Variant', 'Enum', 'FunctionDecl', 'ParsedIDL',
    'PrimitiveType', 'UnitType', 'OptionalType', 'SequenceType', 'ResultType',
    'ReferenceType', 'AggregateType', 'TypeParam', 'ClassifiedParam', 'FunctionSignature',
    'IDLParser', 'parse_type', 'TypeClassifier', 'build_signature', 'build_signatures',
    'TypeMapper', 'CommonGenerator', 'HostGenerator', 'ClientGenerator',
    'BridgeArtifacts', 'generate_bridge', 'generate_from_idl',
    'Reason', 'BridgeGenException', 'DeclarationSyntaxError', 'Diagnostic',
    'UnsupportedType', 'MisplacedResultType', 'UnrenderableError', 'NameCollision',
    'UnsupportedParameterForm', 'CommandError', 'TransportError', 'BridgeFault',
]
