"""Data types for bridge declarations and classified signatures"""

from dataclasses import dataclass, field
from typing import Optional, Union


# Special TypeExpr names for non-path forms
REF = "&"
MUT_REF = "&mut"
UNIT = "()"
TUPLE = "(,)"
SLICE = "[]"
ARRAY = "[;]"
IMPL = "impl"
DYN = "dyn"


@dataclass(frozen=True)
class TypeExpr:
    """Parsed type expression, e.g. ``Option<Vec<&str>>``"""
    name: str
    args: tuple = ()
    lifetime: Optional[str] = None

    @property
    def ident(self) -> str:
        """Last path segment (``std::string::String`` -> ``String``)"""
        return self.name.rsplit("::", 1)[-1]

    @property
    def is_reference(self) -> bool:
        return self.name in (REF, MUT_REF)

    def __str__(self) -> str:
        if self.name in (REF, MUT_REF):
            lifetime = f"{self.lifetime} " if self.lifetime else ""
            mut = "mut " if self.name == MUT_REF else ""
            return f"&{lifetime}{mut}{self.args[0]}"
        if self.name == UNIT:
            return "()"
        if self.name == TUPLE:
            return "(" + ", ".join(str(a) for a in self.args) + ")"
        if self.name == SLICE:
            return f"[{self.args[0]}]"
        if self.name == ARRAY:
            return f"[{self.args[0]}; {self.args[1]}]"
        if self.name in (IMPL, DYN):
            return f"{self.name} {self.args[0]}"
        if self.args:
            return f"{self.name}<" + ", ".join(str(a) for a in self.args) + ">"
        return self.name


@dataclass
class Param:
    """Function parameter"""
    name: str
    type: Optional[TypeExpr]
    form: str = "named"  # named | receiver | pattern


@dataclass
class Member:
    """Record or variant field"""
    name: str
    type: TypeExpr


@dataclass
class Record:
    """Record declaration"""
    name: str
    members: list[Member] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    display: bool = False
    display_template: Optional[str] = None
    line: int = 0


@dataclass
class Variant:
    """Enum variant; unit variants have no members"""
    name: str
    members: list[Member] = field(default_factory=list)


@dataclass
class Enum:
    """Enum (tagged union) declaration"""
    name: str
    variants: list[Variant] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    display: bool = False
    line: int = 0

    @property
    def is_unit_only(self) -> bool:
        return all(not v.members for v in self.variants)


@dataclass
class FunctionDecl:
    """Function declaration as written"""
    name: str
    params: list[Param] = field(default_factory=list)
    return_type: Optional[TypeExpr] = None
    is_async: bool = False
    generics: Optional[str] = None
    line: int = 0


@dataclass
class ParsedIDL:
    """Complete parsed declaration file"""
    records: list[Record] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)

    def find_type(self, name: str) -> Optional[Union[Record, Enum]]:
        for decl in self.records:
            if decl.name == name:
                return decl
        for decl in self.enums:
            if decl.name == name:
                return decl
        return None


# ══════════════════════════════════════════════════════════════
# Type descriptors
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PrimitiveType:
    """Numeric, boolean or textual value"""
    name: str


@dataclass(frozen=True)
class UnitType:
    """No value"""


@dataclass(frozen=True)
class OptionalType:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class SequenceType:
    element: "TypeDescriptor"


@dataclass(frozen=True)
class ResultType:
    """Two-channel success/error return"""
    ok: "TypeDescriptor"
    err: "TypeDescriptor"


@dataclass(frozen=True)
class ReferenceType:
    """Borrowed view; owned on the wire"""
    referent: "TypeDescriptor"


@dataclass(frozen=True)
class AggregateType:
    """Declared record or enum"""
    name: str
    renderable: bool = False
    args: tuple = ()  # descriptors of the type arguments of a generic aggregate


@dataclass(frozen=True)
class TypeParam:
    """Type parameter of a generic aggregate, inside its own declaration"""
    name: str


TypeDescriptor = Union[
    PrimitiveType, UnitType, OptionalType, SequenceType,
    ResultType, ReferenceType, AggregateType, TypeParam,
]


def contains_reference(desc: TypeDescriptor) -> bool:
    """Check if a descriptor has a borrowed view anywhere inside it"""
    if isinstance(desc, ReferenceType):
        return True
    if isinstance(desc, OptionalType):
        return contains_reference(desc.inner)
    if isinstance(desc, SequenceType):
        return contains_reference(desc.element)
    if isinstance(desc, ResultType):
        return contains_reference(desc.ok) or contains_reference(desc.err)
    return False


def aggregate_names(desc: TypeDescriptor) -> list[str]:
    """Names of aggregates referenced by a descriptor, outermost first"""
    if isinstance(desc, AggregateType):
        names = [desc.name]
        for arg in desc.args:
            names.extend(aggregate_names(arg))
        return names
    if isinstance(desc, OptionalType):
        return aggregate_names(desc.inner)
    if isinstance(desc, SequenceType):
        return aggregate_names(desc.element)
    if isinstance(desc, ReferenceType):
        return aggregate_names(desc.referent)
    if isinstance(desc, ResultType):
        return aggregate_names(desc.ok) + aggregate_names(desc.err)
    return []


@dataclass(frozen=True)
class ClassifiedParam:
    """Parameter with its classified shape"""
    name: str
    descriptor: TypeDescriptor
    type: TypeExpr


@dataclass(frozen=True)
class FunctionSignature:
    """Immutable, classified view of one function; input to both generators"""
    name: str
    is_async: bool
    parameters: tuple
    return_type: TypeDescriptor
    needs_lifetime: bool = False
    line: int = 0

    @property
    def is_unit(self) -> bool:
        return isinstance(self.return_type, UnitType)

    @property
    def is_result(self) -> bool:
        return isinstance(self.return_type, ResultType)


def substitute(expr: TypeExpr, mapping: dict) -> TypeExpr:
    """Replace type parameter names in ``expr`` with the mapped type expressions"""
    if not mapping:
        return expr
    if not expr.args and expr.name in mapping:
        return mapping[expr.name]
    return TypeExpr(expr.name, tuple(substitute(a, mapping) for a in expr.args), expr.lifetime)
