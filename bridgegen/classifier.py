"""Type classification: declared type expressions to boundary descriptors"""

import keyword
from typing import Optional, Union

from .diagnostics import (
    Diagnostic, UnsupportedType, MisplacedResultType, UnrenderableError,
    UnsupportedParameterForm,
)
from .types import (
    ParsedIDL, Record, Enum, Member, TypeExpr, TypeDescriptor,
    PrimitiveType, UnitType, OptionalType, SequenceType, ResultType,
    ReferenceType, AggregateType, TypeParam, contains_reference, substitute,
    REF, MUT_REF, UNIT, SLICE,
)


class TypeClassifier:
    """
    Maps each type expression to exactly one descriptor.

    Rules are tried in a fixed order and the first match wins:
    primitive, unit, optional, result, sequence, reference, aggregate
    or type parameter.
    Anything left over is an UnsupportedType diagnostic.
    """

    PRIMITIVES = {
        'bool', 'char', 'str', 'String',
        'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
        'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
        'f32', 'f64',
    }
    OPTIONAL_WRAPPERS = {'Option'}
    RESULT_WRAPPERS = {'Result'}
    SEQUENCE_WRAPPERS = {'Vec'}

    # Discriminator field of data-carrying enum variants on the wire
    VARIANT_TAG = 'kind'

    # Imported by the generated modules; declared types may not shadow them
    GENERATED_MODULE_NAMES = {
        'Annotated', 'Any', 'BaseModel', 'Enum', 'Field', 'List', 'Literal',
        'Generic', 'Optional', 'Tuple', 'TypeAdapter', 'TypedDict', 'TypeVar', 'Union',
    }

    # Builtins that generated annotations refer to
    ANNOTATION_BUILTINS = {'bool', 'float', 'int', 'str'}

    def __init__(self, idl: ParsedIDL):
        self.idl = idl
        self._aggregates: dict[tuple, AggregateType] = {}
        self._failed: dict[tuple, Diagnostic] = {}

    def classify_param(self, expr: TypeExpr) -> TypeDescriptor:
        """Classify a parameter type"""
        return self._classify(expr, at_return=False, allow_unit=False)

    def classify_return(self, expr: Optional[TypeExpr]) -> TypeDescriptor:
        """Classify a return type; a missing return type is unit"""
        if expr is None:
            return UnitType()
        return self._classify(expr, at_return=True, allow_unit=True)

    def classify_member(self, decl: Union[Record, Enum], member: Member) -> TypeDescriptor:
        """Classify a field inside its own declaration, where type parameters stay open"""
        return self._classify(member.type, False, False, (decl.name,), frozenset(decl.params))

    def _classify(self, expr: TypeExpr, at_return: bool, allow_unit: bool,
                  visiting: tuple = (), scope: frozenset = frozenset()) -> TypeDescriptor:
        ident = expr.ident

        # 1. primitive / text
        if ident in self.PRIMITIVES and not expr.args:
            return PrimitiveType(ident)

        # 2. unit
        if expr.name == UNIT:
            if not allow_unit:
                raise UnsupportedType("unit type '()' is only permitted as a return type")
            return UnitType()

        # 3. optional
        if ident in self.OPTIONAL_WRAPPERS:
            inner = self._classify(self._single_arg(expr), False, False, visiting, scope)
            if isinstance(_strip_references(inner), OptionalType):
                raise UnsupportedType(
                    f"nested optional '{expr}' cannot keep absence distinct on the wire")
            return OptionalType(inner)

        # 4. result, return position only
        if ident in self.RESULT_WRAPPERS:
            if not at_return:
                raise MisplacedResultType(f"'{expr}': Result not permitted outside return position")
            if len(expr.args) != 2:
                raise UnsupportedType(f"'{expr}': Result needs exactly two type arguments")
            ok_expr, err_expr = expr.args
            ok = self._classify(ok_expr, False, True, visiting, scope)
            err = self._classify(err_expr, False, True, visiting, scope)
            if not self.is_renderable(err):
                raise UnrenderableError(f"error type '{err_expr}' has no textual rendering")
            return ResultType(ok, err)

        # 5. ordered homogeneous collection
        if ident in self.SEQUENCE_WRAPPERS or expr.name == SLICE:
            return SequenceType(self._classify(self._single_arg(expr), False, False, visiting, scope))

        # 6. borrowed view
        if expr.name == MUT_REF:
            raise UnsupportedParameterForm(
                f"mutable borrow '{expr}' cannot be reconstructed at the boundary")
        if expr.name == REF:
            return ReferenceType(self._classify(expr.args[0], False, False, visiting, scope))

        # 7. declared record or enum, or an open type parameter of one
        if not expr.args and expr.name in scope:
            return TypeParam(expr.name)
        if self.idl.find_type(ident) is not None:
            return self.aggregate(ident, visiting, expr.args, scope)

        # 8. anything else
        raise UnsupportedType(f"unsupported type '{expr}'")

    def _single_arg(self, expr: TypeExpr) -> TypeExpr:
        if len(expr.args) != 1:
            raise UnsupportedType(f"'{expr}' needs exactly one type argument")
        return expr.args[0]

    def aggregate(self, name: str, visiting: tuple = (), args: tuple = (),
                  scope: frozenset = frozenset()) -> AggregateType:
        """
        Resolve a declared aggregate, checking that all of its fields classify.

        A generic aggregate is resolved per instantiation: its type arguments
        are substituted into the field types before they are classified.
        """
        label = name if not args else f"{name}<{', '.join(str(a) for a in args)}>"
        key = (label, scope)
        if key in self._aggregates:
            return self._aggregates[key]
        if key in self._failed:
            cached = self._failed[key]
            raise type(cached)(cached.message)
        if name in visiting:
            cycle = " -> ".join([*visiting[visiting.index(name):], name])
            raise UnsupportedType(f"self-referential type '{name}' ({cycle})")

        decl = self.idl.find_type(name)
        visiting = (*visiting, name)
        if name in self.GENERATED_MODULE_NAMES:
            raise self._fail(key, UnsupportedType(f"type name '{name}' shadows a name the generated modules import"))
        if isinstance(decl, Enum) and decl.params:
            raise self._fail(key, UnsupportedType(
                f"enum '{name}' takes type parameters; only records can be generic"))
        if len(args) != len(decl.params):
            raise self._fail(key, UnsupportedType(
                f"'{label}' needs {len(decl.params)} type argument(s), got {len(args)}"))
        if isinstance(decl, Record):
            members = [(f"{name}.{m.name}", m) for m in decl.members]
        else:
            members = [(f"{name}::{v.name}.{m.name}", m) for v in decl.variants for m in v.members]
            for v in decl.variants:
                if keyword.iskeyword(v.name):
                    raise self._fail(key, UnsupportedType(
                        f"variant '{name}::{v.name}' is a Python reserved word"))
                if any(m.name == self.VARIANT_TAG for m in v.members):
                    raise self._fail(key, UnsupportedType(
                        f"field '{name}::{v.name}.{self.VARIANT_TAG}' collides with the variant tag"))
                if not decl.is_unit_only and self.idl.find_type(f"{name}{v.name}") is not None:
                    raise self._fail(key, UnsupportedType(
                        f"variant class '{name}{v.name}' collides with a declared type"))

        arg_descs = []
        for arg in args:
            try:
                arg_descs.append(self._classify(arg, False, False, visiting, scope))
            except Diagnostic as e:
                if visiting[:-1]:
                    raise
                raise self._fail(key, type(e)(f"type argument of '{label}': {e.message}")) from e

        for param in decl.params:
            if param in self.GENERATED_MODULE_NAMES or param in self.ANNOTATION_BUILTINS:
                raise self._fail(key, UnsupportedType(
                    f"type parameter '{param}' of '{name}' shadows a name used in annotations"))

        mapping = dict(zip(decl.params, args))
        outer = scope - set(decl.params)
        for path, member in members:
            if keyword.iskeyword(member.name):
                raise self._fail(key, UnsupportedType(f"field '{path}' is a Python reserved word"))
            if member.name.startswith(("_", "model_")):
                raise self._fail(key, UnsupportedType(f"field '{path}' clashes with model attribute names"))
            if self._is_annotation_name(member.name, decl):
                raise self._fail(key, UnsupportedType(f"field '{path}' shadows a name used in annotations"))
            captured = outer & _type_names(member.type)
            if captured:
                # Only substituted arguments may refer to the enclosing type parameters
                raise self._fail(key, UnsupportedType(
                    f"field '{path}': unsupported type '{sorted(captured)[0]}'"))
            try:
                desc = self._classify(substitute(member.type, mapping), False, False, visiting, scope)
            except Diagnostic as e:
                if visiting[:-1]:
                    # Let the outermost aggregate report the field path
                    raise
                raise self._fail(key, type(e)(f"field '{path}': {e.message}")) from e
            if contains_reference(desc):
                raise self._fail(key, UnsupportedType(f"field '{path}': borrowed fields are not supported"))

        agg = AggregateType(name, decl.display, tuple(arg_descs))
        self._aggregates[key] = agg
        return agg

    def _is_annotation_name(self, name: str, decl: Union[Record, Enum]) -> bool:
        # Class bodies bind field defaults, which would shadow later annotations
        return (name in self.ANNOTATION_BUILTINS or name in self.GENERATED_MODULE_NAMES
                or name in decl.params or self.idl.find_type(name) is not None)

    def _fail(self, key: tuple, error: Diagnostic) -> Diagnostic:
        # Callers attach function details to what they catch, so keep a private copy
        self._failed[key] = type(error)(error.message)
        return error

    @classmethod
    def is_renderable(cls, desc: TypeDescriptor) -> bool:
        """Check if a descriptor supports a textual rendering for error coercion"""
        if isinstance(desc, PrimitiveType):
            return True
        if isinstance(desc, ReferenceType):
            return cls.is_renderable(desc.referent)
        if isinstance(desc, AggregateType):
            return desc.renderable
        return False


def _strip_references(desc: TypeDescriptor) -> TypeDescriptor:
    while isinstance(desc, ReferenceType):
        desc = desc.referent
    return desc



def _type_names(expr: TypeExpr) -> set:
    names = {expr.name}
    for arg in expr.args:
        names |= _type_names(arg)
    return names
