"""Signature model: function declarations to classified, immutable signatures"""

import keyword

from .classifier import TypeClassifier
from .diagnostics import (
    Diagnostic, UnsupportedType, NameCollision, UnsupportedParameterForm, RETURN_ELEMENT,
)
from .type_mapper import TypeMapper
from .types import ParsedIDL, FunctionDecl, FunctionSignature, ClassifiedParam, contains_reference


def build_signature(decl: FunctionDecl, classifier: TypeClassifier) -> FunctionSignature:
    """
    Build the signature of one function.

    Raises:
        Diagnostic: the first problem found, with function and element set
    """
    if decl.generics is not None and not _lifetimes_only(decl.generics):
        raise UnsupportedType(f"generic function '<{decl.generics}>' cannot be bridged",
                              decl.name, None, decl.line)
    if keyword.iskeyword(decl.name):
        raise UnsupportedParameterForm(f"command name '{decl.name}' is a Python reserved word",
                                       decl.name, None, decl.line)

    # Globals the client stub body refers to
    stub_names = {
        "_runtime", f"try_call_{decl.name}",
        TypeMapper.constant_name(decl.name, "ARGS"), TypeMapper.constant_name(decl.name, "RESPONSE"),
    }
    seen = set()
    params = []
    for p in decl.params:
        if p.form == "receiver":
            raise UnsupportedParameterForm(
                "receiver parameter; only free functions can be bridged", decl.name, p.name, decl.line)
        if p.form == "pattern":
            raise UnsupportedParameterForm(
                f"destructuring pattern '{p.name}' has no name to marshal under", decl.name, p.name, decl.line)
        if keyword.iskeyword(p.name):
            raise UnsupportedParameterForm(
                f"'{p.name}' is a Python reserved word", decl.name, p.name, decl.line)
        if p.name in stub_names:
            raise UnsupportedParameterForm(
                f"'{p.name}' shadows a name the client stub uses", decl.name, p.name, decl.line)
        if p.name in seen:
            raise UnsupportedParameterForm("duplicate parameter name", decl.name, p.name, decl.line)
        seen.add(p.name)

        try:
            desc = classifier.classify_param(p.type)
        except Diagnostic as e:
            raise e.attach(decl.name, p.name, decl.line)
        params.append(ClassifiedParam(name=p.name, descriptor=desc, type=p.type))

    try:
        return_type = classifier.classify_return(decl.return_type)
    except Diagnostic as e:
        raise e.attach(decl.name, RETURN_ELEMENT, decl.line)

    return FunctionSignature(
        name=decl.name,
        is_async=decl.is_async,
        parameters=tuple(params),
        return_type=return_type,
        needs_lifetime=any(contains_reference(p.descriptor) for p in params),
        line=decl.line,
    )


def _lifetimes_only(generics: str) -> bool:
    return all(part.strip().startswith("'") for part in generics.split(",") if part.strip())


def _generated_names(name: str) -> set[str]:
    return {name, TypeMapper.args_type_name(name), TypeMapper.constant_name(name, "")}


# Module-level names of the generated modules that a command may not shadow
RESERVED_MODULE_NAMES = TypeClassifier.GENERATED_MODULE_NAMES | {"HANDLERS", "COMMANDS", "_impl", "_runtime"}


def _collision_message(decl: FunctionDecl, clashes: list[FunctionDecl]) -> str:
    same = [str(d.line) for d in clashes if d.name == decl.name]
    if same:
        return f"command name '{decl.name}' is also declared on line {', '.join(same)}"
    other = clashes[0]
    return f"command name '{decl.name}' maps to the same generated names as '{other.name}' on line {other.line}"


def build_signatures(idl: ParsedIDL) -> tuple[list[FunctionSignature], list[Diagnostic]]:
    """
    Build signatures for every function in a parsed file.

    Functions are independent: a diagnostic for one never affects another,
    except that all functions sharing a command name (or a generated
    identifier derived from it) are rejected together.
    """
    classifier = TypeClassifier(idl)
    names = {id(decl): _generated_names(decl.name) for decl in idl.functions}

    signatures = []
    diagnostics = []
    for decl in idl.functions:
        clashes = [d for d in idl.functions if d is not decl and names[id(d)] & names[id(decl)]]
        if clashes:
            diagnostics.append(NameCollision(_collision_message(decl, clashes), decl.name, None, decl.line))
            continue
        taken = sorted(n for n in names[id(decl)] if n in RESERVED_MODULE_NAMES or idl.find_type(n))
        if taken:
            diagnostics.append(NameCollision(
                f"command name '{decl.name}' collides with '{taken[0]}' in the generated modules",
                decl.name, None, decl.line))
            continue
        try:
            signatures.append(build_signature(decl, classifier))
        except Diagnostic as e:
            diagnostics.append(e)

    return signatures, diagnostics
