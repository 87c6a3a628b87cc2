"""Host Generator - generates the host-side command handler module"""

from .type_mapper import TypeMapper
from .types import FunctionSignature, aggregate_names


class HostGenerator:
    """
    Generates one handler per signature, named exactly as its command.

    A handler takes the wire arguments, decodes them, calls the real
    implementation positionally and returns the encoded result. Result
    returns are unwrapped, with the error channel coerced to text.
    """

    def __init__(self, signatures: list[FunctionSignature], namespace: str,
                 impl_module: str, types_module: str):
        self.signatures = signatures
        self.namespace = namespace
        self.impl_module = impl_module
        self.types_module = types_module

    def generate(self) -> str:
        lines = [
            '"""',
            f"AUTO-GENERATED host command handlers for {self.namespace}",
            "DO NOT EDIT - Generated from bridge declarations",
            '"""',
            "",
            "from typing import Annotated, Any, List, Optional, Tuple",
            "",
            "from pydantic import Field, TypeAdapter",
            "from typing_extensions import TypedDict",
            "",
            "from bridgegen import runtime as _runtime",
            "",
            f"import {self.impl_module} as _impl",
        ]

        used = self._used_types()
        if used:
            lines.append(f"from {self.types_module} import {', '.join(used)}")
        lines.append("")

        for sig in self.signatures:
            lines.extend(self._generate_handler(sig))

        lines.extend(self._generate_registry())
        return "\n".join(lines)

    def _used_types(self) -> list[str]:
        names = []
        for sig in self.signatures:
            descs = [p.descriptor for p in sig.parameters] + [TypeMapper.payload(sig.return_type)]
            for desc in descs:
                for name in aggregate_names(desc):
                    if name not in names:
                        names.append(name)
        return names

    def _generate_handler(self, sig: FunctionSignature) -> list[str]:
        name = sig.name
        args_const = TypeMapper.constant_name(name, "ARGS")
        return_const = TypeMapper.constant_name(name, "RETURN")
        has_payload = TypeMapper.has_payload(sig.return_type)

        lines = ["", f"# ── {name} ──"]
        if sig.parameters:
            args_type = TypeMapper.args_type_name(name)
            fields = ", ".join(f'"{p.name}": {TypeMapper.to_host(p.descriptor)}' for p in sig.parameters)
            lines.append(f'{args_type} = TypedDict("{args_type}", {{{fields}}})')
            lines.append(f"{args_const} = TypeAdapter({args_type})")
        if has_payload:
            payload = TypeMapper.to_host(TypeMapper.payload(sig.return_type))
            lines.append(f"{return_const} = TypeAdapter({payload})")
        lines.append("")
        lines.append("")

        keyword = "async def" if sig.is_async else "def"
        lines.append(f"{keyword} {name}(args: Any = None) -> Any:")
        doc = f"Host handler for the ``{name}`` command"
        if sig.needs_lifetime:
            doc += "; borrowed parameters arrive as read-only views"
        lines.append(f'    """{doc}"""')

        call_args = []
        if sig.parameters:
            lines.append(f'    params = _runtime.decode_args("{name}", {args_const}, args)')
            call_args = [f'params["{p.name}"]' for p in sig.parameters]
        call = f"_impl.{name}({', '.join(call_args)})"
        if sig.is_async:
            call = f"await {call}"

        if sig.is_result:
            lines.append(f"    result = _runtime.coerce_result(\"{name}\", {call})")
        elif has_payload:
            lines.append(f"    result = {call}")
        else:
            lines.append(f"    {call}")

        if has_payload:
            lines.append(f'    return {return_const}.dump_python(result, mode="json")')
        else:
            lines.append("    return None")
        lines.append("")
        return lines

    def _generate_registry(self) -> list[str]:
        lines = [
            "",
            "# Offered to the host's own command registration",
            "HANDLERS = {",
        ]
        for sig in self.signatures:
            lines.append(f'    "{sig.name}": {sig.name},')
        lines.append("}")
        lines.append("")
        lines.append("COMMANDS = tuple(HANDLERS)")
        lines.append("")
        return lines
