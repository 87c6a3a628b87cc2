"""Client Generator - generates caller-side stub pairs that invoke commands by name"""

from .type_mapper import TypeMapper
from .types import FunctionSignature, aggregate_names


class ClientGenerator:
    """Generates ``try_call_<name>`` / ``call_<name>`` stubs for each signature"""

    def __init__(self, signatures: list[FunctionSignature], namespace: str, types_module: str):
        self.signatures = signatures
        self.namespace = namespace
        self.types_module = types_module

    def generate(self) -> str:
        lines = [
            '"""',
            f"AUTO-GENERATED client stubs for {self.namespace}",
            "DO NOT EDIT - Generated from bridge declarations",
            "",
            "Install a transport with bridgegen.runtime.set_transport() before calling.",
            '"""',
            "",
            "from typing import Annotated, List, Optional",
            "",
            "from pydantic import Field, TypeAdapter",
            "from typing_extensions import TypedDict",
            "",
            "from bridgegen import runtime as _runtime",
        ]

        used = self._used_types()
        if used:
            lines.append(f"from {self.types_module} import {', '.join(used)}")
        lines.append("")

        for sig in self.signatures:
            lines.extend(self._generate_stubs(sig))

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

    def _generate_stubs(self, sig: FunctionSignature) -> list[str]:
        name = sig.name
        args_const = TypeMapper.constant_name(name, "ARGS")
        response_const = TypeMapper.constant_name(name, "RESPONSE")
        has_payload = TypeMapper.has_payload(sig.return_type)
        payload = TypeMapper.payload(sig.return_type)
        ret = TypeMapper.to_client(payload, constrained=False)

        lines = ["", f"# ── {name} ──"]
        if sig.parameters:
            args_type = TypeMapper.args_type_name(name)
            fields = ", ".join(f'"{p.name}": {TypeMapper.to_client(p.descriptor)}' for p in sig.parameters)
            lines.append(f'{args_type} = TypedDict("{args_type}", {{{fields}}})')
            lines.append(f"{args_const} = TypeAdapter({args_type})")
        if has_payload:
            lines.append(f"{response_const} = TypeAdapter({TypeMapper.to_client(payload)})")
        lines.append("")
        lines.append("")

        params = ", ".join(f"{p.name}: {TypeMapper.to_client(p.descriptor, constrained=False)}"
                           for p in sig.parameters)
        forwards = ", ".join(p.name for p in sig.parameters)
        if sig.parameters:
            values = "{" + ", ".join(f'"{p.name}": {p.name}' for p in sig.parameters) + "}"
            marshal = f"{args_const}, {values}"
        else:
            marshal = "None, None"
        response = response_const if has_payload else "None"

        lines.extend([
            f'async def try_call_{name}({params}) -> "_runtime.Result[{ret}]":',
            f'    """Invoke ``{name}``; failures are returned as Err(message)"""',
            f'    return await _runtime.try_invoke("{name}", {marshal}, {response})',
            "",
            "",
            f"async def call_{name}({params}) -> {ret}:",
            f'    """Invoke ``{name}``; failures raise BridgeFault"""',
            f"    return (await try_call_{name}({forwards})).unwrap()",
            "",
        ])
        return lines
