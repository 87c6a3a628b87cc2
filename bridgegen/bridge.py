"""Bridge generation: declaration text to host, client and shared types modules"""

from dataclasses import dataclass, field
from typing import Optional

from .client_generator import ClientGenerator
from .common_generator import CommonGenerator
from .diagnostics import Diagnostic
from .host_generator import HostGenerator
from .parser import IDLParser
from .signature import build_signatures
from .types import FunctionSignature, ParsedIDL


@dataclass
class BridgeArtifacts:
    """Generated module sources plus what produced them"""
    namespace: str
    types_module: str
    host_module: str
    client_module: str
    files: dict[str, str] = field(default_factory=dict)
    signatures: list[FunctionSignature] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def generate_bridge(
    source: str,
    namespace: str,
    impl_module: Optional[str] = None,
    types_module: Optional[str] = None,
) -> BridgeArtifacts:
    """
    Generate all artifacts for one declaration file.

    Functions with diagnostics are left out of every artifact; the rest
    are generated normally.

    Raises:
        DeclarationSyntaxError: If the declaration text cannot be parsed
    """
    idl = IDLParser(source).parse()
    return generate_from_idl(idl, namespace, impl_module, types_module)


def generate_from_idl(
    idl: ParsedIDL,
    namespace: str,
    impl_module: Optional[str] = None,
    types_module: Optional[str] = None,
) -> BridgeArtifacts:
    impl_module = impl_module or f"{namespace}_impl"
    types_module = types_module or f"{namespace}_types"
    host_module = f"{namespace}_host"
    client_module = f"{namespace}_client"

    signatures, diagnostics = build_signatures(idl)

    common = CommonGenerator(idl, signatures, namespace)
    host = HostGenerator(signatures, namespace, impl_module, types_module)
    client = ClientGenerator(signatures, namespace, types_module)

    files = {
        f"{types_module.rsplit('.', 1)[-1]}.py": common.generate(),
        f"{host_module}.py": host.generate(),
        f"{client_module}.py": client.generate(),
    }

    return BridgeArtifacts(
        namespace=namespace,
        types_module=types_module,
        host_module=host_module,
        client_module=client_module,
        files=files,
        signatures=signatures,
        diagnostics=diagnostics,
    )
