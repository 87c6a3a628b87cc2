"""Shared fixtures: build a bridge into tmp_path and import its modules."""

from __future__ import annotations

import importlib
import sys
import uuid
from types import SimpleNamespace

import pytest

from bridgegen import generate_bridge
from bridgegen.runtime import LoopbackTransport, set_transport


class RecordingTransport:
    """Transport double that records every invocation."""

    def __init__(self, response=None, error: Exception | None = None):
        self.calls = []
        self.response = response
        self.error = error

    async def __call__(self, command, args):
        self.calls.append((command, args))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def _reset_transport():
    yield
    set_transport(None)


@pytest.fixture
def make_bridge(tmp_path, monkeypatch):
    """
    Generate a bridge from declaration text and import it.

    The implementation source may use TYPES_MODULE as a placeholder for the
    generated types module name. The client is wired to the host through
    LoopbackTransport unless loopback=False.
    """
    loaded = []
    monkeypatch.syspath_prepend(str(tmp_path))

    def build(source: str, impl_source: str = "", loopback: bool = True):
        namespace = f"bridge_{uuid.uuid4().hex[:12]}"
        artifacts = generate_bridge(source, namespace)
        for filename, content in artifacts.files.items():
            (tmp_path / filename).write_text(content)
        impl = impl_source.replace("TYPES_MODULE", artifacts.types_module)
        (tmp_path / f"{namespace}_impl.py").write_text(impl)
        importlib.invalidate_caches()

        names = [artifacts.types_module, f"{namespace}_impl", artifacts.host_module, artifacts.client_module]
        loaded.extend(names)
        types_mod, impl_mod, host, client = (importlib.import_module(n) for n in names)
        if loopback:
            set_transport(LoopbackTransport(host.HANDLERS))
        return SimpleNamespace(artifacts=artifacts, types=types_mod, impl=impl_mod, host=host, client=client)

    yield build

    for name in loaded:
        sys.modules.pop(name, None)
