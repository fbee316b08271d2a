"""toolwire: let a language model call tools hosted in another process."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from toolwire.client.client import ProtocolClient as ProtocolClient
    from toolwire.host.orchestrator import HostOrchestrator as HostOrchestrator
    from toolwire.registry.registry import ToolRegistry as ToolRegistry
    from toolwire.server.server import ProtocolServer as ProtocolServer

_LAZY_EXPORTS = {
    "ProtocolClient": "toolwire.client.client",
    "HostOrchestrator": "toolwire.host.orchestrator",
    "ToolRegistry": "toolwire.registry.registry",
    "ProtocolServer": "toolwire.server.server",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'toolwire' has no attribute {name!r}")
