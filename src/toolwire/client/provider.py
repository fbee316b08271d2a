"""ToolProvider protocol: what the host needs from a tool source.

:class:`~toolwire.client.client.ProtocolClient` satisfies it; tests and
embedders can substitute anything with the same two coroutines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from toolwire.registry.models import ToolInfo


@runtime_checkable
class ToolProvider(Protocol):
    """Discovers and executes tools exposed by a server."""

    async def list_tools(self) -> list[ToolInfo]:
        """Return the tools the server currently exposes."""
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Execute a tool by name and return its output."""
        ...
