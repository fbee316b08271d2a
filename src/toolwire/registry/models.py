"""Tool contract and the data structures the registry hands out."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

ToolExecutable = Callable[[dict[str, Any]], Any | Awaitable[Any]]


@runtime_checkable
class Tool(Protocol):
    """Anything the registry can host.

    ``invoke`` receives validated arguments and may return a value or an
    awaitable resolving to one.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    def invoke(self, arguments: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class ToolDefinition:
    """A tool assembled from a plain callable.

    Usage::

        echo = ToolDefinition(
            name="echo",
            description="Echo the text back",
            input_schema={"type": "object", "properties": {"text": {"type": "string"}}},
            executable=lambda args: args["text"],
        )
    """

    name: str
    description: str
    executable: ToolExecutable
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object"})

    def invoke(self, arguments: dict[str, Any]) -> Any:
        return self.executable(arguments)


class ToolInfo(BaseModel):
    """Public description of a tool, as returned by ``tools/list``."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_tool(cls, tool: Tool) -> ToolInfo:
        return cls(name=tool.name, description=tool.description, input_schema=dict(tool.input_schema))


@dataclass(frozen=True)
class Violation:
    """One schema violation: where it happened and what went wrong."""

    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}
