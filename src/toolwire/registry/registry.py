"""ToolRegistry: holds named tools, validates their input and runs them."""

from __future__ import annotations

import inspect
import logging
import threading
from typing import Any

from toolwire.registry.errors import (
    DuplicateToolError,
    ToolDefinitionError,
    ToolExecutionError,
    ToolNotFoundError,
)
from toolwire.registry.models import Tool, ToolInfo
from toolwire.registry.validation import check_schema, validate_arguments
from toolwire.utils.telemetry import ATTR_TOOL_NAME, get_tracer

_tracer = get_tracer(__name__)


class ToolRegistry:
    """Maintains a name-to-tool map and executes tool calls.

    Usage::

        registry = ToolRegistry()
        registry.register(DiceTool())

        infos = registry.list()
        result = await registry.invoke("dice", {"sides": 20})

    Tool-internal failures never escape raw: they surface as
    :class:`ToolExecutionError` with the original exception as ``cause``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._lock = threading.RLock()
        self._logger = logger or logging.getLogger(__name__)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def register(self, tool: Tool, *, override: bool = False) -> None:
        """Add *tool*, replacing an existing one only when *override* is set.

        Raises:
            DuplicateToolError: If the name is taken and *override* is false.
            ToolDefinitionError: If the name is empty or the schema is invalid.
        """
        if not isinstance(tool.name, str) or not tool.name:
            raise ToolDefinitionError(str(tool.name), "name must be a non-empty string")
        check_schema(tool.name, tool.input_schema)

        with self._lock:
            if tool.name in self._tools and not override:
                raise DuplicateToolError(tool.name)
            replaced = tool.name in self._tools
            self._tools[tool.name] = tool

        self._logger.info("Tool %r %s", tool.name, "replaced" if replaced else "registered")

    def unregister(self, name: str) -> None:
        """Remove the tool called *name*.

        Raises:
            ToolNotFoundError: If no such tool is registered.
        """
        with self._lock:
            if name not in self._tools:
                raise ToolNotFoundError(name)
            del self._tools[name]
        self._logger.info("Tool %r unregistered", name)

    def get(self, name: str) -> Tool | None:
        with self._lock:
            return self._tools.get(name)

    def list(self) -> list[ToolInfo]:
        """Describe every registered tool. Order is not guaranteed."""
        with self._lock:
            tools = list(self._tools.values())
        return [ToolInfo.from_tool(tool) for tool in tools]

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate *arguments* and run the named tool.

        Raises:
            ToolNotFoundError: If no such tool is registered.
            ToolValidationError: If the arguments violate the tool's schema.
            ToolExecutionError: If the tool itself raised.
        """
        tool = self.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        with _tracer.start_as_current_span("tool.invoke") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)

            validated = validate_arguments(name, tool.input_schema, {} if arguments is None else arguments)
            self._logger.debug("Calling tool %r with %s", name, validated)

            try:
                output = tool.invoke(validated)
                if inspect.isawaitable(output):
                    output = await output
            except Exception as exc:
                self._logger.error("Tool %r failed: %s", name, exc)
                raise ToolExecutionError(name, exc) from exc

            self._logger.debug("Tool %r returned %r", name, output)
            return output
