"""Tool registry: tool contract, schema validation and execution."""

from toolwire.registry.errors import (
    DuplicateToolError,
    RegistryError,
    ToolDefinitionError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolValidationError,
)
from toolwire.registry.models import Tool, ToolDefinition, ToolInfo, Violation
from toolwire.registry.registry import ToolRegistry

__all__ = [
    "DuplicateToolError",
    "RegistryError",
    "Tool",
    "ToolDefinition",
    "ToolDefinitionError",
    "ToolExecutionError",
    "ToolInfo",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolValidationError",
    "Violation",
]
