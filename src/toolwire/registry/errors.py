"""Error types raised by the tool registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolwire.registry.models import Violation


class RegistryError(Exception):
    """Base error for all registry failures."""


class DuplicateToolError(RegistryError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool already registered: {name}")


class ToolNotFoundError(RegistryError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ToolDefinitionError(RegistryError):
    """A tool cannot be registered because its definition is unusable."""

    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid tool definition for {name!r}: {detail}")


class ToolValidationError(RegistryError):
    """Tool arguments failed schema validation.

    ``violations`` lists every problem found, not only the first.
    """

    def __init__(self, name: str, violations: list[Violation]) -> None:
        self.name = name
        self.violations = violations
        summary = "; ".join(f"{v.path}: {v.message}" for v in violations)
        super().__init__(f"Invalid input for tool {name!r}: {summary}")


class ToolExecutionError(RegistryError):
    """The tool raised while executing; ``cause`` holds the original exception."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Tool execution failed: {name}: {cause}")
