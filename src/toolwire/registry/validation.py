"""JSON-Schema validation for tool arguments.

Validation collects every violation instead of stopping at the first one, so
a caller can fix all of its arguments in a single retry.
"""

from __future__ import annotations

import copy
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as JSONSchemaValidationError

from toolwire.registry.errors import ToolDefinitionError, ToolValidationError
from toolwire.registry.models import Violation


def check_schema(name: str, schema: dict[str, Any]) -> None:
    """Reject schemas that are not valid JSON Schema documents.

    Raises:
        ToolDefinitionError: If the schema is malformed.
    """
    if not isinstance(schema, dict):
        raise ToolDefinitionError(name, "input_schema must be an object")
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as exc:
        raise ToolDefinitionError(name, exc.message) from exc


def apply_defaults(schema: dict[str, Any], arguments: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *arguments* with top-level property defaults filled in."""
    result = dict(arguments)
    properties = schema.get("properties", {})
    if not isinstance(properties, dict):
        return result
    for key, prop_schema in properties.items():
        if key not in result and isinstance(prop_schema, dict) and "default" in prop_schema:
            result[key] = copy.deepcopy(prop_schema["default"])
    return result


def _format_path(error: JSONSchemaValidationError) -> str:
    path = ""
    for part in error.absolute_path:
        path += f"[{part}]" if isinstance(part, int) else (f".{part}" if path else str(part))
    return path or "root"


def collect_violations(schema: dict[str, Any], arguments: Any) -> list[Violation]:
    """Return every schema violation in *arguments*, ordered by path."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(arguments), key=lambda e: list(map(str, e.absolute_path)))
    return [Violation(path=_format_path(error), message=error.message) for error in errors]


def validate_arguments(name: str, schema: dict[str, Any], arguments: Any) -> dict[str, Any]:
    """Apply defaults and validate *arguments* against *schema*.

    Returns:
        The arguments with defaults applied.

    Raises:
        ToolValidationError: Carrying all violations found.
    """
    if not isinstance(arguments, dict):
        raise ToolValidationError(name, [Violation(path="root", message="arguments must be an object")])

    prepared = apply_defaults(schema, arguments)
    violations = collect_violations(schema, prepared)
    if violations:
        raise ToolValidationError(name, violations)
    return prepared
