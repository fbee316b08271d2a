"""Current-time tool."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

_FORMATS = ("iso", "readable", "unix")


class CurrentTimeTool:
    """Report the current time as ISO 8601, a readable string or Unix seconds."""

    name = "current_time"
    description = "Get the current time"
    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "format": {
                "type": "string",
                "enum": list(_FORMATS),
                "default": "iso",
                "description": "Output format",
            },
        },
        "additionalProperties": False,
    }

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc).astimezone())

    def invoke(self, arguments: dict[str, Any]) -> str:
        now = self._now()
        fmt = arguments.get("format", "iso")
        if fmt == "unix":
            return str(int(now.timestamp()))
        if fmt == "readable":
            return now.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
        return now.isoformat()
