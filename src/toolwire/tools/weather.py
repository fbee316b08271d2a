"""Weather tool: canned forecasts for a handful of cities (demo data)."""

from __future__ import annotations

from typing import Any

_FORECASTS = {
    "tokyo": "Sunny",
    "osaka": "Cloudy",
    "fukuoka": "Rainy",
    "sapporo": "Snowy",
}

NO_DATA = "No weather information available"


class WeatherTool:
    name = "weather"
    description = "Get the weather for a city (demo data)"
    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "city": {"type": "string", "minLength": 1, "description": "City name"},
        },
        "required": ["city"],
        "additionalProperties": False,
    }

    def invoke(self, arguments: dict[str, Any]) -> str:
        return _FORECASTS.get(arguments["city"].strip().lower(), NO_DATA)
