"""Demo tools served by ``toolwire serve``."""

from __future__ import annotations

from toolwire.registry.models import Tool
from toolwire.tools.clock import CurrentTimeTool
from toolwire.tools.dice import DiceTool
from toolwire.tools.weather import WeatherTool

__all__ = ["CurrentTimeTool", "DiceTool", "WeatherTool", "default_tools"]


def default_tools() -> list[Tool]:
    """Return one instance of every demo tool."""
    return [DiceTool(), CurrentTimeTool(), WeatherTool()]
