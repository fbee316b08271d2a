"""Dice tool: rolls an N-sided die."""

from __future__ import annotations

import random
from typing import Any


class DiceTool:
    """Roll a die with ``sides`` faces (default 6)."""

    name = "dice"
    description = "Roll a die and return a number between 1 and the number of sides"
    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "sides": {
                "type": "integer",
                "minimum": 1,
                "default": 6,
                "description": "Number of sides on the die",
            },
        },
        "additionalProperties": False,
    }

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def invoke(self, arguments: dict[str, Any]) -> dict[str, int]:
        sides = int(arguments.get("sides", 6))
        return {"result": self._rng.randint(1, sides), "sides": sides}
