"""Tool-use instructions appended to the system prompt.

Describes the available tools and the JSON payload the model must reply
with to call them.  Parsed back by :mod:`toolwire.host.parser`.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolwire.registry.models import ToolInfo

_TOOL_PREAMBLE = """\
You have access to the following tools:

{tool_list}

To use one or more tools, reply with ONLY a JSON object in this format:

{{"thoughts": "<why these tools are needed>", "function_calls": [{{"name": "<tool_name>", "arguments": {{...}}}}]}}

Every entry in "function_calls" runs, and you will receive one line per call:
"[<tool_name>] success: <result>" or "[<tool_name>] error: <message>".

When you can answer the user without a tool, reply with plain text.

IMPORTANT:
- Use EXACTLY the tool names listed above.
- "arguments" MUST match the tool's parameter schema.
- Do NOT mix a tool-call payload with other text.\
"""

_TOOL_TEMPLATE = """\
- {name}: {description}
  Parameters: {parameters}\
"""


def build_tool_instructions(tools: list[ToolInfo]) -> str:
    """Return an instruction block describing *tools*, or ``""`` when empty."""
    if not tools:
        return ""
    tool_lines = [
        _TOOL_TEMPLATE.format(
            name=tool.name,
            description=tool.description or "No description provided.",
            parameters=json.dumps(tool.input_schema or {"type": "object"}),
        )
        for tool in tools
    ]
    return _TOOL_PREAMBLE.format(tool_list="\n".join(tool_lines))


def with_tool_instructions(system_prompt: str | None, tools: list[ToolInfo]) -> str:
    """Append the tool instruction block to *system_prompt*."""
    block = build_tool_instructions(tools)
    if not block:
        return system_prompt or ""
    if not system_prompt:
        return block
    return f"{system_prompt}\n\n{block}"
