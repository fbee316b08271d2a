"""Tool-call payload parser: decides whether a reply asks for tools.

A reply is a tool-call payload only if it is a JSON object whose
``function_calls`` (or ``tool_calls``) key holds a non-empty list of
``{"name": str, "arguments": object?}`` entries.  Anything else is a final
answer.
"""

from __future__ import annotations

import json
import re
from typing import Any

from toolwire.host.models import ToolCall

_PAYLOAD_KEYS = ("function_calls", "tool_calls")

# A single fenced block spanning the whole reply, optionally tagged ``json``.
_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n(.*)\n```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove one Markdown code fence wrapping the whole of *text*."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1).strip() if match else stripped


def parse_tool_calls(text: str) -> list[ToolCall] | None:
    """Return the requested tool calls, or ``None`` if *text* is a final answer."""
    try:
        data: Any = json.loads(strip_code_fence(text))
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None

    entries = next((data[key] for key in _PAYLOAD_KEYS if key in data), None)
    if not isinstance(entries, list) or not entries:
        return None

    calls: list[ToolCall] = []
    for entry in entries:
        if not isinstance(entry, dict):
            return None
        name = entry.get("name")
        arguments = entry.get("arguments")
        if not isinstance(name, str) or not name:
            return None
        if arguments is None:
            arguments = {}
        elif not isinstance(arguments, dict):
            return None
        calls.append(ToolCall(name=name, arguments=arguments))
    return calls


def encode_tool_calls(calls: list[ToolCall], thoughts: str | None = None) -> str:
    """Serialise *calls* into the payload format :func:`parse_tool_calls` reads."""
    payload: dict[str, Any] = {}
    if thoughts:
        payload["thoughts"] = thoughts
    payload["function_calls"] = [call.model_dump() for call in calls]
    return json.dumps(payload)
