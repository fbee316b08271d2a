"""HostOrchestrator: the bounded model/tool conversation loop.

One call to :meth:`HostOrchestrator.chat` is a *turn*.  Within a turn the
model may ask for tools several times; each request is a *round* that runs
every requested call, feeds the outcomes back and asks the model again.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

from toolwire.host.models import ChatMessage, ConversationHistory, ToolCall, ToolOutcome
from toolwire.host.parser import parse_tool_calls
from toolwire.utils.telemetry import ATTR_MAX_ROUNDS, ATTR_ROUND, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from toolwire.client.provider import ToolProvider
    from toolwire.host.backend import ModelBackend
    from toolwire.registry.models import ToolInfo

_tracer = get_tracer(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the available tools when they help you "
    "answer the user's question accurately."
)

DEFAULT_MAX_TOOL_ROUNDS = 10


class HostOrchestrator:
    """Drives a conversation between a model backend and a tool server.

    Usage::

        async with ProtocolClient(StdioChannel("toolwire serve")) as client:
            host = HostOrchestrator(client, create_backend("anthropic"))
            answer = await host.chat("Roll a 20-sided die")

    Backend failures propagate unchanged; tool failures are reported to the
    model as ``error`` lines and never abort the turn.
    """

    def __init__(
        self,
        client: ToolProvider,
        backend: ModelBackend,
        *,
        system_prompt: str | None = DEFAULT_SYSTEM_PROMPT,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_tool_rounds < 0:
            msg = f"max_tool_rounds must be >= 0, got {max_tool_rounds}"
            raise ValueError(msg)
        self._client = client
        self._backend = backend
        self._max_tool_rounds = max_tool_rounds
        self._logger = logger or logging.getLogger(__name__)

        self._history = ConversationHistory()
        if system_prompt:
            self._history.append(ChatMessage.system(system_prompt))
        self._tools: list[ToolInfo] | None = None
        self._last_round_count = 0

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def last_round_count(self) -> int:
        """Number of tool rounds run during the most recent turn."""
        return self._last_round_count

    @property
    def max_tool_rounds(self) -> int:
        return self._max_tool_rounds

    async def tools(self) -> list[ToolInfo]:
        """Return the tool manifest, fetching it on first use."""
        if self._tools is None:
            self._tools = await self._client.list_tools()
            self._logger.info("Discovered %d tool(s)", len(self._tools))
        return self._tools

    async def refresh_tools(self) -> list[ToolInfo]:
        """Discard the cached manifest and fetch it again."""
        self._tools = None
        return await self.tools()

    def clear_history(self) -> None:
        """Forget the conversation, keeping the system prompt."""
        self._history.clear()

    async def chat(self, user_text: str) -> str:
        """Run one turn and return the model's final reply."""
        with _tracer.start_as_current_span("host.turn") as span:
            span.set_attribute(ATTR_MAX_ROUNDS, self._max_tool_rounds)

            self._history.append(ChatMessage.user(user_text))
            reply = await self._backend.generate(self._history, await self.tools())

            rounds = 0
            while True:
                calls = parse_tool_calls(reply)
                if calls is None:
                    break
                if rounds >= self._max_tool_rounds:
                    self._logger.warning("Tool round limit (%d) reached; ending the turn", self._max_tool_rounds)
                    reply = round_limit_message(self._max_tool_rounds, calls)
                    break

                rounds += 1
                self._logger.info("Round %d: %d tool call(s)", rounds, len(calls))
                self._history.append(ChatMessage.assistant(reply))
                outcomes = await self._execute_batch(calls)
                self._history.append(ChatMessage.tool(format_outcomes(outcomes)))
                reply = await self._backend.generate(self._history, [])

            self._last_round_count = rounds
            span.set_attribute(ATTR_ROUND, rounds)
            self._history.append(ChatMessage.assistant(reply))
            return reply

    async def _execute_batch(self, calls: list[ToolCall]) -> list[ToolOutcome]:
        """Run *calls* concurrently; outcomes come back in request order."""
        return list(await asyncio.gather(*(self._execute_one(call) for call in calls)))

    async def _execute_one(self, call: ToolCall) -> ToolOutcome:
        with _tracer.start_as_current_span("host.tool_call") as span:
            span.set_attribute(ATTR_TOOL_NAME, call.name)
            try:
                result = await self._client.call_tool(call.name, call.arguments)
            except Exception as exc:
                span.record_exception(exc)
                self._logger.warning("Tool %r failed: %s", call.name, exc)
                return ToolOutcome(name=call.name, success=False, error=str(exc))
            self._logger.debug("Tool %r returned %r", call.name, result)
            return ToolOutcome(name=call.name, success=True, result=result)


def round_limit_message(max_rounds: int, pending: list[ToolCall]) -> str:
    """Readable final answer for a turn cut off while the model still wanted tools."""
    names = ", ".join(dict.fromkeys(call.name for call in pending))
    return (
        f"Stopped after {max_rounds} tool round(s) without a final answer. "
        f"The model was still requesting: {names}."
    )


def format_outcomes(outcomes: list[ToolOutcome]) -> str:
    """One line per outcome: ``[name] success: <json>`` or ``[name] error: <msg>``."""
    lines: list[str] = []
    for outcome in outcomes:
        if outcome.success:
            rendered = json.dumps(outcome.result, ensure_ascii=False, default=str)
            lines.append(f"[{outcome.name}] success: {rendered}")
        else:
            lines.append(f"[{outcome.name}] error: {outcome.error}")
    return "\n".join(lines)
