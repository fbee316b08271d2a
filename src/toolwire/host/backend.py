"""Model backends: turn a conversation into the model's next reply.

:class:`LiteLLMBackend` reaches every provider through LiteLLM's
OpenAI-style ``acompletion`` API; tools are described in the system prompt
and requested through the JSON payload in :mod:`toolwire.host.parser`.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import litellm

from toolwire.host.config import ModelConfig
from toolwire.host.models import ConversationHistory, ToolCall
from toolwire.host.parser import encode_tool_calls
from toolwire.host.prompting import with_tool_instructions
from toolwire.utils.telemetry import (
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOOL_COUNT,
    get_tracer,
)

if TYPE_CHECKING:
    from toolwire.registry.models import ToolInfo

_tracer = get_tracer(__name__)

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "anthropic/claude-3-7-sonnet-20250219",
    "openai": "openai/gpt-4o",
}

DEFAULT_PROVIDER = "anthropic"


@runtime_checkable
class ModelBackend(Protocol):
    """Anything that can produce the model's next reply."""

    async def generate(self, history: ConversationHistory, tools: list[ToolInfo]) -> str:
        """Return the reply text for *history*, offering *tools* when non-empty."""
        ...


class LiteLLMBackend:
    """Async backend for generating replies via LiteLLM.

    Usage::

        backend = LiteLLMBackend(ModelConfig(model="openai/gpt-4o"))
        text = await backend.generate(history, tools)
    """

    def __init__(self, config: ModelConfig) -> None:
        self.config = config

    async def generate(self, history: ConversationHistory, tools: list[ToolInfo]) -> str:
        with _tracer.start_as_current_span("model.generate") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)
            span.set_attribute(ATTR_TOOL_COUNT, len(tools))

            call_kwargs: dict[str, Any] = {
                "model": self.config.model,
                "messages": self._prepare_messages(history, tools),
                "max_tokens": self.config.max_tokens,
                **self.config.extra,
            }
            if self.config.api_key:
                call_kwargs["api_key"] = self.config.api_key
            if self.config.api_base:
                call_kwargs["api_base"] = self.config.api_base

            # LiteLLM's type stubs are incomplete
            response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]

            usage = getattr(response, "usage", None)
            if usage:
                span.set_attribute(ATTR_TOKENS_PROMPT, int(usage.prompt_tokens or 0))
                span.set_attribute(ATTR_TOKENS_COMPLETION, int(usage.completion_tokens or 0))
            finish_reason = response.choices[0].finish_reason
            if finish_reason is not None:
                span.set_attribute(ATTR_FINISH_REASON, str(finish_reason))

            return self._parse_response(response)

    @staticmethod
    def _prepare_messages(history: ConversationHistory, tools: list[ToolInfo]) -> list[dict[str, Any]]:
        """Convert history to LiteLLM's OpenAI-style messages.

        Tool results travel as user messages because tool use is prompted,
        not native.
        """
        messages: list[dict[str, Any]] = []
        system_prompt = with_tool_instructions(history.system_prompt, tools)
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        for index, message in enumerate(history):
            if index == 0 and message.role == "system":
                continue
            role = "user" if message.role == "tool" else message.role
            messages.append({"role": role, "content": message.content})
        return messages

    @staticmethod
    def _parse_response(response: Any) -> str:
        """Extract the reply text; native tool calls become a JSON payload."""
        message = response.choices[0].message
        if message.tool_calls:
            calls = [
                ToolCall(name=tc.function.name, arguments=_parse_arguments(tc.function.arguments))
                for tc in message.tool_calls
            ]
            return encode_tool_calls(calls, thoughts=message.content or None)
        return message.content or ""


def _parse_arguments(raw: Any) -> dict[str, Any]:
    """Parse JSON string arguments from a native tool call."""
    if isinstance(raw, dict):
        return raw
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    return result if isinstance(result, dict) else {"raw": raw}


def create_backend(provider: str | None = None, model: str | None = None, **overrides: Any) -> LiteLLMBackend:
    """Build a backend for *provider* (``anthropic`` or ``openai``).

    *provider* defaults to the ``LLM_PROVIDER`` environment variable, then
    ``anthropic``.  *model* defaults to the provider's default model; a bare
    model name is prefixed with the provider.  Extra keyword arguments are
    passed to :class:`ModelConfig`.

    Raises:
        ValueError: For an unknown provider.
    """
    provider = (provider or os.environ.get("LLM_PROVIDER") or DEFAULT_PROVIDER).lower()
    if provider not in DEFAULT_MODELS:
        msg = f"Unsupported LLM provider: {provider!r} (expected one of {sorted(DEFAULT_MODELS)})"
        raise ValueError(msg)

    if model is None:
        model = DEFAULT_MODELS[provider]
    elif "/" not in model:
        model = f"{provider}/{model}"

    overrides = {key: value for key, value in overrides.items() if value is not None}
    return LiteLLMBackend(ModelConfig(model=model, **overrides))
