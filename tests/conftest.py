"""Shared fixtures: in-memory server/client wiring and logger hygiene."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import MagicMock

import pytest

from toolwire.protocol.channel import MemoryChannel
from toolwire.registry import ToolDefinition, ToolRegistry
from toolwire.server import ProtocolServer
from toolwire.tools import CurrentTimeTool, DiceTool, WeatherTool


@pytest.fixture(autouse=True)
def _reset_toolwire_logger() -> Any:
    """Undo ``configure_logging`` side effects between tests."""
    yield
    logger = logging.getLogger("toolwire")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _explode(_: dict[str, Any]) -> Any:
    raise RuntimeError("boom")


@pytest.fixture
def registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(DiceTool(rng=random.Random(42)))
    reg.register(CurrentTimeTool())
    reg.register(WeatherTool())
    reg.register(ToolDefinition(name="explode", description="Always fails", executable=_explode))
    return reg


@pytest.fixture
async def served(registry: ToolRegistry) -> AsyncIterator[tuple[ProtocolServer, MemoryChannel]]:
    """A started server running its loop on one end of a memory pair.

    Yields the server and the client-side channel end.
    """
    server_end, client_end = MemoryChannel.pair()
    server = ProtocolServer(server_end, registry, server_name="test-server", version="9.9.9")
    await server.start()
    task = asyncio.create_task(server.serve())
    yield server, client_end
    await server.stop()
    await asyncio.wait_for(task, 1.0)


def make_mock_litellm_response(
    content: str = "",
    tool_calls: list[Any] | None = None,
    finish_reason: str = "stop",
) -> MagicMock:
    """Create a ``MagicMock`` matching LiteLLM's response structure."""
    message = MagicMock()
    message.content = content or None
    message.tool_calls = tool_calls

    choice = MagicMock()
    choice.message = message
    choice.finish_reason = finish_reason

    usage = MagicMock()
    usage.prompt_tokens = 10
    usage.completion_tokens = 20

    response = MagicMock()
    response.choices = [choice]
    response.usage = usage
    return response


@pytest.fixture
def litellm_response() -> Any:
    return make_mock_litellm_response
