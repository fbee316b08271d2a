"""Tests for ProtocolClient."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from toolwire.client import ProtocolClient, ToolProvider
from toolwire.protocol.channel import MemoryChannel
from toolwire.protocol.errors import (
    ConnectionClosedError,
    InvalidToolInputFault,
    JsonRpcError,
    NotInitializedError,
    RequestTimeoutError,
    ToolNotFoundFault,
)
from toolwire.registry import ToolInfo
from toolwire.server import LifecycleState, ProtocolServer


def _reply(msg_id: Any, result: Any) -> str:
    return json.dumps({"jsonrpc": "2.0", "id": msg_id, "result": result})


class UndecodableChannel:
    """Wraps a channel whose reads fail with a decoding error."""

    def __init__(self, inner: MemoryChannel) -> None:
        self._inner = inner

    @property
    def closed(self) -> bool:
        return self._inner.closed

    async def connect(self) -> None:
        await self._inner.connect()

    async def send(self, line: str) -> None:
        await self._inner.send(line)

    async def receive(self) -> str:
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    async def close(self) -> None:
        await self._inner.close()


class TestAgainstServer:
    async def test_handshake_and_tools(self, served: tuple[ProtocolServer, MemoryChannel]) -> None:
        server, channel = served
        client = ProtocolClient(channel, client_name="tester", client_version="1.2.3")
        await client.connect()
        result = await client.initialize()

        assert result["server"] == {"name": "test-server", "version": "9.9.9"}
        assert client.initialized
        assert client.server_info == {"name": "test-server", "version": "9.9.9"}

        tools = await client.list_tools()
        assert all(isinstance(tool, ToolInfo) for tool in tools)
        assert {tool.name for tool in tools} == {"dice", "current_time", "weather", "explode"}
        assert server.client_info == {"name": "tester", "version": "1.2.3"}
        assert server.state is LifecycleState.READY

        output = await client.call_tool("dice", {"sides": 4})
        assert 1 <= output["result"] <= 4

        await client.close()
        assert client.closed

    async def test_error_response_carries_code_and_data(self, served: tuple[ProtocolServer, MemoryChannel]) -> None:
        _, channel = served
        async with ProtocolClient(channel) as client:
            with pytest.raises(ToolNotFoundFault) as exc_info:
                await client.call_tool("nope")
            assert exc_info.value.code == -32000
            assert exc_info.value.data == {"tool": "nope"}

            with pytest.raises(InvalidToolInputFault) as bad_input:
                await client.call_tool("dice", {"sides": -5})
            assert bad_input.value.data["violations"]

    async def test_close_sends_shutdown(self, served: tuple[ProtocolServer, MemoryChannel]) -> None:
        server, channel = served
        async with ProtocolClient(channel):
            pass
        for _ in range(50):
            if server.state is LifecycleState.STOPPED:
                break
            await asyncio.sleep(0.01)
        assert server.state is LifecycleState.STOPPED

    async def test_ping_before_initialize(self, served: tuple[ProtocolServer, MemoryChannel]) -> None:
        _, channel = served
        client = ProtocolClient(channel)
        await client.connect()
        assert await client.ping() == "pong"
        await client.close()

    def test_satisfies_provider_protocol(self) -> None:
        _, channel = MemoryChannel.pair()
        assert isinstance(ProtocolClient(channel), ToolProvider)


class TestCorrelation:
    async def test_out_of_order_responses(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        first = asyncio.create_task(client.call("ping"))
        second = asyncio.create_task(client.call("ping"))

        requests = [json.loads(await server_end.receive()) for _ in range(2)]
        by_task = {req["id"]: req for req in requests}
        assert len(by_task) == 2

        # Answer in reverse order with distinct payloads.
        for req in reversed(requests):
            await server_end.send(_reply(req["id"], f"reply-{req['id']}"))

        results = await asyncio.gather(first, second)
        assert sorted(results) == sorted(f"reply-{req['id']}" for req in requests)
        assert results[0] != results[1]
        assert client.pending_count == 0

        await client.close()

    async def test_ids_are_unique_and_increasing(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        tasks = [asyncio.create_task(client.call("ping")) for _ in range(3)]
        ids = [json.loads(await server_end.receive())["id"] for _ in range(3)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

        for msg_id in ids:
            await server_end.send(_reply(msg_id, "pong"))
        await asyncio.gather(*tasks)
        await client.close()

    async def test_unknown_ids_and_garbage_are_dropped(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        call = asyncio.create_task(client.call("ping"))
        request = json.loads(await server_end.receive())
        await server_end.send("not json")
        await server_end.send(_reply(999, "stray"))
        await server_end.send(json.dumps({"jsonrpc": "2.0", "method": "server/notice"}))
        await server_end.send(_reply(request["id"], "pong"))

        assert await call == "pong"
        await client.close()

    async def test_generic_error_response(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        call = asyncio.create_task(client.call("ping"))
        request = json.loads(await server_end.receive())
        await server_end.send(
            json.dumps({"jsonrpc": "2.0", "id": request["id"], "error": {"code": -1, "message": "odd", "data": [1]}})
        )
        with pytest.raises(JsonRpcError) as exc_info:
            await call
        assert (exc_info.value.code, exc_info.value.message, exc_info.value.data) == (-1, "odd", [1])
        await client.close()


class TestFailureModes:
    async def test_not_initialized(self) -> None:
        _, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()
        with pytest.raises(NotInitializedError):
            await client.list_tools()
        await client.close()

    async def test_channel_close_fails_pending(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        pending = [asyncio.create_task(client.call("ping")) for _ in range(2)]
        for _ in range(2):
            await server_end.receive()
        await server_end.close()

        for task in pending:
            with pytest.raises(ConnectionClosedError):
                await task
        assert client.pending_count == 0
        await client.close()

    async def test_close_fails_pending(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        pending = asyncio.create_task(client.call("ping"))
        await server_end.receive()
        await client.close()

        with pytest.raises(ConnectionClosedError):
            await pending

    async def test_close_is_idempotent(self) -> None:
        _, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()
        await client.close()
        await client.close()
        with pytest.raises(ConnectionClosedError):
            await client.call("ping")

    async def test_timeout_removes_pending_entry(self) -> None:
        server_end, client_end = MemoryChannel.pair()
        client = ProtocolClient(client_end)
        await client.connect()

        with pytest.raises(RequestTimeoutError):
            await client.call("ping", timeout=0.05)
        assert client.pending_count == 0

        # A late response is dropped without disturbing later calls.
        late = json.loads(await server_end.receive())
        await server_end.send(_reply(late["id"], "late"))
        call = asyncio.create_task(client.call("ping"))
        request = json.loads(await server_end.receive())
        await server_end.send(_reply(request["id"], "on time"))
        assert await call == "on time"
        await client.close()

    async def test_close_survives_reader_crash(self) -> None:
        _, client_end = MemoryChannel.pair()
        client = ProtocolClient(UndecodableChannel(client_end))
        await client.connect()
        for _ in range(50):
            if client._reader is not None and client._reader.done():
                break
            await asyncio.sleep(0.01)

        with pytest.raises(ConnectionClosedError):
            await client.call("ping")
        await client.close()
        assert client.closed

    async def test_shutdown_failure_does_not_raise(self, served: tuple[ProtocolServer, MemoryChannel]) -> None:
        server, channel = served
        client = ProtocolClient(channel, shutdown_timeout=0.1)
        await client.connect()
        await client.initialize()
        await server.stop()
        await client.close()
        assert client.closed
