"""ProtocolClient: correlated JSON-RPC calls over a line channel.

Many calls may be outstanding at once. Each request gets a fresh id and a
future in the pending table; a single background reader resolves futures as
responses arrive, in whatever order the server sends them.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

from toolwire import __version__
from toolwire.protocol.channel import Channel
from toolwire.protocol.errors import (
    ChannelError,
    ConnectionClosedError,
    JsonRpcError,
    NotInitializedError,
    ProtocolError,
    RequestTimeoutError,
)
from toolwire.protocol.messages import (
    PROTOCOL_VERSION,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    parse_response,
)
from toolwire.registry.models import ToolInfo
from toolwire.utils.telemetry import ATTR_RPC_ERROR_CODE, ATTR_RPC_ID, ATTR_RPC_METHOD, get_tracer

_tracer = get_tracer(__name__)

# Methods usable before the initialize handshake completes.
_PRE_INIT_METHODS = frozenset({"initialize", "ping"})


class ProtocolClient:
    """Async client for a toolwire server.

    Satisfies the :class:`~toolwire.client.provider.ToolProvider` protocol.

    Usage::

        async with ProtocolClient(StdioChannel("toolwire serve")) as client:
            tools = await client.list_tools()
            result = await client.call_tool("dice", {"sides": 20})

    Entering the context connects and performs the handshake; leaving it
    sends ``shutdown`` and closes the channel.
    """

    def __init__(
        self,
        channel: Channel,
        *,
        client_name: str = "toolwire",
        client_version: str = __version__,
        shutdown_timeout: float = 5.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._channel = channel
        self._client_info = {"name": client_name, "version": client_version}
        self._shutdown_timeout = shutdown_timeout
        self._logger = logger or logging.getLogger(__name__)

        self._ids = itertools.count(1)
        self._pending: dict[RequestId, asyncio.Future[JsonRpcResponse]] = {}
        self._write_lock = asyncio.Lock()
        self._reader: asyncio.Task[None] | None = None

        self._server_info: dict[str, Any] | None = None
        self._initialized = False
        self._closing = False
        self._closed = False

    async def __aenter__(self) -> ProtocolClient:
        await self.connect()
        await self.initialize()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def server_info(self) -> dict[str, Any] | None:
        return self._server_info

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect the channel and start the background reader."""
        if self._closed:
            raise ConnectionClosedError("client is closed")
        if self._reader is not None:
            return
        await self._channel.connect()
        self._reader = asyncio.create_task(self._read_loop(), name="toolwire-client-reader")

    async def initialize(self) -> dict[str, Any]:
        """Perform the ``initialize`` handshake and return the server's reply."""
        result = await self.call(
            "initialize",
            {"protocolVersion": PROTOCOL_VERSION, "client": dict(self._client_info)},
        )
        if isinstance(result, dict):
            server = result.get("server")
            self._server_info = server if isinstance(server, dict) else None
            if result.get("protocolVersion") != PROTOCOL_VERSION:
                self._logger.warning(
                    "Server speaks protocol %s, client expects %s",
                    result.get("protocolVersion"),
                    PROTOCOL_VERSION,
                )
        await self.notify("notifications/initialized")
        self._initialized = True
        self._logger.info("Connected to server %s", self._server_info or "<unknown>")
        return result if isinstance(result, dict) else {}

    async def close(self) -> None:
        """Send a best-effort ``shutdown``, close the channel, fail pending calls."""
        if self._closing:
            return
        self._closing = True

        if self._initialized and self._reader is not None and not self._reader.done():
            try:
                await self.call("shutdown", timeout=self._shutdown_timeout)
            except (ProtocolError, ChannelError) as exc:
                self._logger.debug("Shutdown request failed: %s", exc)

        self._closed = True
        try:
            await self._channel.close()
        except (ChannelError, OSError) as exc:
            self._logger.warning("Channel close failed: %s", exc)
        finally:
            if self._reader is not None:
                self._reader.cancel()
                try:
                    await self._reader
                except asyncio.CancelledError:
                    pass
                except Exception as exc:
                    self._logger.warning("Reader task failed: %s", exc)
            self._fail_pending("client closed")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and wait for its result.

        Raises:
            NotInitializedError: If *method* needs the handshake first.
            ConnectionClosedError: If the connection ends before a response.
            RequestTimeoutError: If *timeout* elapses first.
            JsonRpcError: If the server answers with an error.
        """
        if self._closed:
            raise ConnectionClosedError("client is closed")
        if not self._initialized and method not in _PRE_INIT_METHODS:
            raise NotInitializedError(method)
        if self._reader is None:
            raise ConnectionClosedError("client is not connected")
        if self._reader.done():
            raise ConnectionClosedError("connection lost")

        msg_id = next(self._ids)
        with _tracer.start_as_current_span("client.call") as span:
            span.set_attribute(ATTR_RPC_METHOD, method)
            span.set_attribute(ATTR_RPC_ID, str(msg_id))

            future: asyncio.Future[JsonRpcResponse] = asyncio.get_running_loop().create_future()
            self._pending[msg_id] = future
            try:
                await self._send(JsonRpcRequest(id=msg_id, method=method, params=params).to_line())
                if timeout is None:
                    response = await future
                else:
                    try:
                        response = await asyncio.wait_for(future, timeout)
                    except TimeoutError:
                        raise RequestTimeoutError(method, timeout) from None
            finally:
                self._pending.pop(msg_id, None)

            if response.error is not None:
                span.set_attribute(ATTR_RPC_ERROR_CODE, response.error.code)
            response.raise_for_error()
            return response.result

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification; no response is expected."""
        if self._closed:
            raise ConnectionClosedError("client is closed")
        await self._send(JsonRpcNotification(method=method, params=params).to_line())

    async def ping(self) -> Any:
        return await self.call("ping")

    async def list_tools(self) -> list[ToolInfo]:
        """Return the tools the server exposes."""
        result = await self.call("tools/list")
        raw_tools = result.get("tools", []) if isinstance(result, dict) else []
        return [ToolInfo.model_validate(raw) for raw in raw_tools]

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Invoke a tool and return its ``output``."""
        result = await self.call(
            "tools/call",
            {"name": name, "arguments": arguments or {}},
            timeout=timeout,
        )
        if isinstance(result, dict) and "output" in result:
            return result["output"]
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(self, line: str) -> None:
        try:
            async with self._write_lock:
                await self._channel.send(line)
        except ChannelError as exc:
            raise ConnectionClosedError(str(exc)) from exc

    async def _read_loop(self) -> None:
        reason = "channel closed"
        try:
            while True:
                try:
                    line = await self._channel.receive()
                except ChannelError as exc:
                    reason = str(exc)
                    self._logger.debug("Reader stopping: %s", exc)
                    break
                self._handle_line(line)
        finally:
            self._fail_pending(reason)

    def _handle_line(self, line: str) -> None:
        try:
            response = parse_response(line)
        except JsonRpcError as exc:
            self._logger.warning("Dropping unexpected message: %s", exc.message)
            return

        if response.id is None:
            self._logger.warning("Dropping uncorrelated response: %s", response.error)
            return

        future = self._pending.get(response.id)
        if future is None or future.done():
            self._logger.warning("Dropping response for unknown id %r", response.id)
            return
        future.set_result(response)

    def _fail_pending(self, reason: str) -> None:
        for msg_id, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(ConnectionClosedError(reason))
            self._pending.pop(msg_id, None)
