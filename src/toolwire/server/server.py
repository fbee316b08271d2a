"""ProtocolServer: serves a ToolRegistry over a line channel.

The server reads one line at a time, dispatches it through a method table and
writes exactly one response for every request before reading the next line.
Until the ``initialize``/``initialized`` handshake completes only
``initialize`` and ``ping`` are dispatched.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from toolwire.protocol.channel import Channel
from toolwire.protocol.errors import (
    ChannelError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    InvalidToolInputFault,
    JsonRpcError,
    MethodNotFoundError,
    ParseError,
    ServerStateError,
    ToolExecutionFault,
    ToolNotFoundFault,
)
from toolwire.protocol.messages import (
    JsonRpcNotification,
    JsonRpcRequest,
    format_error,
    format_response,
    is_notification_shaped,
    parse_message,
    recover_id,
)
from toolwire.registry import (
    Tool,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
    ToolValidationError,
)
from toolwire.server.lifecycle import LifecycleManager, LifecycleState
from toolwire.utils.telemetry import (
    ATTR_RPC_ERROR_CODE,
    ATTR_RPC_ID,
    ATTR_RPC_METHOD,
    ATTR_SERVER_STATE,
    get_tracer,
)

_tracer = get_tracer(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Any]]

INITIALIZED_NOTIFICATIONS = frozenset({"notifications/initialized", "initialized"})


class ProtocolServer:
    """Exposes the tools of a :class:`ToolRegistry` to one client.

    Usage::

        registry = ToolRegistry()
        registry.register(DiceTool())

        server = ProtocolServer(TextStreamChannel(), registry)
        await server.run()
    """

    def __init__(
        self,
        channel: Channel,
        registry: ToolRegistry | None = None,
        *,
        server_name: str = "toolwire",
        version: str = "0.1.0",
        logger: logging.Logger | None = None,
    ) -> None:
        self._channel = channel
        self._logger = logger or logging.getLogger(__name__)
        self._registry = registry if registry is not None else ToolRegistry(logger=self._logger)
        self._lifecycle = LifecycleManager(
            server_info={"name": server_name, "version": version},
            logger=self._logger,
        )
        self._handlers: dict[str, Handler] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "shutdown": self._handle_shutdown,
        }
        self._close_after_reply = False

    @property
    def state(self) -> LifecycleState:
        return self._lifecycle.state

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def client_info(self) -> dict[str, Any] | None:
        return self._lifecycle.client_info

    def register_tool(self, tool: Tool, *, override: bool = False) -> None:
        """Register *tool*; only allowed before the server is ready.

        Raises:
            ServerStateError: If the server is ready or stopped.
        """
        if self.state in (LifecycleState.READY, LifecycleState.STOPPED):
            msg = f"Cannot register tools in state {self.state.value!r}"
            raise ServerStateError(msg)
        self._registry.register(tool, override=override)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect the channel and start listening.

        Raises:
            ServerStateError: If the server was already started.
        """
        self._lifecycle.start()
        try:
            await self._channel.connect()
        except ChannelError:
            self._lifecycle.stop()
            raise
        self._logger.info("Server listening with %d tool(s)", len(self._registry))

    async def serve(self) -> None:
        """Run the receive loop until shutdown or channel failure."""
        if self.state is LifecycleState.CREATED:
            msg = "Server must be started before serving"
            raise ServerStateError(msg)

        while not self._lifecycle.is_stopped:
            try:
                line = await self._channel.receive()
            except ChannelError as exc:
                self._logger.info("Channel ended: %s", exc)
                break

            reply = await self.handle_line(line)
            if reply is not None:
                try:
                    await self._channel.send(reply)
                except ChannelError as exc:
                    self._logger.warning("Failed to send response: %s", exc)
                    break

            if self._close_after_reply:
                break

        await self.stop()

    async def run(self) -> None:
        """Start, then serve until the connection ends."""
        await self.start()
        await self.serve()

    async def stop(self) -> None:
        """Close the channel and move to STOPPED from any state."""
        if self._lifecycle.is_stopped and self._channel.closed:
            return
        self._lifecycle.stop()
        if not self._channel.closed:
            await self._channel.close()
        self._logger.info("Server stopped")

    # ------------------------------------------------------------------
    # Message handling
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> str | None:
        """Process one raw line and return the response line, if any."""
        try:
            message = parse_message(line)
        except ParseError as exc:
            self._logger.warning("Unparseable message: %s", exc.message)
            return format_error(None, exc)
        except InvalidRequestError as exc:
            if is_notification_shaped(line):
                self._logger.warning("Dropping malformed notification: %s", exc.message)
                return None
            self._logger.warning("Invalid request: %s", exc.message)
            return format_error(recover_id(line), exc)

        if isinstance(message, JsonRpcNotification):
            self._handle_notification(message)
            return None
        return await self._handle_request(message)

    def _handle_notification(self, notification: JsonRpcNotification) -> None:
        if notification.method in INITIALIZED_NOTIFICATIONS:
            self._lifecycle.handle_initialized()
        else:
            self._logger.debug("Ignoring notification %r", notification.method)

    async def _handle_request(self, request: JsonRpcRequest) -> str:
        with _tracer.start_as_current_span("server.dispatch") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            span.set_attribute(ATTR_RPC_ID, str(request.id))
            span.set_attribute(ATTR_SERVER_STATE, self.state.value)

            try:
                result = await self._dispatch(request.method, request.params or {})
            except JsonRpcError as exc:
                span.set_attribute(ATTR_RPC_ERROR_CODE, exc.code)
                self._logger.info("Request %s (%s) failed: %s", request.id, request.method, exc)
                return format_error(request.id, exc)
            except Exception as exc:
                span.record_exception(exc)
                self._logger.exception("Unexpected error handling %r", request.method)
                return format_error(request.id, InternalError(f"Internal error: {exc}"))

            return format_response(request.id, result)

    async def _dispatch(self, method: str, params: dict[str, Any]) -> Any:
        handler = self._handlers.get(method)
        if handler is None:
            raise MethodNotFoundError(f"Method not found: {method}", {"method": method})
        self._lifecycle.require_method_allowed(method)
        return await handler(params)

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    async def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._lifecycle.handle_initialize(params)

    async def _handle_ping(self, _params: dict[str, Any]) -> str:
        return "pong"

    async def _handle_tools_list(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [info.model_dump() for info in self._registry.list()]}

    async def _handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Invalid params: 'name' must be a non-empty string")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        elif not isinstance(arguments, dict):
            raise InvalidParamsError("Invalid params: 'arguments' must be an object")

        try:
            output = await self._registry.invoke(name, arguments)
        except ToolNotFoundError as exc:
            raise ToolNotFoundFault(str(exc), {"tool": name}) from exc
        except ToolValidationError as exc:
            raise InvalidToolInputFault(
                str(exc),
                {"tool": name, "violations": [v.to_dict() for v in exc.violations]},
            ) from exc
        except ToolExecutionError as exc:
            raise ToolExecutionFault(
                str(exc),
                {"tool": name, "error_type": type(exc.cause).__name__, "detail": str(exc.cause)},
            ) from exc

        return {"output": output, "content": output}

    async def _handle_shutdown(self, _params: dict[str, Any]) -> dict[str, Any]:
        self._logger.info("Shutdown requested")
        self._close_after_reply = True
        return {"success": True}
