"""Shared error types for the protocol layer.

Error codes follow JSON-RPC 2.0 for generic protocol faults and reserve the
``-32000`` range for tool-domain faults.
"""

from __future__ import annotations

from typing import Any

# Generic JSON-RPC 2.0 faults
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Tool-domain faults
TOOL_NOT_FOUND = -32000
TOOL_EXECUTION_ERROR = -32001
INVALID_TOOL_INPUT = -32002


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class JsonRpcError(ProtocolError):
    """A fault that travels on the wire as a JSON-RPC ``error`` object.

    Raised by server handlers to produce an error response, and raised by the
    client when a response carries ``error``.
    """

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, data: Any | None = None, *, code: int | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation of the error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    @classmethod
    def from_dict(cls, error: dict[str, Any]) -> JsonRpcError:
        """Build the most specific error subclass for a wire error object."""
        code = int(error.get("code", INTERNAL_ERROR))
        message = str(error.get("message", ""))
        data = error.get("data")
        error_cls = _ERRORS_BY_CODE.get(code, JsonRpcError)
        return error_cls(message, data, code=code)


class ParseError(JsonRpcError):
    """The line could not be parsed as JSON."""

    code = PARSE_ERROR


class InvalidRequestError(JsonRpcError):
    """The JSON value is not a valid request object."""

    code = INVALID_REQUEST


class MethodNotFoundError(JsonRpcError):
    """The method does not exist."""

    code = METHOD_NOT_FOUND


class MethodNotAllowedYetError(MethodNotFoundError):
    """The method exists but the lifecycle has not reached the ready state."""

    def __init__(self, method: str, state: str) -> None:
        super().__init__(
            f"Method not allowed before initialization: {method}",
            {"method": method, "state": state},
        )
        self.method = method
        self.state = state


class InvalidParamsError(JsonRpcError):
    """The method parameters are missing or malformed."""

    code = INVALID_PARAMS


class InternalError(JsonRpcError):
    """An unexpected failure while handling a request."""

    code = INTERNAL_ERROR


class ToolNotFoundFault(JsonRpcError):
    """Wire-level form of an unknown tool name."""

    code = TOOL_NOT_FOUND


class ToolExecutionFault(JsonRpcError):
    """Wire-level form of a tool raising during execution."""

    code = TOOL_EXECUTION_ERROR


class InvalidToolInputFault(JsonRpcError):
    """Wire-level form of tool arguments failing schema validation."""

    code = INVALID_TOOL_INPUT


_ERRORS_BY_CODE: dict[int, type[JsonRpcError]] = {
    PARSE_ERROR: ParseError,
    INVALID_REQUEST: InvalidRequestError,
    METHOD_NOT_FOUND: MethodNotFoundError,
    INVALID_PARAMS: InvalidParamsError,
    INTERNAL_ERROR: InternalError,
    TOOL_NOT_FOUND: ToolNotFoundFault,
    TOOL_EXECUTION_ERROR: ToolExecutionFault,
    INVALID_TOOL_INPUT: InvalidToolInputFault,
}


class ChannelError(ProtocolError):
    """The underlying line channel failed."""


class ChannelClosedError(ChannelError):
    """The channel reached end-of-stream or was closed locally."""

    def __init__(self, detail: str = "Channel closed") -> None:
        super().__init__(detail)


class ConnectionClosedError(ProtocolError):
    """A pending request could not complete because the connection went away."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Connection closed" + (f": {detail}" if detail else ""))


class NotInitializedError(ProtocolError):
    """A client method was used before the initialize handshake completed."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Client not initialized; cannot call {method!r}")


class RequestTimeoutError(ProtocolError):
    """A request did not receive its response in time."""

    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"Request {method!r} timed out after {timeout}s")


class ServerStateError(ProtocolError):
    """An operation is not valid in the server's current lifecycle state."""
