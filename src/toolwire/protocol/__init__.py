"""Wire protocol: JSON-RPC messages, error codes and line channels."""

from toolwire.protocol.channel import Channel, MemoryChannel, StdioChannel, TextStreamChannel
from toolwire.protocol.errors import (
    ChannelClosedError,
    ChannelError,
    ConnectionClosedError,
    InvalidParamsError,
    InvalidRequestError,
    JsonRpcError,
    MethodNotAllowedYetError,
    MethodNotFoundError,
    NotInitializedError,
    ParseError,
    ProtocolError,
    RequestTimeoutError,
    ServerStateError,
)
from toolwire.protocol.messages import (
    PROTOCOL_VERSION,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    parse_message,
    parse_response,
)

__all__ = [
    "PROTOCOL_VERSION",
    "Channel",
    "ChannelClosedError",
    "ChannelError",
    "ConnectionClosedError",
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MemoryChannel",
    "MethodNotAllowedYetError",
    "MethodNotFoundError",
    "NotInitializedError",
    "ParseError",
    "ProtocolError",
    "RequestTimeoutError",
    "ServerStateError",
    "StdioChannel",
    "TextStreamChannel",
    "parse_message",
    "parse_response",
]
