"""JSON-RPC 2.0 messages: envelope models plus line parsing and formatting.

Every message travels as one JSON object per line. Requests carry an ``id``;
notifications do not and never receive a reply. A response carries exactly
one of ``result`` or ``error``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from toolwire.protocol.errors import InvalidRequestError, JsonRpcError, ParseError

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2025-03-26"

# Maximum accepted line size (1 MiB)
MAX_MESSAGE_SIZE = 1_048_576

RequestId = int | str

# ---------------------------------------------------------------------------
# Envelope models
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId
    method: str
    params: dict[str, Any] | None = None

    def to_line(self) -> str:
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return json.dumps(payload)


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification (a request without ``id``)."""

    jsonrpc: str = JSONRPC_VERSION
    method: str
    params: dict[str, Any] | None = None

    def to_line(self) -> str:
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return json.dumps(payload)


class ErrorObject(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId | None = None
    result: Any = None
    error: ErrorObject | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        """Raise the :class:`JsonRpcError` carried by this response, if any."""
        if self.error is not None:
            raise JsonRpcError.from_dict(self.error.model_dump())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, int | str) and not isinstance(value, bool)


def _loads(raw: str) -> Any:
    if len(raw) > MAX_MESSAGE_SIZE:
        raise ParseError(f"Message too large: {len(raw)} bytes exceeds {MAX_MESSAGE_SIZE} limit")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Parse error: {exc}") from exc


def recover_id(raw: str) -> RequestId | None:
    """Best-effort extraction of a request id from an invalid message."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if isinstance(data, dict) and _is_valid_id(data.get("id")):
        return data["id"]
    return None


def is_notification_shaped(raw: str) -> bool:
    """True when *raw* is a JSON object without an ``id`` member."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return False
    return isinstance(data, dict) and "id" not in data


def parse_message(raw: str) -> JsonRpcRequest | JsonRpcNotification:
    """Parse one line into a request or notification.

    Raises:
        ParseError: If the line is not JSON or is too large.
        InvalidRequestError: If the JSON value is not a valid request.
    """
    data = _loads(raw)

    if not isinstance(data, dict):
        raise InvalidRequestError("Invalid Request: message must be an object")

    if data.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequestError("Invalid Request: jsonrpc must be '2.0'")

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise InvalidRequestError("Invalid Request: method must be a non-empty string")

    params = data.get("params")
    if params is not None and not isinstance(params, dict):
        raise InvalidRequestError("Invalid Request: params must be an object")

    if "id" not in data:
        return JsonRpcNotification(method=method, params=params)

    msg_id = data["id"]
    if not _is_valid_id(msg_id):
        raise InvalidRequestError("Invalid Request: id must be integer or string")
    return JsonRpcRequest(id=msg_id, method=method, params=params)


def parse_response(raw: str) -> JsonRpcResponse:
    """Parse one line into a response.

    Raises:
        ParseError: If the line is not JSON or is too large.
        InvalidRequestError: If the JSON value is not a valid response.
    """
    data = _loads(raw)

    if not isinstance(data, dict):
        raise InvalidRequestError("Invalid Response: message must be an object")
    if "method" in data:
        raise InvalidRequestError("Invalid Response: message is a request")

    has_result = "result" in data
    has_error = isinstance(data.get("error"), dict)
    if has_result == has_error:
        raise InvalidRequestError("Invalid Response: exactly one of result or error is required")

    msg_id = data.get("id")
    if msg_id is not None and not _is_valid_id(msg_id):
        raise InvalidRequestError("Invalid Response: id must be integer, string or null")

    error = data["error"] if has_error else None
    if error is not None and not isinstance(error.get("code"), int):
        raise InvalidRequestError("Invalid Response: error.code must be an integer")

    return JsonRpcResponse(
        id=msg_id,
        result=data.get("result"),
        error=ErrorObject.model_validate(error) if error is not None else None,
    )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_response(msg_id: RequestId, result: Any) -> str:
    """Format a successful response line."""
    return json.dumps({"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}, default=str)


def format_error(msg_id: RequestId | None, error: JsonRpcError) -> str:
    """Format an error response line; ``msg_id`` is ``None`` for uncorrelated faults."""
    return json.dumps(
        {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "error": error.to_dict()},
        default=str,
    )
