"""Tests for JSON-RPC message parsing and formatting."""

from __future__ import annotations

import json

import pytest

from toolwire.protocol.errors import (
    InvalidRequestError,
    JsonRpcError,
    MethodNotAllowedYetError,
    ParseError,
    ToolNotFoundFault,
)
from toolwire.protocol.messages import (
    MAX_MESSAGE_SIZE,
    JsonRpcNotification,
    JsonRpcRequest,
    format_error,
    format_response,
    parse_message,
    parse_response,
    recover_id,
)


class TestParseMessage:
    def test_request(self) -> None:
        msg = parse_message('{"jsonrpc": "2.0", "id": 7, "method": "ping"}')
        assert isinstance(msg, JsonRpcRequest)
        assert msg.id == 7
        assert msg.method == "ping"
        assert msg.params is None

    def test_string_id(self) -> None:
        msg = parse_message('{"jsonrpc": "2.0", "id": "abc", "method": "tools/list", "params": {}}')
        assert isinstance(msg, JsonRpcRequest)
        assert msg.id == "abc"
        assert msg.params == {}

    def test_notification_has_no_id(self) -> None:
        msg = parse_message('{"jsonrpc": "2.0", "method": "notifications/initialized"}')
        assert isinstance(msg, JsonRpcNotification)

    def test_not_json(self) -> None:
        with pytest.raises(ParseError):
            parse_message("{not json")

    def test_oversized_line(self) -> None:
        with pytest.raises(ParseError, match="too large"):
            parse_message(" " * (MAX_MESSAGE_SIZE + 1))

    @pytest.mark.parametrize(
        "payload",
        [
            [1, 2, 3],
            {"jsonrpc": "1.0", "id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "id": 1},
            {"jsonrpc": "2.0", "id": 1, "method": ""},
            {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1]},
            {"jsonrpc": "2.0", "id": True, "method": "ping"},
            {"jsonrpc": "2.0", "id": None, "method": "ping"},
            {"jsonrpc": "2.0", "id": 1.5, "method": "ping"},
        ],
    )
    def test_invalid_requests(self, payload: object) -> None:
        with pytest.raises(InvalidRequestError):
            parse_message(json.dumps(payload))


class TestRecoverId:
    def test_recovers_valid_id(self) -> None:
        assert recover_id('{"id": 5, "method": 3}') == 5

    def test_none_for_garbage(self) -> None:
        assert recover_id("nope") is None
        assert recover_id('{"id": false}') is None


class TestParseResponse:
    def test_result(self) -> None:
        resp = parse_response('{"jsonrpc": "2.0", "id": 1, "result": "pong"}')
        assert resp.id == 1
        assert resp.result == "pong"
        assert not resp.is_error

    def test_null_result_is_still_a_result(self) -> None:
        resp = parse_response('{"jsonrpc": "2.0", "id": 1, "result": null}')
        assert resp.result is None
        assert not resp.is_error

    def test_error_raises_specific_subclass(self) -> None:
        resp = parse_response(
            '{"jsonrpc": "2.0", "id": 3, "error": {"code": -32000, "message": "Tool not found: x", "data": {"tool": "x"}}}'
        )
        assert resp.is_error
        with pytest.raises(ToolNotFoundFault) as exc_info:
            resp.raise_for_error()
        assert exc_info.value.code == -32000
        assert exc_info.value.data == {"tool": "x"}

    def test_rejects_both_result_and_error(self) -> None:
        with pytest.raises(InvalidRequestError):
            parse_response('{"jsonrpc": "2.0", "id": 1, "result": 1, "error": {"code": 1, "message": ""}}')

    def test_rejects_requests(self) -> None:
        with pytest.raises(InvalidRequestError):
            parse_response('{"jsonrpc": "2.0", "id": 1, "method": "ping"}')


class TestFormatting:
    def test_format_response(self) -> None:
        assert json.loads(format_response(4, {"a": 1})) == {"jsonrpc": "2.0", "id": 4, "result": {"a": 1}}

    def test_format_error_with_null_id(self) -> None:
        data = json.loads(format_error(None, ParseError("Parse error")))
        assert data["id"] is None
        assert data["error"] == {"code": -32700, "message": "Parse error"}

    def test_request_line_omits_missing_params(self) -> None:
        assert json.loads(JsonRpcRequest(id=1, method="ping").to_line()) == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "ping",
        }


class TestErrors:
    def test_not_allowed_yet_carries_method_and_state(self) -> None:
        err = MethodNotAllowedYetError("tools/list", "listening")
        assert err.code == -32601
        assert err.to_dict()["data"] == {"method": "tools/list", "state": "listening"}

    def test_unknown_code_falls_back_to_base(self) -> None:
        err = JsonRpcError.from_dict({"code": 123, "message": "odd"})
        assert type(err) is JsonRpcError
        assert err.code == 123
        assert str(err) == "[123] odd"
