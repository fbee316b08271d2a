"""Tests for ``toolwire tools`` CLI commands."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from toolwire.cli import main
from toolwire.protocol.errors import ToolNotFoundFault
from toolwire.registry import ToolInfo


def _mock_client(mock_client_cls: MagicMock) -> MagicMock:
    mock_instance = mock_client_cls.return_value
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_instance


class TestToolsList:
    def test_list_tools(self) -> None:
        infos = [ToolInfo(name="dice", description="Roll a die", input_schema={"properties": {"sides": {}}})]
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            _mock_client(mock_client_cls).list_tools = AsyncMock(return_value=infos)

            result = CliRunner().invoke(main, ["tools", "list", "my-server"])

            assert result.exit_code == 0
            assert "dice" in result.output
            assert "sides" in result.output

    def test_list_no_tools(self) -> None:
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            _mock_client(mock_client_cls).list_tools = AsyncMock(return_value=[])

            result = CliRunner().invoke(main, ["tools", "list", "my-server"])

            assert result.exit_code == 0
            assert "No tools available" in result.output

    def test_list_error(self) -> None:
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            _mock_client(mock_client_cls).__aenter__ = AsyncMock(side_effect=RuntimeError("fail"))

            result = CliRunner().invoke(main, ["tools", "list", "bad-server"])

            assert result.exit_code == 1
            assert "Discovery error" in result.output


class TestToolsCall:
    def test_call_prints_json(self) -> None:
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            client = _mock_client(mock_client_cls)
            client.call_tool = AsyncMock(return_value={"result": 4, "sides": 6})

            result = CliRunner().invoke(main, ["tools", "call", "srv", "dice", "--args", '{"sides": 6}'])

            assert result.exit_code == 0
            assert '"result": 4' in result.output
            client.call_tool.assert_awaited_once_with("dice", {"sides": 6})

    def test_call_rejects_bad_json(self) -> None:
        result = CliRunner().invoke(main, ["tools", "call", "srv", "dice", "--args", "{oops"])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_call_rejects_non_object(self) -> None:
        result = CliRunner().invoke(main, ["tools", "call", "srv", "dice", "--args", "[1]"])
        assert result.exit_code == 2

    def test_call_error(self) -> None:
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            _mock_client(mock_client_cls).call_tool = AsyncMock(side_effect=ToolNotFoundFault("Tool not found: x"))

            result = CliRunner().invoke(main, ["tools", "call", "srv", "x"])

            assert result.exit_code == 1
            assert "Tool not found: x" in result.output


class TestToolsPing:
    def test_ping(self) -> None:
        with patch("toolwire.client.client.ProtocolClient") as mock_client_cls:
            _mock_client(mock_client_cls).ping = AsyncMock(return_value="pong")

            result = CliRunner().invoke(main, ["tools", "ping", "srv"])

            assert result.exit_code == 0
            assert "pong" in result.output


class TestToolsAgainstRealServer:
    def test_ping_spawned_server(self) -> None:
        from toolwire.cli_commands._output import default_server_command

        result = CliRunner().invoke(main, ["tools", "ping", default_server_command()])

        assert result.exit_code == 0, result.output
        assert "pong" in result.output
