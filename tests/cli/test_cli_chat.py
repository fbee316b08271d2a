"""Tests for ``toolwire chat``."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from toolwire.cli import main


def _patched_session(answer: str = "It is sunny.") -> tuple[MagicMock, MagicMock]:
    client_cls = MagicMock()
    client = client_cls.return_value
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)

    host_cls = MagicMock()
    host_cls.return_value.chat = AsyncMock(return_value=answer)
    return client_cls, host_cls


class TestChatOneShot:
    def test_single_message(self) -> None:
        client_cls, host_cls = _patched_session()
        with (
            patch("toolwire.client.client.ProtocolClient", client_cls),
            patch("toolwire.host.orchestrator.HostOrchestrator", host_cls),
            patch("toolwire.protocol.channel.StdioChannel") as channel_cls,
        ):
            result = CliRunner().invoke(
                main,
                ["chat", "--provider", "openai", "--server", "my-server", "--max-rounds", "3", "--message", "weather?"],
            )

        assert result.exit_code == 0, result.output
        assert "It is sunny." in result.output
        host_cls.return_value.chat.assert_awaited_once_with("weather?")
        assert host_cls.call_args.kwargs["max_tool_rounds"] == 3
        assert channel_cls.call_args.args[0] == "my-server"

    def test_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "host.yaml"
        config.write_text("server_command: from-config\nprovider: anthropic\nsystem_prompt: Be brief.\n")
        client_cls, host_cls = _patched_session()
        with (
            patch("toolwire.client.client.ProtocolClient", client_cls),
            patch("toolwire.host.orchestrator.HostOrchestrator", host_cls),
            patch("toolwire.protocol.channel.StdioChannel") as channel_cls,
        ):
            result = CliRunner().invoke(main, ["chat", "--config", str(config), "--message", "hi"])

        assert result.exit_code == 0, result.output
        assert channel_cls.call_args.args[0] == "from-config"
        assert host_cls.call_args.kwargs["system_prompt"] == "Be brief."

    def test_bad_config(self, tmp_path: Path) -> None:
        config = tmp_path / "host.yaml"
        config.write_text("max_tool_rounds: lots\n")
        result = CliRunner().invoke(main, ["chat", "--config", str(config), "--message", "hi"])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_session_error(self) -> None:
        client_cls, host_cls = _patched_session()
        client_cls.return_value.__aenter__ = AsyncMock(side_effect=ConnectionError("no server"))
        with (
            patch("toolwire.client.client.ProtocolClient", client_cls),
            patch("toolwire.host.orchestrator.HostOrchestrator", host_cls),
            patch("toolwire.protocol.channel.StdioChannel"),
        ):
            result = CliRunner().invoke(main, ["chat", "--provider", "openai", "--message", "hi"])

        assert result.exit_code == 1
        assert "Session error" in result.output


class TestChatInteractive:
    def test_commands_and_exit(self) -> None:
        client_cls, host_cls = _patched_session("Rolled a 5.")
        host = host_cls.return_value
        host.tools = AsyncMock(return_value=[])
        host.refresh_tools = AsyncMock(return_value=[])
        host.last_round_count = 1
        with (
            patch("toolwire.client.client.ProtocolClient", client_cls),
            patch("toolwire.host.orchestrator.HostOrchestrator", host_cls),
            patch("toolwire.protocol.channel.StdioChannel"),
        ):
            result = CliRunner().invoke(
                main,
                ["chat", "--provider", "openai"],
                input="help\nroll a die\nclear\nexit\n",
            )

        assert result.exit_code == 0, result.output
        assert "Commands:" in result.output
        assert "Rolled a 5." in result.output
        host.chat.assert_awaited_once_with("roll a die")
        host.clear_history.assert_called_once()
