"""``toolwire chat``: talk to a model that can call the server's tools."""

from __future__ import annotations

import asyncio
import os
import sys
from typing import TYPE_CHECKING

import click

from toolwire.cli_commands._output import console, default_server_command, logging_options, print_tools_table

if TYPE_CHECKING:
    from toolwire.host.backend import ModelBackend
    from toolwire.host.config import HostConfig
    from toolwire.host.orchestrator import HostOrchestrator

_HELP_TEXT = """\
Commands:
  help   show this message
  tools  list the server's tools
  clear  forget the conversation
  exit   quit (also: quit, Ctrl-D)\
"""


@click.command()
@click.option("--server", "-s", "server_command", default=None, help="Command that starts the tool server.")
@click.option(
    "--provider",
    "-p",
    type=click.Choice(["anthropic", "openai"], case_sensitive=False),
    default=None,
    help="LLM provider (default: $LLM_PROVIDER, then anthropic).",
)
@click.option("--model", "-m", default=None, help="Model name, e.g. openai/gpt-4o.")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--max-rounds", type=click.IntRange(min=0), default=None, help="Tool rounds allowed per turn.")
@click.option("--message", default=None, help="Send one message, print the answer and exit.")
@click.option("--otlp-endpoint", default=None, help="Export traces via OTLP/gRPC (needs toolwire[otel]).")
@logging_options
def chat(
    server_command: str | None,
    provider: str | None,
    model: str | None,
    config_path: str | None,
    max_rounds: int | None,
    message: str | None,
    otlp_endpoint: str | None,
    log_level: str,
    log_file: str | None,
) -> None:
    """Chat with a model that can call tools on SERVER."""
    from toolwire.host.backend import create_backend
    from toolwire.host.config import ConfigError, HostConfig, load_host_config
    from toolwire.utils.logging import configure_logging
    from toolwire.utils.telemetry import configure_telemetry

    configure_logging(log_level, log_file)

    try:
        settings = load_host_config(config_path) if config_path else HostConfig()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)

    overrides = {
        "server_command": server_command,
        "provider": provider.lower() if provider else None,
        "model": model,
        "max_tool_rounds": max_rounds,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    if otlp_endpoint:
        try:
            configure_telemetry(otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    try:
        backend = create_backend(
            settings.provider,
            settings.model,
            api_base=settings.api_base,
            max_tokens=settings.max_tokens,
        )
    except ValueError as exc:
        console.print(f"[red]Provider error:[/red] {exc}")
        sys.exit(1)

    try:
        asyncio.run(_run_session(settings, backend, message))
    except KeyboardInterrupt:
        console.print()
    except Exception as exc:
        console.print(f"[red]Session error:[/red] {exc}")
        sys.exit(1)


async def _run_session(settings: HostConfig, backend: ModelBackend, message: str | None) -> None:
    from toolwire.client.client import ProtocolClient
    from toolwire.host.orchestrator import DEFAULT_SYSTEM_PROMPT, HostOrchestrator
    from toolwire.protocol.channel import StdioChannel

    env = {**os.environ, **settings.server_env} if settings.server_env else None
    channel = StdioChannel(settings.server_command or default_server_command(), env=env)

    async with ProtocolClient(channel) as client:
        host = HostOrchestrator(
            client,
            backend,
            system_prompt=settings.system_prompt or DEFAULT_SYSTEM_PROMPT,
            max_tool_rounds=settings.max_tool_rounds,
        )
        if message is not None:
            console.print(await host.chat(message))
            return
        await _interactive(host)


async def _interactive(host: HostOrchestrator) -> None:
    tools = await host.tools()
    console.print(f"[bold]Connected.[/bold] {len(tools)} tool(s) available. Type 'help' for commands.")

    while True:
        try:
            text = await asyncio.to_thread(console.input, "[bold green]you>[/bold green] ")
        except EOFError:
            console.print()
            return

        command = text.strip()
        if not command:
            continue
        if command.lower() in ("exit", "quit"):
            return
        if command.lower() == "help":
            console.print(_HELP_TEXT)
            continue
        if command.lower() == "clear":
            host.clear_history()
            console.print("[dim]Conversation cleared.[/dim]")
            continue
        if command.lower() == "tools":
            print_tools_table(await host.refresh_tools())
            continue

        try:
            with console.status("Thinking..."):
                answer = await host.chat(command)
        except Exception as exc:
            console.print(f"[red]Error:[/red] {exc}")
            continue

        console.print(f"[bold blue]assistant>[/bold blue] {answer}")
        if host.last_round_count:
            console.print(f"[dim]({host.last_round_count} tool round(s))[/dim]")
