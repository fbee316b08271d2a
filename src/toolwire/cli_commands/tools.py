"""``toolwire tools``: inspect and call a server's tools directly."""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

import click

from toolwire.cli_commands._output import console, print_json, print_tools_table

if TYPE_CHECKING:
    from toolwire.client.client import ProtocolClient

T = TypeVar("T")


def _with_client(server: str, action: Callable[[ProtocolClient], Awaitable[T]]) -> T:
    """Connect to SERVER, run *action*, and shut the server down again."""
    from toolwire.client.client import ProtocolClient
    from toolwire.protocol.channel import StdioChannel

    async def _run() -> T:
        async with ProtocolClient(StdioChannel(server)) as client:
            return await action(client)

    return asyncio.run(_run())


@click.group()
def tools() -> None:
    """Inspect and call tools on a server."""


@tools.command("list")
@click.argument("server")
def list_cmd(server: str) -> None:
    """List the tools exposed by SERVER (a command that starts the server)."""
    try:
        infos = _with_client(server, lambda client: client.list_tools())
    except Exception as exc:
        console.print(f"[red]Discovery error:[/red] {exc}")
        sys.exit(1)

    if not infos:
        console.print("[yellow]No tools available.[/yellow]")
        return

    print_tools_table(infos)


@tools.command("call")
@click.argument("server")
@click.argument("name")
@click.option("--args", "-a", "raw_args", default="{}", help="Tool arguments as a JSON object.")
def call_cmd(server: str, name: str, raw_args: str) -> None:
    """Call tool NAME on SERVER and print its output as JSON."""
    try:
        arguments: Any = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--args") from exc
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    try:
        output = _with_client(server, lambda client: client.call_tool(name, arguments))
    except Exception as exc:
        console.print(f"[red]Call error:[/red] {exc}")
        sys.exit(1)

    print_json(output)


@tools.command("ping")
@click.argument("server")
def ping_cmd(server: str) -> None:
    """Check that SERVER answers."""
    try:
        reply = _with_client(server, lambda client: client.ping())
    except Exception as exc:
        console.print(f"[red]Ping error:[/red] {exc}")
        sys.exit(1)

    console.print(f"[green]{reply}[/green]")
