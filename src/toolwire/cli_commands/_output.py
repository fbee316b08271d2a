"""Shared CLI output helpers and option sets."""

from __future__ import annotations

import json
import shlex
import sys
from collections.abc import Callable
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.table import Table

from toolwire.registry.models import ToolInfo  # noqa: TC001

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

F = TypeVar("F", bound=Callable[..., Any])


def logging_options(func: F) -> F:
    """Attach ``--log-level`` and ``--log-file`` to a command."""
    func = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True),
        default=None,
        help="Also write DEBUG-level logs to this file.",
    )(func)
    func = click.option(
        "--log-level",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default="WARNING",
        show_default=True,
        help="Log level for stderr output.",
    )(func)
    return func


def default_server_command() -> str:
    """Command that starts this package's demo server."""
    return f"{shlex.quote(sys.executable)} -m toolwire.cli serve"


def print_tools_table(tools: list[ToolInfo]) -> None:
    """Pretty-print tool descriptions as a table."""
    table = Table(title="Available Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters")

    for tool in tools:
        properties = tool.input_schema.get("properties", {})
        params = ", ".join(properties) if isinstance(properties, dict) else ""
        table.add_row(tool.name, _truncate(tool.description), params or "-")

    console.print(table)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
