"""``toolwire serve``: run the demo tool server on stdio."""

from __future__ import annotations

import asyncio

import click

from toolwire.cli_commands._output import logging_options

_TOOL_NAMES = ["dice", "current_time", "weather"]


@click.command()
@click.option(
    "--tool",
    "tool_names",
    multiple=True,
    type=click.Choice(_TOOL_NAMES),
    help="Serve only this tool (repeatable). Defaults to all demo tools.",
)
@logging_options
def serve(tool_names: tuple[str, ...], log_level: str, log_file: str | None) -> None:
    """Serve the demo tools over stdin/stdout.

    stdout carries protocol messages only; logs go to stderr.
    """
    from toolwire import __version__
    from toolwire.protocol.channel import TextStreamChannel
    from toolwire.server.server import ProtocolServer
    from toolwire.tools import default_tools
    from toolwire.utils.logging import configure_logging

    logger = configure_logging(log_level, log_file)

    server = ProtocolServer(TextStreamChannel(), server_name="toolwire", version=__version__, logger=logger)
    for tool in default_tools():
        if not tool_names or tool.name in tool_names:
            server.register_tool(tool)

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
