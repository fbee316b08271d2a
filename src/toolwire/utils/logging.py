"""Logging setup for the command-line entry points.

Library code never configures logging itself; components take an optional
``logger`` and fall back to ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | int = "WARNING", log_file: str | Path | None = None) -> logging.Logger:
    """Route ``toolwire`` logs to stderr and, optionally, a file.

    Handlers go on the ``toolwire`` package logger.  stdout stays untouched
    because ``toolwire serve`` speaks the protocol over it.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            msg = f"Unknown log level: {level!r}"
            raise ValueError(msg)
        level = numeric

    logger = logging.getLogger("toolwire")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)
        logger.setLevel(min(level, logging.DEBUG))

    logger.propagate = False
    return logger
