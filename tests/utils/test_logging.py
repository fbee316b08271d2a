"""Tests for CLI logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from toolwire.utils.logging import configure_logging


class TestConfigureLogging:
    def test_rich_handler_on_stderr(self) -> None:
        logger = configure_logging("info")
        assert logger.name == "toolwire"
        assert logger.level == logging.INFO
        assert [type(h) for h in logger.handlers] == [RichHandler]
        assert logger.handlers[0].console.stderr

    def test_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "toolwire.log"
        logger = configure_logging("WARNING", log_file)
        logging.getLogger("toolwire.server").debug("written to file only")
        for handler in logger.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_reconfigure_replaces_handlers(self) -> None:
        configure_logging("DEBUG")
        logger = configure_logging("ERROR")
        assert len(logger.handlers) == 1

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")
