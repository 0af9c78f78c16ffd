"""Tests for CLI configuration and logging setup."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from block_index.__main__ import ColoredFormatter, build_config, setup_logging


def _args(**overrides: object) -> argparse.Namespace:
    values: dict[str, object] = {
        "db": Path("cache.sqlite3"),
        "api_host": "127.0.0.1",
        "api_port": 5058,
        "no_api": False,
        "sync_interval": 3600.0,
        "verbose": False,
        "no_color": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Undo root logger changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


class TestBuildConfig:
    """Tests for translating arguments into a node configuration."""

    def test_defaults_enable_api(self) -> None:
        """Without --no-api the server is configured from host and port."""
        config = build_config(_args(api_port=6000))

        assert config.database_path == Path("cache.sqlite3")
        assert config.api_config is not None
        assert config.api_config.host == "127.0.0.1"
        assert config.api_config.port == 6000

    def test_no_api(self) -> None:
        """--no-api leaves the server out."""
        assert build_config(_args(no_api=True)).api_config is None

    def test_sync_interval(self) -> None:
        """The interval reaches the sync configuration."""
        assert build_config(_args(sync_interval=900.0)).sync_config.sync_interval == 900.0


@pytest.mark.usefixtures("restore_logging")
class TestSetupLogging:
    """Tests for logging configuration."""

    def test_default_level_quiets_httpx(self) -> None:
        """INFO by default, with per-request httpx lines suppressed."""
        setup_logging()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING
        assert isinstance(logging.getLogger().handlers[-1].formatter, ColoredFormatter)

    def test_verbose_enables_debug(self) -> None:
        """-v switches to DEBUG."""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_no_color_uses_plain_formatter(self) -> None:
        """--no-color uses a plain formatter."""
        setup_logging(no_color=True)
        formatter = logging.getLogger().handlers[-1].formatter
        assert formatter is not None
        assert not isinstance(formatter, ColoredFormatter)


class TestColoredFormatter:
    """Tests for the colored log formatter."""

    def test_includes_level_name_and_message(self) -> None:
        """Formatted lines carry the logger, level and message."""
        record = logging.LogRecord("block_index.sync", logging.WARNING, "", 0, "stale lock", None, None)
        line = ColoredFormatter().format(record)

        assert "WARNING" in line
        assert "block_index.sync" in line
        assert line.endswith("stale lock")
