"""Tests for ColoredFormatter."""

import logging
from io import StringIO
from unittest.mock import patch

import pytest

from sayu_player.utils.logging import ColoredFormatter

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


def _make_record(level: int, message: str = "test", name: str = "test.logger") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def _tty_stream() -> StringIO:
    stream = StringIO()
    stream.isatty = lambda: True  # type: ignore[attr-defined]
    return stream


class TestColoredFormatter:
    """Tests for ANSI color formatting."""

    @pytest.mark.parametrize(
        "level",
        [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL],
    )
    def test_color_applied_per_level(self, level: int):
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=_tty_stream())

        output = fmt.format(_make_record(level))

        assert LEVEL_COLORS[level] in output
        assert RESET in output

    def test_no_color_when_no_color_env_set(self):
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=_tty_stream())

        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = fmt.format(_make_record(logging.INFO))

        assert "\033[" not in output

    def test_no_color_when_stream_not_tty(self):
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO())

        output = fmt.format(_make_record(logging.ERROR))

        assert output == "ERROR | test"

    def test_original_record_not_mutated(self):
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=_tty_stream())
        record = _make_record(logging.WARNING)

        fmt.format(record)

        assert record.levelname == "WARNING"


class TestLoggerNames:
    """Tests for shortening package logger names."""

    def test_package_logger_is_shortened(self):
        fmt = ColoredFormatter("%(name)s: %(message)s", stream=StringIO())
        record = _make_record(
            logging.INFO, "hi", name="sayu_player.application.services.playback_engine"
        )

        assert fmt.format(record) == "playback_engine: hi"
        assert record.name == "sayu_player.application.services.playback_engine"

    def test_foreign_logger_kept(self):
        fmt = ColoredFormatter("%(name)s: %(message)s", stream=StringIO())

        assert fmt.format(_make_record(logging.INFO, "hi", name="discord.gateway")) == (
            "discord.gateway: hi"
        )
