"""Tests for logging setup."""

import logging

import pytest

from video_text_search.errors import ConfigurationError
from video_text_search.utils.logging_config import (
    LOGGER_NAME,
    get_logger,
    parse_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Leave the package logger in its default state."""
    yield
    setup_logging()


class TestParseLevel:
    """Tests for log level parsing."""

    @pytest.mark.parametrize(
        "name, expected",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), (" Warning ", logging.WARNING)],
    )
    def test_names(self, name, expected):
        assert parse_level(name) == expected

    def test_numeric_level_passes_through(self):
        assert parse_level(15) == 15

    @pytest.mark.parametrize("name", ["verbose", "", "TRACE"])
    def test_invalid(self, name):
        with pytest.raises(ConfigurationError, match="Invalid log level"):
            parse_level(name)


class TestSetupLogging:
    """Tests for handler installation."""

    def test_level_and_handlers(self, temp_dir):
        """Test console and file handlers on the package logger."""
        log_file = temp_dir / "run.log"
        logger = setup_logging(level="debug", log_file=log_file, rich_formatting=False)

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert get_logger() is logger

        logger.debug("frame 7 done")
        for handler in logger.handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "DEBUG - frame 7 done" in content
        assert "MainThread" in content

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_unwritable_log_file_keeps_current_setup(self, temp_dir):
        """Test that a failed setup leaves the previous handlers untouched."""
        logger = setup_logging(level="WARNING")
        handlers = list(logger.handlers)

        with pytest.raises(ConfigurationError, match="Could not open log file"):
            setup_logging(level="DEBUG", log_file=temp_dir / "missing" / "run.log")

        assert logger.handlers == handlers
        assert logger.level == logging.WARNING

    def test_invalid_level_keeps_current_setup(self):
        logger = setup_logging(level="ERROR")
        with pytest.raises(ConfigurationError):
            setup_logging(level="chatty")
        assert logger.level == logging.ERROR
