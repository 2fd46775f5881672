"""
Tests for shipfit Structured Logging.

Tests logger configuration, formatters, and utility functions.
"""

from __future__ import annotations

import json
import logging
import sys

from shipfit.core.logging import (
    ShipfitFormatter,
    debug_enabled,
    get_logger,
    reset_logging,
    set_log_level,
)


def _record(name: str, level: int, msg: str, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


# =============================================================================
# ShipfitFormatter Tests
# =============================================================================


class TestShipfitFormatter:
    """Test ShipfitFormatter class."""

    def test_text_format_basic(self):
        """Text format includes level and module."""
        formatter = ShipfitFormatter(json_output=False)

        formatted = formatter.format(_record("shipfit.fitting.stats", logging.INFO, "Hello"))

        assert formatted == "[SHIPFIT INFO] [stats] Hello"

    def test_text_format_with_exception(self):
        """Text format includes exception info."""
        formatter = ShipfitFormatter(json_output=False)
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        formatted = formatter.format(_record("shipfit.test", logging.ERROR, "Boom", exc_info))

        assert "ValueError" in formatted
        assert "Test error" in formatted

    def test_json_format_basic(self):
        """JSON format produces valid JSON."""
        formatter = ShipfitFormatter(json_output=True)

        data = json.loads(formatter.format(_record("shipfit.test", logging.INFO, "Hi")))

        assert data["level"] == "INFO"
        assert data["logger"] == "shipfit.test"
        assert data["message"] == "Hi"
        assert "timestamp" in data

    def test_json_format_with_extra(self):
        """JSON format includes extra fields."""
        formatter = ShipfitFormatter(json_output=True)
        record = _record("shipfit.test", logging.INFO, "Fit imported")
        record.fit_name = "PvE Rifter"

        data = json.loads(formatter.format(record))

        assert data["fit_name"] == "PvE Rifter"


# =============================================================================
# Logger Management Tests
# =============================================================================


class TestGetLogger:
    """Test get_logger caching and configuration."""

    def test_logger_is_cached(self):
        """Same name returns the same logger."""
        assert get_logger("shipfit.test.cached") is get_logger("shipfit.test.cached")

    def test_logger_does_not_propagate(self):
        """Loggers use their own handler instead of the root logger."""
        logger = get_logger("shipfit.test.isolated")

        assert logger.propagate is False
        assert logger.handlers

    def test_set_log_level_applies_to_all(self):
        """set_log_level changes every cached logger."""
        first = get_logger("shipfit.test.one")
        second = get_logger("shipfit.test.two")

        set_log_level(logging.ERROR)

        assert first.level == logging.ERROR
        assert second.level == logging.ERROR

    def test_reset_restores_propagation(self):
        """reset_logging lets records reach caplog again."""
        logger = get_logger("shipfit.test.reset")

        reset_logging()

        assert logger.propagate is True
        assert logger.level == logging.NOTSET

    def test_reset_logging_enables_caplog(self, caplog):
        """Records from module loggers reach caplog after a reset."""
        logger = get_logger("shipfit.test.caplog")
        reset_logging()

        with caplog.at_level(logging.WARNING, logger="shipfit.test.caplog"):
            logger.warning("Skipped %d lines", 2)

        assert "Skipped 2 lines" in caplog.text


class TestDebugEnabled:
    """Test debug_enabled helper."""

    def test_default_is_not_debug(self):
        assert debug_enabled() is False

    def test_debug_from_env(self, monkeypatch):
        from shipfit.core.config import reset_settings

        monkeypatch.setenv("SHIPFIT_LOG_LEVEL", "DEBUG")
        reset_settings()

        assert debug_enabled() is True
