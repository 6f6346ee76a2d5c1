"""Tests for core logging module."""

import logging

import pytest

from .lib import get_logger, parse_level, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        """Verify logger instance creation."""
        logger = get_logger("structure.test")
        assert logger.name == "structure.test"
        assert isinstance(logger, logging.Logger)

    @pytest.mark.unit
    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        assert get_logger().name == "structure-engine"

    @pytest.mark.unit
    def test_parse_level_names(self) -> None:
        """Level names are case-insensitive."""
        assert parse_level("debug") == logging.DEBUG
        assert parse_level(" Error ") == logging.ERROR
        assert parse_level(logging.INFO) == logging.INFO

    @pytest.mark.unit
    def test_parse_level_unknown(self) -> None:
        """Unknown names fall back to WARNING."""
        assert parse_level("chatty") == logging.WARNING

    @pytest.mark.unit
    def test_setup_quiets_http_client(self) -> None:
        """HTTP request logs stay hidden unless debugging."""
        setup_logging("info")
        assert logging.getLogger("httpx").level == logging.WARNING
        setup_logging(logging.DEBUG)
        assert logging.getLogger("httpcore").level == logging.DEBUG
