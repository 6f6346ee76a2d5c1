"""Logging micro API for structure-engine."""

from .lib import get_logger, parse_level, setup_logging

__all__ = ["get_logger", "parse_level", "setup_logging"]
