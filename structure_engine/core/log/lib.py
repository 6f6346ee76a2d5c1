"""Logging setup for structure-engine.

Engine modules log under ``structure.<area>`` (``structure.controls``,
``structure.resolver``...); the CLI logs under ``cli``.
"""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging", "parse_level"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers of the HTTP stack used for fetching schemas.
HTTP_LOGGERS = ("httpx", "httpcore")


def parse_level(value: str | int) -> int:
    """Turn a level name such as ``"debug"`` into a logging constant.

    Unknown names map to WARNING.
    """
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure root logging for the CLI.

    Request logs of the HTTP client are only shown at DEBUG.

    Args:
        level: Logging level, as a constant or a name.
        stream: Output stream.
    """
    numeric = parse_level(level)
    logging.basicConfig(level=numeric, format=LOG_FORMAT, stream=stream)
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(
            numeric if numeric <= logging.DEBUG else max(numeric, logging.WARNING)
        )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger. Defaults to ``structure-engine``.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "structure-engine")
