"""Centralized environment configuration management for structure-engine.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from structure_engine.config import EnvVar, get_environment
    >>>
    >>> timeout = get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT)  # Returns float
    >>> locale = get_environment(EnvVar.STRUCTURE_LOCALE)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> timeout = get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT, override=30)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, overload

from structure_engine.core.log import get_logger

logger = get_logger("structure.config")


# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "STRUCTURE_LOCALE").
        default: Default value if not set in environment.
        var_type: Python type the raw text is parsed to (str, int, float, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by structure-engine.

    Categories:
        - controls: Defaults applied when building control trees
        - resolver: Reference and inheritance resolution limits
        - loader: Schema document loading
        - logging: Log output
    """

    # -------------------------------------------------------------------------
    # Control Tree Defaults
    # -------------------------------------------------------------------------
    STRUCTURE_LOCALE = EnvConfig(
        name="STRUCTURE_LOCALE",
        default=None,
        var_type=str,
        description="Locale used to pick altnames labels (e.g. 'en', 'de')",
        category="controls",
    )
    STRUCTURE_READ_ONLY = EnvConfig(
        name="STRUCTURE_READ_ONLY",
        default=False,
        var_type=bool,
        description="Build control trees in read-only mode",
        category="controls",
    )

    # -------------------------------------------------------------------------
    # Resolver Limits
    # -------------------------------------------------------------------------
    STRUCTURE_MAX_EXTENDS_DEPTH = EnvConfig(
        name="STRUCTURE_MAX_EXTENDS_DEPTH",
        default=100,
        var_type=int,
        description="Maximum $extends chain depth before resolution stops",
        category="resolver",
    )

    # -------------------------------------------------------------------------
    # Schema Loading
    # -------------------------------------------------------------------------
    STRUCTURE_FETCH_TIMEOUT = EnvConfig(
        name="STRUCTURE_FETCH_TIMEOUT",
        default=10.0,
        var_type=float,
        description="Timeout in seconds when fetching schemas over HTTP",
        category="loader",
    )
    STRUCTURE_SCHEMA_DIR = EnvConfig(
        name="STRUCTURE_SCHEMA_DIR",
        default=None,
        var_type=Path,
        description="Base directory for relative schema paths",
        category="loader",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    STRUCTURE_LOG_LEVEL = EnvConfig(
        name="STRUCTURE_LOG_LEVEL",
        default="WARNING",
        var_type=str,
        description="Log level for the CLI (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Value Parsing
# =============================================================================

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def _parse_bool(text: str) -> bool:
    normalized = text.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"not a boolean: {text!r}")


_PARSERS: dict[type, Callable[[str], Any]] = {
    str: str,
    int: lambda text: int(text.strip()),
    float: lambda text: float(text.strip()),
    bool: _parse_bool,
    Path: Path,
}


def _parse(config: EnvConfig, raw: str | None) -> Any:
    """Parse a raw variable; unset, empty or malformed text gives the default."""
    if raw is None or raw == "":
        return config.default
    parser = _PARSERS.get(config.var_type, str)
    try:
        return parser(raw)
    except ValueError:
        logger.warning(
            f"Ignoring {config.name}={raw!r}: expected {config.var_type.__name__}, "
            f"using default {config.default!r}"
        )
        return config.default


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Read a configuration value.

    An explicit ``override`` wins; otherwise the variable is read from the
    process environment (after `.env` loading) and parsed to the declared
    type, falling back to the declared default.

    Args:
        env_var: Variable to read.
        override: Caller-supplied value; None means "not supplied".

    Returns:
        The typed value.

    Example:
        >>> get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH)
        100
        >>> get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH, override=5)
        5
    """
    if override is not None:
        return override
    config: EnvConfig = env_var.value
    return _parse(config, os.environ.get(config.name))


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_default_locale(override: str | None = None) -> str | None:
    """Locale used for labels when the caller does not pass one."""
    return get_environment(EnvVar.STRUCTURE_LOCALE, override=override)


def get_log_level(override: str | None = None) -> str:
    """Upper-cased log level name for the CLI."""
    return str(get_environment(EnvVar.STRUCTURE_LOG_LEVEL, override=override)).upper()


def resolve_schema_path(path: Path | str) -> Path:
    """Resolve a schema path against STRUCTURE_SCHEMA_DIR.

    Absolute paths, and all paths when the variable is unset, are returned
    unchanged.
    """
    candidate = Path(path)
    base = get_environment(EnvVar.STRUCTURE_SCHEMA_DIR)
    if base is None or candidate.is_absolute():
        return candidate
    return Path(base) / candidate


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (controls, resolver, loader, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_default_locale",
    "get_log_level",
    "resolve_schema_path",
    # Introspection
    "list_environment_variables",
]
