"""Centralized configuration management for structure-engine.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from structure_engine.config import EnvVar, get_environment
    >>>
    >>> depth = get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH)  # 100
    >>> for var in list_environment_variables("loader"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    controls: Locale and read-only defaults for control trees
    resolver: $extends depth limit
    loader: HTTP timeout and base directory for schema documents
    logging: CLI log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Convenience functions
    get_default_locale,
    # Main interface
    get_environment,
    get_environment_info,
    get_log_level,
    # Introspection
    list_environment_variables,
    resolve_schema_path,
)

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
