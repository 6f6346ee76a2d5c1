"""Validation module - value checks, readable findings and controller status.

Example usage:
    >>> from structure_engine.validation import bind_validation, validate
    >>> errors = validate({"age": 300}, schema)
    >>> cancel = bind_validation(root, schema)
    >>> root.object().field("age").error
    'Must be between 0 and 255; Must be at most 130'
"""

from .lib import (
    FormattedValidationError,
    RawValidationError,
    SchemaValidationError,
    build_validation,
    format_validation_error,
    format_validation_errors,
    get_child_errors,
    get_errors_for_path,
    group_errors_by_path,
    has_errors_at_path,
    parse_pointer,
    validate_schema_document,
)
from .values import (
    Match,
    StructureValidator,
    ValidationResult,
    bind_validation,
    validate,
    validate_controller,
)

__all__ = [
    # Error types
    "RawValidationError",
    "FormattedValidationError",
    "SchemaValidationError",
    # Value validation
    "Match",
    "ValidationResult",
    "StructureValidator",
    "validate",
    "validate_controller",
    "bind_validation",
    # Formatting
    "format_validation_error",
    "format_validation_errors",
    # Lookup
    "group_errors_by_path",
    "get_errors_for_path",
    "has_errors_at_path",
    "get_child_errors",
    # Controller status
    "parse_pointer",
    "build_validation",
    # Schema checks
    "validate_schema_document",
]
