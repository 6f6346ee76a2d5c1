"""Validation helpers.

Instance values are checked by `StructureValidator` in `values.py` (or by
any external validator reporting the same codes). This module turns raw
findings into readable messages and folds them into the
`ControllerValidation` tree that controllers consume. It also checks a
schema document for problems the engine would otherwise only log while
building controls.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from structure_engine.controller import ControllerError, ControllerValidation
from structure_engine.core.log import get_logger
from structure_engine.resolver import parse_ref_path, resolve_ref_path
from structure_engine.schema import (
    ALL_TYPES,
    INTEGER_BOUNDS,
    TypeDefinition,
    is_type_definition,
    is_type_reference,
)

logger = get_logger("structure.validation")


# =============================================================================
# Error Types
# =============================================================================


@dataclass
class RawValidationError:
    """Finding reported by a validator.

    Attributes:
        path: JSON pointer of the offending value.
        type: Error code (``minLength``, ``required``...).
        expected: Constraint value.
        actual: Offending value.
        context: Extra data, such as a ``message`` fallback.
    """

    path: str
    type: str
    expected: Any = None
    actual: Any = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class FormattedValidationError:
    """User-facing finding."""

    path: str
    message: str
    code: str


@dataclass
class SchemaValidationError:
    """Problem found in a schema document."""

    path: str
    message: str


# =============================================================================
# Message Table
# =============================================================================

TYPE_NAMES: dict[str, str] = {
    "string": "text",
    "boolean": "true/false",
    "int8": "integer (-128 to 127)",
    "int16": "integer (-32768 to 32767)",
    "int32": "integer",
    "int64": "large integer",
    "int128": "very large integer",
    "uint8": "positive integer (0 to 255)",
    "uint16": "positive integer (0 to 65535)",
    "uint32": "positive integer",
    "uint64": "large positive integer",
    "uint128": "very large positive integer",
    "float": "decimal number",
    "double": "decimal number",
    "decimal": "decimal number",
    "date": "date",
    "datetime": "date and time",
    "time": "time",
    "duration": "duration",
    "uuid": "UUID",
    "uri": "URL",
    "binary": "binary data",
    "object": "object",
    "array": "list",
    "set": "unique list",
    "map": "key-value pairs",
    "tuple": "ordered list",
    "choice": "one of multiple options",
    "any": "any value",
    "null": "empty",
}

KNOWN_PATTERNS: dict[str, str] = {
    "^[a-zA-Z]+$": "letters only",
    "^[0-9]+$": "numbers only",
    "^[a-zA-Z0-9]+$": "letters and numbers only",
    "^\\S+$": "no spaces allowed",
    "^[a-z]+$": "lowercase letters only",
    "^[A-Z]+$": "uppercase letters only",
}

FORMAT_MESSAGES: dict[str, str] = {
    "email": "Must be a valid email address",
    "date-time": "Must be a valid date and time",
    "date": "Must be a valid date",
    "time": "Must be a valid time",
    "uri": "Must be a valid URL",
    "uri-reference": "Must be a valid URL or relative path",
    "uuid": "Must be a valid UUID",
    "hostname": "Must be a valid hostname",
    "ipv4": "Must be a valid IPv4 address",
    "ipv6": "Must be a valid IPv6 address",
    "regex": "Must be a valid regular expression",
    "json-pointer": "Must be a valid JSON pointer",
}

# Messages that only interpolate ``expected``.
SIMPLE_MESSAGES: dict[str, str] = {
    "type_mismatch": "Value must be of type {expected}",
    "minLength": "Must be at least {expected} characters",
    "maxLength": "Must be no more than {expected} characters",
    "minimum": "Must be at least {expected}",
    "maximum": "Must be at most {expected}",
    "exclusiveMinimum": "Must be greater than {expected}",
    "exclusiveMaximum": "Must be less than {expected}",
    "multipleOf": "Must be a multiple of {expected}",
    "minItems": "Must have at least {expected} items",
    "maxItems": "Must have no more than {expected} items",
    "uniqueItems": "All items must be unique",
    "contains": "Must contain at least one matching item",
    "minContains": "Must contain at least {expected} matching items",
    "maxContains": "Must contain no more than {expected} matching items",
    "required": "This field is required",
    "minProperties": "Must have at least {expected} properties",
    "maxProperties": "Must have no more than {expected} properties",
    "minEntries": "Must have at least {expected} entries",
    "maxEntries": "Must have no more than {expected} entries",
    "tuple_length": "Must have exactly {expected} items",
    "ref_not_found": "Invalid reference: {expected}",
    "circular_ref": "Circular reference detected",
    "invalid": "Invalid value",
}


def _type_expected(expected: Any) -> str:
    if isinstance(expected, str):
        return TYPE_NAMES.get(expected, expected)
    if isinstance(expected, list):
        return " or ".join(TYPE_NAMES.get(str(t), str(t)) for t in expected)
    return str(expected)


def _type_actual(actual: Any) -> str:
    if actual is None:
        return "null"
    if isinstance(actual, bool):
        return "boolean"
    if isinstance(actual, int | float):
        return "number"
    if isinstance(actual, str):
        return "string"
    if isinstance(actual, list | tuple):
        return "array"
    if isinstance(actual, dict):
        return "object"
    return type(actual).__name__


def _pattern_message(
    error: RawValidationError, definition: TypeDefinition | None
) -> str:
    description = (definition or {}).get("description")
    if description:
        return f"Does not match required format: {description}"
    pattern = error.expected if isinstance(error.expected, str) else None
    known = KNOWN_PATTERNS.get(pattern) if pattern else None
    if known:
        return f"Must be {known}"
    return "Does not match required format"


def _integer_bounds_message(error: RawValidationError) -> str:
    bounds = INTEGER_BOUNDS.get(error.context.get("type"))
    if bounds is None:
        return "Value is out of range for this integer type"
    return f"Must be between {bounds[0]} and {bounds[1]}"


def _dependent_required_message(error: RawValidationError) -> str:
    dependent = error.context.get("dependent")
    required = error.context.get("required")
    if dependent and required:
        names = '", "'.join(required)
        return f'When "{dependent}" is present, "{names}" must also be provided'
    return "Missing required dependent fields"


def _enum_message(error: RawValidationError) -> str:
    allowed = error.expected
    if isinstance(allowed, list) and allowed and len(allowed) <= 5:
        return "Must be one of: " + ", ".join(json.dumps(v) for v in allowed)
    return "Invalid value"


def _message(error: RawValidationError, definition: TypeDefinition | None) -> str:
    match error.type:
        case "type":
            return (
                f"Expected {_type_expected(error.expected)}, "
                f"got {_type_actual(error.actual)}"
            )
        case "type_mismatch":
            return SIMPLE_MESSAGES["type_mismatch"].format(
                expected=_type_expected(error.expected)
            )
        case "pattern":
            return _pattern_message(error, definition)
        case "format":
            fmt = str(error.expected)
            return FORMAT_MESSAGES.get(fmt, f"Must be a valid {fmt}")
        case "integer_bounds":
            return _integer_bounds_message(error)
        case "additionalProperties":
            return f"Unknown property: {error.actual}"
        case "dependentRequired":
            return _dependent_required_message(error)
        case "enum":
            return _enum_message(error)
        case "const":
            return f"Must be exactly {json.dumps(error.expected)}"
        case "choice" if isinstance(error.expected, list) and error.expected:
            return "Must be one of the options: " + ", ".join(map(str, error.expected))
        case code if code in SIMPLE_MESSAGES:
            return SIMPLE_MESSAGES[code].format(expected=error.expected)
    return error.context.get("message") or f"Validation error: {error.type}"


def format_validation_error(
    error: RawValidationError, definition: TypeDefinition | None = None
) -> FormattedValidationError:
    """Turn a raw finding into a readable one.

    Args:
        error: Validator finding.
        definition: Definition at the error path, used for pattern hints.

    Example:
        >>> error = RawValidationError("/name", "minLength", 3)
        >>> format_validation_error(error).message
        'Must be at least 3 characters'
    """
    return FormattedValidationError(error.path, _message(error, definition), error.type)


def format_validation_errors(
    errors: Iterable[RawValidationError],
    definitions: dict[str, TypeDefinition] | None = None,
) -> list[FormattedValidationError]:
    """Format several findings; ``definitions`` is keyed by JSON pointer."""
    definitions = definitions or {}
    return [format_validation_error(e, definitions.get(e.path)) for e in errors]


# =============================================================================
# Lookup by Path
# =============================================================================


def group_errors_by_path(
    errors: Iterable[FormattedValidationError],
) -> dict[str, list[FormattedValidationError]]:
    grouped: dict[str, list[FormattedValidationError]] = {}
    for error in errors:
        grouped.setdefault(error.path, []).append(error)
    return grouped


def get_errors_for_path(
    errors: Iterable[FormattedValidationError], path: str
) -> list[FormattedValidationError]:
    return [error for error in errors if error.path == path]


def has_errors_at_path(errors: Iterable[FormattedValidationError], path: str) -> bool:
    return any(error.path == path for error in errors)


def get_child_errors(
    errors: Iterable[FormattedValidationError], parent_path: str
) -> list[FormattedValidationError]:
    """Errors strictly below ``parent_path`` ("" is the root)."""
    prefix = "/" if parent_path == "" else f"{parent_path}/"
    return [error for error in errors if error.path.startswith(prefix)]


# =============================================================================
# Controller Status
# =============================================================================


def parse_pointer(pointer: str) -> list[str]:
    """Split a JSON pointer into unescaped segments.

    Example:
        >>> parse_pointer("/a~1b/0")
        ['a/b', '0']
    """
    if pointer in ("", "/"):
        return []
    return [
        segment.replace("~1", "/").replace("~0", "~")
        for segment in pointer.lstrip("/").split("/")
    ]


def build_validation(
    errors: Iterable[FormattedValidationError],
) -> ControllerValidation:
    """Fold findings into the status tree read by `map_validation`.

    Messages recorded at the same position are joined with ``"; "``. The
    result is valid when there are no findings.

    Example:
        >>> root.status.set(build_validation(formatted))
        >>> root.object().field("name").error
        'Must be at least 3 characters'
    """
    root = ControllerError()
    count = 0
    for error in errors:
        node = root
        for segment in parse_pointer(error.path):
            node = node.dependencies.setdefault(segment, ControllerError())
        if node.message is None:
            node.message = error.message
        else:
            node.message = f"{node.message}; {error.message}"
        count += 1
    if count == 0:
        return ControllerValidation.valid()
    logger.debug(f"Built validation status from {count} errors")
    return ControllerValidation.invalid(root)


# =============================================================================
# Schema Document Checks
# =============================================================================


def _ref_exists(schema: dict[str, Any], ref: str) -> bool:
    return is_type_definition(resolve_ref_path(schema, parse_ref_path(ref)))


def _escape(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def _check_definition(
    schema: dict[str, Any],
    definition: TypeDefinition,
    path: str,
    found: list[SchemaValidationError],
) -> None:
    type_spec = definition.get("type")
    if is_type_reference(type_spec):
        ref = type_spec["$ref"]
        if not _ref_exists(schema, ref):
            found.append(SchemaValidationError(path, f"Unresolvable $ref: {ref}"))
    else:
        keywords = type_spec if isinstance(type_spec, list) else [type_spec]
        for keyword in keywords:
            if isinstance(keyword, str) and keyword not in ALL_TYPES:
                found.append(SchemaValidationError(path, f"Unknown type: {keyword}"))

    extends = definition.get("$extends")
    for ref in [extends] if isinstance(extends, str) else extends or []:
        if isinstance(ref, str) and not _ref_exists(schema, ref):
            found.append(SchemaValidationError(path, f"Unresolvable $extends: {ref}"))

    properties = definition.get("properties")
    if type_spec == "tuple":
        names = definition.get("tuple")
        if not isinstance(names, list):
            found.append(SchemaValidationError(path, "Tuple requires a 'tuple' list"))
        else:
            declared = properties if isinstance(properties, dict) else {}
            for name in names:
                if name not in declared:
                    found.append(
                        SchemaValidationError(
                            path, f"Tuple member '{name}' has no property definition"
                        )
                    )

    choices = definition.get("choices")
    if type_spec == "choice" and not isinstance(choices, dict):
        found.append(
            SchemaValidationError(path, "Choice requires a 'choices' mapping")
        )

    nested: list[tuple[str, Any]] = []
    for keyword in ("properties", "choices"):
        members = definition.get(keyword)
        if isinstance(members, dict):
            nested.extend(
                (f"{path}/{keyword}/{_escape(key)}", member)
                for key, member in members.items()
            )
    for keyword in ("items", "values", "additionalProperties"):
        member = definition.get(keyword)
        if isinstance(member, dict):
            nested.append((f"{path}/{keyword}", member))

    for child_path, member in nested:
        if isinstance(member, dict):
            _check_definition(schema, member, child_path, found)


def _check_namespace(
    schema: dict[str, Any],
    namespace: dict[str, Any],
    path: str,
    found: list[SchemaValidationError],
) -> None:
    for key, member in namespace.items():
        member_path = f"{path}/{_escape(key)}"
        if is_type_definition(member):
            _check_definition(schema, member, member_path, found)
        elif isinstance(member, dict):
            _check_namespace(schema, member, member_path, found)


def validate_schema_document(schema: dict[str, Any]) -> list[SchemaValidationError]:
    """Find structural problems in a schema document.

    Reports unresolvable ``$root``, ``$ref`` and ``$extends`` pointers,
    unknown type keywords, tuples naming undeclared members, and choices
    without a ``choices`` mapping. Paths are JSON pointers into the document.

    Args:
        schema: Root document.

    Returns:
        Findings in document order; empty for a sound document.
    """
    found: list[SchemaValidationError] = []
    root = schema.get("$root")
    if isinstance(root, str) and not _ref_exists(schema, root):
        found.append(SchemaValidationError("/$root", f"Unresolvable $root: {root}"))

    definitions = schema.get("definitions")
    if isinstance(definitions, dict):
        _check_namespace(schema, definitions, "/definitions", found)
    if "type" in schema:
        _check_definition(schema, schema, "", found)

    logger.debug(f"Schema check found {len(found)} problems")
    return found


__all__ = [
    "RawValidationError",
    "FormattedValidationError",
    "SchemaValidationError",
    "format_validation_error",
    "format_validation_errors",
    "group_errors_by_path",
    "get_errors_for_path",
    "has_errors_at_path",
    "get_child_errors",
    "parse_pointer",
    "build_validation",
    "validate_schema_document",
]
