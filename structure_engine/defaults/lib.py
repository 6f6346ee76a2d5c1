"""Default values for type definitions.

Two entry points:

- `make_default_value` gives the *shallow* starting value used when the
  control tree creates something new (an array item, a map entry, an
  additional property, a choice variant). Compound types start empty;
  nested members are not populated.
- `extract_structure_defaults` walks a whole document and builds a deep
  default instance, populating required members recursively.
"""

import math
from datetime import UTC, date, datetime
from typing import Any

from structure_engine.core.log import get_logger
from structure_engine.resolver import normalize_required, resolve_ref
from structure_engine.schema import (
    FLOAT_TYPES,
    INTEGER_TYPES,
    TypeDefinition,
    get_primary_type,
    is_nullable_type,
    is_object_type_definition,
    is_type_reference,
)

logger = get_logger("structure.defaults")

# =============================================================================
# Shallow Defaults
# =============================================================================

_EMPTY_BY_TYPE: dict[str, Any] = {
    "string": "",
    "boolean": False,
    "null": None,
}


def make_default_value(definition: TypeDefinition | None) -> Any:
    """Starting value for a newly created node.

    Priority: ``default``, then ``examples[0]``, then an empty value for the
    type: ``""`` for string, ``False`` for boolean, ``None`` for null, ``{}``
    for object and map, ``[]`` for array, set and tuple, ``0`` for every
    numeric width. Anything else (any, binary, choice, unresolved
    references, unknown keywords) yields None.

    Containers are fresh objects on every call and are never populated from
    nested definitions.
    """
    if not isinstance(definition, dict):
        return None
    if "default" in definition:
        return definition["default"]
    examples = definition.get("examples")
    if isinstance(examples, list) and examples:
        return examples[0]

    type_spec = definition.get("type")
    if type_spec == "null" or type_spec == ["null"]:
        return None
    primary = get_primary_type(type_spec)
    if primary is None:
        return None
    if primary in _EMPTY_BY_TYPE:
        return _EMPTY_BY_TYPE[primary]
    if primary in ("object", "map"):
        return {}
    if primary in ("array", "set", "tuple"):
        return []
    if primary in INTEGER_TYPES or primary in FLOAT_TYPES:
        return 0
    return None


# =============================================================================
# Deep Defaults
# =============================================================================


def extract_structure_defaults(schema: dict[str, Any]) -> Any:
    """Build a default instance for the document's root type.

    The root is the ``$root`` target when it resolves, otherwise the
    document itself. Per node the first available of ``default``,
    ``examples[0]``, ``const``, ``enum[0]`` is used; nullable types default
    to None; everything else gets a type-based value (see
    `generate_smart_default`).

    Example:
        >>> extract_structure_defaults({
        ...     "type": "object",
        ...     "properties": {"n": {"type": "int32", "minimum": 1}},
        ...     "required": ["n"],
        ... })
        {'n': 1}
    """
    root: TypeDefinition = schema
    root_ref = schema.get("$root")
    if isinstance(root_ref, str):
        resolved = resolve_ref(root_ref, schema)
        if resolved is not None:
            root = resolved
    return _extract(root, schema, set())


def _extract(
    definition: TypeDefinition, schema: dict[str, Any], visited: set[str]
) -> Any:
    type_spec = definition.get("type")
    if is_type_reference(type_spec):
        ref = type_spec["$ref"]
        if ref in visited:
            logger.debug(f"Skipping recursive default for {ref}")
            return None
        resolved = resolve_ref(ref, schema)
        if resolved is None:
            return None
        visited.add(ref)
        try:
            merged = {**resolved, **definition, "type": resolved.get("type")}
            return _extract(merged, schema, visited)
        finally:
            visited.discard(ref)

    if "default" in definition:
        return definition["default"]
    examples = definition.get("examples")
    if isinstance(examples, list) and examples:
        return examples[0]
    if "const" in definition:
        return definition["const"]
    enum = definition.get("enum")
    if isinstance(enum, list) and enum:
        return enum[0]
    if is_nullable_type(type_spec):
        return None
    return generate_smart_default(definition, schema, visited)


def generate_smart_default(
    definition: TypeDefinition,
    schema: dict[str, Any],
    visited: set[str] | None = None,
) -> Any:
    """Type-based default used when a definition offers no explicit value."""
    visited = visited if visited is not None else set()
    kind = get_primary_type(definition.get("type"))

    if is_object_type_definition(definition):
        return _object_default(definition, schema, visited)
    match kind:
        case "choice":
            return _choice_default(definition, schema, visited)
        case "tuple":
            return _tuple_default(definition, schema, visited)
        case "array" | "set":
            return _sequence_default(definition, schema, visited)
        case "object" | "map":
            return {}
        case "string":
            return _string_default(definition)
        case "boolean":
            return False
        case "date" | "datetime" | "time" | "duration":
            return temporal_default(kind)
        case "uuid" | "uri" | "binary":
            return ""
    if kind in INTEGER_TYPES:
        return integer_default(definition)
    if kind in FLOAT_TYPES:
        return float_default(definition)
    return None


def _object_default(
    definition: TypeDefinition, schema: dict[str, Any], visited: set[str]
) -> dict[str, Any]:
    required = set(normalize_required(definition.get("required")))
    result: dict[str, Any] = {}
    for key, prop in definition.get("properties", {}).items():
        if key not in required or not isinstance(prop, dict):
            continue
        value = _extract(prop, schema, visited)
        if value is not None or _allows_null(prop):
            result[key] = value
    return result


def _allows_null(definition: TypeDefinition) -> bool:
    return is_nullable_type(definition.get("type")) or definition.get("default", 0) is None


def _choice_default(
    definition: TypeDefinition, schema: dict[str, Any], visited: set[str]
) -> Any:
    choices = definition.get("choices")
    if not isinstance(choices, dict) or not choices:
        return None
    name, variant = next(iter(choices.items()))
    value = _extract(variant, schema, visited) if isinstance(variant, dict) else None
    selector = definition.get("selector")
    if selector:
        if isinstance(value, dict):
            return {selector: name, **value}
        return {selector: name}
    return {name: value}


def _tuple_default(
    definition: TypeDefinition, schema: dict[str, Any], visited: set[str]
) -> list[Any]:
    properties = definition.get("properties") or {}
    result = []
    for key in definition.get("tuple") or []:
        prop = properties.get(key)
        result.append(_extract(prop, schema, visited) if isinstance(prop, dict) else None)
    return result


def _sequence_default(
    definition: TypeDefinition, schema: dict[str, Any], visited: set[str]
) -> list[Any]:
    count = definition.get("minItems") or 0
    if count <= 0:
        return []
    items = definition.get("items")
    item = _extract(items, schema, visited) if isinstance(items, dict) else None
    return [item for _ in range(count)]


def _string_default(definition: TypeDefinition) -> str:
    match definition.get("format"):
        case "date":
            return date.today().isoformat()
        case "date-time":
            return datetime.now(UTC).isoformat()
        case "time":
            return "00:00:00"
    return ""


def temporal_default(kind: str) -> str:
    """Current date or timestamp, midnight, or a zero duration."""
    match kind:
        case "date":
            return date.today().isoformat()
        case "datetime":
            return datetime.now(UTC).isoformat()
        case "time":
            return "00:00:00"
    return "PT0S"


def _bounds(definition: TypeDefinition, step: float | int) -> tuple[Any, Any]:
    low = definition.get("minimum")
    high = definition.get("maximum")
    if definition.get("exclusiveMinimum") is not None:
        low = definition["exclusiveMinimum"] + step
    if definition.get("exclusiveMaximum") is not None:
        high = definition["exclusiveMaximum"] - step
    return low, high


def _start_value(low: Any, high: Any) -> Any:
    if low is not None and high is not None:
        return (low + high) / 2
    if low is not None:
        return low
    if high is not None:
        return 0 if high >= 0 else high
    return 0


def integer_default(definition: TypeDefinition) -> int:
    """Midpoint of the bounds, else the minimum, else 0, snapped to multipleOf."""
    low, high = _bounds(definition, 1)
    if low is not None and high is not None:
        value = (int(low) + int(high) + 1) // 2
    else:
        value = int(_start_value(low, high))

    step = definition.get("multipleOf")
    if isinstance(step, int) and step > 0:
        value = (2 * value + step) // (2 * step) * step
        if low is not None and value < low:
            value = -(-int(low) // step) * step
        if high is not None and value > high:
            value = int(high) // step * step
    return value


def float_default(definition: TypeDefinition) -> float:
    """Float counterpart of `integer_default`; exclusive bounds step by 0.001."""
    step = definition.get("multipleOf")
    low, high = _bounds(definition, step if step else 0.001)
    value = float(_start_value(low, high))
    if isinstance(step, (int, float)) and step > 0:
        value = math.floor(value / step + 0.5) * step
        if low is not None and value < low:
            value = math.ceil(low / step) * step
        if high is not None and value > high:
            value = math.floor(high / step) * step
    return value


__all__ = [
    "make_default_value",
    "extract_structure_defaults",
    "generate_smart_default",
    "integer_default",
    "float_default",
    "temporal_default",
]
