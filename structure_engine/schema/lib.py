"""Type algebra for JSON Structure documents.

This module is the single source of truth for type keywords and for the
predicates that classify a raw type definition. Definitions are plain
mappings exactly as they appear in the document; nothing here mutates them.

It provides:
- The `TypeKeyword` enum and keyword families (integer, float, temporal...)
- Integer width bounds
- Guard predicates over raw definitions
- `classify()`, which folds the guards into a closed `TypeShape` variant
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

TypeDefinition = dict[str, Any]
"""A schema node as found in the document."""


class TypeKeyword(str, Enum):
    """Every type keyword a JSON Structure document may use."""

    # Primitives
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    INT128 = "int128"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINT128 = "uint128"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    DURATION = "duration"
    UUID = "uuid"
    URI = "uri"
    BINARY = "binary"

    # Compounds
    OBJECT = "object"
    ARRAY = "array"
    SET = "set"
    MAP = "map"
    TUPLE = "tuple"
    CHOICE = "choice"
    ANY = "any"


# =============================================================================
# Keyword Families
# =============================================================================

INTEGER_TYPES = frozenset(
    {"int8", "int16", "int32", "int64", "int128"}
    | {"uint8", "uint16", "uint32", "uint64", "uint128"}
)
BIG_INTEGER_TYPES = frozenset({"int64", "int128", "uint64", "uint128"})
FLOAT_TYPES = frozenset({"float", "double", "decimal"})
NUMERIC_TYPES = INTEGER_TYPES | FLOAT_TYPES
TEMPORAL_TYPES = frozenset({"date", "datetime", "time", "duration"})
PRIMITIVE_TYPES = (
    frozenset({"string", "boolean", "null", "uuid", "uri", "binary"})
    | NUMERIC_TYPES
    | TEMPORAL_TYPES
)
COMPOUND_TYPES = frozenset({"object", "array", "set", "map", "tuple", "choice", "any"})
ALL_TYPES = frozenset(keyword.value for keyword in TypeKeyword)

INTEGER_BOUNDS: dict[str, tuple[int, int]] = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
    "int128": (-(2**127), 2**127 - 1),
    "uint8": (0, 2**8 - 1),
    "uint16": (0, 2**16 - 1),
    "uint32": (0, 2**32 - 1),
    "uint64": (0, 2**64 - 1),
    "uint128": (0, 2**128 - 1),
}

# Largest integer a double represents exactly; wider values are "big".
MAX_SAFE_INTEGER = 2**53 - 1


def is_integer_type(type_name: str | None) -> bool:
    return type_name in INTEGER_TYPES


def is_big_integer_type(type_name: str | None) -> bool:
    return type_name in BIG_INTEGER_TYPES


def is_float_type(type_name: str | None) -> bool:
    return type_name in FLOAT_TYPES


def is_numeric_type(type_name: str | None) -> bool:
    return type_name in NUMERIC_TYPES


def is_temporal_type(type_name: str | None) -> bool:
    return type_name in TEMPORAL_TYPES


def is_primitive_type(type_name: str | None) -> bool:
    return type_name in PRIMITIVE_TYPES


def is_compound_type(type_name: str | None) -> bool:
    return type_name in COMPOUND_TYPES


# =============================================================================
# Definition Guards
# =============================================================================


def is_type_reference(value: Any) -> bool:
    """True for a ``{"$ref": ...}`` mapping."""
    return isinstance(value, dict) and isinstance(value.get("$ref"), str)


def is_type_definition(value: Any) -> bool:
    """True when the mapping carries type information of its own."""
    if not isinstance(value, dict):
        return False
    return any(key in value for key in ("type", "$ref", "enum", "const"))


def is_namespace(value: Any) -> bool:
    """True for a grouping mapping inside ``definitions`` (no type information)."""
    return isinstance(value, dict) and not is_type_definition(value)


def is_object_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "object"
        and isinstance(definition.get("properties"), dict)
    )


def is_array_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "array"
        and isinstance(definition.get("items"), dict)
    )


def is_set_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "set"
        and isinstance(definition.get("items"), dict)
    )


def is_map_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "map"
        and isinstance(definition.get("values"), dict)
    )


def is_tuple_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "tuple"
        and isinstance(definition.get("tuple"), list)
    )


def is_choice_type_definition(definition: Any) -> bool:
    return (
        isinstance(definition, dict)
        and definition.get("type") == "choice"
        and isinstance(definition.get("choices"), dict)
    )


def has_enum_value(definition: Any) -> bool:
    return isinstance(definition, dict) and isinstance(definition.get("enum"), list)


def has_const_value(definition: Any) -> bool:
    return isinstance(definition, dict) and "const" in definition


# =============================================================================
# Type Specifier Helpers
# =============================================================================


def get_resolved_type(type_spec: Any) -> str | list[str] | None:
    """Return a keyword or keyword list, or None for a reference or nothing."""
    if isinstance(type_spec, str):
        return type_spec
    if isinstance(type_spec, list):
        return [t for t in type_spec if isinstance(t, str)]
    return None


def is_nullable_type(type_spec: Any) -> bool:
    if type_spec == "null":
        return True
    return isinstance(type_spec, list) and "null" in type_spec


def get_non_null_types(type_spec: Any) -> list[str]:
    """Type keywords of a specifier with ``null`` removed."""
    if isinstance(type_spec, str):
        return [] if type_spec == "null" else [type_spec]
    if isinstance(type_spec, list):
        return [t for t in type_spec if isinstance(t, str) and t != "null"]
    return []


def get_primary_type(type_spec: Any) -> str | None:
    """First non-null keyword, or None when ``null`` is the only type."""
    non_null = get_non_null_types(type_spec)
    return non_null[0] if non_null else None


# =============================================================================
# Closed Shape Variant
# =============================================================================


class ShapeKind(str, Enum):
    """Routing category of a definition, computed once per node."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    SET = "set"
    MAP = "map"
    TUPLE = "tuple"
    CHOICE = "choice"
    REFERENCE = "reference"
    UNION = "union"
    ENUM = "enum"
    CONST = "const"
    ANY = "any"
    UNKNOWN = "unknown"


_COMPOUND_KINDS = {
    "object": ShapeKind.OBJECT,
    "array": ShapeKind.ARRAY,
    "set": ShapeKind.SET,
    "map": ShapeKind.MAP,
    "tuple": ShapeKind.TUPLE,
    "choice": ShapeKind.CHOICE,
    "any": ShapeKind.ANY,
}


@dataclass(frozen=True)
class TypeShape:
    """Classification of one node.

    Attributes:
        kind: Routing category.
        primitive: Keyword for PRIMITIVE and UNKNOWN shapes.
        types: Non-null member keywords (several only for UNION).
        nullable: Whether ``null`` is an allowed value.
    """

    kind: ShapeKind
    primitive: str | None = None
    types: tuple[str, ...] = field(default_factory=tuple)
    nullable: bool = False

    @property
    def is_compound(self) -> bool:
        return self.kind in (
            ShapeKind.OBJECT,
            ShapeKind.ARRAY,
            ShapeKind.SET,
            ShapeKind.MAP,
            ShapeKind.TUPLE,
            ShapeKind.CHOICE,
        )


def classify(definition: TypeDefinition, resolved_type: Any = None) -> TypeShape:
    """Fold the guard predicates into a single `TypeShape`.

    Rules are checked in order: enum, const, multi-type union, unresolved
    reference, missing type, compound keyword, primitive keyword, unknown.

    Args:
        definition: The (already ref/extends-merged) definition.
        resolved_type: Dereferenced type specifier. Defaults to
            ``definition["type"]``.

    Returns:
        The node's shape.

    Example:
        >>> classify({"type": ["string", "null"]})
        TypeShape(kind=<ShapeKind.PRIMITIVE: 'primitive'>, primitive='string', ...)
    """
    type_spec = definition.get("type") if resolved_type is None else resolved_type
    nullable = is_nullable_type(type_spec)
    non_null = tuple(get_non_null_types(type_spec))

    if has_enum_value(definition):
        return TypeShape(ShapeKind.ENUM, types=non_null, nullable=nullable)
    if has_const_value(definition):
        return TypeShape(ShapeKind.CONST, types=non_null, nullable=nullable)
    if len(non_null) > 1:
        return TypeShape(ShapeKind.UNION, types=non_null, nullable=nullable)
    if is_type_reference(type_spec):
        return TypeShape(ShapeKind.REFERENCE)

    if type_spec == "null" or type_spec == ["null"]:
        return TypeShape(ShapeKind.PRIMITIVE, primitive="null", nullable=True)

    primary = get_primary_type(type_spec)
    if primary is None:
        return TypeShape(ShapeKind.ANY, nullable=nullable)
    if primary in _COMPOUND_KINDS:
        return TypeShape(_COMPOUND_KINDS[primary], types=non_null, nullable=nullable)
    if primary in PRIMITIVE_TYPES:
        return TypeShape(
            ShapeKind.PRIMITIVE, primitive=primary, types=non_null, nullable=nullable
        )
    return TypeShape(ShapeKind.UNKNOWN, primitive=primary, types=non_null)


__all__ = [
    "TypeDefinition",
    "TypeKeyword",
    "INTEGER_TYPES",
    "BIG_INTEGER_TYPES",
    "FLOAT_TYPES",
    "NUMERIC_TYPES",
    "TEMPORAL_TYPES",
    "PRIMITIVE_TYPES",
    "COMPOUND_TYPES",
    "ALL_TYPES",
    "INTEGER_BOUNDS",
    "MAX_SAFE_INTEGER",
    "is_integer_type",
    "is_big_integer_type",
    "is_float_type",
    "is_numeric_type",
    "is_temporal_type",
    "is_primitive_type",
    "is_compound_type",
    "is_type_reference",
    "is_type_definition",
    "is_namespace",
    "is_object_type_definition",
    "is_array_type_definition",
    "is_set_type_definition",
    "is_map_type_definition",
    "is_tuple_type_definition",
    "is_choice_type_definition",
    "has_enum_value",
    "has_const_value",
    "get_resolved_type",
    "is_nullable_type",
    "get_non_null_types",
    "get_primary_type",
    "ShapeKind",
    "TypeShape",
    "classify",
]
