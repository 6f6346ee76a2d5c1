"""Schema module - type keywords, definition guards and document loading.

This module provides:
- The `TypeKeyword` enum and keyword families
- Guard predicates classifying raw definitions
- `classify()` producing a closed `TypeShape` per node
- `load_schema()` for mappings, files and URLs

Example usage:
    >>> from structure_engine.schema import classify, load_schema
    >>> classify({"type": ["int32", "string"]}).kind
    <ShapeKind.UNION: 'union'>
"""

from .lib import (
    ALL_TYPES,
    BIG_INTEGER_TYPES,
    COMPOUND_TYPES,
    FLOAT_TYPES,
    INTEGER_BOUNDS,
    INTEGER_TYPES,
    MAX_SAFE_INTEGER,
    NUMERIC_TYPES,
    PRIMITIVE_TYPES,
    TEMPORAL_TYPES,
    ShapeKind,
    TypeDefinition,
    TypeKeyword,
    TypeShape,
    classify,
    get_non_null_types,
    get_primary_type,
    get_resolved_type,
    has_const_value,
    has_enum_value,
    is_array_type_definition,
    is_big_integer_type,
    is_choice_type_definition,
    is_compound_type,
    is_float_type,
    is_integer_type,
    is_map_type_definition,
    is_namespace,
    is_nullable_type,
    is_numeric_type,
    is_object_type_definition,
    is_primitive_type,
    is_set_type_definition,
    is_temporal_type,
    is_tuple_type_definition,
    is_type_definition,
    is_type_reference,
)
from .loader import SchemaDocument, SchemaLoadError, load_schema, parse_schema

__all__ = [
    # Keywords
    "TypeDefinition",
    "TypeKeyword",
    "ALL_TYPES",
    "BIG_INTEGER_TYPES",
    "COMPOUND_TYPES",
    "FLOAT_TYPES",
    "INTEGER_BOUNDS",
    "INTEGER_TYPES",
    "MAX_SAFE_INTEGER",
    "NUMERIC_TYPES",
    "PRIMITIVE_TYPES",
    "TEMPORAL_TYPES",
    # Keyword predicates
    "is_big_integer_type",
    "is_compound_type",
    "is_float_type",
    "is_integer_type",
    "is_numeric_type",
    "is_primitive_type",
    "is_temporal_type",
    # Definition guards
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
    # Type specifiers
    "get_resolved_type",
    "get_non_null_types",
    "get_primary_type",
    "is_nullable_type",
    # Shapes
    "ShapeKind",
    "TypeShape",
    "classify",
    # Loading
    "SchemaDocument",
    "SchemaLoadError",
    "load_schema",
    "parse_schema",
]
