"""Union module - branch detection, conversion and choice wire formats.

Example usage:
    >>> from structure_engine.union import detect_type_in_union, try_convert
    >>> detect_type_in_union("550e8400-e29b-41d4-a716-446655440000", ["string", "uuid"])
    'uuid'
    >>> try_convert("yes", "boolean").value
    True
"""

from .lib import (
    BIG_INTEGER_PREFERENCE,
    FLOAT_PREFERENCE,
    INTEGER_PREFERENCE,
    STRING_PREFERENCE,
    ChoiceSelection,
    Conversion,
    SelectionMode,
    create_union_branches,
    default_cleared_value,
    detect_active_choice,
    detect_type_in_union,
    extract_variant_value,
    find_duplicate_indices,
    serialize_choice_value,
    try_convert,
    upper_case_first,
)

__all__ = [
    # Type-array unions
    "STRING_PREFERENCE",
    "INTEGER_PREFERENCE",
    "BIG_INTEGER_PREFERENCE",
    "FLOAT_PREFERENCE",
    "detect_type_in_union",
    "Conversion",
    "try_convert",
    "default_cleared_value",
    "create_union_branches",
    "upper_case_first",
    # Choices
    "detect_active_choice",
    "extract_variant_value",
    "serialize_choice_value",
    "SelectionMode",
    "ChoiceSelection",
    # Sets
    "find_duplicate_indices",
]
