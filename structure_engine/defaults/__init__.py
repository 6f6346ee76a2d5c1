"""Defaults module - starting values for new nodes and whole documents."""

from .lib import (
    extract_structure_defaults,
    float_default,
    generate_smart_default,
    integer_default,
    make_default_value,
    temporal_default,
)

__all__ = [
    # Shallow
    "make_default_value",
    # Deep
    "extract_structure_defaults",
    "generate_smart_default",
    "integer_default",
    "float_default",
    "temporal_default",
]
