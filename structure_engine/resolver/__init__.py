"""Resolver module - `$ref` pointers and `$extends` inheritance.

Example usage:
    >>> from structure_engine.resolver import RefResolver, resolve_extends
    >>> resolver = RefResolver(schema)
    >>> person = resolver.resolve("Person")
    >>> employee = resolve_extends(schema["definitions"]["Employee"], schema).merged
"""

from .lib import (
    InheritanceError,
    InheritanceResult,
    RefResolver,
    is_property_required,
    merge_local,
    normalize_required,
    parse_ref_path,
    resolve_definition_ref,
    resolve_extends,
    resolve_ref,
    resolve_ref_path,
)

__all__ = [
    # Pointers
    "parse_ref_path",
    "resolve_ref_path",
    "resolve_ref",
    "merge_local",
    "resolve_definition_ref",
    "RefResolver",
    # Required members
    "normalize_required",
    "is_property_required",
    # Inheritance
    "InheritanceError",
    "InheritanceResult",
    "resolve_extends",
]
