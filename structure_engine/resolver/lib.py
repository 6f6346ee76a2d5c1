"""Reference and inheritance resolution for JSON Structure documents.

`$ref` pointers address definitions inside the document (``#/definitions/A``,
``#/definitions/ns/A`` or the bare shorthand ``A``). `$extends` names one or
more base definitions whose members are inherited by the declaring
definition. In both cases locally declared keys win over inherited ones.

Resolution never raises: a pointer that leads nowhere is logged and reported
as ``None`` so callers can keep the local definition unchanged.
"""

from dataclasses import dataclass, field
from typing import Any

from structure_engine.config import EnvVar, get_environment
from structure_engine.core.log import get_logger
from structure_engine.schema import (
    TypeDefinition,
    is_namespace,
    is_type_definition,
    is_type_reference,
)

logger = get_logger("structure.resolver")

_MISS = object()


# =============================================================================
# Pointer Helpers
# =============================================================================


def parse_ref_path(ref: str) -> list[str]:
    """Split a reference into path segments.

    Example:
        >>> parse_ref_path("#/definitions/Person")
        ['definitions', 'Person']
        >>> parse_ref_path("Person")
        ['definitions', 'Person']
    """
    if ref.startswith("#/"):
        return ref[2:].split("/")
    if "/" not in ref:
        return ["definitions", ref]
    return ref.split("/")


def resolve_ref_path(schema: dict[str, Any], segments: list[str]) -> Any:
    """Walk ``segments`` through the document; None when a step is missing."""
    current: Any = schema
    for segment in segments:
        if not isinstance(current, dict):
            return None
        current = current.get(segment)
    return current


def resolve_ref(ref: str, schema: dict[str, Any]) -> TypeDefinition | None:
    """Resolve a single pointer without following alias chains.

    Args:
        ref: Reference string.
        schema: Root document.

    Returns:
        The target definition, or None when the pointer is dangling or
        names a namespace rather than a type.
    """
    resolved = resolve_ref_path(schema, parse_ref_path(ref))
    if resolved is None:
        logger.warning(f"Failed to resolve $ref: {ref}")
        return None
    if is_type_definition(resolved):
        return resolved
    if is_namespace(resolved):
        logger.warning(f'$ref "{ref}" points to a namespace, not a type definition')
    return None


def merge_local(resolved: TypeDefinition, local: TypeDefinition) -> TypeDefinition:
    """Overlay ``local`` on ``resolved``; the local ``type`` specifier is dropped."""
    overrides = {key: value for key, value in local.items() if key != "type"}
    return {**resolved, **overrides}


def resolve_definition_ref(
    definition: TypeDefinition, schema: dict[str, Any]
) -> TypeDefinition:
    """One-shot variant of `RefResolver.resolve_definition` without a cache."""
    type_spec = definition.get("type")
    if is_type_reference(type_spec):
        resolved = resolve_ref(type_spec["$ref"], schema)
        if resolved is not None:
            return merge_local(resolved, definition)
    return definition


# =============================================================================
# Memoizing Resolver
# =============================================================================


class RefResolver:
    """Schema-scoped, memoizing `$ref` resolver.

    One instance is shared by every context derived from the same root, so
    each pointer is looked up at most once per document. Alias definitions
    (a definition whose own ``type`` is another reference) are followed with
    a cycle guard.

    Example:
        >>> resolver = RefResolver(schema)
        >>> resolver.resolve("#/definitions/Person")["type"]
        'object'
    """

    def __init__(self, schema: dict[str, Any]):
        self.schema = schema
        self._cache: dict[str, Any] = {}
        self._visiting: set[str] = set()

    def resolve(self, ref: str) -> TypeDefinition | None:
        """Resolve ``ref``; repeated calls return the cached result."""
        key = "/".join(parse_ref_path(ref))
        cached = self._cache.get(key, _MISS)
        if cached is not _MISS:
            return cached

        if key in self._visiting:
            logger.warning(f"Circular reference detected: {ref}")
            return None

        self._visiting.add(key)
        try:
            resolved = resolve_ref(ref, self.schema)
            if resolved is not None and is_type_reference(resolved.get("type")):
                nested = self.resolve(resolved["type"]["$ref"])
                if nested is not None:
                    resolved = merge_local(nested, resolved)
        finally:
            self._visiting.discard(key)

        self._cache[key] = resolved
        return resolved

    def resolve_definition(self, definition: TypeDefinition) -> TypeDefinition:
        """Merge the target of a ``{"$ref"}`` type specifier under local keys.

        Definitions without a reference, and references that cannot be
        resolved, are returned unchanged.
        """
        type_spec = definition.get("type")
        if is_type_reference(type_spec):
            resolved = self.resolve(type_spec["$ref"])
            if resolved is not None:
                return merge_local(resolved, definition)
        return definition

    def clear(self) -> None:
        """Drop memoized results."""
        self._cache.clear()


# =============================================================================
# Required Members
# =============================================================================


def normalize_required(required: Any) -> list[str]:
    """Flatten a flat or grouped ``required`` list into unique keys."""
    if not isinstance(required, list):
        return []
    keys: list[str] = []
    for entry in required:
        group = entry if isinstance(entry, list) else [entry]
        for key in group:
            if isinstance(key, str) and key not in keys:
                keys.append(key)
    return keys


def is_property_required(key: str, required: Any) -> bool:
    """Whether ``key`` is required under a flat or grouped ``required`` list.

    Example:
        >>> is_property_required("b", [["a", "b"]])
        True
        >>> is_property_required("b", ["a"])
        False
    """
    if not isinstance(required, list) or not required:
        return False
    if isinstance(required[0], list):
        return any(isinstance(group, list) and key in group for group in required)
    return key in required


# =============================================================================
# Inheritance
# =============================================================================


@dataclass
class InheritanceError:
    """A problem found while walking a `$extends` chain."""

    path: str
    message: str


@dataclass
class InheritanceResult:
    """Outcome of `resolve_extends`.

    Attributes:
        merged: Definition with every base folded in and no ``$extends`` key.
        inheritance_chain: Base references in the order they were visited.
        errors: Unresolvable bases, cycles and depth overruns.
    """

    merged: TypeDefinition
    inheritance_chain: list[str] = field(default_factory=list)
    errors: list[InheritanceError] = field(default_factory=list)


def _as_ref_list(extends: Any) -> list[str]:
    if isinstance(extends, str):
        return [extends]
    if isinstance(extends, list):
        return [ref for ref in extends if isinstance(ref, str)]
    return []


def _is_object_like(definition: TypeDefinition) -> bool:
    type_spec = definition.get("type")
    if type_spec == "object":
        return True
    return type_spec is None and isinstance(definition.get("properties"), dict)


def _merge_two(base: TypeDefinition, derived: TypeDefinition) -> TypeDefinition:
    if not (_is_object_like(base) and _is_object_like(derived)):
        return {**base, **derived}

    merged = {
        **base,
        **derived,
        "properties": {**base.get("properties", {}), **derived.get("properties", {})},
    }
    if "type" in base or "type" in derived:
        merged["type"] = "object"
    required = normalize_required(base.get("required")) + normalize_required(
        derived.get("required")
    )
    required = list(dict.fromkeys(required))
    if required:
        merged["required"] = required
    else:
        merged.pop("required", None)
    return merged


def resolve_extends(
    definition: TypeDefinition,
    schema: dict[str, Any],
    resolver: RefResolver | None = None,
) -> InheritanceResult:
    """Fold the `$extends` bases of ``definition`` into one definition.

    Bases are applied left to right after their own bases, and the
    declaring definition is applied last, so it wins every collision.
    Object bases merge ``properties`` by key and union ``required``.
    ``abstract`` is never inherited. The result carries no ``$extends``, so
    resolving it again is a no-op.

    Args:
        definition: Definition that may declare ``$extends``.
        schema: Root document.
        resolver: Shared resolver used to look up bases.

    Returns:
        InheritanceResult with the merged definition.
    """
    if "$extends" not in definition:
        return InheritanceResult(merged=definition)

    lookup = (resolver or RefResolver(schema)).resolve
    max_depth = get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH)
    result = InheritanceResult(merged=definition)
    visiting: set[str] = set()

    def collect(refs: list[str], depth: int) -> list[TypeDefinition]:
        if depth > max_depth:
            result.errors.append(
                InheritanceError(" -> ".join(refs), "Maximum inheritance depth exceeded")
            )
            return []

        bases: list[TypeDefinition] = []
        for ref in refs:
            if ref in visiting:
                result.errors.append(
                    InheritanceError(ref, f"Circular inheritance detected: {ref}")
                )
                continue
            visiting.add(ref)
            result.inheritance_chain.append(ref)

            base = lookup(ref)
            if base is None:
                result.errors.append(
                    InheritanceError(ref, f"Failed to resolve base type: {ref}")
                )
                visiting.discard(ref)
                continue

            bases.extend(collect(_as_ref_list(base.get("$extends")), depth + 1))
            bases.append({k: v for k, v in base.items() if k != "abstract"})
            visiting.discard(ref)
        return bases

    bases = collect(_as_ref_list(definition["$extends"]), 0)
    for error in result.errors:
        logger.warning(f"$extends {error.path}: {error.message}")

    merged: TypeDefinition = {}
    for base in bases:
        merged = _merge_two(merged, base) if merged else dict(base)
    merged = _merge_two(merged, definition) if merged else dict(definition)
    merged.pop("$extends", None)
    result.merged = merged
    return result


__all__ = [
    "parse_ref_path",
    "resolve_ref_path",
    "resolve_ref",
    "merge_local",
    "resolve_definition_ref",
    "RefResolver",
    "normalize_required",
    "is_property_required",
    "InheritanceError",
    "InheritanceResult",
    "resolve_extends",
]
