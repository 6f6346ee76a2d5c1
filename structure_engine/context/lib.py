"""Immutable traversal context for control dispatch.

A `StructureContext` describes one position of the schema tree: the
document, the definition found there, the path from the root and the
ambient settings (read-only, locale, widget registry). Every recursive
dispatch step derives a fresh child with `StructureContext.append` or
`StructureContext.with_updates`; contexts are never modified.

Derived properties are computed on first access and cached on the
instance. All contexts of one tree share the same `RefResolver`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import TYPE_CHECKING, Any

from structure_engine.config import EnvVar, get_default_locale, get_environment
from structure_engine.core.log import get_logger
from structure_engine.resolver import RefResolver, parse_ref_path
from structure_engine.schema import (
    TypeDefinition,
    TypeShape,
    classify,
    get_non_null_types,
    get_resolved_type,
    has_const_value,
    has_enum_value,
    is_nullable_type,
    is_primitive_type,
    is_type_reference,
)

if TYPE_CHECKING:
    from structure_engine.widgets import WidgetRegistry

logger = get_logger("structure.context")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def humanize(name: str) -> str:
    """Turn a property key into a label.

    Example:
        >>> humanize("firstName")
        'First name'
        >>> humanize("postal_code")
        'Postal code'
    """
    words = _CAMEL_BOUNDARY.sub(" ", name).replace("_", " ").replace("-", " ")
    text = " ".join(words.split()).lower()
    return text[:1].upper() + text[1:]


@dataclass(frozen=True)
class StructureContext:
    """Traversal state for one tree position.

    Attributes:
        schema: Root document.
        definition: Definition at this position, possibly still unresolved.
        path: Keys from the root (property names, indexes, choice names).
        read_only: Whether controls should refuse edits.
        locale: Locale used to pick ``altnames`` labels.
        widget_registry: Optional custom widget registry.
        is_property_required: Whether the owning object requires this member.
        suppress_label: Whether the enclosing control already shows a label.
        resolver: Schema-scoped `$ref` resolver shared by the whole tree.
        ref_chain: `$ref` targets already expanded on the way to this position.
    """

    schema: dict[str, Any]
    definition: TypeDefinition
    path: tuple[str | int, ...] = ()
    read_only: bool = False
    locale: str | None = None
    widget_registry: WidgetRegistry | None = None
    is_property_required: bool = False
    suppress_label: bool = False
    resolver: RefResolver = field(  # type: ignore[assignment]
        default=None, compare=False, repr=False
    )
    ref_chain: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.resolver is None:
            object.__setattr__(self, "resolver", RefResolver(self.schema))
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path))

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def with_updates(self, **changes: Any) -> StructureContext:
        """Copy with some fields replaced; the resolver is always shared."""
        changes.pop("resolver", None)
        return replace(self, resolver=self.resolver, **changes)

    def append(self, segment: str | int) -> StructureContext:
        """Child context one level deeper."""
        return replace(self, path=(*self.path, segment), resolver=self.resolver)

    def resolve_ref(self, ref: str) -> TypeDefinition | None:
        return self.resolver.resolve(ref)

    def is_recursive_ref(self, ref: str) -> bool:
        """Whether `ref` is already being expanded above this position."""
        target = parse_ref_path(ref)
        return any(parse_ref_path(seen) == target for seen in self.ref_chain)

    # -------------------------------------------------------------------------
    # Position
    # -------------------------------------------------------------------------

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def name(self) -> str | None:
        """Last path segment when it is a property or choice name."""
        if self.path and isinstance(self.path[-1], str):
            return self.path[-1]
        return None

    @property
    def widget_name(self) -> str:
        return ".".join(str(segment) for segment in self.path)

    @property
    def json_path(self) -> str:
        """JSON pointer of this position, ``""`` at the root."""
        if not self.path:
            return ""
        return "/" + "/".join(str(segment) for segment in self.path)

    # -------------------------------------------------------------------------
    # Type information
    # -------------------------------------------------------------------------

    @cached_property
    def resolved_type(self) -> str | list[str] | None:
        """Type keyword(s), following a ``{"$ref"}`` type specifier."""
        type_spec = self.definition.get("type")
        if is_type_reference(type_spec):
            target = self.resolver.resolve(type_spec["$ref"])
            if target is None:
                return None
            return get_resolved_type(target.get("type"))
        return get_resolved_type(type_spec)

    @cached_property
    def primary_type(self) -> str | None:
        """First non-null keyword; None when ``null`` is the only type."""
        non_null = get_non_null_types(self.resolved_type)
        return non_null[0] if non_null else None

    @cached_property
    def shape(self) -> TypeShape:
        return classify(self.definition, self.resolved_type)

    @property
    def is_nullable(self) -> bool:
        return is_nullable_type(self.resolved_type)

    @property
    def is_primitive(self) -> bool:
        return is_primitive_type(self.primary_type)

    @property
    def is_required(self) -> bool:
        return self.is_property_required

    @property
    def is_optional(self) -> bool:
        return not self.is_property_required

    @property
    def is_deprecated(self) -> bool:
        return bool(self.definition.get("deprecated", False))

    @property
    def is_abstract(self) -> bool:
        return bool(self.definition.get("abstract", False))

    # -------------------------------------------------------------------------
    # Annotations
    # -------------------------------------------------------------------------

    @property
    def description(self) -> str | None:
        return self.definition.get("description")

    @property
    def examples(self) -> list[Any] | None:
        examples = self.definition.get("examples")
        return examples if isinstance(examples, list) else None

    @property
    def default_value(self) -> Any:
        return self.definition.get("default")

    @property
    def unit(self) -> str | None:
        return self.definition.get("unit")

    @property
    def currency(self) -> str | None:
        return self.definition.get("currency")

    @property
    def format(self) -> str | None:
        return self.definition.get("format")

    @property
    def altnames(self) -> dict[str, str]:
        altnames = self.definition.get("altnames")
        return altnames if isinstance(altnames, dict) else {}

    @property
    def has_enum(self) -> bool:
        return has_enum_value(self.definition)

    @property
    def enum_values(self) -> list[Any]:
        return list(self.definition["enum"]) if self.has_enum else []

    @property
    def has_const(self) -> bool:
        return has_const_value(self.definition)

    @property
    def const_value(self) -> Any:
        return self.definition.get("const")

    @cached_property
    def label(self) -> str:
        """Display label.

        Priority: ``altnames["lang:<locale>"]``, the definition ``name``, the
        humanized last path segment, then ``""``.
        """
        if self.locale:
            localized = self.altnames.get(f"lang:{self.locale}")
            if localized:
                return localized
        name = self.definition.get("name")
        if isinstance(name, str) and name:
            return name
        if self.name:
            return humanize(self.name)
        return ""


def create_structure_context(
    schema: dict[str, Any],
    read_only: bool | None = None,
    locale: str | None = None,
    widget_registry: WidgetRegistry | None = None,
) -> StructureContext:
    """Root context for a document.

    The root definition is the ``$root`` target; when ``$root`` is absent,
    the document itself if it declares ``type`` or ``properties``, else an
    ``any`` definition. An unresolvable ``$root`` falls back to the
    document itself.

    Args:
        schema: Root document.
        read_only: Defaults to STRUCTURE_READ_ONLY.
        locale: Defaults to STRUCTURE_LOCALE.
        widget_registry: Custom widget overrides for this tree.
    """
    resolver = RefResolver(schema)
    root_ref = schema.get("$root")
    ref_chain: tuple[str, ...] = ()
    if isinstance(root_ref, str):
        definition = resolver.resolve(root_ref)
        if definition is None:
            logger.warning(f"Could not resolve $root: {root_ref}")
            definition = schema
        else:
            ref_chain = (root_ref,)
    elif "type" in schema or "properties" in schema:
        definition = schema
    else:
        definition = {"type": "any"}

    return StructureContext(
        schema=schema,
        definition=definition,
        read_only=get_environment(EnvVar.STRUCTURE_READ_ONLY, override=read_only),
        locale=get_default_locale(locale),
        widget_registry=widget_registry,
        resolver=resolver,
        ref_chain=ref_chain,
    )


__all__ = ["StructureContext", "create_structure_context", "humanize"]
