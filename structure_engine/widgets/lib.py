"""Pluggable widget overrides for control dispatch.

A `WidgetRegistry` maps widget names to registrations. The dispatcher asks
the registry carried by the context for the best widget before any built-in
routing; a match replaces the built-in control for that node and stops the
recursion there.

Registries form a chain: a child created with `create_child()` sees its
parent's registrations and may shadow them. There is no global registry;
the root caller passes one to `structure_control` and every derived context
carries it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from structure_engine.core.log import get_logger

if TYPE_CHECKING:
    from structure_engine.context import StructureContext
    from structure_engine.controller import Controller

logger = get_logger("structure.widgets")

EXPLICIT_NAME_SCORE = 1000
MATCHER_SCORE = 100
TYPE_SCORE = 50
FORMAT_SCORE = 30


# =============================================================================
# Registration Types
# =============================================================================


@dataclass
class WidgetProps:
    """Arguments handed to a widget factory.

    Attributes:
        controller: Controller bound to the node's value.
        ctx: Context of the node.
        options: Merged widget options from the registration and definition.
    """

    controller: Controller
    ctx: StructureContext
    options: dict[str, Any] = field(default_factory=dict)


WidgetFactory = Callable[[WidgetProps], Any]


@dataclass
class WidgetRegistration:
    """One registered widget.

    Attributes:
        factory: Callable producing the widget output from `WidgetProps`.
        display_name: Human-readable name.
        description: Optional description.
        supported_types: Type keywords the widget handles.
        supported_formats: ``format`` values the widget handles.
        priority: Added to the score; breaks ties (higher wins).
        can_fallback: Whether the widget may stand in for unknown types.
        matcher: Custom predicate; returning False disqualifies the widget.
        options: Base options merged under the definition's options.
    """

    factory: WidgetFactory
    display_name: str
    description: str | None = None
    supported_types: list[str] = field(default_factory=list)
    supported_formats: list[str] = field(default_factory=list)
    priority: int = 0
    can_fallback: bool = False
    matcher: Callable[[StructureContext], bool] | None = None
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedWidget:
    name: str
    registration: WidgetRegistration


# =============================================================================
# Definition Helpers
# =============================================================================


def get_explicit_widget_name(ctx: StructureContext) -> str | None:
    """Widget requested by the definition, via ``x:ui.widget`` or ``widget.type``."""
    definition = ctx.definition
    xui = definition.get("x:ui")
    if isinstance(xui, dict) and isinstance(xui.get("widget"), str):
        return xui["widget"]
    widget = definition.get("widget")
    if isinstance(widget, dict) and isinstance(widget.get("type"), str):
        return widget["type"]
    return None


def get_widget_options(ctx: StructureContext) -> dict[str, Any]:
    """Widget options declared by the definition.

    ``x:ui.widget`` (when a mapping) supplies options, ``x:ui.priority`` a
    priority override, and a legacy ``widget`` mapping is merged on top.

    Returns:
        A mapping with optional ``options`` and ``priority`` keys; empty
        when the definition declares nothing.
    """
    definition = ctx.definition
    result: dict[str, Any] = {}

    xui = definition.get("x:ui")
    if isinstance(xui, dict):
        if isinstance(xui.get("widget"), dict):
            result["options"] = dict(xui["widget"])
        if isinstance(xui.get("priority"), int | float):
            result["priority"] = xui["priority"]

    widget = definition.get("widget")
    if isinstance(widget, dict):
        result["options"] = {**result.get("options", {}), **widget}

    return result


def merge_widget_options(
    base: dict[str, Any] | None = None,
    context: dict[str, Any] | None = None,
    user: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge options; user wins over context, context over base."""
    return {**(base or {}), **(context or {}), **(user or {})}


# =============================================================================
# Registry
# =============================================================================


class WidgetRegistry:
    """Named widget registrations with parent fallback.

    Example:
        >>> registry = WidgetRegistry()
        >>> registry.register(*for_format("color", color_picker))
        >>> registry.find_best_widget(ctx).name
        'format:color'
    """

    def __init__(self, parent: WidgetRegistry | None = None):
        self.parent = parent
        self._registrations: dict[str, WidgetRegistration] = {}

    def register(self, name: str, registration: WidgetRegistration) -> None:
        self._registrations[name] = registration

    def unregister(self, name: str) -> None:
        """Remove a local registration; parent registrations are untouched."""
        self._registrations.pop(name, None)

    def get(self, name: str) -> WidgetRegistration | None:
        if name in self._registrations:
            return self._registrations[name]
        return self.parent.get(name) if self.parent else None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        """Every visible name, parent names first."""
        names = self.parent.names() if self.parent else []
        for name in self._registrations:
            if name not in names:
                names.append(name)
        return names

    def get_for_type(self, type_name: str) -> list[WidgetRegistration]:
        found = self.parent.get_for_type(type_name) if self.parent else []
        found.extend(
            registration
            for registration in self._registrations.values()
            if type_name in registration.supported_types
        )
        return found

    def get_for_format(self, format_name: str) -> list[WidgetRegistration]:
        found = self.parent.get_for_format(format_name) if self.parent else []
        found.extend(
            registration
            for registration in self._registrations.values()
            if format_name in registration.supported_formats
        )
        return found

    def create_child(self) -> WidgetRegistry:
        return WidgetRegistry(parent=self)

    def _score(
        self,
        name: str,
        registration: WidgetRegistration,
        ctx: StructureContext,
        explicit: str | None,
    ) -> int:
        score = 0
        if explicit is not None and name == explicit:
            score += EXPLICIT_NAME_SCORE

        if registration.matcher is not None:
            if not registration.matcher(ctx):
                return 0
            score += MATCHER_SCORE

        if ctx.primary_type and ctx.primary_type in registration.supported_types:
            score += TYPE_SCORE
        if ctx.format and ctx.format in registration.supported_formats:
            score += FORMAT_SCORE

        # Priority only counts once something matched.
        if score == 0:
            return 0
        return score + registration.priority

    def find_best_widget(self, ctx: StructureContext) -> ResolvedWidget | None:
        """Highest scoring widget for ``ctx``, or None.

        Scoring: explicit definition name +1000, matcher true +100 (false
        disqualifies), type match +50, format match +30, plus priority.
        Ties go to the higher priority, then to registration order.
        """
        explicit = get_explicit_widget_name(ctx)
        if explicit is not None and not self.has(explicit):
            logger.warning(
                f'Widget "{explicit}" requested at "{ctx.json_path}" is not registered'
            )

        best: tuple[int, int, str, WidgetRegistration] | None = None
        for name in self.names():
            registration = self.get(name)
            if registration is None:
                continue
            score = self._score(name, registration, ctx, explicit)
            if score <= 0:
                continue
            if best is None or (score, registration.priority) > (best[0], best[1]):
                best = (score, registration.priority, name, registration)

        if best is None:
            return None
        return ResolvedWidget(name=best[2], registration=best[3])


# =============================================================================
# Registration Helpers
# =============================================================================


def for_type(
    type_name: str,
    factory: WidgetFactory,
    display_name: str | None = None,
    description: str | None = None,
    priority: int = 0,
    can_fallback: bool = False,
) -> tuple[str, WidgetRegistration]:
    """Registration named ``type:<type>`` matching one type keyword."""
    return f"type:{type_name}", WidgetRegistration(
        factory=factory,
        display_name=display_name or f"{type_name} widget",
        description=description,
        supported_types=[type_name],
        priority=priority,
        can_fallback=can_fallback,
    )


def for_format(
    format_name: str,
    factory: WidgetFactory,
    display_name: str | None = None,
    description: str | None = None,
    priority: int = 10,
    can_fallback: bool = False,
) -> tuple[str, WidgetRegistration]:
    """Registration named ``format:<format>``; outranks plain type widgets."""
    return f"format:{format_name}", WidgetRegistration(
        factory=factory,
        display_name=display_name or f"{format_name} widget",
        description=description,
        supported_formats=[format_name],
        priority=priority,
        can_fallback=can_fallback,
    )


def for_type_and_format(
    type_name: str,
    format_name: str,
    factory: WidgetFactory,
    display_name: str | None = None,
    description: str | None = None,
    priority: int = 20,
    can_fallback: bool = False,
) -> tuple[str, WidgetRegistration]:
    return f"type:{type_name}:format:{format_name}", WidgetRegistration(
        factory=factory,
        display_name=display_name or f"{type_name}/{format_name} widget",
        description=description,
        supported_types=[type_name],
        supported_formats=[format_name],
        priority=priority,
        can_fallback=can_fallback,
    )


def for_matcher(
    name: str,
    matcher: Callable[[StructureContext], bool],
    factory: WidgetFactory,
    display_name: str | None = None,
    description: str | None = None,
    priority: int = 50,
    can_fallback: bool = False,
) -> tuple[str, WidgetRegistration]:
    """Registration selected by a custom predicate over the context."""
    return name, WidgetRegistration(
        factory=factory,
        display_name=display_name or name,
        description=description,
        matcher=matcher,
        priority=priority,
        can_fallback=can_fallback,
    )


__all__ = [
    "WidgetProps",
    "WidgetFactory",
    "WidgetRegistration",
    "ResolvedWidget",
    "WidgetRegistry",
    "get_explicit_widget_name",
    "get_widget_options",
    "merge_widget_options",
    "for_type",
    "for_format",
    "for_type_and_format",
    "for_matcher",
]
