"""Stock widgets for string formats.

The built-in dispatcher already covers every type keyword, so the stock set
only adds inputs for ``string`` definitions carrying a ``format``. Each
widget produces a plain mapping naming the input kind a renderer should
show.
"""

from __future__ import annotations

from typing import Any

from structure_engine.core.log import get_logger

from .lib import WidgetProps, WidgetRegistry, for_type_and_format

logger = get_logger("structure.widgets")

# format -> input kind
FORMAT_INPUTS: dict[str, str] = {
    "email": "email",
    "uri": "url",
    "uri-reference": "url",
    "hostname": "text",
    "ipv4": "text",
    "ipv6": "text",
    "date-time": "datetime-local",
    "date": "date",
    "time": "time",
    "uuid": "text",
    "password": "password",
    "color": "color",
}


def _format_input(props: WidgetProps) -> dict[str, Any]:
    return {"input": props.options["input"], "format": props.options["format"]}


def default_widget_names() -> list[str]:
    return [f"type:string:format:{name}" for name in FORMAT_INPUTS]


def register_default_widgets(registry: WidgetRegistry) -> list[str]:
    """Register the stock format widgets.

    Names already visible in ``registry`` (locally or through a parent) are
    left alone, so calling this again, or after registering an override,
    changes nothing.

    Returns:
        The names that were added.
    """
    added = []
    for format_name, input_kind in FORMAT_INPUTS.items():
        name, registration = for_type_and_format(
            "string",
            format_name,
            _format_input,
            display_name=f"{format_name} input",
        )
        if registry.has(name):
            continue
        registration.options = {"input": input_kind, "format": format_name}
        registry.register(name, registration)
        added.append(name)
    if added:
        logger.debug(f"Registered {len(added)} default widgets")
    return added


def has_default_widgets(registry: WidgetRegistry) -> bool:
    return all(registry.has(name) for name in default_widget_names())


def ensure_default_widgets(registry: WidgetRegistry | None = None) -> WidgetRegistry:
    """Return ``registry`` (or a new one) with every stock widget visible.

    Example:
        >>> registry = ensure_default_widgets()
        >>> registry.find_best_widget(ctx).name
        'type:string:format:email'
    """
    if registry is None:
        registry = WidgetRegistry()
    if not has_default_widgets(registry):
        register_default_widgets(registry)
    return registry


__all__ = [
    "FORMAT_INPUTS",
    "default_widget_names",
    "register_default_widgets",
    "has_default_widgets",
    "ensure_default_widgets",
]
