"""Widgets module - per-node override registry for control dispatch.

Example usage:
    >>> from structure_engine.widgets import WidgetRegistry, for_format
    >>> registry = WidgetRegistry()
    >>> registry.register(*for_format("email", lambda props: "email-input"))
    >>> control = structure_control(schema, controller, widget_registry=registry)
"""

from .defaults import (
    FORMAT_INPUTS,
    default_widget_names,
    ensure_default_widgets,
    has_default_widgets,
    register_default_widgets,
)
from .lib import (
    ResolvedWidget,
    WidgetFactory,
    WidgetProps,
    WidgetRegistration,
    WidgetRegistry,
    for_format,
    for_matcher,
    for_type,
    for_type_and_format,
    get_explicit_widget_name,
    get_widget_options,
    merge_widget_options,
)

__all__ = [
    # Types
    "WidgetProps",
    "WidgetFactory",
    "WidgetRegistration",
    "ResolvedWidget",
    # Registry
    "WidgetRegistry",
    # Registration helpers
    "for_type",
    "for_format",
    "for_type_and_format",
    "for_matcher",
    # Definition helpers
    "get_explicit_widget_name",
    "get_widget_options",
    "merge_widget_options",
    # Stock widgets
    "FORMAT_INPUTS",
    "default_widget_names",
    "register_default_widgets",
    "has_default_widgets",
    "ensure_default_widgets",
]
