"""Leaf controls for primitive types, enums and constants."""

from __future__ import annotations

import json
from typing import Any

from structure_engine.context import StructureContext
from structure_engine.controller import Controller
from structure_engine.defaults import make_default_value
from structure_engine.schema import INTEGER_BOUNDS, MAX_SAFE_INTEGER
from structure_engine.widgets import (
    ResolvedWidget,
    WidgetProps,
    get_widget_options,
    merge_widget_options,
)

from .lib import Control, ControlKind, logger


class PrimitiveControl(Control):
    """Control editing a single scalar value."""

    def set_value(self, value: Any) -> None:
        if self._writable("set_value"):
            self.controller.change(value)

    def clear(self) -> None:
        """Reset to ``None`` when nullable, else to the type's empty value."""
        if not self._writable("clear"):
            return
        if self.ctx.is_nullable:
            self.controller.change(None)
        else:
            self.controller.change(make_default_value(self.ctx.definition))

    @property
    def placeholder(self) -> str | None:
        examples = self.ctx.examples
        if examples and examples[0] is not None:
            return str(examples[0])
        return None

    def options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.placeholder is not None:
            options["placeholder"] = self.placeholder
        return options


class StringControl(PrimitiveControl):
    kind = ControlKind.STRING

    def options(self) -> dict[str, Any]:
        options = super().options()
        for key in ("format", "minLength", "maxLength", "pattern"):
            if key in self.ctx.definition:
                options[key] = self.ctx.definition[key]
        return options


class BooleanControl(PrimitiveControl):
    kind = ControlKind.BOOLEAN

    def toggle(self) -> None:
        self.set_value(not bool(self.value))


class UuidControl(StringControl):
    kind = ControlKind.UUID


class UriControl(StringControl):
    kind = ControlKind.URI


class TemporalControl(PrimitiveControl):
    """Date, datetime, time and duration values as ISO 8601 text."""

    kind = ControlKind.TEMPORAL

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], temporal_type: str
    ):
        super().__init__(ctx, controller)
        self.temporal_type = temporal_type

    def options(self) -> dict[str, Any]:
        return {**super().options(), "input": self.temporal_type}


class BinaryControl(PrimitiveControl):
    kind = ControlKind.BINARY

    def options(self) -> dict[str, Any]:
        options = super().options()
        for key in ("contentEncoding", "contentMediaType"):
            if key in self.ctx.definition:
                options[key] = self.ctx.definition[key]
        return options


# =============================================================================
# Numbers
# =============================================================================


def _number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            return None
    return None


def integer_limits(definition: dict[str, Any], int_type: str) -> tuple[int, int]:
    """Bounds of an integer control: the type width narrowed by the schema.

    ``minimum``/``maximum`` and the exclusive forms (shifted by one) may be
    numbers or numeric strings, as 64-bit and wider limits often are.
    """
    low, high = INTEGER_BOUNDS.get(int_type, (-MAX_SAFE_INTEGER, MAX_SAFE_INTEGER))

    minimum = _number(definition.get("minimum"))
    exclusive_minimum = _number(definition.get("exclusiveMinimum"))
    if minimum is not None:
        low = max(low, int(minimum))
    elif exclusive_minimum is not None:
        low = max(low, int(exclusive_minimum) + 1)

    maximum = _number(definition.get("maximum"))
    exclusive_maximum = _number(definition.get("exclusiveMaximum"))
    if maximum is not None:
        high = min(high, int(maximum))
    elif exclusive_maximum is not None:
        high = min(high, int(exclusive_maximum) - 1)

    return low, high


class IntegerControl(PrimitiveControl):
    """Integer widths int8 through uint128.

    Text input is parsed as an integer; text that does not parse is stored
    unchanged so external validation can report it.
    """

    kind = ControlKind.INTEGER

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], int_type: str
    ):
        super().__init__(ctx, controller)
        self.int_type = int_type
        self.minimum, self.maximum = integer_limits(ctx.definition, int_type)

    @property
    def is_big(self) -> bool:
        """Whether the width exceeds the range a double represents exactly."""
        low, high = INTEGER_BOUNDS[self.int_type]
        return low < -MAX_SAFE_INTEGER or high > MAX_SAFE_INTEGER

    def set_text(self, text: str) -> None:
        stripped = text.strip()
        if stripped == "" and self.ctx.is_nullable:
            self.set_value(None)
            return
        try:
            self.set_value(int(stripped))
        except ValueError:
            self.set_value(text)

    def options(self) -> dict[str, Any]:
        options = {
            **super().options(),
            "min": self.minimum,
            "max": self.maximum,
            "step": 1,
            "big": self.is_big,
        }
        # Bounds past the double-safe range are emitted as text.
        if self.is_big:
            options["min"] = str(self.minimum)
            options["max"] = str(self.maximum)
        return options


class DecimalControl(PrimitiveControl):
    """Float, double and decimal values."""

    kind = ControlKind.DECIMAL

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], float_type: str
    ):
        super().__init__(ctx, controller)
        self.float_type = float_type

    def set_text(self, text: str) -> None:
        stripped = text.strip()
        if stripped == "" and self.ctx.is_nullable:
            self.set_value(None)
            return
        try:
            self.set_value(float(stripped))
        except ValueError:
            self.set_value(text)

    def options(self) -> dict[str, Any]:
        options = super().options()
        definition = self.ctx.definition
        for key, name in (
            ("minimum", "min"),
            ("maximum", "max"),
            ("exclusiveMinimum", "exclusiveMin"),
            ("exclusiveMaximum", "exclusiveMax"),
            ("multipleOf", "step"),
            ("precision", "precision"),
            ("scale", "scale"),
        ):
            if key in definition:
                options[name] = definition[key]
        return options


# =============================================================================
# Any, Null, Enum, Const
# =============================================================================


class AnyControl(PrimitiveControl):
    """Free-form JSON value edited as text."""

    kind = ControlKind.ANY

    @property
    def text(self) -> str:
        value = self.value
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value, indent=2, default=repr)

    def set_text(self, text: str) -> None:
        """Parse JSON text; on failure the raw text is stored unchanged."""
        if text.strip() == "":
            self.set_value(None)
            return
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = text
        self.set_value(parsed)


class NullControl(Control):
    """Placeholder for a position whose only allowed value is ``null``."""

    kind = ControlKind.NULL

    @property
    def type_name(self) -> str | None:
        return "null"


class EnumControl(PrimitiveControl):
    kind = ControlKind.ENUM

    @property
    def choices(self) -> list[Any]:
        return self.ctx.enum_values

    def select(self, value: Any) -> None:
        """Select one of the enumerated values.

        Raises:
            ValueError: If ``value`` is not enumerated.
        """
        if value not in self.choices:
            raise ValueError(f"{value!r} is not one of {self.choices!r}")
        self.set_value(value)

    def options(self) -> dict[str, Any]:
        return {**super().options(), "choices": self.choices}


class ConstControl(Control):
    """Fixed value. An empty position is filled with the constant."""

    kind = ControlKind.CONST

    def __init__(self, ctx: StructureContext, controller: Controller[Any]):
        super().__init__(ctx, controller)
        empty = controller.value is None and ctx.const_value is not None
        if empty and not ctx.read_only:
            controller.change(ctx.const_value)

    @property
    def disabled(self) -> bool:
        return True

    def options(self) -> dict[str, Any]:
        return {"const": self.ctx.const_value}


class PlaceholderControl(Control):
    """Inert control for a position that cannot be edited as declared."""

    kind = ControlKind.PLACEHOLDER

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], message: str
    ):
        super().__init__(ctx, controller)
        self.message = message

    @property
    def disabled(self) -> bool:
        return True

    def options(self) -> dict[str, Any]:
        return {"message": self.message}


class CustomControl(Control):
    """Output of a registered widget standing in for the built-in control."""

    kind = ControlKind.CUSTOM

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], widget: ResolvedWidget
    ):
        super().__init__(ctx, controller)
        self.widget = widget
        declared = get_widget_options(ctx).get("options")
        self.widget_options = merge_widget_options(
            widget.registration.options, declared
        )
        self.output = widget.registration.factory(
            WidgetProps(controller=controller, ctx=ctx, options=self.widget_options)
        )
        logger.debug(f"Widget {widget.name} selected for {ctx.json_path or '/'}")

    def options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"widget": self.widget.name, **self.widget_options}
        if isinstance(self.output, str | int | float | bool | dict | list):
            options["output"] = self.output
        return options


__all__ = [
    "PrimitiveControl",
    "StringControl",
    "BooleanControl",
    "UuidControl",
    "UriControl",
    "TemporalControl",
    "BinaryControl",
    "integer_limits",
    "IntegerControl",
    "DecimalControl",
    "AnyControl",
    "NullControl",
    "EnumControl",
    "ConstControl",
    "PlaceholderControl",
    "CustomControl",
]
