"""Controls for objects, arrays, sets, maps and tuples.

Compound controls build one child control per member by dispatching the
member's context and controller. Members that come and go with the value
(array items, map entries, additional properties) are kept in sync with the
controller's signal: new members get a control, and members that vanish
have their controller released, which disposes their control.
"""

from __future__ import annotations

from typing import Any

from structure_engine.context import StructureContext, humanize
from structure_engine.controller import ArrayController, Controller, ObjectController
from structure_engine.defaults import make_default_value
from structure_engine.resolver import is_property_required
from structure_engine.union import find_duplicate_indices

from .lib import Control, ControlKind


def _dispatch(ctx: StructureContext, controller: Controller[Any]) -> Control:
    from .dispatch import structure_generic_control

    return structure_generic_control(ctx, controller)


def unique_key(existing: Any, base: str) -> str:
    """``base``, or ``base`` with the first free numeric suffix.

    Example:
        >>> unique_key({"key", "key1"}, "key")
        'key2'
    """
    if base not in existing:
        return base
    counter = 1
    while f"{base}{counter}" in existing:
        counter += 1
    return f"{base}{counter}"


# =============================================================================
# Object
# =============================================================================


class ObjectControl(Control):
    """Declared properties plus any additional properties in the value.

    Additional properties follow ``additionalProperties`` (a definition, or
    ``any`` when absent); ``False`` forbids adding new ones. Adding and
    removing respect ``minProperties`` and ``maxProperties``.
    """

    kind = ControlKind.OBJECT

    def __init__(self, ctx: StructureContext, controller: ObjectController):
        super().__init__(ctx, controller)
        self.controller: ObjectController = controller
        definition = ctx.definition
        self.properties: dict[str, Any] = definition.get("properties") or {}
        self.required = definition.get("required")

        additional = definition.get("additionalProperties")
        self.allow_additional = additional is not False
        self.additional_schema: dict[str, Any] = (
            additional if isinstance(additional, dict) else {"type": "any"}
        )
        self.min_properties: int = definition.get("minProperties", 0)
        self.max_properties: int | None = definition.get("maxProperties")

        self.fields: dict[str, Control] = {}
        for key, property_definition in self.properties.items():
            child_ctx = ctx.with_updates(
                definition=property_definition,
                is_property_required=is_property_required(key, self.required),
                suppress_label=False,
            ).append(key)
            self.fields[key] = _dispatch(child_ctx, controller.field(key))

        self.additional: dict[str, Control] = {}
        self._sync(controller.value)
        self.add_cleanup(controller.signal.on(self._sync))

    def _sync(self, value: dict[str, Any]) -> None:
        keys = [key for key in value if key not in self.properties]
        for key in [key for key in self.additional if key not in value]:
            del self.additional[key]
            self.controller.release(key)
        for key in keys:
            if key in self.additional:
                continue
            child_ctx = self.ctx.with_updates(
                definition=self.additional_schema,
                is_property_required=False,
                suppress_label=True,
            ).append(key)
            self.additional[key] = _dispatch(child_ctx, self.controller.field(key))
        self.additional = {key: self.additional[key] for key in keys}

    @property
    def children(self) -> list[Control]:
        return [*self.fields.values(), *self.additional.values()]

    @property
    def can_add(self) -> bool:
        if not self.allow_additional or self.ctx.read_only:
            return False
        return self.max_properties is None or len(self.value) < self.max_properties

    @property
    def can_remove(self) -> bool:
        return not self.ctx.read_only and len(self.value) > self.min_properties

    def add_property(self, key: str | None = None, value: Any = None) -> str | None:
        """Add an additional property and return its key.

        Args:
            key: Property name; a free ``property<n>`` name when omitted.
            value: Initial value; the additional schema's default when None.

        Returns:
            The key used, or None when adding is not allowed.
        """
        if not self.can_add:
            return None
        current = self.value
        name = unique_key(current, key or "property")
        initial = make_default_value(self.additional_schema) if value is None else value
        self.controller.change({**current, name: initial})
        return name

    def remove_property(self, key: str) -> bool:
        """Remove an additional property. Declared properties are kept."""
        if key in self.properties or key not in self.value or not self.can_remove:
            return False
        self.controller.remove_field(key)
        return True

    def rename_property(self, old: str, new: str) -> bool:
        if old in self.properties or new in self.properties:
            return False
        if not self._writable("rename"):
            return False
        if old not in self.value or new in self.value:
            return False
        self.controller.rename_field(old, new)
        return True

    def options(self) -> dict[str, Any]:
        return {
            "properties": list(self.properties),
            "additional": list(self.additional),
            "can_add": self.can_add,
            "can_remove": self.can_remove,
        }


# =============================================================================
# Array and Set
# =============================================================================


class ArrayControl(Control):
    """One item control per element; respects ``minItems``/``maxItems``."""

    kind = ControlKind.ARRAY

    def __init__(self, ctx: StructureContext, controller: ArrayController):
        super().__init__(ctx, controller)
        self.controller: ArrayController = controller
        self.items_schema: dict[str, Any] = ctx.definition["items"]
        self.min_items: int = ctx.definition.get("minItems", 0)
        self.max_items: int | None = ctx.definition.get("maxItems")
        self.items: dict[int, Control] = {}
        self._sync(controller.length.value)
        self.add_cleanup(controller.length.on(self._sync))

    def _sync(self, length: int) -> None:
        for index in [index for index in self.items if index >= length]:
            self.items.pop(index).dispose()
        for index in range(length):
            if index in self.items:
                continue
            child_ctx = self.ctx.with_updates(
                definition=self.items_schema,
                is_property_required=False,
                suppress_label=True,
            ).append(index)
            self.items[index] = _dispatch(child_ctx, self.controller.item(index))

    @property
    def children(self) -> list[Control]:
        return [self.items[index] for index in sorted(self.items)]

    @property
    def can_add(self) -> bool:
        if self.ctx.read_only:
            return False
        return self.max_items is None or len(self.value) < self.max_items

    @property
    def can_remove(self) -> bool:
        return not self.ctx.read_only and len(self.value) > self.min_items

    def add_item(self, value: Any = None) -> bool:
        """Append ``value``, or the item schema's default when None."""
        if not self.can_add:
            return False
        if value is None:
            value = make_default_value(self.items_schema)
        self.controller.push(value)
        return True

    def remove_item(self, index: int) -> bool:
        if not self.can_remove or not 0 <= index < len(self.value):
            return False
        self.controller.remove_at(index)
        return True

    def move_item(self, from_index: int, to_index: int) -> bool:
        if not self._writable("move"):
            return False
        self.controller.move(from_index, to_index)
        return True

    def options(self) -> dict[str, Any]:
        return {
            "length": len(self.value),
            "can_add": self.can_add,
            "can_remove": self.can_remove,
        }


class SetControl(ArrayControl):
    """Array control that flags items equal to another item."""

    kind = ControlKind.SET

    @property
    def duplicates(self) -> set[int]:
        return find_duplicate_indices(self.value)

    def is_duplicate(self, index: int) -> bool:
        return index in self.duplicates

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)

    def options(self) -> dict[str, Any]:
        return {**super().options(), "duplicates": sorted(self.duplicates)}


# =============================================================================
# Map
# =============================================================================


class MapControl(Control):
    """String-keyed entries sharing one ``values`` definition."""

    kind = ControlKind.MAP

    def __init__(self, ctx: StructureContext, controller: ObjectController):
        super().__init__(ctx, controller)
        self.controller: ObjectController = controller
        self.values_schema: dict[str, Any] = ctx.definition["values"]
        self.min_properties: int = ctx.definition.get("minProperties", 0)
        self.max_properties: int | None = ctx.definition.get("maxProperties")
        self.entries: dict[str, Control] = {}
        self._sync(controller.value)
        self.add_cleanup(controller.signal.on(self._sync))

    def _sync(self, value: dict[str, Any]) -> None:
        for key in [key for key in self.entries if key not in value]:
            del self.entries[key]
            self.controller.release(key)
        for key in value:
            if key in self.entries:
                continue
            child_ctx = self.ctx.with_updates(
                definition=self.values_schema,
                is_property_required=False,
                suppress_label=True,
            ).append(key)
            self.entries[key] = _dispatch(child_ctx, self.controller.field(key))
        self.entries = {key: self.entries[key] for key in value}

    @property
    def children(self) -> list[Control]:
        return list(self.entries.values())

    @property
    def can_add(self) -> bool:
        if self.ctx.read_only:
            return False
        return self.max_properties is None or len(self.value) < self.max_properties

    @property
    def can_remove(self) -> bool:
        return not self.ctx.read_only and len(self.value) > self.min_properties

    def add_entry(self, key: str | None = None, value: Any = None) -> str | None:
        """Add an entry and return its key, or None when adding is not allowed."""
        if not self.can_add:
            return None
        current = self.value
        name = unique_key(current, key or "key")
        initial = make_default_value(self.values_schema) if value is None else value
        self.controller.change({**current, name: initial})
        return name

    def remove_entry(self, key: str) -> bool:
        if key not in self.value or not self.can_remove:
            return False
        self.controller.remove_field(key)
        return True

    def rename_entry(self, old: str, new: str) -> bool:
        if not self._writable("rename") or old not in self.value or new in self.value:
            return False
        self.controller.rename_field(old, new)
        return True

    def options(self) -> dict[str, Any]:
        return {
            "keys": list(self.entries),
            "can_add": self.can_add,
            "can_remove": self.can_remove,
        }


# =============================================================================
# Tuple
# =============================================================================


class TupleControl(Control):
    """Fixed-length sequence whose slots are named by ``tuple``.

    A value that is not a sequence of exactly ``len(tuple)`` items is
    replaced, before any slot control is built, by the slot defaults.
    """

    kind = ControlKind.TUPLE

    def __init__(self, ctx: StructureContext, controller: ArrayController):
        super().__init__(ctx, controller)
        self.controller: ArrayController = controller
        self.keys: list[str] = list(ctx.definition["tuple"])
        self.properties: dict[str, Any] = ctx.definition.get("properties") or {}

        if len(controller.value) != len(self.keys):
            controller.change(self.default_items())

        self.slots: list[Control] = []
        for index, key in enumerate(self.keys):
            slot_definition = self.properties.get(key, {"type": "any"})
            if "name" not in slot_definition:
                slot_definition = {**slot_definition, "name": humanize(key)}
            child_ctx = ctx.with_updates(
                definition=slot_definition,
                is_property_required=True,
                suppress_label=False,
            ).append(index)
            self.slots.append(_dispatch(child_ctx, controller.item(index)))

    def default_items(self) -> list[Any]:
        return [make_default_value(self.properties.get(key)) for key in self.keys]

    @property
    def children(self) -> list[Control]:
        return list(self.slots)

    def options(self) -> dict[str, Any]:
        return {"keys": self.keys}


__all__ = [
    "unique_key",
    "ObjectControl",
    "ArrayControl",
    "SetControl",
    "MapControl",
    "TupleControl",
]
