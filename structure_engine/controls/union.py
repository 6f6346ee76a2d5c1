"""Controls for type-array unions and choice types."""

from __future__ import annotations

from typing import Any

from structure_engine.context import StructureContext
from structure_engine.controller import Controller, UnionController
from structure_engine.defaults import make_default_value
from structure_engine.union import (
    ChoiceSelection,
    create_union_branches,
    extract_variant_value,
    serialize_choice_value,
)

from .compound import _dispatch
from .lib import Control, ControlKind


class UnionControl(Control):
    """Branch selector plus the control of the active branch.

    Branches are the non-null member types. The active branch follows the
    value; switching converts the value when possible and otherwise resets
    it to the branch default.
    """

    kind = ControlKind.UNION

    def __init__(self, ctx: StructureContext, controller: Controller[Any]):
        super().__init__(ctx, controller)
        self.types: list[str] = list(ctx.shape.types)
        self.union = UnionController(
            controller.path,
            controller.change,
            controller.signal.map(lambda v: v),
            controller.status.map(lambda s: s),
            create_union_branches(self.types),
            controller.disabled,
        )
        controller.own(self.union)
        self.active: Control | None = None
        self._build(self.union.active_branch.value)
        self.add_cleanup(self.union.active_branch.on(self._build))

    def _build(self, key: str) -> None:
        if self.active is not None:
            self.active.dispose()
        branch_ctx = self.ctx.with_updates(
            definition={**self.ctx.definition, "type": key},
            suppress_label=not self.ctx.is_root,
        )
        self.active = _dispatch(branch_ctx, self.union.branch_controller(key))

    @property
    def active_branch(self) -> str:
        return self.union.active_branch.value

    @property
    def branch_labels(self) -> dict[str, str]:
        return {branch.key: branch.label for branch in self.union.branches}

    def switch_branch(self, key: str) -> bool:
        """Move the value to branch ``key``.

        Branch order decides detection; see `UnionController.switch_to_branch`.

        Raises:
            KeyError: If ``key`` is not a member type.
        """
        if not self._writable("switch_branch"):
            return False
        return self.union.switch_to_branch(key)

    @property
    def children(self) -> list[Control]:
        return [self.active] if self.active is not None else []

    def options(self) -> dict[str, Any]:
        return {
            "branches": self.branch_labels,
            "active": self.active_branch,
            "show_selector": len(self.types) > 1,
        }


class ChoiceControl(Control):
    """Selector plus the control of the selected choice.

    The selection follows the value until the user picks a choice with
    `select_choice`; from then on it stays pinned for the control's
    lifetime. Picking a choice always writes a fresh default for it.
    """

    kind = ControlKind.CHOICE

    def __init__(self, ctx: StructureContext, controller: Controller[Any]):
        super().__init__(ctx, controller)
        self.choices: dict[str, Any] = ctx.definition["choices"]
        self.selector: str | None = ctx.definition.get("selector")
        self.selection = ChoiceSelection.from_value(
            controller.value, self.choices, self.selector
        )
        self.variant_controller: Controller[Any] | None = None
        self.variant: Control | None = None
        self._build()
        self.add_cleanup(controller.signal.on(self._observe))

    def _observe(self, value: Any) -> None:
        if self.selection.observe(value):
            self._build()

    def _build(self) -> None:
        name = self.selection.active
        if self.variant is not None:
            self.variant.dispose()
        if self.variant_controller is not None:
            self.controller.disown(self.variant_controller)

        def change(variant_value: Any) -> None:
            self.controller.change(
                serialize_choice_value(variant_value, name, self.selector)
            )

        variant_controller: Controller[Any] = Controller(
            [*self.controller.path, name],
            change,
            self.controller.signal.map(
                lambda v: extract_variant_value(v, name, self.selector)
            ),
            self.controller.status.map(lambda s: s),
            self.controller.disabled,
        )
        self.variant_controller = self.controller.own(variant_controller)
        variant_ctx = self.ctx.with_updates(
            definition=self.choices[name],
            suppress_label=True,
        ).append(name)
        self.variant = _dispatch(variant_ctx, variant_controller)

    @property
    def active_choice(self) -> str:
        return self.selection.active

    @property
    def choice_labels(self) -> dict[str, str]:
        labels = {}
        for name, definition in self.choices.items():
            label = definition.get("name") if isinstance(definition, dict) else None
            labels[name] = label or name
        return labels

    def select_choice(self, name: str) -> None:
        """User selection: pin ``name`` and write its fresh default.

        Raises:
            KeyError: If ``name`` is not a declared choice.
        """
        if not self._writable("select_choice"):
            return
        self.selection.select(name)
        definition = self.ctx.resolver.resolve_definition(self.choices[name])
        fresh = make_default_value(definition)
        self.controller.change(serialize_choice_value(fresh, name, self.selector))
        self._build()

    @property
    def children(self) -> list[Control]:
        return [self.variant] if self.variant is not None else []

    def options(self) -> dict[str, Any]:
        return {
            "choices": self.choice_labels,
            "active": self.active_choice,
            "selector": self.selector,
            "mode": self.selection.mode.value,
        }


__all__ = ["UnionControl", "ChoiceControl"]
