"""Generic control dispatch.

`structure_generic_control` turns one (context, controller) pair into a
control. Steps, each stopping the rest on a match:

1. A ``{"$ref"}`` type is resolved and merged under the local keys.
2. ``$extends`` bases are folded in.
1a. A reference already expanded on the way to this position, with no
    value to show, becomes a `DeferredControl` instead of recursing.
3. A widget registered for the node replaces the built-in control.
4. The node's `TypeShape` is matched exhaustively: enum, const, union,
   the compound kinds, primitives, and ``any`` for untyped nodes,
   unresolved references and unknown keywords.

Compound controls receive the object or array view of the controller,
created at most once per node.
"""

from __future__ import annotations

from typing import Any, assert_never

from structure_engine.context import StructureContext, create_structure_context
from structure_engine.controller import Controller
from structure_engine.resolver import resolve_extends
from structure_engine.schema import (
    ShapeKind,
    is_float_type,
    is_integer_type,
    is_temporal_type,
    is_type_reference,
)
from structure_engine.widgets import WidgetRegistry

from .compound import ArrayControl, MapControl, ObjectControl, SetControl, TupleControl
from .lib import Control, ControlKind, logger
from .primitive import (
    AnyControl,
    BinaryControl,
    BooleanControl,
    ConstControl,
    CustomControl,
    DecimalControl,
    EnumControl,
    IntegerControl,
    NullControl,
    PlaceholderControl,
    StringControl,
    TemporalControl,
    UriControl,
    UuidControl,
)
from .union import ChoiceControl, UnionControl


def _mismatch(
    ctx: StructureContext, controller: Controller[Any], expected: str
) -> Control:
    logger.warning(
        f"{expected.capitalize()} control requires a {expected} definition "
        f"at {ctx.json_path or '/'}"
    )
    return PlaceholderControl(ctx, controller, f"Invalid {expected} definition")


def _primitive(
    ctx: StructureContext, controller: Controller[Any], keyword: str
) -> Control:
    match keyword:
        case "string":
            return StringControl(ctx, controller)
        case "boolean":
            return BooleanControl(ctx, controller)
        case "uuid":
            return UuidControl(ctx, controller)
        case "uri":
            return UriControl(ctx, controller)
        case "binary":
            return BinaryControl(ctx, controller)
        case "null":
            return NullControl(ctx, controller)
        case _ if is_integer_type(keyword):
            return IntegerControl(ctx, controller, keyword)
        case _ if is_float_type(keyword):
            return DecimalControl(ctx, controller, keyword)
        case _ if is_temporal_type(keyword):
            return TemporalControl(ctx, controller, keyword)
    logger.warning(f"Unknown type: {keyword} at {ctx.json_path or '/'}")
    return AnyControl(ctx, controller)


class DeferredControl(Control):
    """Recursive reference left unexpanded until its position holds a value.

    The subtree is built by `expand`, or as soon as the value becomes
    non-null. Until then the control has no children.
    """

    kind = ControlKind.DEFERRED

    def __init__(
        self, ctx: StructureContext, controller: Controller[Any], ref: str
    ):
        super().__init__(ctx, controller)
        self.ref = ref
        self.inner: Control | None = None
        self.add_cleanup(controller.signal.on(self._on_value))

    def _on_value(self, value: Any) -> None:
        if value is not None and self.inner is None:
            self.expand()

    @property
    def expanded(self) -> bool:
        return self.inner is not None

    def expand(self) -> Control:
        """Build the control of the referenced definition. Idempotent."""
        if self.inner is None:
            self.inner = _build(self.ctx, self.controller, defer=False)
        return self.inner

    @property
    def children(self) -> list[Control]:
        return [self.inner] if self.inner is not None else []

    def options(self) -> dict[str, Any]:
        return {"ref": self.ref, "expanded": self.expanded}


def _route(ctx: StructureContext, controller: Controller[Any]) -> Control:
    definition = ctx.definition
    shape = ctx.shape
    match shape.kind:
        case ShapeKind.ENUM:
            return EnumControl(ctx, controller)
        case ShapeKind.CONST:
            return ConstControl(ctx, controller)
        case ShapeKind.UNION:
            return UnionControl(ctx, controller)
        case ShapeKind.OBJECT:
            if not isinstance(definition.get("properties", {}), dict):
                return _mismatch(ctx, controller, "object")
            return ObjectControl(ctx, controller.object())
        case ShapeKind.ARRAY:
            if not isinstance(definition.get("items"), dict):
                return _mismatch(ctx, controller, "array")
            return ArrayControl(ctx, controller.array())
        case ShapeKind.SET:
            if not isinstance(definition.get("items"), dict):
                return _mismatch(ctx, controller, "set")
            return SetControl(ctx, controller.array())
        case ShapeKind.MAP:
            if not isinstance(definition.get("values"), dict):
                return _mismatch(ctx, controller, "map")
            return MapControl(ctx, controller.object())
        case ShapeKind.TUPLE:
            if not isinstance(definition.get("tuple"), list) or not isinstance(
                definition.get("properties", {}), dict
            ):
                return _mismatch(ctx, controller, "tuple")
            return TupleControl(ctx, controller.array())
        case ShapeKind.CHOICE:
            choices = definition.get("choices")
            if not isinstance(choices, dict):
                return _mismatch(ctx, controller, "choice")
            if not choices:
                return PlaceholderControl(
                    ctx, controller, "Choice type has no variants defined"
                )
            return ChoiceControl(ctx, controller)
        case ShapeKind.PRIMITIVE:
            return _primitive(ctx, controller, shape.primitive or "any")
        case ShapeKind.ANY | ShapeKind.REFERENCE:
            return AnyControl(ctx, controller)
        case ShapeKind.UNKNOWN:
            logger.warning(f"Unknown type: {shape.primitive} at {ctx.json_path or '/'}")
            return AnyControl(ctx, controller)
        case _ as unreachable:
            assert_never(unreachable)


def structure_generic_control(
    ctx: StructureContext, controller: Controller[Any]
) -> Control:
    """Build the control for one tree position.

    Never raises for unusual definitions: shape mismatches become
    placeholders, unresolvable references keep the local definition, and
    unknown type keywords fall back to the ``any`` control.

    Args:
        ctx: Context of the position.
        controller: Controller bound to the position's value.

    Returns:
        The control, with its subtree built down to any recursive reference
        that has no value yet.
    """
    type_spec = ctx.definition.get("type")
    if is_type_reference(type_spec):
        ref = type_spec["$ref"]
        recursive = ctx.is_recursive_ref(ref)
        merged = ctx.resolver.resolve_definition(ctx.definition)
        if merged is not ctx.definition:
            ctx = ctx.with_updates(definition=merged, ref_chain=(*ctx.ref_chain, ref))
            if recursive and controller.value is None:
                logger.debug(f"Deferring recursive {ref} at {ctx.json_path or '/'}")
                return DeferredControl(ctx, controller, ref)

    return _build(ctx, controller)


def _extends_refs(definition: dict[str, Any]) -> tuple[str, ...]:
    extends = definition.get("$extends")
    refs = extends if isinstance(extends, list) else [extends]
    return tuple(ref for ref in refs if isinstance(ref, str))


def _build(
    ctx: StructureContext, controller: Controller[Any], defer: bool = True
) -> Control:
    if "$extends" in ctx.definition:
        bases = _extends_refs(ctx.definition)
        recursive = [base for base in bases if ctx.is_recursive_ref(base)]
        if defer and recursive and controller.value is None:
            logger.debug(
                f"Deferring recursive {recursive[0]} at {ctx.json_path or '/'}"
            )
            return DeferredControl(ctx, controller, recursive[0])
        result = resolve_extends(ctx.definition, ctx.schema, ctx.resolver)
        ctx = ctx.with_updates(
            definition=result.merged, ref_chain=(*ctx.ref_chain, *bases)
        )

    if ctx.widget_registry is not None:
        widget = ctx.widget_registry.find_best_widget(ctx)
        if widget is not None:
            return CustomControl(ctx, controller, widget)

    return _route(ctx, controller)


def structure_control(
    schema: dict[str, Any],
    controller: Controller[Any],
    widget_registry: WidgetRegistry | None = None,
    read_only: bool | None = None,
    locale: str | None = None,
) -> Control:
    """Build the control tree for a whole document.

    Args:
        schema: Root document.
        controller: Root controller, usually from `create_controller`.
        widget_registry: Custom widgets for this tree.
        read_only: Defaults to STRUCTURE_READ_ONLY.
        locale: Defaults to STRUCTURE_LOCALE.

    Example:
        >>> controller = create_controller({"name": "Ada"})
        >>> control = structure_control(schema, controller)
        >>> control.snapshot().children[0].value
        'Ada'
    """
    ctx = create_structure_context(
        schema, read_only=read_only, locale=locale, widget_registry=widget_registry
    )
    return structure_generic_control(ctx, controller)


__all__ = ["structure_generic_control", "structure_control"]
