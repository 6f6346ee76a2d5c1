"""Control base class and snapshot model.

A control is the engine's output for one tree position: it pairs a
`StructureContext` with a `Controller`, exposes the value-binding
operations an editor needs (add an item, select a choice, parse typed
text) and renders to a `ControlNode` snapshot for any presentation layer.

Controls are disposed together with their controller. Disposing a control
tears down the child controls it built, and runs its own cleanups.
"""

from __future__ import annotations

import base64
from collections.abc import Callable
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from structure_engine.context import StructureContext
from structure_engine.controller import Controller
from structure_engine.core.log import get_logger

logger = get_logger("structure.controls")


class ControlKind(str, Enum):
    """Concrete control produced by dispatch."""

    # Primitives
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    UUID = "uuid"
    URI = "uri"
    TEMPORAL = "temporal"
    BINARY = "binary"
    ANY = "any"
    NULL = "null"
    ENUM = "enum"
    CONST = "const"
    PLACEHOLDER = "placeholder"
    CUSTOM = "custom"
    DEFERRED = "deferred"

    # Compounds
    OBJECT = "object"
    ARRAY = "array"
    SET = "set"
    MAP = "map"
    TUPLE = "tuple"
    CHOICE = "choice"
    UNION = "union"


class ControlNode(BaseModel):
    """Snapshot of a control subtree.

    Attributes:
        kind: Control kind.
        path: Keys from the root to this position.
        type: Type keyword handled by the control, when there is one.
        label: Display label, None when the enclosing control shows it.
        value: Current value in JSON-compatible form.
        required: Whether the owning object requires this member.
        nullable: Whether ``null`` is allowed.
        disabled: Read-only, deprecated or disabled by the controller.
        deprecated: Whether the definition is deprecated.
        description: Definition description.
        error: Validation message recorded at this position.
        options: Kind-specific data (bounds, choices, duplicates...).
        children: Child control snapshots.

    Example:
        >>> node = control.snapshot()
        >>> node.model_dump_json()
    """

    kind: ControlKind = Field(..., description="Control kind")
    path: list[str | int] = Field(default_factory=list, description="Tree position")
    type: str | None = Field(None, description="Handled type keyword")
    label: str | None = Field(None, description="Display label")
    value: Any = Field(None, description="Current value")
    required: bool = Field(default=False, description="Required by the owner")
    nullable: bool = Field(default=False, description="Accepts null")
    disabled: bool = Field(default=False, description="Refuses edits")
    deprecated: bool = Field(default=False, description="Deprecated member")
    description: str | None = Field(None, description="Definition description")
    error: str | None = Field(None, description="Validation message")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Kind-specific data"
    )
    children: list[ControlNode] = Field(
        default_factory=list, description="Child control snapshots"
    )

    model_config = {
        "use_enum_values": True,
    }


def to_jsonable(value: Any) -> Any:
    """Convert a value into something JSON can encode.

    Binary data becomes base64 text; tuples and sets become lists.
    """
    if isinstance(value, bytes | bytearray):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [to_jsonable(item) for item in value]
    return value


class Control:
    """Base class of every control.

    Args:
        ctx: Context of the position.
        controller: Controller bound to the position's value.
    """

    kind: ClassVar[ControlKind]

    def __init__(self, ctx: StructureContext, controller: Controller[Any]):
        self.ctx = ctx
        self.controller = controller
        self._cleanups: list[Callable[[], None]] = []
        self._disposed = False
        controller.on_dispose(self.dispose)

    @property
    def path(self) -> list[str | int]:
        return list(self.controller.path)

    @property
    def value(self) -> Any:
        return self.controller.value

    @property
    def label(self) -> str | None:
        return None if self.ctx.suppress_label else self.ctx.label

    @property
    def type_name(self) -> str | None:
        return self.ctx.primary_type

    @property
    def read_only(self) -> bool:
        return self.ctx.read_only

    @property
    def disabled(self) -> bool:
        return (
            self.ctx.read_only
            or self.ctx.is_deprecated
            or self.controller.disabled.value
        )

    @property
    def children(self) -> list[Control]:
        return []

    @property
    def disposed(self) -> bool:
        return self._disposed

    def options(self) -> dict[str, Any]:
        """Kind-specific data added to the snapshot."""
        return {}

    def snapshot(self) -> ControlNode:
        return ControlNode(
            kind=self.kind,
            path=self.path,
            type=self.type_name,
            label=self.label,
            value=to_jsonable(self.value),
            required=self.ctx.is_required,
            nullable=self.ctx.is_nullable,
            disabled=self.disabled,
            deprecated=self.ctx.is_deprecated,
            description=self.ctx.description,
            error=self.controller.error,
            options=to_jsonable(self.options()),
            children=[child.snapshot() for child in self.children],
        )

    def _writable(self, operation: str) -> bool:
        if self.ctx.read_only:
            logger.debug(
                f"Ignoring {operation} on read-only control {self.ctx.json_path}"
            )
            return False
        return True

    def add_cleanup(self, callback: Callable[[], None]) -> None:
        self._cleanups.append(callback)

    def dispose(self) -> None:
        """Dispose child controls and run cleanups. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for child in self.children:
            child.dispose()
        callbacks, self._cleanups = self._cleanups, []
        for callback in callbacks:
            callback()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r})"


# =============================================================================
# Text Rendering
# =============================================================================


def _describe(node: ControlNode) -> str:
    name = node.label or (str(node.path[-1]) if node.path else "(root)")
    kind = node.kind if isinstance(node.kind, str) else node.kind.value
    parts = [f"{name} <{kind}"]
    if node.type and node.type != kind:
        parts.append(f":{node.type}")
    parts.append(">")
    if node.required:
        parts.append(" *")
    if not node.children:
        parts.append(f" = {node.value!r}")
    if node.error:
        parts.append(f"  ! {node.error}")
    return "".join(parts)


def render_text_tree(node: ControlNode, indent: str = "  ") -> str:
    """Indented text rendering of a snapshot, one control per line.

    Example:
        >>> print(render_text_tree(control.snapshot()))
        Person <object>
          Name <string> * = 'Ada'
          Age <integer:uint8> = 0
    """
    lines: list[str] = []

    def walk(current: ControlNode, depth: int) -> None:
        lines.append(f"{indent * depth}{_describe(current)}")
        for child in current.children:
            walk(child, depth + 1)

    walk(node, 0)
    return "\n".join(lines)


__all__ = [
    "ControlKind",
    "ControlNode",
    "Control",
    "to_jsonable",
    "render_text_tree",
]
