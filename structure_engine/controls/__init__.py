"""Controls module - schema-driven control trees bound to controllers.

This module provides:
- `structure_control()` building the control tree of a document
- `structure_generic_control()` dispatching one tree position
- Primitive, compound, union and choice controls
- `ControlNode` snapshots and `render_text_tree()`

Example usage:
    >>> from structure_engine.controller import create_controller
    >>> from structure_engine.controls import render_text_tree, structure_control
    >>> controller = create_controller({"name": "Ada"})
    >>> control = structure_control(schema, controller)
    >>> print(render_text_tree(control.snapshot()))
"""

from .compound import (
    ArrayControl,
    MapControl,
    ObjectControl,
    SetControl,
    TupleControl,
    unique_key,
)
from .dispatch import DeferredControl, structure_control, structure_generic_control
from .lib import Control, ControlKind, ControlNode, render_text_tree, to_jsonable
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
    PrimitiveControl,
    StringControl,
    TemporalControl,
    UriControl,
    UuidControl,
    integer_limits,
)
from .union import ChoiceControl, UnionControl

__all__ = [
    # Entry points
    "structure_control",
    "structure_generic_control",
    # Base
    "Control",
    "ControlKind",
    "ControlNode",
    "render_text_tree",
    "to_jsonable",
    # Primitive controls
    "PrimitiveControl",
    "StringControl",
    "BooleanControl",
    "IntegerControl",
    "DecimalControl",
    "UuidControl",
    "UriControl",
    "TemporalControl",
    "BinaryControl",
    "AnyControl",
    "NullControl",
    "EnumControl",
    "ConstControl",
    "PlaceholderControl",
    "CustomControl",
    "DeferredControl",
    "integer_limits",
    # Compound controls
    "ObjectControl",
    "ArrayControl",
    "SetControl",
    "MapControl",
    "TupleControl",
    "unique_key",
    # Unions
    "UnionControl",
    "ChoiceControl",
]
