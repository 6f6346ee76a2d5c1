"""structure-engine: schema-driven control trees for JSON Structure documents."""

from structure_engine.context import StructureContext, create_structure_context
from structure_engine.controller import Controller, create_controller
from structure_engine.controls import (
    Control,
    ControlKind,
    ControlNode,
    render_text_tree,
    structure_control,
    structure_generic_control,
)
from structure_engine.defaults import extract_structure_defaults, make_default_value
from structure_engine.resolver import RefResolver, resolve_extends
from structure_engine.schema import SchemaLoadError, classify, load_schema
from structure_engine.validation import build_validation, validate_schema_document
from structure_engine.widgets import WidgetRegistry

__all__ = [
    # Documents
    "load_schema",
    "SchemaLoadError",
    "classify",
    "RefResolver",
    "resolve_extends",
    # Contexts and controllers
    "StructureContext",
    "create_structure_context",
    "Controller",
    "create_controller",
    # Controls
    "Control",
    "ControlKind",
    "ControlNode",
    "structure_control",
    "structure_generic_control",
    "render_text_tree",
    "WidgetRegistry",
    # Defaults and validation
    "make_default_value",
    "extract_structure_defaults",
    "build_validation",
    "validate_schema_document",
]
