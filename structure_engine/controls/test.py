"""Tests for control dispatch and the concrete controls."""

import json

import pytest

from structure_engine.controller import create_controller
from structure_engine.widgets import WidgetRegistry, ensure_default_widgets, for_format

from .compound import unique_key
from .dispatch import structure_control
from .lib import ControlKind, render_text_tree
from .primitive import integer_limits


def build(schema, value=None, **kwargs):
    controller = create_controller(value)
    return structure_control(schema, controller, **kwargs), controller


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    """Tests for routing definitions to controls."""

    @pytest.mark.unit
    def test_document_tree(self, person_schema):
        control, _ = build(person_schema, {"name": "Ada", "address": {"city": "Paris"}})
        assert control.kind == ControlKind.OBJECT
        kinds = {key: child.kind for key, child in control.fields.items()}
        assert kinds == {
            "name": ControlKind.STRING,
            "age": ControlKind.INTEGER,
            "email": ControlKind.STRING,
            "address": ControlKind.OBJECT,
            "tags": ControlKind.SET,
        }
        city = control.fields["address"].fields["city"]
        assert city.value == "Paris"
        assert city.ctx.is_required

    @pytest.mark.unit
    def test_context_and_controller_paths_match(self, person_schema):
        control, _ = build(person_schema, {"address": {}})
        city = control.fields["address"].fields["city"]
        assert city.path == ["address", "city"]
        assert list(city.ctx.path) == city.path

    @pytest.mark.unit
    def test_edits_propagate_to_root(self, person_schema):
        control, controller = build(person_schema, {"name": "Ada"})
        control.fields["name"].set_value("Grace")
        control.fields["address"].fields["street"].set_value("Main St")
        assert controller.value == {"name": "Grace", "address": {"street": "Main St"}}

    @pytest.mark.unit
    def test_nullable_single_type_is_not_a_union(self):
        control, controller = build({"type": ["string", "null"]}, "x")
        assert control.kind == ControlKind.STRING
        assert control.snapshot().nullable
        control.clear()
        assert controller.value is None

    @pytest.mark.unit
    def test_unknown_type_falls_back_to_any(self, caplog):
        control, _ = build({"type": "color"}, "#fff")
        assert control.kind == ControlKind.ANY
        assert "Unknown type: color" in caplog.text

    @pytest.mark.unit
    def test_shape_mismatch_is_a_placeholder(self, caplog):
        control, _ = build({"type": "array"}, [1])
        assert control.kind == ControlKind.PLACEHOLDER
        assert control.options()["message"] == "Invalid array definition"
        assert "requires a array definition" in caplog.text

    @pytest.mark.unit
    def test_unresolved_reference_keeps_local_definition(self, caplog):
        schema = {"type": {"$ref": "#/definitions/Nope"}, "definitions": {}}
        control, _ = build(schema, 1)
        assert control.kind == ControlKind.ANY
        assert "Failed to resolve $ref" in caplog.text

    @pytest.mark.unit
    def test_untyped_definition_is_any(self):
        control, _ = build({"properties": {}, "description": "free"}, None)
        assert control.kind == ControlKind.ANY

    @pytest.mark.unit
    def test_extends_is_merged(self):
        schema = {
            "$root": "#/definitions/Employee",
            "definitions": {
                "Base": {
                    "type": "object",
                    "abstract": True,
                    "properties": {"id": {"type": "uuid"}},
                    "required": ["id"],
                },
                "Employee": {
                    "type": "object",
                    "$extends": "#/definitions/Base",
                    "properties": {"salary": {"type": "decimal"}},
                },
            },
        }
        control, _ = build(schema, {})
        assert list(control.fields) == ["id", "salary"]
        assert control.fields["id"].kind == ControlKind.UUID
        assert control.fields["id"].ctx.is_required

    @pytest.mark.unit
    def test_enum_and_const(self):
        control, controller = build({"type": "string", "enum": ["a", "b"]}, "a")
        assert control.kind == ControlKind.ENUM
        control.select("b")
        assert controller.value == "b"
        with pytest.raises(ValueError):
            control.select("z")

        control, controller = build({"type": "string", "const": "v1"}, None)
        assert control.kind == ControlKind.CONST
        assert controller.value == "v1"

    @pytest.mark.unit
    def test_primitive_kinds(self):
        expected = {
            "boolean": ControlKind.BOOLEAN,
            "uuid": ControlKind.UUID,
            "uri": ControlKind.URI,
            "binary": ControlKind.BINARY,
            "null": ControlKind.NULL,
            "int64": ControlKind.INTEGER,
            "double": ControlKind.DECIMAL,
            "datetime": ControlKind.TEMPORAL,
            "any": ControlKind.ANY,
        }
        for keyword, kind in expected.items():
            control, _ = build({"type": keyword})
            assert control.kind == kind, keyword


# =============================================================================
# Primitive Controls
# =============================================================================


class TestPrimitiveControls:
    """Tests for leaf controls."""

    @pytest.mark.unit
    def test_integer_limits(self):
        assert integer_limits({"exclusiveMinimum": 5}, "int8") == (6, 127)
        assert integer_limits({"maximum": "300"}, "uint8") == (0, 255)
        assert integer_limits({"minimum": 10, "maximum": 20}, "int32") == (10, 20)

    @pytest.mark.unit
    def test_integer_text_input(self):
        control, controller = build({"type": "int32"}, 0)
        control.set_text(" 42 ")
        assert controller.value == 42
        control.set_text("4x")
        assert controller.value == "4x"

    @pytest.mark.unit
    def test_big_integer_bounds_are_text(self):
        control, _ = build({"type": "uint64"}, 0)
        options = control.options()
        assert options["big"] is True
        assert options["max"] == str(2**64 - 1)

    @pytest.mark.unit
    def test_any_keeps_unparsable_text(self):
        control, controller = build({"type": "any"}, None)
        control.set_text('{"a": 1}')
        assert controller.value == {"a": 1}
        control.set_text("{bad")
        assert controller.value == "{bad"
        assert control.text == "{bad"

    @pytest.mark.unit
    def test_boolean_toggle(self):
        control, controller = build({"type": "boolean"}, False)
        control.toggle()
        assert controller.value is True

    @pytest.mark.unit
    def test_binary_snapshot_is_base64(self):
        control, _ = build({"type": "binary"}, b"hi")
        assert control.snapshot().value == "aGk="

    @pytest.mark.unit
    def test_read_only_ignores_edits(self):
        control, controller = build({"type": "string"}, "a", read_only=True)
        control.set_value("b")
        assert controller.value == "a"
        assert control.snapshot().disabled


# =============================================================================
# Compound Controls
# =============================================================================


class TestCompoundControls:
    """Tests for object, array, set, map and tuple controls."""

    @pytest.mark.unit
    def test_grouped_required(self):
        grouped = {
            "type": "object",
            "properties": {k: {"type": "string"} for k in "abc"},
            "required": [["a", "b"]],
        }
        control, _ = build(grouped, {})
        assert [control.fields[k].ctx.is_required for k in "abc"] == [True, True, False]

        flat = {**grouped, "required": ["a"]}
        control, _ = build(flat, {})
        assert [control.fields[k].ctx.is_required for k in "abc"] == [True, False, False]

    @pytest.mark.unit
    def test_additional_properties(self):
        schema = {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "maxProperties": 2,
        }
        control, controller = build(schema, {"a": "x"})
        assert control.add_property() == "property"
        assert controller.value == {"a": "x", "property": None}
        assert list(control.additional) == ["property"]
        assert control.additional["property"].kind == ControlKind.ANY
        assert not control.can_add
        assert control.add_property() is None

        added = control.additional["property"]
        assert control.remove_property("property")
        assert added.disposed
        assert control.additional == {}
        assert not control.remove_property("a")

    @pytest.mark.unit
    def test_closed_object(self):
        schema = {"type": "object", "properties": {}, "additionalProperties": False}
        control, _ = build(schema, {})
        assert not control.can_add
        assert control.add_property("x") is None

    @pytest.mark.unit
    def test_array_respects_item_limits(self):
        schema = {
            "type": "array",
            "items": {"type": "int32"},
            "minItems": 1,
            "maxItems": 2,
        }
        control, controller = build(schema, [5])
        assert not control.can_remove
        assert control.add_item()
        assert controller.value == [5, 0]
        assert len(control.children) == 2
        assert not control.add_item()

        removed = control.items[1]
        assert control.remove_item(1)
        assert controller.value == [5]
        assert removed.disposed
        assert len(control.children) == 1

    @pytest.mark.unit
    def test_array_move(self):
        schema = {"type": "array", "items": {"type": "string"}}
        control, controller = build(schema, ["a", "b", "c"])
        control.move_item(0, 2)
        assert controller.value == ["b", "c", "a"]
        assert control.items[0].value == "b"

    @pytest.mark.unit
    def test_set_flags_duplicates(self):
        schema = {"type": "set", "items": {"type": "string"}}
        control, _ = build(schema, ["a", "b", "a"])
        assert control.kind == ControlKind.SET
        assert control.is_duplicate(0)
        assert not control.is_duplicate(1)
        assert control.is_duplicate(2)
        assert control.snapshot().options["duplicates"] == [0, 2]

    @pytest.mark.unit
    def test_map_entries(self):
        schema = {"type": "map", "values": {"type": "int32"}}
        control, controller = build(schema, {})
        assert control.add_entry() == "key"
        assert control.add_entry() == "key1"
        assert controller.value == {"key": 0, "key1": 0}
        assert control.rename_entry("key", "a")
        assert list(control.entries) == ["a", "key1"]
        assert control.remove_entry("key1")
        assert controller.value == {"a": 0}

    @pytest.mark.unit
    @pytest.mark.parametrize("initial", [[], [1, 2, 3], None])
    def test_tuple_length_is_normalized(self, initial):
        schema = {
            "type": "tuple",
            "tuple": ["x", "y"],
            "properties": {
                "x": {"type": "int32", "default": 0},
                "y": {"type": "int32", "default": 0},
            },
        }
        control, controller = build(schema, initial)
        assert controller.value == [0, 0]
        assert [slot.label for slot in control.children] == ["X", "Y"]

    @pytest.mark.unit
    def test_tuple_of_right_length_is_kept(self, shape_schema):
        control, controller = build(shape_schema, {"origin": [3, 4]})
        origin = control.fields["origin"]
        assert origin.kind == ControlKind.TUPLE
        assert controller.value["origin"] == [3, 4]
        assert [slot.path for slot in origin.children] == [["origin", 0], ["origin", 1]]

    @pytest.mark.unit
    def test_unique_key(self):
        assert unique_key({}, "key") == "key"
        assert unique_key({"key": 1, "key1": 1}, "key") == "key2"


# =============================================================================
# Unions and Choices
# =============================================================================

CHOICE = {
    "type": "choice",
    "choices": {"text": {"type": "string"}, "number": {"type": "int32"}},
}


class TestUnionControl:
    """Tests for type-array unions."""

    @pytest.mark.unit
    def test_active_branch_follows_value(self):
        control, _ = build({"type": ["int32", "string"]}, "12")
        assert control.kind == ControlKind.UNION
        assert control.active_branch == "string"
        assert control.active.kind == ControlKind.STRING
        assert control.active.path == control.path

    @pytest.mark.unit
    def test_switch_converts(self):
        control, controller = build({"type": ["int32", "string"]}, "12")
        previous = control.active
        assert control.switch_branch("int32")
        assert controller.value == 12
        assert control.active.kind == ControlKind.INTEGER
        assert previous.disposed

    @pytest.mark.unit
    def test_switch_falls_back_to_cleared_value(self):
        schema = {"type": ["string", "array"], "items": {"type": "string"}}
        control, controller = build(schema, "abc")
        control.switch_branch("array")
        assert controller.value == []
        assert control.active.kind == ControlKind.ARRAY

    @pytest.mark.unit
    def test_unknown_branch(self):
        control, _ = build({"type": ["int32", "string"]}, 1)
        with pytest.raises(KeyError):
            control.switch_branch("boolean")

    @pytest.mark.unit
    def test_switch_between_integer_and_boolean_in_object(self):
        schema = {"type": "object", "properties": {"x": {"type": ["int32", "boolean"]}}}
        control, controller = build(schema, {"x": 1})
        flag = control.fields["x"]
        assert flag.active_branch == "int32"
        assert flag.switch_branch("boolean")
        assert controller.value["x"] is True
        assert flag.active_branch == "boolean"
        assert flag.active.kind == ControlKind.BOOLEAN

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "types,expected", [(["int32", "double"], "int32"), (["double", "int32"], "double")]
    )
    def test_first_listed_branch_wins(self, types, expected):
        control, controller = build({"type": types}, 3)
        assert control.active_branch == expected
        other = next(t for t in types if t != expected)
        control.switch_branch(other)
        assert controller.value == 3
        assert control.active_branch == expected

    @pytest.mark.unit
    def test_null_is_not_a_branch(self, shape_schema):
        control, _ = build(shape_schema, {"origin": [0, 0]})
        weight = control.fields["weight"]
        assert weight.kind == ControlKind.UNION
        assert weight.types == ["int32", "string"]
        assert weight.snapshot().nullable


class TestChoiceControl:
    """Tests for choice types."""

    @pytest.mark.unit
    def test_auto_detect_then_manual_pin(self):
        control, controller = build(CHOICE, {"text": "x"})
        assert control.active_choice == "text"
        assert control.variant.kind == ControlKind.STRING
        assert control.variant.path == ["text"]

        control.select_choice("number")
        assert controller.value == {"number": 0}
        assert control.variant.kind == ControlKind.INTEGER

        controller.change({"text": "y"})
        assert control.active_choice == "number"
        assert control.snapshot().options["mode"] == "manually_pinned"

    @pytest.mark.unit
    def test_auto_tracking_follows_external_changes(self):
        control, controller = build(CHOICE, {"text": "x"})
        controller.change({"number": 5})
        assert control.active_choice == "number"
        assert control.variant.value == 5

    @pytest.mark.unit
    def test_discriminated_variant_edits(self, shape_schema):
        value = {"origin": [1, 2], "shapes": [{"kind": "square", "side": 2.0}]}
        control, controller = build(shape_schema, value)
        shape = control.fields["shapes"].items[0]
        assert shape.kind == ControlKind.CHOICE
        assert shape.active_choice == "square"
        assert shape.variant.path == ["shapes", 0, "square"]

        shape.variant.fields["side"].set_value(3.5)
        assert controller.value["shapes"][0] == {"kind": "square", "side": 3.5}

        shape.select_choice("circle")
        assert controller.value["shapes"][0] == {"kind": "circle"}

    @pytest.mark.unit
    def test_empty_choices(self):
        control, _ = build({"type": "choice", "choices": {}}, None)
        assert control.kind == ControlKind.PLACEHOLDER


# =============================================================================
# Widgets, Snapshots, Disposal
# =============================================================================


class TestWidgetOverride:
    """Tests for registry-driven overrides."""

    @pytest.mark.unit
    def test_registered_widget_replaces_control(self, person_schema):
        registry = WidgetRegistry()
        registry.register(
            *for_format("email", lambda props: f"email-input:{props.ctx.json_path}")
        )
        control, _ = build(person_schema, {}, widget_registry=registry)
        email = control.fields["email"]
        assert email.kind == ControlKind.CUSTOM
        assert email.output == "email-input:/email"
        assert control.fields["name"].kind == ControlKind.STRING

    @pytest.mark.unit
    def test_stock_widgets(self, person_schema):
        control, _ = build(
            person_schema, {}, widget_registry=ensure_default_widgets()
        )
        email = control.fields["email"]
        assert email.kind == ControlKind.CUSTOM
        assert email.output == {"input": "email", "format": "email"}
        assert email.options()["widget"] == "type:string:format:email"
        assert control.fields["name"].kind == ControlKind.STRING


class TestSnapshot:
    """Tests for snapshots and text rendering."""

    @pytest.mark.unit
    def test_snapshot_is_json(self, person_schema):
        control, _ = build(person_schema, {"name": "Ada"})
        data = json.loads(control.snapshot().model_dump_json())
        assert data["kind"] == "object"
        assert data["children"][0]["value"] == "Ada"

    @pytest.mark.unit
    def test_render_text_tree(self, person_schema):
        control, _ = build(person_schema, {"name": "Ada"}, locale="en")
        text = render_text_tree(control.snapshot())
        lines = text.splitlines()
        assert lines[0] == "Person <object>"
        assert "  Name <string> * = 'Ada'" in lines
        assert "  Age <integer:uint8> = None" in lines


class TestDisposal:
    """Tests for tearing control trees down."""

    @pytest.mark.unit
    def test_root_dispose_reaches_every_control(self, person_schema):
        control, controller = build(person_schema, {"address": {"city": "Rome"}})
        city = control.fields["address"].fields["city"]
        controller.dispose()
        assert control.disposed
        assert city.disposed
        assert city.controller.disposed


# =============================================================================
# Recursive Definitions
# =============================================================================

LINKED = {
    "$root": "#/definitions/Node",
    "definitions": {
        "Node": {
            "type": "object",
            "properties": {
                "label": {"type": "string"},
                "next": {"type": {"$ref": "#/definitions/Node"}},
            },
        }
    },
}


class TestRecursiveDefinitions:
    """Tests for self-referencing definitions."""

    @pytest.mark.unit
    def test_absent_recursive_member_is_deferred(self):
        control, _ = build(LINKED, {})
        nxt = control.fields["next"]
        assert nxt.kind == ControlKind.DEFERRED
        assert not nxt.expanded
        assert nxt.children == []
        assert nxt.snapshot().options == {"ref": "#/definitions/Node", "expanded": False}
        assert "  Next <deferred:object> = None" in render_text_tree(
            control.snapshot()
        ).splitlines()

    @pytest.mark.unit
    def test_present_values_are_built(self):
        control, _ = build(LINKED, {"label": "a", "next": {"label": "b", "next": {}}})
        second = control.fields["next"]
        assert second.kind == ControlKind.OBJECT
        assert second.fields["label"].value == "b"
        third = second.fields["next"]
        assert third.kind == ControlKind.OBJECT
        assert third.fields["next"].kind == ControlKind.DEFERRED

    @pytest.mark.unit
    def test_deferred_expands_when_value_arrives(self):
        control, controller = build(LINKED, {})
        nxt = control.fields["next"]
        controller.change({"next": {"label": "b"}})
        assert nxt.expanded
        assert nxt.inner.kind == ControlKind.OBJECT
        assert nxt.inner.fields["label"].value == "b"
        assert nxt.inner.fields["next"].kind == ControlKind.DEFERRED

    @pytest.mark.unit
    def test_explicit_expand_leaves_value_alone(self):
        control, controller = build(LINKED, {})
        inner = control.fields["next"].expand()
        assert inner is control.fields["next"].expand()
        assert inner.kind == ControlKind.OBJECT
        assert controller.value == {}

    @pytest.mark.unit
    def test_ref_cycle_without_root(self):
        schema = {
            "type": "object",
            "properties": {"head": {"type": {"$ref": "Node"}}},
            "definitions": LINKED["definitions"],
        }
        control, _ = build(schema, None)
        head = control.fields["head"]
        assert head.kind == ControlKind.OBJECT
        assert head.fields["next"].kind == ControlKind.DEFERRED

    @pytest.mark.unit
    def test_recursive_extends(self):
        schema = {
            "$root": "#/definitions/Tree",
            "definitions": {
                "Tree": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "parent": {"type": "object", "$extends": "#/definitions/Tree"},
                    },
                }
            },
        }
        control, _ = build(schema, {"name": "leaf"})
        assert control.fields["parent"].kind == ControlKind.DEFERRED

    @pytest.mark.unit
    def test_dispose_reaches_deferred(self):
        control, controller = build(LINKED, {"next": {}})
        deferred = control.fields["next"].fields["next"]
        controller.dispose()
        assert deferred.disposed
