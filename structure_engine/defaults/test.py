"""Tests for default value synthesis."""

import re
from datetime import date

import pytest

from .lib import (
    extract_structure_defaults,
    float_default,
    integer_default,
    make_default_value,
    temporal_default,
)

# =============================================================================
# Shallow Defaults
# =============================================================================


class TestMakeDefaultValue:
    """Tests for the shallow synthesizer."""

    @pytest.mark.unit
    def test_explicit_default_wins(self):
        assert make_default_value({"type": "string", "default": "x", "examples": ["y"]}) == "x"

    @pytest.mark.unit
    def test_explicit_null_default(self):
        assert make_default_value({"type": "string", "default": None}) is None

    @pytest.mark.unit
    def test_first_example(self):
        assert make_default_value({"type": "int32", "examples": [7, 8]}) == 7

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "type_name,expected",
        [
            ("string", ""),
            ("boolean", False),
            ("object", {}),
            ("map", {}),
            ("array", []),
            ("set", []),
        ],
    )
    def test_never_undefined_for_core_types(self, type_name, expected):
        assert make_default_value({"type": type_name}) == expected

    @pytest.mark.unit
    def test_null(self):
        assert make_default_value({"type": "null"}) is None

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "type_name",
        ["int8", "int16", "int32", "int64", "int128", "uint8", "uint64", "float", "double", "decimal"],
    )
    def test_numeric_widths_are_zero(self, type_name):
        assert make_default_value({"type": type_name}) == 0

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "definition",
        [
            {"type": "any"},
            {"type": "binary"},
            {"type": {"$ref": "#/definitions/Missing"}},
            {"type": "hyperreal"},
            {},
            None,
        ],
    )
    def test_undefined_cases(self, definition):
        assert make_default_value(definition) is None

    @pytest.mark.unit
    def test_nested_object_is_shallow(self):
        """Nested members are not populated, even when they declare defaults."""
        definition = {
            "type": "object",
            "properties": {"a": {"type": "string", "default": "x"}},
            "required": ["a"],
        }
        assert make_default_value(definition) == {}

    @pytest.mark.unit
    def test_containers_are_fresh(self):
        definition = {"type": "array"}
        assert make_default_value(definition) is not make_default_value(definition)

    @pytest.mark.unit
    def test_nullable_uses_concrete_type(self):
        assert make_default_value({"type": ["int32", "null"]}) == 0


# =============================================================================
# Deep Defaults
# =============================================================================


class TestExtractStructureDefaults:
    """Tests for the deep default walker."""

    @pytest.mark.unit
    def test_required_properties_only(self):
        schema = {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "age": {"type": "int32", "minimum": 18, "maximum": 30},
                "nick": {"type": "string"},
            },
            "required": ["name", "age"],
        }
        assert extract_structure_defaults(schema) == {"name": "", "age": 24}

    @pytest.mark.unit
    def test_priority_order(self):
        schema = {
            "type": "object",
            "properties": {
                "a": {"type": "string", "examples": ["ex"], "const": "c"},
                "b": {"type": "string", "const": "c", "enum": ["e"]},
                "c": {"type": "string", "enum": ["e", "f"]},
                "d": {"type": ["string", "null"]},
            },
            "required": ["a", "b", "c", "d"],
        }
        assert extract_structure_defaults(schema) == {
            "a": "ex",
            "b": "c",
            "c": "e",
            "d": None,
        }

    @pytest.mark.unit
    def test_root_reference(self, person_schema):
        value = extract_structure_defaults(person_schema)
        assert value["name"] == ""
        assert value["address"] == {"city": "Springfield"}

    @pytest.mark.unit
    def test_recursive_reference_terminates(self):
        schema = {
            "$root": "#/definitions/Node",
            "definitions": {
                "Node": {
                    "type": "object",
                    "properties": {
                        "label": {"type": "string"},
                        "next": {"type": {"$ref": "#/definitions/Node"}},
                    },
                    "required": ["label", "next"],
                }
            },
        }
        value = extract_structure_defaults(schema)
        assert value["label"] == ""
        assert value["next"] == {"label": ""}

    @pytest.mark.unit
    def test_choice_forms(self):
        tagged = {
            "type": "choice",
            "choices": {"text": {"type": "string"}, "num": {"type": "int32"}},
        }
        assert extract_structure_defaults(tagged) == {"text": ""}
        selected = {
            "type": "choice",
            "selector": "kind",
            "choices": {
                "circle": {
                    "type": "object",
                    "properties": {"r": {"type": "double"}},
                    "required": ["r"],
                }
            },
        }
        assert extract_structure_defaults(selected) == {"kind": "circle", "r": 0.0}

    @pytest.mark.unit
    def test_tuple_and_sequences(self):
        tuple_def = {
            "type": "tuple",
            "tuple": ["x", "y"],
            "properties": {"x": {"type": "int32"}, "y": {"type": "string"}},
        }
        assert extract_structure_defaults(tuple_def) == [0, ""]
        array_def = {"type": "array", "items": {"type": "boolean"}, "minItems": 2}
        assert extract_structure_defaults(array_def) == [False, False]
        assert extract_structure_defaults({"type": "set", "items": {"type": "int8"}}) == []

    @pytest.mark.unit
    def test_string_formats(self):
        assert extract_structure_defaults({"type": "string", "format": "time"}) == "00:00:00"
        assert extract_structure_defaults(
            {"type": "string", "format": "date"}
        ) == date.today().isoformat()


class TestNumericDefaults:
    """Tests for bound-aware numeric defaults."""

    @pytest.mark.unit
    def test_integer_midpoint_rounds_half_up(self):
        assert integer_default({"type": "int32", "minimum": 1, "maximum": 2}) == 2
        assert integer_default({"type": "int32", "minimum": -2, "maximum": -1}) == -1

    @pytest.mark.unit
    def test_integer_exclusive_bounds(self):
        assert integer_default({"exclusiveMinimum": 0}) == 1
        assert integer_default({"exclusiveMaximum": -5}) == -6

    @pytest.mark.unit
    def test_integer_only_maximum(self):
        assert integer_default({"maximum": 10}) == 0

    @pytest.mark.unit
    def test_integer_multiple_of(self):
        assert integer_default({"minimum": 1, "maximum": 10, "multipleOf": 4}) == 8
        assert integer_default({"minimum": 1, "multipleOf": 5}) == 5

    @pytest.mark.unit
    def test_wide_integer_bounds_are_exact(self):
        low, high = 2**100, 2**100 + 2
        assert integer_default({"minimum": low, "maximum": high}) == 2**100 + 1

    @pytest.mark.unit
    def test_float_defaults(self):
        assert float_default({"minimum": 1.0, "maximum": 2.0}) == 1.5
        assert float_default({}) == 0.0
        assert float_default({"minimum": 0.3, "multipleOf": 0.5}) == 0.5

    @pytest.mark.unit
    def test_temporal(self):
        assert temporal_default("time") == "00:00:00"
        assert temporal_default("duration") == "PT0S"
        assert re.match(r"\d{4}-\d{2}-\d{2}$", temporal_default("date"))
        assert "T" in temporal_default("datetime")
