"""Tests for the schema module."""

import json

import httpx
import pytest

from .lib import (
    INTEGER_BOUNDS,
    ShapeKind,
    TypeKeyword,
    classify,
    get_non_null_types,
    get_primary_type,
    get_resolved_type,
    has_const_value,
    has_enum_value,
    is_array_type_definition,
    is_choice_type_definition,
    is_map_type_definition,
    is_namespace,
    is_nullable_type,
    is_object_type_definition,
    is_set_type_definition,
    is_tuple_type_definition,
    is_type_reference,
)
from .loader import SchemaDocument, SchemaLoadError, load_schema

# =============================================================================
# Keyword Tests
# =============================================================================


class TestKeywords:
    """Tests for type keywords and bounds."""

    @pytest.mark.unit
    def test_keyword_values(self):
        assert TypeKeyword.INT32.value == "int32"
        assert TypeKeyword("choice") is TypeKeyword.CHOICE

    @pytest.mark.unit
    def test_integer_bounds(self):
        assert INTEGER_BOUNDS["int8"] == (-128, 127)
        assert INTEGER_BOUNDS["uint16"] == (0, 65535)
        assert INTEGER_BOUNDS["int64"][1] == 9223372036854775807


# =============================================================================
# Guard Tests
# =============================================================================


class TestGuards:
    """Tests for definition guard predicates."""

    @pytest.mark.unit
    def test_reference(self):
        assert is_type_reference({"$ref": "#/definitions/A"})
        assert not is_type_reference({"type": "string"})
        assert not is_type_reference("string")

    @pytest.mark.unit
    def test_namespace(self):
        assert is_namespace({"Person": {"type": "object"}})
        assert not is_namespace({"type": "string"})
        assert not is_namespace({"enum": [1]})

    @pytest.mark.unit
    def test_compound_guards(self):
        assert is_object_type_definition({"type": "object", "properties": {}})
        assert not is_object_type_definition({"type": "object"})
        assert is_array_type_definition({"type": "array", "items": {"type": "string"}})
        assert not is_array_type_definition({"type": "array"})
        assert is_set_type_definition({"type": "set", "items": {"type": "string"}})
        assert is_map_type_definition({"type": "map", "values": {"type": "int32"}})
        assert is_tuple_type_definition(
            {"type": "tuple", "tuple": ["x"], "properties": {}}
        )
        assert is_choice_type_definition({"type": "choice", "choices": {}})

    @pytest.mark.unit
    def test_enum_and_const(self):
        assert has_enum_value({"enum": ["a"]})
        assert not has_enum_value({"enum": "a"})
        assert has_const_value({"const": None})
        assert not has_const_value({"type": "string"})


class TestTypeSpecifiers:
    """Tests for type specifier helpers."""

    @pytest.mark.unit
    def test_resolved_type(self):
        assert get_resolved_type("string") == "string"
        assert get_resolved_type(["string", "null"]) == ["string", "null"]
        assert get_resolved_type({"$ref": "#/definitions/A"}) is None

    @pytest.mark.unit
    def test_nullability(self):
        assert is_nullable_type("null")
        assert is_nullable_type(["int32", "null"])
        assert not is_nullable_type("int32")

    @pytest.mark.unit
    def test_non_null_and_primary(self):
        assert get_non_null_types(["null", "int32", "string"]) == ["int32", "string"]
        assert get_primary_type(["null", "int32"]) == "int32"
        assert get_primary_type("null") is None
        assert get_primary_type(None) is None


# =============================================================================
# Classification Tests
# =============================================================================


class TestClassify:
    """Tests for the closed shape variant."""

    @pytest.mark.unit
    def test_enum_wins_over_type(self):
        assert classify({"type": "string", "enum": ["a"], "const": "a"}).kind == (
            ShapeKind.ENUM
        )

    @pytest.mark.unit
    def test_const(self):
        assert classify({"type": "string", "const": "x"}).kind == ShapeKind.CONST

    @pytest.mark.unit
    def test_union_needs_two_concrete_types(self):
        shape = classify({"type": ["int32", "string", "null"]})
        assert shape.kind == ShapeKind.UNION
        assert shape.types == ("int32", "string")
        assert shape.nullable

    @pytest.mark.unit
    def test_nullable_single_type_is_not_a_union(self):
        shape = classify({"type": ["string", "null"]})
        assert shape.kind == ShapeKind.PRIMITIVE
        assert shape.primitive == "string"
        assert shape.nullable

    @pytest.mark.unit
    def test_null_only(self):
        shape = classify({"type": "null"})
        assert shape.kind == ShapeKind.PRIMITIVE
        assert shape.primitive == "null"

    @pytest.mark.unit
    def test_compounds(self):
        assert classify({"type": "object"}).kind == ShapeKind.OBJECT
        assert classify({"type": "tuple"}).kind == ShapeKind.TUPLE
        assert classify({"type": "choice"}).kind == ShapeKind.CHOICE
        assert classify({"type": "any"}).kind == ShapeKind.ANY
        assert classify({"type": "set"}).is_compound

    @pytest.mark.unit
    def test_missing_type_is_any(self):
        assert classify({"description": "free"}).kind == ShapeKind.ANY

    @pytest.mark.unit
    def test_unresolved_reference(self):
        assert classify({"type": {"$ref": "#/x"}}).kind == ShapeKind.REFERENCE

    @pytest.mark.unit
    def test_unknown_keyword(self):
        shape = classify({"type": "quaternion"})
        assert shape.kind == ShapeKind.UNKNOWN
        assert shape.primitive == "quaternion"

    @pytest.mark.unit
    def test_resolved_type_overrides_definition(self):
        shape = classify({"type": {"$ref": "#/x"}}, resolved_type="int16")
        assert shape.primitive == "int16"


# =============================================================================
# Loader Tests
# =============================================================================


class TestLoadSchema:
    """Tests for document loading."""

    @pytest.mark.unit
    def test_from_mapping_keeps_extras(self):
        doc = load_schema({"type": "object", "properties": {"a": {"type": "string"}}})
        assert doc["type"] == "object"
        assert doc["definitions"] == {}
        assert "$root" not in doc

    @pytest.mark.unit
    def test_aliases_round_trip(self):
        doc = SchemaDocument.model_validate(
            {"$id": "urn:x", "$root": "#/definitions/A", "definitions": {"A": {}}}
        )
        assert doc.root == "#/definitions/A"
        assert doc.to_dict()["$id"] == "urn:x"

    @pytest.mark.unit
    def test_from_file(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"$root": "A", "definitions": {"A": {}}}))
        assert load_schema(path)["$root"] == "A"

    @pytest.mark.unit
    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(SchemaLoadError, match="not valid JSON"):
            load_schema(path)

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaLoadError):
            load_schema(tmp_path / "missing.json")

    @pytest.mark.unit
    def test_non_object_document(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(SchemaLoadError, match="JSON object"):
            load_schema(path)

    @pytest.mark.unit
    def test_from_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"$root": "A", "definitions": {"A": {}}})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        doc = load_schema("https://example.com/s.json", client=client)
        assert doc["$root"] == "A"

    @pytest.mark.unit
    def test_url_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(SchemaLoadError, match="404"):
            load_schema("https://example.com/missing.json", client=client)
