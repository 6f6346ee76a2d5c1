"""Tests for reference and inheritance resolution."""

import copy

import pytest

from .lib import (
    RefResolver,
    is_property_required,
    normalize_required,
    parse_ref_path,
    resolve_definition_ref,
    resolve_extends,
    resolve_ref,
)

SCHEMA = {
    "definitions": {
        "Name": {"type": "string", "description": "A name", "maxLength": 40},
        "Alias": {"type": {"$ref": "#/definitions/Name"}, "description": "Alias"},
        "LoopA": {"type": {"$ref": "#/definitions/LoopB"}},
        "LoopB": {"type": {"$ref": "#/definitions/LoopA"}},
        "geo": {
            "Point": {
                "type": "object",
                "properties": {"x": {"type": "double"}, "y": {"type": "double"}},
                "required": ["x", "y"],
            }
        },
        "Base": {
            "type": "object",
            "abstract": True,
            "properties": {"id": {"type": "uuid"}, "note": {"type": "string"}},
            "required": ["id"],
        },
        "Named": {
            "type": "object",
            "$extends": "#/definitions/Base",
            "properties": {"name": {"type": "string"}},
            "required": [["name"]],
        },
        "Person": {
            "type": "object",
            "$extends": "#/definitions/Named",
            "properties": {"note": {"type": "string", "maxLength": 10}},
        },
        "CycleA": {"type": "object", "$extends": "CycleB", "properties": {}},
        "CycleB": {"type": "object", "$extends": "CycleA", "properties": {}},
    }
}

# =============================================================================
# Pointer Tests
# =============================================================================


class TestRefPaths:
    """Tests for pointer parsing and lookup."""

    @pytest.mark.unit
    def test_parse_forms(self):
        assert parse_ref_path("#/definitions/geo/Point") == [
            "definitions",
            "geo",
            "Point",
        ]
        assert parse_ref_path("Name") == ["definitions", "Name"]
        assert parse_ref_path("definitions/Name") == ["definitions", "Name"]

    @pytest.mark.unit
    def test_resolve_nested_namespace_member(self):
        point = resolve_ref("#/definitions/geo/Point", SCHEMA)
        assert point["type"] == "object"

    @pytest.mark.unit
    def test_unresolved_returns_none_and_warns(self, caplog):
        assert resolve_ref("#/definitions/Missing", SCHEMA) is None
        assert "Failed to resolve" in caplog.text

    @pytest.mark.unit
    def test_namespace_target_returns_none(self, caplog):
        assert resolve_ref("#/definitions/geo", SCHEMA) is None
        assert "namespace" in caplog.text

    @pytest.mark.unit
    def test_resolve_definition_ref_local_wins(self):
        merged = resolve_definition_ref(
            {"type": {"$ref": "Name"}, "description": "Local"}, SCHEMA
        )
        assert merged["type"] == "string"
        assert merged["description"] == "Local"
        assert merged["maxLength"] == 40


class TestRefResolver:
    """Tests for the memoizing resolver."""

    @pytest.mark.unit
    def test_memoizes_results(self):
        resolver = RefResolver(SCHEMA)
        first = resolver.resolve("Name")
        assert resolver.resolve("Name") is first

    @pytest.mark.unit
    def test_resolving_twice_is_structurally_equal(self):
        a = RefResolver(SCHEMA).resolve("#/definitions/Alias")
        b = RefResolver(SCHEMA).resolve("#/definitions/Alias")
        assert a == b

    @pytest.mark.unit
    def test_follows_alias_chain(self):
        alias = RefResolver(SCHEMA).resolve("Alias")
        assert alias["type"] == "string"
        assert alias["description"] == "Alias"
        assert alias["maxLength"] == 40

    @pytest.mark.unit
    def test_cycle_terminates(self, caplog):
        resolved = RefResolver(SCHEMA).resolve("LoopA")
        assert resolved == {"type": {"$ref": "#/definitions/LoopA"}}
        assert "Circular reference" in caplog.text

    @pytest.mark.unit
    def test_misses_are_memoized(self, caplog):
        resolver = RefResolver(SCHEMA)
        assert resolver.resolve("Nope") is None
        caplog.clear()
        assert resolver.resolve("Nope") is None
        assert caplog.text == ""

    @pytest.mark.unit
    def test_resolve_definition_without_ref_is_identity(self):
        definition = {"type": "int32"}
        assert RefResolver(SCHEMA).resolve_definition(definition) is definition

    @pytest.mark.unit
    def test_schema_is_not_mutated(self):
        before = copy.deepcopy(SCHEMA)
        resolver = RefResolver(SCHEMA)
        resolver.resolve("Alias")
        resolver.resolve_definition({"type": {"$ref": "Name"}})
        assert SCHEMA == before


# =============================================================================
# Required Tests
# =============================================================================


class TestRequired:
    """Tests for flat and grouped required lists."""

    @pytest.mark.unit
    def test_grouped_marks_every_member(self):
        assert is_property_required("a", [["a", "b"]])
        assert is_property_required("b", [["a", "b"]])
        assert not is_property_required("c", [["a", "b"]])

    @pytest.mark.unit
    def test_flat_marks_only_listed(self):
        assert is_property_required("a", ["a"])
        assert not is_property_required("b", ["a"])

    @pytest.mark.unit
    def test_missing_required(self):
        assert not is_property_required("a", None)
        assert not is_property_required("a", [])

    @pytest.mark.unit
    def test_normalize(self):
        assert normalize_required([["a", "b"], ["b", "c"]]) == ["a", "b", "c"]
        assert normalize_required(["x"]) == ["x"]
        assert normalize_required(None) == []


# =============================================================================
# Inheritance Tests
# =============================================================================


class TestResolveExtends:
    """Tests for $extends merging."""

    @pytest.mark.unit
    def test_without_extends_is_identity(self):
        definition = {"type": "string"}
        result = resolve_extends(definition, SCHEMA)
        assert result.merged is definition
        assert result.inheritance_chain == []

    @pytest.mark.unit
    def test_chain_merges_properties_and_required(self):
        result = resolve_extends(SCHEMA["definitions"]["Person"], SCHEMA)
        merged = result.merged
        assert set(merged["properties"]) == {"id", "note", "name"}
        assert merged["properties"]["note"]["maxLength"] == 10
        assert merged["required"] == ["id", "name"]
        assert "$extends" not in merged
        assert "abstract" not in merged
        assert result.inheritance_chain == [
            "#/definitions/Named",
            "#/definitions/Base",
        ]
        assert result.errors == []

    @pytest.mark.unit
    def test_idempotent(self):
        once = resolve_extends(SCHEMA["definitions"]["Person"], SCHEMA).merged
        twice = resolve_extends(once, SCHEMA).merged
        assert twice == once

    @pytest.mark.unit
    def test_multiple_bases_later_wins(self):
        schema = {
            "definitions": {
                "A": {"type": "string", "description": "a", "maxLength": 5},
                "B": {"type": "string", "description": "b"},
            }
        }
        merged = resolve_extends({"$extends": ["A", "B"]}, schema).merged
        assert merged == {"type": "string", "description": "b", "maxLength": 5}

    @pytest.mark.unit
    def test_local_keys_win(self):
        merged = resolve_extends(
            {"$extends": "Name", "maxLength": 3}, SCHEMA
        ).merged
        assert merged["maxLength"] == 3
        assert merged["type"] == "string"

    @pytest.mark.unit
    def test_circular_inheritance_reported(self):
        result = resolve_extends(SCHEMA["definitions"]["CycleA"], SCHEMA)
        assert any("Circular" in e.message for e in result.errors)
        assert "$extends" not in result.merged

    @pytest.mark.unit
    def test_unresolvable_base_reported(self):
        result = resolve_extends({"type": "object", "$extends": "Ghost"}, SCHEMA)
        assert result.errors[0].message == "Failed to resolve base type: Ghost"
        assert result.merged == {"type": "object"}

    @pytest.mark.unit
    def test_depth_limit(self, monkeypatch):
        monkeypatch.setenv("STRUCTURE_MAX_EXTENDS_DEPTH", "0")
        result = resolve_extends(SCHEMA["definitions"]["Person"], SCHEMA)
        assert any("depth" in e.message for e in result.errors)
