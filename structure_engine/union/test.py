"""Tests for the union and choice engine."""

import pytest

from structure_engine.controller import UnionController, create_controller

from .lib import (
    ChoiceSelection,
    SelectionMode,
    create_union_branches,
    default_cleared_value,
    detect_active_choice,
    detect_type_in_union,
    extract_variant_value,
    find_duplicate_indices,
    serialize_choice_value,
    try_convert,
)

CHOICES = {
    "text": {"type": "string"},
    "number": {"type": "int32"},
}

# =============================================================================
# Detection
# =============================================================================


class TestDetectTypeInUnion:
    """Tests for runtime shape detection."""

    @pytest.mark.unit
    def test_integer_versus_float(self):
        assert detect_type_in_union(3, ["int32", "double"]) == "int32"
        assert detect_type_in_union(3.5, ["int32", "double"]) == "double"
        assert detect_type_in_union(3.0, ["double", "int32"]) == "int32"

    @pytest.mark.unit
    def test_integer_width_order(self):
        assert detect_type_in_union(1, ["uint8", "int16", "uint32"]) == "uint32"
        assert detect_type_in_union(1, ["uint8", "int8"]) == "int8"

    @pytest.mark.unit
    def test_big_integers(self):
        big = 2**60
        assert detect_type_in_union(big, ["int32", "int64", "int128"]) == "int128"
        assert detect_type_in_union(big, ["int32", "uint64"]) == "uint64"

    @pytest.mark.unit
    def test_string_prefers_specific_formats(self):
        assert detect_type_in_union("x", ["string", "uri", "uuid"]) == "uuid"
        assert detect_type_in_union("x", ["string", "date"]) == "date"
        assert detect_type_in_union("x", ["string", "int32"]) == "string"
        assert detect_type_in_union("x", ["int32"]) is None

    @pytest.mark.unit
    def test_bool_is_not_a_number(self):
        assert detect_type_in_union(True, ["int32", "boolean"]) == "boolean"
        assert detect_type_in_union(True, ["int32"]) is None

    @pytest.mark.unit
    def test_none(self):
        assert detect_type_in_union(None, ["int32", "null"]) == "null"
        assert detect_type_in_union(None, ["int32", "string"]) == "string"
        assert detect_type_in_union(None, ["int32", "boolean"]) == "int32"

    @pytest.mark.unit
    def test_containers_and_binary(self):
        assert detect_type_in_union([1], ["set", "tuple"]) == "set"
        assert detect_type_in_union({}, ["map", "object"]) == "object"
        assert detect_type_in_union(b"\x00", ["string", "binary"]) == "binary"


# =============================================================================
# Conversion
# =============================================================================


class TestTryConvert:
    """Tests for safe conversion between branches."""

    @pytest.mark.unit
    def test_to_text(self):
        assert try_convert(12, "string").value == "12"
        assert try_convert(2.0, "string").value == "2"
        assert try_convert(True, "string").value == "true"
        assert try_convert(None, "uuid").value is None

    @pytest.mark.unit
    def test_to_small_integer(self):
        assert try_convert(" -42 ", "int32").value == -42
        assert try_convert(True, "int8").value == 1
        assert not try_convert("4.2", "int32").ok
        assert not try_convert([1], "int32").ok

    @pytest.mark.unit
    def test_to_big_integer(self):
        assert try_convert("123456789012345678901", "int128").value == 123456789012345678901
        assert not try_convert(True, "int64").ok

    @pytest.mark.unit
    def test_to_float(self):
        assert try_convert("2.5", "double").value == 2.5
        assert try_convert(False, "float").value == 0
        assert not try_convert("inf", "double").ok
        assert not try_convert("abc", "double").ok

    @pytest.mark.unit
    def test_to_boolean(self):
        assert try_convert("Yes", "boolean").value is True
        assert try_convert("0", "boolean").value is False
        assert try_convert(5, "boolean").value is True
        assert not try_convert("maybe", "boolean").ok

    @pytest.mark.unit
    def test_containers(self):
        assert try_convert((1, 2), "array").value == [1, 2]
        assert not try_convert({"a": 1}, "array").ok
        assert try_convert({"a": 1}, "map").ok
        assert not try_convert([], "object").ok

    @pytest.mark.unit
    def test_special_targets(self):
        assert tuple(try_convert("anything", "null")) == (True, None)
        assert try_convert("x", "any").value == "x"
        assert not try_convert("x", "binary").ok
        assert not try_convert("x", "mystery").ok

    @pytest.mark.unit
    def test_unpacks_as_pair(self):
        ok, value = try_convert("7", "uint8")
        assert ok and value == 7


class TestClearedValues:
    """Tests for branch fallback values."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "target,expected",
        [
            ("array", []),
            ("set", []),
            ("tuple", []),
            ("object", {}),
            ("map", {}),
            ("binary", None),
            ("null", None),
            ("string", ""),
            ("int32", 0),
        ],
    )
    def test_cleared_values(self, target, expected):
        assert default_cleared_value(target) == expected


class TestUnionBranches:
    """Tests for branches driving a UnionController."""

    @pytest.mark.unit
    def test_switch_converts_then_falls_back(self):
        root = create_controller("12")
        union = UnionController(
            root.path,
            root.change,
            root.signal,
            root.status,
            create_union_branches(["string", "int32", "array"]),
        )
        assert union.active_branch.value == "string"
        union.switch_to_branch("int32")
        assert root.value == 12
        union.switch_to_branch("array")
        assert root.value == []
        assert union.active_branch.value == "array"

    @pytest.mark.unit
    def test_labels(self):
        branches = create_union_branches(["int32", "string"])
        assert [b.label for b in branches] == ["Int32", "String"]


# =============================================================================
# Choices
# =============================================================================


class TestChoiceWireFormat:
    """Tests for tagged and discriminated forms."""

    @pytest.mark.unit
    def test_detect_tagged(self):
        assert detect_active_choice({"text": "x"}, CHOICES) == "text"
        assert detect_active_choice({"text": "x", "number": 1}, CHOICES) is None
        assert detect_active_choice({"other": 1}, CHOICES) is None
        assert detect_active_choice("text", CHOICES) is None

    @pytest.mark.unit
    def test_detect_selector(self):
        value = {"kind": "number", "extra": 1}
        assert detect_active_choice(value, CHOICES, "kind") == "number"
        assert detect_active_choice({"kind": "nope"}, CHOICES, "kind") is None

    @pytest.mark.unit
    def test_tagged_round_trip(self):
        for value in ({"text": "x"}, {"number": {"nested": [1, 2]}}):
            name = next(iter(value))
            assert serialize_choice_value(extract_variant_value(value, name), name) == value

    @pytest.mark.unit
    def test_discriminated_round_trip(self):
        value = {"kind": "circle", "radius": 2.0}
        variant = extract_variant_value(value, "circle", "kind")
        assert variant == {"radius": 2.0}
        assert serialize_choice_value(variant, "circle", "kind") == value

    @pytest.mark.unit
    def test_discriminated_non_object_variant(self):
        assert serialize_choice_value(5, "circle", "kind") == {"kind": "circle"}


class TestChoiceSelection:
    """Tests for the auto-tracking / pinned state machine."""

    @pytest.mark.unit
    def test_initial_from_value(self):
        selection = ChoiceSelection.from_value({"text": "x"}, CHOICES)
        assert selection.active == "text"
        assert selection.mode == SelectionMode.AUTO_TRACKING

    @pytest.mark.unit
    def test_initial_defaults_to_first(self):
        assert ChoiceSelection.from_value(None, CHOICES).active == "text"

    @pytest.mark.unit
    def test_auto_tracking_follows_value(self):
        selection = ChoiceSelection.from_value({"text": "x"}, CHOICES)
        assert selection.observe({"number": 3}) is True
        assert selection.active == "number"
        assert selection.observe({"garbage": 1}) is False
        assert selection.active == "number"

    @pytest.mark.unit
    def test_manual_selection_is_pinned(self):
        selection = ChoiceSelection.from_value({"text": "x"}, CHOICES)
        selection.select("number")
        assert selection.is_pinned
        assert selection.observe({"text": "y"}) is False
        assert selection.active == "number"

    @pytest.mark.unit
    def test_unknown_choice(self):
        selection = ChoiceSelection.from_value(None, CHOICES)
        with pytest.raises(KeyError):
            selection.select("nope")


class TestDuplicates:
    """Tests for set duplicate detection."""

    @pytest.mark.unit
    def test_flags_every_duplicate(self):
        assert find_duplicate_indices(["a", "b", "a"]) == {0, 2}

    @pytest.mark.unit
    def test_structural_equality(self):
        assert find_duplicate_indices([{"a": 1, "b": 2}, {"b": 2, "a": 1}]) == {0, 1}

    @pytest.mark.unit
    def test_distinguishes_bool_from_int(self):
        assert find_duplicate_indices([1, True]) == set()
