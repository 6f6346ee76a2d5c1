"""Tests for the controller tree."""

import pytest

from .lib import (
    ArrayController,
    ControllerError,
    ControllerValidation,
    ObjectController,
    UnionBranch,
    UnionController,
    ValidationState,
    create_controller,
    map_validation,
)

# =============================================================================
# Validation Status
# =============================================================================


class TestMapValidation:
    """Tests for narrowing a status to a child path."""

    @pytest.mark.unit
    def test_valid_passes_through(self):
        status = ControllerValidation.valid()
        assert map_validation(status, ["a"]) is status

    @pytest.mark.unit
    def test_narrows_to_dependency(self):
        error = ControllerError(
            dependencies={"a": ControllerError(dependencies={0: ControllerError("bad")})}
        )
        narrowed = map_validation(ControllerValidation.invalid(error), ["a", 0])
        assert narrowed.state == ValidationState.INVALID
        assert narrowed.error.message == "bad"

    @pytest.mark.unit
    def test_missing_dependency_is_valid(self):
        error = ControllerError(dependencies={"a": ControllerError("bad")})
        narrowed = map_validation(ControllerValidation.invalid(error), ["b"])
        assert narrowed.state == ValidationState.VALID

    @pytest.mark.unit
    def test_string_index_keys_match(self):
        error = ControllerError(dependencies={"1": ControllerError("bad")})
        narrowed = map_validation(ControllerValidation.invalid(error), [1])
        assert narrowed.error.message == "bad"


# =============================================================================
# Base Controller
# =============================================================================


class TestController:
    """Tests for the base controller."""

    @pytest.mark.unit
    def test_change_updates_signal_synchronously(self):
        changes = []
        root = create_controller("a", on_change=changes.append)
        root.change("b")
        assert root.value == "b"
        assert changes == ["b"]

    @pytest.mark.unit
    def test_nested_write_can_change_type(self):
        root = create_controller({"x": 1})
        root.object().field("x").change(True)
        assert root.value["x"] is True

        items = create_controller([0])
        items.array().item(0).change(False)
        assert items.value[0] is False
        assert items.array().item(0).value is False

    @pytest.mark.unit
    def test_disabled_combines_local_and_parent(self):
        root = create_controller({"a": 1})
        field = root.object().field("a")
        assert field.disabled.value is False
        root.disable()
        assert field.disabled.value is True
        root.enable()
        field.disable()
        assert field.disabled.value is True
        assert root.disabled.value is False

    @pytest.mark.unit
    def test_error_reads_status(self):
        root = create_controller({"a": 1})
        field = root.object().field("a")
        root.status.set(
            ControllerValidation.invalid(
                ControllerError(dependencies={"a": ControllerError("Too small")})
            )
        )
        assert field.error == "Too small"
        assert field.has_error
        assert root.error is None

    @pytest.mark.unit
    def test_adapters_are_cached(self):
        root = create_controller({})
        assert root.object() is root.object()
        obj = root.object()
        assert obj.object() is obj
        assert isinstance(root.array(), ArrayController)

    @pytest.mark.unit
    def test_object_adapter_maps_none_to_empty(self):
        root = create_controller(None)
        assert root.object().value == {}
        assert root.array().value == []

    @pytest.mark.unit
    def test_transform(self):
        root = create_controller("42")
        number = root.transform(int, str)
        assert number.value == 42
        number.change(7)
        assert root.value == "7"


# =============================================================================
# Disposal
# =============================================================================


class TestDisposal:
    """Tests for the ownership tree."""

    @pytest.mark.unit
    def test_dispose_cascades_once(self):
        root = create_controller({"a": {"b": 1}, "c": [1, 2]})
        calls = []
        a = root.object().field("a")
        b = a.object().field("b")
        c1 = root.object().field("c").array().item(1)
        a.on_dispose(lambda: calls.append("a"))
        b.on_dispose(lambda: calls.append("b"))
        c1.on_dispose(lambda: calls.append("c1"))
        root.dispose()
        root.dispose()
        assert sorted(calls) == ["a", "b", "c1"]
        assert b.disposed

    @pytest.mark.unit
    def test_on_dispose_after_dispose_runs_immediately(self):
        root = create_controller(1)
        root.dispose()
        calls = []
        root.on_dispose(lambda: calls.append(1))
        assert calls == [1]

    @pytest.mark.unit
    def test_change_after_dispose_is_ignored(self):
        changes = []
        root = create_controller(1, on_change=changes.append)
        root.dispose()
        root.change(2)
        assert changes == []

    @pytest.mark.unit
    def test_find_by_path(self):
        root = create_controller({"a": [{"b": 1}]})
        b = root.object().field("a").array().item(0).object().field("b")
        assert root.find(["a", 0, "b"]) is b
        assert b.path == ["a", 0, "b"]
        assert root.find(["zzz"]) is None


# =============================================================================
# Object Controller
# =============================================================================


class TestObjectController:
    """Tests for field access."""

    @pytest.mark.unit
    def test_field_is_cached(self):
        obj = create_controller({"a": 1}).object()
        assert obj.field("a") is obj.field("a")
        assert isinstance(obj, ObjectController)

    @pytest.mark.unit
    def test_field_change_rewrites_parent(self):
        root = create_controller({"a": 1, "b": 2})
        root.object().field("a").change(10)
        assert root.value == {"a": 10, "b": 2}

    @pytest.mark.unit
    def test_field_tracks_parent(self):
        root = create_controller({"a": 1})
        field = root.object().field("a")
        root.change({"a": 5})
        assert field.value == 5
        root.change(None)
        assert field.value is None

    @pytest.mark.unit
    def test_remove_field_disposes(self):
        root = create_controller({"a": 1, "b": 2})
        field = root.object().field("a")
        root.object().remove_field("a")
        assert root.value == {"b": 2}
        assert field.disposed

    @pytest.mark.unit
    def test_rename_field_keeps_order(self):
        root = create_controller({"a": 1, "b": 2})
        root.object().rename_field("a", "z")
        assert list(root.value) == ["z", "b"]
        assert root.value["z"] == 1


# =============================================================================
# Array Controller
# =============================================================================


class TestArrayController:
    """Tests for item access and sequence operations."""

    @pytest.mark.unit
    def test_item_change(self):
        root = create_controller([1, 2, 3])
        root.array().item(1).change(20)
        assert root.value == [1, 20, 3]

    @pytest.mark.unit
    def test_item_change_pads(self):
        root = create_controller([])
        root.array().item(2).change("x")
        assert root.value == [None, None, "x"]

    @pytest.mark.unit
    def test_length_signal(self):
        root = create_controller([1])
        arr = root.array()
        arr.push(2, 3)
        assert arr.length.value == 3

    @pytest.mark.unit
    def test_shrink_disposes_trailing_items(self):
        root = create_controller([1, 2, 3])
        arr = root.array()
        first, last = arr.item(0), arr.item(2)
        arr.remove_at(1)
        assert root.value == [1, 3]
        assert last.disposed
        assert not first.disposed
        assert arr.item(1).value == 3

    @pytest.mark.unit
    def test_pop_shift_unshift(self):
        root = create_controller([1, 2, 3])
        arr = root.array()
        assert arr.pop() == 3
        assert arr.shift() == 1
        arr.unshift(0)
        assert root.value == [0, 2]

    @pytest.mark.unit
    def test_splice(self):
        root = create_controller(["a", "b", "c"])
        removed = root.array().splice(1, 1, "x", "y")
        assert removed == ["b"]
        assert root.value == ["a", "x", "y", "c"]

    @pytest.mark.unit
    def test_move(self):
        root = create_controller(["a", "b", "c"])
        root.array().move(0, 2)
        assert root.value == ["b", "c", "a"]


# =============================================================================
# Union Controller
# =============================================================================


def _union(initial):
    root = create_controller(initial)
    branches = [
        UnionBranch(
            key="int32",
            label="Integer",
            detect=lambda v: isinstance(v, int) and not isinstance(v, bool),
            default_value=lambda: 0,
            convert=lambda v: (True, int(v)) if str(v).isdigit() else (False, None),
        ),
        UnionBranch(
            key="string",
            label="Text",
            detect=lambda v: isinstance(v, str),
            default_value=lambda: "",
            convert=lambda v: (True, str(v)),
        ),
        UnionBranch(
            key="array",
            label="List",
            detect=lambda v: isinstance(v, list),
            default_value=lambda: [],
        ),
    ]
    union = UnionController(
        root.path, root.change, root.signal, root.status, branches, root.disabled
    )
    return root, union


class TestUnionController:
    """Tests for branch tracking and switching."""

    @pytest.mark.unit
    def test_active_branch_detection(self):
        root, union = _union("x")
        assert union.active_branch.value == "string"
        root.change(4)
        assert union.active_branch.value == "int32"

    @pytest.mark.unit
    def test_fallback_to_first_branch(self):
        _, union = _union({"no": "match"})
        assert union.active_branch.value == "int32"

    @pytest.mark.unit
    def test_switch_converts(self):
        root, union = _union("12")
        union.switch_to_branch("int32")
        assert root.value == 12

    @pytest.mark.unit
    def test_switch_falls_back_to_default(self):
        root, union = _union("abc")
        union.switch_to_branch("int32")
        assert root.value == 0
        union.switch_to_branch("array")
        assert root.value == []

    @pytest.mark.unit
    def test_switch_to_current_branch_keeps_value(self):
        root, union = _union("abc")
        union.switch_to_branch("string")
        assert root.value == "abc"

    @pytest.mark.unit
    def test_unknown_branch_raises(self):
        _, union = _union("x")
        with pytest.raises(KeyError):
            union.switch_to_branch("nope")

    @pytest.mark.unit
    def test_branch_controller_shares_path_and_defaults(self):
        _, union = _union("x")
        number = union.branch_controller("int32")
        assert number.path == union.path
        assert number.value == 0

    @pytest.mark.unit
    def test_deselected_branch_is_disposed(self):
        root, union = _union("x")
        text = union.active_controller
        root.change(3)
        assert text.disposed
        assert union.active_controller.value == 3

    @pytest.mark.unit
    def test_first_accepting_branch_wins(self):
        root = create_controller(3)

        def number(value):
            return isinstance(value, (int, float)) and not isinstance(value, bool)

        branches = [
            UnionBranch(key="double", label="Real", detect=number, default_value=float),
            UnionBranch(key="int32", label="Integer", detect=number, default_value=int),
        ]
        union = UnionController(
            root.path, root.change, root.signal, root.status, branches
        )
        assert union.active_branch.value == "double"
        union.switch_to_branch("int32")
        assert union.active_branch.value == "double"

    @pytest.mark.unit
    def test_switch_to_boolean_from_integer(self):
        root = create_controller({"x": 1})
        field = root.object().field("x")
        branches = [
            UnionBranch(
                key="int32",
                label="Integer",
                detect=lambda v: isinstance(v, int) and not isinstance(v, bool),
                default_value=lambda: 0,
            ),
            UnionBranch(
                key="boolean",
                label="Flag",
                detect=lambda v: isinstance(v, bool),
                default_value=lambda: False,
                convert=lambda v: (True, bool(v)),
            ),
        ]
        union = UnionController(
            field.path, field.change, field.signal, field.status, branches
        )
        union.switch_to_branch("boolean")
        assert root.value == {"x": True}
        assert union.active_branch.value == "boolean"
