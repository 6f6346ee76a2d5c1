"""Tests for the signal runtime."""

import pytest
from snarfx import autorun
from snarfx import computed as snarfx_computed

from .lib import Prop, Signal, computed, strict_equal


class TestStrictEqual:
    """Tests for value equality."""

    @pytest.mark.unit
    def test_distinguishes_bool_and_int(self):
        assert not strict_equal(1, True)
        assert not strict_equal(0, 0.0)
        assert strict_equal({"a": [1]}, {"a": [1]})

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "a,b",
        [
            ({"x": 1}, {"x": True}),
            ([0], [False]),
            ({"x": [1, 0]}, {"x": [1, 0.0]}),
            ((1, 2), [1, 2]),
            ({"a": 1, "b": 2}, {"b": 2, "a": 1}),
        ],
    )
    def test_containers_compare_strictly(self, a, b):
        assert not strict_equal(a, b)

    @pytest.mark.unit
    def test_nested_equal_values(self):
        assert strict_equal({"x": [{"y": None}]}, {"x": [{"y": None}]})


class TestProp:
    """Tests for writable signals."""

    @pytest.mark.unit
    def test_set_is_visible_immediately(self):
        prop = Prop("a")
        prop.set("b")
        assert prop.value == "b"
        assert prop.get() == "b"

    @pytest.mark.unit
    def test_listeners_called_in_order(self):
        prop = Prop(0)
        seen = []
        prop.on(seen.append)
        prop.set(1)
        prop.set(1)
        prop.update(lambda v: v + 1)
        assert seen == [1, 2]

    @pytest.mark.unit
    def test_type_change_inside_container_is_committed(self):
        prop = Prop({"x": 1})
        seen = []
        prop.on(seen.append)
        prop.set({"x": True})
        assert prop.value["x"] is True
        assert seen == [{"x": True}]

    @pytest.mark.unit
    def test_nested_write_is_not_overtaken(self):
        """A listener writing again leaves later listeners on the newest value."""
        prop = Prop(0)
        seen = []

        def normalize(value):
            if value < 0:
                prop.set(0)

        prop.on(normalize)
        prop.on(seen.append)
        doubled = prop.map(lambda v: v * 2)
        prop.set(-5)
        assert prop.value == 0
        assert seen == [0]
        assert doubled.value == 0

    @pytest.mark.unit
    def test_cancel(self):
        prop = Prop(0)
        seen = []
        cancel = prop.on(seen.append)
        cancel()
        cancel()
        prop.set(3)
        assert seen == []

    @pytest.mark.unit
    def test_dispose_stops_updates(self):
        prop = Prop(0)
        prop.dispose()
        prop.set(5)
        assert prop.value == 0
        assert prop.disposed


class TestDerived:
    """Tests for map and computed."""

    @pytest.mark.unit
    def test_map_tracks_source(self):
        source = Prop(2)
        squared = source.map(lambda v: v * v)
        source.set(3)
        assert squared.value == 9

    @pytest.mark.unit
    def test_map_skips_equal_results(self):
        source = Prop(1)
        parity = source.map(lambda v: v % 2)
        seen = []
        parity.on(seen.append)
        source.set(3)
        source.set(4)
        assert seen == [0]

    @pytest.mark.unit
    def test_disposed_map_detaches(self):
        source = Prop(2)
        derived = source.map(lambda v: v + 1)
        seen = []
        derived.on(seen.append)
        derived.dispose()
        source.set(10)
        assert derived.value == 3
        assert seen == []

    @pytest.mark.unit
    def test_computed(self):
        a, b = Prop(1), Prop(False)

        @computed(a, b)
        def either(x, y):
            return bool(x) or y

        assert either.value is True
        a.set(0)
        assert either.value is False
        b.set(True)
        assert either.value is True

    @pytest.mark.unit
    def test_plain_signal_is_read_only(self):
        assert not hasattr(Signal(1), "set")


class TestSnarfxInterop:
    """Signals are tracked by snarfx derivations."""

    @pytest.mark.unit
    def test_snarfx_computed_reads_signal(self):
        prop = Prop(2)

        @snarfx_computed
        def tripled():
            return prop.value * 3

        assert tripled.get() == 6
        prop.set(5)
        assert tripled.get() == 15

    @pytest.mark.unit
    def test_autorun_follows_derived_signal(self):
        prop = Prop("a")
        upper = prop.map(str.upper)
        seen = []
        runner = autorun(lambda: seen.append(upper.value))
        prop.set("b")
        runner.dispose()
        prop.set("c")
        assert seen == ["A", "B"]
