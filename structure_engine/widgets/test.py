"""Tests for the widget registry."""

import pytest

from structure_engine.context import StructureContext

from .defaults import (
    default_widget_names,
    ensure_default_widgets,
    has_default_widgets,
    register_default_widgets,
)
from .lib import (
    WidgetRegistration,
    WidgetRegistry,
    for_format,
    for_matcher,
    for_type,
    for_type_and_format,
    get_explicit_widget_name,
    get_widget_options,
    merge_widget_options,
)


def _ctx(definition) -> StructureContext:
    return StructureContext(schema={"definitions": {}}, definition=definition)


def _factory(props):
    return "widget"


class TestRegistration:
    """Tests for registering and looking up widgets."""

    @pytest.mark.unit
    def test_register_and_get(self):
        registry = WidgetRegistry()
        registry.register(*for_type("string", _factory))
        assert registry.has("type:string")
        assert registry.get("type:string").supported_types == ["string"]
        assert registry.names() == ["type:string"]

    @pytest.mark.unit
    def test_unregister(self):
        registry = WidgetRegistry()
        registry.register(*for_type("string", _factory))
        registry.unregister("type:string")
        registry.unregister("never-registered")
        assert not registry.has("type:string")

    @pytest.mark.unit
    def test_child_inherits_and_shadows(self):
        parent = WidgetRegistry()
        parent.register(*for_type("string", _factory))
        child = parent.create_child()
        assert child.has("type:string")

        shadow = WidgetRegistration(factory=_factory, display_name="mine")
        child.register("type:string", shadow)
        assert child.get("type:string") is shadow
        assert parent.get("type:string") is not shadow
        assert child.names() == ["type:string"]

    @pytest.mark.unit
    def test_lookup_by_type_and_format(self):
        parent = WidgetRegistry()
        parent.register(*for_type("string", _factory))
        child = parent.create_child()
        child.register(*for_type_and_format("string", "email", _factory))
        assert len(child.get_for_type("string")) == 2
        assert len(child.get_for_format("email")) == 1
        assert child.get_for_format("uri") == []

    @pytest.mark.unit
    def test_helper_defaults(self):
        name, registration = for_format("color", _factory)
        assert name == "format:color"
        assert registration.priority == 10
        assert registration.display_name == "color widget"
        name, registration = for_matcher("big", lambda ctx: True, _factory)
        assert name == "big"
        assert registration.priority == 50


class TestFindBestWidget:
    """Tests for widget scoring."""

    @pytest.mark.unit
    def test_no_match(self):
        registry = WidgetRegistry()
        registry.register(*for_type("boolean", _factory))
        registry.register(*for_format("color", _factory))
        assert registry.find_best_widget(_ctx({"type": "string"})) is None

    @pytest.mark.unit
    def test_type_and_format_beats_format_beats_type(self):
        registry = WidgetRegistry()
        registry.register(*for_type("string", _factory))
        registry.register(*for_format("email", _factory))
        ctx = _ctx({"type": "string", "format": "email"})
        assert registry.find_best_widget(ctx).name == "format:email"

        registry.register(*for_type_and_format("string", "email", _factory))
        assert registry.find_best_widget(ctx).name == "type:string:format:email"

    @pytest.mark.unit
    def test_matcher_disqualifies(self):
        registry = WidgetRegistry()
        registry.register(
            *for_matcher("never", lambda ctx: False, _factory, priority=500)
        )
        registry.register(*for_type("string", _factory))
        assert registry.find_best_widget(_ctx({"type": "string"})).name == "type:string"

    @pytest.mark.unit
    def test_matcher_sees_context(self):
        registry = WidgetRegistry()
        registry.register(
            *for_matcher("money", lambda ctx: ctx.currency is not None, _factory)
        )
        assert registry.find_best_widget(_ctx({"type": "decimal", "currency": "EUR"}))
        assert registry.find_best_widget(_ctx({"type": "decimal"})) is None

    @pytest.mark.unit
    def test_explicit_name_wins(self):
        registry = WidgetRegistry()
        registry.register(*for_type_and_format("string", "email", _factory))
        registry.register("stars", WidgetRegistration(factory=_factory, display_name="Stars"))
        ctx = _ctx({"type": "string", "format": "email", "x:ui": {"widget": "stars"}})
        assert registry.find_best_widget(ctx).name == "stars"

    @pytest.mark.unit
    def test_missing_explicit_widget_warns(self, caplog):
        registry = WidgetRegistry()
        ctx = _ctx({"type": "string", "widget": {"type": "stars"}})
        assert registry.find_best_widget(ctx) is None
        assert 'Widget "stars"' in caplog.text

    @pytest.mark.unit
    def test_priority_breaks_ties(self):
        registry = WidgetRegistry()
        registry.register("a", WidgetRegistration(_factory, "A", supported_types=["string"]))
        registry.register(
            "b", WidgetRegistration(_factory, "B", supported_types=["string"], priority=1)
        )
        assert registry.find_best_widget(_ctx({"type": "string"})).name == "b"


class TestDefinitionHelpers:
    """Tests for reading widget configuration from definitions."""

    @pytest.mark.unit
    def test_explicit_name_sources(self):
        assert get_explicit_widget_name(_ctx({"x:ui": {"widget": "slider"}})) == "slider"
        assert get_explicit_widget_name(_ctx({"widget": {"type": "slider"}})) == "slider"
        assert get_explicit_widget_name(_ctx({"type": "string"})) is None

    @pytest.mark.unit
    def test_widget_options(self):
        ctx = _ctx(
            {
                "x:ui": {"widget": {"step": 5}, "priority": 3},
                "widget": {"label": "Level"},
            }
        )
        assert get_widget_options(ctx) == {
            "options": {"step": 5, "label": "Level"},
            "priority": 3,
        }
        assert get_widget_options(_ctx({"type": "string"})) == {}

    @pytest.mark.unit
    def test_merge_order(self):
        merged = merge_widget_options({"a": 1, "b": 1}, {"b": 2, "c": 2}, {"c": 3})
        assert merged == {"a": 1, "b": 2, "c": 3}
        assert merge_widget_options() == {}


class TestDefaultWidgets:
    """Tests for the stock format widgets."""

    @pytest.mark.unit
    def test_register_is_idempotent(self):
        registry = WidgetRegistry()
        assert not has_default_widgets(registry)
        added = register_default_widgets(registry)
        assert added == default_widget_names()
        assert has_default_widgets(registry)
        assert register_default_widgets(registry) == []
        assert registry.names() == default_widget_names()

    @pytest.mark.unit
    def test_ensure_creates_or_reuses(self):
        registry = ensure_default_widgets()
        assert has_default_widgets(registry)
        assert ensure_default_widgets(registry) is registry
        assert len(registry.names()) == len(default_widget_names())

    @pytest.mark.unit
    def test_existing_override_is_kept(self):
        registry = WidgetRegistry()
        name, registration = for_type_and_format("string", "email", _factory)
        registry.register(name, registration)
        added = register_default_widgets(registry)
        assert name not in added
        assert registry.get(name) is registration

    @pytest.mark.unit
    def test_child_sees_parent_defaults(self):
        parent = ensure_default_widgets()
        child = parent.create_child()
        assert has_default_widgets(child)
        assert register_default_widgets(child) == []

    @pytest.mark.unit
    def test_format_string_selects_stock_widget(self):
        registry = ensure_default_widgets()
        widget = registry.find_best_widget(_ctx({"type": "string", "format": "email"}))
        assert widget.name == "type:string:format:email"
        assert widget.registration.options == {"input": "email", "format": "email"}
        assert registry.find_best_widget(_ctx({"type": "string"})) is None
        assert registry.find_best_widget(_ctx({"type": "uri"})) is None
