"""Tests for the structure context."""

import pytest

from structure_engine.schema import ShapeKind

from .lib import StructureContext, create_structure_context, humanize


def _ctx(definition, schema=None, **kwargs) -> StructureContext:
    return StructureContext(schema=schema or {"definitions": {}}, definition=definition, **kwargs)


class TestHumanize:
    """Tests for label humanization."""

    @pytest.mark.unit
    def test_camel_case(self):
        assert humanize("firstName") == "First name"

    @pytest.mark.unit
    def test_snake_and_kebab_case(self):
        assert humanize("postal_code") == "Postal code"
        assert humanize("zip-code") == "Zip code"

    @pytest.mark.unit
    def test_empty(self):
        assert humanize("") == ""


class TestCreateStructureContext:
    """Tests for the root context factory."""

    @pytest.mark.unit
    def test_root_from_pointer(self, person_schema):
        ctx = create_structure_context(person_schema)
        assert ctx.definition is person_schema["definitions"]["Person"]
        assert ctx.path == ()
        assert ctx.is_root

    @pytest.mark.unit
    def test_document_with_inline_type(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        ctx = create_structure_context(schema)
        assert ctx.definition is schema

    @pytest.mark.unit
    def test_document_without_root_is_any(self):
        ctx = create_structure_context({"definitions": {}})
        assert ctx.definition == {"type": "any"}
        assert ctx.shape.kind == ShapeKind.ANY

    @pytest.mark.unit
    def test_unresolvable_root_keeps_document(self, caplog):
        schema = {"$root": "#/definitions/Missing", "definitions": {}}
        ctx = create_structure_context(schema)
        assert ctx.definition is schema
        assert "Could not resolve $root" in caplog.text

    @pytest.mark.unit
    def test_settings_from_environment(self, monkeypatch, person_schema):
        monkeypatch.setenv("STRUCTURE_READ_ONLY", "true")
        monkeypatch.setenv("STRUCTURE_LOCALE", "de")
        ctx = create_structure_context(person_schema)
        assert ctx.read_only is True
        assert ctx.locale == "de"

    @pytest.mark.unit
    def test_explicit_settings_win(self, monkeypatch, person_schema):
        monkeypatch.setenv("STRUCTURE_READ_ONLY", "true")
        ctx = create_structure_context(person_schema, read_only=False, locale="fr")
        assert ctx.read_only is False
        assert ctx.locale == "fr"


class TestDerivation:
    """Tests for deriving child contexts."""

    @pytest.mark.unit
    def test_append_extends_path(self, person_schema):
        root = create_structure_context(person_schema)
        child = root.append("address").append("city")
        assert child.path == ("address", "city")
        assert root.path == ()
        assert child.json_path == "/address/city"

    @pytest.mark.unit
    def test_resolver_is_shared(self, person_schema):
        root = create_structure_context(person_schema)
        child = root.with_updates(definition={"type": "string"}, locale="de").append(0)
        assert child.resolver is root.resolver
        assert child.locale == "de"

    @pytest.mark.unit
    def test_with_updates_returns_new_instance(self, person_schema):
        root = create_structure_context(person_schema)
        updated = root.with_updates(read_only=True)
        assert updated is not root
        assert root.read_only is False
        assert updated.read_only is True

    @pytest.mark.unit
    def test_resolve_ref(self, person_schema):
        ctx = create_structure_context(person_schema)
        assert ctx.resolve_ref("Address")["properties"]["city"]["default"] == "Springfield"
        assert ctx.resolve_ref("Nope") is None


class TestTypeInformation:
    """Tests for derived type properties."""

    @pytest.mark.unit
    def test_nullable_single_type(self):
        ctx = _ctx({"type": ["string", "null"]})
        assert ctx.resolved_type == ["string", "null"]
        assert ctx.primary_type == "string"
        assert ctx.is_nullable
        assert ctx.shape.kind == ShapeKind.PRIMITIVE

    @pytest.mark.unit
    def test_null_only(self):
        ctx = _ctx({"type": "null"})
        assert ctx.primary_type is None
        assert ctx.is_nullable
        assert ctx.shape.primitive == "null"

    @pytest.mark.unit
    def test_reference_type_is_followed(self, person_schema):
        ctx = _ctx({"type": {"$ref": "#/definitions/Address"}}, person_schema)
        assert ctx.resolved_type == "object"
        assert ctx.primary_type == "object"

    @pytest.mark.unit
    def test_dangling_reference(self):
        ctx = _ctx({"type": {"$ref": "#/definitions/Missing"}})
        assert ctx.resolved_type is None
        assert ctx.primary_type is None
        assert ctx.shape.kind == ShapeKind.REFERENCE

    @pytest.mark.unit
    def test_union_shape(self):
        ctx = _ctx({"type": ["int32", "string", "null"]})
        assert ctx.shape.kind == ShapeKind.UNION
        assert ctx.shape.types == ("int32", "string")

    @pytest.mark.unit
    def test_enum_and_const(self):
        enum_ctx = _ctx({"type": "string", "enum": ["a", "b"]})
        assert enum_ctx.has_enum
        assert enum_ctx.enum_values == ["a", "b"]
        const_ctx = _ctx({"type": "string", "const": "fixed"})
        assert const_ctx.has_const
        assert const_ctx.const_value == "fixed"
        assert not const_ctx.has_enum

    @pytest.mark.unit
    def test_required_mirrors_flag(self):
        assert _ctx({"type": "string"}, is_property_required=True).is_required
        assert _ctx({"type": "string"}).is_optional


class TestAnnotations:
    """Tests for labels and metadata."""

    @pytest.mark.unit
    def test_localized_label_wins(self, person_schema):
        ctx = create_structure_context(person_schema, locale="de")
        assert ctx.label == "Person (de)"

    @pytest.mark.unit
    def test_definition_name_label(self, person_schema):
        ctx = create_structure_context(person_schema, locale="fr")
        assert ctx.label == "Person"

    @pytest.mark.unit
    def test_humanized_segment_label(self):
        ctx = _ctx({"type": "string"}).append("firstName")
        assert ctx.label == "First name"
        assert ctx.name == "firstName"

    @pytest.mark.unit
    def test_index_segment_has_no_label(self):
        ctx = _ctx({"type": "string"}).append(3)
        assert ctx.label == ""
        assert ctx.name is None
        assert ctx.widget_name == "3"

    @pytest.mark.unit
    def test_metadata(self):
        ctx = _ctx(
            {
                "type": "decimal",
                "description": "Price",
                "unit": "kg",
                "currency": "EUR",
                "deprecated": True,
                "examples": [1.5],
                "default": 2.0,
            }
        )
        assert ctx.description == "Price"
        assert ctx.unit == "kg"
        assert ctx.currency == "EUR"
        assert ctx.is_deprecated
        assert not ctx.is_abstract
        assert ctx.examples == [1.5]
        assert ctx.default_value == 2.0
        assert ctx.is_primitive
