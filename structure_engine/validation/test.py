"""Tests for the validation helpers."""

import pytest

from structure_engine.controller import ValidationState, create_controller
from structure_engine.controls import structure_control

from .lib import (
    FormattedValidationError,
    RawValidationError,
    build_validation,
    format_validation_error,
    format_validation_errors,
    get_child_errors,
    get_errors_for_path,
    group_errors_by_path,
    has_errors_at_path,
    parse_pointer,
    validate_schema_document,
)
from .values import (
    StructureValidator,
    bind_validation,
    validate,
    validate_controller,
)


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


def codes(errors):
    return [(error.path, error.type) for error in errors]


class TestFormatting:
    """Tests for the message table."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "error,message",
        [
            (RawValidationError("/a", "type", "int32", "x"), "Expected integer, got string"),
            (
                RawValidationError("/a", "type", ["string", "null"], 3),
                "Expected text or empty, got number",
            ),
            (RawValidationError("/a", "minLength", 3), "Must be at least 3 characters"),
            (RawValidationError("/a", "exclusiveMaximum", 9), "Must be less than 9"),
            (RawValidationError("/a", "uniqueItems"), "All items must be unique"),
            (RawValidationError("/a", "required"), "This field is required"),
            (RawValidationError("/a", "additionalProperties", None, "x"), "Unknown property: x"),
            (RawValidationError("/a", "enum", ["a", 1]), 'Must be one of: "a", 1'),
            (RawValidationError("/a", "enum", list(range(6))), "Invalid value"),
            (RawValidationError("/a", "const", {"v": 1}), 'Must be exactly {"v": 1}'),
            (RawValidationError("/a", "format", "email"), "Must be a valid email address"),
            (RawValidationError("/a", "format", "iban"), "Must be a valid iban"),
            (RawValidationError("/a", "pattern", "^[0-9]+$"), "Must be numbers only"),
            (RawValidationError("/a", "pattern", "^x"), "Does not match required format"),
        ],
    )
    def test_messages(self, error, message):
        assert format_validation_error(error).message == message

    @pytest.mark.unit
    def test_integer_bounds(self):
        error = RawValidationError("/a", "integer_bounds", context={"type": "int8"})
        assert format_validation_error(error).message == "Must be between -128 and 127"
        error = RawValidationError("/a", "integer_bounds")
        assert "out of range" in format_validation_error(error).message

    @pytest.mark.unit
    def test_dependent_required(self):
        error = RawValidationError(
            "/a",
            "dependentRequired",
            context={"dependent": "card", "required": ["cvv", "expiry"]},
        )
        assert format_validation_error(error).message == (
            'When "card" is present, "cvv", "expiry" must also be provided'
        )

    @pytest.mark.unit
    def test_unknown_code_uses_context_message(self):
        error = RawValidationError("/a", "custom", context={"message": "Nope"})
        assert format_validation_error(error).message == "Nope"
        assert (
            format_validation_error(RawValidationError("/a", "custom")).message
            == "Validation error: custom"
        )

    @pytest.mark.unit
    def test_pattern_uses_definition_description(self):
        errors = format_validation_errors(
            [RawValidationError("/zip", "pattern", "^\\d{5}$")],
            {"/zip": {"type": "string", "description": "five digits"}},
        )
        assert errors[0].message == "Does not match required format: five digits"
        assert errors[0].code == "pattern"


class TestPathLookup:
    """Tests for grouping and filtering by path."""

    ERRORS = [
        FormattedValidationError("/a", "one", "x"),
        FormattedValidationError("/a", "two", "y"),
        FormattedValidationError("/a/b", "three", "z"),
        FormattedValidationError("/ab", "four", "z"),
    ]

    @pytest.mark.unit
    def test_group_and_filter(self):
        grouped = group_errors_by_path(self.ERRORS)
        assert [e.message for e in grouped["/a"]] == ["one", "two"]
        assert len(get_errors_for_path(self.ERRORS, "/a/b")) == 1
        assert has_errors_at_path(self.ERRORS, "/ab")
        assert not has_errors_at_path(self.ERRORS, "/c")

    @pytest.mark.unit
    def test_child_errors(self):
        assert [e.message for e in get_child_errors(self.ERRORS, "/a")] == ["three"]
        assert len(get_child_errors(self.ERRORS, "")) == 4


class TestBuildValidation:
    """Tests for folding findings into controller status."""

    @pytest.mark.unit
    def test_parse_pointer(self):
        assert parse_pointer("") == []
        assert parse_pointer("/a~1b/0/c~0d") == ["a/b", "0", "c~d"]

    @pytest.mark.unit
    def test_empty_is_valid(self):
        assert not build_validation([]).is_invalid

    @pytest.mark.unit
    def test_errors_reach_controls(self, person_schema):
        controller = create_controller({"name": "", "tags": ["a", "a"]})
        control = structure_control(person_schema, controller)
        controller.status.set(
            build_validation(
                [
                    FormattedValidationError("/name", "Too short", "minLength"),
                    FormattedValidationError("/name", "Bad", "pattern"),
                    FormattedValidationError("/tags/1", "Duplicate", "uniqueItems"),
                ]
            )
        )
        assert control.fields["name"].controller.error == "Too short; Bad"
        assert control.fields["tags"].items[1].controller.error == "Duplicate"
        assert control.fields["tags"].items[0].controller.error is None
        assert control.fields["age"].snapshot().error is None


class TestSchemaDocument:
    """Tests for document checks."""

    @pytest.mark.unit
    def test_sound_documents(self, person_schema, shape_schema):
        assert validate_schema_document(person_schema) == []
        assert validate_schema_document(shape_schema) == []

    @pytest.mark.unit
    def test_reports_problems(self):
        schema = {
            "$root": "#/definitions/Missing",
            "definitions": {
                "A": {
                    "type": "object",
                    "$extends": "#/definitions/Gone",
                    "properties": {
                        "b": {"type": {"$ref": "#/definitions/Nope"}},
                        "c": {"type": "colour"},
                    },
                },
                "ns": {
                    "T": {
                        "type": "tuple",
                        "tuple": ["x", "y"],
                        "properties": {"x": {"type": "int32"}},
                    },
                    "C": {"type": "choice", "choices": ["a"]},
                },
            },
        }
        found = [(e.path, e.message) for e in validate_schema_document(schema)]
        assert found == [
            ("/$root", "Unresolvable $root: #/definitions/Missing"),
            ("/definitions/A", "Unresolvable $extends: #/definitions/Gone"),
            ("/definitions/A/properties/b", "Unresolvable $ref: #/definitions/Nope"),
            ("/definitions/A/properties/c", "Unknown type: colour"),
            ("/definitions/ns/T", "Tuple member 'y' has no property definition"),
            ("/definitions/ns/C", "Choice requires a 'choices' mapping"),
        ]


class TestStructureValidator:
    """Tests for checking values against a document."""

    @pytest.mark.unit
    def test_valid_document_value(self, person_schema):
        value = {"name": "Ada", "email": None, "address": {"city": "Rome"}}
        assert validate(value, person_schema) == []

    @pytest.mark.unit
    def test_required_and_bounds(self, person_schema):
        assert codes(validate({"age": 300}, person_schema)) == [
            ("/name", "required"),
            ("/address", "required"),
            ("/age", "integer_bounds"),
            ("/age", "maximum"),
        ]

    @pytest.mark.unit
    def test_type_mismatch_and_null(self, person_schema):
        value = {"name": None, "age": "old", "address": {"city": 5}}
        assert codes(validate(value, person_schema)) == [
            ("/name", "type"),
            ("/age", "type"),
            ("/address/city", "type"),
        ]

    @pytest.mark.unit
    def test_set_duplicates(self, person_schema):
        value = {"name": "Ada", "address": {"city": "x"}, "tags": ["a", "b", "a"]}
        assert codes(validate(value, person_schema)) == [("/tags/2", "uniqueItems")]

    @pytest.mark.unit
    def test_tuple_choice_and_map(self, shape_schema):
        value = {
            "origin": [1],
            "shapes": [{"kind": "circle"}, {"kind": "hexagon"}],
            "labels": {"a": 1},
            "weight": 1.5,
        }
        assert codes(validate(value, shape_schema)) == [
            ("/origin", "tuple_length"),
            ("/shapes/0/radius", "required"),
            ("/shapes/1", "choice"),
            ("/labels/a", "type"),
            ("/weight", "type"),
        ]

    @pytest.mark.unit
    def test_tagged_choice_variant_path(self, shape_schema):
        value = {"origin": [0, 0], "shapes": [{"square": {"side": "wide"}}]}
        assert codes(validate(value, shape_schema)) == [
            ("/shapes/0/square/side", "type")
        ]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "keyword,value,valid",
        [
            ("date", "2024-01-31", True),
            ("date", "2024-02-30", False),
            ("datetime", "2024-01-31", False),
            ("datetime", "2024-01-31T10:00:00Z", True),
            ("time", "10:00:00", True),
            ("duration", "P1DT2H", True),
            ("duration", "P", False),
            ("uuid", "not-a-uuid", False),
            ("uri", "example.com", False),
            ("uri", "https://example.com", True),
            ("binary", "aGk=", True),
            ("binary", "***", False),
        ],
    )
    def test_text_formats(self, keyword, value, valid):
        errors = validate(value, {}, {"type": keyword})
        assert (errors == []) is valid
        if not valid:
            assert codes(errors) == [("", "format")]

    @pytest.mark.unit
    def test_union_prefers_clean_match(self):
        assert validate("abc", {}, {"type": ["date", "string"]}) == []
        errors = validate("2024-13-01", {}, {"type": ["date", "int32"]})
        assert codes(errors) == [("", "format")]

    @pytest.mark.unit
    def test_integers(self):
        assert validate("9223372036854775807", {}, {"type": "int64"}) == []
        errors = validate("9223372036854775808", {}, {"type": "int64"})
        assert codes(errors) == [("", "integer_bounds")]
        assert codes(validate(True, {}, {"type": "int32"})) == [("", "type")]
        assert codes(validate(7.5, {}, {"type": "int32"})) == [("", "type")]

    @pytest.mark.unit
    def test_numeric_constraints(self):
        definition = {"type": "int32", "multipleOf": 5, "exclusiveMaximum": 7}
        assert codes(validate(7, {}, definition)) == [
            ("", "exclusiveMaximum"),
            ("", "multipleOf"),
        ]
        assert validate(5, {}, definition) == []

    @pytest.mark.unit
    def test_enum_and_const_are_type_strict(self):
        assert codes(validate(True, {}, {"type": "int32", "enum": [1, 2]})) == [
            ("", "enum")
        ]
        assert codes(validate(0, {}, {"type": "boolean", "const": False})) == [
            ("", "const")
        ]

    @pytest.mark.unit
    def test_unresolved_reference(self):
        errors = validate(1, {}, {"type": {"$ref": "#/definitions/Nope"}})
        assert codes(errors) == [("", "ref_not_found")]

    @pytest.mark.unit
    def test_recursive_definition(self):
        value = {"label": "a", "next": {"label": 5, "next": {"label": "c"}}}
        assert codes(validate(value, LINKED)) == [("/next/label", "type")]

    @pytest.mark.unit
    def test_pattern_message_uses_definition(self):
        validator = StructureValidator({}, {"type": "string", "pattern": "^[a-z]+$"})
        result = validator.validate("ABC")
        assert not result.is_valid
        formatted = format_validation_errors(result.errors, result.definitions)
        assert formatted[0].message == "Must be lowercase letters only"

    @pytest.mark.unit
    def test_choice_and_tuple_messages(self, shape_schema):
        value = {"origin": [1], "shapes": [{"kind": "hexagon"}]}
        errors = validate(value, shape_schema)
        messages = [e.message for e in format_validation_errors(errors)]
        assert messages == [
            "Must have exactly 2 items",
            "Must be one of the options: circle, square",
        ]


class TestControllerValidation:
    """Tests for publishing findings as controller status."""

    @pytest.mark.unit
    def test_validate_controller(self, person_schema):
        root = create_controller({"age": 300})
        formatted = validate_controller(root, person_schema)
        assert len(formatted) == 4
        fields = root.object()
        assert (
            fields.field("age").error
            == "Must be between 0 and 255; Must be at most 130"
        )
        assert fields.field("name").error == "This field is required"
        assert fields.field("email").error is None

    @pytest.mark.unit
    def test_bind_validation_follows_changes(self, person_schema):
        root = create_controller({"name": "Ada", "address": {"city": "Rome"}})
        cancel = bind_validation(root, person_schema)
        assert root.status.value.state == ValidationState.VALID

        age = root.object().field("age")
        age.change(300)
        assert age.error == "Must be between 0 and 255; Must be at most 130"
        age.change(30)
        assert age.error is None
        assert root.status.value.state == ValidationState.VALID

        cancel()
        age.change(300)
        assert age.error is None
