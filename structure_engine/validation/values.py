"""Instance validation against a JSON Structure document.

`StructureValidator` walks a value alongside its definition and reports
`RawValidationError` findings: type mismatches, missing required members,
enum and const violations, string, numeric and collection bounds, integer
width overflow and malformed temporal, uuid, uri and binary text.
`validate_controller` runs it over a controller's value and publishes the
formatted result as the controller's status.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable
from urllib.parse import urlparse

from structure_engine.context import create_structure_context
from structure_engine.controller import Controller
from structure_engine.core.log import get_logger
from structure_engine.reactive import strict_equal
from structure_engine.resolver import RefResolver, normalize_required, resolve_extends
from structure_engine.schema import (
    BIG_INTEGER_TYPES,
    INTEGER_BOUNDS,
    TypeDefinition,
    is_float_type,
    is_integer_type,
    is_type_reference,
)
from structure_engine.union import detect_active_choice, extract_variant_value

from .lib import (
    FormattedValidationError,
    RawValidationError,
    build_validation,
    format_validation_errors,
)

logger = get_logger("structure.validation")

_INTEGER_TEXT = re.compile(r"^[-+]?\d+$")
_DURATION = re.compile(
    r"^P(?!$)(\d+Y)?(\d+M)?(\d+W)?(\d+D)?(T(?=\d)(\d+H)?(\d+M)?(\d+(\.\d+)?S)?)?$"
)


class Match(str, Enum):
    """How a value relates to one type keyword."""

    CLEAN = "clean"
    FLAWED = "flawed"
    MISMATCH = "mismatch"


@dataclass
class ValidationResult:
    """Outcome of validating one value."""

    errors: list[RawValidationError]
    definitions: dict[str, TypeDefinition]

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _pointer(path: str, segment: str | int) -> str:
    text = str(segment).replace("~", "~0").replace("/", "~1")
    return f"{path}/{text}"


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=repr)


def _number(bound: Any) -> int | float | None:
    if isinstance(bound, bool):
        return None
    if isinstance(bound, int | float):
        return bound
    if isinstance(bound, str):
        try:
            return int(bound) if _INTEGER_TEXT.match(bound.strip()) else float(bound)
        except ValueError:
            return None
    return None


class StructureValidator:
    """Validates values against one schema document.

    Args:
        schema: Root document.
        definition: Definition to validate against; defaults to the
            document's root definition.

    Example:
        >>> validator = StructureValidator(schema)
        >>> [e.type for e in validator.validate({"age": 300}).errors]
        ['required', 'required', 'integer_bounds', 'maximum']
    """

    def __init__(
        self, schema: dict[str, Any], definition: TypeDefinition | None = None
    ):
        self.schema = schema
        root = create_structure_context(schema, read_only=False)
        self.resolver: RefResolver = root.resolver
        self.definition = definition if definition is not None else root.definition

    def validate(self, value: Any) -> ValidationResult:
        errors: list[RawValidationError] = []
        definitions: dict[str, TypeDefinition] = {}
        self._value(value, self.definition, "", errors, definitions)
        logger.debug(f"Validated value: {len(errors)} errors")
        return ValidationResult(errors, definitions)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _resolve(
        self, definition: TypeDefinition, path: str, errors: list[RawValidationError]
    ) -> TypeDefinition | None:
        type_spec = definition.get("type")
        if is_type_reference(type_spec):
            merged = self.resolver.resolve_definition(definition)
            if merged is definition:
                errors.append(
                    RawValidationError(path, "ref_not_found", type_spec["$ref"])
                )
                return None
            definition = merged
        if "$extends" in definition:
            definition = resolve_extends(definition, self.schema, self.resolver).merged
        return definition

    def _value(
        self,
        value: Any,
        definition: TypeDefinition,
        path: str,
        errors: list[RawValidationError],
        definitions: dict[str, TypeDefinition],
    ) -> None:
        resolved = self._resolve(definition, path, errors)
        if resolved is None:
            return
        definition = resolved
        count = len(errors)
        self._check(value, definition, path, errors)
        if len(errors) > count:
            definitions.setdefault(path, definition)

        if value is None:
            return
        for child_value, child_definition, child_path in self._members(
            value, definition, path
        ):
            self._value(child_value, child_definition, child_path, errors, definitions)

    def _check(
        self,
        value: Any,
        definition: TypeDefinition,
        path: str,
        errors: list[RawValidationError],
    ) -> None:
        type_spec = definition.get("type")
        types = type_spec if isinstance(type_spec, list) else [type_spec]
        keywords = [t for t in types if isinstance(t, str)]

        if value is None:
            if "null" not in keywords and keywords and "any" not in keywords:
                errors.append(RawValidationError(path, "type", type_spec, None))
            return

        if "enum" in definition and isinstance(definition["enum"], list):
            if not any(strict_equal(value, option) for option in definition["enum"]):
                errors.append(RawValidationError(path, "enum", definition["enum"], value))
            return
        if "const" in definition:
            if not strict_equal(value, definition["const"]):
                errors.append(
                    RawValidationError(path, "const", definition["const"], value)
                )
            return

        candidates = [t for t in keywords if t != "null"]
        if not candidates:
            return

        flawed: list[RawValidationError] | None = None
        for keyword in candidates:
            found: list[RawValidationError] = []
            match self._match(value, keyword, definition, path, found):
                case Match.CLEAN:
                    return
                case Match.FLAWED if flawed is None:
                    flawed = found
        if flawed is not None:
            errors.extend(flawed)
        else:
            errors.append(RawValidationError(path, "type", type_spec, value))

    def _match(
        self,
        value: Any,
        keyword: str,
        definition: TypeDefinition,
        path: str,
        found: list[RawValidationError],
    ) -> Match:
        match keyword:
            case "any":
                pass
            case "string":
                if not isinstance(value, str):
                    return Match.MISMATCH
                self._string(value, definition, path, found)
            case "boolean":
                if not isinstance(value, bool):
                    return Match.MISMATCH
            case "date" | "datetime" | "time" | "duration":
                if not isinstance(value, str | date | time):
                    return Match.MISMATCH
                if isinstance(value, str) and not self._temporal(value, keyword):
                    found.append(RawValidationError(path, "format", keyword, value))
            case "uuid":
                if not isinstance(value, str | uuid.UUID):
                    return Match.MISMATCH
                try:
                    uuid.UUID(str(value))
                except ValueError:
                    found.append(RawValidationError(path, "format", "uuid", value))
            case "uri":
                if not isinstance(value, str):
                    return Match.MISMATCH
                if not urlparse(value).scheme:
                    found.append(RawValidationError(path, "format", "uri", value))
            case "binary":
                if isinstance(value, bytes | bytearray):
                    pass
                elif not isinstance(value, str):
                    return Match.MISMATCH
                else:
                    try:
                        base64.b64decode(value, validate=True)
                    except (binascii.Error, ValueError):
                        found.append(RawValidationError(path, "format", "binary", value))
            case "object" | "map" | "choice":
                if not isinstance(value, dict):
                    return Match.MISMATCH
                self._mapping(value, keyword, definition, path, found)
            case "array" | "set" | "tuple":
                if not isinstance(value, list | tuple):
                    return Match.MISMATCH
                self._sequence(list(value), keyword, definition, path, found)
            case _ if is_integer_type(keyword):
                number = self._integer(value, keyword)
                if number is None:
                    return Match.MISMATCH
                low, high = INTEGER_BOUNDS[keyword]
                if not low <= number <= high:
                    found.append(
                        RawValidationError(
                            path,
                            "integer_bounds",
                            {"min": str(low), "max": str(high)},
                            str(number),
                            {"type": keyword},
                        )
                    )
                self._numeric(number, definition, path, found)
            case _ if is_float_type(keyword):
                number = _number(value) if keyword == "decimal" else value
                if isinstance(number, bool) or not isinstance(number, int | float):
                    return Match.MISMATCH
                self._numeric(number, definition, path, found)
            case _:
                logger.debug(f"No value check for type {keyword} at {path or '/'}")
        return Match.FLAWED if found else Match.CLEAN

    # -------------------------------------------------------------------------
    # Scalars
    # -------------------------------------------------------------------------

    def _string(
        self, value: str, definition: TypeDefinition, path: str, found: list
    ) -> None:
        min_length = definition.get("minLength")
        if isinstance(min_length, int) and len(value) < min_length:
            found.append(RawValidationError(path, "minLength", min_length, len(value)))
        max_length = definition.get("maxLength")
        if isinstance(max_length, int) and len(value) > max_length:
            found.append(RawValidationError(path, "maxLength", max_length, len(value)))
        pattern = definition.get("pattern")
        if isinstance(pattern, str):
            try:
                if re.search(pattern, value) is None:
                    found.append(RawValidationError(path, "pattern", pattern, value))
            except re.error:
                logger.warning(f"Ignoring invalid pattern {pattern!r} at {path or '/'}")

    @staticmethod
    def _temporal(value: str, keyword: str) -> bool:
        parse: Callable[[str], Any]
        match keyword:
            case "date":
                parse = date.fromisoformat
            case "datetime":
                if "T" not in value and "t" not in value:
                    return False
                parse = datetime.fromisoformat
            case "time":
                parse = time.fromisoformat
            case _:
                return _DURATION.match(value) is not None
        try:
            parse(value)
        except ValueError:
            return False
        return True

    @staticmethod
    def _integer(value: Any, keyword: str) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if (
            keyword in BIG_INTEGER_TYPES
            and isinstance(value, str)
            and _INTEGER_TEXT.match(value.strip())
        ):
            return int(value.strip())
        return None

    def _numeric(
        self, value: int | float, definition: TypeDefinition, path: str, found: list
    ) -> None:
        checks = (
            ("minimum", lambda bound: value < bound),
            ("maximum", lambda bound: value > bound),
            ("exclusiveMinimum", lambda bound: value <= bound),
            ("exclusiveMaximum", lambda bound: value >= bound),
        )
        for keyword, violates in checks:
            bound = _number(definition.get(keyword))
            if bound is not None and violates(bound):
                found.append(RawValidationError(path, keyword, bound, value))
        step = _number(definition.get("multipleOf"))
        if step and abs(value / step - round(value / step)) > 1e-9:
            found.append(RawValidationError(path, "multipleOf", step, value))

    # -------------------------------------------------------------------------
    # Compounds
    # -------------------------------------------------------------------------

    def _mapping(
        self,
        value: dict[str, Any],
        keyword: str,
        definition: TypeDefinition,
        path: str,
        found: list,
    ) -> None:
        if keyword == "choice":
            choices = definition.get("choices")
            names = list(choices) if isinstance(choices, dict) else []
            selector = definition.get("selector")
            if detect_active_choice(value, choices or {}, selector) is None:
                found.append(RawValidationError(path, "choice", names, list(value)))
            return

        count = len(value)
        for bound_keyword, violates in (
            ("minProperties", lambda bound: count < bound),
            ("maxProperties", lambda bound: count > bound),
            ("minEntries", lambda bound: count < bound),
            ("maxEntries", lambda bound: count > bound),
        ):
            bound = definition.get(bound_keyword)
            if isinstance(bound, int) and violates(bound):
                found.append(RawValidationError(path, bound_keyword, bound, count))

        if keyword != "object":
            return
        for name in normalize_required(definition.get("required")):
            if name not in value:
                found.append(RawValidationError(_pointer(path, name), "required", name))

        properties = definition.get("properties") or {}
        if definition.get("additionalProperties") is False:
            for name in value:
                if name not in properties:
                    found.append(
                        RawValidationError(
                            _pointer(path, name), "additionalProperties", actual=name
                        )
                    )

        dependent = definition.get("dependentRequired")
        if isinstance(dependent, dict):
            for name, needed in dependent.items():
                missing = [n for n in needed or [] if n not in value]
                if name in value and missing:
                    found.append(
                        RawValidationError(
                            path,
                            "dependentRequired",
                            context={"dependent": name, "required": missing},
                        )
                    )

    def _sequence(
        self,
        items: list[Any],
        keyword: str,
        definition: TypeDefinition,
        path: str,
        found: list,
    ) -> None:
        if keyword == "tuple":
            names = definition.get("tuple")
            if isinstance(names, list) and len(items) != len(names):
                found.append(
                    RawValidationError(path, "tuple_length", len(names), len(items))
                )
            return

        min_items = definition.get("minItems")
        if isinstance(min_items, int) and len(items) < min_items:
            found.append(RawValidationError(path, "minItems", min_items, len(items)))
        max_items = definition.get("maxItems")
        if isinstance(max_items, int) and len(items) > max_items:
            found.append(RawValidationError(path, "maxItems", max_items, len(items)))

        if keyword == "set" or definition.get("uniqueItems") is True:
            seen: set[str] = set()
            for index, item in enumerate(items):
                key = _canonical(item)
                if key in seen:
                    found.append(
                        RawValidationError(_pointer(path, index), "uniqueItems", actual=item)
                    )
                seen.add(key)

    def _members(
        self, value: Any, definition: TypeDefinition, path: str
    ) -> list[tuple[Any, TypeDefinition, str]]:
        """Nested values paired with their definitions and pointers."""
        members: list[tuple[Any, TypeDefinition, str]] = []
        type_spec = definition.get("type")
        keywords = type_spec if isinstance(type_spec, list) else [type_spec]

        if isinstance(value, dict):
            if "choice" in keywords:
                choices = definition.get("choices")
                if not isinstance(choices, dict):
                    return members
                selector = definition.get("selector")
                name = detect_active_choice(value, choices, selector)
                if name is not None and isinstance(choices[name], dict):
                    inline = bool(selector and selector in value)
                    members.append(
                        (
                            extract_variant_value(value, name, selector),
                            choices[name],
                            path if inline else _pointer(path, name),
                        )
                    )
            elif "map" in keywords:
                values = definition.get("values")
                if isinstance(values, dict):
                    members.extend(
                        (item, values, _pointer(path, key)) for key, item in value.items()
                    )
            elif "object" in keywords:
                properties = definition.get("properties") or {}
                additional = definition.get("additionalProperties")
                for key, item in value.items():
                    member = properties.get(key)
                    if member is None and isinstance(additional, dict):
                        member = additional
                    if isinstance(member, dict):
                        members.append((item, member, _pointer(path, key)))

        elif isinstance(value, list | tuple):
            if "tuple" in keywords:
                names = definition.get("tuple") or []
                properties = definition.get("properties") or {}
                for index, name in enumerate(names[: len(value)]):
                    member = properties.get(name)
                    if isinstance(member, dict):
                        members.append((value[index], member, _pointer(path, index)))
            elif "array" in keywords or "set" in keywords:
                items = definition.get("items")
                if isinstance(items, dict):
                    members.extend(
                        (item, items, _pointer(path, index))
                        for index, item in enumerate(value)
                    )
        return members


def validate(
    value: Any, schema: dict[str, Any], definition: TypeDefinition | None = None
) -> list[RawValidationError]:
    """Findings for ``value`` against the document's root definition.

    Example:
        >>> [e.path for e in validate({}, person_schema)]
        ['/name', '/address']
    """
    return StructureValidator(schema, definition).validate(value).errors


def validate_controller(
    controller: Controller[Any], schema: dict[str, Any]
) -> list[FormattedValidationError]:
    """Validate the controller's value and publish the result as its status.

    The controller must own a writable status, as roots from
    `create_controller` do.

    Returns:
        The formatted findings, empty when the value is valid.
    """
    result = StructureValidator(schema).validate(controller.value)
    formatted = format_validation_errors(result.errors, result.definitions)
    controller.status.set(build_validation(formatted))
    return formatted


def bind_validation(
    controller: Controller[Any], schema: dict[str, Any]
) -> Callable[[], None]:
    """Revalidate on every change of the controller's value.

    Validates once immediately. Returns a function that stops revalidating;
    disposing the controller stops it too.
    """
    validator = StructureValidator(schema)

    def run(value: Any) -> None:
        result = validator.validate(value)
        formatted = format_validation_errors(result.errors, result.definitions)
        controller.status.set(build_validation(formatted))

    run(controller.value)
    cancel = controller.signal.on(run)
    controller.on_dispose(cancel)
    return cancel


__all__ = [
    "Match",
    "ValidationResult",
    "StructureValidator",
    "validate",
    "validate_controller",
    "bind_validation",
]
