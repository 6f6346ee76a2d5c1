"""Union and choice engine.

Type-array unions (``"type": ["int32", "string"]``) are plain values whose
branch is inferred from the runtime shape of the value. Choice types
(``"type": "choice"``) are tagged unions serialized either as
``{name: variant}`` or, with a ``selector``, as ``{selector: name, ...variant}``.
"""

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from structure_engine.controller import UnionBranch
from structure_engine.defaults import make_default_value
from structure_engine.schema import MAX_SAFE_INTEGER, TypeDefinition

# =============================================================================
# Type Detection
# =============================================================================

STRING_PREFERENCE = ("uuid", "uri", "date", "datetime", "time", "duration", "string")
INTEGER_PREFERENCE = (
    "int32",
    "int64",
    "uint32",
    "uint64",
    "int16",
    "int8",
    "uint16",
    "uint8",
)
BIG_INTEGER_PREFERENCE = ("int128", "int64", "uint128", "uint64")
FLOAT_PREFERENCE = ("double", "float", "decimal")
SEQUENCE_PREFERENCE = ("array", "set", "tuple")
MAPPING_PREFERENCE = ("object", "map")

_TEXT_TYPES = frozenset(
    {"string", "uuid", "uri", "date", "datetime", "time", "duration"}
)
_SMALL_INTEGER_TYPES = frozenset(
    {"int8", "int16", "int32", "uint8", "uint16", "uint32"}
)
_BIG_INTEGER_TYPES = frozenset({"int64", "int128", "uint64", "uint128"})
_INTEGER_PATTERN = re.compile(r"^[-+]?\d+$")


def _first_present(candidates: tuple[str, ...], types: list[str]) -> str | None:
    return next((candidate for candidate in candidates if candidate in types), None)


def detect_type_in_union(value: Any, types: list[str]) -> str | None:
    """Most specific member of ``types`` that can hold ``value``.

    Strings prefer uuid, uri and the temporal kinds over plain string.
    Integral numbers prefer integer widths (int32 first) over float widths;
    integers beyond the double-safe range try the 128/64-bit widths first.
    ``None`` maps to ``null`` when declared, else to ``string``, else to
    the first type.

    Example:
        >>> detect_type_in_union(3, ["int32", "double"])
        'int32'
        >>> detect_type_in_union(3.5, ["int32", "double"])
        'double'
    """
    if value is None:
        if "null" in types:
            return "null"
        if "string" in types:
            return "string"
        return types[0] if types else None
    if isinstance(value, bool):
        return "boolean" if "boolean" in types else None
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return _first_present(BIG_INTEGER_PREFERENCE + FLOAT_PREFERENCE, types)
        return _first_present(INTEGER_PREFERENCE + FLOAT_PREFERENCE, types)
    if isinstance(value, float):
        if value.is_integer():
            return _first_present(INTEGER_PREFERENCE + FLOAT_PREFERENCE, types)
        return _first_present(FLOAT_PREFERENCE, types)
    if isinstance(value, str):
        return _first_present(STRING_PREFERENCE, types)
    if isinstance(value, (bytes, bytearray)):
        return "binary" if "binary" in types else None
    if isinstance(value, (list, tuple)):
        return _first_present(SEQUENCE_PREFERENCE, types)
    if isinstance(value, dict):
        return _first_present(MAPPING_PREFERENCE, types)
    return None


# =============================================================================
# Conversion
# =============================================================================


@dataclass(frozen=True)
class Conversion:
    """Result of `try_convert`. ``value`` is meaningful only when ``ok``."""

    ok: bool
    value: Any = None

    def __iter__(self):
        return iter((self.ok, self.value))


_FAILED = Conversion(False)


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def try_convert(value: Any, target: str) -> Conversion:
    """Coerce ``value`` into the representation of ``target``.

    Never raises; incompatible pairs report ``ok=False``.

    Example:
        >>> try_convert("42", "int32")
        Conversion(ok=True, value=42)
        >>> try_convert("abc", "int32").ok
        False
    """
    if target in _TEXT_TYPES:
        return Conversion(True, None if value is None else _as_text(value))

    if target in _SMALL_INTEGER_TYPES or target in _BIG_INTEGER_TYPES:
        if isinstance(value, bool):
            if target in _BIG_INTEGER_TYPES:
                return _FAILED
            return Conversion(True, 1 if value else 0)
        if isinstance(value, int):
            return Conversion(True, value)
        if isinstance(value, float) and value.is_integer():
            return Conversion(True, int(value))
        if isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
            return Conversion(True, int(value.strip()))
        return _FAILED

    match target:
        case "float" | "double" | "decimal":
            if isinstance(value, bool):
                return Conversion(True, 1 if value else 0)
            if isinstance(value, (int, float)):
                return Conversion(True, value)
            if isinstance(value, str):
                try:
                    number = float(value)
                except ValueError:
                    return _FAILED
                return Conversion(True, number) if math.isfinite(number) else _FAILED
            return _FAILED
        case "boolean":
            if isinstance(value, bool):
                return Conversion(True, value)
            if isinstance(value, str):
                text = value.strip().lower()
                if text in ("true", "1", "yes"):
                    return Conversion(True, True)
                if text in ("false", "0", "no"):
                    return Conversion(True, False)
                return _FAILED
            if isinstance(value, (int, float)):
                return Conversion(True, value != 0)
            return _FAILED
        case "array" | "set" | "tuple":
            if isinstance(value, (list, tuple)):
                return Conversion(True, list(value))
            return _FAILED
        case "object" | "map":
            return Conversion(True, value) if isinstance(value, dict) else _FAILED
        case "binary":
            if isinstance(value, (bytes, bytearray)):
                return Conversion(True, value)
            return _FAILED
        case "null":
            return Conversion(True, None)
        case "any" | "choice":
            return Conversion(True, value)
    return _FAILED


def default_cleared_value(target: str) -> Any:
    """Value a union takes when switching to ``target`` cannot convert."""
    match target:
        case "null" | "binary":
            return None
        case "array" | "set" | "tuple":
            return []
        case "object" | "map":
            return {}
    return make_default_value({"type": target})


def upper_case_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def create_union_branches(types: list[str]) -> list[UnionBranch]:
    """One `UnionBranch` per type keyword, detecting by `detect_type_in_union`."""

    def branch(type_name: str) -> UnionBranch:
        return UnionBranch(
            key=type_name,
            label=upper_case_first(type_name),
            detect=lambda value: detect_type_in_union(value, [type_name]) == type_name,
            default_value=lambda: default_cleared_value(type_name),
            convert=lambda value: tuple(try_convert(value, type_name)),
        )

    return [branch(type_name) for type_name in types]


# =============================================================================
# Choice Wire Format
# =============================================================================


def detect_active_choice(
    value: Any, choices: dict[str, TypeDefinition], selector: str | None = None
) -> str | None:
    """Name of the choice a wire value represents, or None.

    The selector field wins when it names a known choice; otherwise a
    mapping with exactly one key naming a choice is a tagged value.
    """
    if not isinstance(value, dict) or not value:
        return None
    if selector and selector in value:
        tag = value[selector]
        if isinstance(tag, str) and tag in choices:
            return tag
    if len(value) == 1:
        key = next(iter(value))
        if key in choices:
            return key
    return None


def extract_variant_value(
    value: Any, choice_name: str, selector: str | None = None
) -> Any:
    """Variant payload of a wire value.

    With a selector present in the value, that is the value minus the
    selector field; otherwise it is ``value[choice_name]``.
    """
    if not isinstance(value, dict):
        return None
    if selector and selector in value:
        return {key: item for key, item in value.items() if key != selector}
    return value.get(choice_name)


def serialize_choice_value(
    variant_value: Any, choice_name: str, selector: str | None = None
) -> dict[str, Any]:
    """Inverse of `extract_variant_value`."""
    if selector:
        if isinstance(variant_value, dict):
            return {selector: choice_name, **variant_value}
        return {selector: choice_name}
    return {choice_name: variant_value}


class SelectionMode(str, Enum):
    """Whether a choice follows the value or stays where the user put it."""

    AUTO_TRACKING = "auto_tracking"
    MANUALLY_PINNED = "manually_pinned"


class ChoiceSelection:
    """Selected variant of one choice node.

    Starts in AUTO_TRACKING, following the variant detected from the value.
    `select` moves it to MANUALLY_PINNED for the rest of its life, after
    which value changes no longer move the selection.

    Example:
        >>> selection = ChoiceSelection.from_value({"text": "x"}, choices)
        >>> selection.select("number")
        >>> selection.observe({"text": "y"})
        False
        >>> selection.active
        'number'
    """

    def __init__(
        self,
        choices: dict[str, TypeDefinition],
        active: str,
        selector: str | None = None,
    ):
        if active not in choices:
            raise KeyError(f"Unknown choice: {active}")
        self.choices = choices
        self.selector = selector
        self.active = active
        self.mode = SelectionMode.AUTO_TRACKING

    @classmethod
    def from_value(
        cls,
        value: Any,
        choices: dict[str, TypeDefinition],
        selector: str | None = None,
    ) -> "ChoiceSelection":
        detected = detect_active_choice(value, choices, selector)
        return cls(choices, detected or next(iter(choices)), selector)

    @property
    def is_pinned(self) -> bool:
        return self.mode == SelectionMode.MANUALLY_PINNED

    def observe(self, value: Any) -> bool:
        """Follow an external value change. Returns True if the selection moved."""
        if self.is_pinned:
            return False
        detected = detect_active_choice(value, self.choices, self.selector)
        if detected is None or detected == self.active:
            return False
        self.active = detected
        return True

    def select(self, name: str) -> None:
        """User selection; pins the choice.

        Raises:
            KeyError: If ``name`` is not a declared choice.
        """
        if name not in self.choices:
            raise KeyError(f"Unknown choice: {name}")
        self.active = name
        self.mode = SelectionMode.MANUALLY_PINNED


# =============================================================================
# Set Helpers
# =============================================================================


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=repr)


def find_duplicate_indices(values: list[Any]) -> set[int]:
    """Indexes of every item equal to some other item.

    Example:
        >>> sorted(find_duplicate_indices(["a", "b", "a"]))
        [0, 2]
    """
    positions: dict[str, list[int]] = {}
    for index, item in enumerate(values):
        positions.setdefault(_canonical(item), []).append(index)
    return {index for group in positions.values() if len(group) > 1 for index in group}


__all__ = [
    "STRING_PREFERENCE",
    "INTEGER_PREFERENCE",
    "BIG_INTEGER_PREFERENCE",
    "FLOAT_PREFERENCE",
    "detect_type_in_union",
    "Conversion",
    "try_convert",
    "default_cleared_value",
    "upper_case_first",
    "create_union_branches",
    "detect_active_choice",
    "extract_variant_value",
    "serialize_choice_value",
    "SelectionMode",
    "ChoiceSelection",
    "find_duplicate_indices",
]
