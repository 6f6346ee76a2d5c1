"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Sample JSON Structure documents shared across test modules
"""

from __future__ import annotations

from typing import Any

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        if not any(item.iter_markers()):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Schema Fixtures
# =============================================================================


@pytest.fixture
def person_schema() -> dict[str, Any]:
    """Document with a `$root`, references and a nested required object.

    Returns:
        A schema whose root is ``Person``.
    """
    return {
        "$schema": "https://json-structure.org/meta/core/v0/#",
        "$id": "https://example.com/person",
        "name": "PersonDocument",
        "$root": "#/definitions/Person",
        "definitions": {
            "Address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string"},
                    "city": {"type": "string", "default": "Springfield"},
                },
                "required": ["city"],
            },
            "Person": {
                "type": "object",
                "name": "Person",
                "altnames": {"lang:de": "Person (de)"},
                "properties": {
                    "name": {"type": "string", "description": "Full name"},
                    "age": {"type": "uint8", "maximum": 130},
                    "email": {"type": ["string", "null"], "format": "email"},
                    "address": {"type": {"$ref": "#/definitions/Address"}},
                    "tags": {"type": "set", "items": {"type": "string"}},
                },
                "required": ["name", "address"],
            },
        },
    }


@pytest.fixture
def shape_schema() -> dict[str, Any]:
    """Document exercising choices, tuples, maps and unions.

    Returns:
        A schema whose root is ``Drawing``.
    """
    return {
        "$root": "#/definitions/Drawing",
        "definitions": {
            "Point": {
                "type": "tuple",
                "tuple": ["x", "y"],
                "properties": {
                    "x": {"type": "int32", "default": 0},
                    "y": {"type": "int32", "default": 0},
                },
            },
            "Shape": {
                "type": "choice",
                "selector": "kind",
                "choices": {
                    "circle": {
                        "type": "object",
                        "properties": {"radius": {"type": "double"}},
                        "required": ["radius"],
                    },
                    "square": {
                        "type": "object",
                        "properties": {"side": {"type": "double"}},
                    },
                },
            },
            "Drawing": {
                "type": "object",
                "properties": {
                    "origin": {"type": {"$ref": "#/definitions/Point"}},
                    "shapes": {
                        "type": "array",
                        "items": {"type": {"$ref": "#/definitions/Shape"}},
                    },
                    "labels": {"type": "map", "values": {"type": "string"}},
                    "weight": {"type": ["int32", "string", "null"]},
                },
                "required": ["origin"],
            },
        },
    }
