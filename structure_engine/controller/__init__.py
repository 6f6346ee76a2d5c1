"""Controller module - mutable value handles over a value tree.

Example usage:
    >>> from structure_engine.controller import create_controller
    >>> root = create_controller({"tags": ["a"]})
    >>> root.object().field("tags").array().push("b")
    >>> root.value
    {'tags': ['a', 'b']}
"""

from .lib import (
    ArrayController,
    Controller,
    ControllerError,
    ControllerValidation,
    ObjectController,
    Path,
    PathSegment,
    UnionBranch,
    UnionController,
    ValidationState,
    create_controller,
    map_validation,
)

__all__ = [
    # Paths
    "Path",
    "PathSegment",
    # Validation status
    "ControllerError",
    "ControllerValidation",
    "ValidationState",
    "map_validation",
    # Controllers
    "Controller",
    "ObjectController",
    "ArrayController",
    "UnionBranch",
    "UnionController",
    "create_controller",
]
