"""Context module - immutable traversal state for control dispatch.

Example usage:
    >>> from structure_engine.context import create_structure_context
    >>> ctx = create_structure_context(schema, locale="de")
    >>> child = ctx.with_updates(definition=prop_def).append("firstName")
    >>> child.label
    'First name'
"""

from .lib import StructureContext, create_structure_context, humanize

__all__ = [
    "StructureContext",
    "create_structure_context",
    "humanize",
]
