# src/keepsake/world/__init__.py
"""In-memory live graph: records, field groups, and the type registry.

A reference implementation of the collaborator surfaces the artifact
engine reads from and writes into.
"""

from keepsake.world.field_group import FieldGroup, TypeRegistry
from keepsake.world.record import Record
from keepsake.world.world import World

__all__ = [
    "FieldGroup",
    "Record",
    "TypeRegistry",
    "World",
]
