# tests/fixtures/groups.py
"""Field-group types for tests, modelling a small inventory game."""

from __future__ import annotations

from keepsake.world import FieldGroup, TypeRegistry


class Position(FieldGroup):
    defaults = {"x": 0, "y": 0}


class Health(FieldGroup):
    defaults = {"current": 100, "max": 100}


class Item(FieldGroup):
    allows_repetition = True
    defaults = {"name": "", "weight": 1}


class Stat(FieldGroup):
    allows_repetition = True
    repetition_key = "name"
    defaults = {"name": "", "value": 0}


class Inventory(FieldGroup):
    defaults = {"items": []}


class EquipmentSlot(FieldGroup):
    allows_repetition = True
    repetition_key = "slot"
    defaults = {"slot": "", "content": None}


class Container(FieldGroup):
    defaults = {"contents": [], "owner": None}


class Ledger(FieldGroup):
    defaults = {"balance": 0, "opened": None}


ALL_TYPES: tuple[type[FieldGroup], ...] = (Position, Health, Item, Stat, Inventory, EquipmentSlot, Container, Ledger)


def build_registry() -> TypeRegistry:
    registry = TypeRegistry()
    for group_type in ALL_TYPES:
        registry.register(group_type)
    return registry
