# src/keepsake/world/record.py
"""Live records of the in-memory world."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from keepsake.contracts.enums import GroupShape
from keepsake.contracts.graph import FieldGroupValue, KeyedGroup, ListGroup, SingleGroup
from keepsake.world.field_group import FieldGroup

if TYPE_CHECKING:
    from keepsake.world.world import World


class Record:
    """A uniquely identified record holding named field-group values.

    Implements the LiveRecord protocol. Field groups are addressed by
    registry name or by FieldGroup class. Each change refreshes the
    world's membership index unless indexing is suspended, in which case
    one refresh happens on resume.
    """

    def __init__(self, world: World, record_id: str, *, persistable: bool = True) -> None:
        self._world = world
        self._id = record_id
        self._groups: dict[str, FieldGroupValue] = {}
        self._indexing_suspended = False
        self.persistable = persistable

    @property
    def id(self) -> str:
        return self._id

    @property
    def world(self) -> World:
        return self._world

    def field_groups(self) -> Mapping[str, FieldGroupValue]:
        return MappingProxyType(self._groups)

    def attach(self, name: str, value: FieldGroupValue) -> None:
        self._groups[name] = value
        self._changed()

    def suspend_indexing(self) -> None:
        self._indexing_suspended = True

    def resume_indexing(self) -> None:
        self._indexing_suspended = False
        self._world._reindex(self)

    # =========================================================================
    # Convenience access by type
    # =========================================================================

    def add(self, group: FieldGroup) -> FieldGroup:
        """Attach a field-group instance according to its type's repetition policy.

        Raises:
            KeyError: If the group's type is not registered with the world
            ValueError: If a non-repeating group is already present, or a
                keyed group has an empty key
        """
        name = self._world.types.name_of(type(group))
        descriptor = self._world.types.lookup(name)
        assert descriptor is not None  # name_of() guarantees registration
        current = self._groups.get(name)

        match descriptor.shape:
            case GroupShape.SINGLE:
                if current is not None:
                    raise ValueError(f"Record '{self._id}' already has a '{name}' field group (repetition not allowed)")
                self._groups[name] = SingleGroup(group)
            case GroupShape.LIST:
                if not isinstance(current, ListGroup):
                    current = ListGroup()
                    self._groups[name] = current
                current.groups.append(group)
            case GroupShape.KEYED:
                key = group.key
                if not key:
                    raise ValueError(f"'{name}' field group has an empty key (repetition_key '{descriptor.repetition_key}')")
                if not isinstance(current, KeyedGroup):
                    current = KeyedGroup()
                    self._groups[name] = current
                current.groups[str(key)] = group

        self._changed()
        return group

    def has(self, group_type: type[FieldGroup] | str, key: str | None = None) -> bool:
        """Whether a field group (optionally a specific keyed instance) is present."""
        value = self._groups.get(self._name(group_type))
        if value is None:
            return False
        if key is not None:
            return isinstance(value, KeyedGroup) and key in value.groups
        return True

    def get(self, group_type: type[FieldGroup] | str, key: str | None = None) -> Any:
        """Field-group contents by type.

        Returns the instance for single groups, the list for list groups,
        the dict (or one entry, if key is given) for keyed groups, and None
        when absent.
        """
        value = self._groups.get(self._name(group_type))
        match value:
            case None:
                return None
            case SingleGroup(group=group):
                return group
            case ListGroup(groups=groups):
                return groups
            case KeyedGroup(groups=groups):
                return groups.get(key) if key is not None else groups
        raise TypeError(f"Unexpected field-group value {value!r}")

    def remove(self, group_type: type[FieldGroup] | str, key: str | None = None) -> bool:
        """Remove a field group, or one keyed instance of it.

        Returns:
            True if something was removed
        """
        name = self._name(group_type)
        value = self._groups.get(name)
        if value is None:
            return False
        if key is not None:
            if not isinstance(value, KeyedGroup) or key not in value.groups:
                return False
            del value.groups[key]
            if not value.groups:
                del self._groups[name]
        else:
            del self._groups[name]
        self._changed()
        return True

    def destroy(self) -> None:
        self._world.destroy_record(self._id)

    def _name(self, group_type: type[FieldGroup] | str) -> str:
        return group_type if isinstance(group_type, str) else group_type.registry_name()

    def _changed(self) -> None:
        if not self._indexing_suspended:
            self._world._reindex(self)

    def __repr__(self) -> str:
        return f"Record(id={self._id!r}, groups={list(self._groups)!r})"
