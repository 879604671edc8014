# src/keepsake/world/field_group.py
"""Field-group base class and the type registry.

A field group is a named, typed bag of fields attached to a record. Its
class declares how it may repeat on one record:

    class Health(FieldGroup):
        defaults = {"current": 100, "max": 100}

    class Item(FieldGroup):
        allows_repetition = True          # any number, kept in order

    class Stat(FieldGroup):
        allows_repetition = True
        repetition_key = "name"           # any number, keyed by fields["name"]

Types are addressed by a stable string key: the class's type_name, or the
class name with its first letter lowered (EquipmentSlot -> equipmentSlot).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from keepsake.contracts.graph import FieldGroupDescriptor
from keepsake.core.codec import deep_clone
from keepsake.core.constants import ID_KEY


class FieldGroup:
    """Base class for field-group types."""

    type_name: ClassVar[str | None] = None
    allows_repetition: ClassVar[bool] = False
    repetition_key: ClassVar[str | None] = None
    defaults: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, /, **fields: Any) -> None:
        # Defaults are copied so instances never share mutable containers
        self.fields: dict[str, Any] = {**deep_clone(dict(self.defaults)), **fields}

    @classmethod
    def registry_name(cls) -> str:
        """Stable key this type is registered under."""
        if cls.type_name is not None:
            return cls.type_name
        return cls.__name__[:1].lower() + cls.__name__[1:]

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> FieldGroup:
        """Build an instance from a (possibly partial) field map."""
        return cls(**dict(fields))

    @property
    def key(self) -> Any:
        """Value of the repetition key field (None for unkeyed types)."""
        if self.repetition_key is None:
            return None
        return self.fields.get(self.repetition_key)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.fields!r})"


class TypeRegistry:
    """Field-group types by registry name.

    Implements the FieldGroupTypeRegistry protocol consumed by the decoder
    and validator.
    """

    def __init__(self) -> None:
        self._types: dict[str, type[FieldGroup]] = {}
        self._descriptors: dict[str, FieldGroupDescriptor] = {}

    def register(self, group_type: type[FieldGroup]) -> type[FieldGroup]:
        """Register a field-group class. Usable as a class decorator.

        Raises:
            TypeError: If group_type is not a FieldGroup subclass
            ValueError: If a different class already holds the same name, or
                the name is the reserved "id"
        """
        if not (isinstance(group_type, type) and issubclass(group_type, FieldGroup)):
            raise TypeError(f"Expected a FieldGroup subclass, got {group_type!r}")

        name = group_type.registry_name()
        if name == ID_KEY:
            raise ValueError(f"'{ID_KEY}' is reserved for record identifiers and cannot name a field group")
        existing = self._types.get(name)
        if existing is not None and existing is not group_type:
            raise ValueError(f"Field group name '{name}' is already registered to {existing.__qualname__}")

        self._descriptors[name] = FieldGroupDescriptor(
            name=name,
            allows_repetition=group_type.allows_repetition,
            repetition_key=group_type.repetition_key,
            default_fields=MappingProxyType(dict(group_type.defaults)),
            factory=group_type.from_fields,
        )
        self._types[name] = group_type
        return group_type

    def lookup(self, name: str) -> FieldGroupDescriptor | None:
        return self._descriptors.get(name)

    def get_type(self, name: str) -> type[FieldGroup] | None:
        return self._types.get(name)

    def name_of(self, group_type: type[FieldGroup] | str) -> str:
        """Registry name for a class or name.

        Raises:
            KeyError: If the type is not registered
        """
        name = group_type if isinstance(group_type, str) else group_type.registry_name()
        if name not in self._types:
            raise KeyError(f"Field group '{name}' is not registered")
        return name

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)
