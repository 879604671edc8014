# src/keepsake/contracts/graph.py
"""Collaborator surfaces the artifact engine consumes.

The engine never reaches into a concrete storage engine. It talks to:

- a live graph: iterate records, fetch-or-create a record by id
- live records: id, persistable flag, field groups by name, attach a
  field-group value, suspend/resume index maintenance
- a type registry: look up a field-group descriptor by name

keepsake.world provides an in-memory implementation of all three.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, runtime_checkable

from keepsake.contracts.enums import GroupShape


@runtime_checkable
class FieldGroupInstance(Protocol):
    """One concrete field map attached to a record."""

    fields: MutableMapping[str, Any]


@dataclass(frozen=True, slots=True)
class FieldGroupDescriptor:
    """Registry entry describing a field-group type.

    Attributes:
        name: Stable registry key (the field-group name used in documents)
        allows_repetition: Whether a record may hold more than one instance
        repetition_key: Field whose value keys repeated instances (None = ordered list)
        default_fields: Field set a fresh instance starts from
        factory: Builds an instance from a field map
    """

    name: str
    allows_repetition: bool
    repetition_key: str | None
    default_fields: Mapping[str, Any]
    factory: Callable[[dict[str, Any]], FieldGroupInstance] = field(compare=False)

    def __post_init__(self) -> None:
        if self.repetition_key is not None and not self.allows_repetition:
            raise ValueError(f"Field group '{self.name}' declares repetition_key '{self.repetition_key}' without allowing repetition")

    @property
    def shape(self) -> GroupShape:
        """Shape this type's values take on a record."""
        if not self.allows_repetition:
            return GroupShape.SINGLE
        if self.repetition_key is not None:
            return GroupShape.KEYED
        return GroupShape.LIST


# =============================================================================
# Field-group values: explicit tagged union
# =============================================================================


@dataclass(slots=True)
class SingleGroup:
    """Exactly one instance."""

    shape: ClassVar[GroupShape] = GroupShape.SINGLE

    group: FieldGroupInstance

    def instances(self) -> Iterator[FieldGroupInstance]:
        yield self.group


@dataclass(slots=True)
class ListGroup:
    """Ordered instances, repetition without keys."""

    shape: ClassVar[GroupShape] = GroupShape.LIST

    groups: list[FieldGroupInstance] = field(default_factory=list)

    def instances(self) -> Iterator[FieldGroupInstance]:
        yield from self.groups


@dataclass(slots=True)
class KeyedGroup:
    """Instances keyed by the type's repetition key."""

    shape: ClassVar[GroupShape] = GroupShape.KEYED

    groups: dict[str, FieldGroupInstance] = field(default_factory=dict)

    def instances(self) -> Iterator[FieldGroupInstance]:
        yield from self.groups.values()


type FieldGroupValue = SingleGroup | ListGroup | KeyedGroup


# =============================================================================
# Live graph protocols
# =============================================================================


@runtime_checkable
class LiveRecord(Protocol):
    """A uniquely identified record in a live graph."""

    @property
    def id(self) -> str: ...

    @property
    def persistable(self) -> bool: ...

    def field_groups(self) -> Mapping[str, FieldGroupValue]:
        """Field-group values by name, in attachment order."""
        ...

    def attach(self, name: str, value: FieldGroupValue) -> None:
        """Attach (or replace) the field-group value stored under name."""
        ...

    def suspend_indexing(self) -> None:
        """Stop recomputing index/query membership on each change."""
        ...

    def resume_indexing(self) -> None:
        """Re-enable indexing and recompute membership exactly once."""
        ...


@runtime_checkable
class LiveGraph(Protocol):
    """A mutable collection of records addressed by id."""

    def records(self) -> Iterable[LiveRecord]:
        """Iterate every record currently in the graph."""
        ...

    def get(self, record_id: str) -> LiveRecord | None:
        """Return the record with this id, or None."""
        ...

    def get_or_create(self, record_id: str) -> LiveRecord:
        """Return the record with this id, creating an empty one if absent."""
        ...


@runtime_checkable
class FieldGroupTypeRegistry(Protocol):
    """Lookup of field-group types by their stable name."""

    def lookup(self, name: str) -> FieldGroupDescriptor | None:
        """Return the descriptor registered under name, or None."""
        ...
