# src/keepsake/world/world.py
"""In-memory live graph.

World implements the LiveGraph protocol the encoder and decoder consume.
It also keeps a small membership index (field-group name -> records that
hold it) so callers can find records by type; listeners registered with
on_membership_change() observe every index refresh.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from keepsake.contracts.graph import KeyedGroup, ListGroup, SingleGroup
from keepsake.core.codec import deep_clone
from keepsake.core.identifiers import new_record_id, validate_record_id
from keepsake.world.field_group import TypeRegistry
from keepsake.world.record import Record

type MembershipListener = Callable[[Record], None]


class World:
    """A mutable collection of records addressed by id."""

    def __init__(self, types: TypeRegistry | None = None) -> None:
        self._types = types if types is not None else TypeRegistry()
        self._records: dict[str, Record] = {}
        self._index: dict[str, dict[str, Record]] = {}
        self._listeners: list[MembershipListener] = []

    @property
    def types(self) -> TypeRegistry:
        return self._types

    # =========================================================================
    # LiveGraph protocol
    # =========================================================================

    def records(self) -> Iterator[Record]:
        # Snapshot so callers may create or destroy records while iterating
        return iter(list(self._records.values()))

    def get(self, record_id: str) -> Record | None:
        return self._records.get(record_id)

    def get_or_create(self, record_id: str) -> Record:
        existing = self._records.get(record_id)
        if existing is not None:
            return existing
        return self.create_record(record_id)

    # =========================================================================
    # Record lifecycle
    # =========================================================================

    def create_record(self, record_id: str | None = None, *, persistable: bool = True) -> Record:
        """Create an empty record.

        Args:
            record_id: Id to use; a fresh uuid4 hex id when omitted
            persistable: False marks the record transient (skipped by saves
                that exclude transient records)

        Raises:
            ValueError: If record_id is empty or already in use
        """
        if record_id is None:
            record_id = new_record_id()
        validate_record_id(record_id, "create_record")
        if record_id in self._records:
            raise ValueError(f"Record id '{record_id}' already exists in this world")

        record = Record(self, record_id, persistable=persistable)
        self._records[record_id] = record
        return record

    def destroy_record(self, record_id: str) -> bool:
        """Remove a record and drop it from the membership index.

        Returns:
            True if the record existed
        """
        record = self._records.pop(record_id, None)
        if record is None:
            return False
        for members in self._index.values():
            members.pop(record_id, None)
        return True

    def clear(self) -> None:
        self._records.clear()
        self._index.clear()

    def clone_record(self, record: Record) -> Record:
        """Copy a record's field groups onto a new record with a fresh id.

        Field maps are deep-copied; references to other records stay
        references to the same records.

        Raises:
            CyclicStructureError: If a field value contains itself
        """
        clone = self.create_record(persistable=record.persistable)
        clone.suspend_indexing()
        for name, value in record.field_groups().items():
            descriptor = self._types.lookup(name)
            if descriptor is None:
                raise KeyError(f"Field group '{name}' is not registered")
            match value:
                case SingleGroup(group=group):
                    clone.attach(name, SingleGroup(descriptor.factory(deep_clone(group.fields))))
                case ListGroup(groups=groups):
                    clone.attach(name, ListGroup([descriptor.factory(deep_clone(g.fields)) for g in groups]))
                case KeyedGroup(groups=groups):
                    clone.attach(name, KeyedGroup({k: descriptor.factory(deep_clone(g.fields)) for k, g in groups.items()}))
        clone.resume_indexing()
        return clone

    # =========================================================================
    # Membership index
    # =========================================================================

    def members(self, name: str) -> list[Record]:
        """Records currently holding a field group with this name."""
        return list(self._index.get(name, {}).values())

    def on_membership_change(self, listener: MembershipListener) -> None:
        """Call listener(record) after every membership refresh."""
        self._listeners.append(listener)

    def _reindex(self, record: Record) -> None:
        if record.id not in self._records:
            return
        held = set(record.field_groups())
        for name, members in self._index.items():
            if name not in held:
                members.pop(record.id, None)
        for name in held:
            self._index.setdefault(name, {})[record.id] = record
        for listener in self._listeners:
            listener(record)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records
