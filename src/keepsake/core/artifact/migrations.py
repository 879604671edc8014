# src/keepsake/core/artifact/migrations.py
"""Schema migration registry.

Migrations form a directed graph (networkx DiGraph): nodes are schema
versions, edges carry one pure document -> document transform each.
migrate() upgrades a document along the shortest edge path, found
breadth-first with ties broken by edge registration order, and stamps
the reached version onto the document's meta block after every step.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from itertools import count
from typing import Any

import networkx as nx
import structlog

from keepsake.contracts.errors import MigrationError
from keepsake.core.constants import CURRENT_SCHEMA_VERSION, LEGACY_SCHEMA_VERSION, META_KEY

type MigrationFn = Callable[[Any], Any]


def schema_version_of(document: Mapping[str, Any]) -> Any:
    """Declared schema version; legacy version 0 when meta or the field is absent or null."""
    meta = document.get(META_KEY)
    if not isinstance(meta, Mapping):
        return LEGACY_SCHEMA_VERSION
    version = meta.get("schemaVersion")
    return LEGACY_SCHEMA_VERSION if version is None else version


def _is_version(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True, slots=True)
class MigrationStep:
    """One registered edge of the migration graph."""

    from_version: int
    to_version: int
    name: str


class MigrationRegistry:
    """Directed graph of schema-version upgrades.

    Example:
        registry = MigrationRegistry()
        registry.register(0, 1, add_meta_block)
        registry.register(1, 2, rename_inventory)
        registry.migrate(document, 2)
    """

    def __init__(self) -> None:
        self._graph: nx.DiGraph[int] = nx.DiGraph()
        self._sequence = count()
        self._logger = structlog.get_logger(__name__)

    def register(self, from_version: int, to_version: int, transform: MigrationFn, *, name: str | None = None) -> None:
        """Add (or replace) the edge from_version -> to_version.

        Args:
            from_version: Version the transform accepts
            to_version: Version the transform produces
            transform: Pure document -> document function
            name: Label for listings and logs (defaults to the function name)

        Raises:
            MigrationError: If transform is not callable, a version is not a
                non-negative integer, or both versions are equal
        """
        if not callable(transform):
            raise MigrationError(f"Migration {from_version} -> {to_version} must be a callable, got {type(transform).__name__}")
        if not (_is_version(from_version) and _is_version(to_version)):
            raise MigrationError(f"Migration versions must be non-negative integers, got {from_version!r} -> {to_version!r}")
        if from_version == to_version:
            raise MigrationError(f"Migration {from_version} -> {to_version} does not change the version")

        label = name if name is not None else getattr(transform, "__name__", repr(transform))
        existing = self._graph.get_edge_data(from_version, to_version)
        order = existing["order"] if existing is not None else next(self._sequence)
        self._graph.add_edge(from_version, to_version, transform=transform, name=label, order=order)
        self._logger.debug("migration_registered", from_version=from_version, to_version=to_version, name=label)

    def has_migration(self, from_version: int, to_version: int) -> bool:
        """Whether at least one registered step leads from from_version to to_version.

        False when the versions are equal: no migration is needed, so none exists.
        """
        return bool(self.path(from_version, to_version))

    def path(self, from_version: int, to_version: int) -> list[MigrationStep] | None:
        """Shortest upgrade path, or None if to_version is unreachable.

        Breadth-first over successors in insertion order, so among equally
        short paths the one using earlier-registered edges wins. An empty
        list means the versions are equal.
        """
        if from_version == to_version:
            return []
        if from_version not in self._graph:
            return None

        parents: dict[int, int] = {}
        visited = {from_version}
        queue = deque([from_version])
        while queue:
            version = queue.popleft()
            for successor in self._graph.successors(version):
                if successor in visited:
                    continue
                parents[successor] = version
                if successor == to_version:
                    return self._unwind(parents, from_version, to_version)
                visited.add(successor)
                queue.append(successor)
        return None

    def _unwind(self, parents: dict[int, int], source: int, target: int) -> list[MigrationStep]:
        steps: list[MigrationStep] = []
        version = target
        while version != source:
            previous = parents[version]
            steps.append(MigrationStep(previous, version, self._graph.edges[previous, version]["name"]))
            version = previous
        steps.reverse()
        return steps

    def migrate(self, document: Any, target_version: int = CURRENT_SCHEMA_VERSION) -> Any:
        """Upgrade document to target_version.

        Returns the input object itself when it is already at the target.
        After each step the step's target version is written onto the meta
        block the transform returned, if it returned one; no meta block is
        created.

        Raises:
            MigrationError: If no path leads from the document's version to
                target_version
        """
        source_version = schema_version_of(document)
        if source_version == target_version:
            return document

        steps = self.path(source_version, target_version) if _is_version(source_version) else None
        if steps is None:
            raise MigrationError(
                f"No migration path from version {source_version} to {target_version}",
                source_version=source_version,
                target_version=target_version,
            )

        for step in steps:
            transform: MigrationFn = self._graph.edges[step.from_version, step.to_version]["transform"]
            document = transform(document)
            meta = document.get(META_KEY) if isinstance(document, Mapping) else None
            if isinstance(meta, dict):
                meta["schemaVersion"] = step.to_version
            self._logger.debug(
                "migration_step_applied",
                from_version=step.from_version,
                to_version=step.to_version,
                name=step.name,
            )
        return document

    def migrations(self) -> list[MigrationStep]:
        """Registered edges in registration order."""
        edges = sorted(self._graph.edges(data=True), key=lambda edge: edge[2]["order"])
        return [MigrationStep(source, target, data["name"]) for source, target, data in edges]

    def clear(self) -> None:
        self._graph.clear()

    def __len__(self) -> int:
        return self._graph.number_of_edges()
