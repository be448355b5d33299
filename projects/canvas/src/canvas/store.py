"""Schema Graph Store: the single source of truth for tables and relationships.

Every mutation is a pure ``Snapshot -> Snapshot`` transform. The store swaps the
resulting snapshot in as a whole, so values are never changed in place and each
change is a discrete snapshot that listeners and the undo history can hold on to.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from logging import getLogger
from random import Random
from secrets import token_urlsafe
from types import MappingProxyType
from typing import TYPE_CHECKING

from canvas.types import (
    DEFAULT_TABLE_NAME,
    Field,
    Position,
    Relationship,
    Table,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = getLogger(__name__)

type IdFactory = Callable[[], str]
type Transform = Callable[[Snapshot], Snapshot]
type Listener = Callable[[Snapshot], None]

HISTORY_LIMIT = 100


def new_id() -> str:
    """Generate a random url-safe identifier."""
    return token_urlsafe(16)


def random_position(rng: Random) -> Position:
    """Pick a random on-canvas coordinate for a new table."""
    return Position(rng.random() * 300 + 100, rng.random() * 200 + 100)


def new_table(
    rng: Random,
    id_factory: IdFactory = new_id,
    table_name: str = DEFAULT_TABLE_NAME,
) -> Table:
    """Create an empty table at a random position."""
    return Table(id=id_factory(), table_name=table_name, position=random_position(rng))


def new_field(id_factory: IdFactory = new_id, **changes: object) -> Field:
    """Create a field with the editor defaults."""
    return Field(id_factory(), **changes)  # pyright: ignore[reportArgumentType]


def _frozen[T](items: Mapping[str, T]) -> Mapping[str, T]:
    return MappingProxyType(dict(items))


@dataclass(frozen=True)
class Snapshot:
    """Immutable state of the graph, keyed by table id and relationship id."""

    table_index: Mapping[str, Table] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    relationship_index: Mapping[str, Relationship] = field(
        default_factory=lambda: MappingProxyType({}),
    )

    @classmethod
    def of(
        cls,
        tables: Iterable[Table] = (),
        relationships: Iterable[Relationship] = (),
    ) -> Snapshot:
        """Build a snapshot from ordered collections; later duplicates win."""
        return cls(
            _frozen({table.id: table for table in tables}),
            _frozen({rel.id: rel for rel in relationships}),
        )

    @property
    def tables(self) -> tuple[Table, ...]:
        """Tables in insertion order."""
        return tuple(self.table_index.values())

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        """Relationships in insertion order."""
        return tuple(self.relationship_index.values())

    def get_table(self, table_id: str | None) -> Table | None:
        """Look up a table by id."""
        if table_id is None:
            return None
        return self.table_index.get(table_id)

    def get_relationship(self, edge_id: str) -> Relationship | None:
        """Look up a relationship by id."""
        return self.relationship_index.get(edge_id)

    def put_table(self, table: Table) -> Snapshot:
        """Insert or swap in a table value."""
        return replace(self, table_index=_frozen({**self.table_index, table.id: table}))

    def drop_table(self, table_id: str) -> Snapshot:
        """Remove a table, leaving references to it dangling."""
        tables = {k: v for k, v in self.table_index.items() if k != table_id}
        return replace(self, table_index=_frozen(tables))

    def put_relationship(self, relationship: Relationship) -> Snapshot:
        """Insert or swap in a relationship value."""
        relationships = {**self.relationship_index, relationship.id: relationship}
        return replace(self, relationship_index=_frozen(relationships))

    def drop_relationships(self, predicate: Callable[[Relationship], bool]) -> Snapshot:
        """Remove every relationship matching the predicate."""
        relationships = {
            k: v for k, v in self.relationship_index.items() if not predicate(v)
        }
        return replace(self, relationship_index=_frozen(relationships))

    def map_table(self, table_id: str, fn: Callable[[Table], Table]) -> Snapshot:
        """Swap in ``fn(table)`` for the given table; unchanged if missing."""
        table = self.get_table(table_id)
        return self if table is None else self.put_table(fn(table))

    def map_field(
        self,
        table_id: str,
        field_id: str,
        fn: Callable[[Field], Field],
    ) -> Snapshot:
        """Swap in ``fn(field)`` for one field of one table."""

        def update(table: Table) -> Table:
            return table.with_fields(
                tuple(fn(f) if f.id == field_id else f for f in table.fields),
            )

        return self.map_table(table_id, update)


class SchemaStore:
    """Holds the current snapshot and applies transforms to it."""

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        """Initialize the store with an optional starting snapshot."""
        self._snapshot = snapshot or Snapshot()
        self._undo: list[Snapshot] = []
        self._redo: list[Snapshot] = []
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> Snapshot:
        """The current snapshot."""
        return self._snapshot

    @property
    def tables(self) -> tuple[Table, ...]:
        """Current tables in insertion order."""
        return self._snapshot.tables

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        """Current relationships in insertion order."""
        return self._snapshot.relationships

    def get_table(self, table_id: str | None) -> Table | None:
        """Look up a table by id."""
        return self._snapshot.get_table(table_id)

    def get_relationship(self, edge_id: str) -> Relationship | None:
        """Look up a relationship by id."""
        return self._snapshot.get_relationship(edge_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new snapshot."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def apply(self, transform: Transform) -> Snapshot:
        """Apply a pure transform and swap the result in as one change."""
        previous = self._snapshot
        current = transform(previous)
        if current == previous:
            return current
        self._undo.append(previous)
        del self._undo[:-HISTORY_LIMIT]
        self._redo.clear()
        self._swap(current)
        return current

    def _swap(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        for listener in tuple(self._listeners):
            listener(snapshot)

    def undo(self) -> bool:
        """Restore the previous snapshot, if there is one."""
        if not self._undo:
            return False
        self._redo.append(self._snapshot)
        self._swap(self._undo.pop())
        return True

    def redo(self) -> bool:
        """Re-apply the last undone snapshot, if there is one."""
        if not self._redo:
            return False
        self._undo.append(self._snapshot)
        self._swap(self._redo.pop())
        return True

    def history(self) -> Iterator[Snapshot]:
        """Iterate over the undo history, oldest first."""
        return iter(tuple(self._undo))

    def replace(
        self,
        tables: Iterable[Table],
        relationships: Iterable[Relationship],
    ) -> Snapshot:
        """Swap both collections at once."""
        snapshot = Snapshot.of(tables, relationships)
        logger.debug(
            "Replacing graph with %d tables and %d relationships",
            len(snapshot.table_index),
            len(snapshot.relationship_index),
        )
        return self.apply(lambda _: snapshot)

    def add_table(self, table: Table) -> Snapshot:
        """Append a table."""
        return self.apply(lambda s: s.put_table(table))

    def update_table(self, table_id: str, fn: Callable[[Table], Table]) -> Snapshot:
        """Swap in ``fn(table)``; a no-op for unknown ids."""
        return self.apply(lambda s: s.map_table(table_id, fn))

    def remove_table(self, table_id: str, *, prune_edges: bool = False) -> Snapshot:
        """Delete a table; touching edges stay dangling unless pruned."""

        def remove(snapshot: Snapshot) -> Snapshot:
            snapshot = snapshot.drop_table(table_id)
            if prune_edges:
                snapshot = snapshot.drop_relationships(lambda r: r.touches(table_id))
            return snapshot

        return self.apply(remove)

    def add_field(self, table_id: str, new: Field) -> Snapshot:
        """Append a field to a table."""
        return self.update_table(
            table_id,
            lambda table: table.with_fields((*table.fields, new)),
        )

    def update_field(
        self,
        table_id: str,
        field_id: str,
        fn: Callable[[Field], Field],
    ) -> Snapshot:
        """Swap in ``fn(field)`` for one field."""
        return self.apply(lambda s: s.map_field(table_id, field_id, fn))

    def remove_field(self, table_id: str, field_id: str) -> Snapshot:
        """Remove a field from a table."""
        return self.update_table(
            table_id,
            lambda table: table.with_fields(
                tuple(f for f in table.fields if f.id != field_id),
            ),
        )

    def add_relationship(self, relationship: Relationship) -> Snapshot:
        """Append a relationship."""
        return self.apply(lambda s: s.put_relationship(relationship))

    def update_relationship(
        self,
        edge_id: str,
        fn: Callable[[Relationship], Relationship],
    ) -> Snapshot:
        """Swap in ``fn(relationship)``; a no-op for unknown ids."""

        def update(snapshot: Snapshot) -> Snapshot:
            relationship = snapshot.get_relationship(edge_id)
            if relationship is None:
                return snapshot
            return snapshot.put_relationship(fn(relationship))

        return self.apply(update)

    def remove_relationship(self, edge_id: str) -> Snapshot:
        """Delete a relationship; the target field keeps its foreign key flags."""
        return self.apply(lambda s: s.drop_relationships(lambda r: r.id == edge_id))
