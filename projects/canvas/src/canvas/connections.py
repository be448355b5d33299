"""Connection rules for drag-to-connect gestures."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, NamedTuple

from canvas.resolver import default_relationship_name
from canvas.store import new_id
from canvas.types import DEFAULT_RELATIONSHIP, FieldRef, Relationship

if TYPE_CHECKING:
    from canvas.store import IdFactory, SchemaStore, Snapshot
    from canvas.types import RelationshipType

logger = getLogger(__name__)

SOURCE_SUFFIX = "-out"
TARGET_SUFFIX = "-in"


class Connection(NamedTuple):
    """A proposed edge as reported by the diagram surface."""

    source: str | None = None
    source_handle: str | None = None
    target: str | None = None
    target_handle: str | None = None


def source_handle(field_id: str) -> str:
    """Handle id of a field's outgoing connection point."""
    return f"{field_id}{SOURCE_SUFFIX}"


def target_handle(field_id: str) -> str:
    """Handle id of a field's incoming connection point."""
    return f"{field_id}{TARGET_SUFFIX}"


def field_id_from_handle(handle: str) -> str:
    """Strip the direction suffix from a handle id."""
    return handle.removesuffix(SOURCE_SUFFIX).removesuffix(TARGET_SUFFIX)


def link_target_field(
    snapshot: Snapshot,
    relationship: Relationship,
    relation_type: RelationshipType | None = None,
) -> Snapshot:
    """Point the relationship's target field at its source field.

    Only the target table's field with the matching handle changes.
    """
    if not relationship.is_resolvable:
        return snapshot
    # is_resolvable guarantees every endpoint below is set
    target = str(relationship.target)
    ref = FieldRef(
        str(relationship.source),
        field_id_from_handle(str(relationship.source_handle)),
    )
    handle = relationship.target_handle

    table = snapshot.get_table(target)
    if table is None:
        return snapshot
    return snapshot.put_table(
        table.with_fields(
            tuple(
                f.with_foreign_ref(ref, relation_type)
                if target_handle(f.id) == handle
                else f
                for f in table.fields
            ),
        ),
    )


def connect(
    store: SchemaStore,
    connection: Connection,
    id_factory: IdFactory = new_id,
) -> Relationship | None:
    """Create a relationship for the connection and mark the target field.

    Incomplete gestures are ignored. Duplicate edges between the same pair of
    fields are allowed and tracked independently.
    """
    if not connection.source or not connection.target:
        logger.debug("Ignoring incomplete connection %s", connection)
        return None

    created: list[Relationship] = []

    def add(snapshot: Snapshot) -> Snapshot:
        relationship = Relationship(
            id=id_factory(),
            source=connection.source,
            source_handle=connection.source_handle,
            target=connection.target,
            target_handle=connection.target_handle,
            relationship=DEFAULT_RELATIONSHIP,
            relationship_name=default_relationship_name(
                snapshot,
                connection.source,
                connection.target,
            ),
        )
        created.append(relationship)
        return link_target_field(snapshot.put_relationship(relationship), relationship)

    store.apply(add)
    logger.debug("Connected %s as %s", connection, created[0].relationship_name)
    return created[0]


def disconnect(store: SchemaStore, edge_id: str) -> bool:
    """Remove a relationship; returns whether it existed."""
    if store.get_relationship(edge_id) is None:
        return False
    store.remove_relationship(edge_id)
    return True
