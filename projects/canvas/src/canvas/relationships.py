"""Relationship editor: inspect and change an edge's cardinality and name."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from canvas.connections import link_target_field
from canvas.resolver import default_relationship_name
from canvas.types import (
    DEFAULT_RELATIONSHIP,
    DEFAULT_RELATIONSHIP_NAME,
    RelationshipType,
    is_relationship_type,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from canvas.store import SchemaStore, Snapshot
    from canvas.types import Relationship

logger = getLogger(__name__)


@dataclass
class EditSession:
    """Local, uncommitted edits to one relationship.

    Nothing reaches the store until ``save``; ``cancel`` drops the edits.
    """

    editor: RelationshipEditor
    edge_id: str
    relationship: RelationshipType = DEFAULT_RELATIONSHIP
    relationship_name: str = ""
    closed: bool = field(default=False, init=False)

    def select(self, relationship: str) -> None:
        """Choose a cardinality."""
        if not is_relationship_type(relationship):
            msg = f"Unknown relationship type: {relationship}"
            raise ValueError(msg)
        self.relationship = relationship  # pyright: ignore[reportAttributeAccessIssue]

    def save(self) -> bool:
        """Commit the edits; returns whether anything was written."""
        if self.closed:
            return False
        saved = self.editor.commit(self)
        self.closed = True
        return saved

    def cancel(self) -> None:
        """Discard the edits."""
        self.closed = True


class RelationshipEditor:
    """Opens edit sessions for relationships held by a store."""

    def __init__(
        self,
        store: SchemaStore,
        on_saved: Callable[[Relationship], None] | None = None,
    ) -> None:
        """Initialize the editor with a store and an optional save callback."""
        self._store = store
        self._on_saved = on_saved

    def open(self, edge_id: str) -> EditSession | None:
        """Load the edge's current values into a new session."""
        snapshot = self._store.snapshot
        edge = snapshot.get_relationship(edge_id)
        if edge is None:
            logger.debug("No relationship %s to edit", edge_id)
            return None

        name = edge.relationship_name or default_relationship_name(
            snapshot,
            edge.source,
            edge.target,
        )
        return EditSession(
            self,
            edge_id,
            relationship=edge.relationship or DEFAULT_RELATIONSHIP,
            relationship_name=name,
        )

    def commit(self, session: EditSession) -> bool:
        """Write a session's edits to the edge and its target field."""
        edge = self._store.get_relationship(session.edge_id)
        if edge is None or not edge.is_resolvable:
            logger.debug("Relationship %s cannot be saved", session.edge_id)
            return False

        updated = replace(
            edge,
            relationship=session.relationship,
            relationship_name=session.relationship_name.strip()
            or DEFAULT_RELATIONSHIP_NAME,
        )

        def save(snapshot: Snapshot) -> Snapshot:
            return link_target_field(
                snapshot.put_relationship(updated),
                updated,
                session.relationship,
            )

        self._store.apply(save)
        if self._on_saved is not None:
            self._on_saved(updated)
        return True
