"""Reference resolution and derived relationship names."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Literal, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterator

    from canvas.store import SchemaStore, Snapshot
    from canvas.types import FieldRef

logger = getLogger(__name__)

UNKNOWN_TABLE = "UNKNOWN_TABLE"
UNKNOWN_FIELD = "UNKNOWN_FIELD"

type DanglingKind = Literal["field", "edge"]


class DanglingReference(NamedTuple):
    """A foreign key or edge endpoint that no longer resolves."""

    kind: DanglingKind
    owner: str  # table id for fields, edge id for edges
    detail: str


def table_name(snapshot: Snapshot, table_id: str | None) -> str:
    """Return the display name of a table, or the unknown-table sentinel."""
    table = snapshot.get_table(table_id)
    return table.table_name if table and table.table_name else UNKNOWN_TABLE


def field_name(snapshot: Snapshot, ref: FieldRef) -> str:
    """Return the name of a referenced field, or the unknown-field sentinel."""
    table = snapshot.get_table(ref.node_id)
    target = table.get_field(ref.field_id) if table else None
    return target.name if target and target.name else UNKNOWN_FIELD


def derive_relationship_name(source_name: str, target_name: str) -> str:
    """Join two table names into the default relationship name."""
    return f"{source_name}_{target_name}"


def default_relationship_name(
    snapshot: Snapshot,
    source: str | None,
    target: str | None,
) -> str:
    """Derive ``<source>_<target>`` from the current table names."""
    return derive_relationship_name(
        table_name(snapshot, source),
        table_name(snapshot, target),
    )


def propagate_table_name(snapshot: Snapshot, table_id: str, new_name: str) -> Snapshot:
    """Recompute the name of every relationship touching ``table_id``.

    The renamed side takes ``new_name`` and the other side is resolved as it
    stands. Names are always overwritten: a customized name is
    indistinguishable from one that merely equals the derived default.
    """

    def side(endpoint: str | None) -> str:
        return new_name if endpoint == table_id else table_name(snapshot, endpoint)

    updated = snapshot
    for relationship in snapshot.relationships:
        if not relationship.touches(table_id):
            continue
        name = derive_relationship_name(
            side(relationship.source),
            side(relationship.target),
        )
        updated = updated.put_relationship(
            replace(relationship, relationship_name=name),
        )
    return updated


def rename_table(store: SchemaStore, table_id: str, new_name: str) -> Snapshot:
    """Rename a table and refresh the names of its relationships in one change."""

    def rename(snapshot: Snapshot) -> Snapshot:
        if snapshot.get_table(table_id) is None:
            logger.debug("Ignoring rename of unknown table %s", table_id)
            return snapshot
        renamed = snapshot.map_table(
            table_id,
            lambda table: replace(table, table_name=new_name),
        )
        return propagate_table_name(renamed, table_id, new_name)

    return store.apply(rename)


def dangling_references(snapshot: Snapshot) -> Iterator[DanglingReference]:
    """Yield every field reference and edge endpoint that does not resolve."""
    for table in snapshot.tables:
        for field in table.fields:
            ref = field.foreign_ref
            if not field.is_foreign or ref is None:
                continue
            referenced = snapshot.get_table(ref.node_id)
            if referenced is None or referenced.get_field(ref.field_id) is None:
                yield DanglingReference(
                    "field",
                    table.id,
                    f"{table.table_name}.{field.name} -> {ref.node_id}/{ref.field_id}",
                )

    for relationship in snapshot.relationships:
        missing = [
            endpoint
            for endpoint in (relationship.source, relationship.target)
            if snapshot.get_table(endpoint) is None
        ]
        if missing:
            yield DanglingReference(
                "edge",
                relationship.id,
                f"{relationship.relationship_name}: missing {', '.join(map(str, missing))}",
            )
