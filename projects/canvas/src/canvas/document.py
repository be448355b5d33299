"""JSON schema document: the persisted export/import format."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from math import isfinite
from random import Random
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

from canvas.store import new_id, random_position
from canvas.types import (
    DEFAULT_EDGE_TYPE,
    DEFAULT_FIELD_NAME,
    DEFAULT_RELATIONSHIP,
    DEFAULT_RELATIONSHIP_NAME,
    DEFAULT_TABLE_NAME,
    Field,
    FieldRef,
    FieldType,
    Position,
    Relationship,
    RelationshipType,
    Table,
    is_relationship_type,
    normalize_length,
)

if TYPE_CHECKING:
    from canvas.store import IdFactory, Snapshot

logger = getLogger(__name__)

DOCUMENT_VERSION = "1.1.0"
MAX_LENGTH_DIGITS = 9


class DocumentError(ValueError):
    """The document cannot be read as a schema export."""


class PositionSchema(TypedDict):
    """Canvas coordinates."""

    x: float
    y: float


class FieldRefSchema(TypedDict):
    """Foreign key target."""

    nodeId: str
    fieldId: str


class FieldSchema(TypedDict):
    """Exported field with every flag spelled out."""

    id: str
    name: str
    type: str
    length: int | None
    isPrimary: bool
    isRequired: bool
    isUnique: bool
    isForeign: bool
    foreignRef: FieldRefSchema | None
    relationType: RelationshipType | None


class TableSchema(TypedDict):
    """Exported table."""

    id: str
    position: PositionSchema
    tableName: str
    fields: list[FieldSchema]
    primaryKeys: list[str]


class EdgeDataSchema(TypedDict):
    """Relationship payload of an edge."""

    relationship: RelationshipType
    relationshipName: str


class EdgeSchema(TypedDict):
    """Exported relationship edge."""

    id: str
    type: str
    source: str | None
    sourceHandle: str | None
    target: str | None
    targetHandle: str | None
    data: EdgeDataSchema


class MetadataSchema(TypedDict):
    """Export metadata."""

    exportedAt: str
    projectName: str


class SchemaDocument(TypedDict):
    """Root of the persisted document."""

    schema: list[TableSchema]
    edges: list[EdgeSchema]
    version: NotRequired[str]
    metadata: NotRequired[MetadataSchema]


def _field_to_schema(field: Field) -> FieldSchema:
    ref = field.foreign_ref
    return {
        "id": field.id,
        "name": field.name,
        "type": str(field.type),
        "length": field.length or None,
        "isPrimary": field.is_primary,
        "isRequired": field.is_required,
        "isUnique": field.is_unique,
        "isForeign": field.is_foreign,
        "foreignRef": {"nodeId": ref.node_id, "fieldId": ref.field_id} if ref else None,
        "relationType": field.relation_type or None,
    }


def _table_to_schema(table: Table) -> TableSchema:
    return {
        "id": table.id,
        "position": {"x": table.position.x, "y": table.position.y},
        "tableName": table.table_name,
        "fields": [_field_to_schema(field) for field in table.fields],
        "primaryKeys": list(table.primary_keys),
    }


def _edge_to_schema(relationship: Relationship) -> EdgeSchema:
    return {
        "id": relationship.id,
        "type": relationship.edge_type or DEFAULT_EDGE_TYPE,
        "source": relationship.source,
        "sourceHandle": relationship.source_handle,
        "target": relationship.target,
        "targetHandle": relationship.target_handle,
        "data": {
            "relationship": relationship.relationship or DEFAULT_RELATIONSHIP,
            "relationshipName": relationship.relationship_name
            or DEFAULT_RELATIONSHIP_NAME,
        },
    }


def snapshot_to_document(
    snapshot: Snapshot,
    project_name: str,
    exported_at: datetime | None = None,
) -> SchemaDocument:
    """Project the graph onto the export document."""
    timestamp = exported_at or datetime.now(UTC)
    return {
        "schema": [_table_to_schema(table) for table in snapshot.tables],
        "edges": [_edge_to_schema(rel) for rel in snapshot.relationships],
        "version": DOCUMENT_VERSION,
        "metadata": {
            "exportedAt": timestamp.isoformat(timespec="milliseconds").replace(
                "+00:00",
                "Z",
            ),
            "projectName": project_name,
        },
    }


def document_to_json(document: SchemaDocument) -> str:
    """Render the document the way it is written to disk."""
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_document(text: str | bytes) -> SchemaDocument:
    """Parse and shape-check an exported document.

    Raises:
        DocumentError: If the text is not UTF-8 JSON or ``schema``/``edges`` are not
            arrays.

    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as err:
        msg = f"Invalid JSON: {err}"
        raise DocumentError(msg) from err

    if not isinstance(data, dict):
        msg = "Invalid schema format: document must be a JSON object"
        raise DocumentError(msg)
    if not isinstance(data.get("schema"), list) or not isinstance(
        data.get("edges"),
        list,
    ):
        msg = "Invalid schema format"
        raise DocumentError(msg)
    return data  # pyright: ignore[reportReturnType]


def _require_object(entry: object, kind: str, index: int) -> dict[str, Any]:
    if not isinstance(entry, dict):
        msg = f"Invalid schema format: {kind} #{index} is not an object"
        raise DocumentError(msg)
    return entry  # pyright: ignore[reportUnknownVariableType]


def _field_type(value: object, table_name: str) -> FieldType:
    if value is None or value == "":
        return FieldType.INTEGER
    try:
        return FieldType(str(value).upper())
    except ValueError as err:
        msg = f"Unknown field type {value!r} in table {table_name!r}"
        raise DocumentError(msg) from err


def _length(value: object) -> int | None:
    digits = value.strip() if isinstance(value, str) else ""
    if digits.isascii() and digits.isdigit() and len(digits) <= MAX_LENGTH_DIGITS:
        return int(digits) or None
    if isinstance(value, float) and isfinite(value):
        return int(value) or None
    if isinstance(value, int) and not isinstance(value, bool):
        return value or None
    return None


def _foreign_ref(value: object) -> FieldRef | None:
    if not isinstance(value, dict) or not value:
        return None
    node_id, field_id = value.get("nodeId"), value.get("fieldId")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    if not isinstance(node_id, str) or not isinstance(field_id, str):
        return None
    return FieldRef(node_id, field_id)


def _relation_type(value: object) -> RelationshipType | None:
    return value if is_relationship_type(value) else None  # pyright: ignore[reportReturnType]


def _field_from_schema(
    entry: dict[str, Any],
    table_name: str,
    id_factory: IdFactory,
) -> Field:
    field_type = _field_type(entry.get("type"), table_name)
    return Field(
        id=str(entry.get("id") or id_factory()),
        name=str(entry.get("name") or DEFAULT_FIELD_NAME),
        type=field_type,
        length=normalize_length(field_type, _length(entry.get("length"))),
        is_primary=bool(entry.get("isPrimary")),
        is_required=bool(entry.get("isRequired")),
        is_unique=bool(entry.get("isUnique")),
        is_foreign=bool(entry.get("isForeign")),
        foreign_ref=_foreign_ref(entry.get("foreignRef")),
        relation_type=_relation_type(entry.get("relationType")),
    )


def _position(value: object, rng: Random) -> Position:
    if isinstance(value, dict):
        x, y = value.get("x"), value.get("y")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        if isinstance(x, int | float) and isinstance(y, int | float):
            return Position(x, y)
    return random_position(rng)


def _table_from_schema(
    entry: dict[str, Any],
    rng: Random,
    id_factory: IdFactory,
) -> Table:
    table_name = str(entry.get("tableName") or DEFAULT_TABLE_NAME)
    raw_fields = entry.get("fields") or []
    if not isinstance(raw_fields, list):
        msg = f"Invalid schema format: fields of table {table_name!r} is not an array"
        raise DocumentError(msg)

    fields = tuple(
        _field_from_schema(
            _require_object(field, f"field of {table_name!r}", index),
            table_name,
            id_factory,
        )
        for index, field in enumerate(raw_fields)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]
    )
    field_ids = [field.id for field in fields]
    if len(set(field_ids)) != len(field_ids):
        msg = f"Duplicate field id in table {table_name!r}"
        raise DocumentError(msg)

    primary_keys = entry.get("primaryKeys")
    return Table(
        id=str(entry.get("id") or id_factory()),
        table_name=table_name,
        position=_position(entry.get("position"), rng),
        fields=fields,
        primary_keys=(
            tuple(str(key) for key in primary_keys)  # pyright: ignore[reportUnknownVariableType]
            if isinstance(primary_keys, list)
            else ()
        ),
    )


def _optional_str(value: object) -> str | None:
    return None if value is None else str(value)


def _edge_from_schema(entry: dict[str, Any], id_factory: IdFactory) -> Relationship:
    data = entry.get("data")
    data = data if isinstance(data, dict) else {}
    relationship = data.get("relationship")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    return Relationship(
        id=str(entry.get("id") or id_factory()),
        edge_type=str(entry.get("type") or DEFAULT_EDGE_TYPE),
        source=_optional_str(entry.get("source")),
        source_handle=_optional_str(entry.get("sourceHandle")),
        target=_optional_str(entry.get("target")),
        target_handle=_optional_str(entry.get("targetHandle")),
        relationship=(
            relationship if is_relationship_type(relationship) else DEFAULT_RELATIONSHIP  # pyright: ignore[reportArgumentType]
        ),
        relationship_name=str(
            data.get("relationshipName") or DEFAULT_RELATIONSHIP_NAME,  # pyright: ignore[reportUnknownMemberType]
        ),
    )


def _unique_ids(ids: list[str], kind: str) -> None:
    seen: set[str] = set()
    for item in ids:
        if item in seen:
            msg = f"Duplicate {kind} id: {item}"
            raise DocumentError(msg)
        seen.add(item)


def document_to_graph(
    document: SchemaDocument,
    rng: Random | None = None,
    id_factory: IdFactory = new_id,
) -> tuple[list[Table], list[Relationship]]:
    """Rebuild tables and relationships from a parsed document.

    Absent optional values take the editor defaults; nothing is applied to a
    store here so a failure leaves the caller's graph untouched.
    """
    rng = rng or Random()  # noqa: S311
    tables = [
        _table_from_schema(_require_object(entry, "table", index), rng, id_factory)
        for index, entry in enumerate(document["schema"])
    ]
    relationships = [
        _edge_from_schema(_require_object(entry, "edge", index), id_factory)
        for index, entry in enumerate(document["edges"])
    ]
    _unique_ids([table.id for table in tables], "table")
    _unique_ids([rel.id for rel in relationships], "relationship")
    logger.debug(
        "Read %d tables and %d relationships",
        len(tables),
        len(relationships),
    )
    return tables, relationships


def project_name(document: SchemaDocument) -> str | None:
    """Return the project name stored in the document metadata, if any."""
    metadata = document.get("metadata")
    if not isinstance(metadata, dict):
        return None
    name = metadata.get("projectName")
    return name if isinstance(name, str) and name else None
