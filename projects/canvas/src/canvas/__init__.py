"""Schema graph model, consistency rules and serialization."""

from canvas.connections import (
    Connection,
    connect,
    disconnect,
    field_id_from_handle,
    source_handle,
    target_handle,
)
from canvas.ddl import render_ddl, snapshot_to_metadata
from canvas.document import (
    DocumentError,
    SchemaDocument,
    document_to_graph,
    document_to_json,
    parse_document,
    snapshot_to_document,
)
from canvas.project import DEFAULT_PROJECT_NAME, ImportResult, Project
from canvas.relationships import EditSession, RelationshipEditor
from canvas.resolver import (
    UNKNOWN_FIELD,
    UNKNOWN_TABLE,
    dangling_references,
    default_relationship_name,
    field_name,
    rename_table,
    table_name,
)
from canvas.sql_export import generate_legacy_sql
from canvas.store import SchemaStore, Snapshot, new_field, new_table
from canvas.types import (
    RELATIONSHIP_TYPES,
    Field,
    FieldRef,
    FieldType,
    Position,
    Relationship,
    RelationshipType,
    Table,
)

__all__ = [
    "DEFAULT_PROJECT_NAME",
    "RELATIONSHIP_TYPES",
    "UNKNOWN_FIELD",
    "UNKNOWN_TABLE",
    "Connection",
    "DocumentError",
    "EditSession",
    "Field",
    "FieldRef",
    "FieldType",
    "ImportResult",
    "Position",
    "Project",
    "Relationship",
    "RelationshipEditor",
    "RelationshipType",
    "SchemaDocument",
    "SchemaStore",
    "Snapshot",
    "Table",
    "connect",
    "dangling_references",
    "default_relationship_name",
    "disconnect",
    "document_to_graph",
    "document_to_json",
    "field_id_from_handle",
    "field_name",
    "generate_legacy_sql",
    "new_field",
    "new_table",
    "parse_document",
    "render_ddl",
    "rename_table",
    "snapshot_to_document",
    "snapshot_to_metadata",
    "source_handle",
    "table_name",
    "target_handle",
]
