"""Deterministic legacy SQL rendering, independent of any code generator."""

from canvas.resolver import field_name, table_name
from canvas.store import Snapshot
from canvas.types import Field, FieldType, Table

INDENT = "  "


def column_clause(field: Field) -> str:
    """Render ``<name> <TYPE>`` with its length and inline constraints."""
    definition = f"{field.name} {field.type.upper()}"
    if field.type is FieldType.VARCHAR and field.length:
        definition += f"({field.length})"

    parts = [definition]
    if field.is_required:
        parts.append("NOT NULL")
    if field.is_unique:
        parts.append("UNIQUE")
    return " ".join(parts)


def create_table_statement(snapshot: Snapshot, table: Table) -> str:
    """Render one ``CREATE TABLE`` statement.

    Dangling foreign keys render the unknown-table/unknown-field sentinels.
    """
    lines = [INDENT + column_clause(field) for field in table.fields]

    primary_keys = [field.name for field in table.fields if field.is_primary]
    if primary_keys:
        lines.append(f"{INDENT}PRIMARY KEY ({', '.join(primary_keys)})")

    lines.extend(
        f"{INDENT}FOREIGN KEY ({field.name}) REFERENCES "
        f"{table_name(snapshot, field.foreign_ref.node_id)}"
        f"({field_name(snapshot, field.foreign_ref)})"
        for field in table.fields
        if field.is_foreign and field.foreign_ref
    )

    body = ",\n".join(lines)
    return f"CREATE TABLE {table.table_name} (\n{body}\n);"


def generate_legacy_sql(snapshot: Snapshot) -> str:
    """Render every table as SQL, separated by blank lines."""
    return "\n\n".join(
        create_table_statement(snapshot, table) for table in snapshot.tables
    )
