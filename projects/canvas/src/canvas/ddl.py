"""Offline dialect DDL rendered through SQLAlchemy metadata."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from warnings import catch_warnings, filterwarnings

from sqlalchemy import Column, ForeignKeyConstraint, MetaData
from sqlalchemy import Table as SqlTable
from sqlalchemy.dialects import mssql, mysql, oracle, postgresql, sqlite
from sqlalchemy.engine.default import StrCompileDialect
from sqlalchemy.exc import SAWarning
from sqlalchemy.schema import CreateTable

from canvas.type_conversion import field_to_sql

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Dialect

    from canvas.store import Snapshot
    from canvas.types import Table

logger = getLogger(__name__)

DIALECTS: dict[str, Callable[[], Dialect]] = {
    "sql": StrCompileDialect,
    "mysql": mysql.dialect,
    "mariadb": lambda: mysql.dialect(is_mariadb=True),
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
    "oracle": oracle.dialect,
    "mssql": mssql.dialect,
}


def _build_table(metadata: MetaData, table: Table) -> SqlTable | None:
    """Create the SQLAlchemy table for one node, skipping unusable names."""
    if not table.table_name or table.table_name in metadata.tables:
        logger.warning("Skipping table %r: blank or duplicate name", table.table_name)
        return None

    columns: list[Column[object]] = []
    seen: set[str] = set()
    for field in table.fields:
        if not field.name or field.name in seen:
            logger.warning(
                "Skipping column %r of %s: blank or duplicate name",
                field.name,
                table.table_name,
            )
            continue
        seen.add(field.name)
        columns.append(
            Column(
                field.name,
                field_to_sql(field),
                primary_key=field.is_primary,
                nullable=not (field.is_required or field.is_primary),
                unique=field.is_unique or None,
            ),
        )
    return SqlTable(table.table_name, metadata, *columns)


def snapshot_to_metadata(snapshot: Snapshot) -> MetaData:
    """Build SQLAlchemy metadata for the graph.

    Foreign keys whose target no longer resolves are left out with a warning.
    """
    metadata = MetaData()
    built = {
        table.id: sql_table
        for table in snapshot.tables
        if (sql_table := _build_table(metadata, table)) is not None
    }

    for table in snapshot.tables:
        sql_table = built.get(table.id)
        if sql_table is None:
            continue
        for field in table.fields:
            ref = field.foreign_ref
            if not field.is_foreign or ref is None or field.name not in sql_table.c:
                continue
            referenced = snapshot.get_table(ref.node_id)
            target_field = referenced.get_field(ref.field_id) if referenced else None
            target_table = built.get(ref.node_id)
            if (
                target_field is None
                or target_table is None
                or target_field.name not in target_table.c
            ):
                logger.warning(
                    "Skipping dangling foreign key %s.%s",
                    table.table_name,
                    field.name,
                )
                continue
            sql_table.append_constraint(
                ForeignKeyConstraint([field.name], [target_table.c[target_field.name]]),
            )
    return metadata


def render_ddl(snapshot: Snapshot, dialect: str) -> str:
    """Render ``CREATE TABLE`` statements for a SQL dialect.

    Raises:
        ValueError: If the dialect has no SQLAlchemy counterpart.

    """
    factory = DIALECTS.get(dialect)
    if factory is None:
        msg = f"Unsupported dialect for offline DDL: {dialect}"
        raise ValueError(msg)

    metadata = snapshot_to_metadata(snapshot)
    with catch_warnings():
        filterwarnings("ignore", category=SAWarning)
        tables = metadata.sorted_tables

    compiler_dialect = factory()
    return "\n\n".join(
        f"{str(CreateTable(table).compile(dialect=compiler_dialect)).strip()};"
        for table in tables
    )
