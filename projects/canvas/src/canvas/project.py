"""A project: one schema graph plus its name, with import and export."""

from __future__ import annotations

import re
from logging import getLogger
from random import Random
from typing import TYPE_CHECKING, NamedTuple

from canvas.ddl import render_ddl
from canvas.document import (
    DocumentError,
    SchemaDocument,
    document_to_graph,
    document_to_json,
    parse_document,
    project_name,
    snapshot_to_document,
)
from canvas.sql_export import generate_legacy_sql
from canvas.store import SchemaStore, new_id

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from canvas.store import IdFactory

logger = getLogger(__name__)

DEFAULT_PROJECT_NAME = "Untitled Project"


class ImportResult(NamedTuple):
    """Outcome of an import; failures carry a user-facing message."""

    ok: bool
    error: str | None = None


class Project:
    """Binds a schema store to a project name."""

    def __init__(
        self,
        name: str = DEFAULT_PROJECT_NAME,
        store: SchemaStore | None = None,
        rng: Random | None = None,
        id_factory: IdFactory = new_id,
    ) -> None:
        """Initialize the project with an optional store, RNG and id factory."""
        self.name = name
        self.store = store or SchemaStore()
        self.rng = rng or Random()  # noqa: S311
        self.id_factory = id_factory

    def rename(self, name: str) -> None:
        """Set the project name; a blank name falls back to the default."""
        self.name = name.strip() or DEFAULT_PROJECT_NAME

    def export_filename(self) -> str:
        """Suggested file name for an export of this project."""
        return f"{re.sub(r'[^a-zA-Z0-9]', '_', self.name)}_schema.json"

    def export_document(self, exported_at: datetime | None = None) -> SchemaDocument:
        """Export the current graph as a schema document."""
        return snapshot_to_document(self.store.snapshot, self.name, exported_at)

    def export_json(self, exported_at: datetime | None = None) -> str:
        """Export the current graph as JSON text."""
        return document_to_json(self.export_document(exported_at))

    def save(self, path: Path) -> Path:
        """Write the export to ``path``."""
        path.write_text(self.export_json(), encoding="utf-8")
        logger.info("Saved %s to %s", self.name, path)
        return path

    def import_json(self, text: str | bytes) -> ImportResult:
        """Replace the graph with the contents of an exported document.

        Both collections are swapped together; on failure the graph and the
        project name are left as they were.
        """
        try:
            document = parse_document(text)
            tables, relationships = document_to_graph(
                document,
                self.rng,
                self.id_factory,
            )
        except DocumentError as err:
            logger.warning("Import rejected: %s", err)
            return ImportResult(ok=False, error=f"Failed to import schema: {err}")

        self.store.replace(tables, relationships)
        if name := project_name(document):
            self.name = name
        logger.info(
            "Imported %d tables and %d relationships",
            len(tables),
            len(relationships),
        )
        return ImportResult(ok=True)

    def import_file(self, path: Path) -> ImportResult:
        """Read a document from disk and import it."""
        try:
            text = path.read_bytes()
        except OSError as err:
            logger.warning("Cannot read %s: %s", path, err)
            return ImportResult(ok=False, error=f"Failed to import schema: {err}")
        return self.import_json(text)

    @classmethod
    def load(cls, path: Path) -> Project:
        """Open a saved document as a new project.

        Raises:
            DocumentError: If the file is missing or not a valid document.

        """
        project = cls()
        result = project.import_file(path)
        if not result.ok:
            raise DocumentError(result.error)
        return project

    def legacy_sql(self) -> str:
        """Render the graph with the built-in SQL generator."""
        return generate_legacy_sql(self.store.snapshot)

    def ddl(self, dialect: str) -> str:
        """Render dialect DDL offline."""
        return render_ddl(self.store.snapshot, dialect)
