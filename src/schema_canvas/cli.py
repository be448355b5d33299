"""Command line interface for Schema Canvas."""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from sys import stdout
from typing import Annotated, Literal, NoReturn

from canvas import (
    DEFAULT_PROJECT_NAME,
    Connection,
    DocumentError,
    Field,
    FieldType,
    Project,
    RelationshipEditor,
    RelationshipType,
    Table,
    connect,
    dangling_references,
    disconnect,
    new_field,
    new_table,
    rename_table,
    source_handle,
    target_handle,
)
from canvas import table_name as resolve_table_name
from codegen import (
    DATABASE_TYPES,
    CodeGenerationRequest,
    CodeGenerator,
    DatabaseType,
    get_dialect,
    load_config,
    output_filename,
)
from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table as RichTable

app = App(help="Schema Canvas CLI tool")

type Format = Literal["table", "json"]

console = Console()
err_console = Console(stderr=True)

JSON_EXTENSIONS = {".json"}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def fail(message: str) -> NoReturn:
    """Print an error and exit with a failure status."""
    print_error(message)
    sys.exit(1)


def configure_logging(*, verbose: bool = False) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def validate_document_location(document: Path, *, exists: bool = True) -> None:
    """Validate document location."""
    if exists != document.exists():
        fail(
            f"Document {'does not exist' if exists else 'already exists'}: {document}",
        )
    if document.suffix.lower() not in JSON_EXTENSIONS:
        fail(f"Document has invalid extension: {', '.join(JSON_EXTENSIONS)}")


def open_project(document: Path) -> Project:
    """Load a project from disk or exit."""
    validate_document_location(document, exists=True)
    try:
        return Project.load(document)
    except DocumentError as e:
        fail(str(e))


def find_table(project: Project, reference: str) -> Table:
    """Find a table by id, or by name when the name is unambiguous."""
    if table := project.store.get_table(reference):
        return table
    matches = [t for t in project.store.tables if t.table_name == reference]
    if len(matches) == 1:
        return matches[0]
    if matches:
        fail(f"Table name '{reference}' is ambiguous, use the table id")
    fail(f"Unknown table '{reference}'")


def find_field_id(table: Table, reference: str) -> str:
    """Find a field id by id, or by name when the name is unambiguous."""
    if table.get_field(reference):
        return reference
    matches = [f.id for f in table.fields if f.name == reference]
    if len(matches) == 1:
        return matches[0]
    if matches:
        fail(f"Field name '{reference}' is ambiguous in {table.table_name}")
    fail(f"Unknown field '{reference}' in {table.table_name}")


def format_tables(project: Project) -> None:
    """Format tables and relationships as rich tables."""
    snapshot = project.store.snapshot
    for table in snapshot.tables:
        view = RichTable(title=f"{table.table_name} [dim]({table.id})[/]")
        view.add_column("Field", style="bold cyan")
        view.add_column("Id", style="dim")
        view.add_column("Type")
        view.add_column("Flags", style="bold yellow")
        view.add_column("References")
        for field in table.fields:
            flags = [
                flag
                for flag, enabled in (
                    ("PK", field.is_primary),
                    ("FK", field.is_foreign),
                    ("NN", field.is_required),
                    ("UQ", field.is_unique),
                )
                if enabled
            ]
            field_type = f"{field.type}({field.length})" if field.length else field.type
            reference = ""
            if field.foreign_ref:
                reference = resolve_table_name(snapshot, field.foreign_ref.node_id)
            view.add_row(field.name, field.id, field_type, " ".join(flags), reference)
        console.print(view)

    if not snapshot.relationships:
        console.print("No relationships.")
        return

    edges = RichTable(title="Relationships")
    edges.add_column("Name", style="bold cyan")
    edges.add_column("Id", style="dim")
    edges.add_column("Source")
    edges.add_column("Target")
    edges.add_column("Type", style="bold yellow")
    for rel in snapshot.relationships:
        edges.add_row(
            rel.relationship_name,
            rel.id,
            resolve_table_name(snapshot, rel.source),
            resolve_table_name(snapshot, rel.target),
            rel.relationship,
        )
    console.print(edges)


def save(project: Project, document: Path, message: str) -> None:
    """Write the project back and report success."""
    project.save(document)
    print_success(message)


@app.command
def new(document: Path, *, name: str = DEFAULT_PROJECT_NAME) -> None:
    """Create an empty schema document."""
    validate_document_location(document, exists=False)
    project = Project()
    project.rename(name)
    save(project, document, f"Created project '{project.name}'")


@app.command(name="import")
def import_document(source: Path, document: Path) -> None:
    """Import an exported schema into a new document."""
    validate_document_location(document, exists=False)
    project = Project()
    result = project.import_file(source)
    if not result.ok:
        fail(result.error or "Import failed")
    save(project, document, f"Imported project '{project.name}'")


@app.command
def rename_project(document: Path, name: str) -> None:
    """Rename the project."""
    project = open_project(document)
    project.rename(name)
    save(project, document, f"Project renamed to '{project.name}'")


@app.command
def add_table(document: Path, name: str | None = None) -> None:
    """Add an empty table at a random position; prints its id."""
    project = open_project(document)
    table = new_table(project.rng, project.id_factory)
    if name is not None:
        table = replace(table, table_name=name)
    project.store.add_table(table)
    stdout.write(f"{table.id}\n")
    save(project, document, f"Added table '{table.table_name}'")


@app.command(name="rename-table")
def rename_table_command(document: Path, table: str, name: str) -> None:
    """Rename a table and refresh the names of its relationships."""
    project = open_project(document)
    found = find_table(project, table)
    rename_table(project.store, found.id, name)
    save(project, document, f"Renamed '{found.table_name}' to '{name}'")


@app.command
def remove_table(document: Path, table: str, *, prune_edges: bool = False) -> None:
    """Delete a table; its relationships stay dangling unless pruned."""
    project = open_project(document)
    found = find_table(project, table)
    project.store.remove_table(found.id, prune_edges=prune_edges)
    save(project, document, f"Removed table '{found.table_name}'")


@app.command
def add_field(
    document: Path,
    table: str,
    name: str = "column_name",
    *,
    field_type: Annotated[FieldType, Parameter(name="--type")] = FieldType.INTEGER,
    length: int | None = None,
    required: bool = False,
    unique: bool = False,
    primary: bool = False,
) -> None:
    """Append a field to a table; prints its id."""
    project = open_project(document)
    found = find_table(project, table)
    field = new_field(
        project.id_factory,
        name=name,
        type=field_type,
        is_required=required,
        is_unique=unique,
        is_primary=primary,
    ).with_length(length)
    project.store.add_field(found.id, field)
    stdout.write(f"{field.id}\n")
    save(project, document, f"Added field '{name}' to '{found.table_name}'")


@app.command
def update_field(
    document: Path,
    table: str,
    field: str,
    *,
    name: str | None = None,
    field_type: Annotated[FieldType | None, Parameter(name="--type")] = None,
    length: int | None = None,
    required: bool | None = None,
    unique: bool | None = None,
    primary: bool | None = None,
) -> None:
    """Change a field; switching away from VARCHAR clears its length."""
    project = open_project(document)
    found = find_table(project, table)
    field_id = find_field_id(found, field)

    def update(current: Field) -> Field:
        changed = current if field_type is None else current.with_type(field_type)
        if length is not None:
            changed = changed.with_length(length)
        flags = {
            "name": name,
            "is_required": required,
            "is_unique": unique,
            "is_primary": primary,
        }
        return replace(changed, **{k: v for k, v in flags.items() if v is not None})

    project.store.update_field(found.id, field_id, update)
    save(project, document, f"Updated field '{field}' of '{found.table_name}'")


@app.command
def remove_field(document: Path, table: str, field: str) -> None:
    """Remove a field from a table."""
    project = open_project(document)
    found = find_table(project, table)
    project.store.remove_field(found.id, find_field_id(found, field))
    save(project, document, f"Removed field '{field}' from '{found.table_name}'")


@app.command(name="connect")
def connect_fields(
    document: Path,
    source_table: str,
    source_field: str,
    target_table: str,
    target_field: str,
) -> None:
    """Connect a source field to a target field; prints the relationship id."""
    project = open_project(document)
    source = find_table(project, source_table)
    target = find_table(project, target_table)
    connection = Connection(
        source=source.id,
        source_handle=source_handle(find_field_id(source, source_field)),
        target=target.id,
        target_handle=target_handle(find_field_id(target, target_field)),
    )
    relationship = connect(project.store, connection, project.id_factory)
    if relationship is None:
        fail("Connection was rejected")
    stdout.write(f"{relationship.id}\n")
    save(project, document, f"Created relationship '{relationship.relationship_name}'")


@app.command(name="disconnect")
def disconnect_edge(document: Path, edge: str) -> None:
    """Remove a relationship."""
    project = open_project(document)
    if not disconnect(project.store, edge):
        fail(f"Unknown relationship '{edge}'")
    save(project, document, f"Removed relationship '{edge}'")


@app.command
def edit_relationship(
    document: Path,
    edge: str,
    *,
    relationship: RelationshipType | None = None,
    name: str | None = None,
) -> None:
    """Change a relationship's cardinality and name."""
    project = open_project(document)
    session = RelationshipEditor(project.store).open(edge)
    if session is None:
        fail(f"Unknown relationship '{edge}'")
    if relationship is not None:
        session.select(relationship)
    if name is not None:
        session.relationship_name = name
    if not session.save():
        fail(f"Relationship '{edge}' has no resolvable endpoints")
    save(project, document, f"Saved relationship '{edge}'")


@app.command
def show(document: Path, fmt: Format = "table") -> None:
    """Show the tables and relationships of a document."""
    project = open_project(document)
    if fmt == "json":
        stdout.write(project.export_json())
    elif fmt == "table":
        format_tables(project)


@app.command
def check(document: Path) -> None:
    """Report foreign keys and relationships that no longer resolve."""
    project = open_project(document)
    dangling = list(dangling_references(project.store.snapshot))
    if not dangling:
        print_success("No dangling references")
        return

    view = RichTable(title="Dangling references")
    view.add_column("Kind", style="bold yellow")
    view.add_column("Owner", style="dim")
    view.add_column("Detail")
    for reference in dangling:
        view.add_row(reference.kind, reference.owner, reference.detail)
    console.print(view)


@app.command
def sql(document: Path) -> None:
    """Render the built-in SQL for a document."""
    project = open_project(document)
    stdout.write(project.legacy_sql())
    stdout.write("\n")


@app.command
def ddl(document: Path, dialect: DatabaseType = "sql") -> None:
    """Render dialect DDL offline through SQLAlchemy."""
    project = open_project(document)
    try:
        stdout.write(project.ddl(dialect))
    except ValueError as e:
        fail(str(e))
    stdout.write("\n")


def write_output(code: str, output: Path | None) -> None:
    """Write generated code to a file or stdout."""
    if output is None:
        stdout.write(code)
        stdout.write("\n")
        return
    try:
        output.write_text(code)
    except (PermissionError, OSError) as e:
        fail(f"Failed to write output file: {e}")
    print_success(f"Code written to {output}")


@app.command
def generate(
    document: Path,
    database: DatabaseType = "sql",
    *,
    prompt: str | None = None,
    output: Path | None = None,
) -> None:
    """Generate dialect-specific code with the AI service."""
    project = open_project(document)
    config = load_config()
    generator = CodeGenerator(config=config)
    if not generator.is_configured():
        fail("AI service is not configured. Please set GEMINI_API_KEY.")

    exported = project.export_document()
    print_info(f"Target: {get_dialect(config, database)['label']}")
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Generating code...", total=None)
        request: CodeGenerationRequest = {
            "database_type": database,
            "schema": exported["schema"],
            "edges": exported["edges"],
        }
        if prompt and prompt.strip():
            request["custom_prompt"] = prompt.strip()
        response = generator.generate_code(request)

    if not response["success"]:
        fail(response.get("error") or "Failed to generate code")
    print_info(f"Suggested file name: {output_filename(config, database)}")
    write_output(response["code"], output)


@app.command
def dialects() -> None:
    """List the databases supported by code generation."""
    config = load_config()
    view = RichTable(title="Databases")
    view.add_column("Key", style="bold blue")
    view.add_column("Name")
    view.add_column("Description")
    for key in DATABASE_TYPES:
        dialect = get_dialect(config, key)
        view.add_row(key, dialect["label"], dialect["description"])
    console.print(view)


@app.meta.default
def launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    verbose: bool = False,
) -> None:
    """Schema Canvas CLI tool."""
    configure_logging(verbose=verbose)
    app(tokens)


def main() -> None:
    """Entry point for the CLI."""
    app.meta()


if __name__ == "__main__":
    main()
