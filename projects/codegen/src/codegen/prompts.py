"""Prompt construction for schema code generation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from codegen.config import get_dialect

if TYPE_CHECKING:
    from codegen.types import CodeGenerationRequest, Config

TEMPLATE_DIR = Path(__file__).parent / "templates"

_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
)


def describe_field(field: dict[str, Any]) -> str:
    """Describe one exported field as a bullet with its constraints."""
    props: list[str] = []
    if field.get("isPrimary"):
        props.append("PRIMARY KEY")
    if field.get("isRequired"):
        props.append("NOT NULL")
    if field.get("isUnique"):
        props.append("UNIQUE")
    if field.get("isForeign"):
        props.append("FOREIGN KEY")
    if field.get("length"):
        props.append(f"LENGTH({field['length']})")

    suffix = f" ({', '.join(props)})" if props else ""
    return f"  - {field.get('name')}: {field.get('type')}{suffix}"


def describe_table(table: dict[str, Any]) -> str:
    """Describe one exported table and its fields."""
    lines = [f"Table: {table.get('tableName')}"]
    fields = table.get("fields")
    if isinstance(fields, list):
        lines.extend(
            describe_field(field) for field in fields if isinstance(field, dict)
        )
    return "\n".join(lines)


def describe_relationship(edge: dict[str, Any], schema: list[Any]) -> str:
    """Describe one exported edge using the table names it connects."""
    names = {table.get("id"): table.get("tableName") for table in schema}
    source = names.get(edge.get("source")) or "unknown"
    target = names.get(edge.get("target")) or "unknown"
    data = edge.get("data")
    data = data if isinstance(data, dict) else {}
    relationship = data.get("relationship") or "1:1"
    name = data.get("relationshipName") or f"{source}_{target}"
    return f"Relationship: {name} ({source} -> {target}, Type: {relationship})"


def build_prompt(request: CodeGenerationRequest, config: Config) -> str:
    """Render the full prompt for a generation request."""
    schema = request["schema"]
    template = _JINJA_ENV.get_template("prompt.txt")
    return template.render(
        system_prompt=get_dialect(config, request["database_type"])["system_prompt"],
        database_type=request["database_type"],
        tables=[describe_table(table) for table in schema],
        relationships=[describe_relationship(edge, schema) for edge in request["edges"]],
        custom_prompt=request.get("custom_prompt"),
    )
