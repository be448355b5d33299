"""Value types for the schema graph: tables, fields and relationships."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Literal, NamedTuple, get_args

type RelationshipType = Literal["1:1", "1:N", "N:N"]

RELATIONSHIP_TYPES: tuple[RelationshipType, ...] = get_args(RelationshipType.__value__)

DEFAULT_RELATIONSHIP: RelationshipType = "1:1"
DEFAULT_RELATIONSHIP_NAME = "unnamed_relation"
DEFAULT_TABLE_NAME = "New Table"
DEFAULT_FIELD_NAME = "column_name"
DEFAULT_EDGE_TYPE = "custom-edge"


class FieldType(StrEnum):
    """Column types offered by the editor."""

    INTEGER = "INTEGER"
    STRING = "STRING"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATETIME = "DATETIME"
    FLOAT = "FLOAT"
    DECIMAL = "DECIMAL"
    JSON = "JSON"
    UUID = "UUID"
    ENUM = "ENUM"
    VARCHAR = "VARCHAR"


class Position(NamedTuple):
    """Cosmetic canvas coordinates of a table."""

    x: float
    y: float


class FieldRef(NamedTuple):
    """Reference to a field of another table."""

    node_id: str
    field_id: str


def is_relationship_type(value: object) -> bool:
    """Check whether the value is a known relationship cardinality."""
    return value in RELATIONSHIP_TYPES


def normalize_length(field_type: FieldType, length: int | None) -> int | None:
    """Drop the length unless it is a positive VARCHAR length."""
    if field_type is not FieldType.VARCHAR or length is None or length <= 0:
        return None
    return length


@dataclass(frozen=True)
class Field:
    """A column definition within a table."""

    id: str
    name: str = DEFAULT_FIELD_NAME
    type: FieldType = FieldType.INTEGER
    length: int | None = None
    is_required: bool = False
    is_unique: bool = False
    is_primary: bool = False
    is_foreign: bool = False
    foreign_ref: FieldRef | None = None
    relation_type: RelationshipType | None = None

    def __post_init__(self) -> None:
        """Reject a length on anything but a VARCHAR field."""
        if self.length is not None and normalize_length(self.type, self.length) is None:
            msg = f"Field {self.id!r}: length {self.length} requires a VARCHAR type"
            raise ValueError(msg)

    def with_type(self, field_type: FieldType) -> Field:
        """Change the type, clearing the length unless it stays VARCHAR."""
        return replace(
            self,
            type=field_type,
            length=normalize_length(field_type, self.length),
        )

    def with_length(self, length: int | None) -> Field:
        """Set the VARCHAR length; ignored for other types."""
        return replace(self, length=normalize_length(self.type, length))

    def with_foreign_ref(
        self,
        ref: FieldRef,
        relation_type: RelationshipType | None = None,
    ) -> Field:
        """Mark the field as a foreign key pointing at ``ref``."""
        return replace(
            self,
            is_foreign=True,
            foreign_ref=ref,
            relation_type=relation_type or self.relation_type,
        )


@dataclass(frozen=True)
class Table:
    """A table node on the canvas."""

    id: str
    table_name: str = DEFAULT_TABLE_NAME
    position: Position = Position(0.0, 0.0)
    fields: tuple[Field, ...] = ()
    primary_keys: tuple[str, ...] = ()

    def get_field(self, field_id: str) -> Field | None:
        """Return the field with the given id, if any."""
        return next((f for f in self.fields if f.id == field_id), None)

    def with_fields(self, fields: tuple[Field, ...]) -> Table:
        """Return a copy holding the given fields."""
        return replace(self, fields=fields)


@dataclass(frozen=True)
class Relationship:
    """A directed edge between a source field and a target field."""

    id: str
    source: str | None
    source_handle: str | None
    target: str | None
    target_handle: str | None
    relationship: RelationshipType = DEFAULT_RELATIONSHIP
    relationship_name: str = DEFAULT_RELATIONSHIP_NAME
    edge_type: str = DEFAULT_EDGE_TYPE

    @property
    def is_resolvable(self) -> bool:
        """Whether both endpoints and both handles are known."""
        return all((self.source, self.target, self.source_handle, self.target_handle))

    def touches(self, table_id: str) -> bool:
        """Whether the edge starts or ends at the given table."""
        return table_id in (self.source, self.target)
