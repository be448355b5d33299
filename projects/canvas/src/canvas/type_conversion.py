"""Map editor field types onto SQLAlchemy types."""

from typing import Any

from sqlalchemy.types import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    Text,
    TypeEngine,
    Uuid,
)

from canvas.types import Field, FieldType

DEFAULT_STRING_LENGTH = 255

# Dialects without a native JSON type store documents as text
TEXT_JSON_DIALECTS = ("oracle",)


def field_to_sql(field: Field) -> TypeEngine[Any]:
    """Convert a field's type into a SQLAlchemy TypeEngine.

    Examples:
        VARCHAR(64) -> String(64)
        VARCHAR -> String(255)
        JSON -> JSON, rendered as TEXT on Oracle

    """
    sql_type: TypeEngine[Any]

    match field.type:
        case FieldType.INTEGER:
            sql_type = Integer()
        case FieldType.VARCHAR:
            sql_type = String(field.length or DEFAULT_STRING_LENGTH)
        case FieldType.STRING | FieldType.ENUM:
            # enum members are not modelled, so an enum is stored as a string
            sql_type = String(DEFAULT_STRING_LENGTH)
        case FieldType.TEXT:
            sql_type = Text()
        case FieldType.BOOLEAN:
            sql_type = Boolean()
        case FieldType.DATE:
            sql_type = Date()
        case FieldType.DATETIME:
            sql_type = DateTime()
        case FieldType.FLOAT:
            sql_type = Float()
        case FieldType.DECIMAL:
            sql_type = Numeric()
        case FieldType.JSON:
            sql_type = JSON().with_variant(Text(), *TEXT_JSON_DIALECTS)
        case FieldType.UUID:
            sql_type = Uuid()

    return sql_type
