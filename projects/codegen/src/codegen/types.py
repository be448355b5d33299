"""Request, response and configuration types for code generation."""

from typing import Any, Literal, NotRequired, TypedDict, get_args

type DatabaseType = Literal[
    "sql",
    "mysql",
    "postgresql",
    "mongodb",
    "sqlite",
    "mariadb",
    "oracle",
    "mssql",
]

DATABASE_TYPES: tuple[DatabaseType, ...] = get_args(DatabaseType.__value__)


class CodeGenerationRequest(TypedDict):
    """Input of one generation call: the exported schema and edges."""

    database_type: DatabaseType
    schema: list[Any]
    edges: list[Any]
    custom_prompt: NotRequired[str]


class CodeGenerationResponse(TypedDict):
    """Result of one generation call; failures carry an error message."""

    success: bool
    code: str
    error: NotRequired[str]


class Dialect(TypedDict):
    """Presentation and prompt settings of one target database."""

    label: str
    description: str
    extension: str
    system_prompt: str


class ServiceConfig(TypedDict):
    """Settings of the remote text-generation service."""

    endpoint: str
    timeout: float
    temperature: float
    top_k: int
    top_p: float
    max_output_tokens: int
    safety_threshold: str
    safety_categories: list[str]


class Config(TypedDict):
    """Root of ``config.toml``."""

    service: ServiceConfig
    dialects: dict[DatabaseType, Dialect]
