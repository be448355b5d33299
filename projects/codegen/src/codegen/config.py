"""Module for loading code generation settings."""

from os import environ
from pathlib import Path
from tomllib import load

from codegen.types import DATABASE_TYPES, Config, DatabaseType, Dialect

CONFIG_FILE = Path(__file__).parent / "config.toml"

API_KEY_VARIABLES = ("GEMINI_API_KEY", "VITE_GEMINI_API_KEY")


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load service and dialect settings from a TOML file."""
    with path.open("rb") as f:
        config: Config = load(f)  # pyright: ignore[reportAssignmentType]

    if missing := set(DATABASE_TYPES) - set(config["dialects"]):
        msg = f"Missing dialect settings in {path}: {', '.join(sorted(missing))}"
        raise ValueError(msg)
    return config


def get_dialect(config: Config, database_type: str) -> Dialect:
    """Get dialect settings, falling back to standard SQL."""
    dialects = config["dialects"]
    return dialects.get(database_type, dialects["sql"])  # pyright: ignore[reportCallIssue,reportArgumentType]


def is_database_type(value: str) -> bool:
    """Check whether the value names a supported database."""
    return value in DATABASE_TYPES


def output_filename(config: Config, database_type: DatabaseType) -> str:
    """File name for downloaded generated code."""
    return f"schema_{database_type}.{get_dialect(config, database_type)['extension']}"


def api_key_from_env() -> str | None:
    """Read the API key from the environment."""
    return next(
        (environ[name] for name in API_KEY_VARIABLES if environ.get(name)),
        None,
    )
