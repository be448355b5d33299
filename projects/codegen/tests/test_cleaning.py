"""Tests for cleaning generated code."""

from codegen import clean_code_response
from codegen.cleaning import is_code_start


def test_strips_fences() -> None:
    """Test markdown fences are removed."""
    response = "```sql\nCREATE TABLE users (id INTEGER);\n```"
    assert clean_code_response(response) == "CREATE TABLE users (id INTEGER);"


def test_strips_lead_in() -> None:
    """Test an explanatory lead-in before the code is removed."""
    response = (
        "Here's the SQL for your schema:\n"
        "```sql\n"
        "CREATE TABLE users (id INTEGER);\n"
        "```"
    )
    assert clean_code_response(response) == "CREATE TABLE users (id INTEGER);"


def test_strips_comments_and_notes() -> None:
    """Test comment lines and notes are removed."""
    response = (
        "-- users table\n"
        "CREATE TABLE users (id INTEGER);\n"
        "/* orders\n   table */\n"
        "CREATE TABLE orders (id INTEGER);\n"
        "Note: adjust types as needed."
    )
    assert clean_code_response(response) == (
        "CREATE TABLE users (id INTEGER);\n\nCREATE TABLE orders (id INTEGER);"
    )


def test_skips_to_first_code_line() -> None:
    """Test text before the first recognizable statement is dropped."""
    response = "Sure thing\n\nCREATE TABLE users (id INTEGER);"
    assert clean_code_response(response) == "CREATE TABLE users (id INTEGER);"


def test_keeps_text_without_code_start() -> None:
    """Test responses without a recognizable statement are kept whole."""
    assert clean_code_response("  SELECT 1;  ") == "SELECT 1;"


def test_mongodb_code_start() -> None:
    """Test collection commands count as code."""
    assert is_code_start("db.createCollection('users')")
    assert is_code_start("const users = collection('users')")
    assert is_code_start("  ALTER TABLE users ADD x INT;")
    assert not is_code_start("Sure thing")
