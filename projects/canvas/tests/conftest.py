"""Shared fixtures for schema graph tests."""

from collections.abc import Callable
from itertools import count
from random import Random

import pytest

from canvas import (
    Connection,
    Field,
    FieldType,
    SchemaStore,
    Table,
    source_handle,
    target_handle,
)


@pytest.fixture(name="id_factory")
def sequential_ids() -> Callable[[], str]:
    """Return an id factory producing id-1, id-2, ..."""
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture(name="rng")
def seeded_rng() -> Random:
    """Return a deterministic random generator."""
    return Random(42)  # noqa: S311


@pytest.fixture(name="users")
def users_table() -> Table:
    """A users table with a primary key and an email column."""
    return Table(
        id="t-users",
        table_name="users",
        fields=(
            Field("f-user-id", name="id", type=FieldType.INTEGER, is_primary=True),
            Field(
                "f-email",
                name="email",
                type=FieldType.VARCHAR,
                length=120,
                is_required=True,
                is_unique=True,
            ),
        ),
    )


@pytest.fixture(name="orders")
def orders_table() -> Table:
    """An orders table with a column meant to reference users."""
    return Table(
        id="t-orders",
        table_name="orders",
        fields=(
            Field("f-order-id", name="id", is_primary=True),
            Field("f-user-ref", name="user_id"),
        ),
    )


@pytest.fixture(name="store")
def populated_store(users: Table, orders: Table) -> SchemaStore:
    """A store holding the users and orders tables."""
    store = SchemaStore()
    store.replace([users, orders], [])
    return store


@pytest.fixture(name="connection")
def users_to_orders() -> Connection:
    """Connect users.id to orders.user_id."""
    return Connection(
        source="t-users",
        source_handle=source_handle("f-user-id"),
        target="t-orders",
        target_handle=target_handle("f-user-ref"),
    )
