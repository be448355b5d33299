"""Tests for the schema graph store."""

from collections.abc import Callable
from dataclasses import replace
from random import Random

from canvas import Field, Relationship, SchemaStore, Snapshot, Table, new_field, new_table
from canvas.store import HISTORY_LIMIT


def test_new_table_defaults(rng: Random, id_factory: Callable[[], str]) -> None:
    """Test a new table is empty, named and placed on the canvas."""
    table = new_table(rng, id_factory)
    assert table.id == "id-1"
    assert table.table_name == "New Table"
    assert table.fields == ()
    assert 100 <= table.position.x <= 400
    assert 100 <= table.position.y <= 300


def test_new_table_is_deterministic(id_factory: Callable[[], str]) -> None:
    """Test the same seed places tables at the same position."""
    first = new_table(Random(7), id_factory)  # noqa: S311
    second = new_table(Random(7), id_factory)  # noqa: S311
    assert first.position == second.position
    assert first.id != second.id


def test_new_field_defaults(id_factory: Callable[[], str]) -> None:
    """Test a new field gets a fresh id and editor defaults."""
    field = new_field(id_factory, name="title")
    assert field == Field("id-1", name="title")


def test_snapshot_keeps_insertion_order(users: Table, orders: Table) -> None:
    """Test tables come back in the order they were added."""
    snapshot = Snapshot().put_table(orders).put_table(users)
    assert [t.id for t in snapshot.tables] == ["t-orders", "t-users"]


def test_add_and_remove_table(store: SchemaStore, rng: Random) -> None:
    """Test tables can be appended and removed."""
    table = new_table(rng)
    store.add_table(table)
    assert store.get_table(table.id) == table
    store.remove_table(table.id)
    assert store.get_table(table.id) is None


def test_remove_table_leaves_edges(store: SchemaStore) -> None:
    """Test deleting a table keeps touching edges unless pruned."""
    edge = Relationship("e1", "t-users", "f-user-id-out", "t-orders", "f-user-ref-in")
    store.add_relationship(edge)
    store.remove_table("t-users")
    assert store.get_relationship("e1") == edge


def test_remove_table_prunes_edges(store: SchemaStore) -> None:
    """Test pruning removes the edges touching the deleted table."""
    store.add_relationship(
        Relationship("e1", "t-users", "f-user-id-out", "t-orders", "f-user-ref-in"),
    )
    store.remove_table("t-users", prune_edges=True)
    assert store.relationships == ()


def test_field_operations(store: SchemaStore) -> None:
    """Test adding, updating and removing a field."""
    store.add_field("t-users", Field("f-name", name="name"))
    store.update_field("t-users", "f-name", lambda f: replace(f, is_required=True))
    users = store.get_table("t-users")
    assert users is not None
    assert [f.id for f in users.fields] == ["f-user-id", "f-email", "f-name"]
    name = users.get_field("f-name")
    assert name is not None
    assert name.is_required

    store.remove_field("t-users", "f-name")
    users = store.get_table("t-users")
    assert users is not None
    assert users.get_field("f-name") is None


def test_values_are_not_mutated(store: SchemaStore) -> None:
    """Test an update produces new values and leaves old snapshots intact."""
    before = store.snapshot
    store.update_table("t-users", lambda t: replace(t, table_name="people"))
    old_users = before.get_table("t-users")
    assert old_users is not None
    assert old_users.table_name == "users"
    new_users = store.get_table("t-users")
    assert new_users is not None
    assert new_users.table_name == "people"


def test_unknown_ids_are_noops(store: SchemaStore) -> None:
    """Test updates against unknown ids change nothing."""
    before = store.snapshot
    history = len(list(store.history()))
    store.update_table("missing", lambda t: replace(t, table_name="x"))
    store.update_relationship("missing", lambda r: r)
    store.remove_field("missing", "f")
    assert store.snapshot is before
    assert len(list(store.history())) == history


def test_listeners_receive_snapshots(store: SchemaStore, rng: Random) -> None:
    """Test subscribers see every new snapshot until they unsubscribe."""
    seen: list[Snapshot] = []
    unsubscribe = store.subscribe(seen.append)

    store.add_table(new_table(rng))
    assert seen == [store.snapshot]

    unsubscribe()
    store.add_table(new_table(rng))
    assert len(seen) == 1


def test_undo_redo(store: SchemaStore, rng: Random) -> None:
    """Test undo restores the previous snapshot and redo re-applies it."""
    before = store.snapshot
    table = new_table(rng)
    store.add_table(table)
    after = store.snapshot

    assert store.undo()
    assert store.snapshot == before
    assert store.redo()
    assert store.snapshot == after
    assert not store.redo()


def test_new_change_clears_redo(store: SchemaStore, rng: Random) -> None:
    """Test applying a change after undo discards the redo stack."""
    store.add_table(new_table(rng))
    store.undo()
    store.add_table(new_table(rng))
    assert not store.redo()


def test_history_is_capped(rng: Random) -> None:
    """Test the undo history keeps a bounded number of snapshots."""
    store = SchemaStore()
    for _ in range(HISTORY_LIMIT + 5):
        store.add_table(new_table(rng))
    assert len(list(store.history())) == HISTORY_LIMIT


def test_undo_on_empty_history() -> None:
    """Test undo with no history reports nothing happened."""
    assert not SchemaStore().undo()


def test_replace_swaps_both_collections(store: SchemaStore, users: Table) -> None:
    """Test replace installs tables and relationships together."""
    edge = Relationship("e1", "t-users", None, None, None)
    store.replace([users], [edge])
    assert store.tables == (users,)
    assert store.relationships == (edge,)
