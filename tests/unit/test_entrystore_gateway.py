"""Tests for the in-memory and SQL EntryStore gateways."""

import sqlalchemy as sa
import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from livenotes.app.config import Settings, StoreConfig
from livenotes.app.domain.entrystore import (
    InMemoryEntryStoreGateway,
    RemoteWriteError,
    SqlEntryStoreGateway,
    build_entry_store_gateway,
)
from livenotes.app.domain.entrystore.gateway import build_entries_table

pytestmark = [pytest.mark.entrystore]


class Listener:
    def __init__(self) -> None:
        self.snapshots = []
        self.errors = []

    def on_change(self, entries) -> None:
        self.snapshots.append(entries)

    def on_error(self, error) -> None:
        self.errors.append(error)

    @property
    def latest(self):
        return self.snapshots[-1]


@pytest.fixture()
def sql_gateway() -> SqlEntryStoreGateway:
    engine = sa.create_engine("sqlite+pysqlite:///:memory:", future=True)
    metadata = sa.MetaData()
    entries = build_entries_table(metadata)
    metadata.create_all(engine)
    return SqlEntryStoreGateway(engine=engine, table=entries)


@pytest.fixture(params=["memory", "sql"])
def gateway(request, sql_gateway):
    if request.param == "memory":
        return InMemoryEntryStoreGateway()
    return sql_gateway


def test_subscribe_delivers_initial_snapshot(gateway):
    gateway.create_entry("existing")
    listener = Listener()

    gateway.subscribe(listener.on_change, listener.on_error)

    assert len(listener.snapshots) == 1
    assert [entry.content for entry in listener.latest] == ["existing"]


def test_create_pushes_full_snapshot_with_fresh_id(gateway):
    listener = Listener()
    gateway.subscribe(listener.on_change, listener.on_error)

    entry_id = gateway.create_entry("buy milk")

    assert listener.snapshots[0] == []
    assert len(listener.latest) == 1
    assert listener.latest[0].entry_id == entry_id
    assert listener.latest[0].content == "buy milk"
    assert listener.latest[0].timestamp is not None


def test_update_replaces_content_and_leaves_others(gateway):
    first = gateway.create_entry("buy milk")
    second = gateway.create_entry("call mom")
    listener = Listener()
    gateway.subscribe(listener.on_change, listener.on_error)
    before = {entry.entry_id: entry for entry in listener.latest}

    gateway.update_entry(first, "buy milk and eggs")

    after = {entry.entry_id: entry for entry in listener.latest}
    assert after[first].content == "buy milk and eggs"
    assert after[first].timestamp == before[first].timestamp
    assert after[second] == before[second]


def test_delete_removes_entry_from_next_snapshot(gateway):
    keep = gateway.create_entry("keep")
    drop = gateway.create_entry("drop")
    listener = Listener()
    gateway.subscribe(listener.on_change, listener.on_error)

    gateway.delete_entry(drop)

    assert [entry.entry_id for entry in listener.latest] == [keep]


def test_second_delete_raises_write_error(gateway):
    entry_id = gateway.create_entry("once")
    gateway.delete_entry(entry_id)

    with pytest.raises(RemoteWriteError) as excinfo:
        gateway.delete_entry(entry_id)

    assert excinfo.value.code == "not_found"
    assert excinfo.value.entry_id == entry_id


def test_update_of_missing_entry_raises_write_error(gateway):
    with pytest.raises(RemoteWriteError) as excinfo:
        gateway.update_entry("missing", "text")

    assert excinfo.value.code == "not_found"


def test_failed_write_does_not_notify(gateway):
    listener = Listener()
    gateway.subscribe(listener.on_change, listener.on_error)

    with pytest.raises(RemoteWriteError):
        gateway.delete_entry("missing")

    assert len(listener.snapshots) == 1


def test_cancel_stops_further_callbacks(gateway):
    listener = Listener()
    subscription = gateway.subscribe(listener.on_change, listener.on_error)

    subscription.cancel()
    subscription.cancel()
    gateway.create_entry("after cancel")

    assert len(listener.snapshots) == 1
    assert gateway.listener_count == 0


def test_listener_exception_does_not_break_writes_or_other_listeners(gateway):
    def explode(entries):
        raise RuntimeError("listener bug")

    gateway.subscribe(explode, lambda error: None)
    listener = Listener()
    gateway.subscribe(listener.on_change, listener.on_error)

    gateway.create_entry("still saved")

    assert [entry.content for entry in listener.latest] == ["still saved"]


def test_memory_gateway_keeps_insertion_order():
    gateway = InMemoryEntryStoreGateway()
    ids = [gateway.create_entry(text) for text in ("a", "b", "c")]

    assert [entry.entry_id for entry in gateway.list_entries()] == ids


def test_sql_gateway_wraps_database_errors_on_write(sql_gateway):
    listener = Listener()
    sql_gateway.subscribe(listener.on_change, listener.on_error)

    with sql_gateway._engine.begin() as conn:
        conn.execute(sa.text("ALTER TABLE entries RENAME TO entries_moved"))

    with pytest.raises(RemoteWriteError) as excinfo:
        sql_gateway.create_entry("lost")

    assert excinfo.value.code == "write_failed"
    assert listener.errors == []

    with sql_gateway._engine.begin() as conn:
        conn.execute(sa.text("ALTER TABLE entries_moved RENAME TO entries"))
    sql_gateway.create_entry("saved")
    assert [entry.content for entry in listener.latest] == ["saved"]


def test_sql_gateway_listen_error_keeps_registration(sql_gateway, monkeypatch):
    sql_gateway.create_entry("before")
    listener = Listener()
    sql_gateway.subscribe(listener.on_change, listener.on_error)
    entry_id = listener.latest[0].entry_id

    def broken_list_entries():
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(sql_gateway, "list_entries", broken_list_entries)
    sql_gateway.update_entry(entry_id, "after")

    assert len(listener.errors) == 1
    assert listener.errors[0].code == "listen_failed"
    assert len(listener.snapshots) == 1

    monkeypatch.undo()
    sql_gateway.update_entry(entry_id, "recovered")
    assert listener.latest[0].content == "recovered"


def test_build_gateway_selects_memory_backend():
    settings = Settings(store=StoreConfig(backend="memory"))

    assert isinstance(build_entry_store_gateway(settings), InMemoryEntryStoreGateway)


def test_build_gateway_falls_back_when_sql_table_missing(tmp_path):
    settings = Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'empty.db'}",
        store=StoreConfig(backend="sql"),
    )

    with pytest.raises(SQLAlchemyError):
        build_entry_store_gateway(settings)
    gateway = build_entry_store_gateway(settings, fallback_to_memory=True)

    assert isinstance(gateway, InMemoryEntryStoreGateway)


def test_build_gateway_rejects_unknown_backend():
    with pytest.raises(RuntimeError):
        build_entry_store_gateway(Settings(store=StoreConfig(backend="mongo")))
