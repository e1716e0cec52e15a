"""EntryStore gateway implementations."""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...config import Settings, load_settings
from ...infra.db import get_engine
from ...infra.logging import get_logger
from .errors import RemoteListenError, RemoteWriteError
from .models import Entry

__all__ = [
    "OnChange",
    "OnError",
    "Subscription",
    "EntryStoreGateway",
    "SnapshotBroadcaster",
    "InMemoryEntryStoreGateway",
    "SqlEntryStoreGateway",
    "build_entries_table",
    "build_entry_store_gateway",
]

logger = get_logger(__name__)

OnChange = Callable[[List[Entry]], None]
OnError = Callable[[RemoteListenError], None]


class Subscription(Protocol):  # pragma: no cover
    """Handle for a live snapshot registration."""

    def cancel(self) -> None: ...


class EntryStoreGateway(Protocol):  # pragma: no cover
    """Remote document collection holding entries."""

    def create_entry(self, content: str) -> str: ...

    def update_entry(self, entry_id: str, content: str) -> None: ...

    def delete_entry(self, entry_id: str) -> None: ...

    def subscribe(self, on_change: OnChange, on_error: OnError) -> Subscription: ...


class ListenerRegistration(Subscription):
    """Registration handle returned by :class:`SnapshotBroadcaster`."""

    def __init__(self, broadcaster: "SnapshotBroadcaster", listener_id: int) -> None:
        self._broadcaster = broadcaster
        self.listener_id = listener_id

    @property
    def active(self) -> bool:
        return self._broadcaster.is_registered(self.listener_id)

    def cancel(self) -> None:
        self._broadcaster.remove(self.listener_id)


class SnapshotBroadcaster:
    """In-process fan-out of full collection snapshots.

    Delivery holds the broadcaster lock, so once ``cancel`` returns no
    callback for that registration is running or will run.
    """

    def __init__(self) -> None:
        self._listeners: Dict[int, Tuple[OnChange, OnError]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._listeners)

    def register(self, on_change: OnChange, on_error: OnError) -> ListenerRegistration:
        with self._lock:
            listener_id = next(self._ids)
            self._listeners[listener_id] = (on_change, on_error)
        return ListenerRegistration(self, listener_id)

    def is_registered(self, listener_id: int) -> bool:
        return listener_id in self._listeners

    def remove(self, listener_id: int) -> None:
        with self._lock:
            self._listeners.pop(listener_id, None)

    def publish(self, snapshot: List[Entry], *, only: Optional[int] = None) -> None:
        with self._lock:
            for listener_id, (on_change, _) in list(self._listeners.items()):
                if only is not None and listener_id != only:
                    continue
                if listener_id not in self._listeners:
                    continue
                self._deliver(on_change, list(snapshot))

    def fail(self, error: RemoteListenError, *, only: Optional[int] = None) -> None:
        with self._lock:
            for listener_id, (_, on_error) in list(self._listeners.items()):
                if only is not None and listener_id != only:
                    continue
                if listener_id not in self._listeners:
                    continue
                self._deliver(on_error, error)

    def _deliver(self, callback: Callable, payload) -> None:
        try:
            callback(payload)
        except Exception:
            logger.exception("snapshot_listener_failed")


class InMemoryEntryStoreGateway(EntryStoreGateway):
    """Process-local collection used for local development and tests."""

    def __init__(self) -> None:
        self._entries: Dict[str, Entry] = {}
        self._lock = threading.RLock()
        self._broadcaster = SnapshotBroadcaster()

    @property
    def listener_count(self) -> int:
        return len(self._broadcaster)

    def create_entry(self, content: str) -> str:
        with self._lock:
            record = Entry.new(content=content)
            self._entries[record.entry_id] = record
            logger.info("entry_created", extra={"entry_id": record.entry_id})
            self._broadcaster.publish(self.list_entries())
        return record.entry_id

    def update_entry(self, entry_id: str, content: str) -> None:
        with self._lock:
            record = self._entries.get(entry_id)
            if record is None:
                raise RemoteWriteError(
                    f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
                )
            self._entries[entry_id] = record.with_content(content)
            logger.info("entry_updated", extra={"entry_id": entry_id})
            self._broadcaster.publish(self.list_entries())

    def delete_entry(self, entry_id: str) -> None:
        with self._lock:
            if self._entries.pop(entry_id, None) is None:
                raise RemoteWriteError(
                    f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
                )
            logger.info("entry_deleted", extra={"entry_id": entry_id})
            self._broadcaster.publish(self.list_entries())

    def subscribe(self, on_change: OnChange, on_error: OnError) -> Subscription:
        with self._lock:
            registration = self._broadcaster.register(on_change, on_error)
            self._broadcaster.publish(
                self.list_entries(), only=registration.listener_id
            )
        return registration

    def list_entries(self) -> List[Entry]:
        with self._lock:
            return list(self._entries.values())


def build_entries_table(metadata: MetaData, name: str = "entries") -> Table:
    """Describe the entries table (mirrors the initial migration)."""

    return Table(
        name,
        metadata,
        Column("entry_id", String(length=36), primary_key=True),
        Column("content", Text(), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
    )


class SqlEntryStoreGateway(EntryStoreGateway):
    """SQLAlchemy-backed adapter that persists entries to a SQL table.

    Live snapshots are fanned out in-process after each write made through
    this gateway instance.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        *,
        table: Optional[Table] = None,
        table_name: str = "entries",
    ) -> None:
        self._engine = engine or get_engine()
        if table is not None:
            self._entries = table
            self._metadata = table.metadata
        else:
            self._metadata = MetaData()
            self._entries = Table(
                table_name, self._metadata, autoload_with=self._engine
            )
        self._broadcaster = SnapshotBroadcaster()
        self._publish_lock = threading.RLock()

    @property
    def listener_count(self) -> int:
        return len(self._broadcaster)

    def create_entry(self, content: str) -> str:
        entry = Entry.new(content=content)
        stmt = insert(self._entries).values(
            entry_id=entry.entry_id,
            content=entry.content,
            created_at=entry.timestamp,
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.warning("entry_create_failed", exc_info=True)
            raise RemoteWriteError(str(exc)) from exc
        logger.info("entry_created", extra={"entry_id": entry.entry_id})
        self._broadcast()
        return entry.entry_id

    def update_entry(self, entry_id: str, content: str) -> None:
        stmt = (
            update(self._entries)
            .where(self._entries.c.entry_id == entry_id)
            .values(content=content)
        )
        try:
            with self._engine.begin() as conn:
                rowcount = conn.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            logger.warning(
                "entry_update_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise RemoteWriteError(str(exc), entry_id=entry_id) from exc
        if rowcount == 0:
            raise RemoteWriteError(
                f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
            )
        logger.info("entry_updated", extra={"entry_id": entry_id})
        self._broadcast()

    def delete_entry(self, entry_id: str) -> None:
        stmt = delete(self._entries).where(self._entries.c.entry_id == entry_id)
        try:
            with self._engine.begin() as conn:
                rowcount = conn.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            logger.warning(
                "entry_delete_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise RemoteWriteError(str(exc), entry_id=entry_id) from exc
        if rowcount == 0:
            raise RemoteWriteError(
                f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
            )
        logger.info("entry_deleted", extra={"entry_id": entry_id})
        self._broadcast()

    def subscribe(self, on_change: OnChange, on_error: OnError) -> Subscription:
        with self._publish_lock:
            registration = self._broadcaster.register(on_change, on_error)
            self._broadcast(only=registration.listener_id)
        return registration

    def list_entries(self) -> List[Entry]:
        stmt = select(self._entries).order_by(
            self._entries.c.created_at, self._entries.c.entry_id
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            Entry.from_document(
                row["entry_id"],
                {"content": row["content"], "timestamp": row["created_at"]},
            )
            for row in rows
        ]

    def _broadcast(self, *, only: Optional[int] = None) -> None:
        # Query and publish under one lock so snapshots never go backwards.
        with self._publish_lock:
            if not len(self._broadcaster):
                return
            try:
                snapshot = self.list_entries()
            except SQLAlchemyError as exc:
                logger.warning("entry_snapshot_failed", exc_info=True)
                self._broadcaster.fail(
                    RemoteListenError(f"Snapshot query failed: {exc}"), only=only
                )
                return
            self._broadcaster.publish(snapshot, only=only)


def build_entry_store_gateway(
    settings: Optional[Settings] = None,
    *,
    fallback_to_memory: bool = False,
) -> EntryStoreGateway:
    """Factory that returns the configured EntryStore gateway implementation."""

    settings = settings or load_settings()
    backend = settings.store.backend
    if backend == "memory":
        return InMemoryEntryStoreGateway()
    if backend == "sql":
        try:
            return SqlEntryStoreGateway(
                get_engine(settings.database_url),
                table_name=settings.store.collection,
            )
        except SQLAlchemyError:
            if not fallback_to_memory:
                raise
            logger.warning("sql_entry_store_unavailable_falling_back", exc_info=True)
            return InMemoryEntryStoreGateway()
    if backend == "firestore":
        from ...infra.firestore import build_firestore_client
        from .firestore_gateway import FirestoreEntryStoreGateway

        return FirestoreEntryStoreGateway(
            build_firestore_client(settings.store.firestore),
            collection=settings.store.collection,
        )
    raise RuntimeError(f"Unknown entry store backend: {backend!r}")
