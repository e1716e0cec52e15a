"""Firestore-backed EntryStore gateway."""

from __future__ import annotations

import threading
from typing import Any, List

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from ...config.loader import DEFAULT_COLLECTION
from ...infra.logging import get_logger
from .errors import RemoteListenError, RemoteWriteError
from .gateway import EntryStoreGateway, OnChange, OnError, Subscription
from .models import Entry

__all__ = [
    "FirestoreEntryStoreGateway",
    "FirestoreWatchSubscription",
]

logger = get_logger(__name__)


class FirestoreWatchSubscription(Subscription):
    """Wraps a Firestore watch; callbacks stop as soon as ``cancel`` runs."""

    def __init__(self, watch: Any = None) -> None:
        self._watch = watch
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled

    def attach(self, watch: Any) -> None:
        with self._lock:
            if self._cancelled:
                watch.unsubscribe()
                return
            self._watch = watch

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            watch, self._watch = self._watch, None
        if watch is not None:
            watch.unsubscribe()


class FirestoreEntryStoreGateway(EntryStoreGateway):
    """Stores entries as documents in a Firestore collection."""

    def __init__(
        self, client: firestore.Client, *, collection: str = DEFAULT_COLLECTION
    ) -> None:
        self._client = client
        self._collection_name = collection

    def _collection(self):
        return self._client.collection(self._collection_name)

    def create_entry(self, content: str) -> str:
        try:
            _, document = self._collection().add(
                {"content": content, "timestamp": firestore.SERVER_TIMESTAMP}
            )
        except google_exceptions.GoogleAPICallError as exc:
            logger.warning("entry_create_failed", exc_info=True)
            raise RemoteWriteError(str(exc)) from exc
        logger.info("entry_created", extra={"entry_id": document.id})
        return document.id

    def update_entry(self, entry_id: str, content: str) -> None:
        document = self._collection().document(entry_id)
        try:
            document.update({"content": content})
        except google_exceptions.NotFound as exc:
            raise RemoteWriteError(
                f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
            ) from exc
        except google_exceptions.GoogleAPICallError as exc:
            logger.warning(
                "entry_update_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise RemoteWriteError(str(exc), entry_id=entry_id) from exc
        logger.info("entry_updated", extra={"entry_id": entry_id})

    def delete_entry(self, entry_id: str) -> None:
        document = self._collection().document(entry_id)
        # Firestore deletes are silent for missing documents unless preconditioned.
        option = self._client.write_option(exists=True)
        try:
            document.delete(option=option)
        except google_exceptions.NotFound as exc:
            raise RemoteWriteError(
                f"Entry {entry_id} not found", code="not_found", entry_id=entry_id
            ) from exc
        except google_exceptions.GoogleAPICallError as exc:
            logger.warning(
                "entry_delete_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise RemoteWriteError(str(exc), entry_id=entry_id) from exc
        logger.info("entry_deleted", extra={"entry_id": entry_id})

    def subscribe(self, on_change: OnChange, on_error: OnError) -> Subscription:
        subscription = FirestoreWatchSubscription()

        def _on_snapshot(documents, _changes, _read_time) -> None:
            if not subscription.active:
                return
            try:
                entries = _documents_to_entries(documents)
            except (TypeError, ValueError, AttributeError) as exc:
                logger.warning("entry_snapshot_decode_failed", exc_info=True)
                on_error(RemoteListenError(f"Snapshot decode failed: {exc}"))
                return
            on_change(entries)

        def _on_stream_done(call) -> None:
            # Fires once the watch gives up on its stream; our own cancel is ignored.
            if not subscription.active:
                return
            reason = _stream_end_reason(call)
            logger.warning("entry_listen_interrupted", extra={"reason": reason})
            on_error(RemoteListenError(f"Listener interrupted: {reason}"))

        try:
            watch = self._collection().on_snapshot(_on_snapshot)
        except google_exceptions.GoogleAPICallError as exc:
            logger.warning("entry_listen_failed", exc_info=True)
            subscription.cancel()
            on_error(RemoteListenError(f"Listener registration failed: {exc}"))
            return subscription
        subscription.attach(watch)
        # The watch exposes no error callback; its bidi RPC reports terminal ends.
        watch._rpc.add_done_callback(_on_stream_done)
        return subscription


def _stream_end_reason(call: Any) -> str:
    details = getattr(call, "details", None)
    if callable(details):
        return details() or "stream closed"
    if isinstance(call, BaseException):
        return str(call)
    return "stream closed"


def _documents_to_entries(documents) -> List[Entry]:
    return [
        Entry.from_document(document.id, document.to_dict()) for document in documents
    ]
