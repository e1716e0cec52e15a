"""Entry storage: model, error taxonomy and remote collection gateways."""

from .errors import EntryStoreError, RemoteListenError, RemoteWriteError
from .gateway import (
    EntryStoreGateway,
    InMemoryEntryStoreGateway,
    SqlEntryStoreGateway,
    Subscription,
    build_entry_store_gateway,
)
from .models import Entry

__all__ = [
    "Entry",
    "EntryStoreError",
    "RemoteListenError",
    "RemoteWriteError",
    "EntryStoreGateway",
    "InMemoryEntryStoreGateway",
    "SqlEntryStoreGateway",
    "Subscription",
    "build_entry_store_gateway",
]
