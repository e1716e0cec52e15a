"""Entry store error taxonomy."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "EntryStoreError",
    "RemoteWriteError",
    "RemoteListenError",
]


class EntryStoreError(RuntimeError):
    """Base class for failures reported by an entry store gateway."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message)
        self.code = code


class RemoteWriteError(EntryStoreError):
    """Raised when a create, update or delete cannot be applied."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "write_failed",
        entry_id: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.entry_id = entry_id


class RemoteListenError(EntryStoreError):
    """Delivered to listeners when a live subscription fails or is interrupted."""

    def __init__(self, message: str, *, code: str = "listen_failed") -> None:
        super().__init__(message, code=code)
