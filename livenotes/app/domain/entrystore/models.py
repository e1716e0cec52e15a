"""Entry data model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import uuid4

from ...infra.logging import get_logger

__all__ = [
    "Entry",
    "MISSING_CONTENT_PLACEHOLDER",
    "utcnow",
]

logger = get_logger(__name__)

MISSING_CONTENT_PLACEHOLDER = "(no content)"


def utcnow() -> datetime:
    """Return timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Entry:
    """A short text note stored in the remote collection."""

    entry_id: str
    content: str
    timestamp: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        *,
        content: str,
        entry_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "Entry":
        """Factory that generates the ID and creation timestamp."""

        return cls(
            entry_id=entry_id or str(uuid4()),
            content=content,
            timestamp=timestamp or utcnow(),
        )

    @classmethod
    def from_document(
        cls, entry_id: str, data: Optional[Mapping[str, Any]]
    ) -> "Entry":
        """Project a stored document onto an Entry.

        Documents without a ``content`` field still show up in the list with a
        placeholder. Timestamps may be datetimes or legacy epoch milliseconds;
        anything else projects as ``None``.
        """

        data = data or {}
        content = data.get("content")
        if content is None:
            content = MISSING_CONTENT_PLACEHOLDER
        return cls(
            entry_id=entry_id,
            content=str(content),
            timestamp=_coerce_timestamp(entry_id, data.get("timestamp")),
        )

    def with_content(self, content: str) -> "Entry":
        """Return a copy with replaced content; the timestamp is kept."""

        return replace(self, content=content)


def _coerce_timestamp(entry_id: str, value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            pass
    # Unknown shapes only lose the timestamp; the entry stays listed.
    logger.warning(
        "entry_timestamp_unparsed",
        extra={"entry_id": entry_id, "value_type": type(value).__name__},
    )
    return None
