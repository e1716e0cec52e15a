"""User-facing transient notifications (toasts)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol

from .logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):  # pragma: no cover - interface only
    """Presents a one-shot message to the user."""

    def notify(self, message: str) -> None:
        """Show ``message``; the return value is ignored."""


@dataclass
class LoggingNotifier(Notifier):
    """Default notifier that logs messages until a real UI is attached."""

    def notify(self, message: str) -> None:
        logger.info("user_notification", extra={"notification": message})


@dataclass
class RecordingNotifier(Notifier):
    """Keeps the most recent messages so headless callers can surface them."""

    messages: List[str] = field(default_factory=list)
    limit: int = 50

    def notify(self, message: str) -> None:
        logger.info("user_notification", extra={"notification": message})
        self.messages.append(message)
        if len(self.messages) > self.limit:
            del self.messages[: len(self.messages) - self.limit]

    def drain(self) -> List[str]:
        """Return pending messages once; each toast is shown a single time."""

        drained, self.messages = self.messages, []
        return drained
