"""Form controller: draft text, edit target and the intents they drive."""

from __future__ import annotations

from functools import partial
from typing import Optional

from ...infra.dispatch import Dispatcher
from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient, get_metrics_client
from ...infra.notifications import Notifier
from ..entrystore.gateway import EntryStoreGateway
from ..entrystore.models import Entry

__all__ = ["FormController", "MESSAGES"]

logger = get_logger(__name__)

MESSAGES = {
    "create_ok": "Entry saved.",
    "create_failed": "Failed to save entry: {error}",
    "update_ok": "Entry updated.",
    "update_failed": "Failed to update entry: {error}",
    "delete_ok": "Entry deleted.",
    "delete_failed": "Failed to delete entry: {error}",
}


class FormController:
    """Transient input state for the entry screen.

    Intents are handed to the dispatcher and never awaited: the form is
    cleared on submit whatever the write eventually reports.
    """

    def __init__(
        self,
        gateway: EntryStoreGateway,
        dispatcher: Dispatcher,
        notifier: Notifier,
        *,
        metrics: Optional[MetricsClient] = None,
    ) -> None:
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._metrics = metrics or get_metrics_client()
        self.draft_text = ""
        self.editing_target: Optional[Entry] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_target is not None

    def set_draft(self, text: str) -> None:
        self.draft_text = text

    def on_submit(self) -> bool:
        """Create or update from the draft; returns False when nothing was sent."""

        content = self.draft_text
        if not content:
            return False
        target = self.editing_target
        if target is not None:
            self._dispatch(
                "update",
                partial(self._gateway.update_entry, target.entry_id, content),
                entry_id=target.entry_id,
            )
        else:
            self._dispatch("create", partial(self._gateway.create_entry, content))
        self.draft_text = ""
        self.editing_target = None
        return True

    def on_edit_requested(self, entry: Entry) -> None:
        self.draft_text = entry.content
        self.editing_target = entry

    def on_delete_requested(self, entry_id: str) -> None:
        # Edit state is left alone even when the deleted entry is being edited.
        self._dispatch(
            "delete", partial(self._gateway.delete_entry, entry_id), entry_id=entry_id
        )

    def _dispatch(self, action: str, call, *, entry_id: Optional[str] = None) -> None:
        self._metrics.increment(f"screen.intent.{action}")
        logger.info("screen_intent", extra={"action": action, "entry_id": entry_id})
        self._dispatcher.submit(
            call,
            on_success=partial(self._on_write_succeeded, action),
            on_failure=partial(self._on_write_failed, action, entry_id),
        )

    def _on_write_succeeded(self, action: str, _result: object) -> None:
        self._metrics.increment(f"screen.write.{action}.ok")
        self._notifier.notify(MESSAGES[f"{action}_ok"])

    def _on_write_failed(
        self, action: str, entry_id: Optional[str], error: Exception
    ) -> None:
        self._metrics.increment(f"screen.write.{action}.failed")
        logger.warning(
            "screen_write_failed",
            extra={
                "action": action,
                "entry_id": entry_id,
                "code": getattr(error, "code", None),
                "error": str(error),
            },
        )
        self._notifier.notify(MESSAGES[f"{action}_failed"].format(error=error))
