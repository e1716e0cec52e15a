"""Entry screen session wiring the subscription, the form and the renderer."""

from __future__ import annotations

from typing import List, Optional

from ...infra.dispatch import Dispatcher, ImmediateDispatcher
from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient, get_metrics_client
from ...infra.notifications import LoggingNotifier, Notifier
from ..entrystore.gateway import EntryStoreGateway
from ..entrystore.models import Entry
from .form import FormController
from .rendering import ScreenView, render_screen
from .subscription import SubscriptionManager, SubscriptionState

__all__ = ["EntryScreenSession"]

logger = get_logger(__name__)


class EntryScreenSession:
    """Owns all state of one active entry screen.

    The session must only be driven from its dispatcher's execution context.
    """

    def __init__(
        self,
        gateway: EntryStoreGateway,
        *,
        dispatcher: Optional[Dispatcher] = None,
        notifier: Optional[Notifier] = None,
        metrics: Optional[MetricsClient] = None,
    ) -> None:
        self.gateway = gateway
        self.dispatcher = dispatcher or ImmediateDispatcher()
        self.notifier = notifier or LoggingNotifier()
        metrics = metrics or get_metrics_client()
        self.subscription = SubscriptionManager(
            gateway, self.dispatcher, self.notifier, metrics=metrics
        )
        self.form = FormController(
            gateway, self.dispatcher, self.notifier, metrics=metrics
        )

    @property
    def entries(self) -> List[Entry]:
        return self.subscription.entries

    @property
    def state(self) -> SubscriptionState:
        return self.subscription.state

    def activate(self) -> None:
        self.subscription.activate()

    def close(self) -> None:
        self.subscription.teardown()

    def __enter__(self) -> "EntryScreenSession":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def find_entry(self, entry_id: str) -> Optional[Entry]:
        """Look ``entry_id`` up in the currently displayed list."""

        for entry in self.subscription.entries:
            if entry.entry_id == entry_id:
                return entry
        return None

    def set_draft(self, text: str) -> None:
        self.form.set_draft(text)

    def submit(self) -> bool:
        return self.form.on_submit()

    def request_edit(self, entry_id: str) -> Entry:
        entry = self.find_entry(entry_id)
        if entry is None:
            logger.info("edit_target_missing", extra={"entry_id": entry_id})
            raise KeyError(f"Entry {entry_id} not displayed")
        self.form.on_edit_requested(entry)
        return entry

    def request_delete(self, entry_id: str) -> None:
        self.form.on_delete_requested(entry_id)

    def view(self) -> ScreenView:
        return render_screen(self.subscription.entries, self.form)
