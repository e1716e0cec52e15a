"""Live snapshot subscription owned by a screen session."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from ...infra.dispatch import Dispatcher
from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient, get_metrics_client
from ...infra.notifications import Notifier
from ..entrystore.errors import RemoteListenError
from ..entrystore.gateway import EntryStoreGateway, Subscription
from ..entrystore.models import Entry

__all__ = [
    "LISTEN_FAILED_MESSAGE",
    "SubscriptionManager",
    "SubscriptionState",
]

logger = get_logger(__name__)

LISTEN_FAILED_MESSAGE = "Failed to load entries: {error}"


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBED = "subscribed"


class SubscriptionManager:
    """Holds at most one live registration and the list it projects.

    Every snapshot replaces the list wholesale. Gateway callbacks are posted
    onto the dispatcher and tagged with the registration generation; anything
    that arrives for a cancelled registration is dropped.
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
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._entries: List[Entry] = []
        self.state = SubscriptionState.UNSUBSCRIBED
        self.last_error: Optional[RemoteListenError] = None

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    @property
    def is_subscribed(self) -> bool:
        return self.state is SubscriptionState.SUBSCRIBED

    def activate(self) -> None:
        """Register the live listener, replacing any previous registration."""

        if self.is_subscribed:
            logger.info(
                "subscription_replaced", extra={"generation": self._generation}
            )
            self._cancel()
            self.state = SubscriptionState.UNSUBSCRIBED
        self._generation += 1
        generation = self._generation
        try:
            subscription = self._gateway.subscribe(
                lambda entries: self._dispatcher.post(
                    self._apply_snapshot, generation, entries
                ),
                lambda error: self._dispatcher.post(
                    self._apply_error, generation, error
                ),
            )
        except Exception:
            self._generation += 1
            self._entries = []
            logger.warning("subscription_activate_failed", exc_info=True)
            raise
        self._subscription = subscription
        self.state = SubscriptionState.SUBSCRIBED
        self._metrics.increment("screen.subscription.activated")
        logger.info("subscription_activated", extra={"generation": generation})

    def teardown(self) -> None:
        """Cancel the registration and drop the derived list."""

        if not self.is_subscribed:
            return
        self._cancel()
        self._entries = []
        self.last_error = None
        self.state = SubscriptionState.UNSUBSCRIBED
        logger.info("subscription_released")

    def __enter__(self) -> "SubscriptionManager":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    def _cancel(self) -> None:
        self._generation += 1
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    def _apply_snapshot(self, generation: int, entries: List[Entry]) -> None:
        if generation != self._generation:
            logger.debug("stale_snapshot_dropped", extra={"generation": generation})
            return
        self._entries = list(entries)
        self.last_error = None
        self._metrics.gauge("screen.entries.visible", len(self._entries))

    def _apply_error(self, generation: int, error: RemoteListenError) -> None:
        if generation != self._generation:
            logger.debug(
                "stale_listen_error_dropped", extra={"generation": generation}
            )
            return
        # The visible list is kept as-is until the next snapshot arrives.
        self.last_error = error
        self._metrics.increment("screen.listen.failed")
        logger.warning(
            "subscription_error", extra={"code": error.code, "error": str(error)}
        )
        self._notifier.notify(LISTEN_FAILED_MESSAGE.format(error=error))
