"""Counters and gauges for screen intents and store outcomes."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Protocol

from .logging import get_logger

logger = get_logger(__name__)


class MetricsClient(Protocol):  # pragma: no cover - interface only
    def increment(self, metric: str, value: int = 1) -> None: ...

    def gauge(self, metric: str, value: int) -> None: ...


@dataclass
class InMemoryMetricsClient(MetricsClient):
    """Process-local sink; store callbacks may report from worker threads."""

    counters: Counter = field(default_factory=Counter)
    gauges: Dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment(self, metric: str, value: int = 1) -> None:
        with self._lock:
            self.counters[metric] += value
        logger.debug("metrics_increment", extra={"metric": metric, "value": value})

    def gauge(self, metric: str, value: int) -> None:
        with self._lock:
            self.gauges[metric] = value
        logger.debug("metrics_gauge", extra={"metric": metric, "value": value})

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Copy of current values, for health output."""

        with self._lock:
            return {"counters": dict(self.counters), "gauges": dict(self.gauges)}


_client: InMemoryMetricsClient | None = None
_client_lock = threading.Lock()


def get_metrics_client() -> InMemoryMetricsClient:
    """Return the process-wide metrics client."""

    global _client
    with _client_lock:
        if _client is None:
            _client = InMemoryMetricsClient()
        return _client
