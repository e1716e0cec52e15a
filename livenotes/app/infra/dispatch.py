"""Single execution context for screen handlers.

Every UI intent handler and every store callback runs on one dispatcher, so
screen state is never touched concurrently. Blocking store calls are pushed
off the context with ``submit`` and their outcome is posted back.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from functools import partial
from typing import Any, Callable, Optional, Protocol, TypeVar

from .logging import get_logger

__all__ = [
    "Dispatcher",
    "ImmediateDispatcher",
    "AsyncioDispatcher",
]

logger = get_logger(__name__)

T = TypeVar("T")


class Dispatcher(Protocol):  # pragma: no cover - interface only
    def post(self, callback: Callable[..., None], *args: Any) -> None:
        """Run ``callback(*args)`` on the execution context."""

    def submit(
        self,
        call: Callable[[], T],
        *,
        on_success: Callable[[T], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        """Start ``call`` without waiting; report its outcome on the context."""


class ImmediateDispatcher(Dispatcher):
    """Runs everything inline on the caller's thread (tests, scripts)."""

    def post(self, callback: Callable[..., None], *args: Any) -> None:
        callback(*args)

    def submit(
        self,
        call: Callable[[], T],
        *,
        on_success: Callable[[T], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        try:
            result = call()
        except Exception as exc:
            on_failure(exc)
            return
        on_success(result)


class AsyncioDispatcher(Dispatcher):
    """Dispatcher bound to an asyncio event loop.

    ``post`` is thread-safe and may be called from store listener threads.
    ``submit`` must be called from the loop thread; the call runs in the
    loop's executor and the outcome callback is scheduled back on the loop.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        executor: Optional[Executor] = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._executor = executor
        self._pending: set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def post(self, callback: Callable[..., None], *args: Any) -> None:
        if self._loop.is_closed():
            logger.debug(
                "dispatch_dropped_loop_closed",
                extra={"callback": _callback_name(callback)},
            )
            return
        self._loop.call_soon_threadsafe(_safe_call, callback, *args)

    def submit(
        self,
        call: Callable[[], T],
        *,
        on_success: Callable[[T], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        future = self._loop.run_in_executor(self._executor, call)
        self._pending.add(future)
        future.add_done_callback(
            partial(self._complete, on_success=on_success, on_failure=on_failure)
        )

    async def wait_until_idle(self, timeout: float = 30.0) -> bool:
        """Wait for outstanding submissions and their posted callbacks."""

        deadline = self._loop.time() + timeout
        while self._pending:
            remaining = deadline - self._loop.time()
            if remaining <= 0:
                logger.warning(
                    "dispatch_idle_timeout", extra={"pending": len(self._pending)}
                )
                return False
            await asyncio.wait(set(self._pending), timeout=remaining)
            # Let callbacks posted by the finished calls run.
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        return True

    def _complete(
        self,
        future: asyncio.Future,
        *,
        on_success: Callable[[Any], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            _safe_call(on_success, future.result())
        elif isinstance(exc, Exception):
            _safe_call(on_failure, exc)
        else:
            raise exc


def _safe_call(callback: Callable[..., None], *args: Any) -> None:
    """Keep one failing handler from tearing down the loop."""

    try:
        callback(*args)
    except Exception:
        logger.exception(
            "dispatch_handler_failed", extra={"callback": _callback_name(callback)}
        )


def _callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
