"""Tests for the screen execution-context dispatchers."""

from __future__ import annotations

import asyncio
import threading

import pytest

from livenotes.app.infra import dispatch as dispatch_module
from livenotes.app.infra.dispatch import AsyncioDispatcher, ImmediateDispatcher
from tests.helpers.logging import RecordingLogger, find_log

pytestmark = [pytest.mark.screen]


def test_immediate_dispatcher_runs_inline():
    dispatcher = ImmediateDispatcher()
    seen = []

    dispatcher.post(seen.append, "posted")
    dispatcher.submit(lambda: "ok", on_success=seen.append, on_failure=seen.append)

    assert seen == ["posted", "ok"]


def test_immediate_dispatcher_routes_exceptions_to_failure():
    dispatcher = ImmediateDispatcher()
    failures = []

    def boom():
        raise ValueError("nope")

    dispatcher.submit(boom, on_success=pytest.fail, on_failure=failures.append)

    assert isinstance(failures[0], ValueError)


def test_asyncio_submit_returns_before_call_finishes():
    release = threading.Event()
    results = []

    async def scenario():
        dispatcher = AsyncioDispatcher()
        loop_thread = threading.get_ident()

        def slow_call():
            release.wait(timeout=5)
            return "done"

        def on_success(value):
            results.append((value, threading.get_ident() == loop_thread))

        dispatcher.submit(slow_call, on_success=on_success, on_failure=pytest.fail)
        assert dispatcher.pending == 1
        assert results == []
        release.set()
        assert await dispatcher.wait_until_idle(timeout=5) is True
        assert dispatcher.pending == 0

    asyncio.run(scenario())

    assert results == [("done", True)]


def test_asyncio_failure_is_reported_on_loop():
    failures = []

    async def scenario():
        dispatcher = AsyncioDispatcher()

        def broken():
            raise RuntimeError("store offline")

        dispatcher.submit(broken, on_success=pytest.fail, on_failure=failures.append)
        await dispatcher.wait_until_idle(timeout=5)

    asyncio.run(scenario())

    assert len(failures) == 1
    assert str(failures[0]) == "store offline"


def test_asyncio_post_from_foreign_thread_runs_on_loop():
    seen = []

    async def scenario():
        dispatcher = AsyncioDispatcher()
        loop_thread = threading.get_ident()
        delivered = asyncio.Event()

        def handler(value):
            seen.append((value, threading.get_ident() == loop_thread))
            delivered.set()

        worker = threading.Thread(target=dispatcher.post, args=(handler, "snapshot"))
        worker.start()
        worker.join()
        await asyncio.wait_for(delivered.wait(), timeout=5)

    asyncio.run(scenario())

    assert seen == [("snapshot", True)]


def test_failing_handler_is_logged_and_loop_survives(monkeypatch):
    recorder = RecordingLogger()
    monkeypatch.setattr(dispatch_module, "logger", recorder)
    seen = []

    async def scenario():
        dispatcher = AsyncioDispatcher()

        def explode(_):
            raise RuntimeError("handler bug")

        dispatcher.post(explode, None)
        dispatcher.post(seen.append, "after")
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert seen == ["after"]
    find_log(recorder.records, level="exception", message="dispatch_handler_failed")


def test_post_after_loop_closed_is_dropped():
    loop = asyncio.new_event_loop()
    dispatcher = AsyncioDispatcher(loop)
    loop.close()

    dispatcher.post(pytest.fail, "late")
