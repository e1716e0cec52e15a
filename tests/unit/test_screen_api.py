"""FastAPI tests for the entry screen and health endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from livenotes.app.config import Settings
from livenotes.app.domain.entrystore import InMemoryEntryStoreGateway
from livenotes.app.infra.dispatch import ImmediateDispatcher
from livenotes.app.main import create_app

pytestmark = [pytest.mark.api, pytest.mark.screen]


@pytest.fixture()
def gateway() -> InMemoryEntryStoreGateway:
    return InMemoryEntryStoreGateway()


@pytest.fixture()
def client(gateway):
    app = create_app(
        Settings(), gateway=gateway, dispatcher_factory=ImmediateDispatcher
    )
    with TestClient(app) as test_client:
        yield test_client


def test_healthz_reports_store_and_subscription(client):
    response = client.get("/api/healthz")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["entryStore"] == "memory"
    assert body["collection"] == "entries"
    assert body["subscription"] == "subscribed"
    assert body["metrics"]["counters"]["screen.subscription.activated"] >= 1


def test_initial_screen_is_empty(client):
    body = client.get("/api/screen").json()

    assert body["rows"] == []
    assert body["empty_message"] == "No entries found."
    assert body["submit_label"] == "Save entry"
    assert body["notifications"] == []


def test_submit_then_edit_then_delete(client, gateway):
    client.put("/api/screen/draft", json={"text": "buy milk"})
    response = client.post("/api/screen/submit")

    assert response.status_code == 202
    body = response.json()
    assert body["input_value"] == ""
    assert [row["content"] for row in body["rows"]] == ["buy milk"]
    assert body["notifications"] == ["Entry saved."]
    entry_id = body["rows"][0]["entry_id"]

    body = client.post(f"/api/screen/entries/{entry_id}/edit").json()
    assert body["input_value"] == "buy milk"
    assert body["submit_label"] == "Update entry"
    assert body["editing_entry_id"] == entry_id

    client.put("/api/screen/draft", json={"text": "buy milk and eggs"})
    body = client.post("/api/screen/submit").json()
    assert [row["content"] for row in body["rows"]] == ["buy milk and eggs"]
    assert body["notifications"] == ["Entry updated."]

    response = client.delete(f"/api/screen/entries/{entry_id}")
    assert response.status_code == 202
    assert response.json()["rows"] == []
    assert gateway.list_entries() == []


def test_empty_submit_returns_ok_without_write(client, gateway):
    response = client.post("/api/screen/submit")

    assert response.status_code == 200
    assert response.json()["notifications"] == []
    assert gateway.list_entries() == []


def test_edit_unknown_entry_returns_404(client):
    response = client.post("/api/screen/entries/nope/edit")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "entry_not_displayed"


def test_failed_delete_surfaces_notification(client):
    body = client.delete("/api/screen/entries/missing").json()

    assert body["notifications"] == ["Failed to delete entry: Entry missing not found"]


def test_screen_unavailable_outside_lifespan(gateway):
    app = create_app(
        Settings(), gateway=gateway, dispatcher_factory=ImmediateDispatcher
    )
    client = TestClient(app)

    response = client.get("/api/screen")

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "screen_inactive"
