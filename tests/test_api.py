from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

import main
from app.services import deep_link
from app.services.notification_gateway import InMemoryNotificationGateway
from app.services.notifications import build_notification_services


@pytest.fixture
def gateway():
    return InMemoryNotificationGateway()


@pytest.fixture
def client(monkeypatch, gateway):
    monkeypatch.setattr(main, "build_notification_services", lambda: build_notification_services(gateway))
    with TestClient(main.app) as test_client:
        yield test_client


def _reminder_body(**overrides) -> dict:
    body = {
        "id": str(uuid4()),
        "notification_id": str(uuid4()),
        "due_date": (datetime.now(timezone.utc) + timedelta(hours=2)).isoformat(),
        "message": "Follow up on proposal",
        "completed": False,
        "person": {"id": str(uuid4()), "display_name": "Jordan Lee"},
    }
    body.update(overrides)
    return body


def test_startup_requests_authorization(client, gateway):
    assert ("authorize",) in gateway.calls


def test_schedule_and_complete(client, gateway):
    body = _reminder_body()

    scheduled = client.post("/v1/reminders/schedule", json=body)
    assert scheduled.status_code == 200
    assert scheduled.json()["status"] == "scheduled"
    assert list(gateway.pending) == [body["notification_id"]]

    completed = client.post("/v1/reminders/schedule", json={**body, "completed": True})
    assert completed.json()["status"] == "cancelled"
    assert gateway.pending == {}


def test_naive_due_date_rejected(client):
    response = client.post(
        "/v1/reminders/schedule",
        json=_reminder_body(due_date="2030-01-01T09:00:00"),
    )
    assert response.status_code == 422


def test_cancel_many(client, gateway):
    bodies = [_reminder_body() for _ in range(2)]
    for body in bodies:
        client.post("/v1/reminders/schedule", json=body)

    response = client.post("/v1/reminders/cancel", json={"reminders": bodies})

    assert response.json() == {"cancelled": 2, "error": None}
    assert gateway.pending == {}
    assert gateway.calls[-1][0] == "cancel_batch"


def test_reminder_status(client):
    response = client.post("/v1/reminders/status", json=_reminder_body(person=None))
    assert response.json() == {"schedulable": False, "due_soon": True}


def test_present_options(client):
    response = client.post("/v1/notifications/present", json={"identifier": "n1"})
    assert response.json() == ["banner", "list", "sound"]


def test_notification_tap_sets_pending_route(client):
    rid = uuid4()
    payload = {"reminderID": str(rid), "deepLink": deep_link.encode(rid)}

    tapped = client.post("/v1/notifications/respond", json={"identifier": "n1", "payload": payload})
    assert tapped.json() == {"routed": True}

    assert client.get("/v1/routes/pending").json() == {"reminder_id": str(rid)}
    assert client.get("/v1/routes/pending").json() == {"reminder_id": None}


def test_malformed_link_leaves_pending_route(client):
    rid = uuid4()
    assert client.post("/v1/deeplinks", json={"uri": deep_link.encode(rid)}).json() == {"routed": True}
    assert client.post("/v1/deeplinks", json={"uri": "clarity-ish://nope"}).json() == {"routed": False}

    assert client.get("/v1/routes/pending").json() == {"reminder_id": str(rid)}
