import asyncio
from uuid import uuid4

import pytest

from app.services import deep_link
from app.services.notifications import build_notification_services
from app.services.notification_gateway import GatewayError, InMemoryNotificationGateway
from app.types.reminder_contract import DeliveredNotification, PresentationOption


@pytest.mark.asyncio
async def test_will_present_is_fixed():
    services = build_notification_services(InMemoryNotificationGateway())
    notification = DeliveredNotification(identifier="n1", title="Jamie", body="Call back")

    assert services.callbacks.will_present(notification) == [
        PresentationOption.BANNER,
        PresentationOption.LIST,
        PresentationOption.SOUND,
    ]


@pytest.mark.asyncio
async def test_tap_routes_to_pending_reminder():
    services = build_notification_services(InMemoryNotificationGateway())
    rid = uuid4()
    notification = DeliveredNotification(
        identifier="n1",
        payload={"reminderID": str(rid), "deepLink": deep_link.encode(rid)},
    )

    assert services.callbacks.did_receive_response(notification) is True
    await asyncio.sleep(0)

    assert services.pending_route.consume() == rid


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"deepLink": None},
        {"deepLink": 17},
        {"deepLink": ""},
        {"deepLink": "http://[broken"},
        {"deepLink": "https://example.com/reminder/1"},
        {"reminderID": str(uuid4())},
    ],
)
async def test_bad_payload_is_dropped(payload):
    services = build_notification_services(InMemoryNotificationGateway())

    assert services.callbacks.did_receive_response(DeliveredNotification(payload=payload)) is False
    await asyncio.sleep(0)

    assert services.pending_route.consume() is None


@pytest.mark.asyncio
async def test_services_start_requests_authorization_once():
    gateway = InMemoryNotificationGateway()
    services = build_notification_services(gateway)

    assert await services.start() is True
    assert await services.start() is True
    assert gateway.calls == [("authorize",)]


@pytest.mark.asyncio
async def test_services_start_survives_gateway_failure(monkeypatch):
    gateway = InMemoryNotificationGateway()

    async def _unavailable():
        raise GatewayError("platform unavailable")

    monkeypatch.setattr(gateway, "request_authorization", _unavailable)
    services = build_notification_services(gateway)

    assert await services.start() is False
    assert services.authorized is False
