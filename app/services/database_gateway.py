"""Notification gateway backed by the ``scheduled_notifications`` table.

The Celery beat task in ``app.workers.notifications`` plays the platform:
it claims due rows, marks them delivered and sends them out.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

import db
from app.services.notification_gateway import (
    GatewayError,
    NotificationGateway,
    SchedulingFailure,
)
from app.types.reminder_contract import NotificationRequest
from app.utils.clock import truncate_to_minute
from config import settings

_LOGGER = logging.getLogger(__name__)


class DatabaseNotificationGateway(NotificationGateway):
    def __init__(self, *, enabled: bool | None = None) -> None:
        self.enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled

    async def submit(self, request: NotificationRequest) -> None:
        request = request.model_copy(update={"fire_at": truncate_to_minute(request.fire_at)})
        try:
            await db.upsert_notification(request)
        except SQLAlchemyError as exc:
            raise SchedulingFailure(f"could not store notification {request.identifier}: {exc}") from exc

    async def cancel(self, identifier: str) -> None:
        await self.cancel_batch([identifier])

    async def cancel_batch(self, identifiers: Iterable[str]) -> None:
        try:
            removed = await db.delete_notifications(identifiers)
        except SQLAlchemyError as exc:
            raise GatewayError(f"could not cancel notifications: {exc}") from exc
        if removed:
            _LOGGER.debug("Removed %d scheduled notifications", removed)

    async def request_authorization(self) -> bool:
        # Delivery is opt-in per deployment; there is no interactive prompt.
        return self.enabled
