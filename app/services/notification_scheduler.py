"""Keeps one reminder's platform notification in step with its domain state.

``schedule_reminder`` always cancels before it (maybe) submits, so repeated,
interleaved or out-of-order calls converge on whatever the reminder looks
like at the time of the last call. Calls for the same notification
identifier are additionally serialized with a per-key lock; calls for
different reminders run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, Optional

from app.services import deep_link, scheduling_policy
from app.services.notification_gateway import (
    GatewayError,
    NotificationGateway,
)
from app.types.reminder_contract import (
    NotificationPayload,
    NotificationRequest,
    Reminder,
    ScheduleResult,
    ScheduleStatus,
)
from app.utils.clock import truncate_to_minute, utcnow
from config import settings

_LOGGER = logging.getLogger(__name__)


class NotificationScheduler:
    def __init__(
        self,
        gateway: NotificationGateway,
        *,
        fallback_title: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.fallback_title = fallback_title or settings.NOTIFICATION_FALLBACK_TITLE
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def request_authorization(self) -> bool:
        """Ask once at startup. Denial only means notifications never fire."""
        try:
            granted = await self.gateway.request_authorization()
        except GatewayError as exc:
            _LOGGER.warning("Notification authorization failed: %s", exc)
            return False
        if not granted:
            _LOGGER.info("Notification authorization denied; reminders will not alert")
        return granted

    async def schedule_reminder(
        self, reminder: Reminder, now: Optional[datetime] = None
    ) -> ScheduleResult:
        now = now or utcnow()
        identifier = reminder.notification_identifier

        async with self._serialized(identifier):
            try:
                await self.gateway.cancel(identifier)
            except GatewayError as exc:
                _LOGGER.warning("Cancel failed for %s: %s", identifier, exc)
                return ScheduleResult(
                    notification_id=identifier,
                    status=ScheduleStatus.FAILED,
                    error=str(exc),
                )

            if not scheduling_policy.should_schedule(reminder, now):
                return ScheduleResult(
                    notification_id=identifier, status=ScheduleStatus.CANCELLED
                )

            request = self.build_request(reminder)
            try:
                await self.gateway.submit(request)
            except GatewayError as exc:
                # The cancel above already removed any stale notification.
                _LOGGER.warning("Scheduling failed for reminder %s: %s", reminder.id, exc)
                return ScheduleResult(
                    notification_id=identifier,
                    status=ScheduleStatus.FAILED,
                    error=str(exc),
                )

        return ScheduleResult(
            notification_id=identifier,
            status=ScheduleStatus.SCHEDULED,
            fire_at=request.fire_at,
        )

    async def reschedule_reminder(
        self, reminder: Reminder, now: Optional[datetime] = None
    ) -> ScheduleResult:
        return await self.schedule_reminder(reminder, now)

    async def cancel_reminder(self, reminder: Reminder) -> ScheduleResult:
        identifier = reminder.notification_identifier
        async with self._serialized(identifier):
            try:
                await self.gateway.cancel(identifier)
            except GatewayError as exc:
                _LOGGER.warning("Cancel failed for %s: %s", identifier, exc)
                return ScheduleResult(
                    notification_id=identifier,
                    status=ScheduleStatus.FAILED,
                    error=str(exc),
                )
        return ScheduleResult(notification_id=identifier, status=ScheduleStatus.CANCELLED)

    async def cancel_reminders(self, reminders: Iterable[Reminder]) -> Optional[str]:
        """Bulk cancel for deletions. Returns the error message, if any."""
        identifiers = [r.notification_identifier for r in reminders]
        if not identifiers:
            return None
        async with AsyncExitStack() as stack:
            # Fixed acquisition order so overlapping batches cannot deadlock.
            for identifier in sorted(set(identifiers)):
                await stack.enter_async_context(self._serialized(identifier))
            try:
                await self.gateway.cancel_batch(identifiers)
            except GatewayError as exc:
                _LOGGER.warning(
                    "Batch cancel of %d notifications failed: %s", len(identifiers), exc
                )
                return str(exc)
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def title_for(self, reminder: Reminder) -> str:
        person = reminder.person
        if person is not None and person.display_name.strip():
            return person.display_name.strip()
        return self.fallback_title

    def build_request(self, reminder: Reminder) -> NotificationRequest:
        return NotificationRequest(
            identifier=reminder.notification_identifier,
            title=self.title_for(reminder),
            body=reminder.message,
            fire_at=truncate_to_minute(reminder.due_date),
            payload=NotificationPayload(
                reminder_id=str(reminder.id),
                deep_link=deep_link.encode(reminder.id),
            ),
        )

    @asynccontextmanager
    async def _serialized(self, identifier: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(identifier, asyncio.Lock())
        self._waiters[identifier] = self._waiters.get(identifier, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[identifier] -= 1
            if not self._waiters[identifier]:
                del self._waiters[identifier]
                del self._locks[identifier]
