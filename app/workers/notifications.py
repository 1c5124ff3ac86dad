"""Celery tasks that fire scheduled notifications stored by the database gateway.

This is the "platform" side: the scheduler only ever writes and deletes
``scheduled_notifications`` rows; these tasks turn due rows into SMS.
Delivery is best-effort, with a single attempt per notification.
"""

from __future__ import annotations

import asyncio
import logging

from app.celery_app import celery_app
from app.utils import sms
from app.utils.clock import utcnow
from config import settings
import db

_LOGGER = logging.getLogger(__name__)


async def _claim_due(limit: int) -> list[dict]:
    try:
        return await db.claim_due_notifications(utcnow(), limit=limit)
    finally:
        # Each asyncio.run gets a fresh loop; don't keep a pool bound to the old one.
        await db.dispose_engine()


# ---------------------------------------------------------------------------
# Celery Tasks
# ---------------------------------------------------------------------------

@celery_app.task(name="app.workers.notifications.deliver", bind=True, max_retries=0)
def deliver(self, identifier: str, title: str, body: str, deep_link: str | None = None):  # noqa: D401
    """Send one fired notification to the configured recipient."""
    recipient = settings.NOTIFICATION_RECIPIENT
    if not recipient:
        _LOGGER.info("No NOTIFICATION_RECIPIENT; notification %s not sent", identifier)
        return False
    try:
        sms.send_sms(recipient, sms.format_notification(title, body, deep_link))
    except Exception as exc:  # noqa: BLE001
        _LOGGER.warning("Delivering notification %s failed: %s", identifier, exc)
        return False
    return True


@celery_app.task(name="app.workers.notifications.dispatch_due", bind=True)
def dispatch_due(self, limit: int | None = None):  # noqa: D401
    """Claim due notifications and enqueue a deliver task for each."""
    due = asyncio.run(_claim_due(limit or settings.DISPATCH_BATCH_SIZE))

    for row in due:
        celery_app.send_task(
            "app.workers.notifications.deliver",
            args=[row["identifier"], row["title"], row["body"], row["payload"].get("deepLink")],
            queue="notifications",
        )
    if due:
        _LOGGER.info("Dispatched %d due notifications", len(due))
    return len(due)
