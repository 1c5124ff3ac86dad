"""Builds the notification services once at startup.

There is no module-level singleton: the bundle is constructed explicitly
(``main.py`` keeps it on ``app.state``) and handed to whoever needs it, so
tests can swap in a fake gateway.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from app.services.database_gateway import DatabaseNotificationGateway
from app.services.deep_link_router import DeepLinkRouter, PendingRoute
from app.services.notification_gateway import (
    InMemoryNotificationGateway,
    NotificationGateway,
)
from app.services.notification_scheduler import NotificationScheduler
from app.services.platform_callbacks import PlatformCallbackAdapter
from config import settings

_LOGGER = logging.getLogger(__name__)


@dataclass
class NotificationServices:
    gateway: NotificationGateway
    scheduler: NotificationScheduler
    router: DeepLinkRouter
    pending_route: PendingRoute
    callbacks: PlatformCallbackAdapter
    authorized: Optional[bool] = None

    async def start(self) -> bool:
        """Request authorization (idempotent) and remember the answer."""
        if self.authorized is None:
            self.authorized = await self.scheduler.request_authorization()
        return self.authorized


def default_gateway() -> NotificationGateway:
    kind = settings.NOTIFICATION_GATEWAY.lower()
    if kind == "database":
        return DatabaseNotificationGateway()
    if kind != "memory":
        raise ValueError(f"unknown NOTIFICATION_GATEWAY {settings.NOTIFICATION_GATEWAY!r}")
    return InMemoryNotificationGateway(grant_authorization=settings.NOTIFICATIONS_ENABLED)


def build_notification_services(
    gateway: Optional[NotificationGateway] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> NotificationServices:
    """Wire scheduler, router and callback adapter around one gateway.

    Call from inside the loop that owns the pending route, or pass ``loop``.
    """
    gateway = gateway or default_gateway()
    pending_route = PendingRoute()
    router = DeepLinkRouter(loop=loop)
    router.register_handler(pending_route.set)
    _LOGGER.info("Notification services ready (gateway=%s)", type(gateway).__name__)
    return NotificationServices(
        gateway=gateway,
        scheduler=NotificationScheduler(gateway),
        router=router,
        pending_route=pending_route,
        callbacks=PlatformCallbackAdapter(router),
    )
