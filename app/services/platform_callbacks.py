"""Inbound platform callbacks: foreground presentation and user taps."""

from __future__ import annotations

import logging
from typing import List

from app.services.deep_link_router import DeepLinkRouter
from app.types.reminder_contract import (
    PRESENT_OPTIONS,
    DeliveredNotification,
    PresentationOption,
)

_LOGGER = logging.getLogger(__name__)

DEEP_LINK_KEY = "deepLink"


class PlatformCallbackAdapter:
    def __init__(self, router: DeepLinkRouter) -> None:
        self.router = router

    def will_present(self, notification: DeliveredNotification) -> List[PresentationOption]:
        return list(PRESENT_OPTIONS)

    def did_receive_response(self, notification: DeliveredNotification) -> bool:
        link = notification.payload.get(DEEP_LINK_KEY)
        if not isinstance(link, str) or not link:
            _LOGGER.debug("Notification %s has no deep link", notification.identifier)
            return False
        return self.router.deliver(link)
