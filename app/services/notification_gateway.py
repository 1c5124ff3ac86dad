"""Boundary abstraction over the platform's notification service.

Everything is keyed by the reminder's notification identifier. Gateways
raise ``GatewayError`` subclasses; turning those into loggable values is the
scheduler's job.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from app.types.reminder_contract import NotificationRequest
from app.utils.clock import truncate_to_minute

_LOGGER = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for failures reported by a notification gateway."""


class PermissionDenied(GatewayError):
    """The user (or the platform) declined notification authorization."""


class SchedulingFailure(GatewayError):
    """The platform rejected a submit, e.g. a malformed trigger."""


class NotificationGateway(abc.ABC):
    @abc.abstractmethod
    async def submit(self, request: NotificationRequest) -> None:
        """Register a one-shot notification, firing at minute resolution."""

    @abc.abstractmethod
    async def cancel(self, identifier: str) -> None:
        """Remove pending and delivered notifications; no-op if none exist."""

    @abc.abstractmethod
    async def cancel_batch(self, identifiers: Iterable[str]) -> None:
        ...

    @abc.abstractmethod
    async def request_authorization(self) -> bool:
        ...


class InMemoryNotificationGateway(NotificationGateway):
    """Process-local stand-in for the platform scheduler.

    Used in development (``NOTIFICATION_GATEWAY=memory``) and as the fake in
    tests. ``calls`` records every boundary call in order.
    """

    def __init__(
        self,
        *,
        grant_authorization: bool = True,
        reject_submits: Optional[str] = None,
    ) -> None:
        self.pending: Dict[str, NotificationRequest] = {}
        self.delivered: Dict[str, NotificationRequest] = {}
        self.calls: List[Tuple] = []
        self.grant_authorization = grant_authorization
        # When set, every submit fails with this message
        self.reject_submits = reject_submits
        self._authorized: Optional[bool] = None

    async def submit(self, request: NotificationRequest) -> None:
        await asyncio.sleep(0)
        self.calls.append(("submit", request.identifier))
        if self.reject_submits:
            raise SchedulingFailure(self.reject_submits)
        stored = request.model_copy(update={"fire_at": truncate_to_minute(request.fire_at)})
        self.pending[request.identifier] = stored

    async def cancel(self, identifier: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("cancel", identifier))
        self.pending.pop(identifier, None)
        self.delivered.pop(identifier, None)

    async def cancel_batch(self, identifiers: Iterable[str]) -> None:
        await asyncio.sleep(0)
        ids = tuple(identifiers)
        self.calls.append(("cancel_batch", ids))
        for identifier in ids:
            self.pending.pop(identifier, None)
            self.delivered.pop(identifier, None)

    async def request_authorization(self) -> bool:
        await asyncio.sleep(0)
        self.calls.append(("authorize",))
        if self._authorized is None:
            self._authorized = self.grant_authorization
        return self._authorized

    def fire_due(self, now: datetime) -> List[NotificationRequest]:
        """Move every pending notification due at ``now`` to delivered.

        Nothing fires once authorization has been denied.
        """
        if self._authorized is False:
            return []
        fired = [req for req in self.pending.values() if req.fire_at <= now]
        for req in fired:
            del self.pending[req.identifier]
            self.delivered[req.identifier] = req
        if fired:
            _LOGGER.debug("Fired %d in-memory notifications", len(fired))
        return fired
