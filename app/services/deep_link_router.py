"""Holds the single pending navigation target and dispatches deep links.

Platform callbacks may arrive on any thread. The pending route is confined
to one event loop (the UI context): ``DeepLinkRouter.deliver`` hops onto
that loop before the handler runs, and ``PendingRoute`` refuses access from
anywhere else.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional
from uuid import UUID

from app.services import deep_link

_LOGGER = logging.getLogger(__name__)

DeepLinkHandler = Callable[[UUID], None]


class PendingRoute:
    """At most one reminder id waiting for the UI; consumed exactly once."""

    def __init__(self) -> None:
        self._value: Optional[UUID] = None
        self._owner: Optional[int] = None

    def _check_owner(self) -> None:
        current = threading.get_ident()
        if self._owner is None:
            self._owner = current
        elif self._owner != current:
            raise RuntimeError("PendingRoute accessed outside its owning context")

    def set(self, reminder_id: UUID) -> None:
        self._check_owner()
        self._value = reminder_id

    def peek(self) -> Optional[UUID]:
        self._check_owner()
        return self._value

    def consume(self) -> Optional[UUID]:
        self._check_owner()
        value, self._value = self._value, None
        return value


class DeepLinkRouter:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._handler: Optional[DeepLinkHandler] = None

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    def register_handler(self, handler: DeepLinkHandler) -> None:
        """Last registration wins. Binds to the running loop if none was given."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._handler = handler

    def deliver(self, uri: str) -> bool:
        """Route ``uri`` to the handler on the bound loop. Callable from any thread.

        Returns False when the link is dropped (undecodable, or nothing to
        deliver it to).
        """
        reminder_id = deep_link.decode(uri)
        if reminder_id is None:
            _LOGGER.debug("Ignoring deep link %r", uri)
            return False
        if self._loop is None or self._loop.is_closed():
            _LOGGER.warning("No deep link handler registered; dropping %s", uri)
            return False
        self._loop.call_soon_threadsafe(self._dispatch, reminder_id)
        return True

    def _dispatch(self, reminder_id: UUID) -> None:
        if self._handler is None:
            _LOGGER.warning("No deep link handler registered; dropping reminder %s", reminder_id)
            return
        self._handler(reminder_id)
