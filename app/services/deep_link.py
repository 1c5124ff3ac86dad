"""Encode/decode of the ``<scheme>://reminder/<uuid>`` deep link.

Unknown hosts decode to ``None`` rather than raising, so new route kinds can
be added later without old builds choking on them.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit
from uuid import UUID

from config import settings

_LOGGER = logging.getLogger(__name__)

APP_SCHEME = settings.DEEP_LINK_SCHEME.lower()
REMINDER_HOST = "reminder"


def encode(reminder_id: UUID) -> str:
    return f"{APP_SCHEME}://{REMINDER_HOST}/{reminder_id}"


def decode(uri: object) -> Optional[UUID]:
    if not isinstance(uri, str):
        return None
    try:
        parts = urlsplit(uri.strip())
    except ValueError:
        _LOGGER.debug("Dropping unparseable deep link %r", uri)
        return None

    if parts.scheme != APP_SCHEME:
        return None
    # Exact host match: no case folding, userinfo or port.
    if parts.netloc != REMINDER_HOST:
        return None

    # Only the first path component is the identifier; trailing segments are ignored.
    segments = [s for s in parts.path.split("/") if s]
    if not segments:
        return None
    try:
        return UUID(segments[0])
    except ValueError:
        _LOGGER.debug("Deep link %r has no valid reminder id", uri)
        return None
