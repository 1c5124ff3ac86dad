"""Pydantic models shared by the scheduler, the gateways and the HTTP layer.

A ``Reminder`` is owned by the persistence collaborator; this package only
reads its fields (and writes ``completed``/``due_date``/``message`` when a
caller asks it to). Notification state is never stored on the reminder: it
is derived from ``due_date``, ``completed`` and ``person`` every time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_aware(v: datetime) -> datetime:
    if v.tzinfo is None or v.tzinfo.utcoffset(v) is None:
        raise ValueError("datetime must be timezone-aware")
    return v


class Person(BaseModel):
    """The contact a reminder is linked to. Only the name is used here."""

    id: UUID = Field(default_factory=uuid4)
    display_name: str = ""


class Reminder(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    # Generated once; edits reschedule under the same key.
    notification_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    due_date: datetime
    message: str
    completed: bool = False
    person: Optional[Person] = None

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("due_date", "created_at")
    def _validate_aware(cls, v):  # noqa: N805
        return _require_aware(v)

    @property
    def notification_identifier(self) -> str:
        return str(self.notification_id)

    def update(self, *, due_date: datetime, message: str) -> None:
        self.due_date = due_date
        self.message = message


class NotificationPayload(BaseModel):
    """Opaque map attached to every submitted notification."""

    reminder_id: str = Field(alias="reminderID")
    deep_link: str = Field(alias="deepLink")

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class NotificationRequest(BaseModel):
    """A one-shot, non-repeating notification handed to a gateway."""

    identifier: str
    title: str
    body: str
    fire_at: datetime
    payload: NotificationPayload

    @field_validator("fire_at")
    def _validate_aware(cls, v):  # noqa: N805
        return _require_aware(v)


class DeliveredNotification(BaseModel):
    """A notification as the platform hands it back in a callback.

    ``payload`` is kept as a raw map: whatever arrives from the platform is
    untrusted and only inspected by the callback adapter.
    """

    identifier: str = ""
    title: str = ""
    body: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)


class PresentationOption(str, Enum):
    BANNER = "banner"
    LIST = "list"
    SOUND = "sound"


class ScheduleStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ScheduleResult(BaseModel):
    """Outcome of one scheduling pass. Errors are values, never raised."""

    notification_id: str
    status: ScheduleStatus
    fire_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ScheduleStatus.FAILED


PRESENT_OPTIONS: List[PresentationOption] = [
    PresentationOption.BANNER,
    PresentationOption.LIST,
    PresentationOption.SOUND,
]
