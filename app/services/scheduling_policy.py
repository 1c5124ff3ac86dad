"""Pure decisions about whether a reminder should have a live notification.

Every caller (scheduler, HTTP layer, list screens) goes through these
functions; nothing re-derives the rules locally.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from app.types.reminder_contract import Reminder

DUE_SOON_WINDOW = timedelta(hours=24)


def should_cancel(reminder: Reminder, reference_time: datetime) -> bool:
    return (
        reminder.completed
        or reminder.due_date < reference_time
        or reminder.person is None
    )


def should_schedule(reminder: Reminder, reference_time: datetime) -> bool:
    return not should_cancel(reminder, reference_time)


def is_due_soon(reminder: Reminder, reference_time: datetime) -> bool:
    """True when the reminder is open and falls inside the next 24 hours.

    The upper bound is inclusive; anything already past due is never "soon".
    """
    if reminder.completed or reminder.due_date < reference_time:
        return False
    return reminder.due_date - reference_time <= DUE_SOON_WINDOW


def upcoming_reminders(
    reminders: Iterable[Reminder], reference_time: datetime
) -> List[Reminder]:
    return [
        r
        for r in reminders
        if not r.completed and r.due_date >= reference_time and r.person is not None
    ]


def should_celebrate(reminders: Iterable[Reminder], reference_time: datetime) -> bool:
    """Nothing left to follow up on."""
    return not upcoming_reminders(reminders, reference_time)
