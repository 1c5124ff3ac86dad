from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

import db
from app.services.database_gateway import DatabaseNotificationGateway
from app.services.notification_gateway import SchedulingFailure
from app.services.notification_scheduler import NotificationScheduler
from app.types.reminder_contract import Person, Reminder, ScheduleStatus

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def store(monkeypatch, tmp_path):
    await db.dispose_engine()
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}")
    await db.create_all()
    yield
    await db.dispose_engine()


def _reminder(**overrides) -> Reminder:
    fields = dict(
        due_date=NOW + timedelta(minutes=30, seconds=15),
        message="Renew lease",
        person=Person(display_name="Ada Tenant"),
    )
    fields.update(overrides)
    return Reminder(**fields)


@pytest.mark.asyncio
async def test_schedule_persists_truncated_row(store):
    scheduler = NotificationScheduler(DatabaseNotificationGateway(enabled=True))
    reminder = _reminder()

    result = await scheduler.schedule_reminder(reminder, NOW)

    assert result.status == ScheduleStatus.SCHEDULED
    row = await db.fetch_notification(reminder.notification_identifier)
    assert row["status"] == "pending"
    assert row["title"] == "Ada Tenant"
    assert row["fire_at"] == NOW + timedelta(minutes=30)
    assert row["payload"]["reminderID"] == str(reminder.id)


@pytest.mark.asyncio
async def test_reschedule_replaces_row_in_place(store):
    scheduler = NotificationScheduler(DatabaseNotificationGateway(enabled=True))
    reminder = _reminder()
    await scheduler.schedule_reminder(reminder, NOW)

    reminder.update(due_date=NOW + timedelta(hours=3), message="Renew lease today")
    await scheduler.schedule_reminder(reminder, NOW)

    rows = await db.list_notifications()
    assert len(rows) == 1
    assert rows[0]["body"] == "Renew lease today"
    assert rows[0]["fire_at"] == NOW + timedelta(hours=3)


@pytest.mark.asyncio
async def test_claim_then_cancel_removes_delivered(store):
    scheduler = NotificationScheduler(DatabaseNotificationGateway(enabled=True))
    soon, later = _reminder(), _reminder(due_date=NOW + timedelta(days=2))
    await scheduler.schedule_reminder(soon, NOW)
    await scheduler.schedule_reminder(later, NOW)

    claimed = await db.claim_due_notifications(NOW + timedelta(hours=1))

    assert [c["identifier"] for c in claimed] == [soon.notification_identifier]
    assert await db.claim_due_notifications(NOW + timedelta(hours=1)) == []
    assert (await db.fetch_notification(soon.notification_identifier))["status"] == "delivered"

    await scheduler.cancel_reminder(soon)
    assert await db.fetch_notification(soon.notification_identifier) is None


@pytest.mark.asyncio
async def test_batch_cancel(store):
    scheduler = NotificationScheduler(DatabaseNotificationGateway(enabled=True))
    reminders = [_reminder() for _ in range(3)]
    for r in reminders:
        await scheduler.schedule_reminder(r, NOW)

    assert await scheduler.cancel_reminders(reminders) is None
    assert await db.list_notifications() == []


@pytest.mark.asyncio
async def test_authorization_follows_setting():
    assert await DatabaseNotificationGateway(enabled=False).request_authorization() is False
    assert await DatabaseNotificationGateway(enabled=True).request_authorization() is True


@pytest.mark.asyncio
async def test_store_error_becomes_scheduling_failure(monkeypatch):
    async def _broken(request):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db, "upsert_notification", _broken)
    gateway = DatabaseNotificationGateway(enabled=True)
    scheduler = NotificationScheduler(gateway)

    with pytest.raises(SchedulingFailure):
        await gateway.submit(scheduler.build_request(_reminder()))


@pytest.mark.asyncio
async def test_scheduler_reports_store_error(monkeypatch):
    async def _broken(request):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    async def _noop(identifiers):
        return 0

    monkeypatch.setattr(db, "upsert_notification", _broken)
    monkeypatch.setattr(db, "delete_notifications", _noop)
    scheduler = NotificationScheduler(DatabaseNotificationGateway(enabled=True))

    result = await scheduler.schedule_reminder(_reminder(), NOW)

    assert result.status == ScheduleStatus.FAILED
    assert "disk full" in result.error
