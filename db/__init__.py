from .db import (
    Base,
    ScheduledNotification,
    get_engine,
    get_session,
    create_all,
    upsert_notification,
    delete_notifications,
    claim_due_notifications,
    fetch_notification,
    list_notifications,
    dispose_engine,
)  # noqa: F401
