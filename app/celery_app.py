"""Celery application that fires scheduled reminder notifications.

Start a worker (with beat) with:
    celery -A app.celery_app worker -B -Q notifications -l info --concurrency=2
"""

from celery import Celery

from config import settings

BROKER_URL = settings.REDIS_URL

celery_app = Celery("clarity_notifications", broker=BROKER_URL, backend=BROKER_URL)

# Global task settings
celery_app.conf.task_acks_late = True
celery_app.conf.task_reject_on_worker_lost = True

celery_app.conf.task_routes = {
    "app.workers.notifications.deliver": {"queue": "notifications"},
    "app.workers.notifications.dispatch_due": {"queue": "notifications"},
}

# Beat schedule: fire due notifications (minute resolution by default)
celery_app.conf.beat_schedule = {
    "dispatch-due-notifications": {
        "task": "app.workers.notifications.dispatch_due",
        "schedule": settings.DISPATCH_INTERVAL_SECONDS,
    }
}

# --- Ensure tasks are registered ---
import app.workers.notifications
