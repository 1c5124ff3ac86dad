import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

import db
from app.services import scheduling_policy
from app.services.notifications import NotificationServices, build_notification_services
from app.types.reminder_contract import (
    DeliveredNotification,
    PresentationOption,
    Reminder,
    ScheduleResult,
)
from app.utils.clock import utcnow
from config import settings

logging.basicConfig(level=settings.LOG_LEVEL)
_LOGGER = logging.getLogger("clarity")

# Build notification services on the serving loop and dispose DB on shutdown

@asynccontextmanager
async def lifespan(app: FastAPI):
    services = build_notification_services()
    app.state.notifications = services
    if not await services.start():
        _LOGGER.warning("Notifications not authorized; reminders will be stored but never fire")
    yield
    await db.dispose_engine()


app = FastAPI(lifespan=lifespan)


def get_services(request: Request) -> NotificationServices:
    services = getattr(request.app.state, "notifications", None)
    if services is None:
        raise HTTPException(503, "Notification services not started")
    return services

# --------------------------------------------
# Request / response bodies
# --------------------------------------------

class CancelRequest(BaseModel):
    reminders: List[Reminder]


class CancelResponse(BaseModel):
    cancelled: int
    error: Optional[str] = None


class DeepLinkRequest(BaseModel):
    uri: str


class RouteResponse(BaseModel):
    routed: bool


class PendingRouteResponse(BaseModel):
    reminder_id: Optional[str] = None


class ReminderStatus(BaseModel):
    schedulable: bool
    due_soon: bool

# --------------------------------------------
# Scheduling call sites (create / edit / complete / delete / unlink)
# --------------------------------------------

@app.post("/v1/reminders/schedule", response_model=ScheduleResult)
async def schedule_reminder(
    reminder: Reminder, services: NotificationServices = Depends(get_services)
):
    return await services.scheduler.schedule_reminder(reminder)


@app.post("/v1/reminders/cancel", response_model=CancelResponse)
async def cancel_reminders(
    body: CancelRequest, services: NotificationServices = Depends(get_services)
):
    if len(body.reminders) == 1:
        result = await services.scheduler.cancel_reminder(body.reminders[0])
        return CancelResponse(cancelled=1 if result.ok else 0, error=result.error)
    error = await services.scheduler.cancel_reminders(body.reminders)
    return CancelResponse(cancelled=0 if error else len(body.reminders), error=error)


@app.post("/v1/reminders/status", response_model=ReminderStatus)
async def reminder_status(reminder: Reminder):
    now = utcnow()
    return ReminderStatus(
        schedulable=scheduling_policy.should_schedule(reminder, now),
        due_soon=scheduling_policy.is_due_soon(reminder, now),
    )

# --------------------------------------------
# Platform callbacks
# --------------------------------------------

@app.post("/v1/notifications/present", response_model=List[PresentationOption])
async def will_present(
    notification: DeliveredNotification,
    services: NotificationServices = Depends(get_services),
):
    return services.callbacks.will_present(notification)


@app.post("/v1/notifications/respond", response_model=RouteResponse)
async def did_respond(
    notification: DeliveredNotification,
    services: NotificationServices = Depends(get_services),
):
    return RouteResponse(routed=services.callbacks.did_receive_response(notification))

# --------------------------------------------
# Deep links
# --------------------------------------------

@app.post("/v1/deeplinks", response_model=RouteResponse)
async def open_deep_link(
    body: DeepLinkRequest, services: NotificationServices = Depends(get_services)
):
    return RouteResponse(routed=services.router.deliver(body.uri))


@app.get("/v1/routes/pending", response_model=PendingRouteResponse)
async def consume_pending_route(services: NotificationServices = Depends(get_services)):
    reminder_id = services.pending_route.consume()
    return PendingRouteResponse(reminder_id=str(reminder_id) if reminder_id else None)
