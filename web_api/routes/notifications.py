"""
In-app notification routes.

Endpoints:
- POST /api/notifications/fcm-token - Save or refresh a device push token
- GET /api/notifications/user/{user_id} - List a user's notifications
- PUT /api/notifications/{notification_id}/read - Mark one as read
- PUT /api/notifications/user/{user_id}/read-all - Mark all as read
- DELETE /api/notifications/{notification_id} - Delete one
- POST /api/notifications/send-feedback-reminders - Run the feedback backup sweep now
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from core.database import get_connection, get_transaction
from core.enums import DevicePlatform, Transition
from core.notifications.scheduler import LifecycleScheduler
from core.queries.notifications import (
    count_unread,
    delete_notification,
    get_notifications_for_user,
    mark_all_as_read,
    mark_as_read,
)
from core.queries.push_tokens import save_push_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class PushTokenRequest(BaseModel):
    """Request body for registering a device push token."""

    user_id: int
    fcm_token: str = Field(min_length=1)
    device_id: str | None = None
    device_type: DevicePlatform = DevicePlatform.android
    app_version: str | None = None


@router.post("/fcm-token")
async def register_push_token(body: PushTokenRequest) -> dict[str, Any]:
    """Save a device's push token, reactivating it if already known."""
    async with get_transaction() as conn:
        await save_push_token(
            conn,
            user_id=body.user_id,
            push_token=body.fcm_token,
            device_id=body.device_id,
            platform=body.device_type,
            app_version=body.app_version,
        )
    logger.info(f"Push token saved for user {body.user_id}")
    return {"status": "success", "message": "Push token saved"}


@router.get("/user/{user_id}")
async def list_user_notifications(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> dict[str, Any]:
    """A page of the user's notifications (newest first) with the unread count."""
    async with get_connection() as conn:
        items = await get_notifications_for_user(conn, user_id, limit, offset)
        unread = await count_unread(conn, user_id)

    return {
        "status": "success",
        "data": {
            "notifications": items,
            "unread_count": unread,
            "total": len(items),
        },
    }


@router.put("/{notification_id}/read")
async def read_notification(notification_id: int) -> dict[str, Any]:
    async with get_transaction() as conn:
        found = await mark_as_read(conn, notification_id)
    if not found:
        raise HTTPException(404, "Notification not found")
    return {"status": "success", "message": "Notification marked as read"}


@router.put("/user/{user_id}/read-all")
async def read_all_notifications(user_id: int) -> dict[str, Any]:
    async with get_transaction() as conn:
        count = await mark_all_as_read(conn, user_id)
    return {
        "status": "success",
        "message": f"{count} notifications marked as read",
        "updated": count,
    }


@router.delete("/{notification_id}")
async def remove_notification(notification_id: int) -> dict[str, Any]:
    async with get_transaction() as conn:
        found = await delete_notification(conn, notification_id)
    if not found:
        raise HTTPException(404, "Notification not found")
    return {"status": "success", "message": "Notification deleted"}


@router.post("/send-feedback-reminders")
async def send_feedback_reminders(request: Request) -> dict[str, Any]:
    """
    Run the end-of-event backup sweep immediately.

    Uses the app's running scheduler when there is one; otherwise a
    throwaway instance (sweeps don't need armed timers).
    """
    scheduler: LifecycleScheduler | None = getattr(
        request.app.state, "lifecycle_scheduler", None
    )
    if scheduler is None:
        scheduler = LifecycleScheduler()

    totals = await scheduler.sweep([Transition.end])
    summary = totals[Transition.end.value]
    if "error" in summary:
        raise HTTPException(500, "Feedback reminder sweep failed")
    return {"status": "success", "data": summary}
