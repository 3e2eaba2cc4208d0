"""
High-level notification actions.

Entry points for the event and registration controllers, which live
outside this service:
- notify_event_registration: after a participant registers for an event
- on_event_changed: after an event is created, edited, approved, rejected
  or deleted, with the app.state.lifecycle_scheduler instance
"""

import logging

from core.database import get_connection
from core.enums import NotificationKind
from core.notifications.dispatcher import DeliveryResult, send_notification
from core.notifications.scheduler import LifecycleScheduler
from core.notifications.templates import get_message
from core.queries.registrations import get_event_organizer

logger = logging.getLogger(__name__)


async def notify_event_registration(
    event_id: int,
    participant_name: str,
    registrant_user_id: int | None = None,
) -> DeliveryResult | None:
    """
    Tell an event's organizer that someone registered.

    Self-registration by the organizer sends nothing.

    Returns:
        DeliveryResult, or None when there is nobody to notify
    """
    async with get_connection() as conn:
        event = await get_event_organizer(conn, event_id)

    if not event or not event["created_by"]:
        logger.info(f"Event {event_id} has no organizer, skipping registration notice")
        return None
    if event["created_by"] == registrant_user_id:
        return None

    context = {"participant_name": participant_name, "event_title": event["title"]}
    kind = NotificationKind.registration.value
    result = await send_notification(
        user_id=event["created_by"],
        title=get_message(kind, "title", context),
        body=get_message(kind, "body", context),
        kind=NotificationKind.registration,
        related_id=event_id,
        data={
            "event_title": event["title"],
            "participant_name": participant_name,
            "event_id": event_id,
        },
    )
    if result.errors:
        logger.warning(
            f"Registration notice for event {event_id}: {', '.join(result.errors)}"
        )
    return result


def on_event_changed(scheduler: LifecycleScheduler | None, event_id: int) -> None:
    """
    Hook for event create/edit/approve/reject/delete.

    Rebuilds the reminder timers right away instead of waiting for the next
    periodic recompute.
    """
    if scheduler is None or not scheduler.running:
        return
    logger.info(f"Event {event_id} changed, refreshing reminder timers")
    scheduler.request_refresh()
