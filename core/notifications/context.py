"""
Context building for event lifecycle reminders.

Scheduler timers store only (event_id, transition). The event is read
again here when the timer fires, so an edited title or a revoked
approval is seen at send time rather than at scheduling time.
"""

from core.database import get_connection
from core.enums import EventStatus
from core.queries.events import get_event
from core.timezone import format_event_date, format_event_time


async def get_event_for_reminder(event_id: int) -> dict | None:
    """
    Fetch an event if it is still eligible for lifecycle reminders.

    Returns:
        The event row, or None if it was deleted or is no longer approved
    """
    async with get_connection() as conn:
        event = await get_event(conn, event_id)

    if not event or event["status"] != EventStatus.approved:
        return None
    return event


def build_reminder_context(event: dict) -> dict:
    """Template variables for a lifecycle reminder."""
    return {
        "event_id": event["event_id"],
        "event_title": event["title"],
        "event_date": format_event_date(event["date"]),
        "time_start": format_event_time(event["time_start"]),
        "time_end": format_event_time(event["time_end"]),
    }
