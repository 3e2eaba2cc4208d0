"""Registration-related database queries using SQLAlchemy Core."""

from sqlalchemy import and_, exists, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import NotificationKind
from ..tables import events, feedbacks, notifications, registrations, users


async def get_registrants_needing_notification(
    conn: AsyncConnection,
    event_id: int,
    kind: NotificationKind,
    exclude_feedback_givers: bool = False,
) -> list[dict]:
    """
    Registered users of an event who have not yet received `kind` for it.

    Anonymous registrations (user_id IS NULL) are skipped. With
    exclude_feedback_givers, users who already left feedback for the event
    are skipped too. NOT EXISTS rather than NOT IN, so a NULL user_id in
    feedbacks can't empty the result.

    Returns:
        List of {"user_id", "name"} dicts ordered by user_id
    """
    already_notified = exists().where(
        and_(
            notifications.c.user_id == registrations.c.user_id,
            notifications.c.type == kind.value,
            notifications.c.related_id == event_id,
        )
    )

    query = (
        select(registrations.c.user_id, users.c.name)
        .select_from(
            registrations.join(users, registrations.c.user_id == users.c.user_id)
        )
        .where(registrations.c.event_id == event_id)
        .where(registrations.c.user_id.isnot(None))
        .where(~already_notified)
        .distinct()
        .order_by(registrations.c.user_id)
    )

    if exclude_feedback_givers:
        gave_feedback = exists().where(
            and_(
                feedbacks.c.user_id == registrations.c.user_id,
                feedbacks.c.event_id == event_id,
            )
        )
        query = query.where(~gave_feedback)

    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]


async def get_event_organizer(
    conn: AsyncConnection,
    event_id: int,
) -> dict | None:
    """Get the organizer (creator) of an event along with the event title."""
    result = await conn.execute(
        select(events.c.event_id, events.c.title, events.c.created_by).where(
            events.c.event_id == event_id
        )
    )
    row = result.mappings().first()
    return dict(row) if row else None
