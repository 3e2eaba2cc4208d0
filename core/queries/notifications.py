"""
Notification ledger queries.

The notifications table is both the in-app inbox and the record the
scheduler checks before sending a reminder again.
"""

from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import DEDUPLICATED_KINDS, NotificationKind
from ..tables import notifications

_DEDUPLICATED_VALUES = [kind.value for kind in DEDUPLICATED_KINDS]


def _kind_value(kind: NotificationKind | str) -> str:
    return kind.value if isinstance(kind, NotificationKind) else kind


async def insert_notification(
    conn: AsyncConnection,
    user_id: int,
    title: str,
    body: str,
    kind: NotificationKind | str,
    related_id: int | None = None,
    data: dict[str, Any] | None = None,
) -> int | None:
    """
    Write an in-app notification.

    Reminder kinds are written at most once per (user, kind, related_id);
    a second write is dropped by the partial unique index.

    Returns:
        The new notification_id, or None when the row already existed
    """
    kind_value = _kind_value(kind)
    stmt = insert(notifications).values(
        user_id=user_id,
        title=title,
        body=body,
        type=kind_value,
        related_id=related_id,
        notification_data=data or {},
    )
    if kind_value in _DEDUPLICATED_VALUES:
        stmt = stmt.on_conflict_do_nothing(
            index_elements=["user_id", "type", "related_id"],
            index_where=notifications.c.type.in_(_DEDUPLICATED_VALUES),
        )

    result = await conn.execute(stmt.returning(notifications.c.notification_id))
    return result.scalar_one_or_none()


async def get_notifications_for_user(
    conn: AsyncConnection,
    user_id: int,
    limit: int = 50,
    offset: int = 0,
) -> list[dict]:
    """Get a page of a user's notifications, newest first."""
    result = await conn.execute(
        select(
            notifications.c.notification_id,
            notifications.c.title,
            notifications.c.body,
            notifications.c.type,
            notifications.c.related_id,
            notifications.c.is_read,
            notifications.c.created_at,
            notifications.c.notification_data,
        )
        .where(notifications.c.user_id == user_id)
        .order_by(
            notifications.c.created_at.desc(),
            notifications.c.notification_id.desc(),
        )
        .limit(limit)
        .offset(offset)
    )
    return [dict(row) for row in result.mappings()]


async def count_unread(conn: AsyncConnection, user_id: int) -> int:
    result = await conn.execute(
        select(func.count())
        .select_from(notifications)
        .where(notifications.c.user_id == user_id)
        .where(notifications.c.is_read.is_(False))
    )
    return result.scalar_one()


async def mark_as_read(conn: AsyncConnection, notification_id: int) -> bool:
    """Mark one notification read. Returns False if it doesn't exist."""
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .values(is_read=True)
    )
    return result.rowcount > 0


async def mark_all_as_read(conn: AsyncConnection, user_id: int) -> int:
    """Mark all of a user's unread notifications read. Returns rows changed."""
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.user_id == user_id)
        .where(notifications.c.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount


async def delete_notification(conn: AsyncConnection, notification_id: int) -> bool:
    """Delete one notification. Returns False if it doesn't exist."""
    result = await conn.execute(
        delete(notifications).where(
            notifications.c.notification_id == notification_id
        )
    )
    return result.rowcount > 0
