"""Push token (FCM registration token) queries."""

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import DevicePlatform
from ..tables import user_push_tokens


async def get_active_push_tokens(conn: AsyncConnection, user_id: int) -> list[str]:
    """Get all active push tokens registered for a user."""
    result = await conn.execute(
        select(user_push_tokens.c.push_token)
        .where(user_push_tokens.c.user_id == user_id)
        .where(user_push_tokens.c.is_active.is_(True))
        .order_by(user_push_tokens.c.token_id)
    )
    return [row.push_token for row in result]


async def deactivate_push_tokens(conn: AsyncConnection, tokens: list[str]) -> int:
    """Mark tokens inactive (e.g. after FCM reports them unregistered)."""
    if not tokens:
        return 0
    result = await conn.execute(
        update(user_push_tokens)
        .where(user_push_tokens.c.push_token.in_(tokens))
        .values(is_active=False)
    )
    return result.rowcount


async def save_push_token(
    conn: AsyncConnection,
    user_id: int,
    push_token: str,
    device_id: str | None = None,
    platform: DevicePlatform = DevicePlatform.android,
    app_version: str | None = None,
) -> None:
    """
    Insert or refresh a push token.

    A token already on file is re-pointed at `user_id` and reactivated, so a
    device that changes hands follows its current owner.
    """
    stmt = insert(user_push_tokens).values(
        user_id=user_id,
        push_token=push_token,
        device_id=device_id,
        platform=platform,
        app_version=app_version,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[user_push_tokens.c.push_token],
        set_={
            "user_id": stmt.excluded.user_id,
            "device_id": stmt.excluded.device_id,
            "platform": stmt.excluded.platform,
            "app_version": stmt.excluded.app_version,
            "is_active": True,
            "last_used_at": func.now(),
        },
    )
    await conn.execute(stmt)
