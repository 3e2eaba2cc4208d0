"""
Notification dispatcher - in-app record first, then best-effort push.

The in-app row in `notifications` is the notification of record. Push goes
to every active device token of the user and is skipped silently when
Firebase isn't configured or the user has no devices. Nothing here raises:
callers get a DeliveryResult / BulkDeliveryResult back.
"""

import logging
from dataclasses import dataclass, field

from core.database import get_transaction
from core.enums import NotificationKind
from core.notifications.channels.push import (
    build_push_data,
    is_push_configured,
    send_push_multicast,
)
from core.queries.notifications import insert_notification
from core.queries.push_tokens import deactivate_push_tokens, get_active_push_tokens

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome of sending to one user."""

    in_app: bool = False
    push: bool = False
    # The ledger already had this reminder; nothing was sent
    duplicate: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.in_app or self.push


@dataclass
class BulkDeliveryResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0


def _kind_value(kind: NotificationKind | str) -> str:
    return kind.value if isinstance(kind, NotificationKind) else kind


async def _deactivate_tokens(tokens: list[str]) -> None:
    try:
        async with get_transaction() as conn:
            count = await deactivate_push_tokens(conn, tokens)
        logger.info(f"Deactivated {count} invalid push token(s)")
    except Exception as e:
        logger.error(f"Failed to deactivate invalid push tokens: {e}")


async def _send_push(
    user_id: int,
    title: str,
    body: str,
    kind: str,
    related_id: int | None,
    data: dict,
    result: DeliveryResult,
) -> None:
    if not is_push_configured():
        logger.debug(f"Push not configured, skipping push for user {user_id}")
        return

    try:
        async with get_transaction() as conn:
            tokens = await get_active_push_tokens(conn, user_id)

        if not tokens:
            logger.debug(f"No push tokens for user {user_id}, skipping push")
            return

        outcome = await send_push_multicast(
            tokens, title, body, build_push_data(kind, related_id, data)
        )
    except Exception as e:
        result.errors.append(f"Push failed: {e}")
        logger.warning(f"Push failed for user {user_id}: {e}")
        return

    result.push = outcome.success_count > 0
    if outcome.success_count:
        logger.info(f"Push sent to {outcome.success_count} device(s) for user {user_id}")
    if outcome.failure_count:
        logger.warning(
            f"Push failed on {outcome.failure_count} device(s) for user {user_id}"
        )
    for error in outcome.errors:
        result.errors.append(f"Push failed: {error}")
        logger.warning(f"Push error for user {user_id}: {error}")
    if outcome.invalid_tokens:
        await _deactivate_tokens(outcome.invalid_tokens)


async def send_notification(
    user_id: int,
    title: str,
    body: str,
    kind: NotificationKind | str = NotificationKind.general,
    related_id: int | None = None,
    data: dict | None = None,
) -> DeliveryResult:
    """
    Send a notification to one user: in-app record, then push.

    The push attempt happens whether or not the in-app write succeeded,
    except when the ledger reports the reminder as already sent.

    Args:
        user_id: Recipient user ID
        title: Notification title
        body: Notification body text
        kind: Notification kind (stored in notifications.type)
        related_id: ID of the related entity, usually an event_id
        data: Extra metadata stored with the notification and sent as push data

    Returns:
        DeliveryResult with in_app/push flags and collected error strings
    """
    kind_value = _kind_value(kind)
    data = data or {}
    result = DeliveryResult()

    try:
        async with get_transaction() as conn:
            notification_id = await insert_notification(
                conn,
                user_id=user_id,
                title=title,
                body=body,
                kind=kind_value,
                related_id=related_id,
                data=data,
            )
        if notification_id is None:
            result.duplicate = True
            logger.info(
                f"{kind_value} for related_id={related_id} already recorded "
                f"for user {user_id}, skipping"
            )
            return result
        result.in_app = True
    except Exception as e:
        result.errors.append(f"In-app failed: {e}")
        logger.error(f"Failed to save in-app notification for user {user_id}: {e}")

    await _send_push(user_id, title, body, kind_value, related_id, data, result)
    return result


async def send_bulk_notification(
    user_ids: list[int],
    title: str,
    body: str,
    kind: NotificationKind | str = NotificationKind.general,
    related_id: int | None = None,
    data: dict | None = None,
) -> BulkDeliveryResult:
    """
    Send the same notification to several users, one after another.

    A failure for one recipient never stops the batch. Recipients whose
    reminder was already recorded count as skipped.
    """
    totals = BulkDeliveryResult()

    for user_id in user_ids:
        try:
            result = await send_notification(
                user_id, title, body, kind=kind, related_id=related_id, data=data
            )
        except Exception as e:
            totals.failed += 1
            logger.error(f"Notification to user {user_id} failed: {e}")
            continue

        if result.duplicate:
            totals.skipped += 1
        elif result.delivered:
            totals.success += 1
        else:
            totals.failed += 1

    logger.info(
        f"Bulk {_kind_value(kind)}: {totals.success} sent, "
        f"{totals.failed} failed, {totals.skipped} skipped"
    )
    return totals
