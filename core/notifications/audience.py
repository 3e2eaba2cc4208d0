"""
Audience resolution for event lifecycle reminders.

Who gets a reminder is always decided from the database at the moment of
sending: registered (non-anonymous) users, minus those who already have
the reminder in their inbox, minus (for the end-of-event reminder) those
who already left feedback. There is no in-memory "already notified" set.
Two overlapping passes can still pick the same user before either has
written; the ledger's unique index turns the second write into a no-op.
"""

from core.database import get_connection
from core.enums import NotificationKind, Transition
from core.queries.registrations import get_registrants_needing_notification

TRANSITION_KINDS = {
    Transition.start: NotificationKind.documentation_reminder,
    Transition.end: NotificationKind.feedback_reminder,
}


def kind_for_transition(transition: Transition) -> NotificationKind:
    return TRANSITION_KINDS[Transition(transition)]


async def resolve_audience(event_id: int, transition: Transition) -> list[int]:
    """
    User IDs that should receive the reminder for this event transition.

    Returns an empty list when nobody is left to notify (including when the
    event no longer exists).
    """
    transition = Transition(transition)
    async with get_connection() as conn:
        rows = await get_registrants_needing_notification(
            conn,
            event_id,
            kind_for_transition(transition),
            exclude_feedback_givers=transition == Transition.end,
        )
    return [row["user_id"] for row in rows]
