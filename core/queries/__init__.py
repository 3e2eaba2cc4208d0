"""Query layer for database operations using SQLAlchemy Core."""

from .events import (
    get_due_events,
    get_event,
    get_events_already_ended,
    get_events_already_running,
    get_events_ending_between,
    get_events_starting_between,
    get_upcoming_events,
)
from .notifications import (
    count_unread,
    delete_notification,
    get_notifications_for_user,
    insert_notification,
    mark_all_as_read,
    mark_as_read,
)
from .push_tokens import deactivate_push_tokens, get_active_push_tokens, save_push_token
from .registrations import get_event_organizer, get_registrants_needing_notification

__all__ = [
    # Event horizon
    "get_event",
    "get_events_ending_between",
    "get_events_already_ended",
    "get_events_starting_between",
    "get_events_already_running",
    "get_due_events",
    "get_upcoming_events",
    # Registrations
    "get_registrants_needing_notification",
    "get_event_organizer",
    # Notification ledger
    "insert_notification",
    "get_notifications_for_user",
    "count_unread",
    "mark_as_read",
    "mark_all_as_read",
    "delete_notification",
    # Push tokens
    "get_active_push_tokens",
    "deactivate_push_tokens",
    "save_push_token",
]
