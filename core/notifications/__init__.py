"""
Notification system: in-app inbox plus Firebase push.

Public API:
    send_notification(user_id, title, body, kind, related_id, data) - Send now
    send_bulk_notification(user_ids, ...) - Send to many, never aborts
    resolve_audience(event_id, transition) - Who still needs a reminder
    LifecycleScheduler - Event start/end reminder timers

High-level actions:
    notify_event_registration(event_id, participant_name) - Tell the organizer
    on_event_changed(scheduler, event_id) - Refresh reminder timers
"""

from .actions import notify_event_registration, on_event_changed
from .audience import resolve_audience
from .dispatcher import (
    BulkDeliveryResult,
    DeliveryResult,
    send_bulk_notification,
    send_notification,
)
from .scheduler import LifecycleScheduler, ScheduledTimer

__all__ = [
    # Low-level
    "send_notification",
    "send_bulk_notification",
    "DeliveryResult",
    "BulkDeliveryResult",
    "resolve_audience",
    # Scheduling
    "LifecycleScheduler",
    "ScheduledTimer",
    # High-level actions
    "notify_event_registration",
    "on_event_changed",
]
