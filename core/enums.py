"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class EventStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class DevicePlatform(str, enum.Enum):
    android = "android"
    ios = "ios"


class Transition(str, enum.Enum):
    """The two lifecycle moments of an event that trigger reminders."""

    start = "start"
    end = "end"


class NotificationKind(str, enum.Enum):
    """Values stored in notifications.type.

    The column itself is plain text so other parts of the system can add
    kinds without a migration; these are the ones this codebase writes.
    """

    feedback_reminder = "feedback_reminder"
    documentation_reminder = "documentation_reminder"
    registration = "registration"
    general = "general"


# Kinds that may exist at most once per (user, event)
DEDUPLICATED_KINDS = (
    NotificationKind.feedback_reminder,
    NotificationKind.documentation_reminder,
)


# =====================================================
# SQLAlchemy Enum Types
# These reference existing PostgreSQL types (create_type=False)
# =====================================================

event_status_enum = SQLEnum(
    EventStatus, name="event_status", create_type=False, native_enum=True
)
device_platform_enum = SQLEnum(
    DevicePlatform, name="device_platform", create_type=False, native_enum=True
)
