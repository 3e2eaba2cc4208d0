"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

from .enums import device_platform_enum, event_status_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. USERS
# =====================================================
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("email", Text),
    Column("nim", Text),  # Student number
    Column("is_admin", Boolean, server_default="false"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_users_email", "email"),
)


# =====================================================
# 2. EVENTS
# =====================================================
# date/time_start/time_end are wall-clock values in EVENT_TIMEZONE.
# An event whose time_end is earlier than time_start ends the next day.
events = Table(
    "events",
    metadata,
    Column("event_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("location", Text),
    Column("date", Date, nullable=False),
    Column("time_start", Time, nullable=False),
    Column("time_end", Time, nullable=False),
    Column("status", event_status_enum, nullable=False, server_default="pending"),
    Column(
        "created_by",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL"),
    ),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_events_status_date", "status", "date"),
)


# =====================================================
# 3. REGISTRATIONS
# =====================================================
registrations = Table(
    "registrations",
    metadata,
    Column("registration_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "event_id",
        Integer,
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
    ),
    # NULL for anonymous (walk-in) registrations
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL"),
    ),
    Column("name", Text, nullable=False),
    Column("email", Text),
    Column("attended", Boolean, server_default="false"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_registrations_event_id", "event_id"),
    Index("idx_registrations_user_id", "user_id"),
)


# =====================================================
# 4. FEEDBACKS
# =====================================================
feedbacks = Table(
    "feedbacks",
    metadata,
    Column("feedback_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "event_id",
        Integer,
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL"),
    ),
    Column("rating", Integer, nullable=False),
    Column("comment", Text),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_feedbacks_event_user", "event_id", "user_id"),
)


# =====================================================
# 5. NOTIFICATIONS (in-app ledger)
# =====================================================
notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("type", Text, nullable=False),  # e.g., "feedback_reminder"
    Column("related_id", Integer),  # Usually an event_id
    Column("notification_data", JSONB, server_default=text("'{}'::jsonb")),
    Column("is_read", Boolean, nullable=False, server_default="false"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_notifications_user_created", "user_id", "created_at"),
    Index("idx_notifications_dedup", "user_id", "type", "related_id"),
    # Reminders are sent at most once per (user, event)
    Index(
        "uq_notifications_reminder_once",
        "user_id",
        "type",
        "related_id",
        unique=True,
        postgresql_where=text(
            "type IN ('feedback_reminder', 'documentation_reminder')"
        ),
    ),
)


# =====================================================
# 6. USER_PUSH_TOKENS
# =====================================================
user_push_tokens = Table(
    "user_push_tokens",
    metadata,
    Column("token_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("push_token", Text, nullable=False, unique=True),
    Column("device_id", Text),
    Column("platform", device_platform_enum, server_default="android"),
    Column("app_version", Text),
    Column("is_active", Boolean, nullable=False, server_default="true"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("last_used_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_user_push_tokens_user_active", "user_id", "is_active"),
)
