"""event notifications schema

Revision ID: 001_event_notifications
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "001_event_notifications"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    event_status = postgresql.ENUM(
        "pending", "approved", "rejected", name="event_status"
    )
    device_platform = postgresql.ENUM("android", "ios", name="device_platform")
    event_status.create(op.get_bind(), checkfirst=True)
    device_platform.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text()),
        sa.Column("nim", sa.Text()),
        sa.Column("is_admin", sa.Boolean(), server_default="false"),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id", name="pk_users"),
    )
    op.create_index("idx_users_email", "users", ["email"])

    op.create_table(
        "events",
        sa.Column("event_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("location", sa.Text()),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_start", sa.Time(), nullable=False),
        sa.Column("time_end", sa.Time(), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(name="event_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_by", sa.Integer()),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["created_by"], ["users.user_id"],
            name="fk_events_created_by_users", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("event_id", name="pk_events"),
    )
    op.create_index("idx_events_status_date", "events", ["status", "date"])

    op.create_table(
        "registrations",
        sa.Column("registration_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer()),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text()),
        sa.Column("attended", sa.Boolean(), server_default="false"),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.event_id"],
            name="fk_registrations_event_id_events", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.user_id"],
            name="fk_registrations_user_id_users", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("registration_id", name="pk_registrations"),
    )
    op.create_index("idx_registrations_event_id", "registrations", ["event_id"])
    op.create_index("idx_registrations_user_id", "registrations", ["user_id"])

    op.create_table(
        "feedbacks",
        sa.Column("feedback_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer()),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text()),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.event_id"],
            name="fk_feedbacks_event_id_events", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.user_id"],
            name="fk_feedbacks_user_id_users", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("feedback_id", name="pk_feedbacks"),
    )
    op.create_index("idx_feedbacks_event_user", "feedbacks", ["event_id", "user_id"])

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("related_id", sa.Integer()),
        sa.Column(
            "notification_data",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.user_id"],
            name="fk_notifications_user_id_users", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("notification_id", name="pk_notifications"),
    )
    op.create_index(
        "idx_notifications_user_created", "notifications", ["user_id", "created_at"]
    )
    op.create_index(
        "idx_notifications_dedup", "notifications", ["user_id", "type", "related_id"]
    )
    op.create_index(
        "uq_notifications_reminder_once",
        "notifications",
        ["user_id", "type", "related_id"],
        unique=True,
        postgresql_where=sa.text(
            "type IN ('feedback_reminder', 'documentation_reminder')"
        ),
    )

    op.create_table(
        "user_push_tokens",
        sa.Column("token_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("push_token", sa.Text(), nullable=False),
        sa.Column("device_id", sa.Text()),
        sa.Column(
            "platform",
            postgresql.ENUM(name="device_platform", create_type=False),
            server_default="android",
        ),
        sa.Column("app_version", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("last_used_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.user_id"],
            name="fk_user_push_tokens_user_id_users", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("token_id", name="pk_user_push_tokens"),
        sa.UniqueConstraint("push_token", name="uq_user_push_tokens_push_token"),
    )
    op.create_index(
        "idx_user_push_tokens_user_active", "user_push_tokens", ["user_id", "is_active"]
    )


def downgrade() -> None:
    op.drop_table("user_push_tokens")
    op.drop_table("notifications")
    op.drop_table("feedbacks")
    op.drop_table("registrations")
    op.drop_table("events")
    op.drop_table("users")
    postgresql.ENUM(name="device_platform").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="event_status").drop(op.get_bind(), checkfirst=True)
