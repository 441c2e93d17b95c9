"""Notification schema.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the read-only reference tables (users, meetings) used by local and
test databases, plus the notification tables owned by this service:
notifications, notification_preferences and push_subscriptions.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
    ]


def _flag(name: str, default: bool) -> sa.Column:
    return sa.Column(
        name,
        sa.Boolean(),
        server_default=sa.text("true" if default else "false"),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("timezone", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
        if_not_exists=True,
    )
    op.create_index("idx_users_role", "users", ["role"], unique=False, if_not_exists=True)

    op.create_table(
        "meetings",
        sa.Column("meeting_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("volunteer_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("scheduled_time", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("room_id", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), server_default=sa.text("40"), nullable=True),
        sa.Column("status", sa.Text(), server_default="scheduled", nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["volunteer_id"],
            ["users.user_id"],
            name=op.f("fk_meetings_volunteer_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.user_id"],
            name=op.f("fk_meetings_student_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("meeting_id", name=op.f("pk_meetings")),
        if_not_exists=True,
    )
    op.create_index(
        "idx_meetings_scheduled_time",
        "meetings",
        ["scheduled_time"],
        unique=False,
        if_not_exists=True,
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("recipient_role", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("priority", sa.Text(), server_default="medium", nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("scheduled_for", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_sent", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("sent_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("read_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "channels_sent",
            postgresql.ARRAY(sa.Text()),
            server_default="{}",
            nullable=False,
        ),
        sa.Column(
            "delivery_status",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("is_persistent", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("auto_delete_after", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "require_interaction", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("action_url", sa.Text(), nullable=True),
        sa.Column("icon_url", sa.Text(), server_default="/favicon.ico", nullable=True),
        sa.Column("badge_url", sa.Text(), server_default="/favicon.ico", nullable=True),
        sa.Column("tag", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name=op.f("ck_notifications_valid_priority"),
        ),
        sa.CheckConstraint(
            "NOT (is_sent AND scheduled_for IS NOT NULL AND sent_at IS NULL)",
            name=op.f("ck_notifications_sent_has_sent_at"),
        ),
        sa.PrimaryKeyConstraint("notification_id", name=op.f("pk_notifications")),
    )
    op.create_index(
        "idx_notifications_recipient",
        "notifications",
        ["recipient_id", "recipient_role", "is_read"],
        unique=False,
    )
    op.create_index(
        "idx_notifications_due",
        "notifications",
        ["scheduled_for"],
        unique=False,
        postgresql_where=sa.text("is_sent = false"),
    )
    op.create_index("idx_notifications_tag", "notifications", ["tag"], unique=False)

    op.create_table(
        "notification_preferences",
        sa.Column("preference_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("user_role", sa.Text(), nullable=True),
        _flag("email_enabled", True),
        _flag("email_meeting_scheduled", True),
        _flag("email_meeting_reminders", True),
        _flag("email_meeting_changes", True),
        _flag("email_instant_calls", True),
        _flag("email_system_alerts", True),
        _flag("sms_enabled", False),
        _flag("sms_urgent_reminders", False),
        _flag("sms_meeting_changes", False),
        _flag("sms_system_alerts", False),
        _flag("push_enabled", True),
        _flag("push_meeting_scheduled", True),
        _flag("push_meeting_reminders", True),
        _flag("push_meeting_changes", True),
        _flag("push_instant_calls", True),
        _flag("push_system_alerts", True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_notification_preferences_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("preference_id", name=op.f("pk_notification_preferences")),
        sa.UniqueConstraint("user_id", name=op.f("uq_notification_preferences_user_id")),
    )

    op.create_table(
        "push_subscriptions",
        sa.Column("subscription_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("p256dh_key", sa.Text(), nullable=False),
        sa.Column("auth_key", sa.Text(), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_push_subscriptions_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("subscription_id", name=op.f("pk_push_subscriptions")),
        sa.UniqueConstraint(
            "user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"
        ),
    )
    op.create_index(
        "idx_push_subscriptions_user_id", "push_subscriptions", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("idx_push_subscriptions_user_id", table_name="push_subscriptions")
    op.drop_table("push_subscriptions")
    op.drop_table("notification_preferences")
    op.drop_index("idx_notifications_tag", table_name="notifications")
    op.drop_index("idx_notifications_due", table_name="notifications")
    op.drop_index("idx_notifications_recipient", table_name="notifications")
    op.drop_table("notifications")
    # users and meetings belong to the identity and meeting services
