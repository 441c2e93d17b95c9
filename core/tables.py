"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP

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
# 1. USERS (owned by the identity service, read-only here)
# =====================================================
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("role", Text, nullable=False),  # "volunteer", "student", "admin"
    Column("full_name", Text),
    Column("email", Text),
    Column("phone", Text),
    Column("timezone", Text),  # IANA name, e.g. "Africa/Nairobi"
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_users_role", "role"),
)


# =====================================================
# 2. MEETINGS (owned by the meeting service, read-only here)
# =====================================================
meetings = Table(
    "meetings",
    metadata,
    Column("meeting_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "volunteer_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "student_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("scheduled_time", TIMESTAMP(timezone=True), nullable=False),
    Column("room_id", Text),
    Column("duration", Integer, server_default="40"),  # minutes
    Column("status", Text, server_default="scheduled"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_meetings_scheduled_time", "scheduled_time"),
)


# =====================================================
# 3. NOTIFICATIONS
# =====================================================
notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column("recipient_id", Integer, nullable=False),
    Column("recipient_role", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("type", Text, nullable=False),  # NotificationType value
    Column("priority", Text, nullable=False, server_default="medium"),
    Column("metadata", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    # Scheduling: NULL scheduled_for means "send now"
    Column("scheduled_for", TIMESTAMP(timezone=True)),
    Column("is_sent", Boolean, nullable=False, server_default="false"),
    Column("sent_at", TIMESTAMP(timezone=True)),
    # Read state (independent of send state)
    Column("is_read", Boolean, nullable=False, server_default="false"),
    Column("read_at", TIMESTAMP(timezone=True)),
    # Delivery bookkeeping
    Column("channels_sent", ARRAY(Text), nullable=False, server_default="{}"),
    Column(
        "delivery_status", JSONB, nullable=False, server_default=text("'{}'::jsonb")
    ),
    # Presentation hints for clients
    Column("is_persistent", Boolean, nullable=False, server_default="true"),
    Column("auto_delete_after", TIMESTAMP(timezone=True)),
    Column("require_interaction", Boolean, nullable=False, server_default="false"),
    Column("action_url", Text),
    Column("icon_url", Text, server_default="/favicon.ico"),
    Column("badge_url", Text, server_default="/favicon.ico"),
    Column("tag", Text),  # Clients replace notifications sharing a tag
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    CheckConstraint(
        "priority IN ('low', 'medium', 'high', 'urgent')",
        name="valid_priority",
    ),
    CheckConstraint(
        "NOT (is_sent AND scheduled_for IS NOT NULL AND sent_at IS NULL)",
        name="sent_has_sent_at",
    ),
    Index(
        "idx_notifications_recipient",
        "recipient_id",
        "recipient_role",
        "is_read",
    ),
    Index(
        "idx_notifications_due",
        "scheduled_for",
        postgresql_where=text("is_sent = false"),
    ),
    Index("idx_notifications_tag", "tag"),
)


# =====================================================
# 4. NOTIFICATION_PREFERENCES
# =====================================================
notification_preferences = Table(
    "notification_preferences",
    metadata,
    Column("preference_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_role", Text),
    # Email
    Column("email_enabled", Boolean, server_default="true"),
    Column("email_meeting_scheduled", Boolean, server_default="true"),
    Column("email_meeting_reminders", Boolean, server_default="true"),
    Column("email_meeting_changes", Boolean, server_default="true"),
    Column("email_instant_calls", Boolean, server_default="true"),
    Column("email_system_alerts", Boolean, server_default="true"),
    # SMS (opt-in)
    Column("sms_enabled", Boolean, server_default="false"),
    Column("sms_urgent_reminders", Boolean, server_default="false"),
    Column("sms_meeting_changes", Boolean, server_default="false"),
    Column("sms_system_alerts", Boolean, server_default="false"),
    # Push (opt-out)
    Column("push_enabled", Boolean, server_default="true"),
    Column("push_meeting_scheduled", Boolean, server_default="true"),
    Column("push_meeting_reminders", Boolean, server_default="true"),
    Column("push_meeting_changes", Boolean, server_default="true"),
    Column("push_instant_calls", Boolean, server_default="true"),
    Column("push_system_alerts", Boolean, server_default="true"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id"),
)


# =====================================================
# 5. PUSH_SUBSCRIPTIONS
# =====================================================
push_subscriptions = Table(
    "push_subscriptions",
    metadata,
    Column("subscription_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("endpoint", Text, nullable=False),
    Column("p256dh_key", Text, nullable=False),
    Column("auth_key", Text, nullable=False),
    Column("user_agent", Text),
    Column("is_active", Boolean, nullable=False, server_default="true"),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),
    Index("idx_push_subscriptions_user_id", "user_id"),
)
