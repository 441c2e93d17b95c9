"""Query layer for database operations using SQLAlchemy Core."""

from .meetings import get_meeting_with_participants
from .notifications import (
    count_unread,
    delete_notification,
    delete_unsent_for_meeting,
    get_due_notifications,
    insert_notification,
    list_notifications,
    mark_all_read,
    mark_read,
    mark_sent,
    update_delivery,
)
from .preferences import (
    deactivate_push_subscription,
    get_active_push_subscriptions,
    get_preferences,
    save_push_subscription,
    upsert_preferences,
)
from .users import get_recipient

__all__ = [
    # Notifications
    "insert_notification",
    "update_delivery",
    "get_due_notifications",
    "mark_sent",
    "delete_unsent_for_meeting",
    "list_notifications",
    "count_unread",
    "mark_read",
    "mark_all_read",
    "delete_notification",
    # Reference lookups
    "get_recipient",
    "get_meeting_with_participants",
    # Preferences / push
    "get_preferences",
    "upsert_preferences",
    "get_active_push_subscriptions",
    "save_push_subscription",
    "deactivate_push_subscription",
]
