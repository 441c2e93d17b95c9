"""
Database-backed ports used by the notification components.

NotificationStore owns the notifications table. Directory answers read-only
questions about people and meetings. Both open their own connections so the
dispatcher, processor and subscriber never share a transaction.
"""

from datetime import datetime
from typing import Any

from core.database import get_connection, get_transaction
from core.queries import meetings as meeting_queries
from core.queries import notifications as notification_queries
from core.queries import preferences as preference_queries
from core.queries import users as user_queries


class NotificationStore:
    """Persistence for notification rows."""

    async def insert(self, values: dict[str, Any]) -> dict[str, Any]:
        async with get_transaction() as conn:
            return await notification_queries.insert_notification(conn, values)

    async def update_delivery(
        self,
        notification_id: int,
        channels_sent: list[str],
        delivery_status: dict[str, Any],
    ) -> dict[str, Any] | None:
        async with get_transaction() as conn:
            return await notification_queries.update_delivery(
                conn, notification_id, channels_sent, delivery_status
            )

    async def get_due(self, now: datetime, limit: int) -> list[dict[str, Any]]:
        async with get_connection() as conn:
            return await notification_queries.get_due_notifications(conn, now, limit)

    async def mark_sent(self, notification_id: int, sent_at: datetime) -> bool:
        async with get_transaction() as conn:
            return await notification_queries.mark_sent(conn, notification_id, sent_at)

    async def delete_unsent_for_meeting(self, meeting_id: int) -> int:
        async with get_transaction() as conn:
            return await notification_queries.delete_unsent_for_meeting(conn, meeting_id)


class Directory:
    """Read-only lookups: recipients, preferences, meetings, push endpoints."""

    async def get_recipient(
        self, user_id: int, role: str | None = None
    ) -> dict[str, Any] | None:
        async with get_connection() as conn:
            return await user_queries.get_recipient(conn, user_id, role)

    async def get_preferences(self, user_id: int) -> dict[str, Any] | None:
        async with get_connection() as conn:
            return await preference_queries.get_preferences(conn, user_id)

    async def get_meeting(self, meeting_id: int) -> dict[str, Any] | None:
        async with get_connection() as conn:
            return await meeting_queries.get_meeting_with_participants(conn, meeting_id)

    async def get_push_subscriptions(self, user_id: int) -> list[dict[str, Any]]:
        async with get_connection() as conn:
            return await preference_queries.get_active_push_subscriptions(conn, user_id)

    async def deactivate_push_subscription(self, endpoint: str) -> int:
        async with get_transaction() as conn:
            return await preference_queries.deactivate_push_subscription(conn, endpoint)
