"""Queries for notification preferences and web-push subscriptions."""

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import notification_preferences, push_subscriptions

PREFERENCE_COLUMNS = (
    "email_enabled",
    "email_meeting_scheduled",
    "email_meeting_reminders",
    "email_meeting_changes",
    "email_instant_calls",
    "email_system_alerts",
    "sms_enabled",
    "sms_urgent_reminders",
    "sms_meeting_changes",
    "sms_system_alerts",
    "push_enabled",
    "push_meeting_scheduled",
    "push_meeting_reminders",
    "push_meeting_changes",
    "push_instant_calls",
    "push_system_alerts",
)


async def get_preferences(
    conn: AsyncConnection,
    user_id: int,
) -> dict[str, Any] | None:
    """Raw preference row for a user, or None if they never saved any."""
    result = await conn.execute(
        select(notification_preferences).where(
            notification_preferences.c.user_id == user_id
        )
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def upsert_preferences(
    conn: AsyncConnection,
    user_id: int,
    user_role: str,
    values: dict[str, bool],
) -> dict[str, Any]:
    """
    Create or update a user's preference row.

    Keys outside PREFERENCE_COLUMNS are ignored.
    """
    flags = {k: bool(v) for k, v in values.items() if k in PREFERENCE_COLUMNS}
    stmt = pg_insert(notification_preferences).values(
        user_id=user_id, user_role=user_role, **flags
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[notification_preferences.c.user_id],
        set_={**flags, "user_role": user_role, "updated_at": func.now()},
    ).returning(notification_preferences)
    result = await conn.execute(stmt)
    return dict(result.mappings().first())


async def get_active_push_subscriptions(
    conn: AsyncConnection,
    user_id: int,
) -> list[dict[str, Any]]:
    result = await conn.execute(
        select(push_subscriptions)
        .where(push_subscriptions.c.user_id == user_id)
        .where(push_subscriptions.c.is_active.is_(True))
    )
    return [dict(row) for row in result.mappings()]


async def save_push_subscription(
    conn: AsyncConnection,
    user_id: int,
    endpoint: str,
    p256dh_key: str,
    auth_key: str,
    user_agent: str | None = None,
) -> dict[str, Any]:
    """Register a browser endpoint, reactivating it if it was seen before."""
    stmt = pg_insert(push_subscriptions).values(
        user_id=user_id,
        endpoint=endpoint,
        p256dh_key=p256dh_key,
        auth_key=auth_key,
        user_agent=user_agent,
        is_active=True,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_push_subscriptions_user_endpoint",
        set_={
            "p256dh_key": p256dh_key,
            "auth_key": auth_key,
            "user_agent": user_agent,
            "is_active": True,
            "updated_at": func.now(),
        },
    ).returning(push_subscriptions)
    result = await conn.execute(stmt)
    return dict(result.mappings().first())


async def deactivate_push_subscription(
    conn: AsyncConnection,
    endpoint: str,
    user_id: int | None = None,
) -> int:
    """
    Stop sending to an endpoint.

    Without user_id this disables the endpoint for everyone, which is what
    the push channel does when the push service reports it gone.
    """
    stmt = (
        update(push_subscriptions)
        .where(push_subscriptions.c.endpoint == endpoint)
        .where(push_subscriptions.c.is_active.is_(True))
        .values(is_active=False, updated_at=func.now())
    )
    if user_id is not None:
        stmt = stmt.where(push_subscriptions.c.user_id == user_id)
    result = await conn.execute(stmt)
    return result.rowcount
