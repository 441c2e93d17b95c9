"""Database queries for notifications."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import notifications

_metadata = notifications.c["metadata"]


def _owned_by(recipient_id: int, recipient_role: str):
    return (notifications.c.recipient_id == recipient_id) & (
        notifications.c.recipient_role == recipient_role
    )


async def insert_notification(
    conn: AsyncConnection,
    values: dict[str, Any],
) -> dict[str, Any]:
    """Insert one notification row and return it as stored."""
    result = await conn.execute(
        insert(notifications).values(**values).returning(notifications)
    )
    return dict(result.mappings().first())


async def update_delivery(
    conn: AsyncConnection,
    notification_id: int,
    channels_sent: list[str],
    delivery_status: dict[str, Any],
) -> dict[str, Any] | None:
    """Record the outcome of a channel fan-out."""
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .values(
            channels_sent=channels_sent,
            delivery_status=delivery_status,
            updated_at=func.now(),
        )
        .returning(notifications)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_due_notifications(
    conn: AsyncConnection,
    now: datetime,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """Unsent scheduled rows whose time has come, oldest first."""
    result = await conn.execute(
        select(notifications)
        .where(notifications.c.scheduled_for.isnot(None))
        .where(notifications.c.scheduled_for <= now)
        .where(notifications.c.is_sent.is_(False))
        .order_by(notifications.c.scheduled_for.asc())
        .limit(limit)
    )
    return [dict(row) for row in result.mappings()]


async def mark_sent(
    conn: AsyncConnection,
    notification_id: int,
    sent_at: datetime,
) -> bool:
    """
    Flag a row as sent.

    Only touches rows that are still unsent, so a sent row keeps its
    original sent_at. Returns True if this call did the transition.
    """
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .where(notifications.c.is_sent.is_(False))
        .values(is_sent=True, sent_at=sent_at, updated_at=func.now())
    )
    return result.rowcount > 0


async def delete_unsent_for_meeting(
    conn: AsyncConnection,
    meeting_id: int,
) -> int:
    """Delete pending reminders for a meeting. Sent rows are kept."""
    result = await conn.execute(
        delete(notifications)
        .where(_metadata["meeting_id"].astext == str(meeting_id))
        .where(notifications.c.is_sent.is_(False))
    )
    return result.rowcount


async def list_notifications(
    conn: AsyncConnection,
    recipient_id: int,
    recipient_role: str,
    *,
    status: str = "all",
    priority: str | None = None,
    notification_type: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int]:
    """
    Page through a recipient's delivered notifications, newest first.

    Args:
        status: "all", "read" or "unread"

    Returns:
        (rows, total) where total counts every row matching the filters
    """
    conditions = [_owned_by(recipient_id, recipient_role), notifications.c.is_sent.is_(True)]
    if status == "read":
        conditions.append(notifications.c.is_read.is_(True))
    elif status == "unread":
        conditions.append(notifications.c.is_read.is_(False))
    if priority:
        conditions.append(notifications.c.priority == priority)
    if notification_type:
        conditions.append(notifications.c.type == notification_type)

    result = await conn.execute(
        select(notifications)
        .where(*conditions)
        .order_by(notifications.c.created_at.desc(), notifications.c.notification_id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = [dict(row) for row in result.mappings()]

    total = await conn.scalar(
        select(func.count()).select_from(notifications).where(*conditions)
    )
    return rows, total or 0


async def count_unread(
    conn: AsyncConnection,
    recipient_id: int,
    recipient_role: str,
) -> int:
    count = await conn.scalar(
        select(func.count())
        .select_from(notifications)
        .where(_owned_by(recipient_id, recipient_role))
        .where(notifications.c.is_sent.is_(True))
        .where(notifications.c.is_read.is_(False))
    )
    return count or 0


async def mark_read(
    conn: AsyncConnection,
    notification_id: int,
    recipient_id: int,
    recipient_role: str,
    read_at: datetime,
) -> dict[str, Any] | None:
    """
    Mark one notification read. Repeat calls keep the first read_at.

    Returns None when the row does not exist or belongs to someone else.
    """
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .where(_owned_by(recipient_id, recipient_role))
        .values(
            is_read=True,
            read_at=func.coalesce(notifications.c.read_at, read_at),
            updated_at=func.now(),
        )
        .returning(notifications)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def mark_all_read(
    conn: AsyncConnection,
    recipient_id: int,
    recipient_role: str,
    read_at: datetime,
) -> int:
    """Mark every unread notification of a recipient read. Returns rows changed."""
    result = await conn.execute(
        update(notifications)
        .where(_owned_by(recipient_id, recipient_role))
        .where(notifications.c.is_read.is_(False))
        .values(is_read=True, read_at=read_at, updated_at=func.now())
    )
    return result.rowcount


async def delete_notification(
    conn: AsyncConnection,
    notification_id: int,
    recipient_id: int,
    recipient_role: str,
) -> bool:
    result = await conn.execute(
        delete(notifications)
        .where(notifications.c.notification_id == notification_id)
        .where(_owned_by(recipient_id, recipient_role))
    )
    return result.rowcount > 0
