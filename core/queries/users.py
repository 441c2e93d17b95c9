"""Read-only identity lookups."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import users


async def get_recipient(
    conn: AsyncConnection,
    user_id: int,
    role: str | None = None,
) -> dict[str, Any] | None:
    """
    Contact details for a notification recipient.

    Args:
        role: When given, the user must also hold this role

    Returns:
        Dict with user_id, role, full_name, email, phone, timezone, or None
    """
    query = select(
        users.c.user_id,
        users.c.role,
        users.c.full_name,
        users.c.email,
        users.c.phone,
        users.c.timezone,
    ).where(users.c.user_id == user_id)
    if role:
        query = query.where(users.c.role == role)

    result = await conn.execute(query)
    row = result.mappings().first()
    return dict(row) if row else None
