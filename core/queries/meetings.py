"""Read-only meeting lookups."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import meetings, users


async def get_meeting_with_participants(
    conn: AsyncConnection,
    meeting_id: int,
) -> dict[str, Any] | None:
    """
    Get a meeting along with both participants' names.

    Returns:
        Meeting row plus volunteer_name and student_name, or None
    """
    volunteer = users.alias("volunteer")
    student = users.alias("student")

    result = await conn.execute(
        select(
            meetings.c.meeting_id,
            meetings.c.volunteer_id,
            meetings.c.student_id,
            meetings.c.scheduled_time,
            meetings.c.room_id,
            meetings.c.duration,
            meetings.c.status,
            volunteer.c.full_name.label("volunteer_name"),
            student.c.full_name.label("student_name"),
        )
        .select_from(
            meetings.outerjoin(
                volunteer, meetings.c.volunteer_id == volunteer.c.user_id
            ).outerjoin(student, meetings.c.student_id == student.c.user_id)
        )
        .where(meetings.c.meeting_id == meeting_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None
