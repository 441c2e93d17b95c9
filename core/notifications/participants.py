"""Resolve the two people in a meeting: names, roles and timezones."""

import logging
from dataclasses import dataclass

from core.enums import RecipientRole
from core.notifications.types import MeetingRef

logger = logging.getLogger(__name__)

FALLBACK_NAMES = {
    RecipientRole.volunteer.value: "Volunteer",
    RecipientRole.student.value: "Student",
}


@dataclass
class Participant:
    user_id: int
    role: str
    name: str
    timezone: str | None = None


async def _lookup(directory, user_id: int, role: str) -> dict | None:
    try:
        return await directory.get_recipient(user_id, role)
    except Exception as e:
        logger.warning(f"Could not look up {role}_{user_id}: {e}")
        return None


async def load_participants(directory, meeting: MeetingRef) -> tuple[Participant, Participant]:
    """
    Return (volunteer, student).

    Names given on the meeting win over stored names; unknown people get a
    generic name and UTC.
    """
    people = []
    for user_id, role, given_name in (
        (meeting.volunteer_id, RecipientRole.volunteer.value, meeting.volunteer_name),
        (meeting.student_id, RecipientRole.student.value, meeting.student_name),
    ):
        record = await _lookup(directory, user_id, role) or {}
        people.append(
            Participant(
                user_id=user_id,
                role=role,
                name=given_name or record.get("full_name") or FALLBACK_NAMES[role],
                timezone=record.get("timezone"),
            )
        )
    return people[0], people[1]
