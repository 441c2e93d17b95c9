"""
Meeting reminders.

For every meeting each participant gets one stored notification per reminder
tier, scheduled ahead of the meeting time. The due-notification processor
sends them when their time comes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from core.enums import NotificationPriority, NotificationType
from core.notifications.participants import Participant, load_participants
from core.notifications.templates import render_notification
from core.notifications.types import MeetingRef
from core.realtime import call_url
from core.timezone import format_meeting_datetime, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderTier:
    minutes: int
    type: str
    priority: str
    require_interaction: bool = False
    auto_delete_minutes: int = 30


REMINDER_TIERS = (
    ReminderTier(
        minutes=30,
        type=NotificationType.meeting_reminder_30min.value,
        priority=NotificationPriority.high.value,
        auto_delete_minutes=60,
    ),
    ReminderTier(
        minutes=10,
        type=NotificationType.meeting_reminder_10min.value,
        priority=NotificationPriority.high.value,
    ),
    ReminderTier(
        minutes=5,
        type=NotificationType.meeting_reminder_5min.value,
        priority=NotificationPriority.urgent.value,
        require_interaction=True,
    ),
)

AUTO_LAUNCH_TYPE = NotificationType.meeting_reminder_5min.value


def reminder_tag(meeting_id: int, minutes: int) -> str:
    return f"meeting-{meeting_id}-reminder-{minutes}"


class ReminderScheduler:
    """Writes and removes future reminder rows for meetings."""

    def __init__(self, store, directory, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._directory = directory
        self._clock = clock

    async def schedule_reminders(self, meeting: MeetingRef) -> list[int]:
        """
        Store reminders for both participants of a meeting.

        Tiers whose reminder time has already passed are skipped. Calling
        this twice for the same meeting stores duplicates, so callers run
        cancel_reminders() first when rescheduling.

        Returns:
            IDs of the stored notifications
        """
        now = self._clock()
        volunteer, student = await load_participants(self._directory, meeting)

        created = []
        for tier in REMINDER_TIERS:
            remind_at = meeting.scheduled_time - timedelta(minutes=tier.minutes)
            if remind_at <= now:
                logger.debug(
                    f"Skipping {tier.minutes}-minute reminder for meeting "
                    f"{meeting.meeting_id}: {remind_at.isoformat()} already passed"
                )
                continue
            for recipient, counterpart in ((volunteer, student), (student, volunteer)):
                row = await self._store.insert(
                    self._reminder_row(meeting, tier, remind_at, recipient, counterpart)
                )
                created.append(row["notification_id"])

        logger.info(
            f"Scheduled {len(created)} reminders for meeting {meeting.meeting_id} "
            f"at {meeting.scheduled_time.isoformat()}"
        )
        return created

    async def cancel_reminders(self, meeting_id: int) -> int:
        """Delete unsent reminders for a meeting. Returns how many were removed."""
        removed = await self._store.delete_unsent_for_meeting(meeting_id)
        logger.info(f"Canceled {removed} pending reminders for meeting {meeting_id}")
        return removed

    @staticmethod
    def _reminder_row(
        meeting: MeetingRef,
        tier: ReminderTier,
        remind_at: datetime,
        recipient: Participant,
        counterpart: Participant,
    ) -> dict:
        title, message = render_notification(
            tier.type,
            {
                "counterpart_name": counterpart.name,
                "meeting_time": format_meeting_datetime(
                    meeting.scheduled_time, recipient.timezone
                ),
            },
        )
        return {
            "recipient_id": recipient.user_id,
            "recipient_role": recipient.role,
            "title": title,
            "message": message,
            "type": tier.type,
            "priority": tier.priority,
            "metadata": {
                "meeting_id": meeting.meeting_id,
                "room_id": meeting.room_id,
                "scheduled_time": meeting.scheduled_time.isoformat(),
                "counterpart_id": counterpart.user_id,
                "counterpart_name": counterpart.name,
                "reminder_minutes": tier.minutes,
            },
            "scheduled_for": remind_at,
            "is_sent": False,
            "is_persistent": True,
            "require_interaction": tier.require_interaction,
            "auto_delete_after": remind_at + timedelta(minutes=tier.auto_delete_minutes),
            "action_url": call_url(meeting.room_id),
            "tag": reminder_tag(meeting.meeting_id, tier.minutes),
        }
