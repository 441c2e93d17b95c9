"""Enum definitions shared by the notification tables and services."""

import enum


# =====================================================
# Python Enum Classes
# =====================================================


class RecipientRole(str, enum.Enum):
    volunteer = "volunteer"
    student = "student"
    admin = "admin"


class NotificationType(str, enum.Enum):
    meeting_scheduled = "meeting_scheduled"
    meeting_scheduled_confirmation = "meeting_scheduled_confirmation"
    meeting_rescheduled = "meeting_rescheduled"
    meeting_reminder_30min = "meeting_reminder_30min"
    meeting_reminder_10min = "meeting_reminder_10min"
    meeting_reminder_5min = "meeting_reminder_5min"
    meeting_canceled = "meeting_canceled"
    meeting_missed = "meeting_missed"
    meeting_completed = "meeting_completed"
    meeting_ended = "meeting_ended"
    instant_call = "instant_call"
    system = "system"
    general = "general"


class NotificationPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class Channel(str, enum.Enum):
    in_app = "in-app"
    push = "push"
    email = "email"
    sms = "sms"


class DeliveryOutcome(str, enum.Enum):
    sent = "sent"
    failed = "failed"
    timeout = "timeout"
    skipped = "skipped"
    no_address = "no_address"
    unknown_channel = "unknown_channel"


class MeetingEventType(str, enum.Enum):
    created = "meeting.created"
    rescheduled = "meeting.rescheduled"
    canceled = "meeting.canceled"
    ended = "meeting.ended"
    missed = "meeting.missed"


REMINDER_TYPES = frozenset(
    {
        NotificationType.meeting_reminder_30min.value,
        NotificationType.meeting_reminder_10min.value,
        NotificationType.meeting_reminder_5min.value,
    }
)
