"""
Notification pipeline: scheduling, delivery and live updates.

Public API:
    NotificationService - builds and owns every component below
    NotificationDispatcher.send(draft, channels, options) - Send immediately
    ReminderScheduler.schedule_reminders(meeting) - Store future reminders
    ReminderScheduler.cancel_reminders(meeting_id) - Drop pending reminders
    DueNotificationProcessor.run_once() - Deliver everything that is due
    MeetingEventSubscriber.handle_message(raw) - React to a meeting event
"""

from .dispatcher import NotificationDispatcher
from .preferences import PreferenceResolver
from .processor import DueNotificationProcessor, channels_for
from .reminders import REMINDER_TIERS, ReminderScheduler
from .service import NotificationService
from .subscriber import MeetingEventSubscriber
from .types import InvalidNotificationError, MeetingRef, NotificationDraft, SendOptions

__all__ = [
    "NotificationService",
    "NotificationDispatcher",
    "PreferenceResolver",
    "ReminderScheduler",
    "REMINDER_TIERS",
    "DueNotificationProcessor",
    "channels_for",
    "MeetingEventSubscriber",
    "NotificationDraft",
    "SendOptions",
    "MeetingRef",
    "InvalidNotificationError",
]
