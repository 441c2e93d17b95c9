"""
Per-recipient channel preferences.

PreferenceResolver caches the resolved preference document for each
recipient; the should_send_* functions decide whether a channel applies to a
given notification type and priority.
"""

import logging
import time
from copy import deepcopy
from typing import Callable

from core.config import get_preference_cache_ttl_seconds
from core.enums import REMINDER_TYPES, NotificationPriority, NotificationType

logger = logging.getLogger(__name__)


DEFAULT_PREFERENCES = {
    "email": {
        "enabled": True,
        "meeting_scheduled": True,
        "meeting_reminders": True,
        "meeting_changes": True,
        "instant_calls": True,
        "system_alerts": True,
    },
    "sms": {
        "enabled": False,
        "urgent_reminders": False,
        "meeting_changes": False,
        "system_alerts": False,
    },
    "push": {
        "enabled": True,
        "meeting_scheduled": True,
        "meeting_reminders": True,
        "meeting_changes": True,
        "instant_calls": True,
        "system_alerts": True,
    },
    "is_default": True,
}

# Priorities that email is sent for when the recipient never chose
DEFAULT_EMAIL_PRIORITIES = frozenset(
    {
        NotificationPriority.medium.value,
        NotificationPriority.high.value,
        NotificationPriority.urgent.value,
    }
)

_CATEGORY_BY_TYPE = {
    NotificationType.meeting_scheduled.value: "meeting_scheduled",
    NotificationType.meeting_scheduled_confirmation.value: "meeting_scheduled",
    NotificationType.meeting_rescheduled.value: "meeting_changes",
    NotificationType.meeting_canceled.value: "meeting_changes",
    NotificationType.meeting_missed.value: "meeting_changes",
    NotificationType.meeting_completed.value: "meeting_changes",
    NotificationType.meeting_ended.value: "meeting_changes",
    NotificationType.instant_call.value: "instant_calls",
    NotificationType.system.value: "system_alerts",
    NotificationType.general.value: "system_alerts",
}


def default_preferences() -> dict:
    return deepcopy(DEFAULT_PREFERENCES)


def category_for(notification_type: str) -> str:
    """Map a notification type to its preference category."""
    if notification_type in REMINDER_TYPES:
        return "meeting_reminders"
    return _CATEGORY_BY_TYPE.get(notification_type, "system_alerts")


def preferences_from_row(row: dict | None) -> dict:
    """Turn a notification_preferences row into the resolved document."""
    prefs = default_preferences()
    if not row:
        return prefs

    for channel in ("email", "sms", "push"):
        for key in prefs[channel]:
            value = row.get(f"{channel}_{key}")
            if value is not None:
                prefs[channel][key] = bool(value)
    prefs["is_default"] = False
    return prefs


def preferences_to_columns(prefs: dict) -> dict[str, bool]:
    """Flatten a (possibly partial) preference document into column values."""
    columns = {}
    for channel in ("email", "sms", "push"):
        section = prefs.get(channel) or {}
        for key in DEFAULT_PREFERENCES[channel]:
            if key in section:
                columns[f"{channel}_{key}"] = bool(section[key])
    return columns


def should_send_email(preferences: dict, notification_type: str, priority: str | None = None) -> bool:
    email = preferences.get("email", {})
    if not email.get("enabled"):
        return False
    if not email.get(category_for(notification_type), False):
        return False
    if preferences.get("is_default"):
        return (priority or NotificationPriority.medium.value) in DEFAULT_EMAIL_PRIORITIES
    return True


def should_send_sms(preferences: dict, notification_type: str, priority: str | None = None) -> bool:
    """
    SMS is opt-in per category. Reminders only go out by SMS for the
    urgent tier, and only with sms.urgent_reminders set.
    """
    sms = preferences.get("sms", {})
    if not sms.get("enabled"):
        return False
    if notification_type in REMINDER_TYPES:
        return priority == NotificationPriority.urgent.value and bool(
            sms.get("urgent_reminders")
        )
    return bool(sms.get(category_for(notification_type), False))


def should_send_push(preferences: dict, notification_type: str, priority: str | None = None) -> bool:
    push = preferences.get("push", {})
    if not push.get("enabled", True):
        return False
    return push.get(category_for(notification_type), True) is not False


class PreferenceResolver:
    """
    Cache-first preference lookup.

    Entries expire after ttl seconds on a monotonic clock. Lookup failures
    return the defaults without caching them.
    """

    def __init__(
        self,
        directory,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._directory = directory
        self._ttl = ttl_seconds if ttl_seconds is not None else get_preference_cache_ttl_seconds()
        self._clock = clock
        self._cache: dict[int, tuple[float, dict]] = {}

    async def get(self, recipient_id: int) -> dict:
        entry = self._cache.get(recipient_id)
        now = self._clock()
        if entry is not None:
            expires_at, prefs = entry
            if now < expires_at:
                return deepcopy(prefs)
            del self._cache[recipient_id]

        try:
            row = await self._directory.get_preferences(recipient_id)
        except Exception as e:
            logger.warning(
                f"Could not load preferences for recipient {recipient_id}, using defaults: {e}"
            )
            return default_preferences()

        prefs = preferences_from_row(row)
        self._cache[recipient_id] = (now + self._ttl, prefs)
        return deepcopy(prefs)

    def invalidate(self, recipient_id: int | None = None) -> None:
        """Drop one recipient's entry, or everything when called without an id."""
        if recipient_id is None:
            self._cache.clear()
        else:
            self._cache.pop(recipient_id, None)
