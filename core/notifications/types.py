"""Value types passed between the notification components."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.enums import NotificationPriority, NotificationType, RecipientRole
from core.realtime import DEFAULT_MEETING_DURATION
from core.timezone import parse_datetime


class InvalidNotificationError(ValueError):
    """A notification draft is missing fields or uses an unknown tag."""


def _closed_set(enum_cls) -> frozenset[str]:
    return frozenset(member.value for member in enum_cls)


_ROLES = _closed_set(RecipientRole)
_TYPES = _closed_set(NotificationType)
_PRIORITIES = _closed_set(NotificationPriority)


def _tag_value(value) -> str | None:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


@dataclass
class NotificationDraft:
    """What a caller wants to tell one recipient."""

    recipient_id: int
    recipient_role: str
    title: str
    message: str
    type: str
    priority: str = NotificationPriority.medium.value
    metadata: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise InvalidNotificationError if the draft cannot be stored."""
        missing = [
            name
            for name in ("recipient_id", "recipient_role", "title", "message", "type")
            if getattr(self, name) in (None, "")
        ]
        if missing:
            raise InvalidNotificationError(
                f"Notification is missing required fields: {', '.join(missing)}"
            )
        if not isinstance(self.recipient_id, int) or isinstance(self.recipient_id, bool):
            raise InvalidNotificationError(
                f"recipient_id must be an integer, got {self.recipient_id!r}"
            )

        role = _tag_value(self.recipient_role)
        kind = _tag_value(self.type)
        priority = _tag_value(self.priority) or NotificationPriority.medium.value
        if role not in _ROLES:
            raise InvalidNotificationError(f"Unknown recipient role: {role}")
        if kind not in _TYPES:
            raise InvalidNotificationError(f"Unknown notification type: {kind}")
        if priority not in _PRIORITIES:
            raise InvalidNotificationError(f"Unknown priority: {priority}")
        if self.metadata is not None and not isinstance(self.metadata, dict):
            raise InvalidNotificationError("metadata must be a mapping")

        # Normalize enum members to their stored string values
        self.recipient_role = role
        self.type = kind
        self.priority = priority
        self.metadata = dict(self.metadata or {})


@dataclass
class SendOptions:
    """Presentation hints stored alongside a notification."""

    persistent: bool = True
    auto_delete_after: datetime | None = None
    require_interaction: bool = False
    action_url: str | None = None
    icon_url: str | None = None
    badge_url: str | None = None
    tag: str | None = None

    def as_columns(self) -> dict[str, Any]:
        columns = {
            "is_persistent": self.persistent,
            "auto_delete_after": self.auto_delete_after,
            "require_interaction": self.require_interaction,
            "action_url": self.action_url,
            "tag": self.tag,
        }
        # Leave icon/badge to the column defaults unless given
        if self.icon_url:
            columns["icon_url"] = self.icon_url
        if self.badge_url:
            columns["badge_url"] = self.badge_url
        return columns


@dataclass
class MeetingRef:
    """The parts of a meeting the notification pipeline needs."""

    meeting_id: int
    volunteer_id: int
    student_id: int
    scheduled_time: datetime | None
    room_id: str | None = None
    duration: int = DEFAULT_MEETING_DURATION
    volunteer_name: str | None = None
    student_name: str | None = None
    status: str | None = None

    @classmethod
    def from_event(
        cls, data: dict, time_key: str = "scheduledTime", require_time: bool = True
    ) -> "MeetingRef":
        """
        Build from a meeting lifecycle event payload (camelCase keys).

        Raises:
            KeyError: If a participant or meeting id is missing
            ValueError: If an id or a required time is malformed
        """
        scheduled_time = parse_datetime(data.get(time_key))
        if scheduled_time is None and require_time:
            raise ValueError(f"Event has no usable {time_key}: {data.get(time_key)!r}")
        return cls(
            meeting_id=int(data["meetingId"]),
            volunteer_id=int(data["volunteerId"]),
            student_id=int(data["studentId"]),
            scheduled_time=scheduled_time,
            room_id=data.get("roomId"),
            duration=int(data.get("duration") or DEFAULT_MEETING_DURATION),
            volunteer_name=data.get("volunteerName"),
            student_name=data.get("studentName"),
            status=data.get("status"),
        )

    @classmethod
    def from_row(cls, row: dict) -> "MeetingRef":
        """Build from get_meeting_with_participants()."""
        return cls(
            meeting_id=row["meeting_id"],
            volunteer_id=row["volunteer_id"],
            student_id=row["student_id"],
            scheduled_time=parse_datetime(row["scheduled_time"]),
            room_id=row.get("room_id"),
            duration=row.get("duration") or DEFAULT_MEETING_DURATION,
            volunteer_name=row.get("volunteer_name"),
            student_name=row.get("student_name"),
            status=row.get("status"),
        )
