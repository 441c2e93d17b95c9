"""In-memory stand-ins for the notification store, directory and realtime bus."""

from copy import deepcopy
from datetime import datetime, timedelta, timezone


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 10, 14, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


_COLUMN_DEFAULTS = {
    "priority": "medium",
    "metadata": {},
    "scheduled_for": None,
    "is_sent": False,
    "sent_at": None,
    "is_read": False,
    "read_at": None,
    "channels_sent": [],
    "delivery_status": {},
    "is_persistent": True,
    "auto_delete_after": None,
    "require_interaction": False,
    "action_url": None,
    "icon_url": "/favicon.ico",
    "badge_url": "/favicon.ico",
    "tag": None,
}


class FakeNotificationStore:
    """Implements the NotificationStore interface over a dict of rows."""

    def __init__(self, clock: FakeClock | None = None):
        self.rows: dict[int, dict] = {}
        self.clock = clock or FakeClock()
        self._next_id = 1
        self.fail_mark_sent_for: set[int] = set()
        self.mark_sent_calls: list[int] = []

    async def insert(self, values: dict) -> dict:
        row = {**deepcopy(_COLUMN_DEFAULTS), **deepcopy(values)}
        row["notification_id"] = self._next_id
        row["created_at"] = row["updated_at"] = self.clock()
        self._next_id += 1
        self.rows[row["notification_id"]] = row
        return deepcopy(row)

    async def update_delivery(self, notification_id, channels_sent, delivery_status):
        row = self.rows.get(notification_id)
        if row is None:
            return None
        row["channels_sent"] = list(channels_sent)
        row["delivery_status"] = dict(delivery_status)
        return deepcopy(row)

    async def get_due(self, now: datetime, limit: int) -> list[dict]:
        due = [
            row
            for row in self.rows.values()
            if row["scheduled_for"] is not None
            and row["scheduled_for"] <= now
            and not row["is_sent"]
        ]
        due.sort(key=lambda row: row["scheduled_for"])
        return [deepcopy(row) for row in due[:limit]]

    async def mark_sent(self, notification_id: int, sent_at: datetime) -> bool:
        self.mark_sent_calls.append(notification_id)
        if notification_id in self.fail_mark_sent_for:
            raise RuntimeError("database unavailable")
        row = self.rows.get(notification_id)
        if row is None or row["is_sent"]:
            return False
        row["is_sent"] = True
        row["sent_at"] = sent_at
        return True

    async def delete_unsent_for_meeting(self, meeting_id: int) -> int:
        doomed = [
            nid
            for nid, row in self.rows.items()
            if not row["is_sent"]
            and str((row.get("metadata") or {}).get("meeting_id")) == str(meeting_id)
        ]
        for nid in doomed:
            del self.rows[nid]
        return len(doomed)

    # Test helpers
    def for_recipient(self, recipient_id: int, role: str) -> list[dict]:
        return [
            row
            for row in self.rows.values()
            if row["recipient_id"] == recipient_id and row["recipient_role"] == role
        ]

    def of_type(self, notification_type: str) -> list[dict]:
        return [row for row in self.rows.values() if row["type"] == notification_type]


class FakeDirectory:
    """Implements the Directory interface over plain dicts."""

    def __init__(self):
        self.users: dict[tuple[int, str], dict] = {}
        self.preferences: dict[int, dict] = {}
        self.meetings: dict[int, dict] = {}
        self.subscriptions: dict[int, list[dict]] = {}
        self.deactivated: list[str] = []
        self.preference_calls = 0
        self.fail_preferences = False

    def add_user(self, user_id, role, full_name=None, email=None, phone=None, timezone=None):
        self.users[(user_id, role)] = {
            "user_id": user_id,
            "role": role,
            "full_name": full_name,
            "email": email,
            "phone": phone,
            "timezone": timezone,
        }

    async def get_recipient(self, user_id, role=None):
        if role is None:
            for (uid, _), user in self.users.items():
                if uid == user_id:
                    return dict(user)
            return None
        user = self.users.get((user_id, role))
        return dict(user) if user else None

    async def get_preferences(self, user_id):
        self.preference_calls += 1
        if self.fail_preferences:
            raise RuntimeError("preferences unavailable")
        row = self.preferences.get(user_id)
        return dict(row) if row else None

    async def get_meeting(self, meeting_id):
        meeting = self.meetings.get(meeting_id)
        return dict(meeting) if meeting else None

    async def get_push_subscriptions(self, user_id):
        return list(self.subscriptions.get(user_id, []))

    async def deactivate_push_subscription(self, endpoint):
        self.deactivated.append(endpoint)
        return 1


class FakeRealtime:
    """Records published events instead of talking to Redis."""

    def __init__(self, fail: bool = False):
        self.notifications: list[dict] = []
        self.auto_launches: list[dict] = []
        self.fail = fail

    async def publish_notification(self, notification: dict) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.notifications.append(deepcopy(notification))
        return 1

    async def publish_auto_launch(self, meeting: dict) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        self.auto_launches.append(dict(meeting))
        return 1


class FakeResolver:
    """PreferenceResolver stand-in returning one fixed document."""

    def __init__(self, preferences: dict):
        self.preferences = preferences

    async def get(self, recipient_id):
        return deepcopy(self.preferences)

    def invalidate(self, recipient_id=None):
        pass


def recording_handler(outcome=True, calls: list | None = None, delay: float | None = None, error: Exception | None = None):
    """Build a channel handler that records calls and returns a fixed outcome."""
    import asyncio

    async def handler(notification, recipient, directory):
        if calls is not None:
            calls.append(notification["notification_id"])
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        return outcome

    return handler
