"""
Meeting lifecycle event subscriber.

The meeting service publishes JSON events on a Redis channel:

    {"type": "meeting.created", "timestamp": "...", "data": {"meetingId": 1, ...}}

Each event turns into immediate notifications for both participants and,
where the meeting is still ahead, a fresh set of reminders. Events for the
same meeting are handled one at a time.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.enums import Channel, MeetingEventType, NotificationPriority, NotificationType
from core.notifications.participants import Participant, load_participants
from core.notifications.templates import render_notification
from core.notifications.types import MeetingRef, NotificationDraft, SendOptions
from core.realtime import MEETING_EVENTS_CHANNEL, call_url
from core.timezone import format_meeting_datetime, parse_datetime

logger = logging.getLogger(__name__)

EVENT_CHANNELS = [Channel.in_app.value, Channel.push.value, Channel.email.value]
ENDED_CHANNELS = [Channel.in_app.value, Channel.push.value]

COMPLETED_STATUS = "completed"

RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 30.0

_LISTEN_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def _is_actor(participant: Participant, actor) -> bool:
    """canceledBy / rescheduledBy may be a role name or a user id."""
    if actor is None:
        return False
    if isinstance(actor, str) and actor in ("volunteer", "student"):
        return actor == participant.role
    return str(actor) == str(participant.user_id)


def _when(value, participant: Participant, fallback: str = "its scheduled time") -> str:
    dt = parse_datetime(value)
    if dt is None:
        return fallback
    return format_meeting_datetime(dt, participant.timezone)


class MeetingEventSubscriber:
    """Consumes meeting events and turns them into notifications."""

    def __init__(
        self,
        dispatcher,
        reminders,
        directory,
        redis_client=None,
        channel: str = MEETING_EVENTS_CHANNEL,
        reconnect_delay: float = RECONNECT_DELAY,
    ):
        self._dispatcher = dispatcher
        self._reminders = reminders
        self._directory = directory
        self._redis = redis_client
        self._channel = channel
        self._reconnect_delay = reconnect_delay
        self._pubsub = None
        self._task: asyncio.Task | None = None
        # meeting_id -> (lock, number of events holding or waiting on it)
        self._locks: dict[int, tuple[asyncio.Lock, int]] = {}
        self._handlers = {
            MeetingEventType.created.value: self._on_created,
            MeetingEventType.rescheduled.value: self._on_rescheduled,
            MeetingEventType.canceled.value: self._on_canceled,
            MeetingEventType.ended.value: self._on_ended,
            MeetingEventType.missed.value: self._on_missed,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        if self._redis is None:
            raise RuntimeError("MeetingEventSubscriber needs a Redis client to start")
        self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(self._channel)
        self._task = asyncio.create_task(self._listen(), name="meeting-event-subscriber")
        logger.info(f"Subscribed to {self._channel}")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Meeting event listener had stopped with an error: {e}")
            self._task = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self._channel)
            await self._pubsub.aclose()
            self._pubsub = None
            logger.info(f"Unsubscribed from {self._channel}")

    async def _listen(self) -> None:
        """
        Feed every message to handle_message until cancelled.

        A dropped Redis connection is reported, then the channel is
        re-subscribed with exponential backoff.
        """
        delay = self._reconnect_delay
        while True:
            try:
                async for message in self._pubsub.listen():
                    delay = self._reconnect_delay
                    if message.get("type") != "message":
                        continue
                    await self.handle_message(message.get("data"))
                return
            except _LISTEN_ERRORS as e:
                logger.exception(
                    f"Lost connection to {self._channel}; retrying in {delay:.1f}s: {e}"
                )
                sentry_sdk.capture_exception(e)

            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RECONNECT_DELAY)
            try:
                await self._pubsub.subscribe(self._channel)
                logger.info(f"Re-subscribed to {self._channel}")
            except _LISTEN_ERRORS as e:
                logger.warning(f"Could not re-subscribe to {self._channel}: {e}")

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _meeting_lock(self, meeting_id: int):
        """Hold the meeting's lock; the entry is dropped once no event needs it."""
        lock, users = self._locks.get(meeting_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[meeting_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[meeting_id]
            if users == 1:
                del self._locks[meeting_id]
            else:
                self._locks[meeting_id] = (lock, users - 1)

    async def handle_message(self, raw) -> bool:
        """
        Parse and handle one event. Never raises.

        Returns:
            True if a handler ran to completion
        """
        try:
            event = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed meeting event: {e}")
            return False
        if not isinstance(event, dict):
            logger.warning(f"Ignoring meeting event that is not an object: {raw!r}")
            return False

        event_type = event.get("type")
        data = event.get("data")
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Ignoring unknown meeting event type: {event_type}")
            return False
        if not isinstance(data, dict) or "meetingId" not in data:
            logger.warning(f"Ignoring {event_type} event without meetingId")
            return False

        try:
            meeting_id = int(data["meetingId"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring {event_type} event with bad meetingId: {data['meetingId']!r}")
            return False

        logger.info(f"Handling {event_type} for meeting {meeting_id}")
        try:
            async with self._meeting_lock(meeting_id):
                await handler(data)
        except Exception as e:
            logger.exception(f"Failed to handle {event_type} for meeting {meeting_id}: {e}")
            sentry_sdk.capture_exception(e)
            return False
        return True

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _notify(
        self,
        recipient: Participant,
        notification_type: str,
        priority: str,
        meeting: MeetingRef,
        context: dict,
        message_field: str = "message",
        channels: list[str] = EVENT_CHANNELS,
        extra_metadata: dict | None = None,
    ) -> dict:
        title, message = render_notification(notification_type, context, message_field)
        draft = NotificationDraft(
            recipient_id=recipient.user_id,
            recipient_role=recipient.role,
            title=title,
            message=message,
            type=notification_type,
            priority=priority,
            metadata={
                "meeting_id": meeting.meeting_id,
                "room_id": meeting.room_id,
                **(extra_metadata or {}),
            },
        )
        options = SendOptions(
            action_url=call_url(meeting.room_id)
            if notification_type == NotificationType.meeting_scheduled.value
            else None,
            tag=f"meeting-{meeting.meeting_id}-{notification_type}",
        )
        return await self._dispatcher.send(draft, channels, options)

    async def _on_created(self, data: dict) -> None:
        meeting = MeetingRef.from_event(data, "scheduledTime")
        volunteer, student = await load_participants(self._directory, meeting)

        await self._notify(
            student,
            NotificationType.meeting_scheduled.value,
            NotificationPriority.high.value,
            meeting,
            {
                "counterpart_name": volunteer.name,
                "meeting_time": format_meeting_datetime(meeting.scheduled_time, student.timezone),
            },
            extra_metadata={"scheduled_time": meeting.scheduled_time.isoformat()},
        )
        await self._notify(
            volunteer,
            NotificationType.meeting_scheduled_confirmation.value,
            NotificationPriority.medium.value,
            meeting,
            {
                "counterpart_name": student.name,
                "meeting_time": format_meeting_datetime(meeting.scheduled_time, volunteer.timezone),
            },
            extra_metadata={"scheduled_time": meeting.scheduled_time.isoformat()},
        )
        await self._reminders.schedule_reminders(meeting)

    async def _on_rescheduled(self, data: dict) -> None:
        meeting = MeetingRef.from_event(data, "newTime")
        await self._reminders.cancel_reminders(meeting.meeting_id)

        volunteer, student = await load_participants(self._directory, meeting)
        actor = data.get("rescheduledBy")
        for recipient, counterpart in ((volunteer, student), (student, volunteer)):
            await self._notify(
                recipient,
                NotificationType.meeting_rescheduled.value,
                NotificationPriority.high.value,
                meeting,
                {
                    "counterpart_name": counterpart.name,
                    "actor_name": counterpart.name,
                    "old_time": _when(data.get("oldTime"), recipient, "the original time"),
                    "new_time": format_meeting_datetime(meeting.scheduled_time, recipient.timezone),
                },
                message_field="message_self" if _is_actor(recipient, actor) else "message",
                extra_metadata={
                    "old_time": data.get("oldTime"),
                    "new_time": meeting.scheduled_time.isoformat(),
                },
            )

        await self._reminders.schedule_reminders(meeting)

    async def _on_canceled(self, data: dict) -> None:
        meeting = MeetingRef.from_event(data, "originalTime", require_time=False)
        await self._reminders.cancel_reminders(meeting.meeting_id)

        volunteer, student = await load_participants(self._directory, meeting)
        actor = data.get("canceledBy")
        for recipient, counterpart in ((volunteer, student), (student, volunteer)):
            await self._notify(
                recipient,
                NotificationType.meeting_canceled.value,
                NotificationPriority.high.value,
                meeting,
                {
                    "counterpart_name": counterpart.name,
                    "meeting_time": _when(data.get("originalTime"), recipient),
                },
                message_field="message_self" if _is_actor(recipient, actor) else "message",
                extra_metadata={"canceled_by": actor},
            )

    async def _on_ended(self, data: dict) -> None:
        meeting = MeetingRef.from_event(data, "scheduledTime", require_time=False)
        completed = data.get("status") == COMPLETED_STATUS
        notification_type = (
            NotificationType.meeting_completed.value
            if completed
            else NotificationType.meeting_ended.value
        )

        volunteer, student = await load_participants(self._directory, meeting)
        for recipient, counterpart in ((volunteer, student), (student, volunteer)):
            await self._notify(
                recipient,
                notification_type,
                NotificationPriority.medium.value,
                meeting,
                {"counterpart_name": counterpart.name, "duration": meeting.duration},
                channels=ENDED_CHANNELS,
                extra_metadata={"status": data.get("status"), "duration": meeting.duration},
            )

    async def _on_missed(self, data: dict) -> None:
        meeting = MeetingRef.from_event(data, "scheduledTime", require_time=False)

        volunteer, student = await load_participants(self._directory, meeting)
        for recipient, counterpart in ((volunteer, student), (student, volunteer)):
            await self._notify(
                recipient,
                NotificationType.meeting_missed.value,
                NotificationPriority.high.value,
                meeting,
                {
                    "counterpart_name": counterpart.name,
                    "meeting_time": _when(data.get("scheduledTime"), recipient),
                },
                extra_metadata={"reason": data.get("reason") or "timeout"},
            )
