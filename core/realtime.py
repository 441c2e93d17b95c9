"""
Live-update bus towards the Socket.IO fleet.

Events are JSON documents published on a Redis channel; the socket servers
subscribe to it and forward each event to the named room or recipients.
"""

import json
import logging
from datetime import date, datetime

import redis.asyncio as redis

from core.config import get_redis_url

logger = logging.getLogger(__name__)

MEETING_EVENTS_CHANNEL = "talktime:meeting:events"
REALTIME_CHANNEL = "talktime:notifications:realtime"

DEFAULT_MEETING_DURATION = 40


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Build an asyncio Redis client. Connections are opened lazily."""
    return redis.from_url(url or get_redis_url(), decode_responses=True)


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def encode_event(event: dict) -> str:
    return json.dumps(event, default=_json_default)


def recipient_room(role: str, recipient_id: int) -> str:
    """Socket.IO room a recipient joins, e.g. "student_42"."""
    return f"{role}_{recipient_id}"


def call_url(room_id: str | None) -> str:
    return f"/call/call.html?roomId={room_id}" if room_id else "/call/call.html"


class RealtimePublisher:
    """Publishes notification events for real-time delivery."""

    def __init__(self, client: redis.Redis, channel: str = REALTIME_CHANNEL):
        self._client = client
        self._channel = channel

    async def publish(self, event: dict) -> int:
        """Publish one event; returns the number of subscribers that received it."""
        return await self._client.publish(self._channel, encode_event(event))

    async def publish_notification(self, notification: dict) -> int:
        role = notification["recipient_role"]
        recipient_id = notification["recipient_id"]
        event = {
            "type": "new-notification",
            "room": recipient_room(role, recipient_id),
            "recipient_id": recipient_id,
            "recipient_role": role,
            "notification": notification,
        }
        receivers = await self.publish(event)
        logger.debug(
            f"Published new-notification {notification.get('notification_id')} "
            f"to {event['room']} ({receivers} listeners)"
        )
        return receivers

    async def publish_auto_launch(self, meeting: dict) -> int:
        """
        Tell both participants' clients to open the call page.

        Args:
            meeting: Row from get_meeting_with_participants()
        """
        room_id = meeting.get("room_id")
        event = {
            "type": "meeting-auto-launch",
            "data": {
                "meetingId": meeting["meeting_id"],
                "roomId": room_id,
                "meetingUrl": call_url(room_id),
                "duration": meeting.get("duration") or DEFAULT_MEETING_DURATION,
                "volunteer": {
                    "id": meeting["volunteer_id"],
                    "name": meeting.get("volunteer_name"),
                },
                "student": {
                    "id": meeting["student_id"],
                    "name": meeting.get("student_name"),
                },
            },
            "recipients": [
                {"id": meeting["volunteer_id"], "role": "volunteer"},
                {"id": meeting["student_id"], "role": "student"},
            ],
        }
        receivers = await self.publish(event)
        logger.info(
            f"Auto-launch published for meeting {meeting['meeting_id']} "
            f"({receivers} listeners)"
        )
        return receivers
