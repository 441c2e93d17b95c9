"""
Notification dispatcher - persists a notification, publishes it for live
delivery and fans it out to the requested channels.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable

from core.config import get_channel_timeout_seconds
from core.enums import Channel, DeliveryOutcome
from core.notifications.channels import CHANNEL_HANDLERS
from core.notifications.preferences import (
    should_send_email,
    should_send_push,
    should_send_sms,
)
from core.notifications.types import NotificationDraft, SendOptions
from core.timezone import utc_now

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = (Channel.in_app.value, Channel.push.value)

_GATES = {
    Channel.email.value: should_send_email,
    Channel.sms.value: should_send_sms,
    Channel.push.value: should_send_push,
}


def _channel_name(channel) -> str:
    return channel.value if isinstance(channel, Channel) else str(channel)


class NotificationDispatcher:
    """
    Creates notifications and delivers them.

    send() is for notifications that go out now. deliver() is the shared
    path that the due-notification processor calls for scheduled rows that
    already exist.
    """

    def __init__(
        self,
        store,
        directory,
        resolver,
        realtime,
        handlers: dict | None = None,
        channel_timeout: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._directory = directory
        self._resolver = resolver
        self._realtime = realtime
        self._handlers = handlers if handlers is not None else dict(CHANNEL_HANDLERS)
        self._timeout = (
            channel_timeout if channel_timeout is not None else get_channel_timeout_seconds()
        )
        self._clock = clock

    async def send(
        self,
        draft: NotificationDraft,
        channels: Iterable[str] | None = None,
        options: SendOptions | None = None,
    ) -> dict:
        """
        Store a notification and deliver it immediately.

        The row is written before any channel runs, so it exists even if every
        channel fails.

        Raises:
            InvalidNotificationError: If the draft is incomplete or uses an
                unknown role, type or priority
        """
        draft.validate()
        options = options or SendOptions()

        row = await self._store.insert(
            {
                "recipient_id": draft.recipient_id,
                "recipient_role": draft.recipient_role,
                "title": draft.title,
                "message": draft.message,
                "type": draft.type,
                "priority": draft.priority,
                "metadata": draft.metadata,
                "scheduled_for": None,
                "is_sent": True,
                "sent_at": self._clock(),
                **options.as_columns(),
            }
        )
        logger.info(
            f"Notification {row['notification_id']} ({draft.type}) created for "
            f"{draft.recipient_role}_{draft.recipient_id}"
        )
        return await self.deliver(row, channels if channels is not None else DEFAULT_CHANNELS)

    async def deliver(self, notification: dict, channels: Iterable[str]) -> dict:
        """
        Publish and fan out an already-stored notification.

        Each channel succeeds or fails on its own; the outcome of every
        requested channel ends up in delivery_status.

        Returns:
            The notification row with channels_sent and delivery_status set
        """
        notification_id = notification["notification_id"]
        recipient_id = notification["recipient_id"]
        recipient_role = notification["recipient_role"]

        await self._publish(notification)

        recipient = await self._lookup_recipient(recipient_id, recipient_role)
        preferences = await self._resolver.get(recipient_id)

        status: dict[str, str] = {}
        attempts: dict[str, Awaitable[str]] = {}
        for channel in channels:
            name = _channel_name(channel)
            if name in status or name in attempts:
                continue
            handler = self._handlers.get(name)
            if handler is None:
                logger.warning(
                    f"Unknown channel '{name}' requested for notification {notification_id}"
                )
                status[name] = DeliveryOutcome.unknown_channel.value
            elif recipient is None and name != Channel.in_app.value:
                status[name] = DeliveryOutcome.no_address.value
            elif not self._allowed(name, preferences, notification):
                status[name] = DeliveryOutcome.skipped.value
            else:
                attempts[name] = self._attempt(name, handler, notification, recipient)

        if attempts:
            outcomes = await asyncio.gather(*attempts.values())
            status.update(zip(attempts.keys(), outcomes))

        channels_sent = [
            name for name, outcome in status.items() if outcome == DeliveryOutcome.sent.value
        ]
        delivery_status = {**status, "completed_at": self._clock().isoformat()}

        updated = await self._store.update_delivery(
            notification_id, channels_sent, delivery_status
        )
        logger.info(
            f"Notification {notification_id} delivered via {channels_sent or 'no channels'} "
            f"({delivery_status})"
        )
        if updated is None:
            return {
                **notification,
                "channels_sent": channels_sent,
                "delivery_status": delivery_status,
            }
        return updated

    async def _publish(self, notification: dict) -> None:
        try:
            await self._realtime.publish_notification(notification)
        except Exception as e:
            logger.error(
                f"Failed to publish notification {notification['notification_id']}: {e}"
            )

    async def _lookup_recipient(self, recipient_id: int, role: str) -> dict | None:
        try:
            recipient = await self._directory.get_recipient(recipient_id, role)
        except Exception as e:
            logger.error(f"Recipient lookup failed for {role}_{recipient_id}: {e}")
            return None
        if recipient is None:
            logger.warning(
                f"Recipient {role}_{recipient_id} not found; external channels skipped"
            )
        return recipient

    @staticmethod
    def _allowed(name: str, preferences: dict, notification: dict) -> bool:
        gate = _GATES.get(name)
        if gate is None:
            return True
        return gate(preferences, notification["type"], notification.get("priority"))

    async def _attempt(self, name: str, handler, notification: dict, recipient: dict | None) -> str:
        try:
            result = await asyncio.wait_for(
                handler(notification, recipient, self._directory), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Channel {name} timed out after {self._timeout}s for "
                f"notification {notification['notification_id']}"
            )
            return DeliveryOutcome.timeout.value
        except Exception as e:
            logger.warning(
                f"Channel {name} failed for notification {notification['notification_id']}: {e}"
            )
            return DeliveryOutcome.failed.value

        if isinstance(result, DeliveryOutcome):
            return result.value
        return DeliveryOutcome.sent.value if result else DeliveryOutcome.failed.value
