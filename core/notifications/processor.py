"""
Due-notification processor.

An APScheduler interval job sweeps stored notifications whose scheduled time
has come, delivers each through the dispatcher and flags it sent. The final
reminder tier also tells both participants' clients to open the call.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import get_processor_batch_size, get_processor_interval_seconds
from core.enums import REMINDER_TYPES, Channel, NotificationPriority
from core.notifications.reminders import AUTO_LAUNCH_TYPE
from core.timezone import utc_now

logger = logging.getLogger(__name__)

JOB_ID = "process_due_notifications"

_CANCELED_STATUSES = ("canceled", "cancelled")


def channels_for(notification_type: str, priority: str | None) -> list[str]:
    """Channels a scheduled notification is sent on."""
    channels = [Channel.in_app.value]
    if notification_type in REMINDER_TYPES:
        channels.append(Channel.push.value)
    if priority in (NotificationPriority.high.value, NotificationPriority.urgent.value):
        channels.append(Channel.email.value)
    if priority == NotificationPriority.urgent.value:
        channels.append(Channel.sms.value)
    return channels


class DueNotificationProcessor:
    """Periodically delivers scheduled notifications."""

    def __init__(
        self,
        store,
        directory,
        dispatcher,
        realtime,
        interval_seconds: int | None = None,
        batch_size: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._directory = directory
        self._dispatcher = dispatcher
        self._realtime = realtime
        self._interval = interval_seconds or get_processor_interval_seconds()
        self._batch_size = batch_size or get_processor_batch_size()
        self._clock = clock

        self._scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,
            },
            timezone=timezone.utc,
        )
        # Added paused; start() releases it with an immediate first run
        self._scheduler.add_job(
            self.run_once,
            "interval",
            seconds=self._interval,
            id=JOB_ID,
            next_run_time=None,
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        """Start sweeping. Must be called from a running event loop."""
        if self._scheduler.running:
            return
        self._scheduler.start()
        self._scheduler.modify_job(JOB_ID, next_run_time=datetime.now(timezone.utc))
        logger.info(f"Due-notification processor started (every {self._interval}s)")

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Due-notification processor stopped")

    async def run_once(self) -> dict:
        """
        Deliver every due notification in one batch.

        A row that raises stays unsent and is picked up again next sweep.

        Returns:
            Counts: {"processed", "failed", "auto_launched"}
        """
        stats = {"processed": 0, "failed": 0, "auto_launched": 0}
        now = self._clock()

        try:
            rows = await self._store.get_due(now, self._batch_size)
        except Exception as e:
            logger.exception(f"Could not fetch due notifications: {e}")
            sentry_sdk.capture_exception(e)
            return stats

        if not rows:
            return stats
        logger.info(f"Processing {len(rows)} due notifications")
        launched: set = set()

        for row in rows:
            # Listeners see the row as it will be stored
            sent_at = self._clock()
            try:
                await self._dispatcher.deliver(
                    {**row, "is_sent": True, "sent_at": sent_at},
                    channels_for(row["type"], row.get("priority")),
                )
                marked = await self._store.mark_sent(row["notification_id"], sent_at)
            except Exception as e:
                stats["failed"] += 1
                logger.exception(
                    f"Failed to process notification {row.get('notification_id')}: {e}"
                )
                sentry_sdk.capture_exception(e)
                continue

            stats["processed"] += 1
            if marked and row["type"] == AUTO_LAUNCH_TYPE:
                # Both participants hold a 5-minute row; launch the meeting once
                meeting_id = (row.get("metadata") or {}).get("meeting_id")
                if meeting_id in launched:
                    continue
                if await self._auto_launch(row):
                    launched.add(meeting_id)
                    stats["auto_launched"] += 1

        logger.info(
            f"Due-notification sweep: {stats['processed']} sent, "
            f"{stats['failed']} failed, {stats['auto_launched']} auto-launched"
        )
        return stats

    async def _auto_launch(self, row: dict) -> bool:
        """Announce the call to both participants. Never raises."""
        meeting_id = (row.get("metadata") or {}).get("meeting_id")
        if meeting_id is None:
            logger.warning(
                f"Notification {row['notification_id']} has no meeting_id; auto-launch skipped"
            )
            return False
        try:
            meeting = await self._directory.get_meeting(int(meeting_id))
            if meeting is None:
                logger.warning(f"Meeting {meeting_id} not found; auto-launch skipped")
                return False
            if meeting.get("status") in _CANCELED_STATUSES:
                logger.info(f"Meeting {meeting_id} was canceled; auto-launch skipped")
                return False
            await self._realtime.publish_auto_launch(meeting)
            return True
        except Exception as e:
            logger.error(f"Auto-launch failed for meeting {meeting_id}: {e}")
            return False
