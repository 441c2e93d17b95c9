"""
Wiring for the notification pipeline.

NotificationService builds every component once and owns the background
workers (the due-notification processor and the meeting event subscriber).
The FastAPI lifespan starts it and stops it on shutdown.
"""

import logging

from core.notifications.dispatcher import NotificationDispatcher
from core.notifications.preferences import PreferenceResolver
from core.notifications.processor import DueNotificationProcessor
from core.notifications.reminders import ReminderScheduler
from core.notifications.store import Directory, NotificationStore
from core.notifications.subscriber import MeetingEventSubscriber
from core.realtime import RealtimePublisher, create_redis_client

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(
        self,
        store=None,
        directory=None,
        redis_client=None,
        realtime=None,
    ):
        self.store = store or NotificationStore()
        self.directory = directory or Directory()
        self.redis = redis_client if redis_client is not None else create_redis_client()
        self.realtime = realtime or RealtimePublisher(self.redis)

        self.preferences = PreferenceResolver(self.directory)
        self.dispatcher = NotificationDispatcher(
            self.store, self.directory, self.preferences, self.realtime
        )
        self.reminders = ReminderScheduler(self.store, self.directory)
        self.processor = DueNotificationProcessor(
            self.store, self.directory, self.dispatcher, self.realtime
        )
        self.subscriber = MeetingEventSubscriber(
            self.dispatcher, self.reminders, self.directory, self.redis
        )
        self._workers_started = False

    async def start(self, workers: bool = True) -> None:
        """
        Start the background workers.

        With workers=False only the request-driven parts (dispatcher,
        preferences) are usable, which is what an API-only process wants.
        """
        if not workers:
            logger.info("Notification workers disabled")
            return
        self.processor.start()
        try:
            await self.subscriber.start()
        except Exception as e:
            # Reminders still go out without live meeting events
            logger.error(f"Meeting event subscriber failed to start: {e}")
        self._workers_started = True

    async def stop(self) -> None:
        if self._workers_started:
            self.processor.stop()
            await self.subscriber.stop()
            self._workers_started = False
        await self.redis.aclose()
        logger.info("Notification service stopped")
