"""Expired-notification cleanup scheduler using APScheduler."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from toolhub.core.config import settings
from toolhub.core.database import db
from toolhub.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class NotificationScheduler:
    """Scheduler for notification cleanup tasks."""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None
        self.notification_service: NotificationService | None = None

    def start(self):
        """Start the scheduler."""
        if not settings.NOTIFICATION_CLEANUP_ENABLED:
            logger.info("Notification cleanup scheduler is disabled")
            return

        try:
            self.scheduler = AsyncIOScheduler()
            self.notification_service = NotificationService(db.database)

            self.scheduler.add_job(
                func=self.cleanup_expired_task,
                trigger=IntervalTrigger(
                    minutes=settings.NOTIFICATION_CLEANUP_INTERVAL_MINUTES,
                    timezone="UTC",
                ),
                id="cleanup_expired_notifications",
                name="Delete expired notifications",
                replace_existing=True,
            )

            self.scheduler.start()
            logger.info(
                "Notification cleanup scheduler started",
                extra={
                    "interval_minutes": settings.NOTIFICATION_CLEANUP_INTERVAL_MINUTES
                },
            )

        except Exception as e:
            logger.error(
                "Failed to start notification cleanup scheduler",
                extra={"error": str(e)},
                exc_info=True,
            )

    def shutdown(self):
        """Shutdown the scheduler."""
        if self.scheduler:
            try:
                self.scheduler.shutdown()
                logger.info("Notification cleanup scheduler shut down")
            except Exception as e:
                logger.error(
                    "Error shutting down notification cleanup scheduler",
                    extra={"error": str(e)},
                    exc_info=True,
                )

    async def cleanup_expired_task(self):
        """Delete notifications that have passed their expiry date."""
        try:
            logger.info("Starting notification cleanup task")

            if not self.notification_service:
                self.notification_service = NotificationService(db.database)

            deleted_count = await self.notification_service.cleanup_expired()

            logger.info(
                "Notification cleanup task completed",
                extra={"deleted_count": deleted_count},
            )

        except Exception as e:
            logger.error(
                "Error in notification cleanup task",
                extra={"error": str(e)},
                exc_info=True,
            )


# Global scheduler instance
notification_scheduler = NotificationScheduler()
