from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from toolhub.core.config import settings
from toolhub.core.exceptions import NotFoundException
from toolhub.models.notification import Notification, UserStatus
from toolhub.models.user import User
from toolhub.schemas.notification import NotificationCreate
from toolhub.utils.validators import parse_object_id

logger = logging.getLogger(__name__)


def mark_seen_for(
    notification: Notification,
    user_email: str,
    now: datetime,
    user_id: str | None = None,
) -> bool:
    """
    Mark a notification as seen by one user, adding their entry if needed.

    Returns:
        True if the notification changed
    """
    status = notification.status_for(user_email)
    if status is None:
        notification.userStatuses.append(
            UserStatus(userId=user_id, userEmail=user_email, seen=True, seenAt=now)
        )
        return True

    if status.seen:
        return False

    status.mark_seen(now)
    return True


def visible_for_user_query(user_email: str, now: datetime) -> dict:
    """Active, unexpired notifications the user has not hidden."""
    return {
        "isActive": True,
        "expiresAt": {"$gt": now},
        "userStatuses": {
            "$elemMatch": {"userEmail": user_email, "deleted": {"$ne": True}}
        },
    }


class NotificationService:
    """Service for broadcast notifications and their per-user lifecycle."""

    def __init__(self, db):
        self.db = db

    async def resolve_recipients(self, emails: list[str] | None) -> list[UserStatus]:
        """One unseen status entry per distinct recipient."""
        if emails:
            users = await User.find({"email": {"$in": emails}}).to_list()
        else:
            users = await User.find(User.isActive == True).to_list()  # noqa: E712

        ids_by_email = {user.email: str(user.id) for user in users}
        recipient_emails = list(dict.fromkeys(emails or [user.email for user in users]))

        return [
            UserStatus(userId=ids_by_email.get(email), userEmail=email)
            for email in recipient_emails
        ]

    async def send(self, data: NotificationCreate, sender: User) -> Notification:
        """Create a notification with an unseen entry for every recipient."""
        try:
            statuses = await self.resolve_recipients(
                [str(email) for email in data.recipientEmails]
                if data.recipientEmails
                else None
            )
            now = datetime.now(UTC)

            notification = Notification(
                title=data.title,
                content=data.content,
                type=data.type,
                sentBy=sender.id,
                userStatuses=statuses,
                expiresAt=now + timedelta(hours=settings.NOTIFICATION_TTL_HOURS),
                isActive=True,
            )
            await notification.insert()

            logger.info(
                "Notification sent",
                extra={
                    "notification_id": str(notification.id),
                    "type": data.type,
                    "recipients": len(statuses),
                },
            )
            return notification

        except Exception as e:
            logger.error(
                "Error sending notification",
                extra={"title": data.title, "error": str(e)},
                exc_info=True,
            )
            raise

    async def get(self, notification_id: str) -> Notification:
        notification = await Notification.find_one(
            Notification.id == parse_object_id(notification_id, "Notification")
        )
        if not notification:
            raise NotFoundException(resource="Notification", resource_id=notification_id)
        return notification

    async def mark_seen(self, notification_id: str, user: User) -> Notification:
        """
        Mark a notification as seen by the user. Repeated calls are no-ops.

        Only the caller's entry is written, with positional updates, so
        recipients marking the same notification at once do not overwrite
        each other.
        """
        try:
            notification = await self.get(notification_id)
            now = datetime.now(UTC)

            result = await self.db.notifications.update_one(
                {
                    "_id": notification.id,
                    "userStatuses": {
                        "$elemMatch": {"userEmail": user.email, "seen": {"$ne": True}}
                    },
                },
                {"$set": {"userStatuses.$.seen": True, "userStatuses.$.seenAt": now}},
            )
            if not result.modified_count:
                entry = UserStatus(
                    userId=str(user.id), userEmail=user.email, seen=True, seenAt=now
                )
                result = await self.db.notifications.update_one(
                    {"_id": notification.id, "userStatuses.userEmail": {"$ne": user.email}},
                    {"$push": {"userStatuses": entry.model_dump()}},
                )

            if result.modified_count:
                mark_seen_for(notification, user.email, now, user_id=str(user.id))
                logger.info(
                    "Notification marked as seen",
                    extra={"notification_id": notification_id, "user_id": str(user.id)},
                )

            return notification

        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error marking notification as seen",
                extra={"notification_id": notification_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_for_user(self, user_email: str) -> list[Notification]:
        """Notifications visible to the user, newest first."""
        try:
            query = visible_for_user_query(user_email, datetime.now(UTC))
            return await Notification.find(query).sort("-createdAt").to_list()
        except Exception as e:
            logger.error(
                "Error listing notifications",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise

    async def unseen_count(self, user_email: str) -> int:
        query = visible_for_user_query(user_email, datetime.now(UTC))
        query["userStatuses"]["$elemMatch"]["seen"] = False
        return await Notification.find(query).count()

    async def delete(self, notification_id: str) -> None:
        try:
            notification = await self.get(notification_id)
            await notification.delete()
            logger.info("Notification deleted", extra={"notification_id": notification_id})
        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error deleting notification",
                extra={"notification_id": notification_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def cleanup_expired(self) -> int:
        """Delete every notification past its expiry, whatever its read state."""
        try:
            now = datetime.now(UTC)
            result = await self.db.notifications.delete_many({"expiresAt": {"$lt": now}})
            logger.info(
                "Expired notifications cleaned up",
                extra={"deleted_count": result.deleted_count},
            )
            return result.deleted_count
        except Exception as e:
            logger.error(
                "Error cleaning up expired notifications",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise

    async def cleanup_for_user(self, user_email: str) -> int:
        """
        Hide notifications the user has seen more than the retention period ago.

        The documents stay for other recipients; only the user's entry is
        flagged as deleted.

        Returns:
            Number of notifications hidden for the user
        """
        try:
            now = datetime.now(UTC)
            cutoff = now - timedelta(hours=settings.NOTIFICATION_SEEN_RETENTION_HOURS)
            entry_filter = {
                "userEmail": user_email,
                "seen": True,
                "seenAt": {"$lt": cutoff},
                "deleted": {"$ne": True},
            }

            result = await self.db.notifications.update_many(
                {"userStatuses": {"$elemMatch": entry_filter}},
                {
                    "$set": {
                        "userStatuses.$[entry].deleted": True,
                        "userStatuses.$[entry].deletedAt": now,
                    }
                },
                array_filters=[
                    {f"entry.{field}": value for field, value in entry_filter.items()}
                ],
            )

            logger.info(
                "Seen notifications hidden for user",
                extra={"hidden_count": result.modified_count},
            )
            return result.modified_count

        except Exception as e:
            logger.error(
                "Error cleaning up user notifications",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise
