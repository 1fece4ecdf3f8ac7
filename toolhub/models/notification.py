from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from beanie import Document, Insert, Replace, before_event
from pydantic import BaseModel, Field

from toolhub.utils.validators import PyObjectId


class NotificationType(str, Enum):
    GENERAL = "general"
    IMPORTANT = "important"
    UPDATE = "update"
    ANNOUNCEMENT = "announcement"


class UserStatus(BaseModel):
    """Read state of a notification for one recipient."""

    userId: str | None = None
    userEmail: str
    seen: bool = False
    seenAt: datetime | None = None
    deleted: bool = False
    deletedAt: datetime | None = None

    def mark_seen(self, when: datetime) -> None:
        self.seen = True
        self.seenAt = when

    def mark_deleted(self, when: datetime) -> None:
        self.deleted = True
        self.deletedAt = when


class Notification(Document):
    """Broadcast message with per-recipient read tracking."""

    title: str
    content: str
    type: NotificationType = NotificationType.GENERAL
    sentBy: PyObjectId
    userStatuses: list[UserStatus] = Field(default_factory=list)
    expiresAt: datetime
    isActive: bool = True
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def status_for(self, user_email: str) -> UserStatus | None:
        for status in self.userStatuses:
            if status.userEmail == user_email:
                return status
        return None

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "notifications"
        indexes = [
            [("expiresAt", 1)],
            [("userStatuses.userEmail", 1)],
        ]
