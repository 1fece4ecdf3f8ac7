from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from toolhub.models.notification import NotificationType


class NotificationCreate(BaseModel):
    """Schema for broadcasting a notification."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    type: NotificationType = NotificationType.GENERAL
    recipientEmails: list[EmailStr] | None = Field(
        None, description="Recipients; every user when omitted"
    )


class NotificationSentResponse(BaseModel):
    notificationId: str
    recipientCount: int


class NotificationResponse(BaseModel):
    """A notification as seen by one recipient."""

    id: str
    title: str
    content: str
    type: NotificationType
    seen: bool
    seenAt: datetime | None = None
    createdAt: datetime
    expiresAt: datetime

    @classmethod
    def for_user(cls, notification, user_email: str) -> NotificationResponse:
        status = notification.status_for(user_email)
        return cls(
            id=str(notification.id),
            title=notification.title,
            content=notification.content,
            type=notification.type,
            seen=bool(status and status.seen),
            seenAt=status.seenAt if status else None,
            createdAt=notification.createdAt,
            expiresAt=notification.expiresAt,
        )


class CleanupResponse(BaseModel):
    affected: int
