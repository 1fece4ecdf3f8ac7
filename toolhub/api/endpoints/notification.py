"""Notification API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from toolhub.core.auth_dependencies import get_current_user, require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.notification import (
    CleanupResponse,
    NotificationCreate,
    NotificationResponse,
    NotificationSentResponse,
)
from toolhub.schemas.response import CountResponse, SuccessResponse
from toolhub.services.notification_service import NotificationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/", response_model=SuccessResponse[NotificationSentResponse], status_code=201
)
async def send_notification(
    data: NotificationCreate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Broadcast a notification to the given users, or to everyone (admin only)."""
    notification_service = NotificationService(db)
    notification = await notification_service.send(data, current_user)

    return SuccessResponse(
        message="Notification sent successfully",
        data=NotificationSentResponse(
            notificationId=str(notification.id),
            recipientCount=len(notification.userStatuses),
        ),
    )


@router.get("/", response_model=SuccessResponse[list[NotificationResponse]])
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Notifications visible to the current user."""
    notification_service = NotificationService(db)
    notifications = await notification_service.list_for_user(current_user.email)

    return SuccessResponse(
        message="Notifications retrieved successfully",
        data=[
            NotificationResponse.for_user(notification, current_user.email)
            for notification in notifications
        ],
    )


@router.get("/unseen-count", response_model=SuccessResponse[CountResponse])
async def unseen_count(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    notification_service = NotificationService(db)
    count = await notification_service.unseen_count(current_user.email)

    return SuccessResponse(
        message="Unseen notifications counted",
        data=CountResponse(count=count),
    )


@router.post("/{notification_id}/seen", response_model=SuccessResponse[NotificationResponse])
async def mark_seen(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Mark a notification as seen by the current user."""
    notification_service = NotificationService(db)
    notification = await notification_service.mark_seen(notification_id, current_user)

    return SuccessResponse(
        message="Notification marked as seen",
        data=NotificationResponse.for_user(notification, current_user.email),
    )


@router.delete("/{notification_id}", response_model=SuccessResponse[None])
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    notification_service = NotificationService(db)
    await notification_service.delete(notification_id)

    return SuccessResponse(message="Notification deleted successfully", data=None)


@router.post("/cleanup", response_model=SuccessResponse[CleanupResponse])
async def cleanup_expired(
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Delete expired notifications now instead of waiting for the scheduler."""
    notification_service = NotificationService(db)
    deleted_count = await notification_service.cleanup_expired()

    logger.info(
        "Manual notification cleanup",
        extra={"admin_id": str(current_user.id), "deleted_count": deleted_count},
    )

    return SuccessResponse(
        message="Expired notifications deleted",
        data=CleanupResponse(affected=deleted_count),
    )


@router.post("/cleanup-user", response_model=SuccessResponse[CleanupResponse])
async def cleanup_for_user(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Hide notifications the current user has already seen."""
    notification_service = NotificationService(db)
    hidden_count = await notification_service.cleanup_for_user(current_user.email)

    return SuccessResponse(
        message="Seen notifications cleaned up",
        data=CleanupResponse(affected=hidden_count),
    )
