"""User profile API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from toolhub.core.auth_dependencies import (
    TokenData,
    get_current_user,
    get_current_user_token,
    require_admin,
)
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.response import SuccessResponse
from toolhub.schemas.user import (
    PhoneUpdateRequest,
    RoleUpdateRequest,
    UserResponse,
    UserSyncRequest,
)
from toolhub.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sync", response_model=SuccessResponse[UserResponse])
async def sync_profile(
    profile: UserSyncRequest | None = Body(None),
    token_data: TokenData = Depends(get_current_user_token),
    db=Depends(get_database),
):
    """
    Create the caller's profile from their identity token on first sign-in.

    Returns 201 when the profile was created and 200 when it already existed.
    """
    try:
        user_service = UserService(db)
        user, created = await user_service.sync_profile(token_data, profile)

        response = SuccessResponse(
            message="Profile created" if created else "Profile already exists",
            data=UserResponse.from_document(user),
        )
        return JSONResponse(
            status_code=201 if created else 200,
            content=response.model_dump(mode="json"),
        )

    except Exception as e:
        logger.error(
            "Error syncing profile",
            extra={"external_id": token_data.user_id, "error": str(e)},
            exc_info=True,
        )
        raise


@router.get("/me", response_model=SuccessResponse[UserResponse])
async def get_me(current_user: User = Depends(get_current_user)):
    return SuccessResponse(
        message="Profile retrieved successfully",
        data=UserResponse.from_document(current_user),
    )


@router.patch("/me/phone", response_model=SuccessResponse[UserResponse])
async def update_phone(
    request: PhoneUpdateRequest,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Update the current user's phone number."""
    user_service = UserService(db)
    user = await user_service.update_phone(current_user, request.phoneNumber)

    return SuccessResponse(
        message="Phone number updated successfully",
        data=UserResponse.from_document(user),
    )


@router.get("/", response_model=SuccessResponse[list[UserResponse]])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """List all users (admin only)."""
    user_service = UserService(db)
    users = await user_service.list_users(skip=skip, limit=limit)

    return SuccessResponse(
        message="Users retrieved successfully",
        data=[UserResponse.from_document(user) for user in users],
    )


@router.patch("/{user_id}/role", response_model=SuccessResponse[UserResponse])
async def update_user_role(
    user_id: str,
    request: RoleUpdateRequest,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Change a user's role (admin only)."""
    user_service = UserService(db)
    user = await user_service.update_role(user_id, request.role)

    logger.info(
        "User role changed via API",
        extra={
            "user_id": user_id,
            "role": request.role.value,
            "admin_id": str(current_user.id),
        },
    )

    return SuccessResponse(
        message="User role updated successfully",
        data=UserResponse.from_document(user),
    )
