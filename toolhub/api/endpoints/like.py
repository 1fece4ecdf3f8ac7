"""Like API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from toolhub.core.auth_dependencies import get_current_user
from toolhub.core.database import get_database
from toolhub.core.exceptions import ValidationException
from toolhub.models.user import User
from toolhub.schemas.like import LikeCheckResponse, LikeResponse, LikeTarget
from toolhub.schemas.response import SuccessResponse
from toolhub.services.like_service import LikeService

router = APIRouter()


def like_target_query(
    ai_tool_id: str | None = Query(None, alias="aiToolId"),
    useful_website_id: str | None = Query(None, alias="usefulWebsiteId"),
) -> LikeTarget:
    try:
        return LikeTarget(aiToolId=ai_tool_id, usefulWebsiteId=useful_website_id)
    except ValueError as e:
        raise ValidationException(
            "Provide exactly one of aiToolId or usefulWebsiteId"
        ) from e


@router.post("/", response_model=SuccessResponse[LikeResponse], status_code=201)
async def like_item(
    target: LikeTarget,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Like an AI tool or a useful website."""
    like_service = LikeService(db)
    like = await like_service.like(current_user, target)

    return SuccessResponse(message="Liked", data=LikeResponse.from_document(like))


@router.delete("/", response_model=SuccessResponse[None])
async def unlike_item(
    target: LikeTarget = Depends(like_target_query),
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    like_service = LikeService(db)
    await like_service.unlike(current_user, target)

    return SuccessResponse(message="Like removed", data=None)


@router.get("/check", response_model=SuccessResponse[LikeCheckResponse])
async def check_like(
    target: LikeTarget = Depends(like_target_query),
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Whether the current user likes the item."""
    like_service = LikeService(db)
    like = await like_service.find_like(current_user, target)

    return SuccessResponse(
        message="Like status retrieved",
        data=LikeCheckResponse(
            hasLiked=like is not None,
            likeData=LikeResponse.from_document(like) if like else None,
        ),
    )


@router.get("/me", response_model=SuccessResponse[list[LikeResponse]])
async def my_likes(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """The current user's favourites."""
    like_service = LikeService(db)
    likes = await like_service.list_for_user(current_user)

    return SuccessResponse(
        message="Favourites retrieved successfully",
        data=[LikeResponse.from_document(like) for like in likes],
    )
