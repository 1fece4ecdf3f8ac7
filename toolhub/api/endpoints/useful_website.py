"""Useful website API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from toolhub.core.auth_dependencies import get_current_user, require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.content import (
    ApproveRequest,
    ApproveResponse,
    CountersUpdate,
    StatusUpdate,
    UsefulWebsiteCreate,
    UsefulWebsiteResponse,
    UsefulWebsiteUpdate,
)
from toolhub.schemas.response import CountResponse, SuccessResponse
from toolhub.services.content_service import UsefulWebsiteService

router = APIRouter()


@router.get("/", response_model=SuccessResponse[list[UsefulWebsiteResponse]])
async def list_useful_websites(
    category: str | None = Query(None),
    search: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db=Depends(get_database),
):
    """List approved useful websites."""
    service = UsefulWebsiteService(db)
    websites = await service.list_approved(
        category=category, search=search, skip=skip, limit=limit
    )

    return SuccessResponse(
        message="Useful websites retrieved successfully",
        data=[UsefulWebsiteResponse.from_document(website) for website in websites],
    )


@router.post("/", response_model=SuccessResponse[UsefulWebsiteResponse], status_code=201)
async def submit_useful_website(
    data: UsefulWebsiteCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Submit a website for moderation. Each URL can be submitted once."""
    service = UsefulWebsiteService(db)
    website = await service.submit(data, current_user)

    return SuccessResponse(
        message="Useful website submitted for review",
        data=UsefulWebsiteResponse.from_document(website),
    )


@router.get("/mine", response_model=SuccessResponse[list[UsefulWebsiteResponse]])
async def my_useful_websites(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    websites = await service.list_by_author(current_user)

    return SuccessResponse(
        message="Useful websites retrieved successfully",
        data=[UsefulWebsiteResponse.from_document(website) for website in websites],
    )


@router.post("/approve", response_model=SuccessResponse[ApproveResponse])
async def approve_useful_websites(
    request: ApproveRequest,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    approved = await service.approve(request.ids)

    return SuccessResponse(
        message="Useful websites approved",
        data=ApproveResponse(approved=approved),
    )


@router.get("/{website_id}", response_model=SuccessResponse[UsefulWebsiteResponse])
async def get_useful_website(website_id: str, db=Depends(get_database)):
    service = UsefulWebsiteService(db)
    website = await service.get(website_id)

    return SuccessResponse(
        message="Useful website retrieved successfully",
        data=UsefulWebsiteResponse.from_document(website),
    )


@router.post("/{website_id}/views", response_model=SuccessResponse[CountResponse])
async def increment_useful_website_views(website_id: str, db=Depends(get_database)):
    service = UsefulWebsiteService(db)
    incremented = await service.increment_views(website_id)

    return SuccessResponse(
        message="View recorded", data=CountResponse(count=incremented)
    )


@router.patch(
    "/{website_id}/status", response_model=SuccessResponse[UsefulWebsiteResponse]
)
async def update_useful_website_status(
    website_id: str,
    request: StatusUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    website = await service.update_status(website_id, request.status)

    return SuccessResponse(
        message="Useful website status updated",
        data=UsefulWebsiteResponse.from_document(website),
    )


@router.patch(
    "/{website_id}/counters", response_model=SuccessResponse[UsefulWebsiteResponse]
)
async def set_useful_website_counters(
    website_id: str,
    counters: CountersUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    website = await service.set_counters(website_id, counters)

    return SuccessResponse(
        message="Useful website counters updated",
        data=UsefulWebsiteResponse.from_document(website),
    )


@router.patch("/{website_id}", response_model=SuccessResponse[UsefulWebsiteResponse])
async def update_useful_website(
    website_id: str,
    update: UsefulWebsiteUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    website = await service.update(website_id, update)

    return SuccessResponse(
        message="Useful website updated successfully",
        data=UsefulWebsiteResponse.from_document(website),
    )


@router.delete("/{website_id}", response_model=SuccessResponse[None])
async def delete_useful_website(
    website_id: str,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = UsefulWebsiteService(db)
    await service.delete(website_id)

    return SuccessResponse(message="Useful website deleted successfully", data=None)
