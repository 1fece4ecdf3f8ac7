"""AI tool API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from toolhub.core.auth_dependencies import get_current_user, require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.content import (
    AiToolCreate,
    AiToolResponse,
    AiToolUpdate,
    ApproveRequest,
    ApproveResponse,
    CountersUpdate,
    StatusUpdate,
)
from toolhub.schemas.response import CountResponse, SuccessResponse
from toolhub.services.content_service import AiToolService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=SuccessResponse[list[AiToolResponse]])
async def list_ai_tools(
    category: str | None = Query(None),
    search: str | None = Query(None, description="Search title, description, category"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db=Depends(get_database),
):
    """List approved AI tools."""
    service = AiToolService(db)
    tools = await service.list_approved(
        category=category, search=search, skip=skip, limit=limit
    )

    return SuccessResponse(
        message="AI tools retrieved successfully",
        data=[AiToolResponse.from_document(tool) for tool in tools],
    )


@router.post("/", response_model=SuccessResponse[AiToolResponse], status_code=201)
async def submit_ai_tool(
    data: AiToolCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Submit an AI tool for moderation."""
    try:
        service = AiToolService(db)
        tool = await service.submit(data, current_user)

        return SuccessResponse(
            message="AI tool submitted for review",
            data=AiToolResponse.from_document(tool),
        )

    except Exception as e:
        logger.error(
            "Error submitting AI tool",
            extra={"user_id": str(current_user.id), "error": str(e)},
        )
        raise


@router.get("/mine", response_model=SuccessResponse[list[AiToolResponse]])
async def my_ai_tools(
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """AI tools submitted by the current user, whatever their status."""
    service = AiToolService(db)
    tools = await service.list_by_author(current_user)

    return SuccessResponse(
        message="AI tools retrieved successfully",
        data=[AiToolResponse.from_document(tool) for tool in tools],
    )


@router.post("/approve", response_model=SuccessResponse[ApproveResponse])
async def approve_ai_tools(
    request: ApproveRequest,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Approve AI tools in bulk (admin only)."""
    service = AiToolService(db)
    approved = await service.approve(request.ids)

    return SuccessResponse(
        message="AI tools approved",
        data=ApproveResponse(approved=approved),
    )


@router.get("/{tool_id}", response_model=SuccessResponse[AiToolResponse])
async def get_ai_tool(tool_id: str, db=Depends(get_database)):
    service = AiToolService(db)
    tool = await service.get(tool_id)

    return SuccessResponse(
        message="AI tool retrieved successfully",
        data=AiToolResponse.from_document(tool),
    )


@router.post("/{tool_id}/views", response_model=SuccessResponse[CountResponse])
async def increment_ai_tool_views(tool_id: str, db=Depends(get_database)):
    """Count a page view."""
    service = AiToolService(db)
    incremented = await service.increment_views(tool_id)

    return SuccessResponse(
        message="View recorded", data=CountResponse(count=incremented)
    )


@router.patch("/{tool_id}/status", response_model=SuccessResponse[AiToolResponse])
async def update_ai_tool_status(
    tool_id: str,
    request: StatusUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = AiToolService(db)
    tool = await service.update_status(tool_id, request.status)

    return SuccessResponse(
        message="AI tool status updated",
        data=AiToolResponse.from_document(tool),
    )


@router.patch("/{tool_id}/counters", response_model=SuccessResponse[AiToolResponse])
async def set_ai_tool_counters(
    tool_id: str,
    counters: CountersUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Set view and like counters (admin only)."""
    service = AiToolService(db)
    tool = await service.set_counters(tool_id, counters)

    return SuccessResponse(
        message="AI tool counters updated",
        data=AiToolResponse.from_document(tool),
    )


@router.patch("/{tool_id}", response_model=SuccessResponse[AiToolResponse])
async def update_ai_tool(
    tool_id: str,
    update: AiToolUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = AiToolService(db)
    tool = await service.update(tool_id, update)

    return SuccessResponse(
        message="AI tool updated successfully",
        data=AiToolResponse.from_document(tool),
    )


@router.delete("/{tool_id}", response_model=SuccessResponse[None])
async def delete_ai_tool(
    tool_id: str,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    service = AiToolService(db)
    await service.delete(tool_id)

    return SuccessResponse(message="AI tool deleted successfully", data=None)
