"""Plan management API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from toolhub.core.auth_dependencies import require_admin
from toolhub.core.database import get_database
from toolhub.core.exceptions import NotFoundException
from toolhub.models.user import User
from toolhub.schemas.plan import PlanCreate, PlanResponse, PlanUpdate
from toolhub.schemas.response import SuccessResponse
from toolhub.services.plan_service import PlanService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=SuccessResponse[list[PlanResponse]])
async def list_plans(
    active_only: bool = Query(True, description="Show only active plans"),
    db=Depends(get_database),
):
    """List plans for the pricing page."""
    try:
        plan_service = PlanService(db)
        plans = await plan_service.list_plans(active_only=active_only)

        return SuccessResponse(
            message="Plans retrieved successfully",
            data=[PlanResponse.from_document(plan) for plan in plans],
        )

    except Exception as e:
        logger.error("Error listing plans", extra={"error": str(e)}, exc_info=True)
        raise


@router.get("/{plan_id}", response_model=SuccessResponse[PlanResponse])
async def get_plan(plan_id: str, db=Depends(get_database)):
    """Get plan details by ID."""
    plan_service = PlanService(db)
    plan = await plan_service.get_plan_by_id(plan_id)

    logger.info("Plan retrieved", extra={"plan_id": plan_id})

    return SuccessResponse(
        message="Plan retrieved successfully",
        data=PlanResponse.from_document(plan),
    )


@router.post("/", response_model=SuccessResponse[PlanResponse], status_code=201)
async def create_plan(
    plan_data: PlanCreate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Create a new plan (admin only)."""
    try:
        plan_service = PlanService(db)
        plan = await plan_service.create_plan(plan_data)

        logger.info(
            "Plan created via API",
            extra={"plan_id": str(plan.id), "admin_id": str(current_user.id)},
        )

        return SuccessResponse(
            message="Plan created successfully",
            data=PlanResponse.from_document(plan),
        )

    except Exception as e:
        logger.error("Error creating plan", extra={"error": str(e)}, exc_info=True)
        raise


@router.put("/{plan_id}", response_model=SuccessResponse[PlanResponse])
async def update_plan(
    plan_id: str,
    plan_update: PlanUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Update a plan (admin only)."""
    try:
        plan_service = PlanService(db)
        plan = await plan_service.update_plan(plan_id, plan_update)

        return SuccessResponse(
            message="Plan updated successfully",
            data=PlanResponse.from_document(plan),
        )

    except NotFoundException:
        raise
    except Exception as e:
        logger.error(
            "Error updating plan",
            extra={"plan_id": plan_id, "error": str(e)},
            exc_info=True,
        )
        raise


@router.delete("/{plan_id}", response_model=SuccessResponse[PlanResponse])
async def delete_plan(
    plan_id: str,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Deactivate a plan (admin only). Existing orders keep referencing it."""
    plan_service = PlanService(db)
    plan = await plan_service.deactivate_plan(plan_id)

    return SuccessResponse(
        message="Plan deactivated successfully",
        data=PlanResponse.from_document(plan),
    )
