"""Admin reporting endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from toolhub.core.auth_dependencies import require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.admin import UsersWithOrdersReport
from toolhub.schemas.response import SuccessResponse
from toolhub.services.order_service import OrderService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/users-with-orders", response_model=SuccessResponse[UsersWithOrdersReport])
async def users_with_orders(
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Every user with their orders, spend and active plans."""
    order_service = OrderService(db)
    report = await order_service.users_with_orders()

    logger.info(
        "Users with orders report requested",
        extra={"admin_id": str(current_user.id), "users": report.totalUsers},
    )

    return SuccessResponse(message="Report generated successfully", data=report)
