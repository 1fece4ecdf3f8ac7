"""Order API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from toolhub.core.auth_dependencies import get_current_user
from toolhub.core.database import get_database
from toolhub.core.exceptions import AuthorizationException
from toolhub.models.user import User
from toolhub.schemas.order import OrderCreate, OrderResponse
from toolhub.schemas.response import SuccessResponse
from toolhub.services.order_service import OrderService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=SuccessResponse[OrderResponse], status_code=201)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Record a plan purchase for the current user.

    Free orders are completed immediately; paid orders stay pending until
    the payment is verified.
    """
    order_service = OrderService(db)
    order = await order_service.create_order(current_user, order_data)

    return SuccessResponse(
        message="Order created successfully",
        data=OrderResponse.from_document(order),
    )


@router.get("/", response_model=SuccessResponse[list[OrderResponse]])
async def list_orders(
    user_id: str | None = Query(None, alias="userId"),
    status: str | None = Query(None),
    order_id: str | None = Query(None, alias="orderId"),
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """List orders. Non-admins only ever see their own."""
    if not current_user.has_admin_access:
        if user_id and user_id != str(current_user.id):
            raise AuthorizationException("Cannot view other users' orders")
        user_id = str(current_user.id)

    order_service = OrderService(db)
    orders = await order_service.list_orders(
        user_id=user_id, status=status, order_id=order_id
    )

    logger.info(
        "Orders retrieved",
        extra={"count": len(orders), "user_id": str(current_user.id)},
    )

    return SuccessResponse(
        message="Orders retrieved successfully",
        data=[OrderResponse.from_document(order) for order in orders],
    )


@router.get("/{order_id}", response_model=SuccessResponse[OrderResponse])
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Get an order by ID."""
    order_service = OrderService(db)
    order = await order_service.get_order(order_id)

    if order.userId != current_user.id and not current_user.has_admin_access:
        raise AuthorizationException("Cannot view other users' orders")

    return SuccessResponse(
        message="Order retrieved successfully",
        data=OrderResponse.from_document(order),
    )
