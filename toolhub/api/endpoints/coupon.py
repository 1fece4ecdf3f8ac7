"""Coupon API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from toolhub.core.auth_dependencies import require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
)
from toolhub.schemas.response import SuccessResponse
from toolhub.services.coupon_service import CouponService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/validate", response_model=SuccessResponse[CouponValidateResponse])
async def validate_coupon(
    request: CouponValidateRequest,
    db=Depends(get_database),
):
    """Check a coupon against an order amount without consuming it."""
    coupon_service = CouponService(db)
    result = await coupon_service.validate_coupon_response(
        request.code, request.orderAmount
    )

    return SuccessResponse(message="Coupon is valid", data=result)


@router.get("/", response_model=SuccessResponse[list[CouponResponse]])
async def list_coupons(
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """List all coupons (admin only)."""
    coupon_service = CouponService(db)
    coupons = await coupon_service.list_coupons()

    return SuccessResponse(
        message="Coupons retrieved successfully",
        data=[CouponResponse.from_document(coupon) for coupon in coupons],
    )


@router.post("/", response_model=SuccessResponse[CouponResponse], status_code=201)
async def create_coupon(
    coupon_data: CouponCreate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Create a coupon (admin only)."""
    try:
        coupon_service = CouponService(db)
        coupon = await coupon_service.create_coupon(coupon_data, current_user.id)

        logger.info(
            "Coupon created via API",
            extra={"coupon_code": coupon.code, "admin_id": str(current_user.id)},
        )

        return SuccessResponse(
            message="Coupon created successfully",
            data=CouponResponse.from_document(coupon),
        )

    except Exception as e:
        logger.error(
            "Error creating coupon",
            extra={"error": str(e)},
            exc_info=True,
        )
        raise


@router.patch("/{coupon_id}", response_model=SuccessResponse[CouponResponse])
async def update_coupon(
    coupon_id: str,
    coupon_update: CouponUpdate,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Toggle a coupon or change its limits (admin only)."""
    coupon_service = CouponService(db)
    coupon = await coupon_service.update_coupon(coupon_id, coupon_update)

    return SuccessResponse(
        message="Coupon updated successfully",
        data=CouponResponse.from_document(coupon),
    )


@router.delete("/{coupon_id}", response_model=SuccessResponse[None])
async def delete_coupon(
    coupon_id: str,
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """Delete a coupon (admin only)."""
    coupon_service = CouponService(db)
    await coupon_service.delete_coupon(coupon_id)

    return SuccessResponse(message="Coupon deleted successfully", data=None)
