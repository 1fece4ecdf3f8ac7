from __future__ import annotations

import logging
from datetime import UTC, datetime

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from toolhub.core.exceptions import (
    BusinessLogicException,
    ConflictException,
    CouponBelowMinimumException,
    CouponExpiredException,
    CouponUsageLimitException,
    NotFoundException,
)
from toolhub.models.coupon import Coupon, DiscountType
from toolhub.schemas.coupon import (
    CouponCreate,
    CouponSummary,
    CouponUpdate,
    CouponValidateResponse,
    DiscountCalculation,
)
from toolhub.utils.validators import normalize_coupon_code, parse_object_id

logger = logging.getLogger(__name__)

# Matches coupons that still have at least one use left
USES_AVAILABLE_FILTER = {
    "$or": [
        {"maxUses": None},
        {"$expr": {"$lt": ["$currentUses", "$maxUses"]}},
    ]
}


def _as_utc(value: datetime) -> datetime:
    # MongoDB returns naive datetimes in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def calculate_discount(
    discount_type: DiscountType | str,
    discount_value: float,
    order_amount: float,
    max_discount_amount: float | None = None,
) -> DiscountCalculation:
    """
    Apply a coupon's discount to an order amount.

    Percentage discounts are capped at ``max_discount_amount`` when set.
    The discount never exceeds the order amount, so the final amount is
    never negative.
    """
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        discount = order_amount * discount_value / 100
        if max_discount_amount and discount > max_discount_amount:
            discount = max_discount_amount
    else:
        discount = discount_value

    discount = round(min(discount, order_amount), 2)
    final_amount = round(max(0.0, order_amount - discount), 2)

    return DiscountCalculation(
        originalAmount=order_amount,
        discountAmount=discount,
        finalAmount=final_amount,
        isFree=final_amount == 0,
    )


def has_uses_left(coupon) -> bool:
    return coupon.maxUses is None or coupon.currentUses < coupon.maxUses


def is_coupon_valid(coupon, now: datetime | None = None) -> bool:
    """Active, not expired and below its usage cap."""
    now = now or datetime.now(UTC)
    return (
        coupon.isActive and now < _as_utc(coupon.expiryDate) and has_uses_left(coupon)
    )


class CouponService:
    """Service for coupon evaluation and management."""

    def __init__(self, db):
        self.db = db

    async def find_active_coupon(self, code: str) -> Coupon:
        normalized = normalize_coupon_code(code)
        coupon = await Coupon.find_one({"code": normalized, "isActive": True})
        if not coupon:
            raise NotFoundException(resource="Coupon", resource_id=normalized)
        return coupon

    async def validate_coupon(
        self, code: str, order_amount: float
    ) -> tuple[Coupon, DiscountCalculation]:
        """
        Check a coupon against an order amount and compute the discount.

        Validation never consumes a use.

        Raises:
            NotFoundException: No active coupon with that code
            CouponExpiredException: Expired or usage cap reached
            CouponBelowMinimumException: Order amount below the coupon minimum
        """
        try:
            coupon = await self.find_active_coupon(code)

            if not is_coupon_valid(coupon):
                raise CouponExpiredException(coupon.code)

            if order_amount < coupon.minOrderAmount:
                raise CouponBelowMinimumException(coupon.code, coupon.minOrderAmount)

            calculation = calculate_discount(
                coupon.discountType,
                coupon.discountValue,
                order_amount,
                coupon.maxDiscountAmount,
            )

            logger.info(
                "Coupon validated",
                extra={
                    "coupon_code": coupon.code,
                    "order_amount": order_amount,
                    "discount_amount": calculation.discountAmount,
                },
            )
            return coupon, calculation

        except (NotFoundException, CouponExpiredException, CouponBelowMinimumException):
            raise
        except Exception as e:
            logger.error(
                "Error validating coupon",
                extra={"coupon_code": code, "error": str(e)},
                exc_info=True,
            )
            raise

    async def validate_coupon_response(
        self, code: str, order_amount: float
    ) -> CouponValidateResponse:
        coupon, calculation = await self.validate_coupon(code, order_amount)
        return CouponValidateResponse(
            coupon=CouponSummary(
                code=coupon.code,
                discountType=coupon.discountType,
                discountValue=coupon.discountValue,
                description=coupon.description,
            ),
            calculation=calculation,
        )

    async def increment_usage(self, coupon: Coupon) -> None:
        """
        Consume one use of a coupon.

        The increment is a single conditional update, so two orders racing
        for the last use cannot both succeed.

        Raises:
            CouponUsageLimitException: No uses left
        """
        result = await self.db.coupons.update_one(
            {"_id": coupon.id, **USES_AVAILABLE_FILTER},
            {"$inc": {"currentUses": 1}, "$set": {"updatedAt": datetime.now(UTC)}},
        )
        if result.modified_count != 1:
            logger.warning(
                "Coupon usage limit reached",
                extra={"coupon_id": str(coupon.id), "coupon_code": coupon.code},
            )
            raise CouponUsageLimitException(coupon.code)

        logger.info(
            "Coupon usage incremented",
            extra={"coupon_id": str(coupon.id), "coupon_code": coupon.code},
        )

    async def release_usage(self, coupon: Coupon) -> None:
        """Give back a use taken by an order that was never stored."""
        try:
            await self.db.coupons.update_one(
                {"_id": coupon.id, "currentUses": {"$gt": 0}},
                {"$inc": {"currentUses": -1}, "$set": {"updatedAt": datetime.now(UTC)}},
            )
            logger.info(
                "Coupon usage released",
                extra={"coupon_id": str(coupon.id), "coupon_code": coupon.code},
            )
        except Exception as e:
            logger.error(
                "Error releasing coupon usage",
                extra={"coupon_id": str(coupon.id), "error": str(e)},
                exc_info=True,
            )
            raise

    async def create_coupon(self, coupon_data: CouponCreate, created_by) -> Coupon:
        """
        Create a coupon.

        Raises:
            ConflictException: A coupon with the same code exists
        """
        code = normalize_coupon_code(coupon_data.code)
        try:
            coupon = Coupon(
                **coupon_data.model_dump(exclude={"code"}),
                code=code,
                createdBy=ObjectId(str(created_by)),
            )
            await coupon.insert()

            logger.info(
                "Coupon created",
                extra={"coupon_id": str(coupon.id), "coupon_code": code},
            )
            return coupon

        except DuplicateKeyError as e:
            raise ConflictException(
                "Coupon code already exists", details={"code": code}
            ) from e
        except Exception as e:
            logger.error(
                "Error creating coupon",
                extra={"coupon_code": code, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_coupons(self) -> list[Coupon]:
        """List all coupons, newest first."""
        try:
            coupons = await Coupon.find().sort("-createdAt").to_list()
            logger.info("Coupons listed", extra={"count": len(coupons)})
            return coupons
        except Exception as e:
            logger.error("Error listing coupons", extra={"error": str(e)}, exc_info=True)
            raise

    async def get_coupon(self, coupon_id: str) -> Coupon:
        coupon = await Coupon.find_one(
            Coupon.id == parse_object_id(coupon_id, "Coupon")
        )
        if not coupon:
            raise NotFoundException(resource="Coupon", resource_id=coupon_id)
        return coupon

    async def update_coupon(self, coupon_id: str, coupon_update: CouponUpdate) -> Coupon:
        """Toggle a coupon or change its expiry and limits."""
        try:
            coupon = await self.get_coupon(coupon_id)

            update_data = coupon_update.model_dump(exclude_unset=True)
            max_uses = update_data.get("maxUses")
            if max_uses is not None and max_uses < coupon.currentUses:
                raise BusinessLogicException(
                    "maxUses cannot be lower than the uses already consumed",
                    details={"maxUses": max_uses, "currentUses": coupon.currentUses},
                )

            for field, value in update_data.items():
                setattr(coupon, field, value)

            coupon.updatedAt = datetime.now(UTC)
            await coupon.save()

            logger.info(
                "Coupon updated",
                extra={"coupon_id": coupon_id, "fields": list(update_data)},
            )
            return coupon

        except (NotFoundException, BusinessLogicException):
            raise
        except Exception as e:
            logger.error(
                "Error updating coupon",
                extra={"coupon_id": coupon_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def delete_coupon(self, coupon_id: str) -> None:
        try:
            coupon = await self.get_coupon(coupon_id)
            await coupon.delete()
            logger.info("Coupon deleted", extra={"coupon_id": coupon_id})
        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error deleting coupon",
                extra={"coupon_id": coupon_id, "error": str(e)},
                exc_info=True,
            )
            raise
