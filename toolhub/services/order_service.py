from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime

from bson import ObjectId

from toolhub.core.exceptions import (
    CouponUsageLimitException,
    NotFoundException,
    ValidationException,
)
from toolhub.models.coupon import Coupon
from toolhub.models.order import Order, OrderStatus, PaymentMethod, compute_final_amount
from toolhub.models.plan import Plan, compute_plan_expiry
from toolhub.models.user import User
from toolhub.schemas.admin import UserOrdersSummary, UsersWithOrdersReport
from toolhub.schemas.order import OrderCreate, OrderResponse
from toolhub.services.coupon_service import CouponService
from toolhub.utils.validators import normalize_coupon_code, parse_object_id

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01


def check_order_amounts(
    original_amount: float, discount_amount: float, final_amount: float
) -> None:
    """
    Reject amounts that do not add up.

    Raises:
        ValidationException: Negative amounts or a final amount other than
            ``max(0, original - discount)``
    """
    if original_amount < 0 or discount_amount < 0 or final_amount < 0:
        raise ValidationException("Amounts cannot be negative")

    expected = compute_final_amount(original_amount, discount_amount)
    if abs(expected - final_amount) > AMOUNT_TOLERANCE:
        raise ValidationException(
            "Final amount does not match original amount minus discount",
            details={"expectedFinalAmount": expected, "finalAmount": final_amount},
        )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def summarize_user_orders(user, orders: list, now: datetime) -> UserOrdersSummary:
    """Purchase totals of one user for the admin report."""
    active_plans = [
        order
        for order in orders
        if order.status == OrderStatus.SUCCESS
        and (order.planExpiryDate is None or _as_utc(order.planExpiryDate) > now)
    ]
    return UserOrdersSummary(
        userId=str(user.id),
        email=user.email,
        name=user.name,
        plan=user.plan,
        orders=[OrderResponse.from_document(order) for order in orders],
        totalOrders=len(orders),
        totalSpent=round(sum(order.finalAmount for order in orders), 2),
        activePlans=len(active_plans),
    )


class OrderService:
    """Service for creating and querying plan purchases."""

    def __init__(self, db):
        self.db = db
        self.coupon_service = CouponService(db)

    async def create_order(self, user: User, order_data: OrderCreate) -> Order:
        """
        Persist a purchase of a plan.

        Orders with nothing to pay are created as successful free orders;
        all others stay pending until the payment is verified. A resolved
        coupon has exactly one use consumed.

        Raises:
            ValidationException: Amounts do not add up
            NotFoundException: Plan not found
            CouponUsageLimitException: The coupon has no uses left
        """
        try:
            check_order_amounts(
                order_data.originalAmount,
                order_data.discountAmount,
                order_data.finalAmount,
            )

            plan = await Plan.find_one(
                Plan.id == parse_object_id(order_data.planId, "Plan")
            )
            if not plan:
                raise NotFoundException(resource="Plan", resource_id=order_data.planId)

            coupon = None
            coupon_code = None
            if order_data.couponCode:
                coupon_code = normalize_coupon_code(order_data.couponCode)
                coupon = await Coupon.find_one({"code": coupon_code})
                if coupon:
                    await self.coupon_service.increment_usage(coupon)

            is_free = order_data.finalAmount == 0
            activation_date = datetime.now(UTC)

            order = Order(
                userId=user.id,
                planId=plan.id,
                planName=plan.name,
                originalAmount=order_data.originalAmount,
                discountAmount=order_data.discountAmount,
                finalAmount=order_data.finalAmount,
                couponId=coupon.id if coupon else None,
                couponCode=coupon_code,
                currency=plan.currency,
                paymentMethod=PaymentMethod.FREE if is_free else order_data.paymentMethod,
                gatewayOrderId=order_data.gatewayOrderId,
                gatewayPaymentId=order_data.gatewayPaymentId,
                transactionId=order_data.transactionId,
                paymentDetails=order_data.paymentDetails,
                status=OrderStatus.SUCCESS if is_free else OrderStatus.PENDING,
                planActivationDate=activation_date,
                planExpiryDate=compute_plan_expiry(plan.duration, activation_date),
                notes=order_data.notes,
            )

            try:
                await order.insert()
            except Exception:
                if coupon:
                    await self.coupon_service.release_usage(coupon)
                raise

            logger.info(
                "Order created",
                extra={
                    "order_id": str(order.id),
                    "user_id": str(user.id),
                    "plan_id": str(plan.id),
                    "final_amount": order.finalAmount,
                    "status": order.status,
                    "coupon_code": coupon_code,
                },
            )
            return order

        except (ValidationException, NotFoundException, CouponUsageLimitException):
            raise
        except Exception as e:
            logger.error(
                "Error creating order",
                extra={"user_id": str(user.id), "plan_id": order_data.planId, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_orders(
        self,
        user_id: str | None = None,
        status: str | None = None,
        order_id: str | None = None,
    ) -> list[Order]:
        """List orders newest first, optionally filtered."""
        try:
            query: dict = {}
            if user_id:
                query["userId"] = parse_object_id(user_id, "User")
            if status:
                query["status"] = status
            if order_id:
                query["_id"] = parse_object_id(order_id, "Order")

            orders = await Order.find(query).sort("-createdAt").to_list()

            logger.info(
                "Orders listed",
                extra={"count": len(orders), "user_id": user_id, "status": status},
            )
            return orders

        except NotFoundException:
            raise
        except Exception as e:
            logger.error("Error listing orders", extra={"error": str(e)}, exc_info=True)
            raise

    async def get_order(self, order_id: str) -> Order:
        order = await Order.find_one(Order.id == parse_object_id(order_id, "Order"))
        if not order:
            raise NotFoundException(resource="Order", resource_id=order_id)
        return order

    async def find_pending_by_gateway_order(self, gateway_order_id: str) -> Order | None:
        return await Order.find_one(
            {"gatewayOrderId": gateway_order_id, "status": OrderStatus.PENDING}
        )

    async def users_with_orders(self) -> UsersWithOrdersReport:
        """Every user with their orders and purchase totals."""
        try:
            users = await User.find().sort("-createdAt").to_list()
            orders = await Order.find().sort("-createdAt").to_list()

            orders_by_user: dict[ObjectId, list[Order]] = defaultdict(list)
            for order in orders:
                orders_by_user[order.userId].append(order)

            now = datetime.now(UTC)
            summaries = [
                summarize_user_orders(user, orders_by_user.get(user.id, []), now)
                for user in users
            ]

            report = UsersWithOrdersReport(
                users=summaries,
                totalUsers=len(summaries),
                totalOrders=sum(s.totalOrders for s in summaries),
                totalRevenue=round(sum(s.totalSpent for s in summaries), 2),
            )

            logger.info(
                "Users with orders report built",
                extra={"users": report.totalUsers, "orders": report.totalOrders},
            )
            return report

        except Exception as e:
            logger.error(
                "Error building users with orders report",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise
