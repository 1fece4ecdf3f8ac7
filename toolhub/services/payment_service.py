from __future__ import annotations

import logging
from datetime import UTC, datetime

from toolhub.core.config import settings
from toolhub.models.order import Order, OrderStatus
from toolhub.models.payment import Payment, PaymentStatus
from toolhub.models.user import User
from toolhub.schemas.payment import (
    PaymentStatusEvent,
    PaymentVerifyRequest,
    RemoteOrderCreate,
    RemoteOrderResponse,
)
from toolhub.services.integrations.payment.razorpay_service import (
    RazorpayService,
    get_razorpay_service,
    to_minor_units,
)
from toolhub.services.payment_events import (
    PaymentStatusBroadcaster,
    payment_status_broadcaster,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """Gateway orders, payment verification and result notification."""

    def __init__(
        self,
        db,
        razorpay_service: RazorpayService | None = None,
        broadcaster: PaymentStatusBroadcaster | None = None,
    ):
        self.db = db
        self.razorpay_service = razorpay_service or get_razorpay_service()
        self.broadcaster = broadcaster or payment_status_broadcaster

    async def create_remote_order(
        self, order_data: RemoteOrderCreate
    ) -> RemoteOrderResponse:
        """Create the gateway order a checkout is opened against."""
        currency = order_data.currency or settings.DEFAULT_CURRENCY
        gateway_order = await self.razorpay_service.create_order(
            order_data.amount, currency
        )
        return RemoteOrderResponse(
            orderId=gateway_order["id"],
            amount=gateway_order.get("amount", to_minor_units(order_data.amount)),
            currency=gateway_order.get("currency", currency.upper()),
        )

    async def verify_payment(
        self, verify_data: PaymentVerifyRequest, user: User | None = None
    ) -> str:
        """
        Verify a checkout signature and record the outcome.

        Every attempt is stored, except a repeat of a payment that was
        already verified successfully, which returns ``success`` without
        writing or notifying again. The caller's pending order carrying the
        gateway order id moves to ``success`` or ``failed``; the plan applied
        to the profile is the one the order was placed for.

        Returns:
            ``success`` or ``failure``
        """
        order_id = verify_data.razorpay_order_id
        payment_id = verify_data.razorpay_payment_id

        try:
            existing = await Payment.find_one(
                {"gatewayPaymentId": payment_id, "status": PaymentStatus.SUCCESS}
            )
            if existing:
                logger.info(
                    "Payment already verified",
                    extra={"gateway_order_id": order_id, "gateway_payment_id": payment_id},
                )
                return PaymentStatus.SUCCESS

            is_valid = self.razorpay_service.verify_payment_signature(
                order_id, payment_id, verify_data.razorpay_signature
            )
            status = PaymentStatus.SUCCESS if is_valid else PaymentStatus.FAILURE

            payment = Payment(
                gatewayOrderId=order_id,
                gatewayPaymentId=payment_id,
                signature=verify_data.razorpay_signature,
                status=status,
                userId=user.id if user else None,
                userEmail=user.email if user else None,
                plan=verify_data.plan,
                amount=verify_data.amount,
            )
            await payment.insert()

            order = await self._settle_order(order_id, payment_id, status, user)

            if status == PaymentStatus.SUCCESS and user and user.email:
                plan_name = order.planName if order else verify_data.plan
                await self._apply_plan(user.email, plan_name)

            await self._notify(order_id, status, user)

            logger.info(
                "Payment verified",
                extra={
                    "gateway_order_id": order_id,
                    "gateway_payment_id": payment_id,
                    "status": status,
                },
            )
            return status

        except Exception as e:
            logger.error(
                "Error verifying payment",
                extra={"gateway_order_id": order_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def _settle_order(
        self, order_id: str, payment_id: str, status: str, user: User | None
    ) -> Order | None:
        # Only the caller's order; a verified payment may also settle one
        # that an earlier bad signature marked failed.
        settleable = (
            [OrderStatus.PENDING, OrderStatus.FAILED]
            if status == PaymentStatus.SUCCESS
            else [OrderStatus.PENDING]
        )
        query = {"gatewayOrderId": order_id, "status": {"$in": settleable}}
        if user:
            query["userId"] = user.id

        order = await Order.find_one(query)
        if not order:
            logger.warning(
                "No open order for gateway order",
                extra={"gateway_order_id": order_id},
            )
            return None

        if status == PaymentStatus.SUCCESS:
            order.status = OrderStatus.SUCCESS
            order.gatewayPaymentId = payment_id
        else:
            order.status = OrderStatus.FAILED
        order.updatedAt = datetime.now(UTC)
        await order.save()

        logger.info(
            "Order settled",
            extra={"order_id": str(order.id), "status": order.status},
        )
        return order

    async def _apply_plan(self, email: str, plan_name: str) -> None:
        profile = await User.find_one({"email": email})
        if not profile:
            logger.warning("No profile to apply plan to", extra={"plan": plan_name})
            return

        profile.plan = plan_name
        profile.updatedAt = datetime.now(UTC)
        await profile.save()
        logger.info(
            "Profile plan updated",
            extra={"user_id": str(profile.id), "plan": plan_name},
        )

    async def _notify(self, order_id: str, status: str, user: User | None) -> None:
        event = PaymentStatusEvent(
            orderId=order_id,
            status=status,
            user={"id": str(user.id), "email": user.email, "name": user.name}
            if user
            else None,
        )
        try:
            await self.broadcaster.publish(event.model_dump())
        except Exception as e:
            logger.error(
                "Failed to publish payment status",
                extra={"gateway_order_id": order_id, "error": str(e)},
                exc_info=True,
            )

    async def list_payments(self, limit: int = 100) -> list[Payment]:
        """Payment attempts, newest first."""
        try:
            payments = await Payment.find().sort("-createdAt").limit(limit).to_list()
            logger.info("Payments listed", extra={"count": len(payments)})
            return payments
        except Exception as e:
            logger.error("Error listing payments", extra={"error": str(e)}, exc_info=True)
            raise
