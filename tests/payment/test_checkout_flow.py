"""Coupon checkout from validation through payment verification."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from toolhub.models.order import OrderStatus
from toolhub.models.payment import PaymentStatus
from toolhub.schemas.order import OrderCreate
from toolhub.schemas.payment import PaymentVerifyRequest
from toolhub.services.coupon_service import CouponService
from toolhub.services.integrations.payment.razorpay_service import (
    RazorpayService,
    compute_payment_signature,
)
from toolhub.services.order_service import OrderService
from toolhub.services.payment_service import PaymentService

KEY_SECRET = "checkout_secret"


@pytest.mark.asyncio
@patch("toolhub.services.payment_service.User")
@patch("toolhub.services.payment_service.Payment")
@patch("toolhub.services.payment_service.Order")
@patch("toolhub.services.order_service.Order")
@patch("toolhub.services.order_service.Coupon")
@patch("toolhub.services.order_service.Plan")
@patch("toolhub.services.coupon_service.Coupon")
async def test_discounted_checkout_completes_order(
    mock_validate_coupon_class,
    mock_plan_class,
    mock_order_coupon_class,
    mock_order_class,
    mock_settle_order_class,
    mock_payment_class,
    mock_user_class,
    mock_database,
    factory,
):
    user = factory.create_user()
    plan = factory.create_plan(price=100.0)
    coupon = factory.create_coupon(code="SAVE20", discountValue=20)
    mock_validate_coupon_class.find_one = AsyncMock(return_value=coupon)
    mock_order_coupon_class.find_one = AsyncMock(return_value=coupon)
    mock_plan_class.find_one = AsyncMock(return_value=plan)

    # Quote the discount
    _, calculation = await CouponService(mock_database).validate_coupon("SAVE20", 100)
    assert calculation.discountAmount == 20
    assert calculation.finalAmount == 80

    # Place the pending order against the gateway order
    pending_order = factory.create_order(
        status=OrderStatus.PENDING, gatewayOrderId="order_CHK1", finalAmount=80.0
    )
    pending_order.insert = AsyncMock()
    mock_order_class.return_value = pending_order

    await OrderService(mock_database).create_order(
        user,
        OrderCreate(
            planId=str(plan.id),
            originalAmount=100,
            discountAmount=calculation.discountAmount,
            finalAmount=calculation.finalAmount,
            couponCode="SAVE20",
            gatewayOrderId="order_CHK1",
        ),
    )

    assert mock_order_class.call_args.kwargs["status"] == OrderStatus.PENDING
    mock_database.coupons.update_one.assert_called_once()
    _, update = mock_database.coupons.update_one.call_args.args
    assert update["$inc"] == {"currentUses": 1}

    # Verify the gateway callback
    payment = MagicMock()
    payment.insert = AsyncMock()
    mock_payment_class.find_one = AsyncMock(return_value=None)
    mock_payment_class.return_value = payment
    mock_settle_order_class.find_one = AsyncMock(return_value=pending_order)
    mock_user_class.find_one = AsyncMock(return_value=user)
    broadcaster = MagicMock()
    broadcaster.publish = AsyncMock(return_value=0)

    payment_service = PaymentService(
        mock_database,
        razorpay_service=RazorpayService(key_id="rzp_test", key_secret=KEY_SECRET),
        broadcaster=broadcaster,
    )
    status = await payment_service.verify_payment(
        PaymentVerifyRequest(
            razorpay_order_id="order_CHK1",
            razorpay_payment_id="pay_CHK1",
            razorpay_signature=compute_payment_signature(
                "order_CHK1", "pay_CHK1", KEY_SECRET
            ),
            plan=plan.name,
            amount=80,
        ),
        user,
    )

    assert status == PaymentStatus.SUCCESS
    assert pending_order.status == OrderStatus.SUCCESS
    assert pending_order.gatewayPaymentId == "pay_CHK1"
    # Still a single consumed use
    assert mock_database.coupons.update_one.call_count == 1
