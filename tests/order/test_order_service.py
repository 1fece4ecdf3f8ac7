"""Test cases for order construction."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId

from toolhub.core.exceptions import (
    CouponUsageLimitException,
    NotFoundException,
    ValidationException,
)
from toolhub.models.order import OrderStatus, PaymentMethod, compute_final_amount
from toolhub.models.plan import PlanDuration, compute_plan_expiry
from toolhub.schemas.order import OrderCreate
from toolhub.services.order_service import (
    OrderService,
    check_order_amounts,
    summarize_user_orders,
)


class TestOrderAmounts:
    def test_final_amount_never_negative(self):
        assert compute_final_amount(30, 50) == 0
        assert compute_final_amount(100, 20) == 80

    def test_consistent_amounts_accepted(self):
        check_order_amounts(100, 20, 80)
        check_order_amounts(30, 50, 0)

    def test_mismatched_final_amount_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            check_order_amounts(100, 20, 70)

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["expectedFinalAmount"] == 80

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationException):
            check_order_amounts(-1, 0, 0)


class TestPlanExpiry:
    def test_month_plan_expires_after_30_days(self):
        activated = datetime(2024, 1, 1, tzinfo=UTC)
        assert compute_plan_expiry(PlanDuration.MONTH, activated) == activated + timedelta(days=30)

    def test_year_plan_expires_after_365_days(self):
        activated = datetime(2024, 1, 1, tzinfo=UTC)
        assert compute_plan_expiry("year", activated) == activated + timedelta(days=365)

    def test_lifetime_plan_never_expires(self):
        assert compute_plan_expiry(PlanDuration.LIFETIME, datetime.now(UTC)) is None


class TestCreateOrder:
    """OrderService.create_order with documents mocked."""

    @pytest.fixture
    def order_instance(self):
        order = MagicMock()
        order.id = ObjectId()
        order.insert = AsyncMock()
        return order

    def order_data(self, plan, **overrides):
        data = {
            "planId": str(plan.id),
            "originalAmount": 100,
            "discountAmount": 0,
            "finalAmount": 100,
            "gatewayOrderId": "order_ABC123",
        }
        data.update(overrides)
        return OrderCreate(**data)

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Plan")
    async def test_paid_order_is_pending(
        self, mock_plan_class, mock_order_class, mock_database, factory, order_instance
    ):
        plan = factory.create_plan()
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_order_class.return_value = order_instance

        result = await OrderService(mock_database).create_order(
            factory.create_user(), self.order_data(plan)
        )

        assert result is order_instance
        kwargs = mock_order_class.call_args.kwargs
        assert kwargs["status"] == OrderStatus.PENDING
        assert kwargs["paymentMethod"] == PaymentMethod.RAZORPAY
        assert kwargs["planName"] == plan.name
        assert kwargs["planExpiryDate"] - kwargs["planActivationDate"] == timedelta(days=30)
        order_instance.insert.assert_called_once()

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Plan")
    async def test_free_order_is_successful(
        self, mock_plan_class, mock_order_class, mock_database, factory, order_instance
    ):
        plan = factory.create_plan(duration=PlanDuration.LIFETIME)
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_order_class.return_value = order_instance

        await OrderService(mock_database).create_order(
            factory.create_user(),
            self.order_data(plan, discountAmount=100, finalAmount=0),
        )

        kwargs = mock_order_class.call_args.kwargs
        assert kwargs["status"] == OrderStatus.SUCCESS
        assert kwargs["paymentMethod"] == PaymentMethod.FREE
        assert kwargs["planExpiryDate"] is None

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Plan")
    async def test_unknown_plan(self, mock_plan_class, mock_database, factory):
        plan = factory.create_plan()
        mock_plan_class.find_one = AsyncMock(return_value=None)

        with pytest.raises(NotFoundException):
            await OrderService(mock_database).create_order(
                factory.create_user(), self.order_data(plan)
            )

    @pytest.mark.asyncio
    async def test_inconsistent_amounts_rejected_before_lookup(self, mock_database, factory):
        plan = factory.create_plan()

        with pytest.raises(ValidationException):
            await OrderService(mock_database).create_order(
                factory.create_user(),
                self.order_data(plan, discountAmount=20, finalAmount=100),
            )

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Coupon")
    @patch("toolhub.services.order_service.Plan")
    async def test_coupon_use_consumed_once(
        self,
        mock_plan_class,
        mock_coupon_class,
        mock_order_class,
        mock_database,
        factory,
        order_instance,
    ):
        plan = factory.create_plan()
        coupon = factory.create_coupon()
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_coupon_class.find_one = AsyncMock(return_value=coupon)
        mock_order_class.return_value = order_instance

        await OrderService(mock_database).create_order(
            factory.create_user(),
            self.order_data(plan, discountAmount=20, finalAmount=80, couponCode="save20"),
        )

        mock_coupon_class.find_one.assert_called_once_with({"code": "SAVE20"})
        mock_database.coupons.update_one.assert_called_once()
        _, update = mock_database.coupons.update_one.call_args.args
        assert update["$inc"] == {"currentUses": 1}
        kwargs = mock_order_class.call_args.kwargs
        assert kwargs["couponId"] == coupon.id
        assert kwargs["couponCode"] == "SAVE20"

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Coupon")
    @patch("toolhub.services.order_service.Plan")
    async def test_last_coupon_use_taken(
        self,
        mock_plan_class,
        mock_coupon_class,
        mock_order_class,
        mock_database,
        factory,
    ):
        plan = factory.create_plan()
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_coupon_class.find_one = AsyncMock(
            return_value=factory.create_coupon(maxUses=1, currentUses=0)
        )
        mock_database.coupons.update_one.return_value = MagicMock(modified_count=0)

        with pytest.raises(CouponUsageLimitException):
            await OrderService(mock_database).create_order(
                factory.create_user(),
                self.order_data(plan, discountAmount=20, finalAmount=80, couponCode="SAVE20"),
            )

        mock_order_class.assert_not_called()

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Coupon")
    @patch("toolhub.services.order_service.Plan")
    async def test_coupon_use_released_when_insert_fails(
        self,
        mock_plan_class,
        mock_coupon_class,
        mock_order_class,
        mock_database,
        factory,
        order_instance,
    ):
        plan = factory.create_plan()
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_coupon_class.find_one = AsyncMock(return_value=factory.create_coupon())
        order_instance.insert.side_effect = RuntimeError("write failed")
        mock_order_class.return_value = order_instance

        with pytest.raises(RuntimeError):
            await OrderService(mock_database).create_order(
                factory.create_user(),
                self.order_data(plan, discountAmount=20, finalAmount=80, couponCode="SAVE20"),
            )

        increments = [
            call.args[1]["$inc"]["currentUses"]
            for call in mock_database.coupons.update_one.call_args_list
        ]
        assert increments == [1, -1]

    @pytest.mark.asyncio
    @patch("toolhub.services.order_service.Order")
    @patch("toolhub.services.order_service.Coupon")
    @patch("toolhub.services.order_service.Plan")
    async def test_unknown_coupon_code_ignored(
        self,
        mock_plan_class,
        mock_coupon_class,
        mock_order_class,
        mock_database,
        factory,
        order_instance,
    ):
        plan = factory.create_plan()
        mock_plan_class.find_one = AsyncMock(return_value=plan)
        mock_coupon_class.find_one = AsyncMock(return_value=None)
        mock_order_class.return_value = order_instance

        await OrderService(mock_database).create_order(
            factory.create_user(), self.order_data(plan, couponCode="GHOST")
        )

        mock_database.coupons.update_one.assert_not_called()
        assert mock_order_class.call_args.kwargs["couponId"] is None


class TestUsersWithOrders:
    def test_summary_totals(self, factory):
        now = datetime.now(UTC)
        user = factory.create_user()
        orders = [
            factory.create_order(status=OrderStatus.SUCCESS, finalAmount=80.0),
            factory.create_order(
                status=OrderStatus.SUCCESS,
                finalAmount=100.0,
                planExpiryDate=now - timedelta(days=1),
            ),
            factory.create_order(status=OrderStatus.PENDING, finalAmount=50.0),
        ]

        summary = summarize_user_orders(user, orders, now)

        assert summary.totalOrders == 3
        assert summary.totalSpent == 230.0
        assert summary.activePlans == 1
        assert len(summary.orders) == 3

    def test_lifetime_plan_counts_as_active(self, factory):
        order = factory.create_order(status=OrderStatus.SUCCESS, planExpiryDate=None)

        summary = summarize_user_orders(factory.create_user(), [order], datetime.now(UTC))

        assert summary.activePlans == 1
