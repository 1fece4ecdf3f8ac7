"""Test cases for payment verification and result notification."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from toolhub.models.order import OrderStatus
from toolhub.models.payment import PaymentStatus
from toolhub.schemas.payment import PaymentVerifyRequest, RemoteOrderCreate
from toolhub.services.integrations.payment.razorpay_service import (
    RazorpayService,
    compute_payment_signature,
)
from toolhub.services.payment_events import PaymentStatusBroadcaster
from toolhub.services.payment_service import PaymentService

KEY_SECRET = "test_secret_value"


@pytest.fixture
def razorpay_service():
    return RazorpayService(key_id="rzp_test_key", key_secret=KEY_SECRET)


@pytest.fixture
def broadcaster():
    broadcaster = MagicMock(spec=PaymentStatusBroadcaster)
    broadcaster.publish = AsyncMock(return_value=1)
    return broadcaster


@pytest.fixture
def service(mock_database, razorpay_service, broadcaster):
    return PaymentService(
        mock_database, razorpay_service=razorpay_service, broadcaster=broadcaster
    )


def verify_request(signature: str | None = None, **overrides) -> PaymentVerifyRequest:
    data = {
        "razorpay_order_id": "order_ABC123",
        "razorpay_payment_id": "pay_XYZ789",
        "razorpay_signature": signature
        or compute_payment_signature("order_ABC123", "pay_XYZ789", KEY_SECRET),
        "plan": "Premium",
        "amount": 80,
    }
    data.update(overrides)
    return PaymentVerifyRequest(**data)


@pytest.fixture
def payment_instance():
    payment = MagicMock()
    payment.insert = AsyncMock()
    return payment


class TestVerifyPayment:
    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_valid_signature_completes_order(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        broadcaster,
        factory,
        payment_instance,
    ):
        user = factory.create_user()
        profile = factory.create_user(email=user.email)
        order = factory.create_order()
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=order)
        mock_user_class.find_one = AsyncMock(return_value=profile)

        status = await service.verify_payment(verify_request(), user)

        assert status == PaymentStatus.SUCCESS
        payment_instance.insert.assert_called_once()
        assert mock_payment_class.call_args.kwargs["status"] == PaymentStatus.SUCCESS
        mock_order_class.find_one.assert_called_once_with(
            {
                "gatewayOrderId": "order_ABC123",
                "status": {"$in": [OrderStatus.PENDING, OrderStatus.FAILED]},
                "userId": user.id,
            }
        )
        assert order.status == OrderStatus.SUCCESS
        assert order.gatewayPaymentId == "pay_XYZ789"
        order.save.assert_called_once()
        assert profile.plan == "Premium"
        profile.save.assert_called_once()

        event = broadcaster.publish.call_args.args[0]
        assert event["orderId"] == "order_ABC123"
        assert event["status"] == "success"
        assert event["user"]["email"] == user.email

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_invalid_signature_fails_order(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        broadcaster,
        factory,
        payment_instance,
    ):
        order = factory.create_order()
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=order)
        mock_user_class.find_one = AsyncMock()

        status = await service.verify_payment(
            verify_request(signature="0" * 64), factory.create_user()
        )

        assert status == PaymentStatus.FAILURE
        payment_instance.insert.assert_called_once()
        assert mock_payment_class.call_args.kwargs["status"] == PaymentStatus.FAILURE
        query = mock_order_class.find_one.call_args.args[0]
        assert query["status"] == {"$in": [OrderStatus.PENDING]}
        assert order.status == OrderStatus.FAILED
        mock_user_class.find_one.assert_not_called()
        assert broadcaster.publish.call_args.args[0]["status"] == "failure"

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_repeat_verification_is_idempotent(
        self, mock_payment_class, mock_order_class, service, broadcaster, factory
    ):
        mock_payment_class.find_one = AsyncMock(return_value=MagicMock())
        mock_order_class.find_one = AsyncMock()

        status = await service.verify_payment(verify_request(), factory.create_user())

        assert status == PaymentStatus.SUCCESS
        mock_payment_class.assert_not_called()
        mock_order_class.find_one.assert_not_called()
        broadcaster.publish.assert_not_called()

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_publish_failure_does_not_fail_verification(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        broadcaster,
        factory,
        payment_instance,
    ):
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=None)
        mock_user_class.find_one = AsyncMock(return_value=None)
        broadcaster.publish.side_effect = RuntimeError("socket gone")

        status = await service.verify_payment(verify_request(), factory.create_user())

        assert status == PaymentStatus.SUCCESS

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_forged_signature_cannot_touch_other_users_order(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        factory,
        payment_instance,
    ):
        owner = factory.create_user(email="owner@example.com")
        other = factory.create_user(email="other@example.com")
        order = factory.create_order(userId=owner.id)

        async def find_owned(query):
            owned = query.get("userId") == order.userId
            return order if owned and order.status in query["status"]["$in"] else None

        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(side_effect=find_owned)
        mock_user_class.find_one = AsyncMock(return_value=owner)

        status = await service.verify_payment(verify_request(signature="deadbeef"), other)

        assert status == PaymentStatus.FAILURE
        assert order.status == OrderStatus.PENDING
        order.save.assert_not_called()

        status = await service.verify_payment(verify_request(), owner)

        assert status == PaymentStatus.SUCCESS
        assert order.status == OrderStatus.SUCCESS

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_verified_payment_recovers_failed_order(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        factory,
        payment_instance,
    ):
        user = factory.create_user()
        order = factory.create_order(userId=user.id, status=OrderStatus.FAILED)
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=order)
        mock_user_class.find_one = AsyncMock(return_value=user)

        status = await service.verify_payment(verify_request(), user)

        assert status == PaymentStatus.SUCCESS
        assert order.status == OrderStatus.SUCCESS
        assert order.gatewayPaymentId == "pay_XYZ789"

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_plan_comes_from_order_not_request(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        factory,
        payment_instance,
    ):
        user = factory.create_user()
        profile = factory.create_user(email=user.email)
        order = factory.create_order(userId=user.id, planName="Basic")
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=order)
        mock_user_class.find_one = AsyncMock(return_value=profile)

        await service.verify_payment(verify_request(plan="Enterprise"), user)

        assert profile.plan == "Basic"

    @pytest.mark.asyncio
    @patch("toolhub.services.payment_service.User")
    @patch("toolhub.services.payment_service.Order")
    @patch("toolhub.services.payment_service.Payment")
    async def test_plan_from_request_without_order(
        self,
        mock_payment_class,
        mock_order_class,
        mock_user_class,
        service,
        factory,
        payment_instance,
    ):
        user = factory.create_user()
        profile = factory.create_user(email=user.email)
        mock_payment_class.find_one = AsyncMock(return_value=None)
        mock_payment_class.return_value = payment_instance
        mock_order_class.find_one = AsyncMock(return_value=None)
        mock_user_class.find_one = AsyncMock(return_value=profile)

        await service.verify_payment(verify_request(plan="Premium"), user)

        assert profile.plan == "Premium"


class TestCreateRemoteOrder:
    @pytest.mark.asyncio
    async def test_returns_gateway_order_id(self, mock_database, broadcaster):
        razorpay = MagicMock(spec=RazorpayService)
        razorpay.create_order = AsyncMock(
            return_value={"id": "order_NEW", "amount": 49900, "currency": "INR"}
        )
        service = PaymentService(
            mock_database, razorpay_service=razorpay, broadcaster=broadcaster
        )

        result = await service.create_remote_order(RemoteOrderCreate(amount=499))

        razorpay.create_order.assert_called_once_with(499, "INR")
        assert result.orderId == "order_NEW"
        assert result.amount == 49900
