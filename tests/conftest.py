"""Test configuration and fixtures."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from bson import ObjectId
from fastapi import FastAPI

from toolhub.core.database import get_database
from toolhub.core.error_handlers import register_exception_handlers
from toolhub.models.coupon import Coupon, DiscountType
from toolhub.models.order import Order, OrderStatus, PaymentMethod
from toolhub.models.plan import Currency, Plan, PlanDuration
from toolhub.models.user import User, UserRole


def create_test_app(router, prefix: str = "", db=None) -> FastAPI:
    """Create a test FastAPI app with one router and the exception handlers."""
    app = FastAPI()
    app.include_router(router, prefix=prefix)
    register_exception_handlers(app)

    mock_db = db if db is not None else MagicMock()
    app.dependency_overrides[get_database] = lambda: mock_db

    return app


@pytest.fixture
def mock_database():
    """Mock Motor database with the raw collections services update directly."""
    db = MagicMock()
    for name in ("coupons", "notifications", "ai_tools", "useful_websites"):
        collection = MagicMock()
        collection.update_one = AsyncMock(
            return_value=MagicMock(modified_count=1, matched_count=1)
        )
        collection.update_many = AsyncMock(
            return_value=MagicMock(modified_count=0, matched_count=0)
        )
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
        setattr(db, name, collection)

    db.__getitem__ = Mock(side_effect=lambda name: getattr(db, name))
    return db


def make_query(result):
    """Chainable Beanie FindMany stand-in resolving to ``result``."""
    query = MagicMock()
    query.sort.return_value = query
    query.skip.return_value = query
    query.limit.return_value = query
    query.to_list = AsyncMock(return_value=result)
    query.count = AsyncMock(return_value=len(result) if isinstance(result, list) else result)
    return query


class TestDataFactory:
    """Factory for creating test documents."""

    @staticmethod
    def create_user(**overrides):
        user = Mock(spec=User)
        user.id = overrides.pop("id", ObjectId())
        user.externalId = "uid_123"
        user.email = "test@example.com"
        user.name = "Test User"
        user.username = "test"
        user.image = None
        user.bio = ""
        user.plan = "free"
        user.role = UserRole.USER
        user.isAdmin = False
        user.phoneNumber = None
        user.isActive = True
        user.createdAt = datetime.now(UTC)
        user.updatedAt = datetime.now(UTC)
        for field, value in overrides.items():
            setattr(user, field, value)
        user.has_admin_access = user.isAdmin or user.role in (
            UserRole.ADMIN,
            UserRole.SUPER_ADMIN,
        )
        user.save = AsyncMock()
        return user

    @staticmethod
    def create_plan(**overrides):
        plan = Mock(spec=Plan)
        plan.id = overrides.pop("id", ObjectId())
        plan.name = "Premium"
        plan.description = "All features"
        plan.features = ["Unlimited submissions"]
        plan.price = 100.0
        plan.currency = Currency.INR
        plan.duration = PlanDuration.MONTH
        plan.isActive = True
        plan.isPopular = False
        plan.sortOrder = 0
        plan.createdAt = datetime.now(UTC)
        plan.updatedAt = datetime.now(UTC)
        for field, value in overrides.items():
            setattr(plan, field, value)
        plan.save = AsyncMock()
        return plan

    @staticmethod
    def create_coupon(**overrides):
        coupon = Mock(spec=Coupon)
        coupon.id = overrides.pop("id", ObjectId())
        coupon.code = "SAVE20"
        coupon.discountType = DiscountType.PERCENTAGE
        coupon.discountValue = 20
        coupon.expiryDate = datetime.now(UTC) + timedelta(days=30)
        coupon.isActive = True
        coupon.maxUses = None
        coupon.currentUses = 0
        coupon.minOrderAmount = 0
        coupon.maxDiscountAmount = None
        coupon.description = "20% off"
        coupon.createdBy = ObjectId()
        coupon.createdAt = datetime.now(UTC)
        for field, value in overrides.items():
            setattr(coupon, field, value)
        coupon.save = AsyncMock()
        coupon.delete = AsyncMock()
        return coupon

    @staticmethod
    def create_order(**overrides):
        order = Mock(spec=Order)
        order.id = overrides.pop("id", ObjectId())
        order.userId = ObjectId()
        order.planId = ObjectId()
        order.planName = "Premium"
        order.originalAmount = 100.0
        order.discountAmount = 0.0
        order.finalAmount = 100.0
        order.couponId = None
        order.couponCode = None
        order.currency = Currency.INR
        order.paymentMethod = PaymentMethod.RAZORPAY
        order.gatewayOrderId = "order_ABC123"
        order.gatewayPaymentId = None
        order.status = OrderStatus.PENDING
        order.planActivationDate = datetime.now(UTC)
        order.planExpiryDate = datetime.now(UTC) + timedelta(days=30)
        order.createdAt = datetime.now(UTC)
        for field, value in overrides.items():
            setattr(order, field, value)
        order.save = AsyncMock()
        return order


@pytest.fixture
def factory():
    return TestDataFactory()


@pytest.fixture
def sample_user(factory):
    return factory.create_user()


@pytest.fixture
def admin_user(factory):
    return factory.create_user(
        email="admin@example.com", role=UserRole.ADMIN, isAdmin=True
    )
