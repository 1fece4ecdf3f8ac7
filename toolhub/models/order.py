from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from beanie import Document, Insert, Replace, before_event
from pydantic import Field

from toolhub.models.plan import Currency
from toolhub.utils.validators import PyObjectId


class OrderStatus:
    """Order status constants."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod:
    """How an order is paid."""

    RAZORPAY = "razorpay"
    FREE = "free"


def compute_final_amount(original_amount: float, discount_amount: float) -> float:
    """Payable amount after discount, never negative."""
    return round(max(0.0, original_amount - discount_amount), 2)


class Order(Document):
    """Purchase record linking a user, a plan and the payment outcome."""

    userId: PyObjectId
    planId: PyObjectId
    planName: str
    originalAmount: float = Field(..., ge=0)
    discountAmount: float = Field(0, ge=0)
    finalAmount: float = Field(..., ge=0)
    couponId: PyObjectId | None = None
    couponCode: str | None = None
    currency: Currency = Currency.INR
    paymentMethod: str = PaymentMethod.RAZORPAY
    gatewayOrderId: str | None = None
    gatewayPaymentId: str | None = None
    transactionId: str | None = None
    paymentDetails: dict[str, Any] | None = None
    status: str = Field(
        default=OrderStatus.PENDING,
        description="Order status: pending, success, failed, cancelled",
    )
    planActivationDate: datetime | None = None
    planExpiryDate: datetime | None = None
    notes: str | None = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "orders"
        indexes = [
            [("userId", 1), ("createdAt", -1)],
            [("status", 1)],
            [("gatewayOrderId", 1)],
        ]
