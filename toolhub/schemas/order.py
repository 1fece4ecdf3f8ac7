from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from toolhub.models.plan import Currency


class OrderCreate(BaseModel):
    """Schema for persisting a purchase."""

    planId: str = Field(..., description="Plan ID")
    originalAmount: float = Field(..., ge=0)
    discountAmount: float = Field(0, ge=0)
    finalAmount: float = Field(..., ge=0)
    couponCode: str | None = None
    paymentMethod: Literal["razorpay", "free"] = "razorpay"
    gatewayOrderId: str | None = Field(None, description="Gateway order id")
    gatewayPaymentId: str | None = None
    transactionId: str | None = None
    paymentDetails: dict[str, Any] | None = None
    notes: str | None = Field(None, max_length=1000)


class OrderResponse(BaseModel):
    """Order summary returned to clients."""

    id: str
    userId: str
    planId: str
    planName: str
    originalAmount: float
    discountAmount: float
    finalAmount: float
    couponUsed: str | None = None
    currency: Currency
    paymentMethod: str
    gatewayOrderId: str | None = None
    gatewayPaymentId: str | None = None
    status: str
    orderDate: datetime
    planActivationDate: datetime | None = None
    planExpiryDate: datetime | None = None

    @classmethod
    def from_document(cls, order) -> OrderResponse:
        return cls(
            id=str(order.id),
            userId=str(order.userId),
            planId=str(order.planId),
            planName=order.planName,
            originalAmount=order.originalAmount,
            discountAmount=order.discountAmount,
            finalAmount=order.finalAmount,
            couponUsed=order.couponCode,
            currency=order.currency,
            paymentMethod=order.paymentMethod,
            gatewayOrderId=order.gatewayOrderId,
            gatewayPaymentId=order.gatewayPaymentId,
            status=order.status,
            orderDate=order.createdAt,
            planActivationDate=order.planActivationDate,
            planExpiryDate=order.planExpiryDate,
        )
