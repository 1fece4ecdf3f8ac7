from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class RemoteOrderCreate(BaseModel):
    """Schema for creating a gateway order."""

    amount: float = Field(..., gt=0, description="Amount in the major currency unit")
    currency: str = Field("INR", min_length=1, max_length=3)


class RemoteOrderResponse(BaseModel):
    orderId: str
    amount: int = Field(..., description="Amount in the minor currency unit")
    currency: str


class PaymentVerifyRequest(BaseModel):
    """Fields returned by the gateway checkout plus the purchased plan."""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    plan: str = Field(..., min_length=1, description="Plan name")
    amount: float | None = Field(None, ge=0)


class PaymentVerifyResponse(BaseModel):
    status: Literal["success", "failure"]
    orderId: str


class PaymentRecordResponse(BaseModel):
    """Schema for a stored verification attempt."""

    id: str
    orderId: str
    paymentId: str
    status: str
    userEmail: str | None = None
    plan: str
    amount: float | None = None
    createdAt: datetime

    @classmethod
    def from_document(cls, payment) -> PaymentRecordResponse:
        return cls(
            id=str(payment.id),
            orderId=payment.gatewayOrderId,
            paymentId=payment.gatewayPaymentId,
            status=payment.status,
            userEmail=payment.userEmail,
            plan=payment.plan,
            amount=payment.amount,
            createdAt=payment.createdAt,
        )


class PaymentStatusEvent(BaseModel):
    """Real-time event pushed to payment-status subscribers."""

    orderId: str
    status: str
    user: dict[str, str | None] | None = None
