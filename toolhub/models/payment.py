from __future__ import annotations

from datetime import UTC, datetime

from beanie import Document, Insert, Replace, before_event
from pydantic import Field

from toolhub.utils.validators import PyObjectId


class PaymentStatus:
    """Outcome of a signature verification."""

    SUCCESS = "success"
    FAILURE = "failure"


class Payment(Document):
    """One payment verification attempt, successful or not."""

    gatewayOrderId: str
    gatewayPaymentId: str
    signature: str
    status: str = Field(..., description="Verification outcome: success, failure")
    userId: PyObjectId | None = None
    userEmail: str | None = None
    plan: str
    amount: float | None = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "payments"
        indexes = [
            [("gatewayPaymentId", 1), ("status", 1)],
            [("createdAt", -1)],
        ]
