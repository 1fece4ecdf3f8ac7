from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from beanie import Document, Indexed, Insert, Replace, before_event
from pydantic import Field, field_validator

from toolhub.utils.validators import PyObjectId, normalize_coupon_code


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Document):
    """Discount code with expiry and usage constraints."""

    code: Indexed(str, unique=True)
    discountType: DiscountType
    discountValue: float = Field(..., gt=0)
    expiryDate: datetime
    isActive: bool = True
    maxUses: int | None = Field(None, ge=1)  # None means unlimited
    currentUses: int = Field(0, ge=0)
    minOrderAmount: float = Field(0, ge=0)
    maxDiscountAmount: float | None = Field(None, gt=0)  # Percentage coupons only
    description: str | None = None
    createdBy: PyObjectId
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return normalize_coupon_code(v) if isinstance(v, str) else v

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "coupons"
        indexes = [
            [("isActive", 1), ("expiryDate", 1)],
        ]
