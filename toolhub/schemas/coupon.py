from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from toolhub.models.coupon import DiscountType


class CouponCreate(BaseModel):
    """Schema for creating a coupon."""

    code: str = Field(..., min_length=1, max_length=50)
    discountType: DiscountType
    discountValue: float = Field(..., gt=0)
    expiryDate: datetime
    maxUses: int | None = Field(None, ge=1)
    minOrderAmount: float = Field(0, ge=0)
    maxDiscountAmount: float | None = Field(None, gt=0)
    description: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_percentage(self):
        if self.discountType == DiscountType.PERCENTAGE and self.discountValue > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        return self


class CouponUpdate(BaseModel):
    """Schema for updating a coupon."""

    isActive: bool | None = None
    expiryDate: datetime | None = None
    maxUses: int | None = Field(None, ge=1)
    minOrderAmount: float | None = Field(None, ge=0)
    maxDiscountAmount: float | None = Field(None, gt=0)
    description: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_required_not_null(self):
        # maxUses, maxDiscountAmount and description may be cleared
        for field in ("isActive", "expiryDate", "minOrderAmount"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class CouponValidateRequest(BaseModel):
    """Schema for checking a coupon against an order amount."""

    code: str = Field(..., min_length=1)
    orderAmount: float = Field(..., gt=0)


class CouponResponse(BaseModel):
    """Schema for coupon response."""

    id: str
    code: str
    discountType: DiscountType
    discountValue: float
    expiryDate: datetime
    isActive: bool
    maxUses: int | None = None
    currentUses: int
    minOrderAmount: float
    maxDiscountAmount: float | None = None
    description: str | None = None
    createdBy: str
    createdAt: datetime

    @classmethod
    def from_document(cls, coupon) -> CouponResponse:
        return cls(
            id=str(coupon.id),
            code=coupon.code,
            discountType=coupon.discountType,
            discountValue=coupon.discountValue,
            expiryDate=coupon.expiryDate,
            isActive=coupon.isActive,
            maxUses=coupon.maxUses,
            currentUses=coupon.currentUses,
            minOrderAmount=coupon.minOrderAmount,
            maxDiscountAmount=coupon.maxDiscountAmount,
            description=coupon.description,
            createdBy=str(coupon.createdBy),
            createdAt=coupon.createdAt,
        )


class CouponSummary(BaseModel):
    code: str
    discountType: DiscountType
    discountValue: float
    description: str | None = None


class DiscountCalculation(BaseModel):
    originalAmount: float
    discountAmount: float
    finalAmount: float
    isFree: bool


class CouponValidateResponse(BaseModel):
    """Schema for coupon validation result."""

    coupon: CouponSummary
    calculation: DiscountCalculation
