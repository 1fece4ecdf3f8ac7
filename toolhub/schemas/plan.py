from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from toolhub.models.plan import Currency, PlanDuration


class PlanCreate(BaseModel):
    """Schema for creating a plan."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    features: list[str] = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Price in the major currency unit")
    currency: Currency = Currency.INR
    duration: PlanDuration = PlanDuration.MONTH
    isActive: bool = True
    isPopular: bool = False
    sortOrder: int = 0


class PlanUpdate(BaseModel):
    """Schema for updating a plan."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    features: list[str] | None = None
    price: float | None = Field(None, ge=0)
    currency: Currency | None = None
    duration: PlanDuration | None = None
    isActive: bool | None = None
    isPopular: bool | None = None
    sortOrder: int | None = None


class PlanResponse(BaseModel):
    """Schema for plan response."""

    id: str
    name: str
    description: str
    features: list[str]
    price: float
    currency: Currency
    duration: PlanDuration
    isActive: bool
    isPopular: bool
    sortOrder: int
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_document(cls, plan) -> PlanResponse:
        return cls(
            id=str(plan.id),
            name=plan.name,
            description=plan.description,
            features=plan.features,
            price=plan.price,
            currency=plan.currency,
            duration=plan.duration,
            isActive=plan.isActive,
            isPopular=plan.isPopular,
            sortOrder=plan.sortOrder,
            createdAt=plan.createdAt,
            updatedAt=plan.updatedAt,
        )
