from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum

from beanie import Document, Insert, Replace, before_event
from pydantic import Field


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"


class PlanDuration(str, Enum):
    MONTH = "month"
    YEAR = "year"
    LIFETIME = "lifetime"


# Lifetime plans never expire, so they have no entry here
PLAN_DURATION_DAYS = {
    PlanDuration.MONTH: 30,
    PlanDuration.YEAR: 365,
}


def compute_plan_expiry(
    duration: PlanDuration | str, activated_at: datetime
) -> datetime | None:
    """Expiry date of a plan activated at ``activated_at``."""
    days = PLAN_DURATION_DAYS.get(PlanDuration(duration))
    if days is None:
        return None
    return activated_at + timedelta(days=days)


class Plan(Document):
    """Purchasable subscription tier."""

    name: str
    description: str
    features: list[str] = Field(default_factory=list)
    price: float = Field(..., ge=0)  # Major currency unit (rupees / dollars)
    currency: Currency = Currency.INR
    duration: PlanDuration = PlanDuration.MONTH
    isActive: bool = True
    isPopular: bool = False
    sortOrder: int = 0
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "plans"
        indexes = [
            [("isActive", 1), ("sortOrder", 1)],
        ]
