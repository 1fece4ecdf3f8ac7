from __future__ import annotations

from pydantic import BaseModel

from toolhub.schemas.order import OrderResponse


class UserOrdersSummary(BaseModel):
    """One user's purchase history in the admin report."""

    userId: str
    email: str | None = None
    name: str | None = None
    plan: str | None = None
    orders: list[OrderResponse]
    totalOrders: int
    totalSpent: float
    activePlans: int


class UsersWithOrdersReport(BaseModel):
    users: list[UserOrdersSummary]
    totalUsers: int
    totalOrders: int
    totalRevenue: float
