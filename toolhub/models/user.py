from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from beanie import Document, Indexed, Insert, Replace, before_event
from pydantic import Field


class UserRole(str, Enum):
    """User role enumeration."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


class UserPlan:
    """Plan tier stored on the profile before any purchase."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class User(Document):
    """Profile of an identity-provider user (the content store's author)."""

    externalId: Indexed(str, unique=True)  # Identity provider uid
    email: Indexed(str, unique=True)
    name: str
    username: str
    image: str | None = None
    bio: str = ""
    plan: str = UserPlan.FREE
    role: UserRole = UserRole.USER
    isAdmin: bool = False
    phoneNumber: str | None = None
    isActive: bool = True
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def has_admin_access(self) -> bool:
        return self.isAdmin or self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "users"
        indexes = [
            [("role", 1)],
        ]
