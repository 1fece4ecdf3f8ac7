from __future__ import annotations

from datetime import UTC, datetime

from beanie import Document, Indexed, Insert, Replace, before_event
from pydantic import Field

from toolhub.utils.validators import PyObjectId


class ContentStatus:
    """Moderation state of a submission."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


class PricingType:
    FREE = "Free"
    PAID = "Paid"
    CREDIT_BASED = "Credit-Based"

    ALL = (FREE, PAID, CREDIT_BASED)


class AiTool(Document):
    """An AI tool submitted by a user."""

    title: str
    description: str
    category: str
    subCategory: str = ""
    types: list[str] = Field(default_factory=list)
    toolImage: str | None = None
    toolWebsiteURL: str
    pitch: str = ""
    slug: Indexed(str, unique=True)
    views: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    autoIncrementViews: bool = True
    autoIncrementLikes: bool = False
    status: str = ContentStatus.PENDING
    authorId: PyObjectId
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "ai_tools"
        indexes = [
            [("status", 1), ("category", 1)],
            [("authorId", 1)],
        ]


class UsefulWebsite(Document):
    """A useful website submitted by a user."""

    title: str
    description: str
    category: str
    websiteURL: str
    normalizedUrl: Indexed(str, unique=True)
    websiteImage: str = "/logo.png"
    pitch: str = ""
    views: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    autoIncrementViews: bool = True
    status: str = ContentStatus.PENDING
    authorId: PyObjectId
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @before_event([Insert, Replace])
    def set_timestamps(self):
        now = datetime.now(UTC)
        if self.createdAt is None:
            self.createdAt = now
        self.updatedAt = now

    class Settings:
        name = "useful_websites"
        indexes = [
            [("status", 1), ("category", 1)],
            [("authorId", 1)],
        ]
