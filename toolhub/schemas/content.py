from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from toolhub.models.content import PricingType

StatusValue = Literal["pending", "approved", "rejected"]


def check_pricing_types(types: list[str]) -> list[str]:
    invalid = [t for t in types if t not in PricingType.ALL]
    if invalid:
        raise ValueError(f"Invalid pricing types: {', '.join(invalid)}")
    return list(dict.fromkeys(types))


class AiToolCreate(BaseModel):
    """Schema for submitting an AI tool."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str = Field(..., min_length=1, max_length=100)
    subCategory: str = Field("", max_length=100)
    types: list[str] = Field(default_factory=list)
    toolImage: str | None = None
    toolWebsiteURL: str = Field(..., min_length=1)
    pitch: str = ""

    @field_validator("types")
    @classmethod
    def validate_types(cls, v):
        return check_pricing_types(v)


class AiToolUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=2000)
    category: str | None = Field(None, min_length=1, max_length=100)
    subCategory: str | None = None
    types: list[str] | None = None
    toolImage: str | None = None
    toolWebsiteURL: str | None = None
    pitch: str | None = None
    autoIncrementViews: bool | None = None
    autoIncrementLikes: bool | None = None

    @field_validator("types")
    @classmethod
    def validate_types(cls, v):
        if v is None:
            return v
        return check_pricing_types(v)


class AiToolResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    subCategory: str
    types: list[str]
    toolImage: str | None = None
    toolWebsiteURL: str
    pitch: str
    slug: str
    views: int
    likes: int
    status: str
    authorId: str
    createdAt: datetime

    @classmethod
    def from_document(cls, tool) -> AiToolResponse:
        return cls(
            id=str(tool.id),
            title=tool.title,
            description=tool.description,
            category=tool.category,
            subCategory=tool.subCategory,
            types=tool.types,
            toolImage=tool.toolImage,
            toolWebsiteURL=tool.toolWebsiteURL,
            pitch=tool.pitch,
            slug=tool.slug,
            views=tool.views,
            likes=tool.likes,
            status=tool.status,
            authorId=str(tool.authorId),
            createdAt=tool.createdAt,
        )


class UsefulWebsiteCreate(BaseModel):
    """Schema for submitting a useful website."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str = Field(..., min_length=1, max_length=100)
    websiteURL: str = Field(..., min_length=1)
    websiteImage: str | None = None
    pitch: str = ""


class UsefulWebsiteUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=2000)
    category: str | None = Field(None, min_length=1, max_length=100)
    websiteURL: str | None = None
    websiteImage: str | None = None
    pitch: str | None = None
    autoIncrementViews: bool | None = None


class UsefulWebsiteResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    websiteURL: str
    websiteImage: str
    pitch: str
    views: int
    likes: int
    status: str
    authorId: str
    createdAt: datetime

    @classmethod
    def from_document(cls, website) -> UsefulWebsiteResponse:
        return cls(
            id=str(website.id),
            title=website.title,
            description=website.description,
            category=website.category,
            websiteURL=website.websiteURL,
            websiteImage=website.websiteImage,
            pitch=website.pitch,
            views=website.views,
            likes=website.likes,
            status=website.status,
            authorId=str(website.authorId),
            createdAt=website.createdAt,
        )


class ApproveRequest(BaseModel):
    """Bulk moderation request."""

    ids: list[str] = Field(..., min_length=1)


class ApproveResponse(BaseModel):
    approved: int


class StatusUpdate(BaseModel):
    status: StatusValue


class CountersUpdate(BaseModel):
    views: int | None = Field(None, ge=0)
    likes: int | None = Field(None, ge=0)
