from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from toolhub.models.user import UserRole
from toolhub.utils.validators import validate_phone_number


class UserSyncRequest(BaseModel):
    """Optional profile fields sent along with the identity token."""

    name: str | None = Field(None, max_length=200)
    username: str | None = Field(None, max_length=100)
    image: str | None = None
    bio: str | None = Field(None, max_length=1000)


class PhoneUpdateRequest(BaseModel):
    phoneNumber: str

    @field_validator("phoneNumber")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone_number(v)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    """Schema for user response."""

    id: str
    externalId: str
    email: str
    name: str
    username: str
    image: str | None = None
    bio: str
    plan: str
    role: UserRole
    isAdmin: bool
    phoneNumber: str | None = None
    createdAt: datetime

    @classmethod
    def from_document(cls, user) -> UserResponse:
        return cls(
            id=str(user.id),
            externalId=user.externalId,
            email=user.email,
            name=user.name,
            username=user.username,
            image=user.image,
            bio=user.bio,
            plan=user.plan,
            role=user.role,
            isAdmin=user.isAdmin,
            phoneNumber=user.phoneNumber,
            createdAt=user.createdAt,
        )
