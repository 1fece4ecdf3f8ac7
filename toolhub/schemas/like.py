from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, model_validator

from toolhub.models.user_like import LikedItemType


class LikeTarget(BaseModel):
    """Reference to exactly one likeable item."""

    aiToolId: str | None = None
    usefulWebsiteId: str | None = None

    @model_validator(mode="after")
    def check_single_target(self):
        if bool(self.aiToolId) == bool(self.usefulWebsiteId):
            raise ValueError("Provide exactly one of aiToolId or usefulWebsiteId")
        return self

    @property
    def item_type(self) -> str:
        return LikedItemType.AI_TOOL if self.aiToolId else LikedItemType.USEFUL_WEBSITE

    @property
    def item_id(self) -> str:
        return self.aiToolId or self.usefulWebsiteId


class LikeResponse(BaseModel):
    id: str
    aiToolId: str | None = None
    usefulWebsiteId: str | None = None
    likedAt: datetime

    @classmethod
    def from_document(cls, like) -> LikeResponse:
        return cls(
            id=str(like.id),
            aiToolId=str(like.aiToolId) if like.aiToolId else None,
            usefulWebsiteId=str(like.usefulWebsiteId) if like.usefulWebsiteId else None,
            likedAt=like.likedAt,
        )


class LikeCheckResponse(BaseModel):
    hasLiked: bool
    likeData: LikeResponse | None = None
