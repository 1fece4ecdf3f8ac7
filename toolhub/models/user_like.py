from __future__ import annotations

from datetime import UTC, datetime

import pymongo
from beanie import Document
from bson import ObjectId
from pydantic import Field
from pymongo import IndexModel

from toolhub.utils.validators import PyObjectId


class LikedItemType:
    AI_TOOL = "aiTool"
    USEFUL_WEBSITE = "usefulWebsite"


def like_item_key(item_type: str, item_id: str | ObjectId) -> str:
    """Natural key of a liked item, e.g. ``aiTool:<id>``.

    Valid ids are written in canonical lower-case hex so the same item
    always maps to the same key.
    """
    if ObjectId.is_valid(item_id):
        item_id = str(ObjectId(item_id))
    return f"{item_type}:{item_id}"


class UserLike(Document):
    """A user's like of exactly one AI tool or useful website."""

    userId: PyObjectId
    userEmail: str
    aiToolId: PyObjectId | None = None
    usefulWebsiteId: PyObjectId | None = None
    itemKey: str
    likedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    class Settings:
        name = "user_likes"
        indexes = [
            IndexModel(
                [("userId", pymongo.ASCENDING), ("itemKey", pymongo.ASCENDING)],
                name="unique_user_item_like",
                unique=True,
            ),
        ]
