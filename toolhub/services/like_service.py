from __future__ import annotations

import logging

from pymongo.errors import DuplicateKeyError

from toolhub.core.exceptions import ConflictException, NotFoundException
from toolhub.models.content import AiTool, UsefulWebsite
from toolhub.models.user import User
from toolhub.models.user_like import LikedItemType, UserLike, like_item_key
from toolhub.schemas.like import LikeTarget
from toolhub.utils.validators import parse_object_id

logger = logging.getLogger(__name__)

ITEM_MODELS = {
    LikedItemType.AI_TOOL: (AiTool, "ai_tools", "AI tool"),
    LikedItemType.USEFUL_WEBSITE: (UsefulWebsite, "useful_websites", "Useful website"),
}


class LikeService:
    """Service for user likes of AI tools and useful websites."""

    def __init__(self, db):
        self.db = db

    async def _ensure_item_exists(self, target: LikeTarget):
        model, _, resource = ITEM_MODELS[target.item_type]
        item_id = parse_object_id(target.item_id, resource)
        item = await model.find_one(model.id == item_id)
        if not item:
            raise NotFoundException(resource=resource, resource_id=target.item_id)
        return item_id

    async def _change_likes(self, target: LikeTarget, delta: int) -> None:
        _, collection, _ = ITEM_MODELS[target.item_type]
        query = {"_id": parse_object_id(target.item_id)}
        if delta < 0:
            query["likes"] = {"$gt": 0}
        await self.db[collection].update_one(query, {"$inc": {"likes": delta}})

    async def like(self, user: User, target: LikeTarget) -> UserLike:
        """
        Like an item once.

        Raises:
            NotFoundException: The item does not exist
            ConflictException: The user already likes the item
        """
        item_key = like_item_key(target.item_type, target.item_id)
        try:
            item_id = await self._ensure_item_exists(target)

            like = UserLike(
                userId=user.id,
                userEmail=user.email,
                aiToolId=item_id if target.item_type == LikedItemType.AI_TOOL else None,
                usefulWebsiteId=item_id
                if target.item_type == LikedItemType.USEFUL_WEBSITE
                else None,
                itemKey=item_key,
            )
            await like.insert()
            await self._change_likes(target, 1)

            logger.info(
                "Item liked",
                extra={"user_id": str(user.id), "item_key": item_key},
            )
            return like

        except DuplicateKeyError as e:
            raise ConflictException(
                "Item already liked", details={"itemKey": item_key}
            ) from e
        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error liking item",
                extra={"item_key": item_key, "error": str(e)},
                exc_info=True,
            )
            raise

    async def find_like(self, user: User, target: LikeTarget) -> UserLike | None:
        return await UserLike.find_one(
            {
                "userId": user.id,
                "itemKey": like_item_key(target.item_type, target.item_id),
            }
        )

    async def unlike(self, user: User, target: LikeTarget) -> None:
        """Remove a like; the item's counter never goes below zero."""
        try:
            like = await self.find_like(user, target)
            if not like:
                raise NotFoundException(resource="Like")

            await like.delete()
            await self._change_likes(target, -1)

            logger.info(
                "Item unliked",
                extra={"user_id": str(user.id), "item_key": like.itemKey},
            )

        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error unliking item",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise

    async def list_for_user(self, user: User) -> list[UserLike]:
        """The user's favourites, most recent first."""
        return await UserLike.find({"userId": user.id}).sort("-likedAt").to_list()
