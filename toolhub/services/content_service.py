from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from toolhub.core.exceptions import ConflictException, NotFoundException, ValidationException
from toolhub.models.content import AiTool, ContentStatus, UsefulWebsite
from toolhub.models.user import User
from toolhub.schemas.content import (
    AiToolCreate,
    CountersUpdate,
    UsefulWebsiteCreate,
    UsefulWebsiteUpdate,
)
from toolhub.utils.validators import normalize_url, parse_object_id, slugify

logger = logging.getLogger(__name__)


def build_listing_query(
    category: str | None = None, search: str | None = None
) -> dict:
    """Approved submissions, optionally by category and free-text search."""
    query: dict = {"status": ContentStatus.APPROVED}
    if category:
        query["category"] = {"$regex": f"^{re.escape(category)}$", "$options": "i"}
    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"category": pattern},
        ]
    return query


class ContentService:
    """Moderated user submissions of one kind."""

    model: type = AiTool
    collection: str = "ai_tools"
    resource: str = "AI tool"

    def __init__(self, db):
        self.db = db

    async def get(self, item_id: str):
        item = await self.model.find_one(
            self.model.id == parse_object_id(item_id, self.resource)
        )
        if not item:
            raise NotFoundException(resource=self.resource, resource_id=item_id)
        return item

    async def _insert(self, item, conflict_message: str):
        try:
            await item.insert()
        except DuplicateKeyError as e:
            raise ConflictException(conflict_message) from e

        logger.info(
            "Submission created",
            extra={
                "resource": self.resource,
                "item_id": str(item.id),
                "author_id": str(item.authorId),
            },
        )
        return item

    async def list_approved(
        self,
        category: str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list:
        try:
            query = build_listing_query(category, search)
            return (
                await self.model.find(query)
                .sort("-createdAt")
                .skip(skip)
                .limit(limit)
                .to_list()
            )
        except Exception as e:
            logger.error(
                "Error listing submissions",
                extra={"resource": self.resource, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_by_author(self, author: User) -> list:
        return await self.model.find({"authorId": author.id}).sort("-createdAt").to_list()

    async def increment_views(self, item_id: str) -> int:
        """Count a view unless the item's view counter is frozen."""
        oid = parse_object_id(item_id, self.resource)
        result = await self.db[self.collection].update_one(
            {"_id": oid, "autoIncrementViews": True}, {"$inc": {"views": 1}}
        )
        if result.matched_count == 0:
            # Either missing or frozen; only the former is an error
            await self.get(item_id)
        return result.modified_count

    async def approve(self, item_ids: list[str]) -> int:
        """Approve pending submissions in bulk."""
        oids = [parse_object_id(item_id, self.resource) for item_id in item_ids]
        result = await self.db[self.collection].update_many(
            {"_id": {"$in": oids}, "status": {"$ne": ContentStatus.APPROVED}},
            {
                "$set": {
                    "status": ContentStatus.APPROVED,
                    "updatedAt": datetime.now(UTC),
                }
            },
        )
        logger.info(
            "Submissions approved",
            extra={"resource": self.resource, "count": result.modified_count},
        )
        return result.modified_count

    async def update_status(self, item_id: str, status: str):
        if status not in ContentStatus.ALL:
            raise ValidationException(f"Invalid status: {status}")

        item = await self.get(item_id)
        item.status = status
        item.updatedAt = datetime.now(UTC)
        await item.save()

        logger.info(
            "Submission status updated",
            extra={"resource": self.resource, "item_id": item_id, "status": status},
        )
        return item

    async def set_counters(self, item_id: str, counters: CountersUpdate):
        item = await self.get(item_id)
        for field, value in counters.model_dump(exclude_none=True).items():
            setattr(item, field, value)
        item.updatedAt = datetime.now(UTC)
        await item.save()

        logger.info(
            "Submission counters set",
            extra={"resource": self.resource, "item_id": item_id},
        )
        return item

    async def update(self, item_id: str, update: BaseModel):
        item = await self.get(item_id)
        for field, value in self._update_fields(update).items():
            setattr(item, field, value)
        item.updatedAt = datetime.now(UTC)

        try:
            await item.save()
        except DuplicateKeyError as e:
            raise ConflictException(f"{self.resource} already exists") from e

        logger.info(
            "Submission updated",
            extra={"resource": self.resource, "item_id": item_id},
        )
        return item

    def _update_fields(self, update: BaseModel) -> dict:
        return update.model_dump(exclude_unset=True)

    async def delete(self, item_id: str) -> None:
        item = await self.get(item_id)
        await item.delete()
        logger.info(
            "Submission deleted",
            extra={"resource": self.resource, "item_id": item_id},
        )


class AiToolService(ContentService):
    model = AiTool
    collection = "ai_tools"
    resource = "AI tool"

    async def submit(self, data: AiToolCreate, author: User) -> AiTool:
        """Submit a tool for moderation."""
        slug = slugify(data.title)
        if not slug:
            raise ValidationException("Title must contain letters or digits")

        tool = AiTool(
            **data.model_dump(),
            slug=slug,
            status=ContentStatus.PENDING,
            authorId=author.id,
        )
        return await self._insert(tool, "An AI tool with this title already exists")


class UsefulWebsiteService(ContentService):
    model = UsefulWebsite
    collection = "useful_websites"
    resource = "Useful website"

    async def submit(self, data: UsefulWebsiteCreate, author: User) -> UsefulWebsite:
        """Submit a website for moderation."""
        fields = data.model_dump(exclude_none=True)
        website = UsefulWebsite(
            **fields,
            normalizedUrl=normalize_url(data.websiteURL),
            status=ContentStatus.PENDING,
            authorId=author.id,
        )
        return await self._insert(website, "This website has already been submitted")

    def _update_fields(self, update: UsefulWebsiteUpdate) -> dict:
        fields = update.model_dump(exclude_unset=True)
        if fields.get("websiteURL"):
            fields["normalizedUrl"] = normalize_url(fields["websiteURL"])
        return fields
