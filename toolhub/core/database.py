from __future__ import annotations

import logging
from urllib.parse import urlparse

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure

from toolhub.core.config import settings

logger = logging.getLogger(__name__)


def extract_database_name_from_url(mongodb_url: str) -> str:
    """Extract database name from MongoDB URL"""
    try:
        parsed_url = urlparse(mongodb_url)
        database_name = parsed_url.path.lstrip("/")

        if not database_name:
            return settings.MONGODB_DATABASE

        return database_name
    except Exception as e:
        logger.warning(f"Could not extract database name from URL: {e}. Using default.")
        return settings.MONGODB_DATABASE


def mask_mongodb_url(mongodb_url: str) -> str:
    """Hide the password part of a MongoDB URL for logging."""
    if "@" not in mongodb_url:
        return mongodb_url

    parts = mongodb_url.split("@")
    if len(parts) != 2:
        return mongodb_url

    user_pass = parts[0].split("://")[-1]
    if ":" not in user_pass:
        return mongodb_url

    user, _ = user_pass.split(":", 1)
    return mongodb_url.replace(user_pass, f"{user}:***")


class Database:
    client: AsyncIOMotorClient | None = None
    database = None


db = Database()


async def get_database():
    """Get database instance"""
    return db.database


def document_models() -> list:
    """All Beanie documents registered with the database."""
    from toolhub.models.content import AiTool, UsefulWebsite
    from toolhub.models.coupon import Coupon
    from toolhub.models.notification import Notification
    from toolhub.models.order import Order
    from toolhub.models.payment import Payment
    from toolhub.models.plan import Plan
    from toolhub.models.user import User
    from toolhub.models.user_like import UserLike

    return [
        User,
        Plan,
        Coupon,
        Order,
        Payment,
        Notification,
        UserLike,
        AiTool,
        UsefulWebsite,
    ]


async def connect_to_mongo():
    """Create database connection"""
    try:
        db.client = AsyncIOMotorClient(settings.MONGODB_URL)

        database_name = extract_database_name_from_url(settings.MONGODB_URL)
        db.database = db.client[database_name]

        # Test the connection
        await db.client.admin.command("ping")

        logger.info(f"Connected to MongoDB at {mask_mongodb_url(settings.MONGODB_URL)}")

        await init_beanie(database=db.database, document_models=document_models())
        logger.info("Initialized Beanie")

    except ConnectionFailure as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error connecting to MongoDB: {e}")
        raise


async def close_mongo_connection():
    """Close database connection"""
    if db.client:
        db.client.close()
        logger.info("Disconnected from MongoDB")
