from __future__ import annotations

import logging
from datetime import UTC, datetime

from toolhub.core.auth_dependencies import TokenData
from toolhub.core.config import settings
from toolhub.core.exceptions import NotFoundException
from toolhub.models.user import User, UserRole
from toolhub.schemas.user import UserSyncRequest
from toolhub.utils.validators import parse_object_id

logger = logging.getLogger(__name__)


def is_admin_email(email: str, admin_emails: list[str] | None = None) -> bool:
    admins = settings.ADMIN_EMAILS if admin_emails is None else admin_emails
    return email.strip().lower() in {admin.strip().lower() for admin in admins}


def build_profile_fields(
    token_data: TokenData,
    profile: UserSyncRequest | None = None,
    admin_emails: list[str] | None = None,
) -> dict:
    """Fields of a profile created on a user's first sign-in."""
    profile = profile or UserSyncRequest()
    is_admin = is_admin_email(token_data.email, admin_emails)
    return {
        "externalId": token_data.user_id,
        "email": token_data.email,
        "name": profile.name or token_data.name or token_data.email,
        "username": profile.username
        or token_data.email.split("@")[0]
        or token_data.user_id,
        "image": profile.image or token_data.picture,
        "bio": profile.bio or "",
        "isAdmin": is_admin,
        "role": UserRole.ADMIN if is_admin else UserRole.USER,
    }


class UserService:
    """Service for profiles of identity-provider users."""

    def __init__(self, db):
        self.db = db

    async def sync_profile(
        self, token_data: TokenData, profile: UserSyncRequest | None = None
    ) -> tuple[User, bool]:
        """
        Create the caller's profile on first sight.

        A profile found only by email is relinked to the token's identity so
        later requests resolve it by ``externalId``.

        Returns:
            The profile and whether it was created
        """
        try:
            user = await User.find_one(User.externalId == token_data.user_id)
            if user:
                return user, False

            # Same person under a new identity-provider account
            user = await User.find_one(User.email == token_data.email)
            if user:
                user.externalId = token_data.user_id
                user.updatedAt = datetime.now(UTC)
                await user.save()
                logger.info(
                    "Profile linked to identity",
                    extra={"user_id": str(user.id), "external_id": token_data.user_id},
                )
                return user, False

            user = User(**build_profile_fields(token_data, profile))
            await user.insert()

            logger.info(
                "Profile created",
                extra={"user_id": str(user.id), "is_admin": user.isAdmin},
            )
            return user, True

        except Exception as e:
            logger.error(
                "Error syncing profile",
                extra={"external_id": token_data.user_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def get_user(self, user_id: str) -> User:
        user = await User.find_one(User.id == parse_object_id(user_id, "User"))
        if not user:
            raise NotFoundException(resource="User", resource_id=user_id)
        return user

    async def list_users(self, skip: int = 0, limit: int = 100) -> list[User]:
        try:
            users = await User.find().sort("-createdAt").skip(skip).limit(limit).to_list()
            logger.info("Users listed", extra={"count": len(users)})
            return users
        except Exception as e:
            logger.error("Error listing users", extra={"error": str(e)}, exc_info=True)
            raise

    async def update_role(self, user_id: str, role: UserRole) -> User:
        """Change a user's role; any admin role grants admin access."""
        try:
            user = await self.get_user(user_id)
            user.role = role
            user.isAdmin = role != UserRole.USER
            user.updatedAt = datetime.now(UTC)
            await user.save()

            logger.info(
                "User role updated",
                extra={"user_id": user_id, "role": role.value},
            )
            return user

        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error updating user role",
                extra={"user_id": user_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def update_phone(self, user: User, phone_number: str) -> User:
        user.phoneNumber = phone_number
        user.updatedAt = datetime.now(UTC)
        await user.save()
        logger.info("Phone number updated", extra={"user_id": str(user.id)})
        return user
