"""Authentication dependencies.

Identity is delegated to the identity provider: requests carry the
provider's ID token as a bearer token, and profiles are looked up by the
provider's user id.
"""

from datetime import UTC, datetime

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from toolhub.core.exceptions import AuthorizationException, UnauthorizedException
from toolhub.models.user import User
from toolhub.utils.jwt import PyJWTError, verify_identity_token

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


class TokenData:
    """Verified identity of the caller."""

    def __init__(
        self,
        user_id: str,
        email: str,
        expires_at: datetime,
        name: str | None = None,
        picture: str | None = None,
    ):
        self.user_id = user_id
        self.email = email
        self.expires_at = expires_at
        self.name = name
        self.picture = picture


def get_authorization_header(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """
    Extract the bearer token from the Authorization header.

    Args:
        credentials: HTTP authorization credentials

    Returns:
        Token or None
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    return credentials.credentials or None


async def get_current_user_token(
    token: str | None = Depends(get_authorization_header),
) -> TokenData:
    """
    Verify the identity-provider token of the caller.

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if not token:
        raise UnauthorizedException("Authorization header missing")

    try:
        payload = verify_identity_token(token)
    except PyJWTError as e:
        raise UnauthorizedException(f"Invalid identity token: {str(e)}") from e

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise UnauthorizedException("Invalid token payload")

    return TokenData(
        user_id=user_id,
        email=email,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        name=payload.get("name"),
        picture=payload.get("picture"),
    )


async def get_current_user(
    token_data: TokenData = Depends(get_current_user_token),
) -> User:
    """
    Load the caller's profile.

    Raises:
        UnauthorizedException: If no profile was synced for the identity
    """
    user = await User.find_one(User.externalId == token_data.user_id)
    if not user:
        raise UnauthorizedException("User profile not found, sync the profile first")

    if not user.isActive:
        raise AuthorizationException("User account is disabled")

    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Require admin access.

    Raises:
        AuthorizationException: If the caller is not an admin
    """
    if not current_user.has_admin_access:
        raise AuthorizationException("Admin access required")

    return current_user
