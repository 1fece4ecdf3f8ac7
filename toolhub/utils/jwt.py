"""Identity-provider token utilities."""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import PyJWTError

from toolhub.core.config import settings


class IdentityTokenManager:
    """Verifies ID tokens issued by the identity provider.

    Tokens are HS256 JWTs signed with a secret shared with the provider.
    ``sub`` is the provider's user id; ``email``, ``name`` and ``picture``
    describe the user.
    """

    REQUIRED_CLAIMS = ("sub", "email", "exp")

    def __init__(self):
        self.secret_key = settings.IDENTITY_JWT_SECRET
        self.algorithm = settings.IDENTITY_JWT_ALGORITHM
        self.issuer = settings.IDENTITY_JWT_ISSUER
        self.audience = settings.IDENTITY_JWT_AUDIENCE

    def create_token(
        self,
        user_id: str,
        email: str,
        name: str | None = None,
        picture: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Issue a token the way the identity provider does.

        Used by local tooling and tests; production tokens come from the
        provider itself.
        """
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": user_id,
            "email": email,
            "iat": now,
            "nbf": now,
            "exp": now + (expires_delta or timedelta(hours=1)),
        }
        if name:
            payload["name"] = name
        if picture:
            payload["picture"] = picture
        if self.issuer:
            payload["iss"] = self.issuer
        if self.audience:
            payload["aud"] = self.audience

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a token.

        Args:
            token: Encoded JWT

        Returns:
            Decoded claims

        Raises:
            PyJWTError: If the token is invalid, expired or missing claims
        """
        options: dict[str, Any] = {"require": list(self.REQUIRED_CLAIMS)}
        if not self.audience:
            options["verify_aud"] = False

        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            audience=self.audience,
            issuer=self.issuer,
            options=options,
        )


identity_token_manager = IdentityTokenManager()


def verify_identity_token(token: str) -> dict[str, Any]:
    """Verify an identity-provider token and return its claims."""
    return identity_token_manager.verify_token(token)


def create_identity_token(user_id: str, email: str, **kwargs: Any) -> str:
    """Create a token signed with the shared identity secret."""
    return identity_token_manager.create_token(user_id, email, **kwargs)


__all__ = [
    "IdentityTokenManager",
    "PyJWTError",
    "create_identity_token",
    "identity_token_manager",
    "verify_identity_token",
]
