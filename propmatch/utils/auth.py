"""
Authentication utilities for verifying identity provider JWTs.
Tokens are issued elsewhere; this module decodes them and exposes the caller's user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from propmatch.config import settings
import uuid
import logging

logger = logging.getLogger(__name__)


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: uuid.UUID, email: Optional[str], role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from a decoded claims dictionary."""
        return cls(
            user_id=uuid.UUID(data["sub"]),
            email=data.get("email"),
            role=data.get("role"),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def create_access_token(
    user_id: uuid.UUID,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT in the identity provider's format.

    Used by local tooling and tests; production tokens come from the provider.

    Args:
        user_id: User's UUID
        email: Optional email claim
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))

    to_encode = {
        "sub": str(user_id),
        "role": "authenticated",
        "exp": expire,
        "iat": now,
    }
    if email:
        to_encode["email"] = email
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode a JWT.

    Args:
        token: JWT token string

    Returns:
        TokenPayload for a valid token

    Raises:
        JWTError: If the token is invalid, expired or lacks a usable subject
    """
    options = {"verify_aud": bool(settings.jwt_audience)}
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options
    )

    if not payload.get("sub"):
        raise JWTError("Invalid token payload")

    try:
        return TokenPayload.from_dict(payload)
    except (KeyError, ValueError) as e:
        raise JWTError(f"Token validation error: {str(e)}")


class TokenIdentity:
    """
    Identity capability backed by a bearer token.

    ``current_user`` returns the verified user id, or None when the request
    carries no token or an unusable one.
    """

    def __init__(self, token: Optional[str]):
        self._token = token

    async def current_user(self) -> Optional[uuid.UUID]:
        if not self._token:
            return None

        try:
            return verify_token(self._token).user_id
        except JWTError as e:
            logger.warning(f"Rejected bearer token: {e}")
            return None
