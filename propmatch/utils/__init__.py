"""
Utility modules for the PropMatch API.
"""

from .auth import (
    create_access_token,
    verify_token,
    TokenPayload,
    TokenIdentity
)

from .exceptions import (
    APIException,
    ValidationError,
    AuthenticationRequiredError,
    NotFoundOrForbiddenError,
    UploadFailureError,
    PersistenceFailureError,
    CleanupFailureError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "TokenPayload",
    "TokenIdentity",

    # Exceptions
    "APIException",
    "ValidationError",
    "AuthenticationRequiredError",
    "NotFoundOrForbiddenError",
    "UploadFailureError",
    "PersistenceFailureError",
    "CleanupFailureError",
]
