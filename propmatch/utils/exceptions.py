"""
Custom exception classes for PropMatch.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return self.detail


class ValidationError(APIException):
    """Malformed input, raised before any store is touched."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class AuthenticationRequiredError(APIException):
    """No identity could be resolved for the caller."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="AUTHENTICATION_REQUIRED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class NotFoundOrForbiddenError(APIException):
    """
    Target does not resolve under the caller's ownership filter.

    Missing and not-owned resources produce the same error so that callers
    cannot probe for the existence of other users' properties.
    """

    def __init__(self, resource: str = "Property", resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UploadFailureError(APIException):
    """Object store rejected a file."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to upload image '{filename}': {reason}",
            error_code="UPLOAD_FAILED"
        )
        self.filename = filename
        self.reason = reason


class PersistenceFailureError(APIException):
    """Relational store rejected an insert, update or delete."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {operation}: {reason}",
            error_code="PERSISTENCE_FAILED"
        )
        self.operation = operation
        self.reason = reason


class CleanupFailureError(Exception):
    """
    Best-effort removal of a file or metadata row failed.
    Only ever logged; never returned to a caller.
    """

    def __init__(self, target: str, reason: str):
        super().__init__(f"Cleanup of {target} failed: {reason}")
        self.target = target
        self.reason = reason
