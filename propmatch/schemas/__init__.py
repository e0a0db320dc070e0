"""
Pydantic schemas for request/response validation.
"""

from .property import (
    PropertyBase,
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertyMutationResponse,
    LookupResponse
)

from .error import (
    ErrorDetail,
    ErrorResponse,
    APIErrorResponse,
    get_error_responses
)

__all__ = [
    # Property
    "PropertyBase",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertyMutationResponse",
    "LookupResponse",

    # Errors
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse",
    "get_error_responses",
]
