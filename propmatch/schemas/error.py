"""
Error response schemas for API documentation.
Mirrors the body produced by ErrorHandlerService.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field that caused the error", examples=["images -> 0"])
    message: str = Field(..., description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier", examples=["image_invalid"])


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Request identifier for log correlation")
    details: Optional[List[ErrorDetail]] = Field(None, description="Field-level validation errors")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


ERROR_DESCRIPTIONS = {
    401: "Authentication required - missing, expired or invalid bearer token",
    404: "Property not found (or not owned by the caller)",
    422: "Validation failed - malformed field or image file",
    500: "Persistence failure - the database rejected the operation",
    502: "Upload failure - the object store rejected an image",
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary usable as a route's ``responses`` argument
    """
    return {
        code: {"description": ERROR_DESCRIPTIONS[code], "model": APIErrorResponse}
        for code in status_codes
        if code in ERROR_DESCRIPTIONS
    }
