"""
Error response formatting for the PropMatch API.

Every failure leaves the API as ``{"error": {code, message, timestamp, details?, request_id}}``.
Store failures carry the rejected file or the failed operation in ``details``.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from propmatch.utils.exceptions import (
    APIException,
    ValidationError,
    UploadFailureError,
    PersistenceFailureError
)
import logging
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """Builds structured error responses and logs each failure once."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        error = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"error": error}

    @staticmethod
    def error_details(exception: APIException) -> Optional[List[Dict[str, Any]]]:
        """
        Per-error details for the response body.

        Field errors for rejected input, the rejected file for an upload
        failure and the failed operation for a persistence failure.
        """
        if isinstance(exception, ValidationError):
            return exception.field_errors
        if isinstance(exception, UploadFailureError):
            return [{
                "field": f"images -> {exception.filename}",
                "message": exception.reason,
                "type": "upload_failed",
            }]
        if isinstance(exception, PersistenceFailureError):
            return [{
                "field": None,
                "message": f"{exception.operation}: {exception.reason}",
                "type": "persistence_failed",
            }]
        return None

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Render an APIException raised by the service or the auth layer.

        Server-side failures (5xx) are logged as errors, caller mistakes as warnings.
        """
        request_id = _request_id()

        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=exception.error_code or "API_ERROR",
                message=exception.detail,
                details=ErrorHandlerService.error_details(exception),
                request_id=request_id
            ),
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(exception, request: Optional[Request] = None) -> JSONResponse:
        """Render request validation errors (query, path or form) as 422 with field details."""
        return ErrorHandlerService.handle_api_exception(
            ValidationError(
                "Request validation failed",
                field_errors=ErrorHandlerService.extract_field_errors(exception.errors())
            ),
            request
        )

    @staticmethod
    def extract_field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Flatten Pydantic error dicts into field/message/type entries."""
        return [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in errors
        ]

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Render plain HTTP exceptions such as unknown routes or methods."""
        request_id = _request_id()

        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={"request_id": request_id, "path": request.url.path if request else None}
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=f"HTTP_{exception.status_code}",
                message=str(exception.detail),
                request_id=request_id
            ),
            headers=exception.headers
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Render anything the service layer did not translate.

        Mutations wrap their database errors in PersistenceFailureError, so a
        bare SQLAlchemyError here comes from a read (listing, detail or lookups)
        and is reported as a failed read. Other exceptions get a generic 500
        without internals.
        """
        if isinstance(exception, SQLAlchemyError):
            logger.error(f"Unhandled database error: {type(exception).__name__}", exc_info=exception)
            return ErrorHandlerService.handle_api_exception(
                PersistenceFailureError("read properties", type(exception).__name__),
                request
            )

        request_id = _request_id()
        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {exception}",
            extra={"request_id": request_id, "path": request.url.path if request else None},
            exc_info=exception
        )

        return JSONResponse(
            status_code=500,
            content=ErrorHandlerService.format_error_response(
                error_code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred. Please try again later.",
                request_id=request_id
            )
        )


def _request_id() -> str:
    """Short identifier correlating a response with its log line."""
    return str(uuid.uuid4())[:8]
