"""
Tests for bearer token identity and structured error responses.
"""

import json
import uuid
from datetime import timedelta

import pytest
from jose import JWTError, jwt
from sqlalchemy.exc import OperationalError

from propmatch.config import settings
from propmatch.services.error_handler import ErrorHandlerService
from propmatch.utils.auth import TokenIdentity, create_access_token, verify_token
from propmatch.utils.exceptions import (
    AuthenticationRequiredError,
    NotFoundOrForbiddenError,
    PersistenceFailureError,
    UploadFailureError,
    ValidationError
)


class TestTokenIdentity:

    def test_verify_round_trip(self):
        user_id = uuid.uuid4()

        payload = verify_token(create_access_token(user_id, email="agent@example.com"))

        assert payload.user_id == user_id
        assert payload.email == "agent@example.com"
        assert payload.role == "authenticated"

    def test_expired_token(self):
        token = create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-10))

        with pytest.raises(JWTError):
            verify_token(token)

    def test_wrong_audience(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "aud": "someone-else", "exp": 9999999999},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm
        )

        with pytest.raises(JWTError):
            verify_token(token)

    def test_subject_must_be_a_uuid(self):
        token = jwt.encode(
            {"sub": "not-a-uuid", "aud": settings.jwt_audience, "exp": 9999999999},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm
        )

        with pytest.raises(JWTError):
            verify_token(token)

    @pytest.mark.asyncio
    async def test_current_user(self):
        user_id = uuid.uuid4()

        assert await TokenIdentity(create_access_token(user_id)).current_user() == user_id
        assert await TokenIdentity(None).current_user() is None
        assert await TokenIdentity("garbage").current_user() is None


class TestErrorResponses:

    def body(self, response):
        return json.loads(response.body)

    def test_not_found_or_forbidden(self):
        response = ErrorHandlerService.handle_api_exception(NotFoundOrForbiddenError("Property", "abc"))

        error = self.body(response)["error"]
        assert response.status_code == 404
        assert error["code"] == "NOT_FOUND"
        assert error["message"] == "Property not found with ID: abc"
        assert "timestamp" in error
        assert "request_id" in error

    def test_authentication_required_sets_challenge(self):
        response = ErrorHandlerService.handle_api_exception(AuthenticationRequiredError())

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_validation_error_includes_field_details(self):
        exc = ValidationError("Invalid property data", field_errors=[
            {"field": "rate", "message": "Input should be less than or equal to 5", "type": "less_than_equal"}
        ])

        error = self.body(ErrorHandlerService.handle_api_exception(exc))["error"]

        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "rate"

    def test_persistence_failure(self):
        response = ErrorHandlerService.handle_api_exception(
            PersistenceFailureError("create property", "connection reset")
        )

        assert response.status_code == 500
        assert self.body(response)["error"]["message"] == "Failed to create property: connection reset"
        assert self.body(response)["error"]["details"] == [
            {"field": None, "message": "create property: connection reset", "type": "persistence_failed"}
        ]

    def test_upload_failure_names_the_file(self):
        response = ErrorHandlerService.handle_api_exception(UploadFailureError("b.png", "bucket unavailable"))

        error = self.body(response)["error"]
        assert response.status_code == 502
        assert error["code"] == "UPLOAD_FAILED"
        assert error["details"] == [
            {"field": "images -> b.png", "message": "bucket unavailable", "type": "upload_failed"}
        ]

    def test_unwrapped_database_error_is_a_read_failure(self):
        response = ErrorHandlerService.handle_unexpected_error(
            OperationalError("SELECT 1", {}, Exception("server closed the connection"))
        )

        error = self.body(response)["error"]
        assert response.status_code == 500
        assert error["code"] == "PERSISTENCE_FAILED"
        assert error["message"] == "Failed to read properties: OperationalError"
        assert "server closed" not in json.dumps(error)

    def test_unexpected_error_hides_internals(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret state"))

        error = self.body(response)["error"]
        assert response.status_code == 500
        assert error["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in error["message"]
        assert "details" not in error
