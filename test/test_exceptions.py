"""
Tests for custom exception classes and the global exception handlers

Tests exception initialization, messages, status codes, details and the
JSON error envelope.
"""

from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from taskapi.exception_handlers import get_error_type, get_http_error_code, register_exception_handlers
from taskapi.exceptions import (
    DatabaseError,
    DuplicateResourceError,
    EncodingError,
    EncodingPreconditionError,
    ErrorCode,
    ResourceNotFoundError,
    TaskAPIError,
    TaskNotFoundError,
    ValidationError,
)


class TestTaskAPIError:
    """Test base TaskAPIError class"""

    def test_default_values(self):
        exc = TaskAPIError("Test error")
        assert str(exc) == "Test error"
        assert exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.error_code is ErrorCode.INTERNAL_ERROR
        assert exc.details == {}

    def test_with_details(self):
        exc = TaskAPIError("Test error", status_code=status.HTTP_400_BAD_REQUEST, details={"count": 42})
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details["count"] == 42


class TestResourceExceptions:
    def test_resource_not_found(self):
        exc = ResourceNotFoundError("Thing")
        assert exc.message == "Thing not found"
        assert exc.status_code == status.HTTP_404_NOT_FOUND

    def test_task_not_found(self):
        exc = TaskNotFoundError("abc")
        assert exc.message == "Task with id 'abc' not found"
        assert exc.error_code.value == "RESOURCE_TASK_NOT_FOUND"
        assert exc.details == {"resource_type": "Task", "resource_id": "abc"}
        assert isinstance(exc, ResourceNotFoundError)

    def test_duplicate_resource(self):
        exc = DuplicateResourceError("Task", "id", "t1")
        assert exc.status_code == status.HTTP_409_CONFLICT
        assert "already exists" in exc.message

    def test_validation_error_field(self):
        exc = ValidationError("Bad body", field="body")
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details == {"field": "body"}

    def test_database_error(self):
        exc = DatabaseError(operation="list tasks")
        assert exc.error_code is ErrorCode.DATABASE_ERROR
        assert exc.details == {"operation": "list tasks"}


class TestEncodingExceptions:
    def test_encoding_error(self):
        exc = EncodingError("csv")
        assert exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.error_code.value == "EXPORT_ENCODING_FAILED"
        assert exc.details == {"format": "csv"}

    def test_encoding_precondition(self):
        exc = EncodingPreconditionError("csv", "no rows")
        assert exc.message == "Cannot encode csv: no rows"
        assert exc.error_code is ErrorCode.ENCODING_PRECONDITION
        assert not isinstance(exc, EncodingError)


class TestExceptionHandlers:
    """Test the error envelope produced by the registered handlers"""

    def create_app(self) -> FastAPI:
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/missing")
        async def missing():
            raise TaskNotFoundError("42")

        @app.get("/encode")
        async def encode():
            raise EncodingError("xml")

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret detail")

        @app.get("/typed/{number}")
        async def typed(number: int):
            return {"number": number}

        return app

    def test_application_error_envelope(self):
        client = TestClient(self.create_app())
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "status_code": 404,
                "message": "Task with id '42' not found",
                "type": "Not Found",
                "error_code": "RESOURCE_TASK_NOT_FOUND",
                "details": {"resource_type": "Task", "resource_id": "42"},
                "path": "/missing",
            }
        }

    def test_encoding_error_is_server_error(self):
        client = TestClient(self.create_app())
        response = client.get("/encode")
        assert response.status_code == 500
        assert response.json()["error"]["error_code"] == "EXPORT_ENCODING_FAILED"

    def test_unhandled_error_hides_details(self):
        client = TestClient(self.create_app(), raise_server_exceptions=False)
        response = client.get("/boom")
        assert response.status_code == 500
        assert "secret detail" not in response.text
        assert response.json()["error"]["error_code"] == "INTERNAL_ERROR"

    def test_request_validation_error(self):
        client = TestClient(self.create_app())
        response = client.get("/typed/abc")
        assert response.status_code == 422
        errors = response.json()["error"]["details"]["validation_errors"]
        assert errors[0]["field"] == "path.number"

    def test_unknown_route(self):
        client = TestClient(self.create_app())
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "RESOURCE_NOT_FOUND"

    def test_error_type_lookup(self):
        assert get_error_type(409) == "Conflict"
        assert get_error_type(418) == "Error"
        assert get_http_error_code(405) == "METHOD_NOT_ALLOWED"
        assert get_http_error_code(418) == "UNKNOWN_ERROR"
