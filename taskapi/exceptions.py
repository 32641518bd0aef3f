"""
Custom Exception Classes for the Task Query API

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the error envelope."""

    # Resource errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    TASK_NOT_FOUND = "RESOURCE_TASK_NOT_FOUND"

    # Validation errors
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Export errors
    ENCODING_FAILED = "EXPORT_ENCODING_FAILED"
    ENCODING_PRECONDITION = "EXPORT_ENCODING_PRECONDITION"

    # Server errors
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TaskAPIError(Exception):
    """Base exception class for all application exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(TaskAPIError):
    """Base class for resource not found errors"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any | None = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class TaskNotFoundError(ResourceNotFoundError):
    """Raised when a task is not found"""

    def __init__(self, task_id: Any | None = None):
        super().__init__(resource_type="Task", resource_id=task_id, error_code=ErrorCode.TASK_NOT_FOUND)


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(TaskAPIError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=error_details,
        )


class DuplicateResourceError(TaskAPIError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            error_code=ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


# ============================================================================
# Database & Export Exceptions
# ============================================================================


class DatabaseError(TaskAPIError):
    """Raised when a database operation fails"""

    def __init__(self, message: str = "A database error occurred", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.DATABASE_ERROR,
            details=details,
        )


class EncodingError(TaskAPIError):
    """Raised when writing an export payload to its output stream fails"""

    def __init__(self, export_format: str, message: str = "Failed to encode response"):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.ENCODING_FAILED,
            details={"format": export_format},
        )


class EncodingPreconditionError(TaskAPIError):
    """Raised when an encoder is called with input it cannot encode, such as an empty CSV export"""

    def __init__(self, export_format: str, reason: str):
        super().__init__(
            message=f"Cannot encode {export_format}: {reason}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.ENCODING_PRECONDITION,
            details={"format": export_format},
        )
