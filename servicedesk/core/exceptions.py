"""
Custom Exceptions for the Service Desk

This module defines the exception taxonomy raised by the complaint
lifecycle, assignment and reporting services. Every error carries a
machine readable code and an HTTP status so the API layer can translate
it without inspecting messages.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    INACTIVE_USER = "INACTIVE_USER"

    # State machine errors
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Identity errors
    FORBIDDEN = "FORBIDDEN"

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Conflicts
    CONFLICT = "CONFLICT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    ACTIVE_WORK_EXISTS = "ACTIVE_WORK_EXISTS"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """Exception raised when input is malformed or missing"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        return self.details.get("field_errors", {})


class InvalidTransitionError(BaseAppException):
    """Exception raised when a lifecycle rule forbids the requested move"""

    def __init__(
        self,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"Cannot change status from {current_status} to {target_status}"
        details = {
            "current_status": current_status,
            "target_status": target_status
        }
        super().__init__(message, ErrorCode.INVALID_TRANSITION, details, 409)


class ForbiddenError(BaseAppException):
    """Exception raised when the acting user is not allowed to act on the resource"""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        actor_id: Optional[str] = None
    ):
        details = {"actor_id": actor_id} if actor_id else {}
        super().__init__(message, ErrorCode.FORBIDDEN, details, 403)


class NotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class ConflictError(BaseAppException):
    """Exception raised on concurrent mutation or business rule conflict"""

    def __init__(
        self,
        message: str = "Resource conflict",
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 409)


def create_validation_error(field_errors: Dict[str, List[str]]) -> ValidationError:
    """Build a ValidationError whose message names every failing field"""
    fields = ", ".join(sorted(field_errors))
    return ValidationError(
        message=f"Validation failed for: {fields}",
        field_errors=field_errors
    )
