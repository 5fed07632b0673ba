"""
Typed application errors.

Services raise these; the handlers registered in ``main.create_app`` render
them as ``{success: false, status, message}``.
"""

from typing import Any, Optional


class AppException(Exception):
    """Base class for operational (expected) errors."""

    status_code: int = 500
    default_message: str = "Internal server error"
    is_operational: bool = True

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    @property
    def status(self) -> str:
        return "fail" if str(self.status_code).startswith("4") else "error"


class ValidationError(AppException):
    status_code = 400
    default_message = "Invalid input data"


class AuthenticationError(AppException):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(AppException):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFoundError(AppException):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppException):
    status_code = 409
    default_message = "Resource already exists"


class ExternalServiceError(AppException):
    status_code = 502
    default_message = "External service failed"


class InternalError(AppException):
    status_code = 500
    default_message = "Something went wrong!"
    is_operational = False
