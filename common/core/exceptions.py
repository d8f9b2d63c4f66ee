from typing import Any, Dict, Optional


class AppException(Exception):
    """Base application exception.

    Carries the HTTP status and machine-readable error code that the API
    layer renders into an ``{errorCode, message, details}`` body.
    """

    status_code: int = 500
    error_code: str = "ERR_INTERNAL"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppException):
    """Validation error exception."""

    status_code = 400
    error_code = "ERR_BAD_REQUEST"


class ConflictError(AppException):
    """Request conflicts with an operation already in flight."""

    status_code = 409
    error_code = "ERR_CONFLICT"
