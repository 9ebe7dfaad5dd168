"""
Custom exception classes and error handling.

This module provides custom exceptions and utilities for consistent
error handling across the application.
"""
import uuid
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse


class VoiceRefException(Exception):
    """Base exception for all VoiceRef-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(VoiceRefException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, resource_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource} not found: {resource_id}"
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)
        self.resource = resource
        self.resource_id = resource_id


class GoneError(VoiceRefException):
    """Raised when a link points to a check or reference that is already finished."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_410_GONE, details)


class ValidationError(VoiceRefException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)
        self.field = field


class InvalidUUIDError(ValidationError):
    """Raised when a UUID format is invalid."""

    def __init__(self, uuid_str: str, field: str = "id"):
        message = f"Invalid UUID format: {uuid_str}"
        super().__init__(message, field=field)
        self.uuid_str = uuid_str


class AuthorizationError(VoiceRefException):
    """Raised when a shared secret is missing or wrong."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class ExternalServiceError(VoiceRefException):
    """Raised when VAPI, Resend or another upstream service fails."""

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)
        self.service = service


class SchedulingError(ExternalServiceError):
    """Raised when a call could not be scheduled. Nothing is persisted."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("vapi", message, details)


# =============================================================================
# Exception Handlers
# =============================================================================

async def voiceref_exception_handler(request: Request, exc: VoiceRefException) -> JSONResponse:
    """Handle VoiceRefException instances."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details
        }
    )


# =============================================================================
# Helper Functions
# =============================================================================

def parse_uuid(uuid_str: str, field: str = "id") -> uuid.UUID:
    """
    Parse a UUID string and raise InvalidUUIDError if invalid.

    Args:
        uuid_str: The UUID string to parse
        field: The field name for error messages (default: "id")

    Returns:
        A validated UUID object

    Raises:
        InvalidUUIDError: If the UUID format is invalid

    Example:
        >>> check_uuid = parse_uuid(check_id, field="reference_check_id")
    """
    try:
        return uuid.UUID(uuid_str)
    except (ValueError, AttributeError, TypeError):
        raise InvalidUUIDError(uuid_str, field=field)


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Call this during app initialization:
        from src.exceptions import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(VoiceRefException, voiceref_exception_handler)
