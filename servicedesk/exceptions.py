"""
Error types raised by the service layer.

Each error carries the HTTP status code the API answers with; the
FastAPI app turns them into ``{"message": ...}`` responses.
"""

from typing import Optional


class ServiceDeskError(Exception):
    """Base class for errors with a client-facing message."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceDeskError):
    """Missing or invalid input."""

    status_code = 400


class AuthenticationError(ServiceDeskError):
    """Missing, malformed, invalid or expired credentials."""

    status_code = 401


class PermissionDeniedError(ServiceDeskError):
    """Authenticated, but not allowed (unapproved account or role too low)."""

    status_code = 403


class NotFoundError(ServiceDeskError):
    status_code = 404


class ConfigurationError(ServiceDeskError):
    """Required server configuration is missing."""

    status_code = 500
