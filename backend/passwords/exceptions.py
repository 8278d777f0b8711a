"""Typed API errors raised by the share workflow.

Every error carries the HTTP status it is reported with and a short
human-readable message. The application maps them to JSON responses in one
exception handler, so the services never deal with HTTP responses.
"""

from typing import Optional

from fastapi import status

# Non-standard status the Passwords API uses for share conflicts
HTTP_420_CONFLICT = 420


class ApiException(Exception):
    """Base exception for errors reported to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ForbiddenError(ApiException):
    """Sharing disabled, invalid receiver, re-share refused or not the owner."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidInputError(ApiException):
    """Bad expiration date or unsupported share type."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ApiException):
    """Requested object does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiException):
    """Duplicate share or client-side encryption that cannot be shared."""

    status_code = HTTP_420_CONFLICT
