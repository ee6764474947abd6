"""
API error taxonomy and common messages.

Every failure surfaced by the request pipeline is an ApiError subclass;
callers branch on the class, never on the message text.
"""
from typing import Optional

# Default messages when the server gives none
ERROR_TIMEOUT = "Request timed out, please retry"
ERROR_NETWORK = "Network connection failed"
ERROR_SESSION_EXPIRED = "Session expired, please log in again"
ERROR_FORBIDDEN = "Permission denied"
ERROR_NOT_FOUND = "Requested resource does not exist"
ERROR_SERVER = "Internal server error"
ERROR_REQUEST_FAILED = "Request failed"
ERROR_MALFORMED_RESPONSE = "Malformed response envelope"


class ApiError(Exception):
    """Base class for classified request failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class TransportError(ApiError):
    """No response was received (timeout, refused connection, DNS, ...)."""

    def __init__(self, message: str = ERROR_NETWORK, *, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


class AuthenticationError(ApiError):
    """HTTP 401 or envelope code 401. The session is already cleared."""


class PermissionDeniedError(ApiError):
    """HTTP 403."""


class NotFoundError(ApiError):
    """HTTP 404."""


class ServerError(ApiError):
    """HTTP 5xx."""


class HTTPStatusError(ApiError):
    """Any other non-2xx status (400, 409, 429, ...)."""


class ApplicationError(ApiError):
    """HTTP success whose envelope code signals failure."""


__all__ = [
    "ApiError",
    "TransportError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ServerError",
    "HTTPStatusError",
    "ApplicationError",
]
