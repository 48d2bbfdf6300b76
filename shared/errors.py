"""
Shared error handling for the Gamepasses Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 400

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.headers = headers
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class InvalidInputError(AccessLayerException):
    """Request parameters failed validation."""

    status_code = 400

    def __init__(self, message: str = "Invalid userId provided.", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_INPUT", message, details)


class RateLimitError(AccessLayerException):
    """Rate limiting errors."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests, please try again later.",
        details: Optional[Dict[str, Any]] = None,
        retry_after: Optional[int] = None,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        super().__init__("RATE_LIMITED", message, details, headers)


class UpstreamFailureError(AccessLayerException):
    """Upstream call failed (transport, status or body)."""

    status_code = 502

    def __init__(self, message: str = "Failed to fetch data from Roblox.", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_FAILURE", message, details)


class UpstreamForbiddenError(AccessLayerException):
    """Upstream answered 403."""

    status_code = 502

    def __init__(self, message: str = "Access to Roblox API forbidden.", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_FORBIDDEN", message, details)


class PaginationLimitError(UpstreamFailureError):
    """Upstream kept returning cursors past the page cap."""

    def __init__(self, max_pages: int, details: Optional[Dict[str, Any]] = None):
        self.max_pages = max_pages
        payload = {"max_pages": max_pages}
        payload.update(details or {})
        super().__init__(details=payload)
