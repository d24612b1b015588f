"""
Error types for the streaming pipeline and the proxy services, plus
HTTP Exception helpers to reduce code duplication in routes.

Usage:
    from app.utils.exceptions import raise_bad_request, raise_service_error

    raise_bad_request("Missing required field")
    raise_service_error(EmptyContentError("content is empty"))
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


# =============================================================================
# Streaming pipeline errors
# =============================================================================


class StreamError(Exception):
    """Base class for terminal errors captured by the SSE decode pipeline."""


class FrameReadError(StreamError):
    """Reading the underlying byte source failed."""


class DecodeError(StreamError):
    """An event payload did not match the strict schema."""


class UpstreamError(StreamError):
    """An event payload carried an explicit top-level ``error`` field."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProviderHTTPError(Exception):
    """Upstream answered with a non-200 status before streaming started."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"upstream returned status {status_code}: {message}")
        self.status_code = status_code
        self.message = message


# =============================================================================
# Service errors (mapped to HTTP status codes by the routes)
# =============================================================================


class ServiceError(Exception):
    """Error with a stable reason code and the HTTP status it maps to."""

    reason: str = "UNKNOWN"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRoleError(ServiceError):
    reason = "INVALID_ROLE"
    status_code = status.HTTP_400_BAD_REQUEST


class EmptyContentError(ServiceError):
    reason = "EMPTY_CONTENT"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidArgumentError(ServiceError):
    reason = "INVALID_ARGUMENT"
    status_code = status.HTTP_400_BAD_REQUEST


class NoChoiceError(ServiceError):
    reason = "NO_CHOICE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class UpstreamAPIError(ServiceError):
    reason = "UPSTREAM_API_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# HTTP helpers
# =============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise HTTP 400 Bad Request."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_service_unavailable(detail: str) -> NoReturn:
    """Raise HTTP 503 Service Unavailable."""
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
    )


def raise_internal_error(detail: str = "Internal server error") -> NoReturn:
    """Raise HTTP 500 Internal Server Error."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


def raise_service_error(error: ServiceError, detail: Optional[str] = None) -> NoReturn:
    """Raise the HTTP error matching a ServiceError's status code."""
    message = detail or f"{error.reason}: {error.message}"
    if error.status_code == status.HTTP_400_BAD_REQUEST:
        raise_bad_request(message)
    if error.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        raise_service_unavailable(message)
    raise_internal_error(message)
