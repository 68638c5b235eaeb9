"""Error taxonomy for the Responses API client."""

from __future__ import annotations

from respondent.models.response import ResponseError


class ApiError(Exception):
    """Base error for Responses API failures."""

    def __init__(self, message: str, *, status_code: int | None = None, error: ResponseError | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error


class ApiAuthError(ApiError):
    """Authentication or authorization failure."""


class ApiRateLimitError(ApiError):
    """Rate limit exceeded."""


class ApiTimeoutError(ApiError):
    """Request timed out."""


class ApiServerError(ApiError):
    """Server-side failure (5xx)."""


class ApiClientError(ApiError):
    """Client-side failure (4xx other than auth/rate limit) or a failed request."""


class ApiResponseError(ApiError):
    """The API reported an error in an otherwise successful exchange."""


class StreamingParseError(ApiError):
    """Malformed streaming payload."""


__all__ = [
    "ApiAuthError",
    "ApiClientError",
    "ApiError",
    "ApiRateLimitError",
    "ApiResponseError",
    "ApiServerError",
    "ApiTimeoutError",
    "StreamingParseError",
]
