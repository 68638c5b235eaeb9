"""Responses API client package."""

from __future__ import annotations

from .client import ResponsesClient  # noqa: F401
from .errors import (  # noqa: F401
    ApiAuthError,
    ApiClientError,
    ApiError,
    ApiRateLimitError,
    ApiResponseError,
    ApiServerError,
    ApiTimeoutError,
    StreamingParseError,
)
from .parsing import parse_stream  # noqa: F401
from .transport import (  # noqa: F401
    HttpResponsesTransport,
    MockResponsesTransport,
    OpenAISDKResponsesTransport,
    ResponsesTransport,
)
