"""Typed async client for the Responses API."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Awaitable, Sequence
from typing import Any, cast

import httpx

from respondent.api.errors import (
    ApiAuthError,
    ApiClientError,
    ApiError,
    ApiRateLimitError,
    ApiResponseError,
    ApiServerError,
    ApiTimeoutError,
)
from respondent.api.parsing import parse_stream
from respondent.api.transport import HttpResponsesTransport, ResponsesTransport
from respondent.config import Settings
from respondent.models.events import Event
from respondent.models.files import File, FilePurpose, FileUpload
from respondent.models.request import Include, InputItemList, Request
from respondent.models.response import Response, ResponseError


class ResponsesClient:
    """Async client over a ``ResponsesTransport``.

    Every transport failure is mapped to an ``ApiError`` subclass; streaming
    methods yield typed events decoded by ``parse_stream``.
    """

    def __init__(self, transport: ResponsesTransport, *, strict_events: bool = False) -> None:
        self._transport = transport
        self._strict_events = strict_events

    @classmethod
    def from_settings(cls, settings: Settings) -> ResponsesClient:
        if settings.api_key is None:
            raise ApiAuthError("api_key is required (set OPENAI_API_KEY or [auth].api_key)")
        transport = HttpResponsesTransport(
            settings.api_key,
            base_url=settings.base_url,
            organization=settings.organization,
            project=settings.project,
            timeout=settings.timeout,
        )
        return cls(transport, strict_events=settings.strict_events)

    @property
    def transport(self) -> ResponsesTransport:
        return self._transport

    async def create(self, request: Request) -> Response:
        """Create a response and wait for the complete result."""

        payload = request.model_copy(update={"stream": None}).to_payload()
        data = await self._request("POST", "/responses", json=payload)
        return _parse_response(data)

    async def stream(self, request: Request) -> AsyncIterator[Event]:
        """Create a response and yield its streaming events."""

        payload = request.model_copy(update={"stream": True}).to_payload()
        async for event in self._stream("POST", "/responses", json=payload):
            yield event

    async def retrieve(self, response_id: str, *, include: Sequence[Include] | None = None) -> Response:
        params = _include_params(include)
        data = await self._request("GET", f"/responses/{response_id}", params=params or None)
        return _parse_response(data)

    async def stream_existing(
        self,
        response_id: str,
        *,
        starting_after: int | None = None,
        include: Sequence[Include] | None = None,
    ) -> AsyncIterator[Event]:
        """Resume the event stream of a background response."""

        params: dict[str, Any] = {"stream": "true", **_include_params(include)}
        if starting_after is not None:
            params["starting_after"] = starting_after
        async for event in self._stream("GET", f"/responses/{response_id}", params=params):
            yield event

    async def cancel(self, response_id: str) -> Response:
        data = await self._request("POST", f"/responses/{response_id}/cancel")
        return _parse_response(data)

    async def delete(self, response_id: str) -> None:
        await self._request("DELETE", f"/responses/{response_id}")

    async def list_input_items(
        self,
        response_id: str,
        *,
        after: str | None = None,
        before: str | None = None,
        limit: int | None = None,
        order: str | None = None,
        include: Sequence[Include] | None = None,
    ) -> InputItemList:
        params: dict[str, Any] = _include_params(include)
        for key, value in (("after", after), ("before", before), ("limit", limit), ("order", order)):
            if value is not None:
                params[key] = value
        data = await self._request("GET", f"/responses/{response_id}/input_items", params=params or None)
        _raise_for_error_body(data)
        return InputItemList.model_validate(data)

    async def upload_file(self, upload: FileUpload, *, purpose: FilePurpose | str = FilePurpose.USER_DATA) -> File:
        purpose_value = purpose.value if isinstance(purpose, FilePurpose) else purpose
        data = await self._request(
            "POST",
            "/files",
            files={"file": upload.as_multipart()},
            data={"purpose": purpose_value},
        )
        _raise_for_error_body(data)
        return File.model_validate(data)

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if callable(aclose):
            await aclose()

    async def __aenter__(self) -> ResponsesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            return await self._transport.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError("request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc) from exc
        except httpx.RequestError as exc:
            raise ApiClientError(f"request failed: {exc}") from exc

    async def _stream(self, method: str, path: str, **kwargs: Any) -> AsyncIterator[Event]:
        try:
            stream_candidate = self._transport.stream(method, path, **kwargs)
            chunks: AsyncIterator[str | bytes]
            if hasattr(stream_candidate, "__aiter__"):
                chunks = cast(AsyncIterator[str | bytes], stream_candidate)
            else:
                chunks = await cast(Awaitable[AsyncIterator[str | bytes]], stream_candidate)

            async for event in parse_stream(chunks, strict=self._strict_events):
                yield event
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError("request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc) from exc
        except httpx.RequestError as exc:
            raise ApiClientError(f"request failed: {exc}") from exc


def _include_params(include: Sequence[Include] | None) -> dict[str, Any]:
    if not include:
        return {}
    return {"include[]": [item.value if isinstance(item, Include) else item for item in include]}


def _parse_error_body(body: Any) -> ResponseError | None:
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if not isinstance(error, dict):
        return None
    return ResponseError.model_validate(error)


def _raise_for_error_body(data: Any) -> None:
    """Raise when a 2xx body carries an error object instead of a result."""

    if isinstance(data, dict) and "id" not in data:
        error = _parse_error_body(data)
        if error is not None:
            raise ApiResponseError(str(error), error=error)


def _parse_response(data: Any) -> Response:
    _raise_for_error_body(data)
    if not isinstance(data, dict):
        raise ApiResponseError(f"unexpected response body: {data!r}")
    return Response.model_validate(data)


def _read_body(response: httpx.Response) -> str:
    try:
        return response.text
    except httpx.ResponseNotRead:
        return ""


def _map_status_error(exc: httpx.HTTPStatusError) -> ApiError:
    response = exc.response
    status = response.status_code
    body = _read_body(response)
    try:
        error = _parse_error_body(json.loads(body)) if body else None
    except json.JSONDecodeError:
        error = None
    detail = error.message if error is not None and error.message else body
    suffix = f": {detail}" if detail else ""
    retry_after = response.headers.get("retry-after")
    retry_suffix = f" (retry after {retry_after}s)" if retry_after else ""
    if status in (401, 403):
        return ApiAuthError(f"auth failed with status {status}{suffix}", status_code=status, error=error)
    if status == 429:
        return ApiRateLimitError(f"rate limited{retry_suffix}{suffix}", status_code=status, error=error)
    if status >= 500:
        return ApiServerError(f"server error {status}{suffix}", status_code=status, error=error)
    return ApiClientError(f"request failed with status {status}{suffix}", status_code=status, error=error)


__all__ = ["ResponsesClient", "_map_status_error"]
