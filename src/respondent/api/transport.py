"""Transport abstraction for the Responses API client."""

from __future__ import annotations

import re
import time
from collections.abc import AsyncIterator, Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Protocol

import httpx
import openai
from openai import AsyncOpenAI

TransportLogger = Callable[[str, dict[str, object]], None]


class ResponsesTransport(Protocol):
    """Protocol for talking to the Responses API.

    ``stream`` yields raw SSE lines; ``request`` returns the decoded JSON body
    (or None when the body is empty). Both raise ``httpx.HTTPStatusError``
    with the response body already read on non-2xx statuses.
    """

    def stream(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[str | bytes]:
        """Stream raw chunks returned by the API."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        """Perform a plain request and return the decoded JSON body."""


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=5.0)
DEFAULT_USER_AGENT = "respondent/0.1.0"


class HttpResponsesTransport:
    """httpx-based transport for the real OpenAI Responses API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        organization: str | None = None,
        project: str | None = None,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = DEFAULT_USER_AGENT,
        logger: TransportLogger | None = None,
    ) -> None:
        if not api_key.strip():
            raise ValueError("api_key cannot be empty")

        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.organization = organization
        self.project = project
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._user_agent = user_agent
        self._logger = logger

    async def stream(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[str | bytes]:
        url = f"{self.base_url}{path}"
        headers = self._headers(json_body=json is not None)
        headers["Accept"] = "text/event-stream"

        start = time.perf_counter()
        async with self._client.stream(
            method, url, json=json, params=params, headers=headers, timeout=self.timeout
        ) as response:
            if response.is_error:
                await response.aread()
            response.raise_for_status()
            async for line in response.aiter_lines():
                if not line:
                    continue
                yield line
        self._log_complete(response, start)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = self._headers(json_body=json is not None)

        start = time.perf_counter()
        response = await self._client.request(
            method,
            url,
            json=json,
            params=params,
            files=files,
            data=data,
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        self._log_complete(response, start)
        if not response.content:
            return None
        return response.json()

    def _headers(self, *, json_body: bool) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        if self.project:
            headers["OpenAI-Project"] = self.project
        return headers

    def _log_complete(self, response: httpx.Response, start: float) -> None:
        if self._logger:
            self._logger(
                "response_complete",
                {
                    "status": response.status_code,
                    "request_id": response.headers.get("x-request-id"),
                    "duration_sec": time.perf_counter() - start,
                    "base_url": self.base_url,
                },
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpResponsesTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class MockResponsesTransport:
    """In-memory transport that yields predefined chunks for tests/offline mode.

    Every ``stream`` call replays ``chunks``; every ``request`` call pops the
    next entry of ``bodies``. A ``status_code`` of 400 or more makes both fail
    with ``httpx.HTTPStatusError`` carrying ``error_body`` as JSON.
    """

    def __init__(
        self,
        chunks: Sequence[str | bytes] = (),
        status_code: int = 200,
        *,
        bodies: Sequence[Any] = (),
        error_body: Any | None = None,
        logger: TransportLogger | None = None,
    ) -> None:
        self._chunks = list(chunks)
        self._bodies = list(bodies)
        self.status_code = status_code
        self._error_body = error_body
        self._logger = logger
        self.calls: list[dict[str, Any]] = []

    async def stream(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[str | bytes]:
        self.calls.append({"method": method, "path": path, "json": json, "params": params})
        if self.status_code >= 400:
            raise self._status_error(method, path)

        for chunk in self._chunks:
            yield chunk
        self._log_complete()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        self.calls.append(
            {"method": method, "path": path, "json": json, "params": params, "files": files, "data": data}
        )
        if self.status_code >= 400:
            raise self._status_error(method, path)
        self._log_complete()
        return self._bodies.pop(0) if self._bodies else None

    def _status_error(self, method: str, path: str) -> httpx.HTTPStatusError:
        request = httpx.Request(method, f"mock://responses{path}")
        if self._error_body is not None:
            response = httpx.Response(self.status_code, request=request, json=self._error_body)
        else:
            response = httpx.Response(self.status_code, request=request)
        return httpx.HTTPStatusError("mock transport error", request=request, response=response)

    def _log_complete(self) -> None:
        if self._logger:
            self._logger(
                "response_complete",
                {"status": self.status_code, "request_id": None, "duration_sec": 0.0, "base_url": "mock://responses"},
            )


_RESPONSE_PATH = re.compile(r"^/responses/(?P<id>[^/]+)$")
_CANCEL_PATH = re.compile(r"^/responses/(?P<id>[^/]+)/cancel$")
_INPUT_ITEMS_PATH = re.compile(r"^/responses/(?P<id>[^/]+)/input_items$")


class OpenAISDKResponsesTransport:
    """Transport backed by the official openai Python SDK.

    SDK events and objects are re-serialized to the same JSON the HTTP
    transport would return, so the client parses both identically. SDK
    exceptions are translated to their httpx equivalents.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        organization: str | None = None,
        project: str | None = None,
        timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        if not api_key.strip():
            raise ValueError("api_key cannot be empty")

        self._client = client or AsyncOpenAI(
            api_key=api_key.strip(),
            base_url=base_url,
            organization=organization,
            project=project,
            timeout=timeout,
        )

    async def stream(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[str | bytes]:
        with _translate_sdk_errors():
            if method == "POST" and path == "/responses":
                request_payload = dict(json or {})
                request_payload.pop("stream", None)
                stream = await self._client.responses.create(stream=True, **request_payload)
            elif method == "GET" and (match := _RESPONSE_PATH.match(path)):
                query = _sdk_query(params)
                query.pop("stream", None)
                stream = await self._client.responses.retrieve(match["id"], stream=True, **query)
            else:
                raise ValueError(f"unsupported streaming route: {method} {path}")

            async for event in stream:
                yield f"data: {event.model_dump_json()}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        responses = self._client.responses
        query = _sdk_query(params)
        with _translate_sdk_errors():
            if method == "POST" and path == "/responses":
                result = await responses.create(**dict(json or {}))
            elif method == "POST" and path == "/files":
                upload = (files or {})["file"]
                result = await self._client.files.create(file=upload, purpose=(data or {})["purpose"])
            elif method == "POST" and (match := _CANCEL_PATH.match(path)):
                result = await responses.cancel(match["id"])
            elif method == "GET" and (match := _INPUT_ITEMS_PATH.match(path)):
                page = await responses.input_items.list(match["id"], **query)
                return {
                    "object": "list",
                    "data": [item.model_dump(mode="json") for item in page.data],
                    "first_id": getattr(page, "first_id", None),
                    "last_id": getattr(page, "last_id", None),
                    "has_more": bool(getattr(page, "has_more", False)),
                }
            elif method == "GET" and (match := _RESPONSE_PATH.match(path)):
                result = await responses.retrieve(match["id"], **query)
            elif method == "DELETE" and (match := _RESPONSE_PATH.match(path)):
                await responses.delete(match["id"])
                return None
            else:
                raise ValueError(f"unsupported route: {method} {path}")
        return result.model_dump(mode="json")

    async def aclose(self) -> None:
        await self._client.close()


def _sdk_query(params: Mapping[str, Any] | None) -> dict[str, Any]:
    query = dict(params or {})
    if "include[]" in query:
        query["include"] = query.pop("include[]")
    return query


@contextmanager
def _translate_sdk_errors() -> Iterator[None]:
    try:
        yield
    except openai.APITimeoutError as exc:
        raise httpx.ReadTimeout(str(exc), request=exc.request) from exc
    except openai.APIConnectionError as exc:
        raise httpx.ConnectError(str(exc), request=exc.request) from exc
    except openai.APIStatusError as exc:
        raise httpx.HTTPStatusError(str(exc), request=exc.request, response=exc.response) from exc


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "HttpResponsesTransport",
    "MockResponsesTransport",
    "OpenAISDKResponsesTransport",
    "ResponsesTransport",
    "TransportLogger",
]
