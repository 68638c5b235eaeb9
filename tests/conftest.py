import json
import pathlib
import sys
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

# Ensure src/ is importable when running tests without installing the package.
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def _isolate_respondent_home(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path):
    """Point RESPONDENT_HOME at a per-test sandbox so we never touch the real FS."""

    home = tmp_path / "respondent-home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("RESPONDENT_HOME", str(home))
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_ORG_ID", "OPENAI_PROJECT_ID"):
        monkeypatch.delenv(name, raising=False)
    yield home


# ============================================================================
# SSE payload builders
# ============================================================================


def _response(response_id: str = "resp_1", status: str = "in_progress", output: list | None = None) -> dict:
    return {"id": response_id, "object": "response", "status": status, "model": "gpt-4o", "output": output or []}


def _sse(payload: Mapping[str, Any]) -> str:
    return f"data: {json.dumps(payload)}"


@pytest.fixture
def response_payload():
    """Factory for minimal response JSON objects."""

    return _response


@pytest.fixture
def sse():
    """Factory that renders a payload as one ``data:`` line."""

    return _sse


@pytest.fixture
def hi_there_stream():
    """Canonical stream of a one-message text reply: "Hi there"."""

    def _build(response_id: str = "resp_1", item_id: str = "msg_1") -> list[str]:
        message = {"type": "message", "id": item_id, "role": "assistant", "status": "in_progress", "content": []}
        final_message = {
            **message,
            "status": "completed",
            "content": [{"type": "output_text", "text": "Hi there", "annotations": []}],
        }
        coords = {"output_index": 0, "item_id": item_id, "content_index": 0}
        return [
            _sse({"type": "response.created", "response": _response(response_id)}),
            _sse({"type": "response.in_progress", "response": _response(response_id)}),
            _sse({"type": "response.output_item.added", "output_index": 0, "item": message}),
            _sse(
                {
                    "type": "response.content_part.added",
                    **coords,
                    "part": {"type": "output_text", "text": "", "annotations": []},
                }
            ),
            _sse({"type": "response.output_text.delta", **coords, "delta": "Hi"}),
            _sse({"type": "response.output_text.delta", **coords, "delta": " there"}),
            _sse({"type": "response.output_text.done", **coords, "text": "Hi there"}),
            _sse({"type": "response.output_item.done", "output_index": 0, "item": final_message}),
            _sse({"type": "response.completed", "response": _response(response_id, "completed", [final_message])}),
            "data: [DONE]",
        ]

    return _build


@pytest.fixture
def function_call_stream():
    """Stream of a completed response holding one function call."""

    def _build(
        name: str = "echo",
        arguments: str = '{"msg": "hi"}',
        response_id: str = "resp_tool",
        call_id: str = "call_1",
    ) -> list[str]:
        item = {"type": "function_call", "id": "fc_1", "call_id": call_id, "name": name, "arguments": ""}
        done_item = {**item, "arguments": arguments, "status": "completed"}
        return [
            _sse({"type": "response.created", "response": _response(response_id)}),
            _sse({"type": "response.output_item.added", "output_index": 0, "item": item}),
            _sse(
                {
                    "type": "response.function_call_arguments.delta",
                    "output_index": 0,
                    "item_id": "fc_1",
                    "delta": arguments,
                }
            ),
            _sse({"type": "response.output_item.done", "output_index": 0, "item": done_item}),
            _sse({"type": "response.completed", "response": _response(response_id, "completed", [done_item])}),
        ]

    return _build


# ============================================================================
# Transport fakes
# ============================================================================


class SequenceTransport:
    """Yield one predefined chunk sequence per ``stream`` call and record calls."""

    def __init__(self, sequences, bodies=()):
        self.sequences = list(sequences)
        self.bodies = list(bodies)
        self.calls: list[dict[str, Any]] = []

    async def stream(self, method, path, *, json=None, params=None) -> AsyncIterator[str]:
        self.calls.append({"method": method, "path": path, "json": json, "params": params})
        if not self.sequences:
            raise RuntimeError("no more streams")
        stream = self.sequences.pop(0)
        for chunk in stream:
            yield chunk

    async def request(self, method, path, *, json=None, params=None, files=None, data=None) -> Any:
        self.calls.append(
            {"method": method, "path": path, "json": json, "params": params, "files": files, "data": data}
        )
        return self.bodies.pop(0) if self.bodies else None


class CapturingTransport:
    """Transport that captures the last payload and yields predefined chunks."""

    def __init__(self, chunks: list[str]) -> None:
        self.chunks = chunks
        self.last_payload: Mapping[str, Any] | None = None
        self.closed = False

    async def stream(self, method, path, *, json=None, params=None) -> AsyncIterator[str]:
        self.last_payload = json
        try:
            for chunk in self.chunks:
                yield chunk
        finally:
            self.closed = True

    async def request(self, method, path, *, json=None, params=None, files=None, data=None) -> Any:
        self.last_payload = json
        return None


@pytest.fixture
def sequence_transport():
    """Factory fixture for SequenceTransport that yields predefined chunk sequences."""
    return SequenceTransport


@pytest.fixture
def capturing_transport():
    """Factory fixture for CapturingTransport that captures payloads and yields chunks."""
    return CapturingTransport


# ============================================================================
# Logging and tool fakes
# ============================================================================


class FakeLogger:
    """Lightweight in-memory fake logger that records calls."""

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.info_calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []
        self.debug_calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []
        self.warning_calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []
        self.error_calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    def info(self, *args: Any, **kwargs: Any) -> None:
        self.info_calls.append((args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self.debug_calls.append((args, kwargs))

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self.warning_calls.append((args, kwargs))

    def error(self, *args: Any, **kwargs: Any) -> None:
        self.error_calls.append((args, kwargs))


@pytest.fixture
def fake_logger() -> type[FakeLogger]:
    """Provide FakeLogger class for use in patches."""
    return FakeLogger


@pytest.fixture
def dummy_tool_classes():
    """Provide simple Tool/Registration-friendly classes for reuse."""

    from respondent.tools.base import Tool, ToolRequest, ToolResponse

    class EchoRequest(ToolRequest):
        msg: str

    class EchoResponse(ToolResponse):
        msg: str

    class EchoTool(Tool[EchoRequest, EchoResponse]):
        name = "echo"
        description = "echo upper"
        InputModel = EchoRequest
        OutputModel = EchoResponse

        def execute(self, request: EchoRequest) -> EchoResponse:  # type: ignore[override]
            return EchoResponse(msg=request.msg.upper())

    return EchoRequest, EchoResponse, EchoTool


# ============================================================================
# HTTP Transport Fixtures
# ============================================================================


@pytest.fixture
def mock_http_handler():
    """Factory fixture for creating httpx request handlers with custom responses."""

    def _handler(
        status_code: int = 200,
        text: str = "",
        headers: dict[str, str] | None = None,
        record_request: dict[str, Any] | None = None,
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            if record_request is not None:
                record_request["headers"] = dict(request.headers)
                record_request["url"] = str(request.url)
                record_request["method"] = request.method
                record_request["body"] = request.content
            return httpx.Response(status_code, text=text, headers=headers or {}, request=request)

        return handler

    return _handler


@pytest.fixture
def mock_http_client(mock_http_handler):
    """Fixture factory that provides an httpx.AsyncClient with MockTransport."""

    def _client(handler=None):
        if handler is None:
            handler = mock_http_handler()
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _client
