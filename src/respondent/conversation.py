"""Conversation orchestrator over the Responses API.

A ``Conversation`` keeps the ordered log of requests and responses, sends one
turn at a time, folds streamed events into the log as they arrive, and runs
registered local tools whenever the model calls them, feeding their outputs
back until the model stops asking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from contextlib import aclosing
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from respondent.accumulator import Entry, EntryLog
from respondent.api.client import ResponsesClient
from respondent.api.errors import ApiResponseError
from respondent.config import ConversationConfig, Settings
from respondent.logging import close_conversation_logger, configure_conversation_logger
from respondent.models.events import ErrorEvent
from respondent.models.files import File, FilePurpose, FileUpload
from respondent.models.items import (
    CodeInterpreterCallItem,
    FileSearchCallItem,
    FunctionCallItem,
    ImageGenerationCallItem,
    ItemStatus,
    MessageItem,
    WebSearchCallItem,
)
from respondent.models.request import (
    ComputerCallOutput,
    FunctionCallOutput,
    Input,
    InputMessage,
    LocalShellCallOutput,
    McpApprovalResponse,
    Request,
    Role,
)
from respondent.models.response import Response, ResponseStatus
from respondent.tools.base import Tool
from respondent.tools.registry import ToolRegistration
from respondent.tools.router import ToolRouter

_ACTIVE_ITEM_STATUSES = frozenset(
    {ItemStatus.IN_PROGRESS, ItemStatus.SEARCHING, ItemStatus.INTERPRETING, ItemStatus.GENERATING}
)


def generate_conversation_id(now: datetime | None = None) -> str:
    """Return a conversation id in the form YYYYMMDDHHMM-uuid4.

    ``now`` exists to ease testing and determinism; it defaults to current UTC.
    """

    instant = now or datetime.now(UTC)
    return f"{instant.strftime('%Y%m%d%H%M')}-{uuid4()}"


class Conversation:
    """Stateful multi-turn conversation with automatic local tool calls."""

    def __init__(
        self,
        client: ResponsesClient,
        config: ConversationConfig,
        *,
        tools: ToolRouter | Iterable[ToolRegistration | Tool[Any, Any]] | None = None,
        entries: Iterable[Entry] = (),
        conversation_id: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.conversation_id = conversation_id or generate_conversation_id()
        self.logger = logger or logging.getLogger(__name__)
        if isinstance(tools, ToolRouter):
            self.router = tools
        else:
            self.router = ToolRouter(tools or (), logger=self.logger)
        self._log = EntryLog(entries, logger=self.logger)
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[Response | None]] = set()
        self._owns_resources = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        tools: ToolRouter | Iterable[ToolRegistration | Tool[Any, Any]] | None = None,
        **config_options: Any,
    ) -> Conversation:
        """Build a conversation with an HTTP client and a per-conversation file logger."""

        conversation_id = generate_conversation_id()
        config_options.setdefault("model", settings.model)
        if settings.reasoning_effort is not None:
            config_options.setdefault("reasoning", {"effort": settings.reasoning_effort})
        conversation = cls(
            ResponsesClient.from_settings(settings),
            ConversationConfig(**config_options),
            tools=tools,
            conversation_id=conversation_id,
            logger=configure_conversation_logger(conversation_id, log_level=settings.log_level),
        )
        conversation._owns_resources = True
        return conversation

    async def aclose(self) -> None:
        """Cancel running turns; release the client and log file built by ``from_settings``."""

        running = list(self._tasks)
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)
        if self._owns_resources:
            await self.client.aclose()
            close_conversation_logger(self.conversation_id)

    async def __aenter__(self) -> Conversation:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # Views

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._log.entries

    @property
    def messages(self) -> list[InputMessage | MessageItem]:
        """Input and output messages in conversation order, without tool traffic."""

        messages: list[InputMessage | MessageItem] = []
        for entry in self._log.entries:
            if isinstance(entry, Request):
                if isinstance(entry.input, str):
                    messages.append(InputMessage(role=Role.USER, content=entry.input))
                else:
                    messages.extend(item for item in entry.input if isinstance(item, InputMessage))
            else:
                messages.extend(item for item in entry.output if isinstance(item, MessageItem))
        return messages

    @property
    def transcript(self) -> list[tuple[str, str]]:
        """``(role, text)`` pairs for every message."""

        pairs: list[tuple[str, str]] = []
        for message in self.messages:
            role = message.role.value if isinstance(message.role, Role) else message.role
            pairs.append((role, message.text))
        return pairs

    @property
    def current_response(self) -> Response | None:
        return self._log.current_response

    @property
    def previous_response_id(self) -> str | None:
        return self._log.current_response_id

    @property
    def is_responding(self) -> bool:
        response = self.current_response
        return response is not None and response.is_in_progress

    @property
    def is_web_search_in_progress(self) -> bool:
        return self._has_active_item(WebSearchCallItem)

    @property
    def is_file_search_in_progress(self) -> bool:
        return self._has_active_item(FileSearchCallItem)

    @property
    def is_image_generation_in_progress(self) -> bool:
        return self._has_active_item(ImageGenerationCallItem)

    @property
    def is_code_interpreter_in_progress(self) -> bool:
        return self._has_active_item(CodeInterpreterCallItem)

    def _has_active_item(self, kind: type) -> bool:
        response = self.current_response
        if response is None:
            return False
        return any(isinstance(item, kind) and item.status in _ACTIVE_ITEM_STATUSES for item in response.output)

    # Sending

    def send(self, input: Input) -> asyncio.Task[Response | None]:
        """Start a turn in the background; cancel the returned task to cancel the turn."""

        task = asyncio.create_task(self.send_and_wait(input))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def send_and_wait(self, input: Input) -> Response | None:
        """Send ``input`` and keep answering local tool calls until the model is done.

        Returns the last response, or None when the stream produced none.
        """

        async with self._lock:
            response: Response | None = None
            next_input: Input | None = input
            while next_input is not None:
                response = await self._run_turn(next_input)
                outputs = await self._run_pending_tools(response)
                next_input = list(outputs) if outputs else None
            return response

    async def send_text(self, text: str) -> Response | None:
        return await self.send_and_wait([InputMessage(role=Role.USER, content=text)])

    async def send_function_call_output(self, call_id: str, output: str) -> Response | None:
        return await self.send_and_wait([FunctionCallOutput(call_id=call_id, output=output)])

    async def send_computer_call_output(
        self,
        call_id: str,
        output: dict[str, Any],
        *,
        acknowledged_safety_checks: list[dict[str, Any]] | None = None,
    ) -> Response | None:
        item = ComputerCallOutput(
            call_id=call_id, output=output, acknowledged_safety_checks=acknowledged_safety_checks
        )
        return await self.send_and_wait([item])

    async def send_mcp_approval_response(
        self, approval_request_id: str, approve: bool, *, reason: str | None = None
    ) -> Response | None:
        item = McpApprovalResponse(approval_request_id=approval_request_id, approve=approve, reason=reason)
        return await self.send_and_wait([item])

    async def send_local_shell_call_output(self, call_id: str, output: str) -> Response | None:
        return await self.send_and_wait([LocalShellCallOutput(id=call_id, output=output)])

    # Management

    def restart(self) -> None:
        """Forget every entry; the next turn starts a fresh thread."""

        self._log.clear()

    def update_config(self, **changes: Any) -> ConversationConfig:
        self.config = ConversationConfig(**{**self.config.model_dump(), **changes})
        return self.config

    async def upload(self, upload: FileUpload, *, purpose: FilePurpose | str = FilePurpose.USER_DATA) -> File:
        return await self.client.upload_file(upload, purpose=purpose)

    # Turn internals

    async def _run_turn(self, input: Input) -> Response | None:
        request = self.config.to_request(
            input,
            previous_response_id=self._log.current_response_id,
            extra_tools=self.router.specs(),
        )
        previous_id = self._log.current_response_id
        self.logger.info(
            "turn started: conversation=%s model=%s previous_response_id=%s",
            self.conversation_id,
            request.model,
            request.previous_response_id,
        )

        # The request is only logged once the stream has opened; a rejected
        # request leaves the log untouched.
        recorded = False
        async with aclosing(self.client.stream(request)) as events:
            async for event in events:
                if not recorded:
                    self._log.append_request(request)
                    recorded = True
                if isinstance(event, ErrorEvent):
                    error = event.to_response_error()
                    self.logger.error("response stream error: %s", error)
                    raise ApiResponseError(str(error), error=error)
                self._log.apply(event)
        if not recorded:
            self._log.append_request(request)

        if self._log.current_response_id == previous_id:
            self.logger.warning("turn ended without a new response")
            return None
        response = self._log.current_response
        self.logger.info(
            "turn finished: response=%s status=%s",
            response.id if response else None,
            response.status.value if response and response.status else None,
        )
        return response

    async def _run_pending_tools(self, response: Response | None) -> list[FunctionCallOutput]:
        if response is None or response.status != ResponseStatus.COMPLETED:
            return []
        calls: list[FunctionCallItem] = [call for call in response.function_calls if self.router.has(call.name)]
        if not calls:
            return []
        self.logger.info("running %d tool call(s): %s", len(calls), ", ".join(call.name for call in calls))
        return list(await asyncio.gather(*(self.router.respond(call) for call in calls)))


__all__ = ["Conversation", "generate_conversation_id"]
