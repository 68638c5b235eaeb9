"""Streaming events emitted by the Responses API.

Every event is a pydantic model whose ``type`` literal matches the SSE
``type`` discriminator. ``Event`` is the discriminated union of all of them
and ``EVENT_ADAPTER`` validates a decoded JSON object into the right class.
"""

from __future__ import annotations

from typing import Annotated, Literal, TypeAlias, Union, get_args

from pydantic import Field, TypeAdapter

from respondent.models.base import ApiModel
from respondent.models.items import (
    Annotation,
    ContentPart,
    LogProb,
    OutputItem,
    SummaryText,
)
from respondent.models.response import Response, ResponseError


class BaseEvent(ApiModel):
    sequence_number: int | None = None


class _ResponseEvent(BaseEvent):
    response: Response


class _ItemEvent(BaseEvent):
    output_index: int
    item_id: str


class _ContentEvent(_ItemEvent):
    content_index: int


class _SummaryEvent(_ItemEvent):
    summary_index: int


# Response lifecycle


class ResponseCreated(_ResponseEvent):
    type: Literal["response.created"] = "response.created"


class ResponseQueued(_ResponseEvent):
    type: Literal["response.queued"] = "response.queued"


class ResponseInProgress(_ResponseEvent):
    type: Literal["response.in_progress"] = "response.in_progress"


class ResponseCompleted(_ResponseEvent):
    type: Literal["response.completed"] = "response.completed"


class ResponseFailed(_ResponseEvent):
    type: Literal["response.failed"] = "response.failed"


class ResponseIncomplete(_ResponseEvent):
    type: Literal["response.incomplete"] = "response.incomplete"


# Output items and content parts


class OutputItemAdded(BaseEvent):
    type: Literal["response.output_item.added"] = "response.output_item.added"
    output_index: int
    item: OutputItem


class OutputItemDone(BaseEvent):
    type: Literal["response.output_item.done"] = "response.output_item.done"
    output_index: int
    item: OutputItem


class ContentPartAdded(_ContentEvent):
    type: Literal["response.content_part.added"] = "response.content_part.added"
    part: ContentPart


class ContentPartDone(_ContentEvent):
    type: Literal["response.content_part.done"] = "response.content_part.done"
    part: ContentPart


class OutputTextDelta(_ContentEvent):
    type: Literal["response.output_text.delta"] = "response.output_text.delta"
    delta: str
    logprobs: list[LogProb] = Field(default_factory=list)


class OutputTextDone(_ContentEvent):
    type: Literal["response.output_text.done"] = "response.output_text.done"
    text: str
    logprobs: list[LogProb] = Field(default_factory=list)


class OutputTextAnnotationAdded(_ContentEvent):
    type: Literal["response.output_text.annotation.added"] = "response.output_text.annotation.added"
    annotation_index: int
    annotation: Annotation


class RefusalDelta(_ContentEvent):
    type: Literal["response.refusal.delta"] = "response.refusal.delta"
    delta: str


class RefusalDone(_ContentEvent):
    type: Literal["response.refusal.done"] = "response.refusal.done"
    refusal: str


# Tool call payload streams


class FunctionCallArgumentsDelta(_ItemEvent):
    type: Literal["response.function_call_arguments.delta"] = "response.function_call_arguments.delta"
    delta: str


class FunctionCallArgumentsDone(_ItemEvent):
    type: Literal["response.function_call_arguments.done"] = "response.function_call_arguments.done"
    arguments: str


class McpCallArgumentsDelta(_ItemEvent):
    type: Literal["response.mcp_call_arguments.delta"] = "response.mcp_call_arguments.delta"
    delta: str


class McpCallArgumentsDone(_ItemEvent):
    type: Literal["response.mcp_call_arguments.done"] = "response.mcp_call_arguments.done"
    arguments: str


class CodeInterpreterCallCodeDelta(_ItemEvent):
    type: Literal["response.code_interpreter_call_code.delta"] = "response.code_interpreter_call_code.delta"
    delta: str


class CodeInterpreterCallCodeDone(_ItemEvent):
    type: Literal["response.code_interpreter_call_code.done"] = "response.code_interpreter_call_code.done"
    code: str


class CustomToolCallInputDelta(_ItemEvent):
    type: Literal["response.custom_tool_call_input.delta"] = "response.custom_tool_call_input.delta"
    delta: str


class CustomToolCallInputDone(_ItemEvent):
    type: Literal["response.custom_tool_call_input.done"] = "response.custom_tool_call_input.done"
    input: str


# Hosted tool status


class WebSearchCallInProgress(_ItemEvent):
    type: Literal["response.web_search_call.in_progress"] = "response.web_search_call.in_progress"


class WebSearchCallSearching(_ItemEvent):
    type: Literal["response.web_search_call.searching"] = "response.web_search_call.searching"


class WebSearchCallCompleted(_ItemEvent):
    type: Literal["response.web_search_call.completed"] = "response.web_search_call.completed"


class FileSearchCallInProgress(_ItemEvent):
    type: Literal["response.file_search_call.in_progress"] = "response.file_search_call.in_progress"


class FileSearchCallSearching(_ItemEvent):
    type: Literal["response.file_search_call.searching"] = "response.file_search_call.searching"


class FileSearchCallCompleted(_ItemEvent):
    type: Literal["response.file_search_call.completed"] = "response.file_search_call.completed"


class CodeInterpreterCallInProgress(_ItemEvent):
    type: Literal["response.code_interpreter_call.in_progress"] = "response.code_interpreter_call.in_progress"


class CodeInterpreterCallInterpreting(_ItemEvent):
    type: Literal["response.code_interpreter_call.interpreting"] = "response.code_interpreter_call.interpreting"


class CodeInterpreterCallCompleted(_ItemEvent):
    type: Literal["response.code_interpreter_call.completed"] = "response.code_interpreter_call.completed"


class ImageGenerationCallInProgress(_ItemEvent):
    type: Literal["response.image_generation_call.in_progress"] = "response.image_generation_call.in_progress"


class ImageGenerationCallGenerating(_ItemEvent):
    type: Literal["response.image_generation_call.generating"] = "response.image_generation_call.generating"


class ImageGenerationCallCompleted(_ItemEvent):
    type: Literal["response.image_generation_call.completed"] = "response.image_generation_call.completed"


class ImageGenerationCallPartialImage(_ItemEvent):
    type: Literal["response.image_generation_call.partial_image"] = "response.image_generation_call.partial_image"
    partial_image_index: int
    partial_image_b64: str


class McpCallInProgress(BaseEvent):
    type: Literal["response.mcp_call.in_progress"] = "response.mcp_call.in_progress"
    output_index: int | None = None
    item_id: str | None = None


class McpCallCompleted(BaseEvent):
    type: Literal["response.mcp_call.completed"] = "response.mcp_call.completed"
    output_index: int | None = None
    item_id: str | None = None


class McpCallFailed(BaseEvent):
    type: Literal["response.mcp_call.failed"] = "response.mcp_call.failed"
    output_index: int | None = None
    item_id: str | None = None


class McpListToolsInProgress(BaseEvent):
    type: Literal["response.mcp_list_tools.in_progress"] = "response.mcp_list_tools.in_progress"
    output_index: int | None = None
    item_id: str | None = None


class McpListToolsCompleted(BaseEvent):
    type: Literal["response.mcp_list_tools.completed"] = "response.mcp_list_tools.completed"
    output_index: int | None = None
    item_id: str | None = None


class McpListToolsFailed(BaseEvent):
    type: Literal["response.mcp_list_tools.failed"] = "response.mcp_list_tools.failed"
    output_index: int | None = None
    item_id: str | None = None


# Reasoning summaries


class ReasoningSummaryPartAdded(_SummaryEvent):
    type: Literal["response.reasoning_summary_part.added"] = "response.reasoning_summary_part.added"
    part: SummaryText


class ReasoningSummaryPartDone(_SummaryEvent):
    type: Literal["response.reasoning_summary_part.done"] = "response.reasoning_summary_part.done"
    part: SummaryText


class ReasoningSummaryTextDelta(_SummaryEvent):
    type: Literal["response.reasoning_summary_text.delta"] = "response.reasoning_summary_text.delta"
    delta: str


class ReasoningSummaryTextDone(_SummaryEvent):
    type: Literal["response.reasoning_summary_text.done"] = "response.reasoning_summary_text.done"
    text: str


class ReasoningSummaryDelta(_SummaryEvent):
    type: Literal["response.reasoning_summary.delta"] = "response.reasoning_summary.delta"
    delta: dict | str | None = None


class ReasoningSummaryDone(_SummaryEvent):
    type: Literal["response.reasoning_summary.done"] = "response.reasoning_summary.done"
    text: str | None = None


class ErrorEvent(BaseEvent):
    """Stream-level error.

    The API sends ``code``/``message``/``param`` at the top level; some
    proxies nest them under ``error``. Both shapes are accepted.
    """

    type: Literal["error"] = "error"
    code: str | None = None
    message: str | None = None
    param: str | None = None
    error: ResponseError | None = None

    def to_response_error(self) -> ResponseError:
        if self.error is not None:
            return self.error
        return ResponseError(type="error", code=self.code, message=self.message or "", param=self.param)


Event: TypeAlias = Annotated[
    Union[
        ResponseCreated,
        ResponseQueued,
        ResponseInProgress,
        ResponseCompleted,
        ResponseFailed,
        ResponseIncomplete,
        OutputItemAdded,
        OutputItemDone,
        ContentPartAdded,
        ContentPartDone,
        OutputTextDelta,
        OutputTextDone,
        OutputTextAnnotationAdded,
        RefusalDelta,
        RefusalDone,
        FunctionCallArgumentsDelta,
        FunctionCallArgumentsDone,
        McpCallArgumentsDelta,
        McpCallArgumentsDone,
        CodeInterpreterCallCodeDelta,
        CodeInterpreterCallCodeDone,
        CustomToolCallInputDelta,
        CustomToolCallInputDone,
        WebSearchCallInProgress,
        WebSearchCallSearching,
        WebSearchCallCompleted,
        FileSearchCallInProgress,
        FileSearchCallSearching,
        FileSearchCallCompleted,
        CodeInterpreterCallInProgress,
        CodeInterpreterCallInterpreting,
        CodeInterpreterCallCompleted,
        ImageGenerationCallInProgress,
        ImageGenerationCallGenerating,
        ImageGenerationCallCompleted,
        ImageGenerationCallPartialImage,
        McpCallInProgress,
        McpCallCompleted,
        McpCallFailed,
        McpListToolsInProgress,
        McpListToolsCompleted,
        McpListToolsFailed,
        ReasoningSummaryPartAdded,
        ReasoningSummaryPartDone,
        ReasoningSummaryTextDelta,
        ReasoningSummaryTextDone,
        ReasoningSummaryDelta,
        ReasoningSummaryDone,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)

EVENT_TYPES: frozenset[str] = frozenset(
    cls.model_fields["type"].default for cls in get_args(get_args(Event)[0])
)


__all__ = [
    "BaseEvent",
    "CodeInterpreterCallCodeDelta",
    "CodeInterpreterCallCodeDone",
    "CodeInterpreterCallCompleted",
    "CodeInterpreterCallInProgress",
    "CodeInterpreterCallInterpreting",
    "ContentPartAdded",
    "ContentPartDone",
    "CustomToolCallInputDelta",
    "CustomToolCallInputDone",
    "EVENT_ADAPTER",
    "EVENT_TYPES",
    "ErrorEvent",
    "Event",
    "FileSearchCallCompleted",
    "FileSearchCallInProgress",
    "FileSearchCallSearching",
    "FunctionCallArgumentsDelta",
    "FunctionCallArgumentsDone",
    "ImageGenerationCallCompleted",
    "ImageGenerationCallGenerating",
    "ImageGenerationCallInProgress",
    "ImageGenerationCallPartialImage",
    "McpCallArgumentsDelta",
    "McpCallArgumentsDone",
    "McpCallCompleted",
    "McpCallFailed",
    "McpCallInProgress",
    "McpListToolsCompleted",
    "McpListToolsFailed",
    "McpListToolsInProgress",
    "OutputItemAdded",
    "OutputItemDone",
    "OutputTextAnnotationAdded",
    "OutputTextDelta",
    "OutputTextDone",
    "ReasoningSummaryDelta",
    "ReasoningSummaryDone",
    "ReasoningSummaryPartAdded",
    "ReasoningSummaryPartDone",
    "ReasoningSummaryTextDelta",
    "ReasoningSummaryTextDone",
    "RefusalDelta",
    "RefusalDone",
    "ResponseCompleted",
    "ResponseCreated",
    "ResponseFailed",
    "ResponseInProgress",
    "ResponseIncomplete",
    "ResponseQueued",
    "WebSearchCallCompleted",
    "WebSearchCallInProgress",
    "WebSearchCallSearching",
]
