"""Output items and message content produced by the model."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, TypeAlias

from pydantic import Field

from respondent.models.base import ApiModel, UnknownKind, open_union


class ItemStatus(str, Enum):
    """Status values shared by every output item kind."""

    IN_PROGRESS = "in_progress"
    SEARCHING = "searching"
    INTERPRETING = "interpreting"
    GENERATING = "generating"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    FAILED = "failed"


class TopLogProb(ApiModel):
    token: str
    logprob: float
    bytes: list[int] | None = None


class LogProb(ApiModel):
    """Log probability of one generated token."""

    token: str
    logprob: float
    bytes: list[int] | None = None
    top_logprobs: list[TopLogProb] = Field(default_factory=list)


class FileCitation(ApiModel):
    type: Literal["file_citation"] = "file_citation"
    file_id: str
    filename: str | None = None
    index: int


class UrlCitation(ApiModel):
    type: Literal["url_citation"] = "url_citation"
    url: str
    title: str | None = None
    start_index: int
    end_index: int


class ContainerFileCitation(ApiModel):
    type: Literal["container_file_citation"] = "container_file_citation"
    container_id: str
    file_id: str
    filename: str | None = None
    start_index: int
    end_index: int


class FilePath(ApiModel):
    type: Literal["file_path"] = "file_path"
    file_id: str
    index: int


class UnknownAnnotation(UnknownKind):
    pass


Annotation: TypeAlias = open_union(
    FileCitation, UrlCitation, ContainerFileCitation, FilePath, fallback=UnknownAnnotation
)


class OutputText(ApiModel):
    """Text content part of an assistant message."""

    type: Literal["output_text"] = "output_text"
    text: str = ""
    annotations: list[Annotation] = Field(default_factory=list)
    logprobs: list[LogProb] = Field(default_factory=list)


class Refusal(ApiModel):
    """Refusal content part of an assistant message."""

    type: Literal["refusal"] = "refusal"
    refusal: str = ""


class UnknownContent(UnknownKind):
    pass


ContentPart: TypeAlias = open_union(OutputText, Refusal, fallback=UnknownContent)


class MessageItem(ApiModel):
    """Assistant message made of ordered content parts."""

    type: Literal["message"] = "message"
    id: str
    role: str = "assistant"
    status: ItemStatus | None = None
    content: list[ContentPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        parts: list[str] = []
        for part in self.content:
            if isinstance(part, OutputText):
                parts.append(part.text)
            elif isinstance(part, Refusal):
                parts.append(part.refusal)
        return "".join(parts)


class FunctionCallItem(ApiModel):
    """Call to a function tool declared by the caller."""

    type: Literal["function_call"] = "function_call"
    id: str
    call_id: str
    name: str
    arguments: str = ""
    status: ItemStatus | None = None


class WebSearchCallItem(ApiModel):
    type: Literal["web_search_call"] = "web_search_call"
    id: str
    status: ItemStatus | None = None
    action: dict[str, Any] | None = None


class FileSearchCallItem(ApiModel):
    type: Literal["file_search_call"] = "file_search_call"
    id: str
    status: ItemStatus | None = None
    queries: list[str] = Field(default_factory=list)
    results: list[dict[str, Any]] | None = None


class SummaryText(ApiModel):
    """One part of a reasoning summary."""

    type: Literal["summary_text"] = "summary_text"
    text: str = ""


class ReasoningItem(ApiModel):
    type: Literal["reasoning"] = "reasoning"
    id: str
    summary: list[SummaryText] = Field(default_factory=list)
    content: list[dict[str, Any]] | None = None
    encrypted_content: str | None = None
    status: ItemStatus | None = None


class ImageGenerationCallItem(ApiModel):
    """Image generation call.

    ``partial_images`` holds decoded previews streamed before the final
    ``result``; it only exists client side and is never serialized.
    """

    type: Literal["image_generation_call"] = "image_generation_call"
    id: str
    status: ItemStatus | None = None
    result: str | None = None
    partial_images: list[bytes] = Field(default_factory=list, exclude=True)


class CodeInterpreterCallItem(ApiModel):
    type: Literal["code_interpreter_call"] = "code_interpreter_call"
    id: str
    status: ItemStatus | None = None
    code: str | None = None
    container_id: str | None = None
    outputs: list[dict[str, Any]] | None = None


class CustomToolCallItem(ApiModel):
    type: Literal["custom_tool_call"] = "custom_tool_call"
    id: str
    call_id: str
    name: str
    input: str = ""


class ComputerCallItem(ApiModel):
    type: Literal["computer_call"] = "computer_call"
    id: str
    call_id: str
    action: dict[str, Any] = Field(default_factory=dict)
    pending_safety_checks: list[dict[str, Any]] = Field(default_factory=list)
    status: ItemStatus | None = None


class McpCallItem(ApiModel):
    type: Literal["mcp_call"] = "mcp_call"
    id: str
    server_label: str
    name: str
    arguments: str = ""
    output: str | None = None
    error: str | None = None


class McpListToolsItem(ApiModel):
    type: Literal["mcp_list_tools"] = "mcp_list_tools"
    id: str
    server_label: str
    tools: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None


class McpApprovalRequestItem(ApiModel):
    type: Literal["mcp_approval_request"] = "mcp_approval_request"
    id: str
    server_label: str
    name: str
    arguments: str = ""


class LocalShellCallItem(ApiModel):
    type: Literal["local_shell_call"] = "local_shell_call"
    id: str
    call_id: str
    action: dict[str, Any] = Field(default_factory=dict)
    status: ItemStatus | None = None


class UnknownItem(UnknownKind):
    """Output item of a kind this library does not model.

    It keeps its position in ``Response.output`` so the indices of later
    items stay aligned with the server's.
    """

    id: str | None = None


OutputItem: TypeAlias = open_union(
    MessageItem,
    FunctionCallItem,
    WebSearchCallItem,
    FileSearchCallItem,
    ReasoningItem,
    ImageGenerationCallItem,
    CodeInterpreterCallItem,
    CustomToolCallItem,
    ComputerCallItem,
    McpCallItem,
    McpListToolsItem,
    McpApprovalRequestItem,
    LocalShellCallItem,
    fallback=UnknownItem,
)


__all__ = [
    "Annotation",
    "CodeInterpreterCallItem",
    "ComputerCallItem",
    "ContainerFileCitation",
    "ContentPart",
    "CustomToolCallItem",
    "FileCitation",
    "FilePath",
    "FileSearchCallItem",
    "FunctionCallItem",
    "ImageGenerationCallItem",
    "ItemStatus",
    "LocalShellCallItem",
    "LogProb",
    "McpApprovalRequestItem",
    "McpCallItem",
    "McpListToolsItem",
    "MessageItem",
    "OutputItem",
    "OutputText",
    "ReasoningItem",
    "Refusal",
    "SummaryText",
    "TopLogProb",
    "UnknownAnnotation",
    "UnknownContent",
    "UnknownItem",
    "UrlCitation",
    "WebSearchCallItem",
]
