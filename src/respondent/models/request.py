"""Request payloads and input items sent to the Responses API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, TypeAlias

from pydantic import Field

from respondent.models.base import ApiModel, open_union
from respondent.models.items import (
    CodeInterpreterCallItem,
    ComputerCallItem,
    CustomToolCallItem,
    FileSearchCallItem,
    FunctionCallItem,
    ImageGenerationCallItem,
    ItemStatus,
    LocalShellCallItem,
    McpApprovalRequestItem,
    McpCallItem,
    McpListToolsItem,
    OutputText,
    ReasoningItem,
    Refusal,
    UnknownContent,
    UnknownItem,
    WebSearchCallItem,
)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    DEVELOPER = "developer"


class ReasoningEffort(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Include(str, Enum):
    """Extra output data the API can be asked to return."""

    FILE_SEARCH_RESULTS = "file_search_call.results"
    WEB_SEARCH_SOURCES = "web_search_call.action.sources"
    INPUT_IMAGE_URLS = "message.input_image.image_url"
    COMPUTER_CALL_IMAGE_URLS = "computer_call_output.output.image_url"
    CODE_INTERPRETER_OUTPUTS = "code_interpreter_call.outputs"
    REASONING_ENCRYPTED_CONTENT = "reasoning.encrypted_content"
    OUTPUT_TEXT_LOGPROBS = "message.output_text.logprobs"


class InputText(ApiModel):
    type: Literal["input_text"] = "input_text"
    text: str


class InputImage(ApiModel):
    type: Literal["input_image"] = "input_image"
    image_url: str | None = None
    file_id: str | None = None
    detail: Literal["low", "high", "auto"] = "auto"


class InputFile(ApiModel):
    type: Literal["input_file"] = "input_file"
    file_id: str | None = None
    file_data: str | None = None
    file_url: str | None = None
    filename: str | None = None


InputContent: TypeAlias = open_union(
    InputText, InputImage, InputFile, OutputText, Refusal, fallback=UnknownContent
)


class InputMessage(ApiModel):
    """Message authored by the caller (or an assistant message echoed back)."""

    type: Literal["message"] = "message"
    role: Role
    content: str | list[InputContent]
    id: str | None = None
    status: ItemStatus | None = None

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        chunks: list[str] = []
        for part in self.content:
            if isinstance(part, (InputText, OutputText)):
                chunks.append(part.text)
            elif isinstance(part, Refusal):
                chunks.append(part.refusal)
        return "".join(chunks)


class FunctionCallOutput(ApiModel):
    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str
    id: str | None = None
    status: ItemStatus | None = None


class ComputerCallOutput(ApiModel):
    type: Literal["computer_call_output"] = "computer_call_output"
    call_id: str
    output: dict[str, Any]
    acknowledged_safety_checks: list[dict[str, Any]] | None = None
    id: str | None = None


class McpApprovalResponse(ApiModel):
    type: Literal["mcp_approval_response"] = "mcp_approval_response"
    approval_request_id: str
    approve: bool
    reason: str | None = None


class LocalShellCallOutput(ApiModel):
    type: Literal["local_shell_call_output"] = "local_shell_call_output"
    id: str
    output: str


class ItemReference(ApiModel):
    type: Literal["item_reference"] = "item_reference"
    id: str


InputItem: TypeAlias = open_union(
    InputMessage,
    FunctionCallOutput,
    ComputerCallOutput,
    McpApprovalResponse,
    LocalShellCallOutput,
    ItemReference,
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

Input: TypeAlias = str | list[InputItem]


class FunctionTool(ApiModel):
    """Function tool definition advertised to the model."""

    type: Literal["function"] = "function"
    name: str
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    strict: bool = True


ToolDefinition: TypeAlias = FunctionTool | dict[str, Any]


class ReasoningConfig(ApiModel):
    effort: ReasoningEffort | None = None
    summary: Literal["auto", "concise", "detailed"] | None = None


class Request(ApiModel):
    """Body of ``POST /responses``."""

    model: str
    input: Input
    include: list[Include] | None = None
    instructions: str | None = None
    max_output_tokens: int | None = None
    metadata: dict[str, str] | None = None
    parallel_tool_calls: bool | None = None
    previous_response_id: str | None = None
    reasoning: ReasoningConfig | None = None
    store: bool | None = None
    stream: bool | None = None
    temperature: float | None = None
    text: dict[str, Any] | None = None
    tool_choice: str | dict[str, Any] | None = None
    tools: list[ToolDefinition] | None = None
    top_p: float | None = None
    truncation: Literal["auto", "disabled"] | None = None
    user: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InputItemList(ApiModel):
    """Page returned by ``GET /responses/{id}/input_items``."""

    object: str = "list"
    data: list[InputItem] = Field(default_factory=list)
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False


__all__ = [
    "ComputerCallOutput",
    "FunctionCallOutput",
    "FunctionTool",
    "Include",
    "Input",
    "InputContent",
    "InputFile",
    "InputImage",
    "InputItem",
    "InputItemList",
    "InputMessage",
    "InputText",
    "ItemReference",
    "LocalShellCallOutput",
    "McpApprovalResponse",
    "ReasoningConfig",
    "ReasoningEffort",
    "Request",
    "Role",
    "ToolDefinition",
]
