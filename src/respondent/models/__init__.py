"""Typed wire models for the Responses API."""

from __future__ import annotations

from .base import ApiModel, UnknownKind  # noqa: F401
from .events import EVENT_ADAPTER, EVENT_TYPES, ErrorEvent, Event  # noqa: F401
from .files import File, FilePurpose, FileUpload  # noqa: F401
from .items import (  # noqa: F401
    Annotation,
    CodeInterpreterCallItem,
    ComputerCallItem,
    ContentPart,
    CustomToolCallItem,
    FileSearchCallItem,
    FunctionCallItem,
    ImageGenerationCallItem,
    ItemStatus,
    LocalShellCallItem,
    LogProb,
    McpApprovalRequestItem,
    McpCallItem,
    McpListToolsItem,
    MessageItem,
    OutputItem,
    OutputText,
    ReasoningItem,
    Refusal,
    SummaryText,
    UnknownAnnotation,
    UnknownContent,
    UnknownItem,
    WebSearchCallItem,
)
from .request import (  # noqa: F401
    ComputerCallOutput,
    FunctionCallOutput,
    FunctionTool,
    Include,
    Input,
    InputFile,
    InputImage,
    InputItem,
    InputItemList,
    InputMessage,
    InputText,
    LocalShellCallOutput,
    McpApprovalResponse,
    ReasoningConfig,
    ReasoningEffort,
    Request,
    Role,
    ToolDefinition,
)
from .response import Response, ResponseError, ResponseStatus, Usage  # noqa: F401
