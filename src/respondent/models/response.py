"""Response objects returned by the Responses API."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from respondent.models.base import ApiModel
from respondent.models.items import FunctionCallItem, MessageItem, OutputItem


class ResponseStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ResponseError(ApiModel):
    """Error payload attached to a failed response or sent as an error event."""

    type: str | None = None
    code: str | None = None
    message: str = ""
    param: str | None = None

    def __str__(self) -> str:
        label = self.code or self.type or "error"
        return f"{label}: {self.message}" if self.message else label


class IncompleteDetails(ApiModel):
    reason: str | None = None


class InputTokensDetails(ApiModel):
    cached_tokens: int = 0


class OutputTokensDetails(ApiModel):
    reasoning_tokens: int = 0


class Usage(ApiModel):
    input_tokens: int = 0
    input_tokens_details: InputTokensDetails = Field(default_factory=InputTokensDetails)
    output_tokens: int = 0
    output_tokens_details: OutputTokensDetails = Field(default_factory=OutputTokensDetails)
    total_tokens: int = 0


class Response(ApiModel):
    """A model response and its ordered output items."""

    id: str
    object: str = "response"
    created_at: float | None = None
    status: ResponseStatus | None = None
    model: str | None = None
    output: list[OutputItem] = Field(default_factory=list)
    error: ResponseError | None = None
    incomplete_details: IncompleteDetails | None = None
    instructions: Any = None
    previous_response_id: str | None = None
    metadata: dict[str, str] | None = None
    usage: Usage | None = None
    parallel_tool_calls: bool | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    tool_choice: Any = None
    tools: list[Any] = Field(default_factory=list)
    truncation: str | None = None
    reasoning: dict[str, Any] | None = None
    text: dict[str, Any] | None = None
    store: bool | None = None
    user: str | None = None

    @property
    def output_text(self) -> str:
        """Concatenated text and refusal content of every message in the output."""

        return "".join(item.text for item in self.output if isinstance(item, MessageItem))

    @property
    def function_calls(self) -> list[FunctionCallItem]:
        return [item for item in self.output if isinstance(item, FunctionCallItem)]

    @property
    def is_in_progress(self) -> bool:
        return self.status in (ResponseStatus.QUEUED, ResponseStatus.IN_PROGRESS)


__all__ = [
    "IncompleteDetails",
    "InputTokensDetails",
    "OutputTokensDetails",
    "Response",
    "ResponseError",
    "ResponseStatus",
    "Usage",
]
