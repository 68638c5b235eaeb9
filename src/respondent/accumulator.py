"""Fold streaming events into an ordered log of requests and responses.

``EntryLog.apply`` is the only mutator. It is synchronous, so an event is
always applied completely before any other coroutine runs. Every event that
targets an item carries the coordinates it expects (output index, item id and
possibly a content or summary index); when the item found there does not
match, the event is ignored and ``apply`` returns False.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable
from typing import TypeAlias, TypeVar

from respondent.models.events import (
    CodeInterpreterCallCodeDelta,
    CodeInterpreterCallCodeDone,
    CodeInterpreterCallCompleted,
    CodeInterpreterCallInProgress,
    CodeInterpreterCallInterpreting,
    ContentPartAdded,
    ContentPartDone,
    CustomToolCallInputDelta,
    CustomToolCallInputDone,
    ErrorEvent,
    Event,
    FileSearchCallCompleted,
    FileSearchCallInProgress,
    FileSearchCallSearching,
    FunctionCallArgumentsDelta,
    FunctionCallArgumentsDone,
    ImageGenerationCallCompleted,
    ImageGenerationCallGenerating,
    ImageGenerationCallInProgress,
    ImageGenerationCallPartialImage,
    McpCallArgumentsDelta,
    McpCallArgumentsDone,
    McpCallCompleted,
    McpCallFailed,
    McpCallInProgress,
    McpListToolsCompleted,
    McpListToolsFailed,
    McpListToolsInProgress,
    OutputItemAdded,
    OutputItemDone,
    OutputTextAnnotationAdded,
    OutputTextDelta,
    OutputTextDone,
    ReasoningSummaryDelta,
    ReasoningSummaryDone,
    ReasoningSummaryPartAdded,
    ReasoningSummaryPartDone,
    ReasoningSummaryTextDelta,
    ReasoningSummaryTextDone,
    RefusalDelta,
    RefusalDone,
    ResponseCompleted,
    ResponseCreated,
    ResponseFailed,
    ResponseIncomplete,
    ResponseInProgress,
    ResponseQueued,
    WebSearchCallCompleted,
    WebSearchCallInProgress,
    WebSearchCallSearching,
)
from respondent.models.items import (
    CodeInterpreterCallItem,
    CustomToolCallItem,
    FileSearchCallItem,
    FunctionCallItem,
    ImageGenerationCallItem,
    ItemStatus,
    McpCallItem,
    MessageItem,
    OutputText,
    ReasoningItem,
    Refusal,
    SummaryText,
    WebSearchCallItem,
)
from respondent.models.request import Request
from respondent.models.response import Response

Entry: TypeAlias = Request | Response

T = TypeVar("T")

_RESPONSE_SNAPSHOTS = (ResponseQueued, ResponseInProgress, ResponseCompleted, ResponseFailed, ResponseIncomplete)

_STATUS_EVENTS: dict[type, tuple[type, ItemStatus]] = {
    WebSearchCallInProgress: (WebSearchCallItem, ItemStatus.IN_PROGRESS),
    WebSearchCallSearching: (WebSearchCallItem, ItemStatus.SEARCHING),
    WebSearchCallCompleted: (WebSearchCallItem, ItemStatus.COMPLETED),
    FileSearchCallInProgress: (FileSearchCallItem, ItemStatus.IN_PROGRESS),
    FileSearchCallSearching: (FileSearchCallItem, ItemStatus.SEARCHING),
    FileSearchCallCompleted: (FileSearchCallItem, ItemStatus.COMPLETED),
    CodeInterpreterCallInProgress: (CodeInterpreterCallItem, ItemStatus.IN_PROGRESS),
    CodeInterpreterCallInterpreting: (CodeInterpreterCallItem, ItemStatus.INTERPRETING),
    CodeInterpreterCallCompleted: (CodeInterpreterCallItem, ItemStatus.COMPLETED),
    ImageGenerationCallInProgress: (ImageGenerationCallItem, ItemStatus.IN_PROGRESS),
    ImageGenerationCallGenerating: (ImageGenerationCallItem, ItemStatus.GENERATING),
    ImageGenerationCallCompleted: (ImageGenerationCallItem, ItemStatus.COMPLETED),
}

# Delta/done pairs that grow or overwrite a single string field of an item.
_STRING_DELTAS: dict[type, tuple[type, str]] = {
    FunctionCallArgumentsDelta: (FunctionCallItem, "arguments"),
    McpCallArgumentsDelta: (McpCallItem, "arguments"),
    CodeInterpreterCallCodeDelta: (CodeInterpreterCallItem, "code"),
    CustomToolCallInputDelta: (CustomToolCallItem, "input"),
}
_STRING_DONES: dict[type, tuple[type, str]] = {
    FunctionCallArgumentsDone: (FunctionCallItem, "arguments"),
    McpCallArgumentsDone: (McpCallItem, "arguments"),
    CodeInterpreterCallCodeDone: (CodeInterpreterCallItem, "code"),
    CustomToolCallInputDone: (CustomToolCallItem, "input"),
}

# Events the item models have no field for.
UNTRACKED_EVENTS = (
    ReasoningSummaryDelta,
    ReasoningSummaryDone,
    McpCallInProgress,
    McpCallCompleted,
    McpCallFailed,
    McpListToolsInProgress,
    McpListToolsCompleted,
    McpListToolsFailed,
)


def set_slot(items: list[T], index: int, value: T) -> bool:
    """Replace ``items[index]``, append when ``index == len(items)``, else do nothing."""

    if 0 <= index < len(items):
        items[index] = value
        return True
    if index == len(items):
        items.append(value)
        return True
    return False


class EntryLog:
    """Ordered log of requests and responses with an explicit current response."""

    def __init__(self, entries: Iterable[Entry] = (), *, logger: logging.Logger | None = None) -> None:
        self._entries: list[Entry] = list(entries)
        self._logger = logger or logging.getLogger(__name__)
        self.current_response_id: str | None = None
        for entry in reversed(self._entries):
            if isinstance(entry, Response):
                self.current_response_id = entry.id
                break

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def current_response(self) -> Response | None:
        if self.current_response_id is None:
            return None
        return self.find_response(self.current_response_id)

    def find_response(self, response_id: str) -> Response | None:
        for entry in reversed(self._entries):
            if isinstance(entry, Response) and entry.id == response_id:
                return entry
        return None

    def append_request(self, request: Request) -> None:
        self._entries.append(request)

    def clear(self) -> None:
        self._entries.clear()
        self.current_response_id = None

    def apply(self, event: Event) -> bool:
        """Fold one event into the log. Returns True when state changed."""

        changed = self._apply(event)
        if not changed and not isinstance(event, UNTRACKED_EVENTS + (ErrorEvent,)):
            self._logger.debug(
                "ignored %s: target not found (output_index=%s item_id=%s)",
                event.type,
                getattr(event, "output_index", None),
                getattr(event, "item_id", None),
            )
        return changed

    def _apply(self, event: Event) -> bool:
        if isinstance(event, ResponseCreated):
            self._entries.append(event.response)
            self.current_response_id = event.response.id
            return True

        if isinstance(event, _RESPONSE_SNAPSHOTS):
            return self._replace_response(event.response)

        if isinstance(event, OutputItemAdded):
            response = self.current_response
            if response is None or event.output_index < 0:
                return False
            response.output.insert(event.output_index, event.item)
            return True

        if isinstance(event, OutputItemDone):
            response = self.current_response
            if self._item(event.output_index, event.item.id, object) is None or response is None:
                return False
            response.output[event.output_index] = event.item
            return True

        if isinstance(event, ContentPartAdded):
            message = self._item(event.output_index, event.item_id, MessageItem)
            if message is None or event.content_index < 0:
                return False
            message.content.insert(event.content_index, event.part)
            return True

        if isinstance(event, ContentPartDone):
            message = self._item(event.output_index, event.item_id, MessageItem)
            if message is None or not 0 <= event.content_index < len(message.content):
                return False
            message.content[event.content_index] = event.part
            return True

        if isinstance(event, OutputTextDelta):
            text = self._content(event.output_index, event.item_id, event.content_index, OutputText)
            if text is None:
                return False
            text.text += event.delta
            text.logprobs.extend(event.logprobs)
            return True

        if isinstance(event, OutputTextDone):
            text = self._content(event.output_index, event.item_id, event.content_index, OutputText)
            if text is None:
                return False
            text.text = event.text
            text.logprobs = list(event.logprobs)
            return True

        if isinstance(event, OutputTextAnnotationAdded):
            text = self._content(event.output_index, event.item_id, event.content_index, OutputText)
            if text is None or event.annotation_index < 0:
                return False
            text.annotations.insert(event.annotation_index, event.annotation)
            return True

        if isinstance(event, RefusalDelta):
            refusal = self._content(event.output_index, event.item_id, event.content_index, Refusal)
            if refusal is None:
                return False
            refusal.refusal += event.delta
            return True

        if isinstance(event, RefusalDone):
            refusal = self._content(event.output_index, event.item_id, event.content_index, Refusal)
            if refusal is None:
                return False
            refusal.refusal = event.refusal
            return True

        string_delta = _STRING_DELTAS.get(type(event))
        if string_delta is not None:
            kind, field = string_delta
            item = self._item(event.output_index, event.item_id, kind)
            if item is None:
                return False
            setattr(item, field, (getattr(item, field) or "") + event.delta)
            return True

        string_done = _STRING_DONES.get(type(event))
        if string_done is not None:
            kind, field = string_done
            item = self._item(event.output_index, event.item_id, kind)
            if item is None:
                return False
            setattr(item, field, getattr(event, field))
            return True

        status_change = _STATUS_EVENTS.get(type(event))
        if status_change is not None:
            kind, status = status_change
            item = self._item(event.output_index, event.item_id, kind)
            if item is None:
                return False
            item.status = status
            return True

        if isinstance(event, ImageGenerationCallPartialImage):
            image = self._item(event.output_index, event.item_id, ImageGenerationCallItem)
            if image is None:
                return False
            try:
                decoded = base64.b64decode(event.partial_image_b64, validate=True)
            except (binascii.Error, ValueError):
                return False
            return set_slot(image.partial_images, event.partial_image_index, decoded)

        if isinstance(event, (ReasoningSummaryPartAdded, ReasoningSummaryPartDone)):
            reasoning = self._item(event.output_index, event.item_id, ReasoningItem)
            if reasoning is None:
                return False
            return set_slot(reasoning.summary, event.summary_index, event.part)

        if isinstance(event, (ReasoningSummaryTextDelta, ReasoningSummaryTextDone)):
            summary = self._summary(event.output_index, event.item_id, event.summary_index)
            if summary is None:
                return False
            if isinstance(event, ReasoningSummaryTextDelta):
                summary.text += event.delta
            else:
                summary.text = event.text
            return True

        return False

    def _replace_response(self, response: Response) -> bool:
        for index in range(len(self._entries) - 1, -1, -1):
            entry = self._entries[index]
            if isinstance(entry, Response) and entry.id == response.id:
                self._entries[index] = response
                return True
        return False

    def _item(self, output_index: int, item_id: str, kind: type[T]) -> T | None:
        response = self.current_response
        if response is None or not 0 <= output_index < len(response.output):
            return None
        item = response.output[output_index]
        if item.id != item_id or not isinstance(item, kind):
            return None
        return item

    def _content(self, output_index: int, item_id: str, content_index: int, kind: type[T]) -> T | None:
        message = self._item(output_index, item_id, MessageItem)
        if message is None or not 0 <= content_index < len(message.content):
            return None
        part = message.content[content_index]
        return part if isinstance(part, kind) else None

    def _summary(self, output_index: int, item_id: str, summary_index: int) -> SummaryText | None:
        reasoning = self._item(output_index, item_id, ReasoningItem)
        if reasoning is None or not 0 <= summary_index < len(reasoning.summary):
            return None
        return reasoning.summary[summary_index]


__all__ = ["Entry", "EntryLog", "UNTRACKED_EVENTS", "set_slot"]
