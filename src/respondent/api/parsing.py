"""Streaming parser that converts raw SSE lines into typed events."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterable

from pydantic import ValidationError

from respondent.api.errors import StreamingParseError
from respondent.models.base import REJECT_UNKNOWN_KINDS
from respondent.models.events import EVENT_ADAPTER, EVENT_TYPES, Event

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def _iter_lines(chunk: str) -> Iterable[str]:
    """Split an SSE chunk into individual lines."""

    for line in chunk.splitlines():
        if line:
            yield line


def parse_sse_line(line: str) -> str | None:
    """Return the payload of a ``data:`` line, or None for any other line.

    The line is split once on the first colon; only a field name of exactly
    ``data`` is accepted.
    """

    field, separator, value = line.partition(":")
    if not separator or field != "data":
        return None
    return value.strip()


def decode_event(payload: str, *, strict: bool = False) -> Event | None:
    """Decode one ``data:`` payload into an event.

    Returns None for payloads that are skipped: malformed JSON and unknown
    event types, unless ``strict`` is set, in which case both raise. Items,
    content parts and annotations of unknown kinds decode to the ``Unknown*``
    models, or raise when ``strict`` is set.
    """

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        if strict:
            raise StreamingParseError(f"invalid JSON chunk: {payload}") from exc
        logger.warning("skipping malformed SSE payload: %.200s", payload)
        return None

    event_type = data.get("type") if isinstance(data, dict) else None
    if event_type not in EVENT_TYPES:
        if strict:
            raise StreamingParseError(f"unsupported event type: {event_type!r}")
        logger.warning("skipping unrecognized event type: %r", event_type)
        return None

    try:
        return EVENT_ADAPTER.validate_python(data, context={REJECT_UNKNOWN_KINDS: strict})
    except ValidationError as exc:
        raise StreamingParseError(f"invalid {event_type} event: {exc}") from exc


async def parse_stream(chunks: AsyncIterator[str | bytes], *, strict: bool = False) -> AsyncIterator[Event]:
    """Parse SSE-style chunks into events.

    The upstream iterator is closed when this generator finishes, fails or is
    closed early, which releases the underlying HTTP stream.
    """

    try:
        async for raw in chunks:
            text = raw.decode("utf-8") if isinstance(raw, (bytes | bytearray)) else raw
            for line in _iter_lines(text):
                payload = parse_sse_line(line)
                if payload is None:
                    continue
                if payload == DONE_SENTINEL:
                    return
                event = decode_event(payload, strict=strict)
                if event is not None:
                    yield event
    finally:
        aclose = getattr(chunks, "aclose", None)
        if callable(aclose):
            await aclose()


__all__ = ["DONE_SENTINEL", "decode_event", "parse_sse_line", "parse_stream"]
