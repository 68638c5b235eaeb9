import base64
import logging

import pytest

from respondent.accumulator import EntryLog, set_slot
from respondent.models.events import (
    EVENT_ADAPTER,
    CodeInterpreterCallCodeDelta,
    CodeInterpreterCallCodeDone,
    ContentPartAdded,
    ContentPartDone,
    CustomToolCallInputDelta,
    FunctionCallArgumentsDelta,
    FunctionCallArgumentsDone,
    ImageGenerationCallPartialImage,
    McpCallArgumentsDelta,
    McpCallCompleted,
    OutputItemAdded,
    OutputItemDone,
    OutputTextAnnotationAdded,
    OutputTextDelta,
    OutputTextDone,
    ReasoningSummaryDelta,
    ReasoningSummaryPartAdded,
    ReasoningSummaryTextDelta,
    ReasoningSummaryTextDone,
    RefusalDelta,
    RefusalDone,
    ResponseCompleted,
    ResponseCreated,
    WebSearchCallCompleted,
    WebSearchCallSearching,
)
from respondent.models.items import (
    CodeInterpreterCallItem,
    CustomToolCallItem,
    FunctionCallItem,
    ImageGenerationCallItem,
    ItemStatus,
    LogProb,
    McpCallItem,
    MessageItem,
    OutputText,
    ReasoningItem,
    Refusal,
    SummaryText,
    UrlCitation,
    WebSearchCallItem,
)
from respondent.models.request import Request
from respondent.models.response import Response, ResponseStatus


def _log_with(*items) -> EntryLog:
    log = EntryLog()
    log.apply(ResponseCreated(response=Response(id="resp_1", status=ResponseStatus.IN_PROGRESS)))
    for index, item in enumerate(items):
        assert log.apply(OutputItemAdded(output_index=index, item=item))
    return log


def _message(item_id: str = "msg_1", *parts) -> MessageItem:
    return MessageItem(id=item_id, status=ItemStatus.IN_PROGRESS, content=list(parts))


def _output(log: EntryLog, index: int = 0):
    return log.current_response.output[index]


def test_response_created_appends_and_becomes_current() -> None:
    log = EntryLog()
    request = Request(model="gpt-4o", input="hi")
    log.append_request(request)

    assert log.apply(ResponseCreated(response=Response(id="resp_a")))
    assert log.apply(ResponseCreated(response=Response(id="resp_b")))

    assert [getattr(entry, "id", None) for entry in log.entries] == [None, "resp_a", "resp_b"]
    assert log.entries[0] is request
    assert log.current_response_id == "resp_b"


def test_terminal_status_replaces_response_wholesale() -> None:
    log = _log_with(_message("msg_1", OutputText(text="partial")))
    final = Response(
        id="resp_1",
        status=ResponseStatus.COMPLETED,
        output=[MessageItem(id="msg_1", status=ItemStatus.COMPLETED, content=[OutputText(text="final")])],
    )

    assert log.apply(ResponseCompleted(response=final))

    assert log.current_response is final
    assert log.current_response.output_text == "final"
    assert len(log.entries) == 1


def test_snapshot_for_unknown_response_is_noop() -> None:
    log = _log_with()

    assert not log.apply(ResponseCompleted(response=Response(id="resp_other", status=ResponseStatus.COMPLETED)))
    assert log.current_response.status is ResponseStatus.IN_PROGRESS


def test_snapshot_can_update_older_response_by_id() -> None:
    log = EntryLog()
    log.apply(ResponseCreated(response=Response(id="old", status=ResponseStatus.IN_PROGRESS)))
    log.apply(ResponseCreated(response=Response(id="new")))

    assert log.apply(ResponseCompleted(response=Response(id="old", status=ResponseStatus.COMPLETED)))

    assert log.entries[0].status is ResponseStatus.COMPLETED
    assert log.current_response_id == "new"


def test_item_events_without_current_response_are_noops() -> None:
    log = EntryLog()

    assert not log.apply(OutputItemAdded(output_index=0, item=_message()))
    assert log.entries == ()


def test_output_item_added_uses_list_insert_semantics() -> None:
    log = _log_with(_message("a"), _message("b"))

    assert log.apply(OutputItemAdded(output_index=1, item=_message("middle")))
    assert log.apply(OutputItemAdded(output_index=99, item=_message("tail")))

    assert [item.id for item in log.current_response.output] == ["a", "middle", "b", "tail"]


def test_items_added_out_of_order_are_inserted_at_index() -> None:
    log = _log_with()

    log.apply(OutputItemAdded(output_index=1, item=_message("first")))
    log.apply(OutputItemAdded(output_index=0, item=_message("second")))

    assert [item.id for item in log.current_response.output] == ["second", "first"]


def test_output_item_done_replaces_only_matching_item() -> None:
    log = _log_with(_message("msg_1"))
    done = MessageItem(id="msg_1", status=ItemStatus.COMPLETED, content=[OutputText(text="x")])

    assert not log.apply(OutputItemDone(output_index=0, item=MessageItem(id="other")))
    assert not log.apply(OutputItemDone(output_index=3, item=done))
    assert log.apply(OutputItemDone(output_index=0, item=done))
    assert _output(log) is done


def test_text_delta_accumulates_then_done_overwrites() -> None:
    log = _log_with(_message("msg_1", OutputText()))
    coords = {"output_index": 0, "item_id": "msg_1", "content_index": 0}

    assert log.apply(OutputTextDelta(**coords, delta="Hel"))
    assert log.apply(OutputTextDelta(**coords, delta="lo", logprobs=[LogProb(token="lo", logprob=-0.1)]))
    assert _output(log).content[0].text == "Hello"
    assert len(_output(log).content[0].logprobs) == 1

    assert log.apply(OutputTextDone(**coords, text="Hello!"))
    assert _output(log).content[0].text == "Hello!"
    assert _output(log).content[0].logprobs == []


def test_text_done_keeps_annotations() -> None:
    log = _log_with(_message("msg_1", OutputText(text="see")))
    coords = {"output_index": 0, "item_id": "msg_1", "content_index": 0}
    citation = UrlCitation(url="https://example.com", start_index=0, end_index=3)

    assert log.apply(OutputTextAnnotationAdded(**coords, annotation_index=0, annotation=citation))
    assert log.apply(OutputTextDone(**coords, text="see this"))

    part = _output(log).content[0]
    assert part.text == "see this"
    assert part.annotations == [citation]


@pytest.mark.parametrize(
    "coords",
    [
        {"output_index": 1, "item_id": "msg_1", "content_index": 0},
        {"output_index": 0, "item_id": "msg_other", "content_index": 0},
        {"output_index": 0, "item_id": "msg_1", "content_index": 5},
        {"output_index": -1, "item_id": "msg_1", "content_index": 0},
    ],
)
def test_coordinate_guard_ignores_mismatched_targets(coords, caplog) -> None:
    log = _log_with(_message("msg_1", OutputText(text="keep")))
    caplog.set_level(logging.DEBUG, logger="respondent.accumulator")

    assert not log.apply(OutputTextDelta(**coords, delta="X"))

    assert _output(log).content[0].text == "keep"
    assert "ignored response.output_text.delta" in caplog.text


def test_text_delta_on_refusal_part_is_noop() -> None:
    log = _log_with(_message("msg_1", Refusal(refusal="no")))

    assert not log.apply(OutputTextDelta(output_index=0, item_id="msg_1", content_index=0, delta="x"))
    assert _output(log).content[0].refusal == "no"


def test_refusal_delta_and_done() -> None:
    log = _log_with(_message("msg_1", Refusal()))
    coords = {"output_index": 0, "item_id": "msg_1", "content_index": 0}

    assert log.apply(RefusalDelta(**coords, delta="I can"))
    assert log.apply(RefusalDelta(**coords, delta="not"))
    assert _output(log).content[0].refusal == "I cannot"
    assert log.apply(RefusalDone(**coords, refusal="I can't help with that."))
    assert _output(log).text == "I can't help with that."


def test_content_part_added_and_done() -> None:
    log = _log_with(_message("msg_1", OutputText(text="b")))
    coords = {"output_index": 0, "item_id": "msg_1"}

    assert log.apply(ContentPartAdded(**coords, content_index=0, part=OutputText(text="a")))
    assert [part.text for part in _output(log).content] == ["a", "b"]

    assert log.apply(ContentPartDone(**coords, content_index=1, part=Refusal(refusal="r")))
    assert isinstance(_output(log).content[1], Refusal)
    assert not log.apply(ContentPartDone(**coords, content_index=2, part=OutputText(text="c")))


def test_content_part_added_to_non_message_is_noop() -> None:
    log = _log_with(FunctionCallItem(id="fc_1", call_id="c", name="f"))

    assert not log.apply(ContentPartAdded(output_index=0, item_id="fc_1", content_index=0, part=OutputText()))


def test_function_call_arguments_concatenate_in_order() -> None:
    log = _log_with(FunctionCallItem(id="fc_1", call_id="call_1", name="lookup"))
    coords = {"output_index": 0, "item_id": "fc_1"}

    for piece in ['{"ci', 'ty": "Par', 'is"}']:
        assert log.apply(FunctionCallArgumentsDelta(**coords, delta=piece))
    assert _output(log).arguments == '{"city": "Paris"}'

    assert log.apply(FunctionCallArgumentsDone(**coords, arguments='{"city": "Rome"}'))
    assert _output(log).arguments == '{"city": "Rome"}'


def test_arguments_delta_on_wrong_item_kind_is_noop() -> None:
    log = _log_with(McpCallItem(id="mcp_1", server_label="s", name="n"))

    assert not log.apply(FunctionCallArgumentsDelta(output_index=0, item_id="mcp_1", delta="x"))
    assert log.apply(McpCallArgumentsDelta(output_index=0, item_id="mcp_1", delta="{}"))
    assert _output(log).arguments == "{}"


def test_code_and_custom_input_streams() -> None:
    log = _log_with(
        CodeInterpreterCallItem(id="ci_1"),
        CustomToolCallItem(id="ct_1", call_id="c", name="grammar"),
    )

    assert log.apply(CodeInterpreterCallCodeDelta(output_index=0, item_id="ci_1", delta="print("))
    assert log.apply(CodeInterpreterCallCodeDelta(output_index=0, item_id="ci_1", delta="1)"))
    assert _output(log, 0).code == "print(1)"
    assert log.apply(CodeInterpreterCallCodeDone(output_index=0, item_id="ci_1", code="print(2)"))
    assert _output(log, 0).code == "print(2)"

    assert log.apply(CustomToolCallInputDelta(output_index=1, item_id="ct_1", delta="abc"))
    assert _output(log, 1).input == "abc"


def test_hosted_tool_status_events() -> None:
    log = _log_with(WebSearchCallItem(id="ws_1", status=ItemStatus.IN_PROGRESS))

    assert log.apply(WebSearchCallSearching(output_index=0, item_id="ws_1"))
    assert _output(log).status is ItemStatus.SEARCHING
    assert log.apply(WebSearchCallCompleted(output_index=0, item_id="ws_1"))
    assert _output(log).status is ItemStatus.COMPLETED
    assert not log.apply(WebSearchCallCompleted(output_index=0, item_id="ws_2"))


def test_partial_images_fill_slots() -> None:
    log = _log_with(ImageGenerationCallItem(id="ig_1"))
    coords = {"output_index": 0, "item_id": "ig_1"}
    first = base64.b64encode(b"first").decode()
    second = base64.b64encode(b"second").decode()

    assert log.apply(ImageGenerationCallPartialImage(**coords, partial_image_index=0, partial_image_b64=first))
    assert log.apply(ImageGenerationCallPartialImage(**coords, partial_image_index=1, partial_image_b64=second))
    assert log.apply(ImageGenerationCallPartialImage(**coords, partial_image_index=0, partial_image_b64=second))
    assert not log.apply(ImageGenerationCallPartialImage(**coords, partial_image_index=5, partial_image_b64=first))
    assert not log.apply(ImageGenerationCallPartialImage(**coords, partial_image_index=2, partial_image_b64="%%%"))

    assert _output(log).partial_images == [b"second", b"second"]
    assert "partial_images" not in _output(log).model_dump()


def test_reasoning_summary_slots_and_text() -> None:
    log = _log_with(ReasoningItem(id="rs_1"))
    coords = {"output_index": 0, "item_id": "rs_1"}

    assert log.apply(ReasoningSummaryPartAdded(**coords, summary_index=0, part=SummaryText()))
    assert log.apply(ReasoningSummaryTextDelta(**coords, summary_index=0, delta="Think"))
    assert log.apply(ReasoningSummaryTextDelta(**coords, summary_index=0, delta="ing"))
    assert _output(log).summary[0].text == "Thinking"
    assert log.apply(ReasoningSummaryTextDone(**coords, summary_index=0, text="Thought"))
    assert _output(log).summary[0].text == "Thought"

    assert not log.apply(ReasoningSummaryPartAdded(**coords, summary_index=3, part=SummaryText(text="gap")))
    assert not log.apply(ReasoningSummaryTextDelta(**coords, summary_index=1, delta="x"))
    assert len(_output(log).summary) == 1


def test_untracked_events_are_silent_noops(caplog) -> None:
    log = _log_with(ReasoningItem(id="rs_1"))
    caplog.set_level(logging.DEBUG, logger="respondent.accumulator")

    assert not log.apply(ReasoningSummaryDelta(output_index=0, item_id="rs_1", summary_index=0, delta={"text": "x"}))
    assert not log.apply(McpCallCompleted(output_index=0, item_id="rs_1"))
    assert "ignored" not in caplog.text


def test_stale_events_do_not_touch_previous_response() -> None:
    log = _log_with(_message("msg_1", OutputText(text="old")))
    log.apply(ResponseCreated(response=Response(id="resp_2")))

    assert not log.apply(OutputTextDelta(output_index=0, item_id="msg_1", content_index=0, delta="!"))
    assert log.entries[0].output[0].content[0].text == "old"


def test_events_decoded_from_json_fold_end_to_end(hi_there_stream) -> None:
    log = EntryLog()
    for line in hi_there_stream():
        payload = line.removeprefix("data: ")
        if payload == "[DONE]":
            break
        log.apply(EVENT_ADAPTER.validate_json(payload))

    response = log.current_response
    assert response.status is ResponseStatus.COMPLETED
    assert response.output_text == "Hi there"


def test_clear_resets_current_response() -> None:
    log = _log_with()

    log.clear()

    assert log.entries == ()
    assert log.current_response is None


def test_set_slot_semantics() -> None:
    items = ["a"]

    assert set_slot(items, 0, "A")
    assert set_slot(items, 1, "b")
    assert not set_slot(items, 5, "x")
    assert not set_slot(items, -1, "x")
    assert items == ["A", "b"]


def test_constructing_from_entries_restores_current_response() -> None:
    response = Response(id="resp_restored")
    log = EntryLog([Request(model="m", input="hi"), response])

    assert log.current_response is response
