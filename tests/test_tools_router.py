import json

import pytest
from pydantic import ValidationError

from respondent.models.items import FunctionCallItem
from respondent.tools.base import ToolRequest
from respondent.tools.registry import ToolRegistration
from respondent.tools.router import ToolRouter


def _call(name: str = "echo", arguments: str = '{"msg": "hi"}') -> FunctionCallItem:
    return FunctionCallItem(id="fc_1", call_id="call_1", name=name, arguments=arguments)


def test_specs_are_strict_function_definitions(dummy_tool_classes) -> None:
    _, _, EchoTool = dummy_tool_classes
    router = ToolRouter([EchoTool()])

    (spec,) = router.specs()

    assert spec.name == "echo"
    assert spec.description == "echo upper"
    assert spec.strict is True
    assert spec.parameters["required"] == ["msg"]
    assert spec.parameters["additionalProperties"] is False
    assert "echo" in router
    assert len(router) == 1


def test_register_rejects_duplicates(dummy_tool_classes) -> None:
    _, _, EchoTool = dummy_tool_classes
    router = ToolRouter([EchoTool()])

    with pytest.raises(ValueError):
        router.register(EchoTool())


@pytest.mark.asyncio
async def test_dispatch_sync_tool_returns_json_ready_result(dummy_tool_classes) -> None:
    _, _, EchoTool = dummy_tool_classes
    router = ToolRouter([EchoTool()])

    assert await router.dispatch("echo", '{"msg": "hey"}') == {"msg": "HEY"}
    assert await router.dispatch("echo", {"msg": "dict"}) == {"msg": "DICT"}


@pytest.mark.asyncio
async def test_dispatch_async_handler_and_result_adapter() -> None:
    class Query(ToolRequest):
        q: str

    async def search(request: Query) -> list[str]:
        return [request.q, request.q[::-1]]

    router = ToolRouter(
        [
            ToolRegistration(
                name="search",
                description="search things",
                input_model=Query,
                handler=search,
                result_adapter=lambda hits: {"hits": hits, "count": len(hits)},
            )
        ]
    )

    assert await router.dispatch("search", '{"q": "abc"}') == {"hits": ["abc", "cba"], "count": 2}


@pytest.mark.asyncio
async def test_dispatch_unknown_tool_raises() -> None:
    with pytest.raises(ValueError):
        await ToolRouter().dispatch("missing", "{}")


@pytest.mark.asyncio
async def test_dispatch_rejects_invalid_arguments(dummy_tool_classes) -> None:
    _, _, EchoTool = dummy_tool_classes
    router = ToolRouter([EchoTool()])

    with pytest.raises(ValidationError):
        await router.dispatch("echo", '{"msg": "x", "extra": 1}')


@pytest.mark.asyncio
async def test_respond_wraps_result_as_function_call_output(dummy_tool_classes) -> None:
    _, _, EchoTool = dummy_tool_classes
    router = ToolRouter([EchoTool()])

    output = await router.respond(_call())

    assert output.call_id == "call_1"
    assert json.loads(output.output) == {"msg": "HI"}


@pytest.mark.asyncio
async def test_respond_reports_errors_instead_of_raising(dummy_tool_classes, fake_logger) -> None:
    _, _, EchoTool = dummy_tool_classes
    logger = fake_logger()
    router = ToolRouter([EchoTool()], logger=logger)

    bad_json = await router.respond(_call(arguments="{not json"))
    unknown = await router.respond(_call(name="nope"))

    assert "error" in json.loads(bad_json.output)
    assert json.loads(unknown.output) == {"error": "unknown tool nope"}
    assert len(logger.warning_calls) == 2


@pytest.mark.asyncio
async def test_empty_arguments_mean_no_parameters() -> None:
    class NoArgs(ToolRequest):
        pass

    router = ToolRouter(
        [ToolRegistration(name="ping", description="ping", input_model=NoArgs, handler=lambda request: "pong")]
    )

    output = await router.respond(_call(name="ping", arguments=""))

    assert json.loads(output.output) == "pong"


@pytest.mark.asyncio
async def test_dispatch_logs_truncated_payloads(dummy_tool_classes, fake_logger) -> None:
    _, _, EchoTool = dummy_tool_classes
    logger = fake_logger()
    router = ToolRouter([EchoTool()], logger=logger)

    await router.dispatch("echo", {"msg": "x" * 5000})

    request_args = logger.info_calls[0][0]
    assert request_args[1] == "echo"
    assert request_args[2].endswith("... [truncated]")
    assert len(logger.debug_calls) == 1
