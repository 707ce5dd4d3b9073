import copy
import types

from src.abstractions.dto.tools import ToolInvocationOutcome
from src.infrastructure.llm.anthropic_gateway import AnthropicGateway
from src.infrastructure.llm.base import NOT_EXECUTED
from tests.conftest import run

TOOLS = [{"name": "getOpenOrders", "description": "Open orders", "parameters": {"type": "object", "properties": {}}}]


def _text(value):
    return types.SimpleNamespace(type="text", text=value)


def _tool_use(call_id, name, args):
    return types.SimpleNamespace(type="tool_use", id=call_id, name=name, input=args)


class FakeAnthropic:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

        async def create(**payload):
            self.requests.append(copy.deepcopy(payload))
            return types.SimpleNamespace(content=self.replies.pop(0))

        self.messages = types.SimpleNamespace(create=create)


def _gateway(replies):
    client = FakeAnthropic(replies)
    return AnthropicGateway(api_key="x", model="claude-test", client=client), client


def test_tool_use_blocks_become_invocations():
    gateway, client = _gateway([[_text("Checking."), _tool_use("tu_1", "getOpenOrders", {})]])

    async def scenario():
        handle = await gateway.start("system rules", TOOLS)
        return await gateway.send(handle, "go")

    response = run(scenario())

    assert response.kind == "calls"
    assert response.invocations[0].name == "getOpenOrders"
    assert response.invocations[0].call_id == "tu_1"
    request = client.requests[0]
    assert request["system"] == "system rules"
    assert request["tools"][0]["input_schema"] == {"type": "object", "properties": {}}
    assert request["messages"] == [{"role": "user", "content": "go"}]


def test_outcomes_sent_as_tool_result_blocks():
    gateway, client = _gateway([
        [_tool_use("tu_1", "getOpenOrders", {}), _tool_use("tu_2", "cancelOrder", {"order_id": "o1"}),
         _tool_use("tu_3", "hold", {"duration": 5})],
        [_text("All done.")],
    ])

    async def scenario():
        handle = await gateway.start("", TOOLS)
        first = await gateway.send(handle, "go")
        ok = ToolInvocationOutcome.success(first.invocations[0], {"openOrders": []})
        bad = ToolInvocationOutcome.failed(first.invocations[1], "ToolExecutionFailure", "order not found")
        return await gateway.send(handle, [ok, bad])

    response = run(scenario())

    assert response.kind == "text"
    assert response.content == "All done."
    blocks = client.requests[1]["messages"][-1]["content"]
    assert [b["tool_use_id"] for b in blocks] == ["tu_1", "tu_2", "tu_3"]
    assert blocks[0] == {"type": "tool_result", "tool_use_id": "tu_1", "content": '{"openOrders": []}', "is_error": False}
    assert blocks[1]["is_error"] and "order not found" in blocks[1]["content"]
    assert blocks[2]["is_error"] and NOT_EXECUTED in blocks[2]["content"]


def test_empty_reply_is_text_and_keeps_history_valid():
    gateway, client = _gateway([[], [_text("ok")]])

    async def scenario():
        handle = await gateway.start("", TOOLS)
        first = await gateway.send(handle, "go")
        await gateway.send(handle, "continue")
        return first

    first = run(scenario())
    assert first.kind == "text" and first.content == ""
    assert client.requests[1]["messages"][1] == {"role": "assistant", "content": "(no content)"}


def test_empty_text_blocks_are_not_replayed():
    gateway, client = _gateway([
        [_text(""), _tool_use("tu_1", "getOpenOrders", {})],
        [_text("ok")],
    ])

    async def scenario():
        handle = await gateway.start("", TOOLS)
        first = await gateway.send(handle, "go")
        outcome = ToolInvocationOutcome.success(first.invocations[0], {"openOrders": []})
        await gateway.send(handle, [outcome])

    run(scenario())
    assistant = client.requests[1]["messages"][1]
    assert assistant["content"] == [{"type": "tool_use", "id": "tu_1", "name": "getOpenOrders", "input": {}}]
