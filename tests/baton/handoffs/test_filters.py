import unittest.mock

from baton.handoffs import HandoffInputData
from baton.handoffs.filters import remove_all_tools
from baton.run.items import HandoffCallItem, HandoffOutputItem, MessageOutputItem, ToolCallItem, ToolCallOutputItem

CALL = {"type": "tool_call", "callId": "c1", "name": "ping", "arguments": "{}"}
RESULT = {"type": "tool_result", "callId": "c1", "name": "ping", "output": "pong", "status": "success"}
HANDOFF_CALL = {"type": "tool_call", "callId": "h1", "name": "transfer_to_billing", "arguments": "{}"}
HANDOFF_RESULT = {
    "type": "tool_result",
    "callId": "h1",
    "name": "transfer_to_billing",
    "output": '{"assistant": "billing"}',
    "status": "success",
}


def test_remove_all_tools():
    agent = unittest.mock.Mock()
    message = MessageOutputItem(agent=agent, raw_item={"type": "message", "role": "assistant", "content": "hi"})
    data = HandoffInputData(
        input_history=(
            {"type": "message", "role": "user", "content": "hello"},
            CALL,
            RESULT,
            {"type": "hosted_tool_call", "callId": "x1", "name": "web_search"},
        ),
        pre_handoff_items=(message, ToolCallItem(agent=agent, raw_item=CALL), ToolCallOutputItem(agent=agent, raw_item=RESULT)),
        new_items=(
            HandoffCallItem(agent=agent, raw_item=HANDOFF_CALL),
            HandoffOutputItem(agent=agent, raw_item=HANDOFF_RESULT, source_agent=agent, target_agent=agent),
        ),
    )

    filtered = remove_all_tools(data)

    assert filtered.input_history == ({"type": "message", "role": "user", "content": "hello"},)
    assert filtered.pre_handoff_items == (message,)
    assert filtered.new_items == ()


def test_remove_all_tools_string_history():
    data = HandoffInputData(input_history="hello", pre_handoff_items=(), new_items=())

    assert remove_all_tools(data).input_history == "hello"
