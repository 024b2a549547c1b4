import pytest

from baton.run.context import RunContext
from baton.run.items import ToolApprovalItem
from baton.types.usage import Usage


@pytest.fixture
def context():
    return RunContext(context={"user": "alice"})


@pytest.fixture
def approval_item():
    def build(call_id, name="wipe"):
        raw_item = {"type": "tool_call", "callId": call_id, "name": name, "arguments": "{}"}
        return ToolApprovalItem(agent=None, raw_item=raw_item)

    return build


def test_is_tool_approved_undecided(context):
    assert context.is_tool_approved("wipe", "c1") is None


def test_approve_and_reject_single_call(context, approval_item):
    context.approve_tool(approval_item("c1"))
    context.reject_tool(approval_item("c2"))

    assert context.is_tool_approved("wipe", "c1") is True
    assert context.is_tool_approved("wipe", "c2") is False
    assert context.is_tool_approved("wipe", "c3") is None


def test_always_decision_applies_to_tool(context, approval_item):
    context.reject_tool(approval_item("c1"), always_reject=True)

    assert context.is_tool_approved("wipe", "c9") is False
    assert context.is_tool_approved("read", "c9") is None


def test_call_decision_wins_over_tool_decision(context, approval_item):
    context.approve_tool(approval_item("c1"), always_approve=True)
    context.reject_tool(approval_item("c2"))

    assert context.is_tool_approved("wipe", "c2") is False
    assert context.is_tool_approved("wipe", "c3") is True


def test_to_dict_from_dict(context, approval_item):
    context.usage.add(Usage(requests=1, input_tokens=3, output_tokens=2, total_tokens=5))
    context.approve_tool(approval_item("c1"), always_approve=True)

    tru_dict = context.to_dict()
    exp_dict = {
        "usage": Usage(requests=1, input_tokens=3, output_tokens=2, total_tokens=5).to_dict(),
        "callDecisions": {"c1": True},
        "toolDecisions": {"wipe": True},
    }
    assert tru_dict == exp_dict

    restored = RunContext.from_dict(tru_dict, "new value")

    assert restored.context == "new value"
    assert restored.usage.total_tokens == 5
    assert restored.is_tool_approved("wipe", "c7") is True
