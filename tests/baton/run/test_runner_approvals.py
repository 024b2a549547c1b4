import pytest

from baton import Agent, RunConfig, Runner, RunState, tool
from baton.run.items import MessageOutputItem, ToolApprovalItem, ToolCallItem, ToolCallOutputItem
from baton.types.exceptions import ToolCallError
from tests.fixtures.mocked_model_provider import MockedModelProvider, message, response, tool_call


@pytest.fixture
def deleted():
    return []


@pytest.fixture
def delete_file(deleted):
    @tool(needs_approval=True)
    def delete_file(path: str) -> str:
        """Delete a file.

        Args:
            path: Path of the file.
        """
        deleted.append(path)
        return f"deleted {path}"

    return delete_file


@pytest.fixture
def model():
    return MockedModelProvider(
        [
            response(tool_call("delete_file", {"path": "/tmp/x"})),
            response(message("done")),
        ]
    )


@pytest.fixture
def agent(model, delete_file):
    return Agent(name="assistant", model=model, tools=[delete_file])


@pytest.fixture
def runner():
    return Runner(RunConfig(tracing_disabled=True))


@pytest.mark.asyncio
async def test_approval_interrupts_run(runner, agent, model, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")

    assert len(result.interruptions) == 1
    assert result.interruptions[0].tool_name == "delete_file"
    assert result.interruptions[0].arguments == {"path": "/tmp/x"}
    assert result.final_output is None
    assert result.state.next_step == "interruption"
    assert deleted == []
    assert model.index == 1
    assert [type(item) for item in result.new_items] == [ToolCallItem, ToolApprovalItem]


@pytest.mark.asyncio
async def test_approval_items_are_not_model_input(runner, agent):
    result = await runner.invoke(agent, "delete /tmp/x")

    tru_types = [item["type"] for item in result.to_input_list()]
    exp_types = ["message", "tool_call"]
    assert tru_types == exp_types


@pytest.mark.asyncio
async def test_resume_after_approve(runner, agent, model, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")
    result.state.approve(result.interruptions[0])

    result = await runner.invoke(agent, result.state)

    assert result.final_output == "done"
    assert result.interruptions == []
    assert deleted == ["/tmp/x"]

    tru_types = [type(item) for item in result.new_items]
    exp_types = [ToolCallItem, ToolApprovalItem, ToolCallOutputItem, MessageOutputItem]
    assert tru_types == exp_types
    assert model.calls[1]["input"][-1]["output"] == "deleted /tmp/x"
    assert result.state.current_turn == 2


@pytest.mark.asyncio
async def test_resume_after_reject(runner, agent, model, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")
    result.state.reject(result.interruptions[0])

    result = await runner.invoke(agent, result.state)

    assert result.final_output == "done"
    assert deleted == []

    tru_output = model.calls[1]["input"][-1]
    exp_output = {
        "type": "tool_result",
        "callId": "c1",
        "name": "delete_file",
        "output": "Tool execution was not approved.",
        "status": "error",
    }
    assert tru_output == exp_output


@pytest.mark.asyncio
async def test_resume_without_decision_does_not_duplicate_interruption(runner, agent, model, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")

    result = await runner.invoke(agent, result.state)

    assert len(result.interruptions) == 1
    assert sum(isinstance(item, ToolApprovalItem) for item in result.new_items) == 1
    assert model.index == 1
    assert deleted == []


@pytest.mark.asyncio
async def test_resume_from_json(runner, agent, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")
    text = result.state.to_json()

    state = RunState.from_json(agent, text)
    state.approve(state.get_interruptions()[0])
    result = await runner.invoke(agent, state)

    assert result.final_output == "done"
    assert deleted == ["/tmp/x"]


@pytest.mark.asyncio
async def test_always_approve_covers_later_calls(runner, delete_file, deleted):
    model = MockedModelProvider(
        [
            response(tool_call("delete_file", {"path": "/tmp/a"}, "c1")),
            response(tool_call("delete_file", {"path": "/tmp/b"}, "c2")),
            response(message("done")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[delete_file])

    result = await runner.invoke(agent, "clean up")
    result.state.approve(result.interruptions[0], always_approve=True)
    result = await runner.invoke(agent, result.state)

    assert result.final_output == "done"
    assert deleted == ["/tmp/a", "/tmp/b"]


@pytest.mark.asyncio
async def test_approval_predicate(runner, deleted):
    @tool(needs_approval=lambda context, arguments, call_id: arguments["path"].startswith("/etc"))
    def remove(path: str) -> str:
        """Remove a path."""
        deleted.append(path)
        return "ok"

    model = MockedModelProvider(
        [
            response(
                tool_call("remove", {"path": "/tmp/a"}, "c1"),
                tool_call("remove", {"path": "/etc/passwd"}, "c2"),
            ),
            response(message("done")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[remove])

    result = await runner.invoke(agent, "clean up")

    assert [item.call_id for item in result.interruptions] == ["c2"]
    assert deleted == ["/tmp/a"]

    result.state.reject(result.interruptions[0])
    result = await runner.invoke(agent, result.state)

    assert result.final_output == "done"
    assert deleted == ["/tmp/a"]

    tru_outputs = [item.output for item in result.new_items if isinstance(item, ToolCallOutputItem)]
    exp_outputs = ["ok", "Tool execution was not approved."]
    assert tru_outputs == exp_outputs


@pytest.mark.asyncio
async def test_approval_blocks_handoff_until_decided(runner, delete_file, deleted):
    billing = Agent(name="billing", model=MockedModelProvider([response(message("billing here"))]))
    model = MockedModelProvider(
        [
            response(
                tool_call("delete_file", {"path": "/tmp/x"}, "c1"),
                tool_call("transfer_to_billing", {}, "h1"),
            ),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[delete_file], handoffs=[billing])

    result = await runner.invoke(agent, "delete and hand off")

    assert len(result.interruptions) == 1
    assert result.last_agent is agent

    result.state.approve(result.interruptions[0])
    result = await runner.invoke(agent, result.state)

    assert result.last_agent is billing
    assert result.final_output == "billing here"
    assert deleted == ["/tmp/x"]


@pytest.mark.asyncio
async def test_multiple_approvals_in_one_response(runner, delete_file, deleted):
    model = MockedModelProvider(
        [
            response(
                tool_call("delete_file", {"path": "/tmp/a"}, "c1"),
                tool_call("delete_file", {"path": "/tmp/b"}, "c2"),
            ),
            response(message("done")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[delete_file])

    result = await runner.invoke(agent, "clean up")

    assert [item.call_id for item in result.interruptions] == ["c1", "c2"]
    assert model.index == 1
    assert deleted == []

    for interruption in result.interruptions:
        result.state.approve(interruption)
    result = await runner.invoke(agent, result.state)

    assert result.final_output == "done"
    assert sorted(deleted) == ["/tmp/a", "/tmp/b"]
    assert model.index == 2


@pytest.mark.asyncio
async def test_resume_finished_run_from_json_does_not_rerun_tools(runner, agent, model, deleted):
    result = await runner.invoke(agent, "delete /tmp/x")
    result.state.approve(result.interruptions[0])
    result = await runner.invoke(agent, result.state)

    state = RunState.from_json(agent, result.state.to_json())
    result = await runner.invoke(agent, state)

    assert result.final_output == "done"
    assert deleted == ["/tmp/x"]
    assert model.index == 2


@pytest.mark.asyncio
async def test_resume_after_tool_failure_keeps_sibling_results(runner):
    ran = []
    failures = [ValueError("flaky")]

    @tool(needs_approval=True)
    def archive() -> str:
        """Archive the records."""
        ran.append("archive")
        return "archived"

    @tool(needs_approval=True, failure_error_function=None)
    def purge() -> str:
        """Purge the records."""
        ran.append("purge")
        if failures:
            raise failures.pop()
        return "purged"

    model = MockedModelProvider(
        [
            response(tool_call("archive", {}, "c1"), tool_call("purge", {}, "c2")),
            response(message("done")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[archive, purge])

    result = await runner.invoke(agent, "archive then purge")
    for interruption in result.interruptions:
        result.state.approve(interruption)

    with pytest.raises(ToolCallError) as exc_info:
        await runner.invoke(agent, result.state)

    state = exc_info.value.state
    assert [item.output for item in state.generated_items if isinstance(item, ToolCallOutputItem)] == ["archived"]

    result = await runner.invoke(agent, state)

    assert result.final_output == "done"
    assert ran.count("archive") == 1
    assert ran.count("purge") == 2

    tru_outputs = [item.output for item in result.new_items if isinstance(item, ToolCallOutputItem)]
    exp_outputs = ["archived", "purged"]
    assert tru_outputs == exp_outputs
