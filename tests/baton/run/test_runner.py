import unittest.mock

import pytest
from pydantic import BaseModel

from baton import (
    Agent,
    MappingModelProvider,
    ModelSettings,
    RunConfig,
    RunContext,
    Runner,
    StopAtTools,
    ToolsToFinalOutputResult,
    set_default_model,
    set_default_model_provider,
    tool,
)
from baton.run.items import MessageOutputItem, ReasoningItem, ToolCallItem, ToolCallOutputItem
from baton.types.exceptions import (
    MaxTurnsExceededError,
    ModelBehaviorError,
    ModelThrottledException,
    ToolCallError,
    UserError,
)
from tests.fixtures.mocked_model_provider import MockedModelProvider, message, reasoning, response, tool_call


class Weather(BaseModel):
    city: str
    temp: int


@pytest.fixture
def weather_tool():
    @tool
    def get_weather(city: str) -> str:
        """Get the weather.

        Args:
            city: Name of the city.
        """
        return f"sunny in {city}"

    return get_weather


@pytest.fixture
def runner():
    return Runner(RunConfig(tracing_disabled=True))


@pytest.mark.asyncio
async def test_run_single_message(runner):
    model = MockedModelProvider([response(message("hi"))])
    agent = Agent(name="assistant", instructions="Be brief.", model=model)

    result = await runner.invoke(agent, "hello")

    assert result.final_output == "hi"
    assert result.last_agent is agent
    assert result.interruptions == []

    tru_history = result.history
    exp_history = [
        {"type": "message", "role": "user", "content": "hello"},
        {"type": "message", "role": "assistant", "content": "hi"},
    ]
    assert tru_history == exp_history

    assert model.calls[0]["system_instructions"] == "Be brief."
    assert model.calls[0]["input"] == [{"type": "message", "role": "user", "content": "hello"}]
    assert result.usage.requests == 1
    assert result.usage.total_tokens == 15
    assert str(result) == "hi"


@pytest.mark.asyncio
async def test_run_class_entry_point():
    agent = Agent(name="assistant", model=MockedModelProvider([response(message("hi"))]))

    result = await Runner.run(agent, "hello")

    assert result.final_output == "hi"


def test_run_sync():
    agent = Agent(name="assistant", model=MockedModelProvider([response(message("hi"))]))

    result = Runner.run_sync(agent, "hello", run_config=RunConfig(tracing_disabled=True))

    assert result.final_output == "hi"


@pytest.mark.asyncio
async def test_run_does_not_mutate_input_list(runner):
    agent = Agent(name="assistant", model=MockedModelProvider([response(message("hi"))]))
    history = [{"type": "message", "role": "user", "content": "hello"}]

    result = await runner.invoke(agent, history)

    assert history == [{"type": "message", "role": "user", "content": "hello"}]
    assert len(result.history) == 2


@pytest.mark.asyncio
async def test_run_invalid_input(runner):
    agent = Agent(name="assistant", model=MockedModelProvider([]))

    with pytest.raises(UserError):
        await runner.invoke(agent, 42)


@pytest.mark.asyncio
async def test_run_invalid_max_turns(runner):
    agent = Agent(name="assistant", model=MockedModelProvider([]))

    with pytest.raises(UserError):
        await runner.invoke(agent, "hello", max_turns=0)


@pytest.mark.asyncio
async def test_run_tool_then_message(runner, weather_tool):
    model = MockedModelProvider(
        [
            response(tool_call("get_weather", {"city": "Paris"})),
            response(message("It is sunny in Paris")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[weather_tool])

    result = await runner.invoke(agent, "weather in Paris?")

    assert result.final_output == "It is sunny in Paris"
    assert [type(item) for item in result.new_items] == [ToolCallItem, ToolCallOutputItem, MessageOutputItem]
    assert result.new_items[1].output == "sunny in Paris"

    tru_input = model.calls[1]["input"][-1]
    exp_input = {
        "type": "tool_result",
        "callId": "c1",
        "name": "get_weather",
        "output": "sunny in Paris",
        "status": "success",
    }
    assert tru_input == exp_input
    assert model.calls[0]["tools"] == ["get_weather"]
    assert result.state.tool_use_tracker == {"assistant": ["get_weather"]}


@pytest.mark.asyncio
async def test_run_tool_failure_is_reported_to_model(runner):
    @tool
    def broken() -> str:
        """Always fails."""
        raise ValueError("boom")

    model = MockedModelProvider([response(tool_call("broken")), response(message("sorry"))])
    agent = Agent(name="assistant", model=model, tools=[broken])

    result = await runner.invoke(agent, "go")

    output_item = result.new_items[1]
    assert output_item.raw_item["status"] == "error"
    assert "boom" in output_item.output
    assert result.final_output == "sorry"


@pytest.mark.asyncio
async def test_run_tool_failure_without_error_function(runner):
    @tool(failure_error_function=None)
    def broken() -> str:
        """Always fails."""
        raise ValueError("boom")

    agent = Agent(name="assistant", model=MockedModelProvider([response(tool_call("broken"))]), tools=[broken])

    with pytest.raises(ToolCallError) as exc_info:
        await runner.invoke(agent, "go")

    assert isinstance(exc_info.value.original_exception, ValueError)
    assert exc_info.value.state is not None


@pytest.mark.asyncio
async def test_run_reasoning_item(runner):
    model = MockedModelProvider([response(reasoning("thinking"), message("hi"))])
    agent = Agent(name="assistant", model=model)

    result = await runner.invoke(agent, "hello")

    assert [type(item) for item in result.new_items] == [ReasoningItem, MessageOutputItem]
    assert result.final_output == "hi"


@pytest.mark.asyncio
async def test_run_empty_response_runs_model_again(runner):
    model = MockedModelProvider([response(), response(message("hi"))])
    agent = Agent(name="assistant", model=model)

    result = await runner.invoke(agent, "hello")

    assert result.final_output == "hi"
    assert model.index == 2


@pytest.mark.asyncio
async def test_run_last_message_is_final_output(runner):
    model = MockedModelProvider([response(message("first"), message("second"))])
    agent = Agent(name="assistant", model=model)

    result = await runner.invoke(agent, "hello")

    assert result.final_output == "second"


@pytest.mark.asyncio
async def test_run_unknown_tool(runner):
    agent = Agent(name="assistant", model=MockedModelProvider([response(tool_call("missing"))]))

    with pytest.raises(ModelBehaviorError) as exc_info:
        await runner.invoke(agent, "hello")

    assert exc_info.value.state is not None


@pytest.mark.asyncio
async def test_run_unexpected_output_type(runner):
    agent = Agent(name="assistant", model=MockedModelProvider([response({"type": "image"})]))

    with pytest.raises(ModelBehaviorError):
        await runner.invoke(agent, "hello")


@pytest.mark.asyncio
async def test_run_max_turns_exceeded(runner, weather_tool):
    model = MockedModelProvider(
        [
            response(tool_call("get_weather", {"city": "Paris"}, "c1")),
            response(tool_call("get_weather", {"city": "Rome"}, "c2")),
            response(message("never reached")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[weather_tool])

    with pytest.raises(MaxTurnsExceededError) as exc_info:
        await runner.invoke(agent, "hello", max_turns=2)

    assert model.index == 2
    assert exc_info.value.state.current_turn == 2
    assert len(exc_info.value.state.generated_items) == 4


@pytest.mark.asyncio
async def test_run_resume_after_max_turns_with_higher_limit(runner, weather_tool):
    model = MockedModelProvider(
        [
            response(tool_call("get_weather", {"city": "Paris"}, "c1")),
            response(message("done")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[weather_tool])

    with pytest.raises(MaxTurnsExceededError) as exc_info:
        await runner.invoke(agent, "hello", max_turns=1)

    result = await runner.invoke(agent, exc_info.value.state, max_turns=2)

    assert result.final_output == "done"


@pytest.mark.asyncio
async def test_run_structured_output(runner):
    model = MockedModelProvider([response(message('{"city": "Paris", "temp": 18}'))])
    agent = Agent(name="assistant", model=model, output_type=Weather)

    result = await runner.invoke(agent, "weather?")

    assert result.final_output == Weather(city="Paris", temp=18)
    assert result.final_output_as(Weather, raise_if_incorrect_type=True).temp == 18


@pytest.mark.asyncio
async def test_run_structured_output_wrapped_type(runner):
    model = MockedModelProvider([response(message('{"response": ["a", "b"]}'))])
    agent = Agent(name="assistant", model=model, output_type=list[str])

    result = await runner.invoke(agent, "letters?")

    assert result.final_output == ["a", "b"]


@pytest.mark.asyncio
async def test_run_structured_output_invalid(runner):
    model = MockedModelProvider([response(message("not json"))])
    agent = Agent(name="assistant", model=model, output_type=Weather)

    with pytest.raises(ModelBehaviorError) as exc_info:
        await runner.invoke(agent, "weather?")

    assert exc_info.value.state is not None


@pytest.mark.asyncio
async def test_run_stop_on_first_tool(runner, weather_tool):
    model = MockedModelProvider([response(tool_call("get_weather", {"city": "Paris"}))])
    agent = Agent(name="assistant", model=model, tools=[weather_tool], tool_use_behavior="stop_on_first_tool")

    result = await runner.invoke(agent, "weather?")

    assert result.final_output == "sunny in Paris"
    assert model.index == 1


@pytest.mark.asyncio
async def test_run_stop_at_tools(runner, weather_tool):
    @tool
    def get_time() -> str:
        """Get the time."""
        return "noon"

    model = MockedModelProvider(
        [
            response(tool_call("get_time", call_id="c1")),
            response(tool_call("get_weather", {"city": "Paris"}, "c2")),
        ]
    )
    agent = Agent(
        name="assistant",
        model=model,
        tools=[weather_tool, get_time],
        tool_use_behavior=StopAtTools(stop_at_tool_names=["get_weather"]),
    )

    result = await runner.invoke(agent, "weather?")

    assert result.final_output == "sunny in Paris"
    assert model.index == 2


@pytest.mark.asyncio
async def test_run_custom_tool_use_behavior(runner, weather_tool):
    async def behavior(context, results):
        return ToolsToFinalOutputResult(is_final_output=True, final_output=f"tools: {len(results)}")

    model = MockedModelProvider([response(tool_call("get_weather", {"city": "Paris"}))])
    agent = Agent(name="assistant", model=model, tools=[weather_tool], tool_use_behavior=behavior)

    result = await runner.invoke(agent, "weather?")

    assert result.final_output == "tools: 1"


@pytest.mark.asyncio
async def test_run_custom_tool_use_behavior_invalid_return(runner, weather_tool):
    model = MockedModelProvider([response(tool_call("get_weather", {"city": "Paris"}))])
    agent = Agent(name="assistant", model=model, tools=[weather_tool], tool_use_behavior=lambda context, results: True)

    with pytest.raises(UserError):
        await runner.invoke(agent, "weather?")


@pytest.mark.asyncio
async def test_run_reset_tool_choice_after_tool_use(runner, weather_tool):
    model = MockedModelProvider(
        [
            response(tool_call("get_weather", {"city": "Paris"})),
            response(message("sunny")),
        ]
    )
    agent = Agent(
        name="assistant",
        model=model,
        tools=[weather_tool],
        model_settings=ModelSettings(tool_choice="required", temperature=0.2),
    )

    await runner.invoke(agent, "weather?")

    assert model.calls[0]["model_settings"].tool_choice == "required"
    assert model.calls[1]["model_settings"].tool_choice == "auto"
    assert model.calls[1]["model_settings"].temperature == 0.2


@pytest.mark.asyncio
async def test_run_keeps_tool_choice_when_reset_disabled(runner, weather_tool):
    model = MockedModelProvider(
        [
            response(tool_call("get_weather", {"city": "Paris"})),
            response(message("sunny")),
        ]
    )
    agent = Agent(
        name="assistant",
        model=model,
        tools=[weather_tool],
        model_settings=ModelSettings(tool_choice="required"),
        reset_tool_choice=False,
    )

    await runner.invoke(agent, "weather?")

    assert model.calls[1]["model_settings"].tool_choice == "required"


@pytest.mark.asyncio
async def test_run_config_model_settings_override_agent():
    model = MockedModelProvider([response(message("hi"))])
    agent = Agent(
        name="assistant",
        model=model,
        model_settings=ModelSettings(temperature=0.2, max_tokens=100, extra_args={"a": 1}),
    )
    runner = Runner(RunConfig(tracing_disabled=True, model_settings=ModelSettings(temperature=0.9, extra_args={"b": 2})))

    await runner.invoke(agent, "hello")

    tru_settings = model.calls[0]["model_settings"]
    exp_settings = ModelSettings(temperature=0.9, max_tokens=100, extra_args={"a": 1, "b": 2})
    assert tru_settings == exp_settings


@pytest.mark.asyncio
async def test_run_config_model_overrides_agent_model():
    agent_model = MockedModelProvider([])
    run_model = MockedModelProvider([response(message("from run model"))])
    agent = Agent(name="assistant", model=agent_model)

    result = await Runner(RunConfig(model=run_model, tracing_disabled=True)).invoke(agent, "hello")

    assert result.final_output == "from run model"
    assert agent_model.calls == []


@pytest.mark.asyncio
async def test_run_model_name_resolved_by_run_provider():
    model = MockedModelProvider([response(message("hi"))])
    provider = MappingModelProvider({"small": model})
    agent = Agent(name="assistant", model="small")

    result = await Runner(RunConfig(model_provider=provider, tracing_disabled=True)).invoke(agent, "hello")

    assert result.final_output == "hi"


@pytest.mark.asyncio
async def test_run_model_resolved_from_defaults(runner):
    model = MockedModelProvider([response(message("hi"))])
    set_default_model_provider(MappingModelProvider({"small": model}))
    set_default_model("small")
    agent = Agent(name="assistant")

    result = await runner.invoke(agent, "hello")

    assert result.final_output == "hi"


@pytest.mark.asyncio
async def test_run_without_model_provider(runner):
    agent = Agent(name="assistant", model="small")

    with pytest.raises(UserError):
        await runner.invoke(agent, "hello")


@pytest.mark.asyncio
async def test_run_dynamic_instructions(runner):
    model = MockedModelProvider([response(message("hi"))])

    async def instructions(context, agent):
        return f"You are {agent.name}, helping {context.context['user']}."

    agent = Agent(name="assistant", instructions=instructions, model=model)

    await runner.invoke(agent, "hello", context={"user": "Ada"})

    assert model.calls[0]["system_instructions"] == "You are assistant, helping Ada."


@pytest.mark.asyncio
async def test_run_context_passed_to_tools(runner):
    seen = []

    @tool
    def lookup(context: RunContext, key: str) -> str:
        """Look up a key in the context."""
        seen.append(context.context[key])
        return context.context[key]

    model = MockedModelProvider([response(tool_call("lookup", {"key": "user"})), response(message("done"))])
    agent = Agent(name="assistant", model=model, tools=[lookup])

    await runner.invoke(agent, "who?", context={"user": "Ada"})

    assert seen == ["Ada"]


@pytest.mark.asyncio
async def test_run_previous_response_id(runner):
    model = MockedModelProvider([response(message("hi"), response_id="r1")])
    agent = Agent(name="assistant", model=model)

    result = await runner.invoke(agent, "hello", previous_response_id="r0")

    assert model.calls[0]["previous_response_id"] == "r0"
    assert result.last_response_id == "r1"


@pytest.mark.asyncio
async def test_run_throttled_model_is_retried(runner):
    model = MockedModelProvider([ModelThrottledException("slow down"), response(message("hi"))])
    agent = Agent(name="assistant", model=model)

    with unittest.mock.patch("baton.event_loop.event_loop.asyncio.sleep", new_callable=unittest.mock.AsyncMock) as sleep:
        result = await runner.invoke(agent, "hello")

    assert result.final_output == "hi"
    sleep.assert_awaited_once_with(4)
    assert result.raw_responses == [model.responses[1]]


@pytest.mark.asyncio
async def test_run_throttled_model_gives_up(runner):
    model = MockedModelProvider([ModelThrottledException("slow down") for _ in range(6)])
    agent = Agent(name="assistant", model=model)

    with unittest.mock.patch("baton.event_loop.event_loop.asyncio.sleep", new_callable=unittest.mock.AsyncMock) as sleep:
        with pytest.raises(ModelThrottledException):
            await runner.invoke(agent, "hello")

    tru_delays = [call.args[0] for call in sleep.await_args_list]
    exp_delays = [4, 8, 16, 32, 64]
    assert tru_delays == exp_delays


@pytest.mark.asyncio
async def test_run_model_error_propagates_unchanged(runner):
    error = RuntimeError("connection reset")
    agent = Agent(name="assistant", model=MockedModelProvider([error]))

    with pytest.raises(RuntimeError) as exc_info:
        await runner.invoke(agent, "hello")

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_run_agent_as_tool(runner):
    translator = Agent(
        name="translator",
        handoff_description="Translates to French",
        model=MockedModelProvider([response(message("bonjour"))]),
    )
    model = MockedModelProvider(
        [
            response(tool_call("translate", {"input": "hello"})),
            response(message("It is bonjour")),
        ]
    )
    agent = Agent(name="assistant", model=model, tools=[translator.as_tool("translate", "Translate to French")])

    result = await runner.invoke(agent, "translate hello")

    assert result.new_items[1].output == "bonjour"
    assert result.final_output == "It is bonjour"
    assert result.last_agent is agent
