import asyncio
import threading

import pytest

from baton import Agent
from baton.hooks import AfterToolCallEvent, BeforeToolCallEvent, HookProvider, HookRegistry
from baton.run.context import RunContext
from baton.tools import tool


@pytest.fixture
def tool_events():
    return []


@pytest.fixture
def hook_events():
    return []


@pytest.fixture
def hooks(hook_events):
    class Hooks(HookProvider):
        def register_hooks(self, registry, **kwargs):
            registry.add_callback(BeforeToolCallEvent, lambda event: hook_events.append(("before", event.call["callId"])))
            registry.add_callback(AfterToolCallEvent, lambda event: hook_events.append(("after", event.call["callId"])))

    return HookRegistry(run_hooks=[Hooks()])


@pytest.fixture
def weather_tool(tool_events):
    @tool(name="weather_tool")
    async def weather():
        tool_events.append("weather")
        await asyncio.sleep(0.01)
        return "sunny"

    return weather


@pytest.fixture
def temperature_tool(tool_events):
    @tool(name="temperature_tool")
    def temperature():
        tool_events.append(("temperature", threading.current_thread().name))
        return "75F"

    return temperature


@pytest.fixture
def failing_tool():
    @tool(name="failing_tool", failure_error_function=None)
    def failing():
        raise RuntimeError("broken")

    return failing


@pytest.fixture
def agent(weather_tool, temperature_tool, failing_tool):
    return Agent(name="assistant", tools=[weather_tool, temperature_tool, failing_tool])


@pytest.fixture
def context():
    return RunContext(context=None)


@pytest.fixture
def call():
    def build(name, call_id):
        return {"type": "tool_call", "callId": call_id, "name": name, "arguments": "{}"}

    return build
