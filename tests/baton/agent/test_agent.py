import pytest
from pydantic import BaseModel

from baton import Agent, RunContext, handoff, tool
from baton.handoffs import Handoff
from baton.output import OutputSchema
from baton.tools import ProviderTool, ToolProvider
from baton.types.exceptions import UserError


class Answer(BaseModel):
    value: int


@pytest.fixture
def ping():
    @tool
    def ping() -> str:
        """Ping."""
        return "pong"

    return ping


@pytest.fixture
def context():
    return RunContext(context={"user": "alice"})


def test_agent_defaults():
    agent = Agent(name="assistant")

    assert agent.instructions is None
    assert agent.tools == []
    assert agent.tool_use_behavior == "run_llm_again"
    assert agent.reset_tool_choice is True
    assert agent.get_output_schema() is None


@pytest.mark.parametrize("name", ["", None, 42])
def test_agent_invalid_name(name):
    with pytest.raises(UserError, match="Agent name must be a non-empty string"):
        Agent(name=name)


def test_agent_duplicate_tools(ping):
    with pytest.raises(UserError, match=r"duplicate tool names \['ping'\]"):
        Agent(name="assistant", tools=[ping, ping])


def test_agent_unsupported_output_type():
    class Opaque:
        pass

    with pytest.raises(UserError, match="cannot be converted to a JSON schema"):
        Agent(name="assistant", output_type=Opaque)


def test_agent_output_schema():
    agent = Agent(name="assistant", output_type=Answer)

    schema = agent.get_output_schema()

    assert isinstance(schema, OutputSchema)
    assert schema.output_type is Answer


def test_agent_is_immutable():
    agent = Agent(name="assistant")

    with pytest.raises(AttributeError):
        agent.name = "other"


def test_agent_clone(ping):
    agent = Agent(name="assistant", instructions="Be brief.", tools=[ping])

    clone = agent.clone(name="pirate")
    clone.tools.append(ping)

    assert clone.name == "pirate"
    assert clone.instructions == "Be brief."
    assert agent.tools == [ping]
    assert clone is not agent


@pytest.mark.asyncio
async def test_agent_static_instructions(context):
    assert await Agent(name="assistant", instructions="Be brief.").get_instructions(context) == "Be brief."
    assert await Agent(name="assistant").get_instructions(context) is None


@pytest.mark.asyncio
async def test_agent_dynamic_instructions(context):
    def sync_instructions(ctx, agent):
        return f"Help {ctx.context['user']} as {agent.name}."

    async def async_instructions(ctx, agent):
        return "Async."

    assert await Agent(name="bot", instructions=sync_instructions).get_instructions(context) == "Help alice as bot."
    assert await Agent(name="bot", instructions=async_instructions).get_instructions(context) == "Async."


@pytest.mark.asyncio
async def test_agent_dynamic_instructions_wrong_type(context):
    agent = Agent(name="bot", instructions=lambda ctx, agent: 42)

    with pytest.raises(UserError, match="dynamic instructions must return a string"):
        await agent.get_instructions(context)


def test_agent_get_handoffs():
    billing = Agent(name="billing")
    refunds = Agent(name="refunds")
    custom = handoff(refunds, tool_name_override="refund")

    handoffs = Agent(name="triage", handoffs=[billing, custom]).get_handoffs()

    assert all(isinstance(h, Handoff) for h in handoffs)
    assert [h.tool_name for h in handoffs] == ["transfer_to_billing", "refund"]
    assert handoffs[1] is custom


class StaticToolProvider(ToolProvider):
    def __init__(self, names, **kwargs):
        super().__init__(**kwargs)
        self.names = names

    @property
    def is_connected(self):
        return True

    async def connect(self):
        pass

    async def close(self):
        pass

    async def _list_tool_specs(self):
        return [{"name": name, "description": "", "inputSchema": {}} for name in self.names]

    async def _call_tool(self, name, arguments):
        return name


@pytest.mark.asyncio
async def test_agent_get_all_tools(ping, context):
    agent = Agent(name="assistant", tools=[ping], tool_providers=[StaticToolProvider(["search"])])

    tools = await agent.get_all_tools(context)

    assert [t.tool_name for t in tools] == ["ping", "search"]
    assert isinstance(tools[1], ProviderTool)


@pytest.mark.asyncio
async def test_agent_get_all_tools_collision(ping, context):
    agent = Agent(name="assistant", tools=[ping], tool_providers=[StaticToolProvider(["ping"])])

    with pytest.raises(UserError, match="duplicate tool name ping"):
        await agent.get_all_tools(context)
