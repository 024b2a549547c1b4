import unittest.mock

import pytest

from baton.guardrails import (
    GuardrailFunctionOutput,
    InputGuardrail,
    input_guardrail,
    output_guardrail,
    run_input_guardrails,
    run_output_guardrails,
)
from baton.run.context import RunContext
from baton.types.exceptions import (
    GuardrailExecutionError,
    InputGuardrailTripwireTriggered,
    OutputGuardrailTripwireTriggered,
)


@pytest.fixture
def context():
    return RunContext(context=None)


@pytest.fixture
def agent():
    agent = unittest.mock.Mock()
    agent.name = "assistant"
    return agent


def passing(context, agent, payload):
    return GuardrailFunctionOutput(output_info="ok", tripwire_triggered=False)


def tripping(context, agent, payload):
    return GuardrailFunctionOutput(output_info="blocked", tripwire_triggered=True)


def test_guardrail_decorators():
    @input_guardrail
    def bare(context, agent, input):
        pass

    @output_guardrail(name="named")
    def with_name(context, agent, output):
        pass

    assert isinstance(bare, InputGuardrail)
    assert bare.get_name() == "bare"
    assert with_name.get_name() == "named"


@pytest.mark.asyncio
async def test_run_input_guardrails(context, agent):
    async def async_passing(context, agent, payload):
        return GuardrailFunctionOutput(output_info=payload, tripwire_triggered=False)

    guardrails = [InputGuardrail(passing), InputGuardrail(async_passing)]
    results = []

    returned = await run_input_guardrails(guardrails, context, agent, "hello", results)

    assert returned is results
    assert [result.output.output_info for result in results] == ["ok", "hello"]


@pytest.mark.asyncio
async def test_run_input_guardrails_tripwire_stops_pipeline(context, agent):
    never = unittest.mock.Mock()
    guardrails = [InputGuardrail(passing), InputGuardrail(tripping), InputGuardrail(never)]
    results = []

    with pytest.raises(InputGuardrailTripwireTriggered) as exc_info:
        await run_input_guardrails(guardrails, context, agent, "hello", results)

    assert exc_info.value.guardrail_result is results[1]
    assert len(results) == 2
    never.assert_not_called()


@pytest.mark.asyncio
async def test_run_input_guardrails_copies_history(context, agent):
    def mutate(context, agent, payload):
        payload.clear()
        return GuardrailFunctionOutput(output_info=None, tripwire_triggered=False)

    history = [{"type": "message", "role": "user", "content": "hello"}]

    await run_input_guardrails([InputGuardrail(mutate)], context, agent, history, [])

    assert history == [{"type": "message", "role": "user", "content": "hello"}]


@pytest.mark.asyncio
async def test_run_input_guardrails_error(context, agent):
    def broken(context, agent, payload):
        raise RuntimeError("classifier down")

    with pytest.raises(GuardrailExecutionError, match="Guardrail broken failed: classifier down"):
        await run_input_guardrails([InputGuardrail(broken)], context, agent, "hello", [])


@pytest.mark.asyncio
async def test_run_output_guardrails(context, agent):
    results = []

    with pytest.raises(OutputGuardrailTripwireTriggered) as exc_info:
        await run_output_guardrails(
            [output_guardrail(passing), output_guardrail(tripping)], context, agent, {"answer": 42}, results
        )

    result = exc_info.value.guardrail_result
    assert result.agent is agent
    assert result.agent_output == {"answer": 42}
    assert result.output.output_info == "blocked"
    assert len(results) == 2


@pytest.mark.asyncio
async def test_run_output_guardrails_copies_output(context, agent):
    def mutate(context, agent, payload):
        payload["answer"] = 0
        return GuardrailFunctionOutput(output_info=None, tripwire_triggered=False)

    output = {"answer": 42}

    await run_output_guardrails([output_guardrail(mutate)], context, agent, output, [])

    assert output == {"answer": 42}
