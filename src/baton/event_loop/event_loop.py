"""This module implements the central run loop.

The run loop drives a `RunState` turn by turn:

1. Resolve the active agent's instructions, tools and handoffs
2. Call the model (with exponential backoff on throttling)
3. Classify the response into run items
4. Evaluate approvals for every tool call, then execute the approved ones
5. Switch agents on a handoff, finish on a qualifying final output, or suspend on pending approvals

Every step is an async generator yielding typed events, so the same loop serves buffered and streamed runs.
"""

import asyncio
import copy
import inspect
import json
import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, AsyncGenerator, Optional, Union

from opentelemetry import trace as trace_api

from ..agent import StopAtTools, ToolsToFinalOutputResult
from ..config import Defaults
from ..guardrails import run_input_guardrails, run_output_guardrails
from ..handoffs import Handoff, HandoffInputData, HandoffInputFilter
from ..handoffs.handoff import handoff_output
from ..hooks import (
    AfterModelCallEvent,
    AgentEndEvent,
    AgentStartEvent,
    BeforeModelCallEvent,
    HandoffEvent,
    HookProvider,
    HookRegistry,
)
from ..models.model import Model, ModelResponse
from ..models.settings import ModelSettings
from ..run.config import RunConfig
from ..run.items import (
    HandoffCallItem,
    HandoffOutputItem,
    MessageOutputItem,
    ReasoningItem,
    RunItem,
    ToolApprovalItem,
    ToolCallItem,
    ToolCallOutputItem,
)
from ..run.result import RunResult
from ..run.state import RunState
from ..telemetry.tracer import Tracer
from ..tools.registry import ToolRegistry
from ..tools.executors import ToolOutcome
from ..tools.tools import FunctionToolResult, Tool
from ..types._events import (
    AgentUpdatedEvent,
    ModelStreamChunkEvent,
    RunItemEvent,
    RunItemEventName,
    RunResultEvent,
    TypedEvent,
)
from ..types.cancellation import CancellationToken
from ..types.exceptions import (
    AgentsException,
    MaxTurnsExceededError,
    ModelBehaviorError,
    ModelThrottledException,
    OutputGuardrailTripwireTriggered,
    InputGuardrailTripwireTriggered,
    RunCancelledError,
    UserError,
)
from ..types.items import ToolCallItem as ToolCallRequest
from ..types.items import tool_result
from ..types.streaming import ResponseCompletedEvent

if TYPE_CHECKING:
    from ..agent import Agent

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 6
INITIAL_DELAY = 4
MAX_DELAY = 240  # 4 minutes

NOT_APPROVED_MESSAGE = "Tool execution was not approved."
MULTIPLE_HANDOFFS_MESSAGE = "Multiple handoffs detected, ignoring this one."


@dataclass(frozen=True)
class NextStepRunAgain:
    """Call the model again with the same agent."""


@dataclass(frozen=True)
class NextStepHandoff:
    """Continue the run with another agent."""

    new_agent: "Agent[Any]"


@dataclass(frozen=True)
class NextStepFinalOutput:
    """End the run with a final output."""

    output: Any


@dataclass(frozen=True)
class NextStepInterruption:
    """Suspend the run until the pending approvals are decided."""

    interruptions: list[ToolApprovalItem]


NextStep = Union[NextStepRunAgain, NextStepHandoff, NextStepFinalOutput, NextStepInterruption]


class _ModelResponseEvent(TypedEvent):
    """Internal event carrying the model response out of the model call generator."""

    def __init__(self, response: ModelResponse) -> None:
        super().__init__({"response": response})

    @property
    def response(self) -> ModelResponse:
        return self["response"]


class _TurnCompleteEvent(TypedEvent):
    """Internal event carrying the outcome of a turn."""

    def __init__(self, step: NextStep) -> None:
        super().__init__({"step": step})

    @property
    def step(self) -> NextStep:
        return self["step"]


@dataclass
class RunScope:
    """Everything a run needs besides its state.

    Attributes:
        state: The state the loop mutates.
        run_config: Run-level configuration.
        run_hooks: Run-level observers, notified before the active agent's observers.
        cancellation_token: Token checked between steps.
        tracer: Tracer creating the run spans.
        defaults: Process-wide defaults captured at run start.
        streaming: Use the model's incremental variant and forward its events.
    """

    state: RunState[Any]
    run_config: RunConfig
    run_hooks: list[HookProvider]
    cancellation_token: CancellationToken
    tracer: Tracer
    defaults: Defaults
    streaming: bool = False
    hooks: HookRegistry = field(init=False)

    def __post_init__(self) -> None:
        """Build the hook registry of the active agent."""
        self.hooks = HookRegistry(self.run_hooks, self.state.current_agent.hooks)

    def set_agent(self, agent: "Agent[Any]") -> None:
        """Make another agent active."""
        self.state.current_agent = agent
        self.hooks = HookRegistry(self.run_hooks, agent.hooks)


async def run_loop(scope: RunScope) -> AsyncGenerator[TypedEvent, None]:
    """Drive a run until it produces a final output, suspends for approvals or fails.

    Args:
        scope: The run to drive.

    Yields:
        Run events. The last event is a `RunResultEvent`.

    Raises:
        AgentsException: Any run failure, with `state` set to the state at the time of the failure.
    """
    state = scope.state
    run_span = scope.tracer.start_agent_run_span(state.current_agent, state.original_input)

    try:
        async for event in _run(scope, run_span):
            yield event
    except AgentsException as e:
        if e.state is None:
            e.state = state
        scope.tracer.end_span_with_error(run_span, str(e), e)
        raise
    except Exception as e:
        scope.tracer.end_span_with_error(run_span, str(e), e)
        raise

    scope.tracer.end_agent_run_span(
        run_span,
        final_output=state.final_output,
        interrupted=state.next_step == "interruption",
    )


async def _run(scope: RunScope, run_span: trace_api.Span) -> AsyncGenerator[TypedEvent, None]:
    state = scope.state

    yield AgentUpdatedEvent(state.current_agent)
    await scope.hooks.dispatch(AgentStartEvent(agent=state.current_agent, context=state.context))

    if state.next_step == "final_output":
        logger.debug("agent=<%s> | resuming a finished run, re-running output guardrails", state.current_agent.name)
        await _finalize(scope, state.final_output, run_span)
        yield RunResultEvent(RunResult.from_state(state))
        return

    step: Optional[NextStep] = None
    if state.next_step == "interruption":
        async for event in _resume_interrupted_turn(scope, run_span):
            if isinstance(event, _TurnCompleteEvent):
                step = event.step
            else:
                yield event

    while True:
        if step is None:
            async for event in _run_turn(scope, run_span):
                if isinstance(event, _TurnCompleteEvent):
                    step = event.step
                else:
                    yield event

        if isinstance(step, NextStepInterruption):
            state.next_step = "interruption"
            logger.debug("interruption_count=<%d> | run suspended for approvals", len(step.interruptions))
            yield RunResultEvent(RunResult.from_state(state))
            return

        if isinstance(step, NextStepFinalOutput):
            await _finalize(scope, step.output, run_span)
            yield RunResultEvent(RunResult.from_state(state))
            return

        if isinstance(step, NextStepHandoff):
            scope.set_agent(step.new_agent)
            yield AgentUpdatedEvent(step.new_agent)
            await scope.hooks.dispatch(AgentStartEvent(agent=step.new_agent, context=state.context))

        state.next_step = "run_again"
        step = None


def _check_cancelled(scope: RunScope) -> None:
    token = scope.cancellation_token
    if token.is_cancelled():
        reason = token.reason
        logger.debug("reason=<%s> | run cancelled", reason)
        raise RunCancelledError(f"Run cancelled: {reason}" if reason else "Run cancelled")


def _append(scope: RunScope, item: RunItem, name: RunItemEventName) -> RunItemEvent:
    scope.state.generated_items.append(item)
    return RunItemEvent(name, item)


async def _run_turn(scope: RunScope, run_span: trace_api.Span) -> AsyncGenerator[TypedEvent, None]:
    """Execute one turn: a model call and the processing of its response."""
    state = scope.state
    _check_cancelled(scope)

    if state.current_turn >= state.max_turns:
        raise MaxTurnsExceededError(f"Max turns ({state.max_turns}) exceeded")

    if not state.input_guardrails_done:
        await _run_input_guardrails(scope, run_span)
        state.input_guardrails_done = True

    state.current_turn += 1

    agent = state.current_agent
    logger.debug("agent=<%s>, turn=<%d> | starting turn", agent.name, state.current_turn)
    turn_span = scope.tracer.start_turn_span(agent, state.current_turn, run_span)

    try:
        instructions = await agent.get_instructions(state.context)
        registry = ToolRegistry(await agent.get_all_tools(state.context), agent.get_handoffs())

        _check_cancelled(scope)
        response: Optional[ModelResponse] = None
        async for event in _call_model(scope, agent, instructions, registry, turn_span):
            if isinstance(event, _ModelResponseEvent):
                response = event.response
            else:
                yield event
        assert response is not None

        # A response received after cancellation is discarded
        _check_cancelled(scope)

        state.model_responses.append(response)
        state.context.usage.add(replace(response.usage, requests=max(1, response.usage.requests)))
        if response.response_id:
            state.last_response_id = response.response_id
        state.current_turn_start = len(state.generated_items)

        async for event in _process_response(scope, agent, response, registry, turn_span):
            yield event
    except Exception as e:
        scope.tracer.end_span_with_error(turn_span, str(e), e)
        raise

    scope.tracer.end_turn_span(turn_span)


async def _resume_interrupted_turn(scope: RunScope, run_span: trace_api.Span) -> AsyncGenerator[TypedEvent, None]:
    """Re-process the calls of an interrupted turn with the approval decisions made since."""
    state = scope.state
    _check_cancelled(scope)

    agent = state.current_agent
    logger.debug(
        "agent=<%s>, pending_calls=<%d> | resuming interrupted turn", agent.name, len(state.pending_calls)
    )
    turn_span = scope.tracer.start_turn_span(agent, state.current_turn, run_span)

    try:
        registry = ToolRegistry(await agent.get_all_tools(state.context), agent.get_handoffs())
        async for event in _execute_calls(scope, agent, registry, list(state.pending_calls), turn_span):
            yield event
    except Exception as e:
        scope.tracer.end_span_with_error(turn_span, str(e), e)
        raise

    scope.tracer.end_turn_span(turn_span)


async def _run_input_guardrails(scope: RunScope, span: trace_api.Span) -> None:
    state = scope.state
    agent = state.current_agent
    guardrails = [*scope.run_config.input_guardrails, *agent.input_guardrails]
    if not guardrails:
        return

    state.input_guardrail_results = []
    guardrail_span = scope.tracer.start_guardrail_span("input", agent, span)
    try:
        await run_input_guardrails(
            guardrails, state.context, agent, state.original_input, state.input_guardrail_results
        )
    except InputGuardrailTripwireTriggered:
        scope.tracer.end_guardrail_span(guardrail_span, triggered=True)
        raise
    except Exception as e:
        scope.tracer.end_span_with_error(guardrail_span, str(e), e)
        raise
    scope.tracer.end_guardrail_span(guardrail_span, triggered=False)


async def _finalize(scope: RunScope, output: Any, span: trace_api.Span) -> None:
    """Record the final output, then run the output guardrails of the run and of the final agent."""
    state = scope.state
    agent = state.current_agent

    state.next_step = "final_output"
    state.final_output = output
    state.pending_calls = []
    state.interruptions = []
    state.output_guardrail_results = []

    guardrails = [*scope.run_config.output_guardrails, *agent.output_guardrails]
    if guardrails:
        guardrail_span = scope.tracer.start_guardrail_span("output", agent, span)
        try:
            await run_output_guardrails(guardrails, state.context, agent, output, state.output_guardrail_results)
        except OutputGuardrailTripwireTriggered:
            scope.tracer.end_guardrail_span(guardrail_span, triggered=True)
            raise
        except Exception as e:
            scope.tracer.end_span_with_error(guardrail_span, str(e), e)
            raise
        scope.tracer.end_guardrail_span(guardrail_span, triggered=False)

    logger.debug("agent=<%s> | run produced final output", agent.name)
    await scope.hooks.dispatch(AgentEndEvent(agent=agent, context=state.context, output=output))


def resolve_model(scope: RunScope, agent: "Agent[Any]") -> Model:
    """Resolve the model of a turn: run configuration, then agent, then process default.

    Raises:
        UserError: If a model name must be resolved and no provider is configured.
    """
    candidate = scope.run_config.model if scope.run_config.model is not None else agent.model
    if isinstance(candidate, Model):
        return candidate

    name = candidate or scope.defaults.model
    provider = scope.run_config.model_provider or scope.defaults.model_provider
    if provider is None:
        raise UserError(f"Agent {agent.name}: no model instance given and no model provider configured")
    return provider.get_model(name)


def resolve_model_settings(scope: RunScope, agent: "Agent[Any]") -> ModelSettings:
    """Merge agent and run settings; reset a forced tool choice once the agent used a tool."""
    settings = agent.model_settings.resolve(scope.run_config.model_settings)
    if (
        agent.reset_tool_choice
        and settings.tool_choice not in (None, "auto", "none")
        and scope.state.has_used_tools(agent)
    ):
        logger.debug("agent=<%s> | resetting forced tool choice after tool use", agent.name)
        settings = replace(settings, tool_choice="auto")
    return settings


async def _call_model(
    scope: RunScope,
    agent: "Agent[Any]",
    instructions: Optional[str],
    registry: ToolRegistry,
    span: trace_api.Span,
) -> AsyncGenerator[TypedEvent, None]:
    state = scope.state
    model = resolve_model(scope, agent)
    settings = resolve_model_settings(scope, agent)
    output_schema = agent.get_output_schema()
    input_items = state.to_input_list()
    tool_specs = registry.get_all_tool_specs()
    handoff_specs = registry.get_handoff_specs()

    await scope.hooks.dispatch(
        BeforeModelCallEvent(agent=agent, context=state.context, system_instructions=instructions, input=input_items)
    )

    response: Optional[ModelResponse] = None
    current_delay = INITIAL_DELAY
    for attempt in range(MAX_ATTEMPTS):
        model_span = scope.tracer.start_model_invoke_span(agent, input_items, span)
        try:
            with trace_api.use_span(model_span):
                if scope.streaming:
                    async for stream_event in model.stream_response(
                        instructions,
                        input_items,
                        settings,
                        tool_specs,
                        output_schema,
                        handoff_specs,
                        previous_response_id=state.last_response_id,
                    ):
                        if isinstance(stream_event, ResponseCompletedEvent):
                            response = stream_event.response
                        yield ModelStreamChunkEvent(stream_event)

                    if response is None:
                        raise ModelBehaviorError("Model stream ended without a completed response")
                else:
                    response = await model.get_response(
                        instructions,
                        input_items,
                        settings,
                        tool_specs,
                        output_schema,
                        handoff_specs,
                        previous_response_id=state.last_response_id,
                    )
        except ModelThrottledException as e:
            scope.tracer.end_span_with_error(model_span, str(e), e)
            if attempt + 1 == MAX_ATTEMPTS:
                raise

            logger.debug(
                "retry_delay_seconds=<%s>, max_attempts=<%s>, current_attempt=<%s> "
                "| throttling exception encountered "
                "| delaying before next retry",
                current_delay,
                MAX_ATTEMPTS,
                attempt + 1,
            )
            await asyncio.sleep(current_delay)
            current_delay = min(current_delay * 2, MAX_DELAY)
            _check_cancelled(scope)
            continue
        except Exception as e:
            scope.tracer.end_span_with_error(model_span, str(e), e)
            raise

        scope.tracer.end_model_invoke_span(model_span, response)
        break

    assert response is not None
    await scope.hooks.dispatch(AfterModelCallEvent(agent=agent, context=state.context, response=response))
    yield _ModelResponseEvent(response)


async def _process_response(
    scope: RunScope,
    agent: "Agent[Any]",
    response: ModelResponse,
    registry: ToolRegistry,
    span: trace_api.Span,
) -> AsyncGenerator[TypedEvent, None]:
    """Turn the response into run items and decide the next step."""
    messages: list[MessageOutputItem] = []
    calls: list[ToolCallRequest] = []

    for output in response.output:
        output_type = output.get("type")

        if output_type == "message":
            message = MessageOutputItem(agent=agent, raw_item=output)  # type: ignore[arg-type]
            messages.append(message)
            yield _append(scope, message, "message_output_created")

        elif output_type == "reasoning":
            yield _append(scope, ReasoningItem(agent=agent, raw_item=output), "reasoning_item_created")  # type: ignore[arg-type]

        elif output_type == "hosted_tool_call":
            yield _append(scope, ToolCallItem(agent=agent, raw_item=output), "tool_called")  # type: ignore[arg-type]

        elif output_type == "tool_call":
            target = registry.resolve(output["name"])  # type: ignore[typeddict-item]
            if isinstance(target, Handoff):
                yield _append(scope, HandoffCallItem(agent=agent, raw_item=output), "handoff_requested")  # type: ignore[arg-type]
            else:
                if not target.is_local:
                    raise ModelBehaviorError(f"Hosted tool {target.tool_name} cannot be called as a local tool")
                yield _append(scope, ToolCallItem(agent=agent, raw_item=output), "tool_called")  # type: ignore[arg-type]
            calls.append(output)  # type: ignore[arg-type]

        else:
            raise ModelBehaviorError(f"Unexpected output item type: {output_type}")

    if calls:
        async for event in _execute_calls(scope, agent, registry, calls, span):
            yield event
        return

    if not messages:
        logger.debug("agent=<%s> | response has no message or call, running the model again", agent.name)
        yield _TurnCompleteEvent(NextStepRunAgain())
        return

    text = messages[-1].text
    output_schema = agent.get_output_schema()
    final_output = output_schema.validate_json(text) if output_schema is not None else text
    yield _TurnCompleteEvent(NextStepFinalOutput(final_output))


def _approval_arguments(call: ToolCallRequest) -> dict[str, Any]:
    try:
        arguments = json.loads(call["arguments"] or "{}")
    except json.JSONDecodeError:
        logger.debug("call_id=<%s> | arguments are not valid JSON, checking approval without them", call["callId"])
        return {}
    return arguments if isinstance(arguments, dict) else {}


async def _execute_calls(
    scope: RunScope,
    agent: "Agent[Any]",
    registry: ToolRegistry,
    calls: list[ToolCallRequest],
    span: trace_api.Span,
) -> AsyncGenerator[TypedEvent, None]:
    """Evaluate approvals for every call, execute the allowed ones, then apply a handoff if no approval is pending.

    Calls that already have a result are skipped, so re-processing an interrupted turn never runs a tool twice.
    """
    state = scope.state
    context = state.context

    answered = {
        item.raw_item["callId"]
        for item in state.generated_items
        if isinstance(item, (ToolCallOutputItem, HandoffOutputItem))
    }
    approvals = {item.call_id: item for item in state.generated_items if isinstance(item, ToolApprovalItem)}

    tool_calls: list[tuple[Tool, ToolCallRequest]] = []
    handoff_calls: list[tuple[Handoff, ToolCallRequest]] = []
    for call in calls:
        if call["callId"] in answered:
            continue
        target = registry.resolve(call["name"])
        if isinstance(target, Handoff):
            handoff_calls.append((target, call))
        else:
            tool_calls.append((target, call))

    pending: list[ToolApprovalItem] = []
    to_run: list[tuple[Tool, ToolCallRequest]] = []
    for tool, call in tool_calls:
        if await tool.needs_approval(context, _approval_arguments(call), call["callId"]):
            decision = context.is_tool_approved(tool.tool_name, call["callId"])
            if decision is None:
                approval = approvals.get(call["callId"])
                if approval is None:
                    approval = ToolApprovalItem(agent=agent, raw_item=call)
                    yield _append(scope, approval, "tool_approval_requested")
                pending.append(approval)
                continue

            if decision is False:
                logger.debug("tool_name=<%s>, call_id=<%s> | tool call rejected", tool.tool_name, call["callId"])
                rejected = ToolCallOutputItem(agent=agent, raw_item=tool_result(call, NOT_APPROVED_MESSAGE, "error"))
                yield _append(scope, rejected, "tool_output")
                continue

        to_run.append((tool, call))

    outcomes: list[ToolOutcome] = []
    try:
        outcomes = await scope.run_config.tool_executor.execute(
            agent, to_run, context, scope.hooks, scope.tracer, span
        )
    finally:
        if to_run:
            state.record_tool_use(agent, [tool.tool_name for tool, _ in to_run])

    # Sibling results are committed before the first failure is raised
    results: list[FunctionToolResult] = []
    errors: list[Exception] = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            errors.append(outcome)
            continue
        results.append(outcome)
        raw_output = tool_result(outcome.call, outcome.text, outcome.status)
        yield _append(scope, ToolCallOutputItem(agent=agent, raw_item=raw_output), "tool_output")

    if errors:
        for extra in errors[1:]:
            logger.debug("error=<%s> | additional tool execution error", extra)
        raise errors[0]

    _check_cancelled(scope)

    if pending:
        state.pending_calls = list(calls)
        state.interruptions = pending
        yield _TurnCompleteEvent(NextStepInterruption(pending))
        return

    state.pending_calls = []
    state.interruptions = []

    if handoff_calls:
        async for event in _execute_handoff(scope, agent, handoff_calls, span):
            yield event
        return

    if results:
        decision = await _check_tool_use_behavior(scope, agent, results)
        if decision.is_final_output:
            yield _TurnCompleteEvent(NextStepFinalOutput(decision.final_output))
            return

    yield _TurnCompleteEvent(NextStepRunAgain())


async def _check_tool_use_behavior(
    scope: RunScope, agent: "Agent[Any]", results: list[FunctionToolResult]
) -> ToolsToFinalOutputResult:
    behavior = agent.tool_use_behavior

    if behavior == "run_llm_again":
        return ToolsToFinalOutputResult(is_final_output=False)

    if behavior == "stop_on_first_tool":
        return ToolsToFinalOutputResult(is_final_output=True, final_output=results[0].output)

    if isinstance(behavior, StopAtTools):
        for result in results:
            if result.tool.tool_name in behavior.stop_at_tool_names:
                return ToolsToFinalOutputResult(is_final_output=True, final_output=result.output)
        return ToolsToFinalOutputResult(is_final_output=False)

    if callable(behavior):
        decision = behavior(scope.state.context, results)
        if inspect.isawaitable(decision):
            decision = await decision
        if not isinstance(decision, ToolsToFinalOutputResult):
            raise UserError(f"Agent {agent.name}: tool_use_behavior must return ToolsToFinalOutputResult")
        return decision

    raise UserError(f"Agent {agent.name}: invalid tool_use_behavior {behavior!r}")


async def _execute_handoff(
    scope: RunScope,
    agent: "Agent[Any]",
    handoff_calls: list[tuple[Handoff, ToolCallRequest]],
    span: trace_api.Span,
) -> AsyncGenerator[TypedEvent, None]:
    """Apply the first handoff of the response; later ones are answered but ignored."""
    state = scope.state
    (handoff, call), ignored = handoff_calls[0], handoff_calls[1:]

    for _, extra in ignored:
        logger.warning(
            "tool_name=<%s>, call_id=<%s> | multiple handoffs in one response, ignoring", extra["name"], extra["callId"]
        )
        extra_item = ToolCallOutputItem(agent=agent, raw_item=tool_result(extra, MULTIPLE_HANDOFFS_MESSAGE, "error"))
        yield _append(scope, extra_item, "tool_output")

    handoff_span = scope.tracer.start_handoff_span(agent, handoff.agent, span)
    try:
        new_agent = await handoff.on_invoke_handoff(state.context, call["arguments"])
    except Exception as e:
        scope.tracer.end_span_with_error(handoff_span, str(e), e)
        raise
    scope.tracer.end_handoff_span(handoff_span)

    output_item = HandoffOutputItem(
        agent=agent,
        raw_item=tool_result(call, handoff_output(new_agent)),
        source_agent=agent,
        target_agent=new_agent,
    )
    yield _append(scope, output_item, "handoff_occurred")
    logger.debug("from=<%s>, to=<%s> | handoff", agent.name, new_agent.name)

    await scope.hooks.dispatch(HandoffEvent(agent=agent, context=state.context, target_agent=new_agent))

    input_filter = handoff.input_filter or scope.run_config.handoff_input_filter
    if input_filter is not None:
        await _apply_input_filter(state, input_filter)

    yield _TurnCompleteEvent(NextStepHandoff(new_agent))


async def _apply_input_filter(state: RunState[Any], input_filter: HandoffInputFilter) -> None:
    """Rewrite the history the next agent sees."""
    original = state.original_input
    data = HandoffInputData(
        input_history=original if isinstance(original, str) else tuple(copy.deepcopy(original)),
        pre_handoff_items=tuple(state.generated_items[: state.current_turn_start]),
        new_items=tuple(state.generated_items[state.current_turn_start :]),
    )

    filtered = input_filter(data)
    if inspect.isawaitable(filtered):
        filtered = await filtered
    if not isinstance(filtered, HandoffInputData):
        raise UserError("Handoff input filter must return HandoffInputData")

    history = filtered.input_history
    state.original_input = history if isinstance(history, str) else list(history)
    state.generated_items = [*filtered.pre_handoff_items, *filtered.new_items]
    state.current_turn_start = len(filtered.pre_handoff_items)
