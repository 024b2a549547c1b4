"""Serializable snapshot of a run.

A `RunState` holds everything needed to continue a run later, possibly in another process: the original input, the
items generated so far, the active agent, the turn counter, approval decisions, guardrail results and the calls of an
interrupted turn. Agents, tools and handoffs are referenced by name; restoring a state requires the agent graph it was
produced from.

Example:
    ```python
    result = await Runner.run(agent, "delete the temp files")
    if result.interruptions:
        text = result.state.to_json()
        ...
        state = RunState.from_json(agent, text)
        for item in state.get_interruptions():
            state.approve(item)
        result = await Runner.run(agent, state)
    ```
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Literal, Optional, Union

from ..guardrails import (
    GuardrailFunctionOutput,
    InputGuardrail,
    InputGuardrailResult,
    OutputGuardrail,
    OutputGuardrailResult,
)
from ..models.model import ModelResponse
from ..output import OutputSchema
from ..types.exceptions import RunStateDeserializationError, UserError
from ..types.items import ConversationItem, ToolCallItem, input_to_items
from ..types.usage import Usage
from .config import DEFAULT_MAX_TURNS
from .context import RunContext, TContext
from .items import RUN_ITEM_TYPES, HandoffOutputItem, RunItem, ToolApprovalItem
from .serializers import JSONSerializer, StateSerializer

if TYPE_CHECKING:
    from ..agent import Agent

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = "1.0"
SUPPORTED_SCHEMA_VERSIONS = frozenset({CURRENT_SCHEMA_VERSION})

NextStep = Literal["run_again", "interruption", "final_output"]
"""What the run loop does when the state is run: call the model, resolve pending approvals, or finish."""


@dataclass
class RunState(Generic[TContext]):
    """Snapshot of an in-progress or completed run.

    Attributes:
        current_agent: The active agent.
        original_input: The run input, possibly rewritten by a handoff input filter.
        context: The run context.
        max_turns: Turn limit.
        generated_items: Items produced so far, in order.
        current_turn: Number of turns started.
        next_step: What running the state does next.
        model_responses: Raw responses of every model call.
        pending_calls: Tool and handoff calls of the interrupted turn, in model order.
        interruptions: Approval requests of the interrupted turn.
        current_turn_start: Index in `generated_items` of the first item of the current turn.
        final_output: Final output, when `next_step` is "final_output".
        input_guardrail_results: Results of the input guardrails that ran.
        input_guardrails_done: Whether the input guardrails have passed; they run once per run.
        output_guardrail_results: Results of the output guardrails that ran.
        last_response_id: Provider identifier of the last response.
        tool_use_tracker: Names of the tools used so far, per agent name.
        schema_version: Version of the serialized form.
    """

    current_agent: "Agent[Any]"
    original_input: Union[str, list[ConversationItem]]
    context: RunContext[TContext]
    max_turns: int = DEFAULT_MAX_TURNS
    generated_items: list[RunItem] = field(default_factory=list)
    current_turn: int = 0
    next_step: NextStep = "run_again"
    model_responses: list[ModelResponse] = field(default_factory=list)
    pending_calls: list[ToolCallItem] = field(default_factory=list)
    interruptions: list[ToolApprovalItem] = field(default_factory=list)
    current_turn_start: int = 0
    final_output: Any = None
    input_guardrail_results: list[InputGuardrailResult] = field(default_factory=list)
    input_guardrails_done: bool = False
    output_guardrail_results: list[OutputGuardrailResult] = field(default_factory=list)
    last_response_id: Optional[str] = None
    tool_use_tracker: dict[str, list[str]] = field(default_factory=dict)
    schema_version: str = CURRENT_SCHEMA_VERSION

    def get_interruptions(self) -> list[ToolApprovalItem]:
        """Approval requests the run is waiting for; empty unless the run is interrupted."""
        if self.next_step != "interruption":
            return []
        return list(self.interruptions)

    def approve(self, approval_item: ToolApprovalItem, always_approve: bool = False) -> None:
        """Approve a pending tool call.

        Args:
            approval_item: The pending call.
            always_approve: Also approve every future call of the same tool in this run.
        """
        self.context.approve_tool(approval_item, always_approve=always_approve)

    def reject(self, approval_item: ToolApprovalItem, always_reject: bool = False) -> None:
        """Reject a pending tool call; the model is told the call was not approved.

        Args:
            approval_item: The pending call.
            always_reject: Also reject every future call of the same tool in this run.
        """
        self.context.reject_tool(approval_item, always_reject=always_reject)

    def to_input_list(self) -> list[ConversationItem]:
        """Conversation history as sent to the model: the input followed by the generated items."""
        history = input_to_items(copy.deepcopy(self.original_input))
        for item in self.generated_items:
            input_item = item.to_input_item()
            if input_item is not None:
                history.append(input_item)
        return history

    def record_tool_use(self, agent: "Agent[Any]", tool_names: list[str]) -> None:
        """Remember that the agent used the given tools."""
        used = self.tool_use_tracker.setdefault(agent.name, [])
        for name in tool_names:
            if name not in used:
                used.append(name)

    def has_used_tools(self, agent: "Agent[Any]") -> bool:
        """True if the agent used a tool earlier in the run."""
        return bool(self.tool_use_tracker.get(agent.name))

    def to_dict(self, serializer: Optional[StateSerializer] = None) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict.

        Args:
            serializer: Serializer of the context value, JSON by default. A value the serializer rejects is omitted,
                and must be supplied again when the state is restored.
        """
        serializer = serializer or JSONSerializer()

        context_value: Optional[str]
        try:
            serializer.validate(self.context.context)
            context_value = serializer.serialize(self.context.context)
        except (TypeError, ValueError) as e:
            logger.warning("error=<%s> | context value is not serializable, omitting it from the run state", e)
            context_value = None

        return {
            "schemaVersion": self.schema_version,
            "currentAgent": self.current_agent.name,
            "originalInput": copy.deepcopy(self.original_input),
            "generatedItems": [item.to_dict() for item in self.generated_items],
            "currentTurn": self.current_turn,
            "maxTurns": self.max_turns,
            "nextStep": self.next_step,
            "context": {**self.context.to_dict(), "value": context_value},
            "modelResponses": [
                {"output": response.output, "usage": response.usage.to_dict(), "responseId": response.response_id}
                for response in self.model_responses
            ],
            "pendingCalls": list(self.pending_calls),
            "interruptions": [item.call_id for item in self.interruptions],
            "currentTurnStart": self.current_turn_start,
            "finalOutput": OutputSchema.dump(self.final_output),
            "inputGuardrailResults": [
                {
                    "name": result.guardrail.get_name(),
                    "outputInfo": OutputSchema.dump(result.output.output_info),
                    "tripwireTriggered": result.output.tripwire_triggered,
                }
                for result in self.input_guardrail_results
            ],
            "inputGuardrailsDone": self.input_guardrails_done,
            "outputGuardrailResults": [
                {
                    "name": result.guardrail.get_name(),
                    "agent": result.agent.name,
                    "agentOutput": OutputSchema.dump(result.agent_output),
                    "outputInfo": OutputSchema.dump(result.output.output_info),
                    "tripwireTriggered": result.output.tripwire_triggered,
                }
                for result in self.output_guardrail_results
            ],
            "lastResponseId": self.last_response_id,
            "toolUseTracker": {name: list(tools) for name, tools in self.tool_use_tracker.items()},
        }

    def to_json(self, serializer: Optional[StateSerializer] = None) -> str:
        """Serialize to deterministic JSON text.

        Keys are sorted and separators are compact, so serializing a restored state gives the same text.
        """
        return json.dumps(self.to_dict(serializer), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(
        cls,
        starting_agent: "Agent[Any]",
        text: str,
        context: Any = None,
        serializer: Optional[StateSerializer] = None,
    ) -> "RunState[Any]":
        """Restore a state from JSON text.

        Args:
            starting_agent: The agent the run started with; every agent of the state must be reachable from it
                through handoffs or agent tools.
            text: Output of `to_json`.
            context: Context value replacing the serialized one. Required when the value was not serializable.
            serializer: Serializer of the context value, JSON by default.

        Raises:
            RunStateDeserializationError: If the text is not a run state, its version is not supported, or it does
                not match the agent graph.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RunStateDeserializationError(f"Run state is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RunStateDeserializationError("Run state must be a JSON object")

        return cls.from_dict(starting_agent, data, context=context, serializer=serializer)

    @classmethod
    def from_dict(
        cls,
        starting_agent: "Agent[Any]",
        data: dict[str, Any],
        context: Any = None,
        serializer: Optional[StateSerializer] = None,
    ) -> "RunState[Any]":
        """Restore a state from the output of `to_dict`.

        Raises:
            RunStateDeserializationError: If the data does not match the agent graph.
        """
        version = data.get("schemaVersion")
        if version not in SUPPORTED_SCHEMA_VERSIONS:
            raise RunStateDeserializationError(f"Unsupported run state schema version: {version}")

        agents = agent_graph(starting_agent)
        try:
            return _restore(data, agents, context, serializer or JSONSerializer())
        except KeyError as e:
            raise RunStateDeserializationError(f"Run state is missing field {e}") from e


def agent_graph(starting_agent: "Agent[Any]") -> dict[str, "Agent[Any]"]:
    """Every agent reachable from the starting agent through handoffs and agent tools, keyed by name."""
    from ..tools.agent_tool import AgentTool

    agents: dict[str, "Agent[Any]"] = {}
    stack = [starting_agent]
    while stack:
        agent = stack.pop()
        if agent.name in agents:
            continue
        agents[agent.name] = agent
        stack.extend(handoff.agent for handoff in agent.get_handoffs())
        stack.extend(tool.agent for tool in agent.tools if isinstance(tool, AgentTool))
    return agents


def _lookup(agents: dict[str, "Agent[Any]"], name: str) -> "Agent[Any]":
    if name not in agents:
        raise RunStateDeserializationError(f"Agent {name} not found in the agent graph")
    return agents[name]


def _restore(
    data: dict[str, Any], agents: dict[str, "Agent[Any]"], context: Any, serializer: StateSerializer
) -> RunState[Any]:
    context_data = data["context"]
    if context is None:
        if context_data["value"] is None:
            raise UserError("Run state does not contain the context value, pass it with context=")
        context = serializer.deserialize(context_data["value"])

    items = [_restore_item(item, agents) for item in data["generatedItems"]]
    approvals = {item.call_id: item for item in items if isinstance(item, ToolApprovalItem)}

    interruptions = []
    for call_id in data["interruptions"]:
        if call_id not in approvals:
            raise RunStateDeserializationError(f"Interruption {call_id} has no approval item")
        approval = approvals[call_id]
        _check_tool_exists(approval)
        interruptions.append(approval)

    current_agent = _lookup(agents, data["currentAgent"])
    next_step = data["nextStep"]

    final_output = data["finalOutput"]
    schema = current_agent.get_output_schema()
    if next_step == "final_output" and schema is not None and current_agent.tool_use_behavior == "run_llm_again":
        final_output = schema.validate_python(final_output)

    guardrails = {g.get_name(): g for agent in agents.values() for g in agent.input_guardrails + agent.output_guardrails}

    return RunState(
        current_agent=current_agent,
        original_input=data["originalInput"],
        context=RunContext.from_dict(context_data, context),
        max_turns=data["maxTurns"],
        generated_items=items,
        current_turn=data["currentTurn"],
        next_step=next_step,
        model_responses=[
            ModelResponse(
                output=response["output"],
                usage=Usage.from_dict(response["usage"]),
                response_id=response["responseId"],
            )
            for response in data["modelResponses"]
        ],
        pending_calls=list(data["pendingCalls"]),
        interruptions=interruptions,
        current_turn_start=data["currentTurnStart"],
        final_output=final_output,
        input_guardrail_results=[
            InputGuardrailResult(
                guardrail=_restore_guardrail(guardrails, result["name"], InputGuardrail),
                output=GuardrailFunctionOutput(result["outputInfo"], result["tripwireTriggered"]),
            )
            for result in data["inputGuardrailResults"]
        ],
        input_guardrails_done=data["inputGuardrailsDone"],
        output_guardrail_results=[
            OutputGuardrailResult(
                guardrail=_restore_guardrail(guardrails, result["name"], OutputGuardrail),
                agent=_lookup(agents, result["agent"]),
                agent_output=result["agentOutput"],
                output=GuardrailFunctionOutput(result["outputInfo"], result["tripwireTriggered"]),
            )
            for result in data["outputGuardrailResults"]
        ],
        last_response_id=data["lastResponseId"],
        tool_use_tracker={name: list(tools) for name, tools in data["toolUseTracker"].items()},
        schema_version=data["schemaVersion"],
    )


def _restore_item(data: dict[str, Any], agents: dict[str, "Agent[Any]"]) -> RunItem:
    item_type = RUN_ITEM_TYPES.get(data["type"])
    if item_type is None:
        raise RunStateDeserializationError(f"Unknown run item type: {data['type']}")

    agent = _lookup(agents, data["agent"])
    if item_type is HandoffOutputItem:
        return HandoffOutputItem(
            agent=agent,
            raw_item=data["rawItem"],
            source_agent=_lookup(agents, data["sourceAgent"]),
            target_agent=_lookup(agents, data["targetAgent"]),
        )
    return item_type(agent=agent, raw_item=data["rawItem"])  # type: ignore[return-value]


def _check_tool_exists(approval: ToolApprovalItem) -> None:
    agent = approval.agent
    if agent.tool_providers:
        # Provider tools are only known after discovery
        return

    names = {tool.tool_name for tool in agent.tools} | {handoff.tool_name for handoff in agent.get_handoffs()}
    if approval.tool_name not in names:
        raise RunStateDeserializationError(
            f"Agent {agent.name} has no tool {approval.tool_name} for pending interruption {approval.call_id}"
        )


def _restore_guardrail(guardrails: dict[str, Any], name: str, kind: type) -> Any:
    guardrail = guardrails.get(name)
    if isinstance(guardrail, kind):
        return guardrail
    # Run-level guardrails are not part of the agent graph; keep a named placeholder for the record
    return kind(guardrail_function=_restored_guardrail, name=name)


def _restored_guardrail(*args: Any) -> GuardrailFunctionOutput:
    raise UserError("Guardrail restored from a run state cannot be run")
