"""Handoffs: delegation of the remainder of a run to another agent.

Each handoff target is materialized as a pseudo-tool the model can call. Calling it switches the active agent; the
conversation history the new agent sees can be rewritten by an input filter.
"""

import inspect
import json
import logging
import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Optional, Union

from pydantic import TypeAdapter, ValidationError

from ..run.context import RunContext, TContext
from ..types.exceptions import ModelBehaviorError, UserError
from ..types.items import ConversationItem
from ..types.tools import ToolSpec

if TYPE_CHECKING:
    from ..agent import Agent
    from ..run.items import RunItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandoffInputData:
    """The conversation as it stands when a handoff is resolved.

    Attributes:
        input_history: The original run input.
        pre_handoff_items: Items generated before the turn that requested the handoff.
        new_items: Items generated in the turn that requested the handoff, including the handoff call and result.
    """

    input_history: Union[str, tuple[ConversationItem, ...]]
    pre_handoff_items: tuple["RunItem", ...]
    new_items: tuple["RunItem", ...]

    def clone(self, **kwargs: Any) -> "HandoffInputData":
        """Copy with some fields replaced."""
        return replace(self, **kwargs)


HandoffInputFilter = Callable[[HandoffInputData], Union[HandoffInputData, Awaitable[HandoffInputData]]]
"""Rewrites the conversation before the next agent sees it."""


def default_handoff_tool_name(agent: "Agent") -> str:
    """Deterministic handoff tool name for an agent: `transfer_to_<snake_case name>`."""
    snake = re.sub(r"[^a-zA-Z0-9]+", "_", agent.name).strip("_").lower()
    return f"transfer_to_{snake}"


def default_handoff_tool_description(agent: "Agent") -> str:
    """Default handoff tool description for an agent."""
    description = f"Handoff to the {agent.name} agent to handle the request."
    if agent.handoff_description:
        description = f"{description} {agent.handoff_description}"
    return description


@dataclass
class Handoff(Generic[TContext]):
    """A handoff target exposed to the model as a tool.

    Attributes:
        tool_name: Name of the pseudo-tool.
        tool_description: Description of the pseudo-tool.
        input_json_schema: Schema of the arguments the model passes with the handoff.
        on_invoke_handoff: Called with the run context and the raw JSON arguments; returns the next agent.
        agent: The target agent.
        input_filter: Rewrites the history handed to the target agent. None keeps it unchanged, unless the run
            configuration provides a filter.
    """

    tool_name: str
    tool_description: str
    input_json_schema: dict[str, Any]
    on_invoke_handoff: Callable[[RunContext[TContext], str], Awaitable["Agent"]]
    agent: "Agent"
    input_filter: Optional[HandoffInputFilter] = field(default=None)

    @property
    def agent_name(self) -> str:
        """Name of the target agent."""
        return self.agent.name

    @property
    def tool_spec(self) -> ToolSpec:
        """Specification advertised to the model."""
        return ToolSpec(name=self.tool_name, description=self.tool_description, inputSchema=self.input_json_schema)


def handoff(
    agent: "Agent",
    tool_name_override: Optional[str] = None,
    tool_description_override: Optional[str] = None,
    on_handoff: Optional[Callable[..., Any]] = None,
    input_type: Optional[type] = None,
    input_filter: Optional[HandoffInputFilter] = None,
) -> Handoff:
    """Create a handoff to the given agent.

    Args:
        agent: The target agent.
        tool_name_override: Tool name, defaults to `transfer_to_<agent name>`.
        tool_description_override: Tool description.
        on_handoff: Notification callback fired when the handoff is resolved, sync or async. Receives
            `(context, input)` when `input_type` is given, `(context)` otherwise.
        input_type: Type of the payload the model passes with the handoff, validated with pydantic.
        input_filter: Rewrites the history handed to the target agent.

    Raises:
        UserError: If `input_type` is given without `on_handoff`.
    """
    if input_type is not None and on_handoff is None:
        raise UserError("input_type requires an on_handoff callback to receive the input")

    adapter: Optional[TypeAdapter] = None
    schema: dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}
    if input_type is not None:
        adapter = TypeAdapter(input_type)
        schema = adapter.json_schema()

    tool_name = tool_name_override or default_handoff_tool_name(agent)

    async def on_invoke_handoff(context: RunContext, arguments: str) -> "Agent":
        if adapter is not None:
            try:
                payload = adapter.validate_json(arguments or "{}")
            except ValidationError as e:
                raise ModelBehaviorError(f"Invalid JSON input for handoff {tool_name}: {arguments}") from e
            result = on_handoff(context, payload)
        elif on_handoff is not None:
            result = on_handoff(context)
        else:
            result = None

        if inspect.isawaitable(result):
            await result

        logger.debug("tool_name=<%s>, agent=<%s> | handoff resolved", tool_name, agent.name)
        return agent

    return Handoff(
        tool_name=tool_name,
        tool_description=tool_description_override or default_handoff_tool_description(agent),
        input_json_schema=schema,
        on_invoke_handoff=on_invoke_handoff,
        agent=agent,
        input_filter=input_filter,
    )


def handoff_output(target: "Agent") -> str:
    """Text returned to the model as the result of a handoff call."""
    return json.dumps({"assistant": target.name})
