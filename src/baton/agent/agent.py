"""Agent definition.

An agent is an immutable bundle of configuration: instructions, a model, tools, handoffs, guardrails, an output type
and hooks. It holds no conversation state; running it is the job of the `Runner`.
"""

import inspect
import logging
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Literal, Optional, Union

from ..guardrails import InputGuardrail, OutputGuardrail
from ..handoffs import Handoff, handoff
from ..hooks import HookProvider
from ..models.model import Model
from ..models.settings import ModelSettings
from ..output import OutputSchema, resolve_output_schema
from ..run.context import RunContext, TContext
from ..tools.tools import FunctionToolResult, NeedsApproval, Tool
from ..types.exceptions import UserError

if TYPE_CHECKING:
    from ..run.result import RunResult
    from ..tools.agent_tool import AgentTool
    from ..tools.providers import ToolProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolsToFinalOutputResult:
    """Decision of a tool use behavior.

    Attributes:
        is_final_output: True if the run ends with `final_output`.
        final_output: The final output, when `is_final_output` is True.
    """

    is_final_output: bool
    final_output: Any = None


@dataclass(frozen=True)
class StopAtTools:
    """Tool use behavior ending the run when any of the named tools ran; its output becomes the final output."""

    stop_at_tool_names: list[str]


ToolsToFinalOutputFunction = Callable[
    [RunContext, list[FunctionToolResult]],
    Union[ToolsToFinalOutputResult, Awaitable[ToolsToFinalOutputResult]],
]

ToolUseBehavior = Union[Literal["run_llm_again", "stop_on_first_tool"], StopAtTools, ToolsToFinalOutputFunction]
"""What happens after tools ran: run the model again, or stop and use a tool output as the final output."""

Instructions = Union[str, Callable[[RunContext, "Agent"], Union[str, Awaitable[str]]], None]
"""Static system prompt, or a function computing it from the run context and the agent."""


@dataclass(frozen=True, eq=False)
class Agent(Generic[TContext]):
    """An agent definition.

    Attributes:
        name: Identifier, unique across the agents of a run.
        instructions: System prompt, static or dynamic.
        handoff_description: Describes the agent to other agents handing off to it.
        model: Model instance, or a model name resolved by the run's model provider. None uses the run default.
        model_settings: Tuning parameters for this agent.
        tools: Tools the agent may call.
        tool_providers: Remote tool sources; their tools are listed at every turn.
        handoffs: Agents or handoffs the agent may transfer control to.
        output_type: Type of the final output; None for plain text.
        tool_use_behavior: What happens after tools ran.
        reset_tool_choice: Reset a forced tool choice once a tool was used, avoiding infinite tool loops.
        input_guardrails: Checks on the run input, applied when this agent starts the run.
        output_guardrails: Checks on the final output, applied when this agent ends the run.
        hooks: Lifecycle observers called while this agent is active.
    """

    name: str
    instructions: Instructions = None
    handoff_description: Optional[str] = None
    model: Union[str, Model, None] = None
    model_settings: ModelSettings = field(default_factory=ModelSettings)
    tools: list[Tool] = field(default_factory=list)
    tool_providers: list["ToolProvider"] = field(default_factory=list)
    handoffs: list[Union["Agent[Any]", Handoff]] = field(default_factory=list)
    output_type: Union[type, OutputSchema, None] = None
    tool_use_behavior: ToolUseBehavior = "run_llm_again"
    reset_tool_choice: bool = True
    input_guardrails: list[InputGuardrail] = field(default_factory=list)
    output_guardrails: list[OutputGuardrail] = field(default_factory=list)
    hooks: list[HookProvider] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the definition.

        Raises:
            UserError: If the definition is inconsistent.
        """
        if not isinstance(self.name, str) or not self.name:
            raise UserError("Agent name must be a non-empty string")

        names = [t.tool_name for t in self.tools]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise UserError(f"Agent {self.name}: duplicate tool names {sorted(duplicates)}")

        # Building the schema early surfaces unsupported output types at definition time
        resolve_output_schema(self.output_type)

    def clone(self, **kwargs: Any) -> "Agent[TContext]":
        """Copy the agent with some fields replaced.

        List fields are copied, so the clone and the original can be changed independently.

        Example:
            ```python
            pirate = assistant.clone(name="pirate", instructions="Talk like a pirate.")
            ```
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name not in kwargs and isinstance(value, list):
                kwargs[f.name] = list(value)
        return replace(self, **kwargs)

    async def get_instructions(self, context: RunContext[TContext]) -> Optional[str]:
        """Resolve the system prompt for the current turn.

        Raises:
            UserError: If dynamic instructions do not produce a string.
        """
        if self.instructions is None or isinstance(self.instructions, str):
            return self.instructions

        if not callable(self.instructions):
            raise UserError(f"Agent {self.name}: instructions must be a string or a function")

        result = self.instructions(context, self)
        if inspect.isawaitable(result):
            result = await result

        if not isinstance(result, str):
            raise UserError(f"Agent {self.name}: dynamic instructions must return a string, got {type(result)}")
        return result

    async def get_all_tools(self, context: RunContext[TContext]) -> list[Tool]:
        """Tools available in the current turn: the agent's own tools followed by tools listed by its providers.

        Raises:
            UserError: If a provider lists a tool whose name collides with another tool.
        """
        tools: list[Tool] = list(self.tools)
        seen = {t.tool_name for t in tools}

        for provider in self.tool_providers:
            for provider_tool in await provider.list_tools(context, self):
                if provider_tool.tool_name in seen:
                    raise UserError(f"Agent {self.name}: duplicate tool name {provider_tool.tool_name}")
                seen.add(provider_tool.tool_name)
                tools.append(provider_tool)

        return tools

    def get_handoffs(self) -> list[Handoff]:
        """Handoffs of this agent, with plain agents converted using the default naming."""
        return [h if isinstance(h, Handoff) else handoff(h) for h in self.handoffs]

    def get_output_schema(self) -> Optional[OutputSchema]:
        """Output schema, or None for plain text."""
        return resolve_output_schema(self.output_type)

    def as_tool(
        self,
        tool_name: Optional[str] = None,
        tool_description: Optional[str] = None,
        custom_output_extractor: Optional[Callable[["RunResult"], Union[str, Awaitable[str]]]] = None,
        max_turns: Optional[int] = None,
        needs_approval: NeedsApproval = False,
    ) -> "AgentTool":
        """Expose this agent as a tool.

        Unlike a handoff, the calling agent stays in control: the sub-agent runs to completion with the tool input as
        its only message and the result is returned as the tool output.

        Args:
            tool_name: Tool name, defaults to the agent name.
            tool_description: Tool description, defaults to the handoff description.
            custom_output_extractor: Builds the tool result from the sub-run result. Defaults to the text of the
                sub-agent's last assistant message.
            max_turns: Turn limit of the sub-run.
            needs_approval: Static flag or predicate deciding whether a call must be approved.
        """
        from ..tools.agent_tool import AgentTool

        return AgentTool(
            self,
            name=tool_name,
            description=tool_description,
            custom_output_extractor=custom_output_extractor,
            max_turns=max_turns,
            needs_approval=needs_approval,
        )
