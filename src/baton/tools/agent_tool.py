"""Agent tool adapter that enables using Agent objects as tools."""

import inspect
import json
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from ..run.context import RunContext
from ..run.items import last_message_text
from ..types.exceptions import UserError
from ..types.tools import ToolSpec
from .tools import NeedsApproval, Tool, decode_arguments, to_text

if TYPE_CHECKING:
    from ..agent import Agent
    from ..run.result import RunResult

logger = logging.getLogger(__name__)

OutputExtractor = Callable[["RunResult"], Union[str, Awaitable[str]]]


class AgentTool(Tool):
    """Adapter that makes an Agent usable as a tool.

    The wrapped agent runs a complete nested run with the tool input as its only user message. The nested run shares
    the caller's context value, run configuration and cancellation token. The calling agent stays in control and
    receives the sub-run's output as the tool result.
    """

    def __init__(
        self,
        agent: "Agent",
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        custom_output_extractor: Optional[OutputExtractor] = None,
        max_turns: Optional[int] = None,
        needs_approval: NeedsApproval = False,
    ) -> None:
        """Initialize the agent tool.

        Args:
            agent: The agent to wrap.
            name: Tool name, defaults to the agent name.
            description: Tool description, defaults to the agent's handoff description.
            custom_output_extractor: Builds the tool result from the sub-run result.
            max_turns: Turn limit of the sub-run, defaults to the runner's default.
            needs_approval: Static flag or predicate deciding whether a call must be approved.
        """
        super().__init__(needs_approval=needs_approval)
        self.agent = agent
        self._name = name or agent.name
        self._description = description or agent.handoff_description or ""
        self._custom_output_extractor = custom_output_extractor
        self._max_turns = max_turns

    @property
    def tool_name(self) -> str:
        """The unique name of the tool used for identification and invocation."""
        return self._name

    @property
    def tool_spec(self) -> ToolSpec:
        """Tool specification with a single `input` parameter."""
        return ToolSpec(
            name=self._name,
            description=self._description,
            inputSchema={
                "type": "object",
                "properties": {"input": {"type": "string", "description": "The input to send to the agent"}},
                "required": ["input"],
                "additionalProperties": False,
            },
        )

    @property
    def tool_type(self) -> str:
        """The type of the tool implementation."""
        return "agent"

    async def invoke(self, context: RunContext, arguments: str, call_id: str) -> Any:
        """Run the wrapped agent to completion.

        Raises:
            ModelBehaviorError: If the arguments have no string `input`.
            UserError: If the sub-run stopped for a tool approval.
        """
        from ..run.runner import DEFAULT_MAX_TURNS, Runner

        decoded = decode_arguments(self._name, arguments)
        query = decoded.get("input")
        if not isinstance(query, str):
            query = json.dumps(decoded)

        logger.debug("tool_name=<%s>, agent=<%s>, call_id=<%s> | running sub-agent", self._name, self.agent.name, call_id)
        runner = Runner(context.run_config) if context.run_config is not None else Runner.default()
        result = await runner.invoke(
            self.agent,
            query,
            context=context.context,
            max_turns=self._max_turns or DEFAULT_MAX_TURNS,
            cancellation_token=context.cancellation_token,
        )

        if result.interruptions:
            raise UserError(f"Agent tool {self._name}: sub-agent {self.agent.name} is waiting for a tool approval")

        if self._custom_output_extractor is not None:
            output = self._custom_output_extractor(result)
            if inspect.isawaitable(output):
                output = await output
            return output

        text = last_message_text(result.new_items)
        return text if text is not None else to_text(result.final_output)
