"""Hook events fired at defined points of a run.

Events are dispatched synchronously with respect to the run: the loop does not continue until every callback for an
event has returned.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..agent import Agent
    from ..models.model import ModelResponse
    from ..run.context import RunContext
    from ..tools.tools import Tool
    from ..types.items import ConversationItem, ToolCallItem


@dataclass(frozen=True)
class HookEvent:
    """Base class of run lifecycle events. Events are read-only.

    Attributes:
        agent: The agent active when the event fired.
        context: The run context.
    """

    agent: "Agent"
    context: "RunContext"


@dataclass(frozen=True)
class AgentStartEvent(HookEvent):
    """Fired when an agent becomes active: at run start, on resume and after a handoff."""

    pass


@dataclass(frozen=True)
class AgentEndEvent(HookEvent):
    """Fired when an agent produced the final output of the run.

    Attributes:
        output: The final output.
    """

    output: Any


@dataclass(frozen=True)
class HandoffEvent(HookEvent):
    """Fired when control moves from `agent` to `target_agent`.

    Attributes:
        target_agent: The agent taking over the run.
    """

    target_agent: "Agent"


@dataclass(frozen=True)
class BeforeModelCallEvent(HookEvent):
    """Fired before the model is invoked.

    Attributes:
        system_instructions: Resolved instructions for this turn.
        input: The conversation history sent to the model.
    """

    system_instructions: Optional[str]
    input: list["ConversationItem"]


@dataclass(frozen=True)
class AfterModelCallEvent(HookEvent):
    """Fired after the model returned a response.

    Attributes:
        response: The model response.
    """

    response: "ModelResponse"


@dataclass(frozen=True)
class BeforeToolCallEvent(HookEvent):
    """Fired before a tool is executed.

    Attributes:
        tool: The tool about to run.
        call: The model's call request.
    """

    tool: "Tool"
    call: "ToolCallItem"


@dataclass(frozen=True)
class AfterToolCallEvent(HookEvent):
    """Fired after a tool produced its result.

    Attributes:
        tool: The tool that ran.
        call: The model's call request.
        result: The text shown to the model.
    """

    tool: "Tool"
    call: "ToolCallItem"
    result: str
