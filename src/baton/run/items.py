"""Run items: conversation items annotated with the agent that produced or consumed them."""

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

from ..types import items as conversation

if TYPE_CHECKING:
    from ..agent import Agent


@dataclass
class RunItemBase:
    """Base class for run items.

    Attributes:
        agent: The agent whose turn produced or consumed the item.
        raw_item: The underlying conversation item.
    """

    type: ClassVar[str]

    agent: "Agent"
    raw_item: Any

    def to_input_item(self) -> Optional[conversation.ConversationItem]:
        """The conversation item to send to the model, or None if the item is not model input."""
        return self.raw_item

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict. Agents are referenced by name."""
        return {"type": self.type, "agent": self.agent.name, "rawItem": self.raw_item}


@dataclass
class MessageOutputItem(RunItemBase):
    """An assistant message."""

    type: ClassVar[str] = "message_output_item"
    raw_item: conversation.MessageItem

    @property
    def text(self) -> str:
        """Text of the message."""
        return self.raw_item["content"]


@dataclass
class ToolCallItem(RunItemBase):
    """A tool call requested by the model, local or hosted."""

    type: ClassVar[str] = "tool_call_item"
    raw_item: Union[conversation.ToolCallItem, conversation.HostedToolCallItem]


@dataclass
class ToolCallOutputItem(RunItemBase):
    """The output of a tool call."""

    type: ClassVar[str] = "tool_call_output_item"
    raw_item: conversation.ToolResultItem

    @property
    def output(self) -> str:
        """Text shown to the model."""
        return self.raw_item["output"]


@dataclass
class HandoffCallItem(RunItemBase):
    """A handoff requested by the model."""

    type: ClassVar[str] = "handoff_call_item"
    raw_item: conversation.ToolCallItem


@dataclass
class HandoffOutputItem(RunItemBase):
    """The result of a handoff; the active agent changed from `source_agent` to `target_agent`."""

    type: ClassVar[str] = "handoff_output_item"
    raw_item: conversation.ToolResultItem
    source_agent: "Agent"
    target_agent: "Agent"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict with source and target agent names."""
        return {
            **super().to_dict(),
            "sourceAgent": self.source_agent.name,
            "targetAgent": self.target_agent.name,
        }


@dataclass
class ReasoningItem(RunItemBase):
    """A reasoning trace."""

    type: ClassVar[str] = "reasoning_item"
    raw_item: conversation.ReasoningItem


@dataclass
class ToolApprovalItem(RunItemBase):
    """A tool call waiting for an approve or reject decision.

    The item is identified by its call id, which is stable within a run, so resuming several times never duplicates
    the request. It is not model input; the call itself is recorded by the corresponding `ToolCallItem`.
    """

    type: ClassVar[str] = "tool_approval_item"
    raw_item: conversation.ToolCallItem

    @property
    def tool_name(self) -> str:
        """Name of the tool awaiting approval."""
        return self.raw_item["name"]

    @property
    def call_id(self) -> str:
        """Identifier of the call awaiting approval."""
        return self.raw_item["callId"]

    @property
    def arguments(self) -> dict[str, Any]:
        """Decoded call arguments, empty if they are not valid JSON."""
        try:
            arguments = json.loads(self.raw_item["arguments"] or "{}")
        except json.JSONDecodeError:
            return {}
        return arguments if isinstance(arguments, dict) else {}

    def to_input_item(self) -> None:
        """Approval requests are never sent to the model."""
        return None


RunItem = Union[
    MessageOutputItem,
    ToolCallItem,
    ToolCallOutputItem,
    HandoffCallItem,
    HandoffOutputItem,
    ReasoningItem,
    ToolApprovalItem,
]
"""Any item produced during a run."""

RUN_ITEM_TYPES: dict[str, type[RunItemBase]] = {
    item_type.type: item_type
    for item_type in (
        MessageOutputItem,
        ToolCallItem,
        ToolCallOutputItem,
        HandoffCallItem,
        HandoffOutputItem,
        ReasoningItem,
        ToolApprovalItem,
    )
}


def last_message_text(items: list[RunItem]) -> Optional[str]:
    """Text of the last assistant message in the given items, if any."""
    for item in reversed(items):
        if isinstance(item, MessageOutputItem):
            return item.text
    return None
