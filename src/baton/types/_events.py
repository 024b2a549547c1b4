"""Typed events emitted while a run is streamed.

Events are dictionaries so consumers can treat them as plain data, with typed properties for convenience.
"""

from typing import TYPE_CHECKING, Any, Literal

from .streaming import ModelStreamEvent

if TYPE_CHECKING:
    from ..agent import Agent
    from ..run.items import RunItem
    from ..run.result import RunResult


RunItemEventName = Literal[
    "message_output_created",
    "tool_called",
    "tool_output",
    "handoff_requested",
    "handoff_occurred",
    "reasoning_item_created",
    "tool_approval_requested",
]


class TypedEvent(dict):
    """Base class for all typed run events."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize with the given event data."""
        super().__init__(data or {})

    def as_dict(self) -> dict:
        """Convert this event to a raw dictionary."""
        return {**self}


class ModelStreamChunkEvent(TypedEvent):
    """A raw event from the model stream, forwarded as it arrives."""

    def __init__(self, event: ModelStreamEvent) -> None:
        """Initialize with the raw model event."""
        super().__init__({"type": "model_stream_chunk", "event": event})

    @property
    def event(self) -> ModelStreamEvent:
        """The raw model event."""
        return self["event"]


class RunItemEvent(TypedEvent):
    """A new run item was produced."""

    def __init__(self, name: RunItemEventName, item: "RunItem") -> None:
        """Initialize with the event name and the produced item."""
        super().__init__({"type": "run_item", "name": name, "item": item})

    @property
    def name(self) -> RunItemEventName:
        """What happened."""
        return self["name"]

    @property
    def item(self) -> "RunItem":
        """The produced item."""
        return self["item"]


class AgentUpdatedEvent(TypedEvent):
    """The active agent changed, either at run start or after a handoff."""

    def __init__(self, agent: "Agent") -> None:
        """Initialize with the new active agent."""
        super().__init__({"type": "agent_updated", "agent": agent})

    @property
    def agent(self) -> "Agent":
        """The new active agent."""
        return self["agent"]


class RunResultEvent(TypedEvent):
    """Last event of a run: the run reached a terminal or suspended state."""

    def __init__(self, result: "RunResult") -> None:
        """Initialize with the run result."""
        super().__init__({"type": "run_result", "result": result})

    @property
    def result(self) -> "RunResult":
        """The run result."""
        return self["result"]
