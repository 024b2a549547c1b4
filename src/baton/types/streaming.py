"""Model streaming event type definitions.

A model's incremental variant yields any number of delta events and terminates with a `ResponseCompletedEvent`
carrying the same structured response the request/response variant would return.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..models.model import ModelResponse


@dataclass(frozen=True)
class TextDeltaEvent:
    """A fragment of assistant text."""

    delta: str


@dataclass(frozen=True)
class ReasoningDeltaEvent:
    """A fragment of reasoning text."""

    delta: str


@dataclass(frozen=True)
class ToolCallDeltaEvent:
    """A fragment of a tool call's arguments."""

    call_id: str
    name: str
    delta: str


@dataclass(frozen=True)
class ResponseCompletedEvent:
    """Terminal event of a model stream."""

    response: "ModelResponse"


ModelStreamEvent = Union[TextDeltaEvent, ReasoningDeltaEvent, ToolCallDeltaEvent, ResponseCompletedEvent]
"""Any event yielded by `Model.stream_response`."""
