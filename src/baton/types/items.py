"""Conversation item type definitions.

A conversation is an ordered list of items. Items are plain JSON-compatible dictionaries discriminated by their
`type` key so they can be handed to any model provider and serialized with the run state as-is.
"""

from typing import Any, Literal, Union

from typing_extensions import NotRequired, TypedDict

Role = Literal["user", "assistant", "system"]
"""Role of the author of a message item."""


class MessageItem(TypedDict):
    """A text message.

    Attributes:
        type: Always "message".
        role: Author of the message.
        content: Text of the message.
    """

    type: Literal["message"]
    role: Role
    content: str


class ToolCallItem(TypedDict):
    """A request from the model to invoke a tool or a handoff.

    Attributes:
        type: Always "tool_call".
        callId: Stable identifier of the call, unique within a run.
        name: Name of the tool or handoff.
        arguments: JSON encoded arguments.
    """

    type: Literal["tool_call"]
    callId: str
    name: str
    arguments: str


class ToolResultItem(TypedDict):
    """The result of a tool or handoff call, sent back to the model.

    Attributes:
        type: Always "tool_result".
        callId: Identifier of the call this result answers.
        name: Name of the tool or handoff.
        output: Text shown to the model.
        status: Whether the call succeeded.
    """

    type: Literal["tool_result"]
    callId: str
    name: str
    output: str
    status: Literal["success", "error"]


class ReasoningItem(TypedDict):
    """A reasoning trace produced by the model.

    Attributes:
        type: Always "reasoning".
        content: Reasoning text.
    """

    type: Literal["reasoning"]
    content: str


class HostedToolCallItem(TypedDict):
    """A tool call executed by the model platform itself.

    Attributes:
        type: Always "hosted_tool_call".
        callId: Identifier of the call.
        name: Name of the hosted tool.
        arguments: JSON encoded arguments, if reported.
        output: Output reported by the platform, if any.
    """

    type: Literal["hosted_tool_call"]
    callId: str
    name: str
    arguments: NotRequired[str]
    output: NotRequired[Any]


ConversationItem = Union[MessageItem, ToolCallItem, ToolResultItem, ReasoningItem, HostedToolCallItem]
"""Any item of a conversation history."""

ModelOutputItem = Union[MessageItem, ToolCallItem, ReasoningItem, HostedToolCallItem]
"""Items a model may produce in a response."""


def user_message(content: str) -> MessageItem:
    """Build a user message item."""
    return {"type": "message", "role": "user", "content": content}


def assistant_message(content: str) -> MessageItem:
    """Build an assistant message item."""
    return {"type": "message", "role": "assistant", "content": content}


def tool_result(call: ToolCallItem, output: str, status: Literal["success", "error"] = "success") -> ToolResultItem:
    """Build the result item answering the given call."""
    return {"type": "tool_result", "callId": call["callId"], "name": call["name"], "output": output, "status": status}


def input_to_items(input: str | list[ConversationItem]) -> list[ConversationItem]:
    """Normalize a run input into a list of conversation items.

    Args:
        input: A single user utterance or a pre-built conversation history.

    Returns:
        A new list; item dictionaries are shared, the list is not.

    Raises:
        ValueError: If the input is neither a string nor a list of typed items.
    """
    if isinstance(input, str):
        return [user_message(input)]

    if isinstance(input, list) and all(isinstance(item, dict) and "type" in item for item in input):
        return list(input)

    raise ValueError("Input must be of type: `str | list[ConversationItem]`.")
