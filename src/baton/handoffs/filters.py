"""Stock handoff input filters."""

from ..run.items import HandoffCallItem, HandoffOutputItem, ToolApprovalItem, ToolCallItem, ToolCallOutputItem
from ..types.items import ConversationItem
from .handoff import HandoffInputData

_TOOL_ITEM_TYPES = {"tool_call", "tool_result", "hosted_tool_call"}
_TOOL_RUN_ITEMS = (HandoffCallItem, HandoffOutputItem, ToolApprovalItem, ToolCallItem, ToolCallOutputItem)


def remove_all_tools(handoff_input_data: HandoffInputData) -> HandoffInputData:
    """Drop every tool and handoff call and result from the history handed to the next agent."""
    history = handoff_input_data.input_history
    if not isinstance(history, str):
        history = tuple(item for item in history if not _is_tool_item(item))

    return handoff_input_data.clone(
        input_history=history,
        pre_handoff_items=tuple(
            item for item in handoff_input_data.pre_handoff_items if not isinstance(item, _TOOL_RUN_ITEMS)
        ),
        new_items=tuple(item for item in handoff_input_data.new_items if not isinstance(item, _TOOL_RUN_ITEMS)),
    )


def _is_tool_item(item: ConversationItem) -> bool:
    return item.get("type") in _TOOL_ITEM_TYPES
