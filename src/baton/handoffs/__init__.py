"""Handoff resolver: agent-to-agent delegation exposed as tools."""

from .handoff import (
    Handoff,
    HandoffInputData,
    HandoffInputFilter,
    default_handoff_tool_description,
    default_handoff_tool_name,
    handoff,
)

__all__ = [
    "Handoff",
    "HandoffInputData",
    "HandoffInputFilter",
    "default_handoff_tool_description",
    "default_handoff_tool_name",
    "handoff",
]
