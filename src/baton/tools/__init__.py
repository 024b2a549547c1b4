"""Agent tool interfaces and utilities.

This module provides the core functionality for creating, managing, and executing tools through agents.
"""

from .agent_tool import AgentTool
from .decorator import FunctionTool, tool
from .executors import ConcurrentToolExecutor, SequentialToolExecutor, ToolExecutor
from .providers import MCPToolProvider, ProviderTool, ToolProvider
from .registry import ToolRegistry
from .tools import (
    FunctionToolResult,
    HostedTool,
    NeedsApproval,
    Tool,
    ToolErrorFunction,
    default_tool_error_function,
)

__all__ = [
    "AgentTool",
    "ConcurrentToolExecutor",
    "FunctionTool",
    "FunctionToolResult",
    "HostedTool",
    "MCPToolProvider",
    "NeedsApproval",
    "ProviderTool",
    "SequentialToolExecutor",
    "Tool",
    "ToolErrorFunction",
    "ToolExecutor",
    "ToolProvider",
    "ToolRegistry",
    "default_tool_error_function",
    "tool",
]
