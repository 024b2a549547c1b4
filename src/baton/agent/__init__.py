"""Agent definitions.

- Agent: immutable agent configuration
- StopAtTools / ToolsToFinalOutputResult: tool use behaviors
"""

from .agent import (
    Agent,
    Instructions,
    StopAtTools,
    ToolsToFinalOutputFunction,
    ToolsToFinalOutputResult,
    ToolUseBehavior,
)

__all__ = [
    "Agent",
    "Instructions",
    "StopAtTools",
    "ToolsToFinalOutputFunction",
    "ToolsToFinalOutputResult",
    "ToolUseBehavior",
]
