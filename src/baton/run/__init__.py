"""Run-scoped data: the context carrier and run items.

`Runner`, `RunConfig`, `RunState` and `RunResult` live in the submodules of this package and are exported from the
top-level `baton` package.
"""

from .context import RunContext
from .items import (
    HandoffCallItem,
    HandoffOutputItem,
    MessageOutputItem,
    ReasoningItem,
    RunItem,
    ToolApprovalItem,
    ToolCallItem,
    ToolCallOutputItem,
)

__all__ = [
    "HandoffCallItem",
    "HandoffOutputItem",
    "MessageOutputItem",
    "ReasoningItem",
    "RunContext",
    "RunItem",
    "ToolApprovalItem",
    "ToolCallItem",
    "ToolCallOutputItem",
]
