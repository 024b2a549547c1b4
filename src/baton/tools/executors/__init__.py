"""Tool executors.

- Concurrent: runs the approved calls of a turn as parallel asyncio tasks (default)
- Sequential: runs them one after the other
"""

from ._executor import ToolExecutor, ToolOutcome
from .concurrent import ConcurrentToolExecutor
from .sequential import SequentialToolExecutor

__all__ = ["ConcurrentToolExecutor", "SequentialToolExecutor", "ToolExecutor", "ToolOutcome"]
