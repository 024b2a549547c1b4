"""Concurrent tool executor implementation."""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from opentelemetry import trace as trace_api
from typing_extensions import override

from ...hooks import HookRegistry
from ...run.context import RunContext
from ...telemetry.tracer import Tracer
from ...types.items import ToolCallItem
from ..tools import Tool
from ._executor import ToolExecutor, ToolOutcome

logger = logging.getLogger(__name__)

if TYPE_CHECKING:  # pragma: no cover
    from ...agent import Agent


class ConcurrentToolExecutor(ToolExecutor):
    """Concurrent tool executor.

    Every call runs in its own asyncio task. All tasks run to completion even when one fails, so every
    sibling result is returned next to the failures.
    """

    @override
    async def _execute(
        self,
        agent: "Agent",
        calls: list[tuple[Tool, ToolCallItem]],
        context: RunContext,
        hooks: HookRegistry,
        tracer: Tracer,
        parent_span: Optional[trace_api.Span],
    ) -> list[ToolOutcome]:
        """Execute tools concurrently.

        Args:
            agent: The agent for which tools are being executed.
            calls: Tools paired with the calls to execute.
            context: The run context.
            hooks: Registry notified before and after each call.
            tracer: Tracer creating tool call spans.
            parent_span: Span of the current turn.

        Returns:
            One outcome per call, in call order.
        """
        tasks = [
            asyncio.create_task(self._run_tool(agent, tool, call, context, hooks, tracer, parent_span))
            for tool, call in calls
        ]

        outcomes: list[ToolOutcome] = []
        for result in await asyncio.gather(*tasks, return_exceptions=True):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            outcomes.append(result)

        return outcomes
