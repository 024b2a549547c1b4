"""Sequential tool executor implementation."""

from typing import TYPE_CHECKING, Optional

from opentelemetry import trace as trace_api
from typing_extensions import override

from ...hooks import HookRegistry
from ...run.context import RunContext
from ...telemetry.tracer import Tracer
from ...types.items import ToolCallItem
from ..tools import Tool
from ._executor import ToolExecutor, ToolOutcome

if TYPE_CHECKING:  # pragma: no cover
    from ...agent import Agent


class SequentialToolExecutor(ToolExecutor):
    """Sequential tool executor.

    Calls run one after the other in call order; a failure stops the remaining calls.
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
        """Execute tools sequentially.

        Args:
            agent: The agent for which tools are being executed.
            calls: Tools paired with the calls to execute.
            context: The run context.
            hooks: Registry notified before and after each call.
            tracer: Tracer creating tool call spans.
            parent_span: Span of the current turn.

        Returns:
            One outcome per call up to and including the first failure.
        """
        outcomes: list[ToolOutcome] = []
        for tool, call in calls:
            try:
                outcomes.append(await self._run_tool(agent, tool, call, context, hooks, tracer, parent_span))
            except Exception as e:
                outcomes.append(e)
                break
        return outcomes
