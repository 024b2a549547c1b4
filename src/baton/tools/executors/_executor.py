"""Abstract base class for tool executors.

Tool executors are responsible for determining how the approved tool calls of a turn are executed (e.g.,
concurrently or sequentially). Whatever the strategy, results are returned in the order the model requested the calls.
"""

import abc
import logging
from typing import TYPE_CHECKING, Optional, Union

from opentelemetry import trace as trace_api

from ...hooks import AfterToolCallEvent, BeforeToolCallEvent, HookRegistry
from ...run.context import RunContext
from ...telemetry.tracer import Tracer, get_tracer
from ...types.items import ToolCallItem
from ..tools import FunctionToolResult, Tool

if TYPE_CHECKING:  # pragma: no cover
    from ...agent import Agent

logger = logging.getLogger(__name__)

ToolOutcome = Union[FunctionToolResult, Exception]
"""Result of one executed call, or the exception it raised."""


class ToolExecutor(abc.ABC):
    """Abstract base class for tool executors."""

    async def execute(
        self,
        agent: "Agent",
        calls: list[tuple[Tool, ToolCallItem]],
        context: RunContext,
        hooks: Optional[HookRegistry] = None,
        tracer: Optional[Tracer] = None,
        parent_span: Optional[trace_api.Span] = None,
    ) -> list[ToolOutcome]:
        """Execute tool calls.

        Args:
            agent: The agent for which tools are being executed.
            calls: Tools paired with the calls to execute.
            context: The run context.
            hooks: Registry notified before and after each call.
            tracer: Tracer creating tool call spans.
            parent_span: Span of the current turn.

        Returns:
            One outcome per executed call, in call order. A failed call holds its exception instead of a result so
            the caller can keep the sibling results. Calls skipped after a failure have no entry.
        """
        if not calls:
            return []

        logger.debug("agent=<%s>, tool_count=<%d> | executing tools", agent.name, len(calls))
        return await self._execute(
            agent,
            calls,
            context,
            hooks if hooks is not None else HookRegistry(),
            tracer if tracer is not None else get_tracer(disabled=True),
            parent_span,
        )

    @abc.abstractmethod
    async def _execute(
        self,
        agent: "Agent",
        calls: list[tuple[Tool, ToolCallItem]],
        context: RunContext,
        hooks: HookRegistry,
        tracer: Tracer,
        parent_span: Optional[trace_api.Span],
    ) -> list[ToolOutcome]:
        """Execute the calls using the executor's strategy."""
        pass

    @staticmethod
    async def _run_tool(
        agent: "Agent",
        tool: Tool,
        call: ToolCallItem,
        context: RunContext,
        hooks: HookRegistry,
        tracer: Tracer,
        parent_span: Optional[trace_api.Span],
    ) -> FunctionToolResult:
        """Execute one call with hooks and tracing.

        Exceptions raised by the tool (when it has no failure error function) or by a hook propagate.
        """
        await hooks.dispatch(BeforeToolCallEvent(agent=agent, context=context, tool=tool, call=call))

        tool_call_span = tracer.start_tool_call_span(call, parent_span)
        try:
            with trace_api.use_span(tool_call_span):
                result = await tool.run(context, call)
        except Exception as e:
            tracer.end_span_with_error(tool_call_span, str(e), e)
            raise

        tracer.end_tool_call_span(tool_call_span, result)

        await hooks.dispatch(
            AfterToolCallEvent(agent=agent, context=context, tool=tool, call=call, result=result.text)
        )
        return result

