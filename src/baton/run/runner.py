"""Entry points for running agents.

`Runner` drives a starting agent through the run loop until it produces a final output, suspends for approvals or
fails. The class methods use a process-wide default runner:

```python
result = await Runner.run(agent, "What is the weather in Paris?")
print(result.final_output)
```

A runner instance carries its own `RunConfig`:

```python
runner = Runner(RunConfig(model="gpt-small", tracing_disabled=True))
result = runner.invoke_sync(agent, "hello")
```
"""

import copy
import logging
from typing import TYPE_CHECKING, Any, Optional, Union

from .._async import run_async
from ..config import get_defaults
from ..event_loop.event_loop import RunScope, run_loop
from ..hooks import HookProvider
from ..telemetry.tracer import get_tracer
from ..types._events import RunResultEvent
from ..types.cancellation import CancellationToken
from ..types.exceptions import UserError
from ..types.items import ConversationItem, input_to_items
from .config import DEFAULT_MAX_TURNS, RunConfig
from .context import RunContext
from .result import RunResult, RunResultStreaming
from .state import RunState

if TYPE_CHECKING:
    from ..agent import Agent

logger = logging.getLogger(__name__)

RunInput = Union[str, list[ConversationItem], RunState[Any]]
"""A run starts from an utterance, a conversation history, or resumes from a run state."""

__all__ = ["DEFAULT_MAX_TURNS", "RunInput", "Runner"]


class Runner:
    """Runs agents.

    Attributes:
        run_config: Configuration used when a call passes none.
    """

    _default: Optional["Runner"] = None

    def __init__(self, run_config: Optional[RunConfig] = None) -> None:
        """Initialize the runner.

        Args:
            run_config: Configuration used when a call passes none.
        """
        self.run_config = run_config or RunConfig()

    @classmethod
    def default(cls) -> "Runner":
        """The process-wide runner behind the class-level entry points."""
        if cls._default is None:
            cls._default = Runner()
        return cls._default

    async def invoke(
        self,
        starting_agent: "Agent[Any]",
        input: RunInput,
        *,
        context: Any = None,
        max_turns: Optional[int] = None,
        cancellation_token: Optional[CancellationToken] = None,
        hooks: Optional[list[HookProvider]] = None,
        run_config: Optional[RunConfig] = None,
        previous_response_id: Optional[str] = None,
    ) -> RunResult:
        """Run an agent until it produces a final output or suspends for approvals.

        Args:
            starting_agent: The agent to start with. When resuming, the agent the run originally started with.
            input: A user utterance, a conversation history, or a `RunState` to resume.
            context: Caller supplied value passed to tools, guardrails, hooks and instructions. Never sent to the model.
                When resuming, replaces the value held by the state if given.
            max_turns: Turn limit. When resuming, raises the limit recorded in the state if given.
            cancellation_token: Token cancelling the run cooperatively.
            hooks: Observers for this call, notified after the configured run-level observers.
            run_config: Configuration for this call instead of the runner's.
            previous_response_id: Identifier of a previous response for providers with server-side state.

        Returns:
            The result. `result.interruptions` is non-empty when the run suspended for approvals.

        Raises:
            AgentsException: Any run failure, with `state` set to the run state at the time of the failure.
        """
        scope = self._prepare(
            starting_agent,
            input,
            context=context,
            max_turns=max_turns,
            cancellation_token=cancellation_token,
            hooks=hooks,
            run_config=run_config,
            previous_response_id=previous_response_id,
        )

        result: Optional[RunResult] = None
        async for event in run_loop(scope):
            if isinstance(event, RunResultEvent):
                result = event.result

        if result is None:
            raise UserError("Run ended without a result")
        return result

    def invoke_sync(
        self,
        starting_agent: "Agent[Any]",
        input: RunInput,
        *,
        context: Any = None,
        max_turns: Optional[int] = None,
        cancellation_token: Optional[CancellationToken] = None,
        hooks: Optional[list[HookProvider]] = None,
        run_config: Optional[RunConfig] = None,
        previous_response_id: Optional[str] = None,
    ) -> RunResult:
        """Blocking variant of `invoke`, usable with or without a running event loop."""
        return run_async(
            lambda: self.invoke(
                starting_agent,
                input,
                context=context,
                max_turns=max_turns,
                cancellation_token=cancellation_token,
                hooks=hooks,
                run_config=run_config,
                previous_response_id=previous_response_id,
            )
        )

    def stream(
        self,
        starting_agent: "Agent[Any]",
        input: RunInput,
        *,
        context: Any = None,
        max_turns: Optional[int] = None,
        cancellation_token: Optional[CancellationToken] = None,
        hooks: Optional[list[HookProvider]] = None,
        run_config: Optional[RunConfig] = None,
        previous_response_id: Optional[str] = None,
    ) -> RunResultStreaming:
        """Start a run in a background task and return a handle streaming its events.

        Must be called from a running event loop. Model calls use the incremental variant of the model and every
        provider event is forwarded as a `ModelStreamChunkEvent`.

        Example:
            ```python
            result = runner.stream(agent, "hello")
            async for event in result.stream_events():
                ...
            ```
        """
        scope = self._prepare(
            starting_agent,
            input,
            context=context,
            max_turns=max_turns,
            cancellation_token=cancellation_token,
            hooks=hooks,
            run_config=run_config,
            previous_response_id=previous_response_id,
            streaming=True,
        )
        streamed = RunResultStreaming(scope.state, scope.cancellation_token)
        streamed._start(run_loop(scope))
        return streamed

    @classmethod
    async def run(cls, starting_agent: "Agent[Any]", input: RunInput, **kwargs: Any) -> RunResult:
        """Run an agent with the default runner. See `invoke`."""
        return await cls.default().invoke(starting_agent, input, **kwargs)

    @classmethod
    def run_sync(cls, starting_agent: "Agent[Any]", input: RunInput, **kwargs: Any) -> RunResult:
        """Run an agent with the default runner from synchronous code. See `invoke_sync`."""
        return cls.default().invoke_sync(starting_agent, input, **kwargs)

    @classmethod
    def run_streamed(cls, starting_agent: "Agent[Any]", input: RunInput, **kwargs: Any) -> RunResultStreaming:
        """Stream a run with the default runner. See `stream`."""
        return cls.default().stream(starting_agent, input, **kwargs)

    def _prepare(
        self,
        starting_agent: "Agent[Any]",
        input: RunInput,
        *,
        context: Any,
        max_turns: Optional[int],
        cancellation_token: Optional[CancellationToken],
        hooks: Optional[list[HookProvider]],
        run_config: Optional[RunConfig],
        previous_response_id: Optional[str],
        streaming: bool = False,
    ) -> RunScope:
        if max_turns is not None and max_turns < 1:
            raise UserError(f"max_turns must be at least 1, got {max_turns}")

        run_config = run_config or self.run_config
        defaults = get_defaults()

        if isinstance(input, RunState):
            state = input
            if context is not None:
                state.context.context = context
            if max_turns is not None:
                state.max_turns = max_turns
            logger.debug(
                "agent=<%s>, next_step=<%s>, turn=<%d> | resuming run",
                state.current_agent.name,
                state.next_step,
                state.current_turn,
            )
        else:
            try:
                input_to_items(input)
            except ValueError as e:
                raise UserError(str(e)) from e

            state = RunState(
                current_agent=starting_agent,
                original_input=input if isinstance(input, str) else copy.deepcopy(input),
                context=RunContext(context),
                max_turns=max_turns or DEFAULT_MAX_TURNS,
                last_response_id=previous_response_id,
            )
            logger.debug("agent=<%s>, max_turns=<%d> | starting run", starting_agent.name, state.max_turns)

        tracing_disabled = (
            run_config.tracing_disabled if run_config.tracing_disabled is not None else defaults.tracing_disabled
        )
        tracer = get_tracer(
            disabled=tracing_disabled,
            include_sensitive_data=run_config.trace_include_sensitive_data,
            workflow_name=run_config.workflow_name,
            metadata=run_config.trace_metadata,
        )

        cancellation_token = cancellation_token or CancellationToken()
        state.context.run_config = run_config
        state.context.cancellation_token = cancellation_token

        return RunScope(
            state=state,
            run_config=run_config,
            run_hooks=[*run_config.hooks, *(hooks or [])],
            cancellation_token=cancellation_token,
            tracer=tracer,
            defaults=defaults,
            streaming=streaming,
        )
