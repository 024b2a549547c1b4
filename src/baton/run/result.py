"""Results of a run, buffered or streamed."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional, TypeVar, Union, cast

from pydantic import TypeAdapter

from ..guardrails import InputGuardrailResult, OutputGuardrailResult
from ..models.model import ModelResponse
from ..types._events import RunResultEvent, TypedEvent
from ..types.cancellation import CancellationToken
from ..types.exceptions import UserError
from ..types.items import ConversationItem
from ..types.usage import Usage
from .items import RunItem, ToolApprovalItem

if TYPE_CHECKING:
    from ..agent import Agent
    from .state import RunState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RunResult:
    """Outcome of a run that finished or stopped for approvals.

    Attributes:
        input: The run input, possibly rewritten by a handoff input filter.
        new_items: Items generated by the run.
        raw_responses: Raw responses of every model call.
        final_output: The final output, or None if the run stopped for approvals.
        last_agent: The agent active when the run stopped.
        interruptions: Approval requests the run is waiting for.
        state: The run state, to serialize or resume.
        input_guardrail_results: Results of the input guardrails.
        output_guardrail_results: Results of the output guardrails.
    """

    input: Union[str, list[ConversationItem]]
    new_items: list[RunItem]
    raw_responses: list[ModelResponse]
    final_output: Any
    last_agent: "Agent[Any]"
    interruptions: list[ToolApprovalItem]
    state: "RunState[Any]"
    input_guardrail_results: list[InputGuardrailResult] = field(default_factory=list)
    output_guardrail_results: list[OutputGuardrailResult] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: "RunState[Any]") -> "RunResult":
        """Build the result exposing a run state."""
        return cls(
            input=state.original_input,
            new_items=list(state.generated_items),
            raw_responses=list(state.model_responses),
            final_output=state.final_output if state.next_step == "final_output" else None,
            last_agent=state.current_agent,
            interruptions=state.get_interruptions(),
            state=state,
            input_guardrail_results=list(state.input_guardrail_results),
            output_guardrail_results=list(state.output_guardrail_results),
        )

    @property
    def history(self) -> list[ConversationItem]:
        """Conversation history to carry into a follow-up run."""
        return self.to_input_list()

    def to_input_list(self) -> list[ConversationItem]:
        """The input followed by the generated items that are model input."""
        return self.state.to_input_list()

    @property
    def last_response_id(self) -> Optional[str]:
        """Provider identifier of the last model response."""
        return self.state.last_response_id

    @property
    def usage(self) -> Usage:
        """Token usage aggregated over the run."""
        return self.state.context.usage

    def final_output_as(self, cls: type[T], raise_if_incorrect_type: bool = False) -> T:
        """The final output cast to the given type.

        Args:
            cls: Expected type.
            raise_if_incorrect_type: Validate the value against the type instead of casting blindly.

        Raises:
            TypeError: If validation is requested and the value does not match.
        """
        if raise_if_incorrect_type:
            try:
                return TypeAdapter(cls).validate_python(self.final_output, strict=True)
            except Exception as e:
                raise TypeError(f"Final output is not of type {getattr(cls, '__name__', cls)}") from e
        return cast(T, self.final_output)

    def __str__(self) -> str:
        """Text of the final output."""
        return "" if self.final_output is None else str(self.final_output)


class _QueueComplete:
    pass


_QUEUE_COMPLETE = _QueueComplete()


class RunResultStreaming:
    """Handle on a run driven in a background task.

    Events are consumed with `stream_events()`; `await result.completed` resolves to the final `RunResult`, or raises
    the error that stopped the run.

    Example:
        ```python
        result = Runner.run_streamed(agent, "hello")
        async for event in result.stream_events():
            if isinstance(event, ModelStreamChunkEvent) and isinstance(event.event, TextDeltaEvent):
                print(event.event.delta, end="")
        final = await result.completed
        ```
    """

    def __init__(self, state: "RunState[Any]", cancellation_token: CancellationToken) -> None:
        """Initialize the handle.

        Args:
            state: The state the run mutates.
            cancellation_token: Token cancelling the run.
        """
        self.state = state
        self.cancellation_token = cancellation_token
        self._event_queue: asyncio.Queue[Union[TypedEvent, _QueueComplete]] = asyncio.Queue()
        self._completed: asyncio.Future[RunResult] = asyncio.get_running_loop().create_future()
        self._task: Optional[asyncio.Task[None]] = None

    def _start(self, events: AsyncIterator[TypedEvent]) -> None:
        self._task = asyncio.create_task(self._drive(events))

    async def _drive(self, events: AsyncIterator[TypedEvent]) -> None:
        try:
            async for event in events:
                self._event_queue.put_nowait(event)
                if isinstance(event, RunResultEvent) and not self._completed.done():
                    self._completed.set_result(event.result)
        except asyncio.CancelledError:
            self._completed.cancel()
            raise
        except Exception as e:
            logger.debug("error=<%s> | streamed run stopped with an error", e)
            if not self._completed.done():
                self._completed.set_exception(e)
        finally:
            if not self._completed.done():
                self._completed.set_exception(UserError("Run ended without a result"))
            self._event_queue.put_nowait(_QUEUE_COMPLETE)

    @property
    def completed(self) -> "asyncio.Future[RunResult]":
        """Future resolving to the final result."""
        return self._completed

    @property
    def is_complete(self) -> bool:
        """True once the run finished, stopped for approvals or failed."""
        return self._completed.done()

    @property
    def current_agent(self) -> "Agent[Any]":
        """The active agent."""
        return self.state.current_agent

    @property
    def new_items(self) -> list[RunItem]:
        """Items generated so far."""
        return list(self.state.generated_items)

    @property
    def final_output(self) -> Any:
        """The final output, or None until the run produced it."""
        return self.state.final_output if self.state.next_step == "final_output" else None

    @property
    def interruptions(self) -> list[ToolApprovalItem]:
        """Approval requests the run is waiting for."""
        return self.state.get_interruptions()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel the run; it stops at its next cancellation check with `RunCancelledError`."""
        self.cancellation_token.cancel(reason)

    async def stream_events(self) -> AsyncIterator[TypedEvent]:
        """Yield run events as they are produced.

        The iteration ends after the `RunResultEvent`. If the run fails, the error is raised once every event
        produced before the failure was yielded.
        """
        while True:
            event = await self._event_queue.get()
            if isinstance(event, _QueueComplete):
                break
            yield event

        if self._task is not None:
            await self._task
        if self._completed.cancelled():
            raise asyncio.CancelledError()
        exception = self._completed.exception()
        if exception is not None:
            raise exception
