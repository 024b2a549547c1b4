"""Input and output guardrails.

Guardrails are independent validation functions. They observe a payload (the raw run input or the parsed final output)
and signal a policy violation through a tripwire; they never modify the payload.
"""

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Optional, Union, overload

from ..run.context import RunContext, TContext
from ..types.exceptions import (
    GuardrailExecutionError,
    InputGuardrailTripwireTriggered,
    OutputGuardrailTripwireTriggered,
)
from ..types.items import ConversationItem

if TYPE_CHECKING:
    from ..agent import Agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardrailFunctionOutput:
    """Verdict of a guardrail function.

    Attributes:
        output_info: Arbitrary diagnostic payload.
        tripwire_triggered: True if the run must halt.
    """

    output_info: Any
    tripwire_triggered: bool


InputGuardrailFunction = Callable[
    [RunContext, "Agent", Union[str, list[ConversationItem]]],
    Union[GuardrailFunctionOutput, Awaitable[GuardrailFunctionOutput]],
]
OutputGuardrailFunction = Callable[
    [RunContext, "Agent", Any],
    Union[GuardrailFunctionOutput, Awaitable[GuardrailFunctionOutput]],
]


async def _call(function: Callable[..., Any], *args: Any) -> GuardrailFunctionOutput:
    result = function(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass(frozen=True)
class InputGuardrail(Generic[TContext]):
    """A guardrail checked against the raw run input, on the first turn only.

    Attributes:
        guardrail_function: Function receiving the run context, the agent and the input.
        name: Name used in errors and traces, defaults to the function name.
    """

    guardrail_function: InputGuardrailFunction
    name: Optional[str] = None

    def get_name(self) -> str:
        """Name of the guardrail."""
        return self.name or getattr(self.guardrail_function, "__name__", "input_guardrail")

    async def run(
        self, context: RunContext[TContext], agent: "Agent", input: Union[str, list[ConversationItem]]
    ) -> "InputGuardrailResult":
        """Run the guardrail function and wrap its verdict."""
        output = await _call(self.guardrail_function, context, agent, input)
        return InputGuardrailResult(guardrail=self, output=output)


@dataclass(frozen=True)
class OutputGuardrail(Generic[TContext]):
    """A guardrail checked against the parsed final output of the agent that ends the run.

    Attributes:
        guardrail_function: Function receiving the run context, the agent and the final output.
        name: Name used in errors and traces, defaults to the function name.
    """

    guardrail_function: OutputGuardrailFunction
    name: Optional[str] = None

    def get_name(self) -> str:
        """Name of the guardrail."""
        return self.name or getattr(self.guardrail_function, "__name__", "output_guardrail")

    async def run(self, context: RunContext[TContext], agent: "Agent", agent_output: Any) -> "OutputGuardrailResult":
        """Run the guardrail function and wrap its verdict."""
        output = await _call(self.guardrail_function, context, agent, agent_output)
        return OutputGuardrailResult(guardrail=self, agent=agent, agent_output=agent_output, output=output)


@dataclass(frozen=True)
class InputGuardrailResult:
    """Result of an input guardrail."""

    guardrail: InputGuardrail
    output: GuardrailFunctionOutput


@dataclass(frozen=True)
class OutputGuardrailResult:
    """Result of an output guardrail."""

    guardrail: OutputGuardrail
    agent: "Agent"
    agent_output: Any
    output: GuardrailFunctionOutput


async def run_input_guardrails(
    guardrails: list[InputGuardrail],
    context: RunContext,
    agent: "Agent",
    input: Union[str, list[ConversationItem]],
    results: list[InputGuardrailResult],
) -> list[InputGuardrailResult]:
    """Run an input guardrail pipeline in order.

    Each result is appended to `results` as soon as it is produced, so a caller keeps the results of the guardrails
    that ran even when the pipeline stops early.

    Raises:
        InputGuardrailTripwireTriggered: When a guardrail trips; remaining guardrails do not run.
        GuardrailExecutionError: When a guardrail raises; remaining guardrails do not run.
    """
    for guardrail in guardrails:
        # Item inputs are copied so a guardrail cannot alter the history
        payload = input if isinstance(input, str) else copy.deepcopy(input)
        try:
            result = await guardrail.run(context, agent, payload)
        except Exception as e:
            logger.exception("guardrail=<%s> | input guardrail failed", guardrail.get_name())
            raise GuardrailExecutionError(guardrail, e) from e

        results.append(result)
        if result.output.tripwire_triggered:
            logger.debug("guardrail=<%s> | input guardrail tripwire triggered", guardrail.get_name())
            raise InputGuardrailTripwireTriggered(result)

    return results


async def run_output_guardrails(
    guardrails: list[OutputGuardrail],
    context: RunContext,
    agent: "Agent",
    agent_output: Any,
    results: list[OutputGuardrailResult],
) -> list[OutputGuardrailResult]:
    """Run an output guardrail pipeline in order.

    Each guardrail receives its own copy of the output, so the final output is unchanged whatever a guardrail does.

    Raises:
        OutputGuardrailTripwireTriggered: When a guardrail trips; remaining guardrails do not run.
        GuardrailExecutionError: When a guardrail raises; remaining guardrails do not run.
    """
    for guardrail in guardrails:
        try:
            result = await guardrail.run(context, agent, copy.deepcopy(agent_output))
        except Exception as e:
            logger.exception("guardrail=<%s> | output guardrail failed", guardrail.get_name())
            raise GuardrailExecutionError(guardrail, e) from e

        results.append(result)
        if result.output.tripwire_triggered:
            logger.debug("guardrail=<%s> | output guardrail tripwire triggered", guardrail.get_name())
            raise OutputGuardrailTripwireTriggered(result)

    return results


@overload
def input_guardrail(func: InputGuardrailFunction) -> InputGuardrail: ...


@overload
def input_guardrail(*, name: Optional[str] = None) -> Callable[[InputGuardrailFunction], InputGuardrail]: ...


def input_guardrail(
    func: Optional[InputGuardrailFunction] = None, *, name: Optional[str] = None
) -> Union[InputGuardrail, Callable[[InputGuardrailFunction], InputGuardrail]]:
    """Decorator that turns a function into an `InputGuardrail`, bare or with a name."""

    def decorator(f: InputGuardrailFunction) -> InputGuardrail:
        return InputGuardrail(guardrail_function=f, name=name)

    if func is not None:
        return decorator(func)
    return decorator


@overload
def output_guardrail(func: OutputGuardrailFunction) -> OutputGuardrail: ...


@overload
def output_guardrail(*, name: Optional[str] = None) -> Callable[[OutputGuardrailFunction], OutputGuardrail]: ...


def output_guardrail(
    func: Optional[OutputGuardrailFunction] = None, *, name: Optional[str] = None
) -> Union[OutputGuardrail, Callable[[OutputGuardrailFunction], OutputGuardrail]]:
    """Decorator that turns a function into an `OutputGuardrail`, bare or with a name."""

    def decorator(f: OutputGuardrailFunction) -> OutputGuardrail:
        return OutputGuardrail(guardrail_function=f, name=name)

    if func is not None:
        return decorator(func)
    return decorator
