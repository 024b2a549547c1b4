"""Exception-related type definitions for the SDK.

Every exception raised from inside the run loop derives from `AgentsException` and carries the `RunState` as it was
when the error occurred, so callers can inspect the history and decide to resume or abort.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..guardrails import InputGuardrail, InputGuardrailResult, OutputGuardrail, OutputGuardrailResult
    from ..run.state import RunState


class AgentsException(Exception):
    """Base class for all exceptions raised by the SDK."""

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Description of the failure.
        """
        self.message = message
        self.state: Optional["RunState"] = None
        super().__init__(message)


class MaxTurnsExceededError(AgentsException):
    """Raised when the run exceeds the configured number of turns.

    Not retried internally. Callers may resume from `state` with a larger limit.
    """


class ModelBehaviorError(AgentsException):
    """Raised when the model does something unexpected.

    Examples are malformed structured output, a call to a tool or handoff that does not exist, or arguments that do
    not match the tool schema.
    """


class UserError(AgentsException):
    """Raised when the SDK is used or configured incorrectly."""


class RunStateDeserializationError(UserError):
    """Raised when a serialized run state cannot be restored against the given agent definition."""


class RunCancelledError(AgentsException):
    """Raised when a run is stopped through its cancellation token."""


class InputGuardrailTripwireTriggered(AgentsException):
    """Raised when an input guardrail trips its wire."""

    def __init__(self, guardrail_result: "InputGuardrailResult") -> None:
        """Initialize exception.

        Args:
            guardrail_result: The result of the guardrail that tripped.
        """
        self.guardrail_result = guardrail_result
        super().__init__(f"Guardrail {guardrail_result.guardrail.get_name()} triggered tripwire")


class OutputGuardrailTripwireTriggered(AgentsException):
    """Raised when an output guardrail trips its wire."""

    def __init__(self, guardrail_result: "OutputGuardrailResult") -> None:
        """Initialize exception.

        Args:
            guardrail_result: The result of the guardrail that tripped.
        """
        self.guardrail_result = guardrail_result
        super().__init__(f"Guardrail {guardrail_result.guardrail.get_name()} triggered tripwire")


class GuardrailExecutionError(AgentsException):
    """Raised when a guardrail function itself fails.

    This is distinct from a tripwire: the guardrail could not reach a verdict. Remaining guardrails of the same
    pipeline are not run.
    """

    def __init__(
        self,
        guardrail: "InputGuardrail | OutputGuardrail",
        original_exception: Exception,
    ) -> None:
        """Initialize exception.

        Args:
            guardrail: The guardrail that failed.
            original_exception: The exception raised by the guardrail function.
        """
        self.guardrail = guardrail
        self.original_exception = original_exception
        super().__init__(f"Guardrail {guardrail.get_name()} failed: {original_exception}")


class ToolCallError(AgentsException):
    """Raised when a tool fails and no error formatter converts the failure into a model visible message."""

    def __init__(self, tool_name: str, call_id: str, original_exception: Exception) -> None:
        """Initialize exception.

        Args:
            tool_name: Name of the failing tool.
            call_id: Identifier of the failing call.
            original_exception: The exception raised by the tool.
        """
        self.tool_name = tool_name
        self.call_id = call_id
        self.original_exception = original_exception
        super().__init__(f"Error running tool {tool_name}: {original_exception}")


class ModelThrottledException(Exception):
    """Exception raised when the model is throttled.

    This exception is raised when the model is throttled by the service. This typically occurs when the service is
    throttling the requests from the client. The run loop retries the call with exponential backoff.
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: The message from the service that describes the throttling.
        """
        self.message = message
        super().__init__(message)


class ToolProviderException(Exception):
    """Exception raised when a remote tool provider fails to connect, list or call tools."""

    def __init__(self, message: str, original_exception: Any = None) -> None:
        """Initialize exception.

        Args:
            message: Description of the failure.
            original_exception: Underlying error, if any.
        """
        self.original_exception = original_exception
        super().__init__(message)
