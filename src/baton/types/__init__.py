"""SDK type definitions."""

from .cancellation import CancellationToken
from .exceptions import (
    AgentsException,
    GuardrailExecutionError,
    InputGuardrailTripwireTriggered,
    MaxTurnsExceededError,
    ModelBehaviorError,
    ModelThrottledException,
    OutputGuardrailTripwireTriggered,
    RunCancelledError,
    RunStateDeserializationError,
    ToolCallError,
    ToolProviderException,
    UserError,
)

__all__ = [
    "AgentsException",
    "CancellationToken",
    "GuardrailExecutionError",
    "InputGuardrailTripwireTriggered",
    "MaxTurnsExceededError",
    "ModelBehaviorError",
    "ModelThrottledException",
    "OutputGuardrailTripwireTriggered",
    "RunCancelledError",
    "RunStateDeserializationError",
    "ToolCallError",
    "ToolProviderException",
    "UserError",
]
