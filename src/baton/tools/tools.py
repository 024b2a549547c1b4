"""Core tool abstraction.

Every capability the model can call, whether a local function, a sub-agent, a remote protocol tool or a hosted
platform tool, is an adapter implementing the single `Tool` interface: a name, a schema, an approval check and an
execute method.
"""

import abc
import inspect
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import BaseModel

from ..types.exceptions import ModelBehaviorError, ToolCallError
from ..types.items import ToolCallItem
from ..types.tools import ToolSpec

if TYPE_CHECKING:
    from ..run.context import RunContext

logger = logging.getLogger(__name__)

ApprovalPredicate = Callable[["RunContext", dict[str, Any], str], Union[bool, Awaitable[bool]]]
"""Computes whether a call needs approval from the run context, the decoded arguments and the call id."""

NeedsApproval = Union[bool, ApprovalPredicate]

ToolErrorFunction = Callable[["RunContext", Exception], Union[str, Awaitable[str]]]
"""Converts a tool failure into the text shown to the model."""


def default_tool_error_function(context: "RunContext", error: Exception) -> str:
    """Default failure formatter: tell the model the tool failed and why."""
    return f"An error occurred while running the tool. Please try again. Error: {error}"


@dataclass(frozen=True)
class FunctionToolResult:
    """Outcome of one executed tool call.

    Attributes:
        tool: The tool that ran.
        call: The model's call request.
        output: The raw value returned by the tool, or the formatted error text.
        text: The text shown to the model.
        status: Whether the call succeeded.
    """

    tool: "Tool"
    call: ToolCallItem
    output: Any
    text: str
    status: Literal["success", "error"] = "success"


def to_text(value: Any) -> str:
    """Convert a tool's return value into text for the model."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def decode_arguments(tool_name: str, arguments: str) -> dict[str, Any]:
    """Decode JSON call arguments.

    Raises:
        ModelBehaviorError: If the arguments are not a JSON object.
    """
    try:
        decoded = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError as e:
        raise ModelBehaviorError(f"Invalid JSON input for tool {tool_name}: {arguments}") from e

    if not isinstance(decoded, dict):
        raise ModelBehaviorError(f"Input for tool {tool_name} must be a JSON object: {arguments}")
    return decoded


class Tool(abc.ABC):
    """Abstract base class for all tools.

    Subclasses provide the model-facing specification and `invoke`. Approval checking, failure formatting and text
    conversion are shared.
    """

    def __init__(
        self,
        *,
        needs_approval: NeedsApproval = False,
        failure_error_function: Optional[ToolErrorFunction] = default_tool_error_function,
    ) -> None:
        """Initialize the tool.

        Args:
            needs_approval: Static flag or predicate deciding whether a call must be approved before it runs.
            failure_error_function: Converts failures into model visible text. When None, failures raise
                `ToolCallError` and abort the run.
        """
        self._needs_approval = needs_approval
        self.failure_error_function = failure_error_function

    @property
    @abc.abstractmethod
    def tool_name(self) -> str:
        """The unique name of the tool used for identification and invocation."""
        pass

    @property
    @abc.abstractmethod
    def tool_spec(self) -> ToolSpec:
        """Tool specification advertised to the model."""
        pass

    @property
    @abc.abstractmethod
    def tool_type(self) -> str:
        """The type of the tool implementation (e.g., 'function', 'agent', 'provider', 'hosted')."""
        pass

    @property
    def name(self) -> str:
        """Alias of `tool_name`."""
        return self.tool_name

    @property
    def description(self) -> str:
        """Description advertised to the model."""
        return self.tool_spec["description"]

    @property
    def params_json_schema(self) -> dict[str, Any]:
        """JSON schema of the tool arguments."""
        return self.tool_spec["inputSchema"]

    @property
    def is_local(self) -> bool:
        """True if the run loop executes the tool; hosted tools run on the model platform."""
        return True

    async def needs_approval(self, context: "RunContext", arguments: dict[str, Any], call_id: str) -> bool:
        """Decide whether the given call must be approved before it runs."""
        if callable(self._needs_approval):
            result = self._needs_approval(context, arguments, call_id)
            if inspect.isawaitable(result):
                result = await result
            return bool(result)

        return bool(self._needs_approval)

    @abc.abstractmethod
    async def invoke(self, context: "RunContext", arguments: str, call_id: str) -> Any:
        """Execute the tool.

        Args:
            context: The run context.
            arguments: JSON encoded arguments from the model.
            call_id: Identifier of the call.

        Returns:
            The raw result, converted to text for the model by `run`.
        """
        pass

    async def run(self, context: "RunContext", call: ToolCallItem) -> FunctionToolResult:
        """Execute a call and convert the outcome for the model.

        Failures are passed to the failure error function. Without one, they are raised as `ToolCallError`, or as
        `ModelBehaviorError` when the model sent unusable arguments.
        """
        try:
            output = await self.invoke(context, call["arguments"], call["callId"])
        except Exception as e:
            if self.failure_error_function is None:
                if isinstance(e, ModelBehaviorError):
                    raise
                raise ToolCallError(self.tool_name, call["callId"], e) from e

            message = self.failure_error_function(context, e)
            if inspect.isawaitable(message):
                message = await message

            logger.warning("tool_name=<%s>, call_id=<%s>, error=<%s> | tool failed", self.tool_name, call["callId"], e)
            return FunctionToolResult(tool=self, call=call, output=message, text=message, status="error")

        return FunctionToolResult(tool=self, call=call, output=output, text=to_text(output))


class HostedTool(Tool):
    """A tool executed by the model platform.

    The tool is advertised to the model with its provider configuration; calls and outputs come back inside the model
    response and are recorded, never executed locally.
    """

    def __init__(self, name: str, config: Optional[dict[str, Any]] = None, description: str = "") -> None:
        """Initialize the hosted tool.

        Args:
            name: Name of the platform tool.
            config: Provider specific configuration.
            description: Optional description.
        """
        super().__init__()
        self._name = name
        self._config = dict(config or {})
        self._description = description

    @property
    def tool_name(self) -> str:
        """Name of the platform tool."""
        return self._name

    @property
    def tool_spec(self) -> ToolSpec:
        """Specification carrying the provider configuration."""
        return ToolSpec(name=self._name, description=self._description, inputSchema={}, hosted=dict(self._config))

    @property
    def tool_type(self) -> str:
        """Hosted tools are of type 'hosted'."""
        return "hosted"

    @property
    def is_local(self) -> bool:
        """Hosted tools never run locally."""
        return False

    async def invoke(self, context: "RunContext", arguments: str, call_id: str) -> Any:
        """Hosted tools cannot be called locally.

        Raises:
            ModelBehaviorError: Always.
        """
        raise ModelBehaviorError(f"Hosted tool {self._name} cannot be invoked locally")
