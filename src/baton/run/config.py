"""Run configuration."""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..guardrails import InputGuardrail, OutputGuardrail
from ..handoffs import HandoffInputFilter
from ..hooks import HookProvider
from ..models.model import Model
from ..models.provider import ModelProvider
from ..models.settings import ModelSettings
from ..tools.executors import ConcurrentToolExecutor, ToolExecutor

DEFAULT_MAX_TURNS = 10


@dataclass
class RunConfig:
    """Settings applying to a whole run, across every agent.

    Attributes:
        model: Model used by every agent, overriding agent-level models.
        model_provider: Resolves model names. Defaults to the process-wide provider.
        model_settings: Settings overriding agent-level settings field by field.
        handoff_input_filter: Filter applied to handoffs that have no filter of their own.
        input_guardrails: Guardrails run on the input before the starting agent's guardrails.
        output_guardrails: Guardrails run on the final output before the final agent's guardrails.
        hooks: Observers notified before the active agent's observers.
        tool_executor: Strategy executing the approved tool calls of a turn.
        tracing_disabled: Disable tracing; None defers to the process-wide default.
        trace_include_sensitive_data: Attach inputs, outputs and tool arguments to spans.
        workflow_name: Name of the run span.
        trace_metadata: Extra attributes of the run span.
    """

    model: Union[str, Model, None] = None
    model_provider: Optional[ModelProvider] = None
    model_settings: Optional[ModelSettings] = None
    handoff_input_filter: Optional[HandoffInputFilter] = None
    input_guardrails: list[InputGuardrail] = field(default_factory=list)
    output_guardrails: list[OutputGuardrail] = field(default_factory=list)
    hooks: list[HookProvider] = field(default_factory=list)
    tool_executor: ToolExecutor = field(default_factory=ConcurrentToolExecutor)
    tracing_disabled: Optional[bool] = None
    trace_include_sensitive_data: bool = True
    workflow_name: str = "Agent workflow"
    trace_metadata: dict[str, Any] = field(default_factory=dict)
