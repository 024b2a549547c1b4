"""A framework for orchestrating LLM agents with tools, handoffs, guardrails and human approvals."""

from . import agent, guardrails, handoffs, hooks, models, output, telemetry, tools, types
from .agent import Agent, StopAtTools, ToolsToFinalOutputResult
from .config import get_defaults, set_default_model, set_default_model_provider, set_tracing_disabled
from .guardrails import GuardrailFunctionOutput, input_guardrail, output_guardrail
from .handoffs import Handoff, HandoffInputData, handoff
from .models import MappingModelProvider, Model, ModelProvider, ModelResponse, ModelSettings
from .run import RunContext
from .run.config import RunConfig
from .run.result import RunResult, RunResultStreaming
from .run.runner import Runner
from .run.state import RunState
from .tools.decorator import tool
from .types.cancellation import CancellationToken

__all__ = [
    "Agent",
    "CancellationToken",
    "GuardrailFunctionOutput",
    "Handoff",
    "HandoffInputData",
    "MappingModelProvider",
    "Model",
    "ModelProvider",
    "ModelResponse",
    "ModelSettings",
    "RunConfig",
    "RunContext",
    "RunResult",
    "RunResultStreaming",
    "RunState",
    "Runner",
    "StopAtTools",
    "ToolsToFinalOutputResult",
    "agent",
    "get_defaults",
    "guardrails",
    "handoff",
    "handoffs",
    "hooks",
    "input_guardrail",
    "models",
    "output",
    "output_guardrail",
    "set_default_model",
    "set_default_model_provider",
    "set_tracing_disabled",
    "telemetry",
    "tool",
    "tools",
    "types",
]
