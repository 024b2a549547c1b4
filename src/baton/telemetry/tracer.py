"""OpenTelemetry integration.

This module provides tracing capabilities over the OpenTelemetry API. Spans are created for the agent run, every turn,
every model invocation, tool call, handoff and guardrail. Without an OpenTelemetry SDK configured by the application
the API is a no-op; exporting spans is left to the application.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from opentelemetry import trace as trace_api
from opentelemetry.trace import Span, StatusCode

from ..types.items import ConversationItem, ToolCallItem

if TYPE_CHECKING:
    from ..agent import Agent
    from ..models.model import ModelResponse
    from ..tools.tools import FunctionToolResult

logger = logging.getLogger(__name__)

AttributeValue = str | bool | float | int


def serialize(obj: Any) -> str:
    """Serialize an object to JSON for span attributes, falling back to `str` for unknown types."""
    return json.dumps(obj, default=str)


class Tracer:
    """Handles OpenTelemetry tracing for runs.

    Sensitive payloads (inputs, outputs, tool arguments) are only attached to spans when `include_sensitive_data` is
    True.
    """

    def __init__(
        self,
        disabled: bool = False,
        include_sensitive_data: bool = True,
        workflow_name: str = "Agent workflow",
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Initialize the tracer.

        Args:
            disabled: Create no-op spans only.
            include_sensitive_data: Attach payloads to spans.
            workflow_name: Name of the run span.
            metadata: Extra attributes attached to the run span.
        """
        self.disabled = disabled
        self.include_sensitive_data = include_sensitive_data
        self.workflow_name = workflow_name
        self.metadata = dict(metadata or {})
        self.tracer: trace_api.Tracer = trace_api.NoOpTracer() if disabled else trace_api.get_tracer("baton")

    def _start_span(
        self,
        span_name: str,
        parent_span: Optional[Span] = None,
        attributes: Optional[dict[str, AttributeValue]] = None,
    ) -> Span:
        context = trace_api.set_span_in_context(parent_span) if parent_span is not None else None
        span = self.tracer.start_span(name=span_name, context=context)
        if attributes:
            self._set_attributes(span, attributes)
        return span

    def _set_attributes(self, span: Span, attributes: dict[str, AttributeValue]) -> None:
        for key, value in attributes.items():
            span.set_attribute(key, value)

    def _end_span(self, span: Optional[Span], attributes: Optional[dict[str, AttributeValue]] = None) -> None:
        if not span or not span.is_recording():
            return

        try:
            if attributes:
                self._set_attributes(span, attributes)
            span.set_status(StatusCode.OK)
        except Exception as e:
            logger.warning("error=<%s> | error while ending span", e, exc_info=True)
        finally:
            span.end()

    def end_span_with_error(self, span: Optional[Span], error_message: str, exception: Optional[Exception] = None) -> None:
        """End a span with error status.

        Args:
            span: The span to end.
            error_message: Error message to set in the span status.
            exception: Optional exception to record in the span.
        """
        if not span or not span.is_recording():
            return

        try:
            span.set_status(StatusCode.ERROR, error_message)
            if exception:
                span.record_exception(exception)
        except Exception as e:
            logger.warning("error=<%s> | error while ending span with error", e, exc_info=True)
        finally:
            span.end()

    def _payload(self, attributes: dict[str, AttributeValue], key: str, value: Any) -> None:
        if self.include_sensitive_data:
            attributes[key] = value if isinstance(value, str) else serialize(value)

    def start_agent_run_span(self, agent: "Agent", input: str | list[ConversationItem]) -> Span:
        """Start the span covering a whole run."""
        attributes: dict[str, AttributeValue] = {
            "gen_ai.operation.name": "invoke_agent",
            "gen_ai.agent.name": agent.name,
            "baton.workflow.name": self.workflow_name,
        }
        for key, value in self.metadata.items():
            attributes[f"baton.metadata.{key}"] = value if isinstance(value, (str, bool, int, float)) else str(value)
        self._payload(attributes, "baton.run.input", input)
        return self._start_span(self.workflow_name, attributes=attributes)

    def end_agent_run_span(self, span: Optional[Span], final_output: Any = None, interrupted: bool = False) -> None:
        """End the run span."""
        attributes: dict[str, AttributeValue] = {"baton.run.interrupted": interrupted}
        if final_output is not None:
            self._payload(attributes, "baton.run.output", final_output)
        self._end_span(span, attributes)

    def start_turn_span(self, agent: "Agent", turn: int, parent_span: Optional[Span] = None) -> Span:
        """Start the span covering one turn of the run loop."""
        return self._start_span(
            "execute_turn",
            parent_span,
            {"gen_ai.agent.name": agent.name, "baton.turn": turn},
        )

    def end_turn_span(self, span: Optional[Span]) -> None:
        """End a turn span."""
        self._end_span(span)

    def start_model_invoke_span(
        self, agent: "Agent", input: list[ConversationItem], parent_span: Optional[Span] = None
    ) -> Span:
        """Start the span covering one model call."""
        attributes: dict[str, AttributeValue] = {"gen_ai.operation.name": "chat", "gen_ai.agent.name": agent.name}
        self._payload(attributes, "gen_ai.prompt", input)
        return self._start_span("chat", parent_span, attributes)

    def end_model_invoke_span(self, span: Optional[Span], response: "ModelResponse") -> None:
        """End a model span with usage attributes."""
        attributes: dict[str, AttributeValue] = {
            "gen_ai.usage.input_tokens": response.usage.input_tokens,
            "gen_ai.usage.output_tokens": response.usage.output_tokens,
            "gen_ai.usage.total_tokens": response.usage.total_tokens,
        }
        if response.response_id:
            attributes["gen_ai.response.id"] = response.response_id
        self._payload(attributes, "gen_ai.completion", response.output)
        self._end_span(span, attributes)

    def start_tool_call_span(self, call: ToolCallItem, parent_span: Optional[Span] = None) -> Span:
        """Start the span covering one tool call."""
        attributes: dict[str, AttributeValue] = {
            "gen_ai.operation.name": "execute_tool",
            "gen_ai.tool.name": call["name"],
            "gen_ai.tool.call.id": call["callId"],
        }
        self._payload(attributes, "gen_ai.tool.arguments", call["arguments"])
        return self._start_span(f"execute_tool {call['name']}", parent_span, attributes)

    def end_tool_call_span(self, span: Optional[Span], result: "FunctionToolResult") -> None:
        """End a tool span with the result status."""
        attributes: dict[str, AttributeValue] = {"gen_ai.tool.status": result.status}
        self._payload(attributes, "gen_ai.tool.result", result.text)
        self._end_span(span, attributes)

    def start_handoff_span(self, source: "Agent", target: "Agent", parent_span: Optional[Span] = None) -> Span:
        """Start the span covering a handoff."""
        return self._start_span(
            "handoff",
            parent_span,
            {"baton.handoff.from": source.name, "baton.handoff.to": target.name},
        )

    def end_handoff_span(self, span: Optional[Span]) -> None:
        """End a handoff span."""
        self._end_span(span)

    def start_guardrail_span(self, kind: str, agent: "Agent", parent_span: Optional[Span] = None) -> Span:
        """Start the span covering an input or output guardrail pipeline."""
        return self._start_span(f"{kind}_guardrails", parent_span, {"gen_ai.agent.name": agent.name})

    def end_guardrail_span(self, span: Optional[Span], triggered: bool) -> None:
        """End a guardrail span."""
        self._end_span(span, {"baton.guardrail.triggered": triggered})


def get_tracer(
    disabled: bool = False,
    include_sensitive_data: bool = True,
    workflow_name: str = "Agent workflow",
    metadata: Optional[Mapping[str, Any]] = None,
) -> Tracer:
    """Create a tracer for a run.

    Args:
        disabled: Create no-op spans only.
        include_sensitive_data: Attach payloads to spans.
        workflow_name: Name of the run span.
        metadata: Extra attributes attached to the run span.

    Returns:
        The tracer.
    """
    return Tracer(
        disabled=disabled,
        include_sensitive_data=include_sensitive_data,
        workflow_name=workflow_name,
        metadata=metadata,
    )
