"""Model tuning parameters and their precedence rules."""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal, Optional, Union

ToolChoice = Union[Literal["auto", "required", "none"], str, None]
"""How the model should pick tools: automatically, always, never, or a specific tool by name."""


@dataclass(frozen=True)
class ModelSettings:
    """Tuning parameters passed to the model.

    Fields left as None defer to the next layer: run-level settings override agent-level settings, which override the
    provider's own defaults.

    Attributes:
        temperature: Sampling temperature.
        top_p: Nucleus sampling parameter.
        max_tokens: Maximum number of output tokens.
        tool_choice: Tool forcing policy.
        parallel_tool_calls: Whether the model may request several tool calls in one response.
        extra_args: Provider-specific arguments, merged key-wise across layers.
    """

    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    tool_choice: ToolChoice = None
    parallel_tool_calls: Optional[bool] = None
    extra_args: dict[str, Any] = field(default_factory=dict)

    def resolve(self, override: Optional["ModelSettings"]) -> "ModelSettings":
        """Produce new settings where every non-None field of `override` wins.

        Args:
            override: Higher precedence settings, typically from the run configuration.

        Returns:
            The merged settings; neither input is modified.
        """
        if override is None:
            return self

        changes: dict[str, Any] = {
            f.name: getattr(override, f.name)
            for f in fields(self)
            if f.name != "extra_args" and getattr(override, f.name) is not None
        }
        changes["extra_args"] = {**self.extra_args, **override.extra_args}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Settings as a dict without unset fields."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
        if not self.extra_args:
            data.pop("extra_args", None)
        return data
