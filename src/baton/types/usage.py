"""Token usage type definitions."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class Usage:
    """Token usage aggregated over one or more model calls.

    Attributes:
        requests: Number of model requests.
        input_tokens: Number of tokens sent to the model.
        output_tokens: Number of tokens the model generated.
        total_tokens: Total number of tokens (input + output).
    """

    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "Usage") -> None:
        """Accumulate another usage record into this one."""
        self.requests += other.requests
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.total_tokens += other.total_tokens

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Usage":
        """Initialize usage from dict."""
        return cls(**data)
