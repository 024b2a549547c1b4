"""Tool-related type definitions for the SDK."""

from typing import Any

from typing_extensions import NotRequired, TypedDict


class ToolSpec(TypedDict):
    """Specification of a tool as advertised to the model.

    Attributes:
        name: The unique name of the tool.
        description: A human-readable description of what the tool does.
        inputSchema: JSON Schema defining the expected input parameters.
        hosted: Provider configuration for tools executed by the model platform.
    """

    name: str
    description: str
    inputSchema: dict[str, Any]
    hosted: NotRequired[dict[str, Any]]
