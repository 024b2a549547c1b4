"""Per-turn registry of the tools and handoffs available to the active agent.

The run loop builds a registry at every turn from the agent's static tools, the tools its providers list and its
handoffs, then resolves each call of the model response against it.
"""

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..types.exceptions import ModelBehaviorError, UserError
from ..types.tools import ToolSpec
from .tools import Tool

if TYPE_CHECKING:
    from ..handoffs import Handoff

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name to tool and handoff lookup for one agent."""

    def __init__(self, tools: list[Tool], handoffs: Optional[list["Handoff"]] = None) -> None:
        """Initialize the registry.

        Args:
            tools: Tools available in the turn.
            handoffs: Handoffs available in the turn.

        Raises:
            UserError: If two tools or handoffs share a name.
        """
        self.registry: dict[str, Tool] = {}
        self.handoffs: dict[str, "Handoff"] = {}

        for tool in tools:
            self._check_unique(tool.tool_name)
            self.registry[tool.tool_name] = tool

        for handoff in handoffs or []:
            self._check_unique(handoff.tool_name)
            self.handoffs[handoff.tool_name] = handoff

        logger.debug("tool_names=<%s>, handoff_names=<%s> | registry built", list(self.registry), list(self.handoffs))

    def _check_unique(self, name: str) -> None:
        if name in self.registry or name in self.handoffs:
            raise UserError(f"Tool name '{name}' is used more than once")

    def get_tool(self, name: str) -> Optional[Tool]:
        """Tool registered under the given name, if any."""
        return self.registry.get(name)

    def get_handoff(self, name: str) -> Optional["Handoff"]:
        """Handoff registered under the given name, if any."""
        return self.handoffs.get(name)

    def resolve(self, name: str) -> Union[Tool, "Handoff"]:
        """Resolve a call name.

        Raises:
            ModelBehaviorError: If no tool or handoff has the given name.
        """
        tool = self.registry.get(name)
        if tool is not None:
            return tool

        handoff = self.handoffs.get(name)
        if handoff is not None:
            return handoff

        raise ModelBehaviorError(f"Tool {name} not found")

    def get_all_tool_specs(self) -> list[ToolSpec]:
        """Specifications of the registered tools, in registration order."""
        return [tool.tool_spec for tool in self.registry.values()]

    def get_handoff_specs(self) -> list[ToolSpec]:
        """Specifications of the registered handoffs, in registration order."""
        return [handoff.tool_spec for handoff in self.handoffs.values()]
