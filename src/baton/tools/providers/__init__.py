"""Remote tool sources."""

from .base import ProviderTool, ToolProvider
from .mcp import MCPToolProvider

__all__ = ["MCPToolProvider", "ProviderTool", "ToolProvider"]
