"""Remote tool sources.

A tool provider is a connection to a remote tool server. Its tools are discovered at run time and wrapped as
`ProviderTool`s so the run loop treats them like any other tool.
"""

import abc
import logging
from typing import TYPE_CHECKING, Any, Optional

from ...run.context import RunContext
from ...types.exceptions import UserError
from ...types.tools import ToolSpec
from ..tools import NeedsApproval, Tool, decode_arguments

if TYPE_CHECKING:
    from ...agent import Agent

logger = logging.getLogger(__name__)


class ToolProvider(abc.ABC):
    """Abstract base class for remote tool sources.

    Providers are explicitly connected and closed, either through `connect` and `close` or as an async context
    manager:

        ```python
        async with MCPToolProvider(lambda: stdio_client(params)) as provider:
            agent = Agent(name="assistant", tool_providers=[provider])
            await Runner.run(agent, "hello")
        ```
    """

    def __init__(
        self,
        *,
        prefix: Optional[str] = None,
        allowed_tools: Optional[list[str]] = None,
        rejected_tools: Optional[list[str]] = None,
        cache_tools_list: bool = False,
        needs_approval: NeedsApproval = False,
    ) -> None:
        """Initialize the provider.

        Args:
            prefix: Prepended to every remote tool name, avoiding collisions between providers.
            allowed_tools: If given, only these remote tools are exposed.
            rejected_tools: Remote tools never exposed.
            cache_tools_list: Keep the discovered tool list until `invalidate_tools_cache` is called.
            needs_approval: Approval policy applied to every tool of the provider.
        """
        self.prefix = prefix
        self.allowed_tools = allowed_tools
        self.rejected_tools = rejected_tools or []
        self.cache_tools_list = cache_tools_list
        self.needs_approval = needs_approval
        self._tools_cache: Optional[list[ToolSpec]] = None

    @property
    @abc.abstractmethod
    def is_connected(self) -> bool:
        """True between `connect` and `close`."""
        pass

    @abc.abstractmethod
    async def connect(self) -> None:
        """Open the connection to the tool server."""
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Close the connection to the tool server."""
        pass

    @abc.abstractmethod
    async def _list_tool_specs(self) -> list[ToolSpec]:
        """Discover the remote tools."""
        pass

    @abc.abstractmethod
    async def _call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a remote tool by its remote name."""
        pass

    async def __aenter__(self) -> "ToolProvider":
        """Connect on context entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Close on context exit."""
        await self.close()

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise UserError(f"Tool provider {type(self).__name__} is not connected, call connect() first")

    def invalidate_tools_cache(self) -> None:
        """Forget the cached tool list; the next `list_tools` call discovers again."""
        self._tools_cache = None

    async def list_tools(
        self, context: Optional[RunContext] = None, agent: Optional["Agent"] = None
    ) -> list["ProviderTool"]:
        """Discover the tools exposed by the provider.

        Args:
            context: The run context, if called from a run.
            agent: The agent the tools are listed for, if called from a run.

        Raises:
            UserError: If the provider is not connected.
        """
        self._ensure_connected()

        if self.cache_tools_list and self._tools_cache is not None:
            specs = self._tools_cache
        else:
            specs = await self._list_tool_specs()
            if self.cache_tools_list:
                self._tools_cache = specs
            logger.debug("provider=<%s>, tool_count=<%d> | discovered tools", type(self).__name__, len(specs))

        return [ProviderTool(self, spec) for spec in specs if self._is_exposed(spec["name"])]

    def _is_exposed(self, name: str) -> bool:
        if self.allowed_tools is not None and name not in self.allowed_tools:
            return False
        return name not in self.rejected_tools

    def exposed_name(self, name: str) -> str:
        """Name under which a remote tool is advertised to the model."""
        return f"{self.prefix}{name}" if self.prefix else name

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a remote tool.

        Args:
            name: Remote name of the tool, without prefix.
            arguments: Decoded arguments.

        Returns:
            The text output of the tool.

        Raises:
            UserError: If the provider is not connected.
            ToolProviderException: If the remote call fails.
        """
        self._ensure_connected()
        return await self._call_tool(name, arguments)


class ProviderTool(Tool):
    """Adapter over a remote tool exposed by a `ToolProvider`."""

    def __init__(self, provider: ToolProvider, spec: ToolSpec) -> None:
        """Initialize the adapter.

        Args:
            provider: The provider owning the tool.
            spec: Specification reported by the remote server.
        """
        super().__init__(needs_approval=provider.needs_approval)
        self.provider = provider
        self.remote_name = spec["name"]
        self._spec = spec

    @property
    def tool_name(self) -> str:
        """Name advertised to the model, prefixed if the provider has a prefix."""
        return self.provider.exposed_name(self.remote_name)

    @property
    def tool_spec(self) -> ToolSpec:
        """Remote specification under the advertised name."""
        return ToolSpec(
            name=self.tool_name,
            description=self._spec.get("description", ""),
            inputSchema=self._spec.get("inputSchema") or {"type": "object", "properties": {}},
        )

    @property
    def tool_type(self) -> str:
        """Provider tools are of type 'provider'."""
        return "provider"

    async def invoke(self, context: RunContext, arguments: str, call_id: str) -> Any:
        """Forward the call to the provider."""
        logger.debug("tool_name=<%s>, call_id=<%s> | calling provider tool", self.tool_name, call_id)
        return await self.provider.call_tool(self.remote_name, decode_arguments(self.tool_name, arguments))
