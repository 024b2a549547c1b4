"""Model Context Protocol tool provider."""

import json
import logging
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from datetime import timedelta
from typing import Any, Callable, Optional

from mcp import ClientSession
from mcp.types import CallToolResult, TextContent
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from typing_extensions import override

from ...types.exceptions import ToolProviderException
from ...types.tools import ToolSpec
from ..tools import NeedsApproval
from .base import ToolProvider

logger = logging.getLogger(__name__)

MCPTransport = AbstractAsyncContextManager[Any]
"""Async context manager yielding the read and write streams of an MCP connection (and optionally more values)."""


class MCPToolProvider(ToolProvider):
    """Tool provider backed by an MCP server.

    The transport is created by a caller supplied factory, e.g. `lambda: stdio_client(StdioServerParameters(...))` or
    `lambda: streamablehttp_client(url)`.
    """

    def __init__(
        self,
        transport_callable: Callable[[], MCPTransport],
        *,
        prefix: Optional[str] = None,
        allowed_tools: Optional[list[str]] = None,
        rejected_tools: Optional[list[str]] = None,
        cache_tools_list: bool = False,
        needs_approval: NeedsApproval = False,
        read_timeout_seconds: Optional[float] = None,
        max_attempts: int = 1,
    ) -> None:
        """Initialize the provider.

        Args:
            transport_callable: Factory creating the transport context manager.
            prefix: Prepended to every remote tool name.
            allowed_tools: If given, only these remote tools are exposed.
            rejected_tools: Remote tools never exposed.
            cache_tools_list: Keep the discovered tool list until invalidated.
            needs_approval: Approval policy applied to every tool of the server.
            read_timeout_seconds: Timeout of each request to the server.
            max_attempts: Attempts per tool call when the transport fails, with exponential backoff.
        """
        super().__init__(
            prefix=prefix,
            allowed_tools=allowed_tools,
            rejected_tools=rejected_tools,
            cache_tools_list=cache_tools_list,
            needs_approval=needs_approval,
        )
        self._transport_callable = transport_callable
        self._read_timeout = timedelta(seconds=read_timeout_seconds) if read_timeout_seconds else None
        self._max_attempts = max(1, max_attempts)
        self._exit_stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    @property
    @override
    def is_connected(self) -> bool:
        """True while the MCP session is open."""
        return self._session is not None

    @override
    async def connect(self) -> None:
        """Start the transport and initialize the MCP session.

        Raises:
            ToolProviderException: If the server cannot be reached or initialized.
        """
        if self._session is not None:
            return

        exit_stack = AsyncExitStack()
        try:
            streams = await exit_stack.enter_async_context(self._transport_callable())
            read_stream, write_stream = streams[0], streams[1]
            session = await exit_stack.enter_async_context(
                ClientSession(read_stream, write_stream, read_timeout_seconds=self._read_timeout)
            )
            await session.initialize()
        except Exception as e:
            await exit_stack.aclose()
            logger.exception("failed to connect to MCP server")
            raise ToolProviderException("Failed to connect to MCP server", e) from e

        self._exit_stack = exit_stack
        self._session = session
        logger.debug("MCP session initialized")

    @override
    async def close(self) -> None:
        """Close the session and the transport."""
        exit_stack, self._exit_stack = self._exit_stack, None
        self._session = None
        self.invalidate_tools_cache()
        if exit_stack is not None:
            await exit_stack.aclose()
            logger.debug("MCP session closed")

    @override
    async def _list_tool_specs(self) -> list[ToolSpec]:
        assert self._session is not None

        specs: list[ToolSpec] = []
        cursor: Optional[str] = None
        while True:
            try:
                result = await self._session.list_tools(cursor=cursor)
            except Exception as e:
                raise ToolProviderException("Failed to list MCP tools", e) from e

            for mcp_tool in result.tools:
                specs.append(
                    ToolSpec(
                        name=mcp_tool.name,
                        description=mcp_tool.description or "",
                        inputSchema=dict(mcp_tool.inputSchema),
                    )
                )

            cursor = result.nextCursor
            if not cursor:
                return specs

    @override
    async def _call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        assert self._session is not None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(multiplier=1, max=30),
                reraise=True,
            ):
                with attempt:
                    result = await self._session.call_tool(name, arguments)
        except Exception as e:
            raise ToolProviderException(f"Failed to call MCP tool {name}", e) from e

        text = _result_text(result)
        if result.isError:
            raise ToolProviderException(text or f"MCP tool {name} returned an error")
        return text


def _result_text(result: CallToolResult) -> str:
    texts = [content.text for content in result.content if isinstance(content, TextContent)]
    if texts:
        return "\n".join(texts)

    structured = getattr(result, "structuredContent", None)
    if structured is not None:
        return json.dumps(structured)
    return ""
