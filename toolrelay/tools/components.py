"""
Tool component factory.

Builds the configured executor from settings so the CLI and tests share one
piece of wiring.
"""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

from toolrelay.config.settings import ToolSettings
from toolrelay.tools.base import ToolExecutor
from toolrelay.tools.http_bridge import HttpBridgeExecutor
from toolrelay.tools.mcp_client import FALLBACK_TOOL_NAMES, McpToolClient
from toolrelay.tools.mcp_executor import McpExecutor
from toolrelay.tools.noop import NoopExecutor


class ToolComponents:
    """
    Factory for tool executors.

    Example::

        factory = ToolComponents(settings.tools)
        async with factory.open_executor() as (executor, tool_names):
            answer = await run_once(client, model, query, executor, tool_names=tool_names)
    """

    def __init__(self, settings: ToolSettings):
        self.settings = settings

    def create_mcp_client(self) -> McpToolClient:
        """Create an (unstarted) McpToolClient from settings."""
        return McpToolClient(
            working_directory=self.settings.server_dir,
            command=self.settings.server_command,
            args=self.settings.server_args,
            env=self.settings.server_env or None,
            handshake_timeout=self.settings.handshake_timeout,
            settle_delay=self.settings.settle_delay,
        )

    def create_executor(self, client: McpToolClient | None = None) -> ToolExecutor:
        """
        Create the executor for the configured backend.

        Args:
            client: Connected client, required when backend is 'mcp'
        """
        backend = self.settings.backend
        if backend == "noop":
            return NoopExecutor()
        if backend == "http":
            return HttpBridgeExecutor(self.settings.bridge_url, timeout=self.settings.bridge_timeout)
        if backend == "mcp":
            if client is None:
                raise ValueError("The 'mcp' backend needs a connected McpToolClient")
            return McpExecutor(client, call_timeout=self.settings.call_timeout)
        raise ValueError(f"Unknown tool backend: {backend!r}")

    @asynccontextmanager
    async def open_executor(self) -> AsyncIterator[tuple[ToolExecutor, list[str]]]:
        """
        Open the configured backend for the duration of the block.

        For 'mcp' this spawns the server, performs the handshake and runs
        discovery; the process is stopped on exit. Other backends report
        the fallback catalog.

        Yields:
            (executor, tool_names)

        Raises:
            ConnectError: If the MCP server cannot be started
        """
        async with AsyncExitStack() as stack:
            if self.settings.backend == "mcp":
                client = await stack.enter_async_context(self.create_mcp_client())
                tool_names = await client.list_tools(timeout=self.settings.discovery_timeout)
                executor = self.create_executor(client)
            else:
                executor = self.create_executor()
                tool_names = list(FALLBACK_TOOL_NAMES)

            await stack.enter_async_context(executor)
            yield executor, tool_names
