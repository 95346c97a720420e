"""
Tool executor backed by an MCP subprocess client.
"""

from __future__ import annotations

import logging
from typing import Any

from toolrelay.tools.base import BridgeInvokePayload, ToolExecutor
from toolrelay.tools.mcp_client import DEFAULT_CALL_TIMEOUT, McpToolClient

logger = logging.getLogger(__name__)


class McpExecutor(ToolExecutor):
    """
    Runs payloads on a connected McpToolClient.

    The client is owned by whoever connected it; this executor only invokes
    it. ``payload.server`` is informational since one client talks to
    exactly one server.
    """

    def __init__(self, client: McpToolClient, call_timeout: float = DEFAULT_CALL_TIMEOUT):
        self._client = client
        self._call_timeout = call_timeout

    @property
    def client(self) -> McpToolClient:
        return self._client

    def name(self) -> str:
        return "mcp"

    def can_execute(self, tool_name: str) -> bool:
        known = self._client.known_tools
        if not known:
            return True
        return tool_name in known

    async def execute(self, payload: BridgeInvokePayload) -> dict[str, Any]:
        logger.info(f"Calling {payload.server}/{payload.tool}")
        result = await self._client.execute(
            payload.tool,
            payload.arguments,
            timeout=self._call_timeout,
        )
        if result.get("is_error"):
            logger.warning(f"Tool '{payload.tool}' reported an error")
        return result
