"""
Tool Integration Layer.

Executors that run the model's tool calls: an MCP server subprocess (e.g.
IPLocate), an HTTP bridge, or a no-op stand-in when nothing is configured.
"""

from toolrelay.tools.base import BridgeInvokePayload, ToolExecutor
from toolrelay.tools.components import ToolComponents
from toolrelay.tools.http_bridge import HttpBridgeExecutor
from toolrelay.tools.mcp_client import FALLBACK_TOOL_NAMES, ClientState, McpToolClient
from toolrelay.tools.mcp_executor import McpExecutor
from toolrelay.tools.noop import NoopExecutor

__all__ = [
    "BridgeInvokePayload",
    "ClientState",
    "FALLBACK_TOOL_NAMES",
    "HttpBridgeExecutor",
    "McpExecutor",
    "McpToolClient",
    "NoopExecutor",
    "ToolComponents",
    "ToolExecutor",
]
