"""
The tool-invocation descriptor advertised to the model.

Instead of exposing every backend tool as its own function, the model sees a
single ``mcp_invoke`` function and names the server and tool in its
arguments. The descriptor is built once at import time and shared by every
request; treat it as read-only.
"""

from __future__ import annotations

from typing import Any

INVOKE_FUNCTION_NAME = "mcp_invoke"


def build_invoke_descriptor() -> dict[str, Any]:
    """Build the OpenAI-format function tool for ``mcp_invoke``."""
    parameters = {
        "type": "object",
        "required": ["server", "tool", "arguments"],
        "properties": {
            "server": {
                "type": "string",
                "description": "MCP server alias, e.g. 'iplocate'",
            },
            "tool": {
                "type": "string",
                "description": "MCP tool name, e.g. 'lookup_ip_address_details'",
            },
            "arguments": {
                "type": "object",
                "description": "Tool arguments JSON",
            },
        },
    }
    missing = [f for f in parameters["required"] if f not in parameters["properties"]]
    if missing:
        raise RuntimeError(f"Invoke descriptor requires undeclared fields: {missing}")

    return {
        "type": "function",
        "function": {
            "name": INVOKE_FUNCTION_NAME,
            "description": (
                "Invoke a tool on a specified MCP server. The client/bridge will "
                "execute it and return the result."
            ),
            "parameters": parameters,
        },
    }


MCP_INVOKE_TOOL: dict[str, Any] = build_invoke_descriptor()

_INVOKE_TOOLS: list[dict[str, Any]] = [MCP_INVOKE_TOOL]


def invoke_tools() -> list[dict[str, Any]]:
    """The tool list sent with every chat request (same object every time)."""
    return _INVOKE_TOOLS
