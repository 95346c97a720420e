"""
toolrelay - let a chat model answer questions with the help of MCP tools.

The model is offered a single ``mcp_invoke`` function; requested calls are
executed by a pluggable backend (MCP subprocess, HTTP bridge or no-op) and
the results are fed back for a final answer.
"""

__version__ = "0.1.0"
