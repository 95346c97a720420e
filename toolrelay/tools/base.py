"""
Base classes for tool executors.

Provides the abstract interface the orchestration loop uses to run a tool
call, whether the tool lives behind an MCP server subprocess, an HTTP
bridge, or nowhere at all (no-op).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_SERVER = "iplocate"


class BridgeInvokePayload(BaseModel):
    """
    Normalized form of a model tool call, ready for dispatch.

    Example:
        {"server": "iplocate", "tool": "lookup_ip_address_details", "arguments": {"ip": "8.8.8.8"}}
    """

    server: str = Field(default=DEFAULT_SERVER, description="Alias of the target tool backend")
    tool: str = Field(default="", description="Tool name on that backend")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    @classmethod
    def from_arguments(cls, raw: str, strict: bool = False) -> BridgeInvokePayload:
        """
        Parse the raw argument text of a tool call.

        Missing or wrong-typed fields fall back to their defaults. Text that is
        not valid JSON (or not a JSON object) is treated as ``{}`` unless
        ``strict`` is set.

        Raises:
            ValueError: If strict and the text is not a JSON object
        """
        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            if strict:
                raise
            data = {}

        if not isinstance(data, dict):
            if strict:
                raise ValueError(f"Tool arguments must be a JSON object, got {type(data).__name__}")
            data = {}

        server = data.get("server")
        tool = data.get("tool")
        arguments = data.get("arguments")
        return cls(
            server=server if isinstance(server, str) else DEFAULT_SERVER,
            tool=tool if isinstance(tool, str) else "",
            arguments=arguments if isinstance(arguments, dict) else {},
        )


class ToolExecutor(ABC):
    """
    Abstract base class for tool executors.

    Executors give the orchestration loop one way to run a tool regardless of
    where it lives. Callers check can_execute() before dispatching.
    """

    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs, e.g. "noop" or "http-bridge"."""

    def is_enabled(self) -> bool:
        return True

    def can_execute(self, tool_name: str) -> bool:
        """Whether this executor is able to run the named tool."""
        return True

    @abstractmethod
    async def execute(self, payload: BridgeInvokePayload) -> Any:
        """
        Execute a tool call.

        Args:
            payload: Target server, tool name and arguments

        Returns:
            The backend's JSON result (dict, list or scalar)

        Raises:
            ToolExecutionError: If the backend fails (transport, timeout, protocol)
        """

    async def initialize(self) -> None:
        """Acquire any resources the executor needs. No-op by default."""

    async def shutdown(self) -> None:
        """Release resources acquired in initialize(). No-op by default."""

    async def __aenter__(self):
        """Context manager entry - initialize the executor."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - shutdown the executor."""
        await self.shutdown()
        return False
