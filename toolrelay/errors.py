"""
Exception hierarchy for toolrelay.

Backends raise ToolExecutionError subclasses; the orchestration loop wraps
them in OrchestrationError so the caller can see which tool failed.

    ToolRelayError
    ├── ConnectError             subprocess spawn / handshake failure
    ├── ToolExecutionError
    │   ├── ExecutionTimeoutError  deadline exceeded while waiting on a tool
    │   ├── TransportError         HTTP bridge network / status / decode failure
    │   └── ProtocolError          malformed or error response from the tool server
    └── OrchestrationError       a tool call failed inside run_once()
"""

from __future__ import annotations


class ToolRelayError(Exception):
    """Base class for all toolrelay errors."""


class ConnectError(ToolRelayError, ConnectionError):
    """The tool server process could not be spawned or did not complete its handshake."""


class ToolExecutionError(ToolRelayError):
    """A backend failed to execute a tool call."""


class ExecutionTimeoutError(ToolExecutionError, TimeoutError):
    """A tool call (or discovery request) exceeded its deadline."""

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout


class TransportError(ToolExecutionError):
    """The HTTP bridge could not be reached, returned non-2xx, or sent a non-JSON body."""


class ProtocolError(ToolExecutionError):
    """The tool server answered with an error or a response we cannot interpret."""


class OrchestrationError(ToolRelayError):
    """
    A tool call failed while orchestrating a query.

    Attributes:
        tool_name: Name of the tool that was being executed
        cause: The underlying exception
    """

    def __init__(self, tool_name: str, cause: BaseException | None = None, message: str | None = None):
        self.tool_name = tool_name
        self.cause = cause
        if message is None:
            message = f"Tool '{tool_name}' failed: {cause}"
        super().__init__(message)
