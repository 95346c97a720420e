"""
MCP subprocess tool client.

Spawns an MCP tool server (e.g. the IPLocate server) as a child process and
talks to it via JSON-RPC over stdio. The child lives as long as the client;
there is no automatic reconnect.

Lifecycle:
    DISCONNECTED → CONNECTING → READY ⇄ CALLING
    A failed handshake leaves the client DISCONNECTED for good.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from enum import Enum
from pathlib import Path
from typing import Any

from mcp import ClientSession, types
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from toolrelay import __version__
from toolrelay.errors import ConnectError, ExecutionTimeoutError, ProtocolError

logger = logging.getLogger(__name__)

CLIENT_NAME = "toolrelay"

DEFAULT_COMMAND = "node"
DEFAULT_ARGS = ("dist/index.js",)
DEFAULT_HANDSHAKE_TIMEOUT = 15.0
DEFAULT_DISCOVERY_TIMEOUT = 5.0
DEFAULT_CALL_TIMEOUT = 30.0

# Catalog of the IPLocate MCP server. Returned by list_tools() whenever the
# server cannot be asked, so startup never depends on discovery succeeding.
FALLBACK_TOOL_NAMES: tuple[str, ...] = (
    "lookup_ip_address_details",
    "lookup_ip_address_location",
    "lookup_ip_address_privacy",
    "lookup_ip_address_network",
    "lookup_ip_address_company",
    "lookup_ip_address_abuse_contacts",
)


class ClientState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    CALLING = "calling"


class McpToolClient:
    """
    Client for a stdio MCP tool server.

    The subprocess and the MCP session are entered on one AsyncExitStack,
    so close() (or leaving ``async with``) terminates the child and closes
    its streams, and a failed handshake releases whatever was opened.

    The MCP session matches responses to requests by id, so concurrent
    list_tools()/execute() calls on one client are safe.

    Args:
        working_directory: Directory the server process is started in
        command: Executable that starts the server (default: node)
        args: Arguments for the command (default: dist/index.js)
        env: Extra environment variables for the child process
        handshake_timeout: Seconds to wait for the MCP initialize exchange
        settle_delay: Seconds to sleep after the handshake before reporting ready
    """

    def __init__(
        self,
        working_directory: str | Path,
        command: str = DEFAULT_COMMAND,
        args: list[str] | tuple[str, ...] = DEFAULT_ARGS,
        env: dict[str, str] | None = None,
        handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT,
        settle_delay: float = 0.0,
    ):
        self._working_directory = Path(working_directory)
        self._command = command
        self._args = list(args)
        self._env = env
        self._handshake_timeout = handshake_timeout
        self._settle_delay = settle_delay

        self._state = ClientState.DISCONNECTED
        self._handshake_failed = False
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None
        self._in_flight = 0
        self._known_tools: list[str] | None = None

    @classmethod
    async def connect(cls, working_directory: str | Path, **kwargs: Any) -> McpToolClient:
        """
        Spawn the server in ``working_directory`` and complete the handshake.

        Raises:
            ConnectError: If the process cannot be started or the handshake fails
        """
        client = cls(working_directory, **kwargs)
        await client.start()
        return client

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def known_tools(self) -> list[str] | None:
        """Tool names from the last list_tools() call, or None if never fetched."""
        return self._known_tools

    async def start(self) -> None:
        """Start the server subprocess and perform the MCP handshake."""
        if self._handshake_failed:
            raise ConnectError("Tool client handshake failed earlier; create a new client")
        if self._state is not ClientState.DISCONNECTED:
            return

        if not self._working_directory.is_dir():
            self._handshake_failed = True
            raise ConnectError(f"Tool server directory not found: {self._working_directory}")

        server_params = StdioServerParameters(
            command=self._command,
            args=self._args,
            env=self._env,
            cwd=str(self._working_directory),
        )

        self._state = ClientState.CONNECTING
        logger.info(
            f"Starting tool server: {self._command} {' '.join(self._args)} "
            f"(cwd={self._working_directory})"
        )

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(stdio_client(server_params))
            session = await stack.enter_async_context(
                ClientSession(
                    read_stream,
                    write_stream,
                    client_info=types.Implementation(name=CLIENT_NAME, version=__version__),
                )
            )
            init_result = await asyncio.wait_for(session.initialize(), timeout=self._handshake_timeout)
        except Exception as e:
            self._handshake_failed = True
            self._state = ClientState.DISCONNECTED
            await self._close_stack(stack)
            if isinstance(e, TimeoutError):
                raise ConnectError(
                    f"Tool server did not complete the handshake within {self._handshake_timeout}s"
                ) from e
            raise ConnectError(f"Could not connect to tool server: {e}") from e
        except BaseException:
            # Cancelled mid-handshake: release the process, leave the client retryable.
            self._state = ClientState.DISCONNECTED
            await self._close_stack(stack)
            raise

        self._stack = stack
        self._session = session

        server_info = getattr(init_result, "serverInfo", None)
        if server_info is not None:
            logger.info(
                f"Connected to {server_info.name} {server_info.version} "
                f"(protocol {init_result.protocolVersion})"
            )

        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)

        self._state = ClientState.READY

    async def close(self) -> None:
        """Terminate the server subprocess and close its streams."""
        if self._stack is None:
            return
        stack, self._stack = self._stack, None
        self._session = None
        self._state = ClientState.DISCONNECTED
        await self._close_stack(stack)
        logger.info("Tool server stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *_args):
        await self.close()
        return None

    async def list_tools(self, timeout: float = DEFAULT_DISCOVERY_TIMEOUT) -> list[str]:
        """
        Ask the server for its tool names.

        Discovery is best-effort: on any error or timeout the fixed
        FALLBACK_TOOL_NAMES catalog is returned instead.
        """
        session = self._require_session()

        try:
            result = await asyncio.wait_for(session.list_tools(), timeout=timeout)
            names = [tool.name for tool in result.tools]
        except TimeoutError:
            logger.warning(f"Tool discovery timed out after {timeout}s; using fallback catalog")
            names = list(FALLBACK_TOOL_NAMES)
        except Exception as e:
            logger.warning(f"Tool discovery failed ({e}); using fallback catalog")
            names = list(FALLBACK_TOOL_NAMES)

        self._known_tools = names
        logger.info(f"Available tools: {', '.join(names)}")
        return names

    async def execute(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> dict[str, Any]:
        """
        Call a tool and return its result envelope.

        Returns:
            {"content": [<content blocks>], "is_error": bool}

        Raises:
            ExecutionTimeoutError: If no response arrives within ``timeout``.
                The wait is cancelled; the server process keeps running.
            ProtocolError: If the server answers with an error or a malformed result
        """
        session = self._require_session()

        self._in_flight += 1
        self._state = ClientState.CALLING
        try:
            result = await asyncio.wait_for(
                session.call_tool(tool_name, arguments or {}),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise ExecutionTimeoutError(
                f"Tool '{tool_name}' did not respond within {timeout}s", timeout=timeout
            ) from e
        except McpError as e:
            raise ProtocolError(f"Tool server rejected '{tool_name}': {e}") from e
        except ValidationError as e:
            raise ProtocolError(f"Malformed response from tool '{tool_name}': {e}") from e
        finally:
            self._in_flight -= 1
            if self._in_flight == 0 and self._state is ClientState.CALLING:
                self._state = ClientState.READY

        return _result_envelope(tool_name, result)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("Tool client not connected")
        return self._session

    @staticmethod
    async def _close_stack(stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning(f"Error while stopping tool server: {e}")


def _result_envelope(tool_name: str, result: Any) -> dict[str, Any]:
    """Serialise a CallToolResult to plain JSON, keeping the server's is_error flag."""
    content = getattr(result, "content", None)
    if not isinstance(content, list):
        raise ProtocolError(f"Malformed response from tool '{tool_name}': missing content")

    blocks = []
    for block in content:
        if isinstance(block, dict):
            blocks.append(block)
        elif hasattr(block, "model_dump"):
            blocks.append(block.model_dump(mode="json", by_alias=True, exclude_none=True))
        else:
            raise ProtocolError(f"Malformed response from tool '{tool_name}': unexpected content block")

    envelope: dict[str, Any] = {
        "content": blocks,
        "is_error": bool(getattr(result, "isError", False)),
    }
    structured = getattr(result, "structuredContent", None)
    if isinstance(structured, dict):
        envelope["structured_content"] = structured
    return envelope
