"""
HTTP bridge tool executor.

Forwards each tool call to an external bridge service that knows how to
reach the real tool. Bridge contract:

    POST <url>  {"server": ..., "tool": ..., "arguments": {...}}
    200 OK      <any JSON value>  -> returned verbatim as the tool result
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from toolrelay.errors import TransportError
from toolrelay.tools.base import BridgeInvokePayload, ToolExecutor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpBridgeExecutor(ToolExecutor):
    """
    Tool executor that POSTs payloads to an HTTP bridge.

    One request per execute(), no retries, no caching. Each call is an
    independent request on a pooled httpx.AsyncClient, so a single executor
    can be shared by concurrent queries.

    Args:
        url: Bridge endpoint
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url:
            raise ValueError("Bridge URL not specified. Set TOOLS__BRIDGE_URL in your environment.")
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return self._url

    def name(self) -> str:
        return "http-bridge"

    async def initialize(self) -> None:
        # No await between the check and the assignment: concurrent first calls share one client.
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(self, payload: BridgeInvokePayload) -> Any:
        if self._client is None:
            await self.initialize()

        logger.debug(f"POST {self._url} {payload.server}/{payload.tool}")
        try:
            response = await self._client.post(self._url, json=payload.model_dump())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Bridge returned HTTP {e.response.status_code} for tool '{payload.tool}'"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Bridge request to {self._url} failed: {e}") from e

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"Bridge returned a non-JSON body for tool '{payload.tool}'") from e
