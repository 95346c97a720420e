"""
Unit tests for HttpBridgeExecutor.

The bridge is replaced with httpx.MockTransport; no sockets are opened.
"""

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest

from toolrelay.errors import TransportError
from toolrelay.tools.base import BridgeInvokePayload
from toolrelay.tools.http_bridge import HttpBridgeExecutor

BRIDGE_URL = "http://bridge.test/invoke"

PAYLOAD = BridgeInvokePayload(
    server="iplocate",
    tool="lookup_ip_address_details",
    arguments={"ip": "8.8.8.8"},
)


def _executor(handler) -> HttpBridgeExecutor:
    return HttpBridgeExecutor(BRIDGE_URL, transport=httpx.MockTransport(handler))


class TestHttpBridgeExecutor:

    def test_requires_url(self):
        with pytest.raises(ValueError, match="Bridge URL"):
            HttpBridgeExecutor("")

    def test_name(self):
        assert HttpBridgeExecutor(BRIDGE_URL).name() == "http-bridge"

    @pytest.mark.asyncio
    async def test_posts_payload_as_json(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"result": {"country": "US"}})

        async with _executor(handler) as executor:
            await executor.execute(PAYLOAD)

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == BRIDGE_URL
        assert json.loads(seen[0].content) == {
            "server": "iplocate",
            "tool": "lookup_ip_address_details",
            "arguments": {"ip": "8.8.8.8"},
        }

    @pytest.mark.asyncio
    async def test_returns_body_verbatim(self):
        body = {"result": {"ip": "8.8.8.8", "asn": {"asn": "AS15169"}}, "extra": [1, 2]}

        async with _executor(lambda request: httpx.Response(200, json=body)) as executor:
            assert await executor.execute(PAYLOAD) == body

    @pytest.mark.asyncio
    async def test_non_object_json_is_returned(self):
        async with _executor(lambda request: httpx.Response(200, json=["a", "b"])) as executor:
            assert await executor.execute(PAYLOAD) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_non_json_body_raises_transport_error(self):
        async with _executor(lambda request: httpx.Response(200, text="<html>502</html>")) as executor:
            with pytest.raises(TransportError, match="non-JSON") as exc_info:
                await executor.execute(PAYLOAD)

        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    @pytest.mark.asyncio
    async def test_non_2xx_raises_transport_error(self):
        async with _executor(lambda request: httpx.Response(503, json={"error": "down"})) as executor:
            with pytest.raises(TransportError, match="503") as exc_info:
                await executor.execute(PAYLOAD)

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _executor(handler) as executor:
            with pytest.raises(TransportError) as exc_info:
                await executor.execute(PAYLOAD)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_one_request_per_execute_no_retry(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        async with _executor(handler) as executor:
            with pytest.raises(TransportError):
                await executor.execute(PAYLOAD)

        assert calls == 1

    @pytest.mark.asyncio
    async def test_execute_without_initialize_creates_client(self):
        executor = _executor(lambda request: httpx.Response(200, json={"ok": True}))
        try:
            assert await executor.execute(PAYLOAD) == {"ok": True}
        finally:
            await executor.shutdown()

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_client(self):
        executor = _executor(lambda request: httpx.Response(200, json={"ok": True}))

        with patch("toolrelay.tools.http_bridge.httpx.AsyncClient", wraps=httpx.AsyncClient) as client_cls:
            try:
                results = await asyncio.gather(*(executor.execute(PAYLOAD) for _ in range(5)))
            finally:
                await executor.shutdown()

        assert results == [{"ok": True}] * 5
        assert client_cls.call_count == 1
