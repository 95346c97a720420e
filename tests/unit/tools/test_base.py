"""
Unit tests for BridgeInvokePayload parsing and ToolExecutor defaults.
"""

import json

import pytest

from toolrelay.tools.base import BridgeInvokePayload, ToolExecutor


class TestPayloadParsing:

    def test_full_arguments(self):
        raw = json.dumps({
            "server": "iplocate",
            "tool": "lookup_ip_address_details",
            "arguments": {"ip": "8.8.8.8"},
        })

        payload = BridgeInvokePayload.from_arguments(raw)

        assert payload.server == "iplocate"
        assert payload.tool == "lookup_ip_address_details"
        assert payload.arguments == {"ip": "8.8.8.8"}

    @pytest.mark.parametrize("raw", ["", "{not json", "[1, 2]", '"a string"', "null"])
    def test_unusable_text_degrades_to_defaults(self, raw):
        assert BridgeInvokePayload.from_arguments(raw) == BridgeInvokePayload(
            server="iplocate", tool="", arguments={}
        )

    def test_wrong_field_types_use_defaults(self):
        raw = json.dumps({"server": 7, "tool": ["x"], "arguments": "ip=8.8.8.8"})

        payload = BridgeInvokePayload.from_arguments(raw)

        assert payload == BridgeInvokePayload(server="iplocate", tool="", arguments={})

    def test_extra_fields_are_ignored(self):
        raw = json.dumps({"tool": "lookup_ip_address_network", "reason": "user asked"})

        payload = BridgeInvokePayload.from_arguments(raw)

        assert payload.tool == "lookup_ip_address_network"
        assert payload.server == "iplocate"

    def test_strict_raises_on_invalid_json(self):
        with pytest.raises(ValueError):
            BridgeInvokePayload.from_arguments("{not json", strict=True)

    def test_strict_raises_on_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            BridgeInvokePayload.from_arguments("[1, 2]", strict=True)

    def test_strict_accepts_missing_fields(self):
        payload = BridgeInvokePayload.from_arguments("{}", strict=True)
        assert payload == BridgeInvokePayload()


class _MinimalExecutor(ToolExecutor):

    def name(self) -> str:
        return "minimal"

    async def execute(self, payload):
        return {"ran": payload.tool}


class TestToolExecutorDefaults:

    def test_cannot_instantiate_abstract_base(self):
        with pytest.raises(TypeError):
            ToolExecutor()

    def test_capability_defaults(self):
        executor = _MinimalExecutor()
        assert executor.is_enabled() is True
        assert executor.can_execute("anything") is True

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with _MinimalExecutor() as executor:
            result = await executor.execute(BridgeInvokePayload(tool="t"))
        assert result == {"ran": "t"}
