"""
Unit tests for ChatClient (LiteLLM wrapper).

LiteLLM's acompletion is always patched; no real API calls are made.
"""

from unittest.mock import MagicMock, patch

import pytest

from toolrelay.config.settings import LLMSettings
from toolrelay.llm.client import ChatClient
from toolrelay.llm.descriptor import invoke_tools
from toolrelay.llm.models import LLMError


@pytest.fixture
def settings():
    return LLMSettings(
        model="deepseek/deepseek-chat",
        api_key="test-api-key",
        max_tokens=512,
        temperature=0.0,
    )


@pytest.fixture
def response():
    mock = MagicMock()
    mock.usage.prompt_tokens = 10
    mock.usage.completion_tokens = 5
    return mock


MESSAGES = [{"role": "user", "content": "hi"}]


class TestChatClient:

    @pytest.mark.asyncio
    async def test_returns_provider_response(self, settings, response):
        client = ChatClient(settings)

        with patch("toolrelay.llm.client.acompletion", return_value=response):
            assert await client.complete(MESSAGES) is response

    @pytest.mark.asyncio
    async def test_passes_settings(self, settings, response):
        client = ChatClient(settings)

        with patch("toolrelay.llm.client.acompletion", return_value=response) as mock_call:
            await client.complete(MESSAGES)

        kwargs = mock_call.call_args.kwargs
        assert kwargs["model"] == "deepseek/deepseek-chat"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["api_key"] == "test-api-key"
        assert kwargs["max_tokens"] == 512
        assert kwargs["temperature"] == 0.0
        assert "tools" not in kwargs
        assert "api_base" not in kwargs

    @pytest.mark.asyncio
    async def test_model_argument_overrides_settings(self, settings, response):
        client = ChatClient(settings)

        with patch("toolrelay.llm.client.acompletion", return_value=response) as mock_call:
            await client.complete(MESSAGES, model="openai/gpt-4o")

        assert mock_call.call_args.kwargs["model"] == "openai/gpt-4o"

    @pytest.mark.asyncio
    async def test_passes_tools_and_api_base(self, response):
        settings = LLMSettings(api_key="k", api_base="https://api.deepseek.com")
        client = ChatClient(settings)

        with patch("toolrelay.llm.client.acompletion", return_value=response) as mock_call:
            await client.complete(MESSAGES, tools=invoke_tools())

        kwargs = mock_call.call_args.kwargs
        assert kwargs["tools"] == invoke_tools()
        assert kwargs["api_base"] == "https://api.deepseek.com"

    @pytest.mark.asyncio
    async def test_api_failure_raises_llm_error(self, settings):
        client = ChatClient(settings)
        failure = Exception("API rate limit exceeded")

        with patch("toolrelay.llm.client.acompletion", side_effect=failure):
            with pytest.raises(LLMError, match="rate limit") as exc_info:
                await client.complete(MESSAGES)

        assert exc_info.value.cause is failure

    @pytest.mark.asyncio
    async def test_no_api_key_raises_llm_error(self):
        client = ChatClient(LLMSettings(api_key=""))

        with patch("toolrelay.llm.client.acompletion") as mock_call:
            with pytest.raises(LLMError, match="API key"):
                await client.complete(MESSAGES)

        mock_call.assert_not_called()
