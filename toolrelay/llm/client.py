"""
Chat-completion client.

Thin wrapper around LiteLLM's ``acompletion`` so the orchestration loop can
be handed any object with the same ``complete()`` method (tests pass mocks).
LiteLLM routes by model prefix, e.g. ``deepseek/deepseek-chat`` or
``openai/gpt-4o``.
"""

from __future__ import annotations

import logging
from typing import Any

from litellm import acompletion

from toolrelay.config.settings import LLMSettings
from toolrelay.llm.models import LLMError

logger = logging.getLogger(__name__)


class ChatClient:
    """
    Sends conversations to the configured provider.

    Failures are raised as LLMError; there is no retry.

    Args:
        settings: LLM configuration (api_key, api_base, temperature, max_tokens)
    """

    def __init__(self, settings: LLMSettings):
        self._settings = settings

    @property
    def settings(self) -> LLMSettings:
        return self._settings

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Any:
        """
        Run one chat completion.

        Args:
            messages: Conversation in OpenAI chat format
            model: Model string; defaults to settings.model
            tools: Tool definitions to advertise, if any

        Returns:
            LiteLLM ModelResponse (``choices[0].finish_reason`` / ``choices[0].message``)

        Raises:
            LLMError: If the API key is missing or the provider call fails
        """
        # Fail early with a readable message instead of a provider 401
        if not self._settings.api_key:
            raise LLMError("API key not configured. Set LLM__API_KEY in your environment.")

        call_kwargs: dict[str, Any] = {
            "model": model or self._settings.model,
            "messages": messages,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "api_key": self._settings.api_key,
        }
        if self._settings.api_base:
            call_kwargs["api_base"] = self._settings.api_base
        if tools:
            call_kwargs["tools"] = tools

        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            raise LLMError(f"LLM API call failed: {e}", cause=e)

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"{call_kwargs['model']}: {usage.prompt_tokens} prompt + "
                f"{usage.completion_tokens} completion tokens"
            )
        return response
