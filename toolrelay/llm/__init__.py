"""
LLM Orchestration Layer.

Sends the conversation to the chat model (via LiteLLM), advertises the single
``mcp_invoke`` tool, runs any requested tool calls through a ToolExecutor and
asks the model for its final answer:

    run_once(chat_client, model, query, executor)
        → ChatClient.complete()  →  tool calls?  →  ToolExecutor.execute()
        → ChatClient.complete()  →  final text (or None)

Each run_once() call builds its conversation from scratch; nothing is kept
between queries.
"""

from toolrelay.llm.client import ChatClient
from toolrelay.llm.descriptor import MCP_INVOKE_TOOL, build_invoke_descriptor, invoke_tools
from toolrelay.llm.models import Conversation, LLMError, Message, ToolCall
from toolrelay.llm.orchestrator import ArgumentPolicy, build_system_prompt, run_once

__all__ = [
    "ArgumentPolicy",
    "ChatClient",
    "Conversation",
    "LLMError",
    "MCP_INVOKE_TOOL",
    "Message",
    "ToolCall",
    "build_invoke_descriptor",
    "build_system_prompt",
    "invoke_tools",
    "run_once",
]
