"""
Orchestration loop: one user query, at most one round of tool calls.

Data flow:
    user query → Conversation(system, user)
                        ↓
    ChatClient.complete(messages, tools=[mcp_invoke])
                        ↓
    finish_reason == "tool_calls" ?
        no  → return message.content
        yes → for each tool call, in order:
                  BridgeInvokePayload ← arguments
                  ToolExecutor.execute(payload) → tool-result message
              ChatClient.complete(extended messages) → return message.content

Design decisions:
- Tool calls run one after another and each result is appended before the
  next dispatch. Backends may be stateful and the model expects results in
  the order it asked for them.
- The assistant message that requested the tools is appended verbatim (with
  its tool_calls). Providers reject a tool-result message that does not
  follow a matching assistant tool call.
- An executor failure aborts the batch with OrchestrationError naming the
  tool. Chat-client failures propagate as LLMError unchanged.
- Malformed tool-call arguments follow ArgumentPolicy: LENIENT substitutes
  the default payload, STRICT raises.
- ``None`` means the model produced no text; it is not an error.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Protocol, Sequence

from toolrelay.errors import OrchestrationError
from toolrelay.llm.descriptor import INVOKE_FUNCTION_NAME, invoke_tools
from toolrelay.llm.models import Conversation, Message, ToolCall
from toolrelay.tools.base import DEFAULT_SERVER, BridgeInvokePayload, ToolExecutor
from toolrelay.tools.mcp_client import FALLBACK_TOOL_NAMES

logger = logging.getLogger(__name__)

FINISH_REASON_TOOL_CALLS = "tool_calls"

SYSTEM_PROMPT_TEMPLATE = (
    "You may call tools only via `{function_name}`. "
    "For IP-related queries, always use server='{server}' "
    "and one of the known tools: {tool_list}."
)


class ArgumentPolicy(str, Enum):
    """What to do when a tool call's argument text is not a JSON object."""

    LENIENT = "lenient"
    STRICT = "strict"


class ChatCompleter(Protocol):
    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Any: ...


def build_system_prompt(server: str = DEFAULT_SERVER, tool_names: Sequence[str] = FALLBACK_TOOL_NAMES) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        function_name=INVOKE_FUNCTION_NAME,
        server=server,
        tool_list=", ".join(tool_names),
    )


def parse_payload(tool_call: ToolCall, policy: ArgumentPolicy = ArgumentPolicy.LENIENT) -> BridgeInvokePayload:
    """
    Turn a tool call's raw arguments into a payload.

    Raises:
        OrchestrationError: Under STRICT policy, if the arguments are not a JSON object
    """
    strict = policy is ArgumentPolicy.STRICT
    try:
        payload = BridgeInvokePayload.from_arguments(tool_call.arguments, strict=strict)
    except ValueError as e:
        raise OrchestrationError(
            tool_call.function_name,
            e,
            message=f"Malformed arguments for tool call {tool_call.id}: {e}",
        ) from e

    if not strict and payload.tool == "" and tool_call.arguments:
        logger.warning(f"Tool call {tool_call.id} has no usable 'tool' field; arguments: {tool_call.arguments!r}")
    return payload


def _message_text(message: Any) -> str | None:
    if message is None:
        return None
    content = getattr(message, "content", None)
    if not content:
        return None
    return content


async def run_once(
    chat_client: ChatCompleter,
    model: str,
    user_query: str,
    executor: ToolExecutor,
    *,
    server: str = DEFAULT_SERVER,
    tool_names: Sequence[str] = FALLBACK_TOOL_NAMES,
    argument_policy: ArgumentPolicy = ArgumentPolicy.LENIENT,
) -> str | None:
    """
    Answer one user query, executing at most one batch of tool calls.

    Args:
        chat_client: Object with an async ``complete(messages, model, tools)``
        model: Model identifier passed to the chat client
        user_query: The user's question
        executor: Backend that runs tool calls
        server: Server alias named in the system prompt
        tool_names: Tool names named in the system prompt
        argument_policy: Handling of malformed tool-call arguments

    Returns:
        The model's final text, or None if it produced none

    Raises:
        OrchestrationError: If a tool call fails (carries the tool name)
        LLMError: If either chat completion fails
    """
    conversation = Conversation([
        Message.system(build_system_prompt(server, tool_names)),
        Message.user(user_query),
    ])
    tools = invoke_tools()

    logger.info(f"Query: {user_query}")
    first = await chat_client.complete(conversation.to_dicts(), model=model, tools=tools)

    choice = first.choices[0]
    if choice.finish_reason != FINISH_REASON_TOOL_CALLS:
        logger.debug(f"Model answered directly (finish_reason={choice.finish_reason})")
        return _message_text(choice.message)

    assistant_message = choice.message
    if assistant_message is None or assistant_message.tool_calls is None:
        logger.warning("Model requested tool calls but sent none")
        return None

    tool_calls = [ToolCall.from_response(tc) for tc in assistant_message.tool_calls]
    conversation.append(Message.assistant(assistant_message.content, tool_calls))
    logger.info(f"Model requested {len(tool_calls)} tool call(s)")

    # Parse the whole batch first so a strict failure happens before any dispatch.
    payloads = [parse_payload(tool_call, argument_policy) for tool_call in tool_calls]

    for tool_call, payload in zip(tool_calls, payloads):
        if not executor.can_execute(payload.tool):
            logger.warning(f"{executor.name()} executor cannot run '{payload.tool}'; skipping")
            result: Any = {
                "is_error": True,
                "error": f"Tool '{payload.tool}' is not available on server '{payload.server}'",
            }
        else:
            logger.info(f"→ {payload.server}/{payload.tool} {json.dumps(payload.arguments)}")
            try:
                result = await executor.execute(payload)
            except Exception as e:
                logger.error(f"Tool '{payload.tool}' failed via {executor.name()}: {e}")
                raise OrchestrationError(payload.tool, e) from e

        conversation.append(Message.tool(json.dumps(result), tool_call.id))

    final = await chat_client.complete(conversation.to_dicts(), model=model, tools=tools)
    return _message_text(final.choices[0].message)
