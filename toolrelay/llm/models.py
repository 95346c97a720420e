"""
Conversation data structures for the orchestration loop.

A Conversation is built fresh for every run_once() call and thrown away when
it returns. Messages serialise to the OpenAI chat format that LiteLLM expects.
"""

from __future__ import annotations

from typing import Any, Iterator, Literal

from pydantic import BaseModel, Field

from toolrelay.errors import ToolRelayError


class LLMError(ToolRelayError):
    """Raised when the chat-completion call fails."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str = Field(description="Opaque correlation token issued by the model")
    function_name: str = Field(description="Name of the function the model called")
    arguments: str = Field(default="", description="Raw JSON argument text, unparsed")

    @classmethod
    def from_response(cls, tool_call: Any) -> ToolCall:
        """Build from a LiteLLM ChatCompletionMessageToolCall."""
        return cls(
            id=tool_call.id,
            function_name=tool_call.function.name or "",
            arguments=tool_call.function.arguments or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.function_name,
                "arguments": self.arguments,
            },
        }


class Message(BaseModel):
    """A single chat message. tool_calls is only set on assistant messages, tool_call_id only on tool results."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> Message:
        return cls(role="assistant", content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, content: str, tool_call_id: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data


class Conversation:
    """
    Append-only message list for one query.

    Enforces that every tool-result message answers a tool call issued
    earlier in the same conversation.
    """

    def __init__(self, messages: list[Message] | None = None):
        self._messages: list[Message] = []
        self._issued_call_ids: set[str] = set()
        for message in messages or []:
            self.append(message)

    def append(self, message: Message) -> None:
        if message.role == "tool":
            if message.tool_call_id not in self._issued_call_ids:
                raise ValueError(
                    f"Tool result references unknown tool_call_id {message.tool_call_id!r}"
                )
        if message.tool_calls:
            self._issued_call_ids.update(tc.id for tc in message.tool_calls)
        self._messages.append(message)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def to_dicts(self) -> list[dict[str, Any]]:
        """Wire format for the chat client."""
        return [m.to_dict() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)
