"""
Unit tests for conversation data structures.
"""

from unittest.mock import MagicMock

import pytest

from toolrelay.llm.models import Conversation, LLMError, Message, ToolCall


class TestToolCall:

    def test_from_response(self):
        raw = MagicMock()
        raw.id = "call_1"
        raw.function.name = "mcp_invoke"
        raw.function.arguments = '{"tool": "x"}'

        call = ToolCall.from_response(raw)

        assert call == ToolCall(id="call_1", function_name="mcp_invoke", arguments='{"tool": "x"}')

    def test_from_response_with_null_arguments(self):
        raw = MagicMock()
        raw.id = "call_1"
        raw.function.name = "mcp_invoke"
        raw.function.arguments = None

        assert ToolCall.from_response(raw).arguments == ""

    def test_to_dict_is_openai_format(self):
        call = ToolCall(id="call_1", function_name="mcp_invoke", arguments="{}")
        assert call.to_dict() == {
            "id": "call_1",
            "type": "function",
            "function": {"name": "mcp_invoke", "arguments": "{}"},
        }


class TestMessage:

    def test_system_and_user(self):
        assert Message.system("rules").to_dict() == {"role": "system", "content": "rules"}
        assert Message.user("question").to_dict() == {"role": "user", "content": "question"}

    def test_assistant_with_tool_calls(self):
        call = ToolCall(id="call_1", function_name="mcp_invoke", arguments="{}")
        data = Message.assistant(None, [call]).to_dict()

        assert data["role"] == "assistant"
        assert data["content"] is None
        assert data["tool_calls"] == [call.to_dict()]

    def test_tool_result(self):
        assert Message.tool('{"ok": true}', "call_1").to_dict() == {
            "role": "tool",
            "content": '{"ok": true}',
            "tool_call_id": "call_1",
        }

    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            Message(role="narrator", content="Once upon a time")


class TestConversation:

    def test_preserves_order(self):
        conversation = Conversation([Message.system("s"), Message.user("u")])
        assert [m.role for m in conversation] == ["system", "user"]
        assert len(conversation) == 2

    def test_tool_result_must_reference_issued_call(self):
        conversation = Conversation([Message.system("s"), Message.user("u")])

        with pytest.raises(ValueError, match="call_404"):
            conversation.append(Message.tool("{}", "call_404"))

    def test_tool_result_after_matching_assistant_call(self):
        conversation = Conversation([Message.user("u")])
        conversation.append(
            Message.assistant(None, [ToolCall(id="call_1", function_name="mcp_invoke", arguments="{}")])
        )
        conversation.append(Message.tool("{}", "call_1"))

        assert [m["role"] for m in conversation.to_dicts()] == ["user", "assistant", "tool"]

    def test_messages_view_is_immutable(self):
        conversation = Conversation([Message.user("u")])
        assert isinstance(conversation.messages, tuple)

    def test_to_dicts_returns_fresh_list(self):
        conversation = Conversation([Message.user("u")])
        snapshot = conversation.to_dicts()
        conversation.append(Message.user("again"))

        assert len(snapshot) == 1


class TestLLMError:

    def test_keeps_cause(self):
        cause = RuntimeError("boom")
        error = LLMError("LLM API call failed", cause=cause)
        assert error.cause is cause
        assert str(error) == "LLM API call failed"
