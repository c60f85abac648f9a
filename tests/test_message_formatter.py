"""Tests for translating history into gateway messages."""

import pytest
from langchain_core.messages import AIMessage, ChatMessage, HumanMessage, SystemMessage, ToolMessage

from gateway_agent.clients.message_formatter import format_messages, to_gateway_message


class TestToGatewayMessage:
    """Tests for role mapping."""

    def test_role_mapping(self):
        """Test that each message kind maps to its wire role."""
        assert to_gateway_message(SystemMessage(content="s")).role == "system"
        assert to_gateway_message(HumanMessage(content="u")).role == "user"
        assert to_gateway_message(AIMessage(content="a")).role == "assistant"

    def test_tool_message_marker(self):
        """Test that tool results travel as user turns with the result marker."""
        message = to_gateway_message(ToolMessage(content="5", tool_call_id="tool_abc"))

        assert message.role == "user"
        assert message.content == "Tool Result [tool_abc]: 5"

    def test_list_content_is_flattened(self):
        """Test that content blocks are flattened to text."""
        message = to_gateway_message(HumanMessage(content=[{"type": "text", "text": "a"}, "b"]))
        assert message.content == "a\nb"

    def test_unsupported_message_type(self):
        """Test that message kinds outside the four roles are rejected."""
        with pytest.raises(TypeError):
            to_gateway_message(ChatMessage(content="x", role="critic"))


class TestFormatMessages:
    """Tests for whole-history formatting."""

    def test_empty_assistant_turns_filtered_except_last(self):
        """Test that only the final empty assistant turn survives."""
        history = [
            HumanMessage(content="hi"),
            AIMessage(content=""),
            ToolMessage(content="ok", tool_call_id="t1"),
            AIMessage(content="   "),
        ]
        formatted = format_messages(history)

        assert [m.role for m in formatted] == ["user", "user", "assistant"]

    def test_error_messages_are_not_sent(self):
        """Test that recorded failures are excluded from the history."""
        history = [
            HumanMessage(content="hi"),
            AIMessage(content="Error communicating with LLM", additional_kwargs={"error": True}),
            HumanMessage(content="again"),
        ]
        formatted = format_messages(history)

        assert [m.content for m in formatted] == ["hi", "again"]
