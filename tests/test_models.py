"""Tests for data models."""

import json

import pytest
from pydantic import ValidationError

from gateway_agent.models.conversation import ConversationRequest, ConversationResponse, UsageSummary
from gateway_agent.models.events import UsageStats
from gateway_agent.models.llm import GatewayMessage, GatewayRequestBody, GenerationParameters
from gateway_agent.models.tools import ToolCall, ToolResult


class TestConversationModels:
    """Tests for API request/response models."""

    def test_conversation_request_valid(self):
        """Test valid conversation request."""
        request = ConversationRequest(message="Hello")
        assert request.message == "Hello"
        assert request.thread_id is None

    def test_conversation_request_from_json(self):
        """Test conversation request parsing from JSON."""
        data = json.loads('{"message": "Hello, I need help", "thread_id": "clhqxrisp0001s67w2qccjhqr"}')
        request = ConversationRequest.model_validate(data)
        assert request.thread_id == "clhqxrisp0001s67w2qccjhqr"

    def test_conversation_request_requires_message(self):
        """Test that the message field is required and non-empty."""
        with pytest.raises(ValidationError):
            ConversationRequest.model_validate({})
        with pytest.raises(ValidationError):
            ConversationRequest(message="")

    def test_conversation_response_serialization(self):
        """Test conversation response JSON shape."""
        response = ConversationResponse(
            response="Hi", thread_id="t1", usage=UsageSummary(input_tokens=3, output_tokens=1)
        )
        assert response.model_dump() == {
            "response": "Hi",
            "thread_id": "t1",
            "usage": {"input_tokens": 3, "output_tokens": 1},
            "error": False,
        }


class TestGatewayModels:
    """Tests for gateway wire models."""

    def test_request_body_wire_format(self):
        """Test that the request body uses gateway field names and omits unset stop."""
        body = GatewayRequestBody(
            messages=[GatewayMessage(role="user", content="hi")],
            parameters=GenerationParameters(),
            thread_id="t1",
        )
        assert body.to_wire() == {
            "messages": [{"role": "user", "content": "hi"}],
            "parameters": {"temperature": 0.2, "max_tokens": 8000},
            "threadId": "t1",
        }

    def test_gateway_message_role_restricted(self):
        """Test that only wire roles are accepted."""
        with pytest.raises(ValidationError):
            GatewayMessage(role="tool", content="x")

    def test_usage_stats_aliases(self):
        """Test that usage parses the gateway's camelCase fields."""
        usage = UsageStats.model_validate({"inputTokens": 4, "outputTokens": 6})
        assert (usage.input_tokens, usage.output_tokens, usage.total_tokens) == (4, 6, 10)


class TestToolModels:
    """Tests for tool call and result models."""

    def test_tool_call_langchain_shape(self):
        """Test the dict handed to AIMessage.tool_calls."""
        call = ToolCall(id="tool_1", name="calculator", args={"num1": 1})
        assert call.as_langchain() == {"name": "calculator", "args": {"num1": 1}, "id": "tool_1", "type": "tool_call"}

    def test_tool_result_to_message(self):
        """Test conversion of results to tool messages."""
        message = ToolResult(tool_call_id="tool_1", name="calculator", content="Error: x", is_error=True).to_message()

        assert message.tool_call_id == "tool_1"
        assert message.name == "calculator"
        assert message.status == "error"
