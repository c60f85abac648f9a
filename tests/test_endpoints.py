"""Tests for API endpoints."""

import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway_agent.config import AgentConfig
from gateway_agent.graphs.conversation import ConversationStateMachine
from gateway_agent.main import app
from gateway_agent.tools.registry import create_tools_registry
from tests.conftest import ScriptedGateway, make_gateway, reply_body


def tool_reply(name: str, args: dict) -> bytes:
    return reply_body(json.dumps({"tool_name": name, "tool_input": args}))


@pytest.fixture
def scripted_client(gateway_config):
    """Build a TestClient whose state machine talks to scripted gateway replies."""

    def factory(*replies: bytes, max_reason_steps: int = 100):
        gateway = ScriptedGateway(*replies)
        machine = ConversationStateMachine(
            make_gateway(gateway, gateway_config),
            create_tools_registry(),
            AgentConfig(max_reason_steps=max_reason_steps),
        )
        return gateway, machine

    return factory


def run_client(machine):
    return patch("gateway_agent.main.build_state_machine", return_value=machine)


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self):
        """Test that health check returns status and version."""
        client = TestClient(app)
        response = client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data


class TestConversationEndpoint:
    """Tests for the conversation endpoint."""

    def test_new_conversation(self, scripted_client):
        """Test that a message without thread id starts a thread and returns the answer."""
        gateway, machine = scripted_client(reply_body("Hello!", input_tokens=9, output_tokens=2))

        with run_client(machine), TestClient(app) as client:
            response = client.post("/conversation", json={"message": "Hi"})

        data = response.json()
        assert response.status_code == 200
        assert data["response"] == "Hello!"
        assert data["thread_id"] == gateway.thread_ids[0]
        assert data["usage"] == {"input_tokens": 9, "output_tokens": 2}
        assert data["error"] is False

    def test_thread_continues(self, scripted_client):
        """Test that passing the thread id continues the same conversation."""
        gateway, machine = scripted_client(
            reply_body("First."),
            tool_reply("calculator", {"operation": "add", "num1": 2, "num2": 3}),
            reply_body("It is 5."),
        )

        with run_client(machine), TestClient(app) as client:
            first = client.post("/conversation", json={"message": "Hi"}).json()
            second = client.post("/conversation", json={"message": "2+3?", "thread_id": first["thread_id"]}).json()

        assert second["response"] == "It is 5."
        assert second["thread_id"] == first["thread_id"]
        assert set(gateway.thread_ids) == {first["thread_id"]}
        assert second["usage"]["input_tokens"] == 30

    def test_gateway_failure_reported(self, scripted_client):
        """Test that a gateway failure is returned as an error response."""
        _, machine = scripted_client(httpx.Response(503, text="busy"))

        with run_client(machine), TestClient(app) as client:
            response = client.post("/conversation", json={"message": "Hi"})

        data = response.json()
        assert response.status_code == 200
        assert data["error"] is True
        assert "Status 503" in data["response"]

    def test_recursion_limit_returns_508(self, scripted_client):
        """Test that a runaway tool loop maps to 508 with the thread id."""
        gateway, machine = scripted_client(
            tool_reply("calculator", {"operation": "add", "num1": 1, "num2": 1}), max_reason_steps=2
        )

        with run_client(machine), TestClient(app) as client:
            response = client.post("/conversation", json={"message": "loop"})

        assert response.status_code == 508
        assert response.json()["detail"]["thread_id"] == gateway.thread_ids[0]
        assert len(gateway.requests) == 2

    def test_blank_message_rejected(self, scripted_client):
        """Test that empty and whitespace-only messages are refused."""
        _, machine = scripted_client(reply_body("unused"))

        with run_client(machine), TestClient(app) as client:
            assert client.post("/conversation", json={"message": ""}).status_code == 422
            assert client.post("/conversation", json={"message": "   "}).status_code == 400

    def test_shutdown_on_exit(self, scripted_client):
        """Test that leaving the app lifespan shuts the state machine down."""
        _, machine = scripted_client(reply_body("ok"))

        with patch.object(machine, "shutdown", wraps=machine.shutdown) as shutdown:
            with run_client(machine), TestClient(app):
                pass

        shutdown.assert_awaited_once()
