"""Tests for environment configuration."""

from unittest.mock import patch

import pytest

from gateway_agent.config import AgentConfig, GatewayConfig


class TestGatewayConfig:
    """Tests for GatewayConfig.from_env."""

    def test_requires_url(self):
        """Test that a missing URL names the variable."""
        with patch.dict("os.environ", {"LLM_GATEWAY_API_KEY": "k"}, clear=True):
            with pytest.raises(ValueError, match="LLM_GATEWAY_API_URL"):
                GatewayConfig.from_env()

    def test_requires_key(self):
        """Test that a missing key names the variable."""
        with patch.dict("os.environ", {"LLM_GATEWAY_API_URL": "https://g"}, clear=True):
            with pytest.raises(ValueError, match="LLM_GATEWAY_API_KEY"):
                GatewayConfig.from_env()

    def test_defaults(self):
        """Test the defaults applied when only the required values are set."""
        with patch.dict("os.environ", {"LLM_GATEWAY_API_URL": "https://g", "LLM_GATEWAY_API_KEY": "k"}, clear=True):
            config = GatewayConfig.from_env()

        assert config.temperature == 0.2
        assert config.max_tokens == 8000
        assert config.stop is None
        assert config.timeout_seconds == 60.0
        assert config.requests_per_minute is None

    def test_overrides(self):
        """Test that optional variables are parsed."""
        env = {
            "LLM_GATEWAY_API_URL": "https://g",
            "LLM_GATEWAY_API_KEY": "k",
            "LLM_GATEWAY_TEMPERATURE": "0.5",
            "LLM_GATEWAY_MAX_TOKENS": "1024",
            "LLM_GATEWAY_STOP": "Observation:,END",
            "LLM_GATEWAY_TIMEOUT": "15",
            "LLM_GATEWAY_REQUESTS_PER_MINUTE": "30",
        }
        with patch.dict("os.environ", env, clear=True):
            config = GatewayConfig.from_env()

        assert config.temperature == 0.5
        assert config.max_tokens == 1024
        assert config.stop == ["Observation:", "END"]
        assert config.timeout_seconds == 15.0
        assert config.requests_per_minute == 30


class TestAgentConfig:
    """Tests for AgentConfig.from_env."""

    def test_defaults(self):
        """Test the defaults with an empty environment."""
        with patch.dict("os.environ", {}, clear=True):
            config = AgentConfig.from_env()

        assert config.max_reason_steps == 100
        assert config.system_prompt is None
        assert config.workspace_dir is None

    def test_overrides(self):
        """Test that agent variables are read."""
        env = {"AGENT_MAX_REASON_STEPS": "7", "WORKSPACE_DIR": "/tmp/ws", "AGENT_SYSTEM_PROMPT": "Be terse."}
        with patch.dict("os.environ", env, clear=True):
            config = AgentConfig.from_env()

        assert config.max_reason_steps == 7
        assert config.workspace_dir == "/tmp/ws"
        assert config.system_prompt == "Be terse."
