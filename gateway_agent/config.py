"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value else None


@dataclass
class GatewayConfig:
    """Configuration for the LLM gateway client."""

    api_url: str
    api_key: str
    temperature: float = 0.2
    max_tokens: int = 8000
    stop: list[str] | None = None

    # Bounds one reasoning step's network exchange; expiry cancels the stream
    timeout_seconds: float = 60.0
    connect_timeout_seconds: float = 10.0

    # Optional client-side rate limiting
    requests_per_minute: int | None = None
    tokens_per_minute: int | None = None

    def __post_init__(self) -> None:
        if not self.api_url or not self.api_key:
            raise ValueError("Gateway API URL and API key are required")

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build the configuration from LLM_GATEWAY_* variables.

        Raises:
            ValueError: If the URL or key is not set
        """
        api_url = os.getenv("LLM_GATEWAY_API_URL")
        if not api_url:
            raise ValueError("LLM_GATEWAY_API_URL environment variable is required")
        api_key = os.getenv("LLM_GATEWAY_API_KEY")
        if not api_key:
            raise ValueError("LLM_GATEWAY_API_KEY environment variable is required")

        stop = os.getenv("LLM_GATEWAY_STOP")
        return cls(
            api_url=api_url,
            api_key=api_key,
            temperature=float(os.getenv("LLM_GATEWAY_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("LLM_GATEWAY_MAX_TOKENS", "8000")),
            stop=[s for s in stop.split(",") if s] if stop else None,
            timeout_seconds=float(os.getenv("LLM_GATEWAY_TIMEOUT", "60")),
            requests_per_minute=_optional_int("LLM_GATEWAY_REQUESTS_PER_MINUTE"),
            tokens_per_minute=_optional_int("LLM_GATEWAY_TOKENS_PER_MINUTE"),
        )


@dataclass
class AgentConfig:
    """Configuration for the reason/act state machine."""

    max_reason_steps: int = 100
    system_prompt: str | None = None
    workspace_dir: str | None = None

    @classmethod
    def from_env(cls) -> "AgentConfig":
        return cls(
            max_reason_steps=int(os.getenv("AGENT_MAX_REASON_STEPS", "100")),
            system_prompt=os.getenv("AGENT_SYSTEM_PROMPT") or None,
            workspace_dir=os.getenv("WORKSPACE_DIR") or None,
        )
