"""Error taxonomy for the gateway client and the agent loop."""

from typing import Any


class GatewayError(Exception):
    """Base class for failures talking to the LLM gateway."""


class TransportError(GatewayError):
    """Non-success HTTP status or network failure before or while streaming."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ProtocolError(GatewayError):
    """The gateway answered with success but not with an event stream."""


class AbortError(GatewayError):
    """The stream was cancelled before the completion sentinel arrived."""

    def __init__(self, reason: str | None = None):
        super().__init__(f"Request was aborted: {reason or 'cancelled'}")
        self.reason = reason


class RecursionLimitError(Exception):
    """A single user input re-entered the reasoning step too many times."""

    def __init__(self, limit: int, state: Any = None):
        super().__init__(f"Reasoning step limit of {limit} reached for this turn")
        self.limit = limit
        self.state = state


class ToolExecutionError(Exception):
    """A tool raised or reported an error while executing."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name


class RateLimitError(GatewayError):
    """A request can never fit within the configured client-side rate limit."""
