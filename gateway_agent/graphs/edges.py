"""Routing for the reason/act graph."""

from typing import Literal

from langchain_core.messages import AIMessage

from gateway_agent.graphs.state import ConversationState
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)


def route_agent_output(state: ConversationState) -> Literal["tools", "end"]:
    """Go to the tools node when the last message requests tools, otherwise finish."""
    last_message = state.messages[-1] if state.messages else None
    if isinstance(last_message, AIMessage) and last_message.tool_calls:
        logger.debug(f"Routing {len(last_message.tool_calls)} tool call(s) to the tools node")
        return "tools"
    return "end"
