"""Translation of conversation history into gateway wire messages."""

import json
from collections.abc import Sequence
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from gateway_agent.models.llm import GatewayMessage
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)


def content_text(content: str | list[Any]) -> str:
    """Flatten LangChain message content to plain text."""
    if isinstance(content, str):
        return content

    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict) and item.get("type") == "text":
            parts.append(str(item.get("text", "")))
        else:
            parts.append(json.dumps(item))
    return "\n".join(parts)


def to_gateway_message(message: BaseMessage) -> GatewayMessage:
    """Map one conversation message to its wire role.

    Tool results travel as user turns carrying a ``Tool Result [<id>]:``
    marker, which is the convention the gateway accepts.
    """
    match message:
        case SystemMessage():
            return GatewayMessage(role="system", content=content_text(message.content))
        case HumanMessage():
            return GatewayMessage(role="user", content=content_text(message.content))
        case AIMessage():
            return GatewayMessage(role="assistant", content=content_text(message.content))
        case ToolMessage():
            return GatewayMessage(
                role="user",
                content=f"Tool Result [{message.tool_call_id}]: {content_text(message.content)}",
            )
        case _:
            raise TypeError(f"Unsupported message type for gateway: {type(message).__name__}")


def is_error_message(message: BaseMessage) -> bool:
    """Whether an assistant message records a failed turn rather than model output."""
    return isinstance(message, AIMessage) and bool(message.additional_kwargs.get("error"))


def format_messages(messages: Sequence[BaseMessage]) -> list[GatewayMessage]:
    """Format a conversation history for the gateway.

    Args:
        messages: Conversation history in order

    Returns:
        Wire messages with empty assistant turns removed, except the final one
    """
    history = [m for m in messages if not is_error_message(m)]
    formatted = [to_gateway_message(m) for m in history]

    # The gateway rejects empty assistant turns unless they come last
    last_index = len(formatted) - 1
    filtered = []
    for index, message in enumerate(formatted):
        if message.role == "assistant" and not message.content.strip() and index != last_index:
            logger.debug(f"Filtering out empty assistant message at index {index}")
            continue
        filtered.append(message)

    return filtered
