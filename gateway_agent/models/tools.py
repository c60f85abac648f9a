"""Tool call and tool result models."""

from typing import Any

from langchain_core.messages import ToolMessage
from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)

    def as_langchain(self) -> dict[str, Any]:
        """Return the dict shape LangChain expects in ``AIMessage.tool_calls``."""
        return {"name": self.name, "args": self.args, "id": self.id, "type": "tool_call"}


class ToolResult(BaseModel):
    """Outcome of executing one tool call."""

    tool_call_id: str
    name: str
    content: str
    is_error: bool = False

    def to_message(self) -> ToolMessage:
        return ToolMessage(
            content=self.content,
            tool_call_id=self.tool_call_id,
            name=self.name,
            status="error" if self.is_error else "success",
        )
