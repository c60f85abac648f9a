"""State definitions for the reason/act graph."""

from collections.abc import Sequence
from typing import Annotated

from langchain_core.messages import BaseMessage
from langgraph.graph import add_messages
from pydantic import BaseModel, ConfigDict


def keep_first_thread_id(current: str | None, update: str | None) -> str | None:
    """Reducer for ``thread_id``: the first id written is kept for good."""
    return current if current else update


class ConversationState(BaseModel):
    """Conversation state carried through the graph and checkpointed per thread."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    messages: Annotated[Sequence[BaseMessage], add_messages]
    thread_id: Annotated[str | None, keep_first_thread_id] = None

    # REASON entries for the current user input, reset at the start of each turn
    reason_count: int = 0

    # Token usage reported by the gateway, summed over the conversation
    total_input_tokens: int = 0
    total_output_tokens: int = 0
