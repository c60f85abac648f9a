"""Reason/act conversation graph and the state machine that drives it."""

from typing import Any

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langgraph.checkpoint.memory import MemorySaver
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from gateway_agent.clients.errors import RecursionLimitError
from gateway_agent.clients.gateway import GatewayClient
from gateway_agent.clients.message_formatter import content_text, is_error_message
from gateway_agent.config import AgentConfig
from gateway_agent.graphs.edges import route_agent_output
from gateway_agent.graphs.nodes import create_agent_node, create_tools_node
from gateway_agent.graphs.state import ConversationState
from gateway_agent.services.thread_manager import ThreadManager
from gateway_agent.tools.registry import ToolsRegistry
from gateway_agent.utils.cancellation import CancellationToken
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INSTRUCTIONS = """You are a helpful ReAct agent. Analyze the user query and conversation history.
Decide whether to use a tool or respond directly.

If using a tool, respond ONLY with a JSON object like: {"tool_name": "tool_to_call", "tool_input": {"arg1": "value1"}}
To call several tools at once, respond ONLY with a JSON array of such objects.
Tool results come back to you as user messages starting with "Tool Result [<id>]:".

If the query is ambiguous, ask for clarification. Otherwise, provide your final answer directly to the user."""


def get_system_prompt(tools_description: str, instructions: str | None = None) -> str:
    """Build the system prompt from the ReAct instructions and the available tools.

    Args:
        tools_description: Rendered tool list from the registry
        instructions: Replacement for the default instructions

    Returns:
        System prompt string
    """
    return f"{instructions or DEFAULT_INSTRUCTIONS}\n\nAvailable tools:\n{tools_description}"


def create_conversation_graph(
    gateway: GatewayClient,
    registry: ToolsRegistry,
    config: AgentConfig,
    cancellations: dict[str, CancellationToken] | None = None,
    checkpointer=None,
):
    """Create the reason/act graph.

    ``agent`` is the REASON step, the conditional edge after it is ROUTE,
    ``tools`` is ACT and ``END`` is DONE.

    Args:
        gateway: Gateway client used by the agent node
        registry: Tools executed by the tools node
        config: Agent settings
        cancellations: Caller cancellation tokens by thread id, read by the agent node
        checkpointer: Optional checkpointer for state persistence

    Returns:
        Compiled LangGraph workflow
    """
    logger.info("Creating conversation graph")

    workflow = StateGraph(ConversationState)

    workflow.add_node("agent", create_agent_node(gateway, config, cancellations if cancellations is not None else {}))
    workflow.add_node("tools", create_tools_node(registry))

    workflow.set_entry_point("agent")

    workflow.add_conditional_edges(
        "agent",
        route_agent_output,
        {
            "tools": "tools",
            "end": END,
        },
    )
    workflow.add_edge("tools", "agent")

    return workflow.compile(checkpointer=checkpointer or MemorySaver())


def get_final_response(state: ConversationState) -> str:
    """Text to show for a finished turn.

    The last assistant text, or the tools executed during the turn when the
    model ended without text.
    """
    last_ai = next((m for m in reversed(state.messages) if isinstance(m, AIMessage)), None)
    if last_ai is None:
        return ""

    text = content_text(last_ai.content).strip()
    if text:
        return text

    executed: list[str] = []
    for message in reversed(state.messages):
        if isinstance(message, HumanMessage):
            break
        if isinstance(message, ToolMessage) and message.name:
            executed.insert(0, message.name)
    if executed:
        return f"(Executed tool(s): {', '.join(executed)})"
    return ""


def turn_failed(state: ConversationState) -> bool:
    """Whether the turn ended on a transport, protocol or abort failure."""
    return bool(state.messages) and is_error_message(state.messages[-1])


class ConversationStateMachine:
    """Runs user turns through the reason/act graph.

    Turns on the same thread are serialized; distinct threads share nothing
    but the gateway client and the tools.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        tools: ToolsRegistry,
        config: AgentConfig | None = None,
        checkpointer=None,
        thread_manager: ThreadManager | None = None,
    ):
        self.gateway = gateway
        self.tools = tools
        self.config = config or AgentConfig()
        self.threads = thread_manager or ThreadManager()
        self._cancellations: dict[str, CancellationToken] = {}
        self._tools_ready = False
        self.graph = create_conversation_graph(
            gateway, tools, self.config, self._cancellations, checkpointer or MemorySaver()
        )

    @property
    def recursion_limit(self) -> int:
        # Each REASON step is followed by at most one ACT step, plus the final refused entry
        return 2 * self.config.max_reason_steps + 5

    async def invoke(
        self,
        user_text: str,
        thread_id: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ConversationState:
        """Run one user turn to completion.

        Args:
            user_text: The user's input
            thread_id: Conversation to continue; a new one is started when omitted
            cancellation: Aborts the in-flight gateway call when fired

        Returns:
            The conversation state after the turn

        Raises:
            RecursionLimitError: The turn needed more reasoning steps than allowed
        """
        await self._ensure_tools_loaded()

        thread = self.threads.get_or_create(thread_id)
        async with thread.lock:
            thread.turn_count += 1
            config = self._graph_config(thread.thread_id)

            snapshot = await self.graph.aget_state(config)
            messages = []
            if not snapshot.values.get("messages"):
                messages.append(SystemMessage(content=self.system_prompt()))
            messages.append(HumanMessage(content=user_text))

            turn_input: dict[str, Any] = {
                "messages": messages,
                "thread_id": thread.thread_id,
                "reason_count": 0,
            }

            logger.info(f"Processing turn {thread.turn_count} for thread {thread.thread_id}")
            if cancellation is not None:
                self._cancellations[thread.thread_id] = cancellation
            try:
                result = await self.graph.ainvoke(turn_input, config)
            except RecursionLimitError as e:
                e.state = await self.get_state(thread.thread_id)
                raise
            except GraphRecursionError as e:
                state = await self.get_state(thread.thread_id)
                raise RecursionLimitError(self.config.max_reason_steps, state) from e
            finally:
                self._cancellations.pop(thread.thread_id, None)
                thread.update_activity()

        return _as_state(result)

    async def get_state(self, thread_id: str) -> ConversationState | None:
        """Return the checkpointed state of a thread, or None if it has none."""
        snapshot = await self.graph.aget_state(self._graph_config(thread_id))
        if not snapshot.values:
            return None
        return _as_state(snapshot.values)

    def system_prompt(self) -> str:
        return get_system_prompt(self.tools.describe(), self.config.system_prompt)

    async def shutdown(self) -> None:
        """Release tool providers and the gateway connection pool."""
        logger.info("Shutting down conversation state machine")
        await self.tools.aclose()
        await self.gateway.aclose()

    async def _ensure_tools_loaded(self) -> None:
        if not self._tools_ready:
            await self.tools.load_providers()
            self._tools_ready = True

    def _graph_config(self, thread_id: str) -> dict[str, Any]:
        return {
            "configurable": {"thread_id": thread_id},
            "recursion_limit": self.recursion_limit,
        }


def _as_state(values: Any) -> ConversationState:
    if isinstance(values, ConversationState):
        return values
    return ConversationState.model_validate(values)
