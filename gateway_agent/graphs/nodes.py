"""Node implementations for the reason/act graph."""

from collections.abc import Mapping
from typing import Any

from langchain_core.messages import AIMessage

from gateway_agent.clients.errors import AbortError, GatewayError, ProtocolError, RateLimitError, RecursionLimitError
from gateway_agent.clients.gateway import GatewayClient
from gateway_agent.config import AgentConfig
from gateway_agent.graphs.state import ConversationState
from gateway_agent.models.tools import ToolCall
from gateway_agent.services.tool_call_parser import parse_tool_calls
from gateway_agent.streaming.aggregator import ResponseAggregator
from gateway_agent.tools.registry import ToolsRegistry
from gateway_agent.utils.cancellation import CancellationToken
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)


def error_message(error_type: str, text: str) -> AIMessage:
    """An assistant message reporting a failed REASON step.

    These are shown to the user but never sent back to the gateway.
    """
    return AIMessage(content=text, additional_kwargs={"error": True, "error_type": error_type})


def create_agent_node(
    gateway: GatewayClient,
    config: AgentConfig,
    cancellations: Mapping[str, CancellationToken],
):
    """Create the REASON node.

    Args:
        gateway: Client used for every model call
        config: Agent settings, including the per-turn REASON bound
        cancellations: Caller cancellation tokens of in-flight turns, by thread id
    """
    aggregator = ResponseAggregator()

    async def agent_node(state: ConversationState) -> dict[str, Any]:
        if state.reason_count >= config.max_reason_steps:
            logger.warning(f"Thread {state.thread_id} reached {config.max_reason_steps} reasoning steps")
            raise RecursionLimitError(config.max_reason_steps)
        if not state.thread_id:
            raise ValueError("Conversation state has no thread id")

        reason_count = state.reason_count + 1
        logger.info(f"Agent node step {reason_count} for thread {state.thread_id}")

        try:
            stream = await gateway.send(
                state.messages, state.thread_id, cancellation=cancellations.get(state.thread_id)
            )
            async with stream:
                response = await aggregator.collect(stream)
        except AbortError as e:
            logger.info(f"Gateway call aborted for thread {state.thread_id}: {e}")
            return {"messages": [error_message("aborted", str(e))], "reason_count": reason_count}
        except GatewayError as e:
            error_type = _error_type(e)
            logger.error(f"Gateway call failed for thread {state.thread_id}: {e}")
            return {
                "messages": [error_message(error_type, f"Error communicating with LLM: {e}")],
                "reason_count": reason_count,
            }

        parsed = parse_tool_calls(response.text)
        updates: dict[str, Any] = {"reason_count": reason_count}
        usage_metadata = None
        if response.usage:
            usage_metadata = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.total_tokens,
            }
            updates["total_input_tokens"] = state.total_input_tokens + response.usage.input_tokens
            updates["total_output_tokens"] = state.total_output_tokens + response.usage.output_tokens

        message = AIMessage(
            content=parsed.text_response,
            tool_calls=[call.as_langchain() for call in parsed.tool_calls or []],
            usage_metadata=usage_metadata,
            response_metadata={"completed": response.completed},
        )
        updates["messages"] = [message]
        return updates

    return agent_node


def _error_type(error: GatewayError) -> str:
    match error:
        case ProtocolError():
            return "protocol"
        case RateLimitError():
            return "rate_limit"
        case _:
            return "transport"


def create_tools_node(registry: ToolsRegistry):
    """Create the ACT node, which runs every requested call and appends results in request order."""

    async def tools_node(state: ConversationState) -> dict[str, Any]:
        last_message = state.messages[-1]
        if not isinstance(last_message, AIMessage) or not last_message.tool_calls:
            logger.warning("Tools node reached without pending tool calls")
            return {}

        calls = [ToolCall(id=tc["id"], name=tc["name"], args=tc["args"]) for tc in last_message.tool_calls]
        results = await registry.execute_all(calls)
        return {"messages": [result.to_message() for result in results]}

    return tools_node
