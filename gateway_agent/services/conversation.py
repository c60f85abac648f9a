"""Assembly of the conversation state machine from configuration."""

from collections.abc import Sequence

from gateway_agent.clients.gateway import create_gateway_client
from gateway_agent.config import AgentConfig, GatewayConfig
from gateway_agent.graphs.conversation import ConversationStateMachine
from gateway_agent.tools.base import ToolProvider
from gateway_agent.tools.registry import create_tools_registry
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)


def build_state_machine(
    gateway_config: GatewayConfig | None = None,
    agent_config: AgentConfig | None = None,
    providers: Sequence[ToolProvider] = (),
) -> ConversationStateMachine:
    """Create a state machine wired to the gateway and the default tools.

    Configuration not passed in is read from the environment.

    Raises:
        ValueError: If the gateway URL or key is missing
    """
    gateway_config = gateway_config or GatewayConfig.from_env()
    agent_config = agent_config or AgentConfig.from_env()

    gateway = create_gateway_client(gateway_config)
    tools = create_tools_registry(agent_config.workspace_dir, providers)
    logger.info(f"Conversation state machine ready with tools: {', '.join(tools.get_tool_names())}")
    return ConversationStateMachine(gateway, tools, agent_config)
