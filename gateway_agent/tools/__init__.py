"""Tools available to the agent."""

from gateway_agent.tools.base import ToolProvider
from gateway_agent.tools.registry import ToolsRegistry, create_tools_registry

__all__ = ["ToolProvider", "ToolsRegistry", "create_tools_registry"]
