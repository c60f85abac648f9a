"""Tools registry for the agent's ACT step."""

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path

from langchain_core.tools import BaseTool
from pydantic import ValidationError

from gateway_agent.clients.errors import ToolExecutionError
from gateway_agent.models.tools import ToolCall, ToolResult
from gateway_agent.tools.base import ToolProvider
from gateway_agent.tools.calculator import create_calculator_tool
from gateway_agent.tools.workspace_files import create_workspace_tools
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_PREFIX = "Error"


class ToolsRegistry:
    """Registry of local tools and tools loaded from providers."""

    def __init__(self, tools: Sequence[BaseTool] = (), providers: Sequence[ToolProvider] = ()):
        self._tools: dict[str, BaseTool] = {}
        self._providers = list(providers)
        self._providers_loaded = False
        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: BaseTool) -> None:
        """Register a tool, replacing any tool with the same name."""
        if tool.name in self._tools:
            logger.warning(f"Replacing already registered tool {tool.name}")
        self._tools[tool.name] = tool

    async def load_providers(self) -> None:
        """Register the tools of every provider. Safe to call more than once."""
        if self._providers_loaded:
            return
        self._providers_loaded = True
        for provider in self._providers:
            tools = await provider.get_tools()
            logger.info(f"Loaded {len(tools)} tool(s) from provider {provider.name}")
            for tool in tools:
                self.register_tool(tool)

    def get_tools(self) -> list[BaseTool]:
        return list(self._tools.values())

    def get_tool_names(self) -> list[str]:
        return list(self._tools.keys())

    def describe(self) -> str:
        """Describe every tool and its arguments for the system prompt."""
        if not self._tools:
            return "No tools are available."

        lines = []
        for tool in self._tools.values():
            lines.append(f"- {tool.name}: {tool.description}")
            lines.append(f"  Arguments (JSON schema properties): {json.dumps(tool.args)}")
        return "\n".join(lines)

    async def execute(self, call: ToolCall) -> ToolResult:
        """Run one tool call, turning every failure into an error result."""
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool {call.name}")
            available = ", ".join(self._tools) or "none"
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=f"Error: Unknown tool '{call.name}'. Available tools: {available}",
                is_error=True,
            )

        logger.info(f"Executing tool {call.name} ({call.id})")
        try:
            output = await tool.ainvoke(call.args)
        except ValidationError as e:
            error = ToolExecutionError(call.name, f"invalid arguments: {e.error_count()} validation error(s)")
            logger.warning(f"Tool argument validation failed: {error}")
            return ToolResult(tool_call_id=call.id, name=call.name, content=f"Error: {error}\n{e}", is_error=True)
        except Exception as e:
            error = ToolExecutionError(call.name, str(e))
            logger.error(f"Tool execution failed: {error}", exc_info=True)
            return ToolResult(tool_call_id=call.id, name=call.name, content=f"Error: {error}", is_error=True)

        content = output if isinstance(output, str) else json.dumps(output, default=str)
        is_error = content.startswith(ERROR_PREFIX)
        if is_error:
            logger.warning(f"Tool {call.name} reported an error: {content}")
        return ToolResult(tool_call_id=call.id, name=call.name, content=content, is_error=is_error)

    async def execute_all(self, calls: Sequence[ToolCall]) -> list[ToolResult]:
        """Run calls concurrently; results come back in call order."""
        return list(await asyncio.gather(*(self.execute(call) for call in calls)))

    async def aclose(self) -> None:
        """Release every provider, even if one of them fails to close."""
        for provider in self._providers:
            try:
                await provider.aclose()
                logger.info(f"Closed tool provider {provider.name}")
            except Exception as e:
                logger.error(f"Error closing tool provider {provider.name}: {e}", exc_info=True)


def create_tools_registry(
    workspace_dir: str | Path | None = None, providers: Sequence[ToolProvider] = ()
) -> ToolsRegistry:
    """Create a registry with the default tools.

    The file tools are only registered when a workspace directory is given.
    """
    tools: list[BaseTool] = [create_calculator_tool()]
    if workspace_dir:
        tools.extend(create_workspace_tools(workspace_dir))
    else:
        logger.info("File system tools disabled (no workspace directory configured)")
    return ToolsRegistry(tools, providers)
