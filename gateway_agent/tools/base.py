"""Base types for tools and tool providers."""

from typing import Protocol, runtime_checkable

from langchain_core.tools import BaseTool


@runtime_checkable
class ToolProvider(Protocol):
    """A source of tools living outside this process, such as a plugin host.

    Its tools are executed exactly like local ones once loaded; ``aclose``
    must be awaited before exit to release the host's resources.
    """

    name: str

    async def get_tools(self) -> list[BaseTool]: ...

    async def aclose(self) -> None: ...


def format_number(value: float) -> str:
    """Render integral floats without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
