"""File system tools confined to a workspace directory."""

from pathlib import Path

from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

MAX_READ_CHARS = 50_000


def resolve_workspace_path(workspace: Path, relative_path: str) -> Path | None:
    """Resolve ``relative_path`` inside ``workspace``.

    Returns None for absolute paths, paths containing ``..`` and anything
    that resolves (through symlinks, say) outside the workspace.
    """
    candidate = Path(relative_path)
    if candidate.is_absolute() or ".." in candidate.parts:
        logger.warning(f"Rejected file access outside workspace: {relative_path}")
        return None

    root = workspace.resolve()
    full_path = (root / candidate).resolve()
    if not full_path.is_relative_to(root):
        logger.warning(f"Resolved path escaped workspace: {full_path}")
        return None
    return full_path


class ListFilesInput(BaseModel):
    directory_path: str = Field(
        default=".",
        description='Relative path to a directory in the workspace (e.g. ".", "documents"). Defaults to the root.',
    )


class ReadFileInput(BaseModel):
    file_path: str = Field(..., description='Relative path to the file within the workspace (e.g. "notes.txt").')


class WriteFileInput(BaseModel):
    file_path: str = Field(..., description='Relative path to the file within the workspace (e.g. "out/data.csv").')
    content: str = Field(..., description="The content to write into the file.")


def create_workspace_tools(workspace_dir: str | Path) -> list[BaseTool]:
    """Create the list/read/write tools for ``workspace_dir``, creating it if needed."""
    workspace = Path(workspace_dir)
    workspace.mkdir(parents=True, exist_ok=True)
    logger.info(f"File system tools enabled for workspace: {workspace}")

    @tool("list_files", args_schema=ListFilesInput)
    async def list_files_handler(directory_path: str = ".") -> str:
        """List files and directories in a workspace directory.

        Paths must be relative to the workspace root; do not use absolute paths or "..".
        Directories are shown with a trailing slash.
        """
        safe_dir = resolve_workspace_path(workspace, directory_path)
        if safe_dir is None:
            return "Error: Invalid or disallowed directory path."

        try:
            entries = sorted(safe_dir.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            return f"Error: Directory not found at path '{directory_path}'."
        except OSError as e:
            logger.error(f"Error listing files in {safe_dir}: {e}")
            return f"Error listing files: {e}"

        listing = "\n".join(f"{entry.name}/" if entry.is_dir() else entry.name for entry in entries)
        return f"Files in '{directory_path}':\n{listing}"

    @tool("read_file", args_schema=ReadFileInput)
    async def read_file_handler(file_path: str) -> str:
        """Read a text file in the workspace.

        Paths must be relative to the workspace root; do not use absolute paths or "..".
        Very large files are truncated.
        """
        safe_path = resolve_workspace_path(workspace, file_path)
        if safe_path is None:
            return "Error: Invalid or disallowed file path."

        try:
            content = safe_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return f"Error: File not found at path '{file_path}'."
        except OSError as e:
            logger.error(f"Error reading file {safe_path}: {e}")
            return f"Error reading file: {e}"

        if len(content) > MAX_READ_CHARS:
            logger.warning(f"File content truncated due to size limit: {file_path}")
            return f"File content (truncated):\n{content[:MAX_READ_CHARS]}..."
        return f"File content of '{file_path}':\n{content}"

    @tool("write_file", args_schema=WriteFileInput)
    async def write_file_handler(file_path: str, content: str) -> str:
        """Write content to a file in the workspace.

        Parent directories are created and an existing file is overwritten.
        Paths must be relative to the workspace root; do not use absolute paths or "..".
        """
        safe_path = resolve_workspace_path(workspace, file_path)
        if safe_path is None:
            return "Error: Invalid or disallowed file path."

        try:
            safe_path.parent.mkdir(parents=True, exist_ok=True)
            safe_path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing file {safe_path}: {e}")
            return f"Error writing file: {e}"
        return f"Successfully wrote content to file '{file_path}'."

    return [list_files_handler, read_file_handler, write_file_handler]
