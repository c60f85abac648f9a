#!/usr/bin/env python3
"""Interactive chat CLI that drives the agent in process."""

import asyncio

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from gateway_agent.clients.errors import RecursionLimitError
from gateway_agent.graphs.conversation import ConversationStateMachine, get_final_response, turn_failed
from gateway_agent.services.conversation import build_state_machine
from gateway_agent.utils.logging import setup_logging


class ChatCLI:
    """Interactive chat interface for the gateway agent."""

    def __init__(self, state_machine: ConversationStateMachine):
        """Initialize chat CLI."""
        self.state_machine = state_machine
        self.thread_id: str | None = None
        self.console = Console()

    async def start(self) -> None:
        """Run the chat loop until the user quits."""
        self.console.print(
            Panel.fit(
                "[bold blue]Gateway Agent - Interactive Chat[/bold blue]\n"
                "Type your messages to chat with the agent.\n"
                "Commands: /help, /new, /quit",
                border_style="blue",
            )
        )
        self.console.print(f"[dim]Tools: {', '.join(self.state_machine.tools.get_tool_names())}[/dim]")

        try:
            while True:
                prefix = self.thread_id[:8] if self.thread_id else "new"
                user_input = await asyncio.to_thread(Prompt.ask, f"\n[bold cyan]You[/bold cyan] [dim]({prefix})[/dim]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                    continue
                elif command == "/new":
                    self.thread_id = None
                    self.console.print("[yellow]Started a new conversation[/yellow]")
                    continue
                elif command == "":
                    continue

                await self._send_message(user_input)

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.console.print("\n[yellow]Shutting down...[/yellow]")
            await self.state_machine.shutdown()
            self.console.print("[yellow]Goodbye![/yellow]")

    async def _send_message(self, message: str) -> None:
        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                state = await self.state_machine.invoke(message, self.thread_id)
        except RecursionLimitError as e:
            if e.state:
                self.thread_id = e.state.thread_id
            self.console.print(f"[red]Agent stopped: {e}[/red]")
            return

        self.thread_id = state.thread_id
        if turn_failed(state):
            self.console.print(f"[red]{get_final_response(state)}[/red]")
            return
        self._display_response(get_final_response(state) or "(No response)")

    def _display_response(self, text: str) -> None:
        self.console.print(
            Panel(
                Markdown(text),
                title="[bold green]Agent[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /new - Start a new conversation thread
• /quit or /exit - Exit the chat

[bold]Examples:[/bold]
1. "What is 12 multiplied by 7?"
2. "List the files in the workspace"
3. "Write a short note to notes/todo.md"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    setup_logging()
    try:
        state_machine = build_state_machine()
    except ValueError as e:
        Console().print(f"[red]Configuration error: {e}[/red]")
        raise SystemExit(1) from e

    try:
        asyncio.run(ChatCLI(state_machine).start())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
