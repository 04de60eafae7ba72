"""
Main Chat Interface
Terminal chat loop for the scheme eligibility assistant
"""
import asyncio
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .agent import EligibilityAssistant, summarize_profile
from .config import settings
from .llm import LLMClientFactory
from .logging_config import setup_logging
from .tools import create_provider_from_settings

console = Console()

EXIT_WORDS = {"exit", "quit", "bye"}


class ChatInterface:
    """
    Text chat interface for the assistant
    Handles the read -> process -> display loop
    """

    def __init__(self, assistant: Optional[EligibilityAssistant] = None):
        self.assistant = assistant or EligibilityAssistant(
            llm_client=LLMClientFactory.create_from_settings(),
            catalog_provider=create_provider_from_settings()
        )
        self.current_session_id: Optional[str] = None
        self.is_running = False

    async def start_session(self) -> str:
        """Start a new interaction session and show the first question"""
        session_id, reply = await self.assistant.start_session()
        self.current_session_id = session_id

        console.print(Panel(
            f"[green]New session started[/green]\nSession ID: {session_id}",
            title="Session",
            border_style="green"
        ))
        self._show_reply(reply)
        return session_id

    async def process_text_input(self, text: str) -> Dict[str, Any]:
        """Send one message to the assistant and display the reply"""
        if not self.current_session_id:
            await self.start_session()
        assert self.current_session_id is not None

        with console.status("[cyan]Thinking...[/cyan]"):
            reply = await self.assistant.process_input(self.current_session_id, text)

        self._show_reply(reply)
        return reply

    def _show_reply(self, reply: Dict[str, Any]):
        console.print(Panel(
            f"[green]{reply.get('text', '')}[/green]",
            title="Assistant",
            border_style="red" if reply.get("type") == "error" else "green"
        ))

        if reply.get("type") == "results":
            self._show_profile()
            if reply.get("eligible_schemes"):
                self._show_schemes(reply["eligible_schemes"])

    def _show_profile(self):
        profile = self.assistant.get_profile(self.current_session_id)
        if profile is None:
            return
        table = Table(title="Your details", show_header=False)
        for row in summarize_profile(profile):
            table.add_row(row["label"], str(row["value"]))
        console.print(table)

    def _show_schemes(self, schemes):
        table = Table(title="Eligible Schemes")
        table.add_column("Scheme", style="bold")
        table.add_column("Benefits")
        table.add_column("Apply")
        for scheme in schemes:
            table.add_row(
                scheme.get("name", ""),
                scheme.get("benefits") or scheme.get("short_description", ""),
                scheme.get("official_link") or scheme.get("application_mode") or "-"
            )
        console.print(table)

    async def run_interactive_loop(self):
        """Run the main chat loop"""
        self.is_running = True
        await self.start_session()

        while self.is_running:
            try:
                text = console.input("[bold cyan]You: [/bold cyan]").strip()
            except (KeyboardInterrupt, EOFError):
                console.print("\n[yellow]Stopping...[/yellow]")
                break

            if not text:
                continue
            if text.lower() in EXIT_WORDS:
                console.print("\n[green]Thank you! Have a good day.[/green]")
                break

            await self.process_text_input(text)

        self.end_session()

    def end_session(self):
        """End current session"""
        if self.current_session_id:
            self.assistant.end_session(self.current_session_id)
            self.current_session_id = None
        self.is_running = False


async def main():
    """Main entry point for the chat interface"""
    setup_logging(settings.log_level, use_rich=True)

    console.print(Panel(
        "[bold green]Government Scheme Assistant[/bold green]\n\n"
        "[dim]Answer a few questions to find schemes you may be eligible for.\n"
        "Type 'exit' to quit.[/dim]",
        title="Welcome",
        border_style="green"
    ))

    interface = ChatInterface()
    try:
        await interface.run_interactive_loop()
    finally:
        interface.end_session()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
