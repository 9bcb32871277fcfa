"""Interactive REPL for chatstream.

Provides a persistent chat session with slash-command dispatch and live
rendering of streamed answers. Launch with `chatstream` (no subcommand).
"""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console
from rich.table import Table
from rich.text import Text

from chatstream.conversation import Conversation
from chatstream.rendering.console import BRAND, LiveMessageView
from chatstream.schemas.streaming import StreamOutcome

logger = logging.getLogger(__name__)

_HELP_ROWS = [
    ("/new", "Start a new chat"),
    ("/think", "Toggle the thinking model"),
    ("/system <text>", "Set the prompt for this chat (empty clears it)"),
    ("/help", "Show this help"),
    ("/exit", "Quit"),
]


class ChatREPL:
    """Interactive loop over one Conversation.

    Plain input is sent as a chat turn; input starting with ``/`` is a
    command. Ctrl+C while an answer streams cancels that turn only.
    """

    def __init__(
        self,
        conversation: Conversation,
        console: Console | None = None,
        thinking: bool = False,
    ) -> None:
        self.conversation = conversation
        self.console = console or Console()
        self.thinking = thinking

    def run(self) -> None:
        """Main REPL loop."""
        self.console.print(
            f"[{BRAND['dim']}]Type a message, or /help for commands.[/{BRAND['dim']}]"
        )
        while True:
            try:
                prompt_text = Text()
                prompt_text.append("\nchat", style=BRAND["accent"])
                if self.thinking:
                    prompt_text.append(" (thinking)", style=BRAND["dim"])
                prompt_text.append(" ▸ ", style=BRAND["user"])

                user_input = self.console.input(prompt_text).strip()
                if not user_input:
                    continue
                if not self.dispatch(user_input):
                    break
            except (KeyboardInterrupt, EOFError):
                self.console.print(f"\n[{BRAND['dim']}]Goodbye.[/{BRAND['dim']}]")
                break

    def dispatch(self, user_input: str) -> bool:
        """Handle one line of input. Returns False when the REPL should exit."""
        if not user_input.startswith("/"):
            self.ask(user_input)
            return True

        command, _, arg = user_input.partition(" ")
        command = command.lower()

        if command in ("/exit", "/quit"):
            return False
        if command == "/new":
            self.conversation.reset()
            self.console.print(f"[{BRAND['dim']}]New chat started.[/{BRAND['dim']}]")
        elif command == "/think":
            self.thinking = not self.thinking
            state = "on" if self.thinking else "off"
            self.console.print(f"[{BRAND['dim']}]Thinking model {state}.[/{BRAND['dim']}]")
        elif command == "/system":
            self.conversation.session.system_prompt = arg.strip()
            if arg.strip():
                self.console.print(f"[{BRAND['dim']}]Chat prompt set.[/{BRAND['dim']}]")
            else:
                self.console.print(f"[{BRAND['dim']}]Chat prompt cleared.[/{BRAND['dim']}]")
        elif command == "/help":
            self._print_help()
        else:
            self.console.print(f"[{BRAND['red']}]Unknown command:[/{BRAND['red']}] {command}")
        return True

    def ask(self, text: str) -> StreamOutcome | None:
        """Send ``text`` and render the answer live."""
        try:
            outcome = asyncio.run(self._stream(text))
        except KeyboardInterrupt:
            self.conversation.cancel()
            self.console.print(f"[{BRAND['dim']}]Cancelled.[/{BRAND['dim']}]")
            return None

        if outcome.error:
            logger.debug("Turn ended with error: %s", outcome.error)
        return outcome

    async def _stream(self, text: str) -> StreamOutcome:
        with LiveMessageView(self.console) as view:
            return await self.conversation.send(text, thinking=self.thinking, on_update=view)

    def _print_help(self) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style=BRAND["accent"])
        table.add_column(style=BRAND["dim"])
        for command, description in _HELP_ROWS:
            table.add_row(command, description)
        self.console.print(table)
