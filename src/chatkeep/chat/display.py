"""Terminal input and output for the chat loop.

Hides the details of prompting, streaming text to the console and how
reasoning output is set apart from the answer.
"""

from collections.abc import Callable, Sequence

from rich.console import Console
from rich.markup import escape

from ..context import window_start
from ..session.models import Message

USER_PROMPT = "You: "
ASSISTANT_PREFIX = "AI: "
ELLIPSIS = "..."


def truncate_content(content: str, max_length: int) -> str:
    """Cut content to ``max_length`` characters, marking the cut with "...".

    Works on characters, not bytes, so multi-byte text is never split
    inside a character.
    """
    if len(content) > max_length:
        return content[:max(max_length, 0)] + ELLIPSIS
    return content


class ChatTerminal:
    """Line-oriented terminal used by the chat loop."""

    def __init__(
        self,
        console: Console | None = None,
        input_func: Callable[[], str] | None = None,
    ):
        """Initialize terminal.

        Args:
            console: Rich console for output (defaults to stdout)
            input_func: Reads one line without prompting; defaults to the
                console's own input. Raises EOFError at end of input.
        """
        self.console = console or Console()
        self._input_func = input_func
        self._channel: str | None = None

    def read_line(self, prompt: str = USER_PROMPT) -> str:
        """Prompt and read one line (EOFError at end of input)."""
        if self._input_func is None:
            return self.console.input(f"[bold yellow]{prompt}[/bold yellow]")
        self.console.print(prompt, end="", style="bold yellow", markup=False)
        return self._input_func()

    def begin_response(self) -> None:
        self._channel = None
        self.console.print(ASSISTANT_PREFIX, end="", style="bold green", markup=False)

    def write_thinking(self, text: str) -> None:
        """Print reasoning text dimmed, apart from the answer."""
        if not text:
            return
        if self._channel == "answer":
            self.console.print()
        self._channel = "thinking"
        self.console.print(text, end="", style="dim italic", markup=False, highlight=False)

    def write_answer(self, text: str) -> None:
        if not text:
            return
        if self._channel == "thinking":
            self.console.print()
        self._channel = "answer"
        self.console.print(text, end="", markup=False, highlight=False)

    def end_response(self) -> None:
        self.console.print()
        self._channel = None

    def notice(self, text: str) -> None:
        self.console.print(f"[dim]{escape(text)}[/dim]")

    def warning(self, text: str) -> None:
        self.console.print(f"[yellow]Warning: {escape(text)}[/yellow]")

    def error(self, text: str) -> None:
        self.console.print(f"[red]Error: {escape(text)}[/red]")

    def display_message(self, message: Message, max_length: int = 1000) -> None:
        if message.is_user:
            self.console.print(f"  You: {message.content}", markup=False, highlight=False)
        else:
            content = truncate_content(message.content, max_length)
            self.console.print(f"  AI: {content}", markup=False, highlight=False)

    def display_recent_messages(
        self,
        messages: Sequence[Message],
        count: int,
        max_length: int = 1000,
    ) -> None:
        """Show the last ``count`` messages, assistant replies truncated."""
        start = window_start(len(messages), count)
        for message in messages[start:]:
            self.display_message(message, max_length)
        self.console.print()
