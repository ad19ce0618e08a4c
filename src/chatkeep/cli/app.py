"""Main CLI application using Typer."""
import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..chat import ChatOrchestrator, ChatTerminal
from ..config import ChatConfig
from ..errors import EmptyInputError, SessionInitError
from ..logging_setup import configure_logging
from .providers import get_config, get_store, require_client

# Create Typer app
app = typer.Typer(
    name="chatkeep",
    help="Terminal chat with a local or remote LLM and persistent per-user history",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

LOG_LEVEL_HELP = "Diagnostic log level: debug, info, warning, or error"


def show_config(config: ChatConfig) -> None:
    """Print the current settings as a table."""
    table = Table(show_header=False, box=None, title="Current settings", title_justify="left")
    table.add_column("Setting", style="bold cyan", width=18)
    table.add_column("Value")

    for name, value in config.describe():
        table.add_row(name, escape(value))

    console.print(table)
    console.print()


def ask_user_name(terminal: ChatTerminal) -> str:
    """Prompt until a non-empty name is entered.

    Raises:
        EOFError: If input ends before a name is given
    """
    name = terminal.read_line("Enter your name: ").strip()
    while not name:
        console.print("[red]Name cannot be empty.[/red]")
        name = terminal.read_line("Enter your name: ").strip()
    return name


@app.command()
def chat(
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        help="User name (prompted for when omitted)"
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        "-l",
        help=LOG_LEVEL_HELP
    ),
):
    """Start or continue an interactive chat."""
    configure_logging(log_level)
    config = get_config(console)
    show_config(config)

    terminal = ChatTerminal(console)
    user_name = (user or "").strip()
    if not user_name:
        try:
            user_name = ask_user_name(terminal)
        except EOFError:
            console.print("\n[dim]Goodbye![/dim]")
            raise typer.Exit(code=1)

    async def _chat():
        store = get_store(config)
        client = require_client(config, console)

        try:
            try:
                session = store.load_or_create(user_name)
            except (EmptyInputError, SessionInitError) as e:
                console.print(f"[red]Error: cannot start chat session: {escape(str(e))}[/red]")
                raise typer.Exit(code=1)

            console.print(f"[bold cyan]Welcome, {escape(user_name)}![/bold cyan]")
            if session.messages:
                console.print(
                    f"[dim]Continuing existing chat "
                    f"({len(session.messages)} messages in history)[/dim]"
                )
                console.print("\n[bold]Recent messages:[/bold]")
                terminal.display_recent_messages(
                    session.messages,
                    config.recent_messages,
                    config.max_display_length,
                )
            else:
                console.print("[dim]Starting a new chat[/dim]")

            console.print("[dim]Type 'exit' or 'quit' to leave[/dim]")
            console.print("[dim]" + "-" * 34 + "[/dim]")

            orchestrator = ChatOrchestrator(
                session=session,
                client=client,
                store=store,
                config=config,
                terminal=terminal,
            )
            await orchestrator.run()
        finally:
            await client.close()

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        console.print("\n[dim]Goodbye![/dim]")


@app.command(name="config")
def config_command():
    """Show the current settings."""
    show_config(get_config(console))


@app.command()
def history(
    user: str = typer.Argument(..., help="User name whose history to show"),
    count: int = typer.Option(
        10,
        "--count",
        "-n",
        min=1,
        help="Number of recent messages to show"
    ),
):
    """Show the most recent messages of a saved chat."""
    config = get_config(console)
    store = get_store(config)

    if not store.exists(user):
        console.print(f"[yellow]No saved chat for {escape(user)}[/yellow]")
        raise typer.Exit(code=1)

    try:
        session = store.load_or_create(user)
    except SessionInitError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[bold cyan]{escape(session.username)}[/bold cyan] "
        f"[dim]{len(session.messages)} messages, "
        f"last updated {session.updated:%Y-%m-%d %H:%M}[/dim]\n"
    )
    ChatTerminal(console).display_recent_messages(
        session.messages, count, config.max_display_length
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
