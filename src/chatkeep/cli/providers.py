"""Factory functions for the CLI.

Centralizes creation of configuration, session store and inference client.
Hides configuration details from command implementations and turns fatal
startup errors into a diagnostic plus a non-zero exit.
"""

import typer
from rich.console import Console
from rich.markup import escape

from ..config import ChatConfig, InferenceBackend, load_config
from ..errors import ClientInitError, ConfigError
from ..llm import InferenceClient, create_inference_client
from ..session import SessionStore

# Default console for output
_console = Console()


def get_config(console: Console | None = None) -> ChatConfig:
    """Load configuration from ``.env`` and the environment.

    Raises:
        typer.Exit: If the configuration is invalid
    """
    con = console or _console
    try:
        return load_config()
    except ConfigError as e:
        con.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def build_client(config: ChatConfig) -> InferenceClient:
    """Create the configured inference client.

    Raises:
        ClientInitError: If the client cannot be constructed
    """
    try:
        if config.backend == InferenceBackend.OPENAI:
            return create_inference_client(
                "openai",
                api_key=config.api_key,
                base_url=config.host,
                timeout=config.request_timeout,
            )
        return create_inference_client(
            "ollama",
            host=config.host,
            timeout=config.request_timeout,
        )
    except Exception as e:
        raise ClientInitError(f"cannot create {config.backend.value} client: {e}") from e


def require_client(config: ChatConfig, console: Console | None = None) -> InferenceClient:
    """Get the inference client, exiting if it cannot be built.

    Raises:
        typer.Exit: If client construction fails
    """
    con = console or _console
    try:
        return build_client(config)
    except ClientInitError as e:
        con.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def get_store(config: ChatConfig) -> SessionStore:
    return SessionStore(config)
