"""chatstream CLI: Typer + Rich terminal interface.

Commands: ask, models, render. With no command an interactive chat
starts.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from chatstream import __version__
from chatstream.conversation import Conversation
from chatstream.keys import load_keys_env, missing_keys
from chatstream.providers.registry import build_provider, load_chat_config, load_models
from chatstream.rendering.console import BRAND, LiveMessageView, render_text
from chatstream.repl import ChatREPL
from chatstream.schemas.config import ChatConfig, ModelConfig

console = Console()

app = typer.Typer(
    name="chatstream",
    help="Stream chat completions and render them in the terminal.",
    no_args_is_help=False,
    rich_markup_mode="rich",
)


# ── Callbacks ───────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"chatstream {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
    thinking: bool = typer.Option(False, "--thinking", help="Use the thinking model."),
    system: str = typer.Option("", "--system", help="Prompt for this chat."),
) -> None:
    """chatstream: streaming chat in the terminal."""
    _configure_logging(verbose)
    load_keys_env()
    ctx.obj = {"thinking": thinking, "system": system}
    if ctx.invoked_subcommand is None:
        conversation = _new_conversation(*_load())
        conversation.session.system_prompt = system
        ChatREPL(conversation, console=console, thinking=thinking).run()


# ── Helpers ──────────────────────────────────────────────────────


def _load() -> tuple[ChatConfig, dict[str, ModelConfig]]:
    """Load chat defaults and the model registry, exit on error."""
    try:
        return load_chat_config(), load_models()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _new_conversation(config: ChatConfig, registry: dict[str, ModelConfig]) -> Conversation:
    for env_var in missing_keys(registry):
        console.print(f"[{BRAND['red']}]Warning:[/{BRAND['red']}] {env_var} is not set")
    return Conversation(config, lambda key: build_provider(key, registry, config))


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def ask(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Message to send."),
    thinking: bool = typer.Option(False, "--thinking", help="Use the thinking model."),
    system: str = typer.Option("", "--system", help="Prompt for this message."),
) -> None:
    """Send one message and stream the answer.

    ``--thinking`` and ``--system`` may also be given before the command.
    """
    shared = ctx.obj or {}
    thinking = thinking or shared.get("thinking", False)
    system = system or shared.get("system", "")
    conversation = _new_conversation(*_load())
    conversation.session.system_prompt = system

    async def _run():
        with LiveMessageView(console) as view:
            return await conversation.send(prompt, thinking=thinking, on_update=view)

    outcome = asyncio.run(_run())
    if outcome.error:
        raise typer.Exit(1)


@app.command()
def models() -> None:
    """List the configured models."""
    config, registry = _load()

    table = Table(title="Models", title_style=f"bold {BRAND['accent']}")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Model ID", style=BRAND["dim"])
    table.add_column("Temp", justify="right")
    table.add_column("Thinking", justify="center")
    table.add_column("Default", justify="center")

    for key, model in registry.items():
        role = ""
        if key == config.default_model:
            role = "chat"
        elif key == config.thinking_model:
            role = "thinking"
        table.add_row(
            key,
            model.display_name,
            model.model,
            f"{model.temperature:.1f}",
            "✓" if model.thinking else "",
            role,
        )
    console.print(table)


@app.command()
def render(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file to render."),
) -> None:
    """Render a text file the way streamed answers are displayed."""
    console.print(render_text(path.read_text(encoding="utf-8")))
