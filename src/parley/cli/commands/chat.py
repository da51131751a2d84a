"""parley chat -- interactive tool-calling chat."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

import click

from parley.cli.formatting import (
    format_error,
    format_help,
    format_history,
    format_message,
    format_step,
    format_tools,
    format_turn_summary,
    get_console,
)
from parley.config import ProviderConfig
from parley.exceptions import ParleyError, TurnCancelledError
from parley.history import DEFAULT_WINDOW
from parley.llm.factory import create_provider
from parley.orchestrator import Conversation, ConversationSettings
from parley.tools import DEFAULT_TOOL_TIMEOUT, ToolCollaborator, ToolDispatcher

if TYPE_CHECKING:
    from rich.console import Console

    from parley.messages import Message

SLASH_COMMANDS = {
    "/help": "Show this help",
    "/tools": "List the tools offered to the model",
    "/history": "Show the conversation history",
    "/quit": "Exit the chat",
}


def load_collaborator(spec: str) -> ToolCollaborator:
    """Import a collaborator from a ``module:attr`` reference.

    ``attr`` may be a collaborator object or a zero-argument factory
    returning one.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected module:attr, got {spec!r}", param_hint="--collaborator")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name}: {e}", param_hint="--collaborator") from e
    try:
        obj = getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="--collaborator") from None

    if not isinstance(obj, ToolCollaborator) and callable(obj):
        obj = obj()
    if not isinstance(obj, ToolCollaborator):
        raise click.BadParameter(f"{spec} is not a tool collaborator", param_hint="--collaborator")
    return obj


def _handle_slash_command(command: str, conversation: Conversation, console: Console) -> bool:
    """Run a slash command. Returns False when the chat should end."""
    name = command.split()[0].lower()
    if name == "/quit":
        return False
    if name == "/help":
        format_help(SLASH_COMMANDS, console)
    elif name == "/tools":
        format_tools(conversation.tools, console)
    elif name == "/history":
        format_history(conversation.history, console)
    else:
        format_error(f"Unknown command: {name}. Type /help for commands.", console)
    return True


def _run_turn(conversation: Conversation, prompt: str, console: Console) -> bool:
    """Send one prompt. Returns False if the turn failed."""
    try:
        with console.status("Thinking...", spinner="dots"):
            result = conversation.send(prompt)
    except KeyboardInterrupt:
        conversation.stop()
        conversation.reset()
        console.print("[yellow]Interrupted.[/yellow]")
        return False
    except TurnCancelledError:
        conversation.reset()
        console.print("[yellow]Turn cancelled.[/yellow]")
        return False
    except ParleyError as e:
        format_error(str(e), console)
        return False
    format_turn_summary(result, console)
    return True


@click.command()
@click.option(
    "--provider",
    type=click.Choice(["anthropic", "openai", "azure", "ollama"]),
    default="anthropic",
    envvar="PARLEY_PROVIDER",
    show_default=True,
    help="Model backend.",
)
@click.option("--model", default=None, help="Model identifier (backend default if omitted).")
@click.option(
    "--message-window",
    type=click.IntRange(min=1),
    default=DEFAULT_WINDOW,
    show_default=True,
    help="Number of messages kept in history.",
)
@click.option(
    "--tool-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TOOL_TIMEOUT,
    show_default=True,
    help="Seconds allowed per tool call.",
)
@click.option(
    "--max-round-trips",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum model calls per turn (unbounded if omitted).",
)
@click.option("--system", "system_prompt", default=None, help="System prompt.")
@click.option(
    "--collaborator",
    "collaborator_specs",
    multiple=True,
    help="Tool collaborator as module:attr (repeatable).",
)
@click.option("--prompt", default=None, help="Run a single turn with this prompt and exit.")
@click.pass_context
def chat(
    ctx: click.Context,
    provider: str,
    model: str | None,
    message_window: int,
    tool_timeout: float,
    max_round_trips: int | None,
    system_prompt: str | None,
    collaborator_specs: tuple[str, ...],
    prompt: str | None,
) -> None:
    """Chat with a model that can call the given collaborators' tools.

    Without --prompt, starts an interactive session. Type /help for
    slash commands.
    """
    console = get_console()
    collaborators = [load_collaborator(spec) for spec in collaborator_specs]

    try:
        llm = create_provider(ProviderConfig.from_env(provider, model=model))
    except ParleyError as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    def on_message(message: Message) -> None:
        if message.role != "user":
            format_message(message, console)

    settings = ConversationSettings(
        window=message_window,
        tool_timeout=tool_timeout,
        max_round_trips=max_round_trips,
        system_prompt=system_prompt,
    )
    conversation = Conversation(
        llm,
        ToolDispatcher(collaborators),
        settings,
        on_message=on_message,
        on_step=lambda step: format_step(step, console),
    )

    try:
        if prompt is not None:
            if not _run_turn(conversation, prompt, console):
                raise SystemExit(1)
            return

        console.print(
            f"[bold]parley[/bold] [dim]{llm.name}, "
            f"{len(conversation.tools)} tool(s). Type /help for commands.[/dim]"
        )
        while True:
            try:
                line = console.input("[bold blue]You:[/bold blue] ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if not line:
                continue
            if line.startswith("/"):
                if not _handle_slash_command(line, conversation, console):
                    break
                continue
            _run_turn(conversation, line, console)
    finally:
        llm.close()
