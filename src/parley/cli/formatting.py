"""Rich formatting helpers for the Parley CLI.

Provides functions that render messages, history, tool listings and
turn summaries for terminal display. Rich auto-detects TTY and degrades
gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from parley.messages import TextBlock, ToolResultBlock, ToolUseBlock

if TYPE_CHECKING:
    from parley.messages import Message, Tool
    from parley.orchestrator.models import StepResult, TurnResult

_ROLE_STYLES = {
    "user": "bold blue",
    "assistant": "bold green",
    "system": "bold magenta",
    "tool": "bold yellow",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _pretty_json(value: object) -> str:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def format_message(message: Message, console: Console) -> None:
    """Display one message as it is added to the conversation."""
    if message.role == "assistant":
        if message.text:
            console.print(
                Panel(
                    Markdown(message.text),
                    title="Assistant",
                    title_align="left",
                    border_style="green",
                )
            )
        for call in message.tool_calls:
            console.print(
                f"[yellow]> calling[/yellow] [bold]{escape(call.name)}[/bold]",
                highlight=False,
            )
    elif message.is_tool_response:
        for result in message.tool_results:
            style = "red" if result.is_error else "dim"
            console.print(
                f"[{style}]< {escape(_truncate(result.content))}[/{style}]",
                highlight=False,
            )
    elif message.role == "user":
        console.print(f"[bold blue]You:[/bold blue] {escape(message.text)}", highlight=False)


def _truncate(text: str, limit: int = 200) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def format_history(messages: list[Message], console: Console) -> None:
    """Display the full conversation history, block by block."""
    if not messages:
        console.print("[dim]No messages.[/dim]")
        return

    for i, message in enumerate(messages):
        if i > 0:
            console.print()
        style = _ROLE_STYLES.get(message.role, "bold")
        console.print(f"[{style}]{message.role.upper()}[/{style}]")
        for block in message.content:
            if isinstance(block, TextBlock):
                if block.text.strip():
                    console.print(Markdown(block.text))
            elif isinstance(block, ToolUseBlock):
                console.print(
                    f"  [yellow]tool_use[/yellow] {escape(block.name)} "
                    f"[dim]({escape(block.id)})[/dim]",
                    highlight=False,
                )
                console.print(Syntax(_pretty_json(block.input), "json", theme="ansi_dark"))
            elif isinstance(block, ToolResultBlock):
                label = "[red]tool_result (error)[/red]" if block.is_error else "[yellow]tool_result[/yellow]"
                console.print(
                    f"  {label} [dim]({escape(block.tool_use_id)})[/dim]",
                    highlight=False,
                )
                console.print(f"  {escape(block.content)}", highlight=False)


def format_tools(tools: list[Tool], console: Console) -> None:
    """Display the tools advertised to the model."""
    if not tools:
        console.print("[dim]No tools available.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tool", style="cyan")
    table.add_column("Parameters", style="dim")
    table.add_column("Description")

    for tool in tools:
        params = ", ".join(
            f"{name}*" if name in tool.input_schema.required else name
            for name in tool.input_schema.properties
        )
        table.add_row(escape(tool.name), escape(params), escape(tool.description))

    console.print(table)


def format_step(step: StepResult, console: Console) -> None:
    """Display a skipped or failed tool call."""
    if step.skipped:
        console.print(
            f"[red]Skipped tool call {escape(step.tool_call.name)}:[/red] {escape(step.error)}",
            highlight=False,
        )


def format_turn_summary(result: TurnResult, console: Console) -> None:
    """Display usage for a finished turn."""
    usage = result.usage
    console.print(
        f"[dim]{result.model_calls} model call(s), {len(result.steps)} tool call(s), "
        f"{usage.input_tokens} in / {usage.output_tokens} out tokens[/dim]"
    )
    if result.stopped_reason != "complete":
        console.print(f"[yellow]Turn stopped: {escape(result.stopped_reason)}[/yellow]")


def format_help(commands: dict[str, str], console: Console) -> None:
    """Display the slash-command reference."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Command", style="cyan")
    table.add_column("Description")
    for name, description in commands.items():
        table.add_row(name, description)
    console.print(table)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
