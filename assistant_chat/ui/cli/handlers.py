"""
Command handlers for the interactive CLI.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from rich.box import ROUNDED
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from assistant_chat.domain.exceptions import AssistantBusyError

if TYPE_CHECKING:
    from assistant_chat.agents.assistant import Assistant
    from assistant_chat.interfaces.services.tools import IToolCatalog

COMMANDS = ["/help", "/tools", "/history", "/usage", "/trace", "/clear", "/exit"]


def show_help(console: Console) -> None:
    """Print help panel."""
    console.print(
        Panel(
            "Commands\n"
            "/help      Show help\n"
            "/tools     List callables the model can use\n"
            "/history   Search the conversation (e.g., /history invoice)\n"
            "/usage     Show token usage\n"
            "/trace     Show tool calls of the last prompt\n"
            "/clear     Start a new conversation\n"
            "/exit      Exit\n\n"
            "Anything else is sent to the assistant.",
            title="Help",
            box=ROUNDED,
        )
    )


def list_tools(console: Console, catalog: "IToolCatalog") -> None:
    """Render a table of callables."""
    table = Table(title="Callables", box=ROUNDED)
    table.add_column("Name", style="tool", no_wrap=True)
    table.add_column("Description")
    table.add_column("Parameters")

    for descriptor in catalog.list_tools():
        params = ", ".join(
            f"{p.name}: {p.type}" + (f" = {p.default}" if p.default is not None else "")
            for p in descriptor.parameters
        )
        table.add_row(descriptor.name, descriptor.description, params or "-")

    console.print(table)


async def show_history(console: Console, assistant: "Assistant", text: Optional[str]) -> None:
    if assistant.thread_id is None:
        console.print("[muted]No conversation yet.[/muted]")
        return
    found = await assistant.provider.search_history(assistant.thread_id, text or None)
    console.print(Panel(found, title="History", box=ROUNDED))


def show_usage(console: Console, assistant: "Assistant") -> None:
    usage = getattr(assistant.provider, "usage", None)
    if usage is None:
        console.print("[muted]This provider does not report usage.[/muted]")
        return
    console.print(
        Panel(
            f"Requests: {usage.requests}\n"
            f"Prompt tokens: {usage.prompt_tokens}\n"
            f"Completion tokens: {usage.completion_tokens}\n"
            f"Total: {usage.total_tokens}",
            title="Usage",
            box=ROUNDED,
        )
    )


def show_trace(console: Console, assistant: "Assistant") -> None:
    transcript = assistant.transcript
    if transcript is None or not transcript.turns:
        console.print("[muted]Nothing to show.[/muted]")
        return
    table = Table(title=f"Last prompt ({transcript.iterations} iteration(s))", box=ROUNDED)
    table.add_column("#", no_wrap=True)
    table.add_column("Call", style="tool")
    table.add_column("Result")
    for turn in transcript.turns:
        if not turn.tool_calls:
            table.add_row(str(turn.iteration), "-", turn.response or "")
        for call in turn.tool_calls:
            result = turn.tool_results.get(call["id"], "[muted](not delivered)[/muted]")
            table.add_row(str(turn.iteration), f"{call['name']}({call['arguments']})", result)
    console.print(table)


def show_answer(console: Console, answer: str) -> None:
    console.print(Panel(Markdown(answer), title="Assistant", border_style="assistant", box=ROUNDED))


async def handle_clear(console: Console, assistant: "Assistant") -> None:
    try:
        await assistant.clear()
    except AssistantBusyError as e:
        console.print(f"[error]{e}[/error]")
        return
    console.clear()
    console.print("[success]Started a new conversation.[/success]")


async def handle_command(cmd: str, console: Console, assistant: "Assistant") -> Optional[bool]:
    """
    Run a slash command.

    Returns:
        None when cmd is not a command, False to exit, True otherwise
    """
    if not cmd.startswith("/"):
        return None
    name, _, arg = cmd.partition(" ")
    name = name.lower()
    if name == "/exit":
        return False
    if name == "/help":
        show_help(console)
    elif name == "/tools":
        list_tools(console, assistant.get_callables())
    elif name == "/history":
        await show_history(console, assistant, arg.strip())
    elif name == "/usage":
        show_usage(console, assistant)
    elif name == "/trace":
        show_trace(console, assistant)
    elif name == "/clear":
        await handle_clear(console, assistant)
    else:
        console.print(f"[warning]Unknown command {name}; try /help[/warning]")
    return True


__all__ = [
    "COMMANDS",
    "show_help",
    "list_tools",
    "show_history",
    "show_usage",
    "show_trace",
    "show_answer",
    "handle_clear",
    "handle_command",
]
