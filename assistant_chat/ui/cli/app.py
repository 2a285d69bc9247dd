"""
Interactive CLI for chatting with a tool-using assistant.

Environment:
  ASSISTANT_PROVIDER        openai | anthropic | llama (asked interactively when unset)
  ASSISTANT_INSTRUCTIONS    Role instructions for the assistant
  CLI_THEME                 dark | light
  CLI_COLOR                 1/0 to force colors on/off
  ASSISTANT_CHAT_LOG_LEVEL  Logging level (default WARNING)

Run:
  python -m assistant_chat.ui.cli.app
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel

from assistant_chat.api.di.composition import PROVIDERS, build_assistant, build_provider
from assistant_chat.domain.exceptions import AssistantChatError, TooManyAttemptsError
from assistant_chat.infrastructure.config import Config
from .console import make_console
from .handlers import COMMANDS, handle_command, show_answer, show_help

DEFAULT_INSTRUCTIONS = "You are a helpful assistant. Answer concisely."


async def select_provider(console: Console, session: PromptSession) -> str:
    """Provider from ASSISTANT_PROVIDER, or ask until a known one is entered."""
    preset = (os.getenv("ASSISTANT_PROVIDER") or "").strip().lower()
    if preset in PROVIDERS:
        return preset
    completer = WordCompleter(list(PROVIDERS), ignore_case=True)
    while True:
        choice = (await session.prompt_async(f"Provider ({'/'.join(PROVIDERS)}) [llama]: ", completer=completer))
        choice = choice.strip().lower() or "llama"
        if choice in PROVIDERS:
            return choice
        console.print(f"[warning]Unknown provider '{choice}'[/warning]")


async def main(console: Optional[Console] = None) -> None:
    logging.basicConfig(level=Config.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if console is None:
        color_env = os.getenv("CLI_COLOR")
        use_color = None if color_env is None else color_env.lower() in ("1", "true", "yes", "on")
        console = make_console(os.getenv("CLI_THEME") or "dark", use_color=use_color)
    session: PromptSession = PromptSession(history=InMemoryHistory())

    console.print(Panel("Assistant Chat CLI\nTool-using assistant on OpenAI, Anthropic or Llama.", title="Welcome", box=ROUNDED))

    provider_name = await select_provider(console, session)
    try:
        provider = build_provider(provider_name)
    except Exception as e:
        # SDK clients raise their own error types for missing credentials
        console.print(f"[error]Could not create the {provider_name} provider: {e}[/error]")
        return
    assistant = build_assistant(provider, os.getenv("ASSISTANT_INSTRUCTIONS") or DEFAULT_INSTRUCTIONS)
    show_help(console)

    completer = WordCompleter(COMMANDS, ignore_case=True, match_middle=True)
    while True:
        try:
            with patch_stdout():
                user_input = await session.prompt_async("> ", completer=completer)
        except (KeyboardInterrupt, EOFError):
            console.print("\nExiting...", style="muted")
            break

        cmd = user_input.strip()
        if not cmd:
            continue

        handled = await handle_command(cmd, console, assistant)
        if handled is False:
            break
        if handled:
            continue

        try:
            with console.status("Thinking..."):
                answer = await assistant.prompt(cmd)
        except TooManyAttemptsError as e:
            console.print(f"[warning]{e}[/warning]")
            continue
        except AssistantChatError as e:
            console.print(f"[error]{e}[/error]")
            continue
        show_answer(console, answer)


def run() -> None:
    """Main interactive loop."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
