"""
Console utilities for CLI.
"""

from typing import Optional
from rich.console import Console
from rich.theme import Theme
import os
import sys

_THEMES = {
    "dark": {
        "user": "bold bright_white",
        "assistant": "bright_cyan",
        "tool": "magenta",
        "warning": "yellow",
        "error": "bold red",
        "success": "bright_green",
        "muted": "grey62",
    },
    "light": {
        "user": "bold black",
        "assistant": "blue",
        "tool": "purple",
        "warning": "dark_orange3",
        "error": "red3",
        "success": "green4",
        "muted": "grey46",
    },
}


def theme_name_from(value: Optional[str]) -> str:
    return "light" if (value or "").strip().lower() in ("light", "white") else "dark"


def color_enabled(enable: Optional[bool]) -> bool:
    """
    Decide whether to emit colors.

    NO_COLOR disables colors unless ASSISTANT_CLI_FORCE_COLOR is set; with
    enable=None the decision follows whether stdout is a TTY.
    """
    if (os.getenv("ASSISTANT_CLI_FORCE_COLOR") or "").lower() in ("1", "true", "yes", "on"):
        return True
    if enable is False or os.getenv("NO_COLOR") is not None:
        return False
    if enable is None:
        return bool(getattr(sys.stdout, "isatty", lambda: False)())
    return True


def make_console(theme_name: str, use_color: Optional[bool] = True) -> Console:
    """Create a Rich console with the selected theme and color policy."""
    desired = color_enabled(use_color)
    return Console(
        theme=Theme(_THEMES[theme_name_from(theme_name)]),
        no_color=not desired,
        color_system="auto" if desired else None,
        markup=True,
        emoji=True,
        highlight=False,
    )


__all__ = ["make_console", "color_enabled", "theme_name_from"]
